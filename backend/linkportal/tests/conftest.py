import os
import tempfile
from pathlib import Path
from uuid import uuid4

import pytest

TEST_DB_FILE = Path(tempfile.gettempdir()) / f"test_linkportal_{uuid4().hex}.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_FILE.as_posix()}"
os.environ["STORAGE_BACKEND"] = "database"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("ALGORITHM", "HS256")
os.environ["ADMIN_USERNAME"] = "admin"
os.environ["PROTECTED_USERNAME"] = "admin"
os.environ["API_PREFIX"] = "/api"
os.environ["DB_BOOTSTRAP_MODE"] = "off"

from fastapi.testclient import TestClient  # noqa: E402

from linkportal.core.security import create_access_token  # noqa: E402
from linkportal.database.base import Base  # noqa: E402
from linkportal.database.session import SessionLocal, engine  # noqa: E402
from linkportal.main import app  # noqa: E402
from linkportal.services.sql_store import SqlPortalStore  # noqa: E402


@pytest.fixture(autouse=True)
def reset_database():
    engine.dispose()
    if TEST_DB_FILE.exists():
        TEST_DB_FILE.unlink()
    Base.metadata.create_all(bind=engine)
    try:
        yield
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()
        if TEST_DB_FILE.exists():
            TEST_DB_FILE.unlink()


@pytest.fixture
def db_session():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db_session):
    return SqlPortalStore(db_session, protected_username="admin")


@pytest.fixture
def client():
    return TestClient(app)


def bearer(user) -> dict[str, str]:
    token = create_access_token({"sub": user.id, "username": user.username, "role": user.role})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def headers_for():
    return bearer


@pytest.fixture
def admin_user(store):
    return store.create_user("admin", "Admin@123", "admin")


@pytest.fixture
def regular_user(store):
    return store.create_user("alice", "Alice@123", "user")


@pytest.fixture
def admin_headers(admin_user):
    return bearer(admin_user)


@pytest.fixture
def user_headers(regular_user):
    return bearer(regular_user)
