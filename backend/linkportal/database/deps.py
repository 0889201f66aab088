from linkportal.core.config import DATA_DIR, STORAGE_BACKEND
from linkportal.database.session import SessionLocal
from linkportal.services.json_store import JsonPortalStore
from linkportal.services.sql_store import SqlPortalStore


def get_store():
    if STORAGE_BACKEND == "json":
        yield JsonPortalStore(DATA_DIR)
        return
    db = SessionLocal()
    try:
        yield SqlPortalStore(db)
    finally:
        db.close()
