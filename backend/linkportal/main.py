import logging
import os
import threading
from contextlib import contextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from linkportal.routes import assignments, auth, links, stats, users
from linkportal.database.base import Base
from linkportal.database.deps import get_store
from linkportal.database.session import engine
from linkportal.models import Assignment, Link, User  # noqa: F401
from linkportal.core.config import (
    ADMIN_PASSWORD,
    ADMIN_USERNAME,
    API_PREFIX,
    CORS_ORIGINS,
    CORS_ORIGIN_REGEX,
    STORAGE_BACKEND,
    parse_cors_origins,
)
from linkportal.core.errors import PortalError

logger = logging.getLogger("uvicorn.error")
app = FastAPI(title="Link Portal")

cors_origins = parse_cors_origins(CORS_ORIGINS)

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_origin_regex=CORS_ORIGIN_REGEX,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)


@app.middleware("http")
async def ensure_utf8_json_charset(request: Request, call_next):
    response = await call_next(request)
    content_type = str(response.headers.get("content-type", ""))
    if content_type.startswith("application/json") and "charset=" not in content_type.lower():
        response.headers["content-type"] = "application/json; charset=utf-8"
    return response


@app.exception_handler(PortalError)
async def handle_portal_error(request: Request, exc: PortalError):
    detail = exc.message
    if exc.status_code >= 500:
        # The underlying store message stays in the log only.
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
        detail = exc.default_message
    return JSONResponse(status_code=exc.status_code, content={"detail": detail})


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception):
    logger.exception("Unexpected error handling %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})


def create_tables():
    if STORAGE_BACKEND == "json":
        return
    Base.metadata.create_all(bind=engine)


def ensure_admin_user():
    if not ADMIN_USERNAME or not ADMIN_PASSWORD:
        return
    with contextmanager(get_store)() as store:
        if store.get_user_by_username(ADMIN_USERNAME):
            return
        store.create_user(ADMIN_USERNAME, ADMIN_PASSWORD, "admin")
        logger.info("Bootstrap admin '%s' created.", ADMIN_USERNAME)


def run_db_bootstrap() -> None:
    steps = [
        ("create_tables", create_tables),
        ("ensure_admin_user", ensure_admin_user),
    ]
    for step_name, step_fn in steps:
        try:
            step_fn()
        except Exception:  # pragma: no cover - startup hardening
            logger.exception("Database bootstrap failed (step: %s)", step_name)


_bootstrap_lock = threading.Lock()
_bootstrap_started = False


def trigger_db_bootstrap() -> None:
    global _bootstrap_started
    with _bootstrap_lock:
        if _bootstrap_started:
            return
        _bootstrap_started = True

    mode = str(os.getenv("DB_BOOTSTRAP_MODE", "sync") or "sync").strip().lower()
    if mode == "off":
        logger.info("DB bootstrap disabled (DB_BOOTSTRAP_MODE=off).")
        return
    if mode == "background":
        logger.info("Running DB bootstrap in background.")
        threading.Thread(target=run_db_bootstrap, daemon=True, name="db-bootstrap").start()
        return

    logger.info("Running DB bootstrap synchronously.")
    run_db_bootstrap()


app.include_router(auth.router, prefix=API_PREFIX)
app.include_router(links.router, prefix=API_PREFIX)
app.include_router(users.router, prefix=API_PREFIX)
app.include_router(assignments.router, prefix=API_PREFIX)
app.include_router(stats.router, prefix=API_PREFIX)

@app.get("/")
def root():
    return {"message": "API running"}


@app.get("/health")
def healthcheck():
    return {"status": "ok"}


@app.get("/health/db")
def healthcheck_db():
    if STORAGE_BACKEND == "json":
        return {"status": "ok", "backend": "json"}
    with engine.connect() as connection:
        connection.execute(text("SELECT 1"))
    return {"status": "ok", "backend": "database"}


@app.on_event("startup")
def startup_event():
    trigger_db_bootstrap()
