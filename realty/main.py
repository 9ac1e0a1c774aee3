# Application entrypoint: configures middleware, startup routines, and API routers.
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging
import os

from .db import Base, engine
from .errors import QueueConfigError
from .imports.dispatcher import ImportDispatcher
from .queue import connect_import_queue, is_queue_enabled
from .routes.analytics import router as analytics_router
from .routes.auth import router as auth_router
from .routes.imports import router as imports_router
from .routes.listings import router as listings_router
from .routes.properties import router as properties_router
from .routes.tenants import router as tenants_router
from .routes.transactions import router as transactions_router

logger = logging.getLogger("realty.main")


# Parse CORS origins from a comma-separated env var.
# Note: '*' cannot be used with allow_credentials=True; we fall back to explicit localhost origins for dev.
def _parse_cors_origins(env_value: str | None) -> list[str]:
    default_dev_origins = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]

    if not env_value:
        return default_dev_origins

    origins = [o.strip() for o in env_value.split(",") if o.strip()]
    if "*" in origins:
        return default_dev_origins

    return origins


def build_import_dispatcher() -> ImportDispatcher:
    """
    Resolve the SQS import queue once and wrap it in a dispatcher.

    With SQS disabled, or when the queue cannot be resolved, the dispatcher has
    no queue and every upload is processed inline.
    """
    if not is_queue_enabled():
        return ImportDispatcher(queue=None)
    try:
        handle = connect_import_queue()
    except QueueConfigError as exc:
        logger.warning("Import queue unavailable, uploads will be processed inline: %s", exc)
        return ImportDispatcher(queue=None)
    return ImportDispatcher(queue=handle)


app = FastAPI(title="Realty API", version="0.1.0")
allow_list = _parse_cors_origins(os.getenv("CORS_ORIGINS"))

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.on_event("startup")
def on_startup() -> None:
    # For local SQLite, auto-create tables; production DBs rely on Alembic migrations.
    if os.getenv("DATABASE_URL", "sqlite:///./data.db").startswith("sqlite"):
        Base.metadata.create_all(bind=engine)
    app.state.import_dispatcher = build_import_dispatcher()


# Simple liveness endpoint for container orchestrators and uptime checks
@app.get("/healthz")
def healthz() -> dict:
    return {"status": "ok"}


app.include_router(auth_router, prefix="", tags=["auth"])
app.include_router(properties_router, prefix="/api/v1", tags=["properties"])
app.include_router(listings_router, prefix="/api/v1", tags=["listings"])
app.include_router(transactions_router, prefix="/api/v1", tags=["transactions"])
app.include_router(tenants_router, prefix="/api/v1", tags=["tenants"])
app.include_router(imports_router, prefix="/api/v1", tags=["imports"])
app.include_router(analytics_router, prefix="/api/v1", tags=["analytics"])
