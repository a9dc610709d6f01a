from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
import asyncio
import logging
import os
from pathlib import Path
from fastapi.middleware.cors import CORSMiddleware

from tourdesk.api.router import api_router
from tourdesk.core.config import settings
from tourdesk.core.errors import DomainError
from tourdesk.core.logging_config import configure_logging
from tourdesk.db.init_db import create_tables, seed_demo_data
from tourdesk.services.housekeeping import housekeeping_loop

configure_logging()
logger = logging.getLogger("tourdesk.main")

def _run_migrations_if_needed():
    """Apply Alembic migrations automatically in production if enabled.

    Controlled by env var AUTO_APPLY_MIGRATIONS (default: '1'). Safe to run repeatedly.
    """
    if not settings.is_prod:
        return
    if os.getenv("AUTO_APPLY_MIGRATIONS", "1") != "1":
        return
    from alembic import command
    from alembic.config import Config
    alembic_ini = Path(__file__).resolve().parents[1] / "alembic.ini"
    if not alembic_ini.exists():
        logger.warning("alembic.ini not found at %s, skipping auto-migrations", alembic_ini)
        return
    cfg = Config(str(alembic_ini))
    # Ensure script_location resolves correctly when launched from arbitrary CWD
    cfg.set_main_option("script_location", str(Path(__file__).resolve().parents[1] / "alembic"))
    logger.info("Applying Alembic migrations -> head ...")
    try:
        command.upgrade(cfg, "head")
    except Exception:
        # Do not kill the app on migration failure; can be retried manually.
        logger.exception("Migration failed")
        return
    logger.info("Migrations applied successfully")

app = FastAPI(title=settings.app_name, version="0.1.0")

# Configurable CORS origins (CORS_ORIGINS env). If empty -> dev defaults.
origins = settings.cors_origins
logger.info("Resolved CORS origins: %s", origins)
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})

app.include_router(api_router)

@app.on_event("startup")
async def startup():
    _run_migrations_if_needed()
    if settings.is_dev:
        create_tables()
        seed_demo_data()
    if settings.housekeeping_interval_seconds > 0:
        asyncio.create_task(housekeeping_loop())
