import asyncio
import logging
from contextlib import asynccontextmanager, suppress

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.api.routes import auth, jobs, application, companies, registration, health
from app.core import config
from app.core.auth_dependency import identity_provider, document_store
from app.core.errors import IDENTITY_ERROR_STATUS, format_validation_errors
from app.core.logging_config import setup_logging
from app.services.identity_provider import IdentityError
from app.services.triggers import register_triggers, purge_completed_registrations

logger = logging.getLogger(__name__)


async def cleanup_loop():
    """Periodically drop finished registration progress and expired SMS codes."""
    while True:
        await asyncio.sleep(config.CLEANUP_INTERVAL_SECONDS)
        try:
            purge_completed_registrations(document_store)
            identity_provider.purge_expired_verifications()
        except Exception:
            logger.exception("Registration cleanup failed")


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(config.LOG_LEVEL)
    logger.info(f"Starting RecruiterHub API (storage={config.STORAGE_BACKEND})")

    if config.STORAGE_BACKEND == "database":
        if config.RUN_MIGRATIONS:
            from app.db.migrate import run_migrations
            run_migrations()
        else:
            from app.db.init_db import init_db
            init_db()

    cleanup_task = asyncio.create_task(cleanup_loop())
    yield
    cleanup_task.cancel()
    with suppress(asyncio.CancelledError):
        await cleanup_task
    logger.info("Shutting down...")


# ============================================
# ✅ FASTAPI APP INIT
# ============================================

app = FastAPI(title="RecruiterHub API", version="1.0.0", lifespan=lifespan)

# Subscribed once per process; lifespan may run more than once
register_triggers(identity_provider, document_store)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST"],
    allow_headers=["Authorization", "Content-Type"],
)


# ============================================
# ✅ ERROR HANDLERS
# ============================================

@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Schema failures are client errors: 400 with a readable message."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"detail": format_validation_errors(exc.errors())},
    )


@app.exception_handler(IdentityError)
async def identity_exception_handler(request: Request, exc: IdentityError):
    status_code = IDENTITY_ERROR_STATUS.get(exc.code, status.HTTP_400_BAD_REQUEST)
    logger.info(f"Identity error on {request.url.path}: {exc.code}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "code": exc.code},
    )


# ============================================
# ✅ REGISTER ALL ROUTERS
# ============================================

app.include_router(auth.router)
app.include_router(registration.router)
app.include_router(jobs.router)
app.include_router(application.router)
app.include_router(companies.router)
app.include_router(health.router)


@app.get("/")
def root():
    return {"status": "RecruiterHub API running"}
