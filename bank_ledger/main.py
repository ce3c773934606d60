"""
Bank Ledger Service: FastAPI application.

This is the entry point for the application.
All routers and exception handlers are registered here.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from bank_ledger.api.accounts import router as accounts_router
from bank_ledger.api.admin import router as admin_router
from bank_ledger.api.auth import router as auth_router
from bank_ledger.api.deps import get_password_hasher
from bank_ledger.api.health import router as health_router
from bank_ledger.api.staff import router as staff_router
from bank_ledger.clock import utc_now
from bank_ledger.config import get_settings
from bank_ledger.exceptions import BankingError
from bank_ledger.logging_config import setup_logging
from bank_ledger.models.base import SessionLocal, unit_of_work
from bank_ledger.services.user_service import UserService

settings = get_settings()
logger = logging.getLogger(__name__)


def bootstrap_reference_data() -> None:
    """Seed roles and, if configured, the first admin user."""
    db = SessionLocal()
    try:
        with unit_of_work(db):
            service = UserService(db, get_password_hasher())
            service.seed_roles()
            if settings.BOOTSTRAP_ADMIN_USERNAME:
                if not (settings.BOOTSTRAP_ADMIN_EMAIL and settings.BOOTSTRAP_ADMIN_PASSWORD):
                    logger.warning(
                        "BOOTSTRAP_ADMIN_USERNAME is set without email and "
                        "password; skipping admin bootstrap"
                    )
                else:
                    service.bootstrap_admin(
                        settings.BOOTSTRAP_ADMIN_USERNAME,
                        settings.BOOTSTRAP_ADMIN_EMAIL,
                        settings.BOOTSTRAP_ADMIN_PASSWORD,
                    )
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(settings.LOG_LEVEL, settings.LOG_FORMAT)
    logger.info(
        "Starting %s v%s (%s)",
        settings.APP_NAME, settings.APP_VERSION, settings.ENVIRONMENT,
    )
    bootstrap_reference_data()
    yield
    logger.info("Shutting down %s", settings.APP_NAME)


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Role-based banking ledger: accounts, transfers, and audit",
    lifespan=lifespan,
)


def error_body(message: str, request: Request) -> dict:
    return {
        "timestamp": utc_now().isoformat(),
        "message": message,
        "details": request.url.path,
    }


@app.exception_handler(BankingError)
async def banking_error_handler(request: Request, exc: BankingError):
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, request),
    )


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(
        status_code=500,
        content=error_body("An unexpected error occurred.", request),
    )


# Register routers
app.include_router(health_router)
app.include_router(auth_router)
app.include_router(accounts_router)
app.include_router(staff_router)
app.include_router(admin_router)
