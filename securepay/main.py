"""FastAPI application factory.

Serve with `uvicorn securepay.main:create_app --factory` or `python -m securepay.main`.
"""

from contextlib import asynccontextmanager
from typing import Optional

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from securepay.application.services.auth_service import TokenAuthority, resolve_signing_secret
from securepay.application.services.password_service import PasswordHasher
from securepay.application.services.rate_limiter import RateLimiter, build_policies
from securepay.config import Settings, get_settings
from securepay.core.exceptions import register_exception_handlers
from securepay.core.logging import configure_logging
from securepay.core.middleware import setup_middleware
from securepay.domain.repositories.base import DocumentStore
from securepay.infrastructure.stores.factory import build_store
from securepay.interfaces.api.admin import router as admin_router
from securepay.interfaces.api.auth import router as auth_router
from securepay.interfaces.api.health import router as health_router
from securepay.interfaces.api.payments import router as payments_router
from securepay.interfaces.api.users import router as users_router
from securepay.scheduler.jobs import start_scheduler, stop_scheduler

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan: startup and shutdown events."""
    settings: Settings = app.state.settings
    logger.info(
        "Starting SecurePay Portal API",
        env=settings.ENVIRONMENT,
        store=app.state.store.backend_name,
    )

    scheduler = start_scheduler(app.state.token_authority, settings.SESSION_REAPER_INTERVAL_MINUTES)

    yield

    stop_scheduler(scheduler)
    logger.info("SecurePay Portal API stopped")


def create_app(
    settings: Optional[Settings] = None,
    store: Optional[DocumentStore] = None,
    rate_limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """Build the application with its own store, limiter and signing secret."""
    settings = settings or get_settings()
    configure_logging(settings)

    password_hasher = PasswordHasher(rounds=settings.PASSWORD_BCRYPT_ROUNDS)
    if store is None:
        store = build_store(settings, password_hasher)

    app = FastAPI(
        title="SecurePay Portal API",
        description="International payments portal: authentication, payments and staff review",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.store = store
    app.state.password_hasher = password_hasher
    app.state.rate_limiter = rate_limiter or RateLimiter()
    app.state.rate_limit_policies = build_policies(settings)
    app.state.token_authority = TokenAuthority.from_settings(
        store, settings, resolve_signing_secret(settings)
    )

    setup_middleware(app, settings)
    register_exception_handlers(app)

    # Added last so it is the outermost middleware and answers preflights first
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(payments_router)
    app.include_router(admin_router)
    app.include_router(health_router)

    return app


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("securepay.main:create_app", factory=True, host="0.0.0.0", port=get_settings().PORT)
