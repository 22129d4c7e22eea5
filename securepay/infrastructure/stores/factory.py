"""Selects and prepares the persistence backend at startup."""

import structlog
from sqlalchemy.exc import SQLAlchemyError

from securepay.application.services.password_service import PasswordHasher
from securepay.application.services.user_service import ensure_staff_user
from securepay.config import Settings
from securepay.core.exceptions import StoreUnavailableException
from securepay.domain.repositories.base import DocumentStore
from securepay.infrastructure.database import create_db_engine
from securepay.infrastructure.stores.memory_store import InMemoryStore
from securepay.infrastructure.stores.sql_store import SQLAlchemyStore

logger = structlog.get_logger(__name__)


def build_memory_store(settings: Settings, hasher: PasswordHasher) -> InMemoryStore:
    store = InMemoryStore()
    ensure_staff_user(
        store,
        hasher,
        email=settings.BOOTSTRAP_STAFF_EMAIL,
        password=settings.BOOTSTRAP_STAFF_PASSWORD,
    )
    return store


def connect_sql_store(settings: Settings) -> SQLAlchemyStore:
    try:
        engine = create_db_engine(settings.DATABASE_URL, pool_timeout=settings.DATABASE_POOL_TIMEOUT)
    except SQLAlchemyError as exc:
        raise StoreUnavailableException("Invalid database configuration") from exc
    except ImportError as exc:
        raise StoreUnavailableException("Database driver not installed") from exc
    store = SQLAlchemyStore(engine)
    store.create_schema()
    store.ping()
    return store


def build_store(settings: Settings, hasher: PasswordHasher) -> DocumentStore:
    """Durable store when reachable; fails fast unless fallback is allowed."""
    if not settings.DATABASE_URL:
        logger.warning("No DATABASE_URL configured, using in-memory store")
        return build_memory_store(settings, hasher)

    try:
        store = connect_sql_store(settings)
    except StoreUnavailableException as exc:
        if not settings.STORE_FALLBACK_TO_MEMORY:
            logger.error("Database unreachable at startup", error=str(exc.__cause__ or exc))
            raise
        logger.warning(
            "Database unreachable, falling back to in-memory store",
            error=str(exc.__cause__ or exc),
        )
        return build_memory_store(settings, hasher)

    logger.info("Connected to database", backend=store.engine.dialect.name)
    return store
