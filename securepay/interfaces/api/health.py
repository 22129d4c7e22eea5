"""Health check."""

import structlog
from fastapi import APIRouter, Depends

from securepay.core.exceptions import StoreError
from securepay.domain.repositories.base import DocumentStore
from securepay.interfaces.api.deps import get_store
from securepay.interfaces.api.responses import success_response

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api", tags=["Health"])


@router.get("/health")
def health(store: DocumentStore = Depends(get_store)):
    status = "healthy"
    try:
        store.ping()
    except StoreError:
        logger.warning("Health check: store ping failed", store=store.backend_name)
        status = "degraded"
    return success_response(
        {"status": status, "store": store.backend_name},
        "SecurePay Portal API is running",
    )
