"""Admin API routes: staff review of payment transactions."""

from typing import Optional

import structlog
from fastapi import APIRouter, Depends

from securepay.application.services.payment_service import (
    admin_list,
    reject_transaction,
    verify_transaction,
)
from securepay.core.exceptions import ValidationFailedException
from securepay.core.sanitization import sanitize_string
from securepay.domain.models.payment import TransactionStatus
from securepay.domain.principal import Principal
from securepay.domain.repositories.base import DocumentStore
from securepay.domain.schemas.payment import RejectTransactionRequest
from securepay.interfaces.api.deps import get_store, require_staff, validated_body
from securepay.interfaces.api.responses import success_response

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/admin", tags=["Admin"])


def parse_status_filter(status: Optional[str]) -> Optional[TransactionStatus]:
    if not status:
        return None
    try:
        return TransactionStatus(sanitize_string(status))
    except ValueError:
        raise ValidationFailedException("Invalid status filter") from None


@router.get("/transactions")
def list_transactions(
    status: Optional[str] = None,
    staff: Principal = Depends(require_staff),
    store: DocumentStore = Depends(get_store),
):
    return success_response(admin_list(store, parse_status_filter(status)))


@router.post("/transactions/{transaction_id}/verify")
def verify(
    transaction_id: str,
    staff: Principal = Depends(require_staff),
    store: DocumentStore = Depends(get_store),
):
    transaction = verify_transaction(store, transaction_id)
    logger.info("Transaction verified by staff", staff_id=staff.user_id, transaction_id=transaction_id)
    return success_response(transaction)


@router.post("/transactions/{transaction_id}/reject")
def reject(
    transaction_id: str,
    staff: Principal = Depends(require_staff),
    body: RejectTransactionRequest = Depends(validated_body(RejectTransactionRequest)),
    store: DocumentStore = Depends(get_store),
):
    transaction = reject_transaction(store, transaction_id, reason=body.reason)
    logger.info("Transaction rejected by staff", staff_id=staff.user_id, transaction_id=transaction_id)
    return success_response(transaction)
