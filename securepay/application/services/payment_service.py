"""Payment service: submission, history and staff review of transactions."""

import random
import re
import string
import time
from decimal import Decimal
from typing import Any, Callable, Dict, List, Optional

import structlog

from securepay.core.exceptions import (
    BusinessRuleViolationException,
    ConflictException,
    EntityNotFoundException,
    InternalError,
    ValidationFailedException,
)
from securepay.core.timeutils import Clock, utcnow
from securepay.domain.models.payment import TransactionStatus
from securepay.domain.principal import Principal
from securepay.domain.repositories.base import PAYMENT_TRANSACTIONS, USERS, DocumentStore
from securepay.domain.schemas.payment import CreatePaymentRequest, PaymentReceipt

logger = structlog.get_logger(__name__)

DEFAULT_FEE_RATE = Decimal("0.02")
HISTORY_LIMIT = 50
ADMIN_LIST_LIMIT = 200

# Server-side whitelist, checked again after schema validation
RECIPIENT_NAME_RE = re.compile(r"[a-zA-Z\s\-\.]{2,}")
RECIPIENT_ACCOUNT_RE = re.compile(r"[A-Z0-9\-]{8,}", re.IGNORECASE)
RECIPIENT_BANK_RE = re.compile(r"[a-zA-Z\s\-\.]{2,}")
RECIPIENT_COUNTRY_RE = re.compile(r"[a-zA-Z\s]{2,}")

TRANSACTION_ID_RE = re.compile(r"[0-9a-f]{32}")

_REFERENCE_ALPHABET = string.digits + string.ascii_uppercase
_rng = random.SystemRandom()


def generate_reference_number() -> str:
    """INT + last 6 digits of the millisecond clock + 6 base-36 characters."""
    timestamp = str(int(time.time() * 1000))
    suffix = "".join(_rng.choice(_REFERENCE_ALPHABET) for _ in range(6))
    return f"INT{timestamp[-6:]}{suffix}"


def calculate_fee(amount: Decimal, fee_rate: Decimal = DEFAULT_FEE_RATE) -> Decimal:
    """Full precision; rounding belongs to whoever displays the currency."""
    return amount * fee_rate


def check_recipient_whitelist(request: CreatePaymentRequest) -> None:
    if not RECIPIENT_NAME_RE.fullmatch(request.recipient_name):
        raise ValidationFailedException("Invalid recipient name")
    if not RECIPIENT_ACCOUNT_RE.fullmatch(request.recipient_account):
        raise ValidationFailedException("Invalid recipient account format")
    if not RECIPIENT_BANK_RE.fullmatch(request.recipient_bank):
        raise ValidationFailedException("Invalid recipient bank name")
    if not RECIPIENT_COUNTRY_RE.fullmatch(request.recipient_country):
        raise ValidationFailedException("Invalid recipient country")


def is_valid_transaction_id(transaction_id: str) -> bool:
    return bool(TRANSACTION_ID_RE.fullmatch(transaction_id or ""))


def create_payment(
    store: DocumentStore,
    principal: Principal,
    request: CreatePaymentRequest,
    fee_rate: Decimal = DEFAULT_FEE_RATE,
    reference_factory: Callable[[], str] = generate_reference_number,
    now: Clock = utcnow,
) -> PaymentReceipt:
    check_recipient_whitelist(request)

    fee = calculate_fee(request.amount, fee_rate)
    timestamp = now()
    transaction: Dict[str, Any] = {
        "user_id": principal.user_id,
        "user_account": principal.account_number,
        "recipient_name": request.recipient_name,
        "recipient_account": request.recipient_account,
        "recipient_bank": request.recipient_bank,
        "recipient_country": request.recipient_country,
        "swift_code": request.swift_code,
        "amount": request.amount,
        "currency": request.currency,
        "exchange_rate": None,
        "converted_amount": None,
        "purpose": request.purpose,
        "status": TransactionStatus.PENDING.value,
        "transaction_fee": fee,
        "is_processed": False,
        "processed_at": None,
        "rejection_reason": None,
        "created_at": timestamp,
        "updated_at": timestamp,
    }

    # A reference collision gets exactly one retry with a fresh number
    for attempt in (1, 2):
        transaction["reference_number"] = reference_factory()
        try:
            transaction_id = store.insert_one(PAYMENT_TRANSACTIONS, transaction)
            break
        except ConflictException as exc:
            logger.warning(
                "Reference number collision",
                reference_number=transaction["reference_number"],
                attempt=attempt,
            )
            if attempt == 2:
                raise InternalError("Payment initiation failed") from exc

    logger.info(
        "Payment created",
        user_id=principal.user_id,
        transaction_id=transaction_id,
        reference_number=transaction["reference_number"],
    )
    return PaymentReceipt(
        transactionId=transaction_id,
        referenceNumber=transaction["reference_number"],
        transactionFee=fee,
        status=TransactionStatus.PENDING.value,
    )


def list_for_user(store: DocumentStore, principal: Principal) -> List[Dict[str, Any]]:
    return store.find(
        PAYMENT_TRANSACTIONS,
        {"user_id": principal.user_id},
        sort=[("created_at", -1)],
        limit=HISTORY_LIMIT,
    )


def get_for_user(store: DocumentStore, principal: Principal, transaction_id: str) -> Dict[str, Any]:
    """A transaction owned by someone else is reported exactly like a missing one."""
    if not is_valid_transaction_id(transaction_id):
        raise ValidationFailedException("Invalid transaction ID")
    transaction = store.find_one(
        PAYMENT_TRANSACTIONS,
        {"id": transaction_id, "user_id": principal.user_id},
    )
    if transaction is None:
        raise EntityNotFoundException("Transaction not found")
    return transaction


def admin_list(
    store: DocumentStore,
    status: Optional[TransactionStatus] = None,
) -> List[Dict[str, Any]]:
    """All transactions, newest first, each with the submitter's email and name."""
    filter: Dict[str, Any] = {}
    if status is not None:
        filter["status"] = status.value

    transactions = store.find(
        PAYMENT_TRANSACTIONS,
        filter,
        sort=[("created_at", -1)],
        limit=ADMIN_LIST_LIMIT,
    )
    user_ids = sorted({t["user_id"] for t in transactions})
    submitters = {
        user["id"]: user
        for user in (store.find(USERS, {"id": {"$in": user_ids}}) if user_ids else [])
    }
    for transaction in transactions:
        submitter = submitters.get(transaction["user_id"]) or {}
        transaction["user_email"] = submitter.get("email") or ""
        transaction["user_name"] = submitter.get("full_name") or ""
    return transactions


def _finalize(
    store: DocumentStore,
    transaction_id: str,
    target: TransactionStatus,
    extra: Dict[str, Any],
    now: Clock,
) -> Dict[str, Any]:
    """Move a pending transaction to a terminal status.

    The status guard lives in the update filter, so concurrent reviewers
    cannot both win. Repeating the same decision is a no-op.
    """
    if not is_valid_transaction_id(transaction_id):
        raise EntityNotFoundException("Transaction not found")

    timestamp = now()
    updated = store.find_one_and_update(
        PAYMENT_TRANSACTIONS,
        {"id": transaction_id, "status": TransactionStatus.PENDING.value},
        {
            "status": target.value,
            "is_processed": True,
            "processed_at": timestamp,
            "updated_at": timestamp,
            **extra,
        },
    )
    if updated is not None:
        logger.info(
            "Transaction finalized",
            transaction_id=transaction_id,
            status=target.value,
            reference_number=updated.get("reference_number"),
        )
        return updated

    current = store.find_one(PAYMENT_TRANSACTIONS, {"id": transaction_id})
    if current is None:
        raise EntityNotFoundException("Transaction not found")
    if current["status"] == target.value:
        return current
    raise BusinessRuleViolationException(
        f"Transaction is already {current['status']}",
        details={"status": current["status"]},
    )


def verify_transaction(store: DocumentStore, transaction_id: str, now: Clock = utcnow) -> Dict[str, Any]:
    return _finalize(store, transaction_id, TransactionStatus.COMPLETED, {}, now)


def reject_transaction(
    store: DocumentStore,
    transaction_id: str,
    reason: Optional[str] = None,
    now: Clock = utcnow,
) -> Dict[str, Any]:
    return _finalize(store, transaction_id, TransactionStatus.REJECTED, {"rejection_reason": reason}, now)
