"""Pydantic schemas for payment transactions."""

import re
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, field_validator

NAME_RE = re.compile(r"[a-zA-Z\s\-\.]+")
ACCOUNT_RE = re.compile(r"[A-Z0-9\-]+", re.IGNORECASE)
COUNTRY_RE = re.compile(r"[a-zA-Z\s]+")
SWIFT_RE = re.compile(r"[A-Z]{6}[A-Z0-9]{2}([A-Z0-9]{3})?")
CURRENCY_RE = re.compile(r"[A-Z]{3}")
FREE_TEXT_RE = re.compile(r"[a-zA-Z0-9\s\-\.\,]+")

MIN_AMOUNT = Decimal("1")
MAX_AMOUNT = Decimal("50000")
AMOUNT_QUANTUM = Decimal("0.01")


def _check_text(value: str, label: str, min_len: int, max_len: int, pattern: re.Pattern, charset_msg: str) -> str:
    if len(value) < min_len:
        raise ValueError(f"{label} must be at least {min_len} characters")
    if len(value) > max_len:
        raise ValueError(f"{label} too long")
    if not pattern.fullmatch(value):
        raise ValueError(charset_msg)
    return value


class CreatePaymentRequest(BaseModel):
    recipient_name: str
    recipient_account: str
    recipient_bank: str
    recipient_country: str
    swift_code: str
    amount: Decimal
    currency: str
    purpose: Optional[str] = None

    @field_validator("recipient_name")
    @classmethod
    def validate_recipient_name(cls, v: str) -> str:
        return _check_text(
            v, "Recipient name", 2, 100, NAME_RE,
            "Recipient name can only contain letters, spaces, hyphens and dots",
        )

    @field_validator("recipient_account")
    @classmethod
    def validate_recipient_account(cls, v: str) -> str:
        return _check_text(v, "Account number", 8, 64, ACCOUNT_RE, "Invalid account number format")

    @field_validator("recipient_bank")
    @classmethod
    def validate_recipient_bank(cls, v: str) -> str:
        return _check_text(
            v, "Bank name", 2, 100, NAME_RE,
            "Bank name can only contain letters, spaces, hyphens and dots",
        )

    @field_validator("recipient_country")
    @classmethod
    def validate_recipient_country(cls, v: str) -> str:
        return _check_text(v, "Country", 2, 56, COUNTRY_RE, "Country can only contain letters and spaces")

    @field_validator("swift_code")
    @classmethod
    def validate_swift_code(cls, v: str) -> str:
        if len(v) not in (8, 11):
            raise ValueError("SWIFT code must be 8 or 11 characters")
        if not SWIFT_RE.fullmatch(v):
            raise ValueError("Invalid SWIFT code format")
        return v

    @field_validator("amount")
    @classmethod
    def validate_amount(cls, v: Decimal) -> Decimal:
        if v < MIN_AMOUNT:
            raise ValueError("Amount must be at least 1")
        if v > MAX_AMOUNT:
            raise ValueError("Amount cannot exceed 50,000")
        if v != v.quantize(AMOUNT_QUANTUM):
            raise ValueError("Amount can have at most 2 decimal places")
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        if len(v) != 3:
            raise ValueError("Currency must be a 3-letter code")
        if not CURRENCY_RE.fullmatch(v):
            raise ValueError("Currency must be uppercase letters")
        return v

    @field_validator("purpose")
    @classmethod
    def validate_purpose(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if len(v) > 200:
            raise ValueError("Purpose cannot exceed 200 characters")
        if not FREE_TEXT_RE.fullmatch(v):
            raise ValueError("Purpose contains invalid characters")
        return v


class RejectTransactionRequest(BaseModel):
    reason: Optional[str] = None

    @field_validator("reason")
    @classmethod
    def validate_reason(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if len(v) > 200:
            raise ValueError("Reason cannot exceed 200 characters")
        if not FREE_TEXT_RE.fullmatch(v):
            raise ValueError("Reason contains invalid characters")
        return v


class PaymentReceipt(BaseModel):
    transactionId: str
    referenceNumber: str
    transactionFee: Decimal
    status: str
