"""Pydantic schemas for User and Auth."""

import re
from typing import Optional

from pydantic import BaseModel, EmailStr, field_validator, model_validator

ACCOUNT_NUMBER_RE = re.compile(r"[A-Z0-9\-]+", re.IGNORECASE)
PASSWORD_POLICY_RE = re.compile(r"(?=.*[a-z])(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&])[A-Za-z\d@$!%*?&]+")
PASSWORD_MIN_LENGTH = 8
EMAIL_MAX_LENGTH = 254


def _check_email_length(value):
    if isinstance(value, str) and len(value) > EMAIL_MAX_LENGTH:
        raise ValueError("Email too long")
    return value


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def validate_email_length(cls, v):
        return _check_email_length(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError("Password must be at least 8 characters")
        if not PASSWORD_POLICY_RE.fullmatch(v):
            raise ValueError(
                "Password must contain at least one uppercase letter, one lowercase letter, "
                "one number and one special character"
            )
        return v


class LoginRequest(BaseModel):
    email: Optional[EmailStr] = None
    account_number: Optional[str] = None
    password: str

    @field_validator("email", mode="before")
    @classmethod
    def validate_email_length(cls, v):
        return _check_email_length(v)

    @field_validator("account_number")
    @classmethod
    def validate_account_number(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        if len(v) < 6:
            raise ValueError("Account number must be at least 6 characters")
        if len(v) > 64:
            raise ValueError("Account number too long")
        if not ACCOUNT_NUMBER_RE.fullmatch(v):
            raise ValueError("Invalid account number format")
        return v

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < PASSWORD_MIN_LENGTH:
            raise ValueError("Password must be at least 8 characters")
        return v

    @model_validator(mode="after")
    def require_identifier(self):
        if not (self.email or self.account_number):
            raise ValueError("Either email or account_number is required")
        return self


class UserProfile(BaseModel):
    id: str
    email: Optional[str] = None
    username: Optional[str] = None
    full_name: Optional[str] = None
    is_verified: bool = False


class LoginUser(UserProfile):
    account_number: Optional[str] = None
    is_staff: bool = False


class LoginResponse(BaseModel):
    token: str
    jwt: str
    user: LoginUser
