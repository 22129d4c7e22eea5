"""User service: registration, credential checks and staff management."""

from typing import Any, Dict, Optional

import structlog

from securepay.application.services.password_service import PasswordHasher
from securepay.core.exceptions import (
    ConflictException,
    EntityNotFoundException,
    UnauthorizedException,
)
from securepay.core.timeutils import Clock, utcnow
from securepay.domain.repositories.base import USERS, DocumentStore
from securepay.domain.schemas.auth import LoginUser, UserProfile

logger = structlog.get_logger(__name__)


def get_user_by_email(store: DocumentStore, email: str) -> Optional[Dict[str, Any]]:
    return store.find_one(USERS, {"email": email})


def get_active_user(store: DocumentStore, user_id: str) -> Optional[Dict[str, Any]]:
    return store.find_one(USERS, {"id": user_id, "is_active": True})


def create_user(
    store: DocumentStore,
    hasher: PasswordHasher,
    email: str,
    password: str,
    full_name: Optional[str] = None,
    username: Optional[str] = None,
    account_number: Optional[str] = None,
    is_staff: bool = False,
    is_verified: bool = False,
    now: Clock = utcnow,
) -> str:
    """Insert a user and return its id. Raises ConflictException on duplicates."""
    timestamp = now()
    user: Dict[str, Any] = {
        "email": email,
        "password_hash": hasher.hash(password),
        "full_name": full_name,
        "phone_number": None,
        "address": None,
        "is_verified": is_verified,
        "is_active": True,
        "is_staff": is_staff,
        "created_at": timestamp,
        "updated_at": timestamp,
    }
    # Optional unique keys are only stored when present
    if username:
        user["username"] = username
    if account_number:
        user["account_number"] = account_number
    return store.insert_one(USERS, user)


def register_user(store: DocumentStore, hasher: PasswordHasher, email: str, password: str) -> str:
    if get_user_by_email(store, email):
        raise ConflictException("Email already registered")
    try:
        user_id = create_user(store, hasher, email=email, password=password)
    except ConflictException:
        # Lost a race against a concurrent registration
        raise ConflictException("Email already registered") from None
    logger.info("User registered", user_id=user_id)
    return user_id


def authenticate_user(
    store: DocumentStore,
    hasher: PasswordHasher,
    password: str,
    email: Optional[str] = None,
    account_number: Optional[str] = None,
) -> Dict[str, Any]:
    """Return the active user matching the identifier and password."""
    query: Dict[str, Any] = {"is_active": True}
    if account_number:
        query["account_number"] = account_number
    if email:
        query["email"] = email

    user = store.find_one(USERS, query)
    if user is None:
        hasher.dummy_verify()
        logger.info("Login failed", reason="unknown_or_inactive_user")
        raise UnauthorizedException("Invalid email or password")
    if not hasher.verify(password, user.get("password_hash") or ""):
        logger.info("Login failed", reason="password_mismatch", user_id=user["id"])
        raise UnauthorizedException("Invalid email or password")
    return user


def set_staff_flag(store: DocumentStore, email: str, is_staff: bool, now: Clock = utcnow) -> Dict[str, Any]:
    user = store.find_one_and_update(
        USERS,
        {"email": email},
        {"is_staff": is_staff, "updated_at": now()},
    )
    if user is None:
        raise EntityNotFoundException("User not found")
    logger.info("Staff flag changed", user_id=user["id"], is_staff=is_staff)
    return user


def ensure_staff_user(store: DocumentStore, hasher: PasswordHasher, email: str, password: str) -> bool:
    """Create the staff account if no user has this email. Returns True if created."""
    if get_user_by_email(store, email):
        return False
    create_user(
        store,
        hasher,
        email=email,
        password=password,
        full_name="Demo Staff",
        is_staff=True,
        is_verified=True,
    )
    logger.info("Seeded bootstrap staff user", email=email)
    return True


def profile_view(user: Dict[str, Any]) -> UserProfile:
    return UserProfile(
        id=user["id"],
        email=user.get("email"),
        username=user.get("username"),
        full_name=user.get("full_name"),
        is_verified=bool(user.get("is_verified")),
    )


def login_user_view(user: Dict[str, Any]) -> LoginUser:
    return LoginUser(
        **profile_view(user).model_dump(),
        account_number=user.get("account_number"),
        is_staff=bool(user.get("is_staff")),
    )
