"""Password hashing: bcrypt through passlib."""

import structlog
from passlib.context import CryptContext

from securepay.core.exceptions import InternalError

logger = structlog.get_logger(__name__)

DEFAULT_BCRYPT_ROUNDS = 12


class PasswordHasher:
    """Salted, adaptive one-way hashing with a fixed work factor."""

    def __init__(self, rounds: int = DEFAULT_BCRYPT_ROUNDS):
        self.rounds = rounds
        self.pwd_context = CryptContext(
            schemes=["bcrypt"],
            deprecated="auto",
            bcrypt__rounds=rounds,
        )

    def hash(self, password: str) -> str:
        try:
            return self.pwd_context.hash(password)
        except (ValueError, TypeError) as exc:
            logger.error("Password hashing failed", error_type=type(exc).__name__)
            raise InternalError() from exc

    def verify(self, password: str, password_hash: str) -> bool:
        if not password_hash:
            # Keep timing comparable to a real check
            self.pwd_context.dummy_verify()
            return False
        try:
            return self.pwd_context.verify(password, password_hash)
        except (ValueError, TypeError):
            # Malformed or unrecognized digest
            return False

    def dummy_verify(self) -> None:
        """Spend the time of one verification when there is no user to check."""
        self.pwd_context.dummy_verify()
