"""Auth service: session issuance, signed tokens and credential validation."""

import secrets
from datetime import timedelta
from typing import Any, Dict, Optional

import structlog
from jose import JWTError, jwt

from securepay.application.services.user_service import get_active_user
from securepay.config import Settings
from securepay.core.exceptions import UnauthorizedException
from securepay.core.timeutils import Clock, utcnow
from securepay.domain.principal import Principal
from securepay.domain.repositories.base import USER_SESSIONS, DocumentStore

logger = structlog.get_logger(__name__)

SESSION_TOKEN_BYTES = 32  # 256 bits


def generate_session_token() -> str:
    return secrets.token_hex(SESSION_TOKEN_BYTES)


def resolve_signing_secret(settings: Settings) -> str:
    """Configured secret, or a random one that lives as long as the process.

    A generated secret invalidates every signed token on restart.
    """
    if settings.JWT_SECRET:
        return settings.JWT_SECRET
    log = logger.error if settings.is_production else logger.warning
    log("JWT_SECRET not set; generated an ephemeral signing secret, tokens will not survive a restart")
    return secrets.token_hex(64)


class TokenAuthority:
    """Issues and validates session tokens and signed (JWT) tokens."""

    def __init__(
        self,
        store: DocumentStore,
        secret: str,
        algorithm: str = "HS256",
        session_ttl: timedelta = timedelta(hours=24),
        token_ttl: timedelta = timedelta(hours=1),
        strict_binding: bool = False,
        clock: Clock = utcnow,
    ):
        self.store = store
        self._secret = secret
        self.algorithm = algorithm
        self.session_ttl = session_ttl
        self.token_ttl = token_ttl
        self.strict_binding = strict_binding
        self.clock = clock

    @classmethod
    def from_settings(cls, store: DocumentStore, settings: Settings, secret: str) -> "TokenAuthority":
        return cls(
            store,
            secret,
            algorithm=settings.JWT_ALGORITHM,
            session_ttl=timedelta(hours=settings.SESSION_TTL_HOURS),
            token_ttl=timedelta(minutes=settings.JWT_EXPIRATION_MINUTES),
            strict_binding=settings.SESSION_STRICT_BINDING,
        )

    # Issuance

    def issue_session(
        self,
        user: Dict[str, Any],
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Dict[str, Any]:
        now = self.clock()
        session = {
            "user_id": user["id"],
            "session_token": generate_session_token(),
            "expires_at": now + self.session_ttl,
            "ip_address": ip_address,
            "user_agent": user_agent,
            "is_active": True,
            "created_at": now,
            "updated_at": now,
        }
        session["id"] = self.store.insert_one(USER_SESSIONS, session)
        logger.info("Session issued", user_id=user["id"], session_id=session["id"])
        return session

    def issue_signed_token(self, user_id: str) -> str:
        now = self.clock()
        claims = {
            "sub": str(user_id),
            "iat": int(now.timestamp()),
            "exp": int((now + self.token_ttl).timestamp()),
        }
        return jwt.encode(claims, self._secret, algorithm=self.algorithm)

    # Validation

    def validate(
        self,
        token: str,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> Principal:
        """Resolve a bearer credential to a Principal.

        Session tokens are tried first. A matching session that fails binding
        is rejected outright rather than retried as a signed token.
        """
        if not token:
            raise UnauthorizedException("Unauthorized")

        session = self.store.find_one(
            USER_SESSIONS,
            {"session_token": token, "is_active": True, "expires_at": {"$gt": self.clock()}},
        )
        if session is not None:
            return self._principal_from_session(session, ip_address, user_agent)
        return self._principal_from_signed_token(token)

    def _principal_from_session(
        self,
        session: Dict[str, Any],
        ip_address: Optional[str],
        user_agent: Optional[str],
    ) -> Principal:
        user = get_active_user(self.store, session["user_id"])
        if user is None:
            raise UnauthorizedException("User not found")

        if self.strict_binding:
            if session.get("ip_address") and session["ip_address"] != (ip_address or ""):
                logger.warning("Session IP mismatch", session_id=session["id"])
                raise UnauthorizedException("Session IP mismatch")
            if session.get("user_agent") and session["user_agent"] != (user_agent or ""):
                logger.warning("Session User-Agent mismatch", session_id=session["id"])
                raise UnauthorizedException("Session User-Agent mismatch")

        return Principal(user=user, auth_method="session", session=session)

    def _principal_from_signed_token(self, token: str) -> Principal:
        try:
            claims = jwt.decode(token, self._secret, algorithms=[self.algorithm])
        except JWTError:
            raise UnauthorizedException("Invalid or expired session") from None

        user_id = claims.get("sub")
        if not user_id:
            raise UnauthorizedException("Invalid token payload")

        user = get_active_user(self.store, str(user_id))
        if user is None:
            raise UnauthorizedException("User not found")
        return Principal(user=user, auth_method="jwt")

    # Revocation

    def revoke(self, principal: Principal) -> bool:
        """Deactivate the principal's session.

        Signed tokens carry no server state, so they stay valid until they
        expire; for them this is a no-op returning False.
        """
        if principal.session_token is None:
            logger.info("Logout with signed token; nothing to revoke", user_id=principal.user_id)
            return False
        matched = self.store.update_one(
            USER_SESSIONS,
            {"session_token": principal.session_token},
            {"is_active": False, "updated_at": self.clock()},
        )
        logger.info("Session revoked", user_id=principal.user_id)
        return matched > 0

    def purge_expired_sessions(self) -> int:
        removed = self.store.delete_many(USER_SESSIONS, {"expires_at": {"$lt": self.clock()}})
        if removed:
            logger.info("Expired sessions purged", count=removed)
        return removed
