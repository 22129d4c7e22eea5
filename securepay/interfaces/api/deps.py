"""FastAPI dependencies: app-scoped services, auth gate, rate limits, bodies."""

import json
from typing import Callable, Optional, Type, TypeVar

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel, ValidationError

from securepay.application.services.auth_service import TokenAuthority
from securepay.application.services.password_service import PasswordHasher
from securepay.application.services.rate_limiter import RateLimiter
from securepay.config import Settings
from securepay.core.exceptions import (
    ForbiddenException,
    PayloadTooLargeException,
    UnauthorizedException,
    ValidationFailedException,
    first_error_message,
)
from securepay.core.sanitization import sanitize_value
from securepay.domain.principal import Principal
from securepay.domain.repositories.base import DocumentStore

SchemaT = TypeVar("SchemaT", bound=BaseModel)

security = HTTPBearer(auto_error=False)


def client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_store(request: Request) -> DocumentStore:
    return request.app.state.store


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def get_token_authority(request: Request) -> TokenAuthority:
    return request.app.state.token_authority


def get_rate_limiter(request: Request) -> RateLimiter:
    return request.app.state.rate_limiter


def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    authority: TokenAuthority = Depends(get_token_authority),
) -> Principal:
    """Validate the bearer credential and attach the principal to the request."""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Unauthorized")

    principal = authority.validate(
        credentials.credentials,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent", ""),
    )
    request.state.principal = principal.merged()
    return principal


def require_staff(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Require the staff role."""
    if not principal.is_staff:
        raise ForbiddenException("Forbidden")
    return principal


def rate_limited(action: str) -> Callable[[Request], None]:
    """Dependency enforcing the named rate-limit policy per client address."""

    def dependency(request: Request) -> None:
        policy = request.app.state.rate_limit_policies[action]
        get_rate_limiter(request).check(policy, client_ip(request))

    return dependency


def validated_body(schema: Type[SchemaT]) -> Callable[..., SchemaT]:
    """Dependency reading the JSON body, sanitizing it and validating it into schema."""

    async def dependency(request: Request) -> SchemaT:
        raw = await request.body()
        if len(raw) > get_app_settings(request).JSON_BODY_LIMIT:
            raise PayloadTooLargeException()
        try:
            payload = json.loads(raw) if raw else {}
        except (json.JSONDecodeError, UnicodeDecodeError):
            raise ValidationFailedException("Invalid JSON body") from None
        try:
            return schema.model_validate(sanitize_value(payload))
        except ValidationError as exc:
            raise ValidationFailedException(first_error_message(exc)) from None

    return dependency
