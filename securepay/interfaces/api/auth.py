"""Auth API routes: register, login, logout."""

from fastapi import APIRouter, Depends, Request

from securepay.application.services.auth_service import TokenAuthority
from securepay.application.services.password_service import PasswordHasher
from securepay.application.services.user_service import (
    authenticate_user,
    login_user_view,
    register_user,
)
from securepay.domain.principal import Principal
from securepay.domain.repositories.base import DocumentStore
from securepay.domain.schemas.auth import LoginRequest, LoginResponse, RegisterRequest
from securepay.interfaces.api.deps import (
    client_ip,
    get_current_principal,
    get_password_hasher,
    get_store,
    get_token_authority,
    rate_limited,
    validated_body,
)
from securepay.interfaces.api.responses import success_response

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.post("/register", dependencies=[Depends(rate_limited("register"))])
def register(
    body: RegisterRequest = Depends(validated_body(RegisterRequest)),
    store: DocumentStore = Depends(get_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
):
    user_id = register_user(store, hasher, email=body.email, password=body.password)
    return success_response({"userId": user_id}, "Registration successful")


@router.post("/login", dependencies=[Depends(rate_limited("login"))])
def login(
    request: Request,
    body: LoginRequest = Depends(validated_body(LoginRequest)),
    store: DocumentStore = Depends(get_store),
    hasher: PasswordHasher = Depends(get_password_hasher),
    authority: TokenAuthority = Depends(get_token_authority),
):
    user = authenticate_user(
        store,
        hasher,
        password=body.password,
        email=body.email,
        account_number=body.account_number,
    )
    session = authority.issue_session(
        user,
        ip_address=client_ip(request),
        user_agent=request.headers.get("user-agent", ""),
    )
    # Stateless alternative for clients that prefer it
    signed_token = authority.issue_signed_token(user["id"])

    return success_response(
        LoginResponse(
            token=session["session_token"],
            jwt=signed_token,
            user=login_user_view(user),
        ),
        "Login successful",
    )


@router.post("/logout")
def logout(
    principal: Principal = Depends(get_current_principal),
    authority: TokenAuthority = Depends(get_token_authority),
):
    authority.revoke(principal)
    return success_response(message="Logged out successfully")
