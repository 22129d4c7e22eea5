"""Payments API routes: create, history, detail."""

from fastapi import APIRouter, Depends

from securepay.application.services.payment_service import (
    create_payment,
    get_for_user,
    list_for_user,
)
from securepay.config import Settings
from securepay.domain.principal import Principal
from securepay.domain.repositories.base import DocumentStore
from securepay.domain.schemas.payment import CreatePaymentRequest
from securepay.interfaces.api.deps import (
    get_app_settings,
    get_current_principal,
    get_store,
    rate_limited,
    validated_body,
)
from securepay.interfaces.api.responses import success_response

router = APIRouter(prefix="/api/payments", tags=["Payments"])


@router.post("/create")
def create(
    settings: Settings = Depends(get_app_settings),
    principal: Principal = Depends(get_current_principal),
    _limit: None = Depends(rate_limited("payments")),
    body: CreatePaymentRequest = Depends(validated_body(CreatePaymentRequest)),
    store: DocumentStore = Depends(get_store),
):
    receipt = create_payment(
        store,
        principal,
        body,
        fee_rate=settings.TRANSACTION_FEE_RATE,
    )
    return success_response(receipt, "Payment initiated successfully")


@router.get("/history")
def history(
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
):
    return success_response(list_for_user(store, principal))


@router.get("/{transaction_id}")
def detail(
    transaction_id: str,
    principal: Principal = Depends(get_current_principal),
    store: DocumentStore = Depends(get_store),
):
    return success_response(get_for_user(store, principal, transaction_id))
