"""User API routes: profile."""

from fastapi import APIRouter, Depends

from securepay.application.services.user_service import profile_view
from securepay.domain.principal import Principal
from securepay.interfaces.api.deps import get_current_principal
from securepay.interfaces.api.responses import success_response

router = APIRouter(prefix="/api/user", tags=["User"])


@router.get("/profile")
def get_profile(principal: Principal = Depends(get_current_principal)):
    return success_response(profile_view(principal.user))
