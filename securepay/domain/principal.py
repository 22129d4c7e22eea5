"""The authenticated identity attached to a validated request."""

from dataclasses import dataclass
from typing import Any, Dict, Literal, Optional

AuthMethod = Literal["session", "jwt"]

PRIVATE_USER_FIELDS = frozenset({"password_hash"})


@dataclass(frozen=True)
class Principal:
    user: Dict[str, Any]
    auth_method: AuthMethod
    session: Optional[Dict[str, Any]] = None

    @property
    def user_id(self) -> str:
        return self.user["id"]

    @property
    def is_staff(self) -> bool:
        return bool(self.user.get("is_staff"))

    @property
    def session_token(self) -> Optional[str]:
        return self.session.get("session_token") if self.session else None

    @property
    def account_number(self) -> Optional[str]:
        return self.user.get("account_number")

    def merged(self) -> Dict[str, Any]:
        """Session and user fields in one view; user fields win, secrets dropped."""
        view = {**(self.session or {}), **self.user}
        view["id"] = self.user_id
        view["is_staff"] = self.is_staff
        view["auth_method"] = self.auth_method
        for field in PRIVATE_USER_FIELDS:
            view.pop(field, None)
        return view
