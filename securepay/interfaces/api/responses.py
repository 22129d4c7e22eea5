"""Success envelope shared by all routes: {"success": true, "data"?, "message"?}."""

from typing import Any, Dict, Optional

from pydantic import BaseModel


def success_response(data: Any = None, message: Optional[str] = None) -> Dict[str, Any]:
    body: Dict[str, Any] = {"success": True}
    if message is not None:
        body["message"] = message
    if data is not None:
        body["data"] = data.model_dump() if isinstance(data, BaseModel) else data
    return body
