"""Neutralizes markup in free-text input before it reaches validation or storage."""

import re
from typing import Any

SCRIPT_BLOCK_RE = re.compile(r"<script[\s\S]*?>[\s\S]*?</script>", re.IGNORECASE)

# Secrets are hashed, never rendered; escaping them would change the credential.
UNSANITIZED_KEYS = frozenset({"password", "password_hash"})


def sanitize_string(value: str) -> str:
    value = SCRIPT_BLOCK_RE.sub("", value)
    return value.replace("<", "&lt;").replace(">", "&gt;")


def sanitize_value(value: Any, skip: bool = False) -> Any:
    """Recursively sanitize strings inside dicts and lists."""
    if skip:
        return value
    if isinstance(value, str):
        return sanitize_string(value)
    if isinstance(value, list):
        return [sanitize_value(item) for item in value]
    if isinstance(value, dict):
        return {
            key: sanitize_value(item, skip=key in UNSANITIZED_KEYS)
            for key, item in value.items()
        }
    return value
