from typing import Any

from flask import request

from feedback_service.errors import ValidationError

def json_body() -> dict:
    """Request body as a JSON object; anything else is a 400."""
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        raise ValidationError("Request body must be a JSON object")
    return dict(data)

def pop_version(data: dict) -> int | None:
    """Remove and return the optional `version` a client sends to make a PATCH conditional."""
    version = data.pop("version", None)
    if version is not None and (isinstance(version, bool) or not isinstance(version, int)):
        raise ValidationError("version must be an integer")
    return version

def to_int(value: Any, default: int | None = None) -> int | None:
    """Lenient int for query-string values; bools and garbage fall back to default."""
    if isinstance(value, bool):
        return default
    if isinstance(value, float) and not value.is_integer():
        return default
    try:
        return int(value)
    except (TypeError, ValueError):
        return default

def to_bool(value: Any, default: bool = False) -> bool:
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("1", "true", "yes", "on")
