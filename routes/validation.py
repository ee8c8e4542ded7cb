"""
Request body helpers shared by the JSON routes.

Every helper raises RequestValidationError, which the app-level error
handler turns into a 400 response.
"""

import math
from typing import Any, Dict, Optional

import bleach
from flask import request

from core.exceptions import RequestValidationError


MAX_NOTE_LENGTH = 1000


def json_body() -> Dict[str, Any]:
    """Parsed JSON object body, or a validation error."""
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise RequestValidationError("Request body must be a JSON object")
    return body


def require_str(body: Dict[str, Any], key: str) -> str:
    value = body.get(key)
    if not isinstance(value, str) or not value.strip():
        raise RequestValidationError(f"{key} is required", field=key)
    return value.strip()


def optional_str(body: Dict[str, Any], key: str) -> Optional[str]:
    value = body.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise RequestValidationError(f"{key} must be a string", field=key)
    return value


def require_int(body: Dict[str, Any], key: str, minimum: Optional[int] = None) -> int:
    value = body.get(key)
    if isinstance(value, bool) or not isinstance(value, int):
        raise RequestValidationError(f"{key} must be an integer", field=key)
    if minimum is not None and value < minimum:
        raise RequestValidationError(f"{key} must be >= {minimum}", field=key)
    return value


def optional_int(body: Dict[str, Any], key: str) -> Optional[int]:
    if body.get(key) is None:
        return None
    return require_int(body, key)


def require_number(body: Dict[str, Any], key: str, minimum: Optional[float] = None) -> float:
    value = body.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RequestValidationError(f"{key} must be a number", field=key)
    if isinstance(value, float) and not math.isfinite(value):
        raise RequestValidationError(f"{key} must be a finite number", field=key)
    if minimum is not None and value < minimum:
        raise RequestValidationError(f"{key} must be >= {minimum}", field=key)
    return value


def require_arg(name: str) -> str:
    """Required query-string argument."""
    value = request.args.get(name, "").strip()
    if not value:
        raise RequestValidationError(f"{name} required", field=name)
    return value


def sanitize_text(text: Optional[str], max_length: int = MAX_NOTE_LENGTH) -> str:
    """Strip markup from user-entered text and cap its length."""
    if not text:
        return ""
    text = text.strip()
    text = bleach.clean(text, tags=[], strip=True)
    if len(text) > max_length:
        text = text[:max_length]
    return text
