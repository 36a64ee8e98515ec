"""Input validation helpers for request payloads."""
from __future__ import annotations
import math
from typing import Any, Optional

from storeadmin.core.errors import InvalidInput


def require_fields(payload: dict, *fields: str, message: str = "Missing required fields") -> None:
    """Raise InvalidInput unless every field is present and non-empty."""
    missing = [name for name in fields if not payload.get(name)]
    if missing:
        raise InvalidInput(message, details=", ".join(missing))


def parse_week_dates(raw: Optional[str]) -> list[str]:
    """Split a comma-separated date list, dropping blank entries."""
    if not raw:
        return []
    return [part.strip() for part in raw.split(",") if part.strip()]


def login_email_for(company_code: str, domain: str) -> str:
    """Synthesize the login handle for a company code."""
    return f"{company_code}@{domain}"


def optional_bool(payload: dict, field: str) -> Optional[bool]:
    """Return payload[field] as bool, None when absent."""
    if field not in payload or payload[field] is None:
        return None
    value = payload[field]
    if not isinstance(value, bool):
        raise InvalidInput(f"{field} must be a boolean")
    return value


def optional_number(payload: dict, field: str) -> Optional[float]:
    """Return payload[field] as a number, None when absent."""
    if field not in payload or payload[field] is None:
        return None
    value: Any = payload[field]
    if isinstance(value, bool):
        raise InvalidInput(f"{field} must be a number")
    try:
        number = value if isinstance(value, (int, float)) else float(value)
    except (TypeError, ValueError):
        raise InvalidInput(f"{field} must be a number")
    if not math.isfinite(number):
        raise InvalidInput(f"{field} must be a finite number")
    return number
