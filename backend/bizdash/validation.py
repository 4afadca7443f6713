# Overview: Request payload coercion helpers; raise ValidationError on bad input.

from __future__ import annotations

from datetime import datetime
from typing import Any, Iterable

from .errors import ValidationError
from .time_utils import parse_iso_datetime


# Maximum amount: 999,999,999,999 cents
MAX_AMOUNT_CENTS = 999_999_999_999


def require_str(data: dict, key: str, *, label: str | None = None) -> str:
    value = data.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label or key} is required")
    return value.strip()


def optional_str(data: dict, key: str) -> str | None:
    value = data.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be a string")
    value = value.strip()
    return value or None


def coerce_int(value: Any, key: str) -> int:
    """
    Strict integer coercion.

    Accepts ints and plain digit strings; rejects bools, floats with a
    fractional part and scientific notation.
    """
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if not value.is_integer():
            raise ValidationError(f"{key} must be an integer, not a decimal")
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if not stripped or "e" in stripped.lower() or "." in stripped:
            raise ValidationError(f"{key} must be an integer")
        try:
            return int(stripped)
        except ValueError:
            raise ValidationError(f"{key} must be an integer")
    raise ValidationError(f"{key} must be an integer")


def require_int(data: dict, key: str) -> int:
    if data.get(key) in (None, ""):
        raise ValidationError(f"{key} is required")
    return coerce_int(data.get(key), key)


def optional_int(data: dict, key: str) -> int | None:
    if data.get(key) in (None, ""):
        return None
    return coerce_int(data.get(key), key)


def coerce_amount_cents(value: Any, key: str) -> int:
    amount = coerce_int(value if value is not None else 0, key)
    if amount < 0:
        raise ValidationError(f"{key} cannot be negative")
    if amount > MAX_AMOUNT_CENTS:
        raise ValidationError(f"{key} is too large")
    return amount


def optional_datetime(data: dict, key: str) -> datetime | None:
    value = data.get(key)
    if value is None or value == "":
        return None
    if not isinstance(value, str):
        raise ValidationError(f"{key} must be an ISO-8601 string")
    try:
        return parse_iso_datetime(value)
    except ValueError:
        raise ValidationError(f"{key} must be an ISO-8601 datetime")


def parse_bool(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in ("1", "true", "yes", "on")
    return bool(value)


def parse_id_list(value: str | Iterable | None, key: str = "ids") -> list[int]:
    """'1, 2,3' or [1, 2, 3] -> [1, 2, 3]; blanks dropped."""
    if value is None:
        return []
    if isinstance(value, str):
        parts = [p.strip() for p in value.split(",")]
        return [coerce_int(p, key) for p in parts if p]
    return [coerce_int(v, key) for v in value]


def parse_range_days(value: str | None) -> int | None:
    """'30d' or '30' -> 30; blank -> None."""
    if value is None or not str(value).strip():
        return None
    raw = str(value).strip().lower()
    if raw.endswith("d"):
        raw = raw[:-1]
    days = coerce_int(raw, "range")
    if days <= 0:
        raise ValidationError("range must be positive")
    return days


def parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]
