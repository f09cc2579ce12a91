from __future__ import annotations

from collections.abc import Iterable
from typing import Any

_CURRENCY_CODE_LENGTH = 3


def require_non_empty(value: Any, *, field_name: str, max_length: int | None = None) -> str:
    if value is None or not isinstance(value, str):
        raise ValueError(f"Missing required {field_name}")
    normalized = value.strip()
    if not normalized:
        raise ValueError(f"Missing required {field_name}")
    if max_length is not None and len(normalized) > max_length:
        raise ValueError(f"{field_name} exceeds {max_length} characters")
    return normalized


def normalize_currency_codes(values: Iterable[Any]) -> set[str]:
    return {item.strip().upper() for item in values if isinstance(item, str) and item.strip()}


def ensure_supported_currency(currency: str, supported: Iterable[str]) -> str:
    normalized = require_non_empty(currency, field_name="currency").upper()
    if len(normalized) != _CURRENCY_CODE_LENGTH:
        raise ValueError(f"Invalid currency code length: {normalized}")
    if normalized not in normalize_currency_codes(supported):
        raise ValueError(f"Unsupported currency: {normalized}")
    return normalized
