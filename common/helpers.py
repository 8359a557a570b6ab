"""
Storefront - Shared Helpers
============================
Pure utility functions with NO database or module dependencies.
"""

import re
import secrets
from datetime import datetime, timezone
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Optional

from common.exceptions import ValidationError


def now_utc() -> datetime:
    """Returns current UTC datetime (timezone-aware)."""
    return datetime.now(timezone.utc)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def safe_int(value: Optional[str]) -> Optional[int]:
    """Safely convert a string to int. Returns None on failure."""
    if value is None:
        return None
    try:
        return int(str(value).strip())
    except (ValueError, TypeError):
        return None


def safe_decimal(value, default: Optional[Decimal] = None) -> Optional[Decimal]:
    """Safely convert a value to Decimal. Returns default on failure."""
    if value is None or str(value).strip() == "":
        return default
    try:
        return Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        return default


def parse_id(value: str, label: str = "resource") -> int:
    """Parse a path id. Malformed ids are a client error (400), not a server error."""
    parsed = safe_int(value)
    if parsed is None or parsed < 1:
        raise ValidationError(f"Invalid {label} ID format")
    return parsed


def money(value) -> Decimal:
    """Quantize a price/amount to two decimal places."""
    return Decimal(str(value or 0)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def to_minor_units(value) -> int:
    """Convert a major-unit amount (e.g. 25.50) to the gateway subunit (2550)."""
    return int(money(value) * 100)


def generate_reference(prefix: str = "SF") -> str:
    """Generate a unique, URL-safe transaction reference."""
    stamp = now_utc().strftime("%Y%m%d%H%M%S")
    return f"{prefix}-{stamp}-{secrets.token_hex(6)}"


_REFERENCE_RE = re.compile(r"^[A-Za-z0-9_.=-]{1,100}$")


def is_valid_reference(value: Optional[str]) -> bool:
    """Gateway references are a single path segment: no slashes, no `..`."""
    return bool(value) and bool(_REFERENCE_RE.match(value)) and ".." not in value
