"""
Persistence helpers shared by the aggregates.

Stored records carry money as decimal strings plus a currency code, and
dates/timestamps as ISO-8601 strings. Nothing is stored as a float.
"""

from datetime import date, datetime
from typing import Optional

from src.core.errors import DomainValidationError
from src.core.money.monetary_value import MonetaryValue


def dump_money(value: Optional[MonetaryValue]) -> Optional[str]:
    if value is None:
        return None
    return str(value.amount)


def load_money(amount: Optional[str], currency: str) -> Optional[MonetaryValue]:
    if amount is None:
        return None
    return MonetaryValue(amount, currency)


def dump_datetime(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def load_datetime(value: Optional[str]) -> Optional[datetime]:
    if value is None:
        return None
    return datetime.fromisoformat(value)


def dump_date(value: Optional[date]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


def load_date(value: Optional[str]) -> Optional[date]:
    if value is None:
        return None
    return date.fromisoformat(value)


def require_text(value: Optional[str], name: str) -> str:
    """Stripped non-empty string or DomainValidationError."""
    if not isinstance(value, str) or not value.strip():
        raise DomainValidationError(f"{name} must be a non-empty string")
    return value.strip()
