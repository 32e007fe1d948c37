"""
Money value objects.

MonetaryValue is the only representation of currency amounts in the ledger
core; RevenueAmount bundles gross, deductions and net.
"""

from src.core.money.monetary_value import (
    CENT,
    COMMON_CURRENCIES,
    DEFAULT_CURRENCY,
    MAX_ABS_AMOUNT,
    MonetaryValue,
)
from src.core.money.revenue_amount import RevenueAmount

__all__ = [
    "CENT",
    "COMMON_CURRENCIES",
    "DEFAULT_CURRENCY",
    "MAX_ABS_AMOUNT",
    "MonetaryValue",
    "RevenueAmount",
]
