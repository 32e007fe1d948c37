"""
RevenueAmount — gross revenue, deductions and the derived net

Invariants (checked on every construction):
- gross, deductions and net share one currency
- 0 <= deductions <= gross
- net == gross - deductions
"""

from decimal import Decimal
from typing import Any

from pydantic import BaseModel, model_validator

from src.core.errors import DomainValidationError
from src.core.money.monetary_value import DEFAULT_CURRENCY, MonetaryValue

_HUNDRED = Decimal("100")
_PERCENT_STEP = Decimal("0.01")


def _as_money(value: Any, name: str) -> MonetaryValue:
    if isinstance(value, MonetaryValue):
        return value
    if isinstance(value, dict):
        return MonetaryValue.model_validate(value)
    raise ValueError(f"{name} must be a MonetaryValue, got {type(value).__name__}")


class RevenueAmount(BaseModel):
    """
    Immutable revenue triple.

    ``net`` is derived when omitted; a supplied ``net`` must equal
    ``gross - deductions``.

    Examples:
        >>> RevenueAmount.from_amounts(1000, 100).net.amount
        Decimal('900.00')
    """

    gross: MonetaryValue
    deductions: MonetaryValue
    net: MonetaryValue

    model_config = {"frozen": True}

    @model_validator(mode="before")
    @classmethod
    def derive_net(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data

        gross = _as_money(data.get("gross"), "gross")
        deductions = _as_money(data.get("deductions"), "deductions")

        if gross.currency != deductions.currency:
            raise ValueError("Gross revenue and deductions must have the same currency")
        if deductions.is_negative():
            raise ValueError("Deductions cannot be negative")
        if deductions.amount > gross.amount:
            raise ValueError("Deductions cannot exceed gross revenue")

        expected_net = MonetaryValue(gross.amount - deductions.amount, gross.currency)

        supplied = data.get("net")
        if supplied is not None and not _as_money(supplied, "net").equals(expected_net):
            raise ValueError("Net revenue must equal gross revenue minus deductions")

        return {"gross": gross, "deductions": deductions, "net": expected_net}

    # =========================================================================
    # FACTORIES
    # =========================================================================

    @classmethod
    def create(
        cls, gross: MonetaryValue, deductions: MonetaryValue | None = None
    ) -> "RevenueAmount":
        if deductions is None:
            deductions = MonetaryValue.zero(gross.currency)
        return cls(gross=gross, deductions=deductions)

    @classmethod
    def from_gross(cls, gross: MonetaryValue) -> "RevenueAmount":
        """No deductions: net equals gross."""
        return cls.create(gross)

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "RevenueAmount":
        return cls.create(MonetaryValue.zero(currency))

    @classmethod
    def from_amounts(
        cls,
        gross_amount: int | float | Decimal,
        deductions_amount: int | float | Decimal = 0,
        currency: str = DEFAULT_CURRENCY,
    ) -> "RevenueAmount":
        return cls.create(
            MonetaryValue(gross_amount, currency),
            MonetaryValue(deductions_amount, currency),
        )

    @classmethod
    def from_database_values(
        cls, gross: str, deductions: str, currency: str = DEFAULT_CURRENCY
    ) -> "RevenueAmount":
        """
        Rebuild from stored decimal strings.

        Examples:
            >>> RevenueAmount.from_database_values("1000.50", "100.25").net.amount
            Decimal('900.25')
        """
        return cls.create(MonetaryValue(gross, currency), MonetaryValue(deductions, currency))

    # =========================================================================
    # ARITHMETIC
    # =========================================================================

    def add(self, other: "RevenueAmount") -> "RevenueAmount":
        return RevenueAmount.create(
            self.gross.add(other.gross), self.deductions.add(other.deductions)
        )

    def subtract(self, other: "RevenueAmount") -> "RevenueAmount":
        return RevenueAmount.create(
            self.gross.subtract(other.gross), self.deductions.subtract(other.deductions)
        )

    def multiply(self, factor: int | float | Decimal) -> "RevenueAmount":
        return RevenueAmount.create(self.gross.multiply(factor), self.deductions.multiply(factor))

    def apply_decimal_interest(self, fraction: int | float | Decimal) -> "RevenueAmount":
        """
        Owner's share of this revenue for a decimal interest in [0, 1].

        Raises:
            DomainValidationError: if fraction is outside [0, 1] or not a number
        """
        message = "Decimal interest must be between 0 and 1"
        if isinstance(fraction, bool) or not isinstance(fraction, (int, float, Decimal)):
            raise DomainValidationError(message)
        if not Decimal(str(fraction)).is_finite() or fraction < 0 or fraction > 1:
            raise DomainValidationError(message)
        return self.multiply(fraction)

    # =========================================================================
    # QUERIES
    # =========================================================================

    def deduction_percentage(self) -> Decimal:
        """Deductions as a percentage of gross (0 when gross is zero)."""
        if self.gross.is_zero():
            return Decimal("0.00")
        return (self.deductions.amount / self.gross.amount * _HUNDRED).quantize(_PERCENT_STEP)

    def net_percentage(self) -> Decimal:
        if self.gross.is_zero():
            return Decimal("0.00")
        return (self.net.amount / self.gross.amount * _HUNDRED).quantize(_PERCENT_STEP)

    def is_positive(self) -> bool:
        return self.net.is_positive()

    def is_zero(self) -> bool:
        return self.net.is_zero()

    def is_negative(self) -> bool:
        return self.net.is_negative()

    def equals(self, other: "RevenueAmount") -> bool:
        return (
            self.gross.equals(other.gross)
            and self.deductions.equals(other.deductions)
            and self.net.equals(other.net)
        )

    @property
    def currency(self) -> str:
        return self.gross.currency

    # =========================================================================
    # CONVERSIONS
    # =========================================================================

    def formatted_summary(self) -> str:
        return "\n".join(
            [
                f"Gross Revenue: {self.gross.format()}",
                f"Deductions: {self.deductions.format()}",
                f"Net Revenue: {self.net.format()}",
            ]
        )

    def to_database_format(self) -> dict[str, str]:
        return {
            "gross_revenue": str(self.gross.amount),
            "deductions": str(self.deductions.amount),
            "net_revenue": str(self.net.amount),
            "currency": self.currency,
        }

    def __str__(self) -> str:
        return (
            f"Revenue(Gross: {self.gross.format()}, "
            f"Deductions: {self.deductions.format()}, Net: {self.net.format()})"
        )
