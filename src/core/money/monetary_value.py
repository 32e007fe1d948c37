"""
MonetaryValue — immutable fixed-point currency amount

Every financial computation in the ledger core flows through this type.

Representation:
- amount: Decimal quantized to the cent (ROUND_HALF_UP), |amount| <= 10^12
- currency: 3-letter ISO-4217 code, upper case

Float inputs are converted through their shortest repr, so 0.1 + 0.2 is
exactly 0.30. Every operation returns a new instance re-quantized to the cent:
repeated operations cannot drift by more than one cent per operation.
"""

import math
import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Final

import structlog
from pydantic import BaseModel, field_serializer, field_validator

from src.core.errors import CurrencyMismatchError, DomainValidationError

logger = structlog.get_logger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

DEFAULT_CURRENCY: Final[str] = "USD"

# Maximum absolute amount (one trillion)
MAX_ABS_AMOUNT: Final[Decimal] = Decimal("1000000000000")

# Quantization step (one cent)
CENT: Final[Decimal] = Decimal("0.01")

# Codes accepted silently; other well-formed codes are accepted with a warning
COMMON_CURRENCIES: Final[frozenset[str]] = frozenset(
    {"USD", "CAD", "EUR", "GBP", "MXN", "AUD", "JPY", "CHF", "NOK", "BRL"}
)

CURRENCY_SYMBOLS: Final[dict[str, str]] = {
    "USD": "$",
    "CAD": "CA$",
    "EUR": "€",
    "GBP": "£",
    "MXN": "MX$",
    "AUD": "A$",
    "JPY": "¥",
}

_CURRENCY_CODE_RE: Final = re.compile(r"^[A-Z]{3}$")
_EMBEDDED_CODE_RE: Final = re.compile(r"^([A-Za-z]{3})\s+|\s+([A-Za-z]{3})$")
# Currency symbols (longest first so "CA$" is not read as "$"), thousands separators, whitespace
_STRIPPABLE_RE: Final = re.compile(
    "|".join(
        re.escape(symbol)
        for symbol in sorted(set(CURRENCY_SYMBOLS.values()), key=len, reverse=True)
    )
    + r"|,|\s"
)
_PLAIN_NUMBER_RE: Final = re.compile(r"-?(?:\d+(?:\.\d*)?|\.\d+)")


# =============================================================================
# COERCION HELPERS
# =============================================================================


def _coerce_number(value: Any, invalid_message: str, infinite_message: str) -> Decimal:
    """Convert int/float/Decimal/str to a finite Decimal or raise ValueError."""
    if isinstance(value, bool):
        raise ValueError(invalid_message)

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, float):
        if math.isnan(value):
            raise ValueError(invalid_message)
        if math.isinf(value):
            raise ValueError(infinite_message)
        result = Decimal(repr(value))
    elif isinstance(value, str):
        try:
            result = Decimal(value.strip())
        except InvalidOperation:
            raise ValueError(invalid_message) from None
    else:
        raise ValueError(invalid_message)

    if result.is_nan():
        raise ValueError(invalid_message)
    if result.is_infinite():
        raise ValueError(infinite_message)

    return result


def _quantize(amount: Decimal) -> Decimal:
    """Round to the cent; negative zero collapses to 0.00."""
    result = amount.quantize(CENT, rounding=ROUND_HALF_UP)
    if result == 0:
        return Decimal("0.00")
    return result


def _coerce_factor(value: Any, message: str) -> Decimal:
    """Scalar for multiply/divide/percentage; DomainValidationError when invalid."""
    try:
        return _coerce_number(value, message, message)
    except ValueError:
        raise DomainValidationError(message) from None


# =============================================================================
# MONETARY VALUE
# =============================================================================


class MonetaryValue(BaseModel):
    """
    Immutable money amount (frozen pydantic model).

    Construction errors surface as pydantic.ValidationError (a ValueError).
    Operation errors raise DomainValidationError / CurrencyMismatchError.

    Examples:
        >>> MonetaryValue(1500000.999, "USD").amount
        Decimal('1500001.00')
        >>> str(MonetaryValue(0.1).add(MonetaryValue(0.2)))
        '0.30 USD'
    """

    amount: Decimal
    currency: str = DEFAULT_CURRENCY

    model_config = {"frozen": True}

    def __init__(self, amount: Any = 0, currency: Any = DEFAULT_CURRENCY, **data: Any):
        super().__init__(amount=amount, currency=currency, **data)

    @field_validator("amount", mode="before")
    @classmethod
    def normalize_amount(cls, v: Any) -> Decimal:
        """Finite, bounded, rounded to the cent."""
        amount = _coerce_number(v, "Amount must be a valid number", "Amount must be finite")
        if abs(amount) > MAX_ABS_AMOUNT:
            raise ValueError("Amount exceeds maximum allowed value")
        return _quantize(amount)

    @field_validator("currency", mode="before")
    @classmethod
    def normalize_currency(cls, v: Any) -> str:
        """3-letter code; uncommon codes are accepted with a warning."""
        if not isinstance(v, str) or not v.strip():
            raise ValueError("Currency must be a valid string")

        code = v.strip().upper()
        if not _CURRENCY_CODE_RE.match(code):
            raise ValueError("Currency must be a 3-letter ISO code")

        if code not in COMMON_CURRENCIES:
            logger.warning("uncommon_currency_code", currency=code)

        return code

    @field_serializer("amount", when_used="json")
    def serialize_amount(self, amount: Decimal) -> str:
        return str(amount)

    # =========================================================================
    # FACTORIES
    # =========================================================================

    @classmethod
    def zero(cls, currency: str = DEFAULT_CURRENCY) -> "MonetaryValue":
        return cls(0, currency)

    @classmethod
    def from_cents(cls, cents: int, currency: str = DEFAULT_CURRENCY) -> "MonetaryValue":
        """
        Build from an integer minor-unit count.

        Examples:
            >>> MonetaryValue.from_cents(150000050).amount
            Decimal('1500000.50')
        """
        if isinstance(cents, bool) or not isinstance(cents, int):
            raise DomainValidationError(f"Cents must be an integer, got {cents!r}")
        return cls(Decimal(cents).scaleb(-2), currency)

    @classmethod
    def from_string(cls, value: str, currency: str | None = None) -> "MonetaryValue":
        """
        Parse a formatted amount.

        Currency symbols, thousands separators and whitespace are stripped. A
        leading or trailing 3-letter code (as produced by str()) sets the
        currency; otherwise ``currency`` or USD is used. Parentheses mark a
        negative amount.

        Examples:
            >>> MonetaryValue.from_string("$1,500,000.50").amount
            Decimal('1500000.50')
            >>> MonetaryValue.from_string("250.00 EUR").currency
            'EUR'

        Raises:
            DomainValidationError: if no amount can be parsed, or characters other
                than symbols, separators, sign, digits and a decimal point remain
            CurrencyMismatchError: if the embedded code contradicts ``currency``
        """
        if not isinstance(value, str) or not value.strip():
            raise DomainValidationError(f"Cannot parse amount from string: {value}")

        text = value.strip()
        detected: str | None = None

        code_match = _EMBEDDED_CODE_RE.search(text)
        if code_match:
            detected = (code_match.group(1) or code_match.group(2)).upper()
            text = _EMBEDDED_CODE_RE.sub("", text).strip()

        if detected and currency and detected != currency.upper():
            raise CurrencyMismatchError(currency.upper(), detected)

        negative = text.startswith("(") and text.endswith(")")
        if negative:
            text = text[1:-1]
        cleaned = _STRIPPABLE_RE.sub("", text)

        # Anything left besides sign, digits and one decimal point is malformed
        if not _PLAIN_NUMBER_RE.fullmatch(cleaned):
            raise DomainValidationError(f"Cannot parse amount from string: {value}")
        amount = Decimal(cleaned)

        if negative:
            amount = -amount

        return cls(amount, currency or detected or DEFAULT_CURRENCY)

    # =========================================================================
    # ARITHMETIC
    # =========================================================================

    def add(self, other: "MonetaryValue") -> "MonetaryValue":
        self._assert_same_currency(other)
        return MonetaryValue(self.amount + other.amount, self.currency)

    def subtract(self, other: "MonetaryValue") -> "MonetaryValue":
        self._assert_same_currency(other)
        return MonetaryValue(self.amount - other.amount, self.currency)

    def multiply(self, factor: int | float | Decimal) -> "MonetaryValue":
        """
        Scale by a scalar.

        Raises:
            DomainValidationError: if factor is NaN/Inf or not a number
        """
        scalar = _coerce_factor(factor, "Multiplication factor must be a valid number")
        return MonetaryValue(self.amount * scalar, self.currency)

    def divide(self, divisor: int | float | Decimal) -> "MonetaryValue":
        """
        Divide by a scalar.

        Raises:
            DomainValidationError: if divisor is zero, NaN/Inf or not a number
        """
        message = "Division divisor must be a valid non-zero number"
        scalar = _coerce_factor(divisor, message)
        if scalar == 0:
            raise DomainValidationError(message)
        return MonetaryValue(self.amount / scalar, self.currency)

    def percentage(self, percent: int | float | Decimal) -> "MonetaryValue":
        """
        percent% of this amount.

        Examples:
            >>> MonetaryValue(1000).percentage(25).amount
            Decimal('250.00')
        """
        scalar = _coerce_factor(percent, "Percentage must be a valid number")
        return MonetaryValue(self.amount * scalar / 100, self.currency)

    def abs(self) -> "MonetaryValue":
        return MonetaryValue(abs(self.amount), self.currency)

    def negate(self) -> "MonetaryValue":
        return MonetaryValue(-self.amount, self.currency)

    def __add__(self, other: "MonetaryValue") -> "MonetaryValue":
        return self.add(other)

    def __sub__(self, other: "MonetaryValue") -> "MonetaryValue":
        return self.subtract(other)

    def __neg__(self) -> "MonetaryValue":
        return self.negate()

    # =========================================================================
    # COMPARISONS
    # =========================================================================

    def greater_than(self, other: "MonetaryValue") -> bool:
        self._assert_same_currency(other)
        return self.amount > other.amount

    def greater_than_or_equal(self, other: "MonetaryValue") -> bool:
        self._assert_same_currency(other)
        return self.amount >= other.amount

    def less_than(self, other: "MonetaryValue") -> bool:
        self._assert_same_currency(other)
        return self.amount < other.amount

    def less_than_or_equal(self, other: "MonetaryValue") -> bool:
        self._assert_same_currency(other)
        return self.amount <= other.amount

    def equals(self, other: "MonetaryValue") -> bool:
        """Same currency and same amount (never raises)."""
        return self.currency == other.currency and self.amount == other.amount

    def is_zero(self) -> bool:
        return self.amount == 0

    def is_positive(self) -> bool:
        return self.amount > 0

    def is_negative(self) -> bool:
        return self.amount < 0

    # =========================================================================
    # CONVERSIONS
    # =========================================================================

    def to_cents(self) -> int:
        return int(self.amount.scaleb(2))

    def to_dict(self) -> dict[str, str]:
        """Serializable form: amount as a decimal string, never a float."""
        return {"amount": str(self.amount), "currency": self.currency}

    def format(self) -> str:
        """
        Human-readable amount.

        Examples:
            >>> MonetaryValue(1500000.5).format()
            '$1,500,000.50'
            >>> MonetaryValue(-12.5, "NOK").format()
            '-NOK 12.50'
        """
        sign = "-" if self.amount < 0 else ""
        symbol = CURRENCY_SYMBOLS.get(self.currency, f"{self.currency} ")
        return f"{sign}{symbol}{abs(self.amount):,.2f}"

    def __str__(self) -> str:
        return f"{self.amount} {self.currency}"

    def __repr__(self) -> str:
        return f"MonetaryValue('{self.amount}', '{self.currency}')"

    def _assert_same_currency(self, other: "MonetaryValue") -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(self.currency, other.currency)
