"""
Tests for MonetaryValue

Covers:
1. Construction, quantization and bounds
2. Currency normalization (uncommon codes are logged)
3. Arithmetic and cross-currency guards
4. Comparisons
5. Parsing and formatting
"""

from decimal import Decimal

import pytest
from pydantic import ValidationError
from structlog.testing import capture_logs

from src.core.errors import CurrencyMismatchError, DomainValidationError
from src.core.money import MonetaryValue


# =============================================================================
# CONSTRUCTION
# =============================================================================


class TestConstruction:
    """Constructor validation and normalization"""

    def test_defaults_to_usd(self) -> None:
        value = MonetaryValue(100)
        assert value.amount == Decimal("100.00")
        assert value.currency == "USD"

    def test_quantizes_half_up_to_cent(self) -> None:
        assert MonetaryValue(1500000.999).amount == Decimal("1500001.00")
        assert MonetaryValue("2.005").amount == Decimal("2.01")
        assert MonetaryValue("-2.005").amount == Decimal("-2.01")

    def test_accepts_decimal_and_string(self) -> None:
        assert MonetaryValue(Decimal("12.345")).amount == Decimal("12.35")
        assert MonetaryValue(" 42.1 ").amount == Decimal("42.10")

    def test_negative_zero_collapses(self) -> None:
        assert str(MonetaryValue(-0.001)) == "0.00 USD"

    def test_currency_upper_cased(self) -> None:
        assert MonetaryValue(1, "eur").currency == "EUR"

    @pytest.mark.parametrize(
        "amount, message",
        [
            (float("nan"), "Amount must be a valid number"),
            ("abc", "Amount must be a valid number"),
            (True, "Amount must be a valid number"),
            (None, "Amount must be a valid number"),
            (float("inf"), "Amount must be finite"),
            (Decimal("-Infinity"), "Amount must be finite"),
            (10**12 + 1, "Amount exceeds maximum allowed value"),
        ],
    )
    def test_invalid_amounts_rejected(self, amount, message) -> None:
        with pytest.raises(ValidationError, match=message):
            MonetaryValue(amount)

    def test_maximum_amount_accepted(self) -> None:
        assert MonetaryValue(-(10**12)).amount == Decimal("-1000000000000.00")

    @pytest.mark.parametrize(
        "currency, message",
        [
            ("", "Currency must be a valid string"),
            (None, "Currency must be a valid string"),
            ("US", "Currency must be a 3-letter ISO code"),
            ("US1", "Currency must be a 3-letter ISO code"),
        ],
    )
    def test_invalid_currency_rejected(self, currency, message) -> None:
        with pytest.raises(ValidationError, match=message):
            MonetaryValue(1, currency)

    def test_validation_error_is_value_error(self) -> None:
        with pytest.raises(ValueError):
            MonetaryValue("not money")

    def test_uncommon_currency_accepted_with_warning(self) -> None:
        with capture_logs() as logs:
            value = MonetaryValue(10, "XYZ")

        assert value.currency == "XYZ"
        assert {"event": "uncommon_currency_code", "currency": "XYZ", "log_level": "warning"} in logs

    def test_common_currency_not_logged(self) -> None:
        with capture_logs() as logs:
            MonetaryValue(10, "CAD")
        assert logs == []

    def test_immutable(self) -> None:
        value = MonetaryValue(1)
        with pytest.raises(ValidationError):
            value.amount = Decimal("2")


# =============================================================================
# ARITHMETIC
# =============================================================================


class TestArithmetic:
    """Operations return new, re-quantized values"""

    def test_float_noise_eliminated(self) -> None:
        result = MonetaryValue(0.1).add(MonetaryValue(0.2))
        assert result.amount == Decimal("0.30")

    def test_multiply(self) -> None:
        assert MonetaryValue(100.33).multiply(3).amount == Decimal("300.99")
        assert MonetaryValue(100).multiply(0.125).amount == Decimal("12.50")

    def test_add_then_subtract_round_trips(self) -> None:
        a = MonetaryValue(1234.56)
        b = MonetaryValue(789.01)
        assert a.add(b).subtract(b).equals(a)

    def test_operators(self) -> None:
        a = MonetaryValue(10)
        b = MonetaryValue(4)
        assert (a + b).amount == Decimal("14.00")
        assert (a - b).amount == Decimal("6.00")
        assert (-a).amount == Decimal("-10.00")

    def test_cross_currency_add_rejected(self) -> None:
        with pytest.raises(
            CurrencyMismatchError,
            match="Cannot perform operation on different currencies: USD and EUR",
        ):
            MonetaryValue(1, "USD").add(MonetaryValue(1, "EUR"))

    def test_cross_currency_subtract_rejected(self) -> None:
        with pytest.raises(CurrencyMismatchError):
            MonetaryValue(1, "USD").subtract(MonetaryValue(1, "CAD"))

    @pytest.mark.parametrize("factor", [float("nan"), float("inf"), "x", None])
    def test_multiply_rejects_invalid_factor(self, factor) -> None:
        with pytest.raises(DomainValidationError, match="Multiplication factor must be a valid number"):
            MonetaryValue(1).multiply(factor)

    def test_divide(self) -> None:
        assert MonetaryValue(100).divide(3).amount == Decimal("33.33")
        assert MonetaryValue(200).divide(3).amount == Decimal("66.67")

    @pytest.mark.parametrize("divisor", [0, 0.0, float("nan")])
    def test_divide_rejects_invalid_divisor(self, divisor) -> None:
        with pytest.raises(DomainValidationError, match="Division divisor must be a valid non-zero number"):
            MonetaryValue(1).divide(divisor)

    def test_percentage(self) -> None:
        assert MonetaryValue(1000).percentage(25).amount == Decimal("250.00")
        assert MonetaryValue(999.99).percentage(12.5).amount == Decimal("125.00")

    def test_abs_and_negate(self) -> None:
        assert MonetaryValue(-5).abs().amount == Decimal("5.00")
        assert MonetaryValue(5).negate().amount == Decimal("-5.00")

    def test_repeated_operations_stay_on_cents(self) -> None:
        value = MonetaryValue(0)
        for _ in range(1000):
            value = value.add(MonetaryValue(0.01))
        assert value.amount == Decimal("10.00")


# =============================================================================
# COMPARISONS
# =============================================================================


class TestComparisons:
    """Ordering, equality and sign"""

    def test_ordering(self) -> None:
        small = MonetaryValue(1)
        large = MonetaryValue(2)
        assert large.greater_than(small)
        assert small.less_than(large)
        assert small.less_than_or_equal(MonetaryValue(1))
        assert large.greater_than_or_equal(MonetaryValue(2))

    def test_ordering_across_currencies_rejected(self) -> None:
        with pytest.raises(CurrencyMismatchError):
            MonetaryValue(1, "USD").greater_than(MonetaryValue(1, "EUR"))

    def test_equals_never_raises(self) -> None:
        assert MonetaryValue(1, "USD").equals(MonetaryValue(1.0, "USD"))
        assert not MonetaryValue(1, "USD").equals(MonetaryValue(1, "EUR"))

    def test_sign_predicates(self) -> None:
        assert MonetaryValue(0).is_zero()
        assert MonetaryValue(0.01).is_positive()
        assert MonetaryValue(-0.01).is_negative()


# =============================================================================
# FACTORIES AND CONVERSIONS
# =============================================================================


class TestParsing:
    """from_string / from_cents / zero"""

    def test_from_string_with_symbol_and_separators(self) -> None:
        value = MonetaryValue.from_string("$1,500,000.50")
        assert value.amount == Decimal("1500000.50")
        assert value.currency == "USD"

    def test_from_string_reads_embedded_code(self) -> None:
        assert MonetaryValue.from_string("250.00 EUR").currency == "EUR"
        assert MonetaryValue.from_string("CAD 99.5").amount == Decimal("99.50")

    def test_from_string_parses_str_output(self) -> None:
        original = MonetaryValue(-42.1, "GBP")
        assert MonetaryValue.from_string(str(original)).equals(original)

    def test_from_string_parentheses_are_negative(self) -> None:
        assert MonetaryValue.from_string("($1,234.56)").amount == Decimal("-1234.56")

    def test_from_string_explicit_currency(self) -> None:
        assert MonetaryValue.from_string("€10", "EUR").currency == "EUR"

    def test_from_string_conflicting_code_rejected(self) -> None:
        with pytest.raises(CurrencyMismatchError):
            MonetaryValue.from_string("10.00 EUR", "USD")

    @pytest.mark.parametrize(
        "text", ["", "   ", "$", "abc", "1.2.3", "1e5", "12abc34", "$1,0x0", "1-2"]
    )
    def test_from_string_unparseable(self, text) -> None:
        with pytest.raises(DomainValidationError, match="Cannot parse amount from string"):
            MonetaryValue.from_string(text)

    def test_from_string_other_currency_symbols(self) -> None:
        assert MonetaryValue.from_string("CA$1,200.00", "CAD").amount == Decimal("1200.00")
        assert MonetaryValue.from_string("-£ 3.5", "GBP").amount == Decimal("-3.50")

    def test_from_cents_and_to_cents(self) -> None:
        value = MonetaryValue.from_cents(150000050)
        assert value.amount == Decimal("1500000.50")
        assert value.to_cents() == 150000050

    def test_from_cents_requires_int(self) -> None:
        with pytest.raises(DomainValidationError):
            MonetaryValue.from_cents(1.5)

    def test_zero(self) -> None:
        zero = MonetaryValue.zero("EUR")
        assert zero.is_zero()
        assert zero.currency == "EUR"


class TestFormatting:
    """str / format / to_dict"""

    def test_str(self) -> None:
        assert str(MonetaryValue(1500000.5)) == "1500000.50 USD"

    def test_format_with_symbol(self) -> None:
        assert MonetaryValue(1500000.5).format() == "$1,500,000.50"
        assert MonetaryValue(-3, "EUR").format() == "-€3.00"

    def test_format_without_symbol(self) -> None:
        assert MonetaryValue(-12.5, "NOK").format() == "-NOK 12.50"

    def test_to_dict_uses_decimal_string(self) -> None:
        assert MonetaryValue(0.1).to_dict() == {"amount": "0.10", "currency": "USD"}

    def test_json_dump_uses_decimal_string(self) -> None:
        assert MonetaryValue(7).model_dump(mode="json") == {"amount": "7.00", "currency": "USD"}
