"""
Tests for the numerical safeguards module

Checks:
1. Safe division (zero denominators, eps clamping, NaN/Inf)
2. NaN/Inf sanitization
3. Tolerant threshold checks
4. Fraction aggregation and interest shares
5. Fraction validation
"""

import math

import pytest

from src.core.math.numerical_safeguards import (
    EPS_CALC,
    EPS_INTEREST_SHARE,
    below_threshold,
    denom_safe_unsigned,
    interest_share,
    is_valid_float,
    meets_threshold,
    safe_divide,
    sanitize_float,
    sum_fractions,
    validate_fraction,
)

# =============================================================================
# SAFE DIVISION
# =============================================================================


class TestDenomSafeUnsigned:
    def test_large_value_kept(self) -> None:
        assert denom_safe_unsigned(10.0) == 10.0

    def test_negative_becomes_absolute(self) -> None:
        assert denom_safe_unsigned(-10.0, 1e-6) == 10.0

    def test_zero_clamped_to_eps(self) -> None:
        assert denom_safe_unsigned(0.0, 1e-6) == 1e-6

    def test_non_positive_eps_rejected(self) -> None:
        with pytest.raises(ValueError, match="eps must be positive"):
            denom_safe_unsigned(1.0, 0.0)


class TestSafeDivide:
    def test_regular_division(self) -> None:
        assert safe_divide(0.6, 1.0) == pytest.approx(0.6)

    def test_zero_denominator_returns_fallback(self) -> None:
        assert safe_divide(0.6, 0.0) == 0.0
        assert safe_divide(0.6, 0.0, fallback=-1.0) == -1.0

    def test_tiny_denominator_clamped(self) -> None:
        assert safe_divide(1.0, 1e-15) == pytest.approx(1.0 / EPS_CALC)
        assert safe_divide(1.0, -1e-15) == pytest.approx(-1.0 / EPS_CALC)

    def test_nan_numerator_treated_as_zero(self) -> None:
        assert safe_divide(float("nan"), 2.0) == 0.0

    def test_inf_denominator_returns_fallback(self) -> None:
        assert safe_divide(1.0, float("inf"), fallback=0.5) == 0.5


# =============================================================================
# SANITIZATION
# =============================================================================


class TestSanitization:
    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_invalid_floats(self, value: float) -> None:
        assert not is_valid_float(value)
        assert sanitize_float(value) == 0.0
        assert sanitize_float(value, fallback=-1.0) == -1.0

    def test_finite_value_passes_through(self) -> None:
        assert is_valid_float(0.25)
        assert sanitize_float(0.25) == 0.25


# =============================================================================
# COMPARISONS
# =============================================================================


class TestComparisons:
    def test_meets_threshold_with_float_noise(self) -> None:
        # Summed shares carry float noise
        assert meets_threshold(0.1 + 0.2 + 0.2, 0.5)
        assert meets_threshold(0.5, 0.5)
        assert meets_threshold(0.8, 0.5)

    def test_meets_threshold_rejects_real_shortfall(self) -> None:
        assert not meets_threshold(0.49, 0.5)
        assert not meets_threshold(0.5 - 10 * EPS_INTEREST_SHARE, 0.5)

    def test_below_threshold_is_complement(self) -> None:
        for value in (0.0, 0.24, 0.25, 0.3, 1.0):
            assert below_threshold(value, 0.25) is not meets_threshold(value, 0.25)


# =============================================================================
# AGGREGATION
# =============================================================================


class TestAggregation:
    def test_sum_fractions_exact(self) -> None:
        assert sum_fractions([0.1] * 10) == 1.0

    def test_sum_fractions_ignores_nan(self) -> None:
        assert sum_fractions([0.5, float("nan"), 0.25]) == 0.75

    def test_sum_fractions_empty(self) -> None:
        assert sum_fractions([]) == 0.0

    def test_interest_share(self) -> None:
        assert interest_share(0.3, 0.6) == pytest.approx(0.5)

    def test_interest_share_zero_total(self) -> None:
        assert interest_share(0.3, 0.0) == 0.0

    def test_shares_are_deterministic(self) -> None:
        results = {interest_share(0.2, 0.7) for _ in range(100)}
        assert len(results) == 1


# =============================================================================
# VALIDATION
# =============================================================================


class TestValidateFraction:
    @pytest.mark.parametrize("value", [0, 0.0, 0.25, 1, 1.0])
    def test_valid(self, value) -> None:
        validate_fraction(value, "working_interest")

    @pytest.mark.parametrize("value", [-0.01, 1.01, 2])
    def test_out_of_range(self, value) -> None:
        with pytest.raises(ValueError, match="working_interest must be between 0 and 1"):
            validate_fraction(value, "working_interest")

    @pytest.mark.parametrize("value", [math.nan, math.inf])
    def test_non_finite(self, value: float) -> None:
        with pytest.raises(ValueError, match="not NaN/Inf"):
            validate_fraction(value, "working_interest")

    @pytest.mark.parametrize("value", ["0.5", None, True])
    def test_non_numeric(self, value) -> None:
        with pytest.raises(ValueError, match="must be a number"):
            validate_fraction(value, "working_interest")
