"""
Numerical Safeguards — safe math for working-interest fractions

Working interests are fractions in [0, 1] carried as float. Consensus decisions
compare interest-weighted shares against fixed thresholds, so every division and
threshold comparison in the approval workflow goes through this module.

CRITICAL INVARIANTS:
1. Division by zero never happens (fallback is returned instead)
2. NaN/Inf never propagate (replaced by fallback)
3. Threshold comparisons absorb float summation noise
4. All operations are deterministic
"""

import math
from typing import Final, Iterable

# =============================================================================
# EPSILON PARAMETERS
# =============================================================================

# General calculation epsilon
EPS_CALC: Final[float] = 1e-12

# Tolerance for comparing summed interest shares against a threshold.
# 0.1 + 0.2 + 0.2 must still count as a 50% majority.
EPS_INTEREST_SHARE: Final[float] = 1e-9


# =============================================================================
# SAFE DIVISION
# =============================================================================


def denom_safe_unsigned(value: float, eps: float = EPS_CALC) -> float:
    """
    Safe unsigned denominator.

    Args:
        value: raw denominator
        eps: minimum absolute value (default: EPS_CALC)

    Returns:
        max(abs(value), eps)

    Examples:
        >>> denom_safe_unsigned(-10.0, 1e-6)
        10.0
        >>> denom_safe_unsigned(0.0, 1e-6)
        1e-06
    """
    if eps <= 0:
        raise ValueError(f"eps must be positive, got {eps}")

    return max(abs(value), eps)


def safe_divide(
    numerator: float,
    denominator: float,
    eps: float = EPS_CALC,
    fallback: float = 0.0,
) -> float:
    """
    Division guarded against zero denominators and NaN/Inf.

    An exact zero denominator returns ``fallback``. Tiny non-zero
    denominators are clamped to ``eps`` (sign preserved).

    Args:
        numerator: numerator
        denominator: denominator
        eps: minimum absolute denominator
        fallback: value returned on division by zero

    Returns:
        numerator / denominator, or fallback

    Examples:
        >>> safe_divide(0.6, 1.0)
        0.6
        >>> safe_divide(0.6, 0.0)
        0.0
    """
    num_clean = sanitize_float(numerator, fallback=0.0)
    denom_raw = sanitize_float(denominator, fallback=0.0)

    if denom_raw == 0.0:
        return fallback

    denom_safe = denom_safe_unsigned(denom_raw, eps)
    if denom_raw < 0:
        denom_safe = -denom_safe

    return sanitize_float(num_clean / denom_safe, fallback=fallback)


# =============================================================================
# NaN/Inf SANITIZATION
# =============================================================================


def is_valid_float(value: float) -> bool:
    """True when value is finite (not NaN, not Inf)."""
    return math.isfinite(value)


def sanitize_float(value: float, fallback: float = 0.0) -> float:
    """
    Replace NaN/Inf with a fallback value.

    Examples:
        >>> sanitize_float(float('nan'))
        0.0
        >>> sanitize_float(float('-inf'), fallback=-1.0)
        -1.0
    """
    if is_valid_float(value):
        return value
    return fallback


# =============================================================================
# TOLERANT COMPARISONS
# =============================================================================


def meets_threshold(value: float, threshold: float, tol: float = EPS_INTEREST_SHARE) -> bool:
    """
    value >= threshold, absorbing float noise.

    Examples:
        >>> meets_threshold(0.1 + 0.2 + 0.2, 0.5)
        True
        >>> meets_threshold(0.49, 0.5)
        False
    """
    return value >= threshold - tol


def below_threshold(value: float, threshold: float, tol: float = EPS_INTEREST_SHARE) -> bool:
    """Strict complement of meets_threshold."""
    return not meets_threshold(value, threshold, tol)


# =============================================================================
# AGGREGATION
# =============================================================================


def sum_fractions(values: Iterable[float]) -> float:
    """
    Exactly rounded sum of fractions (math.fsum), NaN/Inf treated as 0.

    Examples:
        >>> sum_fractions([0.1] * 10)
        1.0
    """
    return math.fsum(sanitize_float(v) for v in values)


def interest_share(part: float, total: float) -> float:
    """
    Share of ``part`` in ``total``; 0.0 when total is zero.

    Examples:
        >>> interest_share(0.3, 0.6)
        0.5
        >>> interest_share(0.3, 0.0)
        0.0
    """
    return safe_divide(part, total, fallback=0.0)


# =============================================================================
# VALIDATION
# =============================================================================


def validate_fraction(value: float, name: str) -> None:
    """
    Validate that value is a finite fraction in [0, 1].

    Args:
        value: value to check
        name: parameter name for the error message

    Raises:
        ValueError: if value is NaN/Inf or outside [0, 1]
    """
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError(f"{name} must be a number, got {value!r}")

    if not is_valid_float(float(value)):
        raise ValueError(f"{name} must be a valid float (not NaN/Inf), got {value}")

    if value < 0 or value > 1:
        raise ValueError(f"{name} must be between 0 and 1, got {value}")
