"""
Core math modules for the ledger core.

Numerical primitives for working-interest fractions with stability guarantees.
"""

from src.core.math.numerical_safeguards import (
    # Epsilon constants
    EPS_CALC,
    EPS_INTEREST_SHARE,
    # Safe division
    denom_safe_unsigned,
    safe_divide,
    # NaN/Inf sanitization
    is_valid_float,
    sanitize_float,
    # Tolerant comparisons
    below_threshold,
    meets_threshold,
    # Aggregation
    interest_share,
    sum_fractions,
    # Validation
    validate_fraction,
)

__all__ = [
    # Epsilon constants
    "EPS_CALC",
    "EPS_INTEREST_SHARE",
    # Safe division
    "denom_safe_unsigned",
    "safe_divide",
    # NaN/Inf sanitization
    "is_valid_float",
    "sanitize_float",
    # Tolerant comparisons
    "below_threshold",
    "meets_threshold",
    # Aggregation
    "interest_share",
    "sum_fractions",
    # Validation
    "validate_fraction",
]
