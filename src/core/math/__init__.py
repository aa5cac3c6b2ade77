"""
Core math modules

Целочисленные fixed-point примитивы и детерминированные выборки из seed.
"""

# Fixed-point arithmetic
from src.core.math.fixed_point import (
    apply_bonus_bps,
    apply_bps,
    checked_add,
    checked_mul,
    checked_sub,
    div_toward_zero,
    mul_div,
    rescale,
    rescale_by_exponent,
)

# Seeded draws
from src.core.math.seeded_draw import (
    SEED_LENGTH,
    SeedStream,
    derive_seed,
    validate_seed,
)

__all__ = [
    # Fixed-point
    "checked_mul",
    "checked_add",
    "checked_sub",
    "div_toward_zero",
    "mul_div",
    "apply_bps",
    "apply_bonus_bps",
    "rescale",
    "rescale_by_exponent",
    # Seeded draws
    "SEED_LENGTH",
    "SeedStream",
    "derive_seed",
    "validate_seed",
]
