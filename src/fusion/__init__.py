"""Fusion: редкость, вероятность успеха и наследование признаков."""

from .engine import FusionEngine, fused_asset_id
from .rarity import (
    fused_rarity,
    level_multiplier_bps,
    parent_boost,
    rarity_bonus_factor,
    rarity_score,
    success_probability_bps,
    traits_rarity_score,
)
from .traits import consume_supply, select_weighted_value, validate_traits

__all__ = [
    "FusionEngine",
    "fused_asset_id",
    "rarity_score",
    "traits_rarity_score",
    "rarity_bonus_factor",
    "success_probability_bps",
    "level_multiplier_bps",
    "parent_boost",
    "fused_rarity",
    "validate_traits",
    "select_weighted_value",
    "consume_supply",
]
