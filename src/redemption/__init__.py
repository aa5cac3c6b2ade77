"""Redemption: конверсия USD ↔ токены и погашение escrow по цене оракула."""

from .engine import (
    RedemptionConfig,
    RedemptionEngine,
    final_redemption_usd,
    max_round_trip_loss_tokens,
    max_round_trip_loss_usd,
    quote_tokens_to_usd,
    quote_usd_to_tokens,
)

__all__ = [
    "RedemptionEngine",
    "RedemptionConfig",
    "quote_usd_to_tokens",
    "quote_tokens_to_usd",
    "final_redemption_usd",
    "max_round_trip_loss_usd",
    "max_round_trip_loss_tokens",
]
