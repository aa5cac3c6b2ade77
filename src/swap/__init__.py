"""Swap: покупка NFT проекта за токены из пула ликвидности."""

from .engine import SwapConfig, SwapEngine, SwapRequest, discounted_amount

__all__ = [
    "SwapConfig",
    "SwapEngine",
    "SwapRequest",
    "discounted_amount",
]
