"""Liquidity: пулы токенов проектов и возврат неактивной ликвидности."""

from .pool import LiquidityConfig, LiquidityPoolManager

__all__ = [
    "LiquidityConfig",
    "LiquidityPoolManager",
]
