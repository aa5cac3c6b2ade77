"""Oracle: цена токена проекта и политика свежести.

- PriceOracle: три источника цены (manual, DEX pool, external feed)
- StalenessPolicy: redemption lock по возрасту записи
"""

from .price_oracle import (
    ExternalPriceFeed,
    OracleConfig,
    PriceOracle,
    confidence_within,
    price_from_reserves,
)
from .staleness import (
    DEFAULT_MAX_AGE_SECONDS,
    LP_INACTIVITY_SECONDS,
    StalenessPolicy,
    is_pool_inactive,
    is_stale,
    seconds_until_stale,
)

__all__ = [
    "PriceOracle",
    "OracleConfig",
    "ExternalPriceFeed",
    "price_from_reserves",
    "confidence_within",
    "StalenessPolicy",
    "is_stale",
    "seconds_until_stale",
    "is_pool_inactive",
    "DEFAULT_MAX_AGE_SECONDS",
    "LP_INACTIVITY_SECONDS",
]
