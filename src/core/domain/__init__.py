"""
Domain models and value objects.

Contains settlement entities: PriceRecord, Escrow, AssetDescriptor, FusionConfig, FeeSplit,
Project, LiquidityPool.
"""

from src.core.domain.asset import AssetDescriptor, AssetStatus, TraitCatalog, TraitType, TraitValue
from src.core.domain.effects import EffectKind, TransferEffect
from src.core.domain.escrow import TERMINAL_STATES, Escrow, EscrowState
from src.core.domain.fees import FeeBreakdown, FeeSplit
from src.core.domain.fusion import (
    FusionConfig,
    FusionOutcome,
    FusionStatus,
    InheritanceStrategy,
    TraitInheritanceRule,
)
from src.core.domain.price import ExternalFeedQuote, PriceRecord, PriceSource
from src.core.domain.project import LiquidityPool, Project
from src.core.domain.results import TransitionResult
from src.core.domain.units import (
    BPS_DENOMINATOR,
    BPS_MAX,
    DEFAULT_TOKEN_DECIMALS,
    U64_MAX,
    U128_MAX,
    USD_DECIMALS,
    USD_SCALE,
    ensure_u64,
    fixed_to_display,
    token_scale,
    usd_to_fixed,
    validate_bps,
    validate_decimals,
)

__all__ = [
    # Units module
    "USD_DECIMALS",
    "USD_SCALE",
    "DEFAULT_TOKEN_DECIMALS",
    "BPS_DENOMINATOR",
    "BPS_MAX",
    "U64_MAX",
    "U128_MAX",
    "validate_bps",
    "validate_decimals",
    "ensure_u64",
    "usd_to_fixed",
    "fixed_to_display",
    "token_scale",
    # Price
    "PriceRecord",
    "PriceSource",
    "ExternalFeedQuote",
    # Escrow
    "Escrow",
    "EscrowState",
    "TERMINAL_STATES",
    # Assets
    "AssetDescriptor",
    "AssetStatus",
    "TraitCatalog",
    "TraitType",
    "TraitValue",
    # Fusion
    "FusionConfig",
    "FusionOutcome",
    "FusionStatus",
    "InheritanceStrategy",
    "TraitInheritanceRule",
    # Project
    "Project",
    "LiquidityPool",
    # Fees
    "FeeSplit",
    "FeeBreakdown",
    # Effects and results
    "EffectKind",
    "TransferEffect",
    "TransitionResult",
]
