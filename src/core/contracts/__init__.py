"""
Contract Validation Module

Валидация payload диспетчера по JSON Schema контрактам.
"""

from .validators import (
    AssetDescriptorValidator,
    ContractValidator,
    EscrowValidator,
    ExternalFeedQuoteValidator,
    FeeSplitValidator,
    FusionConfigValidator,
    PriceRecordValidator,
    SchemaLoader,
    load_asset_descriptor,
    load_escrow,
    load_external_feed_quote,
    load_fee_split,
    load_fusion_config,
    load_price_record,
    validate_asset_descriptor,
    validate_escrow,
    validate_external_feed_quote,
    validate_fee_split,
    validate_fusion_config,
    validate_price_record,
)

__all__ = [
    # Classes
    "SchemaLoader",
    "ContractValidator",
    "PriceRecordValidator",
    "ExternalFeedQuoteValidator",
    "EscrowValidator",
    "AssetDescriptorValidator",
    "FusionConfigValidator",
    "FeeSplitValidator",
    # Functions
    "validate_price_record",
    "validate_external_feed_quote",
    "validate_escrow",
    "validate_asset_descriptor",
    "validate_fusion_config",
    "validate_fee_split",
    "load_price_record",
    "load_external_feed_quote",
    "load_escrow",
    "load_asset_descriptor",
    "load_fusion_config",
    "load_fee_split",
]
