"""
Unit tests для доменных моделей: PriceRecord, Escrow, AssetDescriptor,
FusionConfig, TransferEffect, TransitionResult и таксономии ошибок
"""

import pytest
from pydantic import ValidationError

from src.core.domain.asset import AssetDescriptor, AssetStatus, TraitCatalog, TraitType, TraitValue
from src.core.domain.effects import EffectKind, burn, mint, transfer
from src.core.domain.escrow import Escrow, EscrowState
from src.core.domain.fusion import FusionConfig, TraitInheritanceRule
from src.core.domain.price import PriceRecord, PriceSource
from src.core.domain.results import TransitionResult
from src.core.errors import (
    AuthorizationError,
    ErrorCategory,
    ErrorCode,
    FixedPointArithmeticError,
    InputValidationError,
    PreconditionError,
    SettlementError,
)


# =============================================================================
# PRICE RECORD
# =============================================================================


class TestPriceRecord:
    """Тесты PriceRecord."""

    def test_valid(self):
        record = PriceRecord(unit_price_usd=10_500_000, source=PriceSource.MANUAL, last_update_unix_seconds=100)
        assert record.age_seconds(160) == 60

    def test_zero_price_rejected(self):
        with pytest.raises(ValidationError):
            PriceRecord(unit_price_usd=0, source=PriceSource.MANUAL, last_update_unix_seconds=0)

    def test_immutable(self):
        record = PriceRecord(unit_price_usd=1, source=PriceSource.DEX_POOL, last_update_unix_seconds=0)
        with pytest.raises(ValidationError):
            record.unit_price_usd = 2


# =============================================================================
# ESCROW
# =============================================================================


class TestEscrow:
    """Тесты Escrow."""

    @pytest.fixture
    def escrow_kwargs(self):
        return {
            "escrow_id": "e1",
            "project_id": "p1",
            "owner": "alice",
            "asset_ref": "nft_1",
            "amount_deposited": 10,
            "vesting_start": 100,
            "vesting_duration": 50,
            "cooldown_until": 200,
            "state": EscrowState.VESTING,
        }

    def test_properties(self, escrow_kwargs):
        escrow = Escrow(**escrow_kwargs)
        assert escrow.vesting_end == 150
        assert not escrow.is_terminal

    @pytest.mark.parametrize("state", [EscrowState.RELEASED, EscrowState.CANCELLED])
    def test_terminal_states(self, escrow_kwargs, state):
        escrow_kwargs["state"] = state
        assert Escrow(**escrow_kwargs).is_terminal

    def test_cooldown_before_vesting_end(self, escrow_kwargs):
        """cooldown_until < vesting_end отклоняется."""
        escrow_kwargs["cooldown_until"] = 149
        with pytest.raises(ValidationError):
            Escrow(**escrow_kwargs)

    def test_zero_amount(self, escrow_kwargs):
        escrow_kwargs["amount_deposited"] = 0
        with pytest.raises(ValidationError):
            Escrow(**escrow_kwargs)


# =============================================================================
# ASSET / CATALOG / FUSION CONFIG
# =============================================================================


class TestAssetDescriptor:
    """Тесты AssetDescriptor и каталога."""

    def test_defaults(self):
        asset = AssetDescriptor(asset_id="a1", collection_id="c1", traits=(("eyes", "laser"),))
        assert asset.status == AssetStatus.ACTIVE
        assert asset.fusion_level == 0
        assert asset.trait_value("eyes") == "laser"
        assert asset.trait_value("hat") is None

    def test_duplicate_trait_types(self):
        with pytest.raises(ValidationError):
            AssetDescriptor(asset_id="a1", collection_id="c1", traits=(("eyes", "a"), ("eyes", "b")))

    def test_rarity_cache_bounds(self):
        with pytest.raises(ValidationError):
            AssetDescriptor(asset_id="a1", collection_id="c1", rarity_score_cache=10_001)

    def test_trait_value_exhaustion(self):
        assert TraitValue(trait_value_id="v", rarity_weight=1, available_supply=1, used_supply=1).is_exhausted
        assert not TraitValue(trait_value_id="v", rarity_weight=1).is_exhausted

    def test_catalog_lookup(self):
        trait_type = TraitType(trait_type_id="eyes", values=(TraitValue(trait_value_id="laser", rarity_weight=1),))
        catalog = TraitCatalog(collection_id="c1", trait_types=(trait_type,))
        assert catalog.get("eyes") is trait_type
        assert catalog.get("hat") is None
        assert trait_type.find("laser").rarity_weight == 1
        assert trait_type.total_weight == 1

    def test_catalog_duplicate_types(self):
        trait_type = TraitType(trait_type_id="eyes", values=(TraitValue(trait_value_id="laser", rarity_weight=1),))
        with pytest.raises(ValidationError):
            TraitCatalog(collection_id="c1", trait_types=(trait_type, trait_type))

    def test_duplicate_trait_values(self):
        with pytest.raises(ValidationError):
            TraitType(
                trait_type_id="eyes",
                values=(
                    TraitValue(trait_value_id="laser", rarity_weight=1),
                    TraitValue(trait_value_id="laser", rarity_weight=2),
                ),
            )


class TestFusionConfig:
    """Тесты FusionConfig."""

    def test_min_above_max(self):
        with pytest.raises(ValidationError):
            FusionConfig(collection_id="c", base_success_probability_bps=1, min_inputs=4, max_inputs=3)

    def test_bps_out_of_range(self):
        with pytest.raises(ValidationError):
            FusionConfig(collection_id="c", base_success_probability_bps=10_001, max_inputs=3)

    def test_duplicate_rule_slots(self):
        rule = TraitInheritanceRule(trait_type_id="eyes")
        with pytest.raises(ValidationError):
            FusionConfig(collection_id="c", base_success_probability_bps=1, max_inputs=3, trait_inheritance_rules=(rule, rule))

    def test_accepts_collection(self):
        config = FusionConfig(
            collection_id="a",
            base_success_probability_bps=1,
            max_inputs=3,
            allow_cross_collection=True,
            compatible_collections=("b",),
        )
        assert config.accepts_collection("a")
        assert config.accepts_collection("b")
        assert not config.accepts_collection("c")

        strict = config.model_copy(update={"allow_cross_collection": False})
        assert not strict.accepts_collection("b")


# =============================================================================
# EFFECTS / RESULTS / ERRORS
# =============================================================================


class TestEffects:
    """Тесты TransferEffect."""

    def test_constructors(self):
        assert transfer("TOKEN", 5, "a", "b").kind == EffectKind.TRANSFER
        burned = burn("nft_1", "alice")
        assert (burned.kind, burned.amount, burned.source, burned.destination) == (EffectKind.BURN, 1, "alice", "")
        minted = mint("nft_2", "alice")
        assert (minted.kind, minted.source, minted.destination) == (EffectKind.MINT, "", "alice")

    def test_negative_amount(self):
        with pytest.raises(ValidationError):
            transfer("TOKEN", -1, "a", "b")


class TestTransitionResult:
    """Тесты TransitionResult."""

    def test_ok(self):
        result = TransitionResult.ok("new", effects=[transfer("T", 1, "a", "b")], reason="done", token_amount=5)
        assert result.accepted
        assert isinstance(result.effects, tuple)
        assert result.values == {"token_amount": 5}
        assert result.error_code is None
        assert result.error_category is None

    def test_rejected(self):
        error = PreconditionError(ErrorCode.NOT_READY, "still vesting")
        result = TransitionResult.rejected("old", error)
        assert not result.accepted
        assert result.state == "old"
        assert result.effects == ()
        assert result.reason == "NotReady"
        assert result.details == "still vesting"
        assert result.error_code == ErrorCode.NOT_READY
        assert result.error_category == ErrorCategory.PRECONDITION


class TestErrors:
    """Тесты таксономии ошибок."""

    @pytest.mark.parametrize(
        "cls,category",
        [
            (InputValidationError, ErrorCategory.VALIDATION),
            (PreconditionError, ErrorCategory.PRECONDITION),
            (AuthorizationError, ErrorCategory.AUTHORIZATION),
            (FixedPointArithmeticError, ErrorCategory.ARITHMETIC),
        ],
    )
    def test_categories(self, cls, category):
        error = cls(ErrorCode.ZERO_AMOUNT)
        assert isinstance(error, SettlementError)
        assert error.category == category
        assert error.message == "ZeroAmount"
        assert str(error) == "ZeroAmount: ZeroAmount"
