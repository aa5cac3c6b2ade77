"""Тесты оценки редкости, вероятности успеха и каталога признаков."""

import pytest
from pydantic import ValidationError

from src.core.domain.asset import AssetDescriptor, TraitCatalog, TraitType, TraitValue
from src.core.domain.fusion import FusionConfig
from src.core.errors import ErrorCode, InputValidationError, PreconditionError
from src.core.math.seeded_draw import SeedStream
from src.fusion.rarity import (
    average_rarity,
    fused_rarity,
    level_multiplier_bps,
    parent_boost,
    rarity_bonus_factor,
    rarity_score,
    success_probability_bps,
    traits_rarity_score,
)
from src.fusion.traits import consume_supply, select_weighted_value, validate_traits


@pytest.fixture
def catalog():
    """background: 70/25/5 (обязательный), eyes: 90/10."""
    return TraitCatalog(
        collection_id="col_a",
        trait_types=(
            TraitType(
                trait_type_id="background",
                is_required=True,
                values=(
                    TraitValue(trait_value_id="blue", rarity_weight=70),
                    TraitValue(trait_value_id="red", rarity_weight=25),
                    TraitValue(trait_value_id="gold", rarity_weight=5, available_supply=2),
                ),
            ),
            TraitType(
                trait_type_id="eyes",
                values=(
                    TraitValue(trait_value_id="normal", rarity_weight=90),
                    TraitValue(trait_value_id="laser", rarity_weight=10),
                ),
            ),
        ),
    )


def _asset(*traits: tuple[str, str], **kwargs) -> AssetDescriptor:
    return AssetDescriptor(asset_id=kwargs.pop("asset_id", "a1"), collection_id="col_a", traits=traits, **kwargs)


class TestRarityScore:
    """Тесты rarity_score."""

    def test_rarest_combination_scores_max(self, catalog):
        """Самые редкие значения во всех категориях → 10000."""
        assert rarity_score(_asset(("background", "gold"), ("eyes", "laser")), catalog) == 10_000

    def test_common_combination(self, catalog):
        """blue/normal: floor(10000 * (10/7 + 10/9) / 30) = 846."""
        assert rarity_score(_asset(("background", "blue"), ("eyes", "normal")), catalog) == 846

    def test_rarer_scores_higher(self, catalog):
        """Более редкое значение даёт большую оценку."""
        common = rarity_score(_asset(("background", "blue"), ("eyes", "normal")), catalog)
        uncommon = rarity_score(_asset(("background", "red"), ("eyes", "normal")), catalog)
        assert uncommon == 1_703
        assert common < uncommon < 10_000

    def test_cache_is_ignored(self, catalog):
        """rarity_score_cache не влияет на оценку."""
        asset = _asset(("background", "blue"), ("eyes", "normal"), rarity_score_cache=9_999)
        assert rarity_score(asset, catalog) == 846

    def test_trait_weights(self, catalog):
        """Вес категории 0 исключает её из оценки."""
        asset = _asset(("background", "blue"), ("eyes", "normal"))
        assert rarity_score(asset, catalog, trait_weights={"background": 0}) == 1_111

    def test_negative_trait_weight(self, catalog):
        """Отрицательный вес → InvalidTraitConfig."""
        with pytest.raises(InputValidationError) as exc_info:
            rarity_score(_asset(("eyes", "normal")), catalog, trait_weights={"eyes": -1})
        assert exc_info.value.code == ErrorCode.INVALID_TRAIT_CONFIG

    def test_no_traits(self, catalog):
        """Актив без признаков → 0."""
        assert rarity_score(_asset(), catalog) == 0

    @pytest.mark.parametrize("traits", [(("hat", "cap"),), (("eyes", "sleepy"),)])
    def test_unknown_trait(self, catalog, traits):
        """Неизвестная категория или значение → TraitNotFound."""
        with pytest.raises(InputValidationError) as exc_info:
            traits_rarity_score(traits, catalog)
        assert exc_info.value.code == ErrorCode.TRAIT_NOT_FOUND

    def test_zero_weight_value_is_rarest(self):
        """Значение с нулевым весом трактуется как самое редкое."""
        catalog = TraitCatalog(
            collection_id="c",
            trait_types=(
                TraitType(
                    trait_type_id="eyes",
                    values=(
                        TraitValue(trait_value_id="normal", rarity_weight=9),
                        TraitValue(trait_value_id="laser", rarity_weight=1),
                        TraitValue(trait_value_id="void", rarity_weight=0),
                    ),
                ),
            ),
        )
        assert traits_rarity_score((("eyes", "void"),), catalog) == 10_000

    def test_deterministic(self, catalog):
        """Одинаковая таблица частот → одинаковая оценка."""
        asset = _asset(("background", "red"), ("eyes", "laser"))
        assert rarity_score(asset, catalog) == rarity_score(asset, catalog)


class TestSuccessProbability:
    """Тесты вероятности успеха."""

    def test_average_rarity(self):
        assert average_rarity([100, 201]) == 150
        assert average_rarity([]) == 0

    def test_bonus_factor_linear(self):
        """0 → 0, 10000 → максимум."""
        assert rarity_bonus_factor(0, 2_000) == 0
        assert rarity_bonus_factor(5_000, 2_000) == 1_000
        assert rarity_bonus_factor(10_000, 2_000) == 2_000

    def test_probability_capped(self):
        """min(10000, base + bonus)."""
        config = FusionConfig(collection_id="c", base_success_probability_bps=9_500, max_inputs=3)
        assert success_probability_bps(config, 0) == 9_500
        assert success_probability_bps(config, 10_000) == 10_000

    def test_probability_adds_bonus(self):
        config = FusionConfig(
            collection_id="c", base_success_probability_bps=3_000, max_inputs=3, rarity_bonus_max_bps=1_000
        )
        assert success_probability_bps(config, 5_000) == 3_500


class TestFusedRarity:
    """Тесты редкости выходного актива."""

    @pytest.mark.parametrize("level,expected", [(0, 10_000), (1, 11_000), (2, 12_000), (3, 13_500), (4, 15_000), (9, 15_000)])
    def test_level_multipliers(self, level, expected):
        assert level_multiplier_bps(level) == expected

    def test_negative_level(self):
        with pytest.raises(ValueError):
            level_multiplier_bps(-1)

    def test_parent_boost(self):
        """min(2000, 0.6 * max + 0.4 * avg)."""
        assert parent_boost([1_000, 2_000]) == 1_800
        assert parent_boost([1_000, 3_000]) == 2_000
        assert parent_boost([]) == 0

    def test_fused_rarity_capped(self):
        """Результат не превышает 10000."""
        assert fused_rarity(1_000, 1, [500, 500]) == 1_100 + 500
        assert fused_rarity(9_000, 4, [10_000, 10_000]) == 10_000


class TestTraitCatalog:
    """Тесты каталога и валидации признаков."""

    def test_validate_ok(self, catalog):
        validate_traits((("background", "blue"), ("eyes", "laser")), catalog)

    def test_required_missing(self, catalog):
        """Нет обязательной категории → RequiredTraitMissing."""
        with pytest.raises(InputValidationError) as exc_info:
            validate_traits((("eyes", "laser"),), catalog)
        assert exc_info.value.code == ErrorCode.REQUIRED_TRAIT_MISSING

    def test_duplicate_types(self, catalog):
        with pytest.raises(InputValidationError) as exc_info:
            validate_traits((("background", "blue"), ("background", "red")), catalog)
        assert exc_info.value.code == ErrorCode.INVALID_TRAIT_CONFIG

    def test_supply_exhausted(self, catalog):
        """Исчерпанный supply → TraitSupplyExceeded (только при check_supply)."""
        exhausted = consume_supply(catalog, [("background", "gold"), ("background", "gold")])
        traits = (("background", "gold"),)
        with pytest.raises(PreconditionError) as exc_info:
            validate_traits(traits, exhausted)
        assert exc_info.value.code == ErrorCode.TRAIT_SUPPLY_EXCEEDED
        validate_traits(traits, exhausted, check_supply=False)

    def test_consume_supply(self, catalog):
        """used_supply растёт только у значений с лимитом."""
        updated = consume_supply(catalog, [("background", "gold"), ("eyes", "laser")])
        assert updated.get("background").find("gold").used_supply == 1
        assert updated.get("eyes").find("laser").used_supply == 0
        assert catalog.get("background").find("gold").used_supply == 0

    def test_consume_beyond_supply(self, catalog):
        with pytest.raises(PreconditionError):
            consume_supply(catalog, [("background", "gold")] * 3)

    def test_select_skips_exhausted(self, catalog):
        """Выборка никогда не возвращает исчерпанное значение."""
        exhausted = consume_supply(catalog, [("background", "gold")] * 2)
        stream = SeedStream(bytes(32))
        picks = {select_weighted_value(exhausted.get("background"), stream).trait_value_id for _ in range(300)}
        assert picks == {"blue", "red"}

    def test_select_nothing_available(self):
        trait_type = TraitType(
            trait_type_id="t",
            values=(TraitValue(trait_value_id="only", rarity_weight=1, available_supply=0),),
        )
        with pytest.raises(PreconditionError) as exc_info:
            select_weighted_value(trait_type, SeedStream(bytes(32)))
        assert exc_info.value.code == ErrorCode.TRAIT_SUPPLY_EXCEEDED

    def test_trait_type_requires_positive_weight(self):
        with pytest.raises(ValidationError):
            TraitType(trait_type_id="t", values=(TraitValue(trait_value_id="v", rarity_weight=0),))
