"""
Rarity: оценка редкости актива и вероятность успеха fusion

rarity_score = взвешенная сумма 1 / populationFrequency(trait) по признакам
актива, нормализованная к [0, 10000] (выше = реже):

    inv(value)  = total_weight(type) / rarity_weight(value)
    max_inv     = total_weight(type) / min_positive_weight(type)
    score       = floor(10000 * Σ w_t·inv_t / Σ w_t·max_inv_t)

Значение с нулевым весом трактуется как самое редкое (inv = max_inv).
Вычисление ведётся в рациональных числах (Fraction), float не используется,
поэтому оценка детерминирована для одной и той же таблицы частот.

КРИТИЧЕСКИЕ ИНВАРИАНТЫ:
1. rarity_score_cache никогда не используется как источник истины
2. 0 <= score <= 10000
"""

from fractions import Fraction
from typing import Final, Mapping, Optional, Sequence

from src.core.domain.asset import AssetDescriptor, TraitCatalog, TraitType
from src.core.domain.fusion import FusionConfig
from src.core.domain.units import BPS_MAX
from src.core.errors import ErrorCode, InputValidationError


RARITY_SCALE: Final[int] = 10_000

# Множители редкости по уровню fusion (bps): 0, 1, 2, 3, 4+
LEVEL_MULTIPLIERS_BPS: Final[tuple[int, ...]] = (10_000, 11_000, 12_000, 13_500, 15_000)

# Верхняя граница надбавки от родителей
MAX_PARENT_BOOST: Final[int] = 2_000


# =============================================================================
# RARITY SCORE
# =============================================================================


def _inverse_frequency(trait_type: TraitType, trait_value_id: str) -> tuple[Fraction, Fraction]:
    """(inv, max_inv) для значения признака."""
    value = trait_type.find(trait_value_id)
    if value is None:
        raise InputValidationError(
            ErrorCode.TRAIT_NOT_FOUND,
            f"value {trait_value_id!r} not in trait type {trait_type.trait_type_id!r}",
        )
    total = trait_type.total_weight
    min_positive = min(v.rarity_weight for v in trait_type.values if v.rarity_weight > 0)
    max_inv = Fraction(total, min_positive)
    if value.rarity_weight == 0:
        return max_inv, max_inv
    return Fraction(total, value.rarity_weight), max_inv


def traits_rarity_score(
    traits: Sequence[tuple[str, str]],
    catalog: TraitCatalog,
    trait_weights: Optional[Mapping[str, int]] = None,
) -> int:
    """
    Редкость набора признаков в [0, 10000].

    Args:
        traits: пары (trait_type_id, trait_value_id)
        catalog: таблица частот коллекции
        trait_weights: вес категории (по умолчанию 1)

    Raises:
        InputValidationError: TraitNotFound, InvalidTraitConfig (отрицательный вес)
    """
    weights = trait_weights or {}
    numerator = Fraction(0)
    denominator = Fraction(0)
    for trait_type_id, trait_value_id in traits:
        trait_type = catalog.get(trait_type_id)
        if trait_type is None:
            raise InputValidationError(
                ErrorCode.TRAIT_NOT_FOUND,
                f"trait type {trait_type_id!r} not in catalog {catalog.collection_id!r}",
            )
        weight = weights.get(trait_type_id, 1)
        if weight < 0:
            raise InputValidationError(
                ErrorCode.INVALID_TRAIT_CONFIG, f"negative weight {weight} for {trait_type_id!r}"
            )
        inv, max_inv = _inverse_frequency(trait_type, trait_value_id)
        numerator += weight * inv
        denominator += weight * max_inv

    if denominator == 0:
        return 0
    return int(numerator * RARITY_SCALE / denominator)


def rarity_score(
    asset: AssetDescriptor,
    catalog: TraitCatalog,
    trait_weights: Optional[Mapping[str, int]] = None,
) -> int:
    """
    Редкость актива (пересчитывается из каталога, кэш игнорируется).

    Examples:
        Актив, у которого каждый признак имеет минимальную частоту
        в своей категории, получает 10000.
    """
    return traits_rarity_score(asset.traits, catalog, trait_weights)


def average_rarity(scores: Sequence[int]) -> int:
    """floor(mean(scores)); 0 для пустой последовательности."""
    if not scores:
        return 0
    return sum(scores) // len(scores)


# =============================================================================
# SUCCESS PROBABILITY
# =============================================================================


def rarity_bonus_factor(avg_rarity: int, rarity_bonus_max_bps: int) -> int:
    """
    Надбавка к вероятности: линейно от 0 (avg=0) до rarity_bonus_max_bps (avg=10000).

    Examples:
        >>> rarity_bonus_factor(5_000, 2_000)
        1000
    """
    return avg_rarity * rarity_bonus_max_bps // RARITY_SCALE


def success_probability_bps(config: FusionConfig, avg_rarity: int) -> int:
    """min(10000, base_success_probability_bps + rarity_bonus_factor(avg))."""
    bonus = rarity_bonus_factor(avg_rarity, config.rarity_bonus_max_bps)
    return min(BPS_MAX, config.base_success_probability_bps + bonus)


# =============================================================================
# FUSED RARITY
# =============================================================================


def level_multiplier_bps(fusion_level: int) -> int:
    """Множитель редкости для уровня fusion (уровни >= 4 используют последний)."""
    if fusion_level < 0:
        raise ValueError(f"fusion_level must be non-negative, got {fusion_level}")
    return LEVEL_MULTIPLIERS_BPS[min(fusion_level, len(LEVEL_MULTIPLIERS_BPS) - 1)]


def parent_boost(parent_scores: Sequence[int]) -> int:
    """
    min(2000, 0.6 * max + 0.4 * avg) по редкостям родителей.

    Examples:
        >>> parent_boost([1_000, 3_000])
        2000
        >>> parent_boost([1_000, 2_000])
        1800
    """
    if not parent_scores:
        return 0
    count = len(parent_scores)
    weighted = 6 * max(parent_scores) * count + 4 * sum(parent_scores)
    return min(MAX_PARENT_BOOST, weighted // (10 * count))


def fused_rarity(base_score: int, fusion_level: int, parent_scores: Sequence[int]) -> int:
    """Редкость выходного актива: min(10000, base * multiplier + boost)."""
    scaled = base_score * level_multiplier_bps(fusion_level) // BPS_MAX
    return min(RARITY_SCALE, scaled + parent_boost(parent_scores))
