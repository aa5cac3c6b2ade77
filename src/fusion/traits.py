"""
Traits: валидация, выборка и учёт supply признаков коллекции

- validate_traits: все категории существуют, обязательные присутствуют,
  лимиты supply не превышены
- select_weighted_value: выборка значения из распределения коллекции
  по seed stream (исчерпанные значения пропускаются)
- consume_supply: новый каталог с увеличенным used_supply
"""

import logging
from collections import Counter
from typing import Iterable, Sequence

from src.core.domain.asset import TraitCatalog, TraitType, TraitValue
from src.core.errors import ErrorCode, InputValidationError, PreconditionError
from src.core.math.seeded_draw import SeedStream


logger = logging.getLogger(__name__)


def validate_traits(
    traits: Sequence[tuple[str, str]],
    catalog: TraitCatalog,
    check_supply: bool = True,
) -> None:
    """
    Проверка набора признаков против каталога.

    Args:
        traits: пары (trait_type_id, trait_value_id)
        catalog: каталог коллекции
        check_supply: проверять лимиты supply (для выпуска нового актива)

    Raises:
        InputValidationError: InvalidTraitConfig, TraitNotFound, RequiredTraitMissing
        PreconditionError: TraitSupplyExceeded
    """
    type_ids = [trait_type_id for trait_type_id, _ in traits]
    if len(type_ids) != len(set(type_ids)):
        raise InputValidationError(ErrorCode.INVALID_TRAIT_CONFIG, f"duplicate trait types in {type_ids}")

    for trait_type_id, trait_value_id in traits:
        trait_type = catalog.get(trait_type_id)
        if trait_type is None:
            raise InputValidationError(ErrorCode.TRAIT_NOT_FOUND, f"unknown trait type {trait_type_id!r}")
        value = trait_type.find(trait_value_id)
        if value is None:
            raise InputValidationError(
                ErrorCode.TRAIT_NOT_FOUND, f"unknown value {trait_value_id!r} for {trait_type_id!r}"
            )
        if check_supply and value.is_exhausted:
            raise PreconditionError(
                ErrorCode.TRAIT_SUPPLY_EXCEEDED,
                f"{trait_type_id}={trait_value_id} supply {value.available_supply} exhausted",
            )

    present = set(type_ids)
    for trait_type in catalog.trait_types:
        if trait_type.is_required and trait_type.trait_type_id not in present:
            raise InputValidationError(
                ErrorCode.REQUIRED_TRAIT_MISSING, f"required trait {trait_type.trait_type_id!r} missing"
            )


def available_values(trait_type: TraitType) -> list[TraitValue]:
    """Значения с положительным весом и неисчерпанным supply (порядок каталога)."""
    return [v for v in trait_type.values if v.rarity_weight > 0 and not v.is_exhausted]


def select_weighted_value(trait_type: TraitType, stream: SeedStream) -> TraitValue:
    """
    Выборка значения пропорционально rarity_weight.

    Raises:
        PreconditionError: TraitSupplyExceeded если доступных значений нет
    """
    candidates = available_values(trait_type)
    if not candidates:
        raise PreconditionError(
            ErrorCode.TRAIT_SUPPLY_EXCEEDED,
            f"no available values left for trait type {trait_type.trait_type_id!r}",
        )
    index = stream.weighted_index([v.rarity_weight for v in candidates])
    logger.debug("rerolled %s -> %s", trait_type.trait_type_id, candidates[index].trait_value_id)
    return candidates[index]


def consume_supply(catalog: TraitCatalog, consumed: Iterable[tuple[str, str]]) -> TraitCatalog:
    """
    Новый каталог с учётом выпущенных значений.

    Значения без лимита (available_supply=None) не отслеживаются.

    Raises:
        PreconditionError: TraitSupplyExceeded если лимит будет превышен
    """
    counts = Counter(consumed)
    if not counts:
        return catalog

    new_types = []
    for trait_type in catalog.trait_types:
        new_values = []
        for value in trait_type.values:
            used = counts.get((trait_type.trait_type_id, value.trait_value_id), 0)
            if used and value.available_supply is not None:
                if value.used_supply + used > value.available_supply:
                    raise PreconditionError(
                        ErrorCode.TRAIT_SUPPLY_EXCEEDED,
                        f"{trait_type.trait_type_id}={value.trait_value_id} would exceed "
                        f"supply {value.available_supply}",
                    )
                value = value.model_copy(update={"used_supply": value.used_supply + used})
            new_values.append(value)
        new_types.append(trait_type.model_copy(update={"values": tuple(new_values)}))
    return catalog.model_copy(update={"trait_types": tuple(new_types)})
