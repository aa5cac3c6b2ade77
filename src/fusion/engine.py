"""FusionEngine: вероятностное слияние N активов в один.

attempt_fusion(inputs, config, randomness, now):
1. Проверки (без изменения состояния при отказе):
   FusionInactive, TooFewInputs / TooManyInputs, DuplicateInput, InvalidSeed,
   AssetNotActive, CollectionMismatch, AssetInCooldown
2. avg_rarity = mean(rarity_score(i)), кэш редкости не используется
3. success_probability_bps = min(10000, base + rarity_bonus_factor(avg))
4. draw = первая выборка seed stream в [0, 10000)
5. draw < probability → SUCCESS: все входы BURNED, выпуск актива с
   признаками по правилам наследования (те же выборки stream, без повторного
   потребления seed)
   иначе → FAILURE: floor(n * consolation_burn_bps / 10000) входов BURNED,
   остальные без изменений, выпуска нет

FAILURE является принятым переходом, а не ошибкой.
"""

import hashlib
import logging
from typing import Mapping, Optional, Sequence

from src.core.domain.asset import AssetDescriptor, AssetStatus, TraitCatalog, TraitType
from src.core.domain.effects import TransferEffect, burn, mint
from src.core.domain.fusion import (
    FusionConfig,
    FusionOutcome,
    FusionStatus,
    InheritanceStrategy,
    TraitInheritanceRule,
)
from src.core.domain.results import TransitionResult
from src.core.domain.units import BPS_MAX
from src.core.errors import (
    ErrorCode,
    InputValidationError,
    PreconditionError,
    SettlementError,
)
from src.core.math.seeded_draw import SeedStream, validate_seed
from src.fusion.rarity import (
    average_rarity,
    fused_rarity,
    rarity_score,
    success_probability_bps,
    traits_rarity_score,
)
from src.fusion.traits import available_values, consume_supply, select_weighted_value, validate_traits


logger = logging.getLogger(__name__)

MIN_FUSION_INPUTS = 2


class FusionEngine:
    """Fusion активов коллекции.

    Engine не хранит состояние активов: он получает входы и возвращает
    TransitionResult, где state = входы после перехода (в исходном порядке),
    values["outcome"] = FusionOutcome, values["catalog"] = каталог с учётом
    выпущенного supply.

    Usage:
        engine = FusionEngine(catalog)
        result = engine.attempt_fusion([a, b], config, randomness=seed, now=t)
        if result.accepted and result.values["outcome"].succeeded:
            minted = result.values["outcome"].minted
    """

    def __init__(
        self,
        catalog: TraitCatalog,
        trait_weights: Optional[Mapping[str, int]] = None,
        compatible_catalogs: Sequence[TraitCatalog] = (),
    ):
        """
        Args:
            catalog: каталог коллекции выходного актива
            trait_weights: веса категорий для rarity_score
            compatible_catalogs: каталоги совместимых коллекций (cross-collection)
        """
        self.catalog = catalog
        self.trait_weights = dict(trait_weights or {})
        self._catalogs = {c.collection_id: c for c in compatible_catalogs}
        self._catalogs[catalog.collection_id] = catalog

    # -------------------------------------------------------------------------
    # QUERIES
    # -------------------------------------------------------------------------

    def catalog_for(self, collection_id: str) -> TraitCatalog:
        catalog = self._catalogs.get(collection_id)
        if catalog is None:
            raise InputValidationError(
                ErrorCode.TRAIT_NOT_FOUND, f"no trait catalog for collection {collection_id!r}"
            )
        return catalog

    def rarity_score(self, asset: AssetDescriptor) -> int:
        """Редкость актива по каталогу его коллекции."""
        return rarity_score(asset, self.catalog_for(asset.collection_id), self.trait_weights)

    def success_probability(self, inputs: Sequence[AssetDescriptor], config: FusionConfig) -> int:
        """Вероятность успеха (bps) без выполнения fusion."""
        scores = [self.rarity_score(asset) for asset in inputs]
        return success_probability_bps(config, average_rarity(scores))

    @staticmethod
    def remaining_cooldown(asset: AssetDescriptor, now: int) -> int:
        """Секунд до окончания cooldown актива (0 если его нет)."""
        if asset.cooldown_until is None:
            return 0
        return max(0, asset.cooldown_until - now)

    # -------------------------------------------------------------------------
    # ATTEMPT
    # -------------------------------------------------------------------------

    def attempt_fusion(
        self,
        inputs: Sequence[AssetDescriptor],
        config: FusionConfig,
        randomness: bytes,
        now: int,
    ) -> TransitionResult[tuple[AssetDescriptor, ...]]:
        """Попытка fusion.

        Args:
            inputs: входные активы
            config: конфигурация fusion коллекции
            randomness: 32-байтный seed
            now: текущее время (для cooldown)

        Returns:
            TransitionResult; при отказе state = исходные входы без изменений
        """
        original = tuple(inputs)
        try:
            return self._attempt(original, config, randomness, now)
        except SettlementError as e:
            logger.warning(
                "fusion rejected collection=%s inputs=%d code=%s: %s",
                config.collection_id,
                len(original),
                e.code.value,
                e.message,
            )
            return TransitionResult.rejected(original, e)

    def _attempt(
        self,
        inputs: tuple[AssetDescriptor, ...],
        config: FusionConfig,
        randomness: bytes,
        now: int,
    ) -> TransitionResult[tuple[AssetDescriptor, ...]]:
        self._validate_inputs(inputs, config, now)
        seed = validate_seed(randomness)
        if config.collection_id != self.catalog.collection_id:
            raise InputValidationError(
                ErrorCode.INVALID_TRAIT_CONFIG,
                f"config collection {config.collection_id!r} does not match catalog "
                f"{self.catalog.collection_id!r}",
            )

        scores = [self.rarity_score(asset) for asset in inputs]
        avg = average_rarity(scores)
        probability = success_probability_bps(config, avg)

        stream = SeedStream(seed)
        draw = stream.uniform(BPS_MAX)
        logger.debug("fusion draw=%d probability_bps=%d avg_rarity=%d", draw, probability, avg)

        summary = {"success_probability_bps": probability, "draw": draw, "average_rarity": avg}
        if draw < probability:
            outcome, catalog = self._succeed(inputs, config, seed, stream, scores, now, summary)
        else:
            outcome, catalog = self._fail(inputs, config, stream, summary), self.catalog

        burned_ids = {asset.asset_id for asset in outcome.burned}
        state = tuple(
            asset.model_copy(update={"status": AssetStatus.BURNED}) if asset.asset_id in burned_ids else asset
            for asset in inputs
        )
        logger.info(
            "fusion %s collection=%s burned=%d minted=%s draw=%d/%d",
            outcome.status.value,
            config.collection_id,
            len(outcome.burned),
            outcome.minted.asset_id if outcome.minted else None,
            draw,
            probability,
        )
        return TransitionResult.ok(
            state,
            effects=outcome.effects,
            reason=f"fusion_{outcome.status.value.lower()}",
            details=f"draw={draw} probability_bps={probability}",
            outcome=outcome,
            catalog=catalog,
        )

    def _validate_inputs(self, inputs: tuple[AssetDescriptor, ...], config: FusionConfig, now: int) -> None:
        if now < 0:
            raise InputValidationError(ErrorCode.INVALID_DURATION, f"negative timestamp {now}")
        if not config.is_active:
            raise PreconditionError(ErrorCode.FUSION_INACTIVE, f"fusion disabled for {config.collection_id}")
        minimum = max(MIN_FUSION_INPUTS, config.min_inputs)
        if len(inputs) < minimum:
            raise InputValidationError(ErrorCode.TOO_FEW_INPUTS, f"need at least {minimum} inputs, got {len(inputs)}")
        if len(inputs) > config.max_inputs:
            raise InputValidationError(
                ErrorCode.TOO_MANY_INPUTS, f"at most {config.max_inputs} inputs allowed, got {len(inputs)}"
            )
        ids = [asset.asset_id for asset in inputs]
        if len(ids) != len(set(ids)):
            raise InputValidationError(ErrorCode.DUPLICATE_INPUT, f"duplicate inputs in {ids}")

        for asset in inputs:
            if asset.status != AssetStatus.ACTIVE:
                raise PreconditionError(
                    ErrorCode.ASSET_NOT_ACTIVE, f"asset {asset.asset_id} is {asset.status.value}"
                )
            if not config.accepts_collection(asset.collection_id):
                raise InputValidationError(
                    ErrorCode.COLLECTION_MISMATCH,
                    f"asset {asset.asset_id} from {asset.collection_id} not fusable into {config.collection_id}",
                )
            if self.remaining_cooldown(asset, now) > 0:
                raise PreconditionError(
                    ErrorCode.ASSET_IN_COOLDOWN,
                    f"asset {asset.asset_id} in cooldown for {self.remaining_cooldown(asset, now)}s",
                )

    # -------------------------------------------------------------------------
    # OUTCOMES
    # -------------------------------------------------------------------------

    def _succeed(
        self,
        inputs: tuple[AssetDescriptor, ...],
        config: FusionConfig,
        seed: bytes,
        stream: SeedStream,
        scores: list[int],
        now: int,
        summary: dict,
    ) -> tuple[FusionOutcome, TraitCatalog]:
        traits = self.derive_traits(inputs, config, stream, scores)
        validate_traits(traits, self.catalog)
        catalog = consume_supply(self.catalog, traits)

        level = max(asset.fusion_level for asset in inputs) + 1
        base = traits_rarity_score(traits, self.catalog, self.trait_weights)
        owner = inputs[0].owner
        minted = AssetDescriptor(
            asset_id=fused_asset_id(seed, inputs),
            collection_id=config.collection_id,
            owner=owner,
            traits=traits,
            rarity_score_cache=fused_rarity(base, level, scores),
            fusion_level=level,
            parent_ids=tuple(asset.asset_id for asset in inputs),
            cooldown_until=now + config.cooldown_seconds,
        )
        burned = tuple(asset.model_copy(update={"status": AssetStatus.BURNED}) for asset in inputs)
        effects: list[TransferEffect] = [burn(asset.asset_id, asset.owner, memo="fusion_input") for asset in inputs]
        effects.append(mint(minted.asset_id, owner, memo="fusion_output"))

        outcome = FusionOutcome(
            status=FusionStatus.SUCCESS,
            **summary,
            burned=burned,
            minted=minted,
            trait_supply_consumed=tuple(
                pair for pair in traits if self._is_supply_limited(*pair)
            ),
            effects=tuple(effects),
        )
        return outcome, catalog

    def _fail(
        self,
        inputs: tuple[AssetDescriptor, ...],
        config: FusionConfig,
        stream: SeedStream,
        summary: dict,
    ) -> FusionOutcome:
        burn_count = len(inputs) * config.consolation_burn_bps // BPS_MAX
        burn_indices = set(stream.sample_indices(len(inputs), burn_count))
        burned = tuple(
            asset.model_copy(update={"status": AssetStatus.BURNED})
            for i, asset in enumerate(inputs)
            if i in burn_indices
        )
        untouched = tuple(asset for i, asset in enumerate(inputs) if i not in burn_indices)
        return FusionOutcome(
            status=FusionStatus.FAILURE,
            **summary,
            burned=burned,
            untouched=untouched,
            effects=tuple(burn(asset.asset_id, asset.owner, memo="fusion_consolation") for asset in burned),
        )

    # -------------------------------------------------------------------------
    # TRAIT INHERITANCE
    # -------------------------------------------------------------------------

    def inheritance_slots(
        self,
        inputs: Sequence[AssetDescriptor],
        config: FusionConfig,
    ) -> list[TraitInheritanceRule]:
        """Слоты выходного актива.

        Сначала правила конфига (в их порядке), затем остальные категории
        каталога, которые обязательны или есть хотя бы у одного родителя
        (стратегия WEIGHTED_PARENT).
        """
        slots = list(config.trait_inheritance_rules)
        covered = {rule.trait_type_id for rule in slots}
        for trait_type in self.catalog.trait_types:
            type_id = trait_type.trait_type_id
            if type_id in covered:
                continue
            if trait_type.is_required or any(asset.trait_value(type_id) for asset in inputs):
                slots.append(TraitInheritanceRule(trait_type_id=type_id))
        return slots

    def derive_traits(
        self,
        inputs: Sequence[AssetDescriptor],
        config: FusionConfig,
        stream: SeedStream,
        scores: Sequence[int],
    ) -> tuple[tuple[str, str], ...]:
        """Признаки выходного актива по правилам наследования.

        Родитель без значения в каталоге выходной коллекции или с исчерпанным
        supply не участвует; если кандидатов нет, слот перевыбирается из
        распределения коллекции.
        """
        derived = []
        for rule in self.inheritance_slots(inputs, config):
            trait_type = self.catalog.get(rule.trait_type_id)
            if trait_type is None:
                raise InputValidationError(
                    ErrorCode.TRAIT_NOT_FOUND,
                    f"inheritance rule for unknown trait type {rule.trait_type_id!r}",
                )
            value_id = self._inherit(trait_type, rule.strategy, inputs, stream, scores)
            derived.append((trait_type.trait_type_id, value_id))
        return tuple(derived)

    def _inherit(
        self,
        trait_type: TraitType,
        strategy: InheritanceStrategy,
        inputs: Sequence[AssetDescriptor],
        stream: SeedStream,
        scores: Sequence[int],
    ) -> str:
        available = {v.trait_value_id: v for v in available_values(trait_type)}
        candidates = [
            (asset.trait_value(trait_type.trait_type_id), score)
            for asset, score in zip(inputs, scores)
            if asset.trait_value(trait_type.trait_type_id) in available
        ]

        if strategy == InheritanceStrategy.REROLL or not candidates:
            return select_weighted_value(trait_type, stream).trait_value_id

        if strategy == InheritanceStrategy.RAREST_PARENT:
            rarest = min(candidates, key=lambda c: (available[c[0]].rarity_weight, c[0]))
            return rarest[0]

        # WEIGHTED_PARENT: вес родителя = rarity + 1
        index = stream.weighted_index([score + 1 for _, score in candidates])
        return candidates[index][0]

    def _is_supply_limited(self, trait_type_id: str, trait_value_id: str) -> bool:
        trait_type = self.catalog.get(trait_type_id)
        value = trait_type.find(trait_value_id) if trait_type else None
        return value is not None and value.available_supply is not None


def fused_asset_id(seed: bytes, inputs: Sequence[AssetDescriptor]) -> str:
    """Детерминированный id выходного актива из seed и id входов."""
    hasher = hashlib.sha256(seed)
    for asset_id in sorted(asset.asset_id for asset in inputs):
        hasher.update(asset_id.encode("utf-8"))
        hasher.update(b"\x00")
    return f"fused-{hasher.hexdigest()[:16]}"
