"""
Fusion: конфигурация и исход слияния активов

FusionConfig неизменяема (frozen=True): попытка fusion, ссылающаяся на конфиг,
не может увидеть его изменение посреди вычисления.

FusionOutcome описывает полностью определённый переход:
- SUCCESS: все входы BURNED, выпущен один новый актив
- FAILURE: часть входов BURNED (consolation burn), остальные без изменений
Частичный burn одного актива невозможен.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from src.core.domain.asset import AssetDescriptor
from src.core.domain.effects import TransferEffect


# =============================================================================
# ENUMS
# =============================================================================


class InheritanceStrategy(str, Enum):
    """Правило наследования слота признака."""

    WEIGHTED_PARENT = "WeightedParent"  # случайный родитель, вес = редкость родителя
    RAREST_PARENT = "RarestParent"  # значение с наименьшей частотой среди родителей
    REROLL = "Reroll"  # новая выборка из распределения коллекции


class FusionStatus(str, Enum):
    """Исход fusion."""

    SUCCESS = "Success"
    FAILURE = "Failure"


# =============================================================================
# CONFIG
# =============================================================================


class TraitInheritanceRule(BaseModel):
    """Правило для одного слота признака выходного актива."""

    trait_type_id: str = Field(..., min_length=1)
    strategy: InheritanceStrategy = Field(default=InheritanceStrategy.WEIGHTED_PARENT)

    model_config = {"frozen": True}


class FusionConfig(BaseModel):
    """
    Конфигурация fusion для коллекции.

    Все bps поля в [0, 10000]; нарушение является ошибкой конструирования.
    """

    collection_id: str = Field(..., min_length=1)
    base_success_probability_bps: int = Field(..., ge=0, le=10_000)
    cooldown_seconds: int = Field(default=0, ge=0, description="Cooldown выходного актива")
    min_inputs: int = Field(default=2, ge=2)
    max_inputs: int = Field(..., ge=2)
    trait_inheritance_rules: tuple[TraitInheritanceRule, ...] = Field(default=())

    allow_cross_collection: bool = Field(default=False)
    compatible_collections: tuple[str, ...] = Field(default=())

    consolation_burn_bps: int = Field(
        default=5_000, ge=0, le=10_000, description="Доля входов, сжигаемых при FAILURE"
    )
    rarity_bonus_max_bps: int = Field(
        default=2_000, ge=0, le=10_000, description="Надбавка к вероятности при редкости 10000"
    )
    is_active: bool = Field(default=True)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_bounds(self) -> "FusionConfig":
        """min_inputs <= max_inputs, слоты наследования уникальны."""
        if self.min_inputs > self.max_inputs:
            raise ValueError(f"min_inputs {self.min_inputs} > max_inputs {self.max_inputs}")
        slots = [rule.trait_type_id for rule in self.trait_inheritance_rules]
        if len(slots) != len(set(slots)):
            raise ValueError(f"duplicate inheritance slots in {slots}")
        return self

    def accepts_collection(self, collection_id: str) -> bool:
        """Допустима ли коллекция входа."""
        if collection_id == self.collection_id:
            return True
        return self.allow_cross_collection and collection_id in self.compatible_collections


# =============================================================================
# OUTCOME
# =============================================================================


class FusionOutcome(BaseModel):
    """Исход попытки fusion."""

    status: FusionStatus
    success_probability_bps: int = Field(..., ge=0, le=10_000)
    draw: int = Field(..., ge=0, lt=10_000, description="Равномерная выборка из seed")
    average_rarity: int = Field(..., ge=0, le=10_000)

    burned: tuple[AssetDescriptor, ...] = Field(default=())
    untouched: tuple[AssetDescriptor, ...] = Field(default=())
    minted: Optional[AssetDescriptor] = Field(default=None)

    trait_supply_consumed: tuple[tuple[str, str], ...] = Field(default=())
    effects: tuple[TransferEffect, ...] = Field(default=())

    model_config = {"frozen": True}

    @property
    def succeeded(self) -> bool:
        return self.status == FusionStatus.SUCCESS
