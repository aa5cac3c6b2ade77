"""
Asset: не-взаимозаменяемый актив и каталог признаков коллекции

AssetDescriptor описывает NFT: коллекция, упорядоченные признаки
(trait_type_id, trait_value_id), статус и данные fusion.

rarity_score_cache является производными данными: FusionEngine всегда
пересчитывает редкость и никогда не доверяет кэшу.

TraitCatalog хранит распределение признаков коллекции: rarity_weight значения
трактуется как его частота в популяции (больше = чаще). Значения могут иметь
ограниченный supply.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator


# =============================================================================
# ENUMS
# =============================================================================


class AssetStatus(str, Enum):
    """Статус актива."""

    ACTIVE = "Active"
    BURNED = "Burned"


# =============================================================================
# TRAIT CATALOG
# =============================================================================


class TraitValue(BaseModel):
    """Значение признака (например, 'Blue' для 'Eyes')."""

    trait_value_id: str = Field(..., min_length=1)
    rarity_weight: int = Field(..., ge=0, description="Вес в популяции (больше = чаще)")
    available_supply: Optional[int] = Field(default=None, ge=0, description="Лимит выпуска")
    used_supply: int = Field(default=0, ge=0, description="Использовано")

    model_config = {"frozen": True}

    @property
    def is_exhausted(self) -> bool:
        """Supply исчерпан."""
        return self.available_supply is not None and self.used_supply >= self.available_supply


class TraitType(BaseModel):
    """Категория признака (например, 'Background')."""

    trait_type_id: str = Field(..., min_length=1)
    name: str = Field(default="")
    is_required: bool = Field(default=False)
    values: tuple[TraitValue, ...] = Field(..., min_length=1)

    model_config = {"frozen": True}

    @field_validator("values")
    @classmethod
    def validate_values(cls, v: tuple[TraitValue, ...]) -> tuple[TraitValue, ...]:
        """Уникальные id и положительный суммарный вес."""
        ids = [value.trait_value_id for value in v]
        if len(ids) != len(set(ids)):
            raise ValueError(f"duplicate trait_value_id in {ids}")
        if sum(value.rarity_weight for value in v) <= 0:
            raise ValueError("trait type must have a positive total rarity_weight")
        return v

    @property
    def total_weight(self) -> int:
        """Сумма весов всех значений."""
        return sum(value.rarity_weight for value in self.values)

    def find(self, trait_value_id: str) -> Optional[TraitValue]:
        """Поиск значения по id."""
        for value in self.values:
            if value.trait_value_id == trait_value_id:
                return value
        return None


class TraitCatalog(BaseModel):
    """Каталог признаков коллекции (таблица частот)."""

    collection_id: str = Field(..., min_length=1)
    trait_types: tuple[TraitType, ...] = Field(default=())

    model_config = {"frozen": True}

    @field_validator("trait_types")
    @classmethod
    def validate_unique_types(cls, v: tuple[TraitType, ...]) -> tuple[TraitType, ...]:
        ids = [t.trait_type_id for t in v]
        if len(ids) != len(set(ids)):
            raise ValueError(f"duplicate trait_type_id in {ids}")
        return v

    def get(self, trait_type_id: str) -> Optional[TraitType]:
        """Поиск категории по id."""
        for trait_type in self.trait_types:
            if trait_type.trait_type_id == trait_type_id:
                return trait_type
        return None


# =============================================================================
# ASSET
# =============================================================================


class AssetDescriptor(BaseModel):
    """
    Не-взаимозаменяемый актив.

    Immutable модель (frozen=True). Burn создаёт новый экземпляр со status=BURNED.
    """

    asset_id: str = Field(..., min_length=1)
    collection_id: str = Field(..., min_length=1)
    owner: str = Field(default="", description="Текущий владелец")
    traits: tuple[tuple[str, str], ...] = Field(
        default=(), description="Упорядоченные пары (trait_type_id, trait_value_id)"
    )
    rarity_score_cache: Optional[int] = Field(default=None, ge=0, le=10_000)
    status: AssetStatus = Field(default=AssetStatus.ACTIVE)

    fusion_level: int = Field(default=0, ge=0, description="0 для базовых, выше для fused")
    parent_ids: tuple[str, ...] = Field(default=(), description="Родители fusion")
    cooldown_until: Optional[int] = Field(default=None, ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_unique_trait_types(self) -> "AssetDescriptor":
        """Каждая категория признака встречается не более одного раза."""
        type_ids = [trait_type_id for trait_type_id, _ in self.traits]
        if len(type_ids) != len(set(type_ids)):
            raise ValueError(f"duplicate trait types in {type_ids}")
        return self

    def trait_value(self, trait_type_id: str) -> Optional[str]:
        """Значение признака данной категории (или None)."""
        for type_id, value_id in self.traits:
            if type_id == trait_type_id:
                return value_id
        return None
