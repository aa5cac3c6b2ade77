"""
JSON Schema Contract Validators

Модуль для валидации payload диспетчера согласно JSON Schema контрактам
до построения доменных моделей. Использует библиотеку jsonschema.

Схемы (contracts/schema/):
- price_record.json
- external_feed_quote.json
- escrow.json
- asset_descriptor.json
- fusion_config.json
- fee_split.json

load_* функции сначала проверяют структуру payload схемой, затем строят
pydantic модель (которая проверяет межполевые инварианты).
"""

import json
from pathlib import Path
from typing import Any, Dict

import jsonschema
from jsonschema import Draft202012Validator

from src.core.domain.asset import AssetDescriptor
from src.core.domain.escrow import Escrow
from src.core.domain.fees import FeeSplit
from src.core.domain.fusion import FusionConfig
from src.core.domain.price import ExternalFeedQuote, PriceRecord


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """
    Загрузчик JSON Schema файлов.

    Находит схемы в contracts/schema/ относительно корня проекта.
    """

    def __init__(self, schema_dir: Path | None = None):
        # Корень проекта: 4 уровня вверх от этого файла
        self._schema_dir = schema_dir or Path(__file__).parent.parent.parent.parent / "contracts" / "schema"
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")

        self._schemas: Dict[str, Dict[str, Any]] = {}

    @property
    def schema_dir(self) -> Path:
        return self._schema_dir

    def available(self) -> list[str]:
        """Имена всех схем каталога (без расширения)."""
        return sorted(path.stem for path in self._schema_dir.glob("*.json"))

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Загрузка JSON Schema файла (с кэшем).

        Args:
            schema_name: Имя схемы без расширения (например, 'escrow')

        Raises:
            FileNotFoundError: Если файл схемы не найден
            ValueError: Если файл не является корректной JSON Schema
        """
        if schema_name in self._schemas:
            return self._schemas[schema_name]

        schema_path = self._schema_dir / f"{schema_name}.json"
        if not schema_path.exists():
            raise FileNotFoundError(f"Schema not found: {schema_path}")

        with open(schema_path, "r", encoding="utf-8") as f:
            schema = json.load(f)

        # Meta-validation
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {schema_name}.json: {e}") from e

        self._schemas[schema_name] = schema
        return schema


_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """
    Базовый класс валидаторов контрактов.

    Подклассы задают schema_name.
    """

    schema_name: str = ""

    def __init__(self, schema_name: str | None = None, loader: SchemaLoader | None = None):
        self.schema_name = schema_name or self.schema_name
        self.schema = (loader or _SCHEMA_LOADER).load_schema(self.schema_name)
        self.validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """
        Raises:
            jsonschema.ValidationError: Если данные не соответствуют схеме
        """
        self.validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self.validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]):
        """Все ошибки валидации (для отчёта диспетчеру)."""
        return self.validator.iter_errors(data)


class PriceRecordValidator(ContractValidator):
    schema_name = "price_record"


class ExternalFeedQuoteValidator(ContractValidator):
    schema_name = "external_feed_quote"


class EscrowValidator(ContractValidator):
    schema_name = "escrow"


class AssetDescriptorValidator(ContractValidator):
    schema_name = "asset_descriptor"


class FusionConfigValidator(ContractValidator):
    schema_name = "fusion_config"


class FeeSplitValidator(ContractValidator):
    schema_name = "fee_split"


# =============================================================================
# CONVENIENCE FUNCTIONS
# =============================================================================


def validate_price_record(data: Dict[str, Any]) -> None:
    PriceRecordValidator().validate(data)


def validate_external_feed_quote(data: Dict[str, Any]) -> None:
    ExternalFeedQuoteValidator().validate(data)


def validate_escrow(data: Dict[str, Any]) -> None:
    EscrowValidator().validate(data)


def validate_asset_descriptor(data: Dict[str, Any]) -> None:
    AssetDescriptorValidator().validate(data)


def validate_fusion_config(data: Dict[str, Any]) -> None:
    FusionConfigValidator().validate(data)


def validate_fee_split(data: Dict[str, Any]) -> None:
    FeeSplitValidator().validate(data)


def load_price_record(data: Dict[str, Any]) -> PriceRecord:
    """
    Payload → PriceRecord.

    Raises:
        jsonschema.ValidationError: нарушение схемы
        pydantic.ValidationError: нарушение инвариантов модели
    """
    validate_price_record(data)
    return PriceRecord.model_validate(data)


def load_external_feed_quote(data: Dict[str, Any]) -> ExternalFeedQuote:
    validate_external_feed_quote(data)
    return ExternalFeedQuote.model_validate(data)


def load_escrow(data: Dict[str, Any]) -> Escrow:
    """Payload → Escrow (cooldown_until >= vesting_end проверяет модель)."""
    validate_escrow(data)
    return Escrow.model_validate(data)


def load_asset_descriptor(data: Dict[str, Any]) -> AssetDescriptor:
    validate_asset_descriptor(data)
    return AssetDescriptor.model_validate(data)


def load_fusion_config(data: Dict[str, Any]) -> FusionConfig:
    """Payload → FusionConfig (min_inputs <= max_inputs проверяет модель)."""
    validate_fusion_config(data)
    return FusionConfig.model_validate(data)


def load_fee_split(data: Dict[str, Any]) -> FeeSplit:
    """Payload → FeeSplit (сумма ставок <= 10000 проверяет модель)."""
    validate_fee_split(data)
    return FeeSplit.model_validate(data)
