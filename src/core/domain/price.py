"""
PriceRecord: запись цены проекта

Immutable Pydantic модель: USD цена единицы токена (fixed-point, 6 знаков),
источник и timestamp последнего обновления.

Инварианты:
- unit_price_usd > 0 после установки
- last_update_unix_seconds монотонно не убывает в рамках проекта
  (обеспечивается PriceOracle)
"""

from enum import Enum

from pydantic import BaseModel, Field


class PriceSource(str, Enum):
    """Источник цены."""

    MANUAL = "Manual"
    DEX_POOL = "DexPool"
    EXTERNAL_FEED = "ExternalFeed"


class PriceRecord(BaseModel):
    """
    Цена единицы токена в USD.

    Пример: $10.50 == 10_500_000.
    """

    unit_price_usd: int = Field(..., gt=0, description="Цена единицы (USD, 6 знаков)")
    source: PriceSource = Field(..., description="Источник цены")
    last_update_unix_seconds: int = Field(..., ge=0, description="Время обновления (Unix, секунды)")

    model_config = {"frozen": True}

    def age_seconds(self, now: int) -> int:
        """Возраст записи относительно now (может быть отрицательным при skew)."""
        return now - self.last_update_unix_seconds


class ExternalFeedQuote(BaseModel):
    """
    Котировка внешнего фида, переданная диспетчером.

    Цена задана как price * 10**expo (как в сетях оракулов),
    confidence в тех же единицах что и price.
    """

    price: int = Field(..., description="Цена в единицах 10**expo")
    confidence: int = Field(..., ge=0, description="Доверительный интервал (те же единицы)")
    expo: int = Field(default=-6, ge=-18, le=18, description="Десятичный экспонент")
    publish_time: int = Field(..., ge=0, description="Время публикации (Unix, секунды)")

    model_config = {"frozen": True}
