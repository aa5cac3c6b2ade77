"""
FeeSplit: распределение комиссий в basis points

Инвариант: platform_bps + project_bps + royalty_bps <= 10000;
остаток принадлежит продавцу/депозитору.
"""

from pydantic import BaseModel, Field, model_validator

from src.core.domain.units import BPS_MAX


class FeeSplit(BaseModel):
    """Ставки комиссий (bps)."""

    platform_bps: int = Field(..., ge=0, le=BPS_MAX, description="Комиссия платформы")
    project_bps: int = Field(..., ge=0, le=BPS_MAX, description="Комиссия проекта")
    royalty_bps: int = Field(default=0, ge=0, le=BPS_MAX, description="Роялти")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_total(self) -> "FeeSplit":
        """Сумма ставок не превышает 100%."""
        if self.total_bps > BPS_MAX:
            raise ValueError(
                f"platform_bps + project_bps + royalty_bps = {self.total_bps} exceeds {BPS_MAX}"
            )
        return self

    @property
    def total_bps(self) -> int:
        return self.platform_bps + self.project_bps + self.royalty_bps


class FeeBreakdown(BaseModel):
    """Результат split: сумма всех четырёх долей равна gross_amount."""

    gross_amount: int = Field(..., ge=0)
    platform_amount: int = Field(..., ge=0)
    project_amount: int = Field(..., ge=0)
    royalty_amount: int = Field(..., ge=0)
    remainder_amount: int = Field(..., ge=0)

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_conservation(self) -> "FeeBreakdown":
        """Ни одна единица не создаётся и не теряется при округлении."""
        total = (
            self.platform_amount + self.project_amount + self.royalty_amount + self.remainder_amount
        )
        if total != self.gross_amount:
            raise ValueError(f"shares sum to {total}, expected {self.gross_amount}")
        return self
