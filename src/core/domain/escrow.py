"""
Escrow: запись хранения ценности

Immutable Pydantic модель. Принадлежит исключительно создавшему проекту.
Все изменения создают новый экземпляр (model_copy), physical reuse запрещён.

State machine:
    PENDING  → VESTING    (deposit confirmed, атомарно при создании)
    VESTING  → READY      (now >= vesting_start + vesting_duration)
    READY    → RELEASED   (release/redeem, terminal)
    PENDING/VESTING/READY → CANCELLED (cancel by owner, terminal)

Инвариант: amount_deposited не меняется после создания;
мутируют только state и cooldown_until.
"""

from enum import Enum

from pydantic import BaseModel, Field, model_validator


class EscrowState(str, Enum):
    """Состояние escrow."""

    PENDING = "Pending"
    VESTING = "Vesting"
    READY = "Ready"
    RELEASED = "Released"
    CANCELLED = "Cancelled"


TERMINAL_STATES = frozenset({EscrowState.RELEASED, EscrowState.CANCELLED})


class Escrow(BaseModel):
    """Escrow запись одного владельца."""

    escrow_id: str = Field(..., min_length=1, description="Стабильный идентификатор")
    project_id: str = Field(..., min_length=1, description="Проект-владелец")
    owner: str = Field(..., min_length=1, description="Владелец депозита")
    asset_ref: str = Field(..., min_length=1, description="Ссылка на актив (mint)")
    amount_deposited: int = Field(..., gt=0, description="Сумма депозита (базовые единицы)")

    vesting_start: int = Field(..., ge=0, description="Начало vesting (Unix, секунды)")
    vesting_duration: int = Field(..., ge=0, description="Длительность vesting (секунды)")
    cooldown_until: int = Field(..., ge=0, description="Release запрещён до этого момента")

    state: EscrowState = Field(..., description="Состояние")

    model_config = {"frozen": True}

    @model_validator(mode="after")
    def validate_cooldown_after_vesting(self) -> "Escrow":
        """Cooldown начинается не раньше окончания vesting."""
        if self.cooldown_until < self.vesting_end:
            raise ValueError(
                f"cooldown_until {self.cooldown_until} precedes vesting end {self.vesting_end}"
            )
        return self

    @property
    def vesting_end(self) -> int:
        """Момент окончания vesting."""
        return self.vesting_start + self.vesting_duration

    @property
    def is_terminal(self) -> bool:
        """RELEASED или CANCELLED."""
        return self.state in TERMINAL_STATES
