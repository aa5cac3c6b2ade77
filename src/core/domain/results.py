"""
TransitionResult: результат мутирующей операции как значение

Каждая мутирующая операция возвращает TransitionResult:
- accepted=True: state является новым состоянием, effects применяются атомарно
- accepted=False: state является ПРЕЖНИМ состоянием (без изменений),
  effects пусты, error содержит типизированную причину

Диспетчер может проверить точную причину отказа, не теряя валидного
предыдущего состояния сущности.
"""

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

from src.core.domain.effects import TransferEffect
from src.core.errors import ErrorCategory, ErrorCode, SettlementError


StateT = TypeVar("StateT")


@dataclass(frozen=True)
class TransitionResult(Generic[StateT]):
    """Результат перехода состояния."""

    accepted: bool
    state: StateT
    effects: tuple[TransferEffect, ...] = ()
    error: Optional[SettlementError] = None

    # Диагностика
    reason: str = ""
    details: str = ""

    # Дополнительные значения операции (token_amount, final_usd, ...)
    values: dict = field(default_factory=dict)

    @property
    def error_code(self) -> Optional[ErrorCode]:
        return self.error.code if self.error is not None else None

    @property
    def error_category(self) -> Optional[ErrorCategory]:
        return self.error.category if self.error is not None else None

    @classmethod
    def ok(
        cls,
        state: StateT,
        effects: tuple[TransferEffect, ...] = (),
        reason: str = "ok",
        details: str = "",
        **values,
    ) -> "TransitionResult[StateT]":
        """Принятый переход."""
        return cls(
            accepted=True,
            state=state,
            effects=tuple(effects),
            reason=reason,
            details=details,
            values=dict(values),
        )

    @classmethod
    def rejected(cls, state: StateT, error: SettlementError) -> "TransitionResult[StateT]":
        """Отклонённый вызов: состояние без изменений, эффектов нет."""
        return cls(
            accepted=False,
            state=state,
            error=error,
            reason=error.code.value,
            details=error.message,
        )
