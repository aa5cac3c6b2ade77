"""EscrowLedger: state machine жизненного цикла escrow.

Переходы:
- deposit:     (новый) → PENDING → VESTING (атомарно)
- try_advance: VESTING → READY при now >= vesting_start + vesting_duration
- release:     READY → RELEASED при now >= cooldown_until (terminal)
- cancel:      PENDING/VESTING/READY → CANCELLED владельцем (terminal)

Ledger не хранит escrow: он получает запись, вычисляет полное новое
состояние и возвращает TransitionResult с эффектами для диспетчера.
Terminal состояния (RELEASED, CANCELLED) никогда не покидаются.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.core.domain.effects import TransferEffect, transfer
from src.core.domain.escrow import Escrow, EscrowState
from src.core.domain.results import TransitionResult
from src.core.domain.units import ensure_u64
from src.core.errors import (
    AuthorizationError,
    ErrorCode,
    InputValidationError,
    PreconditionError,
    SettlementError,
)
from src.core.store import escrow_key


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerConfig:
    """Конфигурация ledger.

    Верхние границы длительностей защищают от ошибок ввода
    (escrow, заблокированный на столетие).
    """

    max_vesting_seconds: int = 5 * 365 * 24 * 3600  # 5 лет
    max_cooldown_seconds: int = 365 * 24 * 3600  # 1 год


class EscrowLedger:
    """State machine escrow одного проекта.

    Usage:
        ledger = EscrowLedger("project_1")
        result = ledger.deposit("alice", "nft_1", 1_000, vesting_duration=86400,
                                cooldown_seconds=3600, now=t0)
        escrow = result.state
        result = ledger.release(escrow, now=t0 + 90000)
    """

    def __init__(self, project_id: str, config: Optional[LedgerConfig] = None):
        self.project_id = project_id
        self.config = config or LedgerConfig()

    # -------------------------------------------------------------------------
    # DEPOSIT
    # -------------------------------------------------------------------------

    def deposit(
        self,
        owner: str,
        asset_ref: str,
        amount: int,
        vesting_duration: int,
        cooldown_seconds: int,
        now: int,
        escrow_id: Optional[str] = None,
        nonce: int = 0,
    ) -> TransitionResult[Optional[Escrow]]:
        """Создание escrow: PENDING → VESTING атомарно.

        cooldown_until = vesting_start + vesting_duration + cooldown_seconds

        Args:
            owner: владелец депозита
            asset_ref: ссылка на актив (mint)
            amount: сумма депозита (> 0)
            vesting_duration: длительность vesting (секунды, >= 0)
            cooldown_seconds: cooldown после vesting (секунды, >= 0)
            now: текущее время (Unix, секунды)
            escrow_id: явный id (по умолчанию адрес escrow_key(project, asset_ref, owner, now, nonce))
            nonce: различает депозиты одного актива одним владельцем в одну секунду

        Returns:
            TransitionResult; при отказе state=None (запись не создаётся)
        """
        try:
            self._validate_deposit(owner, asset_ref, amount, vesting_duration, cooldown_seconds, now)
            pending = Escrow(
                escrow_id=escrow_id or escrow_key(self.project_id, asset_ref, owner, now, nonce).address,
                project_id=self.project_id,
                owner=owner,
                asset_ref=asset_ref,
                amount_deposited=amount,
                vesting_start=now,
                vesting_duration=vesting_duration,
                cooldown_until=now + vesting_duration + cooldown_seconds,
                state=EscrowState.PENDING,
            )
        except SettlementError as e:
            logger.warning("deposit rejected project=%s code=%s: %s", self.project_id, e.code.value, e.message)
            return TransitionResult.rejected(None, e)

        # Deposit confirmed: PENDING → VESTING в одном вызове
        escrow = pending.model_copy(update={"state": EscrowState.VESTING})
        effect = transfer(
            asset=asset_ref,
            amount=amount,
            source=owner,
            destination=escrow.escrow_id,
            memo="escrow_deposit",
        )
        logger.info(
            "escrow deposited id=%s owner=%s amount=%d vesting_end=%d cooldown_until=%d",
            escrow.escrow_id,
            owner,
            amount,
            escrow.vesting_end,
            escrow.cooldown_until,
        )
        return TransitionResult.ok(
            escrow,
            effects=(effect,),
            reason="deposit_confirmed",
            details=f"PENDING → VESTING, vesting_end={escrow.vesting_end}",
        )

    def _validate_deposit(
        self,
        owner: str,
        asset_ref: str,
        amount: int,
        vesting_duration: int,
        cooldown_seconds: int,
        now: int,
    ) -> None:
        if amount <= 0:
            raise InputValidationError(ErrorCode.ZERO_AMOUNT, f"deposit amount must be positive, got {amount}")
        ensure_u64(amount, "amount")
        if not owner or not asset_ref:
            raise InputValidationError(ErrorCode.MISSING_FIELD, "owner and asset_ref are required")
        if now < 0:
            raise InputValidationError(ErrorCode.INVALID_DURATION, f"negative timestamp {now}")
        if not 0 <= vesting_duration <= self.config.max_vesting_seconds:
            raise InputValidationError(
                ErrorCode.INVALID_DURATION,
                f"vesting_duration {vesting_duration} outside [0, {self.config.max_vesting_seconds}]",
            )
        if not 0 <= cooldown_seconds <= self.config.max_cooldown_seconds:
            raise InputValidationError(
                ErrorCode.INVALID_DURATION,
                f"cooldown_seconds {cooldown_seconds} outside [0, {self.config.max_cooldown_seconds}]",
            )

    # -------------------------------------------------------------------------
    # ADVANCE
    # -------------------------------------------------------------------------

    def try_advance(self, escrow: Escrow, now: int) -> Escrow:
        """Пересчёт состояния из timestamps.

        Идемпотентно: повторный вызов с тем же now не даёт двойного перехода.
        Terminal состояния возвращаются без изменений.
        """
        if escrow.state == EscrowState.VESTING and now >= escrow.vesting_end:
            logger.debug("escrow %s vesting complete at %d", escrow.escrow_id, now)
            return escrow.model_copy(update={"state": EscrowState.READY})
        return escrow

    # -------------------------------------------------------------------------
    # RELEASE
    # -------------------------------------------------------------------------

    def release(
        self,
        escrow: Escrow,
        now: int,
        beneficiary: Optional[str] = None,
    ) -> TransitionResult[Escrow]:
        """Release: READY → RELEASED.

        Сначала применяется try_advance, поэтому созревший VESTING escrow
        освобождается одним вызовом.

        Отказы:
        - ProjectMismatch если escrow принадлежит другому проекту
        - AlreadySettled если escrow в terminal состоянии
        - NotReady если state != READY или now < cooldown_until

        Args:
            escrow: запись escrow
            now: текущее время
            beneficiary: получатель депозита (по умолчанию владелец)
        """
        try:
            released, effect = self.compute_release(escrow, now, beneficiary)
        except SettlementError as e:
            logger.warning("release rejected id=%s code=%s: %s", escrow.escrow_id, e.code.value, e.message)
            return TransitionResult.rejected(escrow, e)

        logger.info("escrow released id=%s to=%s amount=%d", escrow.escrow_id, effect.destination, effect.amount)
        return TransitionResult.ok(
            released,
            effects=(effect,),
            reason="released",
            details=f"READY → RELEASED at {now}",
        )

    def compute_release(
        self,
        escrow: Escrow,
        now: int,
        beneficiary: Optional[str] = None,
    ) -> tuple[Escrow, TransferEffect]:
        """Вычисление release без перехвата ошибок (используется RedemptionEngine).

        Raises:
            SettlementError: при невыполненном предусловии
        """
        self._check_project(escrow)
        if escrow.is_terminal:
            raise PreconditionError(
                ErrorCode.ALREADY_SETTLED, f"escrow {escrow.escrow_id} is {escrow.state.value}"
            )
        advanced = self.try_advance(escrow, now)
        if advanced.state != EscrowState.READY:
            raise PreconditionError(
                ErrorCode.NOT_READY,
                f"escrow {escrow.escrow_id} is {advanced.state.value}, vesting ends at {escrow.vesting_end}",
            )
        if now < advanced.cooldown_until:
            raise PreconditionError(
                ErrorCode.NOT_READY,
                f"escrow {escrow.escrow_id} in cooldown for {advanced.cooldown_until - now}s",
            )
        released = advanced.model_copy(update={"state": EscrowState.RELEASED})
        effect = transfer(
            asset=escrow.asset_ref,
            amount=escrow.amount_deposited,
            source=escrow.escrow_id,
            destination=beneficiary or escrow.owner,
            memo="escrow_release",
        )
        return released, effect

    # -------------------------------------------------------------------------
    # CANCEL
    # -------------------------------------------------------------------------

    def cancel(self, escrow: Escrow, caller: str) -> TransitionResult[Escrow]:
        """Cancel владельцем: PENDING/VESTING/READY → CANCELLED.

        Депозит возвращается владельцу.

        Отказы:
        - Unauthorized если caller != owner
        - AlreadySettled если escrow в terminal состоянии
        """
        try:
            self._check_project(escrow)
            if caller != escrow.owner:
                raise AuthorizationError(
                    ErrorCode.UNAUTHORIZED, f"{caller!r} is not the owner of escrow {escrow.escrow_id}"
                )
            if escrow.is_terminal:
                raise PreconditionError(
                    ErrorCode.ALREADY_SETTLED, f"escrow {escrow.escrow_id} is {escrow.state.value}"
                )
        except SettlementError as e:
            logger.warning("cancel rejected id=%s code=%s: %s", escrow.escrow_id, e.code.value, e.message)
            return TransitionResult.rejected(escrow, e)

        cancelled = escrow.model_copy(update={"state": EscrowState.CANCELLED})
        effect = transfer(
            asset=escrow.asset_ref,
            amount=escrow.amount_deposited,
            source=escrow.escrow_id,
            destination=escrow.owner,
            memo="escrow_refund",
        )
        logger.info("escrow cancelled id=%s by owner", escrow.escrow_id)
        return TransitionResult.ok(
            cancelled,
            effects=(effect,),
            reason="cancelled",
            details=f"{escrow.state.value} → CANCELLED",
        )

    # -------------------------------------------------------------------------
    # QUERIES
    # -------------------------------------------------------------------------

    def remaining_lock(self, escrow: Escrow, now: int) -> int:
        """Секунд до разрешения release (0 если уже можно или escrow закрыт)."""
        if escrow.is_terminal:
            return 0
        return max(0, escrow.cooldown_until - now)

    def _check_project(self, escrow: Escrow) -> None:
        if escrow.project_id != self.project_id:
            raise InputValidationError(
                ErrorCode.PROJECT_MISMATCH,
                f"escrow {escrow.escrow_id} belongs to {escrow.project_id}, not {self.project_id}",
            )
