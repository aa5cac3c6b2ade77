"""LiquidityPoolManager: создание пула проекта и возврат неактивной ликвидности.

Переходы:
- create_pool:        authority проекта открывает пул с начальной ликвидностью
- reclaim_inactive:   authority платформы забирает баланс пула, неактивного
                      дольше LP_INACTIVITY_SECONDS, в treasury платформы;
                      проект деактивируется

Как и остальные операции ядра, менеджер ничего не хранит: получает записи,
возвращает новое состояние и эффекты для диспетчера.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.core.domain.effects import transfer
from src.core.domain.project import LiquidityPool, Project
from src.core.domain.results import TransitionResult
from src.core.domain.units import ensure_u64
from src.core.errors import (
    AuthorizationError,
    ErrorCode,
    InputValidationError,
    PreconditionError,
    SettlementError,
)
from src.core.store import liquidity_pool_key, platform_key
from src.oracle.staleness import LP_INACTIVITY_SECONDS, is_pool_inactive


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LiquidityConfig:
    """Конфигурация пулов платформы."""

    platform_authority: str
    inactivity_seconds: int = LP_INACTIVITY_SECONDS  # 6 месяцев

    def __post_init__(self) -> None:
        if self.inactivity_seconds <= 0:
            raise ValueError(f"inactivity_seconds must be positive, got {self.inactivity_seconds}")


class LiquidityPoolManager:
    """Жизненный цикл пулов ликвидности.

    Usage:
        manager = LiquidityPoolManager(LiquidityConfig(platform_authority="platform_admin"))
        pool = manager.create_pool(project, "project_admin", "TOKEN", 1_000_000, now=t0).state
        result = manager.reclaim_inactive(project, pool, "platform_admin", now=t0 + LP_INACTIVITY_SECONDS)
    """

    def __init__(self, config: LiquidityConfig):
        self.config = config

    def create_pool(
        self,
        project: Project,
        caller: str,
        token_asset: str,
        initial_liquidity: int,
        now: int,
    ) -> TransitionResult[Optional[LiquidityPool]]:
        """Открытие пула; при отказе state=None."""
        try:
            if now < 0:
                raise InputValidationError(ErrorCode.INVALID_DURATION, f"negative timestamp {now}")
            if not project.is_active:
                raise PreconditionError(ErrorCode.PROJECT_INACTIVE, f"project {project.project_id} is inactive")
            if caller != project.authority:
                raise AuthorizationError(
                    ErrorCode.UNAUTHORIZED, f"{caller!r} is not the authority of project {project.project_id}"
                )
            if not token_asset:
                raise InputValidationError(ErrorCode.MISSING_FIELD, "token_asset is required")
            if initial_liquidity < 0:
                raise InputValidationError(
                    ErrorCode.ZERO_AMOUNT, f"initial_liquidity must be non-negative, got {initial_liquidity}"
                )
            ensure_u64(initial_liquidity, "initial_liquidity")
        except SettlementError as e:
            logger.warning("pool creation rejected project=%s code=%s: %s", project.project_id, e.code.value, e.message)
            return TransitionResult.rejected(None, e)

        pool = LiquidityPool(
            project_id=project.project_id,
            token_asset=token_asset,
            balance=initial_liquidity,
            created_at=now,
            last_activity=now,
        )
        effects = ()
        if initial_liquidity > 0:
            effects = (
                transfer(
                    asset=token_asset,
                    amount=initial_liquidity,
                    source=caller,
                    destination=liquidity_pool_key(project.project_id).address,
                    memo="lp_initial_liquidity",
                ),
            )
        logger.info("pool created project=%s asset=%s liquidity=%d", project.project_id, token_asset, initial_liquidity)
        return TransitionResult.ok(
            pool,
            effects=effects,
            reason="pool_created",
            project=project.model_copy(update={"last_activity_timestamp": now}),
        )

    def reclaim_inactive(
        self,
        project: Project,
        pool: LiquidityPool,
        caller: str,
        now: int,
    ) -> TransitionResult[Project]:
        """Возврат ликвидности неактивного пула в treasury платформы.

        Отказы:
        - Unauthorized если caller не authority платформы
        - ProjectMismatch если пул принадлежит другому проекту
        - LiquidityPoolNotInactive если с последней активности прошло меньше окна

        Returns:
            TransitionResult; state = деактивированный проект,
            values: pool (с нулевым балансом), reclaimed_amount
        """
        try:
            if caller != self.config.platform_authority:
                raise AuthorizationError(ErrorCode.UNAUTHORIZED, f"{caller!r} is not the platform authority")
            if pool.project_id != project.project_id:
                raise InputValidationError(
                    ErrorCode.PROJECT_MISMATCH,
                    f"pool belongs to {pool.project_id}, not {project.project_id}",
                )
            if not is_pool_inactive(pool.last_activity, now, self.config.inactivity_seconds):
                raise PreconditionError(
                    ErrorCode.POOL_NOT_INACTIVE,
                    f"pool of {project.project_id} active {now - pool.last_activity}s ago, "
                    f"window is {self.config.inactivity_seconds}s",
                )
        except SettlementError as e:
            logger.warning("lp reclaim rejected project=%s code=%s: %s", project.project_id, e.code.value, e.message)
            return TransitionResult.rejected(project, e)

        reclaimed = pool.balance
        effects = ()
        if reclaimed > 0:
            effects = (
                transfer(
                    asset=pool.token_asset,
                    amount=reclaimed,
                    source=liquidity_pool_key(project.project_id).address,
                    destination=platform_key().address,
                    memo="lp_reclaim",
                ),
            )
        deactivated = project.model_copy(update={"is_active": False})
        logger.info("inactive pool reclaimed project=%s amount=%d", project.project_id, reclaimed)
        return TransitionResult.ok(
            deactivated,
            effects=effects,
            reason="lp_reclaimed",
            details=f"inactive for {now - pool.last_activity}s",
            pool=pool.model_copy(update={"balance": 0}),
            reclaimed_amount=reclaimed,
        )
