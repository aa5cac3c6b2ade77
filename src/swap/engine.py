"""SwapEngine: покупка NFT за токены проекта.

swap_token_for_nft:
1. проект активен, пул и коллекция принадлежат проекту
2. OracleStale если цена устарела (тот же lock, что и для redemption)
3. discount_percent в [0, 100]:
       paid = floor(token_amount * (100 - discount_percent) / 100)
4. InsufficientTokenAmount если известный баланс покупателя меньше paid
5. paid переводится покупателем в пул, комиссии платформы, проекта и
   роялти выплачиваются из пула, остаток остаётся в пуле
6. при скидке с cooldown_seconds (> 0) у нового актива
   cooldown_until = now + cooldown_seconds
7. актив выпускается покупателю, активность пула и проекта обновляется
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.core.domain.asset import AssetDescriptor
from src.core.domain.effects import mint, transfer
from src.core.domain.fees import FeeSplit
from src.core.domain.price import PriceRecord
from src.core.domain.project import LiquidityPool, Project
from src.core.domain.results import TransitionResult
from src.core.domain.units import ensure_u64
from src.core.errors import (
    ErrorCode,
    InputValidationError,
    PreconditionError,
    SettlementError,
)
from src.core.math.fixed_point import mul_div
from src.core.store import liquidity_pool_key, platform_key, treasury_key
from src.fees.distributor import FeeDistributor, FeeRecipients
from src.oracle.price_oracle import OracleConfig
from src.oracle.staleness import is_stale


logger = logging.getLogger(__name__)

MAX_DISCOUNT_PERCENT = 100


@dataclass(frozen=True)
class SwapConfig:
    """Конфигурация swap."""

    # Комиссии с оплаты (None = без комиссий)
    fee_split: Optional[FeeSplit] = None


@dataclass(frozen=True)
class SwapRequest:
    """Параметры покупки."""

    buyer: str
    collection_id: str
    asset_id: str
    token_amount: int
    discount_percent: Optional[int] = None
    cooldown_seconds: Optional[int] = None
    buyer_balance: Optional[int] = None  # None: баланс проверяет диспетчер


def discounted_amount(token_amount: int, discount_percent: Optional[int]) -> int:
    """
    Сумма к оплате со скидкой в процентах, округление вниз.

    Raises:
        InputValidationError: InvalidDiscountPercentage вне [0, 100]

    Examples:
        >>> discounted_amount(1_000, 15)
        850
    """
    if discount_percent is None:
        return token_amount
    if not 0 <= discount_percent <= MAX_DISCOUNT_PERCENT:
        raise InputValidationError(
            ErrorCode.INVALID_DISCOUNT, f"discount_percent must be in [0, 100], got {discount_percent}"
        )
    return mul_div(token_amount, MAX_DISCOUNT_PERCENT - discount_percent, MAX_DISCOUNT_PERCENT)


class SwapEngine:
    """Обмен токенов проекта на новый NFT.

    Usage:
        engine = SwapEngine(SwapConfig(fee_split=split))
        request = SwapRequest(buyer="bob", collection_id="col_a", asset_id="nft_9", token_amount=1_000)
        result = engine.swap_token_for_nft(project, pool, price_record, request, now=t)
        pool, asset = result.state, result.values["asset"]
    """

    def __init__(self, config: Optional[SwapConfig] = None, oracle_config: Optional[OracleConfig] = None):
        self.config = config or SwapConfig()
        self.oracle_config = oracle_config or OracleConfig()

    def swap_token_for_nft(
        self,
        project: Project,
        pool: LiquidityPool,
        price_record: Optional[PriceRecord],
        request: SwapRequest,
        now: int,
        max_age_seconds: Optional[int] = None,
    ) -> TransitionResult[LiquidityPool]:
        """Покупка NFT.

        Returns:
            TransitionResult; state = пул после оплаты,
            values: asset, project, paid_amount, fee_breakdown
        """
        try:
            return self._swap(project, pool, price_record, request, now, max_age_seconds)
        except SettlementError as e:
            logger.warning(
                "swap rejected project=%s buyer=%s code=%s: %s",
                project.project_id,
                request.buyer,
                e.code.value,
                e.message,
            )
            return TransitionResult.rejected(pool, e)

    def _swap(
        self,
        project: Project,
        pool: LiquidityPool,
        price_record: Optional[PriceRecord],
        request: SwapRequest,
        now: int,
        max_age_seconds: Optional[int],
    ) -> TransitionResult[LiquidityPool]:
        self._validate_request(project, pool, request, now)
        self._check_oracle(project, price_record, now, max_age_seconds)

        paid = discounted_amount(request.token_amount, request.discount_percent)
        if request.buyer_balance is not None and request.buyer_balance < paid:
            raise PreconditionError(
                ErrorCode.INSUFFICIENT_TOKEN_AMOUNT,
                f"buyer {request.buyer} holds {request.buyer_balance}, needs {paid}",
            )

        cooldown_until = None
        if request.discount_percent is not None and request.cooldown_seconds is not None:
            if request.cooldown_seconds <= 0:
                raise InputValidationError(
                    ErrorCode.INVALID_COOLDOWN, f"cooldown_seconds must be positive, got {request.cooldown_seconds}"
                )
            cooldown_until = now + request.cooldown_seconds

        pool_address = liquidity_pool_key(project.project_id).address
        recipients = FeeRecipients(
            platform_treasury=platform_key().address,
            project_treasury=treasury_key(project.project_id).address,
            seller="",
            royalty_wallet=project.royalty_wallet,
        )
        fee_split = self.config.fee_split or FeeSplit(platform_bps=0, project_bps=0, royalty_bps=0)
        breakdown, fee_effects = FeeDistributor(fee_split, recipients).distribute(
            asset=pool.token_asset,
            gross_amount=paid,
            source=pool_address,
            memo="swap",
        )
        paid_out = sum(effect.amount for effect in fee_effects)
        new_balance = ensure_u64(pool.balance + paid - paid_out, "pool_balance")

        asset = AssetDescriptor(
            asset_id=request.asset_id,
            collection_id=request.collection_id,
            owner=request.buyer,
            cooldown_until=cooldown_until,
        )
        effects = []
        if paid > 0:
            effects.append(transfer(pool.token_asset, paid, request.buyer, pool_address, memo="swap_payment"))
        effects.extend(fee_effects)
        effects.append(mint(asset.asset_id, request.buyer, memo="swap_mint"))

        logger.info(
            "swap project=%s buyer=%s asset=%s paid=%d discount=%s",
            project.project_id,
            request.buyer,
            asset.asset_id,
            paid,
            request.discount_percent,
        )
        return TransitionResult.ok(
            pool.model_copy(update={"balance": new_balance, "last_activity": now}),
            effects=effects,
            reason="swapped",
            details=f"paid={paid} pool_balance={new_balance}",
            asset=asset,
            project=project.model_copy(update={"last_activity_timestamp": now}),
            paid_amount=paid,
            fee_breakdown=breakdown,
        )

    def _validate_request(self, project: Project, pool: LiquidityPool, request: SwapRequest, now: int) -> None:
        if now < 0:
            raise InputValidationError(ErrorCode.INVALID_DURATION, f"negative timestamp {now}")
        if not request.buyer or not request.asset_id:
            raise InputValidationError(ErrorCode.MISSING_FIELD, "buyer and asset_id are required")
        if not project.is_active:
            raise PreconditionError(ErrorCode.PROJECT_INACTIVE, f"project {project.project_id} is inactive")
        if pool.project_id != project.project_id:
            raise InputValidationError(
                ErrorCode.PROJECT_MISMATCH, f"pool belongs to {pool.project_id}, not {project.project_id}"
            )
        if not project.owns_collection(request.collection_id):
            raise InputValidationError(
                ErrorCode.COLLECTION_MISMATCH,
                f"collection {request.collection_id!r} does not belong to project {project.project_id}",
            )
        if request.token_amount <= 0:
            raise InputValidationError(
                ErrorCode.ZERO_AMOUNT, f"token_amount must be positive, got {request.token_amount}"
            )
        ensure_u64(request.token_amount, "token_amount")

    def _check_oracle(
        self,
        project: Project,
        price_record: Optional[PriceRecord],
        now: int,
        max_age_seconds: Optional[int],
    ) -> None:
        if price_record is None:
            raise PreconditionError(ErrorCode.PRICE_NOT_SET, f"no price for project {project.project_id}")
        window = max_age_seconds if max_age_seconds is not None else self.oracle_config.max_age_for(price_record.source)
        if is_stale(price_record, now, window):
            raise PreconditionError(
                ErrorCode.ORACLE_STALE,
                f"price age {price_record.age_seconds(now)}s exceeds {window}s, swap locked",
            )
