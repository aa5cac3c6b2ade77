"""RedemptionEngine: конверсия USD ↔ токены и redemption escrow.

Конверсия (одинаковое правило округления к нулю в обе стороны):
    tokens = usd * 10**token_decimals / unit_price_usd
    usd    = tokens * unit_price_usd / 10**token_decimals

Round-trip деградирует монотонно (никогда не превышает исходное значение)
и теряет не больше одной базовой единицы того актива, чья единица дороже:
    usd -> tokens -> usd:    потеря <= ceil(unit_price_usd / 10**token_decimals) единиц USD
    tokens -> usd -> tokens: потеря <= ceil(10**token_decimals / unit_price_usd) единиц токена
При unit_price_usd <= 10**token_decimals первая граница равна 1.

redeem:
1. rarity_bonus_bps в [0, max_rarity_bonus_bps], иначе отказ (без clamp)
2. OracleStale если цена устарела (платформенный redemption lock,
   одинаково для всех источников)
3. final_usd = floor(unit_price_usd * (10000 + bonus) / 10000)
4. token_amount = quote_usd_to_tokens(final_usd)
5. EscrowLedger.release (актив уходит в treasury проекта,
   token_amount выплачивается из пула с учётом комиссий)
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.core.domain.escrow import Escrow
from src.core.domain.fees import FeeSplit
from src.core.domain.price import PriceRecord
from src.core.domain.results import TransitionResult
from src.core.domain.units import DEFAULT_TOKEN_DECIMALS, BPS_MAX, ensure_u64, token_scale
from src.core.errors import (
    ErrorCode,
    InputValidationError,
    PreconditionError,
    SettlementError,
)
from src.core.math.fixed_point import apply_bonus_bps, mul_div
from src.core.store import liquidity_pool_key, platform_key, treasury_key
from src.escrow.ledger import EscrowLedger
from src.fees.distributor import FeeDistributor, FeeRecipients
from src.oracle.price_oracle import OracleConfig
from src.oracle.staleness import is_stale


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class RedemptionConfig:
    """Конфигурация redemption."""

    max_rarity_bonus_bps: int = 5_000  # +50% максимум
    token_decimals: int = DEFAULT_TOKEN_DECIMALS
    token_asset: str = "project_token"

    # Комиссии при выплате (None = без комиссий)
    fee_split: Optional[FeeSplit] = None
    royalty_wallet: Optional[str] = None

    def __post_init__(self) -> None:
        if not 0 <= self.max_rarity_bonus_bps <= BPS_MAX:
            raise ValueError(f"max_rarity_bonus_bps must be in [0, {BPS_MAX}]")


# =============================================================================
# QUOTES
# =============================================================================


def quote_usd_to_tokens(
    price_record: PriceRecord,
    usd_amount: int,
    token_decimals: int = DEFAULT_TOKEN_DECIMALS,
) -> int:
    """
    USD (6 знаков) → токены (token_decimals знаков), округление к нулю.

    Examples:
        >>> record = PriceRecord(unit_price_usd=5_000_000, source="Manual", last_update_unix_seconds=0)
        >>> quote_usd_to_tokens(record, 10_000_000)
        2000000000
    """
    if usd_amount < 0:
        raise InputValidationError(ErrorCode.ZERO_AMOUNT, f"usd_amount must be non-negative, got {usd_amount}")
    return ensure_u64(mul_div(usd_amount, token_scale(token_decimals), price_record.unit_price_usd), "token_amount")


def quote_tokens_to_usd(
    price_record: PriceRecord,
    token_amount: int,
    token_decimals: int = DEFAULT_TOKEN_DECIMALS,
) -> int:
    """
    Токены (token_decimals знаков) → USD (6 знаков), округление к нулю.

    Examples:
        >>> record = PriceRecord(unit_price_usd=5_000_000, source="Manual", last_update_unix_seconds=0)
        >>> quote_tokens_to_usd(record, 2_000_000_000)
        10000000
    """
    if token_amount < 0:
        raise InputValidationError(ErrorCode.ZERO_AMOUNT, f"token_amount must be non-negative, got {token_amount}")
    return ensure_u64(mul_div(token_amount, price_record.unit_price_usd, token_scale(token_decimals)), "usd_amount")


def max_round_trip_loss_usd(price_record: PriceRecord, token_decimals: int = DEFAULT_TOKEN_DECIMALS) -> int:
    """
    Граница потери usd -> tokens -> usd: стоимость одной базовой единицы токена в USD, вверх.

    Examples:
        >>> max_round_trip_loss_usd(PriceRecord(unit_price_usd=5_000_000_000, source="Manual", last_update_unix_seconds=0))
        5
    """
    scale = token_scale(token_decimals)
    return -(-price_record.unit_price_usd // scale)


def max_round_trip_loss_tokens(price_record: PriceRecord, token_decimals: int = DEFAULT_TOKEN_DECIMALS) -> int:
    """Граница потери tokens -> usd -> tokens: токенов в одной единице USD, вверх."""
    scale = token_scale(token_decimals)
    return -(-scale // price_record.unit_price_usd)


def final_redemption_usd(price_record: PriceRecord, rarity_bonus_bps: int) -> int:
    """
    final_usd = floor(unit_price_usd * (10000 + rarity_bonus_bps) / 10000)

    Examples:
        >>> record = PriceRecord(unit_price_usd=10_500_000, source="Manual", last_update_unix_seconds=0)
        >>> final_redemption_usd(record, 2000)
        12600000
    """
    return ensure_u64(apply_bonus_bps(price_record.unit_price_usd, rarity_bonus_bps), "final_usd")


# =============================================================================
# ENGINE
# =============================================================================


class RedemptionEngine:
    """Redemption escrow одного проекта по цене оракула.

    Usage:
        engine = RedemptionEngine(ledger)
        result = engine.redeem(escrow, price_record, rarity_bonus_bps=2000, now=t)
        token_amount = result.values["token_amount"]
    """

    def __init__(
        self,
        ledger: EscrowLedger,
        config: Optional[RedemptionConfig] = None,
        oracle_config: Optional[OracleConfig] = None,
    ):
        self.ledger = ledger
        self.config = config or RedemptionConfig()
        self.oracle_config = oracle_config or OracleConfig()

    @property
    def project_id(self) -> str:
        return self.ledger.project_id

    def quote_usd_to_tokens(self, price_record: PriceRecord, usd_amount: int) -> int:
        return quote_usd_to_tokens(price_record, usd_amount, self.config.token_decimals)

    def quote_tokens_to_usd(self, price_record: PriceRecord, token_amount: int) -> int:
        return quote_tokens_to_usd(price_record, token_amount, self.config.token_decimals)

    def validate_rarity_bonus(self, rarity_bonus_bps: int) -> int:
        """
        Проверка надбавки за редкость.

        Raises:
            InputValidationError: InvalidBps (< 0) или RarityBonusOutOfRange (> max)
        """
        if rarity_bonus_bps < 0:
            raise InputValidationError(ErrorCode.INVALID_BPS, f"rarity_bonus_bps must be >= 0, got {rarity_bonus_bps}")
        if rarity_bonus_bps > self.config.max_rarity_bonus_bps:
            raise InputValidationError(
                ErrorCode.RARITY_BONUS_OUT_OF_RANGE,
                f"rarity_bonus_bps {rarity_bonus_bps} exceeds {self.config.max_rarity_bonus_bps}",
            )
        return rarity_bonus_bps

    def redeem(
        self,
        escrow: Escrow,
        price_record: Optional[PriceRecord],
        rarity_bonus_bps: int,
        now: int,
        max_age_seconds: Optional[int] = None,
    ) -> TransitionResult[Escrow]:
        """Redemption escrow.

        Args:
            escrow: escrow к погашению
            price_record: текущая запись цены проекта
            rarity_bonus_bps: надбавка за редкость (bps)
            now: текущее время
            max_age_seconds: окно свежести (по умолчанию по источнику цены)

        Returns:
            TransitionResult; values: final_usd, token_amount, fee_breakdown
        """
        try:
            return self._redeem(escrow, price_record, rarity_bonus_bps, now, max_age_seconds)
        except SettlementError as e:
            logger.warning("redeem rejected id=%s code=%s: %s", escrow.escrow_id, e.code.value, e.message)
            return TransitionResult.rejected(escrow, e)

    def _redeem(
        self,
        escrow: Escrow,
        price_record: Optional[PriceRecord],
        rarity_bonus_bps: int,
        now: int,
        max_age_seconds: Optional[int],
    ) -> TransitionResult[Escrow]:
        self.validate_rarity_bonus(rarity_bonus_bps)
        if price_record is None:
            raise PreconditionError(ErrorCode.PRICE_NOT_SET, f"no price for project {self.project_id}")

        # 1. Redemption lock
        window = max_age_seconds if max_age_seconds is not None else self.oracle_config.max_age_for(price_record.source)
        if is_stale(price_record, now, window):
            raise PreconditionError(
                ErrorCode.ORACLE_STALE,
                f"price age {price_record.age_seconds(now)}s exceeds {window}s, redemption locked",
            )

        # 2-3. Стоимость с надбавкой и конверсия
        final_usd = final_redemption_usd(price_record, rarity_bonus_bps)
        token_amount = self.quote_usd_to_tokens(price_record, final_usd)

        # 4. Release: актив переходит в treasury проекта
        treasury = treasury_key(self.project_id).address
        released, release_effect = self.ledger.compute_release(escrow, now, beneficiary=treasury)

        # 5. Выплата из пула
        recipients = FeeRecipients(
            platform_treasury=platform_key().address,
            project_treasury=treasury,
            seller=escrow.owner,
            royalty_wallet=self.config.royalty_wallet,
        )
        fee_split = self.config.fee_split or FeeSplit(platform_bps=0, project_bps=0, royalty_bps=0)
        breakdown, payout_effects = FeeDistributor(fee_split, recipients).distribute(
            asset=self.config.token_asset,
            gross_amount=token_amount,
            source=liquidity_pool_key(self.project_id).address,
            memo="redemption",
        )

        logger.info(
            "escrow redeemed id=%s final_usd=%d token_amount=%d bonus_bps=%d",
            escrow.escrow_id,
            final_usd,
            token_amount,
            rarity_bonus_bps,
        )
        return TransitionResult.ok(
            released,
            effects=(release_effect, *payout_effects),
            reason="redeemed",
            details=f"final_usd={final_usd} token_amount={token_amount}",
            final_usd=final_usd,
            token_amount=token_amount,
            fee_breakdown=breakdown,
        )
