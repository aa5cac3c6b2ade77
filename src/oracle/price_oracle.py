"""PriceOracle: цена токена проекта из трёх источников.

Источники:
- MANUAL: цена задана авторитетом платформы
- DEX_POOL: цена из резервов пула ликвидности (reserve_quote / reserve_asset)
- EXTERNAL_FEED: котировка сети оракулов (price, confidence, publish_time)

Все три пути дают одну и ту же форму PriceRecord, поэтому потребители не
ветвятся по источнику, кроме длительности окна свежести (max_age_for).

Отклонённое обновление оставляет прежнюю запись без изменений
(отдельное поле "последняя попытка неуспешна" не ведётся; причина
возвращается в TransitionResult и пишется в лог).
"""

import logging
from dataclasses import dataclass
from typing import Optional, Protocol

from src.core.domain.price import PriceRecord, PriceSource
from src.core.domain.results import TransitionResult
from src.core.domain.units import (
    BPS_DENOMINATOR,
    BPS_MAX,
    USD_DECIMALS,
    ensure_u64,
    fixed_to_display,
    validate_decimals,
)
from src.core.errors import (
    ErrorCode,
    FixedPointArithmeticError,
    InputValidationError,
    PreconditionError,
    SettlementError,
)
from src.core.math.fixed_point import checked_mul, mul_div, rescale_by_exponent
from src.oracle.staleness import DEFAULT_MAX_AGE_SECONDS


logger = logging.getLogger(__name__)


# =============================================================================
# CONFIG
# =============================================================================


@dataclass(frozen=True)
class OracleConfig:
    """Конфигурация оракула.

    Минимумы резервов заданы в базовых единицах соответствующего токена
    и защищают от манипуляции односторонним пулом.
    """

    # DEX pool
    min_reserve_asset: int = 1
    min_reserve_quote: int = 1_000_000

    # External feed
    max_feed_age_seconds: int = 60
    max_confidence_bps: int = 200  # confidence / price <= 2%

    # Окна свежести по источникам (для redemption lock)
    manual_max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS
    dex_max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS
    external_feed_max_age_seconds: int = DEFAULT_MAX_AGE_SECONDS

    def __post_init__(self) -> None:
        if self.min_reserve_asset < 0 or self.min_reserve_quote < 0:
            raise ValueError("reserve minimums must be non-negative")
        if self.max_feed_age_seconds < 0:
            raise ValueError("max_feed_age_seconds must be non-negative")
        if not 0 <= self.max_confidence_bps <= BPS_MAX:
            raise ValueError(f"max_confidence_bps must be in [0, {BPS_MAX}]")
        for window in (
            self.manual_max_age_seconds,
            self.dex_max_age_seconds,
            self.external_feed_max_age_seconds,
        ):
            if window < 0:
                raise ValueError("staleness windows must be non-negative")

    def max_age_for(self, source: PriceSource) -> int:
        """Окно свежести для источника."""
        if source == PriceSource.MANUAL:
            return self.manual_max_age_seconds
        if source == PriceSource.DEX_POOL:
            return self.dex_max_age_seconds
        return self.external_feed_max_age_seconds


class ExternalPriceFeed(Protocol):
    """Capability внешнего фида, которую предоставляет диспетчер."""

    price: int
    confidence: int
    expo: int
    publish_time: int


# =============================================================================
# PURE PRICE FUNCTIONS
# =============================================================================


def price_from_reserves(
    reserve_asset: int,
    reserve_quote: int,
    quote_decimals: int,
    asset_decimals: int,
) -> int:
    """
    Цена единицы актива из резервов пула, нормализованная к 6 знакам.

    unit_price_usd = (reserve_quote / 10**quote_decimals)
                     / (reserve_asset / 10**asset_decimals) * 10**6

    Raises:
        FixedPointArithmeticError: DivideByZero если reserve_asset == 0

    Examples:
        >>> price_from_reserves(100, 500_000_000, quote_decimals=6, asset_decimals=0)
        5000000
    """
    validate_decimals(quote_decimals, "quote_decimals")
    validate_decimals(asset_decimals, "asset_decimals")
    if reserve_asset == 0:
        raise FixedPointArithmeticError(ErrorCode.DIVIDE_BY_ZERO, "reserve_asset is zero")
    numerator_scale = 10 ** (asset_decimals + USD_DECIMALS)
    denominator = checked_mul(reserve_asset, 10**quote_decimals)
    return mul_div(reserve_quote, numerator_scale, denominator)


def confidence_within(price: int, confidence: int, max_confidence_bps: int) -> bool:
    """
    confidence / price <= max_confidence_bps / 10000 (целочисленно).
    """
    return confidence * BPS_DENOMINATOR <= price * max_confidence_bps


# =============================================================================
# ORACLE
# =============================================================================


class PriceOracle:
    """Оракул цены одного проекта.

    Держит последнюю принятую PriceRecord. Каждое обновление вычисляет
    новую запись полностью и фиксирует её только при успехе.

    Usage:
        oracle = PriceOracle("project_1")
        result = oracle.set_manual(10_500_000, now=1_700_000_000)
        record = oracle.current()
    """

    def __init__(
        self,
        project_id: str,
        config: Optional[OracleConfig] = None,
        record: Optional[PriceRecord] = None,
    ):
        """
        Args:
            project_id: проект-владелец записи цены
            config: конфигурация (по умолчанию OracleConfig())
            record: ранее сохранённая запись (загружена диспетчером)
        """
        self.project_id = project_id
        self.config = config or OracleConfig()
        self._record = record

    @property
    def record(self) -> Optional[PriceRecord]:
        return self._record

    def current(self) -> PriceRecord:
        """
        Текущая запись цены.

        Raises:
            PreconditionError: PriceNotSet если цена ни разу не устанавливалась
        """
        if self._record is None:
            raise PreconditionError(
                ErrorCode.PRICE_NOT_SET, f"no price recorded for project {self.project_id}"
            )
        return self._record

    def max_age_seconds(self) -> int:
        """Окно свежести для источника текущей записи."""
        return self.config.max_age_for(self.current().source)

    # -------------------------------------------------------------------------
    # UPDATE PATHS
    # -------------------------------------------------------------------------

    def set_manual(self, price: int, now: int) -> TransitionResult[Optional[PriceRecord]]:
        """Ручная установка цены (source = MANUAL).

        Отказ: InvalidPrice если price <= 0.
        """
        return self._update(lambda: self._manual_record(price, now), now)

    def update_from_pool(
        self,
        reserve_asset: int,
        reserve_quote: int,
        quote_decimals: int,
        asset_decimals: int,
        now: int,
    ) -> TransitionResult[Optional[PriceRecord]]:
        """Цена из резервов DEX пула (source = DEX_POOL).

        Отказы:
        - DivideByZero если reserve_asset == 0
        - InsufficientLiquidity если резерв ниже минимума
        - InvalidPrice если цена округлилась до нуля
        """
        return self._update(
            lambda: self._pool_record(reserve_asset, reserve_quote, quote_decimals, asset_decimals, now),
            now,
        )

    def update_from_external_feed(
        self,
        feed_price: int,
        feed_confidence: int,
        feed_publish_time: int,
        now: int,
        feed_expo: int = -USD_DECIMALS,
    ) -> TransitionResult[Optional[PriceRecord]]:
        """Цена из внешнего фида (source = EXTERNAL_FEED).

        Отказы:
        - InvalidPrice если feed_price <= 0
        - FeedTooStale если now - feed_publish_time > max_feed_age_seconds
        - FeedConfidenceTooLow если confidence / price > max_confidence_bps
        """
        return self._update(
            lambda: self._feed_record(feed_price, feed_confidence, feed_publish_time, feed_expo, now),
            now,
        )

    def update_from_feed(self, feed: ExternalPriceFeed, now: int) -> TransitionResult[Optional[PriceRecord]]:
        """Обновление из объекта-capability фида."""
        return self.update_from_external_feed(
            feed_price=feed.price,
            feed_confidence=feed.confidence,
            feed_publish_time=feed.publish_time,
            now=now,
            feed_expo=feed.expo,
        )

    # -------------------------------------------------------------------------
    # INTERNALS
    # -------------------------------------------------------------------------

    def _update(self, build, now: int) -> TransitionResult[Optional[PriceRecord]]:
        previous = self._record
        try:
            self._check_monotonic(now)
            record = build()
        except SettlementError as e:
            logger.warning(
                "price update rejected project=%s code=%s: %s",
                self.project_id,
                e.code.value,
                e.message,
            )
            return TransitionResult.rejected(previous, e)

        self._record = record
        logger.info(
            "price updated project=%s source=%s price=%s USD",
            self.project_id,
            record.source.value,
            fixed_to_display(record.unit_price_usd),
        )
        return TransitionResult.ok(
            record,
            reason=f"price_set_{record.source.value}",
            details=f"unit_price_usd={record.unit_price_usd} at {record.last_update_unix_seconds}",
        )

    def _check_monotonic(self, now: int) -> None:
        if now < 0:
            raise InputValidationError(ErrorCode.TIMESTAMP_REGRESSION, f"negative timestamp {now}")
        if self._record is not None and now < self._record.last_update_unix_seconds:
            raise InputValidationError(
                ErrorCode.TIMESTAMP_REGRESSION,
                f"now={now} precedes last update {self._record.last_update_unix_seconds}",
            )

    def _manual_record(self, price: int, now: int) -> PriceRecord:
        if price <= 0:
            raise InputValidationError(ErrorCode.INVALID_PRICE, f"price must be positive, got {price}")
        ensure_u64(price, "price")
        return PriceRecord(unit_price_usd=price, source=PriceSource.MANUAL, last_update_unix_seconds=now)

    def _pool_record(
        self,
        reserve_asset: int,
        reserve_quote: int,
        quote_decimals: int,
        asset_decimals: int,
        now: int,
    ) -> PriceRecord:
        if reserve_asset < 0 or reserve_quote < 0:
            raise InputValidationError(
                ErrorCode.INSUFFICIENT_LIQUIDITY,
                f"negative reserves asset={reserve_asset} quote={reserve_quote}",
            )
        if reserve_asset == 0:
            raise FixedPointArithmeticError(ErrorCode.DIVIDE_BY_ZERO, "reserve_asset is zero")
        if reserve_asset < self.config.min_reserve_asset or reserve_quote < self.config.min_reserve_quote:
            raise InputValidationError(
                ErrorCode.INSUFFICIENT_LIQUIDITY,
                f"reserves asset={reserve_asset} quote={reserve_quote} below minimum "
                f"asset={self.config.min_reserve_asset} quote={self.config.min_reserve_quote}",
            )
        price = price_from_reserves(reserve_asset, reserve_quote, quote_decimals, asset_decimals)
        if price <= 0:
            raise InputValidationError(ErrorCode.INVALID_PRICE, "pool price rounds to zero")
        ensure_u64(price, "price")
        return PriceRecord(unit_price_usd=price, source=PriceSource.DEX_POOL, last_update_unix_seconds=now)

    def _feed_record(
        self,
        feed_price: int,
        feed_confidence: int,
        feed_publish_time: int,
        feed_expo: int,
        now: int,
    ) -> PriceRecord:
        if feed_price <= 0:
            raise InputValidationError(ErrorCode.INVALID_PRICE, f"feed price must be positive, got {feed_price}")
        if feed_confidence < 0:
            raise InputValidationError(
                ErrorCode.FEED_CONFIDENCE_TOO_LOW, f"negative confidence {feed_confidence}"
            )
        age = now - feed_publish_time
        if age > self.config.max_feed_age_seconds:
            raise PreconditionError(
                ErrorCode.FEED_TOO_STALE,
                f"feed age {age}s exceeds {self.config.max_feed_age_seconds}s",
            )
        if not confidence_within(feed_price, feed_confidence, self.config.max_confidence_bps):
            raise PreconditionError(
                ErrorCode.FEED_CONFIDENCE_TOO_LOW,
                f"confidence {feed_confidence} / price {feed_price} exceeds "
                f"{self.config.max_confidence_bps} bps",
            )
        price = rescale_by_exponent(feed_price, feed_expo, USD_DECIMALS)
        if price <= 0:
            raise InputValidationError(ErrorCode.INVALID_PRICE, "feed price rounds to zero")
        ensure_u64(price, "price")
        return PriceRecord(
            unit_price_usd=price, source=PriceSource.EXTERNAL_FEED, last_update_unix_seconds=now
        )

