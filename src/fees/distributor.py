"""FeeDistributor: разделение gross суммы на доли.

split(gross, fee_split):
    platform  = floor(gross * platform_bps / 10000)
    project   = floor(gross * project_bps  / 10000)
    royalty   = floor(gross * royalty_bps  / 10000)
    remainder = gross - platform - project - royalty

Инвариант: сумма четырёх долей РАВНА gross для любого gross >= 0
(ошибки округления уходят в remainder, ценность не создаётся и не теряется).
"""

import logging
from dataclasses import dataclass
from typing import Optional

from src.core.domain.effects import TransferEffect, transfer
from src.core.domain.fees import FeeBreakdown, FeeSplit
from src.core.domain.units import ensure_u64
from src.core.errors import ErrorCode, InputValidationError
from src.core.math.fixed_point import apply_bps


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FeeRecipients:
    """Адреса получателей долей.

    Если royalty_wallet не задан, роялти остаётся у источника
    (эффект перевода не формируется). Пустой seller так же оставляет
    remainder у источника (swap: остаток остаётся в пуле).
    """

    platform_treasury: str
    project_treasury: str
    seller: str
    royalty_wallet: Optional[str] = None


def split(gross_amount: int, fee_split: FeeSplit) -> FeeBreakdown:
    """
    Разделение gross суммы по ставкам.

    Raises:
        InputValidationError: если gross_amount < 0

    Examples:
        >>> split(1_000_001, FeeSplit(platform_bps=250, project_bps=500, royalty_bps=100)).remainder_amount
        915001
    """
    if gross_amount < 0:
        raise InputValidationError(ErrorCode.ZERO_AMOUNT, f"gross_amount must be non-negative, got {gross_amount}")
    ensure_u64(gross_amount, "gross_amount")

    platform_amount = apply_bps(gross_amount, fee_split.platform_bps)
    project_amount = apply_bps(gross_amount, fee_split.project_bps)
    royalty_amount = apply_bps(gross_amount, fee_split.royalty_bps)
    remainder_amount = gross_amount - platform_amount - project_amount - royalty_amount

    return FeeBreakdown(
        gross_amount=gross_amount,
        platform_amount=platform_amount,
        project_amount=project_amount,
        royalty_amount=royalty_amount,
        remainder_amount=remainder_amount,
    )


class FeeDistributor:
    """Формирование эффектов переводов из FeeBreakdown.

    Usage:
        distributor = FeeDistributor(fee_split, recipients)
        breakdown, effects = distributor.distribute(asset="TOKEN", gross_amount=..., source=pool)
    """

    def __init__(self, fee_split: FeeSplit, recipients: FeeRecipients):
        self.fee_split = fee_split
        self.recipients = recipients

    def split(self, gross_amount: int) -> FeeBreakdown:
        return split(gross_amount, self.fee_split)

    def distribute(
        self,
        asset: str,
        gross_amount: int,
        source: str,
        memo: str = "fee_distribution",
    ) -> tuple[FeeBreakdown, tuple[TransferEffect, ...]]:
        """
        Split + эффекты переводов (нулевые доли пропускаются).

        Returns:
            (breakdown, effects)
        """
        breakdown = self.split(gross_amount)
        legs = [
            (breakdown.platform_amount, self.recipients.platform_treasury, "platform_fee"),
            (breakdown.project_amount, self.recipients.project_treasury, "project_fee"),
            (breakdown.royalty_amount, self.recipients.royalty_wallet, "royalty"),
            (breakdown.remainder_amount, self.recipients.seller, "seller_proceeds"),
        ]
        effects = tuple(
            transfer(asset=asset, amount=amount, source=source, destination=destination, memo=f"{memo}:{leg}")
            for amount, destination, leg in legs
            if amount > 0 and destination
        )
        logger.debug(
            "fees split gross=%d platform=%d project=%d royalty=%d remainder=%d",
            breakdown.gross_amount,
            breakdown.platform_amount,
            breakdown.project_amount,
            breakdown.royalty_amount,
            breakdown.remainder_amount,
        )
        return breakdown, effects
