"""Тесты FeeDistributor и FeeSplit."""

import random

import pytest
from pydantic import ValidationError

from src.core.domain.fees import FeeBreakdown, FeeSplit
from src.core.errors import ErrorCode, FixedPointArithmeticError, InputValidationError
from src.fees.distributor import FeeDistributor, FeeRecipients, split


@pytest.fixture
def recipients():
    return FeeRecipients(
        platform_treasury="platform",
        project_treasury="project",
        seller="seller",
        royalty_wallet="creator",
    )


class TestSplit:
    """Тесты split."""

    def test_basic_split(self):
        """Доли округляются вниз, остаток продавцу."""
        breakdown = split(1_000_001, FeeSplit(platform_bps=250, project_bps=500, royalty_bps=100))

        assert breakdown.platform_amount == 25_000
        assert breakdown.project_amount == 50_000
        assert breakdown.royalty_amount == 10_000
        assert breakdown.remainder_amount == 915_001

    def test_zero_gross(self):
        """gross 0 → все доли 0."""
        breakdown = split(0, FeeSplit(platform_bps=250, project_bps=500))
        assert breakdown == FeeBreakdown(
            gross_amount=0, platform_amount=0, project_amount=0, royalty_amount=0, remainder_amount=0
        )

    def test_full_fee(self):
        """Ставки на 100%: остаток 0 или ошибки округления."""
        breakdown = split(9_999, FeeSplit(platform_bps=3_333, project_bps=3_333, royalty_bps=3_334))
        assert breakdown.remainder_amount == 9_999 - breakdown.platform_amount - breakdown.project_amount - breakdown.royalty_amount
        assert breakdown.remainder_amount >= 0

    def test_negative_gross(self):
        """Отрицательный gross отклоняется."""
        with pytest.raises(InputValidationError) as exc_info:
            split(-1, FeeSplit(platform_bps=0, project_bps=0))
        assert exc_info.value.code == ErrorCode.ZERO_AMOUNT

    def test_gross_above_u64(self):
        """gross вне u64 → Overflow."""
        with pytest.raises(FixedPointArithmeticError):
            split(2**64, FeeSplit(platform_bps=0, project_bps=0))

    def test_conservation_sweep(self):
        """Сумма четырёх долей равна gross для любых входов (seeded sweep)."""
        rng = random.Random(1234)
        for _ in range(5_000):
            platform = rng.randrange(0, 10_001)
            project = rng.randrange(0, 10_001 - platform)
            royalty = rng.randrange(0, 10_001 - platform - project)
            fee_split = FeeSplit(platform_bps=platform, project_bps=project, royalty_bps=royalty)
            gross = rng.choice([0, 1, rng.randrange(0, 10_000), rng.randrange(0, 2**64)])

            b = split(gross, fee_split)
            assert b.platform_amount + b.project_amount + b.royalty_amount + b.remainder_amount == gross
            assert b.remainder_amount >= 0


class TestFeeSplitModel:
    """Тесты модели FeeSplit."""

    def test_total_bps(self):
        assert FeeSplit(platform_bps=100, project_bps=200, royalty_bps=300).total_bps == 600

    def test_total_above_100_percent(self):
        """Сумма > 10000 отклоняется при создании."""
        with pytest.raises(ValidationError):
            FeeSplit(platform_bps=5_000, project_bps=5_000, royalty_bps=1)

    @pytest.mark.parametrize("field", ["platform_bps", "project_bps", "royalty_bps"])
    def test_rate_out_of_range(self, field):
        """Каждая ставка в [0, 10000]."""
        kwargs = {"platform_bps": 0, "project_bps": 0, field: -1}
        with pytest.raises(ValidationError):
            FeeSplit(**kwargs)

    def test_breakdown_conservation_enforced(self):
        """FeeBreakdown не допускает несохранения суммы."""
        with pytest.raises(ValidationError):
            FeeBreakdown(gross_amount=10, platform_amount=1, project_amount=1, royalty_amount=1, remainder_amount=1)


class TestDistributor:
    """Тесты эффектов FeeDistributor."""

    def test_effects_per_leg(self, recipients):
        """Один перевод на каждую ненулевую долю."""
        distributor = FeeDistributor(FeeSplit(platform_bps=250, project_bps=500, royalty_bps=100), recipients)
        breakdown, effects = distributor.distribute(asset="TOKEN", gross_amount=1_000_000, source="pool")

        assert [(e.destination, e.amount) for e in effects] == [
            ("platform", 25_000),
            ("project", 50_000),
            ("creator", 10_000),
            ("seller", 915_000),
        ]
        assert all(e.source == "pool" and e.asset == "TOKEN" for e in effects)
        assert effects[0].memo == "fee_distribution:platform_fee"
        assert sum(e.amount for e in effects) == breakdown.gross_amount

    def test_zero_legs_skipped(self, recipients):
        """Нулевые доли не порождают эффектов."""
        distributor = FeeDistributor(FeeSplit(platform_bps=0, project_bps=0), recipients)
        _, effects = distributor.distribute(asset="TOKEN", gross_amount=100, source="pool", memo="sale")

        assert len(effects) == 1
        assert effects[0].destination == "seller"
        assert effects[0].memo == "sale:seller_proceeds"

    def test_royalty_without_wallet(self):
        """Без royalty_wallet роялти остаётся у источника."""
        recipients = FeeRecipients(platform_treasury="platform", project_treasury="project", seller="seller")
        distributor = FeeDistributor(FeeSplit(platform_bps=0, project_bps=0, royalty_bps=1_000), recipients)
        breakdown, effects = distributor.distribute(asset="TOKEN", gross_amount=100, source="pool")

        assert breakdown.royalty_amount == 10
        assert [e.destination for e in effects] == ["seller"]
        assert effects[0].amount == 90
