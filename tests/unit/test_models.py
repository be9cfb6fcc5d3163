"""
test_models.py - Unit tests for the reference collaborators

Tests:
- LinearInterestModel utilization and rate
- FeedbackDistributionModel band behavior and clamping
- StaticOverseer limits
- Protocol conformance of each reference collaborator
"""

import pytest
from decimal import Decimal

from moneymarket import (
    LinearInterestModel, FeedbackDistributionModel, StaticOverseer, Bank,
    InterestModel, DistributionModel, Overseer, BankView,
)


class TestLinearInterestModel:
    """Tests for the utilization-linear borrow rate."""

    def test_rate_linear_in_utilization(self):
        model = LinearInterestModel(Decimal("0.000000001"), Decimal("0.00000001"))
        rate = model.borrow_rate(Decimal("600"), Decimal("400"), Decimal("0"))
        assert rate == Decimal("0.000000005")

    def test_reserves_reduce_denominator(self):
        model = LinearInterestModel(Decimal("0"), Decimal("1"))
        assert model.utilization(Decimal("700"), Decimal("400"), Decimal("100")) == Decimal("0.4")

    def test_no_net_assets_means_base_rate(self):
        model = LinearInterestModel(Decimal("0.000000001"), Decimal("0.00000001"))
        assert model.borrow_rate(Decimal("0"), Decimal("0"), Decimal("0")) == Decimal("0.000000001")

    def test_negative_parameters_rejected(self):
        with pytest.raises(ValueError, match="base_rate"):
            LinearInterestModel(base_rate=Decimal("-1"))
        with pytest.raises(ValueError, match="interest_multiplier"):
            LinearInterestModel(interest_multiplier=Decimal("-1"))


class TestFeedbackDistributionModel:
    """Tests for the emission feedback loop."""

    TARGET = Decimal("0.0000002")
    THRESHOLD = Decimal("0.0000001")

    def rate(self, deposit_rate, current, **kwargs):
        model = FeedbackDistributionModel(**kwargs)
        return model.anc_emission_rate(deposit_rate, self.TARGET, self.THRESHOLD, current)

    def test_below_threshold_increments(self):
        assert self.rate(Decimal("0"), Decimal("10")) == Decimal("11")

    def test_above_target_decrements(self):
        assert self.rate(Decimal("0.0000003"), Decimal("10")) == Decimal("9")

    def test_inside_band_unchanged(self):
        assert self.rate(Decimal("0.00000015"), Decimal("10")) == Decimal("10")

    def test_clamped_to_cap(self):
        assert self.rate(Decimal("0"), Decimal("95")) == Decimal("100")

    def test_clamped_to_floor(self):
        assert self.rate(Decimal("0.0000003"), Decimal("10"), emission_floor=Decimal("9.5")) == Decimal("9.5")

    def test_invalid_parameters_rejected(self):
        with pytest.raises(ValueError, match="emission_floor"):
            FeedbackDistributionModel(emission_cap=Decimal("1"), emission_floor=Decimal("2"))
        with pytest.raises(ValueError, match="increment_multiplier"):
            FeedbackDistributionModel(increment_multiplier=Decimal("0.5"))
        with pytest.raises(ValueError, match="decrement_multiplier"):
            FeedbackDistributionModel(decrement_multiplier=Decimal("1.5"))


class TestStaticOverseer:
    """Tests for the fixed overseer."""

    def test_unknown_borrower_has_zero_limit(self):
        assert StaticOverseer(Decimal("0")).borrow_limit("nobody", 0) == Decimal("0")

    def test_limits_and_target_are_settable(self):
        overseer = StaticOverseer(Decimal("0"))
        overseer.set_borrow_limit("bob", 100)
        overseer.set_target_deposit_rate("0.000001")
        assert overseer.borrow_limit("bob", 0) == Decimal("100")
        assert overseer.target_deposit_rate() == Decimal("0.000001")


class TestProtocols:
    """Reference collaborators satisfy the collaborator protocols."""

    def test_reference_collaborators_match_protocols(self):
        assert isinstance(LinearInterestModel(), InterestModel)
        assert isinstance(FeedbackDistributionModel(), DistributionModel)
        assert isinstance(StaticOverseer(Decimal("0")), Overseer)
        assert isinstance(Bank(verbose=False), BankView)
