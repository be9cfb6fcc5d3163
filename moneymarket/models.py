"""
models.py - Reference rate models and overseer

Classes:
- LinearInterestModel: borrow rate linear in utilization
- FeedbackDistributionModel: emission rate nudged toward a deposit-rate band
- StaticOverseer: fixed target deposit rate and per-borrower borrow limits

The market only relies on the InterestModel, DistributionModel and Overseer
protocols; these classes are one concrete choice of each. All rates are per
second.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Dict, Optional

from .core import ONE, ZERO, fixed, to_decimal


# Roughly 15% a year at full utilization.
DEFAULT_BASE_RATE = Decimal("0")
DEFAULT_INTEREST_MULTIPLIER = Decimal("0.000000004756468797")

DEFAULT_EMISSION_CAP = Decimal("100")
DEFAULT_EMISSION_FLOOR = Decimal("0")
DEFAULT_INCREMENT_MULTIPLIER = Decimal("1.1")
DEFAULT_DECREMENT_MULTIPLIER = Decimal("0.9")


class LinearInterestModel:
    """
    borrow_rate = base_rate + interest_multiplier * utilization

    utilization = total_liabilities / (balance + total_liabilities - total_reserves)
    and is zero when the market holds no net assets.
    """

    def __init__(
        self,
        base_rate: Decimal = DEFAULT_BASE_RATE,
        interest_multiplier: Decimal = DEFAULT_INTEREST_MULTIPLIER,
    ):
        self.base_rate = to_decimal(base_rate)
        self.interest_multiplier = to_decimal(interest_multiplier)
        if self.base_rate < ZERO:
            raise ValueError(f"base_rate cannot be negative, got {self.base_rate}")
        if self.interest_multiplier < ZERO:
            raise ValueError(f"interest_multiplier cannot be negative, got {self.interest_multiplier}")

    def utilization(
        self,
        market_balance: Decimal,
        total_liabilities: Decimal,
        total_reserves: Decimal,
    ) -> Decimal:
        total_value = to_decimal(market_balance) + to_decimal(total_liabilities) - to_decimal(total_reserves)
        if total_value <= ZERO:
            return ZERO
        return fixed(to_decimal(total_liabilities) / total_value)

    def borrow_rate(
        self,
        market_balance: Decimal,
        total_liabilities: Decimal,
        total_reserves: Decimal,
    ) -> Decimal:
        utilization = self.utilization(market_balance, total_liabilities, total_reserves)
        return fixed(self.base_rate + self.interest_multiplier * utilization)

    def __repr__(self):
        return f"LinearInterestModel(base={self.base_rate}, multiplier={self.interest_multiplier})"


class FeedbackDistributionModel:
    """
    Emission feedback loop around the deposit rate band.

    Below threshold_deposit_rate the emission grows by increment_multiplier,
    above target_deposit_rate it shrinks by decrement_multiplier, inside the
    band it is left alone. The result is clamped to [emission_floor, emission_cap].
    """

    def __init__(
        self,
        emission_cap: Decimal = DEFAULT_EMISSION_CAP,
        emission_floor: Decimal = DEFAULT_EMISSION_FLOOR,
        increment_multiplier: Decimal = DEFAULT_INCREMENT_MULTIPLIER,
        decrement_multiplier: Decimal = DEFAULT_DECREMENT_MULTIPLIER,
    ):
        self.emission_cap = to_decimal(emission_cap)
        self.emission_floor = to_decimal(emission_floor)
        self.increment_multiplier = to_decimal(increment_multiplier)
        self.decrement_multiplier = to_decimal(decrement_multiplier)
        if self.emission_floor < ZERO:
            raise ValueError(f"emission_floor cannot be negative, got {self.emission_floor}")
        if self.emission_floor > self.emission_cap:
            raise ValueError(
                f"emission_floor ({self.emission_floor}) cannot exceed "
                f"emission_cap ({self.emission_cap})"
            )
        if self.increment_multiplier < ONE:
            raise ValueError("increment_multiplier must be at least 1")
        if not ZERO <= self.decrement_multiplier <= ONE:
            raise ValueError("decrement_multiplier must be in [0, 1]")

    def anc_emission_rate(
        self,
        deposit_rate: Decimal,
        target_deposit_rate: Decimal,
        threshold_deposit_rate: Decimal,
        current_emission_rate: Decimal,
    ) -> Decimal:
        deposit_rate = to_decimal(deposit_rate)
        current_emission_rate = to_decimal(current_emission_rate)

        if deposit_rate < to_decimal(threshold_deposit_rate):
            emission_rate = fixed(current_emission_rate * self.increment_multiplier)
        elif deposit_rate > to_decimal(target_deposit_rate):
            emission_rate = fixed(current_emission_rate * self.decrement_multiplier)
        else:
            emission_rate = current_emission_rate

        if emission_rate > self.emission_cap:
            return self.emission_cap
        if emission_rate < self.emission_floor:
            return self.emission_floor
        return emission_rate

    def __repr__(self):
        return f"FeedbackDistributionModel(cap={self.emission_cap}, floor={self.emission_floor})"


class StaticOverseer:
    """Overseer with a fixed target deposit rate and settable borrow limits."""

    def __init__(
        self,
        target_deposit_rate: Decimal,
        borrow_limits: Optional[Dict[str, Decimal]] = None,
    ):
        self._target_deposit_rate = to_decimal(target_deposit_rate)
        self.borrow_limits: Dict[str, Decimal] = {
            k: to_decimal(v) for k, v in (borrow_limits or {}).items()
        }

    def target_deposit_rate(self) -> Decimal:
        return self._target_deposit_rate

    def borrow_limit(self, borrower: str, block_time: Optional[int] = None) -> Decimal:
        return self.borrow_limits.get(borrower, ZERO)

    def set_borrow_limit(self, borrower: str, limit: Decimal) -> None:
        self.borrow_limits[borrower] = to_decimal(limit)

    def set_target_deposit_rate(self, rate: Decimal) -> None:
        self._target_deposit_rate = to_decimal(rate)
