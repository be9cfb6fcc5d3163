"""
test_market_lifecycle.py - End-to-end money market scenarios

Scenarios:
- Accrual from genesis: idle period, then compounding on external liabilities
- Depositor and borrower round trip over several epochs
- Reward emission across borrowers and epochs
"""

from dataclasses import replace
from decimal import Decimal

from moneymarket import (
    MessageInfo, StaticOverseer, LinearInterestModel, FeedbackDistributionModel,
    genesis_state, compute_interest_raw, compute_reward,
)

from tests.fakes import FixedRateInterestModel
from tests.helpers import (
    T0, DENOM, ATERRA, OVERSEER, COLLECTOR, USER_FUNDS, build_market, funds,
)


RATE = Decimal("0.00000001")


class TestAccrualFromGenesis:
    """Idle period followed by compounding on liabilities set from outside."""

    def test_pure_engines(self):
        state = genesis_state(T0, Decimal("0"))

        # No liabilities: the index stays at 1 but the marks advance.
        state = compute_interest_raw(state, T0 + 1000, Decimal("0"), Decimal("0"), RATE, Decimal("0"))
        state = compute_reward(state, T0 + 1000)
        assert state.global_interest_index == Decimal("1")
        assert state.last_interest_updated_time == T0 + 1000
        assert state.last_reward_updated_time == T0 + 1000

        # 1,000,000 * 0.00000001 * 1000 = 10 of interest.
        state = replace(state, total_liabilities=Decimal("1000000"))
        state = compute_interest_raw(state, T0 + 2000, Decimal("0"), Decimal("0"), RATE, Decimal("0"))
        assert state.total_liabilities == Decimal("1000010")
        assert state.global_interest_index == Decimal("1.00001")
        assert state.total_reserves == Decimal("0")

    def test_through_the_market(self):
        market = build_market(
            interest_model=FixedRateInterestModel(RATE),
            overseer=StaticOverseer(Decimal("0"), {"bob": Decimal("950000")}),
        )

        idle = market.query_state(T0 + 1000)
        assert idle.global_interest_index == Decimal("1")
        assert idle.last_interest_updated_time == T0 + 1000

        market.borrow_stable(MessageInfo("bob"), T0 + 1000, Decimal("900000"))
        state = market.query_state(T0 + 2000)
        assert state.total_liabilities == Decimal("900009")
        assert state.global_interest_index == Decimal("1.00001")


class TestDepositorBorrowerRoundTrip:
    """Depositors earn what borrowers pay, less reserves."""

    def test_round_trip(self):
        market = build_market(
            interest_model=LinearInterestModel(),
            distribution_model=FeedbackDistributionModel(),
            overseer=StaticOverseer(Decimal("0.000000001"), {"bob": Decimal("1500000")}),
        )
        bank = market.querier.bank

        # alice deposits at par.
        market.deposit_stable(MessageInfo("alice", funds(1000000)), T0)
        minted = bank.balance("alice", ATERRA)
        assert minted == Decimal("1000000")

        # bob borrows most of the pool.
        market.borrow_stable(MessageInfo("bob"), T0, Decimal("1500000"))
        assert market.state.total_liabilities == Decimal("1500000")

        # A day of epochs.
        for hour in range(1, 25):
            market.execute_epoch_operations(
                MessageInfo(OVERSEER), T0 + hour * 3600,
                Decimal("0"), Decimal("0.000000001"), Decimal("0.0000000005"), Decimal("0"),
            )

        end = T0 + 24 * 3600
        debt = market.query_borrower_info("bob", end).loan_amount
        assert debt > Decimal("1500000")
        assert market.state.global_interest_index > Decimal("1")

        # bob repays everything; any overpayment comes back.
        market.repay_stable(MessageInfo("bob", funds(debt + 100)), end)
        assert market.get_borrower_info("bob").loan_amount == Decimal("0")
        assert market.state.total_liabilities < Decimal("1")

        # alice redeems at a rate above par.
        market.redeem_stable(MessageInfo("alice"), end, minted)
        assert bank.balance("alice", ATERRA) == Decimal("0")
        assert bank.balance("alice", DENOM) > USER_FUNDS

        # Yield above target was swept to the collector; no stable asset was created.
        assert bank.balance(COLLECTOR, DENOM) > Decimal("0")
        assert bank.supply(DENOM) == Decimal("1000000") + 3 * USER_FUNDS


class TestRewardEmission:
    """Emission is shared by outstanding debt over time."""

    def test_rewards_follow_debt_share(self):
        market = build_market(
            overseer=StaticOverseer(Decimal("0"), {"bob": Decimal("300000"), "carol": Decimal("300000")}),
            anc_emission_rate=Decimal("2"),
        )
        bank = market.querier.bank

        market.borrow_stable(MessageInfo("bob"), T0, Decimal("100000"))
        # bob alone for 500s: 1000 reward.
        market.borrow_stable(MessageInfo("carol"), T0 + 500, Decimal("300000"))
        # Then 1:3 for 500s: 250 to bob, 750 to carol.
        market.claim_rewards(MessageInfo("bob"), T0 + 1000)
        market.claim_rewards(MessageInfo("carol"), T0 + 1000)

        assert bank.balance("bob", bank.reward_denom) == Decimal("1250")
        assert bank.balance("carol", bank.reward_denom) == Decimal("750")

        # Repaid debt stops earning.
        market.repay_stable(MessageInfo("bob", funds(100000)), T0 + 1000)
        # carol alone for 1500s: 3000 more.
        market.claim_rewards(MessageInfo("carol"), T0 + 2500)
        assert bank.balance("carol", bank.reward_denom) == Decimal("3750")
