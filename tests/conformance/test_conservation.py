"""
Conservation Law Conformance Tests

INVARIANT: Market operations move the stable asset between addresses but
never create or destroy it.

    ∀ operation sequence O:
        Σ_{a ∈ addresses} balance(a, stable) is constant

Receipt token supply changes only by the amounts minted and burned, and the
reward token only moves from the distributor.
"""

from hypothesis import given, settings
from hypothesis import strategies as st
from decimal import Decimal

from moneymarket import MessageInfo, StaticOverseer, LinearInterestModel, MarketError

from tests.helpers import T0, DENOM, ATERRA, DISTRIBUTOR, OVERSEER, build_market, funds


# =============================================================================
# STRATEGIES
# =============================================================================

operations = st.sampled_from(["deposit", "redeem", "borrow", "repay", "claim", "epoch"])

steps = st.lists(
    st.tuples(
        operations,
        st.integers(min_value=1, max_value=500000),
        st.integers(min_value=0, max_value=10**5),
    ),
    min_size=1,
    max_size=15,
)


def apply(market, op, amount, t):
    amount = Decimal(amount)
    if op == "deposit":
        market.deposit_stable(MessageInfo("alice", funds(amount)), t)
    elif op == "redeem":
        held = market.querier.bank.balance("alice", ATERRA)
        market.redeem_stable(MessageInfo("alice"), t, min(amount, held))
    elif op == "borrow":
        market.borrow_stable(MessageInfo("bob"), t, amount)
    elif op == "repay":
        market.repay_stable(MessageInfo("bob", funds(amount)), t)
    elif op == "claim":
        market.claim_rewards(MessageInfo("bob"), t)
    else:
        market.execute_epoch_operations(
            MessageInfo(OVERSEER), t, Decimal("0"), Decimal("0.0000002"), Decimal("0.0000001"), Decimal("0"),
        )


class TestConservationProperties:
    """Property-based conservation tests."""

    @given(steps)
    @settings(max_examples=40, deadline=None)
    def test_stable_asset_conserved(self, sequence):
        """
        PROPERTY: Total stable asset across all addresses never changes.
        """
        market = build_market(
            interest_model=LinearInterestModel(),
            overseer=StaticOverseer(Decimal("0.000000001"), {"bob": Decimal("2000000")}),
        )
        bank = market.querier.bank
        total_stable = bank.supply(DENOM)
        total_reward = bank.supply(bank.reward_denom)

        t = T0
        for op, amount, step in sequence:
            t += step
            try:
                apply(market, op, amount, t)
            except MarketError:
                pass
            assert bank.supply(DENOM) == total_stable
            assert bank.supply(bank.reward_denom) == total_reward

    @given(steps)
    @settings(max_examples=40, deadline=None)
    def test_receipt_supply_tracks_mints_and_burns(self, sequence):
        """
        PROPERTY: Receipt supply = bootstrap + Σ minted - Σ burned.
        """
        market = build_market(
            interest_model=LinearInterestModel(),
            overseer=StaticOverseer(Decimal("0.000000001"), {"bob": Decimal("2000000")}),
        )
        bank = market.querier.bank
        expected = bank.supply(ATERRA)

        t = T0
        for op, amount, step in sequence:
            t += step
            logged = len(market.response_log)
            try:
                apply(market, op, amount, t)
            except MarketError:
                continue
            response = market.response_log[logged]
            if op == "deposit":
                expected += Decimal(response.attribute("mint_amount"))
            elif op == "redeem":
                expected -= Decimal(response.attribute("burn_amount"))
            assert bank.supply(ATERRA) == expected


class TestConservationExamples:
    """Explicit conservation examples."""

    def test_claim_moves_reward_from_distributor_only(self):
        market = build_market(overseer=StaticOverseer(Decimal("0"), {"bob": Decimal("100000")}))
        bank = market.querier.bank
        market.borrow_stable(MessageInfo("bob"), T0, Decimal("100000"))
        before = bank.balance(DISTRIBUTOR, bank.reward_denom)

        market.claim_rewards(MessageInfo("bob"), T0 + 1000)
        paid = bank.balance("bob", bank.reward_denom)
        assert paid == Decimal("1000")
        assert bank.balance(DISTRIBUTOR, bank.reward_denom) == before - paid
