"""
helpers.py - Market construction and comparison helpers for tests

build_market() is a plain function rather than a fixture so hypothesis
tests, which cannot use function-scoped fixtures, can build a fresh market
per example.
"""

from decimal import Decimal
from typing import Any, Dict, Optional

from moneymarket import (
    Bank, Querier, Market, MessageInfo, StaticOverseer,
    INITIAL_DEPOSIT_AMOUNT,
)

from tests.fakes import FixedRateInterestModel, FixedEmissionModel


# =============================================================================
# CONSTANTS
# =============================================================================

T0 = 1_000_000
DENOM = "uusd"
MARKET = "market"
OWNER = "owner"
CREATOR = "creator"
OVERSEER = "overseer"
INTEREST_MODEL = "interest_model"
DISTRIBUTION_MODEL = "distribution_model"
COLLECTOR = "collector"
DISTRIBUTOR = "distributor"
ATERRA = "bank_token0"

USER_FUNDS = Decimal("10000000")
DISTRIBUTOR_FUNDS = Decimal("1000000000")


# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def build_market(
    interest_model: Any = None,
    distribution_model: Any = None,
    overseer: Optional[StaticOverseer] = None,
    bank: Optional[Bank] = None,
    anc_emission_rate: Decimal = Decimal("1"),
    max_borrow_factor: Decimal = Decimal("0.95"),
    register: bool = True,
) -> Market:
    """
    Instantiate a market at T0 with the bootstrap deposit paid by CREATOR.

    alice, bob and carol each hold USER_FUNDS of the stable denom; the
    distributor holds DISTRIBUTOR_FUNDS of the reward denom.
    """
    bank = bank or Bank(verbose=False, test_mode=True)
    bank.set_balance(CREATOR, DENOM, INITIAL_DEPOSIT_AMOUNT)
    for user in ("alice", "bob", "carol"):
        bank.set_balance(user, DENOM, USER_FUNDS)
    bank.set_balance(DISTRIBUTOR, bank.reward_denom, DISTRIBUTOR_FUNDS)

    querier = Querier(bank)
    querier.register_contract(INTEREST_MODEL, interest_model or FixedRateInterestModel("0"))
    querier.register_contract(DISTRIBUTION_MODEL, distribution_model or FixedEmissionModel("1"))
    querier.register_contract(OVERSEER, overseer or StaticOverseer(Decimal("0")))

    market = Market.instantiate(
        querier,
        MessageInfo(CREATOR, {DENOM: INITIAL_DEPOSIT_AMOUNT}),
        block_time=T0,
        contract_addr=MARKET,
        owner_addr=OWNER,
        stable_denom=DENOM,
        anc_emission_rate=anc_emission_rate,
        max_borrow_factor=max_borrow_factor,
        verbose=False,
    )
    if register:
        market.register_contracts(
            OVERSEER, INTEREST_MODEL, DISTRIBUTION_MODEL, COLLECTOR, DISTRIBUTOR,
        )
    return market


def snapshot(market: Market) -> Dict[str, Any]:
    """Everything an aborted operation must leave untouched."""
    bank = market.querier.bank
    return {
        "config": market.config,
        "state": market.state,
        "borrowers": market.query_borrower_infos(limit=30),
        "balances": {a: dict(w) for a, w in bank.balances.items()},
        "responses": len(market.response_log),
    }


def funds(amount) -> Dict[str, Decimal]:
    return {DENOM: Decimal(str(amount))}

