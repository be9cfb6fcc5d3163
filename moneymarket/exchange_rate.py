"""
exchange_rate.py - Receipt token exchange rate

    exchange_rate = (balance + total_liabilities - total_reserves) / aterra_supply

Share value is net backing assets per receipt token: cash on hand plus claims
on borrowers, minus the reserves that belong to the protocol. With zero supply
the rate is fixed at 1 so the first deposit mints 1:1.
"""

from __future__ import annotations
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from .core import ONE, ZERO, fixed, to_decimal
from .querier import Querier
from .state import Config, State


def compute_exchange_rate_raw(state: State, aterra_supply: Decimal, balance: Decimal) -> Decimal:
    """
    Exchange rate from explicit balance sheet inputs.

    PURE FUNCTION - reads nothing but its arguments.

    The result is a pass-through of the formula; it is not clamped at 1 and
    is floored at 0 only because a rate cannot be negative.
    """
    aterra_supply = to_decimal(aterra_supply)
    if aterra_supply == ZERO:
        return ONE
    net_assets = to_decimal(balance) + state.total_liabilities - state.total_reserves
    if net_assets <= ZERO:
        return ZERO
    return fixed(net_assets / aterra_supply)


def snapshot_exchange_rate(state: State, aterra_supply: Decimal, balance: Decimal) -> State:
    """Recompute the rate and cache it with the supply it was computed against."""
    aterra_supply = to_decimal(aterra_supply)
    return replace(
        state,
        prev_aterra_supply=aterra_supply,
        prev_exchange_rate=compute_exchange_rate_raw(state, aterra_supply, balance),
    )


def compute_exchange_rate(
    querier: Querier,
    config: Config,
    state: State,
    deposit_amount: Optional[Decimal] = None,
) -> Decimal:
    """
    Exchange rate against live balances.

    deposit_amount is stable asset that already sits in the market balance but
    must not price the deposit that brought it in.
    """
    aterra_supply = querier.query_supply(config.require('aterra_contract'))
    balance = querier.query_balance(config.contract_addr, config.stable_denom)
    if deposit_amount is not None:
        balance -= to_decimal(deposit_amount)
    return compute_exchange_rate_raw(state, aterra_supply, balance)
