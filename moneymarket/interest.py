"""
interest.py - Interest accrual engine

ARCHITECTURE:
=============

1. PURE ENGINE (compute_interest_raw):
   - Takes state, time, balances and both rates explicitly
   - No querier, no hidden state, returns a new State

2. QUERYING VARIANT (compute_interest):
   - Reads supply, balance, borrow rate and target deposit rate
   - Delegates to compute_interest_raw

Key formulas, with elapsed = block_time - last_interest_updated_time:

    interest_factor       = borrow_rate * elapsed
    interest_accrued      = total_liabilities * interest_factor
    global_interest_index = global_interest_index * (1 + interest_factor)
    total_liabilities     = total_liabilities + interest_accrued

Compounding is simple per accrual step, not continuous. With zero
liabilities nothing compounds and the index is left untouched.

Reserve split: after accrual the depositor yield implied by the exchange rate
is compared with the target deposit rate. Yield above target on the deposits
of the previous snapshot goes to total_reserves:

    deposit_rate = (exchange_rate / prev_exchange_rate - 1) / elapsed
    excess_yield = prev_aterra_supply * prev_exchange_rate
                   * elapsed * (deposit_rate - target_deposit_rate)

which is max(0, accrued - accrued at the target rate).
"""

from __future__ import annotations
from dataclasses import replace
from decimal import Decimal
from typing import Optional

from .core import (
    ONE, ZERO, TemporalOrderingError,
    fixed, to_decimal, truncate_to_units,
)
from .exchange_rate import compute_exchange_rate_raw, snapshot_exchange_rate
from .querier import Querier
from .state import Config, State


def check_interest_time(state: State, block_time: int) -> None:
    """Reject a time that precedes the interest high-water mark."""
    if block_time < state.last_interest_updated_time:
        raise TemporalOrderingError(
            f"block_time {block_time} must not precede last_interest_updated_time "
            f"{state.last_interest_updated_time}"
        )


def calculate_excess_yield(
    state: State,
    exchange_rate: Decimal,
    elapsed: int,
    target_deposit_rate: Decimal,
) -> Decimal:
    """
    Whole units of yield above the target deposit rate since the last snapshot.

    PURE FUNCTION.

    Returns zero when depositors earned at or below target, and when the
    previous rate is zero (no deposits to measure a yield against).
    """
    if elapsed <= 0 or state.prev_exchange_rate == ZERO:
        return ZERO
    effective_deposit_rate = fixed(exchange_rate / state.prev_exchange_rate)
    deposit_rate = fixed((effective_deposit_rate - ONE) / Decimal(elapsed))
    if deposit_rate <= target_deposit_rate:
        return ZERO
    excess_deposit_rate = deposit_rate - target_deposit_rate
    prev_deposits = truncate_to_units(state.prev_aterra_supply * state.prev_exchange_rate)
    return truncate_to_units(prev_deposits * Decimal(elapsed) * excess_deposit_rate)


def compute_interest_raw(
    state: State,
    block_time: int,
    balance: Decimal,
    aterra_supply: Decimal,
    borrow_rate: Decimal,
    target_deposit_rate: Decimal,
) -> State:
    """
    Accrue interest up to block_time.

    PURE FUNCTION - All inputs explicit.

    Args:
        state: Current state
        block_time: Time to accrue to (seconds)
        balance: Stable asset held by the market
        aterra_supply: Receipt token supply
        borrow_rate: Per-second borrow rate
        target_deposit_rate: Per-second deposit rate above which yield is
            diverted to reserves

    Returns:
        New State. Calling with block_time equal to the mark returns the
        given state unchanged.

    Raises:
        TemporalOrderingError: if block_time precedes last_interest_updated_time
        ValueError: if borrow_rate or target_deposit_rate is negative
    """
    check_interest_time(state, block_time)
    borrow_rate = to_decimal(borrow_rate)
    target_deposit_rate = to_decimal(target_deposit_rate)
    if borrow_rate < ZERO:
        raise ValueError(f"borrow_rate must be non-negative, got {borrow_rate}")
    if target_deposit_rate < ZERO:
        raise ValueError(f"target_deposit_rate must be non-negative, got {target_deposit_rate}")
    if block_time == state.last_interest_updated_time:
        return state

    elapsed = block_time - state.last_interest_updated_time

    accrued = state
    # No debt, no interest: the index only moves when something compounds.
    if state.total_liabilities > ZERO:
        interest_factor = fixed(Decimal(elapsed) * borrow_rate)
        interest_accrued = fixed(state.total_liabilities * interest_factor)
        accrued = replace(
            state,
            global_interest_index=fixed(state.global_interest_index * (ONE + interest_factor)),
            total_liabilities=state.total_liabilities + interest_accrued,
        )

    exchange_rate = compute_exchange_rate_raw(accrued, aterra_supply, balance)
    excess_yield = calculate_excess_yield(accrued, exchange_rate, elapsed, target_deposit_rate)
    if excess_yield > ZERO:
        accrued = replace(accrued, total_reserves=accrued.total_reserves + excess_yield)

    return replace(
        snapshot_exchange_rate(accrued, aterra_supply, balance),
        last_interest_updated_time=block_time,
    )


def compute_interest(
    querier: Querier,
    config: Config,
    state: State,
    block_time: int,
    deposit_amount: Optional[Decimal] = None,
    borrow_rate: Optional[Decimal] = None,
) -> State:
    """
    Accrue interest up to block_time, reading inputs from the collaborators.

    Args:
        querier: Collaborator access
        config: Market configuration (handles)
        state: Current state
        block_time: Time to accrue to
        deposit_amount: Stable asset already in the balance that must not
            count as liquidity (funds arriving with the current call)
        borrow_rate: Override; when given the interest model is not queried

    Returns:
        New State (the same object when nothing elapsed)
    """
    check_interest_time(state, block_time)
    if block_time == state.last_interest_updated_time:
        return state

    aterra_supply = querier.query_supply(config.require('aterra_contract'))
    balance = querier.query_balance(config.contract_addr, config.stable_denom)
    if deposit_amount is not None:
        balance -= to_decimal(deposit_amount)

    if borrow_rate is None:
        borrow_rate = querier.query_borrow_rate(
            config.require('interest_model'),
            balance,
            state.total_liabilities,
            state.total_reserves,
        )
    target_deposit_rate = querier.query_target_deposit_rate(config.require('overseer_contract'))

    return compute_interest_raw(
        state, block_time, balance, aterra_supply, borrow_rate, target_deposit_rate,
    )
