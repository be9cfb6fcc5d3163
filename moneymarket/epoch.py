"""
epoch.py - Epoch reconciliation

The epoch operation is the overseer's periodic call. In order:

    1. caller must be the overseer
    2. balance = market balance - distributed_interest
    3. borrow rate from the interest model (balance, liabilities, reserves)
    5. re-snapshot the exchange rate and receipt supply against
       balance + distributed_interest
    5. re-snapshot the exchange rate against balance + distributed_interest
    6. accrue reward to block_time
    7. skim whole units of reserves to the collector if the balance covers them
    8. refresh the emission rate from the distribution model
    9. return the new state and the transfer as one MarketUpdate

Step 8 runs strictly after step 4 so the distribution model never sees a
stale liability/reserve snapshot. Nothing is written here; any exception
leaves the market untouched.
"""

from __future__ import annotations
from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Optional, Tuple

from .core import (
    MessageInfo, Response, Transfer, Unauthorized,
    ZERO, attrs, require_units, to_decimal, truncate_to_units,
)
from .exchange_rate import compute_exchange_rate_raw, snapshot_exchange_rate
from .interest import check_interest_time, compute_interest_raw
from .querier import Querier
from .reward import compute_reward
from .state import Config, MarketUpdate, State


@dataclass(frozen=True, slots=True)
class EpochState:
    """Exchange rate and receipt supply as seen by the next depositor."""
    exchange_rate: Decimal
    aterra_supply: Decimal


def _epoch_balance(querier: Querier, config: Config, distributed_interest: Decimal) -> Decimal:
    """Market balance without interest that is already earmarked for distribution."""
    balance = querier.query_balance(config.contract_addr, config.stable_denom)
    if distributed_interest > balance:
        raise ValueError(
            f"distributed_interest {distributed_interest} exceeds market balance {balance}"
        )
    return balance - distributed_interest


def calculate_reserve_skim(state: State, balance: Decimal) -> Tuple[State, Decimal]:
    """
    Whole units of reserves to sweep, and the state after sweeping them.

    PURE FUNCTION.

    Nothing is swept when the truncated reserves are zero or the balance does
    not exceed them. The fractional part always stays in total_reserves.
    """
    reserve_units = truncate_to_units(state.total_reserves)
    if reserve_units == ZERO or balance <= reserve_units:
        return state, ZERO
    return replace(state, total_reserves=state.total_reserves - reserve_units), reserve_units


def execute_epoch_operations(
    querier: Querier,
    config: Config,
    state: State,
    info: MessageInfo,
    block_time: int,
    deposit_rate: Decimal,
    target_deposit_rate: Decimal,
    threshold_deposit_rate: Decimal,
    distributed_interest: Decimal,
) -> MarketUpdate:
    """
    Build the epoch reconciliation update.

    Args:
        querier: Collaborator access
        config: Market configuration
        state: Current state
        info: Caller; must be the overseer
        block_time: Time to reconcile to
        deposit_rate: Deposit rate observed by the overseer over the last epoch
        target_deposit_rate: Deposit rate above which yield goes to reserves
        threshold_deposit_rate: Deposit rate below which emissions grow
        distributed_interest: Interest already paid out but still in the balance

    Raises:
        Unauthorized: caller is not the overseer
        TemporalOrderingError: block_time precedes either high-water mark
    """
    if info.sender != config.require('overseer_contract'):
        raise Unauthorized("Only the overseer can execute epoch operations")

    distributed_interest = require_units("distributed_interest", distributed_interest)
    target_deposit_rate = to_decimal(target_deposit_rate)

    aterra_supply = querier.query_supply(config.require('aterra_contract'))
    balance = _epoch_balance(querier, config, distributed_interest)

    borrow_rate = querier.query_borrow_rate(
        config.require('interest_model'),
        balance,
        state.total_liabilities,
        state.total_reserves,
    )

    state = compute_interest_raw(
        state, block_time, balance, aterra_supply, borrow_rate, target_deposit_rate,
    )

    # The next depositor prices against a balance that still holds the
    # distributed interest.
    state = snapshot_exchange_rate(state, aterra_supply, balance + distributed_interest)

    state = compute_reward(state, block_time)

    state, total_reserves = calculate_reserve_skim(state, balance)
    messages = ()
    if total_reserves > ZERO:
        messages = (Transfer(
            total_reserves,
            config.stable_denom,
            config.contract_addr,
            config.require('collector_contract'),
        ),)

    anc_emission_rate = querier.query_anc_emission_rate(
        config.require('distribution_model'),
        to_decimal(deposit_rate),
        target_deposit_rate,
        to_decimal(threshold_deposit_rate),
        state.anc_emission_rate,
    )
    state = replace(state, anc_emission_rate=anc_emission_rate)

    return MarketUpdate(
        state=state,
        response=Response(
            messages=messages,
            attributes=attrs(
                action="execute_epoch_operations",
                total_reserves=total_reserves,
                anc_emission_rate=anc_emission_rate,
            ),
        ),
    )


def query_epoch_state(
    querier: Querier,
    config: Config,
    state: State,
    block_time: Optional[int] = None,
    distributed_interest: Optional[Decimal] = None,
) -> EpochState:
    """
    Exchange rate the next depositor would see, without committing anything.

    When block_time is given interest is projected to it with the live borrow
    rate and the overseer's target deposit rate.
    """
    distributed_interest = require_units("distributed_interest", distributed_interest or ZERO)
    aterra_supply = querier.query_supply(config.require('aterra_contract'))
    balance = _epoch_balance(querier, config, distributed_interest)

    if block_time is not None:
        check_interest_time(state, block_time)
        borrow_rate = querier.query_borrow_rate(
            config.require('interest_model'),
            balance,
            state.total_liabilities,
            state.total_reserves,
        )
        target_deposit_rate = querier.query_target_deposit_rate(config.require('overseer_contract'))
        state = compute_interest_raw(
            state, block_time, balance, aterra_supply, borrow_rate, target_deposit_rate,
        )

    return EpochState(
        exchange_rate=compute_exchange_rate_raw(state, aterra_supply, balance + distributed_interest),
        aterra_supply=aterra_supply,
    )
