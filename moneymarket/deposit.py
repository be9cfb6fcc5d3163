"""
deposit.py - Deposit and redemption of the stable asset

Depositors trade stable asset for receipt tokens at the live exchange rate:

    mint_amount   = deposit_amount / exchange_rate     (truncated)
    redeem_amount = burn_amount * exchange_rate        (truncated)

Interest and reward are accrued before pricing so the rate reflects every
second up to the call.
"""

from __future__ import annotations
from dataclasses import replace
from decimal import Decimal

from .core import (
    Burn, MessageInfo, Mint, NoStableAvailable, Response, Transfer, ZeroDeposit,
    ZERO, attrs, require_units, truncate_to_units,
)
from .exchange_rate import compute_exchange_rate, compute_exchange_rate_raw
from .interest import compute_interest
from .querier import Querier
from .reward import compute_reward
from .state import Config, MarketUpdate, State


def deposit_stable(
    querier: Querier,
    config: Config,
    state: State,
    info: MessageInfo,
    block_time: int,
) -> MarketUpdate:
    """
    Accept the stable asset attached to the call and mint receipt tokens.

    The attached funds are moved by the same atomic batch that mints, so the
    balance read here does not include them yet.

    Raises:
        ZeroDeposit: nothing attached
    """
    deposit_amount = info.amount_of(config.stable_denom)
    if deposit_amount == ZERO:
        raise ZeroDeposit(f"Deposit amount must be greater than 0 {config.stable_denom}")
    aterra = config.require('aterra_contract')

    state = compute_interest(querier, config, state, block_time)
    state = compute_reward(state, block_time)

    exchange_rate = compute_exchange_rate(querier, config, state)
    if exchange_rate == ZERO:
        raise NoStableAvailable("Exchange rate is zero; deposits are not accepted")

    mint_amount = truncate_to_units(deposit_amount / exchange_rate)
    state = replace(state, prev_aterra_supply=state.prev_aterra_supply + mint_amount)

    messages = [Transfer(deposit_amount, config.stable_denom, info.sender, config.contract_addr)]
    if mint_amount > ZERO:
        messages.append(Mint(mint_amount, aterra, info.sender))

    return MarketUpdate(
        state=state,
        response=Response(
            messages=tuple(messages),
            attributes=attrs(
                action="deposit_stable",
                depositor=info.sender,
                mint_amount=mint_amount,
                deposit_amount=deposit_amount,
            ),
        ),
    )


def redeem_stable(
    querier: Querier,
    config: Config,
    state: State,
    info: MessageInfo,
    block_time: int,
    burn_amount: Decimal,
) -> MarketUpdate:
    """
    Burn receipt tokens held by info.sender and pay out stable asset.

    Raises:
        NoStableAvailable: redeem_amount plus reserves exceeds the balance
    """
    burn_amount = require_units("burn_amount", burn_amount)
    aterra = config.require('aterra_contract')

    state = compute_interest(querier, config, state, block_time)
    state = compute_reward(state, block_time)

    aterra_supply = querier.query_supply(aterra)
    current_balance = querier.query_balance(config.contract_addr, config.stable_denom)
    exchange_rate = compute_exchange_rate_raw(state, aterra_supply, current_balance)
    redeem_amount = truncate_to_units(burn_amount * exchange_rate)

    # Reserves belong to the protocol, not to redeemers.
    if redeem_amount + state.total_reserves > current_balance:
        raise NoStableAvailable(f"Not enough {config.stable_denom} available")

    state = replace(state, prev_aterra_supply=max(ZERO, state.prev_aterra_supply - burn_amount))

    messages = []
    if burn_amount > ZERO:
        messages.append(Burn(burn_amount, aterra, info.sender))
    if redeem_amount > ZERO:
        messages.append(Transfer(redeem_amount, config.stable_denom, config.contract_addr, info.sender))

    return MarketUpdate(
        state=state,
        response=Response(
            messages=tuple(messages),
            attributes=attrs(
                action="redeem_stable",
                burn_amount=burn_amount,
                redeem_amount=redeem_amount,
            ),
        ),
    )
