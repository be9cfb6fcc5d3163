"""
borrow.py - Borrower accounting and borrow-side flows

=== BORROWER MODEL ===

A borrower's debt is stored as whole units together with the global interest
index at the time it was last touched. Bringing it current is one ratio:

    loan_amount = loan_amount * global_interest_index / interest_index

Rewards work the same way against the global reward index, which counts
reward per unit of liability:

    pending_rewards += loan_amount * (global_reward_index - reward_index)

=== FLOWS ===

Each flow accrues global interest and reward first, then settles the borrower,
then applies its own effect, and returns a MarketUpdate. Nothing is written
here; the Market commits.

    borrow_stable                  borrower receives stable asset
    repay_stable                   borrower pays back with attached funds
    repay_stable_from_liquidation  overseer repays on a borrower's behalf
    claim_rewards                  borrower collects whole reward units
"""

from __future__ import annotations
from dataclasses import replace
from decimal import Decimal
from typing import Optional, Tuple

from .core import (
    BorrowExceedsLimit, MaxBorrowFactorReached, MessageInfo, NoStableAvailable,
    Response, Spend, Transfer, Unauthorized, ZeroRepay,
    ZERO, attrs, fixed, require_units, to_decimal, truncate_to_units,
)
from .interest import compute_interest
from .querier import Querier
from .reward import compute_reward
from .state import BorrowerInfo, Config, MarketUpdate, State


# ============================================================================
# PURE BORROWER ACCOUNTING
# ============================================================================

def compute_borrower_interest(state: State, liability: BorrowerInfo) -> BorrowerInfo:
    """
    Bring a borrower's loan up to the current global interest index.

    PURE FUNCTION. The loan is truncated to whole units.
    """
    loan_amount = truncate_to_units(
        truncate_to_units(liability.loan_amount * state.global_interest_index)
        / liability.interest_index
    )
    return replace(
        liability,
        loan_amount=loan_amount,
        interest_index=state.global_interest_index,
    )


def compute_borrower_reward(state: State, liability: BorrowerInfo) -> BorrowerInfo:
    """Accrue a borrower's share of rewards since its last reward index. PURE FUNCTION."""
    earned = fixed(liability.loan_amount * (state.global_reward_index - liability.reward_index))
    return replace(
        liability,
        pending_rewards=liability.pending_rewards + earned,
        reward_index=state.global_reward_index,
    )


def settle_borrower(
    querier: Querier,
    config: Config,
    state: State,
    liability: BorrowerInfo,
    block_time: int,
    deposit_amount: Optional[Decimal] = None,
) -> Tuple[State, BorrowerInfo]:
    """Accrue global interest and reward, then bring the borrower current."""
    state = compute_interest(querier, config, state, block_time, deposit_amount)
    liability = compute_borrower_interest(state, liability)
    state = compute_reward(state, block_time)
    liability = compute_borrower_reward(state, liability)
    return state, liability


# ============================================================================
# FLOWS
# ============================================================================

def borrow_stable(
    querier: Querier,
    config: Config,
    state: State,
    liability: BorrowerInfo,
    info: MessageInfo,
    block_time: int,
    borrow_amount: Decimal,
    to: Optional[str] = None,
) -> MarketUpdate:
    """
    Lend stable asset to info.sender (paid out to `to` when given).

    Raises:
        BorrowExceedsLimit: loan would exceed the overseer's borrow limit
        NoStableAvailable: the market does not hold borrow_amount
        MaxBorrowFactorReached: total liabilities would exceed
            max_borrow_factor * (balance + liabilities - reserves)
    """
    borrow_amount = require_units("borrow_amount", borrow_amount)
    borrower = info.sender

    state, liability = settle_borrower(querier, config, state, liability, block_time)

    borrow_limit = querier.query_borrow_limit(
        config.require('overseer_contract'), borrower, block_time,
    )
    if borrow_limit < borrow_amount + liability.loan_amount:
        raise BorrowExceedsLimit(f"Borrow amount exceeds the limit {borrow_limit}")

    current_balance = querier.query_balance(config.contract_addr, config.stable_denom)
    if current_balance < borrow_amount:
        raise NoStableAvailable(f"Not enough {config.stable_denom} available")

    net_assets = current_balance + state.total_liabilities - state.total_reserves
    if borrow_amount + state.total_liabilities > net_assets * config.max_borrow_factor:
        raise MaxBorrowFactorReached("Max borrow factor reached")

    liability = replace(liability, loan_amount=liability.loan_amount + borrow_amount)
    state = replace(state, total_liabilities=state.total_liabilities + borrow_amount)

    messages = ()
    if borrow_amount > ZERO:
        messages = (Transfer(borrow_amount, config.stable_denom, config.contract_addr, to or borrower),)

    return MarketUpdate(
        state=state,
        borrowers=((borrower, liability),),
        response=Response(
            messages=messages,
            attributes=attrs(action="borrow_stable", borrower=borrower, borrow_amount=borrow_amount),
        ),
    )


def repay_stable(
    querier: Querier,
    config: Config,
    state: State,
    liability: BorrowerInfo,
    info: MessageInfo,
    block_time: int,
    funds_in_balance: bool = False,
) -> MarketUpdate:
    """
    Repay debt with the stable asset attached to the call.

    When the attached amount exceeds the loan the rest is paid back.

    Args:
        funds_in_balance: the attached amount already sits in the market
            balance (liquidation proceeds) instead of arriving with the call

    Raises:
        ZeroRepay: nothing attached
    """
    amount = info.amount_of(config.stable_denom)
    if amount == ZERO:
        raise ZeroRepay(f"Repay amount must be greater than 0 {config.stable_denom}")
    borrower = info.sender

    state, liability = settle_borrower(
        querier, config, state, liability, block_time,
        deposit_amount=amount if funds_in_balance else None,
    )

    messages = []
    if not funds_in_balance:
        messages.append(Transfer(amount, config.stable_denom, borrower, config.contract_addr))

    if liability.loan_amount < amount:
        repay_amount = liability.loan_amount
        liability = replace(liability, loan_amount=ZERO)
        messages.append(Transfer(amount - repay_amount, config.stable_denom, config.contract_addr, borrower))
    else:
        repay_amount = amount
        liability = replace(liability, loan_amount=liability.loan_amount - repay_amount)

    # Per-borrower truncation can leave the aggregate a fraction below the sum.
    state = replace(state, total_liabilities=max(ZERO, state.total_liabilities - repay_amount))

    return MarketUpdate(
        state=state,
        borrowers=((borrower, liability),),
        response=Response(
            messages=tuple(messages),
            attributes=attrs(action="repay_stable", borrower=borrower, repay_amount=repay_amount),
        ),
    )


def repay_stable_from_liquidation(
    querier: Querier,
    config: Config,
    state: State,
    liability: BorrowerInfo,
    info: MessageInfo,
    block_time: int,
    borrower: str,
    prev_balance: Decimal,
) -> MarketUpdate:
    """
    Repay a borrower's debt with liquidation proceeds.

    Only the overseer may call. The proceeds are whatever the market balance
    grew by since prev_balance.
    """
    if info.sender != config.require('overseer_contract'):
        raise Unauthorized("Only the overseer can repay from liquidation")

    current_balance = querier.query_balance(config.contract_addr, config.stable_denom)
    proceeds = current_balance - to_decimal(prev_balance)
    if proceeds < ZERO:
        raise ValueError(f"prev_balance {prev_balance} exceeds current balance {current_balance}")

    on_behalf = MessageInfo(sender=borrower, funds={config.stable_denom: proceeds})
    return repay_stable(
        querier, config, state, liability, on_behalf, block_time, funds_in_balance=True,
    )


def claim_rewards(
    querier: Querier,
    config: Config,
    state: State,
    liability: BorrowerInfo,
    info: MessageInfo,
    block_time: int,
    to: Optional[str] = None,
) -> MarketUpdate:
    """
    Pay out the whole-unit part of a borrower's pending rewards.

    The fractional remainder stays in pending_rewards.
    """
    borrower = info.sender
    state, liability = settle_borrower(querier, config, state, liability, block_time)

    claim_amount = truncate_to_units(liability.pending_rewards)
    liability = replace(liability, pending_rewards=liability.pending_rewards - claim_amount)

    messages = ()
    if claim_amount > ZERO:
        messages = (Spend(claim_amount, config.require('distributor_contract'), to or borrower),)

    return MarketUpdate(
        state=state,
        borrowers=((borrower, liability),),
        response=Response(
            messages=messages,
            attributes=attrs(action="claim_rewards", claim_amount=claim_amount),
        ),
    )
