"""
reward.py - Reward accrual engine

    reward_accrued       = anc_emission_rate * elapsed
    global_reward_index += reward_accrued / total_liabilities

Rewards are shared pro-rata across outstanding debt. With no liabilities the
index stays put but the clock still advances, so emissions from an empty
period are never handed to the next borrower.

The emission rate is read from state; refreshing it is the epoch's job.
"""

from __future__ import annotations
from dataclasses import replace
from decimal import Decimal

from .core import TemporalOrderingError, ZERO, fixed
from .state import State


def check_reward_time(state: State, block_time: int) -> None:
    """Reject a time that precedes the reward high-water mark."""
    if block_time < state.last_reward_updated_time:
        raise TemporalOrderingError(
            f"block_time {block_time} must not precede last_reward_updated_time "
            f"{state.last_reward_updated_time}"
        )


def compute_reward(state: State, block_time: int) -> State:
    """
    Accrue the global reward index up to block_time.

    PURE FUNCTION.

    Raises:
        TemporalOrderingError: if block_time precedes last_reward_updated_time
    """
    check_reward_time(state, block_time)
    if block_time == state.last_reward_updated_time:
        return state

    elapsed = Decimal(block_time - state.last_reward_updated_time)
    reward_accrued = fixed(elapsed * state.anc_emission_rate)

    reward_index = state.global_reward_index
    if reward_accrued > ZERO and state.total_liabilities > ZERO:
        reward_index += fixed(reward_accrued / state.total_liabilities)

    return replace(
        state,
        global_reward_index=reward_index,
        last_reward_updated_time=block_time,
    )
