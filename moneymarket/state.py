"""
state.py - Market configuration and state records

Three immutable records make up everything the market persists:

    Config        - identity, collaborator handles, borrow-factor bound
    State         - the global ledger: liabilities, reserves, indices, clocks
    BorrowerInfo  - one borrower's debt and reward position

Every engine takes these as explicit parameters and returns new instances
(value semantics). Only the Market commits them.

Collaborator handles are Optional[str]: None means "not yet registered".
Config.require() turns an unset handle into CollaboratorNotRegistered, so
"unset" never leaks into an address comparison.
"""

from __future__ import annotations
from dataclasses import dataclass, fields
from decimal import Decimal
from typing import Optional, Tuple

from .core import (
    CollaboratorNotRegistered, Response,
    ONE, ZERO, to_decimal, require_units,
)


# Collaborator handle fields, in registration order.
COLLABORATOR_FIELDS = (
    'overseer_contract',
    'interest_model',
    'distribution_model',
    'collector_contract',
    'distributor_contract',
)


@dataclass(frozen=True, slots=True)
class Config:
    """
    Market configuration, created once at instantiation.

    Attributes:
        contract_addr: Address of the market itself (holds the stable asset)
        owner_addr: Address allowed to update the configuration
        stable_denom: Denomination of the underlying stable asset
        max_borrow_factor: Upper bound on liabilities / net market assets
        aterra_contract: Receipt token handle (set by the creation reply)
        overseer_contract .. distributor_contract: set once by register_contracts
    """
    contract_addr: str
    owner_addr: str
    stable_denom: str
    max_borrow_factor: Decimal
    aterra_contract: Optional[str] = None
    overseer_contract: Optional[str] = None
    interest_model: Optional[str] = None
    distribution_model: Optional[str] = None
    collector_contract: Optional[str] = None
    distributor_contract: Optional[str] = None

    def __post_init__(self):
        if not self.contract_addr or not self.contract_addr.strip():
            raise ValueError("contract_addr cannot be empty")
        if not self.owner_addr or not self.owner_addr.strip():
            raise ValueError("owner_addr cannot be empty")
        if not self.stable_denom or not self.stable_denom.strip():
            raise ValueError("stable_denom cannot be empty")
        object.__setattr__(self, 'max_borrow_factor', to_decimal(self.max_borrow_factor))
        if self.max_borrow_factor < ZERO:
            raise ValueError(f"max_borrow_factor cannot be negative, got {self.max_borrow_factor}")
        for f in fields(self):
            if f.name.endswith(('_contract', '_model')):
                value = getattr(self, f.name)
                if value is not None and not value.strip():
                    raise ValueError(f"{f.name} cannot be blank; use None for unset")

    def require(self, name: str) -> str:
        """Return a collaborator handle, or raise if it is not registered yet."""
        value = getattr(self, name)
        if value is None:
            raise CollaboratorNotRegistered(f"{name} is not registered")
        return value

    def is_registered(self, name: str) -> bool:
        return getattr(self, name) is not None


@dataclass(frozen=True, slots=True)
class State:
    """
    Immutable snapshot of the global market ledger.

    Attributes:
        total_liabilities: Outstanding borrower debt, compounding
        total_reserves: Protocol-owned share of accrued interest, net of sweeps
        last_interest_updated_time: Interest accrual high-water mark (seconds)
        last_reward_updated_time: Reward accrual high-water mark (seconds)
        global_interest_index: Cumulative interest multiplier, starts at 1
        global_reward_index: Cumulative reward per unit of liability, starts at 0
        anc_emission_rate: Reward tokens emitted per second
        prev_aterra_supply: Receipt supply at the last exchange-rate snapshot
        prev_exchange_rate: Exchange rate at the last snapshot
    """
    total_liabilities: Decimal
    total_reserves: Decimal
    last_interest_updated_time: int
    last_reward_updated_time: int
    global_interest_index: Decimal
    global_reward_index: Decimal
    anc_emission_rate: Decimal
    prev_aterra_supply: Decimal
    prev_exchange_rate: Decimal

    def __post_init__(self):
        for name in ('total_liabilities', 'total_reserves', 'global_interest_index',
                     'global_reward_index', 'anc_emission_rate', 'prev_exchange_rate'):
            value = to_decimal(getattr(self, name))
            if value < ZERO:
                raise ValueError(f"{name} cannot be negative, got {value}")
            object.__setattr__(self, name, value)
        object.__setattr__(self, 'prev_aterra_supply',
                           require_units("prev_aterra_supply", self.prev_aterra_supply))
        if self.last_interest_updated_time < 0 or self.last_reward_updated_time < 0:
            raise ValueError("update times cannot be negative")


def genesis_state(block_time: int, anc_emission_rate: Decimal) -> State:
    """State of a freshly created market: indices at 1/0, both clocks at genesis."""
    return State(
        total_liabilities=ZERO,
        total_reserves=ZERO,
        last_interest_updated_time=block_time,
        last_reward_updated_time=block_time,
        global_interest_index=ONE,
        global_reward_index=ZERO,
        anc_emission_rate=to_decimal(anc_emission_rate),
        prev_aterra_supply=ZERO,
        prev_exchange_rate=ONE,
    )


@dataclass(frozen=True, slots=True)
class BorrowerInfo:
    """
    One borrower's position.

    loan_amount is whole units and is brought current by applying the growth
    of the global interest index since interest_index was recorded.
    pending_rewards keeps fractional reward until it is claimed.
    """
    interest_index: Decimal = ONE
    reward_index: Decimal = ZERO
    loan_amount: Decimal = ZERO
    pending_rewards: Decimal = ZERO

    def __post_init__(self):
        object.__setattr__(self, 'interest_index', to_decimal(self.interest_index))
        object.__setattr__(self, 'reward_index', to_decimal(self.reward_index))
        object.__setattr__(self, 'loan_amount', require_units("loan_amount", self.loan_amount))
        object.__setattr__(self, 'pending_rewards', to_decimal(self.pending_rewards))
        if self.interest_index <= ZERO:
            raise ValueError(f"interest_index must be positive, got {self.interest_index}")


@dataclass(frozen=True, slots=True)
class MarketUpdate:
    """
    Everything one operation wants to commit, built before anything changes.

    Fields left as None are not written. The Market executes
    response.messages through the bank first and stores the records only if
    that succeeds.
    """
    response: Response
    state: Optional[State] = None
    config: Optional[Config] = None
    borrowers: Tuple[Tuple[str, BorrowerInfo], ...] = ()
