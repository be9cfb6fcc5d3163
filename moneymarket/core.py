"""
Core types and pure helpers for the money market engine.

This module provides the foundational pieces every other module builds on:
1. Decimal context and fixed-point helpers (fixed, truncate_to_units)
2. Exceptions: MarketError and the domain-specific error types
3. Immutable messages: requests the market hands to the bank/token subsystem
4. Immutable responses: what a committed operation emits (messages, attributes)
5. Protocols: the shapes the external collaborators must present

Nothing in this module mutates market state.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_DOWN, ROUND_HALF_EVEN, getcontext
from typing import (
    Any, Dict, Mapping, Optional, Protocol, Tuple, Union, runtime_checkable
)


# ============================================================================
# DECIMAL CONTEXT CONFIGURATION
# ============================================================================
#
# The engine requires deterministic Decimal arithmetic. The global context is
# configured once at import time.
#
# PRECONDITION: No other code should modify the global Decimal context.
#
#   - prec=50: room for 18 fractional digits on top of 32 integer digits
#   - rounding=ROUND_HALF_EVEN: only affects intermediate results; every
#     stored value passes through fixed() or truncate_to_units()
#
_MARKET_DECIMAL_CONTEXT = getcontext()
_MARKET_DECIMAL_CONTEXT.prec = 50
_MARKET_DECIMAL_CONTEXT.rounding = ROUND_HALF_EVEN


# ============================================================================
# CONSTANTS
# ============================================================================

# Amount of stable asset that must accompany market creation. The same amount
# of receipt tokens is minted to the market itself so the supply never starts
# at zero.
INITIAL_DEPOSIT_AMOUNT = Decimal("1000000")

# Fractional digits kept by ledger decimals (rates, indices, liabilities).
DECIMAL_PLACES = 18

# Receipt token metadata.
RECEIPT_TOKEN_DECIMALS = 6

# Reply id for the receipt token creation request.
REPLY_ID_REGISTER_ATERRA = 1

ZERO = Decimal("0")
ONE = Decimal("1")

_FIXED_QUANTUM = Decimal(10) ** -DECIMAL_PLACES

Numeric = Union[Decimal, int, str, float]


# ============================================================================
# FIXED-POINT HELPERS
# ============================================================================

def to_decimal(value: Numeric) -> Decimal:
    """Coerce int/str/float to Decimal via str() so floats keep their repr."""
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def fixed(value: Numeric) -> Decimal:
    """
    Truncate a value to the ledger's 18 fractional digits.

    Truncation is toward zero, so repeated accrual never manufactures value.
    """
    return to_decimal(value).quantize(_FIXED_QUANTUM, rounding=ROUND_DOWN)


def truncate_to_units(value: Numeric) -> Decimal:
    """
    Truncate a ledger decimal to whole units of the underlying asset.

    Used wherever a ledger amount becomes a transfer amount. The fractional
    remainder is not lost: callers subtract only the truncated part from the
    ledger value it came from.
    """
    return to_decimal(value).to_integral_value(rounding=ROUND_DOWN)


def require_units(name: str, value: Numeric) -> Decimal:
    """Validate that an amount is a non-negative whole number of units."""
    value = to_decimal(value)
    if value.is_nan() or value.is_infinite():
        raise ValueError(f"{name} must be finite, got {value}")
    if value < ZERO:
        raise ValueError(f"{name} cannot be negative, got {value}")
    if value != value.to_integral_value():
        raise ValueError(f"{name} must be a whole number of units, got {value}")
    return value


# ============================================================================
# EXCEPTIONS
# ============================================================================

class MarketError(Exception):
    """Base exception for all market errors."""
    pass


class TemporalOrderingError(MarketError):
    """Raised when a requested time precedes the last recorded update."""
    pass


class Unauthorized(MarketError):
    """Raised when the caller is not the permitted principal."""
    pass


class CollaboratorNotRegistered(MarketError):
    """Raised when an operation needs a collaborator handle that is still unset."""
    pass


class AlreadyRegistered(MarketError):
    """Raised when a one-time registration is attempted a second time."""
    pass


class ContractNotFound(MarketError):
    """Raised when a registered handle does not resolve to a collaborator."""
    pass


class InvalidReplyId(MarketError):
    """Raised when an acknowledgment arrives for no pending request."""
    pass


class InitialFundsNotDeposited(MarketError):
    """Raised when a market is created without the bootstrap deposit."""
    pass


class ZeroDeposit(MarketError):
    """Raised when a deposit carries no stable asset."""
    pass


class ZeroRepay(MarketError):
    """Raised when a repayment carries no stable asset."""
    pass


class NoStableAvailable(MarketError):
    """Raised when the market does not hold enough stable asset for a payout."""
    pass


class BorrowExceedsLimit(MarketError):
    """Raised when a borrow would exceed the overseer's borrow limit."""
    pass


class MaxBorrowFactorReached(MarketError):
    """Raised when total liabilities would exceed the max borrow factor."""
    pass


class InsufficientFunds(MarketError):
    """Raised by the bank when a message would drive a balance below zero."""
    pass


# ============================================================================
# MESSAGES
# ============================================================================

@dataclass(frozen=True, slots=True)
class Transfer:
    """Move whole units of a native denom between two addresses."""
    amount: Decimal
    denom: str
    sender: str
    recipient: str

    def __post_init__(self):
        object.__setattr__(self, 'amount', require_units("Transfer amount", self.amount))
        if not self.denom or not self.denom.strip():
            raise ValueError("Transfer denom cannot be empty")
        if not self.sender or not self.recipient:
            raise ValueError("Transfer sender and recipient cannot be empty")
        if self.sender == self.recipient:
            raise ValueError("Transfer sender and recipient must be different")

    def __repr__(self) -> str:
        return f"Transfer({self.amount} {self.denom}: {self.sender}→{self.recipient})"


@dataclass(frozen=True, slots=True)
class Mint:
    """Mint receipt tokens to a recipient."""
    amount: Decimal
    token: str
    recipient: str

    def __post_init__(self):
        object.__setattr__(self, 'amount', require_units("Mint amount", self.amount))

    def __repr__(self) -> str:
        return f"Mint({self.amount} {self.token}→{self.recipient})"


@dataclass(frozen=True, slots=True)
class Burn:
    """Burn receipt tokens held by an owner."""
    amount: Decimal
    token: str
    owner: str

    def __post_init__(self):
        object.__setattr__(self, 'amount', require_units("Burn amount", self.amount))

    def __repr__(self) -> str:
        return f"Burn({self.amount} {self.token} of {self.owner})"


@dataclass(frozen=True, slots=True)
class Spend:
    """Ask the reward distributor to pay reward tokens to a recipient."""
    amount: Decimal
    distributor: str
    recipient: str

    def __post_init__(self):
        object.__setattr__(self, 'amount', require_units("Spend amount", self.amount))

    def __repr__(self) -> str:
        return f"Spend({self.amount} from {self.distributor}→{self.recipient})"


@dataclass(frozen=True, slots=True)
class InstantiateToken:
    """Create a new receipt token; the bank answers with its address."""
    name: str
    symbol: str
    decimals: int
    minter: str
    initial_balances: Tuple[Tuple[str, Decimal], ...] = ()
    code_id: int = 0

    def __repr__(self) -> str:
        return f"InstantiateToken({self.symbol}, minter={self.minter})"


Message = Union[Transfer, Mint, Burn, Spend, InstantiateToken]


@dataclass(frozen=True, slots=True)
class SubMessage:
    """A message whose result is delivered back to the market as a Reply."""
    id: int
    msg: Message


@dataclass(frozen=True, slots=True)
class Reply:
    """Acknowledgment of a SubMessage carrying the created resource's address."""
    id: int
    contract_address: Optional[str]


# ============================================================================
# CALLER INFO AND RESPONSES
# ============================================================================

@dataclass(frozen=True)
class MessageInfo:
    """
    Who is calling and what native funds accompany the call.

    Attributes:
        sender: Caller address
        funds: denom -> whole-unit amount attached to the call
    """
    sender: str
    funds: Mapping[str, Decimal] = field(default_factory=dict)

    def __post_init__(self):
        if not self.sender or not self.sender.strip():
            raise ValueError("MessageInfo sender cannot be empty")
        object.__setattr__(self, 'funds', {
            denom: require_units(f"funds[{denom}]", amount)
            for denom, amount in self.funds.items()
        })

    def amount_of(self, denom: str) -> Decimal:
        """Attached amount of a denom (zero when absent)."""
        return self.funds.get(denom, ZERO)


@dataclass(frozen=True, slots=True)
class Response:
    """
    Observable result of a committed market operation.

    Attributes:
        messages: Requests executed atomically by the bank before state is stored
        submessages: Requests whose results come back as Replies
        attributes: (key, value) pairs describing what happened
    """
    messages: Tuple[Message, ...] = ()
    submessages: Tuple[SubMessage, ...] = ()
    attributes: Tuple[Tuple[str, str], ...] = ()

    def attribute(self, key: str) -> Optional[str]:
        """Value of the first attribute with the given key."""
        for k, v in self.attributes:
            if k == key:
                return v
        return None

    def __repr__(self) -> str:
        w = 80
        bar = "─" * w

        def pad(text: str) -> str:
            if len(text) > w:
                return text[:w-3] + "..."
            return text + " " * (w - len(text))

        lines = [f"┌{bar}┐", f"│{pad(' Response: ' + str(self.attribute('action')))}│"]
        if self.attributes:
            lines.append(f"├{bar}┤")
            for key, value in self.attributes:
                lines.append(f"│{pad('   ' + key + ' : ' + value)}│")
        if self.messages or self.submessages:
            lines.append(f"├{bar}┤")
            for i, msg in enumerate(self.messages):
                lines.append(f"│{pad(f'   [{i}] {msg!r}')}│")
            for sub in self.submessages:
                lines.append(f"│{pad(f'   [reply {sub.id}] {sub.msg!r}')}│")
        lines.append(f"└{bar}┘")
        return "\n".join(lines)


def attrs(**kwargs: Any) -> Tuple[Tuple[str, str], ...]:
    """Build a response attribute tuple, rendering Decimals without exponents."""
    out = []
    for key, value in kwargs.items():
        if isinstance(value, Decimal):
            value = format(value.normalize(), 'f') if value != ZERO else "0"
        out.append((key, str(value)))
    return tuple(out)


# ============================================================================
# COLLABORATOR PROTOCOLS
# ============================================================================

@runtime_checkable
class InterestModel(Protocol):
    """Returns the per-second borrow rate for the current utilization inputs."""

    def borrow_rate(
        self,
        market_balance: Decimal,
        total_liabilities: Decimal,
        total_reserves: Decimal,
    ) -> Decimal:
        ...


@runtime_checkable
class DistributionModel(Protocol):
    """Returns a refreshed reward emission rate."""

    def anc_emission_rate(
        self,
        deposit_rate: Decimal,
        target_deposit_rate: Decimal,
        threshold_deposit_rate: Decimal,
        current_emission_rate: Decimal,
    ) -> Decimal:
        ...


@runtime_checkable
class Overseer(Protocol):
    """Supplies the target deposit rate and per-borrower borrow limits."""

    def target_deposit_rate(self) -> Decimal:
        ...

    def borrow_limit(self, borrower: str, block_time: Optional[int]) -> Decimal:
        ...


@runtime_checkable
class BankView(Protocol):
    """
    Balance oracle, receipt-token supply oracle and message executor.

    execute() must be all-or-nothing: either every message is applied or the
    bank is left exactly as it was and an exception propagates.
    """

    def balance(self, address: str, denom: str) -> Decimal:
        ...

    def supply(self, token: str) -> Decimal:
        ...

    def execute(self, messages: Tuple[Message, ...]) -> Tuple[Optional[str], ...]:
        ...


# Handle -> collaborator object, as resolved by the Querier.
ContractRegistry = Dict[str, Any]
