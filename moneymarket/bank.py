"""
bank.py - In-memory token and transfer subsystem

The Bank is the reference implementation of the BankView collaborator:

    - balance oracle: balance(address, denom)
    - receipt-token supply oracle: supply(token)
    - message executor: execute(messages), all-or-nothing

Native denoms (the stable asset, the reward token) and receipt tokens live in
the same balance table; a receipt token is just a denom whose name is the
token's address and which has a registered minter.

Thread Safety:
    Not thread-safe. One Bank per simulated chain.
"""

from __future__ import annotations
import copy
from dataclasses import dataclass
from decimal import Decimal
from typing import Dict, List, Optional, Tuple

from .core import (
    Burn, InstantiateToken, InsufficientFunds, Message, Mint, Spend, Transfer,
    ZERO, require_units,
)


DEFAULT_REWARD_DENOM = "anc"


@dataclass(frozen=True, slots=True)
class TokenInfo:
    """Metadata of a receipt token created through InstantiateToken."""
    address: str
    name: str
    symbol: str
    decimals: int
    minter: str


class Bank:
    """
    Balance table with atomic message execution.

    Example:
        bank = Bank(test_mode=True)
        bank.set_balance("alice", "uusd", Decimal("1000"))
        bank.execute((Transfer(Decimal("100"), "uusd", "alice", "bob"),))
    """

    def __init__(
        self,
        name: str = "bank",
        reward_denom: str = DEFAULT_REWARD_DENOM,
        verbose: bool = True,
        test_mode: bool = False,
    ):
        """
        Args:
            name: Bank identifier, used as prefix of created token addresses
            reward_denom: Denom paid out by Spend messages
            verbose: Print each executed batch
            test_mode: Allow set_balance()
        """
        self.name = name
        self.reward_denom = reward_denom
        self.verbose = verbose
        self._test_mode = test_mode
        self.balances: Dict[str, Dict[str, Decimal]] = {}
        self.tokens: Dict[str, TokenInfo] = {}
        self.transaction_log: List[Tuple[Message, ...]] = []
        self._next_token: int = 0

    # ========================================================================
    # BankView
    # ========================================================================

    def balance(self, address: str, denom: str) -> Decimal:
        return self.balances.get(address, {}).get(denom, ZERO)

    def supply(self, token: str) -> Decimal:
        """Total held across all addresses, summed in sorted order."""
        return sum(
            (self.balances[a].get(token, ZERO) for a in sorted(self.balances)),
            ZERO,
        )

    def execute(self, messages: Tuple[Message, ...]) -> Tuple[Optional[str], ...]:
        """
        Apply a batch of messages atomically.

        Messages are applied in order to a scratch copy of the balance table;
        the copy replaces the live table only if every message succeeds.

        Returns:
            One result per message: the new token address for
            InstantiateToken, None otherwise.

        Raises:
            InsufficientFunds: a debit would drive a balance below zero
            ValueError: Mint or Burn of an unknown token
        """
        messages = tuple(messages)
        if not messages:
            return ()

        balances = copy.deepcopy(self.balances)
        tokens = dict(self.tokens)
        next_token = self._next_token
        results: List[Optional[str]] = []

        try:
            for msg in messages:
                if isinstance(msg, Transfer):
                    self._debit(balances, msg.sender, msg.denom, msg.amount)
                    self._credit(balances, msg.recipient, msg.denom, msg.amount)
                    results.append(None)
                elif isinstance(msg, Mint):
                    if msg.token not in tokens:
                        raise ValueError(f"Unknown token {msg.token}")
                    self._credit(balances, msg.recipient, msg.token, msg.amount)
                    results.append(None)
                elif isinstance(msg, Burn):
                    if msg.token not in tokens:
                        raise ValueError(f"Unknown token {msg.token}")
                    self._debit(balances, msg.owner, msg.token, msg.amount)
                    results.append(None)
                elif isinstance(msg, Spend):
                    self._debit(balances, msg.distributor, self.reward_denom, msg.amount)
                    self._credit(balances, msg.recipient, self.reward_denom, msg.amount)
                    results.append(None)
                elif isinstance(msg, InstantiateToken):
                    address = f"{self.name}_token{next_token}"
                    next_token += 1
                    tokens[address] = TokenInfo(
                        address=address,
                        name=msg.name,
                        symbol=msg.symbol,
                        decimals=msg.decimals,
                        minter=msg.minter,
                    )
                    for holder, amount in msg.initial_balances:
                        self._credit(balances, holder, address, require_units("initial balance", amount))
                    results.append(address)
                else:
                    raise ValueError(f"Unsupported message {msg!r}")
        except (InsufficientFunds, ValueError) as exc:
            if self.verbose:
                print(f"✗ REJECTED: {exc}")
            raise

        self.balances = balances
        self.tokens = tokens
        self._next_token = next_token
        self.transaction_log.append(messages)

        if self.verbose:
            for msg in messages:
                print(f"✓ {msg!r}")
        return tuple(results)

    # ========================================================================
    # TEST HELPERS
    # ========================================================================

    def set_balance(self, address: str, denom: str, amount: Decimal) -> None:
        """
        Set a balance directly. Only available in test_mode.

        Raises:
            RuntimeError: if the bank is not in test_mode
        """
        if not self._test_mode:
            raise RuntimeError("set_balance() is only available in test_mode")
        amount = require_units("balance", amount)
        self.balances.setdefault(address, {})[denom] = amount

    # ========================================================================
    # INTERNAL
    # ========================================================================

    @staticmethod
    def _credit(balances: Dict[str, Dict[str, Decimal]], address: str, denom: str, amount: Decimal) -> None:
        wallet = balances.setdefault(address, {})
        wallet[denom] = wallet.get(denom, ZERO) + amount

    @staticmethod
    def _debit(balances: Dict[str, Dict[str, Decimal]], address: str, denom: str, amount: Decimal) -> None:
        held = balances.get(address, {}).get(denom, ZERO)
        if held < amount:
            raise InsufficientFunds(
                f"{address} holds {held} {denom}, needs {amount}"
            )
        balances.setdefault(address, {})[denom] = held - amount

    def __repr__(self) -> str:
        return f"Bank({self.name}, {len(self.balances)} addresses, {len(self.tokens)} tokens)"
