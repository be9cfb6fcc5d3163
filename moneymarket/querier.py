"""
querier.py - Resolve collaborator handles and query them

The market stores collaborators as handles (addresses). The Querier maps a
handle to the object behind it and exposes one typed query per collaborator
contract. Every result is coerced to Decimal on the way in.

Queries never catch collaborator exceptions: a failing model or bank aborts
whatever operation asked.
"""

from __future__ import annotations
from decimal import Decimal
from typing import Any, Dict, Optional

from .core import (
    BankView, ContractNotFound, ContractRegistry, to_decimal,
)


class Querier:
    """
    Read-only access to the bank and the registered collaborators.

    Example:
        querier = Querier(bank)
        querier.register_contract("interest_model", LinearInterestModel())
        rate = querier.query_borrow_rate("interest_model", balance, liabilities, reserves)
    """

    def __init__(self, bank: BankView, contracts: Optional[ContractRegistry] = None):
        self.bank = bank
        self.contracts: Dict[str, Any] = dict(contracts or {})

    def register_contract(self, address: str, contract: Any) -> str:
        """Make a collaborator reachable under a handle."""
        if address in self.contracts:
            raise ValueError(f"Contract {address} already registered")
        self.contracts[address] = contract
        return address

    def contract(self, address: str) -> Any:
        if address not in self.contracts:
            raise ContractNotFound(f"No contract registered at {address}")
        return self.contracts[address]

    # ------------------------------------------------------------------
    # Bank
    # ------------------------------------------------------------------

    def query_balance(self, address: str, denom: str) -> Decimal:
        return to_decimal(self.bank.balance(address, denom))

    def query_supply(self, token: str) -> Decimal:
        return to_decimal(self.bank.supply(token))

    # ------------------------------------------------------------------
    # Models and overseer
    # ------------------------------------------------------------------

    def query_borrow_rate(
        self,
        interest_model: str,
        market_balance: Decimal,
        total_liabilities: Decimal,
        total_reserves: Decimal,
    ) -> Decimal:
        model = self.contract(interest_model)
        return to_decimal(model.borrow_rate(market_balance, total_liabilities, total_reserves))

    def query_anc_emission_rate(
        self,
        distribution_model: str,
        deposit_rate: Decimal,
        target_deposit_rate: Decimal,
        threshold_deposit_rate: Decimal,
        current_emission_rate: Decimal,
    ) -> Decimal:
        model = self.contract(distribution_model)
        return to_decimal(model.anc_emission_rate(
            deposit_rate, target_deposit_rate, threshold_deposit_rate, current_emission_rate,
        ))

    def query_target_deposit_rate(self, overseer: str) -> Decimal:
        return to_decimal(self.contract(overseer).target_deposit_rate())

    def query_borrow_limit(self, overseer: str, borrower: str, block_time: Optional[int]) -> Decimal:
        return to_decimal(self.contract(overseer).borrow_limit(borrower, block_time))
