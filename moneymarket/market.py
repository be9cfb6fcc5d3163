"""
market.py - Stateful money market

The Market is the only module that mutates state. Every operation follows the
same shape:

    1. build a MarketUpdate from the current records (pure functions in
       interest/reward/deposit/borrow/epoch)
    2. execute the update's messages through the bank, atomically
    3. store the new config/state/borrower records
    4. deliver replies for any sub-messages

An exception at steps 1 or 2 leaves config, state, borrowers and bank
balances exactly as they were.

Receipt token registration is two-phase: instantiate() issues an
InstantiateToken sub-message and records reply id 1 as pending; the reply
carrying the new token's address completes registration once.
"""

from __future__ import annotations
from dataclasses import replace
from decimal import Decimal
from typing import Callable, Dict, List, Optional, Tuple

from . import borrow as _borrow
from . import deposit as _deposit
from . import epoch as _epoch
from .core import (
    AlreadyRegistered, InitialFundsNotDeposited, InstantiateToken, InvalidReplyId,
    MarketError, MessageInfo, Reply, Response, SubMessage, TemporalOrderingError,
    Unauthorized,
    INITIAL_DEPOSIT_AMOUNT, RECEIPT_TOKEN_DECIMALS, REPLY_ID_REGISTER_ATERRA,
    Transfer, attrs, to_decimal,
)
from .interest import compute_interest
from .querier import Querier
from .reward import compute_reward
from .state import (
    COLLABORATOR_FIELDS, BorrowerInfo, Config, MarketUpdate, State, genesis_state,
)


DEFAULT_BORROWER_LIMIT = 10
MAX_BORROWER_LIMIT = 30


# ============================================================================
# REGISTRATION (pure)
# ============================================================================

def register_aterra(config: Config, token_addr: str) -> Config:
    """Record the receipt token handle. Allowed exactly once."""
    if config.is_registered('aterra_contract'):
        raise AlreadyRegistered("Receipt token is already registered")
    return replace(config, aterra_contract=token_addr)


def register_contracts(
    config: Config,
    overseer_contract: str,
    interest_model: str,
    distribution_model: str,
    collector_contract: str,
    distributor_contract: str,
) -> Config:
    """Record the five collaborator handles. Allowed once, all together."""
    if any(config.is_registered(name) for name in COLLABORATOR_FIELDS):
        raise AlreadyRegistered("Contracts are already registered")
    return replace(
        config,
        overseer_contract=overseer_contract,
        interest_model=interest_model,
        distribution_model=distribution_model,
        collector_contract=collector_contract,
        distributor_contract=distributor_contract,
    )


def receipt_token_metadata(stable_denom: str) -> Tuple[str, str]:
    """Name and symbol of the receipt token, e.g. uusd -> Anchor Terra USD / aUST."""
    if len(stable_denom) < 3:
        raise ValueError(f"stable_denom {stable_denom!r} is too short to derive a token symbol")
    name = f"Anchor Terra {stable_denom[1:].upper()}"
    symbol = f"a{stable_denom[1:-1].upper()}T"
    return name, symbol


# ============================================================================
# MARKET
# ============================================================================

class Market:
    """
    Money market over one stable asset.

    Design Principles:
        - Pure builders, single committer: operations are computed as
          MarketUpdates and only _commit() writes.
        - Always logs: every committed Response is appended to response_log.

    Thread Safety:
        Not thread-safe. Operations must be applied one at a time, in
        non-decreasing block_time order.

    Example:
        market = Market.instantiate(
            querier, info=MessageInfo("creator", {"uusd": INITIAL_DEPOSIT_AMOUNT}),
            block_time=1_000, contract_addr="market", owner_addr="owner",
            stable_denom="uusd", anc_emission_rate=Decimal("1"),
            max_borrow_factor=Decimal("0.95"),
        )
        market.register_contracts("overseer", "interest", "distribution",
                                  "collector", "distributor")
        market.deposit_stable(MessageInfo("alice", {"uusd": Decimal("1000")}), 1_010)
    """

    def __init__(
        self,
        querier: Querier,
        config: Config,
        state: State,
        verbose: bool = True,
    ):
        """
        Wrap existing records. Use instantiate() to create a new market.

        Args:
            querier: Access to the bank and collaborators
            config: Market configuration
            state: Market state
            verbose: Print each committed response and each rejection
        """
        self.querier = querier
        self._config = config
        self._state = state
        self._borrowers: Dict[str, BorrowerInfo] = {}
        self._pending_replies: Dict[int, SubMessage] = {}
        self._reply_handlers: Dict[int, Callable[[Reply], None]] = {
            REPLY_ID_REGISTER_ATERRA: self._handle_aterra_reply,
        }
        self.response_log: List[Response] = []
        self.verbose = verbose

    @classmethod
    def instantiate(
        cls,
        querier: Querier,
        info: MessageInfo,
        block_time: int,
        contract_addr: str,
        owner_addr: str,
        stable_denom: str,
        anc_emission_rate: Decimal,
        max_borrow_factor: Decimal,
        aterra_code_id: int = 0,
        verbose: bool = True,
    ) -> Market:
        """
        Create a market, take the bootstrap deposit and request the receipt token.

        Raises:
            InitialFundsNotDeposited: info does not carry exactly
                INITIAL_DEPOSIT_AMOUNT of stable_denom
        """
        initial_deposit = info.amount_of(stable_denom)
        if initial_deposit != INITIAL_DEPOSIT_AMOUNT:
            raise InitialFundsNotDeposited(
                f"Must deposit initial funds {INITIAL_DEPOSIT_AMOUNT}{stable_denom}"
            )

        config = Config(
            contract_addr=contract_addr,
            owner_addr=owner_addr,
            stable_denom=stable_denom,
            max_borrow_factor=max_borrow_factor,
        )
        state = genesis_state(block_time, to_decimal(anc_emission_rate))
        market = cls(querier, config, state, verbose=verbose)

        name, symbol = receipt_token_metadata(stable_denom)
        token_request = InstantiateToken(
            name=name,
            symbol=symbol,
            decimals=RECEIPT_TOKEN_DECIMALS,
            minter=contract_addr,
            initial_balances=((contract_addr, INITIAL_DEPOSIT_AMOUNT),),
            code_id=aterra_code_id,
        )
        market._commit(MarketUpdate(
            response=Response(
                messages=(Transfer(initial_deposit, stable_denom, info.sender, contract_addr),),
                submessages=(SubMessage(REPLY_ID_REGISTER_ATERRA, token_request),),
                attributes=attrs(action="instantiate", owner=owner_addr, stable_denom=stable_denom),
            ),
        ))
        return market

    # ========================================================================
    # READ-ONLY RECORDS
    # ========================================================================

    @property
    def config(self) -> Config:
        return self._config

    @property
    def state(self) -> State:
        return self._state

    def get_borrower_info(self, borrower: str) -> BorrowerInfo:
        """Stored borrower record (not brought current)."""
        return self._borrowers.get(borrower, BorrowerInfo())

    @property
    def pending_replies(self) -> Tuple[int, ...]:
        return tuple(sorted(self._pending_replies))

    # ========================================================================
    # COMMIT
    # ========================================================================

    def _commit(self, update: MarketUpdate) -> Response:
        response = update.response
        sub_messages = tuple(sub.msg for sub in response.submessages)

        results = self.querier.bank.execute(response.messages + sub_messages)

        if update.config is not None:
            self._config = update.config
        if update.state is not None:
            self._state = update.state
        for address, liability in update.borrowers:
            self._borrowers[address] = liability
        self.response_log.append(response)
        if self.verbose:
            print(repr(response))

        for sub in response.submessages:
            self._pending_replies[sub.id] = sub
        for sub, result in zip(response.submessages, results[len(response.messages):]):
            self.reply(Reply(id=sub.id, contract_address=result))
        return response

    def _run(self, action: str, build: Callable[[], MarketUpdate]) -> Response:
        try:
            return self._commit(build())
        except MarketError as exc:
            if self.verbose:
                print(f"✗ REJECTED: {action}: {exc}")
            raise

    # ========================================================================
    # REGISTRATION
    # ========================================================================

    def reply(self, reply: Reply) -> None:
        """
        Deliver the acknowledgment of a pending sub-message.

        Raises:
            InvalidReplyId: no sub-message with this id is pending
            AlreadyRegistered: the resource was registered already
        """
        if reply.id not in self._pending_replies:
            raise InvalidReplyId(f"No pending request with reply id {reply.id}")
        handler = self._reply_handlers.get(reply.id)
        if handler is None:
            raise InvalidReplyId(f"No handler for reply id {reply.id}")
        del self._pending_replies[reply.id]
        handler(reply)

    def _handle_aterra_reply(self, reply: Reply) -> None:
        if not reply.contract_address:
            raise ValueError("Receipt token reply carries no contract address")
        self._config = register_aterra(self._config, reply.contract_address)
        response = Response(attributes=attrs(aterra=reply.contract_address))
        self.response_log.append(response)
        if self.verbose:
            print(repr(response))

    def register_contracts(
        self,
        overseer_contract: str,
        interest_model: str,
        distribution_model: str,
        collector_contract: str,
        distributor_contract: str,
    ) -> Response:
        def build() -> MarketUpdate:
            return MarketUpdate(
                config=register_contracts(
                    self._config,
                    overseer_contract,
                    interest_model,
                    distribution_model,
                    collector_contract,
                    distributor_contract,
                ),
                response=Response(attributes=attrs(action="register_contracts")),
            )
        return self._run("register_contracts", build)

    def update_config(
        self,
        info: MessageInfo,
        block_time: int,
        owner_addr: Optional[str] = None,
        interest_model: Optional[str] = None,
        distribution_model: Optional[str] = None,
        max_borrow_factor: Optional[Decimal] = None,
    ) -> Response:
        """
        Owner-only configuration change.

        Switching the interest model first accrues interest up to block_time
        with the old model, so the new one only prices the future.
        """
        def build() -> MarketUpdate:
            config = self._config
            if info.sender != config.owner_addr:
                raise Unauthorized("Only the owner can update the config")

            state = None
            if interest_model is not None:
                state = compute_interest(self.querier, config, self._state, block_time)
                config = replace(config, interest_model=interest_model)
            if owner_addr is not None:
                config = replace(config, owner_addr=owner_addr)
            if distribution_model is not None:
                config = replace(config, distribution_model=distribution_model)
            if max_borrow_factor is not None:
                config = replace(config, max_borrow_factor=to_decimal(max_borrow_factor))

            return MarketUpdate(
                config=config,
                state=state,
                response=Response(attributes=attrs(action="update_config")),
            )
        return self._run("update_config", build)

    def migrate(self, anc_emission_rate: Decimal) -> Response:
        """Replace the emission rate, e.g. after a change of time base."""
        return self._run("migrate", lambda: MarketUpdate(
            state=replace(self._state, anc_emission_rate=to_decimal(anc_emission_rate)),
            response=Response(attributes=attrs(action="migrate")),
        ))

    # ========================================================================
    # DEPOSITOR FLOWS
    # ========================================================================

    def deposit_stable(self, info: MessageInfo, block_time: int) -> Response:
        return self._run("deposit_stable", lambda: _deposit.deposit_stable(
            self.querier, self._config, self._state, info, block_time,
        ))

    def redeem_stable(self, info: MessageInfo, block_time: int, burn_amount: Decimal) -> Response:
        return self._run("redeem_stable", lambda: _deposit.redeem_stable(
            self.querier, self._config, self._state, info, block_time, burn_amount,
        ))

    # ========================================================================
    # BORROWER FLOWS
    # ========================================================================

    def borrow_stable(
        self,
        info: MessageInfo,
        block_time: int,
        borrow_amount: Decimal,
        to: Optional[str] = None,
    ) -> Response:
        return self._run("borrow_stable", lambda: _borrow.borrow_stable(
            self.querier, self._config, self._state, self.get_borrower_info(info.sender),
            info, block_time, borrow_amount, to,
        ))

    def repay_stable(self, info: MessageInfo, block_time: int) -> Response:
        return self._run("repay_stable", lambda: _borrow.repay_stable(
            self.querier, self._config, self._state, self.get_borrower_info(info.sender),
            info, block_time,
        ))

    def repay_stable_from_liquidation(
        self,
        info: MessageInfo,
        block_time: int,
        borrower: str,
        prev_balance: Decimal,
    ) -> Response:
        return self._run("repay_stable_from_liquidation", lambda: _borrow.repay_stable_from_liquidation(
            self.querier, self._config, self._state, self.get_borrower_info(borrower),
            info, block_time, borrower, prev_balance,
        ))

    def claim_rewards(self, info: MessageInfo, block_time: int, to: Optional[str] = None) -> Response:
        return self._run("claim_rewards", lambda: _borrow.claim_rewards(
            self.querier, self._config, self._state, self.get_borrower_info(info.sender),
            info, block_time, to,
        ))

    # ========================================================================
    # EPOCH
    # ========================================================================

    def execute_epoch_operations(
        self,
        info: MessageInfo,
        block_time: int,
        deposit_rate: Decimal,
        target_deposit_rate: Decimal,
        threshold_deposit_rate: Decimal,
        distributed_interest: Decimal = Decimal("0"),
    ) -> Response:
        return self._run("execute_epoch_operations", lambda: _epoch.execute_epoch_operations(
            self.querier, self._config, self._state, info, block_time,
            deposit_rate, target_deposit_rate, threshold_deposit_rate, distributed_interest,
        ))

    # ========================================================================
    # QUERIES (never commit)
    # ========================================================================

    def query_config(self) -> Config:
        return self._config

    def query_state(self, block_time: Optional[int] = None) -> State:
        """
        State with interest and reward projected to block_time.

        Defaults to the latest of the two high-water marks, which projects
        nothing.

        Raises:
            TemporalOrderingError: block_time precedes either high-water mark
        """
        state = self._state
        if block_time is None:
            block_time = max(state.last_interest_updated_time, state.last_reward_updated_time)

        if block_time < state.last_interest_updated_time:
            raise TemporalOrderingError("block_time must not precede last_interest_updated_time")
        if block_time < state.last_reward_updated_time:
            raise TemporalOrderingError("block_time must not precede last_reward_updated_time")

        state = compute_interest(self.querier, self._config, state, block_time)
        return compute_reward(state, block_time)

    def query_epoch_state(
        self,
        block_time: Optional[int] = None,
        distributed_interest: Optional[Decimal] = None,
    ) -> _epoch.EpochState:
        return _epoch.query_epoch_state(
            self.querier, self._config, self._state, block_time, distributed_interest,
        )

    def query_borrower_info(self, borrower: str, block_time: Optional[int] = None) -> BorrowerInfo:
        """Borrower record brought current to block_time (default: the later of the two update marks)."""
        if block_time is None:
            block_time = max(self._state.last_interest_updated_time, self._state.last_reward_updated_time)
        _, liability = _borrow.settle_borrower(
            self.querier, self._config, self._state, self.get_borrower_info(borrower), block_time,
        )
        return liability

    def query_borrower_infos(
        self,
        start_after: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Tuple[str, BorrowerInfo]]:
        """Stored borrower records ordered by address, paginated."""
        limit = min(limit or DEFAULT_BORROWER_LIMIT, MAX_BORROWER_LIMIT)
        addresses = sorted(self._borrowers)
        if start_after is not None:
            addresses = [a for a in addresses if a > start_after]
        return [(a, self._borrowers[a]) for a in addresses[:limit]]

    def __repr__(self) -> str:
        return (
            f"Market({self._config.contract_addr}, liabilities={self._state.total_liabilities}, "
            f"reserves={self._state.total_reserves}, borrowers={len(self._borrowers)})"
        )
