"""
moneymarket - Stable-asset money market accounting engine

Interest accrual into a global index, a receipt-token exchange rate, a
borrower reward index and the overseer's epoch reconciliation, with in-memory
reference collaborators to run it end to end.

Usage:
    from moneymarket import (
        Bank, Querier, Market, MessageInfo,
        LinearInterestModel, FeedbackDistributionModel, StaticOverseer,
        INITIAL_DEPOSIT_AMOUNT,
    )

    bank = Bank(test_mode=True)
    bank.set_balance("creator", "uusd", INITIAL_DEPOSIT_AMOUNT)
    bank.set_balance("alice", "uusd", Decimal("5000"))

    querier = Querier(bank)
    querier.register_contract("overseer", StaticOverseer(Decimal("0.000000001")))
    querier.register_contract("interest", LinearInterestModel())
    querier.register_contract("distribution", FeedbackDistributionModel())

    market = Market.instantiate(
        querier, MessageInfo("creator", {"uusd": INITIAL_DEPOSIT_AMOUNT}),
        block_time=1_000, contract_addr="market", owner_addr="owner",
        stable_denom="uusd", anc_emission_rate=Decimal("1"),
        max_borrow_factor=Decimal("0.95"),
    )
    market.register_contracts("overseer", "interest", "distribution",
                              "collector", "distributor")

    # Deposit stable asset, receive receipt tokens
    market.deposit_stable(MessageInfo("alice", {"uusd": Decimal("1000")}), 1_010)
"""

# Core types
from .core import (
    MarketError,
    TemporalOrderingError,
    Unauthorized,
    CollaboratorNotRegistered,
    AlreadyRegistered,
    ContractNotFound,
    InvalidReplyId,
    InitialFundsNotDeposited,
    ZeroDeposit,
    ZeroRepay,
    NoStableAvailable,
    BorrowExceedsLimit,
    MaxBorrowFactorReached,
    InsufficientFunds,
    Transfer,
    Mint,
    Burn,
    Spend,
    InstantiateToken,
    Message,
    SubMessage,
    Reply,
    MessageInfo,
    Response,
    InterestModel,
    DistributionModel,
    Overseer,
    BankView,
    fixed,
    truncate_to_units,
    to_decimal,
    INITIAL_DEPOSIT_AMOUNT,
    DECIMAL_PLACES,
    RECEIPT_TOKEN_DECIMALS,
    REPLY_ID_REGISTER_ATERRA,
)

# Records
from .state import (
    Config,
    State,
    BorrowerInfo,
    MarketUpdate,
    genesis_state,
    COLLABORATOR_FIELDS,
)

# Collaborator access
from .querier import Querier
from .bank import Bank, TokenInfo

# Engines
from .exchange_rate import (
    compute_exchange_rate_raw,
    compute_exchange_rate,
    snapshot_exchange_rate,
)
from .interest import (
    check_interest_time,
    calculate_excess_yield,
    compute_interest_raw,
    compute_interest,
)
from .reward import check_reward_time, compute_reward
from .borrow import (
    compute_borrower_interest,
    compute_borrower_reward,
    settle_borrower,
)
from .epoch import EpochState, calculate_reserve_skim

# Reference collaborators
from .models import LinearInterestModel, FeedbackDistributionModel, StaticOverseer

# Market
from .market import Market, register_aterra, register_contracts, receipt_token_metadata

__all__ = [
    # Errors
    'MarketError', 'TemporalOrderingError', 'Unauthorized',
    'CollaboratorNotRegistered', 'AlreadyRegistered', 'ContractNotFound',
    'InvalidReplyId', 'InitialFundsNotDeposited', 'ZeroDeposit', 'ZeroRepay',
    'NoStableAvailable', 'BorrowExceedsLimit', 'MaxBorrowFactorReached',
    'InsufficientFunds',
    # Messages
    'Transfer', 'Mint', 'Burn', 'Spend', 'InstantiateToken', 'Message',
    'SubMessage', 'Reply', 'MessageInfo', 'Response',
    # Protocols
    'InterestModel', 'DistributionModel', 'Overseer', 'BankView',
    # Helpers and constants
    'fixed', 'truncate_to_units', 'to_decimal',
    'INITIAL_DEPOSIT_AMOUNT', 'DECIMAL_PLACES', 'RECEIPT_TOKEN_DECIMALS',
    'REPLY_ID_REGISTER_ATERRA',
    # Records
    'Config', 'State', 'BorrowerInfo', 'MarketUpdate', 'genesis_state',
    'COLLABORATOR_FIELDS',
    # Collaborator access
    'Querier', 'Bank', 'TokenInfo',
    # Engines
    'compute_exchange_rate_raw', 'compute_exchange_rate', 'snapshot_exchange_rate',
    'check_interest_time', 'calculate_excess_yield', 'compute_interest_raw',
    'compute_interest', 'check_reward_time', 'compute_reward',
    'compute_borrower_interest', 'compute_borrower_reward', 'settle_borrower',
    'EpochState', 'calculate_reserve_skim',
    # Reference collaborators
    'LinearInterestModel', 'FeedbackDistributionModel', 'StaticOverseer',
    # Market
    'Market', 'register_aterra', 'register_contracts', 'receipt_token_metadata',
]

__version__ = '0.1.0'
