"""
conftest.py - Shared pytest fixtures for money market tests

Provides:
- Registered markets with a zero or a fixed borrow rate
- A market whose collaborators are not registered yet
- An overseer with borrow limits for bob and carol
"""

import pytest
from decimal import Decimal

from moneymarket import StaticOverseer

from tests.fakes import FixedRateInterestModel
from tests.helpers import build_market


# =============================================================================
# FIXTURES
# =============================================================================

@pytest.fixture
def overseer():
    """Overseer with a zero target rate and generous limits for bob and carol."""
    return StaticOverseer(
        Decimal("0"),
        borrow_limits={"bob": Decimal("5000000"), "carol": Decimal("5000000")},
    )


@pytest.fixture
def interest_model():
    """1e-8 per second, so 1000 seconds compound by exactly 0.00001."""
    return FixedRateInterestModel("0.00000001")


@pytest.fixture
def market(overseer):
    """Registered market with a zero borrow rate."""
    return build_market(overseer=overseer)


@pytest.fixture
def accruing_market(overseer, interest_model):
    """Registered market whose borrow rate is 1e-8 per second."""
    return build_market(interest_model=interest_model, overseer=overseer)


@pytest.fixture
def unregistered_market():
    """Market whose receipt token exists but whose collaborators are unset."""
    return build_market(register=False)


@pytest.fixture
def bank(market):
    return market.querier.bank
