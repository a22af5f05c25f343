"""Shared fixtures for portfolio tests."""

from decimal import Decimal

import pytest

from budget_core.config import EngineConfig
from budget_core.models import Account, AccountType


@pytest.fixture
def household_accounts() -> list[Account]:
    """A typical household: deposits, two cards, a car loan and a 401k."""
    return [
        Account(
            id="checking1",
            name="Chase Checking",
            type=AccountType.CHECKING,
            current_balance=Decimal("5000"),
            interest_rate_apy=Decimal("0.01"),
        ),
        Account(
            id="savings1",
            name="High Yield Savings",
            type=AccountType.SAVINGS,
            current_balance=Decimal("10000"),
            interest_rate_apy=Decimal("4.5"),
            is_fdic=True,
        ),
        Account(
            id="cc1",
            name="Chase Sapphire",
            type=AccountType.CREDIT_CARD,
            credit_limit=Decimal("10000"),
            current_balance=Decimal("2000"),
            interest_rate=Decimal("18.99"),
            cash_back_percent=Decimal("2"),
            annual_fee=Decimal("95"),
        ),
        Account(
            id="cc2",
            name="Amex Gold",
            type=AccountType.CREDIT_CARD,
            credit_limit=Decimal("5000"),
            current_balance=Decimal("1500"),
            interest_rate=Decimal("21.99"),
            cash_back_percent=Decimal("3"),
            points_per_dollar=Decimal("2"),
            annual_fee=Decimal("250"),
        ),
        Account(
            id="loan1",
            name="Car Loan",
            type=AccountType.LOAN,
            principal_balance=Decimal("15000"),
            interest_rate=Decimal("4.5"),
        ),
        Account(
            id="investment1",
            name="401k",
            type=AccountType.INVESTMENT,
            current_balance=Decimal("50000"),
        ),
    ]


@pytest.fixture
def engine_config() -> EngineConfig:
    """Configuration with default thresholds."""
    return EngineConfig(log_level="DEBUG")
