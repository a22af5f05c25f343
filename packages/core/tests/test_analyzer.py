"""Tests for the portfolio analyzer."""

from datetime import date
from decimal import Decimal

import pytest

from budget_core.analyzer import (
    PortfolioAnalyzer,
    analyze_payments,
    cash_flow,
    credit_card_analysis,
    net_worth,
    suggest_card_strategy,
)
from budget_core.models import Account, AccountType, PortfolioReport, Transaction


def payment(txn_id: str, amount: str, paying: str = None) -> Transaction:
    return Transaction(
        id=txn_id,
        date=date(2025, 3, 1),
        amount=Decimal(amount),
        description="Payment",
        account_id="checking1",
        paying_account_id=paying,
        method="ach",
    )


@pytest.fixture
def period_transactions() -> list[Transaction]:
    """Three months of payments plus one ordinary purchase."""
    return [
        payment("t1", "500", "cc1"),
        payment("t2", "300", "cc1"),
        payment("t3", "450", "loan1"),
        payment("t4", "100", "ghost"),
        payment("t5", "200", "checking1"),
        payment("t6", "150"),
    ]


class TestCreditCardAnalysis:
    """Tests for credit_card_analysis."""

    def test_totals(self, household_accounts: list[Account]):
        """Limits and balances sum across cards."""
        result = credit_card_analysis(household_accounts)
        assert result.total_limit == Decimal("15000")
        assert result.total_balance == Decimal("3500")
        assert result.utilization_rate == Decimal("23.33")

    def test_weighted_apr(self, household_accounts: list[Account]):
        """APR is the mean of cards with a positive rate."""
        assert credit_card_analysis(household_accounts).weighted_apr == Decimal("20.49")

    def test_potential_savings(self, household_accounts: list[Account]):
        """Monthly interest above $50 is reported as savings."""
        assert credit_card_analysis(household_accounts).potential_savings == Decimal("59.76")

    def test_best_rewards_card(self, household_accounts: list[Account]):
        """Cashback and high points multipliers drive the reward score."""
        best = credit_card_analysis(household_accounts).best_rewards_card
        assert best.card.name == "Amex Gold"
        assert best.value == Decimal("40")

    def test_no_cards(self):
        """No cards yields zeroed results."""
        result = credit_card_analysis([])
        assert result.total_limit == Decimal("0")
        assert result.utilization_rate == Decimal("0")
        assert result.best_rewards_card is None

    def test_small_balance_has_no_savings(self):
        """Monthly interest under $50 is not reported."""
        card = Account(
            id="cc", name="Card", type="credit_card",
            credit_limit=1000, current_balance=100, interest_rate=20,
        )
        assert credit_card_analysis([card]).potential_savings == Decimal("0.00")


class TestNetWorth:
    """Tests for net_worth."""

    def test_assets_and_liabilities(self, household_accounts: list[Account]):
        """Assets and liabilities use current or principal balances."""
        result = net_worth(household_accounts)
        assert result.assets == Decimal("65000")
        assert result.liabilities == Decimal("18500")
        assert result.net_worth == Decimal("46500")

    def test_distributions(self, household_accounts: list[Account]):
        """Balances are broken down by account name."""
        result = net_worth(household_accounts)
        assert result.asset_distribution["401k"] == Decimal("50000")
        assert result.liability_distribution["Car Loan"] == Decimal("15000")
        assert result.per_account_breakdown["Amex Gold"] == Decimal("-1500")

    def test_inactive_accounts_excluded(self, household_accounts: list[Account]):
        """Inactive accounts do not count."""
        closed = Account(
            id="old", name="Old Savings", type="savings",
            current_balance=99999, is_active=False,
        )
        assert net_worth(household_accounts + [closed]).assets == Decimal("65000")

    def test_paid_off_card_is_not_a_liability(self):
        """Cards with no positive balance are left out of liabilities."""
        card = Account(id="cc", name="Card", type="credit_card", current_balance=-20)
        result = net_worth([card])
        assert result.liabilities == Decimal("0")
        assert result.liability_distribution == {}


class TestCashFlow:
    """Tests for cash_flow."""

    def test_interest_and_fees(self, household_accounts: list[Account]):
        """Interest earned, paid and fees are monthly figures."""
        result = cash_flow(household_accounts, Decimal("1000"))
        assert result.interest_earned == Decimal("37.54")
        assert result.interest_paid == Decimal("115.39")
        assert result.fees_total == Decimal("28.75")
        assert result.net_interest == Decimal("-77.85")
        assert result.opportunity_gap == Decimal("77.85")

    def test_loan_uses_principal(self):
        """Loans without a current balance accrue on principal."""
        loan = Account(
            id="l", name="Mortgage", type="loan",
            principal_balance=120000, interest_rate=6,
        )
        assert cash_flow([loan]).interest_paid == Decimal("600.00")

    def test_no_gap_when_earning_more(self):
        """Earning more than paying leaves no opportunity gap."""
        savings = Account(
            id="s", name="Savings", type="savings",
            current_balance=12000, interest_rate_apy=5,
        )
        result = cash_flow([savings])
        assert result.interest_earned == Decimal("50.00")
        assert result.opportunity_gap == Decimal("0.00")


class TestAnalyzePayments:
    """Tests for analyze_payments."""

    def test_totals(self, household_accounts, period_transactions):
        """Card and loan payments are totalled separately."""
        result = analyze_payments(period_transactions, household_accounts, Decimal("1400"), 3)
        assert result.total_credit_card_payments == Decimal("800")
        assert result.total_loan_payments == Decimal("450")
        assert result.total_debt_payments == Decimal("1250")

    def test_dangling_account_counted_without_money(self, household_accounts, period_transactions):
        """Unknown paying accounts count as payments but add nothing."""
        result = analyze_payments(period_transactions, household_accounts, Decimal("1400"), 3)
        assert result.payment_count == 4
        assert result.avg_payment_amount == Decimal("312.50")
        assert "ghost" not in result.payments_by_account
        assert "checking1" not in result.payments_by_account

    def test_by_account(self, household_accounts, period_transactions):
        """Payments are grouped per debt account."""
        result = analyze_payments(period_transactions, household_accounts, Decimal("1400"), 3)
        cc1 = result.payments_by_account["cc1"]
        assert cc1.account_name == "Chase Sapphire"
        assert cc1.amount == Decimal("800")
        assert cc1.count == 2

    def test_rates(self, household_accounts, period_transactions):
        """Reduction rate and velocity are derived from the period."""
        result = analyze_payments(period_transactions, household_accounts, Decimal("1400"), 3)
        assert result.debt_reduction_rate == Decimal("89.29")
        assert result.payment_velocity == Decimal("1.33")

    def test_zero_guards(self, household_accounts):
        """Zero expenses and zero months never divide by zero."""
        result = analyze_payments([payment("t1", "100", "cc1")], household_accounts, 0, 0)
        assert result.debt_reduction_rate == Decimal("0")
        assert result.payment_velocity == Decimal("0.00")


class TestSuggestCardStrategy:
    """Tests for suggest_card_strategy."""

    @pytest.fixture
    def cards(self, household_accounts: list[Account]) -> list[Account]:
        sapphire = household_accounts[2].model_copy(update={"rewards_program": "Ultimate Rewards Travel"})
        dining = Account(
            id="cc3",
            name="Dining Card",
            type=AccountType.CREDIT_CARD,
            cash_back_percent=Decimal("1.5"),
            rewards_program="Dining Rewards",
        )
        return [sapphire, household_accounts[3], dining]

    def test_best_card_per_category(self, cards: list[Account]):
        """Category bonuses from the rewards program steer the choice."""
        strategies = suggest_card_strategy(
            cards, {"groceries": 500, "restaurants": 300, "travel": 200, "fuel": 0}
        )
        picks = {s.category: s.recommended_card.name for s in strategies}
        assert picks == {
            "groceries": "Amex Gold",
            "restaurants": "Dining Card",
            "travel": "Chase Sapphire",
        }

    def test_reason(self, cards: list[Account]):
        """Each recommendation explains itself."""
        strategy = suggest_card_strategy(cards, {"groceries": 100})[0]
        assert strategy.reason == "Amex Gold offers best rewards for groceries spending"

    def test_no_cards(self):
        """No cards means no strategy."""
        assert suggest_card_strategy([], {"groceries": 500}) == []

    def test_no_spending(self, cards: list[Account]):
        """No spending means no strategy."""
        assert suggest_card_strategy(cards, {}) == []


class TestPortfolioAnalyzer:
    """Tests for the orchestrating analyzer."""

    def test_analyze_returns_report(self, household_accounts, engine_config):
        """Analyze returns every section of the report."""
        report = PortfolioAnalyzer(engine_config).analyze(household_accounts, Decimal("1000"))
        assert isinstance(report, PortfolioReport)
        assert report.net_worth.net_worth == Decimal("46500")
        assert report.payments is None
        assert report.insights

    def test_audit_trail(self, household_accounts, engine_config):
        """Every step is recorded in order."""
        analyzer = PortfolioAnalyzer(engine_config)
        report = analyzer.analyze(household_accounts, Decimal("1000"))
        assert [e.step for e in report.audit_log] == [
            "credit_card_analysis",
            "net_worth",
            "cash_flow",
            "insights",
        ]
        assert report.audit_log[1].output_value == "46500"
        assert analyzer.audit_log == report.audit_log

    def test_payments_included(self, household_accounts, period_transactions, engine_config):
        """Transactions enable payment analysis and payment insights."""
        report = PortfolioAnalyzer(engine_config).analyze(
            household_accounts, Decimal("1000"), transactions=period_transactions, month_count=3
        )
        assert report.payments is not None
        assert report.payments.total_debt_payments == Decimal("1250")
        assert "payment_analysis" in [e.step for e in report.audit_log]
        assert any(i.title.startswith("Top Payment Account") for i in report.insights)

    def test_audit_log_resets(self, household_accounts, engine_config):
        """Each analysis starts a fresh audit trail."""
        analyzer = PortfolioAnalyzer(engine_config)
        analyzer.analyze(household_accounts, Decimal("1000"))
        report = analyzer.analyze(household_accounts, Decimal("1000"))
        assert len(report.audit_log) == 4
