"""Tests for the insight table."""

from decimal import Decimal

import pytest

from budget_core.analyzer import cash_flow, credit_card_analysis, net_worth
from budget_core.config import EngineConfig
from budget_core.insights import INSIGHT_RULES, InsightRule, generate_insights
from budget_core.models import (
    Account,
    AccountPayments,
    FinancialInsight,
    Impact,
    InsightType,
    PaymentAnalysis,
)


def run(accounts, spending="1000", payments=None, config=None) -> list[FinancialInsight]:
    spending = Decimal(spending)
    return generate_insights(
        accounts,
        credit_card_analysis(accounts),
        net_worth(accounts),
        cash_flow(accounts, spending),
        spending,
        payments=payments,
        config=config or EngineConfig(),
    )


def with_changes(accounts: list[Account], account_id: str, **changes) -> list[Account]:
    return [a.model_copy(update=changes) if a.id == account_id else a for a in accounts]


def titled(insights: list[FinancialInsight], fragment: str) -> FinancialInsight:
    matches = [i for i in insights if fragment in i.title]
    assert matches, f"no insight titled like {fragment!r} in {[i.title for i in insights]}"
    return matches[0]


@pytest.fixture
def payment_summary() -> PaymentAnalysis:
    """A period with heavy debt payments."""
    return PaymentAnalysis(
        total_credit_card_payments=Decimal("800"),
        total_loan_payments=Decimal("450"),
        total_debt_payments=Decimal("1250"),
        payment_count=3,
        avg_payment_amount=Decimal("416.67"),
        payments_by_account={
            "cc1": AccountPayments(account_name="Chase Sapphire", amount=Decimal("800"), count=2),
            "loan1": AccountPayments(account_name="Car Loan", amount=Decimal("450"), count=1),
        },
        debt_reduction_rate=Decimal("89.29"),
        payment_velocity=Decimal("3"),
    )


class TestInsightTable:
    """Tests for the declarative table itself."""

    def test_rules_are_named_and_prioritized(self):
        """Every rule has a unique name and a 1-10 priority."""
        names = [rule.name for rule in INSIGHT_RULES]
        assert len(names) == len(set(names))
        assert all(1 <= rule.priority <= 10 for rule in INSIGHT_RULES)

    def test_priorities_match_table(self):
        """Key rules carry their documented priorities."""
        priorities = {rule.name: rule.priority for rule in INSIGHT_RULES}
        assert priorities["high_utilization"] == 9
        assert priorities["elevated_utilization"] == 7
        assert priorities["moderate_utilization"] == 5
        assert priorities["debt_payoff_timeline"] == 3
        assert priorities["strong_interest_earnings"] == 2
        assert priorities["interest_gap"] == 8
        assert priorities["fdic_exposure"] == 7
        assert priorities["reward_maximization"] == 6
        assert priorities["low_yield_deposits"] == 6
        assert priorities["annual_fee_breakeven"] == 5
        assert priorities["account_fees"] == 5
        assert priorities["positive_net_worth"] == 2

    def test_custom_rules(self, household_accounts):
        """Callers may evaluate their own table."""
        always = InsightRule(
            "always",
            3,
            lambda ctx, priority: [FinancialInsight(
                type=InsightType.INFO,
                title="Hello",
                description="Always fires",
                impact=Impact.LOW,
                priority=priority,
            )],
        )
        accounts = household_accounts
        spending = Decimal("1000")
        insights = generate_insights(
            accounts,
            credit_card_analysis(accounts),
            net_worth(accounts),
            cash_flow(accounts, spending),
            spending,
            config=EngineConfig(),
            rules=[always],
        )
        assert [i.title for i in insights] == ["Hello"]
        assert insights[0].priority == 3


class TestDefaultPortfolio:
    """Insights for the unmodified household."""

    def test_expected_insights(self, household_accounts):
        """Rewards, fees, payoff and net worth fire; nothing alarming does."""
        titles = [i.title for i in run(household_accounts)]
        assert titles == [
            "Maximize Amex Gold Usage",
            "Account Fees",
            "Debt Payoff Timeline",
            "Positive Net Worth",
            "Strong Interest Earnings",
        ]

    def test_sorted_and_capped(self, household_accounts, payment_summary):
        """Output is sorted by priority and never exceeds ten."""
        insights = run(household_accounts, payments=payment_summary)
        priorities = [i.priority for i in insights]
        assert priorities == sorted(priorities, reverse=True)
        assert len(insights) <= 10

    def test_limit_from_config(self, household_accounts, payment_summary):
        """The configured limit truncates lowest priorities first."""
        insights = run(
            household_accounts,
            payments=payment_summary,
            config=EngineConfig(insight_limit=2),
        )
        assert [i.priority for i in insights] == [7, 6]


class TestIndividualRules:
    """Each rule fires under its own condition."""

    def test_high_utilization(self, household_accounts):
        """Utilization above 80% is a priority 9 warning."""
        accounts = with_changes(household_accounts, "cc1", current_balance=Decimal("8500"))
        accounts = with_changes(accounts, "cc2", current_balance=Decimal("4250"))
        insight = titled(run(accounts), "Utilization")
        assert insight.type is InsightType.WARNING
        assert insight.priority == 9
        assert insight.impact is Impact.HIGH
        assert insight.metric == "85.0%"

    def test_elevated_utilization(self, household_accounts):
        """Utilization between 50% and 80% is a priority 7 warning."""
        accounts = with_changes(household_accounts, "cc1", current_balance=Decimal("7000"))
        insight = titled(run(accounts), "Utilization")
        assert insight.priority == 7
        assert insight.impact is Impact.MEDIUM
        assert insight.metric == "56.7%"

    def test_moderate_utilization(self, household_accounts):
        """Utilization between 30% and 50% is a priority 5 warning."""
        accounts = with_changes(household_accounts, "cc1", current_balance=Decimal("4000"))
        insight = titled(run(accounts), "Utilization")
        assert insight.priority == 5
        assert insight.impact is Impact.LOW
        assert insight.metric == "36.7%"

    def test_utilization_at_target_is_quiet(self, household_accounts):
        """Utilization of 30% or less raises nothing."""
        accounts = with_changes(household_accounts, "cc1", current_balance=Decimal("3000"))
        assert not [i for i in run(accounts) if "Utilization" in i.title]

    def test_interest_gap(self, household_accounts):
        """A monthly interest gap above $100 is an opportunity."""
        accounts = with_changes(household_accounts, "loan1", principal_balance=Decimal("30000"))
        insight = titled(run(accounts), "Interest Gap")
        assert insight.type is InsightType.OPPORTUNITY
        assert insight.priority == 8

    def test_no_interest_gap_below_threshold(self, household_accounts):
        """A gap of $100 or less stays quiet."""
        assert not [i for i in run(household_accounts) if "Interest Gap" in i.title]

    def test_fdic(self, household_accounts):
        """Insured deposits above $250,000 are a warning."""
        accounts = with_changes(household_accounts, "savings1", current_balance=Decimal("300000"))
        insight = titled(run(accounts), "FDIC")
        assert insight.type is InsightType.WARNING
        assert insight.priority == 7
        assert insight.metric == "$50,000.00 uninsured"

    def test_low_yield_deposits(self, household_accounts):
        """Over $10,000 earning under 1% APY is an opportunity."""
        accounts = with_changes(household_accounts, "savings1", interest_rate_apy=Decimal("0.01"))
        insight = titled(run(accounts), "High-Yield")
        assert insight.type is InsightType.OPPORTUNITY
        assert insight.priority == 6
        assert "Chase Checking" in insight.action
        assert "High Yield Savings" in insight.action

    def test_reward_below_threshold(self, household_accounts):
        """Small projected rewards stay quiet."""
        titles = [i.title for i in run(household_accounts, spending="500")]
        assert "Maximize Amex Gold Usage" not in titles

    def test_annual_fee_breakeven(self, household_accounts):
        """A fee the spending cannot earn back is a warning."""
        accounts = with_changes(
            household_accounts, "cc2",
            annual_fee=Decimal("500"), cash_back_percent=Decimal("0.1"),
        )
        insights = run(accounts, spending="500")
        insight = titled(insights, "Annual Fee")
        assert insight.title == "Annual Fee Cost: Amex Gold"
        assert insight.type is InsightType.WARNING
        assert insight.priority == 5
        assert not [i for i in insights if i.title == "Annual Fee Cost: Chase Sapphire"]

    def test_account_fees(self, household_accounts):
        """More than $20/month in fees is a warning."""
        insight = titled(run(household_accounts), "Account Fees")
        assert insight.metric == "$345.00/year"

    def test_no_positive_net_worth_when_underwater(self):
        """Negative net worth gets no milestone."""
        loan = Account(id="l", name="Loan", type="loan", principal_balance=1000)
        assert not [i for i in run([loan]) if i.title == "Positive Net Worth"]

    def test_payment_insights(self, household_accounts, payment_summary):
        """Payment history adds debt reduction and top account insights."""
        insights = run(household_accounts, payments=payment_summary)
        reduction = titled(insights, "Debt Reduction")
        assert reduction.type is InsightType.INFO
        assert reduction.impact is Impact.HIGH
        assert reduction.priority == 7
        top = titled(insights, "Top Payment")
        assert "Chase Sapphire" in top.title
        assert top.priority == 4

    def test_low_reduction_rate_impact(self, household_accounts, payment_summary):
        """Impact scales with the reduction rate."""
        modest = payment_summary.model_copy(update={"debt_reduction_rate": Decimal("10")})
        assert titled(run(household_accounts, payments=modest), "Debt Reduction").impact is Impact.LOW

    def test_debt_payoff_timeline(self, household_accounts):
        """Liabilities above $10,000 get a payoff estimate from 10% of assets."""
        insight = titled(run(household_accounts), "Debt Payoff")
        assert insight.type is InsightType.INFO
        assert insight.priority == 3
        assert insight.metric == "3 months"
        assert "$6,500.00/month" in insight.description

    def test_no_payoff_timeline_without_spending(self, household_accounts):
        """No monthly spending means no payoff estimate."""
        assert not [i for i in run(household_accounts, spending="0") if "Debt Payoff" in i.title]

    def test_no_payoff_timeline_for_small_debt(self, household_accounts):
        """Liabilities of $10,000 or less stay quiet."""
        accounts = with_changes(household_accounts, "loan1", principal_balance=Decimal("5000"))
        assert not [i for i in run(accounts) if "Debt Payoff" in i.title]

    def test_strong_interest_earnings(self, household_accounts):
        """More than $25/month in interest earned is celebrated."""
        insight = titled(run(household_accounts), "Strong Interest")
        assert insight.type is InsightType.INFO
        assert insight.priority == 2
        assert insight.metric == "$450.48/year"

    def test_weak_interest_earnings_are_quiet(self, household_accounts):
        """$25/month or less earns no mention."""
        accounts = with_changes(household_accounts, "savings1", interest_rate_apy=Decimal("2"))
        assert not [i for i in run(accounts) if "Strong Interest" in i.title]
