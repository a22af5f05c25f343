"""Prioritized financial insights.

Each insight comes from one entry of ``INSIGHT_RULES``. An entry names the
condition, carries its priority and points at a builder that inspects the
analysis results and returns zero or more insights. Every builder is
evaluated independently; ``generate_insights`` sorts the combined output by
priority (highest first) and truncates it to ``EngineConfig.insight_limit``.

Priorities:

    9  utilization above 80%
    8  monthly interest gap above $100
    7  deposits above the FDIC limit; debt-reduction rate;
       utilization between 50% and 80%
    6  reward maximization; low-yield deposits above $10,000
    5  annual fee not paid back by spend; monthly fees above $20;
       utilization between 30% and 50%
    4  top payment account
    3  debt payoff timeline for liabilities above $10,000
    2  positive net worth; monthly interest earned above $25
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from decimal import ROUND_CEILING, Decimal
from typing import Optional

import structlog

from .config import EngineConfig
from .models import (
    DEPOSIT_TYPES,
    Account,
    AccountType,
    CashFlowAnalysis,
    CreditCardAnalysis,
    FinancialInsight,
    Impact,
    InsightType,
    NetWorthBreakdown,
    PaymentAnalysis,
)
from .money import HUNDRED, ZERO, MoneyInput, format_currency, round_amount, safe_divide, to_decimal

logger = structlog.get_logger()

HIGH_UTILIZATION = Decimal("80")
TARGET_UTILIZATION = Decimal("30")
ELEVATED_UTILIZATION = Decimal("50")
OPPORTUNITY_GAP_THRESHOLD = Decimal("100")
LOW_YIELD_APY = Decimal("1")
LOW_YIELD_BALANCE = Decimal("10000")
MONTHLY_FEE_THRESHOLD = Decimal("20")
HIGH_DEBT_REDUCTION = Decimal("50")
MODERATE_DEBT_REDUCTION = Decimal("20")
PAYOFF_LIABILITIES = Decimal("10000")
PAYOFF_ASSET_SHARE = Decimal("0.1")
STRONG_INTEREST_EARNED = Decimal("25")
MONTHS_PER_YEAR = 12


@dataclass
class InsightContext:
    """Everything an insight builder may look at."""
    accounts: list[Account]
    credit_cards: CreditCardAnalysis
    net_worth: NetWorthBreakdown
    cash_flow: CashFlowAnalysis
    monthly_spending: Decimal
    payments: Optional[PaymentAnalysis]
    config: EngineConfig


InsightBuilder = Callable[[InsightContext, int], list[FinancialInsight]]


@dataclass(frozen=True)
class InsightRule:
    """One row of the insight table."""
    name: str
    priority: int
    build: InsightBuilder


def _cards(ctx: InsightContext) -> list[Account]:
    return [a for a in ctx.accounts if a.is_active and a.type is AccountType.CREDIT_CARD]


def _deposits(ctx: InsightContext) -> list[Account]:
    return [a for a in ctx.accounts if a.is_active and a.type in DEPOSIT_TYPES]


def _utilization_insight(ctx: InsightContext, priority: int, impact: Impact) -> FinancialInsight:
    cc = ctx.credit_cards
    rate = round_amount(cc.utilization_rate, 1)
    return FinancialInsight(
        type=InsightType.WARNING,
        title="Credit Card Utilization",
        description=(
            f"You're using {rate}% of your available credit "
            f"({format_currency(cc.total_balance)} of {format_currency(cc.total_limit)}). "
            "Ideal is below 30% for credit scores."
        ),
        impact=impact,
        metric=f"{rate}%",
        action=(
            "Pay down to below 30% utilization to improve credit score. "
            f"Target: {format_currency(cc.total_limit * TARGET_UTILIZATION / HUNDRED)}"
        ),
        priority=priority,
    )


def high_utilization(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    cc = ctx.credit_cards
    if cc.total_limit > 0 and cc.utilization_rate > HIGH_UTILIZATION:
        return [_utilization_insight(ctx, priority, Impact.HIGH)]
    return []


def elevated_utilization(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    cc = ctx.credit_cards
    if cc.total_limit > 0 and ELEVATED_UTILIZATION < cc.utilization_rate <= HIGH_UTILIZATION:
        return [_utilization_insight(ctx, priority, Impact.MEDIUM)]
    return []


def moderate_utilization(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    cc = ctx.credit_cards
    if cc.total_limit > 0 and TARGET_UTILIZATION < cc.utilization_rate <= ELEVATED_UTILIZATION:
        return [_utilization_insight(ctx, priority, Impact.LOW)]
    return []


def interest_gap(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    flow = ctx.cash_flow
    if flow.opportunity_gap <= OPPORTUNITY_GAP_THRESHOLD:
        return []
    yearly = flow.opportunity_gap * MONTHS_PER_YEAR
    return [FinancialInsight(
        type=InsightType.OPPORTUNITY,
        title="Optimize Interest Gap",
        description=(
            f"You're paying {format_currency(flow.interest_paid)}/month in interest but "
            f"earning only {format_currency(flow.interest_earned)}. "
            f"Annual gap: {format_currency(yearly)}"
        ),
        impact=Impact.HIGH,
        metric=f"{format_currency(yearly)}/year",
        action="Prioritize paying off high-interest debt or increase savings APY",
        priority=priority,
    )]


def fdic_exposure(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    insured = sum(
        (a.current_balance or ZERO for a in _deposits(ctx) if a.is_fdic),
        ZERO,
    )
    limit = ctx.config.fdic_limit
    if insured <= limit:
        return []
    return [FinancialInsight(
        type=InsightType.WARNING,
        title="FDIC Coverage Limit Exceeded",
        description=(
            f"Your FDIC-insured accounts total {format_currency(insured)}, exceeding the "
            f"{format_currency(limit, 0)} protection limit per bank."
        ),
        impact=Impact.HIGH,
        metric=f"{format_currency(insured - limit)} uninsured",
        action="Spread deposits across multiple banks",
        priority=priority,
    )]


def reward_maximization(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    spending = ctx.monthly_spending
    rewarding = [c for c in _cards(ctx) if (c.cash_back_percent or ZERO) > 0]
    if not rewarding or spending <= 0:
        return []

    best = max(rewarding, key=lambda c: c.cash_back_percent)
    monthly = best.cash_back_percent * spending / HUNDRED
    yearly = monthly * MONTHS_PER_YEAR
    if yearly <= ctx.config.reward_insight_threshold:
        return []
    return [FinancialInsight(
        type=InsightType.OPPORTUNITY,
        title=f"Maximize {best.name} Usage",
        description=(
            f"{best.name} earns {best.cash_back_percent}% cashback. On your "
            f"{format_currency(spending)}/month spending, you'd earn "
            f"{format_currency(monthly)}/month."
        ),
        impact=Impact.MEDIUM,
        metric=f"{format_currency(yearly)}/year",
        action=f"Use {best.name} for as much spending as possible",
        priority=priority,
    )]


def low_yield_deposits(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    low_yield = [
        a for a in _deposits(ctx)
        if (a.interest_rate_apy or ZERO) < LOW_YIELD_APY and (a.current_balance or ZERO) > 0
    ]
    total = sum((a.current_balance for a in low_yield), ZERO)
    if total <= LOW_YIELD_BALANCE:
        return []

    reference = ctx.config.high_yield_apy
    monthly_gain = sum(
        (
            a.current_balance * (reference - (a.interest_rate_apy or ZERO)) / HUNDRED / MONTHS_PER_YEAR
            for a in low_yield
        ),
        ZERO,
    )
    return [FinancialInsight(
        type=InsightType.OPPORTUNITY,
        title="High-Yield Savings Opportunity",
        description=(
            f"You have {format_currency(total)} earning under {LOW_YIELD_APY}% APY. "
            f"High-yield savings offer around {reference}% APY."
        ),
        impact=Impact.MEDIUM,
        metric=f"+{format_currency(monthly_gain * MONTHS_PER_YEAR)}/year",
        action=f"Move {', '.join(a.name for a in low_yield)} to a high-yield account",
        priority=priority,
    )]


def annual_fee_breakeven(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    annual_spend = ctx.monthly_spending * MONTHS_PER_YEAR
    insights = []
    for card in _cards(ctx):
        fee = card.annual_fee or ZERO
        if fee <= 0:
            continue
        cash_back = card.cash_back_percent or ZERO
        if cash_back > 0:
            breakeven = fee / (cash_back / HUNDRED)
            if breakeven <= annual_spend:
                continue
            detail = (
                f"You would need to spend {format_currency(breakeven)}/year at "
                f"{cash_back}% cashback to cover it; you spend about "
                f"{format_currency(annual_spend)}/year."
            )
            metric = f"{format_currency(breakeven)}/year to break even"
        else:
            detail = "It earns no cashback to offset the fee."
            metric = f"-{format_currency(fee)}/year"
        insights.append(FinancialInsight(
            type=InsightType.WARNING,
            title=f"Annual Fee Cost: {card.name}",
            description=f"This card costs {format_currency(fee)}/year. {detail}",
            impact=Impact.MEDIUM,
            metric=metric,
            action="Consider downgrading to no-fee version or canceling",
            priority=priority,
        ))
    return insights


def account_fees(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    fees = ctx.cash_flow.fees_total
    if fees <= MONTHLY_FEE_THRESHOLD:
        return []
    yearly = fees * MONTHS_PER_YEAR
    return [FinancialInsight(
        type=InsightType.WARNING,
        title="Account Fees",
        description=(
            f"You're paying {format_currency(fees)}/month ({format_currency(yearly)}/year) "
            "in account and credit card fees."
        ),
        impact=Impact.MEDIUM,
        metric=f"{format_currency(yearly)}/year",
        action="Switch to fee-free checking/savings accounts",
        priority=priority,
    )]


def positive_net_worth(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    nw = ctx.net_worth
    if nw.net_worth <= 0:
        return []
    equity = round_amount(safe_divide(nw.net_worth, nw.assets) * HUNDRED, 1)
    return [FinancialInsight(
        type=InsightType.INFO,
        title="Positive Net Worth",
        description=(
            f"You have {format_currency(nw.net_worth)} net worth. "
            f"Assets: {format_currency(nw.assets)}, "
            f"Liabilities: {format_currency(nw.liabilities)} ({equity}% equity)."
        ),
        impact=Impact.LOW,
        metric=format_currency(nw.net_worth),
        priority=priority,
    )]


def debt_payoff_timeline(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    nw = ctx.net_worth
    if nw.liabilities <= PAYOFF_LIABILITIES or ctx.monthly_spending <= 0 or nw.assets <= 0:
        return []
    monthly_available = nw.assets * PAYOFF_ASSET_SHARE
    months = int((nw.liabilities / monthly_available).to_integral_value(rounding=ROUND_CEILING))
    return [FinancialInsight(
        type=InsightType.INFO,
        title="Debt Payoff Timeline",
        description=(
            f"At current asset levels, you could pay off {format_currency(nw.liabilities)} "
            f"debt in ~{months} months if you allocate "
            f"{format_currency(monthly_available)}/month."
        ),
        impact=Impact.LOW,
        metric=f"{months} months",
        priority=priority,
    )]


def strong_interest_earnings(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    earned = ctx.cash_flow.interest_earned
    if earned <= STRONG_INTEREST_EARNED:
        return []
    yearly = earned * MONTHS_PER_YEAR
    return [FinancialInsight(
        type=InsightType.INFO,
        title="Strong Interest Earnings",
        description=(
            f"Your savings are earning {format_currency(earned)}/month "
            f"({format_currency(yearly)}/year). Great job finding high-yield accounts!"
        ),
        impact=Impact.LOW,
        metric=f"{format_currency(yearly)}/year",
        priority=priority,
    )]


def debt_reduction(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    payments = ctx.payments
    if payments is None or payments.total_debt_payments <= 0:
        return []
    rate = payments.debt_reduction_rate
    if rate >= HIGH_DEBT_REDUCTION:
        impact = Impact.HIGH
    elif rate >= MODERATE_DEBT_REDUCTION:
        impact = Impact.MEDIUM
    else:
        impact = Impact.LOW
    return [FinancialInsight(
        type=InsightType.INFO,
        title="Debt Reduction Progress",
        description=(
            f"You paid {format_currency(payments.total_debt_payments)} toward debt across "
            f"{payments.payment_count} payments ({format_currency(payments.total_credit_card_payments)} "
            f"to credit cards, {format_currency(payments.total_loan_payments)} to loans). "
            f"That is {round_amount(rate, 1)}% of your expenses."
        ),
        impact=impact,
        metric=f"{round_amount(rate, 1)}%",
        action="Keep directing payments at the highest-interest balances first",
        priority=priority,
    )]


def top_payment_account(ctx: InsightContext, priority: int) -> list[FinancialInsight]:
    payments = ctx.payments
    if payments is None or not payments.payments_by_account:
        return []
    top = max(payments.payments_by_account.values(), key=lambda p: p.amount)
    return [FinancialInsight(
        type=InsightType.INFO,
        title=f"Top Payment Account: {top.account_name}",
        description=(
            f"{top.account_name} received {format_currency(top.amount)} "
            f"over {top.count} payment{'s' if top.count != 1 else ''}."
        ),
        impact=Impact.LOW,
        metric=format_currency(top.amount),
        priority=priority,
    )]


INSIGHT_RULES: tuple[InsightRule, ...] = (
    InsightRule("high_utilization", 9, high_utilization),
    InsightRule("interest_gap", 8, interest_gap),
    InsightRule("fdic_exposure", 7, fdic_exposure),
    InsightRule("elevated_utilization", 7, elevated_utilization),
    InsightRule("debt_reduction", 7, debt_reduction),
    InsightRule("reward_maximization", 6, reward_maximization),
    InsightRule("low_yield_deposits", 6, low_yield_deposits),
    InsightRule("annual_fee_breakeven", 5, annual_fee_breakeven),
    InsightRule("account_fees", 5, account_fees),
    InsightRule("moderate_utilization", 5, moderate_utilization),
    InsightRule("top_payment_account", 4, top_payment_account),
    InsightRule("debt_payoff_timeline", 3, debt_payoff_timeline),
    InsightRule("positive_net_worth", 2, positive_net_worth),
    InsightRule("strong_interest_earnings", 2, strong_interest_earnings),
)


def generate_insights(
    accounts: Sequence[Account],
    credit_cards: CreditCardAnalysis,
    net_worth: NetWorthBreakdown,
    cash_flow: CashFlowAnalysis,
    monthly_spending: MoneyInput,
    payments: Optional[PaymentAnalysis] = None,
    config: Optional[EngineConfig] = None,
    rules: Sequence[InsightRule] = INSIGHT_RULES,
) -> list[FinancialInsight]:
    """Evaluate the insight table against one portfolio snapshot.

    Args:
        accounts: All household accounts.
        credit_cards: Output of ``credit_card_analysis``.
        net_worth: Output of ``net_worth``.
        cash_flow: Output of ``cash_flow``.
        monthly_spending: Typical monthly spend.
        payments: Output of ``analyze_payments``; enables the payment rules.
        config: Thresholds and the result limit.
        rules: Insight table to evaluate.

    Returns:
        At most ``config.insight_limit`` insights, highest priority first.
    """
    config = config or EngineConfig()
    ctx = InsightContext(
        accounts=list(accounts),
        credit_cards=credit_cards,
        net_worth=net_worth,
        cash_flow=cash_flow,
        monthly_spending=to_decimal(monthly_spending),
        payments=payments,
        config=config,
    )

    insights: list[FinancialInsight] = []
    for rule in rules:
        produced = rule.build(ctx, rule.priority)
        if produced:
            logger.debug("insight_rule_fired", rule=rule.name, count=len(produced))
        insights.extend(produced)

    ranked = sorted(insights, key=lambda i: -i.priority)[: config.insight_limit]
    logger.info(
        "insights_generated",
        candidates=len(insights),
        returned=len(ranked),
    )
    return ranked


__all__ = [
    "InsightContext",
    "InsightRule",
    "INSIGHT_RULES",
    "generate_insights",
]
