"""Portfolio analysis: credit cards, net worth, cash flow and payments.

The module-level functions are pure and can be used on their own.
``PortfolioAnalyzer`` runs all of them for one household snapshot, feeds the
results to the insight table and keeps an audit trail of every step.

Inactive accounts are left out of every calculation.
"""

from collections.abc import Iterable, Mapping, Sequence
from decimal import Decimal
from typing import Optional

import structlog

from .config import EngineConfig
from .insights import generate_insights
from .models import (
    ASSET_TYPES,
    DEPOSIT_TYPES,
    Account,
    AccountPayments,
    AccountType,
    AuditEntry,
    CardStrategy,
    CashFlowAnalysis,
    CreditCardAnalysis,
    NetWorthBreakdown,
    PaymentAnalysis,
    PortfolioReport,
    RewardCard,
    Transaction,
)
from .money import HUNDRED, ZERO, MoneyInput, percent_of, round_amount, safe_divide, to_decimal

logger = structlog.get_logger()

MONTHS_PER_YEAR = Decimal(12)
SAVINGS_REPORT_FLOOR = Decimal("50")

# Synthetic reward score: 1% cashback is worth 10 points, each point per
# dollar above 1x is worth 5.
CASH_BACK_WEIGHT = Decimal(10)
POINTS_WEIGHT = Decimal(5)

CARD_CATEGORIES = ("groceries", "restaurants", "travel", "fuel", "online", "other")

# category -> (rewards_program keywords, bonus percent)
CATEGORY_BONUSES: dict[str, tuple[tuple[str, ...], Decimal]] = {
    "groceries": (("grocery", "food"), Decimal(2)),
    "travel": (("travel",), Decimal(3)),
    "restaurants": (("dining", "restaurant"), Decimal(2)),
}


def _active(accounts: Iterable[Account]) -> list[Account]:
    return [a for a in accounts if a.is_active]


def _monthly_interest(balance: Decimal, annual_rate: Decimal) -> Decimal:
    return balance * annual_rate / HUNDRED / MONTHS_PER_YEAR


def reward_score(card: Account) -> Decimal:
    """Synthetic value used to pick the best rewards card."""
    score = (card.cash_back_percent or ZERO) * CASH_BACK_WEIGHT
    points = card.points_per_dollar or ZERO
    if points > 1:
        score += points * POINTS_WEIGHT
    return score


def credit_card_analysis(accounts: Iterable[Account]) -> CreditCardAnalysis:
    """Aggregate limits, balances, APR and rewards across credit cards.

    ``weighted_apr`` is the simple mean of cards with a positive rate.
    ``potential_savings`` is the monthly interest on the combined balance at
    that APR, reported only when above $50.
    """
    cards = [a for a in _active(accounts) if a.type is AccountType.CREDIT_CARD]

    total_limit = sum((c.credit_limit or ZERO for c in cards), ZERO)
    total_balance = sum((c.current_balance or ZERO for c in cards), ZERO)

    rates = [c.interest_rate for c in cards if c.interest_rate and c.interest_rate > 0]
    weighted_apr = safe_divide(sum(rates, ZERO), len(rates))

    best: Optional[RewardCard] = None
    for card in cards:
        score = reward_score(card)
        if score > (best.value if best else ZERO):
            best = RewardCard(card=card, value=score)

    monthly_cost = _monthly_interest(total_balance, weighted_apr)
    potential_savings = monthly_cost if monthly_cost > SAVINGS_REPORT_FLOOR else ZERO

    return CreditCardAnalysis(
        total_limit=total_limit,
        total_balance=total_balance,
        utilization_rate=percent_of(total_balance, total_limit),
        weighted_apr=round_amount(weighted_apr),
        potential_savings=round_amount(potential_savings),
        best_rewards_card=best,
    )


def net_worth(accounts: Iterable[Account]) -> NetWorthBreakdown:
    """Split account balances into assets and liabilities.

    Credit cards only count as liabilities while they carry a positive
    balance. Accounts of type ``other`` are ignored.
    """
    assets = ZERO
    liabilities = ZERO
    asset_distribution: dict[str, Decimal] = {}
    liability_distribution: dict[str, Decimal] = {}

    for account in _active(accounts):
        balance = account.balance
        if account.type in ASSET_TYPES:
            assets += balance
            asset_distribution[account.name] = asset_distribution.get(account.name, ZERO) + balance
        elif account.type is AccountType.LOAN or (
            account.type is AccountType.CREDIT_CARD and balance > 0
        ):
            liabilities += balance
            liability_distribution[account.name] = (
                liability_distribution.get(account.name, ZERO) + balance
            )

    return NetWorthBreakdown(
        assets=assets,
        liabilities=liabilities,
        net_worth=assets - liabilities,
        asset_distribution=asset_distribution,
        liability_distribution=liability_distribution,
    )


def cash_flow(accounts: Iterable[Account], monthly_spending: MoneyInput = ZERO) -> CashFlowAnalysis:
    """Monthly interest earned and paid, and account fees.

    ``monthly_spending`` is accepted for symmetry with the insight inputs;
    none of the flows depend on it.
    """
    earned = ZERO
    paid = ZERO
    fees = ZERO

    for account in _active(accounts):
        if account.type in DEPOSIT_TYPES:
            balance = account.current_balance or ZERO
            if account.interest_rate_apy and balance > 0:
                earned += _monthly_interest(balance, account.interest_rate_apy)
        elif account.type is AccountType.CREDIT_CARD:
            balance = account.current_balance or ZERO
            if account.interest_rate and balance > 0:
                paid += _monthly_interest(balance, account.interest_rate)
        elif account.type is AccountType.LOAN:
            balance = account.balance
            if account.interest_rate and balance > 0:
                paid += _monthly_interest(balance, account.interest_rate)

        if account.monthly_fee:
            fees += account.monthly_fee
        if account.type is AccountType.CREDIT_CARD and account.annual_fee:
            fees += account.annual_fee / MONTHS_PER_YEAR

    return CashFlowAnalysis(
        interest_earned=round_amount(earned),
        interest_paid=round_amount(paid),
        fees_total=round_amount(fees),
        net_interest=round_amount(earned - paid),
        opportunity_gap=round_amount(max(ZERO, paid - earned)),
    )


def analyze_payments(
    transactions: Iterable[Transaction],
    accounts: Iterable[Account],
    total_expenses: MoneyInput = ZERO,
    month_count: int = 1,
) -> PaymentAnalysis:
    """Summarize debt payments found among transactions.

    A transaction with ``paying_account_id`` counts as a payment. Payments
    to an unknown account are counted but add no money; payments to
    accounts that are not credit cards or loans are ignored entirely.

    Args:
        transactions: Transactions for the period.
        accounts: Accounts the payments may point at.
        total_expenses: All spending in the period, for the reduction rate.
        month_count: Months covered, for the payment velocity.
    """
    by_id = {a.id: a for a in accounts}
    cc_total = ZERO
    loan_total = ZERO
    count = 0
    by_account: dict[str, AccountPayments] = {}

    for txn in transactions:
        if not txn.paying_account_id:
            continue
        target = by_id.get(txn.paying_account_id)
        if target is None:
            logger.debug("payment_account_unknown", transaction=txn.id, account=txn.paying_account_id)
            count += 1
            continue
        if not target.is_debt:
            continue

        count += 1
        if target.type is AccountType.CREDIT_CARD:
            cc_total += txn.amount
        else:
            loan_total += txn.amount

        current = by_account.get(target.id) or AccountPayments(account_name=target.name)
        by_account[target.id] = AccountPayments(
            account_name=target.name,
            amount=current.amount + txn.amount,
            count=current.count + 1,
        )

    total_debt = cc_total + loan_total
    return PaymentAnalysis(
        total_credit_card_payments=cc_total,
        total_loan_payments=loan_total,
        total_debt_payments=total_debt,
        payment_count=count,
        avg_payment_amount=round_amount(safe_divide(total_debt, count)),
        payments_by_account=by_account,
        debt_reduction_rate=percent_of(total_debt, total_expenses),
        payment_velocity=round_amount(safe_divide(count, month_count)),
    )


def _category_bonus(card: Account, category: str) -> Decimal:
    keywords, bonus = CATEGORY_BONUSES.get(category, ((), ZERO))
    program = (card.rewards_program or "").lower()
    if any(keyword in program for keyword in keywords):
        return bonus
    return ZERO


def suggest_card_strategy(
    cards: Iterable[Account],
    spending_by_category: Mapping[str, object],
) -> list[CardStrategy]:
    """Recommend a card for each spending category with nonzero spend.

    Cards are ranked by ``(cash_back_percent + category bonus) * spend``;
    the bonus comes from keywords in the card's ``rewards_program``.
    Categories no card earns anything on are left out.
    """
    cards = [c for c in _active(cards) if c.type is AccountType.CREDIT_CARD]
    strategies: list[CardStrategy] = []

    for category in CARD_CATEGORIES:
        spend = to_decimal(spending_by_category.get(category))
        if spend <= 0:
            continue

        best_card: Optional[Account] = None
        best_value = ZERO
        for card in cards:
            value = ((card.cash_back_percent or ZERO) + _category_bonus(card, category)) * spend
            if value > best_value:
                best_card, best_value = card, value

        if best_card is not None:
            strategies.append(CardStrategy(
                category=category,
                recommended_card=best_card,
                reason=f"{best_card.name} offers best rewards for {category} spending",
            ))

    return strategies


class PortfolioAnalyzer:
    """
    Run the full portfolio analysis for one household snapshot.

    Every intermediate figure is recorded as an ``AuditEntry`` so a report
    can show how each number was reached.

    Example:
        analyzer = PortfolioAnalyzer()
        report = analyzer.analyze(accounts, monthly_spending=Decimal("2000"))
        for insight in report.insights:
            print(insight.title)
    """

    def __init__(self, config: Optional[EngineConfig] = None):
        """
        Initialize the analyzer.

        Args:
            config: Engine configuration (default: loaded from environment)
        """
        self.config = config or EngineConfig()
        self._audit_log: list[AuditEntry] = []

    @property
    def audit_log(self) -> list[AuditEntry]:
        """Audit trail of the last ``analyze`` call."""
        return list(self._audit_log)

    def _log_step(
        self,
        step: str,
        input_value: str,
        output_value: str,
        source: str,
        notes: Optional[str] = None,
    ) -> None:
        """Add an entry to the audit log."""
        entry = AuditEntry(
            step=step,
            input_value=input_value,
            output_value=output_value,
            source=source,
            notes=notes,
        )
        self._audit_log.append(entry)
        logger.info(
            "analysis_step",
            step=step,
            input=input_value,
            output=output_value,
            source=source,
        )

    def analyze(
        self,
        accounts: Sequence[Account],
        monthly_spending: MoneyInput = ZERO,
        transactions: Optional[Sequence[Transaction]] = None,
        month_count: int = 1,
    ) -> PortfolioReport:
        """
        Analyze a portfolio and generate prioritized insights.

        Args:
            accounts: All household accounts
            monthly_spending: Typical monthly spend
            transactions: Period transactions; enables payment analysis
            month_count: Months the transactions cover

        Returns:
            PortfolioReport with insights and full audit trail
        """
        self._audit_log = []
        monthly_spending = to_decimal(monthly_spending)
        active = _active(accounts)

        # Step 1: Credit cards
        cards = credit_card_analysis(accounts)
        self._log_step(
            step="credit_card_analysis",
            input_value=f"{sum(1 for a in active if a.type is AccountType.CREDIT_CARD)} cards",
            output_value=(
                f"limit={cards.total_limit}, balance={cards.total_balance}, "
                f"utilization={cards.utilization_rate}%"
            ),
            source="Active credit card accounts",
            notes=(
                f"Best rewards: {cards.best_rewards_card.card.name}"
                if cards.best_rewards_card else None
            ),
        )

        # Step 2: Net worth
        worth = net_worth(accounts)
        self._log_step(
            step="net_worth",
            input_value=f"{worth.assets} - {worth.liabilities}",
            output_value=str(worth.net_worth),
            source="Active account balances",
        )

        # Step 3: Cash flow
        flow = cash_flow(accounts, monthly_spending)
        self._log_step(
            step="cash_flow",
            input_value=f"earned={flow.interest_earned}, paid={flow.interest_paid}",
            output_value=f"net={flow.net_interest}, gap={flow.opportunity_gap}",
            source="Monthly APR/APY on current balances",
            notes=f"Fees: {flow.fees_total}/month",
        )

        # Step 4: Payments (optional)
        payments: Optional[PaymentAnalysis] = None
        if transactions is not None:
            total_expenses = sum((t.amount for t in transactions), ZERO)
            payments = analyze_payments(transactions, accounts, total_expenses, month_count)
            self._log_step(
                step="payment_analysis",
                input_value=f"{len(transactions)} transactions over {month_count} months",
                output_value=(
                    f"debt_payments={payments.total_debt_payments}, "
                    f"rate={payments.debt_reduction_rate}%"
                ),
                source="Transactions with a paying account",
            )

        # Step 5: Insights
        insights = generate_insights(
            accounts,
            cards,
            worth,
            flow,
            monthly_spending,
            payments=payments,
            config=self.config,
        )
        self._log_step(
            step="insights",
            input_value=f"monthly_spending={monthly_spending}",
            output_value=f"{len(insights)} insights",
            source="Insight rule table",
            notes=", ".join(i.title for i in insights) or None,
        )

        return PortfolioReport(
            credit_cards=cards,
            net_worth=worth,
            cash_flow=flow,
            payments=payments,
            insights=insights,
            audit_log=self.audit_log,
        )


__all__ = [
    "PortfolioAnalyzer",
    "reward_score",
    "credit_card_analysis",
    "net_worth",
    "cash_flow",
    "analyze_payments",
    "suggest_card_strategy",
]
