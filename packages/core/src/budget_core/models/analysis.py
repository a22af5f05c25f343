"""Result records produced by the engine.

Everything the presentation layer renders comes out of the engine as one
of these models: utilization and trend summaries, forecasts, SBNL
reconciliations, portfolio breakdowns and prioritized insights.
Percentages are on a 0-100 scale.
"""

from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, computed_field

from budget_core.models.financial import Account, SplitType
from budget_core.money import ZERO


def _utc_now() -> datetime:
    """Return current UTC datetime with timezone info."""
    return datetime.now(timezone.utc)


# =============================================================================
# SPLITS
# =============================================================================

class ResolvedSplit(BaseModel):
    """A split with its money amount worked out."""
    type: SplitType
    target: str
    amount: Decimal
    percent: Optional[Decimal] = None


class Allocation(BaseModel):
    """Outcome of routing one record through the rule set."""
    rule_name: Optional[str] = Field(
        default=None,
        description="Rule that supplied the splits; None when the record kept its own",
    )
    total: Decimal
    splits: list[ResolvedSplit] = Field(default_factory=list)

    @computed_field
    @property
    def allocated(self) -> Decimal:
        """Sum of resolved split amounts."""
        return sum((s.amount for s in self.splits), ZERO)

    @computed_field
    @property
    def unallocated(self) -> Decimal:
        """What is left over; negative when splits exceed the total."""
        return self.total - self.allocated


# =============================================================================
# FORECAST
# =============================================================================

class ForecastStatus(str, Enum):
    """Actual spending relative to the forecast."""
    ON_TRACK = "on-track"
    UNDER = "under"
    OVER = "over"


class SpendingForecast(BaseModel):
    """Expected vs. actual spending for one period."""
    expected_total: Decimal
    actual_total: Decimal
    difference: Decimal
    percent_difference: Decimal
    status: ForecastStatus


# =============================================================================
# CREDIT CARD UTILIZATION
# =============================================================================

class UtilizationStatus(str, Enum):
    """Health band of a utilization percentage."""
    HEALTHY = "healthy"
    WARNING = "warning"
    DANGER = "danger"


class CCUtilization(BaseModel):
    """Utilization of a single card."""
    current_balance: Decimal
    credit_limit: Decimal
    percent: int
    available_credit: Decimal
    status: UtilizationStatus
    message: str


class UtilizationPoint(BaseModel):
    """One month of card usage, as supplied by the caller."""
    month: str = Field(description="Label such as '2025-01'")
    utilized: Decimal
    limit: Decimal


class MonthUtilization(UtilizationPoint):
    """A month of card usage with its utilization percentage."""
    percent: int


class UtilizationTrend(str, Enum):
    """Direction of utilization over time."""
    IMPROVING = "improving"
    STABLE = "stable"
    WORSENING = "worsening"


class CCHealthTrend(BaseModel):
    """Utilization across a series of months."""
    months: list[MonthUtilization] = Field(default_factory=list)
    classification: UtilizationTrend = UtilizationTrend.STABLE
    average_percent: int = 0


# =============================================================================
# SPENT BUT NOT LISTED
# =============================================================================

class SBNLBand(str, Enum):
    """Qualitative grade of a tracking gap."""
    ACCOUNTED_FOR = "accounted_for"
    GREAT = "great"
    GOOD = "good"
    REVIEW = "review"
    SIGNIFICANT = "significant"


class SBNLResult(BaseModel):
    """Gap between a card payment and the expenses tracked against it."""
    payment: Decimal
    tracked: Decimal
    gap: Decimal
    percent: int
    band: SBNLBand
    description: str


class SBNLPoint(BaseModel):
    """One month of SBNL history."""
    year: int
    month: int = Field(ge=1, le=12)
    gap: Decimal
    payment: Decimal = ZERO


class SBNLTrendDirection(str, Enum):
    """Direction of untracked spending over time."""
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"
    INSUFFICIENT_DATA = "insufficient_data"


class SBNLTrend(BaseModel):
    """Untracked spending across a series of months."""
    average: Decimal = ZERO
    classification: SBNLTrendDirection = SBNLTrendDirection.INSUFFICIENT_DATA
    highest: Decimal = ZERO
    lowest: Decimal = ZERO
    volatility: Decimal = ZERO


class Severity(str, Enum):
    """How urgently a message should be shown."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class SBNLInsight(BaseModel):
    """A narrative note about tracking quality."""
    severity: Severity
    message: str


# =============================================================================
# PORTFOLIO
# =============================================================================

class RewardCard(BaseModel):
    """The card with the best synthetic reward score."""
    card: Account
    value: Decimal


class CreditCardAnalysis(BaseModel):
    """Aggregate view of all credit cards."""
    total_limit: Decimal = ZERO
    total_balance: Decimal = ZERO
    utilization_rate: Decimal = ZERO
    weighted_apr: Decimal = ZERO
    potential_savings: Decimal = Field(
        default=ZERO,
        description="Monthly interest cost on the aggregate balance when above $50",
    )
    best_rewards_card: Optional[RewardCard] = None


class NetWorthBreakdown(BaseModel):
    """Assets, liabilities and their per-account distribution."""
    assets: Decimal = ZERO
    liabilities: Decimal = ZERO
    net_worth: Decimal = ZERO
    asset_distribution: dict[str, Decimal] = Field(default_factory=dict)
    liability_distribution: dict[str, Decimal] = Field(default_factory=dict)

    @computed_field
    @property
    def per_account_breakdown(self) -> dict[str, Decimal]:
        """Signed contribution of each account; liabilities are negative."""
        breakdown = dict(self.asset_distribution)
        for name, amount in self.liability_distribution.items():
            breakdown[name] = breakdown.get(name, ZERO) - amount
        return breakdown


class CashFlowAnalysis(BaseModel):
    """Monthly interest and fee flows."""
    interest_earned: Decimal = ZERO
    interest_paid: Decimal = ZERO
    fees_total: Decimal = ZERO
    net_interest: Decimal = ZERO
    opportunity_gap: Decimal = ZERO


class AccountPayments(BaseModel):
    """Payments made toward one debt account."""
    account_name: str
    amount: Decimal = ZERO
    count: int = 0


class PaymentAnalysis(BaseModel):
    """Debt payments found in a period's transactions."""
    total_credit_card_payments: Decimal = ZERO
    total_loan_payments: Decimal = ZERO
    total_debt_payments: Decimal = ZERO
    payment_count: int = 0
    avg_payment_amount: Decimal = ZERO
    payments_by_account: dict[str, AccountPayments] = Field(default_factory=dict)
    debt_reduction_rate: Decimal = Field(
        default=ZERO,
        description="Debt payments as a percent of total expenses",
    )
    payment_velocity: Decimal = Field(
        default=ZERO,
        description="Payments per month",
    )


class InsightType(str, Enum):
    """Kind of insight."""
    OPPORTUNITY = "opportunity"
    WARNING = "warning"
    INFO = "info"


class Impact(str, Enum):
    """Size of the effect an insight describes."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class FinancialInsight(BaseModel):
    """An actionable observation about the portfolio."""
    type: InsightType
    title: str
    description: str
    impact: Impact
    metric: Optional[str] = None
    action: Optional[str] = None
    priority: int = Field(ge=1, le=10, description="Higher is more important")


class CardStrategy(BaseModel):
    """Which card to use for a spending category."""
    category: str
    recommended_card: Account
    reason: str


class AuditEntry(BaseModel):
    """Audit log entry for analysis transparency."""
    timestamp: datetime = Field(default_factory=_utc_now)
    step: str
    input_value: str
    output_value: str
    source: str
    notes: Optional[str] = None


class PortfolioReport(BaseModel):
    """Everything the orchestrator computes for one household snapshot."""
    credit_cards: CreditCardAnalysis
    net_worth: NetWorthBreakdown
    cash_flow: CashFlowAnalysis
    payments: Optional[PaymentAnalysis] = None
    insights: list[FinancialInsight] = Field(default_factory=list)
    audit_log: list[AuditEntry] = Field(default_factory=list)
