"""Credit card utilization, available credit and health trends.

Utilization bands:

- ``<= 30%``  healthy
- ``31-69%``  warning
- ``>= 70%``  danger

A card without a positive limit is reported healthy with the message
"No credit limit set" rather than raising.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Optional

from .models import (
    CCHealthTrend,
    CCUtilization,
    MonthUtilization,
    UtilizationPoint,
    UtilizationStatus,
    UtilizationTrend,
)
from .money import HUNDRED, ZERO, MoneyInput, format_currency, round_percent, to_decimal

HEALTHY_MAX = 30
DANGER_MIN = 70
TREND_TOLERANCE = 5
NO_LIMIT_MESSAGE = "No credit limit set"


def utilization_percent(balance: MoneyInput, limit: MoneyInput) -> int:
    """Whole-number utilization; 0 when there is no positive limit."""
    limit = to_decimal(limit)
    if limit <= 0:
        return 0
    return round_percent(to_decimal(balance) / limit * HUNDRED)


def classify(percent: int) -> UtilizationStatus:
    """Map a utilization percentage onto its health band."""
    if percent <= HEALTHY_MAX:
        return UtilizationStatus.HEALTHY
    if percent < DANGER_MIN:
        return UtilizationStatus.WARNING
    return UtilizationStatus.DANGER


_STATUS_LABELS = {
    UtilizationStatus.HEALTHY: "Excellent utilization",
    UtilizationStatus.WARNING: "Moderate utilization",
    UtilizationStatus.DANGER: "High utilization",
}


def utilization(balance: MoneyInput, limit: MoneyInput) -> CCUtilization:
    """Calculate utilization for a single card.

    Args:
        balance: Amount currently charged on the card.
        limit: Credit limit.

    Returns:
        CCUtilization with percent, available credit and status.
    """
    balance = to_decimal(balance)
    limit = to_decimal(limit)

    if limit <= 0:
        return CCUtilization(
            current_balance=balance,
            credit_limit=ZERO,
            percent=0,
            available_credit=ZERO,
            status=UtilizationStatus.HEALTHY,
            message=NO_LIMIT_MESSAGE,
        )

    percent = utilization_percent(balance, limit)
    status = classify(percent)
    return CCUtilization(
        current_balance=balance,
        credit_limit=limit,
        percent=percent,
        available_credit=max(ZERO, limit - balance),
        status=status,
        message=f"{percent}% utilized - {_STATUS_LABELS[status]}",
    )


def trend(series: Sequence[UtilizationPoint]) -> CCHealthTrend:
    """Classify utilization over a series of months.

    The average of the first third of the series is compared with the
    last third (at least one month each). A drop of more than five points
    is improving, a rise of more than five is worsening.
    """
    if not series:
        return CCHealthTrend()

    months = [
        MonthUtilization(
            month=point.month,
            utilized=point.utilized,
            limit=point.limit,
            percent=utilization_percent(point.utilized, point.limit),
        )
        for point in series
    ]

    third = max(1, len(months) // 3)
    first_avg = Decimal(sum(m.percent for m in months[:third])) / third
    last_avg = Decimal(sum(m.percent for m in months[-third:])) / third

    if last_avg < first_avg - TREND_TOLERANCE:
        classification = UtilizationTrend.IMPROVING
    elif last_avg > first_avg + TREND_TOLERANCE:
        classification = UtilizationTrend.WORSENING
    else:
        classification = UtilizationTrend.STABLE

    average = Decimal(sum(m.percent for m in months)) / len(months)
    return CCHealthTrend(
        months=months,
        classification=classification,
        average_percent=round_percent(average),
    )


def describe(util: CCUtilization) -> str:
    """One-sentence summary of a card's utilization with a recommendation."""
    if not util.credit_limit:
        return NO_LIMIT_MESSAGE

    if util.status is UtilizationStatus.HEALTHY:
        recommendation = "Keep it up! Your utilization is healthy."
    elif util.status is UtilizationStatus.WARNING:
        recommendation = "Consider paying down balance to improve credit utilization."
    else:
        recommendation = "High utilization can impact credit score. Pay down ASAP."

    return (
        f"Using {format_currency(util.current_balance)} of "
        f"{format_currency(util.credit_limit)} limit ({util.percent}%). "
        f"Available: {format_currency(util.available_credit)}. {recommendation}"
    )


def card_insights(util: CCUtilization, health: Optional[CCHealthTrend] = None) -> list[str]:
    """Actionable messages about a card's utilization and its trend."""
    insights: list[str] = []

    if util.status is UtilizationStatus.DANGER:
        insights.append(
            "URGENT: Credit utilization is dangerously high (>70%). This significantly "
            "impacts your credit score. Create a paydown plan immediately."
        )
        if util.available_credit < 100:
            insights.append(
                f"Only {format_currency(util.available_credit)} available credit remaining. "
                "Be careful with new charges."
            )
    elif util.status is UtilizationStatus.WARNING:
        insights.append(
            "Your credit utilization is moderate (30-70%). Consider paying down balance "
            "to improve credit score."
        )
    else:
        insights.append(
            "Your credit utilization is healthy (<30%). Keep maintaining this ratio."
        )

    if health is not None:
        if health.classification is UtilizationTrend.WORSENING:
            insights.append(
                "Trend Alert: Your utilization is increasing. Review spending patterns "
                "and adjust budget."
            )
        elif health.classification is UtilizationTrend.IMPROVING:
            insights.append(
                "Great! Your utilization is trending downward. Keep up the paydown progress."
            )

    if not util.credit_limit:
        insights.append(
            "Tip: Set your credit limit in account settings to track utilization metrics."
        )

    return insights


__all__ = [
    "HEALTHY_MAX",
    "DANGER_MIN",
    "NO_LIMIT_MESSAGE",
    "utilization_percent",
    "classify",
    "utilization",
    "trend",
    "describe",
    "card_insights",
]
