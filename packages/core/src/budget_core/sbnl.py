"""Spent But Not Listed (SBNL) reconciliation.

SBNL is the gap between the expenses tracked on a credit card in one month
and the payment made to that card the following month. A positive gap is
spending nobody recorded; a negative gap means tracking exceeded the
payment, which counts as fully accounted for.
"""

from collections.abc import Sequence
from decimal import Decimal
from typing import Optional

import structlog

from .models import SBNLBand, SBNLInsight, SBNLPoint, SBNLResult, SBNLTrend, SBNLTrendDirection, Severity
from .money import HUNDRED, ZERO, MoneyInput, round_amount, round_percent, to_decimal

logger = structlog.get_logger()

TREND_WINDOW = 3
INCREASE_FACTOR = Decimal("1.1")
DECREASE_FACTOR = Decimal("0.9")


def band_for(gap: Decimal, percent: int) -> SBNLBand:
    """Grade a gap by its share of the payment."""
    if gap <= 0:
        return SBNLBand.ACCOUNTED_FOR
    if percent < 5:
        return SBNLBand.GREAT
    if percent < 15:
        return SBNLBand.GOOD
    if percent < 25:
        return SBNLBand.REVIEW
    return SBNLBand.SIGNIFICANT


def format_description(gap: Decimal, percent: int, band: SBNLBand) -> str:
    """Narrative sentence for a reconciliation result."""
    amount = round_amount(abs(gap))
    if band is SBNLBand.ACCOUNTED_FOR:
        return f"All CC spending accounted for (tracked: ${amount} over payment)"
    if band is SBNLBand.GREAT:
        return f"Great tracking! Only ${amount} ({percent}%) untracked"
    if band is SBNLBand.GOOD:
        return f"Good tracking. ${amount} ({percent}%) in untracked spending"
    if band is SBNLBand.REVIEW:
        return f"Note: ${amount} ({percent}%) untracked - might want to review spending"
    return f"Significant untracked spending: ${amount} ({percent}%) of your CC payment"


def reconcile(payment: MoneyInput, tracked: MoneyInput) -> SBNLResult:
    """Compare a card payment with the expenses tracked against it.

    Args:
        payment: Payment made to the card (month N+1).
        tracked: Sum of expenses tracked on the card (month N).

    Returns:
        SBNLResult. ``percent`` is 0 when the payment is not positive.
    """
    payment = to_decimal(payment)
    tracked = to_decimal(tracked)

    gap = payment - tracked
    percent = round_percent(gap / payment * HUNDRED) if payment > 0 else 0
    band = band_for(gap, percent)

    return SBNLResult(
        payment=payment,
        tracked=tracked,
        gap=gap,
        percent=percent,
        band=band,
        description=format_description(gap, percent, band),
    )


def _mean(values: Sequence[Decimal]) -> Decimal:
    return sum(values, ZERO) / len(values)


def trend(series: Sequence[SBNLPoint]) -> SBNLTrend:
    """Summarize untracked spending across months, oldest first.

    The mean of the latest three months is compared against the earliest
    three: more than 10% higher is increasing, more than 10% lower is
    decreasing. One month is stable; no months is insufficient data.
    """
    if not series:
        return SBNLTrend()

    gaps = [point.gap for point in series]
    highest = max(gaps)
    lowest = min(gaps)

    classification = SBNLTrendDirection.STABLE
    if len(gaps) >= 2:
        recent = _mean(gaps[-TREND_WINDOW:])
        older = _mean(gaps[:TREND_WINDOW])
        if recent > older * INCREASE_FACTOR:
            classification = SBNLTrendDirection.INCREASING
        elif recent < older * DECREASE_FACTOR:
            classification = SBNLTrendDirection.DECREASING

    return SBNLTrend(
        average=round_amount(_mean(gaps)),
        classification=classification,
        highest=highest,
        lowest=lowest,
        volatility=highest - lowest,
    )


def sbnl_insights(result: SBNLResult, history: Optional[SBNLTrend] = None) -> list[SBNLInsight]:
    """Severity-tagged notes about tracking quality."""
    insights: list[SBNLInsight] = []

    if result.gap > result.payment * Decimal("0.25"):
        insights.append(SBNLInsight(
            severity=Severity.HIGH,
            message=(
                "You're spending over 25% of your CC payment on untracked items. "
                "This might indicate missing expense categories or cash spending."
            ),
        ))

    if result.percent > 20:
        insights.append(SBNLInsight(
            severity=Severity.MEDIUM,
            message=(
                f"{result.percent}% of CC spending isn't being tracked. "
                "Consider reviewing your expense categories."
            ),
        ))

    if 0 < result.gap < 10:
        insights.append(SBNLInsight(
            severity=Severity.LOW,
            message="Excellent tracking! Very little untracked spending.",
        ))

    if history is not None and history.classification is SBNLTrendDirection.INCREASING:
        insights.append(SBNLInsight(
            severity=Severity.MEDIUM,
            message=(
                "Your untracked spending is trending upward. "
                "Recent months show more discretionary spending."
            ),
        ))

    logger.debug(
        "sbnl_insights_generated",
        gap=str(result.gap),
        band=result.band.value,
        count=len(insights),
    )
    return insights


__all__ = [
    "band_for",
    "format_description",
    "reconcile",
    "trend",
    "sbnl_insights",
]
