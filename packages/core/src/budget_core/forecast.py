"""Expected vs. actual spending comparison."""

from collections.abc import Iterable
from decimal import Decimal
from typing import Optional

import structlog

from .config import EngineConfig
from .models import ForecastStatus, RecurringExpense, SpendingForecast
from .money import HUNDRED, ZERO, MoneyInput, round_amount, to_decimal
from .scheduler import expected_monthly_total

logger = structlog.get_logger()

DEFAULT_THRESHOLD = Decimal("0.10")


def compare(
    expected: MoneyInput,
    actual: MoneyInput,
    threshold: MoneyInput = DEFAULT_THRESHOLD,
) -> SpendingForecast:
    """Classify actual spending against a forecast.

    Args:
        expected: Forecast total for the period.
        actual: What was actually spent.
        threshold: Tolerated variance as a fraction (0.10 = 10%).

    Returns:
        SpendingForecast. ``percent_difference`` is 0 when nothing was
        expected, which makes any spending against a zero forecast on-track.
    """
    expected = to_decimal(expected)
    actual = to_decimal(actual)
    threshold = to_decimal(threshold)

    difference = actual - expected
    if expected > 0:
        percent_difference = difference / expected * HUNDRED
    else:
        percent_difference = ZERO

    if abs(percent_difference) <= threshold * HUNDRED:
        status = ForecastStatus.ON_TRACK
    elif actual > expected:
        status = ForecastStatus.OVER
    else:
        status = ForecastStatus.UNDER

    return SpendingForecast(
        expected_total=expected,
        actual_total=actual,
        difference=difference,
        percent_difference=round_amount(percent_difference),
        status=status,
    )


def format_status(forecast: SpendingForecast) -> str:
    """Short label for a forecast, e.g. ``Over by 50.00``."""
    if forecast.status is ForecastStatus.ON_TRACK:
        return "On track"
    amount = round_amount(abs(forecast.difference))
    if forecast.status is ForecastStatus.UNDER:
        return f"Under by {amount}"
    return f"Over by {amount}"


def forecast_month(
    expenses: Iterable[RecurringExpense],
    actual: MoneyInput,
    year: int,
    month: int,
    threshold: Optional[MoneyInput] = None,
    config: Optional[EngineConfig] = None,
) -> SpendingForecast:
    """Compare a month's actual spending with its recurring-expense forecast.

    Without an explicit ``threshold`` the tolerance is
    ``config.forecast_threshold`` (loaded from the environment when no config
    is given).
    """
    if threshold is None:
        threshold = (config or EngineConfig()).forecast_threshold
    expected = expected_monthly_total(expenses, year, month)
    forecast = compare(expected, actual, threshold)
    logger.info(
        "month_forecast",
        year=year,
        month=month,
        expected=str(forecast.expected_total),
        actual=str(forecast.actual_total),
        status=forecast.status.value,
    )
    return forecast


__all__ = [
    "DEFAULT_THRESHOLD",
    "compare",
    "format_status",
    "forecast_month",
]
