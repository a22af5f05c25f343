"""Recurring expense scheduling and monthly forecasting.

Due dates advance per frequency:

- daily / weekly: +1 / +7 days
- monthly / quarterly / semi-annual: +1 / +3 / +6 months, honoring ``due_day``
- yearly: same month and day next year

When a due day does not exist in the target month (the 31st in April), the
``MonthEndPolicy`` decides: ROLL_FORWARD (default) spills the extra days into
the following month, CLAMP settles on the month's last day.

Months are numbered 1-12 throughout.
"""

import calendar
from collections.abc import Iterable
from datetime import date, timedelta
from decimal import Decimal
from typing import Optional

import structlog

from .config import EngineConfig, MonthEndPolicy
from .models import Frequency, RecurringExpense
from .money import ZERO, round_amount

logger = structlog.get_logger()

DAYS_PER_MONTH = Decimal(365) / Decimal(12)
WEEKS_PER_MONTH = Decimal(52) / Decimal(12)

# Month step used to advance monthly-style frequencies.
MONTH_STEPS: dict[Frequency, int] = {
    Frequency.MONTHLY: 1,
    Frequency.QUARTERLY: 3,
    Frequency.SEMI_ANNUAL: 6,
}

# Converts one occurrence into its average monthly cost.
MONTHLY_FACTORS: dict[Frequency, Decimal] = {
    Frequency.DAILY: DAYS_PER_MONTH,
    Frequency.WEEKLY: WEEKS_PER_MONTH,
    Frequency.MONTHLY: Decimal(1),
    Frequency.QUARTERLY: Decimal(1) / Decimal(3),
    Frequency.SEMI_ANNUAL: Decimal(1) / Decimal(6),
    Frequency.YEARLY: Decimal(1) / Decimal(12),
}


def resolve_day(year: int, month: int, day: int, policy: MonthEndPolicy) -> date:
    """Build a date, handling month overflow and days past the month's end.

    ``month`` may exceed 12; whole years carry over.
    """
    year += (month - 1) // 12
    month = (month - 1) % 12 + 1
    last_day = calendar.monthrange(year, month)[1]
    if day <= last_day:
        return date(year, month, day)
    if policy is MonthEndPolicy.CLAMP:
        return date(year, month, last_day)
    return date(year, month, 1) + timedelta(days=day - 1)


def next_due_date(
    frequency: Frequency,
    due_day: Optional[int] = None,
    from_date: Optional[date] = None,
    policy: MonthEndPolicy = MonthEndPolicy.ROLL_FORWARD,
) -> date:
    """Calculate the next due date after ``from_date``.

    A pure function of its arguments; ``from_date`` defaults to today.

    Args:
        frequency: Recurrence of the expense.
        due_day: Day of month for monthly-style frequencies.
        from_date: Date to advance from.
        policy: Handling of due days past the end of a month.

    Returns:
        The next due date.
    """
    start = from_date or date.today()
    frequency = Frequency(frequency)

    if frequency is Frequency.DAILY:
        return start + timedelta(days=1)
    if frequency is Frequency.WEEKLY:
        return start + timedelta(days=7)
    if frequency is Frequency.YEARLY:
        return resolve_day(start.year + 1, start.month, start.day, policy)

    step = MONTH_STEPS[frequency]
    if not due_day:
        return resolve_day(start.year, start.month + step, start.day, policy)

    candidate = resolve_day(start.year, start.month, due_day, policy)
    if candidate > start:
        return candidate
    # Step from the candidate, then re-apply the due day in the month landed on.
    stepped = resolve_day(candidate.year, candidate.month + step, candidate.day, policy)
    return resolve_day(stepped.year, stepped.month, due_day, policy)


def _monthly_share(expense: RecurringExpense) -> Decimal:
    """Unrounded monthly-equivalent cost."""
    if not expense.is_active:
        return ZERO
    return expense.amount * MONTHLY_FACTORS[expense.frequency]


def monthly_equivalent(expense: RecurringExpense) -> Decimal:
    """Average monthly cost of a recurring expense, rounded to cents.

    Inactive expenses cost nothing.
    """
    return round_amount(_monthly_share(expense))


def _due_in(expense: RecurringExpense, year: int, month: int) -> bool:
    due = expense.next_due_date
    return due.year == year and due.month == month


def expected_monthly_total(
    expenses: Iterable[RecurringExpense], year: int, month: int
) -> Decimal:
    """Total recurring spend expected in (year, month).

    Yearly expenses count in full, but only in the month they fall due.
    Every other frequency contributes its monthly equivalent.
    """
    total = ZERO
    for expense in expenses:
        if not expense.is_active:
            continue
        if expense.frequency is Frequency.YEARLY:
            if _due_in(expense, year, month):
                total += expense.amount
        else:
            total += _monthly_share(expense)
    return round_amount(total)


def due_in_month(
    expenses: Iterable[RecurringExpense], year: int, month: int
) -> list[RecurringExpense]:
    """Active expenses whose next due date falls in (year, month)."""
    return [e for e in expenses if e.is_active and _due_in(e, year, month)]


def upcoming(
    expenses: Iterable[RecurringExpense], start: date, days: int = 30
) -> list[RecurringExpense]:
    """Active expenses due within ``days`` of ``start`` (inclusive), soonest first."""
    end = start + timedelta(days=days)
    window = [e for e in expenses if e.is_active and start <= e.next_due_date <= end]
    return sorted(window, key=lambda e: e.next_due_date)


class Scheduler:
    """Scheduling bound to one month-end policy.

    Args:
        policy: Month-end policy to apply. Defaults to
            ``config.month_end_policy``.
        config: Engine configuration, loaded from the environment when
            omitted.

    Example:
        scheduler = Scheduler(MonthEndPolicy.CLAMP)
        scheduler.next_due_date(Frequency.MONTHLY, 31, date(2025, 1, 31))
        # date(2025, 2, 28)
    """

    def __init__(
        self,
        policy: Optional[MonthEndPolicy] = None,
        config: Optional[EngineConfig] = None,
    ):
        if policy is None:
            policy = (config or EngineConfig()).month_end_policy
        self.policy = policy

    def next_due_date(
        self,
        frequency: Frequency,
        due_day: Optional[int] = None,
        from_date: Optional[date] = None,
    ) -> date:
        """See ``next_due_date``."""
        return next_due_date(frequency, due_day, from_date, self.policy)

    def advance(self, expense: RecurringExpense) -> date:
        """Due date following the expense's current ``next_due_date``."""
        following = self.next_due_date(
            expense.frequency, expense.due_day, expense.next_due_date
        )
        logger.debug(
            "expense_advanced",
            expense=expense.id,
            frequency=expense.frequency.value,
            previous=expense.next_due_date.isoformat(),
            following=following.isoformat(),
        )
        return following

    def occurrences(self, expense: RecurringExpense, until: date) -> list[date]:
        """All due dates from ``next_due_date`` through ``until``."""
        dates: list[date] = []
        current = expense.next_due_date
        while current <= until:
            dates.append(current)
            current = self.next_due_date(expense.frequency, expense.due_day, current)
        return dates

    monthly_equivalent = staticmethod(monthly_equivalent)
    expected_monthly_total = staticmethod(expected_monthly_total)
    due_in_month = staticmethod(due_in_month)
    upcoming = staticmethod(upcoming)


__all__ = [
    "DAYS_PER_MONTH",
    "WEEKS_PER_MONTH",
    "Scheduler",
    "resolve_day",
    "next_due_date",
    "monthly_equivalent",
    "expected_monthly_total",
    "due_in_month",
    "upcoming",
]
