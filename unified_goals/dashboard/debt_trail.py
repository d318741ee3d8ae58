"""
Debt trail: outstanding debt grouped by the day it was incurred.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timedelta, timezone
from typing import Iterable, List, Optional

from ..core.models import Goal
from ..core.timeutil import ensure_utc, local_date

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class DebtTrailItem:
    """One day of the debt trail."""
    date: date
    debt_count: int
    goals: List[Goal] = field(default_factory=list)


def obligation_date(goal: Goal, tz_offset_minutes: int = 0) -> Optional[date]:
    """
    Local day a goal was owed on.

    Occurrences carry it as original_date; one-time goals fall back to the
    local date of their due date.
    """
    if goal.original_date:
        try:
            return date.fromisoformat(goal.original_date)
        except ValueError:
            pass
    if goal.due_date is not None:
        return local_date(goal.due_date, tz_offset_minutes)
    return None


def _outstanding(goals: Iterable[Goal]) -> List[Goal]:
    return [g for g in goals if g.is_debt and not g.completed]


def build_debt_trail(goals: Iterable[Goal], end_date: date, days_back: int = 30,
                     tz_offset_minutes: int = 0) -> List[DebtTrailItem]:
    """
    Group outstanding debt by obligation date.

    Args:
        goals: Goals with is_debt already classified
        end_date: Last local day of the window (inclusive)
        days_back: Window length; the first day is end_date - days_back
        tz_offset_minutes: Offset used for goals without original_date

    Returns:
        One item per day that has debt, ordered by date ascending
    """
    start_date = end_date - timedelta(days=max(0, days_back))

    by_day = {}
    for goal in _outstanding(goals):
        day = obligation_date(goal, tz_offset_minutes)
        if day is None or day < start_date or day > end_date:
            continue
        by_day.setdefault(day, []).append(goal)

    return [
        DebtTrailItem(date=day, debt_count=len(items), goals=items)
        for day, items in sorted(by_day.items())
    ]


def accumulated_debt(goals: Iterable[Goal], as_of: date,
                     tz_offset_minutes: int = 0) -> List[Goal]:
    """Outstanding debt from days strictly before as_of, oldest first."""
    result = []
    for goal in _outstanding(goals):
        day = obligation_date(goal, tz_offset_minutes)
        if day is not None and day < as_of:
            result.append((day, goal))

    result.sort(key=lambda pair: (
        pair[0],
        ensure_utc(pair[1].created_at) if pair[1].created_at else _EPOCH,
    ))
    return [goal for _, goal in result]
