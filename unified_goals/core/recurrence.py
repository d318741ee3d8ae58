"""
Recurrence and debt classification for unified goals.

A goal is either a one-time obligation (no recurring_pattern) or a
recurring template whose pattern lists the weekdays the commitment recurs
on. Templates spawn dated occurrences (recurring_template_id set), and an
obligation becomes debt once it is overdue and still not completed.

Debt here is a pure function of due_date, completed and the recurrence
fields; a stored is_debt flag from the boundary is recomputed, not trusted.
"""

import logging
from dataclasses import replace
from datetime import date, datetime, time, timedelta
from typing import Callable, Iterable, List, Optional, Set, Tuple

from .draft import new_id
from .models import WEEKDAYS, Goal
from .timeutil import ensure_utc, local_date, local_to_utc, utc_now

logger = logging.getLogger(__name__)

# An occurrence is due by the end of its local day
OCCURRENCE_DUE_TIME = time(23, 59)

# Clamp for date-range walks
MAX_RANGE_DAYS = 366


def is_recurring_template(goal: Goal) -> bool:
    return goal.is_recurring_template()


def is_occurrence(goal: Goal) -> bool:
    return goal.recurring_template_id is not None


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def occurrence_dates(goal: Goal, start: date, end: date) -> List[date]:
    """
    Local calendar dates in [start, end] on which the template recurs.

    Args:
        goal: Recurring template
        start: First local date to consider
        end: Last local date to consider (inclusive)

    Returns:
        Matching dates in ascending order (empty for one-time goals)
    """
    if not goal.recurring_pattern:
        return []
    days = set(goal.weekdays())

    result = []
    current = start
    walked = 0
    while current <= end and walked < MAX_RANGE_DAYS:
        if weekday_name(current) in days:
            result.append(current)
        current += timedelta(days=1)
        walked += 1
    return result


def occurrence_due(day: date, tz_offset_minutes: int = 0) -> datetime:
    """UTC deadline of an occurrence on the given local date."""
    return local_to_utc(day, OCCURRENCE_DUE_TIME, tz_offset_minutes)


def _existing_keys(goals: Iterable[Goal]) -> Set[Tuple[str, str]]:
    return {
        (g.recurring_template_id, g.original_date)
        for g in goals
        if g.recurring_template_id and g.original_date
    }


def expand_occurrences(template: Goal, start: date, end: date,
                       existing: Iterable[Goal] = (),
                       tz_offset_minutes: int = 0,
                       id_factory: Optional[Callable[[], str]] = None,
                       now: Optional[datetime] = None) -> List[Goal]:
    """
    Build occurrence records for a template over a local date range.

    Dates that already have an occurrence of this template in ``existing``
    are skipped, so repeated expansion over overlapping ranges never
    duplicates an occurrence.

    Returns:
        New occurrence goals (not persisted)
    """
    if not template.is_recurring_template() or template.completed:
        return []

    if id_factory is None:
        id_factory = new_id
    now = ensure_utc(now) if now else utc_now()

    seen = _existing_keys(existing)
    occurrences = []
    for day in occurrence_dates(template, start, end):
        key = (template.id, day.isoformat())
        if key in seen:
            continue
        seen.add(key)
        occurrences.append(replace(
            template,
            id=id_factory(),
            due_date=occurrence_due(day, tz_offset_minutes),
            completed=False,
            completed_at=None,
            verified=False,
            is_debt=False,
            recurring_pattern=None,
            recurring_template_id=template.id,
            original_date=day.isoformat(),
            metrics=[replace(m, current=0.0) for m in template.metrics],
            labels=list(template.labels),
            created_at=now,
            updated_at=now,
        ))

    if occurrences:
        logger.info(f"Generated {len(occurrences)} occurrence(s) of '{template.text}'")
    return occurrences


def is_overdue(goal: Goal, now: Optional[datetime] = None) -> bool:
    """Due date present and strictly before the current UTC instant."""
    if goal.due_date is None:
        return False
    now = ensure_utc(now) if now else utc_now()
    return ensure_utc(goal.due_date) < now


def classify_debt(goal: Goal, now: Optional[datetime] = None) -> bool:
    """
    Decide whether a goal is debt.

    Recurring templates are never debt themselves; their occurrences and
    one-time goals are debt when overdue and not completed.
    """
    if goal.is_recurring_template():
        return False
    if goal.completed:
        return False
    return is_overdue(goal, now)


def mark_debt(goals: Iterable[Goal], now: Optional[datetime] = None) -> List[Goal]:
    """Return copies of goals with is_debt recomputed against now."""
    now = ensure_utc(now) if now else utc_now()
    result = []
    for goal in goals:
        is_debt = classify_debt(goal, now)
        result.append(goal if goal.is_debt == is_debt else replace(goal, is_debt=is_debt))
    return result


def missed_occurrences(template: Goal, goals: Iterable[Goal],
                       now: Optional[datetime] = None, window_days: int = 30,
                       tz_offset_minutes: int = 0) -> List[date]:
    """
    Dates in the look-back window on which a template's commitment lapsed.

    A date counts as missed when the template recurs on it, the date falls
    on or after the template's creation day, its deadline has passed, and
    no completed occurrence of the template exists for it.

    Args:
        template: Recurring template
        goals: Collection to search for occurrences
        now: Current instant (defaults to now)
        window_days: How many days to look back (caller-supplied)
        tz_offset_minutes: Local offset used to derive calendar dates

    Returns:
        Missed local dates in ascending order
    """
    if not template.is_recurring_template():
        return []
    now = ensure_utc(now) if now else utc_now()

    today = local_date(now, tz_offset_minutes)
    start = today - timedelta(days=max(0, window_days))
    if template.created_at:
        start = max(start, local_date(template.created_at, tz_offset_minutes))

    completed_days = {
        g.original_date
        for g in goals
        if g.recurring_template_id == template.id and g.completed and g.original_date
    }

    missed = []
    for day in occurrence_dates(template, start, today):
        if occurrence_due(day, tz_offset_minutes) >= now:
            continue
        if day.isoformat() in completed_days:
            continue
        missed.append(day)
    return missed
