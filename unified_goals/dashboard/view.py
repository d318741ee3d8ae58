"""
Filter, sort and partition goals for display.

Every function here is pure: it takes the loaded collection and returns new
lists, leaving the input untouched. Sorting relies on Python's stable sort,
so goals that compare equal keep their input order.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable, List, Tuple

from ..core.errors import ValidationError
from ..core.models import PRIORITY_RANK, Goal
from ..core.timeutil import ensure_utc
from .aggregator import GoalStats, compute_stats

FILTERS = ("all", "active", "completed", "urgent", "debt")
SORTS = ("priority", "due", "newest")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


@dataclass
class GoalView:
    """What the goal list renders."""
    goals: List[Goal] = field(default_factory=list)
    debt_goals: List[Goal] = field(default_factory=list)
    regular_goals: List[Goal] = field(default_factory=list)
    stats: GoalStats = field(default_factory=GoalStats)


def apply_search(goals: Iterable[Goal], search: str = "") -> List[Goal]:
    """Case-insensitive substring match on goal text."""
    if not search:
        return list(goals)
    needle = search.lower()
    return [g for g in goals if needle in (g.text or "").lower()]


def matches_filter(goal: Goal, filter: str) -> bool:
    if filter == "all":
        return True
    if filter == "active":
        return not goal.completed and not goal.is_debt
    if filter == "completed":
        return goal.completed
    if filter == "urgent":
        return goal.urgent
    if filter == "debt":
        return goal.is_debt and not goal.completed
    raise ValidationError(f"Unknown filter: {filter}", field="filter")


def apply_filter(goals: Iterable[Goal], filter: str = "all") -> List[Goal]:
    if filter not in FILTERS:
        raise ValidationError(f"Unknown filter: {filter}", field="filter")
    return [g for g in goals if matches_filter(g, filter)]


def _due_key(goal: Goal) -> Tuple[int, datetime]:
    # Goals without a due date sort after all dated ones
    if goal.due_date is None:
        return (1, _EPOCH)
    return (0, ensure_utc(goal.due_date))


def sort_goals(goals: Iterable[Goal], sort_by: str = "newest") -> List[Goal]:
    """
    Sort goals for display.

    Args:
        goals: Goals to sort
        sort_by: 'priority' (high first), 'due' (soonest first, undated
            last) or 'newest' (most recently created first)

    Returns:
        New sorted list
    """
    goals = list(goals)
    if sort_by == "priority":
        return sorted(goals, key=lambda g: PRIORITY_RANK.get(g.priority, 0), reverse=True)
    if sort_by == "due":
        return sorted(goals, key=_due_key)
    if sort_by == "newest":
        return sorted(
            goals,
            key=lambda g: ensure_utc(g.created_at) if g.created_at else _EPOCH,
            reverse=True,
        )
    raise ValidationError(f"Unknown sort: {sort_by}", field="sort_by")


def partition_debt(goals: Iterable[Goal]) -> Tuple[List[Goal], List[Goal]]:
    """Split goals into (debt, regular), preserving order within each."""
    debt, regular = [], []
    for goal in goals:
        if goal.is_debt and not goal.completed:
            debt.append(goal)
        else:
            regular.append(goal)
    return debt, regular


def view_goals(goals: Iterable[Goal], search: str = "", filter: str = "all",
               sort_by: str = "newest") -> GoalView:
    """
    Build the rendered view of a goal collection.

    Search is applied first, then the filter, then the sort. Stats are
    computed over the full collection regardless of search and filter.
    """
    goals = list(goals)
    visible = sort_goals(apply_filter(apply_search(goals, search), filter), sort_by)
    debt, regular = partition_debt(visible)
    return GoalView(
        goals=visible,
        debt_goals=debt,
        regular_goals=regular,
        stats=compute_stats(goals),
    )
