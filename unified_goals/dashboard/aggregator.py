"""
Goal statistics for the Unified Goals dashboard.

Counts are always taken over the whole (unfiltered) goal collection so the
header numbers do not move when the user changes filters.
"""

from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

from ..core.models import PRIORITIES, Goal


@dataclass
class GoalStats:
    """Statistics for the goal header."""
    total: int = 0
    completed: int = 0
    pending: int = 0
    urgent: int = 0
    debt: int = 0
    by_priority: Dict[str, int] = field(default_factory=lambda: {p: 0 for p in PRIORITIES})
    completion_rate: float = 0.0
    with_metrics: int = 0
    average_metric_progress: Optional[float] = None

    def to_dict(self) -> Dict:
        return {
            "total": self.total,
            "completed": self.completed,
            "pending": self.pending,
            "urgent": self.urgent,
            "debt": self.debt,
            "by_priority": dict(self.by_priority),
            "completion_rate": self.completion_rate,
            "with_metrics": self.with_metrics,
            "average_metric_progress": self.average_metric_progress,
        }


def compute_stats(goals: Iterable[Goal]) -> GoalStats:
    """
    Compute header statistics.

    Args:
        goals: Full goal collection

    Returns:
        GoalStats where completed + pending == total, urgent counts only
        goals that are not completed, and debt counts goals flagged is_debt
    """
    stats = GoalStats()
    progress_values = []

    for goal in goals:
        stats.total += 1
        if goal.completed:
            stats.completed += 1
        else:
            stats.pending += 1
            if goal.urgent:
                stats.urgent += 1
        if goal.is_debt:
            stats.debt += 1

        stats.by_priority[goal.priority] = stats.by_priority.get(goal.priority, 0) + 1

        progress = goal.metric_progress()
        if progress is not None:
            stats.with_metrics += 1
            progress_values.append(progress)

    if stats.total:
        stats.completion_rate = round(stats.completed / stats.total, 4)
    if progress_values:
        stats.average_metric_progress = round(sum(progress_values) / len(progress_values), 2)

    return stats
