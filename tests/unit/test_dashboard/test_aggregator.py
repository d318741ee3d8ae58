"""
Unit tests for the aggregator module.
Tests header statistics over a goal collection.
"""

from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from unified_goals.core.models import Goal, Metric
from unified_goals.dashboard.aggregator import GoalStats, compute_stats


class TestComputeStats:
    """Tests for compute_stats."""

    def test_empty_collection(self):
        stats = compute_stats([])
        assert stats == GoalStats()
        assert stats.completion_rate == 0.0
        assert stats.average_metric_progress is None

    def test_counts(self):
        goals = [
            Goal(id="a", priority="high", urgent=True),
            Goal(id="b", urgent=True, completed=True),
            Goal(id="c", is_debt=True),
            Goal(id="d", priority="low", completed=True, is_debt=True),
        ]

        stats = compute_stats(goals)

        assert stats.total == 4
        assert stats.completed == 2
        assert stats.pending == 2
        assert stats.completed + stats.pending == stats.total
        assert stats.urgent == 1  # completed urgent goals are not counted
        assert stats.debt == 2
        assert stats.by_priority == {"low": 1, "medium": 2, "high": 1}

    def test_completion_rate_rounded(self):
        goals = [Goal(id="a", completed=True), Goal(id="b"), Goal(id="c")]
        assert compute_stats(goals).completion_rate == 0.3333

    def test_metric_progress(self):
        goals = [
            Goal(id="a", metrics=[Metric(id="m1", target=10, current=5, unit="km")]),
            Goal(id="b", metrics=[Metric(id="m2", target=4, current=4, unit="books")]),
            Goal(id="c"),
        ]

        stats = compute_stats(goals)

        assert stats.with_metrics == 2
        assert stats.average_metric_progress == 75.0

    def test_to_dict(self):
        data = compute_stats([Goal(id="a", completed=True)]).to_dict()
        assert data["completion_rate"] == 1.0
        assert data["by_priority"]["medium"] == 1
