"""
Unit tests for the goal view: search, filter, sort and debt partition.
"""

import pytest
from datetime import datetime, timedelta, timezone
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from unified_goals.core.errors import ValidationError
from unified_goals.core.models import Goal
from unified_goals.dashboard.view import (
    apply_filter,
    apply_search,
    partition_debt,
    sort_goals,
    view_goals,
)

BASE = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def make_goal(goal_id, created_offset=0, **kwargs):
    return Goal(id=goal_id, text=kwargs.pop("text", goal_id),
                created_at=BASE + timedelta(hours=created_offset), **kwargs)


@pytest.fixture
def goals():
    return [
        make_goal("a", 0, text="Write report", priority="low"),
        make_goal("b", 1, text="Pay rent", priority="high", urgent=True,
                  due_date=BASE + timedelta(days=2)),
        make_goal("c", 2, text="Old report", is_debt=True, due_date=BASE - timedelta(days=1)),
        make_goal("d", 3, text="Walk", completed=True, urgent=True),
        make_goal("e", 4, text="Paid debt", completed=True, is_debt=True),
    ]


def ids(goals):
    return [g.id for g in goals]


class TestSearch:

    def test_case_insensitive_substring(self, goals):
        assert ids(apply_search(goals, "REPORT")) == ["a", "c"]

    def test_empty_search_keeps_everything(self, goals):
        assert ids(apply_search(goals, "")) == ["a", "b", "c", "d", "e"]


class TestFilter:
    """Tests for each filter."""

    @pytest.mark.parametrize("name,expected", [
        ("all", ["a", "b", "c", "d", "e"]),
        ("active", ["a", "b"]),
        ("completed", ["d", "e"]),
        ("urgent", ["b", "d"]),
        ("debt", ["c"]),
    ])
    def test_filters(self, goals, name, expected):
        assert ids(apply_filter(goals, name)) == expected

    def test_unknown_filter(self, goals):
        with pytest.raises(ValidationError) as exc_info:
            apply_filter(goals, "someday")
        assert exc_info.value.field == "filter"


class TestSort:
    """Tests for ordering and stability."""

    def test_priority_sort_is_stable(self, goals):
        """Equal priorities keep their input order."""
        assert ids(sort_goals(goals, "priority")) == ["b", "c", "d", "e", "a"]

    def test_due_sort_puts_undated_last(self, goals):
        assert ids(sort_goals(goals, "due")) == ["c", "b", "a", "d", "e"]

    def test_newest_first(self, goals):
        assert ids(sort_goals(goals, "newest")) == ["e", "d", "c", "b", "a"]

    def test_newest_ties_keep_input_order(self):
        same = [make_goal("x", 0), make_goal("y", 0), make_goal("z", 0)]
        assert ids(sort_goals(same, "newest")) == ["x", "y", "z"]

    def test_unknown_sort(self, goals):
        with pytest.raises(ValidationError):
            sort_goals(goals, "alphabetical")

    def test_input_not_modified(self, goals):
        before = ids(goals)
        sort_goals(goals, "priority")
        assert ids(goals) == before


class TestViewGoals:
    """Tests for the combined view."""

    def test_partition_covers_visible_goals(self, goals):
        view = view_goals(goals, sort_by="due")
        assert ids(view.debt_goals) == ["c"]
        assert sorted(ids(view.debt_goals + view.regular_goals)) == sorted(ids(view.goals))

    def test_completed_debt_is_regular(self, goals):
        debt, regular = partition_debt(goals)
        assert "e" in ids(regular)

    def test_stats_ignore_filter_and_search(self, goals):
        view = view_goals(goals, search="rent", filter="urgent")
        assert ids(view.goals) == ["b"]
        assert view.stats.total == 5

    def test_search_then_filter_then_sort(self, goals):
        view = view_goals(goals, search="re", filter="all", sort_by="priority")
        # "Write report", "Pay rent", "Old report"
        assert ids(view.goals) == ["b", "c", "a"]

    def test_deterministic(self, goals):
        first = view_goals(goals, sort_by="due")
        second = view_goals(goals, sort_by="due")
        assert ids(first.goals) == ids(second.goals)

    def test_empty_collection(self):
        view = view_goals([])
        assert view.goals == []
        assert view.stats.total == 0
        assert view.stats.completion_rate == 0.0


class TestViewProperties:
    """Properties that hold for every filter and sort combination."""

    @pytest.mark.parametrize("name", ["all", "active", "completed", "urgent", "debt"])
    def test_filter_is_idempotent(self, goals, name):
        once = apply_filter(goals, name)
        assert ids(apply_filter(once, name)) == ids(once)

    @pytest.mark.parametrize("sort_by", ["priority", "due", "newest"])
    def test_resorting_keeps_order(self, goals, sort_by):
        once = sort_goals(goals, sort_by)
        assert ids(sort_goals(once, sort_by)) == ids(once)

    @pytest.mark.parametrize("name", ["all", "active", "completed", "urgent", "debt"])
    @pytest.mark.parametrize("sort_by", ["priority", "due", "newest"])
    def test_partition_is_disjoint_and_complete(self, goals, name, sort_by):
        view = view_goals(goals, filter=name, sort_by=sort_by)
        debt_ids, regular_ids = set(ids(view.debt_goals)), set(ids(view.regular_goals))
        assert debt_ids | regular_ids == set(ids(view.goals))
        assert debt_ids & regular_ids == set()

    @pytest.mark.parametrize("sort_by", ["priority", "due", "newest"])
    def test_urgent_filter_scenario(self, sort_by):
        milk = make_goal("milk", 0, text="Buy milk", priority="low")
        report = make_goal("report", 1, text="Submit report urgent", priority="high", urgent=True)
        view = view_goals([milk, report], filter="urgent", sort_by=sort_by)
        assert ids(view.goals) == ["report"]
