"""
Unit tests for goal drafts and payload construction.
Tests metric rows, weekday toggling, validation, due date conversion,
metric reconciliation and the recurring pattern create/update asymmetry.
"""

import pytest
from datetime import date, datetime, timezone
from itertools import count
from pathlib import Path

import sys
sys.path.insert(0, str(Path(__file__).parent.parent.parent.parent))

from unified_goals.core.draft import (
    GoalDraft,
    MetricRow,
    build_payload,
    reconcile_metrics,
)
from unified_goals.core.errors import ValidationError
from unified_goals.core.models import Goal, Metric


@pytest.fixture
def id_factory():
    """Deterministic metric id source."""
    counter = count(1)
    return lambda: f"new-{next(counter)}"


@pytest.fixture
def editing_goal():
    """An existing goal with a metric and a recurrence."""
    return Goal(
        id="g1",
        text="Read more",
        priority="high",
        due_date=datetime(2026, 3, 5, 4, 0, tzinfo=timezone.utc),
        recurring_pattern="Mon,Wed",
        metrics=[Metric(id="m1", label="Pages", target=100, current=40, unit="pages")],
        created_at=datetime(2026, 3, 1, tzinfo=timezone.utc),
    )


class TestMetricRows:
    """Tests for adding and removing metric rows."""

    def test_add_metric_requires_target_and_unit(self):
        draft = GoalDraft(new_metric=MetricRow(label="Pages", target="10", unit=""))
        assert draft.add_metric() is False
        assert draft.metric_rows == []

    def test_add_metric_defaults_label(self):
        draft = GoalDraft(new_metric=MetricRow(label="  ", target="5", unit="km"))
        assert draft.add_metric() is True
        assert draft.metric_rows == [MetricRow(label="Target", target="5", unit="km")]
        assert draft.new_metric == MetricRow()

    def test_remove_metric(self):
        draft = GoalDraft(metric_rows=[MetricRow("a", "1", "x"), MetricRow("b", "2", "y")])
        draft.remove_metric(0)
        assert [r.label for r in draft.metric_rows] == ["b"]


class TestToggleDay:
    """Tests for weekday selection."""

    def test_toggle_preserves_order(self):
        draft = GoalDraft()
        for day in ["Fri", "Mon", "Wed"]:
            draft.toggle_day(day)
        draft.toggle_day("Mon")
        assert draft.selected_days == ["Fri", "Wed"]

    def test_toggle_unknown_day(self):
        with pytest.raises(ValidationError):
            GoalDraft().toggle_day("Someday")


class TestBuildPayload:
    """Tests for draft validation and payload construction."""

    def test_blank_text_rejected(self):
        for text in ["", "   "]:
            with pytest.raises(ValidationError) as exc_info:
                build_payload(GoalDraft(text=text))
            assert exc_info.value.field == "text"

    def test_text_is_trimmed(self):
        payload = build_payload(GoalDraft(text="  Ship release  "))
        assert payload.text == "Ship release"

    def test_minimal_create_omits_optionals(self):
        """Blank description, no date, no metrics and no days are all omitted."""
        wire = build_payload(GoalDraft(text="Walk", description="  ")).to_wire()
        assert wire == {"text": "Walk", "priority": "medium", "urgent": False}

    def test_due_date_defaults_to_midnight(self):
        payload = build_payload(GoalDraft(text="Pay rent", date=date(2026, 3, 5)))
        assert payload.due_date == "2026-03-05T00:00:00.000Z"

    def test_due_date_uses_local_offset(self):
        """09:30 at UTC+05:30 is 04:00 UTC."""
        draft = GoalDraft(text="Standup", date=date(2026, 3, 5), time="09:30")
        payload = build_payload(draft, tz_offset_minutes=330)
        assert payload.due_date == "2026-03-05T04:00:00.000Z"

    def test_due_date_can_cross_midnight(self):
        """18:00 at UTC-08:00 falls on the next UTC day."""
        draft = GoalDraft(text="Dinner", date=date(2026, 3, 5), time="18:00")
        payload = build_payload(draft, tz_offset_minutes=-480)
        assert payload.due_date == "2026-03-06T02:00:00.000Z"

    def test_malformed_time_rejected(self):
        draft = GoalDraft(text="Call", date=date(2026, 3, 5), time="9am")
        with pytest.raises(ValidationError) as exc_info:
            build_payload(draft)
        assert exc_info.value.field == "time"

    def test_non_numeric_target_rejected(self):
        draft = GoalDraft(text="Run", metric_rows=[MetricRow("Distance", "far", "km")])
        with pytest.raises(ValidationError):
            build_payload(draft)

    def test_invalid_priority_rejected(self):
        with pytest.raises(ValidationError):
            build_payload(GoalDraft(text="x", priority="critical"))

    def test_recurring_pattern_in_toggle_order(self):
        draft = GoalDraft(text="Gym")
        draft.toggle_day("Fri")
        draft.toggle_day("Mon")
        assert build_payload(draft).recurring_pattern == "Fri,Mon"

    def test_no_days_on_create_omits_pattern(self):
        wire = build_payload(GoalDraft(text="Gym")).to_wire()
        assert "recurringPattern" not in wire

    def test_no_days_on_update_clears_pattern(self, editing_goal):
        """Deselecting every day while editing sends an explicit empty pattern."""
        draft = GoalDraft.from_goal(editing_goal)
        draft.selected_days = []
        wire = build_payload(draft).to_wire()
        assert wire["recurringPattern"] == ""

    def test_metrics_reconciled_against_edited_goal(self, editing_goal, id_factory):
        draft = GoalDraft.from_goal(editing_goal)
        draft.metric_rows[0].target = "200"
        draft.metric_rows.append(MetricRow(label="", target="5", unit="km"))

        payload = build_payload(draft, id_factory=id_factory)

        pages, target = payload.metrics
        assert (pages.id, pages.current, pages.target) == ("m1", 40, 200)
        assert (target.id, target.label, target.current) == ("new-1", "Target", 0)


class TestFromGoal:
    """Tests for edit-mode prefill."""

    def test_prefill_local_date_and_time(self, editing_goal):
        draft = GoalDraft.from_goal(editing_goal, tz_offset_minutes=330)
        assert draft.date == date(2026, 3, 5)
        assert draft.time == "09:30"
        assert draft.selected_days == ["Mon", "Wed"]
        assert draft.metric_rows == [MetricRow(label="Pages", target="100", unit="pages")]
        assert draft.is_editing

    def test_unchanged_edit_keeps_due_date(self, editing_goal):
        draft = GoalDraft.from_goal(editing_goal, tz_offset_minutes=330)
        payload = build_payload(draft, tz_offset_minutes=330)
        assert payload.due_date == "2026-03-05T04:00:00.000Z"
        assert payload.recurring_pattern == "Mon,Wed"


class TestReconcileMetrics:
    """Tests for label-keyed metric merging."""

    def test_new_goal_gets_fresh_ids(self, id_factory):
        result = reconcile_metrics([MetricRow("Pages", "10", "pages")], None, id_factory)
        assert result[0].id == "new-1"
        assert result[0].current == 0

    def test_relabelled_metric_loses_progress(self, id_factory):
        """Renaming a metric breaks the label key, so it starts over."""
        previous = [Metric(id="m1", label="Pages", target=100, current=40, unit="pages")]
        result = reconcile_metrics([MetricRow("Chapters", "10", "ch")], previous, id_factory)
        assert result[0].id == "new-1"
        assert result[0].current == 0

    def test_duplicate_labels_keep_their_own_ids(self, id_factory):
        """An unchanged edit keeps both same-label metrics apart."""
        previous = [
            Metric(id="m1", label="Pages", target=100, current=40, unit="pages"),
            Metric(id="m2", label="Pages", target=50, current=10, unit="pages"),
        ]
        rows = [MetricRow("Pages", "100", "pages"), MetricRow("Pages", "50", "pages")]

        result = reconcile_metrics(rows, previous, id_factory)

        assert [m.id for m in result] == ["m1", "m2"]
        assert [m.current for m in result] == [40, 10]

    def test_added_row_with_taken_label_is_new(self, id_factory):
        """A second blank-label row does not reuse the existing default-label metric."""
        editing = Goal(id="g1", text="Run", metrics=[
            Metric(id="m1", label="Target", target=10, current=7, unit="km"),
        ])
        draft = GoalDraft.from_goal(editing)
        draft.new_metric = MetricRow("", "5", "km")
        draft.add_metric()

        payload = build_payload(draft, id_factory=id_factory)

        assert [m.id for m in payload.metrics] == ["m1", "new-1"]
        assert [m.current for m in payload.metrics] == [7, 0]

    def test_metric_ids_are_unique(self, id_factory):
        previous = [Metric(id="m1", label="Pages", target=100, current=40, unit="pages")]
        rows = [MetricRow("Pages", "1", "p"), MetricRow("Pages", "2", "p"), MetricRow("Pages", "3", "p")]

        result = reconcile_metrics(rows, previous, id_factory)

        assert [m.id for m in result] == ["m1", "new-1", "new-2"]

    def test_blank_label_uses_given_default(self, id_factory):
        result = reconcile_metrics([MetricRow("", "3", "km")], None, id_factory,
                                   default_label="Distance")
        assert result[0].label == "Distance"
