"""
Goal drafts and the validating conversion into boundary payloads.

A GoalDraft holds loose UI state (strings, a selected date, a time string,
metric rows, selected weekdays). build_payload() is the single place where
that state is checked and turned into a GoalDraftPayload; nothing unchecked
reaches the command boundary.
"""

import math
import uuid
from dataclasses import dataclass, field
import datetime as dt
from typing import Callable, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from .errors import ValidationError
from .models import (
    DEFAULT_METRIC_LABEL,
    WEEKDAYS,
    Goal,
    Metric,
    normalize_priority,
    parse_recurring_pattern,
    format_recurring_pattern,
)
from .schemas import GoalDraftPayload, MetricPayload
from .timeutil import format_instant, local_to_utc, parse_clock, to_local

IdFactory = Callable[[], str]


def new_id() -> str:
    return str(uuid.uuid4())


@dataclass
class MetricRow:
    """Metric as typed into the form; every field is a raw string."""
    label: str = ""
    target: str = ""
    unit: str = ""


@dataclass
class GoalDraft:
    """Weakly-typed form state for creating or editing a goal"""
    text: str = ""
    description: str = ""
    priority: str = "medium"
    urgent: bool = False
    date: Optional[dt.date] = None
    time: str = ""  # HH:mm or blank
    problem_id: str = ""
    metric_rows: List[MetricRow] = field(default_factory=list)
    new_metric: MetricRow = field(default_factory=MetricRow)
    selected_days: List[str] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    editing: Optional[Goal] = None

    @classmethod
    def for_new(cls, default_priority: str = "medium") -> 'GoalDraft':
        return cls(priority=default_priority)

    @classmethod
    def from_goal(cls, goal: Goal, tz_offset_minutes: int = 0) -> 'GoalDraft':
        """Prefill a draft from an existing goal (edit mode)."""
        draft_date = None
        draft_time = ""
        if goal.due_date:
            local = to_local(goal.due_date, tz_offset_minutes)
            draft_date = local.date()
            draft_time = local.strftime("%H:%M")

        return cls(
            text=goal.text,
            description=goal.description or "",
            priority=goal.priority,
            urgent=goal.urgent,
            date=draft_date,
            time=draft_time,
            problem_id=goal.problem_id or "",
            metric_rows=[
                MetricRow(label=m.label, target=_format_number(m.target), unit=m.unit)
                for m in goal.metrics
            ],
            selected_days=parse_recurring_pattern(goal.recurring_pattern),
            labels=list(goal.labels),
            editing=goal,
        )

    @property
    def is_editing(self) -> bool:
        return self.editing is not None

    def add_metric(self, default_label: str = DEFAULT_METRIC_LABEL) -> bool:
        """
        Move new_metric into metric_rows.

        No-op unless both target and unit are filled in. A blank label
        becomes the default label.

        Returns:
            True if a row was added
        """
        row = self.new_metric
        if not row.target.strip() or not row.unit.strip():
            return False
        self.metric_rows.append(MetricRow(
            label=row.label.strip() or default_label,
            target=row.target,
            unit=row.unit,
        ))
        self.new_metric = MetricRow()
        return True

    def remove_metric(self, index: int) -> None:
        if 0 <= index < len(self.metric_rows):
            del self.metric_rows[index]

    def toggle_day(self, day: str) -> None:
        """Select or deselect a weekday, keeping toggle order."""
        if day not in WEEKDAYS:
            raise ValidationError(f"Invalid weekday '{day}'", field="selected_days")
        if day in self.selected_days:
            self.selected_days.remove(day)
        else:
            self.selected_days.append(day)


def _format_number(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def parse_target(text: str) -> float:
    """Parse a metric target typed by the user into a finite float."""
    try:
        value = float(text.strip())
    except (ValueError, AttributeError):
        raise ValidationError(f"Metric target '{text}' is not a number", field="metrics")
    if not math.isfinite(value):
        raise ValidationError(f"Metric target '{text}' is not finite", field="metrics")
    return value


def reconcile_metrics(rows: List[MetricRow], previous: Optional[List[Metric]] = None,
                      id_factory: IdFactory = new_id,
                      default_label: str = DEFAULT_METRIC_LABEL) -> List[MetricPayload]:
    """
    Turn metric rows into payload metrics, keyed by label.

    A row whose label matches a previous metric keeps that metric's id and
    current progress; any other row gets a fresh id and starts at 0. Each
    previous metric is claimed by at most one row, in order, so repeated
    labels never share an id.

    Args:
        rows: Metric rows from the form
        previous: Metrics of the goal being edited (None for new goals)
        id_factory: Source of new metric ids
        default_label: Label given to rows left blank

    Returns:
        Payload metrics in row order
    """
    by_label: Dict[str, List[Metric]] = {}
    for metric in previous or []:
        by_label.setdefault(metric.label, []).append(metric)

    result = []
    for row in rows:
        label = row.label.strip() or default_label
        target = parse_target(row.target)
        candidates = by_label.get(label)
        existing = candidates.pop(0) if candidates else None
        result.append(MetricPayload(
            id=existing.id if existing else id_factory(),
            label=label,
            target=target,
            current=existing.current if existing else 0.0,
            unit=row.unit.strip(),
        ))
    return result


def build_due_date(draft: GoalDraft, tz_offset_minutes: int = 0) -> Optional[str]:
    """Combine the selected local date and HH:mm time into a UTC ISO instant."""
    if draft.date is None:
        return None
    try:
        clock = parse_clock(draft.time)
    except ValueError as e:
        raise ValidationError(str(e), field="time")
    instant = local_to_utc(draft.date, clock or parse_clock("00:00"), tz_offset_minutes)
    return format_instant(instant)


def build_payload(draft: GoalDraft, tz_offset_minutes: int = 0,
                  id_factory: IdFactory = new_id,
                  default_metric_label: str = DEFAULT_METRIC_LABEL) -> GoalDraftPayload:
    """
    Validate a draft and produce the complete replacement payload.

    Raises:
        ValidationError: Blank text, non-numeric metric target, bad time
            or invalid priority; nothing should be sent in that case
    """
    text = draft.text.strip()
    if not text:
        raise ValidationError("Goal text is required", field="text")

    priority = normalize_priority(draft.priority)
    previous = draft.editing.metrics if draft.editing else None
    metrics = reconcile_metrics(draft.metric_rows, previous, id_factory, default_metric_label)

    if draft.selected_days:
        recurring_pattern = format_recurring_pattern(draft.selected_days)
    else:
        # Omitted on create means "no recurrence"; "" on update clears it
        recurring_pattern = "" if draft.is_editing else None

    try:
        return GoalDraftPayload(
            text=text,
            description=draft.description.strip() or None,
            priority=priority,
            urgent=bool(draft.urgent),
            due_date=build_due_date(draft, tz_offset_minutes),
            recurring_pattern=recurring_pattern,
            metrics=metrics or None,
            problem_id=draft.problem_id.strip() or None,
            labels=list(draft.labels) or None,
        )
    except PydanticValidationError as e:
        raise ValidationError(f"Invalid goal draft: {e}")
