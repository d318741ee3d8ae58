"""
Data models for the Unified Goal Engine
Defines the Goal and Metric structures and recurrence encoding helpers.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, List, Dict, Any, Iterable
import math

from .errors import ValidationError
from .timeutil import parse_instant, format_instant


PRIORITIES = ("low", "medium", "high")
PRIORITY_RANK = {"high": 3, "medium": 2, "low": 1}
DEFAULT_PRIORITY = "medium"
DEFAULT_METRIC_LABEL = "Target"

WEEKDAYS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")


def _pick(data: Dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Return the first key present in data (camelCase or snake_case)."""
    for key in keys:
        if key in data:
            return data[key]
    return default


def parse_recurring_pattern(pattern: Optional[str]) -> List[str]:
    """
    Split a stored recurrence pattern into weekday tokens.

    Args:
        pattern: Comma-joined weekday names, e.g. "Mon,Wed,Fri"

    Returns:
        Weekday tokens in stored order (empty list for None or "")

    Raises:
        ValidationError: On unknown or repeated tokens
    """
    if not pattern:
        return []
    days = [part.strip() for part in pattern.split(",")]
    seen = set()
    for day in days:
        if day not in WEEKDAYS:
            raise ValidationError(f"Invalid weekday '{day}' in recurring pattern",
                                  field="recurring_pattern")
        if day in seen:
            raise ValidationError(f"Weekday '{day}' repeated in recurring pattern",
                                  field="recurring_pattern")
        seen.add(day)
    return days


def format_recurring_pattern(days: Iterable[str]) -> str:
    """Join weekday tokens in the order given (toggle order, not calendar order)."""
    days = list(days)
    parse_recurring_pattern(",".join(days))
    return ",".join(days)


def normalize_priority(value: Optional[str]) -> str:
    """Validate a priority string, defaulting to medium when absent."""
    if value is None or value == "":
        return DEFAULT_PRIORITY
    value = str(value).lower()
    if value not in PRIORITIES:
        raise ValidationError(f"Invalid priority '{value}'", field="priority")
    return value


@dataclass
class Metric:
    """Quantitative sub-goal owned by a Goal"""
    id: str = ""
    label: str = DEFAULT_METRIC_LABEL
    target: float = 0.0
    current: float = 0.0
    unit: str = ""

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Metric':
        """Create Metric from boundary dictionary"""
        return cls(
            id=str(data.get('id', '')),
            label=data.get('label') or DEFAULT_METRIC_LABEL,
            target=float(data.get('target', 0) or 0),
            current=float(data.get('current', 0) or 0),
            unit=data.get('unit', '') or '',
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "label": self.label,
            "target": self.target,
            "current": self.current,
            "unit": self.unit,
        }

    def progress(self) -> float:
        """Percent of target reached, capped at 100."""
        if not self.target or not math.isfinite(self.target):
            return 0.0
        return min(100.0, max(0.0, (self.current / self.target) * 100))


@dataclass
class Goal:
    """Unified goal data model"""
    id: str = ""
    text: str = ""
    description: Optional[str] = None
    priority: str = DEFAULT_PRIORITY  # 'low', 'medium', 'high'
    urgent: bool = False
    due_date: Optional[datetime] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    verified: bool = False
    is_debt: bool = False
    recurring_pattern: Optional[str] = None
    recurring_template_id: Optional[str] = None
    original_date: Optional[str] = None  # YYYY-MM-DD, local
    problem_id: Optional[str] = None
    metrics: List[Metric] = field(default_factory=list)
    labels: List[str] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'Goal':
        """Create Goal from a boundary record (camelCase or snake_case keys)"""
        metrics = _pick(data, 'metrics') or []
        return cls(
            id=str(_pick(data, 'id', default='')),
            text=_pick(data, 'text', default='') or '',
            description=_pick(data, 'description'),
            priority=_pick(data, 'priority') or DEFAULT_PRIORITY,
            urgent=bool(_pick(data, 'urgent', default=False)),
            due_date=parse_instant(_pick(data, 'dueDate', 'due_date')),
            completed=bool(_pick(data, 'completed', default=False)),
            completed_at=parse_instant(_pick(data, 'completedAt', 'completed_at')),
            verified=bool(_pick(data, 'verified', default=False)),
            is_debt=bool(_pick(data, 'isDebt', 'is_debt', default=False)),
            recurring_pattern=_pick(data, 'recurringPattern', 'recurring_pattern') or None,
            recurring_template_id=_pick(data, 'recurringTemplateId', 'recurring_template_id'),
            original_date=_pick(data, 'originalDate', 'original_date'),
            problem_id=_pick(data, 'problemId', 'problem_id'),
            metrics=[m if isinstance(m, Metric) else Metric.from_dict(m) for m in metrics],
            labels=list(_pick(data, 'labels') or []),
            created_at=parse_instant(_pick(data, 'createdAt', 'created_at')),
            updated_at=parse_instant(_pick(data, 'updatedAt', 'updated_at')),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the boundary's camelCase record shape"""
        return {
            "id": self.id,
            "text": self.text,
            "description": self.description,
            "priority": self.priority,
            "urgent": self.urgent,
            "dueDate": format_instant(self.due_date) if self.due_date else None,
            "completed": self.completed,
            "completedAt": format_instant(self.completed_at) if self.completed_at else None,
            "verified": self.verified,
            "isDebt": self.is_debt,
            "recurringPattern": self.recurring_pattern,
            "recurringTemplateId": self.recurring_template_id,
            "originalDate": self.original_date,
            "problemId": self.problem_id,
            "metrics": [m.to_dict() for m in self.metrics],
            "labels": list(self.labels),
            "createdAt": format_instant(self.created_at) if self.created_at else None,
            "updatedAt": format_instant(self.updated_at) if self.updated_at else None,
        }

    def is_recurring_template(self) -> bool:
        """A goal carrying a weekday pattern that is not itself an occurrence"""
        return bool(self.recurring_pattern) and self.recurring_template_id is None

    def weekdays(self) -> List[str]:
        return parse_recurring_pattern(self.recurring_pattern)

    def metric_progress(self) -> Optional[float]:
        """Average progress across metrics, or None when there are none"""
        if not self.metrics:
            return None
        return sum(m.progress() for m in self.metrics) / len(self.metrics)
