"""
Pydantic schemas for the goal command boundary.

These schemas provide:
- The request shapes sent to create/update/list commands
- Validation of records coming back from the boundary
- camelCase aliases matching the shell's field names

Design note: the boundary speaks camelCase; Python code uses snake_case
attribute names and populates by either.
"""

import math
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class _BoundaryModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# =============================================================================
# Request Schemas
# =============================================================================

class MetricPayload(_BoundaryModel):
    """Metric as sent inside a goal payload."""
    id: str
    label: str = "Target"
    target: float
    current: float = 0.0
    unit: str

    @field_validator("target", "current")
    @classmethod
    def _finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value


class GoalDraftPayload(_BoundaryModel):
    """
    Complete replacement payload for create and update.

    Optional fields left as None are omitted from the wire entirely;
    recurring_pattern="" is an explicit clear (update only).
    """
    text: str = Field(..., min_length=1)
    description: Optional[str] = None
    priority: str = Field(default="medium", pattern="^(low|medium|high)$")
    urgent: bool = False
    due_date: Optional[str] = None  # UTC ISO instant
    recurring_pattern: Optional[str] = None
    metrics: Optional[List[MetricPayload]] = None
    problem_id: Optional[str] = None
    labels: Optional[List[str]] = None

    @field_validator("text")
    @classmethod
    def _not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    def to_wire(self) -> dict:
        """Serialize with camelCase keys, dropping unset optionals."""
        return self.model_dump(by_alias=True, exclude_none=True)


class GoalFilters(_BoundaryModel):
    """Filters accepted by get_unified_goals."""
    timezone_offset: int = 0
    completed: Optional[bool] = None
    urgent: Optional[bool] = None
    is_debt: Optional[bool] = None
    has_recurring: Optional[bool] = None
    search: Optional[str] = None

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# =============================================================================
# Response Schemas
# =============================================================================

class MetricRecord(_BoundaryModel):
    id: str
    label: str = "Target"
    target: float
    current: float = 0.0
    unit: str = ""


class GoalRecord(_BoundaryModel):
    """Goal record returned by the boundary."""
    id: str
    text: str
    description: Optional[str] = None
    completed: bool = False
    completed_at: Optional[datetime] = None
    verified: bool = False
    due_date: Optional[datetime] = None
    recurring_pattern: Optional[str] = None
    recurring_template_id: Optional[str] = None
    priority: str = "medium"
    urgent: bool = False
    metrics: Optional[List[MetricRecord]] = None
    problem_id: Optional[str] = None
    labels: Optional[List[str]] = None
    created_at: datetime
    updated_at: Optional[datetime] = None
    original_date: Optional[str] = None
    is_debt: bool = False
