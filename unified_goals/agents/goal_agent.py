"""
Goal Agent for Unified Goals
Drives the goal engine end to end: smart-text parsing, draft validation,
command calls, debt classification and the filtered view.

The agent keeps a read-through cache of the last loaded goal list. The
cache is replaced wholesale on every load and every mutating intent
reloads it afterwards; there is no optimistic patching, so the UI may lag
the boundary by one round trip.
"""

import math
from dataclasses import replace
from datetime import date, datetime, timedelta
from typing import Any, Dict, List, Optional

from dateutil import parser as date_parser
from pydantic import ValidationError as PydanticValidationError

from .base_agent import BaseAgent, AgentResponse
from ..core.draft import GoalDraft, MetricRow, build_payload
from ..core.errors import GoalEngineError, NotFoundError, ValidationError
from ..core.models import DEFAULT_METRIC_LABEL, Goal, Metric
from ..core.recurrence import expand_occurrences, mark_debt, missed_occurrences
from ..core.schemas import GoalDraftPayload, MetricPayload
from ..core.timeutil import ensure_utc, format_instant, local_date, parse_instant, utc_now
from ..dashboard.aggregator import compute_stats
from ..dashboard.debt_trail import accumulated_debt, build_debt_trail
from ..dashboard.view import view_goals
from ..nlp.date_extractor import DateExtractor
from ..nlp.smart_parser import SmartParseResult, apply_smart_input, parse_smart_input


class GoalAgent(BaseAgent):
    """
    Specialized agent for unified goal management.

    Handles intents:
    - parse_text: Run the smart parser over text or a draft
    - load_goals: Reload the goal list from the boundary
    - create_goal: Validate a draft and create a goal
    - update_goal: Validate a draft and replace an existing goal
    - delete_goal: Delete a goal by id
    - toggle_goal: Flip a goal's completion
    - update_metric: Record a new current value for one metric
    - view_goals: Search, filter, sort and partition the cached goals
    - goal_stats: Header statistics over the cached goals
    - debt_trail: Outstanding debt grouped by day, plus missed occurrences

    Context params for create_goal/update_goal:
        draft (GoalDraft): Complete form state, used as-is
        OR
        text (str): Goal text (smart-parsed on create)
        description, priority, urgent, problem_id, labels, time (optional)
        date (str or date, optional): Local due date
        selected_days (list, optional): Weekday tokens in toggle order
        metrics (list, optional): [{"label", "target", "unit"}, ...]
    """

    # Supported intents for this agent
    INTENTS = [
        "parse_text",
        "load_goals",
        "create_goal",
        "update_goal",
        "delete_goal",
        "toggle_goal",
        "update_metric",
        "view_goals",
        "goal_stats",
        "debt_trail",
    ]

    # Plain draft fields that may be overridden straight from context
    DRAFT_FIELDS = ("description", "priority", "urgent", "problem_id", "time")

    def __init__(self, adapter, config, extractor: Optional[DateExtractor] = None):
        """Initialize the Goal Agent."""
        super().__init__(adapter, config, "goal")
        self.extractor = extractor
        self.goals: List[Goal] = []
        self.loaded_at: Optional[datetime] = None
        self._filters: Dict[str, Any] = {}

    def get_supported_intents(self) -> List[str]:
        """Return list of supported intents."""
        return self.INTENTS

    def can_handle(self, intent: str, context: Dict[str, Any]) -> bool:
        """Check if this agent can handle the given intent."""
        return intent in self.INTENTS

    async def process(self, intent: str, context: Dict[str, Any]) -> AgentResponse:
        """
        Process a goal-related intent.

        Routes to the appropriate handler based on intent type. Engine
        errors become error responses tagged with data["error_type"].

        Args:
            intent: One of the supported goal intents
            context: Request context with parameters

        Returns:
            AgentResponse with operation result
        """
        self.log_action(f"processing_{intent}", {"context_keys": list(context.keys())})

        handlers = {
            "parse_text": self._handle_parse_text,
            "load_goals": self._handle_load_goals,
            "create_goal": self._handle_create_goal,
            "update_goal": self._handle_update_goal,
            "delete_goal": self._handle_delete_goal,
            "toggle_goal": self._handle_toggle_goal,
            "update_metric": self._handle_update_metric,
            "view_goals": self._handle_view_goals,
            "goal_stats": self._handle_goal_stats,
            "debt_trail": self._handle_debt_trail,
        }

        handler = handlers.get(intent)
        if not handler:
            return AgentResponse.error(f"Unknown intent: {intent}")

        try:
            return await handler(context)
        except GoalEngineError as e:
            return self.error_response(intent, e)
        except Exception as e:
            self.logger.error(f"Error processing {intent}: {e}", exc_info=True)
            return AgentResponse.error(
                f"Failed to process {intent}: {str(e)}",
                data={"error_type": "internal"}
            )

    # =========================================================================
    # Intent Handlers
    # =========================================================================

    async def _handle_parse_text(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Run the smart parser.

        Context params:
            draft (GoalDraft): Draft to update in place
            OR
            text (str): Text to parse without touching any draft
        """
        now = self._now(context)
        draft = context.get("draft")
        if draft is not None:
            smart = apply_smart_input(draft, now=now, tz_offset_minutes=self._tz(),
                                      extractor=self.extractor)
            return AgentResponse.ok(
                message="Draft updated from text" if smart else "Draft unchanged",
                data={"parsed": self._smart_to_dict(smart) if smart else None, "draft": draft}
            )

        validation = self.validate_required_params(context, ["text"])
        if validation:
            return validation

        smart = parse_smart_input(context["text"], now=now, tz_offset_minutes=self._tz(),
                                  extractor=self.extractor)
        return AgentResponse.ok(
            message=f"Parsed: priority {smart.priority}" + (", urgent" if smart.urgent else ""),
            data=self._smart_to_dict(smart)
        )

    async def _handle_load_goals(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Load goals from the boundary into the cache.

        Context params:
            filters (dict, optional): Boundary filters, remembered for reloads
        """
        if "filters" in context:
            self._filters = dict(context.get("filters") or {})

        now = self._now(context)
        goals = await self._reload(now)
        data: Dict[str, Any] = {
            "goals": [g.to_dict() for g in goals],
            "count": len(goals),
        }

        horizon = int(self.get_config_value("occurrence_horizon_days", "settings", 0) or 0)
        if horizon > 0:
            data["upcoming"] = [g.to_dict() for g in self.upcoming_occurrences(horizon, now)]

        return AgentResponse.ok(message=f"Loaded {len(goals)} goal(s)", data=data)

    async def _handle_create_goal(self, context: Dict[str, Any]) -> AgentResponse:
        """Create a goal from a draft or from text plus explicit fields."""
        draft = context.get("draft")
        if draft is None:
            validation = self.validate_required_params(context, ["text"])
            if validation:
                return validation
            draft = self._draft_from_context(context)

        payload = build_payload(draft, tz_offset_minutes=self._tz(),
                                default_metric_label=self._metric_label())
        goal = await self.adapter.create(payload)
        self.log_action("goal_created", {"goal_id": goal.id})

        await self._reload(self._now(context))
        return AgentResponse.ok(
            message=f"Goal created: '{goal.text}'",
            data={"goal_id": goal.id, "goal": goal.to_dict(), "count": len(self.goals)},
            suggestions=[
                "Add a metric to track progress",
                "Show debt trail: 'debt_trail'",
            ]
        )

    async def _handle_update_goal(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Replace an existing goal.

        Without a draft, the cached goal is loaded into an edit-mode draft
        and the context fields are applied on top of it.

        Context params:
            goal_id (str): Goal to update
        """
        validation = self.validate_required_params(context, ["goal_id"])
        if validation:
            return validation

        goal_id = context["goal_id"]
        draft = context.get("draft")
        if draft is None:
            existing = self._cached(goal_id)
            draft = self._draft_from_context(
                context, base=GoalDraft.from_goal(existing, self._tz())
            )

        payload = build_payload(draft, tz_offset_minutes=self._tz(),
                                default_metric_label=self._metric_label())
        goal = await self.adapter.update(goal_id, payload)
        self.log_action("goal_updated", {"goal_id": goal_id})

        await self._reload(self._now(context))
        return AgentResponse.ok(
            message=f"Goal updated: '{goal.text}'",
            data={"goal_id": goal_id, "goal": goal.to_dict()}
        )

    async def _handle_delete_goal(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Context params:
            goal_id (str): Goal to delete
        """
        validation = self.validate_required_params(context, ["goal_id"])
        if validation:
            return validation

        goal_id = context["goal_id"]
        await self.adapter.delete(goal_id)
        self.log_action("goal_deleted", {"goal_id": goal_id})

        await self._reload(self._now(context))
        return AgentResponse.ok(
            message="Goal deleted",
            data={"goal_id": goal_id, "count": len(self.goals)}
        )

    async def _handle_toggle_goal(self, context: Dict[str, Any]) -> AgentResponse:
        validation = self.validate_required_params(context, ["goal_id"])
        if validation:
            return validation

        goal = await self.adapter.toggle_completion(context["goal_id"])
        self.log_action("goal_toggled", {"goal_id": goal.id, "completed": goal.completed})

        await self._reload(self._now(context))
        return AgentResponse.ok(
            message=f"Goal {'completed' if goal.completed else 'reopened'}: '{goal.text}'",
            data={"goal_id": goal.id, "goal": goal.to_dict()}
        )

    async def _handle_update_metric(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Record progress on one metric of a cached goal.

        Context params:
            goal_id (str): Goal owning the metric
            metric_id (str) OR label (str): Metric to update
            current (float): New current value
        """
        validation = self.validate_required_params(context, ["goal_id", "current"])
        if validation:
            return validation

        goal = self._cached(context["goal_id"])
        current = self._number_param(context["current"], "current")

        metric_id = context.get("metric_id")
        label = context.get("label")
        metric = next(
            (m for m in goal.metrics
             if (m.id == metric_id if metric_id else m.label == label)),
            None
        )
        if metric is None:
            raise ValidationError(
                f"Goal {goal.id} has no metric {metric_id or label!r}", field="metric"
            )

        metrics = [replace(m, current=current) if m.id == metric.id else m for m in goal.metrics]
        updated = await self.adapter.update(goal.id, self._payload_from_goal(goal, metrics))
        self.log_action("metric_updated", {"goal_id": goal.id, "metric_id": metric.id,
                                           "current": current})

        await self._reload(self._now(context))
        return AgentResponse.ok(
            message=f"{metric.label}: {current:g}/{metric.target:g} {metric.unit}".rstrip(),
            data={"goal_id": goal.id, "metric_id": metric.id, "goal": updated.to_dict()}
        )

    async def _handle_view_goals(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Context params:
            search (str, optional): Case-insensitive text search
            filter (str, optional): all, active, completed, urgent, debt
            sort_by (str, optional): priority, due, newest
        """
        filter_name = context.get("filter") or self.get_config_value("default_filter", "settings", "all")
        sort_by = context.get("sort_by") or self.get_config_value("default_sort", "settings", "newest")

        view = view_goals(self.goals, search=context.get("search") or "",
                          filter=filter_name, sort_by=sort_by)

        return AgentResponse.ok(
            message=f"Showing {len(view.goals)} of {view.stats.total} goal(s)",
            data={
                "goals": [g.to_dict() for g in view.goals],
                "debt_goals": [g.to_dict() for g in view.debt_goals],
                "regular_goals": [g.to_dict() for g in view.regular_goals],
                "stats": view.stats.to_dict(),
                "filter": filter_name,
                "sort_by": sort_by,
            }
        )

    async def _handle_goal_stats(self, context: Dict[str, Any]) -> AgentResponse:
        stats = compute_stats(self.goals)
        return AgentResponse.ok(
            message=f"{stats.completed}/{stats.total} completed, {stats.debt} in debt",
            data=stats.to_dict()
        )

    async def _handle_debt_trail(self, context: Dict[str, Any]) -> AgentResponse:
        """
        Context params:
            days_back (int, optional): Window length (defaults to debt_trail_days)
            end_date (str or date, optional): Last day of the window (defaults to today)
        """
        now = self._now(context)
        tz = self._tz()
        days_back = context.get("days_back")
        if days_back is None:
            days_back = self.get_config_value("debt_trail_days", "settings", 30)
        days_back = int(self._number_param(days_back, "days_back"))
        end_date = self._date_param(context.get("end_date"), "end_date") or local_date(now, tz)

        trail = build_debt_trail(self.goals, end_date, days_back=days_back, tz_offset_minutes=tz)
        accumulated = accumulated_debt(self.goals, end_date, tz_offset_minutes=tz)

        missed = {}
        for template in self.goals:
            if not template.is_recurring_template():
                continue
            days = missed_occurrences(template, self.goals, now=now, window_days=days_back,
                                      tz_offset_minutes=tz)
            if days:
                missed[template.id] = [d.isoformat() for d in days]

        total = sum(item.debt_count for item in trail)
        return AgentResponse.ok(
            message=f"{total} debt item(s) over the last {days_back} day(s)",
            data={
                "trail": [
                    {
                        "date": item.date.isoformat(),
                        "debt_count": item.debt_count,
                        "goals": [g.to_dict() for g in item.goals],
                    }
                    for item in trail
                ],
                "accumulated": [g.to_dict() for g in accumulated],
                "missed": missed,
                "total_debt": total,
            }
        )

    # =========================================================================
    # Helper Methods
    # =========================================================================

    async def _reload(self, now: Optional[datetime] = None) -> List[Goal]:
        """Replace the cache with a fresh list and re-classify debt."""
        goals = await self.adapter.list(timezone_offset_minutes=self._tz(), **self._filters)
        now = now or utc_now()
        self.goals = mark_debt(goals, now)
        self.loaded_at = now
        return self.goals

    def upcoming_occurrences(self, horizon_days: int, now: Optional[datetime] = None) -> List[Goal]:
        """Project (unsaved) occurrences of cached templates over the next horizon_days."""
        now = now or utc_now()
        tz = self._tz()
        today = local_date(now, tz)
        end = today + timedelta(days=horizon_days)

        upcoming = []
        for template in self.goals:
            if not template.is_recurring_template():
                continue
            try:
                upcoming.extend(expand_occurrences(template, today, end, existing=self.goals,
                                                   tz_offset_minutes=tz, now=now))
            except ValidationError as e:
                self.logger.warning(f"Skipping template {template.id}: {e}")
        return upcoming

    def _cached(self, goal_id: str) -> Goal:
        for goal in self.goals:
            if goal.id == goal_id:
                return goal
        raise NotFoundError(f"Goal {goal_id} not found", goal_id=goal_id)

    def _draft_from_context(self, context: Dict[str, Any],
                            base: Optional[GoalDraft] = None) -> GoalDraft:
        """Build (or amend) a draft from loose context parameters."""
        if base is None:
            default_priority = self.get_config_value("default_priority", "preferences", "medium")
            draft = GoalDraft.for_new(default_priority)
            draft.text = context["text"]
            apply_smart_input(draft, now=self._now(context), tz_offset_minutes=self._tz(),
                              extractor=self.extractor)
        else:
            draft = base
            if context.get("text") is not None:
                draft.text = context["text"]

        # Explicit fields win over anything the smart parser inferred
        for key in self.DRAFT_FIELDS:
            if context.get(key) is not None:
                setattr(draft, key, context[key])

        if "date" in context:
            draft.date = self._date_param(context["date"], "date")

        if context.get("labels") is not None:
            draft.labels = list(context["labels"])

        if context.get("selected_days") is not None:
            draft.selected_days = []
            for day in context["selected_days"]:
                draft.toggle_day(day)

        if context.get("metrics") is not None:
            draft.metric_rows = [
                MetricRow(
                    label=str(m.get("label") or ""),
                    target=str(m.get("target", "")),
                    unit=str(m.get("unit") or ""),
                )
                for m in context["metrics"]
            ]

        return draft

    @staticmethod
    def _payload_from_goal(goal: Goal, metrics: List[Metric]) -> GoalDraftPayload:
        """Complete replacement payload mirroring a loaded goal."""
        try:
            return GoalDraftPayload(
                text=goal.text,
                description=goal.description,
                priority=goal.priority,
                urgent=goal.urgent,
                due_date=format_instant(goal.due_date) if goal.due_date else None,
                recurring_pattern=goal.recurring_pattern or "",
                metrics=[
                    MetricPayload(id=m.id, label=m.label, target=m.target,
                                  current=m.current, unit=m.unit)
                    for m in metrics
                ] or None,
                problem_id=goal.problem_id,
                labels=list(goal.labels) or None,
            )
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid goal payload: {e}")

    def _tz(self) -> int:
        return int(self.get_config_value("timezone_offset_minutes", "settings", 0) or 0)

    def _metric_label(self) -> str:
        return self.get_config_value("default_metric_label", "preferences",
                                     DEFAULT_METRIC_LABEL) or DEFAULT_METRIC_LABEL

    @staticmethod
    def _now(context: Dict[str, Any]) -> datetime:
        value = context.get("now")
        if isinstance(value, datetime):
            return ensure_utc(value)
        if isinstance(value, str):
            parsed = parse_instant(value)
            if parsed is not None:
                return parsed
        return utc_now()

    @staticmethod
    def _number_param(value: Any, field: str) -> float:
        try:
            number = float(value)
        except (TypeError, ValueError):
            raise ValidationError(f"{field} must be a number", field=field)
        if not math.isfinite(number):
            raise ValidationError(f"{field} must be a finite number", field=field)
        return number

    @staticmethod
    def _date_param(value: Any, field: str) -> Optional[date]:
        """
        Parse a date parameter.

        Args:
            value: date, datetime, string or None

        Returns:
            Calendar date or None
        """
        if value is None or value == "":
            return None
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date_parser.parse(str(value)).date()
        except (ValueError, OverflowError):
            raise ValidationError(f"Invalid {field}: {value}", field=field)

    @staticmethod
    def _smart_to_dict(smart: SmartParseResult) -> Dict[str, Any]:
        return {
            "date": smart.date.isoformat() if smart.date else None,
            "urgent": smart.urgent,
            "priority": smart.priority,
        }
