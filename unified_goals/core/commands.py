"""
Command adapter for the goal persistence boundary.

The boundary is request/response: every call is an async ``invoke`` of a
named command with a JSON-like argument dict. This module only
(de)serializes; it performs no business logic.

Usage:
    async def invoke(command, args):
        ...  # provided by the UI shell

    adapter = CommandAdapter(InvokeTransport(invoke))
    goal = await adapter.create(payload)
    goals = await adapter.list(timezone_offset_minutes=330)
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

from pydantic import ValidationError as PydanticValidationError

from .errors import NotFoundError, TransportError, ValidationError
from .models import Goal
from .schemas import GoalDraftPayload, GoalFilters, GoalRecord

logger = logging.getLogger(__name__)

InvokeFn = Callable[[str, Dict[str, Any]], Awaitable[Any]]


class CommandTransport(ABC):
    """Abstract base class for the request/response boundary"""

    @abstractmethod
    async def invoke(self, command: str, args: Dict[str, Any]) -> Any:
        """
        Send one command and return its decoded response.

        Implementations raise NotFoundError for unknown ids and
        TransportError for any other failure.
        """
        pass


class InvokeTransport(CommandTransport):
    """Wraps the shell's async ``invoke(command, args)`` callable"""

    NOT_FOUND_PREFIX = "not found"

    def __init__(self, invoke_fn: InvokeFn):
        self.invoke_fn = invoke_fn

    async def invoke(self, command: str, args: Dict[str, Any]) -> Any:
        try:
            return await self.invoke_fn(command, args)
        except TransportError:
            raise
        except Exception as e:
            raise self._translate(command, args, e) from e

    def _translate(self, command: str, args: Dict[str, Any],
                   exc: Exception) -> TransportError:
        """Map a raw boundary failure onto the engine's error types."""
        detail: Any = exc.args[0] if exc.args else str(exc)
        goal_id = args.get("id")

        # Structured errors arrive as {"type": "NotFound", "message": "..."}
        if isinstance(detail, dict):
            message = str(detail.get("message", detail))
            if detail.get("type") == "NotFound":
                return NotFoundError(message, command=command, goal_id=goal_id)
            return TransportError(message, command=command)

        message = str(detail)
        if message.lower().startswith(self.NOT_FOUND_PREFIX):
            return NotFoundError(message, command=command, goal_id=goal_id)
        return TransportError(message, command=command)


class CommandAdapter:
    """
    Maps goal payloads and records to and from the boundary commands.

    Contract:
        create(payload) -> Goal        fails ValidationError | TransportError
        update(id, payload) -> Goal    fails NotFoundError | TransportError
        delete(id) -> None             fails NotFoundError | TransportError
        list(...) -> List[Goal]        fails TransportError
    """

    CREATE = "create_unified_goal"
    UPDATE = "update_unified_goal"
    DELETE = "delete_unified_goal"
    LIST = "get_unified_goals"
    TOGGLE = "toggle_unified_goal_completion"

    def __init__(self, transport: CommandTransport):
        self.transport = transport

    async def create(self, payload: Union[GoalDraftPayload, Dict[str, Any]]) -> Goal:
        payload = self._coerce_payload(payload)
        raw = await self._call(self.CREATE, {"req": payload.to_wire()})
        return self._to_goal(self.CREATE, raw)

    async def update(self, goal_id: str,
                     payload: Union[GoalDraftPayload, Dict[str, Any]]) -> Goal:
        payload = self._coerce_payload(payload)
        raw = await self._call(self.UPDATE, {"id": goal_id, "req": payload.to_wire()})
        return self._to_goal(self.UPDATE, raw)

    async def delete(self, goal_id: str) -> None:
        await self._call(self.DELETE, {"id": goal_id})

    async def toggle_completion(self, goal_id: str) -> Goal:
        raw = await self._call(self.TOGGLE, {"id": goal_id})
        return self._to_goal(self.TOGGLE, raw)

    async def list(self, timezone_offset_minutes: int = 0, **filters: Any) -> List[Goal]:
        try:
            goal_filters = GoalFilters(timezone_offset=timezone_offset_minutes, **filters)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid goal filters: {e}", field="filters") from e

        raw = await self._call(self.LIST, {"filters": goal_filters.to_wire()})
        if not isinstance(raw, list):
            raise TransportError(
                f"Expected a list from {self.LIST}, got {type(raw).__name__}",
                command=self.LIST,
            )
        return [self._to_goal(self.LIST, item) for item in raw]

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _call(self, command: str, args: Dict[str, Any]) -> Any:
        logger.debug(f"invoke {command} ({', '.join(args.keys())})")
        try:
            return await self.transport.invoke(command, args)
        except TransportError as e:
            logger.warning(f"{command} failed: {e}")
            raise

    @staticmethod
    def _coerce_payload(payload: Union[GoalDraftPayload, Dict[str, Any]]) -> GoalDraftPayload:
        if isinstance(payload, GoalDraftPayload):
            return payload
        try:
            return GoalDraftPayload.model_validate(payload)
        except PydanticValidationError as e:
            raise ValidationError(f"Invalid goal payload: {e}") from e

    @staticmethod
    def _to_goal(command: str, raw: Any) -> Goal:
        try:
            record = GoalRecord.model_validate(raw)
        except PydanticValidationError as e:
            raise TransportError(f"Malformed goal record from {command}: {e}",
                                 command=command) from e
        return Goal.from_dict(record.model_dump())
