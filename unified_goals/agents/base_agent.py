"""
Base Agent for Unified Goals
Defines abstract base class and common interfaces for goal-engine agents.

Agents sit on top of the pure engine and the command adapter:
- Each agent handles a named set of intents
- Agents share a common interface for intent matching and processing
- Engine errors are turned into AgentResponse.error values, never raised
- All agents maintain consistent logging
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import logging
import json

from ..core.errors import error_type


@dataclass
class AgentResponse:
    """
    Standard response structure from any agent.

    Attributes:
        success: Whether the operation completed successfully
        message: Human-readable description of the result
        data: Optional structured data (goals, stats, error_type, etc.)
        suggestions: Optional list of follow-up actions the user might want
    """
    success: bool
    message: str
    data: Optional[Dict[str, Any]] = None
    suggestions: Optional[List[str]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert response to dictionary for serialization."""
        return {
            "success": self.success,
            "message": self.message,
            "data": self.data,
            "suggestions": self.suggestions
        }

    @classmethod
    def error(cls, message: str, data: Optional[Dict[str, Any]] = None) -> 'AgentResponse':
        """Factory method for creating error responses."""
        return cls(success=False, message=message, data=data)

    @classmethod
    def ok(cls, message: str, data: Optional[Dict[str, Any]] = None,
           suggestions: Optional[List[str]] = None) -> 'AgentResponse':
        """Factory method for creating success responses."""
        return cls(success=True, message=message, data=data, suggestions=suggestions)


class BaseAgent(ABC):
    """
    Abstract base class for goal-engine agents.

    Provides common functionality for:
    - Command adapter access
    - Configuration management
    - Logging
    - Intent matching
    - Mapping engine errors onto responses

    Subclasses must implement:
    - can_handle(): Determine if agent can process given intent
    - process(): Execute the actual request handling (async)
    - get_supported_intents(): Return list of intents this agent handles
    """

    def __init__(self, adapter, config, name: str):
        """
        Initialize the base agent.

        Args:
            adapter: CommandAdapter for the persistence boundary
            config: Config instance for settings/preferences
            name: Unique identifier for this agent (e.g., "goal")
        """
        self.adapter = adapter
        self.config = config
        self.name = name
        self.logger = logging.getLogger(f"agent.{name}")

    @abstractmethod
    def can_handle(self, intent: str, context: Dict[str, Any]) -> bool:
        """
        Determine if this agent can handle the given intent.

        Args:
            intent: The classified intent of the request
            context: Additional context that may affect handling capability

        Returns:
            True if this agent can handle the intent, False otherwise
        """
        pass

    @abstractmethod
    async def process(self, intent: str, context: Dict[str, Any]) -> AgentResponse:
        """
        Process the request and return a response.

        Args:
            intent: The classified intent of the request
            context: Request context including parameters

        Returns:
            AgentResponse with success/failure status and relevant data
        """
        pass

    @abstractmethod
    def get_supported_intents(self) -> List[str]:
        """Return list of intents this agent can handle."""
        pass

    def log_action(self, action: str, details: Optional[Dict[str, Any]] = None) -> None:
        """
        Log an action taken by this agent.

        Args:
            action: Description of the action taken
            details: Optional additional details as key-value pairs
        """
        log_entry = {
            "agent": self.name,
            "action": action,
            "timestamp": datetime.now(timezone.utc).isoformat()
        }
        if details:
            log_entry["details"] = details

        self.logger.info(json.dumps(log_entry, default=str))

    def error_response(self, intent: str, exc: Exception) -> AgentResponse:
        """
        Convert an engine error into a non-blocking error response.

        The error category goes into data["error_type"] so callers can tell
        a rejected draft (nothing was sent) from a boundary failure.
        """
        kind = error_type(exc)
        data: Dict[str, Any] = {"error_type": kind}
        field = getattr(exc, "field", None)
        if field:
            data["field"] = field
        goal_id = getattr(exc, "goal_id", None)
        if goal_id:
            data["goal_id"] = goal_id

        if kind == "validation":
            self.logger.info(f"{intent} rejected: {exc}")
        else:
            self.logger.warning(f"{intent} failed ({kind}): {exc}")
        return AgentResponse.error(str(exc), data=data)

    def validate_required_params(self, context: Dict[str, Any],
                                  required: List[str]) -> Optional[AgentResponse]:
        """
        Validate that required parameters are present in context.

        Args:
            context: Request context to validate
            required: List of required parameter names

        Returns:
            AgentResponse with error if validation fails, None if valid
        """
        missing = [p for p in required if p not in context or context[p] is None]
        if missing:
            return AgentResponse.error(
                f"Missing required parameters: {', '.join(missing)}",
                data={"error_type": "validation"}
            )
        return None

    def get_config_value(self, key: str, section: str = "preferences",
                         default: Any = None) -> Any:
        """
        Get a configuration value with fallback to default.

        Args:
            key: Configuration key to retrieve
            section: Configuration section (settings, preferences)
            default: Default value if key not found

        Returns:
            Configuration value or default
        """
        return self.config.get(key, section=section, default=default)
