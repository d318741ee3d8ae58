"""
Core module for the Unified Goal Engine
Contains configuration, errors, models, drafts, recurrence and the command adapter
"""

from .config import Config
from .errors import GoalEngineError, ValidationError, TransportError, NotFoundError
from .models import Goal, Metric, PRIORITIES, PRIORITY_RANK, WEEKDAYS
from .draft import GoalDraft, MetricRow, build_payload, reconcile_metrics
from .commands import CommandAdapter, CommandTransport, InvokeTransport

__all__ = [
    'Config',
    'GoalEngineError',
    'ValidationError',
    'TransportError',
    'NotFoundError',
    'Goal',
    'Metric',
    'PRIORITIES',
    'PRIORITY_RANK',
    'WEEKDAYS',
    'GoalDraft',
    'MetricRow',
    'build_payload',
    'reconcile_metrics',
    'CommandAdapter',
    'CommandTransport',
    'InvokeTransport',
]
