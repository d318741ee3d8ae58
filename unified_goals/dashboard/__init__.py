"""
Dashboard module for Unified Goals.

Provides the filtered/sorted goal view, header statistics and the debt trail.
"""

from .aggregator import GoalStats, compute_stats
from .view import (
    FILTERS,
    SORTS,
    GoalView,
    apply_search,
    apply_filter,
    sort_goals,
    partition_debt,
    view_goals,
)
from .debt_trail import (
    DebtTrailItem,
    obligation_date,
    build_debt_trail,
    accumulated_debt,
)

__all__ = [
    # Aggregator
    'GoalStats',
    'compute_stats',
    # View
    'FILTERS',
    'SORTS',
    'GoalView',
    'apply_search',
    'apply_filter',
    'sort_goals',
    'partition_debt',
    'view_goals',
    # Debt trail
    'DebtTrailItem',
    'obligation_date',
    'build_debt_trail',
    'accumulated_debt',
]
