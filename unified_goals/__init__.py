"""
Unified Goals: the domain engine behind a single goal list.

Goals carry an optional due date, priority, weekday recurrence, metrics and
a debt status. The engine parses them from text, validates drafts, talks to
an external command boundary, and builds the filtered, sorted view.
"""

__version__ = "0.1.0"
