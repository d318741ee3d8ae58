"""
Smart-text parsing for new goal drafts.

Pulls an urgency flag, an inferred priority and a candidate due date out of
whatever the user typed. Priority is only ever raised to "high"; "low" is
never inferred and must be chosen explicitly.
"""

import logging
import re
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from ..core.draft import GoalDraft
from .date_extractor import DateExtractor, KeywordDateExtractor

logger = logging.getLogger(__name__)

URGENT_PATTERN = re.compile(r"urgent|asap|immediately", re.IGNORECASE)
HIGH_PRIORITY_PATTERN = re.compile(r"high priority|priority high|important", re.IGNORECASE)

_default_extractor = KeywordDateExtractor()


@dataclass
class SmartParseResult:
    """What the smart parser found in a piece of text."""
    date: Optional[datetime]
    urgent: bool
    priority: str  # 'medium' or 'high'


def parse_smart_input(text: str, now: Optional[datetime] = None,
                      tz_offset_minutes: int = 0,
                      extractor: Optional[DateExtractor] = None) -> SmartParseResult:
    """
    Parse free-form goal text.

    Args:
        text: Raw goal text
        now: Reference instant for relative dates
        tz_offset_minutes: User's offset from UTC
        extractor: Date extraction collaborator (keyword extractor by default)

    Returns:
        SmartParseResult with date, urgent and priority
    """
    text = text or ""
    extractor = extractor or _default_extractor

    urgent = bool(URGENT_PATTERN.search(text))
    high = urgent or bool(HIGH_PRIORITY_PATTERN.search(text))

    return SmartParseResult(
        date=extractor.extract(text, now=now, tz_offset_minutes=tz_offset_minutes),
        urgent=urgent,
        priority="high" if high else "medium",
    )


def apply_smart_input(draft: GoalDraft, now: Optional[datetime] = None,
                      tz_offset_minutes: int = 0,
                      extractor: Optional[DateExtractor] = None) -> Optional[SmartParseResult]:
    """
    Re-run the parser over draft.text and fold the result into the draft.

    Safe to call on every keystroke: it only ever sets urgent, raises
    priority to high, and sets the date/time. Drafts in edit mode and
    empty drafts are left untouched.

    Returns:
        The parse result, or None when nothing was parsed
    """
    if draft.is_editing or not draft.text:
        return None

    smart = parse_smart_input(draft.text, now=now, tz_offset_minutes=tz_offset_minutes,
                              extractor=extractor)
    if smart.urgent:
        draft.urgent = True
    if smart.priority == "high":
        draft.priority = "high"
    if smart.date is not None:
        draft.date = smart.date.date()
        draft.time = smart.date.strftime("%H:%M")
        logger.debug(f"Smart date {draft.date} {draft.time} from '{draft.text}'")
    return smart
