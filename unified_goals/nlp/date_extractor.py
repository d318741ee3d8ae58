"""
Natural-language date extraction for goal text.

The smart parser treats date extraction as a pluggable collaborator: any
DateExtractor returns the first date/time expression it finds in the text,
or None. KeywordDateExtractor covers the phrases people actually type into
a goal box (relative days, weekdays, "in N days", explicit dates, and an
optional time of day).
"""

import re
from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta
from typing import Callable, List, Optional, Tuple

from dateutil import parser as date_parser

from ..core.timeutil import local_tz, to_local, utc_now


class DateExtractor(ABC):
    """Abstract base class for date extraction from free text"""

    @abstractmethod
    def extract(self, text: str, now: Optional[datetime] = None,
                tz_offset_minutes: int = 0) -> Optional[datetime]:
        """
        Find the first date/time expression in text.

        Args:
            text: Arbitrary user text
            now: Reference instant for relative expressions
            tz_offset_minutes: Offset of the user's wall clock from UTC

        Returns:
            Aware datetime in the user's local offset, or None
        """
        pass


class KeywordDateExtractor(DateExtractor):
    """Regex and keyword based extractor, with dateutil for month-name dates."""

    DAYS_OF_WEEK = ["monday", "tuesday", "wednesday", "thursday",
                    "friday", "saturday", "sunday"]

    # "day after tomorrow" starts before its "tomorrow", so position alone disambiguates
    RELATIVE_DAYS: List[Tuple[str, int]] = [
        (r'\bday after tomorrow\b', 2),
        (r'\btoday\b', 0),
        (r'\btonight\b', 0),
        (r'\btomorrow\b', 1),
        (r'\bnext week\b', 7),
    ]

    EXPLICIT_PATTERNS = [
        (r'\b(\d{4}-\d{2}-\d{2})\b', '%Y-%m-%d'),
        (r'\b(\d{1,2}/\d{1,2}/\d{4})\b', '%m/%d/%Y'),
        (r'\b(\d{1,2}/\d{1,2})\b', '%m/%d'),  # Assumes current year
    ]

    MONTH_DATE_PATTERNS = [
        # March 5, Mar 5th, March 5 2027
        r'\b(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?\s+'
        r'\d{1,2}(?:st|nd|rd|th)?(?:,?\s+\d{4})?\b',
        # 5 March, 5th of March 2027
        r'\b\d{1,2}(?:st|nd|rd|th)?\s+(?:of\s+)?'
        r'(?:jan|feb|mar|apr|may|jun|jul|aug|sep|sept|oct|nov|dec)[a-z]*\.?(?:\s+\d{4})?\b',
    ]

    TIME_PATTERNS = [
        r'\bat\s+(\d{1,2})(?::(\d{2}))?\s*(am|pm)?\b',
        r'\b(\d{1,2}):(\d{2})\s*(am|pm)?\b',
        r'\b(\d{1,2})\s*(am|pm)\b',
    ]

    def extract(self, text: str, now: Optional[datetime] = None,
                tz_offset_minutes: int = 0) -> Optional[datetime]:
        if not text:
            return None

        now = now or utc_now()
        today = to_local(now, tz_offset_minutes).date()

        day = self._extract_day(text, today)
        clock = self._extract_time(text)

        if day is None and clock is None:
            return None
        if day is None:
            day = today
        return datetime.combine(day, clock or time(0, 0)).replace(
            tzinfo=local_tz(tz_offset_minutes)
        )

    def _extract_day(self, text: str, today: date) -> Optional[date]:
        """
        Return the calendar day named in text, relative to today.

        Every expression family is searched and the one that starts first in
        the text wins; families listed earlier break ties at the same start.
        """
        text_lower = text.lower()
        candidates: List[Tuple[int, int, Callable[[], Optional[date]]]] = []

        def add(match, resolve):
            if match:
                candidates.append((match.start(), len(candidates), resolve))

        for pattern, offset in self.RELATIVE_DAYS:
            add(re.search(pattern, text_lower),
                lambda offset=offset: today + timedelta(days=offset))

        # "on friday", "next tuesday", "due sunday" and a bare "friday" alike
        for idx, day in enumerate(self.DAYS_OF_WEEK):
            add(re.search(rf'\b{day}\b', text_lower),
                lambda idx=idx: self._next_weekday(today, idx))

        in_days_match = re.search(r'\bin\s+(\d+)\s+days?\b', text_lower)
        add(in_days_match,
            lambda m=in_days_match: today + timedelta(days=int(m.group(1))))

        for pattern, date_format in self.EXPLICIT_PATTERNS:
            match = re.search(pattern, text_lower)
            add(match, lambda m=match, fmt=date_format: self._parse_explicit(m.group(1), fmt, today))

        for pattern in self.MONTH_DATE_PATTERNS:
            match = re.search(pattern, text_lower)
            add(match, lambda m=match: self._parse_month_date(m.group(0), today))

        for _, _, resolve in sorted(candidates, key=lambda c: (c[0], c[1])):
            day = resolve()
            if day is not None:
                return day
        return None

    @staticmethod
    def _next_weekday(today: date, weekday: int) -> date:
        """Next occurrence of weekday, never today"""
        days_ahead = weekday - today.weekday()
        if days_ahead <= 0:
            days_ahead += 7
        return today + timedelta(days=days_ahead)

    @staticmethod
    def _parse_explicit(date_str: str, date_format: str, today: date) -> Optional[date]:
        if date_format == '%m/%d':
            date_str = f"{date_str}/{today.year}"
            date_format = '%m/%d/%Y'
        try:
            return datetime.strptime(date_str, date_format).date()
        except ValueError:
            return None

    @staticmethod
    def _parse_month_date(date_str: str, today: date) -> Optional[date]:
        try:
            default = datetime(today.year, today.month, today.day)
            return date_parser.parse(date_str, default=default).date()
        except (ValueError, OverflowError):
            return None

    def _extract_time(self, text: str) -> Optional[time]:
        """Return a wall-clock time mentioned in text (at 5pm, 17:30, 9am)."""
        text_lower = text.lower()
        for pattern in self.TIME_PATTERNS:
            match = re.search(pattern, text_lower)
            if not match:
                continue
            groups = match.groups()
            if len(groups) == 2:
                hour, minute, meridiem = int(groups[0]), 0, groups[1]
            else:
                hour = int(groups[0])
                minute = int(groups[1]) if groups[1] else 0
                meridiem = groups[2]

            if meridiem == "pm" and hour < 12:
                hour += 12
            elif meridiem == "am" and hour == 12:
                hour = 0

            if 0 <= hour <= 23 and 0 <= minute <= 59:
                return time(hour, minute)
        return None
