"""
Natural-language helpers: smart-text parsing and date extraction.
"""

from .date_extractor import DateExtractor, KeywordDateExtractor
from .smart_parser import SmartParseResult, parse_smart_input, apply_smart_input

__all__ = [
    'DateExtractor',
    'KeywordDateExtractor',
    'SmartParseResult',
    'parse_smart_input',
    'apply_smart_input',
]
