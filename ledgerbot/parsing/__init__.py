"""Parsers for amounts, date ranges and superlatives found in user queries."""

from .amounts import parse_amount
from .dates import DateRange, all_time, current_year_to_date, parse_date_range
from .superlatives import Direction, Superlative, detect_superlative

__all__ = [
    "DateRange",
    "Direction",
    "Superlative",
    "all_time",
    "current_year_to_date",
    "detect_superlative",
    "parse_amount",
    "parse_date_range",
]
