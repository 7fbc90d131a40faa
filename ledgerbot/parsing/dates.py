"""Natural-language date range parsing for English, Hindi and Hinglish queries."""

import calendar
import re
from dataclasses import dataclass
from datetime import date, timedelta

EPOCH = date(1970, 1, 1)

MONTH_ALIASES: dict[int, list[str]] = {
    1: ["january", "jan", "janu", "jaunary", "janury"],
    2: ["february", "feb", "febr", "feburary", "februry"],
    3: ["march", "mar", "marc"],
    4: ["april", "apr", "aprl"],
    5: ["may"],
    6: ["june", "jun"],
    7: ["july", "jul", "jly"],
    8: ["august", "aug", "agust"],
    9: ["september", "sep", "sept", "setember"],
    10: ["october", "oct", "octo", "octber"],
    11: ["november", "nov", "novem", "novmber"],
    12: ["december", "dec", "decem", "decmber"],
}

_ALIAS_TO_MONTH = {
    alias: month for month, aliases in MONTH_ALIASES.items() for alias in aliases
}


def _phrases(*phrases: str) -> re.Pattern[str]:
    alternatives = "|".join(re.escape(phrase).replace(r"\ ", r"\s+") for phrase in phrases)
    return re.compile(rf"\b(?:{alternatives})\b", re.IGNORECASE)


_TILL_NOW_RE = _phrases("till now", "till date", "till today", "so far", "ab tak", "until now")
_TODAY_RE = _phrases("today", "aaj")
_YESTERDAY_RE = _phrases("yesterday", "kal")
_THIS_WEEK_RE = _phrases("this week", "is week", "is hafte")
_LAST_WEEK_RE = _phrases("last week", "pichle week", "pichle hafte")
_THIS_MONTH_RE = _phrases("this month", "is month", "is mahine")
_LAST_MONTH_RE = _phrases("last month", "pichle month", "pichle mahine")
_THIS_YEAR_RE = _phrases("this year", "is year", "is saal")
_LAST_YEAR_RE = _phrases("last year", "pichle year", "pichle saal")
_LAST_N_DAYS_RE = re.compile(r"\blast\s+(\d+)\s+days?\b", re.IGNORECASE)
_YEAR_RE = re.compile(r"\b(20\d{2})\b")
_MONTH_RE = re.compile(
    r"\b(" + "|".join(sorted(_ALIAS_TO_MONTH, key=len, reverse=True)) + r")\b",
    re.IGNORECASE,
)

# (month word group, week number group)
_WEEK_PATTERNS = [
    (re.compile(r"\b([a-z]+)\s+(\d+)(?:st|nd|rd|th)\s+week\b", re.IGNORECASE), 1, 2),
    (re.compile(r"\b(\d+)(?:st|nd|rd|th)\s+week\s+of\s+([a-z]+)\b", re.IGNORECASE), 2, 1),
    (re.compile(r"\bweek\s+(\d+)\s+of\s+([a-z]+)\b", re.IGNORECASE), 2, 1),
]


def format_display_date(value: date) -> str:
    """Format a date as ``1 Jul 2023``."""
    return f"{value.day} {value.strftime('%b')} {value.year}"


@dataclass(frozen=True)
class DateRange:
    """Inclusive calendar date range."""

    start_date: date
    end_date: date

    def describe(self) -> str:
        """Human readable period, e.g. ``1 Jul 2023 to 31 Jul 2023``."""
        start = format_display_date(self.start_date)
        end = format_display_date(self.end_date)
        if start == end:
            return start
        return f"{start} to {end}"


def _start_of_week(today: date) -> date:
    # Weeks start on Sunday
    days_since_sunday = (today.weekday() + 1) % 7
    return today - timedelta(days=days_since_sunday)


def _month_range(year: int, month: int) -> DateRange:
    last_day = calendar.monthrange(year, month)[1]
    return DateRange(date(year, month, 1), date(year, month, last_day))


def _previous_month(today: date) -> tuple[int, int]:
    if today.month == 1:
        return today.year - 1, 12
    return today.year, today.month - 1


def week_of_month(year: int, month: int, week: int) -> DateRange | None:
    """Range for the nth 7-day block of a month, or None if week is outside 1..5."""
    if not 1 <= week <= 5:
        return None
    last_day = calendar.monthrange(year, month)[1]
    start_day = (week - 1) * 7 + 1
    if start_day > last_day:
        return None
    end_day = min(start_day + 6, last_day)
    return DateRange(date(year, month, start_day), date(year, month, end_day))


def _parse_week_of_month(query: str, year: int) -> DateRange | None:
    for pattern, month_group, week_group in _WEEK_PATTERNS:
        match = pattern.search(query)
        if not match:
            continue
        month = _ALIAS_TO_MONTH.get(match.group(month_group).lower())
        if month is None:
            continue
        return week_of_month(year, month, int(match.group(week_group)))
    return None


def parse_date_range(query: str, today: date | None = None) -> DateRange | None:
    """Extract a date range from a free-text query.

    Expressions are tried in a fixed priority order and the first match wins:
    till now, today, yesterday, this week, last week, this month, last month,
    a named month (optionally narrowed to an nth week), last N days, this year,
    last year.

    Args:
        query: Free-text query
        today: Reference date, defaults to the current date

    Returns:
        DateRange, or None if no temporal expression is recognized
    """
    today = today or date.today()
    text = query.lower()

    if _TILL_NOW_RE.search(text):
        return DateRange(EPOCH, today)

    if _TODAY_RE.search(text):
        return DateRange(today, today)

    if _YESTERDAY_RE.search(text):
        yesterday = today - timedelta(days=1)
        return DateRange(yesterday, yesterday)

    if _THIS_WEEK_RE.search(text):
        return DateRange(_start_of_week(today), today)

    if _LAST_WEEK_RE.search(text):
        start = _start_of_week(today) - timedelta(days=7)
        return DateRange(start, start + timedelta(days=6))

    if _THIS_MONTH_RE.search(text):
        return DateRange(date(today.year, today.month, 1), today)

    if _LAST_MONTH_RE.search(text):
        year, month = _previous_month(today)
        return _month_range(year, month)

    month_match = _MONTH_RE.search(text)
    if month_match:
        year_match = _YEAR_RE.search(text)
        year = int(year_match.group(1)) if year_match else today.year
        week_range = _parse_week_of_month(text, year)
        if week_range:
            return week_range
        return _month_range(year, _ALIAS_TO_MONTH[month_match.group(1).lower()])

    days_match = _LAST_N_DAYS_RE.search(text)
    if days_match:
        return DateRange(today - timedelta(days=int(days_match.group(1))), today)

    if _THIS_YEAR_RE.search(text):
        return DateRange(date(today.year, 1, 1), today)

    if _LAST_YEAR_RE.search(text):
        return DateRange(date(today.year - 1, 1, 1), date(today.year - 1, 12, 31))

    return None


def current_year_to_date(today: date) -> DateRange:
    """January 1st of the current year through today."""
    return DateRange(date(today.year, 1, 1), today)


def all_time(today: date) -> DateRange:
    """Everything from the epoch through today."""
    return DateRange(EPOCH, today)
