"""Rupee amounts, lakh/crore figures and the last-synced stamp."""

from datetime import datetime, timedelta, timezone
from typing import Callable

LAKH = 100_000
CRORE = 10_000_000


def _group_indian(integer: int) -> str:
    # 12,34,56,789: last three digits, then pairs
    digits = str(integer)
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    groups = []
    while len(head) > 2:
        groups.insert(0, head[-2:])
        head = head[:-2]
    if head:
        groups.insert(0, head)
    return ",".join([*groups, tail])


def format_inr(amount: float, decimals: int | None = None, symbol: bool = True) -> str:
    """Format an amount with Indian digit grouping.

    Args:
        amount: Value to format
        decimals: Fixed number of decimals, or None to show up to two and drop trailing zeros
        symbol: Prefix with the rupee sign

    Returns:
        Text such as ``₹12,63,844.06``
    """
    negative = amount < 0
    places = 2 if decimals is None else decimals
    text = f"{abs(amount):.{places}f}"
    integer, _, fraction = text.partition(".")
    if decimals is None:
        fraction = fraction.rstrip("0")

    grouped = _group_indian(int(integer))
    if fraction:
        grouped = f"{grouped}.{fraction}"
    prefix = "₹" if symbol else ""
    return f"-{prefix}{grouped}" if negative else f"{prefix}{grouped}"


def format_balance(balance: float) -> str:
    """Render a signed balance as ``₹1,234 Dr`` or ``₹1,234 Cr``."""
    marker = "Dr" if balance >= 0 else "Cr"
    return f"{format_inr(abs(balance))} {marker}"


def format_compact(amount: float) -> str:
    """Render large amounts in crore or lakh, e.g. ``₹1.25 Cr`` or ``₹3.40 L``."""
    value = abs(amount)
    sign = "-" if amount < 0 else ""
    if value >= CRORE:
        return f"{sign}₹{value / CRORE:.2f} Cr"
    if value >= LAKH:
        return f"{sign}₹{value / LAKH:.2f} L"
    return f"{sign}{format_inr(value, decimals=0)}"


class SyncStamp:
    """Builds the last-synced footer in the display timezone."""

    def __init__(
        self,
        utc_offset_minutes: int = 330,
        label: str = "IST",
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self.offset = timedelta(minutes=utc_offset_minutes)
        self.label = label
        self.clock = clock or (lambda: datetime.now(timezone.utc))

    def now(self) -> datetime:
        current = self.clock()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(timezone(self.offset))

    def text(self) -> str:
        local = self.now()
        hour = local.hour % 12 or 12
        meridiem = "AM" if local.hour < 12 else "PM"
        return (
            f"{local.day} {local.strftime('%b')} {local.year}, "
            f"{hour:02d}:{local.minute:02d} {meridiem}"
        )

    def append(self, body: str) -> str:
        """Append the footer to a response body."""
        return f"{body}\n\n---\n🕒 **Last Synced:** {self.text()} {self.label}"
