"""Normalization of balance values coming from the accounting source."""

import math
import re
from decimal import Decimal
from typing import Any

PLACEHOLDERS = {"", "—", "-"}

_CURRENCY_PREFIX_RE = re.compile(r"^(?:rs\.?|inr)\s*", re.IGNORECASE)
_STRIP_RE = re.compile(r"[₹,\s]")
_NUMBER_RE = re.compile(r"[\d.-]+")


def parse_amount(value: Any) -> float:
    """Parse a balance into a signed number.

    Accepts numbers, ``None``, placeholders such as ``"—"`` and currency strings
    like ``"₹12,63,844.06 Dr"`` or ``"Rs. 500"``. A leading ``Rs``/``INR`` is
    dropped. A ``Dr`` marker forces the value positive and a ``Cr`` marker
    forces it negative. Anything that cannot be read is ``0.0``.

    Args:
        value: Raw value from a source row

    Returns:
        Signed amount, debit positive and credit negative
    """
    if value is None:
        return 0.0

    if isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
        return number if math.isfinite(number) else 0.0

    if not isinstance(value, str):
        return 0.0

    text = value.strip()
    if text in PLACEHOLDERS:
        return 0.0

    cleaned = _STRIP_RE.sub("", _CURRENCY_PREFIX_RE.sub("", text))
    match = _NUMBER_RE.search(cleaned)
    if not match:
        return 0.0

    try:
        number = float(match.group(0))
    except ValueError:
        return 0.0

    if not math.isfinite(number):
        return 0.0

    if "Dr" in cleaned:
        return abs(number)
    if "Cr" in cleaned:
        return -abs(number)
    return number
