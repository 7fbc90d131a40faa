"""Shared types and helpers for category handlers."""

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Any, Awaitable, Callable

from pydantic import BaseModel

from ledgerbot.query.formatting import SyncStamp
from ledgerbot.query.models import ResultData
from ledgerbot.sources.base import AccountingSource, LedgerRecord

logger = logging.getLogger(__name__)


@dataclass
class HandlerContext:
    """Everything a handler needs to answer from the accounting source."""

    source: AccountingSource
    stamp: SyncStamp = field(default_factory=SyncStamp)
    today: Callable[[], date] = date.today


class HandlerResult(BaseModel):
    """Outcome of one handler. Unsuccessful results let the next handler run."""

    success: bool
    text: str
    data: ResultData | None = None
    category: str | None = None


Handler = Callable[[HandlerContext, str], Awaitable[HandlerResult]]


@dataclass(frozen=True)
class CategoryDefinition:
    """A chain category with its handlers in the order they are tried.

    ``triggers`` are exact phrases checked across all categories first.
    ``keywords`` are broader words checked only when no trigger matched.
    """

    id: str
    display_name: str
    keywords: tuple[str, ...]
    handlers: tuple[Handler, ...]
    triggers: tuple[str, ...] = ()


def row_value(row: dict[str, Any], *keys: str, default: Any = None) -> Any:
    """Read a column from a source row.

    Rows use ``$Name`` style columns, plain ``Name`` or lowercase aliases
    depending on the query. The first non-empty match wins.
    """
    for key in keys:
        for candidate in (f"${key}", key, key.lower()):
            value = row.get(candidate)
            if value not in (None, ""):
                return value
    return default


def ledger_from_row(row: dict[str, Any]) -> LedgerRecord:
    return LedgerRecord(
        name=str(row_value(row, "Name", "account_name", "name", default="Unknown Account")),
        parent=str(row_value(row, "Parent", "account_group", "parent", default="")),
        closing_balance=row_value(row, "ClosingBalance", "balance", "amount", default=0),
    )


async def first_rows(source: AccountingSource, queries: list[str]) -> list[dict[str, Any]]:
    """Run queries in order and return the rows of the first one that yields any."""
    for sql in queries:
        result = await source.execute_query(sql)
        if result.success and result.rows:
            return result.rows
        if result.error:
            logger.debug(f"Query returned no rows ({result.error}): {sql[:80]}")
    return []


def failure(text: str) -> HandlerResult:
    return HandlerResult(success=False, text=text)
