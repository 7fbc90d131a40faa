"""Time-bounded wrapper around any accounting source."""

import asyncio
import logging

from ledgerbot.sources.base import AccountingSource, SourceResult

logger = logging.getLogger(__name__)


class BoundedAccountingSource(AccountingSource):
    """Caps every read on the wrapped source at a fixed timeout.

    A timed-out read is reported as an unsuccessful result so callers can
    move on to their next strategy. Connection failures still raise.
    """

    def __init__(self, source: AccountingSource, timeout: float = 30.0) -> None:
        self.source = source
        self.timeout = timeout

    async def is_connected(self) -> bool:
        try:
            return await asyncio.wait_for(self.source.is_connected(), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Accounting source status check timed out after {self.timeout}s")
            return False

    async def execute_query(self, query: str) -> SourceResult:
        try:
            return await asyncio.wait_for(self.source.execute_query(query), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Accounting query timed out after {self.timeout}s: {query[:80]}")
            return SourceResult(success=False, error=f"Query timed out after {self.timeout}s")
