"""Tries understanding backends in order, then the knowledge base."""

import asyncio
import logging
from typing import Any

from ledgerbot.errors import NotConnectedError
from ledgerbot.handlers.base import row_value
from ledgerbot.query.formatting import format_inr
from ledgerbot.query.models import (
    MessageResult,
    QueryRequest,
    QueryResponse,
    ResponseCategory,
    RowsResult,
)
from ledgerbot.query.processors import CategoryProcessors
from ledgerbot.sources.base import AccountingSource
from ledgerbot.understanding.base import (
    Suggestion,
    SuggestionType,
    UnderstandingBackend,
    UnderstandingContext,
)
from ledgerbot.understanding.knowledge_base import KnowledgeBase, format_match

logger = logging.getLogger(__name__)

MIN_QUERY_LENGTH = 3
DISPLAY_ROWS = 10

_NAME_COLUMNS = ("LEDGER_NAME", "ACCOUNT_NAME", "STOCK_ITEM_NAME", "CUSTOMER_NAME", "COMPANY_NAME", "Name")
_AMOUNT_COLUMNS = ("BALANCE", "AMOUNT", "STOCK_AMOUNT", "OUTSTANDING_AMOUNT", "SALES_AMOUNT", "ClosingBalance")


def format_rows(suggestion: Suggestion, rows: list[dict[str, Any]]) -> str:
    lines = [f"🤖 **AI Query Result:** {suggestion.explanation}", ""]
    for i, row in enumerate(rows[:DISPLAY_ROWS], 1):
        name = row_value(row, *_NAME_COLUMNS, default="Unknown")
        amount = row_value(row, *_AMOUNT_COLUMNS, default=0)
        shown = format_inr(amount) if isinstance(amount, (int, float)) else str(amount)
        lines.append(f"{i}. **{name}**: {shown}")
    if len(rows) > DISPLAY_ROWS:
        lines += ["", f"...and {len(rows) - DISPLAY_ROWS} more records."]
    if suggestion.business_insights:
        lines += ["", f"💡 **Business Insights:** {suggestion.business_insights}"]
    return "\n".join(lines)


class UnderstandingAdapter:
    """Turns backend suggestions into answers.

    Backends are tried in order. A backend that fails, times out or only
    explains is skipped. When none yields an answer, the rule-based
    knowledge base is consulted.
    """

    def __init__(
        self,
        source: AccountingSource,
        processors: CategoryProcessors,
        backends: list[UnderstandingBackend] | None = None,
        knowledge_base: KnowledgeBase | None = None,
        timeout: float = 30.0,
    ) -> None:
        self.source = source
        self.processors = processors
        self.backends = list(backends or [])
        self.knowledge_base = knowledge_base or KnowledgeBase()
        self.timeout = timeout

    async def resolve(self, request: QueryRequest, query: str) -> QueryResponse | None:
        """Answer a query, or None to let the next strategy try.

        Raises:
            NotConnectedError: A matched query needs the accounting source and it is offline
        """
        if len(query.strip()) <= MIN_QUERY_LENGTH:
            return None

        context = UnderstandingContext(
            tenant_id=request.tenant_id, connected=await self.source.is_connected()
        )

        for backend in self.backends:
            suggestion = await self._ask(backend, query, context)
            if suggestion is None or not suggestion.actionable:
                continue
            response = await self._act(request, suggestion)
            if response is not None:
                logger.info(f"Understanding backend {backend.name} answered with {suggestion.type.value}")
                return response

        return await self._from_knowledge_base(request, query, context)

    async def _ask(
        self, backend: UnderstandingBackend, query: str, context: UnderstandingContext
    ) -> Suggestion | None:
        try:
            return await asyncio.wait_for(backend.attempt(query, context), timeout=self.timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Understanding backend {backend.name} timed out after {self.timeout}s")
        except Exception as e:
            logger.warning(f"Understanding backend {backend.name} failed: {e}")
        return None

    async def _act(self, request: QueryRequest, suggestion: Suggestion) -> QueryResponse | None:
        if suggestion.type == SuggestionType.SQL:
            return await self._execute(suggestion)

        if suggestion.type == SuggestionType.SMART_QUERY:
            response = await self.processors.ledger(
                request.tenant_id, suggestion.search_term, search_term=suggestion.search_term
            )
            if not response.success:
                return None
            if suggestion.business_insights:
                response.human_text += f"\n\n🤖 **AI Insights:** {suggestion.business_insights}"
            return response

        text = f"🤖 **AI Analysis:** {suggestion.explanation}"
        if suggestion.business_insights:
            text += f"\n\n{suggestion.business_insights}"
        return QueryResponse(
            success=True,
            category=ResponseCategory.ANALYTICAL,
            data=MessageResult(intent="analysis"),
            human_text=text,
            suggestions=suggestion.follow_up_questions or None,
        )

    async def _execute(self, suggestion: Suggestion) -> QueryResponse | None:
        result = await self.source.execute_query(suggestion.sql)
        if not result.success:
            logger.warning(f"Generated query failed: {result.error}")
            return None
        if not result.rows:
            return QueryResponse(
                success=True,
                category=ResponseCategory.GENERAL,
                human_text=f"🤖 Query executed but no data found. {suggestion.explanation}".rstrip(),
            )
        return QueryResponse(
            success=True,
            category=ResponseCategory.ANALYTICAL,
            data=RowsResult(query=suggestion.sql, rows=result.rows, total_rows=len(result.rows)),
            human_text=format_rows(suggestion, result.rows),
            suggestions=suggestion.follow_up_questions or None,
        )

    async def _from_knowledge_base(
        self, request: QueryRequest, query: str, context: UnderstandingContext
    ) -> QueryResponse | None:
        match = self.knowledge_base.match(query)
        if match is None:
            return None
        if not context.connected:
            raise NotConnectedError()

        if match.category == "sales":
            return await self.processors.analytical(request.tenant_id, query)

        result = await self.source.execute_query(match.sql)
        if not (result.success and result.rows):
            logger.info(f"Knowledge base query for {match.intent} returned no rows")
            return None
        return format_match(match, result.rows)
