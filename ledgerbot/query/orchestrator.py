"""Query resolution pipeline.

A query is offered to each strategy in turn. The first strategy that returns
a Resolution answers it. Afterwards cacheable answers are memoized, the
conversation context is updated and an analytics event is written in the
background. ``resolve_query`` always returns a QueryResponse.
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Awaitable, Callable

from ledgerbot.errors import InvalidSelectionError, NotConnectedError
from ledgerbot.handlers import CategoryRouter
from ledgerbot.query.classifier import IntentClassifier
from ledgerbot.query.models import (
    LedgerResult,
    MessageResult,
    QueryRequest,
    QueryResponse,
    ResponseCategory,
    selectable_records,
)
from ledgerbot.query.processors import CategoryProcessors, disambiguation_text, selection_text
from ledgerbot.query.sales import (
    SalesPurchaseAggregator,
    is_purchase_order_query,
    is_purchase_query,
    is_sales_query,
)
from ledgerbot.sources.base import AnalyticsEvent, AnalyticsSink, TransactionKind
from ledgerbot.state.cache import QueryCache
from ledgerbot.state.context import ContextStore
from ledgerbot.state.preferences import (
    SHORTCUTS_HELP,
    ClientPreferences,
    expand_shortcuts,
    is_shortcuts_help,
)
from ledgerbot.understanding.adapter import UnderstandingAdapter

logger = logging.getLogger(__name__)

ERROR_TEXT = "Sorry, I encountered an error processing your query. Please rephrase and try again."

NOT_CONNECTED_TEXT = (
    "🔌 **Not connected to Tally**\n\n"
    "I couldn't reach your accounting data to answer this.\n\n"
    "💡 **Next steps:**\n"
    '• Start Tally with ODBC enabled\n'
    '• Click "Connect to Tally" in the app\n'
    "• Ask your question again once connected"
)

CHAIN_CATEGORIES = {
    "company information": ResponseCategory.COMPANY,
    "sales": ResponseCategory.LEDGER,
    "purchase": ResponseCategory.LEDGER,
    "outstanding": ResponseCategory.LEDGER,
    "cash & bank": ResponseCategory.LEDGER,
    "ledger": ResponseCategory.LEDGER,
    "analytical": ResponseCategory.ANALYTICAL,
    "inventory": ResponseCategory.INVENTORY,
    "reminder": ResponseCategory.REMINDERS,
}


def chain_response_category(display_name: str | None) -> ResponseCategory:
    """Map a handler chain category to the category reported to the caller."""
    return CHAIN_CATEGORIES.get((display_name or "").lower(), ResponseCategory.GENERAL)


@dataclass
class Resolution:
    """A strategy's answer and whether it may be served from cache next time."""

    response: QueryResponse
    cacheable: bool = False


Strategy = Callable[[QueryRequest, str], Awaitable[Resolution | None]]


class QueryOrchestrator:
    """Resolves natural-language accounting questions."""

    def __init__(
        self,
        router: CategoryRouter,
        processors: CategoryProcessors,
        aggregator: SalesPurchaseAggregator,
        adapter: UnderstandingAdapter | None = None,
        classifier: IntentClassifier | None = None,
        contexts: ContextStore | None = None,
        cache: QueryCache | None = None,
        preferences: ClientPreferences | None = None,
        analytics: AnalyticsSink | None = None,
    ) -> None:
        self.router = router
        self.processors = processors
        self.aggregator = aggregator
        self.adapter = adapter
        self.classifier = classifier or IntentClassifier()
        self.contexts = contexts if contexts is not None else ContextStore()
        self.cache = cache if cache is not None else QueryCache()
        self.preferences = preferences if preferences is not None else processors.preferences
        self.analytics = analytics
        self._background: set[asyncio.Task] = set()

        self.strategies: list[Strategy] = [
            self._continuation,
            self._shortcut_help,
            self._purchase_orders,
            self._sales_and_purchases,
            self._cached,
            self._understanding,
            self._category_chain,
            self._classified,
        ]

    async def resolve_query(self, request: QueryRequest) -> QueryResponse:
        """Answer a query. Never raises."""
        start_time = time.time()
        logger.info(f"Processing query for tenant {request.tenant_id}: {request.text}")

        try:
            resolution = await self._resolve(request)
        except Exception as e:
            logger.error(f"Query resolution failed: {e}", exc_info=True)
            resolution = Resolution(self._error_response())

        response = resolution.response
        try:
            self._remember(request, resolution)
        except Exception as e:
            logger.error(f"Failed to store conversation state: {e}", exc_info=True)

        response.elapsed_ms = (time.time() - start_time) * 1000
        self._record_analytics(request, response)
        logger.info(
            f"Query answered as {response.category.value} in {response.elapsed_ms:.0f}ms "
            f"(success={response.success}, cache_hit={response.cache_hit})"
        )
        return response

    async def _resolve(self, request: QueryRequest) -> Resolution:
        query = expand_shortcuts(request.text)
        disconnected = False
        last: Resolution | None = None

        for strategy in self.strategies:
            try:
                resolution = await strategy(request, query)
            except NotConnectedError as e:
                logger.warning(f"{strategy.__name__} needs the accounting source: {e}")
                disconnected = True
                continue
            except Exception as e:
                logger.error(f"{strategy.__name__} failed: {e}", exc_info=True)
                continue

            if resolution is not None:
                last = resolution
                break

        if last is None:
            if disconnected:
                return Resolution(self._not_connected_response())
            return Resolution(self._error_response())

        if not last.response.success and disconnected:
            return Resolution(self._not_connected_response())
        return last

    def _remember(self, request: QueryRequest, resolution: Resolution) -> None:
        response = resolution.response
        if not response.success:
            return

        if resolution.cacheable:
            self.cache.put(request.tenant_id, request.text, response.data, response.human_text)

        self.contexts.update(
            request.conversation_key,
            request.tenant_id,
            query_text=request.text,
            response_text=response.human_text,
            category=response.category.value,
            result_set=selectable_records(response.data),
        )

    def _record_analytics(self, request: QueryRequest, response: QueryResponse) -> None:
        if self.analytics is None:
            return
        event = AnalyticsEvent(
            tenant_id=request.tenant_id,
            query_type=response.category.value,
            query_text=request.text,
            response_time_ms=response.elapsed_ms,
            cache_hit=response.cache_hit,
            channel_id=request.channel_id,
        )
        task = asyncio.create_task(self._write_event(event))
        self._background.add(task)
        task.add_done_callback(self._background.discard)

    async def _write_event(self, event: AnalyticsEvent) -> None:
        try:
            await self.analytics.record(event)
        except Exception as e:
            logger.debug(f"Analytics write failed: {e}")

    async def drain(self) -> None:
        """Wait for pending analytics writes."""
        if self._background:
            await asyncio.gather(*self._background, return_exceptions=True)

    # Strategies, tried in order

    async def _continuation(self, request: QueryRequest, query: str) -> Resolution | None:
        key, tenant_id = request.conversation_key, request.tenant_id
        if not self.contexts.is_continuation(key, tenant_id, request.text):
            return None

        try:
            selection = self.contexts.select(key, tenant_id, request.text)
        except InvalidSelectionError as e:
            return Resolution(
                QueryResponse(
                    success=False,
                    category=ResponseCategory.ERROR,
                    human_text=e.user_message,
                )
            )

        candidates = self.contexts.get(key, tenant_id).last_result_set or []
        if selection is None:
            return Resolution(
                QueryResponse(
                    success=True,
                    category=ResponseCategory.LEDGER,
                    data=LedgerResult(records=candidates),
                    human_text=disambiguation_text(candidates),
                )
            )

        ledger = selection.item
        logger.info(f"Continuation picked candidate {selection.index + 1} of {len(candidates)}")
        self.preferences.add_to_last_used(tenant_id, ledger.name)
        return Resolution(
            QueryResponse(
                success=True,
                category=ResponseCategory.LEDGER,
                data=LedgerResult(records=[ledger]),
                human_text=selection_text(ledger),
            )
        )

    async def _shortcut_help(self, request: QueryRequest, query: str) -> Resolution | None:
        if not is_shortcuts_help(query):
            return None
        return Resolution(
            QueryResponse(
                success=True,
                category=ResponseCategory.GENERAL,
                data=MessageResult(intent="shortcuts"),
                human_text=SHORTCUTS_HELP,
            )
        )

    async def _purchase_orders(self, request: QueryRequest, query: str) -> Resolution | None:
        if not (is_purchase_order_query(query) and self.aggregator.store.is_configured):
            return None
        return Resolution(await self.aggregator.purchase_orders(request.tenant_id, query))

    async def _sales_and_purchases(self, request: QueryRequest, query: str) -> Resolution | None:
        if not self.aggregator.store.is_configured:
            return None
        if is_sales_query(query):
            kind = TransactionKind.SALES
        elif is_purchase_query(query):
            kind = TransactionKind.PURCHASE
        else:
            return None
        return Resolution(
            await self.aggregator.summarize_transactions(request.tenant_id, query, kind)
        )

    async def _cached(self, request: QueryRequest, query: str) -> Resolution | None:
        entry = self.cache.get(request.tenant_id, request.text)
        if entry is None:
            return None
        logger.info("Serving cached answer")
        return Resolution(
            QueryResponse(
                success=True,
                category=ResponseCategory.CACHED,
                data=entry.data,
                human_text=entry.human_text,
                cache_hit=True,
            )
        )

    async def _understanding(self, request: QueryRequest, query: str) -> Resolution | None:
        if self.adapter is None:
            return None
        response = await self.adapter.resolve(request, query)
        if response is None:
            return None
        return Resolution(response, cacheable=True)

    async def _category_chain(self, request: QueryRequest, query: str) -> Resolution | None:
        result = await self.router.resolve(query)
        if result is None or not result.success:
            return None
        return Resolution(
            QueryResponse(
                success=True,
                category=chain_response_category(result.category),
                data=result.data,
                human_text=result.text,
            ),
            cacheable=True,
        )

    async def _classified(self, request: QueryRequest, query: str) -> Resolution | None:
        intent = self.classifier.classify(query)
        logger.info(f"Classified query as {intent.value}")
        response = await self.processors.process(intent, request.tenant_id, query)
        return Resolution(response, cacheable=True)

    @staticmethod
    def _error_response() -> QueryResponse:
        return QueryResponse(success=False, category=ResponseCategory.ERROR, human_text=ERROR_TEXT)

    @staticmethod
    def _not_connected_response() -> QueryResponse:
        return QueryResponse(
            success=False,
            category=ResponseCategory.ERROR,
            human_text=NOT_CONNECTED_TEXT,
            suggestions=["Connect to Tally", "Check ODBC settings", "Try again after connecting"],
        )
