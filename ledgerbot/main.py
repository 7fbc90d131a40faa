"""Main entry point for the ledgerbot query service."""

import asyncio
import logging
import sys
from datetime import timedelta

from dotenv import load_dotenv

from ledgerbot.config import Settings, get_settings
from ledgerbot.handlers import CategoryRouter
from ledgerbot.llm.factory import create_insight_provider, create_understanding_providers
from ledgerbot.query.classifier import IntentClassifier
from ledgerbot.query.formatting import SyncStamp
from ledgerbot.query.orchestrator import QueryOrchestrator
from ledgerbot.query.processors import CategoryProcessors
from ledgerbot.query.sales import SalesPurchaseAggregator
from ledgerbot.sources import (
    AccountingSource,
    AnalyticsSink,
    BoundedAccountingSource,
    BridgeAccountingSource,
    BridgeConfig,
    InMemoryTransactionStore,
    LoggingAnalyticsSink,
    OfflineAccountingSource,
    TransactionStore,
)
from ledgerbot.state import ClientPreferences, ContextStore, QueryCache
from ledgerbot.understanding import KnowledgeBase, LLMUnderstandingBackend, UnderstandingAdapter
from ledgerbot.web_server import WebServer

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


def build_source(settings: Settings) -> AccountingSource:
    """Bridge-backed source when a bridge URL is set, otherwise an offline one."""
    if settings.bridge_url:
        source: AccountingSource = BridgeAccountingSource(
            BridgeConfig(
                base_url=settings.bridge_url,
                token=settings.bridge_token,
                timeout=settings.source_timeout_seconds,
            )
        )
    else:
        logger.warning("No BRIDGE_URL configured, live accounting queries are disabled")
        source = OfflineAccountingSource()
    return BoundedAccountingSource(source, timeout=settings.source_timeout_seconds)


def build_store(settings: Settings) -> tuple[TransactionStore, AnalyticsSink]:
    """Supabase store and analytics when credentials are set, in-memory stand-ins otherwise."""
    if settings.supabase_url and settings.supabase_key:
        from ledgerbot.sources.supabase import (
            SupabaseAnalyticsSink,
            SupabaseConfig,
            SupabaseTransactionStore,
        )

        store = SupabaseTransactionStore(
            SupabaseConfig(url=settings.supabase_url, key=settings.supabase_key)
        )
        return store, SupabaseAnalyticsSink(store.client)

    logger.warning("No Supabase credentials configured, replicated data is unavailable")
    return InMemoryTransactionStore(configured=False), LoggingAnalyticsSink()


def build_orchestrator(settings: Settings) -> QueryOrchestrator:
    """Wire every pipeline component from settings."""
    source = build_source(settings)
    store, analytics = build_store(settings)
    preferences = ClientPreferences()
    processors = CategoryProcessors(store, preferences)

    backends = [
        LLMUnderstandingBackend(provider, name=name)
        for name, provider in create_understanding_providers()
    ]
    logger.info(f"Understanding backends: {[backend.name for backend in backends] or 'none'}")

    try:
        insight_provider = create_insight_provider()
    except ValueError as e:
        logger.warning(f"Sales insights disabled: {e}")
        insight_provider = None

    stamp = SyncStamp(
        utc_offset_minutes=settings.display_utc_offset_minutes,
        label=settings.display_timezone_label,
    )
    cache_ttl = (
        timedelta(minutes=settings.cache_ttl_minutes) if settings.cache_ttl_minutes else None
    )

    return QueryOrchestrator(
        router=CategoryRouter(source, stamp=stamp),
        processors=processors,
        aggregator=SalesPurchaseAggregator(
            store,
            insight_provider=insight_provider,
            insight_timeout=settings.understanding_timeout_seconds,
        ),
        adapter=UnderstandingAdapter(
            source,
            processors,
            backends=backends,
            knowledge_base=KnowledgeBase(),
            timeout=settings.understanding_timeout_seconds,
        ),
        classifier=IntentClassifier(),
        contexts=ContextStore(ttl=timedelta(minutes=settings.context_ttl_minutes)),
        cache=QueryCache(max_entries=settings.cache_max_entries, ttl=cache_ttl),
        preferences=preferences,
        analytics=analytics,
    )


async def main() -> None:
    """Main application entry point."""
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, settings.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.info(f"Starting ledgerbot in {settings.environment.value} mode")

    # Validate configuration
    try:
        settings.validate_provider_config()
    except ValueError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    orchestrator = build_orchestrator(settings)
    orchestrator.contexts.start_sweeper(
        timedelta(minutes=settings.context_sweep_interval_minutes),
        extra=orchestrator.cache.sweep,
    )

    web_server = WebServer(orchestrator, host=settings.web_host, port=settings.web_port)
    web_runner = await web_server.start()

    try:
        await asyncio.Event().wait()
    finally:
        logger.info("Shutting down...")
        await orchestrator.contexts.stop_sweeper()
        await orchestrator.drain()
        await web_server.stop(web_runner)


if __name__ == "__main__":
    asyncio.run(main())
