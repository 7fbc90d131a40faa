"""Tests for wiring the pipeline from settings."""

from datetime import timedelta
from unittest.mock import patch

from ledgerbot.config import Settings
from ledgerbot.main import build_orchestrator
from ledgerbot.sources import InMemoryTransactionStore


@patch("ledgerbot.main.create_insight_provider", return_value=None)
@patch("ledgerbot.main.create_understanding_providers", return_value=[])
def test_state_policy_comes_from_settings(mock_backends, mock_insight):
    """Test context and cache limits are taken from settings."""
    settings = Settings(
        _env_file=None,
        supabase_url=None,
        context_ttl_minutes=30,
        cache_max_entries=5,
        cache_ttl_minutes=15,
    )

    orchestrator = build_orchestrator(settings)

    assert orchestrator.contexts.ttl == timedelta(minutes=30)
    assert orchestrator.cache.max_entries == 5
    assert orchestrator.cache.ttl == timedelta(minutes=15)


@patch("ledgerbot.main.create_insight_provider", return_value=None)
@patch("ledgerbot.main.create_understanding_providers", return_value=[])
def test_unset_cache_ttl_keeps_entries(mock_backends, mock_insight):
    """Test cache entries stay until cleared when no TTL is configured."""
    settings = Settings(_env_file=None, bridge_url=None, supabase_url=None, supabase_key=None)

    orchestrator = build_orchestrator(settings)

    assert orchestrator.cache.ttl is None
    assert orchestrator.cache.max_entries == 1000
    assert orchestrator.contexts.ttl == timedelta(minutes=10)
    assert isinstance(orchestrator.aggregator.store, InMemoryTransactionStore)
    assert not orchestrator.aggregator.store.is_configured
