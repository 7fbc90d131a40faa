"""Tests for conversation contexts, the query cache and tenant preferences."""

import asyncio
from datetime import timedelta

import pytest

from ledgerbot.errors import InvalidSelectionError
from ledgerbot.state import ClientPreferences, ContextStore, QueryCache, expand_shortcuts, is_shortcuts_help
from ledgerbot.state.context import is_continuation_phrase, selection_index

CANDIDATES = ["Sharma Traders", "Sharma Steel Works", "Sharma Logistics"]


class TestContextStore:
    """Test context lifecycle and continuation detection."""

    @pytest.fixture
    def contexts(self, clock):
        return ContextStore(ttl=timedelta(minutes=10), clock=clock)

    def test_created_lazily(self, contexts):
        assert contexts.peek("C1", "t1") is None
        context = contexts.get("C1", "t1")
        assert context.session_id.startswith("session-")
        assert context.last_category == ""
        assert contexts.get("C1", "t1") is context

    def test_update_extends_expiry(self, contexts, clock):
        contexts.update("C1", "t1", "sharma", "Found 3", "ledger", CANDIDATES)
        clock.advance(minutes=8)
        contexts.update("C1", "t1", "sharma", "Found 3", "ledger", CANDIDATES)
        clock.advance(minutes=8)
        assert contexts.peek("C1", "t1") is not None

    def test_expired_context_is_replaced(self, contexts, clock):
        first = contexts.update("C1", "t1", "sharma", "Found 3", "ledger", CANDIDATES)
        clock.advance(minutes=11)

        fresh = contexts.get("C1", "t1")
        assert fresh.session_id != first.session_id
        assert fresh.last_category == ""
        assert fresh.last_result_set is None

    def test_keys_are_isolated(self, contexts):
        contexts.update("C1", "t1", "sharma", "Found 3", "ledger", CANDIDATES)
        assert contexts.is_continuation("C1", "t1", "2")
        assert not contexts.is_continuation("C1", "t2", "2")
        assert not contexts.is_continuation("C2", "t1", "2")

    def test_continuation_needs_multiple_candidates(self, contexts):
        contexts.update("C1", "t1", "sharma", "one", "ledger", CANDIDATES[:1])
        assert not contexts.is_continuation("C1", "t1", "1")

    def test_continuation_needs_eligible_category(self, contexts):
        contexts.update("C1", "t1", "top", "list", "analytical", CANDIDATES)
        assert not contexts.is_continuation("C1", "t1", "1")

        contexts.update("C1", "t1", "sharma", "list", "cached", CANDIDATES)
        assert contexts.is_continuation("C1", "t1", "1")

    def test_select_by_number_and_ordinal(self, contexts):
        contexts.update("C1", "t1", "sharma", "Found 3", "ledger", CANDIDATES)

        assert contexts.select("C1", "t1", "2").item == "Sharma Steel Works"
        assert contexts.select("C1", "t1", "third").index == 2
        assert contexts.select("C1", "t1", "more") is None

    def test_out_of_range_selection(self, contexts):
        contexts.update("C1", "t1", "sharma", "Found 3", "ledger", CANDIDATES)

        with pytest.raises(InvalidSelectionError) as exc_info:
            contexts.select("C1", "t1", "5")
        assert exc_info.value.user_message == (
            "❌ Invalid selection. Please choose a number between 1 and 3."
        )

    def test_sweep(self, contexts, clock):
        contexts.update("C1", "t1", "a", "a", "ledger")
        clock.advance(minutes=5)
        contexts.update("C2", "t1", "b", "b", "ledger")
        clock.advance(minutes=6)

        assert contexts.sweep() == 1
        assert len(contexts) == 1

    @pytest.mark.asyncio
    async def test_background_sweeper(self, contexts, clock):
        contexts.update("C1", "t1", "a", "a", "ledger")
        clock.advance(minutes=11)
        swept = []

        contexts.start_sweeper(timedelta(seconds=0.01), extra=lambda: swept.append(True))
        await asyncio.sleep(0.05)
        await contexts.stop_sweeper()

        assert len(contexts) == 0
        assert swept


class TestContinuationPhrases:
    """Test the closed set of follow-up replies."""

    @pytest.mark.parametrize(
        "text", ["1", "10", "first", "Fifth", "more", "show me more", "details", "tell me details", "yes", "ok", "continue"]
    )
    def test_recognised(self, text):
        assert is_continuation_phrase(text)

    @pytest.mark.parametrize("text", ["0", "11", "sixth", "hello", "2 please"])
    def test_rejected(self, text):
        assert not is_continuation_phrase(text)

    def test_selection_index(self):
        assert selection_index("1") == 0
        assert selection_index("fourth") == 3
        assert selection_index("yes") is None


class TestQueryCache:
    """Test memoisation and eviction."""

    def test_hit_requires_verbatim_text(self):
        cache = QueryCache()
        cache.put("t1", "Bank Balance", {"rows": 1}, "₹100")

        assert cache.get("t1", "Bank Balance").human_text == "₹100"
        assert cache.get("t1", "bank balance") is None
        assert cache.get("t2", "Bank Balance") is None

    def test_entries_are_stable_without_ttl(self, clock):
        cache = QueryCache(clock=clock)
        cache.put("t1", "q", None, "answer")
        clock.advance(days=30)

        assert cache.get("t1", "q") is not None
        assert cache.sweep() == 0

    def test_lru_eviction(self):
        cache = QueryCache(max_entries=2)
        cache.put("t1", "a", None, "A")
        cache.put("t1", "b", None, "B")
        cache.get("t1", "a")
        cache.put("t1", "c", None, "C")

        assert cache.get("t1", "b") is None
        assert cache.get("t1", "a") is not None
        assert len(cache) == 2

    def test_ttl_expiry(self, clock):
        cache = QueryCache(ttl=timedelta(minutes=5), clock=clock)
        cache.put("t1", "a", None, "A")
        cache.put("t1", "b", None, "B")
        clock.advance(minutes=6)

        assert cache.get("t1", "a") is None
        assert cache.sweep() == 1
        assert len(cache) == 0

    def test_clear_per_tenant(self):
        cache = QueryCache()
        cache.put("t1", "a", None, "A")
        cache.put("t1", "b", None, "B")
        cache.put("t2", "a", None, "A")

        assert cache.clear("t1") == 2
        assert cache.get("t2", "a") is not None
        assert cache.clear() == 1


class TestShortcuts:
    """Test shortcut expansion."""

    @pytest.mark.parametrize(
        "query,expected",
        [
            ("details", "company details"),
            ("  Address ", "company address"),
            ("gst", "company gst"),
            ("recent", "quick access"),
            ("list", "list all ledger accounts"),
            ("highest", "highest balance"),
            ("sabse bada", "sabse bada closing balance"),
            ("highest balance", "highest balance"),
            ("sharma traders", "sharma traders"),
        ],
    )
    def test_expand(self, query, expected):
        assert expand_shortcuts(query) == expected

    def test_help(self):
        assert is_shortcuts_help("Shortcuts")
        assert is_shortcuts_help("help shortcuts")
        assert not is_shortcuts_help("help")


class TestClientPreferences:
    """Test recently used ledgers and quick access."""

    def test_last_used_is_deduplicated_newest_first(self):
        prefs = ClientPreferences()
        prefs.add_to_last_used("t1", "A")
        prefs.add_to_last_used("t1", "B")
        prefs.add_to_last_used("t1", "A")

        assert prefs.last_used("t1") == ["A", "B"]
        assert prefs.last_used("t2") == []

    def test_last_used_is_bounded(self):
        prefs = ClientPreferences()
        for i in range(15):
            prefs.add_to_last_used("t1", f"L{i}")

        recent = prefs.last_used("t1")
        assert len(recent) == 10
        assert recent[0] == "L14"

    def test_quick_suggestions(self):
        prefs = ClientPreferences()
        prefs.set_quick_access("t1", ["Cash", "HDFC Bank"])
        for name in ("HDFC Bank", "Sharma Traders", "Verma", "Gupta", "Rao"):
            prefs.add_to_last_used("t1", name)

        suggestions = prefs.quick_suggestions("t1")
        assert suggestions[:2] == ["Cash", "HDFC Bank"]
        assert len(suggestions) == 5
        assert suggestions.count("HDFC Bank") == 1

    def test_quick_access_text_when_empty(self):
        assert "List all ledger accounts" in ClientPreferences().quick_access_text("t1")
