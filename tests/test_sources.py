"""Tests for the bridge source, the bounded wrapper and the Supabase store."""

import asyncio
from datetime import date
from unittest.mock import MagicMock, patch

import httpx
import pytest

from ledgerbot.errors import NotConnectedError, StoreError
from ledgerbot.parsing import DateRange
from ledgerbot.sources import (
    AccountingSource,
    AnalyticsEvent,
    BoundedAccountingSource,
    BridgeAccountingSource,
    BridgeConfig,
    OfflineAccountingSource,
    SourceResult,
    TransactionKind,
)
from ledgerbot.sources.supabase import SupabaseAnalyticsSink, SupabaseTransactionStore


class TestBridgeAccountingSource:
    """Test the bridge HTTP client."""

    @pytest.fixture
    def bridge(self):
        return BridgeAccountingSource(BridgeConfig(base_url="http://bridge:8765", token="secret"))

    @pytest.mark.asyncio
    async def test_execute_query(self, bridge):
        mock_response = MagicMock()
        mock_response.json.return_value = {
            "success": True,
            "data": [{"$Name": "HDFC Bank"}],
            "execution_time_ms": 12.5,
        }
        mock_response.raise_for_status.return_value = None

        with patch.object(bridge.client, "post", return_value=mock_response) as mock_post:
            result = await bridge.execute_query("SELECT $Name FROM Ledger")

            assert result.success
            assert result.rows == [{"$Name": "HDFC Bank"}]
            assert result.execution_time_ms == 12.5
            assert mock_post.call_args[0][0] == "/tally/query"
            assert mock_post.call_args[1]["json"] == {"sql": "SELECT $Name FROM Ledger", "token": "secret"}
            assert mock_post.call_args[1]["headers"] == {"Authorization": "Bearer secret"}

    @pytest.mark.asyncio
    async def test_query_error_from_bridge(self, bridge):
        mock_response = MagicMock()
        mock_response.json.return_value = {"success": False, "error": "Unknown table"}
        mock_response.raise_for_status.return_value = None

        with patch.object(bridge.client, "post", return_value=mock_response):
            result = await bridge.execute_query("SELECT $Name FROM Nowhere")

            assert not result.success
            assert result.rows == []
            assert result.error == "Unknown table"

    @pytest.mark.asyncio
    async def test_unreachable_bridge_is_not_connected(self, bridge):
        with patch.object(bridge.client, "post", side_effect=httpx.ConnectError("Connection refused")):
            with pytest.raises(NotConnectedError):
                await bridge.execute_query("SELECT $Name FROM Ledger")

    @pytest.mark.asyncio
    async def test_timeout_is_unsuccessful_result(self, bridge):
        with patch.object(bridge.client, "post", side_effect=httpx.ReadTimeout("slow")):
            result = await bridge.execute_query("SELECT $Name FROM Ledger")

            assert not result.success
            assert result.error.startswith("Query timed out")

    @pytest.mark.asyncio
    async def test_http_error(self, bridge):
        error_response = MagicMock(status_code=500, text="internal error")
        mock_response = MagicMock()
        mock_response.raise_for_status.side_effect = httpx.HTTPStatusError(
            "server error", request=MagicMock(), response=error_response
        )

        with patch.object(bridge.client, "post", return_value=mock_response):
            result = await bridge.execute_query("SELECT $Name FROM Ledger")

            assert result.error == "Bridge error 500: internal error"

    @pytest.mark.asyncio
    async def test_is_connected(self, bridge):
        mock_response = MagicMock(status_code=200)
        mock_response.json.return_value = {"is_connected": True}

        with patch.object(bridge.client, "get", return_value=mock_response):
            assert await bridge.is_connected() is True

    @pytest.mark.asyncio
    async def test_is_connected_when_bridge_down(self, bridge):
        with patch.object(bridge.client, "get", side_effect=httpx.ConnectError("refused")):
            assert await bridge.is_connected() is False

    def test_no_token_no_auth_header(self):
        bridge = BridgeAccountingSource(base_url="http://bridge:8765")
        assert bridge._auth_headers() == {}


class SlowSource(AccountingSource):
    async def is_connected(self) -> bool:
        await asyncio.sleep(1)
        return True

    async def execute_query(self, query: str) -> SourceResult:
        await asyncio.sleep(1)
        return SourceResult(success=True)


class TestBoundedAccountingSource:
    """Test per-read timeouts."""

    @pytest.mark.asyncio
    async def test_slow_query_times_out(self):
        source = BoundedAccountingSource(SlowSource(), timeout=0.01)

        result = await source.execute_query("SELECT $Name FROM Ledger")

        assert not result.success
        assert "timed out" in result.error

    @pytest.mark.asyncio
    async def test_slow_status_is_disconnected(self):
        assert await BoundedAccountingSource(SlowSource(), timeout=0.01).is_connected() is False

    @pytest.mark.asyncio
    async def test_not_connected_still_raises(self):
        source = BoundedAccountingSource(OfflineAccountingSource())

        assert await source.is_connected() is False
        with pytest.raises(NotConnectedError):
            await source.execute_query("SELECT $Name FROM Ledger")


def table_builder(rows):
    """Chainable stand-in for a supabase query builder."""
    builder = MagicMock()
    for method in ("select", "eq", "neq", "ilike", "gte", "lte", "order", "limit", "insert"):
        getattr(builder, method).return_value = builder
    builder.execute.return_value = MagicMock(data=rows)
    return builder


class TestSupabaseTransactionStore:
    """Test table reads with a mocked supabase client."""

    @pytest.mark.asyncio
    async def test_search_ledgers(self):
        builder = table_builder(
            [{"name": "HDFC Bank", "parent": "Bank Accounts", "closing_balance": "₹3,20,000 Dr"}]
        )
        client = MagicMock()
        client.table.return_value = builder
        store = SupabaseTransactionStore(client=client)

        ledgers = await store.search_ledgers("tenant-1", "hdfc", limit=5)

        assert ledgers[0].parent_group == "Bank Accounts"
        assert ledgers[0].closing_balance == 320000
        client.table.assert_called_with("ledgers")
        builder.eq.assert_called_with("client_id", "tenant-1")
        builder.ilike.assert_called_with("name", "%hdfc%")
        builder.limit.assert_called_with(5)

    @pytest.mark.asyncio
    async def test_search_term_wildcards_are_escaped(self):
        builder = table_builder([])
        client = MagicMock()
        client.table.return_value = builder

        await SupabaseTransactionStore(client=client).search_ledgers("tenant-1", "gst_18%")

        builder.ilike.assert_called_with("name", r"%gst\_18\%%")

    @pytest.mark.asyncio
    async def test_get_vouchers_filters_by_period(self):
        builder = table_builder(
            [{"voucher_date": "2024-07-03", "party_name": None, "net_amount": "50,000", "tax_amount": 9000}]
        )
        client = MagicMock()
        client.table.return_value = builder
        store = SupabaseTransactionStore(client=client)

        vouchers = await store.get_vouchers(
            "tenant-1", TransactionKind.PURCHASE, DateRange(date(2024, 7, 1), date(2024, 7, 31))
        )

        client.table.assert_called_with("purchase_vouchers")
        builder.gte.assert_called_with("voucher_date", "2024-07-01")
        builder.lte.assert_called_with("voucher_date", "2024-07-31")
        assert vouchers[0].party_name == "Unknown"
        assert vouchers[0].net_amount == 50000

    @pytest.mark.asyncio
    async def test_purchase_order_status_filter(self):
        builder = table_builder([])
        client = MagicMock()
        client.table.return_value = builder
        store = SupabaseTransactionStore(client=client)

        assert await store.get_purchase_orders("tenant-1", status="pending") == []
        builder.eq.assert_any_call("status", "pending")
        builder.gte.assert_not_called()

    @pytest.mark.asyncio
    async def test_missing_company(self):
        client = MagicMock()
        client.table.return_value = table_builder([])

        assert await SupabaseTransactionStore(client=client).get_company("tenant-1") is None

    @pytest.mark.asyncio
    async def test_read_failure_is_store_error(self):
        builder = table_builder([])
        builder.execute.side_effect = RuntimeError("connection reset")
        client = MagicMock()
        client.table.return_value = builder

        with pytest.raises(StoreError, match="connection reset"):
            await SupabaseTransactionStore(client=client).list_ledgers("tenant-1")


class TestSupabaseAnalyticsSink:
    """Test analytics inserts."""

    @pytest.mark.asyncio
    async def test_record(self):
        builder = table_builder([])
        client = MagicMock()
        client.table.return_value = builder

        await SupabaseAnalyticsSink(client).record(
            AnalyticsEvent(
                tenant_id="tenant-1",
                query_type="ledger",
                query_text="sharma balance",
                response_time_ms=41.6,
                channel_id="C1",
            )
        )

        client.table.assert_called_with("query_analytics")
        row = builder.insert.call_args[0][0]
        assert row["client_id"] == "tenant-1"
        assert row["response_time_ms"] == 42
        assert row["cache_hit"] is False

    @pytest.mark.asyncio
    async def test_failures_are_logged_not_raised(self):
        builder = table_builder([])
        builder.execute.side_effect = RuntimeError("table missing")
        client = MagicMock()
        client.table.return_value = builder

        await SupabaseAnalyticsSink(client).record(
            AnalyticsEvent(tenant_id="t", query_type="error", query_text="q", response_time_ms=1.0)
        )
