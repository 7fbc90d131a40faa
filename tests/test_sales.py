"""Tests for sales, purchase and purchase-order aggregation."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from ledgerbot.errors import StoreError
from ledgerbot.llm.base import ResponseResult
from ledgerbot.parsing import Direction
from ledgerbot.query.models import MessageResult, PurchaseOrderResult, ResponseCategory, TransactionResult
from ledgerbot.query.sales import (
    SalesPurchaseAggregator,
    is_insight_query,
    is_purchase_order_query,
    is_purchase_query,
    is_sales_query,
    purchase_order_status,
)
from ledgerbot.sources import InMemoryTransactionStore, TransactionKind

from conftest import TENANT, TODAY


@pytest.fixture
def aggregator(store):
    return SalesPurchaseAggregator(store, clock=lambda: TODAY)


class TestDetection:
    """Test the mutually exclusive vocabularies."""

    def test_sales(self):
        assert is_sales_query("sales for july")
        assert is_sales_query("kitna becha aaj")
        assert not is_sales_query("sales order status")
        assert not is_sales_query("purchase and sales")

    def test_purchase(self):
        assert is_purchase_query("purchases this month")
        assert not is_purchase_query("purchase orders")

    def test_purchase_orders(self):
        assert is_purchase_order_query("show pending purchase orders")
        assert is_purchase_order_query("po status")
        assert not is_purchase_order_query("purchase summary")

    def test_status_filter(self):
        assert purchase_order_status("open purchase orders") == "pending"
        assert purchase_order_status("completed purchase orders") == "fulfilled"
        assert purchase_order_status("canceled purchase orders") == "cancelled"
        assert purchase_order_status("purchase orders") is None

    def test_insight(self):
        assert is_insight_query("how to increase sales")
        assert is_insight_query("sales kaise badhayen")
        assert not is_insight_query("total sales")


class TestSummarizeTransactions:
    """Test period selection, aggregation and superlatives."""

    @pytest.mark.asyncio
    async def test_defaults_to_year_to_date(self, aggregator):
        response = await aggregator.summarize_transactions(TENANT, "total sales", TransactionKind.SALES)

        assert response.success
        assert response.category == ResponseCategory.ANALYTICAL
        result = response.data
        assert isinstance(result, TransactionResult)
        assert result.period == "1 Jan 2024 to 15 Aug 2024"
        assert result.summary.total_amount == 200000
        assert result.summary.transaction_count == 3
        assert result.summary.tax_amount == 36000
        assert result.summary.unique_parties == 2
        assert result.summary.average_amount == pytest.approx(66666.67, rel=1e-4)
        assert [party.party for party in result.top_parties] == ["Verma Industries", "Sharma Traders"]
        assert "💰 **Sales Summary**" in response.human_text
        assert "👥 **Unique Customers:** 2" in response.human_text

    @pytest.mark.asyncio
    async def test_named_period(self, aggregator):
        response = await aggregator.summarize_transactions(TENANT, "sales this month", TransactionKind.SALES)

        assert response.data.summary.total_amount == 30000
        assert response.data.transactions[0].party_name == "Sharma Traders"

    @pytest.mark.asyncio
    async def test_highest_without_date_searches_all_time(self, aggregator):
        response = await aggregator.summarize_transactions(TENANT, "highest sale", TransactionKind.SALES)

        result = response.data
        assert result.superlative == Direction.HIGHEST
        assert result.summary.transaction_count == 1
        assert result.summary.unique_parties == 1
        assert result.summary.average_amount == result.summary.total_amount == 500000
        assert len(result.transactions) == 1
        assert result.transactions[0].party_name == "Old Customer"
        assert "🏆 **Highest Sale**" in response.human_text

    @pytest.mark.asyncio
    async def test_lowest_within_named_period(self, aggregator):
        response = await aggregator.summarize_transactions(
            TENANT, "lowest sale in july", TransactionKind.SALES
        )

        assert response.data.transactions[0].net_amount == 50000
        assert response.data.summary.transaction_count == 1

    @pytest.mark.asyncio
    async def test_no_rows_is_success(self, aggregator):
        response = await aggregator.summarize_transactions(TENANT, "sales in march", TransactionKind.SALES)

        assert response.success
        assert response.human_text == "No sales data found for the specified period."
        assert response.data.summary.transaction_count == 0

    @pytest.mark.asyncio
    async def test_purchases(self, aggregator):
        response = await aggregator.summarize_transactions(
            TENANT, "purchases this year", TransactionKind.PURCHASE
        )

        assert response.data.summary.total_amount == 80000
        assert "🛒 **Purchases Summary**" in response.human_text
        assert "🏭 **Unique Suppliers:** 1" in response.human_text

    @pytest.mark.asyncio
    async def test_store_not_configured(self):
        aggregator = SalesPurchaseAggregator(InMemoryTransactionStore(configured=False), clock=lambda: TODAY)

        response = await aggregator.summarize_transactions(TENANT, "total sales", TransactionKind.SALES)

        assert not response.success
        assert isinstance(response.data, MessageResult)
        assert response.data.intent == "sync_required"

    @pytest.mark.asyncio
    async def test_store_error(self):
        store = MagicMock()
        store.is_configured = True
        store.get_vouchers = AsyncMock(side_effect=StoreError("connection reset"))
        aggregator = SalesPurchaseAggregator(store, clock=lambda: TODAY)

        response = await aggregator.summarize_transactions(TENANT, "total sales", TransactionKind.SALES)

        assert not response.success
        assert response.category == ResponseCategory.ERROR
        assert "connection reset" in response.human_text


class TestInsights:
    """Test language-model answers to advice questions."""

    @pytest.mark.asyncio
    async def test_insight_answer(self, store):
        provider = MagicMock()
        provider.generate_response = AsyncMock(
            return_value=ResponseResult(content="Focus on Verma Industries.", model="test")
        )
        aggregator = SalesPurchaseAggregator(store, insight_provider=provider, clock=lambda: TODAY)

        response = await aggregator.summarize_transactions(
            TENANT, "how to increase sales", TransactionKind.SALES
        )

        assert response.human_text.startswith("🤖 **AI Business Insights**")
        assert response.data.insights == "Focus on Verma Industries."
        prompt = provider.generate_response.call_args[0][0]
        assert "Verma Industries" in prompt
        assert "how to increase sales" in prompt

    @pytest.mark.asyncio
    @pytest.mark.parametrize("error", [RuntimeError("quota"), ValueError("bad payload"), KeyError("choices")])
    async def test_provider_failure_falls_back_to_summary(self, store, error):
        provider = MagicMock()
        provider.generate_response = AsyncMock(side_effect=error)
        aggregator = SalesPurchaseAggregator(store, insight_provider=provider, clock=lambda: TODAY)

        response = await aggregator.summarize_transactions(
            TENANT, "how to increase sales", TransactionKind.SALES
        )

        assert response.success
        assert response.data.insights is None
        assert response.data.summary.transaction_count == 3


class TestPurchaseOrders:
    """Test order status filters."""

    @pytest.mark.asyncio
    async def test_pending_orders(self, aggregator):
        response = await aggregator.purchase_orders(TENANT, "pending purchase orders")

        result = response.data
        assert isinstance(result, PurchaseOrderResult)
        assert result.summary.total_orders == 2
        assert result.summary.total_amount == 27500
        assert result.summary.total_quantity == 110
        assert result.summary.unique_items == 1
        assert result.summary.status == "pending"
        assert "🏷️ **Status:** pending" in response.human_text

    @pytest.mark.asyncio
    async def test_orders_in_period(self, aggregator):
        response = await aggregator.purchase_orders(TENANT, "purchase orders for july")

        assert response.data.summary.total_orders == 1
        assert response.data.period == "1 Jul 2024 to 31 Jul 2024"

    @pytest.mark.asyncio
    async def test_no_orders_is_success(self, aggregator):
        response = await aggregator.purchase_orders(TENANT, "cancelled purchase orders")

        assert response.success
        assert response.human_text == "No cancelled purchase orders found."
