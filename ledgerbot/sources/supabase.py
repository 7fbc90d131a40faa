"""Supabase-backed transaction store and analytics sink."""

import asyncio
import logging
from typing import Any

from pydantic import BaseModel
from supabase import Client, create_client

from ledgerbot.errors import StoreError
from ledgerbot.parsing import DateRange
from ledgerbot.sources.base import (
    AnalyticsEvent,
    AnalyticsSink,
    CompanyRecord,
    LedgerRecord,
    PurchaseOrderRecord,
    TransactionKind,
    TransactionStore,
    VoucherRecord,
)

logger = logging.getLogger(__name__)

VOUCHER_TABLES = {
    TransactionKind.SALES: "sales_vouchers",
    TransactionKind.PURCHASE: "purchase_vouchers",
}


def like_pattern(term: str) -> str:
    """Wrap a search term for ``ilike``, escaping its wildcard characters."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


class SupabaseConfig(BaseModel):
    """Configuration for the Supabase store."""

    url: str
    key: str


class SupabaseTransactionStore(TransactionStore):
    """Reads replicated ledgers, vouchers and orders from Supabase tables.

    Every table carries a ``client_id`` column holding the tenant id. The
    supabase client is synchronous, so each read runs in a worker thread.
    """

    def __init__(self, config: SupabaseConfig | None = None, client: Client | None = None, **kwargs: Any) -> None:
        """Initialize the store.

        Args:
            config: Supabase connection settings
            client: Pre-built client, mainly for tests
            **kwargs: Configuration options used when config is omitted
        """
        if client is not None:
            self.client = client
        else:
            self.config = config or SupabaseConfig(**kwargs)
            self.client = create_client(self.config.url, self.config.key)

    @property
    def is_configured(self) -> bool:
        return True

    async def _run(self, description: str, query: Any) -> list[dict[str, Any]]:
        try:
            response = await asyncio.to_thread(query.execute)
        except Exception as e:
            logger.error(f"Supabase {description} failed: {e}")
            raise StoreError(f"Failed to read {description}: {e}") from e
        return response.data or []

    async def get_company(self, tenant_id: str) -> CompanyRecord | None:
        rows = await self._run(
            "company profile",
            self.client.table("companies").select("*").eq("client_id", tenant_id).limit(1),
        )
        if not rows:
            return None
        return CompanyRecord.model_validate(rows[0])

    async def search_ledgers(
        self, tenant_id: str, term: str, limit: int = 10
    ) -> list[LedgerRecord]:
        rows = await self._run(
            "ledger search",
            self.client.table("ledgers")
            .select("*")
            .eq("client_id", tenant_id)
            .ilike("name", like_pattern(term))
            .limit(limit),
        )
        return [LedgerRecord.model_validate(row) for row in rows]

    async def list_ledgers(self, tenant_id: str, limit: int = 100) -> list[LedgerRecord]:
        rows = await self._run(
            "ledger list",
            self.client.table("ledgers")
            .select("*")
            .eq("client_id", tenant_id)
            .order("name")
            .limit(limit),
        )
        return [LedgerRecord.model_validate(row) for row in rows]

    async def top_balances(self, tenant_id: str, limit: int = 10) -> list[LedgerRecord]:
        rows = await self._run(
            "top balances",
            self.client.table("ledgers")
            .select("*")
            .eq("client_id", tenant_id)
            .neq("closing_balance", 0)
            .order("closing_balance", desc=True)
            .limit(limit),
        )
        return [LedgerRecord.model_validate(row) for row in rows]

    async def get_vouchers(
        self, tenant_id: str, kind: TransactionKind, period: DateRange
    ) -> list[VoucherRecord]:
        table = VOUCHER_TABLES[kind]
        rows = await self._run(
            f"{kind.value} vouchers",
            self.client.table(table)
            .select("*")
            .eq("client_id", tenant_id)
            .gte("voucher_date", period.start_date.isoformat())
            .lte("voucher_date", period.end_date.isoformat())
            .order("voucher_date", desc=True),
        )
        return [VoucherRecord.model_validate(row) for row in rows]

    async def get_purchase_orders(
        self,
        tenant_id: str,
        status: str | None = None,
        period: DateRange | None = None,
    ) -> list[PurchaseOrderRecord]:
        query = self.client.table("purchase_orders").select("*").eq("client_id", tenant_id)
        if status:
            query = query.eq("status", status)
        if period:
            query = query.gte("order_date", period.start_date.isoformat()).lte(
                "order_date", period.end_date.isoformat()
            )
        rows = await self._run("purchase orders", query.order("order_date", desc=True))
        return [PurchaseOrderRecord.model_validate(row) for row in rows]


class SupabaseAnalyticsSink(AnalyticsSink):
    """Writes analytics events into the ``query_analytics`` table."""

    def __init__(self, client: Client) -> None:
        self.client = client

    async def record(self, event: AnalyticsEvent) -> None:
        row = {
            "client_id": event.tenant_id,
            "query_type": event.query_type,
            "query_text": event.query_text,
            "response_time_ms": round(event.response_time_ms),
            "cache_hit": event.cache_hit,
            "channel_id": event.channel_id,
        }
        try:
            await asyncio.to_thread(self.client.table("query_analytics").insert(row).execute)
        except Exception as e:
            logger.warning(f"Failed to record query analytics: {e}")
