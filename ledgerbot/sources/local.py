"""In-process stand-ins used when no bridge or database is configured."""

import logging
from collections import defaultdict

from ledgerbot.errors import NotConnectedError
from ledgerbot.parsing import DateRange
from ledgerbot.sources.base import (
    AccountingSource,
    AnalyticsEvent,
    AnalyticsSink,
    CompanyRecord,
    LedgerRecord,
    PurchaseOrderRecord,
    SourceResult,
    TransactionKind,
    TransactionStore,
    VoucherRecord,
)

logger = logging.getLogger(__name__)


class OfflineAccountingSource(AccountingSource):
    """Accounting source used when no bridge is configured. Never connected."""

    async def is_connected(self) -> bool:
        return False

    async def execute_query(self, query: str) -> SourceResult:
        raise NotConnectedError()


class InMemoryTransactionStore(TransactionStore):
    """Transaction store held in plain dictionaries keyed by tenant."""

    def __init__(self, configured: bool = True) -> None:
        self._configured = configured
        self.companies: dict[str, CompanyRecord] = {}
        self.ledgers: dict[str, list[LedgerRecord]] = defaultdict(list)
        self.vouchers: dict[tuple[str, TransactionKind], list[VoucherRecord]] = defaultdict(list)
        self.purchase_orders: dict[str, list[PurchaseOrderRecord]] = defaultdict(list)

    @property
    def is_configured(self) -> bool:
        return self._configured

    def add_company(self, tenant_id: str, company: CompanyRecord) -> None:
        self.companies[tenant_id] = company

    def add_ledgers(self, tenant_id: str, ledgers: list[LedgerRecord]) -> None:
        self.ledgers[tenant_id].extend(ledgers)

    def add_vouchers(
        self, tenant_id: str, kind: TransactionKind, vouchers: list[VoucherRecord]
    ) -> None:
        self.vouchers[(tenant_id, kind)].extend(vouchers)

    def add_purchase_orders(self, tenant_id: str, orders: list[PurchaseOrderRecord]) -> None:
        self.purchase_orders[tenant_id].extend(orders)

    async def get_company(self, tenant_id: str) -> CompanyRecord | None:
        return self.companies.get(tenant_id)

    async def search_ledgers(
        self, tenant_id: str, term: str, limit: int = 10
    ) -> list[LedgerRecord]:
        needle = term.lower()
        matches = [ledger for ledger in self.ledgers[tenant_id] if needle in ledger.name.lower()]
        return matches[:limit]

    async def list_ledgers(self, tenant_id: str, limit: int = 100) -> list[LedgerRecord]:
        return sorted(self.ledgers[tenant_id], key=lambda ledger: ledger.name)[:limit]

    async def top_balances(self, tenant_id: str, limit: int = 10) -> list[LedgerRecord]:
        non_zero = [ledger for ledger in self.ledgers[tenant_id] if ledger.closing_balance != 0]
        non_zero.sort(key=lambda ledger: ledger.closing_balance, reverse=True)
        return non_zero[:limit]

    async def get_vouchers(
        self, tenant_id: str, kind: TransactionKind, period: DateRange
    ) -> list[VoucherRecord]:
        in_range = [
            voucher
            for voucher in self.vouchers[(tenant_id, kind)]
            if period.start_date <= voucher.voucher_date <= period.end_date
        ]
        return sorted(in_range, key=lambda voucher: voucher.voucher_date, reverse=True)

    async def get_purchase_orders(
        self,
        tenant_id: str,
        status: str | None = None,
        period: DateRange | None = None,
    ) -> list[PurchaseOrderRecord]:
        orders = self.purchase_orders[tenant_id]
        if status:
            orders = [order for order in orders if order.status == status]
        if period:
            orders = [
                order
                for order in orders
                if order.order_date and period.start_date <= order.order_date <= period.end_date
            ]
        return sorted(
            orders,
            key=lambda order: order.order_date.toordinal() if order.order_date else 0,
            reverse=True,
        )


class LoggingAnalyticsSink(AnalyticsSink):
    """Analytics sink that only logs events."""

    async def record(self, event: AnalyticsEvent) -> None:
        logger.debug(
            f"Query analytics: tenant={event.tenant_id} type={event.query_type} "
            f"time={event.response_time_ms:.0f}ms cache_hit={event.cache_hit}"
        )
