"""Shared fixtures: fake accounting source, seeded store and fixed clocks."""

from datetime import date, datetime, timedelta, timezone
from typing import Any

import pytest

from ledgerbot.errors import NotConnectedError, UpstreamUnderstandingError
from ledgerbot.handlers import CategoryRouter
from ledgerbot.query.formatting import SyncStamp
from ledgerbot.query.processors import CategoryProcessors
from ledgerbot.sources import (
    AccountingSource,
    CompanyRecord,
    InMemoryTransactionStore,
    LedgerRecord,
    PurchaseOrderRecord,
    SourceResult,
    TransactionKind,
    VoucherRecord,
)
from ledgerbot.state import ClientPreferences
from ledgerbot.understanding import Suggestion, UnderstandingBackend, UnderstandingContext

TODAY = date(2024, 8, 15)
TENANT = "tenant-1"


class FakeClock:
    """Settable clock for TTL tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 8, 15, 10, 0, 0)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: Any) -> None:
        self.now += timedelta(**kwargs)


class FakeAccountingSource(AccountingSource):
    """Answers queries from a table of (substring, rows) pairs.

    The first pair whose substring occurs in the query wins. Unknown
    queries succeed with no rows.
    """

    def __init__(
        self,
        responses: list[tuple[str, list[dict[str, Any]]]] | None = None,
        connected: bool = True,
        failing: tuple[str, ...] = (),
    ) -> None:
        self.responses = responses or []
        self.connected = connected
        self.failing = failing
        self.queries: list[str] = []

    async def is_connected(self) -> bool:
        return self.connected

    async def execute_query(self, query: str) -> SourceResult:
        if not self.connected:
            raise NotConnectedError()
        self.queries.append(query)
        if any(fragment in query for fragment in self.failing):
            return SourceResult(success=False, error="ODBC error")
        for fragment, rows in self.responses:
            if fragment in query:
                return SourceResult(success=True, rows=rows)
        return SourceResult(success=True, rows=[])


class StaticBackend(UnderstandingBackend):
    """Understanding backend that always returns the same suggestion."""

    def __init__(self, suggestion: Suggestion | None, name: str = "static") -> None:
        self.suggestion = suggestion
        self.name = name
        self.calls: list[str] = []

    async def attempt(self, query: str, context: UnderstandingContext) -> Suggestion | None:
        self.calls.append(query)
        return self.suggestion


class FailingBackend(UnderstandingBackend):
    """Understanding backend whose service is always down."""

    def __init__(self, name: str = "failing") -> None:
        self.name = name
        self.calls = 0

    async def attempt(self, query: str, context: UnderstandingContext) -> Suggestion | None:
        self.calls += 1
        raise UpstreamUnderstandingError(self.name, "quota exceeded")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def stamp():
    return SyncStamp(clock=lambda: datetime(2024, 8, 15, 4, 30, tzinfo=timezone.utc))


@pytest.fixture
def store():
    store = InMemoryTransactionStore()
    store.add_company(
        TENANT,
        CompanyRecord(
            name="Gangotri Steels Pvt Ltd",
            address="12 MG Road, Pune",
            phone="020-5551234",
            email="accounts@gangotri.example",
            gst_registration="27ABCDE1234F1Z5",
        ),
    )
    store.add_ledgers(
        TENANT,
        [
            LedgerRecord(name="Sharma Traders", parent_group="Sundry Debtors", closing_balance="₹1,50,000 Dr"),
            LedgerRecord(name="Sharma Steel Works", parent_group="Sundry Creditors", closing_balance="₹45,000 Cr"),
            LedgerRecord(name="Sharma Logistics", parent_group="Sundry Creditors", closing_balance=12000),
            LedgerRecord(name="HDFC Bank", parent_group="Bank Accounts", closing_balance="₹3,20,000.50 Dr"),
            LedgerRecord(name="Verma Industries", parent_group="Sundry Debtors", closing_balance="₹75,000 Dr"),
            LedgerRecord(name="Sales Account", parent_group="Sales Accounts", closing_balance="₹9,00,000 Cr"),
        ],
    )
    store.add_vouchers(
        TENANT,
        TransactionKind.SALES,
        [
            VoucherRecord(voucher_date=date(2024, 7, 3), party_name="Sharma Traders", net_amount=50000, tax_amount=9000),
            VoucherRecord(voucher_date=date(2024, 7, 20), party_name="Verma Industries", net_amount=120000, tax_amount=21600),
            VoucherRecord(voucher_date=date(2024, 8, 2), party_name="Sharma Traders", net_amount=30000, tax_amount=5400),
            VoucherRecord(voucher_date=date(2023, 11, 5), party_name="Old Customer", net_amount=500000, tax_amount=90000),
        ],
    )
    store.add_vouchers(
        TENANT,
        TransactionKind.PURCHASE,
        [
            VoucherRecord(voucher_date=date(2024, 7, 10), party_name="Sharma Steel Works", net_amount=80000, tax_amount=14400),
        ],
    )
    store.add_purchase_orders(
        TENANT,
        [
            PurchaseOrderRecord(order_number="PO-1", order_date=date(2024, 8, 1), stock_item_name="MS Pipe", quantity=100, amount=25000, status="pending"),
            PurchaseOrderRecord(order_number="PO-2", order_date=date(2024, 7, 5), stock_item_name="GI Sheet", quantity=40, amount=60000, status="fulfilled"),
            PurchaseOrderRecord(order_number="PO-3", order_date=date(2024, 6, 9), stock_item_name="MS Pipe", quantity=10, amount=2500, status="pending"),
        ],
    )
    return store


@pytest.fixture
def preferences():
    return ClientPreferences()


@pytest.fixture
def processors(store, preferences):
    return CategoryProcessors(store, preferences)


@pytest.fixture
def source():
    return FakeAccountingSource()


@pytest.fixture
def router(source, stamp):
    return CategoryRouter(source, stamp=stamp, today=lambda: TODAY)
