"""Read interfaces to the accounting source, the replicated store and analytics."""

from abc import ABC, abstractmethod
from datetime import date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from ledgerbot.parsing import DateRange, parse_amount


class TransactionKind(str, Enum):
    """Voucher families the store replicates."""

    SALES = "sales"
    PURCHASE = "purchase"


class SourceResult(BaseModel):
    """Result of a read query against the accounting source."""

    success: bool
    rows: list[dict[str, Any]] = Field(default_factory=list)
    error: str | None = None
    execution_time_ms: float | None = None


class LedgerRecord(BaseModel):
    """A ledger account with its closing balance, debit positive."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str
    parent_group: str = Field(default="", alias="parent")
    closing_balance: float = 0.0

    @field_validator("closing_balance", mode="before")
    @classmethod
    def _parse_balance(cls, value: Any) -> float:
        return parse_amount(value)

    @field_validator("parent_group", mode="before")
    @classmethod
    def _blank_parent(cls, value: Any) -> str:
        return value or ""


class CompanyRecord(BaseModel):
    """Company profile as replicated from the accounting system."""

    model_config = ConfigDict(extra="ignore")

    name: str = ""
    address: str | None = None
    phone: str | None = None
    email: str | None = None
    gst_registration: str | None = None
    state: str | None = None
    pincode: str | None = None


class VoucherRecord(BaseModel):
    """A sales or purchase voucher."""

    model_config = ConfigDict(extra="ignore")

    voucher_number: str | None = None
    voucher_date: date
    party_name: str = "Unknown"
    net_amount: float = 0.0
    tax_amount: float = 0.0

    @field_validator("net_amount", "tax_amount", mode="before")
    @classmethod
    def _parse_amounts(cls, value: Any) -> float:
        return parse_amount(value)

    @field_validator("party_name", mode="before")
    @classmethod
    def _unknown_party(cls, value: Any) -> str:
        return value or "Unknown"


class PurchaseOrderRecord(BaseModel):
    """A purchase order line."""

    model_config = ConfigDict(extra="ignore")

    order_number: str | None = None
    order_date: date | None = None
    party_name: str | None = None
    stock_item_name: str | None = None
    quantity: float = 0.0
    amount: float = 0.0
    status: str | None = None

    @field_validator("quantity", "amount", mode="before")
    @classmethod
    def _parse_numbers(cls, value: Any) -> float:
        return parse_amount(value)


class AnalyticsEvent(BaseModel):
    """One resolved query, recorded for usage analytics."""

    tenant_id: str
    query_type: str
    query_text: str
    response_time_ms: float
    cache_hit: bool = False
    channel_id: str | None = None
    created_at: datetime = Field(default_factory=datetime.now)


class AccountingSource(ABC):
    """Read-only query access to the live accounting system."""

    @abstractmethod
    async def is_connected(self) -> bool:
        """Check whether the accounting system can currently be queried.

        Returns:
            True if queries can be executed
        """
        pass

    @abstractmethod
    async def execute_query(self, query: str) -> SourceResult:
        """Execute a read query.

        Args:
            query: Query text in the accounting system's dialect

        Returns:
            SourceResult with rows on success

        Raises:
            NotConnectedError: If the accounting system is unreachable
        """
        pass


class TransactionStore(ABC):
    """Read access to ledger, voucher and order records replicated per tenant."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """Whether the store has a backing database at all."""
        pass

    @abstractmethod
    async def get_company(self, tenant_id: str) -> CompanyRecord | None:
        """Get the company profile for a tenant."""
        pass

    @abstractmethod
    async def search_ledgers(
        self, tenant_id: str, term: str, limit: int = 10
    ) -> list[LedgerRecord]:
        """Find ledgers whose name contains the term, case-insensitively.

        Args:
            tenant_id: Tenant to search
            term: Name fragment
            limit: Maximum records to return

        Returns:
            Matching ledgers
        """
        pass

    @abstractmethod
    async def list_ledgers(self, tenant_id: str, limit: int = 100) -> list[LedgerRecord]:
        """List ledgers ordered by name."""
        pass

    @abstractmethod
    async def top_balances(self, tenant_id: str, limit: int = 10) -> list[LedgerRecord]:
        """List ledgers with non-zero balances, highest balance first."""
        pass

    @abstractmethod
    async def get_vouchers(
        self, tenant_id: str, kind: TransactionKind, period: DateRange
    ) -> list[VoucherRecord]:
        """Get vouchers of one kind inside a date range, newest first.

        Args:
            tenant_id: Tenant to read
            kind: Sales or purchase
            period: Inclusive date range

        Returns:
            Vouchers ordered by date descending

        Raises:
            StoreError: If the store cannot be read
        """
        pass

    @abstractmethod
    async def get_purchase_orders(
        self,
        tenant_id: str,
        status: str | None = None,
        period: DateRange | None = None,
    ) -> list[PurchaseOrderRecord]:
        """Get purchase orders, optionally filtered by status and order date.

        Raises:
            StoreError: If the store cannot be read
        """
        pass


class AnalyticsSink(ABC):
    """Destination for per-query analytics events."""

    @abstractmethod
    async def record(self, event: AnalyticsEvent) -> None:
        """Record a single event."""
        pass
