"""Request, response and result payload models for query resolution."""

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field

from ledgerbot.parsing import Direction
from ledgerbot.sources.base import (
    CompanyRecord,
    LedgerRecord,
    PurchaseOrderRecord,
    TransactionKind,
    VoucherRecord,
)


class ResponseCategory(str, Enum):
    """Category reported back to the caller."""

    COMPANY = "company"
    LEDGER = "ledger"
    ANALYTICAL = "analytical"
    INVENTORY = "inventory"
    REMINDERS = "reminders"
    CACHED = "cached"
    ERROR = "error"
    GENERAL = "general"


@dataclass(frozen=True)
class QueryRequest:
    """A single question from a user."""

    text: str
    tenant_id: str
    channel_id: str | None = None
    session_id: str | None = None

    @property
    def conversation_key(self) -> str:
        """Channel used to key conversation state."""
        return self.channel_id or self.session_id or "default"


class StockItem(BaseModel):
    name: str
    quantity: float = 0.0
    value: float = 0.0
    unit: str | None = None


class OutstandingParty(BaseModel):
    """Amount owed by or to one counterparty."""

    party: str
    amount: float
    receivable: bool = True
    bill_count: int = 0
    earliest_due_date: str | None = None
    overdue_days: int | None = None


class TransactionSummary(BaseModel):
    total_amount: float = 0.0
    transaction_count: int = 0
    average_amount: float = 0.0
    tax_amount: float = 0.0
    unique_parties: int = 0


class PartyTotal(BaseModel):
    party: str
    total_amount: float
    transaction_count: int


class PurchaseOrderSummary(BaseModel):
    total_orders: int = 0
    total_amount: float = 0.0
    total_quantity: float = 0.0
    unique_items: int = 0
    status: str = "all"


class CompanyResult(BaseModel):
    kind: Literal["company"] = "company"
    company: CompanyRecord
    requested_field: str | None = None


class LedgerResult(BaseModel):
    """Ledgers matching a search. More than one record means the user can pick."""

    kind: Literal["ledger"] = "ledger"
    records: list[LedgerRecord] = Field(default_factory=list)


class AnalyticalResult(BaseModel):
    kind: Literal["analytical"] = "analytical"
    records: list[LedgerRecord] = Field(default_factory=list)
    totals: dict[str, float] = Field(default_factory=dict)


class InventoryResult(BaseModel):
    kind: Literal["inventory"] = "inventory"
    items: list[StockItem] = Field(default_factory=list)


class OutstandingResult(BaseModel):
    kind: Literal["outstanding"] = "outstanding"
    parties: list[OutstandingParty] = Field(default_factory=list)
    total_receivable: float = 0.0
    total_payable: float = 0.0
    bill_level: bool = False


class TransactionResult(BaseModel):
    """Sales or purchase vouchers aggregated over a period."""

    kind: Literal["transactions"] = "transactions"
    transaction_kind: TransactionKind
    period: str
    summary: TransactionSummary
    transactions: list[VoucherRecord] = Field(default_factory=list)
    superlative: Direction | None = None
    top_parties: list[PartyTotal] = Field(default_factory=list)
    insights: str | None = None


class PurchaseOrderResult(BaseModel):
    kind: Literal["purchase_orders"] = "purchase_orders"
    period: str | None = None
    summary: PurchaseOrderSummary
    orders: list[PurchaseOrderRecord] = Field(default_factory=list)


class RowsResult(BaseModel):
    """Raw rows returned by a generated accounting query."""

    kind: Literal["rows"] = "rows"
    query: str | None = None
    rows: list[dict[str, Any]] = Field(default_factory=list)
    total_rows: int = 0


class MessageResult(BaseModel):
    """A text-only answer, optionally naming an action the caller should take."""

    kind: Literal["message"] = "message"
    intent: str | None = None
    detail: dict[str, Any] = Field(default_factory=dict)


ResultData = Annotated[
    Union[
        CompanyResult,
        LedgerResult,
        AnalyticalResult,
        InventoryResult,
        OutstandingResult,
        TransactionResult,
        PurchaseOrderResult,
        RowsResult,
        MessageResult,
    ],
    Field(discriminator="kind"),
]


def selectable_records(data: Any) -> list[Any] | None:
    """Candidates a follow-up reply can pick from, if the payload carries any."""
    if isinstance(data, LedgerResult):
        return list(data.records)
    return None


class QueryResponse(BaseModel):
    """Answer to a QueryRequest. Always produced, even on failure."""

    success: bool
    category: ResponseCategory
    data: ResultData | None = None
    human_text: str
    elapsed_ms: float = 0.0
    cache_hit: bool = False
    suggestions: list[str] | None = None
