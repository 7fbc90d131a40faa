"""External read interfaces and their adapters."""

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
from ledgerbot.sources.bounded import BoundedAccountingSource
from ledgerbot.sources.bridge import BridgeAccountingSource, BridgeConfig
from ledgerbot.sources.local import (
    InMemoryTransactionStore,
    LoggingAnalyticsSink,
    OfflineAccountingSource,
)

__all__ = [
    "AccountingSource",
    "AnalyticsEvent",
    "AnalyticsSink",
    "BoundedAccountingSource",
    "BridgeAccountingSource",
    "BridgeConfig",
    "CompanyRecord",
    "InMemoryTransactionStore",
    "LedgerRecord",
    "LoggingAnalyticsSink",
    "OfflineAccountingSource",
    "PurchaseOrderRecord",
    "SourceResult",
    "TransactionKind",
    "TransactionStore",
    "VoucherRecord",
]
