"""Date-filtered, superlative-aware sales and purchase aggregation."""

import asyncio
import logging
from collections import defaultdict
from datetime import date
from typing import Callable

from ledgerbot.errors import StoreError
from ledgerbot.llm.base import LLMProvider
from ledgerbot.parsing import (
    DateRange,
    Direction,
    all_time,
    current_year_to_date,
    detect_superlative,
    parse_date_range,
)
from ledgerbot.parsing.dates import format_display_date
from ledgerbot.query.formatting import format_inr
from ledgerbot.query.models import (
    MessageResult,
    PartyTotal,
    PurchaseOrderResult,
    PurchaseOrderSummary,
    QueryResponse,
    ResponseCategory,
    TransactionResult,
    TransactionSummary,
)
from ledgerbot.sources.base import PurchaseOrderRecord, TransactionKind, TransactionStore, VoucherRecord

logger = logging.getLogger(__name__)

SALES_KEYWORDS = [
    "sales", "sale", "bechna", "becha", "bechne",
    "total sales", "sales for", "sales in", "sales during",
    "today sales", "this month sales", "last week sales",
    "yesterday sales", "monthly sales", "yearly sales",
    "sales summary", "sales report", "sales data",
    "how much did i sell", "what are my sales",
    "kitna becha", "kitni sales", "sales kitni",
    "what is my sales", "show sales", "show me sales",
]

PURCHASE_KEYWORDS = [
    "purchase", "purchases", "kharida", "kharide", "kharidar",
    "total purchase", "purchase for", "purchase in", "purchase during",
    "today purchase", "this month purchase", "last week purchase",
    "yesterday purchase", "monthly purchase", "yearly purchase",
    "purchase summary", "purchase report", "purchase data",
    "how much did i buy", "what are my purchase",
    "kitna kharida", "kitni purchase", "purchase kitni",
    "what is my purchase", "show purchase", "show me purchase",
]

PURCHASE_ORDER_KEYWORDS = [
    "purchase order", "purchase orders", "po for", "purchase order for",
    "show purchase order", "pending purchase order", "open purchase order",
    "purchase order status", "po status",
]

INSIGHT_PATTERNS = [
    "how to increase", "how to improve", "how to optimize", "how to grow",
    "suggest", "recommendation", "advice", "what should i", "how can i",
    "kaise badhayen", "kaise improve", "kya kare", "kya suggestion",
    "pattern", "trend", "analysis", "analyze", "insights",
]

PO_STATUS_KEYWORDS = [
    ("pending", ("pending", "open", "due")),
    ("fulfilled", ("fulfilled", "completed", "closed")),
    ("cancelled", ("cancelled", "canceled")),
]

TOP_TRANSACTIONS = 5

INSIGHT_SYSTEM_PROMPT = "You are a helpful business advisor."


def is_purchase_order_query(query: str) -> bool:
    q = query.lower()
    return any(keyword in q for keyword in PURCHASE_ORDER_KEYWORDS)


def is_sales_query(query: str) -> bool:
    q = query.lower()
    if "purchase" in q or "order" in q:
        return False
    return any(keyword in q for keyword in SALES_KEYWORDS)


def is_purchase_query(query: str) -> bool:
    q = query.lower()
    if "order" in q:
        return False
    return any(keyword in q for keyword in PURCHASE_KEYWORDS)


def is_insight_query(query: str) -> bool:
    q = query.lower()
    return any(pattern in q for pattern in INSIGHT_PATTERNS)


def purchase_order_status(query: str) -> str | None:
    """Status filter implied by the query, if any."""
    q = query.lower()
    for status, keywords in PO_STATUS_KEYWORDS:
        if any(keyword in q for keyword in keywords):
            return status
    return None


def summarize(vouchers: list[VoucherRecord]) -> TransactionSummary:
    total = sum(voucher.net_amount for voucher in vouchers)
    count = len(vouchers)
    return TransactionSummary(
        total_amount=total,
        transaction_count=count,
        average_amount=total / count if count else 0.0,
        tax_amount=sum(voucher.tax_amount for voucher in vouchers),
        unique_parties=len({voucher.party_name for voucher in vouchers}),
    )


def top_parties(vouchers: list[VoucherRecord], limit: int = 5) -> list[PartyTotal]:
    """Aggregate vouchers by counterparty, largest total first."""
    totals: dict[str, float] = defaultdict(float)
    counts: dict[str, int] = defaultdict(int)
    for voucher in vouchers:
        totals[voucher.party_name] += voucher.net_amount
        counts[voucher.party_name] += 1
    ranked = sorted(totals.items(), key=lambda item: item[1], reverse=True)
    return [
        PartyTotal(party=party, total_amount=total, transaction_count=counts[party])
        for party, total in ranked[:limit]
    ]


def pick_extreme(vouchers: list[VoucherRecord], direction: Direction) -> VoucherRecord:
    """Single voucher with the highest or lowest absolute net amount."""
    if direction == Direction.LOWEST:
        return min(vouchers, key=lambda voucher: abs(voucher.net_amount))
    return max(vouchers, key=lambda voucher: abs(voucher.net_amount))


class SalesPurchaseAggregator:
    """Answers sales, purchase and purchase-order questions from the transaction store."""

    def __init__(
        self,
        store: TransactionStore,
        insight_provider: LLMProvider | None = None,
        clock: Callable[[], date] = date.today,
        insight_timeout: float = 30.0,
    ) -> None:
        self.store = store
        self.insight_provider = insight_provider
        self.clock = clock
        self.insight_timeout = insight_timeout

    def resolve_period(self, query: str, superlative: bool) -> DateRange:
        """Date range named in the query, else all time for superlatives, else year to date."""
        today = self.clock()
        period = parse_date_range(query, today=today)
        if period is not None:
            return period
        if superlative:
            return all_time(today)
        return current_year_to_date(today)

    async def summarize_transactions(
        self, tenant_id: str, query: str, kind: TransactionKind
    ) -> QueryResponse:
        """Summarise sales or purchase vouchers for the period the query names."""
        label = "sales" if kind == TransactionKind.SALES else "purchase"

        if not self.store.is_configured:
            return self._unavailable(label)

        if kind == TransactionKind.SALES and self.insight_provider and is_insight_query(query):
            insight = await self._insight_response(tenant_id, query)
            if insight is not None:
                return insight

        superlative = detect_superlative(query)
        period = self.resolve_period(query, superlative.is_superlative)

        try:
            vouchers = await self.store.get_vouchers(tenant_id, kind, period)
        except StoreError as e:
            return QueryResponse(
                success=False,
                category=ResponseCategory.ERROR,
                human_text=f"Error querying {label} data: {e}",
            )

        if not vouchers:
            return QueryResponse(
                success=True,
                category=ResponseCategory.ANALYTICAL,
                data=TransactionResult(
                    transaction_kind=kind,
                    period=period.describe(),
                    summary=TransactionSummary(),
                ),
                human_text=f"No {label} data found for the specified period.",
                suggestions=["this month sales", "last month purchases", "sales this year"],
            )

        if superlative.is_superlative:
            extreme = pick_extreme(vouchers, superlative.direction)
            summary = TransactionSummary(
                total_amount=extreme.net_amount,
                transaction_count=1,
                average_amount=extreme.net_amount,
                tax_amount=extreme.tax_amount,
                unique_parties=1,
            )
            vouchers = [extreme]
        else:
            summary = summarize(vouchers)

        result = TransactionResult(
            transaction_kind=kind,
            period=period.describe(),
            summary=summary,
            transactions=vouchers,
            superlative=superlative.direction,
            top_parties=top_parties(vouchers),
        )
        logger.info(
            f"{label.title()} summary for {tenant_id}: {summary.transaction_count} vouchers "
            f"over {result.period}"
        )
        return QueryResponse(
            success=True,
            category=ResponseCategory.ANALYTICAL,
            data=result,
            human_text=format_transactions(result),
        )

    async def purchase_orders(self, tenant_id: str, query: str) -> QueryResponse:
        """Summarise purchase orders, filtered by status and date when the query names them."""
        if not self.store.is_configured:
            return self._unavailable("purchase order")

        status = purchase_order_status(query)
        period = parse_date_range(query, today=self.clock())
        period_text = period.describe() if period else None

        try:
            orders = await self.store.get_purchase_orders(tenant_id, status=status, period=period)
        except StoreError as e:
            return QueryResponse(
                success=False,
                category=ResponseCategory.ERROR,
                human_text=f"Error querying purchase orders: {e}",
            )

        if not orders:
            suffix = f" for {period_text}" if period_text else ""
            if status:
                text = f"No {status} purchase orders found{suffix}."
            else:
                text = (
                    f"No purchase orders found{suffix}. "
                    "Make sure purchase order data is synced from Tally."
                )
            return QueryResponse(
                success=True,
                category=ResponseCategory.ANALYTICAL,
                data=PurchaseOrderResult(
                    period=period_text, summary=PurchaseOrderSummary(status=status or "all")
                ),
                human_text=text,
            )

        result = PurchaseOrderResult(
            period=period_text,
            summary=summarize_orders(orders, status),
            orders=orders,
        )
        return QueryResponse(
            success=True,
            category=ResponseCategory.ANALYTICAL,
            data=result,
            human_text=format_purchase_orders(result),
        )

    async def _insight_response(self, tenant_id: str, query: str) -> QueryResponse | None:
        period = current_year_to_date(self.clock())
        try:
            vouchers = await self.store.get_vouchers(tenant_id, TransactionKind.SALES, period)
        except StoreError as e:
            logger.warning(f"Could not load sales data for insights: {e}")
            return None

        summary = summarize(vouchers)
        parties = top_parties(vouchers)
        prompt = build_insight_prompt(query, summary, parties, period.describe())

        try:
            result = await asyncio.wait_for(
                self.insight_provider.generate_response(prompt, system_prompt=INSIGHT_SYSTEM_PROMPT),
                timeout=self.insight_timeout,
            )
        except Exception as e:
            logger.warning(f"Insight generation failed, falling back to summary: {e}")
            return None

        if not result.content.strip():
            return None

        return QueryResponse(
            success=True,
            category=ResponseCategory.ANALYTICAL,
            data=TransactionResult(
                transaction_kind=TransactionKind.SALES,
                period=period.describe(),
                summary=summary,
                top_parties=parties,
                insights=result.content,
            ),
            human_text=f"🤖 **AI Business Insights**\n\n{result.content.strip()}",
        )

    @staticmethod
    def _unavailable(label: str) -> QueryResponse:
        return QueryResponse(
            success=False,
            category=ResponseCategory.ERROR,
            data=MessageResult(intent="sync_required"),
            human_text=(
                f"{label.title()} data is not available yet. "
                "Connect the data store and sync your Tally data first."
            ),
        )


def summarize_orders(orders: list[PurchaseOrderRecord], status: str | None) -> PurchaseOrderSummary:
    return PurchaseOrderSummary(
        total_orders=len(orders),
        total_amount=sum(order.amount for order in orders),
        total_quantity=sum(order.quantity for order in orders),
        unique_items=len({order.stock_item_name for order in orders}),
        status=status or "all",
    )


def build_insight_prompt(
    query: str, summary: TransactionSummary, parties: list[PartyTotal], period: str
) -> str:
    customers = "\n".join(
        f"{i}. {party.party}: {format_inr(party.total_amount)}"
        for i, party in enumerate(parties, 1)
    )
    return f"""You are a business advisor analyzing sales data for a company.

User Question: "{query}"

Sales Data Summary:
- Total Sales: {format_inr(summary.total_amount)}
- Total Transactions: {summary.transaction_count}
- Average Sale: {format_inr(summary.average_amount)}
- Unique Customers: {summary.unique_parties}
- Period: {period}

Top 5 Customers:
{customers or "No customers recorded"}

Based on this data, provide actionable business insights and recommendations to answer the user's question. Be specific and practical. Keep response under 200 words."""


def format_transactions(result: TransactionResult) -> str:
    """Emoji summary card with the top five transactions."""
    summary = result.summary
    is_sales = result.transaction_kind == TransactionKind.SALES
    title = "Sales" if is_sales else "Purchases"
    emoji = "💰" if is_sales else "🛒"
    noun = "Sale" if is_sales else "Purchase"

    lines = [f"{emoji} **{title} Summary**", f"📅 **Period:** {result.period}", ""]
    if result.superlative is not None:
        lines.insert(1, f"🏆 **{result.superlative.value.title()} {noun}**")
    lines += [
        f"💵 **Total {title}:** {format_inr(summary.total_amount, decimals=2)}",
        f"📊 **Transactions:** {summary.transaction_count}",
        f"📈 **Average {noun}:** {format_inr(summary.average_amount, decimals=2)}",
        f"🧾 **Tax Amount:** {format_inr(summary.tax_amount, decimals=2)}",
    ]
    if is_sales:
        lines.append(f"👥 **Unique Customers:** {summary.unique_parties}")
    else:
        lines.append(f"🏭 **Unique Suppliers:** {summary.unique_parties}")

    if result.transactions:
        lines += ["", "📋 **Top Transactions:**"]
        for i, voucher in enumerate(result.transactions[:TOP_TRANSACTIONS], 1):
            lines.append(
                f"{i}. {voucher.party_name} - {format_inr(voucher.net_amount)} "
                f"({format_display_date(voucher.voucher_date)})"
            )
        remaining = len(result.transactions) - TOP_TRANSACTIONS
        if remaining > 0:
            lines += ["", f"_...and {remaining} more transactions_"]

    return "\n".join(lines)


def format_purchase_orders(result: PurchaseOrderResult) -> str:
    summary = result.summary
    lines = [
        "📦 **Purchase Orders Summary**",
        f"📅 **Period:** {result.period or 'all time'}",
        "",
        f"📋 **Total Orders:** {summary.total_orders}",
        f"💵 **Total Amount:** {format_inr(summary.total_amount, decimals=2)}",
        f"📊 **Total Quantity:** {format_inr(summary.total_quantity, symbol=False)}",
        f"📦 **Unique Items:** {summary.unique_items}",
    ]
    if summary.status != "all":
        lines.append(f"🏷️ **Status:** {summary.status}")
    return "\n".join(lines)
