"""Invoice, reminder and miscellaneous report handlers."""

from collections import defaultdict

from ledgerbot.handlers.base import (
    HandlerContext,
    HandlerResult,
    first_rows,
    ledger_from_row,
    row_value,
)
from ledgerbot.parsing import parse_amount, parse_date_range
from ledgerbot.query.formatting import format_inr
from ledgerbot.query.models import AnalyticalResult, InventoryResult, MessageResult, StockItem

DAY_BOOK_QUERIES = [
    "SELECT $Name, $ClosingBalance, $OpeningBalance, $Parent FROM Ledger "
    "WHERE $ClosingBalance != $OpeningBalance ORDER BY $Name",
    "SELECT $Name, $ClosingBalance, $OpeningBalance FROM Ledger "
    "WHERE ($Parent = 'Cash-in-Hand' OR $Parent = 'Bank Accounts') AND $ClosingBalance != $OpeningBalance",
    "SELECT $Name, $ClosingBalance, $OpeningBalance, $Parent FROM Ledger ORDER BY $Parent, $Name",
]

WORK_ORDER_QUERIES = [
    "SELECT $Name, $Parent, $ClosingBalance, $ClosingRate FROM StockItem "
    "WHERE $Parent LIKE '%Work%' OR $Parent LIKE '%Production%' OR $Parent LIKE '%Manufacturing%'",
    "SELECT $Name, $Parent, $ClosingBalance FROM Ledger "
    "WHERE $Name LIKE '%Work Order%' OR $Name LIKE '%Job Order%' OR $Name LIKE '%Production%' "
    "OR $Parent LIKE '%Manufacturing%'",
    "SELECT $Name, $Parent, $ClosingBalance, $ClosingRate FROM StockItem ORDER BY $Name",
]


def _notice(ctx: HandlerContext, text: str, intent: str, **detail: str) -> HandlerResult:
    return HandlerResult(success=True, text=ctx.stamp.append(text), data=MessageResult(intent=intent, detail=detail))


async def invoice_summary(ctx: HandlerContext, query: str) -> HandlerResult:
    return _notice(
        ctx,
        "📄 Invoice queries require access to voucher data. "
        "Please use Tally ERP for detailed invoice reports.",
        "report_unavailable",
        report="invoices",
    )


async def today_invoices(ctx: HandlerContext, query: str) -> HandlerResult:
    return _notice(
        ctx,
        "📄 Today's invoices require date-based voucher queries. "
        "Please use Tally ERP for daily invoice reports.",
        "report_unavailable",
        report="today_invoices",
    )


async def pending_invoices(ctx: HandlerContext, query: str) -> HandlerResult:
    return _notice(
        ctx,
        "📄 Pending invoices require voucher status tracking. "
        "Please use Tally ERP for pending invoice reports.",
        "report_unavailable",
        report="pending_invoices",
    )


async def reminders(ctx: HandlerContext, query: str) -> HandlerResult:
    return _notice(
        ctx,
        "⏰ Reminder system is under development. This feature will allow you to set "
        "reminders for payments and follow-ups.",
        "reminder",
    )


async def task_management(ctx: HandlerContext, query: str) -> HandlerResult:
    return _notice(
        ctx,
        "✅ Task management system is under development. "
        "This feature will help you track pending tasks and deadlines.",
        "task",
    )


async def vat_returns(ctx: HandlerContext, query: str) -> HandlerResult:
    return _notice(
        ctx,
        "📋 VAT return queries require tax-specific reporting. "
        "Please use Tally ERP for VAT returns and tax reports.",
        "report_unavailable",
        report="vat",
    )


async def profit_margin(ctx: HandlerContext, query: str) -> HandlerResult:
    return _notice(
        ctx,
        "📊 Profit margin analysis requires advanced financial calculations. "
        "Please use Tally ERP for detailed profit margin reports.",
        "report_unavailable",
        report="profit_margin",
    )


async def day_book(ctx: HandlerContext, query: str) -> HandlerResult:
    """Ledger movements between opening and closing balance, grouped by account group."""
    period = parse_date_range(query, ctx.today())
    description = period.describe() if period is not None else "All Time"
    rows = await first_rows(ctx.source, DAY_BOOK_QUERIES)

    if not rows:
        return HandlerResult(
            success=True,
            text=ctx.stamp.append(
                f"📖 **Day Book - {description}:**\n\n"
                "❌ **No transaction data available**\n\n"
                "💡 **Try using Tally ERP for detailed day book reports**"
            ),
        )

    grouped = defaultdict(list)
    movers = []
    total_debits = total_credits = 0.0
    for row in rows:
        ledger = ledger_from_row(row)
        movement = ledger.closing_balance - parse_amount(row_value(row, "OpeningBalance"))
        if movement == 0:
            continue
        grouped[ledger.parent_group or "Other"].append((ledger.name, movement))
        movers.append(ledger)
        if movement > 0:
            total_debits += movement
        else:
            total_credits += -movement

    lines = [f"📖 **Day Book - {description}:**", ""]
    if not movers:
        lines += [
            "❌ **No account movements found**",
            "",
            f"• No transactions for {description}",
            "• All accounts have same opening/closing balance",
        ]
    else:
        for group, accounts in grouped.items():
            lines.append(f"**{group}:**")
            for name, movement in accounts:
                sign = f"+{format_inr(movement)} Dr" if movement > 0 else f"-{format_inr(-movement)} Cr"
                lines.append(f"  • {name}: {sign}")
            lines.append("")
        lines += [
            "💰 **Summary:**",
            f"📈 Total Debits: {format_inr(total_debits)}",
            f"📉 Total Credits: {format_inr(total_credits)}",
            f"⚖️ Net Movement: {format_inr(total_debits - total_credits)}",
            f"📊 Accounts with Movement: {len(movers)}",
        ]

    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=AnalyticalResult(
            records=movers, totals={"debits": total_debits, "credits": total_credits}
        ),
    )


async def cash_flow_report(ctx: HandlerContext, query: str) -> HandlerResult:
    return _notice(
        ctx,
        "📊 Cash flow reports require advanced financial analysis. "
        "Please use Tally ERP for detailed cash flow statements.",
        "report_unavailable",
        report="cash_flow",
    )


async def work_orders(ctx: HandlerContext, query: str) -> HandlerResult:
    rows = await first_rows(ctx.source, WORK_ORDER_QUERIES)
    if not rows:
        return HandlerResult(
            success=True,
            text=ctx.stamp.append(
                "🔧 **Work Orders:**\n\n"
                "❌ **No work order data found**\n\n"
                "💡 Check stock items for work-in-progress or use Tally ERP manufacturing reports"
            ),
        )

    items = []
    lines = ["🔧 **Work Orders / Production Status:**", ""]
    for row in rows:
        quantity = abs(parse_amount(row_value(row, "ClosingBalance")))
        if quantity == 0:
            continue
        rate = parse_amount(row_value(row, "ClosingRate"))
        name = str(row_value(row, "Name", default="Unknown Item"))
        value = quantity * abs(rate)
        items.append(StockItem(name=name, quantity=quantity, value=value))

        lines.append(f"{len(items)}. **{name}**")
        lines.append(f"   Category: {row_value(row, 'Parent', default='Unknown Category')}")
        lines.append(f"   Quantity: {quantity:,.0f}")
        if rate > 0:
            lines.append(f"   Rate: {format_inr(rate)}")
            lines.append(f"   Value: {format_inr(value)}")
        lines.append("")

    if not items:
        lines += ["❌ **No active work orders found**", "", "• No work-in-progress items"]
    else:
        total_value = sum(item.value for item in items)
        lines += [
            "📊 **Summary:**",
            f"🔧 Active Work Orders: {len(items)}",
            f"📦 Total Quantity: {sum(item.quantity for item in items):,.0f}",
        ]
        if total_value > 0:
            lines.append(f"💰 Total Value: {format_inr(total_value)}")

    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=InventoryResult(items=items),
    )
