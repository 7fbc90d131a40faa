"""Sales and purchase handlers that read ledger balances from the accounting source."""

from ledgerbot.handlers.base import (
    HandlerContext,
    HandlerResult,
    failure,
    first_rows,
    ledger_from_row,
    row_value,
)
from ledgerbot.parsing import parse_amount, parse_date_range
from ledgerbot.query.formatting import format_inr
from ledgerbot.query.models import AnalyticalResult

SALES_QUERIES = [
    "SELECT $Name, $Parent, $ClosingBalance, $OpeningBalance FROM Ledger "
    "WHERE $Parent = 'Sales Accounts' ORDER BY ABS($ClosingBalance) DESC",
    "SELECT $Name, $Parent, $ClosingBalance, $OpeningBalance FROM Ledger "
    "WHERE $Parent IN ('Direct Income', 'Indirect Income') ORDER BY ABS($ClosingBalance) DESC",
    "SELECT $Name, $Parent, $ClosingBalance, $OpeningBalance FROM Ledger "
    "WHERE $Parent LIKE '%Sales%' OR $Parent LIKE '%Income%' ORDER BY ABS($ClosingBalance) DESC",
    "SELECT $Name, $Parent, $ClosingBalance, $OpeningBalance FROM Ledger "
    "WHERE $Name LIKE '%Sales%' OR $Name LIKE '%Revenue%' OR $Name LIKE '%Income%' "
    "ORDER BY ABS($ClosingBalance) DESC",
    "SELECT $Name, $Parent, $ClosingBalance, $OpeningBalance FROM Ledger "
    "WHERE $Parent = 'Trading Account' ORDER BY ABS($ClosingBalance) DESC",
]

SALES_GROUPS_QUERY = (
    "SELECT DISTINCT $Parent FROM Ledger WHERE $Parent LIKE '%Sales%' "
    "OR $Parent LIKE '%Income%' OR $Parent LIKE '%Revenue%' ORDER BY $Parent"
)

PURCHASE_QUERIES = [
    "SELECT $Name, $Parent, $ClosingBalance FROM Ledger "
    "WHERE $Parent LIKE '%Purchase%' OR $Parent = 'Direct Expenses' ORDER BY ABS($ClosingBalance) DESC",
    "SELECT $Name, $ClosingBalance FROM Ledger "
    "WHERE $Parent IN ('Purchase Accounts', 'Direct Expenses') ORDER BY $ClosingBalance DESC",
]

NO_SALES_DATA = (
    "📊 **Sales Query Result:**\n\n"
    "❌ **No sales data found**\n\n"
    "This could mean:\n"
    "• Sales accounts are not configured in Tally\n"
    "• No sales transactions recorded\n"
    "• Sales accounts have zero balance\n\n"
    "💡 Try checking your Tally company data or contact support."
)


async def sales_summary(ctx: HandlerContext, query: str) -> HandlerResult:
    """Summarize sales ledgers. With a period in the query, show balance movement."""
    period = parse_date_range(query, ctx.today())
    rows = await first_rows(ctx.source, SALES_QUERIES)

    if not rows:
        groups = await ctx.source.execute_query(SALES_GROUPS_QUERY)
        if groups.success and groups.rows:
            lines = [
                "📊 **Sales Query Result:**",
                "",
                "❌ **No sales data found with current queries**",
                "",
                "🔍 **Available Sales-related Groups:**",
            ]
            lines += [
                f"{i}. {row_value(row, 'Parent', default='Unknown Group')}"
                for i, row in enumerate(groups.rows, 1)
            ]
            lines += ["", "💡 Check if sales accounts are under different groups in Tally"]
            return HandlerResult(success=True, text=ctx.stamp.append("\n".join(lines)))
        return HandlerResult(success=True, text=ctx.stamp.append(NO_SALES_DATA))

    records = []
    total = 0.0
    lines = ["📊 **Sales & Revenue Summary:**", ""]
    for i, row in enumerate(rows, 1):
        ledger = ledger_from_row(row)
        records.append(ledger)
        closing = ledger.closing_balance
        opening = parse_amount(row_value(row, "OpeningBalance"))
        movement = abs(closing) - abs(opening)

        if period is not None and movement != 0:
            amount = movement
            amount_text = f"{format_inr(abs(movement))} (Period Movement)"
        else:
            amount = closing
            amount_text = "₹0 (Zero)" if closing == 0 else format_inr(abs(closing))

        lines.append(f"{i}. **{ledger.name}** ({ledger.parent_group or 'Unknown Type'})")
        lines.append(f"   Amount: {amount_text}")
        if period is not None:
            lines.append(f"   Opening: {format_inr(abs(opening))}")
            lines.append(f"   Closing: {format_inr(abs(closing))}")
        lines.append("")
        total += amount

    label = "Period Sales" if period is not None else "Total Sales"
    lines.append(f"💰 **{label}: {format_inr(abs(total))}**")
    lines.append(f"📈 **Active Sales Accounts: {len(records)}**")
    if period is not None:
        lines.append(f"🗓️ **Period**: {period.describe()}")

    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=AnalyticalResult(records=records, totals={"total_sales": abs(total)}),
    )


async def sales_trends(ctx: HandlerContext, query: str) -> HandlerResult:
    period = parse_date_range(query, ctx.today())
    description = period.describe() if period is not None else "All Time"
    summary = await sales_summary(ctx, query)
    if not summary.success:
        return summary

    notes = (
        f"\n\n📊 **Trend Analysis Notes:**\n• Period analyzed: {description}\n"
        "• Historical data is limited to opening/closing balance differences"
        if period is not None
        else '\n\n📊 **Current Status:**\n• Showing cumulative sales balances\n'
        '• For period-specific trends, try: "sales for July", "sales this month"'
    )
    return HandlerResult(
        success=True,
        text=f"📈 **Sales Trends - {description}:**\n\n{summary.text}{notes}",
        data=summary.data,
    )


async def purchase_summary(ctx: HandlerContext, query: str) -> HandlerResult:
    rows = await first_rows(ctx.source, PURCHASE_QUERIES)
    if not rows:
        return failure("No purchase data found")

    records = [ledger_from_row(row) for row in rows]
    total = sum(abs(ledger.closing_balance) for ledger in records)
    lines = ["🛒 **Purchase Account Summary:**", ""]
    lines += [
        f"{i}. **{ledger.name}** - {format_inr(abs(ledger.closing_balance), decimals=2)}"
        for i, ledger in enumerate(records, 1)
    ]
    lines += ["", f"💰 **Total Purchase Accounts: {format_inr(total, decimals=2)}**"]

    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=AnalyticalResult(records=records, totals={"total_purchases": total}),
    )
