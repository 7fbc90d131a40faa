"""Ledger listing, trial balance and statement handlers."""

from ledgerbot.handlers.base import HandlerContext, HandlerResult, failure, first_rows, ledger_from_row
from ledgerbot.query.formatting import format_balance, format_inr
from ledgerbot.query.models import AnalyticalResult, LedgerResult, MessageResult

LEDGER_QUERIES = [
    "SELECT $Name, $Parent, $ClosingBalance FROM Ledger ORDER BY $Name",
    "SELECT $Name, $Parent, $ClosingBalance FROM Ledger WHERE $ClosingBalance != 0 "
    "ORDER BY ABS($ClosingBalance) DESC",
]

TRIAL_BALANCE_QUERY = (
    "SELECT $Name, $Parent, $ClosingBalance FROM Ledger WHERE $ClosingBalance != 0 ORDER BY $Name"
)

SIMPLE_LIST_LIMIT = 50
DETAILED_LIST_LIMIT = 20


async def ledger_accounts(ctx: HandlerContext, query: str) -> HandlerResult:
    """List ledgers. Count and list queries get names only, others get balances."""
    rows = await first_rows(ctx.source, LEDGER_QUERIES)
    if not rows:
        return failure(ctx.stamp.append("No ledger data found"))

    ledgers = [ledger_from_row(row) for row in rows]
    q = query.lower()
    wants_names = any(word in q for word in ("how many", "count", "list"))

    lines = ["📋 **Ledger Accounts:**", ""]
    if wants_names:
        lines += [f"**Total Accounts: {len(ledgers)}**", "", "**Account Names:**"]
        lines += [f"{i}. {ledger.name}" for i, ledger in enumerate(ledgers[:SIMPLE_LIST_LIMIT], 1)]
        shown = SIMPLE_LIST_LIMIT
    else:
        for i, ledger in enumerate(ledgers[:DETAILED_LIST_LIMIT], 1):
            balance = (
                f" - {format_balance(ledger.closing_balance)}" if ledger.closing_balance else " - ₹0"
            )
            lines.append(f"{i}. **{ledger.name}** ({ledger.parent_group or 'Unknown Group'}){balance}")
        shown = DETAILED_LIST_LIMIT

    if len(ledgers) > shown:
        lines += ["", f"... and {len(ledgers) - shown} more accounts"]

    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=LedgerResult(records=ledgers[:shown]),
    )


async def trial_balance(ctx: HandlerContext, query: str) -> HandlerResult:
    result = await ctx.source.execute_query(TRIAL_BALANCE_QUERY)
    if not (result.success and result.rows):
        return failure("Unable to generate trial balance")

    ledgers = [ledger_from_row(row) for row in result.rows]
    total_debits = sum(ledger.closing_balance for ledger in ledgers if ledger.closing_balance > 0)
    total_credits = sum(-ledger.closing_balance for ledger in ledgers if ledger.closing_balance < 0)

    lines = ["⚖️ **Trial Balance:**", ""]
    for i, ledger in enumerate(ledgers, 1):
        lines.append(f"{i}. **{ledger.name}**")
        if ledger.closing_balance > 0:
            lines.append(f"   Dr: {format_inr(ledger.closing_balance)}")
        elif ledger.closing_balance < 0:
            lines.append(f"   Cr: {format_inr(-ledger.closing_balance)}")
        lines.append("")
    lines.append(f"💰 **Total Debits: {format_inr(total_debits)}**")
    lines.append(f"💰 **Total Credits: {format_inr(total_credits)}**")

    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=AnalyticalResult(
            records=ledgers, totals={"debits": total_debits, "credits": total_credits}
        ),
    )


async def profit_and_loss(ctx: HandlerContext, query: str) -> HandlerResult:
    return HandlerResult(
        success=True,
        text=ctx.stamp.append(
            "📊 Profit & Loss statement requires advanced reporting features. "
            "Please use Tally ERP for detailed P&L reports."
        ),
        data=MessageResult(intent="report_unavailable", detail={"report": "profit_and_loss"}),
    )


async def balance_sheet(ctx: HandlerContext, query: str) -> HandlerResult:
    return HandlerResult(
        success=True,
        text=ctx.stamp.append(
            "📊 Balance Sheet requires advanced reporting features. "
            "Please use Tally ERP for detailed Balance Sheet reports."
        ),
        data=MessageResult(intent="report_unavailable", detail={"report": "balance_sheet"}),
    )
