"""Top-balance handlers."""

from ledgerbot.handlers.base import HandlerContext, HandlerResult, failure, ledger_from_row
from ledgerbot.query.formatting import format_balance, format_inr
from ledgerbot.query.models import AnalyticalResult
from ledgerbot.sources.base import LedgerRecord

ALL_LEDGERS_QUERY = "SELECT $Name, $Parent, $ClosingBalance FROM Ledger"

TOP_ACCOUNTS = 10


async def _nonzero_ledgers(ctx: HandlerContext) -> list[LedgerRecord] | None:
    result = await ctx.source.execute_query(ALL_LEDGERS_QUERY)
    if not (result.success and result.rows):
        return None
    ledgers = [ledger_from_row(row) for row in result.rows]
    ledgers = [ledger for ledger in ledgers if ledger.closing_balance != 0]
    ledgers.sort(key=lambda ledger: abs(ledger.closing_balance), reverse=True)
    return ledgers


async def top_balances(ctx: HandlerContext, query: str) -> HandlerResult:
    ledgers = await _nonzero_ledgers(ctx)
    if ledgers is None:
        return failure(ctx.stamp.append("No analytical data found"))
    if not ledgers:
        return failure(ctx.stamp.append("No accounts with non-zero balances found"))

    top = ledgers[:TOP_ACCOUNTS]
    lines = [f"📈 **Top {TOP_ACCOUNTS} Accounts by Balance:**", ""]
    for i, ledger in enumerate(top, 1):
        lines.append(f"{i}. **{ledger.name}** ({ledger.parent_group or 'Unknown'})")
        lines.append(f"   Balance: {format_balance(ledger.closing_balance)}")
        lines.append("")
    lines.append(
        f"🏆 **Highest Balance:** {top[0].name} - {format_inr(abs(top[0].closing_balance))}"
    )

    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=AnalyticalResult(records=top),
    )


async def highest_balance(ctx: HandlerContext, query: str) -> HandlerResult:
    ledgers = await _nonzero_ledgers(ctx)
    if not ledgers:
        return failure(ctx.stamp.append("No account data found for highest balance query"))

    account = ledgers[0]
    text = (
        "🏆 **Highest Balance Account:**\n\n"
        f"**{account.name}**\n"
        f"Account Group: {account.parent_group or 'Unknown'}\n"
        f"Balance: {format_balance(account.closing_balance)}"
    )
    return HandlerResult(
        success=True,
        text=ctx.stamp.append(text),
        data=AnalyticalResult(records=[account]),
    )
