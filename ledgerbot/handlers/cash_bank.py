"""Cash-in-hand and bank account handlers."""

from ledgerbot.handlers.base import HandlerContext, HandlerResult, failure, ledger_from_row
from ledgerbot.query.formatting import format_inr
from ledgerbot.query.models import AnalyticalResult, MessageResult

CASH_BANK_QUERY = (
    "SELECT $Name, $Parent, $ClosingBalance FROM Ledger "
    "WHERE $Parent = 'Cash-in-Hand' OR $Parent = 'Bank Accounts' ORDER BY $ClosingBalance DESC"
)

_OVERDRAFT_WORDS = ("overdraft", "loan", "credit")


async def cash_and_bank(ctx: HandlerContext, query: str) -> HandlerResult:
    """Available cash and bank balances.

    Either sign counts as available money; only loan or overdraft accounts
    with a credit balance are shown as overdrawn.
    """
    result = await ctx.source.execute_query(CASH_BANK_QUERY)
    if not (result.success and result.rows):
        return failure(ctx.stamp.append("No cash/bank accounts found"))

    ledgers = [ledger_from_row(row) for row in result.rows]
    total = 0.0
    lines = ["💵 **Cash & Bank Summary:**", ""]
    for i, ledger in enumerate(ledgers, 1):
        amount = abs(ledger.closing_balance)
        total += amount
        overdraft = ledger.closing_balance < 0 and any(
            word in ledger.name.lower() for word in _OVERDRAFT_WORDS
        )
        status = "Overdraft" if overdraft else "Available"
        lines.append(f"{i}. **{ledger.name}** - {format_inr(amount)} ({status})")
    lines += ["", f"💰 **Total Cash & Bank: {format_inr(total)}**"]

    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=AnalyticalResult(records=ledgers, totals={"total_cash_bank": total}),
    )


async def cash_flow(ctx: HandlerContext, query: str) -> HandlerResult:
    return HandlerResult(
        success=True,
        text=ctx.stamp.append(
            "📊 Cash flow analysis requires advanced reporting features. "
            "Please use Tally ERP for detailed cash flow reports."
        ),
        data=MessageResult(intent="report_unavailable", detail={"report": "cash_flow"}),
    )
