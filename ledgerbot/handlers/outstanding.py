"""Outstanding, receivable and payable handlers."""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from ledgerbot.handlers.base import HandlerContext, HandlerResult, failure, row_value
from ledgerbot.parsing import parse_amount
from ledgerbot.parsing.dates import format_display_date
from ledgerbot.query.formatting import format_inr
from ledgerbot.query.models import OutstandingParty, OutstandingResult

logger = logging.getLogger(__name__)

BILL_LEVEL_QUERY = (
    "SELECT $LedgerName, $BillName, $BillDate, $DueDate, $ClosingBalance "
    "FROM LedgerOutstandings WHERE $ClosingBalance <> 0 ORDER BY ABS($ClosingBalance) DESC"
)

BALANCE_LEVEL_QUERY = (
    "SELECT $Name, $Parent, $ClosingBalance FROM Ledger "
    "WHERE ($Parent = 'Sundry Debtors' OR $Parent = 'Sundry Creditors') AND $ClosingBalance <> 0 "
    "ORDER BY ABS($ClosingBalance) DESC"
)

RECEIVABLES_QUERY = (
    "SELECT $Name, $ClosingBalance FROM Ledger "
    "WHERE $Parent = 'Sundry Debtors' AND $ClosingBalance != 0 ORDER BY ABS($ClosingBalance) DESC"
)

PAYABLES_QUERY = (
    "SELECT $Name, $ClosingBalance FROM Ledger "
    "WHERE $Parent = 'Sundry Creditors' AND $ClosingBalance != 0 ORDER BY ABS($ClosingBalance) DESC"
)

DUE_SOON_DAYS = 7

_PARTY_OF = re.compile(r"(?:outstanding|balance|due)\s+(?:of|for)\s+([a-z\s]+)", re.IGNORECASE)
_PARTY_NEAR = re.compile(
    r"(?:outstanding|balance|due)\s+([a-z\s]+)|([a-z\s]+?)\s+(?:outstanding|balance|due)",
    re.IGNORECASE,
)
_NOT_PARTY_WORDS = {
    "show", "what", "are", "is", "my", "me", "the", "total", "list", "all", "give", "send",
    "receivable", "receivables", "payable", "payables", "amount", "amounts", "pending",
    "who", "has", "have", "get", "tell", "kitna", "hai", "our", "bills", "summary",
}

_DATE_FORMATS = ("%Y-%m-%d", "%d-%b-%Y", "%d-%b-%y", "%d/%m/%Y", "%Y%m%d")


def party_from_query(query: str) -> str | None:
    """Counterparty name in queries like "outstanding of sharma traders"."""
    match = _PARTY_OF.search(query) or _PARTY_NEAR.search(query)
    if not match:
        return None
    candidate = next(group for group in match.groups() if group)
    words = [word for word in candidate.split() if word.lower() not in _NOT_PARTY_WORDS]
    return " ".join(words) or None


def parse_due_date(value: Any) -> date | None:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value:
        return None
    text = str(value).strip()
    for fmt in _DATE_FORMATS:
        try:
            return datetime.strptime(text, fmt).date()
        except ValueError:
            continue
    return None


@dataclass
class _PartyBalance:
    receivable: bool
    amount: float = 0.0
    bill_count: int = 0
    earliest_due: date | None = None


@dataclass
class _Grouped:
    parties: dict[str, _PartyBalance] = field(default_factory=dict)

    def add(self, name: str, amount: float, due: date | None, receivable: bool) -> None:
        party = self.parties.setdefault(name, _PartyBalance(receivable=receivable))
        party.amount += abs(amount)
        party.bill_count += 1
        if due is not None and (party.earliest_due is None or due < party.earliest_due):
            party.earliest_due = due


def _due_marker(due: date, today: date) -> tuple[int, str]:
    overdue = (today - due).days
    due_text = format_display_date(due)
    if overdue > 0:
        return overdue, f" | 🔴 **Due:** {due_text} ({overdue} days overdue)"
    if overdue > -DUE_SOON_DAYS:
        return overdue, f" | 🟡 **Due:** {due_text} (due soon)"
    return overdue, f" | 🟢 **Due:** {due_text}"


def _summary_lines(receivable: float, payable: float) -> list[str]:
    return [
        "",
        "📊 **Summary:**",
        f"💰 Total Receivables: {format_inr(receivable)}",
        f"💸 Total Payables: {format_inr(payable)}",
        f"📈 Net Position: {format_inr(receivable - payable)}",
    ]


async def outstanding(ctx: HandlerContext, query: str) -> HandlerResult:
    """Outstanding amounts per party, sorted by amount.

    Bill-level rows give due dates and overdue days. Without them the
    Sundry Debtors and Sundry Creditors balances are used.
    """
    party = party_from_query(query)
    if party:
        return await party_outstanding(ctx, party)

    result = await ctx.source.execute_query(BILL_LEVEL_QUERY)
    bill_level = bool(result.success and result.rows)
    if not bill_level:
        logger.info("Bill-level outstandings not available, using ledger balances")
        result = await ctx.source.execute_query(BALANCE_LEVEL_QUERY)
        if not (result.success and result.rows):
            return failure(ctx.stamp.append("No outstanding amounts found"))

    grouped = _Grouped()
    for row in result.rows:
        amount = parse_amount(row_value(row, "ClosingBalance", "amount"))
        if amount == 0:
            continue
        name = str(row_value(row, "LedgerName", "Name", "party_name", default="Unknown Party"))
        due = parse_due_date(row_value(row, "DueDate", "due_date")) if bill_level else None
        grouped.add(name, amount, due, receivable=amount > 0)

    if not grouped.parties:
        return failure(ctx.stamp.append("No outstanding amounts found"))

    today = ctx.today()
    ordered = sorted(grouped.parties.items(), key=lambda item: item[1].amount, reverse=True)
    parties = []
    total_receivable = total_payable = 0.0
    lines = ["💼 **Outstanding Summary (Sorted by Amount):**", ""]
    for name, balance in ordered:
        if balance.receivable:
            total_receivable += balance.amount
            line = f"💰 **{name}** owes you: {format_inr(balance.amount)}"
        else:
            total_payable += balance.amount
            line = f"💸 You owe **{name}**: {format_inr(balance.amount)}"

        overdue_days = None
        if balance.earliest_due is not None:
            overdue_days, marker = _due_marker(balance.earliest_due, today)
            line += marker
        lines.append(line)

        parties.append(
            OutstandingParty(
                party=name,
                amount=balance.amount,
                receivable=balance.receivable,
                bill_count=balance.bill_count if bill_level else 0,
                earliest_due_date=balance.earliest_due.isoformat() if balance.earliest_due else None,
                overdue_days=overdue_days,
            )
        )

    lines += _summary_lines(total_receivable, total_payable)
    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=OutstandingResult(
            parties=parties,
            total_receivable=total_receivable,
            total_payable=total_payable,
            bill_level=bill_level,
        ),
    )


async def party_outstanding(ctx: HandlerContext, party: str) -> HandlerResult:
    name_filter = party.lower().replace("'", "''")
    sql = (
        "SELECT $Name, $Parent, $ClosingBalance FROM Ledger "
        "WHERE ($Parent = 'Sundry Debtors' OR $Parent = 'Sundry Creditors') AND $ClosingBalance <> 0 "
        f"AND LOWER($Name) LIKE '%{name_filter}%' ORDER BY ABS($ClosingBalance) DESC"
    )
    result = await ctx.source.execute_query(sql)
    if not (result.success and result.rows):
        return failure(ctx.stamp.append(f'No companies found matching "{party}"'))

    parties = []
    total_receivable = total_payable = 0.0
    lines = [f'🔍 **Outstanding for companies matching "{party}":**', ""]
    for row in result.rows:
        amount = parse_amount(row_value(row, "ClosingBalance", "amount"))
        if amount == 0:
            continue
        name = str(row_value(row, "Name", "party_name", default="Unknown Party"))
        parent = str(row_value(row, "Parent", default=""))
        receivable = parent == "Sundry Debtors" if parent else amount > 0
        if receivable:
            total_receivable += abs(amount)
            lines.append(f"💰 **{name}** owes you: {format_inr(abs(amount))}")
        else:
            total_payable += abs(amount)
            lines.append(f"💸 You owe **{name}**: {format_inr(abs(amount))}")
        parties.append(OutstandingParty(party=name, amount=abs(amount), receivable=receivable))

    if not parties:
        lines.append(f'No outstanding amounts found for companies matching "{party}"')
    else:
        lines += _summary_lines(total_receivable, total_payable)

    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=OutstandingResult(
            parties=parties, total_receivable=total_receivable, total_payable=total_payable
        ),
    )


async def _ledger_group_totals(
    ctx: HandlerContext, sql: str, heading: str, total_label: str, receivable: bool
) -> HandlerResult | None:
    result = await ctx.source.execute_query(sql)
    if not (result.success and result.rows):
        return None

    parties = []
    lines = [heading, ""]
    for row in result.rows:
        amount = parse_amount(row_value(row, "ClosingBalance", "amount"))
        if amount == 0:
            continue
        name = str(row_value(row, "Name", default="Unknown"))
        parties.append(OutstandingParty(party=name, amount=abs(amount), receivable=receivable))
        lines.append(f"{len(parties)}. **{name}** - {format_inr(abs(amount))}")

    total = sum(party.amount for party in parties)
    lines += ["", f"{total_label}: {format_inr(total)}**"]
    return HandlerResult(
        success=True,
        text=ctx.stamp.append("\n".join(lines)),
        data=OutstandingResult(
            parties=parties,
            total_receivable=total if receivable else 0.0,
            total_payable=0.0 if receivable else total,
        ),
    )


async def receivables(ctx: HandlerContext, query: str) -> HandlerResult:
    result = await _ledger_group_totals(
        ctx, RECEIVABLES_QUERY, "💰 **Accounts Receivable:**", "💰 **Total Receivables", True
    )
    return result or failure(ctx.stamp.append("No receivables found"))


async def payables(ctx: HandlerContext, query: str) -> HandlerResult:
    result = await _ledger_group_totals(
        ctx, PAYABLES_QUERY, "💸 **Accounts Payable:**", "💸 **Total Payables", False
    )
    return result or failure(ctx.stamp.append("No payables found"))
