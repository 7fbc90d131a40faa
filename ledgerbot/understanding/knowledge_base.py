"""Rule-based query understanding that needs no external service.

Each template pairs regular expressions with an accounting query and a base
confidence. The best scoring match above ``ACCEPT_THRESHOLD`` is used.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Callable

from ledgerbot.handlers.base import ledger_from_row, row_value
from ledgerbot.parsing import parse_amount
from ledgerbot.query.formatting import format_balance, format_inr
from ledgerbot.query.models import (
    AnalyticalResult,
    CompanyResult,
    InventoryResult,
    LedgerResult,
    QueryResponse,
    ResponseCategory,
    StockItem,
)
from ledgerbot.sources.base import CompanyRecord

logger = logging.getLogger(__name__)

ACCEPT_THRESHOLD = 0.5
COVERAGE_BOOST = 0.1
COVERAGE_RATIO = 0.5

DEFAULT_SUGGESTIONS = [
    'Try: "my sales"',
    'Try: "bank balance"',
    'Try: "company details"',
    'Try: "highest balance"',
    'Try: "how many ledgers"',
    'Try: "[company name] balance"',
    'Try: "list all accounts"',
]

INTENT_SUGGESTIONS = {
    "sales_analysis": ['Try: "this month sales"', 'Try: "revenue analysis"', 'Try: "total income"'],
    "bank_balance": ['Try: "total bank balance"', 'Try: "cash balance"', 'Try: "account balances"'],
    "company_info": ['Try: "company address"', 'Try: "company phone"', 'Try: "my company details"'],
}

_LEADING_FILLER = re.compile(r"^(?:what\s+is|what's|show|get|tell\s+me)\s+(?:the\s+)?", re.IGNORECASE)


@dataclass(frozen=True)
class QueryTemplate:
    intent: str
    category: str
    patterns: tuple[re.Pattern[str], ...]
    description: str
    confidence: float
    build_sql: Callable[[re.Match[str]], str]


@dataclass(frozen=True)
class KnowledgeMatch:
    """A template chosen for a query."""

    intent: str
    category: str
    sql: str
    description: str
    confidence: float


def _patterns(*expressions: str) -> tuple[re.Pattern[str], ...]:
    return tuple(re.compile(expression, re.IGNORECASE) for expression in expressions)


def _fixed(sql: str) -> Callable[[re.Match[str]], str]:
    return lambda match: sql


def _account_balance_sql(match: re.Match[str]) -> str:
    name = _LEADING_FILLER.sub("", match.group(1).strip()).replace("'", "''")
    return (
        "SELECT $Name, $Parent, $ClosingBalance FROM Ledger "
        f"WHERE $Name LIKE '%{name}%'"
    )


TEMPLATES: tuple[QueryTemplate, ...] = (
    QueryTemplate(
        intent="company_info",
        category="company",
        patterns=_patterns(
            r"(?:company\s+)?(?:name|details|info|address|phone)",
            r"(?:my\s+)?company",
            r"(?:show|get|what\s+is)\s+(?:company|my)\s+(?:name|details|info|address|phone)",
        ),
        description="Company information including name, address and phone",
        confidence=0.9,
        build_sql=_fixed("SELECT $Name, $Address, $Phone FROM Company"),
    ),
    QueryTemplate(
        intent="sales_analysis",
        category="sales",
        patterns=_patterns(
            r"(?:my\s+)?(?:sales|revenue|turnover|income)(?:\s+(?:for|of)\s+(?:this\s+month|month))?",
            r"(?:total\s+)?(?:sales|revenue|income)(?:\s+(?:analysis|summary))?",
            r"(?:show|get)\s+(?:sales|revenue)",
        ),
        description="Sales and revenue from ledger accounts",
        confidence=0.8,
        build_sql=_fixed("SELECT $Name, $Parent, $ClosingBalance FROM Ledger"),
    ),
    QueryTemplate(
        intent="bank_balance",
        category="analytical",
        patterns=_patterns(
            r"(?:what\s+is\s+)?(?:my\s+)?bank\s+balance",
            r"(?:total\s+)?bank(?:\s+account)?\s+balance",
            r"(?:show|get)\s+bank\s+balance",
        ),
        description="Bank account balances with totals",
        confidence=0.9,
        build_sql=_fixed(
            "SELECT $Name, $ClosingBalance FROM Ledger "
            "WHERE $Parent = 'Bank Accounts' OR $Name LIKE '%BANK%'"
        ),
    ),
    QueryTemplate(
        intent="highest_balance",
        category="analytical",
        patterns=_patterns(
            r"(?:highest|maximum|biggest|top)\s+(?:closing\s+)?balance",
            r"(?:which\s+(?:company|account))\s+has\s+(?:highest|maximum)\s+balance",
            r"(?:sabse\s+(?:bada|zyada))\s+balance",
            r"(?:who\s+has\s+the\s+)?(?:highest|maximum)\s+balance",
        ),
        description="Accounts with the highest closing balances",
        confidence=0.85,
        build_sql=_fixed("SELECT $Name, $Parent, $ClosingBalance FROM Ledger"),
    ),
    QueryTemplate(
        intent="ledger_count",
        category="analytical",
        patterns=_patterns(
            r"(?:how\s+many)\s+(?:ledgers?|accounts?)",
            r"(?:count|total)\s+(?:of\s+)?(?:ledgers?|accounts?)",
            r"(?:number\s+of)\s+(?:ledgers?|accounts?)",
            r"(?:ledger|account)\s+count",
        ),
        description="Total number of ledger accounts",
        confidence=0.9,
        build_sql=_fixed("SELECT $Name FROM Ledger"),
    ),
    QueryTemplate(
        intent="account_balance",
        category="ledger",
        patterns=_patterns(
            r"(?:balance\s+of\s+)([a-z\s&\-\.]+)",
            r"([a-z\s&\-\.]{3,})\s+(?:closing\s+)?balance",
            r"(?:show|get)\s+balance\s+(?:of\s+)?([a-z\s&\-\.]+)",
        ),
        description="Balance of a named account",
        confidence=0.75,
        build_sql=_account_balance_sql,
    ),
    QueryTemplate(
        intent="list_accounts",
        category="ledger",
        patterns=_patterns(
            r"(?:list|show)\s+(?:all\s+)?(?:ledgers?|accounts?)",
            r"(?:all\s+)?(?:ledger|account)\s+(?:list|accounts?)",
            r"(?:get|show)\s+(?:all\s+)?accounts?",
        ),
        description="All ledger accounts with their balances",
        confidence=0.8,
        build_sql=_fixed("SELECT $Name, $Parent, $ClosingBalance FROM Ledger ORDER BY $Name"),
    ),
    QueryTemplate(
        intent="stock_inquiry",
        category="inventory",
        patterns=_patterns(
            r"(?:stock|inventory)\s+(?:items?|status|summary)",
            r"(?:how\s+many)\s+(?:stock\s+items?|inventory)",
            r"(?:show|list)\s+(?:stock|inventory)",
            r"(?:stock|inventory)\s+(?:balance|quantity)",
        ),
        description="Stock items and quantities",
        confidence=0.7,
        build_sql=_fixed("SELECT $Name, $Parent, $ClosingBalance FROM StockItem"),
    ),
)


class KnowledgeBase:
    """Fixed pattern to query templates with confidence scoring."""

    def __init__(self, templates: tuple[QueryTemplate, ...] = TEMPLATES) -> None:
        self.templates = templates

    def match(self, query: str) -> KnowledgeMatch | None:
        q = query.strip().lower()
        if not q:
            return None

        best: KnowledgeMatch | None = None
        for template in self.templates:
            for pattern in template.patterns:
                found = pattern.search(q)
                if not found:
                    continue
                confidence = template.confidence
                if len(found.group(0)) / len(q) > COVERAGE_RATIO:
                    confidence += COVERAGE_BOOST
                if best is None or confidence > best.confidence:
                    best = KnowledgeMatch(
                        intent=template.intent,
                        category=template.category,
                        sql=template.build_sql(found),
                        description=template.description,
                        confidence=round(confidence, 4),
                    )

        if best is not None and best.confidence > ACCEPT_THRESHOLD:
            logger.info(f"Knowledge base matched {best.intent} ({best.confidence:.2f})")
            return best
        return None

    @staticmethod
    def suggestions(intent: str | None = None) -> list[str]:
        return list(INTENT_SUGGESTIONS.get(intent or "", DEFAULT_SUGGESTIONS))


def format_match(match: KnowledgeMatch, rows: list[dict[str, Any]]) -> QueryResponse:
    """Render source rows for a matched template."""
    header = f"🧠 **AI Analysis:** {match.description}\n\n"

    if match.intent == "company_info":
        row = rows[0]
        company = CompanyRecord(
            name=str(row_value(row, "Name", default="Company")),
            address=row_value(row, "Address"),
            phone=row_value(row, "Phone"),
        )
        text = f"{header}🏢 **{company.name}**\n\n📍 **Address:** {company.address or 'Not available'}"
        if company.phone:
            text += f"\n📞 **Phone:** {company.phone}"
        return _response(match, ResponseCategory.COMPANY, text, CompanyResult(company=company))

    if match.intent == "bank_balance":
        return format_bank_balance(match, rows)

    if match.intent == "highest_balance":
        return format_highest_balance(match, rows)

    if match.intent == "ledger_count":
        text = (
            f"{header}📆 **Total Count:** {len(rows)}\n\n"
            "This includes all ledger accounts in your Tally database."
        )
        return _response(
            match, ResponseCategory.ANALYTICAL, text, AnalyticalResult(totals={"count": len(rows)})
        )

    if match.category == "inventory":
        items = [
            StockItem(
                name=str(row_value(row, "Name", default="Unknown")),
                quantity=abs(parse_amount(row_value(row, "ClosingBalance"))),
            )
            for row in rows
        ]
        lines = [f"{i}. **{item.name}** - {item.quantity:,.2f}" for i, item in enumerate(items[:10], 1)]
        text = header + "📦 **Stock Items:**\n\n" + "\n".join(lines)
        return _response(match, ResponseCategory.INVENTORY, text, InventoryResult(items=items))

    ledgers = [ledger_from_row(row) for row in rows]
    lines = [
        f"{i}. **{ledger.name}** ({ledger.parent_group}) - {format_balance(ledger.closing_balance)}"
        for i, ledger in enumerate(ledgers[:10], 1)
    ]
    text = header + "📊 **Account Information:**\n\n" + "\n".join(lines)
    if len(ledgers) > 10:
        text += f"\n\n... and {len(ledgers) - 10} more accounts"
    return _response(match, ResponseCategory.LEDGER, text, LedgerResult(records=ledgers[:10]))


def format_bank_balance(match: KnowledgeMatch, rows: list[dict[str, Any]]) -> QueryResponse:
    ledgers = [ledger_from_row(row) for row in rows]
    total = sum(ledger.closing_balance for ledger in ledgers)
    available = sum(ledger.closing_balance for ledger in ledgers if ledger.closing_balance > 0)
    overdrawn = sum(-ledger.closing_balance for ledger in ledgers if ledger.closing_balance < 0)

    lines = [
        "🧠 **AI Analysis:** Bank account balance analysis",
        "",
        f"🏦 **Total Bank Balance:** {format_balance(total)}",
        "",
    ]
    if available > 0:
        lines.append(f"💰 **Available Funds:** {format_inr(available)}")
    if overdrawn > 0:
        lines.append(f"💳 **Overdraft/Loans:** {format_inr(overdrawn)}")

    return _response(
        match,
        ResponseCategory.ANALYTICAL,
        "\n".join(lines).rstrip(),
        AnalyticalResult(records=ledgers, totals={"total_balance": total}),
    )


def format_highest_balance(match: KnowledgeMatch, rows: list[dict[str, Any]]) -> QueryResponse:
    ledgers = sorted(
        (ledger_from_row(row) for row in rows),
        key=lambda ledger: abs(ledger.closing_balance),
        reverse=True,
    )[:10]

    lines = [
        "🧠 **AI Analysis:** Accounts with highest closing balances",
        "",
        "📈 **Top 10 Highest Balances:**",
        "",
    ]
    for i, ledger in enumerate(ledgers, 1):
        lines.append(f"{i}. **{ledger.name}** ({ledger.parent_group})")
        lines.append(f"   {format_balance(ledger.closing_balance)}")
        lines.append("")

    return _response(
        match, ResponseCategory.ANALYTICAL, "\n".join(lines).rstrip(), AnalyticalResult(records=ledgers)
    )


def _response(match: KnowledgeMatch, category: ResponseCategory, text: str, data) -> QueryResponse:
    return QueryResponse(
        success=True,
        category=category,
        data=data,
        human_text=text,
        suggestions=KnowledgeBase.suggestions(match.intent),
    )
