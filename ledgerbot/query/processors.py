"""Per-intent processors that answer from the replicated transaction store."""

import logging
import re

from ledgerbot.query.classifier import Intent, extract_search_term
from ledgerbot.query.formatting import format_balance, format_compact, format_inr
from ledgerbot.query.models import (
    AnalyticalResult,
    CompanyResult,
    LedgerResult,
    MessageResult,
    QueryResponse,
    ResponseCategory,
)
from ledgerbot.sources.base import CompanyRecord, LedgerRecord, TransactionStore
from ledgerbot.state.preferences import ClientPreferences

logger = logging.getLogger(__name__)

# Balances above 1000 crore are treated as bad data
MAX_SANE_BALANCE = 10_000_000_000

LEDGER_SEARCH_SUGGESTIONS = [
    "Try searching with partial names",
    "Check for typos",
    'Use "List all ledger accounts" to see available options',
]

SYNC_HINT_SUGGESTIONS = [
    "Start Tally software first",
    'Click "Sync Data" to refresh',
    "Check if ledger accounts exist in Tally",
]

DATA_NOT_AVAILABLE = (
    "⚠️ **Data not available**\n\n"
    "🔧 **Possible issues:**\n"
    "• Tally software is not running\n"
    "• Data has not been synced yet\n"
    "• Database connection not configured\n\n"
    "💡 **Next steps:**\n"
    "• Start Tally software\n"
    '• Click "Sync Data" in the app\n'
    "• Check connection settings"
)

HELP_TEXT = (
    "I can help you with:\n\n"
    '• **Account balances:** "What is [company name] balance?"\n'
    '• **List accounts:** "List all ledger accounts"\n'
    '• **Quick access:** "Show recent accounts"\n'
    '• **Generate PDFs:** "Send invoice of [company name]"\n'
    '• **Analytics:** "Which company has highest balance?"'
)

QUICK_COMMANDS = """🚀 **Quick Commands & Shortcuts:**

**📊 Analytics:**
• "my sales" - Sales analysis
• "bank balance" - Total bank balance
• "highest balance" - Top balances
• "how many ledgers" - Account count

**🏢 Company Info:**
• "details" - Company details
• "address" - Company address
• "phone" - Company phone

**📈 Reports:**
• "list" - All accounts
• "monthly sales" - Monthly analysis
• "profit loss" - P&L summary
"""

INVENTORY_SUGGESTIONS = [
    "Connect to Tally first",
    "Enable inventory in Tally company features",
    'Try: "show stock summary"',
    'Try: "list all stock items"',
]

_DOCUMENT_WORDS = ("invoice", "pdf", "bill", "statement", "e-invoice")

_STOCK_ITEM_PATTERNS = [
    re.compile(r"pdf\s+of\s+([\w\s]+?)(?:\s+stock|$)", re.IGNORECASE),
    re.compile(r"pdf\s+for\s+([\w\s]+?)(?:\s+stock|$)", re.IGNORECASE),
    re.compile(r"([\w\s]+?)\s+stock\s+pdf", re.IGNORECASE),
    re.compile(r"([\w\s]+?)\s+pdf", re.IGNORECASE),
]


def ledger_line(ledger: LedgerRecord) -> str:
    return f"**{ledger.name}** ({ledger.parent_group}) - {format_balance(ledger.closing_balance)}"


def selection_text(ledger: LedgerRecord) -> str:
    """Answer shown after the user picks a ledger from a numbered list."""
    return (
        f"✅ **{ledger.name}** ({ledger.parent_group})\n"
        f"Closing Balance: {format_balance(ledger.closing_balance)}\n\n"
        '💡 Say "generate pdf" or "send invoice" to create an e-invoice for this account.'
    )


def disambiguation_text(ledgers: list[LedgerRecord], heading: str | None = None) -> str:
    lines = [heading or f"Found {len(ledgers)} matching accounts:", ""]
    lines += [f"{i}. {ledger_line(ledger)}" for i, ledger in enumerate(ledgers, 1)]
    lines += ["", "💡 Reply with a number (1, 2, etc.) to select an account"]
    return "\n".join(lines)


def extract_stock_item(query: str) -> str | None:
    for pattern in _STOCK_ITEM_PATTERNS:
        match = pattern.search(query)
        if match:
            name = re.sub(r"\b(?:stock|item|items|the|of|for|send|me|generate)\b", "", match.group(1), flags=re.IGNORECASE)
            name = " ".join(name.split())
            if name:
                return name
    return None


class CategoryProcessors:
    """Store-backed answers for each classifier intent."""

    def __init__(self, store: TransactionStore, preferences: ClientPreferences) -> None:
        self.store = store
        self.preferences = preferences

    async def process(self, intent: Intent, tenant_id: str, query: str) -> QueryResponse:
        """Dispatch a classified query to its processor."""
        if intent == Intent.COMPANY:
            return await self.company(tenant_id, query)
        if intent == Intent.ANALYTICAL:
            return await self.analytical(tenant_id, query)
        if intent == Intent.INVENTORY:
            return self.inventory(query)
        if intent == Intent.LEDGER:
            return await self.ledger(tenant_id, query)
        if intent == Intent.REMINDERS:
            return self.reminders(query)
        return await self.general(tenant_id, query)

    async def company(self, tenant_id: str, query: str) -> QueryResponse:
        company = await self.store.get_company(tenant_id)
        if company is None:
            return QueryResponse(
                success=False,
                category=ResponseCategory.COMPANY,
                human_text=(
                    "❌ **Company information not found**\n\nPlease ensure:\n"
                    "• Your Tally data has been synced\n"
                    "• Company master data exists in Tally\n"
                    "• Try running data sync again"
                ),
                suggestions=["Try: \"sync data\"", "Check if company data exists in Tally"],
            )

        requested, text = company_field_text(company, query.lower())
        return QueryResponse(
            success=True,
            category=ResponseCategory.COMPANY,
            data=CompanyResult(company=company, requested_field=requested),
            human_text=text,
        )

    async def analytical(self, tenant_id: str, query: str) -> QueryResponse:
        q = query.lower()

        if any(word in q for word in ("sales", "revenue", "turnover", "bikri")):
            return await self._sales_ledgers(tenant_id)

        if any(word in q for word in ("profit", "loss", "p&l")):
            return await self._profit_and_loss(tenant_id)

        if any(
            word in q
            for word in ("highest", "sabse zyada", "maximum", "sabse bada", "biggest",
                         "which company has", "kiska hai", "kon sa", "kaun sa", "top")
        ):
            return await self._top_balances(tenant_id)

        return QueryResponse(
            success=False,
            category=ResponseCategory.ANALYTICAL,
            human_text=(
                "I can help you analyze highest balances, sales performance, profit & loss, "
                'and more. Try asking "What are my sales?" or "Show me profit and loss"'
            ),
            suggestions=[
                "What are my today sales?",
                "Show me profit and loss",
                "Which account has highest balance?",
            ],
        )

    async def _sales_ledgers(self, tenant_id: str) -> QueryResponse:
        ledgers = await self.store.list_ledgers(tenant_id, limit=500)
        sales = [
            ledger
            for ledger in ledgers
            if any(word in ledger.parent_group.lower() for word in ("sales", "income", "revenue"))
            and ledger.closing_balance != 0
        ]
        if not sales:
            return QueryResponse(
                success=False,
                category=ResponseCategory.ANALYTICAL,
                human_text="No sales accounts with balances found. Please sync your Tally data.",
            )

        sales.sort(key=lambda ledger: abs(ledger.closing_balance), reverse=True)
        total = sum(abs(ledger.closing_balance) for ledger in sales)
        lines = ["**📊 Sales Accounts:**", "", f"**Total Sales:** {format_inr(total)}", ""]
        for i, ledger in enumerate(sales[:10], 1):
            share = abs(ledger.closing_balance) / total * 100 if total else 0.0
            lines.append(
                f"{i}. **{ledger.name}** - {format_inr(abs(ledger.closing_balance))} ({share:.1f}%)"
            )
        return QueryResponse(
            success=True,
            category=ResponseCategory.ANALYTICAL,
            data=AnalyticalResult(records=sales, totals={"total_sales": total}),
            human_text="\n".join(lines),
        )

    async def _profit_and_loss(self, tenant_id: str) -> QueryResponse:
        ledgers = await self.store.list_ledgers(tenant_id, limit=500)
        income = [
            ledger
            for ledger in ledgers
            if any(word in ledger.parent_group.lower() for word in ("income", "sales", "revenue", "profit"))
        ]
        expenses = [
            ledger
            for ledger in ledgers
            if any(word in ledger.parent_group.lower() for word in ("expense", "cost", "charges", "fees"))
        ]
        total_income = sum(abs(ledger.closing_balance) for ledger in income)
        total_expenses = sum(abs(ledger.closing_balance) for ledger in expenses)
        net = total_income - total_expenses

        lines = [
            "**Profit & Loss Summary:**",
            "",
            f"**Total Income:** {format_inr(total_income)}",
            f"**Total Expenses:** {format_inr(total_expenses)}",
            f"**Net {'Profit' if net >= 0 else 'Loss'}:** {format_inr(abs(net))}",
        ]
        if income or expenses:
            margin = net / total_income * 100 if total_income else 0.0
            lines += [
                "",
                f"**Business Performance:** {'Profitable' if net >= 0 else 'Loss-making'} operations",
                f"**Margin:** {margin:.1f}%",
            ]
        return QueryResponse(
            success=True,
            category=ResponseCategory.ANALYTICAL,
            data=AnalyticalResult(
                records=[*income, *expenses],
                totals={"income": total_income, "expenses": total_expenses, "net": net},
            ),
            human_text="\n".join(lines),
        )

    async def _top_balances(self, tenant_id: str) -> QueryResponse:
        ledgers = await self.store.top_balances(tenant_id, limit=10)
        ledgers = [ledger for ledger in ledgers if abs(ledger.closing_balance) < MAX_SANE_BALANCE]
        if not ledgers:
            return QueryResponse(
                success=False,
                category=ResponseCategory.ANALYTICAL,
                human_text="No accounts with balances found.",
            )

        lines = ["**Top 10 Highest Balances:**", ""]
        for i, ledger in enumerate(ledgers[:10], 1):
            marker = "Dr" if ledger.closing_balance >= 0 else "Cr"
            lines.append(f"{i}. **{ledger.name}** ({ledger.parent_group})")
            lines.append(f"   {format_compact(abs(ledger.closing_balance))} {marker}")
            lines.append("")
        return QueryResponse(
            success=True,
            category=ResponseCategory.ANALYTICAL,
            data=AnalyticalResult(records=ledgers),
            human_text="\n".join(lines).rstrip(),
        )

    def inventory(self, query: str) -> QueryResponse:
        q = query.lower()

        if any(word in q for word in ("pdf", "export", "report")):
            item = extract_stock_item(query)
            if item:
                text = (
                    "📄 **PDF Generation Request**\n\n"
                    f"🔧 **Item:** {item}\n\n"
                    "This will generate a detailed stock report including current stock levels, "
                    "stock value and transaction history."
                )
            else:
                text = (
                    "📄 **Stock Summary PDF Generation**\n\n"
                    "📊 **Generating complete stock report...**\n\n"
                    "This will include all stock items, current quantities, stock values "
                    "and low stock alerts."
                )
            return QueryResponse(
                success=True,
                category=ResponseCategory.INVENTORY,
                data=MessageResult(intent="generate_pdf", detail={"stock_item": item or "all"}),
                human_text=text,
            )

        if any(word in q for word in ("how many", "kitne", "quantity")):
            text = (
                "📊 **Inventory Quantity Query**\n\n"
                "📦 **Stock tracking available via Tally ODBC!**\n\n"
                "🔍 **Setup:**\n"
                "• Connect to Tally with ODBC enabled\n"
                "• Ensure inventory features are enabled in Tally\n\n"
                "💡 After connecting, this query will show actual item quantities."
            )
        elif "lowest stock" in q or "minimum" in q:
            text = (
                "📉 **Minimum Stock Analysis**\n\n"
                "🎯 Low stock detection, zero stock alerts and stock value analysis are available "
                "once Tally is connected with inventory enabled."
            )
        elif any(word in q for word in ("stock looking", "status", "list all stock")):
            text = (
                "📊 **Stock Status Overview**\n\n"
                "📈 Total item count, stock value, low stock alerts and high value items are "
                'available. Connect to Tally first, then ask for "stock summary".'
            )
        else:
            text = (
                "📦 **Inventory & Stock Management**\n\n"
                "💡 **Quick start:**\n"
                "1. Connect to Tally with ODBC enabled\n"
                "2. Ensure inventory is enabled in company features\n"
                '3. Ask: "show stock summary" or "list all stock items"'
            )
        return QueryResponse(
            success=True,
            category=ResponseCategory.INVENTORY,
            human_text=text,
            suggestions=INVENTORY_SUGGESTIONS,
        )

    async def ledger(
        self, tenant_id: str, query: str, search_term: str | None = None
    ) -> QueryResponse:
        """Search ledgers by name and answer with a balance or a numbered list."""
        term = search_term or extract_search_term(query)
        q = query.lower()

        if any(word in q for word in _DOCUMENT_WORDS):
            return await self._document_request(tenant_id, term)

        ledgers = await self.store.search_ledgers(tenant_id, term, limit=10)

        if not ledgers:
            if not self.store.is_configured:
                return QueryResponse(
                    success=False,
                    category=ResponseCategory.LEDGER,
                    human_text=DATA_NOT_AVAILABLE,
                    suggestions=SYNC_HINT_SUGGESTIONS,
                )
            return QueryResponse(
                success=False,
                category=ResponseCategory.LEDGER,
                human_text=(
                    f'No ledger found matching "{term}". '
                    "Please check the spelling or try a different search term."
                ),
                suggestions=LEDGER_SEARCH_SUGGESTIONS,
            )

        if len(ledgers) == 1:
            ledger = ledgers[0]
            self.preferences.add_to_last_used(tenant_id, ledger.name)
            return QueryResponse(
                success=True,
                category=ResponseCategory.LEDGER,
                data=LedgerResult(records=ledgers),
                human_text=(
                    f"**{ledger.name}** ({ledger.parent_group})\n"
                    f"Closing Balance: {format_balance(ledger.closing_balance)}"
                ),
            )

        return QueryResponse(
            success=True,
            category=ResponseCategory.LEDGER,
            data=LedgerResult(records=ledgers),
            human_text=disambiguation_text(ledgers),
        )

    async def _document_request(self, tenant_id: str, term: str) -> QueryResponse:
        if not term or len(term) < 3:
            return QueryResponse(
                success=False,
                category=ResponseCategory.LEDGER,
                human_text=(
                    "Please specify a company/ledger name for PDF generation. "
                    'Example: "send me e-invoice of gangotri steel"'
                ),
            )

        ledgers = await self.store.search_ledgers(tenant_id, term, limit=5)
        if not ledgers:
            text = (
                DATA_NOT_AVAILABLE
                if not self.store.is_configured
                else f'❌ Failed to generate PDF for "{term}": No ledger found matching "{term}"'
            )
            return QueryResponse(
                success=False,
                category=ResponseCategory.LEDGER,
                human_text=text,
                suggestions=LEDGER_SEARCH_SUGGESTIONS,
            )

        if len(ledgers) == 1:
            ledger = ledgers[0]
            return QueryResponse(
                success=True,
                category=ResponseCategory.LEDGER,
                data=MessageResult(intent="generate_pdf", detail={"ledger": ledger.name}),
                human_text=(
                    f"📄 **Generating E-Invoice for {ledger.name}**\n\n"
                    f"Closing Balance: {format_balance(ledger.closing_balance)}\n\n"
                    "⏳ Processing e-invoice generation..."
                ),
            )

        return QueryResponse(
            success=True,
            category=ResponseCategory.LEDGER,
            data=LedgerResult(records=ledgers),
            human_text=disambiguation_text(
                ledgers, heading=f"Found {len(ledgers)} matching accounts for PDF generation:"
            ),
        )

    async def general(self, tenant_id: str, query: str) -> QueryResponse:
        q = query.lower().strip()

        if any(phrase in q for phrase in ("list all", "show all", "all ledger", "sare accounts", "sabhi accounts")) or q in (
            "list",
            "accounts",
            "ledgers",
        ):
            return await self._list_ledgers(tenant_id)

        if any(phrase in q for phrase in ("quick access", "recent", "shortcuts")):
            return await self._quick_access(tenant_id)

        return QueryResponse(
            success=False,
            category=ResponseCategory.GENERAL,
            human_text=HELP_TEXT,
            suggestions=[
                'Try: "What is [company name] closing balance?"',
                'Try: "List all ledger accounts"',
                'Try: "Which company has highest balance?"',
            ],
        )

    async def _list_ledgers(self, tenant_id: str) -> QueryResponse:
        ledgers = await self.store.list_ledgers(tenant_id, limit=50)
        if not ledgers:
            return QueryResponse(
                success=False,
                category=ResponseCategory.LEDGER,
                human_text="No ledger accounts found. Please ensure your data is synced.",
            )

        shown = ledgers[:10]
        lines = [f"**All Ledger Accounts (Showing {len(shown)} of {len(ledgers)}):**", ""]
        for i, ledger in enumerate(shown, 1):
            balance = "—" if ledger.closing_balance == 0 else format_balance(ledger.closing_balance)
            lines.append(f"{i}. **{ledger.name}** - {balance}")
        if len(ledgers) > 10:
            lines += ["", f"... and {len(ledgers) - 10} more accounts."]
        lines += ["", '💡 **Tip:** Use "Quick access" to see your frequently used accounts!']

        return QueryResponse(
            success=True,
            category=ResponseCategory.LEDGER,
            data=LedgerResult(records=shown),
            human_text="\n".join(lines),
        )

    async def _quick_access(self, tenant_id: str) -> QueryResponse:
        recent = self.preferences.last_used(tenant_id)
        lines = [QUICK_COMMANDS]
        if recent:
            lines.append("**🕰️ Recently Used Accounts:**")
            for i, name in enumerate(recent[:5], 1):
                matches = await self.store.search_ledgers(tenant_id, name, limit=1)
                if matches:
                    lines.append(f"{i}. **{matches[0].name}** - {format_balance(matches[0].closing_balance)}")
        else:
            lines.append("**📁 Tip:** Start searching for accounts to see your recently used ones here!")

        return QueryResponse(
            success=True,
            category=ResponseCategory.GENERAL,
            data=MessageResult(intent="quick_access", detail={"recent_ledgers": recent}),
            human_text="\n".join(lines),
            suggestions=['Try: "my sales"', 'Try: "bank balance"', 'Try: "details"', 'Try: "highest balance"'],
        )

    def reminders(self, query: str) -> QueryResponse:
        q = query.lower()
        if "remind me" in q or "set reminder" in q:
            text = (
                "📝 **Reminder Feature Coming Soon!**\n\n"
                "💡 For now, you can:\n"
                '• Check outstanding receivables with "show outstanding"\n'
                '• View pending bills with "pending bills"\n'
                "• Get customer balances for follow-up"
            )
        elif "today's reminders" in q or "pending tasks" in q:
            text = (
                "📅 **Today's Business Tasks**\n\n"
                "✅ **Available Now:**\n"
                '• Check outstanding payments: "show outstanding"\n'
                '• Review due bills: "overdue bills"\n'
                '• Bank balance check: "bank balance"\n'
                "• Today's sales: \"today's sales\""
            )
        else:
            text = (
                "📋 **Task & Reminder Management**\n\n"
                "🔧 **Available Commands:**\n"
                '• "show outstanding" - See pending payments\n'
                '• "overdue bills" - Check overdue invoices\n'
                '• "pending bills" - View unpaid bills\n'
                '• "who has not paid" - Customer follow-ups'
            )
        return QueryResponse(
            success=True,
            category=ResponseCategory.REMINDERS,
            data=MessageResult(intent="reminder"),
            human_text=text,
            suggestions=[
                'Try: "show outstanding receivables"',
                'Try: "overdue bills"',
                'Try: "pending invoices"',
            ],
        )


def company_field_text(company: CompanyRecord, q: str) -> tuple[str | None, str]:
    """Pick the company field the query asks about and render it."""
    if "address" in q or "location" in q:
        return "address", f"🏢 **Company Address:**\n{company.address or 'Address not available'}"
    if "name" in q:
        return "name", f"🏢 **Company Name:**\n{company.name}"
    if "phone" in q or "contact" in q:
        return "phone", f"📞 **Company Phone:**\n{company.phone or 'Phone not available'}"
    if "email" in q:
        return "email", f"📧 **Company Email:**\n{company.email or 'Email not available'}"
    if "gst" in q:
        return "gst_registration", f"🧾 **GST Registration:**\n{company.gst_registration or 'GST not available'}"

    text = (
        f"🏢 **{company.name}**\n\n"
        f"📍 **Address:**\n{company.address or 'Not available'}\n\n"
        f"📞 **Phone:** {company.phone or 'Not available'}\n"
        f"📧 **Email:** {company.email or 'Not available'}"
    )
    if company.gst_registration:
        text += f"\n🧾 **GST:** {company.gst_registration}"
    return None, text
