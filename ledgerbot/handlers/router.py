"""Category detection and ordered handler fallback."""

import logging
import re
from datetime import date
from typing import Callable

from ledgerbot.errors import NotConnectedError
from ledgerbot.handlers import analytical, cash_bank, company, inventory, ledger, outstanding, reports, sales
from ledgerbot.handlers.base import CategoryDefinition, HandlerContext, HandlerResult
from ledgerbot.query.formatting import SyncStamp
from ledgerbot.sources.base import AccountingSource

logger = logging.getLogger(__name__)

_MONTHS = (
    "january", "february", "march", "april", "may", "june",
    "july", "august", "september", "october", "november", "december",
)

_YEAR = re.compile(r"\b20\d{2}\b")


def build_categories() -> tuple[CategoryDefinition, ...]:
    """The chain categories in detection priority, each with handlers in fallback order."""
    return (
        CategoryDefinition(
            id="company",
            display_name="Company Information",
            triggers=(
                "company address", "my address", "company details", "company info", "my company",
                "what is my address", "company ka address", "address kya hai",
            ),
            keywords=("address",),
            handlers=(company.company_info, company.company_address),
        ),
        CategoryDefinition(
            id="cash_bank",
            display_name="Cash & Bank",
            triggers=(
                "bank balance", "cash balance", "mere paas kitna cash", "bank balance kitna",
                "cash in hand", "show bank", "total cash", "what is bank balance",
                "cash kitna hai", "bank account balance",
            ),
            keywords=("cash", "bank"),
            handlers=(cash_bank.cash_and_bank, cash_bank.cash_flow),
        ),
        CategoryDefinition(
            id="sales",
            display_name="Sales",
            triggers=(
                "sales this month", "my sales", "sales for", "total sales", "sales summary",
                "sales report", "what are my sales", "monthly sales", "revenue this month",
                "what is my sales for", "show me my sales",
                *(f"sales {month}" for month in _MONTHS),
            ),
            keywords=("sales", "revenue"),
            handlers=(sales.sales_summary, sales.sales_trends),
        ),
        CategoryDefinition(
            id="outstanding",
            display_name="Outstanding",
            triggers=(
                "outstanding", "receivables", "payables", "who has r", "total outs",
                "list all ove", "show out", "pending payments",
            ),
            keywords=("outstanding", "receivable"),
            handlers=(outstanding.outstanding, outstanding.receivables, outstanding.payables),
        ),
        CategoryDefinition(
            id="inventory",
            display_name="Inventory",
            triggers=(
                "stock status", "inventory", "stock sum", "my stock", "what is my stock",
                "stock items", "stock kitna hai",
            ),
            keywords=("stock", "inventory"),
            handlers=(inventory.stock_summary,),
        ),
        CategoryDefinition(
            id="ledger",
            display_name="Ledger",
            triggers=(
                "ledger", "trial balance", "profit & loss", "balance sheet", "how many ledgers",
                "all accounts", "account list",
            ),
            keywords=("ledger", "account"),
            handlers=(
                ledger.ledger_accounts,
                ledger.trial_balance,
                ledger.profit_and_loss,
                ledger.balance_sheet,
            ),
        ),
        CategoryDefinition(
            id="analytical",
            display_name="Analytical",
            triggers=(
                "highest balance", "maximum balance", "top balance", "highest closing",
                "maximum closing", "which company has highest", "who has maximum balance",
                "who has the highest", "sabse zyada", "most balance", "largest balance",
                "maximum kiska", "highest kiska", "top customer", "largest debtor",
                "biggest balance", "maximum amount",
            ),
            keywords=("highest", "maximum", "top"),
            handlers=(analytical.top_balances, analytical.highest_balance),
        ),
        CategoryDefinition(
            id="purchase",
            display_name="Purchase",
            triggers=("purchase", "total purch", "share purch", "what are my purchases"),
            keywords=("purchase",),
            handlers=(sales.purchase_summary,),
        ),
        CategoryDefinition(
            id="invoices",
            display_name="Invoices",
            triggers=("invoice", "bill", "share tod", "show all p", "bill summ"),
            keywords=("invoice", "bill"),
            handlers=(reports.invoice_summary, reports.today_invoices, reports.pending_invoices),
        ),
        CategoryDefinition(
            id="reminder",
            display_name="Reminder",
            triggers=("remind", "set remin", "what task", "pending", "task reminder"),
            keywords=("remind",),
            handlers=(reports.reminders, reports.task_management),
        ),
        CategoryDefinition(
            id="miscellaneous",
            display_name="Miscellaneous",
            keywords=(
                "vat return", "vat report", "profit margin", "day book", "daybook",
                "work order", "job order", "production",
            ),
            handlers=(
                reports.vat_returns,
                reports.profit_margin,
                reports.day_book,
                reports.cash_flow_report,
                reports.work_orders,
            ),
        ),
    )


CATEGORIES = build_categories()


def determine_category(
    query: str, categories: tuple[CategoryDefinition, ...] | None = None
) -> str | None:
    """Pick a chain category id for a query, or None when nothing matches.

    Trigger phrases of every category are tried before any category's
    keywords, so a precise phrase always beats a broad word.
    """
    if categories is None:
        categories = CATEGORIES
    q = query.lower().strip()

    for category in categories:
        if any(phrase in q for phrase in category.triggers):
            return category.id

    if "sales" in q and _YEAR.search(q):
        return "sales"

    for category in categories:
        if any(keyword in q for keyword in category.keywords):
            return category.id

    return None


class CategoryRouter:
    """Routes a query to its category and tries that category's handlers in order."""

    def __init__(
        self,
        source: AccountingSource,
        stamp: SyncStamp | None = None,
        today: Callable[[], date] = date.today,
    ) -> None:
        self.context = HandlerContext(source=source, stamp=stamp or SyncStamp(), today=today)
        self.categories = {category.id: category for category in build_categories()}

    def determine_category(self, query: str) -> CategoryDefinition | None:
        category_id = determine_category(query, tuple(self.categories.values()))
        return self.categories.get(category_id) if category_id else None

    async def resolve(self, query: str) -> HandlerResult | None:
        """Answer a query through the chain, or None when no category applies."""
        category = self.determine_category(query)
        if category is None:
            return None
        return await self.route(category, query)

    async def route(self, category: CategoryDefinition, query: str) -> HandlerResult:
        """Run handlers until one succeeds.

        Raises:
            NotConnectedError: The accounting source is unreachable
        """
        q = query.lower().strip()
        for handler in category.handlers:
            try:
                result = await handler(self.context, q)
            except NotConnectedError:
                raise
            except Exception as e:
                logger.error(f"Handler {handler.__name__} failed for {category.id}: {e}", exc_info=True)
                continue

            if result.success:
                logger.info(f"Category {category.id} answered by {handler.__name__}")
                return result.model_copy(update={"category": category.display_name})

        return HandlerResult(
            success=False,
            category=category.display_name,
            text=(
                f"I understand you're asking about {category.display_name.lower()}. "
                "Please be more specific about what information you need. For example:\n\n"
                '• "Show me sales summary"\n'
                '• "What are my outstanding receivables?"\n'
                '• "Give me inventory list"'
            ),
        )
