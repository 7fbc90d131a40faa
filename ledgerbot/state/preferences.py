"""Per-tenant shortcuts, recently used ledgers and quick-access lists."""

from dataclasses import dataclass, field
from datetime import datetime

MAX_LAST_USED = 10
MAX_SUGGESTIONS = 5

SHORTCUTS = {
    "my company": "company details",
    "company": "company details",
    "details": "company details",
    "info": "company details",
    "address": "company address",
    "phone": "company phone",
    "gst": "company gst",
    "email": "company email",
    "recent": "quick access",
    "quick": "quick access",
    "list": "list all ledger accounts",
    "all": "list all ledger accounts",
    "accounts": "list all ledger accounts",
}

SHORTCUTS_HELP = """🚀 **Quick Shortcuts:**

**Company Info:**
• "details" → Company details
• "address" → Company address
• "phone" → Company phone

**Account Lists:**
• "list" → List all accounts
• "recent" → Recent accounts
• "quick" → Quick access

**Analysis:**
• "highest" → Highest balance
• "sabse bada" → Highest balance (Hindi)

💡 Type just the shortcut word to save time!"""


def expand_shortcuts(query: str) -> str:
    """Expand one-word shortcuts and bare superlatives into full queries."""
    lowered = query.lower().strip()

    if lowered in SHORTCUTS:
        return SHORTCUTS[lowered]

    if "highest" in lowered and "balance" not in lowered:
        return f"{query} balance"

    if "sabse bada" in lowered and "balance" not in lowered:
        return f"{query} closing balance"

    return query


def is_shortcuts_help(query: str) -> bool:
    """Check if the query asks for the shortcut list."""
    return query.lower().strip() in ("shortcuts", "help shortcuts")


@dataclass
class TenantPreferences:
    tenant_id: str
    company_name: str = "Unknown Company"
    last_used_ledgers: list[str] = field(default_factory=list)
    quick_access_ledgers: list[str] = field(default_factory=list)
    updated_at: datetime = field(default_factory=datetime.now)


class ClientPreferences:
    """In-memory preferences for every tenant seen by this process."""

    def __init__(self) -> None:
        self._preferences: dict[str, TenantPreferences] = {}

    def get(self, tenant_id: str) -> TenantPreferences:
        if tenant_id not in self._preferences:
            self._preferences[tenant_id] = TenantPreferences(tenant_id=tenant_id)
        return self._preferences[tenant_id]

    def add_to_last_used(self, tenant_id: str, ledger_name: str) -> None:
        """Move a ledger to the front of the recently used list."""
        prefs = self.get(tenant_id)
        recent = [name for name in prefs.last_used_ledgers if name != ledger_name]
        prefs.last_used_ledgers = [ledger_name, *recent][:MAX_LAST_USED]
        prefs.updated_at = datetime.now()

    def last_used(self, tenant_id: str) -> list[str]:
        return list(self.get(tenant_id).last_used_ledgers)

    def set_quick_access(self, tenant_id: str, ledgers: list[str]) -> None:
        prefs = self.get(tenant_id)
        prefs.quick_access_ledgers = list(ledgers)
        prefs.updated_at = datetime.now()

    def set_company_name(self, tenant_id: str, company_name: str) -> None:
        prefs = self.get(tenant_id)
        prefs.company_name = company_name
        prefs.updated_at = datetime.now()

    def quick_suggestions(self, tenant_id: str) -> list[str]:
        """Quick-access ledgers first, then recently used ones, top five."""
        prefs = self.get(tenant_id)
        suggestions = list(prefs.quick_access_ledgers)
        suggestions += [name for name in prefs.last_used_ledgers if name not in suggestions]
        return suggestions[:MAX_SUGGESTIONS]

    def quick_access_text(self, tenant_id: str) -> str:
        suggestions = self.quick_suggestions(tenant_id)
        if not suggestions:
            return '💡 Use "List all ledger accounts" to see available options.'

        lines = ["⚡ **Quick Access Accounts:**", ""]
        lines += [f"{i}. {name}" for i, name in enumerate(suggestions, 1)]
        lines += ["", "💡 Say the account name or number to get details instantly!"]
        return "\n".join(lines)
