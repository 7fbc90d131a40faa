"""Two-tier keyword intent classifier.

Each category gets a fuzzy keyword score. The best category wins when it
scores above ``CONFIDENCE_THRESHOLD``; otherwise an ordered exact-substring
matcher decides. Short idiomatic queries such as ``details`` or ``list`` are
what the exact tier exists for.
"""

import logging
import re
from enum import Enum

logger = logging.getLogger(__name__)

CONFIDENCE_THRESHOLD = 0.3


class Intent(str, Enum):
    GENERAL = "general"
    INVENTORY = "inventory"
    COMPANY = "company"
    ANALYTICAL = "analytical"
    LEDGER = "ledger"
    REMINDERS = "reminders"


SPELLING_CORRECTIONS = {
    "slaes": "sales",
    "sale": "sales",
    "seles": "sales",
    "saels": "sales",
    "balence": "balance",
    "ballance": "balance",
    "balanc": "balance",
    "mont": "month",
    "monht": "month",
    "mounth": "month",
    "compny": "company",
    "compani": "company",
    "comapny": "company",
    "ledgor": "ledger",
    "legers": "ledger",
    "leder": "ledger",
    "bnk": "bank",
    "banck": "bank",
    "wat": "what",
    "wht": "what",
    "whta": "what",
    "teh": "the",
    "hte": "the",
}

_CORRECTION_RES = [
    (re.compile(rf"\b{typo}\b", re.IGNORECASE), fix) for typo, fix in SPELLING_CORRECTIONS.items()
]

GENERAL_KEYWORDS = [
    "list all", "show all", "all ledger", "sare accounts", "sabhi accounts",
    "list", "accounts", "ledgers", "quick access", "recent", "shortcuts",
]

INVENTORY_KEYWORDS = [
    "stock", "inventory", "item", "items", "pipe", "pipes", "product", "products",
    "how many items", "kitne items", "quantity", "lowest stock", "sabse kam stock",
    "highest stock", "sabse zyada stock", "stock looking", "stock status",
    "out of stock", "stock khatam", "reorder", "minimum stock", "maal", "samaan",
    "saman", "goods", "material", "chij", "cheez", "current stock", "stock summary",
    "closing stock", "inventory value", "stock ageing", "how much stock",
]

COMPANY_KEYWORDS = [
    "company details", "company info", "company name", "show company",
    "my company", "company address", "company phone", "company email",
    "show details", "company", "my details", "details", "address", "my address", "mera address",
]

ANALYTICAL_KEYWORDS = [
    "highest", "lowest", "sabse zyada", "sabse kam", "maximum", "minimum",
    "top", "which has", "sabse bada", "sabse chota", "biggest", "smallest",
    "which company has", "kiska hai", "kon sa", "kaun sa",
    # sales and revenue
    "sales", "revenue", "turnover", "income", "profit", "loss", "p&l", "pl",
    "today sales", "this month sales", "monthly sales", "total sales",
    "sales analysis", "business performance", "today's sales", "last week's sales",
    "this quarter", "yearly sales", "sales trend", "sales invoice", "sales summary",
    # purchases
    "purchase", "purchases", "today's purchases", "monthly purchases", "purchase summary",
    "purchase invoices", "purchase bills", "biggest purchase", "vendor", "supplier",
    # outstanding
    "outstanding", "receivables", "payables", "due", "overdue", "pending bills",
    "pending invoices", "who has not paid", "pending", "outstanding amount",
    # cash and bank
    "cash in hand", "bank balance", "cash balance", "bank transactions", "cash book",
    "bank book", "total cash balance",
    # reports
    "trial balance", "balance sheet", "gst report", "vat return", "expense summary",
    "profit margin", "day book", "cash flow", "invoice report", "bill summary",
    # hindi and hinglish
    "bikri", "kamai", "munafa", "nuksan", "aaj ki sales", "is month ki sales",
    "total bikri", "khareed", "kharidari", "udhaar", "bachaat", "jama", "naqad",
    # balances across all accounts
    "closing balance kitna hai", "balane kitna hai", "balance dikhao", "all balance",
]

LEDGER_KEYWORDS = [
    "balance of", "account", "ledger", "customer", "supplier", "party",
    "cash hai", "balance hai", "kitna hai",
]

REMINDER_KEYWORDS = [
    "remind me", "reminder", "set reminder", "reminders",
    "today's reminders", "pending tasks", "to-do", "task", "tasks",
    "due bills", "yaad dilana", "reminder set kar", "collect payment",
    "bank transfer", "follow-up", "follow up",
]

SPECIFIC_ACCOUNT_KEYWORDS = [
    "bank", "hdfc", "sbi", "icici", "axis", "cash", "petty cash",
    "salary", "rent", "electricity", "phone", "internet", "fuel",
]

BASIC_WORDS = {
    "what", "is", "the", "balance", "closing", "kitna", "hai", "ka", "send", "me", "show", "get", "find",
    "sabse", "bada", "zyada", "highest", "biggest", "company", "has", "which", "kiska", "kon", "kaun",
    "maximum", "minimum", "top", "lowest", "smallest", "details", "info", "address", "phone", "email",
}

SEARCH_STOP_WORDS = {
    "the", "and", "for", "with", "from", "has", "are", "was", "were", "what", "show", "send", "generate",
}

_SEARCH_FILLERS = [
    re.compile(r"what\s+is\s+(?:the\s+)?", re.IGNORECASE),
    re.compile(r"show\s+me\s+(?:the\s+)?", re.IGNORECASE),
    re.compile(r"send\s+me\s+(?:the\s+)?", re.IGNORECASE),
    re.compile(r"generate\s+(?:an?\s+)?", re.IGNORECASE),
    re.compile(r"(?:e-?)?invoice\s+(?:of|for)\s+", re.IGNORECASE),
    re.compile(r"(?:pdf|bill|statement)\s+(?:of|for)\s+", re.IGNORECASE),
    re.compile(r"(?:closing\s*)?balance\s+(?:of|for)\s+", re.IGNORECASE),
    re.compile(r"\s+ka\s+balance\s*$", re.IGNORECASE),
    re.compile(r"\s+balance\s+kitna\s*$", re.IGNORECASE),
    re.compile(r"\s+kitna\s+hai\s*$", re.IGNORECASE),
    re.compile(r"(?:closing\s*)?balance\s*$", re.IGNORECASE),
    re.compile(r"[?!]"),
]


def correct_spelling(query: str) -> str:
    """Fix common whole-word typos such as ``slaes`` or ``balence``."""
    corrected = query
    for pattern, fix in _CORRECTION_RES:
        corrected = pattern.sub(fix, corrected)
    if corrected != query:
        logger.debug(f"Spell correction: {query!r} -> {corrected!r}")
    return corrected


def keyword_score(query: str, keywords: list[str]) -> float:
    """Score a query against a keyword list.

    A keyword found verbatim counts 1.0; otherwise half the fraction of its
    words that appear. The sum is divided by the number of keywords.
    """
    total = 0.0
    for keyword in keywords:
        if keyword in query:
            total += 1.0
            continue
        words = keyword.split(" ")
        partial = sum(1 for word in words if word in query)
        if partial:
            total += partial / len(words) * 0.5
    return total / len(keywords)


def contains_specific_account(query: str) -> bool:
    """Check if the query names a specific account family such as a bank."""
    lowered = query.lower()
    return any(keyword in lowered for keyword in SPECIFIC_ACCOUNT_KEYWORDS)


def contains_company_name(query: str) -> bool:
    """Check if the query carries a word that looks like a party or company name."""
    if any(
        phrase in query
        for phrase in ("sabse bada", "highest", "biggest", "which company", "kiska hai")
    ):
        return False
    if any(
        phrase in query
        for phrase in (
            "company details", "company info", "show company",
            "my company", "company address", "company phone",
        )
    ):
        return False

    for word in query.lower().split():
        if len(word) > 2 and word not in BASIC_WORDS and re.search(r"[a-zA-Z]", word):
            return True
    return False


def extract_search_term(query: str) -> str:
    """Strip filler phrasing and keep the first two meaningful words.

    ``"gangotri steels ka balance kitna hai"`` becomes ``"gangotri steel"``.
    """
    cleaned = query
    for pattern in _SEARCH_FILLERS:
        cleaned = pattern.sub("", cleaned)
    cleaned = cleaned.strip()

    cleaned = re.sub(r"\bsteels?\b", "steel", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\bcompanies\b", "company", cleaned, flags=re.IGNORECASE)
    cleaned = re.sub(r"\benterprises?\b", "enterprise", cleaned, flags=re.IGNORECASE)

    if " " in cleaned:
        words = [
            word
            for word in cleaned.split()
            if len(word) > 2 and word.lower() not in SEARCH_STOP_WORDS
        ]
        if len(words) >= 2:
            return " ".join(words[:2])

    return cleaned


def _is_general_balance_query(q: str) -> bool:
    asks_balance = (
        "balane kitna hai" in q
        or "balance kitna hai" in q
        or "balace kitna h" in q
        or "balance kitna h" in q
        or "closing balance" in q
        or "closing balace" in q
        or ("kitna h" in q and any(word in q for word in ("balance", "balace", "balane")))
    )
    return asks_balance and not contains_company_name(q) and not contains_specific_account(q)


def _contains_any(q: str, phrases: list[str] | tuple[str, ...]) -> bool:
    return any(phrase in q for phrase in phrases)


class IntentClassifier:
    """Maps a raw query to one of the ``Intent`` categories."""

    def __init__(self, threshold: float = CONFIDENCE_THRESHOLD) -> None:
        self.threshold = threshold

    def classify(self, query: str) -> Intent:
        q = correct_spelling(query.lower().strip())
        scores = self.scores(q)
        intent, score = max(scores.items(), key=lambda item: item[1])
        if score > self.threshold:
            logger.debug(f"Classified {q!r} as {intent.value} (confidence {score:.2f})")
            return intent
        intent = self.classify_exact(q)
        logger.debug(f"Classified {q!r} as {intent.value} by exact match")
        return intent

    def scores(self, q: str) -> dict[Intent, float]:
        """Fuzzy score per category for an already normalised query."""
        return {
            Intent.GENERAL: keyword_score(q, GENERAL_KEYWORDS),
            Intent.INVENTORY: self._inventory_score(q),
            Intent.COMPANY: self._company_score(q),
            Intent.ANALYTICAL: self._analytical_score(q),
            Intent.LEDGER: self._ledger_score(q),
            Intent.REMINDERS: keyword_score(q, REMINDER_KEYWORDS),
        }

    def _inventory_score(self, q: str) -> float:
        # Cash and balance phrasing is never an inventory question
        if _contains_any(q, ("cash", "balance", "bank")):
            return 0.0
        return keyword_score(q, INVENTORY_KEYWORDS)

    def _company_score(self, q: str) -> float:
        score = keyword_score(q, COMPANY_KEYWORDS)
        if q in ("details", "show details", "company"):
            score += 0.3
        if contains_company_name(q):
            score -= 0.4
        return max(0.0, score)

    def _analytical_score(self, q: str) -> float:
        score = keyword_score(q, ANALYTICAL_KEYWORDS)
        if _is_general_balance_query(q):
            score += 0.8
        if "sales" in q or "bikri" in q:
            score += 0.2
            if "month" in q:
                score += 0.1
        return score

    def _ledger_score(self, q: str) -> float:
        score = 0.0
        if _is_general_balance_query(q):
            score -= 0.5

        if (
            ("cash" in q and ("kitna" in q or "balance" in q))
            or ("paisa" in q and "kitna" in q)
            or ("mere paas" in q and "kitna" in q)
            or "cash balance" in q
            or "bank balance" in q
        ):
            score += 0.8

        if contains_company_name(q):
            score += 0.3

        score += keyword_score(q, LEDGER_KEYWORDS)

        if 3 < len(q) < 30 and not _contains_any(q, ("sales", "highest", "company")):
            score += 0.2
        return score

    def classify_exact(self, q: str) -> Intent:
        """Ordered substring matching used when no fuzzy score is confident."""
        if _contains_any(
            q, ("list all", "show all", "all ledger", "sare accounts", "sabhi accounts",
                "quick access", "recent", "shortcuts")
        ) or q in ("list", "accounts", "ledgers"):
            return Intent.GENERAL

        if _contains_any(
            q, ("stock", "inventory", "item", "pipe", "product", "how many", "kitne", "kitna",
                "quantity", "reorder", "maal", "samaan", "saman", "goods", "material",
                "chij", "cheez")
        ):
            return Intent.INVENTORY

        if _contains_any(
            q, ("remind me", "reminder", "pending tasks", "to-do", "task", "due bills",
                "yaad dilana", "collect payment", "bank transfer")
        ):
            return Intent.REMINDERS

        if (
            _contains_any(
                q, ("company details", "company info", "company name", "show company",
                    "my company", "company address", "company phone", "company email",
                    "show details", "my address", "mera address")
            )
            or q in ("company", "my details", "details")
            or ("address" in q and not contains_company_name(q))
        ):
            return Intent.COMPANY

        if _contains_any(q, ANALYTICAL_KEYWORDS[:-4]):
            return Intent.ANALYTICAL

        # Document generation is handled by the ledger processor
        if _contains_any(q, ("invoice", "pdf", "bill", "generate", "statement", "e-invoice")):
            return Intent.LEDGER

        if (
            (("balane kitna hai" in q or "balance kitna hai" in q)
             and not contains_company_name(q)
             and not contains_specific_account(q))
            or _contains_any(
                q, ("total balance", "all balance", "sabse zyada balance",
                    "highest balance", "balance dikhao")
            )
        ):
            return Intent.ANALYTICAL

        if _contains_any(q, ("balance", "kitna", "closing")) or contains_company_name(q):
            return Intent.LEDGER

        return Intent.GENERAL
