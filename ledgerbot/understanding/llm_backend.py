"""Understanding backend that asks a language model for a structured suggestion."""

import json
import logging
import re

from pydantic import ValidationError

from ledgerbot.errors import UpstreamUnderstandingError
from ledgerbot.llm.base import LLMProvider
from ledgerbot.understanding.base import (
    Suggestion,
    SuggestionType,
    UnderstandingBackend,
    UnderstandingContext,
)

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are an expert in Tally ERP ODBC queries and Indian business accounting. "
    "Always respond with valid JSON."
)

QUERY_RULES = """TALLY ODBC QUERY RULES:
1. Use $Method syntax only: SELECT $Name, $ClosingBalance FROM Ledger
2. Never use VOUCHERHEAD or VOUCHERITEM tables
3. Safe tables: Ledger, Company, StockItem
4. Company questions (address, name, details) query the Company table
5. Account questions (balance, customer, supplier) query the Ledger table
6. Analytical questions (highest, lowest, summary) use ORDER BY and LIMIT
7. Cash accounts: WHERE $Parent = 'Cash-in-Hand' OR $Parent = 'Bank Accounts'
8. Receivables: WHERE $Parent = 'Sundry Debtors'
9. Highest absolute values: ORDER BY ABS($ClosingBalance) DESC

AVAILABLE TABLES AND METHODS:
- Ledger: $Name, $Parent, $ClosingBalance, $OpeningBalance, $Address, $Phone, $Email
- Company: $Name, $Address, $Phone, $Email, $GSTRegistration
- StockItem: $Name, $Parent, $ClosingBalance"""

RESPONSE_FORMAT = """Respond with a JSON object in this format:
{
  "type": "sql|smart_query|analysis|explanation",
  "sql": "SELECT $Name, $ClosingBalance FROM Ledger WHERE ...",
  "explanation": "What the query does in business terms",
  "requiresExecution": true,
  "searchTerm": "ledger name to look up, for smart_query only",
  "businessInsights": "What this data tells us about the business",
  "followUpQuestions": ["Related questions the user might ask"]
}

Use "smart_query" with a searchTerm when the user asks about one named account.
Use "analysis" when the question needs advice rather than data."""

_FENCE = re.compile(r"^```(?:json)?\s*|\s*```$", re.IGNORECASE)


def build_prompt(query: str, context: UnderstandingContext) -> str:
    return (
        "CONNECTION STATUS:\n"
        f"- Connected: {context.connected}\n"
        f"- Company: {context.company_name or 'Unknown'}\n\n"
        f"{QUERY_RULES}\n\n"
        f'USER QUERY: "{query}"\n\n'
        f"{RESPONSE_FORMAT}"
    )


def parse_suggestion(content: str) -> Suggestion:
    """Parse a model reply. Anything that is not a valid suggestion becomes an explanation."""
    text = _FENCE.sub("", content.strip())
    try:
        payload = json.loads(text)
        if not isinstance(payload, dict):
            raise ValueError("reply is not a JSON object")
        return Suggestion.model_validate(payload)
    except (ValueError, ValidationError) as e:
        logger.warning(f"Could not parse understanding reply as a suggestion: {e}")
        return Suggestion(type=SuggestionType.EXPLANATION, explanation=content)


class LLMUnderstandingBackend(UnderstandingBackend):
    """Wraps any LLMProvider as an understanding backend."""

    def __init__(self, provider: LLMProvider, name: str = "llm") -> None:
        self.provider = provider
        self.name = name

    async def attempt(self, query: str, context: UnderstandingContext) -> Suggestion | None:
        try:
            result = await self.provider.generate_response(
                build_prompt(query, context),
                system_prompt=SYSTEM_PROMPT,
                json_mode=True,
            )
        except RuntimeError as e:
            raise UpstreamUnderstandingError(self.name, str(e)) from e

        if not result.success:
            raise UpstreamUnderstandingError(self.name, result.error or "empty reply")
        if not result.content.strip():
            return None

        suggestion = parse_suggestion(result.content)
        logger.info(f"{self.name} suggested {suggestion.type.value} for query")
        return suggestion
