"""Query models, intent classification and store-backed answers.

The orchestrator lives in ``ledgerbot.query.orchestrator`` and is imported
from there, since it depends on the handler chain which depends on these models.
"""

from .classifier import Intent, IntentClassifier
from .models import QueryRequest, QueryResponse, ResponseCategory

__all__ = ["Intent", "IntentClassifier", "QueryRequest", "QueryResponse", "ResponseCategory"]
