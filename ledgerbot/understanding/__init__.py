"""Pluggable query understanding with a rule-based fallback."""

from ledgerbot.understanding.adapter import UnderstandingAdapter
from ledgerbot.understanding.base import (
    Suggestion,
    SuggestionType,
    UnderstandingBackend,
    UnderstandingContext,
)
from ledgerbot.understanding.knowledge_base import KnowledgeBase, KnowledgeMatch
from ledgerbot.understanding.llm_backend import LLMUnderstandingBackend

__all__ = [
    "KnowledgeBase",
    "KnowledgeMatch",
    "LLMUnderstandingBackend",
    "Suggestion",
    "SuggestionType",
    "UnderstandingAdapter",
    "UnderstandingBackend",
    "UnderstandingContext",
]
