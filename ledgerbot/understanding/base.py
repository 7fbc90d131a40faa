"""Understanding backend interface and its suggestion model."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class SuggestionType(str, Enum):
    """What a backend proposes to do with a query."""

    SQL = "sql"
    SMART_QUERY = "smart_query"
    ANALYSIS = "analysis"
    EXPLANATION = "explanation"


class Suggestion(BaseModel):
    """Structured answer from an understanding backend.

    Field names accept the camelCase keys language models tend to emit.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")

    type: SuggestionType = SuggestionType.EXPLANATION
    sql: str | None = None
    explanation: str = ""
    requires_execution: bool = False
    business_insights: str | None = None
    follow_up_questions: list[str] = Field(default_factory=list)
    search_term: str | None = None

    @property
    def actionable(self) -> bool:
        """Whether the suggestion can produce an answer on its own."""
        if self.type == SuggestionType.SQL:
            return bool(self.sql) and self.requires_execution
        if self.type == SuggestionType.SMART_QUERY:
            return bool(self.search_term)
        return self.type == SuggestionType.ANALYSIS


@dataclass(frozen=True)
class UnderstandingContext:
    """What a backend knows about the caller when interpreting a query."""

    tenant_id: str
    connected: bool
    company_name: str | None = None


class UnderstandingBackend(ABC):
    """A pluggable interpreter of free-form accounting questions."""

    name: str = "backend"

    @abstractmethod
    async def attempt(self, query: str, context: UnderstandingContext) -> Suggestion | None:
        """Interpret a query.

        Args:
            query: User question
            context: Caller and connection details

        Returns:
            A suggestion, or None when the backend has nothing to offer

        Raises:
            UpstreamUnderstandingError: If the backend service fails
        """
        pass
