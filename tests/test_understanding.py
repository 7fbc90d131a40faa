"""Tests for understanding backends and the adapter that acts on their suggestions."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from ledgerbot.errors import NotConnectedError, UpstreamUnderstandingError
from ledgerbot.llm.base import ResponseResult
from ledgerbot.query.models import MessageResult, QueryRequest, ResponseCategory, RowsResult
from ledgerbot.understanding import (
    LLMUnderstandingBackend,
    Suggestion,
    SuggestionType,
    UnderstandingAdapter,
    UnderstandingBackend,
    UnderstandingContext,
)
from ledgerbot.understanding.llm_backend import build_prompt, parse_suggestion

from conftest import TENANT, FailingBackend, FakeAccountingSource, StaticBackend

DEBTORS_SQL = "SELECT $Name, $ClosingBalance FROM Ledger WHERE $Parent = 'Sundry Debtors'"

SQL_SUGGESTION = Suggestion(
    type=SuggestionType.SQL,
    sql=DEBTORS_SQL,
    requires_execution=True,
    explanation="Customers who owe you money",
    business_insights="Follow up on the largest balances first",
)

ANALYSIS_SUGGESTION = Suggestion(
    type=SuggestionType.ANALYSIS,
    explanation="Collections are concentrated in two customers",
    follow_up_questions=["Who owes the most?"],
)


def request(text: str) -> QueryRequest:
    return QueryRequest(text=text, tenant_id=TENANT, channel_id="C1")


class SlowBackend(UnderstandingBackend):
    name = "slow"

    async def attempt(self, query, context):
        await asyncio.sleep(1)
        return ANALYSIS_SUGGESTION


class TestSuggestion:
    """Test parsing of model replies."""

    def test_camel_case_json_in_fence(self):
        suggestion = parse_suggestion(
            '```json\n{"type": "sql", "sql": "SELECT $Name FROM Ledger", "requiresExecution": true,'
            ' "followUpQuestions": ["next?"]}\n```'
        )

        assert suggestion.type == SuggestionType.SQL
        assert suggestion.requires_execution
        assert suggestion.follow_up_questions == ["next?"]
        assert suggestion.actionable

    @pytest.mark.parametrize("content", ["not json at all", "[1, 2]", '{"type": "unknown"}'])
    def test_unparseable_reply_becomes_explanation(self, content):
        suggestion = parse_suggestion(content)

        assert suggestion.type == SuggestionType.EXPLANATION
        assert suggestion.explanation == content
        assert not suggestion.actionable

    def test_actionable(self):
        assert not Suggestion(type=SuggestionType.SQL, sql="SELECT 1").actionable
        assert Suggestion(type=SuggestionType.SMART_QUERY, search_term="sharma").actionable
        assert not Suggestion(type=SuggestionType.SMART_QUERY).actionable
        assert ANALYSIS_SUGGESTION.actionable

    def test_prompt_carries_connection_status(self):
        prompt = build_prompt(
            "bank balance", UnderstandingContext(tenant_id=TENANT, connected=False, company_name="Gangotri")
        )

        assert "- Connected: False" in prompt
        assert "- Company: Gangotri" in prompt
        assert 'USER QUERY: "bank balance"' in prompt


class TestLLMUnderstandingBackend:
    """Test wrapping an LLM provider as a backend."""

    CONTEXT = UnderstandingContext(tenant_id=TENANT, connected=True)

    @pytest.mark.asyncio
    async def test_structured_reply(self):
        provider = MagicMock()
        provider.generate_response = AsyncMock(
            return_value=ResponseResult(content='{"type": "smart_query", "searchTerm": "sharma"}', model="m")
        )
        backend = LLMUnderstandingBackend(provider, name="openai")

        suggestion = await backend.attempt("sharma ka balance", self.CONTEXT)

        assert suggestion.search_term == "sharma"
        assert provider.generate_response.call_args.kwargs["json_mode"] is True

    @pytest.mark.asyncio
    async def test_provider_error_is_upstream_error(self):
        provider = MagicMock()
        provider.generate_response = AsyncMock(side_effect=RuntimeError("Failed to generate response"))
        backend = LLMUnderstandingBackend(provider, name="gemini")

        with pytest.raises(UpstreamUnderstandingError) as exc_info:
            await backend.attempt("bank balance", self.CONTEXT)
        assert exc_info.value.backend == "gemini"

    @pytest.mark.asyncio
    async def test_unsuccessful_result_is_upstream_error(self):
        provider = MagicMock()
        provider.generate_response = AsyncMock(
            return_value=ResponseResult(content="", model="m", success=False, error="quota")
        )
        backend = LLMUnderstandingBackend(provider)

        with pytest.raises(UpstreamUnderstandingError, match="quota"):
            await backend.attempt("bank balance", self.CONTEXT)

    @pytest.mark.asyncio
    async def test_empty_reply_is_no_suggestion(self):
        provider = MagicMock()
        provider.generate_response = AsyncMock(return_value=ResponseResult(content="  ", model="m"))

        assert await LLMUnderstandingBackend(provider).attempt("bank balance", self.CONTEXT) is None


class TestUnderstandingAdapter:
    """Test acting on suggestions and the knowledge base fallback."""

    @pytest.mark.asyncio
    async def test_short_queries_are_skipped(self, processors):
        backend = StaticBackend(ANALYSIS_SUGGESTION)
        adapter = UnderstandingAdapter(FakeAccountingSource(), processors, backends=[backend])

        assert await adapter.resolve(request("hi"), "hi") is None
        assert backend.calls == []

    @pytest.mark.asyncio
    async def test_sql_suggestion_is_executed(self, processors):
        source = FakeAccountingSource(
            [("Sundry Debtors", [{"$Name": "Sharma Traders", "$ClosingBalance": 150000}])]
        )
        adapter = UnderstandingAdapter(source, processors, backends=[StaticBackend(SQL_SUGGESTION)])

        response = await adapter.resolve(request("who owes me"), "who owes me")

        assert response.category == ResponseCategory.ANALYTICAL
        assert isinstance(response.data, RowsResult)
        assert response.data.total_rows == 1
        assert response.human_text == (
            "🤖 **AI Query Result:** Customers who owe you money\n\n"
            "1. **Sharma Traders**: ₹1,50,000\n\n"
            "💡 **Business Insights:** Follow up on the largest balances first"
        )
        assert source.queries == [DEBTORS_SQL]

    @pytest.mark.asyncio
    async def test_sql_with_no_rows(self, processors):
        adapter = UnderstandingAdapter(FakeAccountingSource(), processors, backends=[StaticBackend(SQL_SUGGESTION)])

        response = await adapter.resolve(request("who owes me"), "who owes me")

        assert response.success
        assert response.category == ResponseCategory.GENERAL
        assert response.human_text == "🤖 Query executed but no data found. Customers who owe you money"

    @pytest.mark.asyncio
    async def test_failed_sql_moves_on(self, processors):
        source = FakeAccountingSource(failing=("Sundry Debtors",))
        adapter = UnderstandingAdapter(
            source, processors, backends=[StaticBackend(SQL_SUGGESTION), StaticBackend(ANALYSIS_SUGGESTION)]
        )

        response = await adapter.resolve(request("who owes me"), "who owes me")

        assert isinstance(response.data, MessageResult)
        assert response.data.intent == "analysis"

    @pytest.mark.asyncio
    async def test_smart_query_searches_ledgers(self, processors):
        suggestion = Suggestion(
            type=SuggestionType.SMART_QUERY, search_term="verma", business_insights="A steady customer"
        )
        adapter = UnderstandingAdapter(FakeAccountingSource(), processors, backends=[StaticBackend(suggestion)])

        response = await adapter.resolve(request("verma ka hisaab"), "verma ka hisaab")

        assert response.category == ResponseCategory.LEDGER
        assert response.data.records[0].name == "Verma Industries"
        assert response.human_text.endswith("\n\n🤖 **AI Insights:** A steady customer")

    @pytest.mark.asyncio
    async def test_smart_query_without_match_is_skipped(self, processors):
        suggestion = Suggestion(type=SuggestionType.SMART_QUERY, search_term="nobody")
        adapter = UnderstandingAdapter(FakeAccountingSource(), processors, backends=[StaticBackend(suggestion)])

        assert await adapter.resolve(request("nobody ka hisaab"), "nobody ka hisaab") is None

    @pytest.mark.asyncio
    async def test_analysis(self, processors):
        adapter = UnderstandingAdapter(
            FakeAccountingSource(), processors, backends=[StaticBackend(ANALYSIS_SUGGESTION)]
        )

        response = await adapter.resolve(request("how are collections"), "how are collections")

        assert response.human_text == "🤖 **AI Analysis:** Collections are concentrated in two customers"
        assert response.suggestions == ["Who owes the most?"]

    @pytest.mark.asyncio
    async def test_explanations_and_failures_are_skipped(self, processors):
        explaining = StaticBackend(Suggestion(explanation="I am not sure"), name="explaining")
        failing = FailingBackend()
        answering = StaticBackend(ANALYSIS_SUGGESTION, name="answering")
        adapter = UnderstandingAdapter(
            FakeAccountingSource(), processors, backends=[explaining, failing, answering]
        )

        response = await adapter.resolve(request("how are collections"), "how are collections")

        assert response.data.intent == "analysis"
        assert explaining.calls == ["how are collections"]
        assert failing.calls == 1

    @pytest.mark.asyncio
    async def test_slow_backend_times_out(self, processors):
        adapter = UnderstandingAdapter(
            FakeAccountingSource(), processors, backends=[SlowBackend()], timeout=0.01
        )

        assert await adapter.resolve(request("how are collections"), "how are collections") is None

    @pytest.mark.asyncio
    async def test_knowledge_base_fallback(self, processors):
        source = FakeAccountingSource(
            [("Bank Accounts", [{"$Name": "HDFC Bank", "$ClosingBalance": "₹3,20,000 Dr"}])]
        )
        adapter = UnderstandingAdapter(source, processors, backends=[FailingBackend()])

        response = await adapter.resolve(request("bank balance"), "bank balance")

        assert response.category == ResponseCategory.ANALYTICAL
        assert "🏦 **Total Bank Balance:** ₹3,20,000 Dr" in response.human_text

    @pytest.mark.asyncio
    async def test_knowledge_base_sales_uses_store(self, processors):
        source = FakeAccountingSource()
        adapter = UnderstandingAdapter(source, processors)

        response = await adapter.resolve(request("total sales"), "total sales")

        assert response.data.totals == {"total_sales": 900000}
        assert source.queries == []

    @pytest.mark.asyncio
    async def test_knowledge_base_without_rows(self, processors):
        adapter = UnderstandingAdapter(FakeAccountingSource(), processors)

        assert await adapter.resolve(request("bank balance"), "bank balance") is None

    @pytest.mark.asyncio
    async def test_knowledge_base_match_while_disconnected(self, processors):
        adapter = UnderstandingAdapter(FakeAccountingSource(connected=False), processors)

        with pytest.raises(NotConnectedError):
            await adapter.resolve(request("bank balance"), "bank balance")

    @pytest.mark.asyncio
    async def test_no_knowledge_base_match(self, processors):
        adapter = UnderstandingAdapter(FakeAccountingSource(connected=False), processors)

        assert await adapter.resolve(request("tell me a joke"), "tell me a joke") is None
