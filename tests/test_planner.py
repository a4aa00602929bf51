"""Tests for ClaudeSubqueryPlanner."""

from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import pytest
from anthropic.types import TextBlock, ToolUseBlock

from ojas_pulse.query import ClaudeSubqueryPlanner, PlanKind, fallback_queries
from ojas_pulse.query.planner import WEB_SEARCH_FUNCTION


def _make_mock_usage(input_tokens: int = 100, output_tokens: int = 50) -> MagicMock:
    """Create a mock usage object."""
    usage = MagicMock()
    usage.input_tokens = input_tokens
    usage.output_tokens = output_tokens
    usage.cache_creation_input_tokens = 0
    usage.cache_read_input_tokens = 0
    usage.server_tool_use = None
    return usage


def _text_response(text: str) -> MagicMock:
    response = MagicMock()
    response.content = [TextBlock(type="text", text=text)]
    response.usage = _make_mock_usage()
    return response


def _tool_response(*calls: dict[str, Any]) -> MagicMock:
    response = MagicMock()
    response.content = [
        ToolUseBlock(type="tool_use", id=f"toolu_{i}", name="web_search", input=call)
        for i, call in enumerate(calls)
    ]
    response.usage = _make_mock_usage(200, 80)
    return response


def _fixed_clock() -> datetime:
    return datetime(2025, 7, 14, tzinfo=UTC)


def _planner(*responses: MagicMock | Exception) -> ClaudeSubqueryPlanner:
    planner = ClaudeSubqueryPlanner(api_key="test-key", clock=_fixed_clock)
    object.__setattr__(planner._client.messages, "create", AsyncMock(side_effect=list(responses)))
    return planner


# -- fallback_queries --


def test_fallback_queries_use_topic_region_and_year() -> None:
    queries = fallback_queries("dengue", "IN", 2025)

    assert len(queries) == 5
    assert queries[0] == "latest dengue updates IN 2025"
    assert all("dengue" in q for q in queries)


# -- plan --


async def test_plan_returns_llm_queries() -> None:
    planner = _planner(
        _text_response('{"queries": ["dengue cases Mumbai 2025", " dengue advisory ", ""]}')
    )

    result = await planner.plan("dengue outbreak", region="IN", category="health")

    assert result.kind == PlanKind.LLM
    assert result.queries == ["dengue cases Mumbai 2025", "dengue advisory"]
    assert all(s.region == "IN" for s in result.searches)
    assert result.usage.input_tokens == 100


async def test_plan_caps_at_five() -> None:
    planner = _planner(_text_response('{"queries": ["a", "b", "c", "d", "e", "f", "g"]}'))
    result = await planner.plan("topic")
    assert result.queries == ["a", "b", "c", "d", "e"]


async def test_plan_prompt_is_formatted() -> None:
    planner = _planner(_text_response('{"queries": ["a"]}'))
    await planner.plan("heatwave", region="US", category="environment")

    call_kwargs = dict(planner._client.messages.create.call_args.kwargs)  # type: ignore[attr-defined]
    assert call_kwargs["temperature"] == 0.5
    assert "2025" in call_kwargs["system"]
    assert "US" in call_kwargs["system"]
    assert "{year}" not in call_kwargs["system"]
    assert call_kwargs["messages"][0]["content"] == "TOPIC: heatwave"


async def test_plan_unparseable_falls_back_with_usage() -> None:
    planner = _planner(_text_response("I think you should search for dengue."))

    result = await planner.plan("dengue", region="IN")

    assert result.kind == PlanKind.FALLBACK
    assert result.queries == fallback_queries("dengue", "IN", 2025)
    assert len(result.usage.api_calls) == 1


async def test_plan_empty_list_falls_back() -> None:
    planner = _planner(_text_response('{"queries": []}'))
    result = await planner.plan("dengue")
    assert result.kind == PlanKind.FALLBACK


async def test_plan_api_error_falls_back() -> None:
    planner = _planner(RuntimeError("connection reset"))
    result = await planner.plan("dengue")
    assert result.kind == PlanKind.FALLBACK
    assert len(result.searches) == 5


async def test_plan_without_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CLAUDE_API_KEY", raising=False)
    planner = ClaudeSubqueryPlanner(clock=_fixed_clock)

    result = await planner.plan("air quality", region="IN")

    assert result.kind == PlanKind.FALLBACK
    assert result.queries[0] == "latest air quality updates IN 2025"


# -- plan_with_tools --


async def test_plan_with_tools_collects_calls() -> None:
    planner = _planner(
        _tool_response(
            {"query": "dengue cases Mumbai", "maxResults": 5},
            {"query": "BMC dengue advisory", "region": "US", "language": "hi"},
            {"query": "dengue hospital admissions", "maxResults": 50},
        )
    )

    result = await planner.plan_with_tools("dengue", region="IN", category="health")

    assert result.kind == PlanKind.LLM
    assert result.queries == [
        "dengue cases Mumbai",
        "BMC dengue advisory",
        "dengue hospital admissions",
    ]
    assert result.searches[0].max_results == 5
    assert result.searches[1].region == "US"
    assert result.searches[1].language == "hi"
    assert result.searches[1].max_results == 10
    assert result.searches[2].max_results == 10


async def test_plan_with_tools_sends_function_tool() -> None:
    planner = _planner(_tool_response({"query": "a"}, {"query": "b"}, {"query": "c"}))
    await planner.plan_with_tools("topic")

    call_kwargs = dict(planner._client.messages.create.call_args.kwargs)  # type: ignore[attr-defined]
    assert call_kwargs["tools"] == [WEB_SEARCH_FUNCTION]
    assert call_kwargs["tool_choice"] == {"type": "any"}
    assert call_kwargs["temperature"] == 0.2


async def test_plan_with_tools_dedups_and_caps() -> None:
    planner = _planner(
        _tool_response(
            {"query": "a"}, {"query": "a"}, {"query": "b"}, {"query": "c"}, {"query": "d"}
        )
    )

    result = await planner.plan_with_tools("topic", max_queries=3)

    assert result.queries == ["a", "b", "c"]


async def test_plan_with_tools_max_queries_never_above_five() -> None:
    calls = [{"query": f"q{i}"} for i in range(8)]
    planner = _planner(_tool_response(*calls))

    result = await planner.plan_with_tools("topic", max_queries=20)

    assert len(result.searches) == 5


async def test_plan_with_tools_tops_up_short_plans() -> None:
    planner = _planner(
        _tool_response({"query": "a"}),
        _text_response('{"queries": ["a", "b", "c", "d"]}'),
    )

    result = await planner.plan_with_tools("topic", per_query=7)

    assert result.kind == PlanKind.MIXED
    assert result.queries == ["a", "b", "c", "d"]
    assert [s.max_results for s in result.searches[1:]] == [7, 7, 7]
    assert len(result.usage.api_calls) == 2


async def test_plan_with_tools_no_calls_uses_plan_kind() -> None:
    planner = _planner(
        _text_response("I will not call tools."),
        _text_response('{"queries": ["x", "y", "z"]}'),
    )

    result = await planner.plan_with_tools("topic")

    assert result.kind == PlanKind.LLM
    assert result.queries == ["x", "y", "z"]


async def test_plan_with_tools_total_failure_still_has_queries() -> None:
    planner = _planner(RuntimeError("overloaded"), RuntimeError("overloaded"))

    result = await planner.plan_with_tools("dengue", region="IN")

    assert result.kind == PlanKind.FALLBACK
    assert 1 <= len(result.searches) <= 5
    assert result.queries == fallback_queries("dengue", "IN", 2025)


async def test_plan_with_tools_single_query_cap() -> None:
    planner = _planner(_tool_response({"query": "only"}))

    result = await planner.plan_with_tools("topic", max_queries=1)

    assert result.kind == PlanKind.LLM
    assert result.queries == ["only"]
