"""Tests for ClaudeArticleSynthesizer and article validation."""

import json
from datetime import UTC, datetime
from typing import Any
from unittest.mock import AsyncMock, MagicMock

import anthropic
import httpx
import pytest
from anthropic.types import TextBlock

from ojas_pulse.data import HealthCategory, SynthesizedArticle, Urgency
from ojas_pulse.synthesis import ClaudeArticleSynthesizer, build_article
from ojas_pulse.synthesis.claude import (
    FLAG_INSUFFICIENT_SOURCES,
    FLAG_INVALID_LOCATION,
    FLAG_SUMMARY_TOO_SHORT,
)

LONG_SUMMARY = " ".join(["Dengue"] + ["cases"] * 199)


def _make_mock_usage(web_searches: int = 3) -> MagicMock:
    """Create a mock usage object for a grounded call."""
    usage = MagicMock()
    usage.input_tokens = 1200
    usage.output_tokens = 900
    usage.cache_creation_input_tokens = 0
    usage.cache_read_input_tokens = 0
    usage.server_tool_use = MagicMock(web_search_requests=web_searches)
    return usage


def _make_response(payload: dict[str, Any] | str) -> MagicMock:
    text = payload if isinstance(payload, str) else json.dumps(payload)
    response = MagicMock()
    response.content = [TextBlock(type="text", text=text)]
    response.usage = _make_mock_usage()
    return response


def _article_payload(**overrides: Any) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "title": "Dengue cases climb across Mumbai as monsoon sets in",
        "summary": LONG_SUMMARY,
        "keyInsights": ["Cases doubled in two weeks", "Hospitals add beds"],
        "category": "pandemic",
        "tags": ["dengue", "monsoon", "mumbai"],
        "urgency": "high",
        "locationRelevance": "city:Mumbai",
        "sources": [
            {"name": "The Hindu", "url": "https://www.thehindu.com/a", "domain": "thehindu.com"},
            {"name": "WHO", "url": "https://www.who.int/b"},
            {"url": "https://mohfw.gov.in/c"},
        ],
    }
    payload.update(overrides)
    return payload


def _fixed_clock() -> datetime:
    return datetime(2025, 7, 14, 9, 0, tzinfo=UTC)


def _synthesizer(*responses: MagicMock | Exception) -> ClaudeArticleSynthesizer:
    synth = ClaudeArticleSynthesizer(api_key="test-key", clock=_fixed_clock)
    object.__setattr__(synth._client.messages, "create", AsyncMock(side_effect=list(responses)))
    return synth


def _build(payload: dict[str, Any], hint: str | None = None) -> SynthesizedArticle | None:
    return build_article(
        payload, query="dengue Mumbai", category_hint=hint, generated_at="2025-07-14T09:00:00"
    )


class NoWaitLimiter:
    """Rate limiter that records calls instead of sleeping."""

    def __init__(self) -> None:
        self.waits = 0
        self.successes = 0
        self.throttles = 0

    async def wait(self) -> None:
        self.waits += 1

    def record_success(self) -> None:
        self.successes += 1

    def record_throttle(self) -> None:
        self.throttles += 1


def _rate_limit_error() -> anthropic.RateLimitError:
    request = httpx.Request("POST", "https://api.anthropic.com/v1/messages")
    return anthropic.RateLimitError(
        "rate limited", response=httpx.Response(429, request=request), body=None
    )


# -- build_article --


def test_build_article_valid() -> None:
    article = _build(_article_payload())

    assert article is not None
    assert article.category == HealthCategory.PANDEMIC
    assert article.urgency == Urgency.HIGH
    assert article.location_relevance == "city:Mumbai"
    assert article.quality_flags == ()
    assert article.query == "dengue Mumbai"
    assert article.generated_at == "2025-07-14T09:00:00"


def test_build_article_source_defaults() -> None:
    article = _build(_article_payload())

    assert article is not None
    assert article.sources[1].domain == "who.int"
    assert article.sources[2].name == "Unknown Source"
    assert article.sources[2].domain == "mohfw.gov.in"


@pytest.mark.parametrize(
    "overrides",
    [
        {"title": ""},
        {"title": None},
        {"summary": "   "},
        {"keyInsights": []},
        {"keyInsights": "not a list"},
        {"keyInsights": ["", "  "]},
        {"sources": []},
        {"sources": ["https://a.com"]},
        {"sources": [{}]},
        {"sources": [{"name": "x"}]},
        {"sources": [{"name": "WHO", "url": "who.int/dengue"}]},
    ],
)
def test_build_article_rejects_missing_required_fields(overrides: dict[str, Any]) -> None:
    assert _build(_article_payload(**overrides)) is None


def test_build_article_caps_insights_and_tags() -> None:
    article = _build(
        _article_payload(
            keyInsights=[f"insight {i}" for i in range(12)],
            tags=[f"tag{i}" for i in range(9)],
        )
    )

    assert article is not None
    assert len(article.key_insights) == 7
    assert len(article.tags) == 5


def test_build_article_caps_sources() -> None:
    sources = [{"name": f"Outlet {i}", "url": f"https://outlet{i}.in/dengue"} for i in range(20)]
    article = _build(_article_payload(sources=sources))

    assert article is not None
    assert len(article.sources) == 15
    assert article.sources[-1].domain == "outlet14.in"


def test_build_article_drops_sources_without_url() -> None:
    article = _build(
        _article_payload(
            sources=[
                {},
                {"name": "nothing"},
                {"name": "WHO", "url": "https://www.who.int/b"},
            ]
        )
    )

    assert article is not None
    assert [s.url for s in article.sources] == ["https://www.who.int/b"]
    assert FLAG_INSUFFICIENT_SOURCES in article.quality_flags


def test_build_article_flags_short_summary_and_few_sources() -> None:
    article = _build(
        _article_payload(
            summary="Too short to be useful.",
            sources=[{"name": "WHO", "url": "https://who.int/a"}],
        )
    )

    assert article is not None
    assert FLAG_SUMMARY_TOO_SHORT in article.quality_flags
    assert FLAG_INSUFFICIENT_SOURCES in article.quality_flags


@pytest.mark.parametrize("location", ["global", "country:IN", "city:New Delhi"])
def test_build_article_accepts_location_shapes(location: str) -> None:
    article = _build(_article_payload(locationRelevance=location))
    assert article is not None
    assert FLAG_INVALID_LOCATION not in article.quality_flags


@pytest.mark.parametrize("location", ["India", "country:india", "city:"])
def test_build_article_flags_bad_location(location: str) -> None:
    article = _build(_article_payload(locationRelevance=location))
    assert article is not None
    assert FLAG_INVALID_LOCATION in article.quality_flags


def test_build_article_missing_location_defaults_to_global() -> None:
    payload = _article_payload()
    del payload["locationRelevance"]
    article = _build(payload)
    assert article is not None
    assert article.location_relevance == "global"


def test_build_article_category_coercion() -> None:
    unknown = _build(_article_payload(category="wellness"), hint="sleep")
    missing = _build(_article_payload(category=None))
    cased = _build(_article_payload(category="Mental-Health"))

    assert unknown is not None and unknown.category == HealthCategory.SLEEP
    assert missing is not None and missing.category == HealthCategory.PREVENTIVE_CARE
    assert cased is not None and cased.category == HealthCategory.MENTAL_HEALTH


def test_build_article_urgency_coercion() -> None:
    article = _build(_article_payload(urgency="extreme"))
    assert article is not None
    assert article.urgency == Urgency.MEDIUM


# -- synthesize --


async def test_synthesize_returns_article_and_usage() -> None:
    synth = _synthesizer(_make_response(_article_payload()))

    article, usage = await synth.synthesize("dengue Mumbai", "pandemic")

    assert article is not None
    assert article.title.startswith("Dengue cases climb")
    assert article.generated_at == "2025-07-14T09:00:00+00:00"
    assert usage.web_searches == 3
    assert usage.output_tokens == 900


async def test_synthesize_calls_api_with_web_search() -> None:
    synth = _synthesizer(_make_response(_article_payload()))

    await synth.synthesize(
        "dengue Mumbai", "pandemic", sources=["https://a.com/1", "https://b.com/2"]
    )

    call_kwargs = dict(synth._client.messages.create.call_args.kwargs)  # type: ignore[attr-defined]
    assert call_kwargs["temperature"] == 0.4
    assert call_kwargs["max_tokens"] == 4096
    assert call_kwargs["tools"][0]["name"] == "web_search"
    assert call_kwargs["tools"][0]["max_uses"] == 5
    assert "mental-health" in call_kwargs["system"]
    user = call_kwargs["messages"][0]["content"]
    assert "dengue Mumbai" in user
    assert "pandemic" in user
    assert "https://b.com/2" in user


async def test_synthesize_handles_fences_and_prose() -> None:
    text = f"Here is the article:\n```json\n{json.dumps(_article_payload())}\n```"
    synth = _synthesizer(_make_response(text))

    article, _ = await synth.synthesize("dengue Mumbai")
    assert article is not None


async def test_synthesize_invalid_output_returns_none_with_usage() -> None:
    synth = _synthesizer(_make_response(_article_payload(sources=[])))

    article, usage = await synth.synthesize("dengue Mumbai")

    assert article is None
    assert len(usage.api_calls) == 1


async def test_synthesize_sources_without_url_returns_none() -> None:
    synth = _synthesizer(_make_response(_article_payload(sources=[{}, {"name": "nothing"}])))

    article, _ = await synth.synthesize("dengue Mumbai")

    assert article is None


async def test_synthesize_unparseable_returns_none() -> None:
    synth = _synthesizer(_make_response("I could not find enough information."))
    article, _ = await synth.synthesize("dengue Mumbai")
    assert article is None


async def test_synthesize_transport_error_is_logged() -> None:
    synth = _synthesizer(RuntimeError("connection reset"))

    article, usage = await synth.synthesize("dengue Mumbai")

    assert article is None
    assert usage.api_calls == []


async def test_synthesize_transport_error_raised_on_request() -> None:
    synth = _synthesizer(RuntimeError("connection reset"))
    with pytest.raises(RuntimeError, match="connection reset"):
        await synth.synthesize("dengue Mumbai", raise_errors=True)


async def test_synthesize_without_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("CLAUDE_API_KEY", raising=False)
    synth = ClaudeArticleSynthesizer()

    article, usage = await synth.synthesize("dengue Mumbai")

    assert article is None
    assert usage.api_calls == []


# -- synthesize_batch --


async def test_synthesize_batch_skips_failures() -> None:
    synth = _synthesizer(
        _make_response(_article_payload(title="First")),
        RuntimeError("boom"),
        _make_response("not json"),
        _make_response(_article_payload(title="Fourth")),
    )
    limiter = NoWaitLimiter()

    articles, usage = await synth.synthesize_batch(
        ["q1", "q2", "q3", "q4"], concurrency=2, rate_limiter=limiter
    )

    assert [a.title for a in articles] == ["First", "Fourth"]
    assert len(usage.api_calls) == 3
    assert limiter.waits == 1


async def test_synthesize_batch_reports_throttling() -> None:
    synth = _synthesizer(_rate_limit_error(), _make_response(_article_payload()))
    limiter = NoWaitLimiter()

    articles, _ = await synth.synthesize_batch(["q1", "q2"], concurrency=1, rate_limiter=limiter)

    assert len(articles) == 1
    assert limiter.throttles == 1
    assert limiter.successes == 1
    assert limiter.waits == 1


async def test_synthesize_batch_empty() -> None:
    synth = _synthesizer()
    articles, usage = await synth.synthesize_batch([], rate_limiter=NoWaitLimiter())
    assert articles == []
    assert usage.api_calls == []
