"""Tests for RunLogger and serialization helpers."""

import json
from datetime import UTC, datetime
from pathlib import Path

from ojas_pulse.data import (
    APICallUsage,
    DiscoveredTopic,
    HealthCategory,
    PlannedSearch,
    RawSourceItem,
    SourceInfo,
    SynthesizedArticle,
    Urgency,
    Usage,
)
from ojas_pulse.run_logger import RunLogger, _serialize

# -- _serialize tests --


def test_serialize_primitives() -> None:
    assert _serialize(None) is None
    assert _serialize(42) == 42
    assert _serialize("hello") == "hello"
    assert _serialize(True) is True


def test_serialize_containers() -> None:
    assert _serialize([1, "two", None]) == [1, "two", None]
    assert _serialize((1, 2)) == [1, 2]
    assert _serialize({"a": 1, 2: "b"}) == {"a": 1, "2": "b"}


def test_serialize_dataclass() -> None:
    topic = DiscoveredTopic(topic="Dengue in Mumbai", category="health", priority=9)
    result = _serialize(topic)
    assert result == {
        "topic": "Dengue in Mumbai",
        "category": "health",
        "priority": 9,
        "reasoning": "",
    }


def test_serialize_prefers_document_form() -> None:
    item = RawSourceItem(title="T", url="https://a.com", domain="a.com", published_at="2025")
    assert _serialize(item)["publishedAt"] == "2025"


def test_serialize_nested_dataclasses() -> None:
    searches = [PlannedSearch(query="a"), PlannedSearch(query="b", max_results=3)]
    result = _serialize(searches)
    assert result[1]["max_results"] == 3


def test_serialize_usage_includes_totals() -> None:
    usage = Usage(
        api_calls=[
            APICallUsage(model="m", input_tokens=100, output_tokens=50, web_searches=2),
        ],
        search_requests=3,
    )
    result = _serialize(usage)
    assert result["input_tokens"] == 100
    assert result["web_searches"] == 2
    assert result["search_requests"] == 3
    assert result["api_calls"][0]["model"] == "m"


def test_serialize_path_and_datetime() -> None:
    assert _serialize(Path("/tmp/x")) == "/tmp/x"
    assert _serialize(datetime(2025, 7, 14, tzinfo=UTC)) == "2025-07-14T00:00:00+00:00"


# -- RunLogger --


def _article() -> SynthesizedArticle:
    return SynthesizedArticle(
        title="Title",
        summary="Summary",
        key_insights=("one",),
        category=HealthCategory.PANDEMIC,
        tags=(),
        urgency=Urgency.HIGH,
        location_relevance="city:Mumbai",
        sources=(SourceInfo(name="WHO", url="https://who.int", domain="who.int"),),
        query="dengue",
        generated_at="2025-07-14T00:00:00+00:00",
    )


def test_disabled_logger_writes_nothing(tmp_path: Path) -> None:
    logger = RunLogger(tmp_path, enabled=False)
    logger.start_run("run", {"region": "IN"})
    logger.log_stage("discovery", "X", {}, [], None, 0.1)

    assert logger.finish_run([], None) is None
    assert list(tmp_path.iterdir()) == []


def test_finish_without_start_is_noop(tmp_path: Path) -> None:
    logger = RunLogger(tmp_path)
    assert logger.finish_run([], None) is None


def test_full_run_written_to_json(tmp_path: Path) -> None:
    log_dir = tmp_path / "logs"
    logger = RunLogger(log_dir)

    logger.start_run("run", {"region": "IN", "categories": ["health"]})
    stage_usage = Usage(api_calls=[APICallUsage(model="m", input_tokens=10)])
    stage_usage.estimated_cost = 0.25
    logger.log_stage(
        stage="discovery",
        component="ClaudeTopicDiscovery",
        input_data={"region": "IN"},
        output_data=[DiscoveredTopic(topic="t", category="health", priority=5)],
        usage=stage_usage,
        duration_seconds=1.234567,
    )
    path = logger.finish_run([_article()], stage_usage)

    assert path is not None
    assert path.parent == log_dir
    assert path.name.startswith("run_")
    assert path.suffix == ".json"
    assert logger.last_log_path == path

    data = json.loads(path.read_text())
    assert data["command"] == "run"
    assert data["params"] == {"region": "IN", "categories": ["health"]}
    assert data["article_count"] == 1
    assert data["total_cost_usd"] == 0.25
    stage = data["stages"][0]
    assert stage["stage"] == "discovery"
    assert stage["component"] == "ClaudeTopicDiscovery"
    assert stage["output"][0]["topic"] == "t"
    assert stage["usage"]["input_tokens"] == 10
    assert stage["cost_usd"] == 0.25
    assert stage["duration_seconds"] == 1.2346
