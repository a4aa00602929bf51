"""Tests for ExaSearcher."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from ojas_pulse.data import RawSourceItem
from ojas_pulse.search import ExaSearcher


def _make_mock_result(
    url: str = "https://example.com/article",
    title: str | None = "Test Article",
    published_date: str | None = "2025-07-01T10:00:00.000Z",
) -> MagicMock:
    """Create a mock Exa search result."""
    result = MagicMock()
    result.url = url
    result.title = title
    result.published_date = published_date
    return result


def _make_mock_response(results: list[MagicMock] | None = None) -> MagicMock:
    """Create a mock Exa search response."""
    response = MagicMock()
    response.results = results or [
        _make_mock_result(url="https://www.who.int/news/dengue", title="Dengue fact sheet"),
        _make_mock_result(url="https://icmr.gov.in/report", title=None, published_date=None),
    ]
    return response


@pytest.fixture
def exa_searcher() -> ExaSearcher:
    """Create a searcher with test API key."""
    return ExaSearcher(api_key="test-key")


def test_init_uses_env_var(monkeypatch: pytest.MonkeyPatch) -> None:
    """Should use EXA_API_KEY env var if no key passed."""
    monkeypatch.setenv("EXA_API_KEY", "env-key")
    searcher = ExaSearcher()
    assert searcher._api_key == "env-key"
    assert searcher._client is not None


async def test_missing_key_returns_empty(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("EXA_API_KEY", raising=False)
    searcher = ExaSearcher()
    assert searcher._client is None
    assert await searcher.search("dengue") == []


async def test_search_returns_source_items(exa_searcher: ExaSearcher) -> None:
    exa_searcher._client.search = AsyncMock(return_value=_make_mock_response())  # type: ignore[union-attr]

    items = await exa_searcher.search("dengue")

    assert len(items) == 2
    assert all(isinstance(i, RawSourceItem) for i in items)
    assert items[0].domain == "who.int"
    assert items[0].title == "Dengue fact sheet"
    assert items[0].published_at == "2025-07-01T10:00:00.000Z"
    assert items[0].snippet is None
    assert items[1].title == ""
    assert items[1].published_at is None


async def test_search_passes_clamped_result_count(exa_searcher: ExaSearcher) -> None:
    exa_searcher._client.search = AsyncMock(return_value=_make_mock_response())  # type: ignore[union-attr]

    await exa_searcher.search("dengue", max_results=50, region="US", language="hi")

    call = exa_searcher._client.search.call_args  # type: ignore[union-attr]
    assert call.args[0] == "dengue"
    assert call.kwargs["num_results"] == 10


async def test_search_errors_propagate(exa_searcher: ExaSearcher) -> None:
    exa_searcher._client.search = AsyncMock(side_effect=RuntimeError("quota"))  # type: ignore[union-attr]
    with pytest.raises(RuntimeError, match="quota"):
        await exa_searcher.search("dengue")
