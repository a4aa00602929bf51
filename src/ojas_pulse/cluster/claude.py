"""Group collected sources into concrete, claim-centric clusters using Claude."""

import json
import logging
from collections.abc import Callable
from datetime import datetime, timedelta
from typing import Any

from ojas_pulse.cluster.base import ClusterKind, ClusterResult
from ojas_pulse.data import RawSourceItem, SourceCluster, Usage
from ojas_pulse.extraction import ExtractionError, extract_json
from ojas_pulse.llm import (
    DEFAULT_MODEL,
    make_client,
    resolve_api_key,
    response_text,
    usage_from_response,
    utc_now,
)
from ojas_pulse.url import content_hash, extract_domain

logger = logging.getLogger(__name__)

CLUSTER_TTL = timedelta(days=3)
MAX_CLAIM_LENGTH = 120
FALLBACK_ITEM_LIMIT = 10

CLUSTER_SYSTEM_PROMPT = """\
You are a research organizer. Group the given sources into distinct \
news-worthy clusters.

Rules:
- Each cluster represents a SPECIFIC story, research finding, policy, or \
development (NOT broad themes)
- The claim must be concrete and specific (e.g., "ICMR launches diabetes \
screening in 100 districts", NOT "diabetes awareness")
- Group sources that discuss the SAME specific event, study, or development
- Aim for 3-7 clusters; merge similar stories, separate distinct ones
- Only use sources from the input; copy their URLs exactly

Respond with a JSON object:
{"clusters": [{"claim": "specific claim, at most 120 characters", \
"items": [{"title": "...", "url": "...", "domain": "...", "publishedAt": "..."}]}]}

Return ONLY the JSON object, no other text.\
"""


def cluster_id(claim: str, topic: str, region: str, urls: list[str]) -> str:
    """Stable cluster key; reruns over the same input produce the same id."""
    return content_hash(f"{claim}|{topic}|{region}|{','.join(urls[:3])}")


def fallback_cluster_id(topic: str, region: str) -> str:
    return content_hash(f"{topic}|{region}|fallback")


class ClaudeSourceClusterer:
    """Cluster sources by the specific claim they support.

    The model only decides grouping. Items it returns are re-normalized
    against the input: domains are recomputed and the original snippet is
    restored for any URL that matches an input source.

    Args:
        model: Anthropic model ID to use.
        api_key: API key (defaults to CLAUDE_API_KEY env var).
        clock: Returns the current time, used for ``created_at``.
    """

    def __init__(
        self,
        *,
        model: str = DEFAULT_MODEL,
        api_key: str | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._model = model
        resolved_key = resolve_api_key(api_key)
        self._client = make_client(resolved_key) if resolved_key else None
        self._clock = clock

    async def cluster(
        self,
        sources: list[RawSourceItem],
        topic: str,
        region: str,
        category: str,
    ) -> ClusterResult:
        """Group ``sources`` into clusters.

        Args:
            sources: Deduplicated sources for the topic.
            topic: Topic the sources were collected for.
            region: Region code.
            category: Category stamped onto every cluster.

        Returns:
            ``ClusterResult``. Empty input gives an empty LLM-kind result
            without a model call; any failure gives a single fallback cluster.
        """
        if not sources:
            return ClusterResult(clusters=[], kind=ClusterKind.LLM)

        now = self._clock()
        if self._client is None:
            logger.warning("No Claude API key configured; using fallback cluster for %r", topic)
            return self._fallback(sources, topic, region, category, now)

        payload = {
            "topic": topic,
            "region": region,
            "category": category,
            "sources": [
                {
                    "title": s.title,
                    "url": s.url,
                    "domain": s.domain,
                    "publishedAt": s.published_at,
                }
                for s in sources
            ],
        }

        try:
            response = await self._client.messages.create(
                model=self._model,
                max_tokens=2048,
                temperature=0.2,
                system=CLUSTER_SYSTEM_PROMPT,
                messages=[
                    {"role": "user", "content": f"INPUT:\n{json.dumps(payload, indent=2)}"}
                ],
            )
        except Exception as e:
            logger.warning("Clustering failed for %r. Error: %s", topic, e)
            return self._fallback(sources, topic, region, category, now)

        usage = usage_from_response(response, self._model)
        try:
            data = extract_json(response_text(response))
        except ExtractionError as e:
            logger.warning("Could not parse clusters for %r: %s", topic, e)
            return self._fallback(sources, topic, region, category, now, usage)

        clusters = self._build_clusters(data, sources, topic, region, category, now)
        if not clusters:
            logger.warning("Model returned no usable clusters for %r", topic)
            return self._fallback(sources, topic, region, category, now, usage)

        logger.info(
            "Grouped %d sources into %d clusters for %r", len(sources), len(clusters), topic
        )
        return ClusterResult(clusters=clusters, kind=ClusterKind.LLM, usage=usage)

    def _build_clusters(
        self,
        data: dict[str, Any],
        sources: list[RawSourceItem],
        topic: str,
        region: str,
        category: str,
        now: datetime,
    ) -> list[SourceCluster]:
        raw_clusters = data.get("clusters")
        if not isinstance(raw_clusters, list):
            return []

        by_url = {s.url: s for s in sources}
        clusters: list[SourceCluster] = []
        for raw in raw_clusters:
            if not isinstance(raw, dict):
                continue
            claim = str(raw.get("claim") or "").strip()[:MAX_CLAIM_LENGTH]
            raw_items = raw.get("items")
            items = _normalize_items(raw_items if isinstance(raw_items, list) else [], by_url)
            if not claim or not items:
                continue
            clusters.append(
                SourceCluster(
                    id=cluster_id(claim, topic, region, [i.url for i in items]),
                    claim=claim,
                    category=category,
                    region=region,
                    items=tuple(items),
                    created_at=now.isoformat(),
                    expire_at=(now + CLUSTER_TTL).isoformat(),
                )
            )
        return clusters

    def _fallback(
        self,
        sources: list[RawSourceItem],
        topic: str,
        region: str,
        category: str,
        now: datetime,
        usage: Usage | None = None,
    ) -> ClusterResult:
        cluster = SourceCluster(
            id=fallback_cluster_id(topic, region),
            claim=topic,
            category=category,
            region=region,
            items=tuple(sources[:FALLBACK_ITEM_LIMIT]),
            created_at=now.isoformat(),
            expire_at=(now + CLUSTER_TTL).isoformat(),
        )
        return ClusterResult(clusters=[cluster], kind=ClusterKind.FALLBACK, usage=usage or Usage())


def _normalize_items(
    raw_items: list[Any], by_url: dict[str, RawSourceItem]
) -> list[RawSourceItem]:
    items: list[RawSourceItem] = []
    seen: set[str] = set()
    for raw in raw_items:
        if not isinstance(raw, dict):
            continue
        url = str(raw.get("url") or "").strip()
        if not url or url in seen:
            continue
        seen.add(url)
        original = by_url.get(url)
        published_at = raw.get("publishedAt") or None
        if original is not None:
            published_at = published_at or original.published_at
        items.append(
            RawSourceItem(
                title=str(raw.get("title") or (original.title if original else "")),
                url=url,
                domain=extract_domain(url) or str(raw.get("domain") or ""),
                snippet=original.snippet if original else None,
                published_at=published_at,
            )
        )
    return items
