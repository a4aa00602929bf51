"""Lead image and publish date pulled from an article's source pages."""

import asyncio
import logging
import re
from dataclasses import dataclass
from urllib.parse import urljoin

import httpx

logger = logging.getLogger(__name__)

USER_AGENT = "OjasPulseBot/1.0"
META_TIMEOUT = 5.0
MAX_PAGES = 5

# Checked in order; "image" is schema.org's itemprop.
IMAGE_KEYS = ("og:image", "twitter:image", "image", "article:image")
PUBLISHED_KEYS = ("article:published_time", "date")

_META_TAG = re.compile(r"<meta\b[^>]*>", re.IGNORECASE)
_ATTRIBUTE = re.compile(r"""([\w:-]+)\s*=\s*(?:"([^"]*)"|'([^']*)')""")


@dataclass(frozen=True)
class PageMeta:
    image_url: str | None = None
    published_at: str | None = None


def _meta_tags(html: str) -> dict[str, str]:
    """Map each meta tag's property/name/itemprop (lower-cased) to its content.

    The first tag with a given key wins.
    """
    tags: dict[str, str] = {}
    for tag in _META_TAG.findall(html):
        attrs = {
            name.lower(): double if double else single
            for name, double, single in _ATTRIBUTE.findall(tag)
        }
        content = attrs.get("content", "").strip()
        if not content:
            continue
        for attr in ("property", "name", "itemprop"):
            key = attrs.get(attr, "").strip().lower()
            if key:
                tags.setdefault(key, content)
    return tags


def parse_page_meta(html: str, base_url: str = "") -> PageMeta:
    """Pick the lead image and publish date out of a page's meta tags.

    Relative image URLs are resolved against ``base_url``.
    """
    tags = _meta_tags(html)
    image = next((tags[k] for k in IMAGE_KEYS if k in tags), None)
    if image and base_url:
        image = urljoin(base_url, image)
    published = next((tags[k] for k in PUBLISHED_KEYS if k in tags), None)
    return PageMeta(image_url=image, published_at=published)


async def fetch_page_meta(url: str, *, timeout: float = META_TIMEOUT) -> PageMeta:
    """Fetch ``url`` and parse its meta tags. Any failure yields an empty PageMeta."""
    try:
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            response = await client.get(url, headers={"User-Agent": USER_AGENT})
            response.raise_for_status()
            return parse_page_meta(response.text, url)
    except Exception as e:
        logger.debug("No page metadata from %s: %s", url, e)
        return PageMeta()


async def collect_page_meta(urls: list[str], *, max_pages: int = MAX_PAGES) -> PageMeta:
    """Fetch up to ``max_pages`` source pages concurrently.

    Returns the first image and the first publish date found, in source order.
    """
    pages = await asyncio.gather(*(fetch_page_meta(u) for u in urls[:max_pages]))
    image = next((p.image_url for p in pages if p.image_url), None)
    published = next((p.published_at for p in pages if p.published_at), None)
    if image is None and urls:
        logger.info("No image found in %d source pages", len(pages))
    return PageMeta(image_url=image, published_at=published)
