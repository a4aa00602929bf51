"""URL handling utilities."""

import hashlib
from urllib.parse import urlparse


def extract_domain(url: str) -> str:
    """Extract the host from a URL, stripping a leading 'www.'.

    Args:
        url: The URL to extract the domain from.

    Returns:
        The domain name, or an empty string if ``url`` has no host.
    """
    try:
        hostname = urlparse(url.strip()).hostname or ""
    except (ValueError, AttributeError):
        return ""
    if hostname.startswith("www."):
        hostname = hostname[4:]
    return hostname


def content_hash(text: str, length: int = 20) -> str:
    """Stable document key derived from ``text`` (truncated SHA-1 hex)."""
    return hashlib.sha1(text.encode("utf-8")).hexdigest()[:length]
