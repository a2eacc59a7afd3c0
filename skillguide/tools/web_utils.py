from __future__ import annotations

import re
from urllib.parse import urlparse, urlunparse

from bs4 import BeautifulSoup


def is_valid_url(url: str) -> bool:
    """Basic URL validation."""
    try:
        result = urlparse(url)
        return all([result.scheme in ("http", "https"), result.netloc])
    except ValueError:
        return False


def normalize_url(url: str) -> str:
    """Drop the fragment and a trailing slash; unparseable input is returned as-is."""
    try:
        parsed = urlparse(url)
    except ValueError:
        return url
    if not parsed.scheme or not parsed.netloc:
        return url
    path = parsed.path or "/"
    normalized = urlunparse(parsed._replace(path=path, fragment=""))
    return normalized[:-1] if normalized.endswith("/") else normalized


def extract_domain(url: str) -> str:
    """Extract the lowercase hostname from a URL."""
    try:
        return (urlparse(url).hostname or "").lower()
    except ValueError:
        return ""


def clean_snippet(text: str) -> str:
    """Strip HTML markup from a search snippet and collapse whitespace."""
    if not text:
        return ""
    plain = BeautifulSoup(text, "html.parser").get_text(" ")
    return re.sub(r"\s+", " ", plain).strip()


def collapse_whitespace(text: str) -> str:
    return re.sub(r"\s+", " ", text).strip()


def count_words(text: str) -> int:
    return len(text.split())
