"""Search query and domain helpers for the corroboration adapter."""

from __future__ import annotations

import re
from urllib.parse import urlparse

MAX_QUERY_LENGTH = 200
MIN_CLEAN_QUERY_LENGTH = 15

_URL_RE = re.compile(r"https?://\S+")
_MENTION_RE = re.compile(r"@\w+")
_HASHTAG_RE = re.compile(r"#(\w+)")


def build_search_query(text: str) -> str:
    """Derive a web search query from post text.

    Performs the following cleanup:
    - Removes URLs and @mentions
    - Keeps hashtag words without the '#'
    - Collapses whitespace
    - Truncates to 200 characters

    If the cleaned query is too short to be useful, the raw text (truncated)
    is used instead.

    Example:
        >>> build_search_query("Breaking: @user says #inflation is down https://t.co/x")
        'Breaking: says inflation is down'
    """
    query = _URL_RE.sub("", text)
    query = _MENTION_RE.sub("", query)
    query = _HASHTAG_RE.sub(r"\1", query)
    query = " ".join(query.split())

    if len(query) > MAX_QUERY_LENGTH:
        query = query[:MAX_QUERY_LENGTH]

    if len(query) < MIN_CLEAN_QUERY_LENGTH:
        query = text[:MAX_QUERY_LENGTH]

    return query


def extract_domain(url: str) -> str:
    """Return the display domain of ``url`` without a leading 'www.'.

    Falls back to the input when it cannot be parsed as an absolute URL.
    """
    try:
        hostname = urlparse(url.strip()).hostname
    except ValueError:
        return url
    if not hostname:
        return url
    return hostname.lower().removeprefix("www.")


def is_excluded_domain(domain: str, excluded: list[str]) -> bool:
    """Check a domain against exact and subdomain matches of ``excluded``.

    Example:
        >>> is_excluded_domain("old.reddit.com", ["reddit.com"])
        True
        >>> is_excluded_domain("nytimes.com", ["x.com"])
        False
    """
    domain = domain.lower()
    for pattern in excluded:
        pattern = pattern.lower()
        if domain == pattern or domain.endswith(f".{pattern}"):
            return True
    return False
