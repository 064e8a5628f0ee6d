"""Tests for search query derivation and domain helpers."""

from __future__ import annotations

import pytest

from inkline.utils.query_builder import (
    MAX_QUERY_LENGTH,
    build_search_query,
    extract_domain,
    is_excluded_domain,
)


@pytest.mark.unit
class TestBuildSearchQuery:
    def test_strips_urls_and_mentions(self):
        query = build_search_query(
            "Breaking: @newsdesk reports the Fed held rates steady https://t.co/abc123 today"
        )
        assert "http" not in query
        assert "@" not in query
        assert query == "Breaking: reports the Fed held rates steady today"

    def test_keeps_hashtag_words(self):
        query = build_search_query("Inflation cools again this quarter #economy #FedWatch")
        assert query == "Inflation cools again this quarter economy FedWatch"

    def test_collapses_whitespace(self):
        assert build_search_query("Rates   held\n\nsteady   by the Fed") == "Rates held steady by the Fed"

    def test_truncates(self):
        query = build_search_query("word " * 100)
        assert len(query) <= MAX_QUERY_LENGTH

    def test_short_clean_query_falls_back_to_raw_text(self):
        raw = "@a @b wow https://t.co/xyz"
        assert build_search_query(raw) == raw


@pytest.mark.unit
class TestDomains:
    @pytest.mark.parametrize(
        ("url", "expected"),
        [
            ("https://www.reuters.com/markets/story", "reuters.com"),
            ("https://apnews.com/article/1", "apnews.com"),
            ("http://News.BBC.co.uk/x", "news.bbc.co.uk"),
        ],
    )
    def test_extract_domain(self, url: str, expected: str):
        assert extract_domain(url) == expected

    def test_extract_domain_falls_back_to_input(self):
        assert extract_domain("not a url") == "not a url"

    def test_excluded_exact_and_subdomain(self):
        excluded = ["x.com", "reddit.com"]
        assert is_excluded_domain("x.com", excluded)
        assert is_excluded_domain("old.reddit.com", excluded)
        assert not is_excluded_domain("reuters.com", excluded)
        assert not is_excluded_domain("notreddit.com", excluded)
