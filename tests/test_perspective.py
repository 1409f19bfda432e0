import pytest

from data_designer_credibility.perspective import (
    DEFAULT_PERSPECTIVE_SOURCES,
    DEFAULT_TOPIC,
    action_links,
    build_queries,
    normalize_topic,
    top_topic,
)


class TestBuildQueries:
    def test_single_domain(self):
        links = build_queries("Budget Deal", {"National": ["nytimes.com"]})
        assert len(links) == 1
        link = links[0]
        assert link.url == "https://www.google.com/search?q=site:nytimes.com+Budget%20Deal"
        assert link.label == "nytimes.com coverage"
        assert link.group == "National"
        assert link.domain == "nytimes.com"

    def test_group_order_is_preserved(self):
        links = build_queries("Budget Deal", {"National": ["nytimes.com"], "Fact-checks": ["apnews.com"]})
        assert [link.domain for link in links] == ["nytimes.com", "apnews.com"]
        assert [link.group for link in links] == ["National", "Fact-checks"]
        for link in links:
            assert "Budget%20Deal" in link.url
            assert f"site:{link.domain}" in link.url

    def test_one_link_per_domain_in_order(self):
        links = build_queries("Budget Deal", DEFAULT_PERSPECTIVE_SOURCES)
        expected = [d for domains in DEFAULT_PERSPECTIVE_SOURCES.values() for d in domains]
        assert [link.domain for link in links] == expected
        assert [link.group for link in links][:3] == ["National"] * 3

    def test_topic_is_percent_encoded(self):
        url = build_queries("Tax & Spend?", {"Business": ["ft.com"]})[0].url
        assert url == "https://www.google.com/search?q=site:ft.com+Tax%20%26%20Spend%3F"

    def test_custom_search_base(self):
        url = build_queries("Budget", {"National": ["wsj.com"]}, search_base="https://duckduckgo.com/")[0].url
        assert url == "https://duckduckgo.com/?q=site:wsj.com+Budget"

    def test_empty_groups(self):
        assert build_queries("Budget", {}) == []
        assert build_queries("Budget", {"National": []}) == []

    def test_payload(self):
        payload = build_queries("Budget", {"National": ["wsj.com"]})[0].to_payload()
        assert set(payload) == {"group", "domain", "url", "label"}


class TestTopics:
    def test_normalize_collapses_whitespace(self):
        assert normalize_topic("  Budget \n\t Deal  ") == "Budget Deal"

    def test_normalize_caps_length(self):
        assert len(normalize_topic("x" * 500)) == 120

    def test_normalize_none(self):
        assert normalize_topic(None) == ""

    def test_title_wins(self):
        assert top_topic("Some body text about Congress.", title="  Senate Passes Budget  ") == "Senate Passes Budget"

    def test_title_is_shortened(self):
        assert len(top_topic("", title="A" * 80)) == 50

    def test_first_capitalized_phrase(self):
        assert top_topic("yesterday the City Council met again") == "City Council"

    def test_fallback(self):
        assert top_topic("nothing capitalized here") == DEFAULT_TOPIC


class TestActionLinks:
    def test_coverage_skips_fact_checks(self):
        urls = action_links("coverage", "Budget Deal", DEFAULT_PERSPECTIVE_SOURCES)
        assert len(urls) == 3
        assert "site:nytimes.com" in urls[0]
        assert "site:usatoday.com" in urls[2]

    def test_factchecks(self):
        urls = action_links("factchecks", "Budget Deal", DEFAULT_PERSPECTIVE_SOURCES)
        domains = [url.split("site:")[1].split("+")[0] for url in urls]
        assert domains == ["apnews.com", "politifact.com", "snopes.com"]

    def test_source_opens_about_page(self):
        urls = action_links("source", "Budget Deal", {}, page_url="https://news.example.com/2024/story?id=1")
        assert urls == ["https://news.example.com/about"]

    def test_source_without_page_url(self):
        assert action_links("source", "Budget Deal", {}) == []
        assert action_links("source", "Budget Deal", {}, page_url="not a url") == []

    def test_unknown_action(self):
        with pytest.raises(ValueError):
            action_links("teleport", "Budget Deal", DEFAULT_PERSPECTIVE_SOURCES)
