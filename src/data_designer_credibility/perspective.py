# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Mapping, Sequence
from urllib.parse import quote, urlsplit

DEFAULT_SEARCH_BASE = "https://www.google.com/search"
FACT_CHECK_GROUP = "Fact-checks"
DEFAULT_TOPIC = "Current page"
MAX_TOPIC_CHARS = 120
MAX_TITLE_TOPIC_CHARS = 50
ACTION_LINK_LIMIT = 3
CLAIM_QUERY_CHARS = 100

# RFC 2396 mark characters kept literal in query values.
_URI_SAFE = "!~*'()"

DEFAULT_PERSPECTIVE_SOURCES: dict[str, list[str]] = {
    "National": ["nytimes.com", "wsj.com", "usatoday.com"],
    "International": ["bbc.com", "theguardian.com", "reuters.com", "aljazeera.com"],
    "Business": ["bloomberg.com", "ft.com"],
    "Public broadcaster": ["npr.org", "pbs.org"],
    FACT_CHECK_GROUP: ["apnews.com", "politifact.com", "snopes.com"],
}

_WHITESPACE_RE = re.compile(r"\s+")
_CAPITALIZED_PHRASE_RE = re.compile(r"\b([A-Z][a-z]+(?:\s+[A-Z][a-z]+){0,3})\b")


@dataclass(frozen=True)
class Link:
    group: str
    domain: str
    url: str
    label: str

    def to_payload(self) -> dict[str, str]:
        return {"group": self.group, "domain": self.domain, "url": self.url, "label": self.label}


def normalize_topic(topic: str | None) -> str:
    return _WHITESPACE_RE.sub(" ", topic or "").strip()[:MAX_TOPIC_CHARS]


def top_topic(text: str, title: str | None = None) -> str:
    """Pick a search topic: the page title, else the first capitalized phrase."""
    if title and title.strip():
        return title.strip()[:MAX_TITLE_TOPIC_CHARS]
    match = _CAPITALIZED_PHRASE_RE.search(text or "")
    if match:
        return match.group(1)[:MAX_TITLE_TOPIC_CHARS]
    return DEFAULT_TOPIC


def build_queries(
    topic: str,
    source_groups: Mapping[str, Sequence[str]],
    search_base: str = DEFAULT_SEARCH_BASE,
) -> list[Link]:
    """Build one site-restricted search link per domain.

    Links come out in group order, then domain order within each group, so a
    caller slicing the first few gets the highest-priority sources.
    """
    encoded = quote(normalize_topic(topic), safe=_URI_SAFE)
    return [
        Link(group=group, domain=domain, url=f"{search_base}?q=site:{domain}+{encoded}", label=f"{domain} coverage")
        for group, domains in source_groups.items()
        for domain in domains
    ]


def action_links(
    action: str,
    topic: str,
    source_groups: Mapping[str, Sequence[str]],
    page_url: str | None = None,
    search_base: str = DEFAULT_SEARCH_BASE,
) -> list[str]:
    """Resolve a bubble action to the URLs it should open."""
    if action == "source":
        parts = urlsplit(page_url or "")
        if not parts.scheme or not parts.netloc:
            return []
        return [f"{parts.scheme}://{parts.netloc}/about"]

    links = build_queries(topic, source_groups, search_base)
    if action == "factchecks":
        links = [link for link in links if link.group == FACT_CHECK_GROUP]
    elif action == "coverage":
        links = [link for link in links if link.group != FACT_CHECK_GROUP]
    else:
        raise ValueError(f"Unknown bubble action: {action!r}")
    return [link.url for link in links[:ACTION_LINK_LIMIT]]


def claim_search_url(text: str, search_base: str = DEFAULT_SEARCH_BASE) -> str:
    """Exact-phrase search for the first characters of a claim."""
    claim = (text or "").strip()[:CLAIM_QUERY_CHARS]
    encoded = quote(f'"{claim}"', safe=_URI_SAFE)
    return f"{search_base}?q={encoded}"
