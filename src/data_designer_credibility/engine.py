# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence

from data_designer_credibility.bubbles import BubbleConfig, BubbleDecision, BubblePolicy
from data_designer_credibility.highlight import Fragment, HighlightCache, HighlightCacheEntry
from data_designer_credibility.metrics import Metrics, compute_metrics
from data_designer_credibility.perspective import (
    Link,
    action_links,
    build_queries,
    claim_search_url,
    normalize_topic,
    top_topic,
)
from data_designer_credibility.scoring import (
    UNKNOWN_RESULT,
    ScoreResult,
    WeightVector,
    score_ai,
    score_bias,
    score_polarization,
)
from data_designer_credibility.stores import (
    HighlightBookmarks,
    SavedHighlight,
    ScanHistory,
    ScanRecord,
    Settings,
    SettingsStore,
    WeightStore,
)

logger = logging.getLogger(__name__)

MAX_BLOCK_SCORES = 10
MIN_BLOCK_CHARS = 30
MIN_SELECTION_CHARS = 3
SELECTION_TOPIC_CHARS = 30
SELECTION_COVERAGE_LIMIT = 5
SAVED_EXCERPT_CHARS = 500


@dataclass(frozen=True)
class PageDecision:
    result: ScoreResult
    metrics: Metrics
    polarization: float
    bias: float
    block_scores: tuple[ScoreResult, ...] = ()

    def to_payload(self) -> dict[str, object]:
        return {
            **self.result.to_payload(),
            "polarization": self.polarization,
            "bias": self.bias,
            "metrics": self.metrics.to_payload(),
            "block_scores": [b.to_payload() for b in self.block_scores],
        }


@dataclass(frozen=True)
class SelectionInsight:
    """What the selection toolbar shows for a highlighted passage."""

    text: str
    topic: str
    angle: str
    metrics: Metrics

    def to_payload(self) -> dict[str, object]:
        return {"text": self.text, "topic": self.topic, "angle": self.angle}


def analyze_text(text: str, weights: WeightVector | None = None) -> dict:
    """Score a single passage on all three axes.

    Args:
        text: The passage to analyze.
        weights: Optional AI-likeness weights. Uses the defaults if omitted.

    Returns:
        Dict with keys: score, label, confidence, reasons, polarization, bias,
        word_count, metrics. Text without words is labelled Unknown with a
        score of 0.
    """
    metrics = compute_metrics(text)
    result = score_ai(metrics, weights) if metrics.word_count else UNKNOWN_RESULT
    return {
        **result.to_payload(),
        "polarization": score_polarization(text),
        "bias": score_bias(metrics),
        "word_count": metrics.word_count,
        "metrics": metrics.to_payload(),
    }


class CredibilityEngine:
    """Analysis state for a single page view.

    Owns the highlight cache and the bubble policy; nothing else mutates them.
    Call :meth:`navigate` when the page changes.
    """

    def __init__(
        self,
        weights: WeightVector | None = None,
        settings: Settings | None = None,
        bubble_config: BubbleConfig | None = None,
        clock: Callable[[], float] | None = None,
        metrics_fn: Callable[[str], Metrics] = compute_metrics,
        on_bubble_dismiss: Callable[[str, str], None] | None = None,
    ) -> None:
        self._metrics_fn = metrics_fn
        self._clock = clock or (lambda: time.time() * 1000)
        self.highlights = HighlightCache(metrics_fn=metrics_fn)
        self.bubbles = BubblePolicy(
            config=bubble_config,
            clock=self._clock,
            metrics_fn=metrics_fn,
            on_dismiss=on_bubble_dismiss,
        )
        self.weights = weights or WeightVector()
        self.apply_settings(settings or Settings())
        self.last_decision: PageDecision | None = None

    @property
    def weights(self) -> WeightVector:
        return self._weights

    @weights.setter
    def weights(self, weights: WeightVector) -> None:
        self._weights = weights
        self.bubbles.weights = weights

    def apply_settings(self, settings: Settings) -> None:
        self.settings = settings
        self.bubbles.update_settings(settings.smart_bubbles, settings.quiet_mode)
        self.highlights.set_highlights_enabled(settings.highlights)

    async def load(self, weight_store: WeightStore, settings_store: SettingsStore) -> None:
        """Refresh weights and settings from the host. Failures leave defaults in place."""
        self.weights = await weight_store.get_weights()
        self.apply_settings(await settings_store.get_settings())

    # -- scanning -----------------------------------------------------------

    def analyze_page(self, fragments: Sequence[Fragment]) -> PageDecision:
        """Page-level verdict over all fragments, with per-block detail for the first few."""
        texts = [f.text.strip() for f in fragments if f.text and f.text.strip()]
        if not texts:
            return PageDecision(result=UNKNOWN_RESULT, metrics=Metrics(), polarization=0.0, bias=0.0)

        page_text = " ".join(texts)
        metrics = self._metrics_fn(page_text)
        blocks = [t for t in texts[:MAX_BLOCK_SCORES] if len(t) >= MIN_BLOCK_CHARS]
        return PageDecision(
            result=score_ai(metrics, self.weights),
            metrics=metrics,
            polarization=score_polarization(page_text),
            bias=score_bias(metrics),
            block_scores=tuple(score_ai(self._metrics_fn(t), self.weights) for t in blocks),
        )

    def scan(self, fragments: Iterable[Fragment]) -> PageDecision:
        """Analyze the page and rebuild the highlight cache from scratch."""
        fragments = list(fragments)
        decision = self.analyze_page(fragments)
        self.highlights.classify(fragments, self.weights)
        self.last_decision = decision
        logger.info(
            f"Scanned {len(fragments)} fragments: {decision.result.label.value} "
            f"({decision.result.score:.0f}/100), {len(self.highlights.entries)} highlighted"
        )
        return decision

    async def record_scan(self, history: ScanHistory, url: str, decision: PageDecision | None = None) -> bool:
        decision = decision or self.last_decision
        if decision is None:
            return False
        record = ScanRecord(
            url=url,
            timestamp=self._clock(),
            label=decision.result.label.value,
            reasons=list(decision.result.reasons),
            confidence=decision.result.confidence.value,
            score=decision.result.score,
        )
        return await history.append(record)

    # -- highlights ---------------------------------------------------------

    def set_highlights_enabled(self, enabled: bool) -> tuple[HighlightCacheEntry, ...]:
        self.highlights.set_highlights_enabled(enabled)
        return self.highlights.visible_entries()

    def clear_highlights(self) -> None:
        self.highlights.clear()

    # -- bubbles ------------------------------------------------------------

    def on_visible(self, fragments: Iterable[Fragment], now: float | None = None) -> BubbleDecision | None:
        return self.bubbles.on_visible(fragments, now)

    def dismiss_bubble(self, bubble_id: str) -> bool:
        return self.bubbles.dismiss(bubble_id)

    def bubble_action_links(
        self, decision: BubbleDecision, page_url: str | None = None, title: str | None = None
    ) -> list[str]:
        """URLs to open when the user accepts a bubble's action."""
        topic = top_topic(decision.text, title)
        return action_links(decision.action, topic, self.settings.perspective_sources, page_url)

    # -- selection toolbar --------------------------------------------------

    def analyze_selection(self, text: str | None) -> SelectionInsight | None:
        """Topic and angle for selected text, or ``None`` when the toolbar stays hidden."""
        if not self.settings.selection_toolbar:
            return None
        text = (text or "").strip()
        if len(text) < MIN_SELECTION_CHARS:
            return None
        metrics = self._metrics_fn(text)
        topic = text[:SELECTION_TOPIC_CHARS] + ("..." if len(text) > SELECTION_TOPIC_CHARS else "")
        angle = "Opinion-leaning" if metrics.opinion_marker_count > 0 else "Reporting"
        return SelectionInsight(text=text, topic=topic, angle=angle, metrics=metrics)

    def selection_links(self, action: str, text: str) -> list[str]:
        if action == "check":
            return [claim_search_url(text)]
        if action == "coverage":
            links = build_queries(top_topic(text), self.settings.perspective_sources)
            return [link.url for link in links[:SELECTION_COVERAGE_LIMIT]]
        raise ValueError(f"Unknown selection action: {action!r}")

    async def save_selection(self, bookmarks: HighlightBookmarks, text: str, url: str, title: str = "") -> bool:
        text = (text or "").strip()
        if not text:
            return False
        entry = SavedHighlight(text=text[:SAVED_EXCERPT_CHARS], url=url, timestamp=self._clock(), title=title)
        return await bookmarks.append(entry)

    # -- perspective --------------------------------------------------------

    def perspective_links(self, topic: str) -> list[Link]:
        return build_queries(normalize_topic(topic), self.settings.perspective_sources)

    def navigate(self) -> None:
        """Drop every piece of per-page state."""
        self.bubbles.reset()
        self.highlights.clear()
        self.highlights.set_highlights_enabled(self.settings.highlights)
        self.last_decision = None
