# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Hashable, Iterable

from data_designer_credibility.metrics import Metrics, compute_metrics
from data_designer_credibility.scoring import LIKELY_AI_MIN, MIXED_MIN, WeightVector, score_ai

logger = logging.getLogger(__name__)

HIGHLIGHT_MIN_SCORE = MIXED_MIN


@dataclass(frozen=True)
class Fragment:
    """A unit of page text and the opaque handle the renderer uses to find it."""

    handle: Hashable
    text: str


@dataclass(frozen=True)
class HighlightCacheEntry:
    handle: Hashable
    score: float

    @property
    def tier(self) -> str:
        return "strong" if self.score >= LIKELY_AI_MIN else "moderate"


class HighlightCache:
    """Per-page record of which fragments deserve a highlight.

    Scanning (:meth:`classify`) and showing (:meth:`set_highlights_enabled`)
    are separate: toggling visibility only flips a flag and never re-runs
    metric extraction.
    """

    def __init__(self, metrics_fn: Callable[[str], Metrics] = compute_metrics) -> None:
        self._metrics_fn = metrics_fn
        self._entries: tuple[HighlightCacheEntry, ...] = ()
        self._enabled = False

    @property
    def enabled(self) -> bool:
        return self._enabled

    @property
    def entries(self) -> tuple[HighlightCacheEntry, ...]:
        return self._entries

    def classify(self, fragments: Iterable[Fragment], weights: WeightVector | None = None) -> list[HighlightCacheEntry]:
        """Score every fragment and replace the cache with those at or above the threshold."""
        entries = []
        for fragment in fragments:
            if not fragment.text or not fragment.text.strip():
                continue
            result = score_ai(self._metrics_fn(fragment.text), weights)
            if result.score >= HIGHLIGHT_MIN_SCORE:
                entries.append(HighlightCacheEntry(handle=fragment.handle, score=result.score))
        self._entries = tuple(entries)
        logger.debug(f"Highlight cache rebuilt with {len(entries)} entries")
        return entries

    def set_highlights_enabled(self, enabled: bool) -> None:
        self._enabled = bool(enabled)

    def visible_entries(self) -> tuple[HighlightCacheEntry, ...]:
        """Entries the renderer should currently decorate."""
        return self._entries if self._enabled else ()

    def clear(self) -> None:
        self._entries = ()
        self._enabled = False
