# SPDX-License-Identifier: Apache-2.0
"""Credibility Lens: heuristic credibility signals for passages of web text.

Scores text for AI-likeness (0-100, with a label, confidence tier and
reasons), polarization and bias using lexicon and regex heuristics. No model
calls, no network access. Also adds a ``credibility-lens`` column type to
NeMo Data Designer.

Usage::

    from data_designer_credibility import analyze_text

    analyze_text(article)["label"]

    from data_designer_credibility.config import CredibilityColumnConfig

    builder.add_column(CredibilityColumnConfig(
        name="credibility",
        target_columns=["article"],
        max_ai_score=60,
    ))
"""

from data_designer_credibility.bubbles import BubbleConfig, BubbleDecision, BubblePolicy
from data_designer_credibility.engine import CredibilityEngine, PageDecision, SelectionInsight, analyze_text
from data_designer_credibility.highlight import Fragment, HighlightCache, HighlightCacheEntry
from data_designer_credibility.metrics import Metrics, compute_metrics
from data_designer_credibility.perspective import Link, build_queries
from data_designer_credibility.scoring import (
    Confidence,
    Label,
    ScoreResult,
    WeightVector,
    score_ai,
    score_bias,
    score_polarization,
)

__all__ = [
    "BubbleConfig",
    "BubbleDecision",
    "BubblePolicy",
    "Confidence",
    "CredibilityEngine",
    "Fragment",
    "HighlightCache",
    "HighlightCacheEntry",
    "Label",
    "Link",
    "Metrics",
    "PageDecision",
    "ScoreResult",
    "SelectionInsight",
    "WeightVector",
    "analyze_text",
    "build_queries",
    "compute_metrics",
    "score_ai",
    "score_bias",
    "score_polarization",
]
