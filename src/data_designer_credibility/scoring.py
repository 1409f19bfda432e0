# SPDX-License-Identifier: Apache-2.0
#
# Weighted-linear scoring of passage metrics. The AI-likeness axis carries a
# label, a confidence tier, and reasons; polarization and bias are bare
# 0-100 numbers.

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, fields
from enum import Enum
from typing import Callable, Mapping

from data_designer_credibility.metrics import Metrics, compute_metrics, count_matches, lexicon_re

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Weights
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class WeightVector:
    """Per-metric weights for the AI-likeness score.

    Weights are expected to be non-negative and to sum to roughly 1.0; only
    non-negativity is enforced, by :meth:`from_mapping`.
    """

    avg_sent_len: float = 0.15
    std_sent_len: float = 0.10
    ttr: float = 0.20
    comma_chain_rate: float = 0.05
    repetition: float = 0.15
    punct_rate: float = 0.05
    quotes: float = 0.10
    opinion: float = 0.10
    balance: float = 0.10

    @classmethod
    def from_mapping(cls, raw: Mapping[str, object] | None) -> WeightVector:
        """Merge a persisted (camelCase) or snake_case mapping over the defaults.

        Unknown keys are ignored. Missing, non-numeric, non-finite, or negative
        values fall back to the default for that key.
        """
        if not isinstance(raw, Mapping):
            return DEFAULT_WEIGHTS
        values: dict[str, float] = {}
        for f in fields(cls):
            value = raw.get(_CAMEL_KEYS[f.name], raw.get(f.name))
            if value is None:
                continue
            number = _finite_float(value)
            if number is None or number < 0:
                logger.warning(f"Ignoring invalid weight {f.name}={value!r}; using default")
                continue
            values[f.name] = number
        return cls(**values)

    def to_mapping(self) -> dict[str, float]:
        return {_CAMEL_KEYS[f.name]: getattr(self, f.name) for f in fields(self)}


_CAMEL_KEYS = {
    "avg_sent_len": "avgSentLen",
    "std_sent_len": "stdSentLen",
    "ttr": "ttr",
    "comma_chain_rate": "commaChainRate",
    "repetition": "repetition",
    "punct_rate": "punctRate",
    "quotes": "quotes",
    "opinion": "opinion",
    "balance": "balance",
}

DEFAULT_WEIGHTS = WeightVector()


@dataclass(frozen=True)
class PolarizationWeights:
    """Weights and saturation points for :func:`score_polarization`."""

    partisan: float = 0.40
    partisan_cap: float = 2.0
    opinion: float = 0.30
    opinion_cap: float = 3.0
    quotes: float = 0.20
    quotes_cap: float = 4.0
    balance: float = 0.20
    balance_cap: float = 2.0


@dataclass(frozen=True)
class BiasWeights:
    """Weights for :func:`score_bias`."""

    markers: float = 0.70
    markers_cap: float = 10.0
    adjective_stacking: float = 0.30
    stacking_floor: float = 22.0
    stacking_span: float = 20.0


DEFAULT_POLARIZATION_WEIGHTS = PolarizationWeights()
DEFAULT_BIAS_WEIGHTS = BiasWeights()

# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------

SCORE_MIN = 0.0
SCORE_MAX = 100.0
LIKELY_AI_MIN = 60
MIXED_MIN = 40
MAX_REASONS = 3
GENERIC_REASON = "Mixed signals detected"


class Label(str, Enum):
    LIKELY_AI = "LikelyAI"
    MIXED = "Mixed"
    LIKELY_HUMAN = "LikelyHuman"
    UNKNOWN = "Unknown"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]

    @classmethod
    def parse(cls, raw: object) -> Label:
        """Accept a value or display name; anything else is Unknown."""
        for label, display in _DISPLAY_NAMES.items():
            if raw == label.value or raw == display:
                return label
        return cls.UNKNOWN


_DISPLAY_NAMES = {
    Label.LIKELY_AI: "Likely AI",
    Label.MIXED: "Mixed",
    Label.LIKELY_HUMAN: "Likely Human",
    Label.UNKNOWN: "Unknown",
}


class Confidence(str, Enum):
    STEADY = "steady"
    TENTATIVE = "tentative"


@dataclass(frozen=True)
class ScoreResult:
    score: float
    label: Label
    confidence: Confidence
    reasons: tuple[str, ...]

    def to_payload(self) -> dict[str, object]:
        return {
            "score": self.score,
            "label": self.label.value,
            "confidence": self.confidence.value,
            "reasons": list(self.reasons),
        }

    @classmethod
    def from_payload(cls, raw: object) -> ScoreResult:
        """Rebuild a result from a cached payload, defaulting anything malformed.

        ``label`` falls back to Unknown, ``confidence`` to tentative, ``reasons``
        to a single generic reason, and ``score`` to 0.
        """
        data = raw if isinstance(raw, Mapping) else {}

        score = _finite_float(data.get("score"))
        if score is None:
            score = 0.0
        label = Label.parse(data.get("label"))
        try:
            confidence = Confidence(data.get("confidence"))
        except ValueError:
            confidence = Confidence.TENTATIVE
        reasons = data.get("reasons")
        if not isinstance(reasons, (list, tuple)) or not reasons or not all(isinstance(r, str) for r in reasons):
            reasons = (GENERIC_REASON,)

        return cls(
            score=_clamp(float(score), SCORE_MIN, SCORE_MAX),
            label=label,
            confidence=confidence,
            reasons=tuple(reasons)[:MAX_REASONS],
        )


UNKNOWN_RESULT = ScoreResult(
    score=0.0,
    label=Label.UNKNOWN,
    confidence=Confidence.TENTATIVE,
    reasons=("No readable content found",),
)

# ---------------------------------------------------------------------------
# Reason table, in priority order
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReasonRule:
    name: str
    message: str
    applies: Callable[[Metrics], bool]


REASON_RULES: tuple[ReasonRule, ...] = (
    ReasonRule(
        "low_word_variety",
        "Low word variety suggests automated generation",
        lambda m: m.type_token_ratio < 0.3,
    ),
    ReasonRule(
        "phrase_repetition",
        "High repetition of phrases detected",
        lambda m: m.trigram_repetition_rate > 0.3,
    ),
    ReasonRule(
        "unsourced_claims",
        "Strong claims without source quotes",
        lambda m: m.opinion_marker_count > 2 and m.quote_count == 0,
    ),
    ReasonRule(
        "uniform_rhythm",
        "Uniform sentence lengths",
        lambda m: m.std_sentence_len < 5,
    ),
    ReasonRule(
        "one_sided",
        "Opinionated without balancing perspectives",
        lambda m: m.balance_marker_count == 0 and m.opinion_marker_count > 0,
    ),
    ReasonRule(
        "long_unquoted",
        "Long text without quoted sources",
        lambda m: m.quote_count == 0 and m.sentence_count > 10,
    ),
)


def derive_reasons(metrics: Metrics, rules: tuple[ReasonRule, ...] = REASON_RULES) -> tuple[str, ...]:
    matched = [rule.message for rule in rules if rule.applies(metrics)]
    return tuple(matched[:MAX_REASONS]) or (GENERIC_REASON,)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _finite_float(value: object) -> float | None:
    """``value`` as a finite float, or ``None`` if it is not a usable number."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    try:
        number = float(value)
    except OverflowError:
        return None
    return number if math.isfinite(number) else None


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _clamp01(value: float) -> float:
    return _clamp(value, 0.0, 1.0)


def _label(score: float) -> tuple[Label, Confidence]:
    if score >= LIKELY_AI_MIN:
        return Label.LIKELY_AI, Confidence.STEADY
    if score >= MIXED_MIN:
        return Label.MIXED, Confidence.TENTATIVE
    return Label.LIKELY_HUMAN, Confidence.STEADY


def ai_contributions(metrics: Metrics) -> dict[str, float]:
    """Normalized [0, 1] contribution of each metric, keyed like :class:`WeightVector`."""
    m = metrics
    return {
        "avg_sent_len": min(1.0, m.avg_sentence_len / 30),
        "std_sent_len": 1.0 - min(1.0, m.std_sentence_len / 15),
        "ttr": max(0.0, 1.0 - m.type_token_ratio),
        "comma_chain_rate": min(1.0, m.comma_chain_rate),
        "repetition": _clamp01(m.trigram_repetition_rate),
        "punct_rate": max(0.0, 1.0 - m.punctuation_rate * 10),
        "quotes": 1.0 - min(1.0, m.quote_count / 5),
        "opinion": min(1.0, m.opinion_marker_count / 5),
        "balance": 1.0 - min(1.0, m.balance_marker_count / 3),
    }


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def score_ai(metrics: Metrics, weights: WeightVector | None = None) -> ScoreResult:
    """Score how machine-generated a passage reads.

    Args:
        metrics: Output of :func:`compute_metrics`.
        weights: Optional weight vector. Uses :data:`DEFAULT_WEIGHTS` if omitted.

    Returns:
        A :class:`ScoreResult` with a score in [0, 100], label, confidence tier,
        and up to three reasons.
    """
    w = weights or DEFAULT_WEIGHTS
    raw = sum(value * getattr(w, key) * 100 for key, value in ai_contributions(metrics).items())
    score = _clamp(raw, SCORE_MIN, SCORE_MAX)
    label, confidence = _label(score)
    return ScoreResult(score=score, label=label, confidence=confidence, reasons=derive_reasons(metrics))


_PARTISAN_RE = lexicon_re(["radical", "extremist", "conspiracy", "woke", "fake news", "deep state"])
_POLARIZING_OPINION_RE = lexicon_re(["clearly", "obviously", "undeniably", "everyone knows", "without doubt"])


def score_polarization(text: str, weights: PolarizationWeights | None = None) -> float:
    """Score partisan, one-sided rhetoric in ``text`` on a 0-100 scale.

    Partisan terms and opinion markers push the score up; quoted sources and
    balancing phrases pull it down.
    """
    w = weights or DEFAULT_POLARIZATION_WEIGHTS
    text = text or ""
    metrics = compute_metrics(text)
    partisan = count_matches(_PARTISAN_RE, text)
    opinion = count_matches(_POLARIZING_OPINION_RE, text)

    raw = (
        w.partisan * min(1.0, partisan / w.partisan_cap)
        + w.opinion * min(1.0, opinion / w.opinion_cap)
        - w.quotes * min(1.0, metrics.quote_count / w.quotes_cap)
        - w.balance * min(1.0, metrics.balance_marker_count / w.balance_cap)
    )
    return _clamp(raw * 100, SCORE_MIN, SCORE_MAX)


def score_bias(metrics: Metrics, weights: BiasWeights | None = None) -> float:
    """Score loaded language on a 0-100 scale.

    Bias-lexicon hits dominate; very long sentences add a little, as a proxy
    for stacked adjectives and adverbs.
    """
    w = weights or DEFAULT_BIAS_WEIGHTS
    markers = min(1.0, metrics.bias_marker_count / w.markers_cap)
    stacking = _clamp01((metrics.avg_sentence_len - w.stacking_floor) / w.stacking_span)
    raw = w.markers * markers + w.adjective_stacking * stacking
    return _clamp(raw * 100, SCORE_MIN, SCORE_MAX)
