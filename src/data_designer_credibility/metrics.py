# SPDX-License-Identifier: Apache-2.0
#
# Text statistics behind every credibility score: sentence rhythm, lexical
# diversity, repetition, punctuation, quotation, and lexicon hits.

from __future__ import annotations

import math
import re
from dataclasses import asdict, dataclass

# ---------------------------------------------------------------------------
# Compiled patterns
# ---------------------------------------------------------------------------

_OPINION_MARKERS = ["clearly", "obviously", "undeniably", "we must", "everyone knows"]
_BALANCE_MARKERS = ["however", "on the other hand", r"critics (?:say|argue)"]
_BIAS_MARKERS = [
    "clearly", "obviously", "undeniably", "allegedly", "reportedly", "many say",
    "everyone knows", "disgraceful", "shocking", "outrageous", "massive", "huge",
    "incredible", "devastating", "baseless", "false",
]


def lexicon_re(terms: list[str], escape: bool = True) -> re.Pattern[str]:
    body = "|".join(re.escape(t) if escape else t for t in terms)
    return re.compile(r"\b(?:" + body + r")\b", re.IGNORECASE)


_OPINION_RE = lexicon_re(_OPINION_MARKERS)
_BALANCE_RE = lexicon_re(_BALANCE_MARKERS, escape=False)
_BIAS_RE = lexicon_re(_BIAS_MARKERS)

_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+(?=[A-Z])")
_WORD_RE = re.compile(r"\w+")
_COMMA_CHAIN_RE = re.compile(r",\s+\w+,\s+\w+")
_PUNCT_RE = re.compile(r"[.,!?;:]")
# Straight apostrophes are left out so contractions never pair up as quotes.
_QUOTE_RE = re.compile(r"[\"\u201c\u201d\u2018\u2019].*?[\"\u201c\u201d\u2018\u2019]", re.DOTALL)


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Metrics:
    """Statistics for one passage. Built by :func:`compute_metrics`."""

    sentence_count: int = 0
    word_count: int = 0
    avg_sentence_len: float = 0.0
    std_sentence_len: float = 0.0
    type_token_ratio: float = 0.0
    comma_chain_rate: float = 0.0
    trigram_repetition_rate: float = 0.0
    punctuation_rate: float = 0.0
    quote_count: int = 0
    opinion_marker_count: int = 0
    balance_marker_count: int = 0
    bias_marker_count: int = 0

    def to_payload(self) -> dict[str, object]:
        return asdict(self)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def split_sentences(text: str) -> list[str]:
    """Split on ``. ! ?`` followed by whitespace and a capital letter.

    Abbreviations and sentences opening with a quote mark are not split; the
    heuristic prefers missing a boundary over inventing one.
    """
    sentences = [s for s in _SENTENCE_SPLIT_RE.split(text) if s.strip()]
    return sentences or [text]


def count_matches(pattern: re.Pattern[str], text: str) -> int:
    return sum(1 for _ in pattern.finditer(text))


def _trigram_repetition(words: list[str]) -> float:
    if len(words) < 3:
        return 0.0
    trigrams = [tuple(words[i : i + 3]) for i in range(len(words) - 2)]
    return 1.0 - len(set(trigrams)) / len(trigrams)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def compute_metrics(text: str) -> Metrics:
    """Compute :class:`Metrics` for ``text``.

    Never raises. Empty or whitespace-only input is treated as a single empty
    sentence, which yields zero-valued statistics.
    """
    text = text or ""
    sentences = split_sentences(text)
    words = [w.lower() for w in _WORD_RE.findall(text)]

    lengths = [len(s.split()) for s in sentences]
    mean = sum(lengths) / len(lengths)
    variance = sum((n - mean) ** 2 for n in lengths) / len(lengths)

    return Metrics(
        sentence_count=len(sentences),
        word_count=len(words),
        avg_sentence_len=mean,
        std_sentence_len=math.sqrt(variance),
        type_token_ratio=len(set(words)) / len(words) if words else 0.0,
        comma_chain_rate=count_matches(_COMMA_CHAIN_RE, text) / len(sentences),
        trigram_repetition_rate=_trigram_repetition(words),
        punctuation_rate=count_matches(_PUNCT_RE, text) / len(text) if text else 0.0,
        quote_count=count_matches(_QUOTE_RE, text),
        opinion_marker_count=count_matches(_OPINION_RE, text),
        balance_marker_count=count_matches(_BALANCE_RE, text),
        bias_marker_count=count_matches(_BIAS_RE, text),
    )
