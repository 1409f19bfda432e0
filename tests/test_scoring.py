from dataclasses import replace

import pytest

from data_designer_credibility.metrics import Metrics, compute_metrics
from data_designer_credibility.scoring import (
    DEFAULT_WEIGHTS,
    GENERIC_REASON,
    Confidence,
    Label,
    ScoreResult,
    WeightVector,
    derive_reasons,
    score_ai,
    score_bias,
    score_polarization,
)


REPETITIVE_TEXT = " ".join(["The cat sat on the mat."] * 50)

BALANCED_TEXT = (
    "The council met on Tuesday to debate the new transit budget. "
    '"We cannot keep patching old buses," said Maria Lopez, who chairs the finance committee. '
    "However, several residents disagreed. "
    '"Fares are already too high for families on the east side, and nobody asked us," '
    "one commuter told reporters after the vote. "
    "The measure passed narrowly. "
    "Critics argue the plan relies on optimistic ridership forecasts that may never materialize."
)

POLARIZED_TEXT = (
    "The radical woke conspiracy is clearly fake news. "
    "Obviously everyone knows it is true."
)

SAMPLE_TEXTS = ["", "Hello world.", REPETITIVE_TEXT, BALANCED_TEXT, POLARIZED_TEXT]

WEIGHT_VECTORS = [
    DEFAULT_WEIGHTS,
    WeightVector(*([0.0] * 9)),
    WeightVector(*([5.0] * 9)),
    WeightVector(ttr=1.0, repetition=1.0),
]


class TestScoreAI:
    @pytest.mark.parametrize("weights", WEIGHT_VECTORS)
    @pytest.mark.parametrize("text", SAMPLE_TEXTS)
    def test_score_is_bounded(self, text, weights):
        result = score_ai(compute_metrics(text), weights)
        assert 0 <= result.score <= 100

    def test_repetitive_text_is_likely_ai(self):
        result = score_ai(compute_metrics(REPETITIVE_TEXT))
        assert result.score >= 60
        assert result.label is Label.LIKELY_AI
        assert result.confidence is Confidence.STEADY
        assert "High repetition of phrases detected" in result.reasons
        assert len(result.reasons) <= 3

    def test_balanced_quoted_text_is_not_likely_ai(self):
        metrics = compute_metrics(BALANCED_TEXT)
        assert metrics.balance_marker_count >= 1
        assert metrics.quote_count >= 2
        result = score_ai(metrics)
        assert result.label in (Label.MIXED, Label.LIKELY_HUMAN)

    def test_zero_metrics_with_default_weights(self):
        result = score_ai(Metrics())
        assert result.score == pytest.approx(55.0)
        assert result.label is Label.MIXED
        assert result.confidence is Confidence.TENTATIVE

    def test_zero_weights_score_zero(self):
        result = score_ai(compute_metrics(REPETITIVE_TEXT), WeightVector(*([0.0] * 9)))
        assert result.score == 0
        assert result.label is Label.LIKELY_HUMAN
        assert result.confidence is Confidence.STEADY

    @pytest.mark.parametrize(
        "ttr_weight, label",
        [(0.7, Label.LIKELY_AI), (0.5, Label.MIXED), (0.3, Label.LIKELY_HUMAN)],
    )
    def test_label_thresholds(self, ttr_weight, label):
        weights = replace(WeightVector(*([0.0] * 9)), ttr=ttr_weight)
        assert score_ai(Metrics(), weights).label is label

    def test_payload_shape(self):
        payload = score_ai(compute_metrics(BALANCED_TEXT)).to_payload()
        assert set(payload) == {"score", "label", "confidence", "reasons"}
        assert isinstance(payload["reasons"], list)


class TestReasons:
    def test_generic_reason_when_nothing_matches(self):
        metrics = Metrics(type_token_ratio=0.8, std_sentence_len=8.0, quote_count=1)
        assert derive_reasons(metrics) == (GENERIC_REASON,)

    def test_first_three_in_priority_order(self):
        metrics = Metrics(
            type_token_ratio=0.1,
            trigram_repetition_rate=0.5,
            opinion_marker_count=3,
            std_sentence_len=1.0,
            sentence_count=20,
        )
        assert derive_reasons(metrics) == (
            "Low word variety suggests automated generation",
            "High repetition of phrases detected",
            "Strong claims without source quotes",
        )

    def test_lower_priority_rules_fill_remaining_slots(self):
        metrics = Metrics(type_token_ratio=0.9, std_sentence_len=2.0, opinion_marker_count=1, sentence_count=12)
        assert derive_reasons(metrics) == (
            "Uniform sentence lengths",
            "Opinionated without balancing perspectives",
            "Long text without quoted sources",
        )


class TestScoreResultFromPayload:
    def test_empty_payload_uses_defaults(self):
        result = ScoreResult.from_payload({})
        assert result.score == 0
        assert result.label is Label.UNKNOWN
        assert result.confidence is Confidence.TENTATIVE
        assert result.reasons == (GENERIC_REASON,)

    def test_non_mapping_payload(self):
        assert ScoreResult.from_payload(None).label is Label.UNKNOWN

    def test_malformed_fields(self):
        result = ScoreResult.from_payload({"score": "high", "label": None, "confidence": 3, "reasons": "text"})
        assert result.score == 0
        assert result.label is Label.UNKNOWN
        assert result.confidence is Confidence.TENTATIVE
        assert result.reasons == (GENERIC_REASON,)

    def test_display_name_labels_are_accepted(self):
        result = ScoreResult.from_payload(
            {"score": 72, "label": "Likely AI", "confidence": "steady", "reasons": ["a", "b", "c", "d"]}
        )
        assert result.label is Label.LIKELY_AI
        assert result.confidence is Confidence.STEADY
        assert result.reasons == ("a", "b", "c")

    def test_score_is_clamped(self):
        assert ScoreResult.from_payload({"score": 250}).score == 100

    def test_oversized_integer_score(self):
        assert ScoreResult.from_payload({"score": 10**400}).score == 0


class TestWeightVector:
    def test_merge_over_defaults(self):
        weights = WeightVector.from_mapping({"ttr": 0.5, "avgSentLen": -1, "quotes": "x", "bogus": 3})
        assert weights.ttr == 0.5
        assert weights.avg_sent_len == DEFAULT_WEIGHTS.avg_sent_len
        assert weights.quotes == DEFAULT_WEIGHTS.quotes

    def test_oversized_integer_falls_back(self):
        weights = WeightVector.from_mapping({"ttr": 10**400, "quotes": float("inf"), "balance": 2})
        assert weights.ttr == DEFAULT_WEIGHTS.ttr
        assert weights.quotes == DEFAULT_WEIGHTS.quotes
        assert weights.balance == 2.0

    def test_snake_case_keys(self):
        assert WeightVector.from_mapping({"comma_chain_rate": 0.2}).comma_chain_rate == 0.2

    def test_missing_mapping_gives_defaults(self):
        assert WeightVector.from_mapping(None) == DEFAULT_WEIGHTS
        assert WeightVector.from_mapping(["not", "a", "mapping"]) == DEFAULT_WEIGHTS

    def test_persisted_form(self):
        assert DEFAULT_WEIGHTS.to_mapping() == {
            "avgSentLen": 0.15,
            "stdSentLen": 0.10,
            "ttr": 0.20,
            "commaChainRate": 0.05,
            "repetition": 0.15,
            "punctRate": 0.05,
            "quotes": 0.10,
            "opinion": 0.10,
            "balance": 0.10,
        }
        assert WeightVector.from_mapping(DEFAULT_WEIGHTS.to_mapping()) == DEFAULT_WEIGHTS


class TestPolarizationAndBias:
    def test_neutral_text_has_no_polarization(self):
        assert score_polarization("The committee reviewed the annual report on Monday.") == 0

    def test_partisan_opinionated_text(self):
        assert score_polarization(POLARIZED_TEXT) == pytest.approx(70.0)

    def test_quotes_and_balance_pull_polarization_down(self):
        softened = POLARIZED_TEXT + ' However, "nobody has proof," one analyst said. Critics argue the "evidence" is thin.'
        assert score_polarization(softened) < score_polarization(POLARIZED_TEXT)

    def test_empty_text(self):
        assert score_polarization("") == 0

    def test_bias_from_markers(self):
        assert score_bias(Metrics(bias_marker_count=10)) == pytest.approx(70.0)
        assert score_bias(Metrics(bias_marker_count=25)) == pytest.approx(70.0)

    def test_bias_from_long_sentences(self):
        assert score_bias(Metrics(avg_sentence_len=42.0)) == pytest.approx(30.0)
        assert score_bias(Metrics(avg_sentence_len=15.0)) == 0

    def test_axes_are_bare_numbers(self):
        assert isinstance(score_polarization(POLARIZED_TEXT), float)
        assert isinstance(score_bias(compute_metrics(POLARIZED_TEXT)), float)
