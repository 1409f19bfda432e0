from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from data_designer.engine.column_generators.generators.base import ColumnGeneratorFullColumn

from data_designer_credibility.config import CredibilityColumnConfig
from data_designer_credibility.engine import analyze_text
from data_designer_credibility.scoring import WeightVector

if TYPE_CHECKING:
    import pandas as pd

logger = logging.getLogger(__name__)


def row_signal(text: str, config: CredibilityColumnConfig, weights: WeightVector) -> dict:
    analysis = analyze_text(text, weights)
    output: dict = {
        "is_valid": analysis["score"] < config.max_ai_score,
        "ai_score": round(analysis["score"], 1),
        "label": analysis["label"],
        "confidence": analysis["confidence"],
        "polarization": round(analysis["polarization"], 1),
        "bias": round(analysis["bias"], 1),
        "word_count": analysis["word_count"],
    }
    if config.include_reasons:
        output["reasons"] = analysis["reasons"]
    if config.include_metrics:
        output["metrics"] = analysis["metrics"]
    return output


class CredibilityColumnGenerator(ColumnGeneratorFullColumn[CredibilityColumnConfig]):
    """Column generator that scores text for AI-likeness, polarization, and bias."""

    def generate(self, data: pd.DataFrame) -> pd.DataFrame:
        logger.info(f"\U0001f50e Scoring column {self.config.name!r} for credibility signals")
        logger.info(f"   target columns: {self.config.target_columns}")
        logger.info(f"   max_ai_score: {self.config.max_ai_score}")

        weights = WeightVector.from_mapping(self.config.weights)
        results = []
        for _, row in data[self.config.target_columns].iterrows():
            text = " ".join(str(v) for v in row.values if v is not None)
            results.append(row_signal(text, self.config, weights))

        data = data.copy()
        data[self.config.name] = results
        return data
