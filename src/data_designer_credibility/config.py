from __future__ import annotations

from typing import Literal

from pydantic import Field

from data_designer.config.column_configs import SingleColumnConfig


class CredibilityColumnConfig(SingleColumnConfig):
    """Score text columns for AI-likeness, polarization, and bias using lexicon heuristics.

    Each row gets a 0-100 AI-likeness score with a label, confidence tier and
    up to three reasons, plus bare polarization and bias scores.

    Attributes:
        target_columns: Columns whose text content will be concatenated and scored.
        max_ai_score: Rows scoring below this AI-likeness score are ``is_valid=True``.
            Defaults to 60 (the boundary of the "LikelyAI" label).
        weights: Optional per-metric weight overrides, keyed like the persisted
            weight vector (``avgSentLen``, ``ttr``, ...). Missing keys keep their defaults.
        include_reasons: Include the ranked explanatory reasons in output.
        include_metrics: Include the raw text metrics in output.
    """

    target_columns: list[str]
    max_ai_score: int = Field(default=60, ge=0, le=100, description="AI-likeness score below which is_valid=True")
    weights: dict[str, float] | None = Field(default=None, description="Per-metric weight overrides")
    include_reasons: bool = Field(default=True, description="Include explanatory reasons in output")
    include_metrics: bool = Field(default=False, description="Include raw text metrics in output")
    column_type: Literal["credibility-lens"] = "credibility-lens"

    @staticmethod
    def get_column_emoji() -> str:
        return "\U0001f50e"

    @property
    def required_columns(self) -> list[str]:
        return self.target_columns

    @property
    def side_effect_columns(self) -> list[str]:
        return []
