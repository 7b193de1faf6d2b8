"""Rule-based realness and actionability scoring.

This module provides:
- apply_rules / Adjustment / ScoreResult: the ordered rule fold
- score_realness: genuineness and freshness of a posting
- score_actionability: staffing placeability (consumes realness)
"""

from .actionability import ACTIONABILITY_RULES, hourly_rate_in_range, score_actionability
from .models import ActionabilityInput, RealnessInput, is_confidential_company
from .realness import build_realness_rules, score_realness
from .rules import BASELINE_SCORE, Adjustment, ScoreResult, apply_rules, when

__all__ = [
    "Adjustment",
    "ScoreResult",
    "apply_rules",
    "when",
    "BASELINE_SCORE",
    "RealnessInput",
    "ActionabilityInput",
    "is_confidential_company",
    "score_realness",
    "build_realness_rules",
    "score_actionability",
    "ACTIONABILITY_RULES",
    "hourly_rate_in_range",
]
