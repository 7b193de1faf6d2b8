"""Deterministic text classification for market signals.

This module provides:
- classify_employment: employment type from posting text
- extract_rate: first compensation figure, normalized to hourly
- extract_skills: technology literals mentioned in the posting
"""

from .employment import blocked_types_for, classify_employment
from .models import ClassificationResult, RateResult
from .rates import extract_rate
from .skills import extract_skills

__all__ = [
    "classify_employment",
    "blocked_types_for",
    "extract_rate",
    "extract_skills",
    "ClassificationResult",
    "RateResult",
]
