"""Randomized QA audit of classification and scoring."""

from .sampler import (
    DEFAULT_SAMPLE_SIZE,
    QaChecks,
    QaRunResult,
    QaTruthSampler,
    check_bogus,
    check_freshness,
    check_harvest,
    check_type_correct,
)

__all__ = [
    "QaTruthSampler",
    "QaChecks",
    "QaRunResult",
    "DEFAULT_SAMPLE_SIZE",
    "check_type_correct",
    "check_bogus",
    "check_freshness",
    "check_harvest",
]
