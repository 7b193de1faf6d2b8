"""Rule fold shared by the realness and actionability scorers.

A rule is a callable ``subject -> Adjustment | None``. Rules are evaluated in
order, all of them, with no short-circuit; the result keeps the signed delta
of every rule that fired as an audit trail.
"""

from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional, TypeVar

BASELINE_SCORE = 50
MIN_SCORE = 0
MAX_SCORE = 100

T = TypeVar("T")


@dataclass(frozen=True)
class Adjustment:
    delta: int
    reason: str

    def describe(self) -> str:
        """Audit-trail line such as "+15 recruiter email present"."""
        return f"{self.delta:+d} {self.reason}"


@dataclass
class ScoreResult:
    """Clamped score plus the reasons of every rule that fired, in rule order."""

    score: int
    reasons: List[str] = field(default_factory=list)


Rule = Callable[[T], Optional[Adjustment]]


def when(condition: bool, delta: int, reason: str) -> Optional[Adjustment]:
    """Return an Adjustment if ``condition`` holds, else None."""
    return Adjustment(delta, reason) if condition else None


def clamp(score: float) -> int:
    return max(MIN_SCORE, min(MAX_SCORE, int(round(score))))


def apply_rules(rules: Iterable[Rule], subject: T, baseline: int = BASELINE_SCORE) -> ScoreResult:
    """Fold ``rules`` over ``subject`` starting from ``baseline``.

    Args:
        rules: Ordered rule callables
        subject: Input passed to every rule
        baseline: Starting score

    Returns:
        ScoreResult with the score clamped to [0, 100]
    """
    total = baseline
    reasons: List[str] = []
    for rule in rules:
        adjustment = rule(subject)
        if adjustment is None:
            continue
        total += adjustment.delta
        reasons.append(adjustment.describe())
    return ScoreResult(score=clamp(total), reasons=reasons)
