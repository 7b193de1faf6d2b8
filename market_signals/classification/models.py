"""Result types for employment classification and rate extraction."""

from dataclasses import dataclass, field
from typing import List, Optional

from market_signals.domain.models import CompPeriod, EmploymentType


@dataclass
class ClassificationResult:
    """Outcome of classifying posting text.

    Attributes:
        employment_type: Winning type, or UNKNOWN if nothing scored above 0.3
        confidence: min(best_score / 1.5, 1.0)
        matched_keywords: Literal matches that contributed to the winning type
        negative_signals: Labels of every blocking directive found, in table order
    """

    employment_type: EmploymentType = EmploymentType.UNKNOWN
    confidence: float = 0.0
    matched_keywords: List[str] = field(default_factory=list)
    negative_signals: List[str] = field(default_factory=list)


@dataclass
class RateResult:
    """Compensation found in free text, with hourly-normalized bounds.

    ``rate_text`` is None (and ``comp_period`` UNKNOWN) when no dialect matched.
    """

    rate_text: Optional[str] = None
    min: Optional[float] = None
    max: Optional[float] = None
    comp_period: CompPeriod = CompPeriod.UNKNOWN
    hourly_min: Optional[float] = None
    hourly_max: Optional[float] = None

    @property
    def found(self) -> bool:
        return self.rate_text is not None
