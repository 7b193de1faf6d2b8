"""Compensation extraction with hourly normalization.

Dialects are tried in a fixed order (hourly, daily, weekly, annual, monthly)
and the first one that matches wins; there is no scoring across dialects.
"""

import re
from typing import List, NamedTuple, Optional, Pattern

from market_signals.domain.models import CompPeriod

from .models import RateResult

HOURS_PER_DAY = 8
HOURS_PER_WEEK = 40
HOURS_PER_MONTH = 173.33
HOURS_PER_YEAR = 2080


class _Dialect(NamedTuple):
    period: CompPeriod
    pattern: Pattern[str]
    hours: float
    thousands_shorthand: bool = False


def _amount(digits: str) -> str:
    return rf"(\d{{{digits}}}(?:\.\d{{1,2}})?)"


def _range_pattern(digits: str, suffix: str) -> Pattern[str]:
    amount = _amount(digits)
    return re.compile(
        rf"\$\s*{amount}\s*(?:[-–]\s*\$?\s*{amount})?\s*{suffix}",
        re.IGNORECASE,
    )


DIALECTS: List[_Dialect] = [
    # $50/hr, $50-80/hr, $50 per hour
    _Dialect(CompPeriod.HOUR, _range_pattern("2,3", r"(?:/\s*h(?:ou)?r|per\s+h(?:ou)?r|\s*hr)\b"), 1),
    # $400/day, $400-500 per day
    _Dialect(CompPeriod.DAY, _range_pattern("3,4", r"(?:/\s*day|per\s+day)\b"), HOURS_PER_DAY),
    # $2000/week
    _Dialect(CompPeriod.WEEK, _range_pattern("3,5", r"(?:/\s*w(?:ee)?k|per\s+w(?:ee)?k)\b"), HOURS_PER_WEEK),
    # $100K, $100,000, $100K-$150K/year; the period suffix is optional
    _Dialect(
        CompPeriod.YEAR,
        re.compile(
            r"\$\s*(\d{2,3})(?:,\d{3}|[Kk])\s*(?:[-–]\s*\$?\s*(\d{2,3})(?:,\d{3}|[Kk]))?"
            r"\s*(?:/?\s*(?:year|yr|annual|per\s+(?:year|annum))|\s*(?:base|salary))?",
            re.IGNORECASE,
        ),
        HOURS_PER_YEAR,
        thousands_shorthand=True,
    ),
    # $8000/month
    _Dialect(CompPeriod.MONTH, _range_pattern("3,6", r"(?:/\s*mo(?:nth)?|per\s+mo(?:nth)?)\b"), HOURS_PER_MONTH),
]


def extract_rate(text: Optional[str]) -> RateResult:
    """Find the first compensation figure in ``text`` and normalize it to hourly.

    Args:
        text: Posting description (None or empty allowed)

    Returns:
        RateResult; ``rate_text`` is None when nothing matched. Never raises.
    """
    if not text:
        return RateResult()

    for dialect in DIALECTS:
        match = dialect.pattern.search(text)
        if not match:
            continue

        low = float(match.group(1))
        high = float(match.group(2)) if match.group(2) else None
        if dialect.thousands_shorthand:
            # Any sub-1000 figure is read as thousands, "$95,000" included.
            if low < 1000:
                low *= 1000
            if high is not None and high < 1000:
                high *= 1000

        return RateResult(
            rate_text=match.group(0),
            min=low,
            max=high,
            comp_period=dialect.period,
            hourly_min=low / dialect.hours,
            hourly_max=high / dialect.hours if high is not None else None,
        )

    return RateResult()
