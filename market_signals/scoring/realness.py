"""Realness score: is this posting genuine and fresh?

Recruiter contact, concrete details and freshness push the score up; missing
information, age, dead URLs, confidential companies and resume-harvesting
language push it down.
"""

import re
from datetime import datetime
from typing import List, Optional

from market_signals.config.models import ScoringConfig
from market_signals.domain.models import EmploymentType, UrlStatus
from market_signals.utils.timestamps import hours_since, utc_now

from .models import RealnessInput, has_specific_location, is_confidential_company
from .rules import Adjustment, Rule, ScoreResult, apply_rules, when

FRESHNESS_BONUSES = (10, 7, 3)
NEGATIVE_SIGNAL_STEP = 8
NEGATIVE_SIGNAL_CAP = 25
HARVEST_THRESHOLD = 2

HARVEST_PATTERNS = [
    re.compile(r"\bimmediately?\s+hiring\b", re.IGNORECASE),
    re.compile(r"\bwe\s+are\s+looking\s+for\s+multiple\b", re.IGNORECASE),
    re.compile(r"\b(?:urgent|asap|immediate)\s+(?:need|opening|start)\b", re.IGNORECASE),
]


def _tier_label(hours: int) -> str:
    if hours > 24 and hours % 24 == 0:
        return f"{hours // 24} days"
    return f"{hours} hours"


def _recruiter_email(inp: RealnessInput) -> Optional[Adjustment]:
    return when(bool(inp.recruiter_email), 15, "recruiter email present")


def _recruiter_name(inp: RealnessInput) -> Optional[Adjustment]:
    return when(bool(inp.recruiter_name), 5, "recruiter name present")


def _recruiter_phone(inp: RealnessInput) -> Optional[Adjustment]:
    return when(bool(inp.recruiter_phone), 5, "recruiter phone present")


def _location(inp: RealnessInput) -> Optional[Adjustment]:
    return when(has_specific_location(inp.location), 5, "location specified")


def _compensation(inp: RealnessInput) -> Optional[Adjustment]:
    has_rate = bool(inp.hourly_rate_min or inp.hourly_rate_max or inp.rate_text)
    return when(has_rate, 8, "compensation info present")


def _detailed_description(inp: RealnessInput) -> Optional[Adjustment]:
    return when(len(inp.description) > 500, 5, "detailed description (>500 chars)")


def _confidence(inp: RealnessInput) -> Optional[Adjustment]:
    return when(inp.classification_confidence >= 0.7, 5, "high classification confidence")


def _apply_url(inp: RealnessInput) -> Optional[Adjustment]:
    return when(bool(inp.apply_url), 3, "apply URL present")


def _url_alive(inp: RealnessInput) -> Optional[Adjustment]:
    return when(inp.url_status == UrlStatus.ALIVE, 5, "apply URL verified alive")


def _negative_signals(inp: RealnessInput) -> Optional[Adjustment]:
    if not inp.negative_signals:
        return None
    penalty = min(len(inp.negative_signals) * NEGATIVE_SIGNAL_STEP, NEGATIVE_SIGNAL_CAP)
    return Adjustment(-penalty, f"negative signals: {', '.join(inp.negative_signals)}")


def _confidential_company(inp: RealnessInput) -> Optional[Adjustment]:
    return when(is_confidential_company(inp.company), -10, "confidential/unknown company")


def _harvest_language(inp: RealnessInput) -> Optional[Adjustment]:
    hits = sum(1 for pattern in HARVEST_PATTERNS if pattern.search(inp.description))
    return when(hits >= HARVEST_THRESHOLD, -10, "possible resume harvesting signals")


def _url_dead(inp: RealnessInput) -> Optional[Adjustment]:
    return when(inp.url_status == UrlStatus.DEAD, -20, "apply URL is dead")


def _url_redirect(inp: RealnessInput) -> Optional[Adjustment]:
    return when(inp.url_status == UrlStatus.REDIRECT, -5, "apply URL redirects (may be closed)")


def _short_description(inp: RealnessInput) -> Optional[Adjustment]:
    return when(len(inp.description) < 100, -8, "very short description (<100 chars)")


def _unknown_type(inp: RealnessInput) -> Optional[Adjustment]:
    return when(inp.employment_type == EmploymentType.UNKNOWN, -5, "unknown employment type")


def _freshness_rule(tiers: List[int], now: datetime) -> Rule:
    """Bonus for the tightest freshness band the posting falls in."""

    def rule(inp: RealnessInput) -> Optional[Adjustment]:
        reference = inp.reference_date
        if reference is None:
            return None
        age_hours = hours_since(reference, now)
        for limit, bonus in zip(tiers, FRESHNESS_BONUSES):
            if age_hours <= limit:
                return Adjustment(bonus, f"posted within {_tier_label(limit)}")
        return None

    return rule


def _posting_age_rule(old_posting_days: int, now: datetime) -> Rule:
    """Penalize a missing posting date, or a posting older than the window."""

    def rule(inp: RealnessInput) -> Optional[Adjustment]:
        reference = inp.reference_date
        if reference is None:
            return Adjustment(-5, "no posted date available")
        age_days = hours_since(reference, now) / 24
        return when(age_days > old_posting_days, -8, f"posting older than {old_posting_days} days")

    return rule


def build_realness_rules(settings: ScoringConfig, now: datetime) -> List[Rule]:
    """Assemble the ordered realness rule list for one evaluation instant."""
    return [
        _recruiter_email,
        _recruiter_name,
        _recruiter_phone,
        _location,
        _compensation,
        _detailed_description,
        _confidence,
        _freshness_rule(settings.freshness_tiers_hours, now),
        _apply_url,
        _url_alive,
        _negative_signals,
        _confidential_company,
        _harvest_language,
        _url_dead,
        _url_redirect,
        _posting_age_rule(settings.old_posting_days, now),
        _short_description,
        _unknown_type,
    ]


def score_realness(
    inp: RealnessInput,
    settings: Optional[ScoringConfig] = None,
    now: Optional[datetime] = None,
) -> ScoreResult:
    """Compute the realness score (0-100) with its audit trail.

    Args:
        inp: Posting fields plus classifier output
        settings: Freshness tiers and old-posting window (defaults if None)
        now: Evaluation instant (defaults to current UTC time)

    Returns:
        ScoreResult
    """
    settings = settings or ScoringConfig()
    now = now or utc_now()
    return apply_rules(build_realness_rules(settings, now), inp)
