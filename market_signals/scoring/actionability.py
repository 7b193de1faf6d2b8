"""Actionability score: can the desk place a candidate on this posting?

Independent of realness, which it consumes as one input. Weighted toward
staffing signals: vendor mapping, employment type, recruiter contact, rate
and blocking language.
"""

from typing import List, Optional

from market_signals.domain.models import EmploymentType, UrlStatus

from .models import ActionabilityInput, has_specific_location, is_confidential_company
from .rules import Adjustment, Rule, ScoreResult, apply_rules, when

RATE_FLOOR = 30
RATE_CEILING = 150
LOW_REALNESS = 40

C2C_BLOCKING_SIGNALS = ("NO C2C", "No vendors", "No third party")
DIRECT_HIRE_SIGNALS = ("W2 only", "Direct hire only")

STAFFING_FRIENDLY_TYPES = (EmploymentType.C2C, EmploymentType.W2_1099)


def _matching_signals(signals: List[str], candidates) -> List[str]:
    stripped = [s.strip() for s in signals]
    return [s for s in stripped if s in candidates]


def hourly_rate_in_range(low: Optional[float], high: Optional[float]) -> bool:
    """Whether the (possibly one-sided) hourly range overlaps [$30, $150]."""
    if low is None and high is None:
        return False
    low = low if low is not None else high
    high = high if high is not None else low
    return min(low, high) <= RATE_CEILING and max(low, high) >= RATE_FLOOR


def _has_rate_info(inp: ActionabilityInput) -> bool:
    return (
        (inp.hourly_rate_min is not None and inp.hourly_rate_min > 0)
        or (inp.hourly_rate_max is not None and inp.hourly_rate_max > 0)
        or bool(inp.rate_text)
    )


def _has_client_info(inp: ActionabilityInput) -> bool:
    company = (inp.company or "").strip().lower()
    return bool(company) and "confidential" not in company and company != "unknown"


def _vendor(inp: ActionabilityInput) -> Optional[Adjustment]:
    return when(bool(inp.vendor_id), 20, "matched to known vendor (best signal)")


def _recruiter_email(inp: ActionabilityInput) -> Optional[Adjustment]:
    return when(bool(inp.recruiter_email), 15, "recruiter email present")


def _employment_type(inp: ActionabilityInput) -> Optional[Adjustment]:
    if inp.employment_type in STAFFING_FRIENDLY_TYPES:
        return Adjustment(10, f"employment type {inp.employment_type.value} (staffing-friendly)")
    return when(inp.employment_type == EmploymentType.W2, 8, "employment type W2 (still actionable)")


def _rate_range(inp: ActionabilityInput) -> Optional[Adjustment]:
    in_range = hourly_rate_in_range(inp.hourly_rate_min, inp.hourly_rate_max)
    return when(in_range, 5, f"hourly rate in good range (${RATE_FLOOR}-${RATE_CEILING}/hr)")


def _location(inp: ActionabilityInput) -> Optional[Adjustment]:
    return when(has_specific_location(inp.location), 5, "location is specific")


def _confidence(inp: ActionabilityInput) -> Optional[Adjustment]:
    return when(inp.classification_confidence >= 0.7, 5, "classification confidence >= 0.7")


def _url_alive(inp: ActionabilityInput) -> Optional[Adjustment]:
    return when(inp.url_status == UrlStatus.ALIVE, 3, "apply URL alive")


def _company_domain(inp: ActionabilityInput) -> Optional[Adjustment]:
    domain = (inp.company_domain or "").strip().lower()
    return when(bool(domain) and "confidential" not in domain, 3, "has company domain")


def _c2c_blocked(inp: ActionabilityInput) -> Optional[Adjustment]:
    if inp.employment_type != EmploymentType.C2C:
        return None
    hits = _matching_signals(inp.negative_signals, C2C_BLOCKING_SIGNALS)
    return when(bool(hits), -30, f"C2C type but blocking signals: {', '.join(hits)}")


def _direct_hire_only(inp: ActionabilityInput) -> Optional[Adjustment]:
    hits = _matching_signals(inp.negative_signals, DIRECT_HIRE_SIGNALS)
    return when(bool(hits), -25, f"direct-hire-only signals: {', '.join(hits)}")


def _fulltime(inp: ActionabilityInput) -> Optional[Adjustment]:
    return when(
        inp.employment_type == EmploymentType.FULLTIME,
        -15,
        "employment type FULLTIME (usually not staffing)",
    )


def _confidential_company(inp: ActionabilityInput) -> Optional[Adjustment]:
    return when(is_confidential_company(inp.company), -10, "company is confidential or Unknown")


def _too_vague(inp: ActionabilityInput) -> Optional[Adjustment]:
    vague = (
        not _has_rate_info(inp)
        and not _has_client_info(inp)
        and not has_specific_location(inp.location)
    )
    return when(vague, -10, "no rate, no client, and no location (too vague to act on)")


def _url_dead(inp: ActionabilityInput) -> Optional[Adjustment]:
    return when(inp.url_status == UrlStatus.DEAD, -10, "apply URL is dead")


def _short_description(inp: ActionabilityInput) -> Optional[Adjustment]:
    return when(len(inp.description) < 100, -8, "description very short (<100 chars)")


def _unknown_type(inp: ActionabilityInput) -> Optional[Adjustment]:
    return when(inp.employment_type == EmploymentType.UNKNOWN, -5, "employment type UNKNOWN")


def _low_realness(inp: ActionabilityInput) -> Optional[Adjustment]:
    if inp.realness_score is None:
        return None
    return when(
        inp.realness_score < LOW_REALNESS,
        -5,
        f"realness score low ({inp.realness_score} < {LOW_REALNESS})",
    )


ACTIONABILITY_RULES: List[Rule] = [
    _vendor,
    _recruiter_email,
    _employment_type,
    _rate_range,
    _location,
    _confidence,
    _url_alive,
    _company_domain,
    _c2c_blocked,
    _direct_hire_only,
    _fulltime,
    _confidential_company,
    _too_vague,
    _url_dead,
    _short_description,
    _unknown_type,
    _low_realness,
]


def score_actionability(inp: ActionabilityInput) -> ScoreResult:
    """Compute the actionability score (0-100) with its audit trail.

    Must run after the realness scorer; pass its score as ``inp.realness_score``.
    """
    return apply_rules(ACTIONABILITY_RULES, inp)
