"""Inputs for the realness and actionability scorers."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional

from market_signals.domain.models import EmploymentType, UrlStatus

UNKNOWN_COMPANY = "Unknown"


@dataclass
class RealnessInput:
    """Everything the realness scorer looks at.

    ``url_status`` is the previously stored probe result; the scorer never
    probes URLs itself.
    """

    title: str
    company: str
    description: str
    location: Optional[str]
    employment_type: EmploymentType
    negative_signals: List[str] = field(default_factory=list)
    recruiter_email: Optional[str] = None
    recruiter_name: Optional[str] = None
    recruiter_phone: Optional[str] = None
    hourly_rate_min: Optional[float] = None
    hourly_rate_max: Optional[float] = None
    rate_text: Optional[str] = None
    source_posted_at: Optional[datetime] = None
    posted_at: Optional[datetime] = None
    apply_url: Optional[str] = None
    url_status: Optional[UrlStatus] = None
    classification_confidence: float = 0.0

    @property
    def reference_date(self) -> Optional[datetime]:
        return self.source_posted_at or self.posted_at


@dataclass
class ActionabilityInput:
    """Everything the actionability scorer looks at, including realness."""

    title: str
    company: str
    description: str
    location: Optional[str]
    employment_type: EmploymentType
    negative_signals: List[str] = field(default_factory=list)
    recruiter_email: Optional[str] = None
    recruiter_name: Optional[str] = None
    hourly_rate_min: Optional[float] = None
    hourly_rate_max: Optional[float] = None
    rate_text: Optional[str] = None
    apply_url: Optional[str] = None
    url_status: Optional[UrlStatus] = None
    vendor_id: Optional[str] = None
    classification_confidence: float = 0.0
    company_domain: Optional[str] = None
    realness_score: Optional[int] = None


def is_confidential_company(company: Optional[str]) -> bool:
    """Company text reads "confidential" (any case) or is exactly "Unknown"."""
    name = (company or "").strip()
    return "confidential" in name.lower() or name == UNKNOWN_COMPANY


def has_specific_location(location: Optional[str]) -> bool:
    return location is not None and len(location.strip()) > 3
