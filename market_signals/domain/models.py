"""Core domain models for market signals, canonical records, vendors, spend and QA.

- RawSignal: what a provider returns, never persisted as-is
- MarketSignal: the persisted, scored unit (one per source + external_id)
- CanonicalRecord: the cross-source entity a fingerprint resolves to
- VendorDirectoryEntry: a known staffing vendor (read-only here)
- SpendLedgerEntry: per provider per day request/ingestion budget usage
- QaSample: immutable audit row written by the QA truth sampler
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from market_signals.utils.timestamps import ensure_utc


class EmploymentType(str, Enum):
    """Employment arrangement inferred from posting text."""

    C2C = "C2C"
    W2 = "W2"
    W2_1099 = "W2_1099"
    FULLTIME = "FULLTIME"
    PARTTIME = "PARTTIME"
    CONTRACT = "CONTRACT"
    UNKNOWN = "UNKNOWN"


class CompPeriod(str, Enum):
    """Period a compensation figure is quoted in."""

    HOUR = "HOUR"
    DAY = "DAY"
    WEEK = "WEEK"
    MONTH = "MONTH"
    YEAR = "YEAR"
    UNKNOWN = "UNKNOWN"


class SignalStatus(str, Enum):
    """Lifecycle status of a market signal."""

    ACTIVE = "ACTIVE"
    STALE = "STALE"
    EXPIRED = "EXPIRED"


class UrlStatus(str, Enum):
    """Result of probing an apply URL."""

    ALIVE = "ALIVE"
    DEAD = "DEAD"
    REDIRECT = "REDIRECT"
    UNKNOWN = "UNKNOWN"


class LocationType(str, Enum):
    REMOTE = "REMOTE"
    HYBRID = "HYBRID"
    ONSITE = "ONSITE"
    UNKNOWN = "UNKNOWN"


class QaVerdict(str, Enum):
    """Outcome of a QA sample, in priority order."""

    BOGUS = "BOGUS"
    FAIL = "FAIL"
    HARVEST = "HARVEST"
    STALE = "STALE"
    DUPLICATE = "DUPLICATE"
    PASS = "PASS"


class _UtcModel(BaseModel):
    """Base model that normalizes every datetime field to aware UTC."""

    @field_validator("*", mode="after")
    @classmethod
    def _datetimes_to_utc(cls, v: Any) -> Any:
        if isinstance(v, datetime):
            return ensure_utc(v)
        return v


class RawSignal(_UtcModel):
    """Posting as returned by a provider, before classification and scoring.

    Title and company are allowed to be blank here; the orchestrator rejects
    such records and counts them as skipped rather than failing validation in
    the provider.
    """

    source: str = Field(..., min_length=1, description="Provider name, e.g. JSEARCH")
    external_id: str = Field(..., min_length=1, description="Posting id at the provider")
    title: str = Field("", description="Posting title")
    company: str = Field("", description="Hiring company or vendor name")
    description: str = Field("", description="Plain-text description")
    location: Optional[str] = None
    location_type: LocationType = LocationType.UNKNOWN
    apply_url: Optional[str] = None
    source_url: Optional[str] = None
    posted_at: Optional[datetime] = None
    source_posted_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    salary_is_hourly: bool = Field(False, description="Whether salary_min/max are hourly figures")
    recruiter_name: Optional[str] = None
    recruiter_email: Optional[str] = None
    recruiter_phone: Optional[str] = None
    raw_payload: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("source")
    @classmethod
    def upper_source(cls, v: str) -> str:
        return v.strip().upper()

    @field_validator("external_id")
    @classmethod
    def strip_external_id(cls, v: str) -> str:
        stripped = v.strip()
        if not stripped:
            raise ValueError("external_id cannot be empty or whitespace-only")
        return stripped

    @field_validator("title", "company", "description", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> str:
        """Treat None as empty text and strip surrounding whitespace."""
        if v is None:
            return ""
        return str(v).strip()

    @field_validator(
        "location", "apply_url", "source_url", "recruiter_name",
        "recruiter_email", "recruiter_phone", mode="before",
    )
    @classmethod
    def blank_to_none(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        stripped = str(v).strip()
        return stripped or None

    @property
    def has_required_fields(self) -> bool:
        """Whether the record carries both a title and a company."""
        return bool(self.title) and bool(self.company)


class MarketSignal(_UtcModel):
    """Persisted, classified and scored posting. One per (source, external_id)."""

    signal_key: str = Field(..., description="Hash of source + external_id")
    source: str
    external_id: str
    title: str
    company: str
    description: str = ""
    location: Optional[str] = None
    location_type: LocationType = LocationType.UNKNOWN
    apply_url: Optional[str] = None
    source_url: Optional[str] = None
    posted_at: Optional[datetime] = None
    source_posted_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    salary_min: Optional[float] = None
    salary_max: Optional[float] = None
    recruiter_name: Optional[str] = None
    recruiter_email: Optional[str] = None
    recruiter_phone: Optional[str] = None

    # Classification
    employment_type: EmploymentType = EmploymentType.UNKNOWN
    employment_confidence: float = 0.0
    matched_keywords: List[str] = Field(default_factory=list)
    negative_signals: List[str] = Field(default_factory=list)

    # Compensation
    rate_text: Optional[str] = None
    rate_min: Optional[float] = None
    rate_max: Optional[float] = None
    comp_period: CompPeriod = CompPeriod.UNKNOWN
    hourly_rate_min: Optional[float] = None
    hourly_rate_max: Optional[float] = None

    skills: List[str] = Field(default_factory=list)

    # Dedup linkage
    fingerprint: str
    canonical_id: Optional[int] = None

    # Vendor match
    vendor_id: Optional[str] = None
    vendor_match_method: Optional[str] = None
    company_domain: Optional[str] = None

    # Scores
    realness_score: int = 0
    realness_reasons: List[str] = Field(default_factory=list)
    actionability_score: int = 0
    actionability_reasons: List[str] = Field(default_factory=list)

    # Lifecycle
    status: SignalStatus = SignalStatus.ACTIVE
    url_status: Optional[UrlStatus] = None
    url_verified_at: Optional[datetime] = None
    first_seen_at: datetime
    last_seen_at: datetime

    raw_payload: Dict[str, Any] = Field(default_factory=dict)

    @property
    def best_timestamp(self) -> Optional[datetime]:
        """Most authoritative posting date available."""
        return self.source_posted_at or self.posted_at


class CanonicalRecord(_UtcModel):
    """Cross-source entity shared by every signal with the same fingerprint."""

    id: Optional[int] = None
    fingerprint: str
    best_title: str
    best_company: str
    best_location: Optional[str] = None
    first_seen_at: datetime
    last_seen_at: datetime
    job_count: int = Field(1, ge=0, description="Distinct (source, external_id) pairs attached")


class VendorDirectoryEntry(BaseModel):
    """Known staffing vendor."""

    id: str
    company_name: str
    domain: Optional[str] = None
    contact_email: Optional[str] = None

    @field_validator("domain", "contact_email", mode="before")
    @classmethod
    def normalize_lower(cls, v: Any) -> Optional[str]:
        if v is None:
            return None
        stripped = str(v).strip().lower()
        return stripped or None


class SpendLedgerEntry(BaseModel):
    """Per (provider, day) usage counters."""

    provider: str
    day: date
    requests_made: int = 0
    new_records_ingested: int = 0
    max_requests: int
    max_new_records: int
    alert_fired: bool = False
    alert_message: Optional[str] = None


class QaSample(_UtcModel):
    """Immutable audit row for one sampled signal."""

    id: Optional[int] = None
    signal_key: str
    sampled_at: datetime
    url_alive: Optional[bool] = None
    type_correct: bool
    is_duplicate: bool
    is_bogus: bool
    has_contact: bool
    freshness_ok: bool
    verdict: QaVerdict
    realness_score: int
    actionability_score: int
    notes: Optional[str] = None
