"""Database schema definition and ORM models.

ORM models mirror the domain models in market_signals.domain and provide
to_domain()/from_domain() conversions. Timestamps are stored as ISO-8601 UTC
strings with a 'Z' suffix so that lexical order equals chronological order;
list fields are stored as JSON.
"""

import logging
from datetime import date, datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    inspect,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base

from market_signals.domain.models import (
    CanonicalRecord,
    CompPeriod,
    EmploymentType,
    LocationType,
    MarketSignal,
    QaSample,
    QaVerdict,
    SignalStatus,
    SpendLedgerEntry,
    UrlStatus,
    VendorDirectoryEntry,
)

logger = logging.getLogger(__name__)

Base = declarative_base()


class MarketSignalModel(Base):
    """ORM model for the market_signals table."""

    __tablename__ = "market_signals"

    signal_key = Column(String(64), primary_key=True, nullable=False)
    source = Column(String(50), nullable=False)
    external_id = Column(String(255), nullable=False)

    title = Column(Text, nullable=False)
    company = Column(String(255), nullable=False)
    description = Column(Text, nullable=False, default="")
    location = Column(String(255), nullable=True)
    location_type = Column(String(20), nullable=False, default=LocationType.UNKNOWN.value)
    apply_url = Column(Text, nullable=True)
    source_url = Column(Text, nullable=True)
    posted_at = Column(String(50), nullable=True)
    source_posted_at = Column(String(50), nullable=True)
    expires_at = Column(String(50), nullable=True)
    salary_min = Column(Float, nullable=True)
    salary_max = Column(Float, nullable=True)
    recruiter_name = Column(String(255), nullable=True)
    recruiter_email = Column(String(255), nullable=True)
    recruiter_phone = Column(String(50), nullable=True)

    employment_type = Column(String(20), nullable=False)
    employment_confidence = Column(Float, nullable=False, default=0.0)
    matched_keywords = Column(JSON, nullable=False, default=list)
    negative_signals = Column(JSON, nullable=False, default=list)

    rate_text = Column(String(255), nullable=True)
    rate_min = Column(Float, nullable=True)
    rate_max = Column(Float, nullable=True)
    comp_period = Column(String(20), nullable=False, default=CompPeriod.UNKNOWN.value)
    hourly_rate_min = Column(Float, nullable=True)
    hourly_rate_max = Column(Float, nullable=True)

    skills = Column(JSON, nullable=False, default=list)

    fingerprint = Column(String(64), nullable=False)
    canonical_id = Column(Integer, ForeignKey("canonical_records.id"), nullable=True)

    vendor_id = Column(String(64), nullable=True)
    vendor_match_method = Column(String(20), nullable=True)
    company_domain = Column(String(255), nullable=True)

    realness_score = Column(Integer, nullable=False, default=0)
    realness_reasons = Column(JSON, nullable=False, default=list)
    actionability_score = Column(Integer, nullable=False, default=0)
    actionability_reasons = Column(JSON, nullable=False, default=list)

    status = Column(String(20), nullable=False, default=SignalStatus.ACTIVE.value)
    url_status = Column(String(20), nullable=True)
    url_verified_at = Column(String(50), nullable=True)
    first_seen_at = Column(String(50), nullable=False)
    last_seen_at = Column(String(50), nullable=False)

    raw_payload = Column(JSON, nullable=False, default=dict)

    __table_args__ = (
        UniqueConstraint("source", "external_id", name="uq_market_signals_source_external_id"),
        Index("idx_market_signals_status_last_seen", "status", "last_seen_at"),
        Index("idx_market_signals_fingerprint", "fingerprint"),
        Index("idx_market_signals_actionability", "actionability_score"),
        Index("idx_market_signals_realness", "realness_score"),
    )

    def to_domain(self) -> MarketSignal:
        return MarketSignal(
            signal_key=self.signal_key,
            source=self.source,
            external_id=self.external_id,
            title=self.title,
            company=self.company,
            description=self.description or "",
            location=self.location,
            location_type=LocationType(self.location_type),
            apply_url=self.apply_url,
            source_url=self.source_url,
            posted_at=_parse_datetime(self.posted_at),
            source_posted_at=_parse_datetime(self.source_posted_at),
            expires_at=_parse_datetime(self.expires_at),
            salary_min=self.salary_min,
            salary_max=self.salary_max,
            recruiter_name=self.recruiter_name,
            recruiter_email=self.recruiter_email,
            recruiter_phone=self.recruiter_phone,
            employment_type=EmploymentType(self.employment_type),
            employment_confidence=self.employment_confidence,
            matched_keywords=list(self.matched_keywords or []),
            negative_signals=list(self.negative_signals or []),
            rate_text=self.rate_text,
            rate_min=self.rate_min,
            rate_max=self.rate_max,
            comp_period=CompPeriod(self.comp_period),
            hourly_rate_min=self.hourly_rate_min,
            hourly_rate_max=self.hourly_rate_max,
            skills=list(self.skills or []),
            fingerprint=self.fingerprint,
            canonical_id=self.canonical_id,
            vendor_id=self.vendor_id,
            vendor_match_method=self.vendor_match_method,
            company_domain=self.company_domain,
            realness_score=self.realness_score,
            realness_reasons=list(self.realness_reasons or []),
            actionability_score=self.actionability_score,
            actionability_reasons=list(self.actionability_reasons or []),
            status=SignalStatus(self.status),
            url_status=UrlStatus(self.url_status) if self.url_status else None,
            url_verified_at=_parse_datetime(self.url_verified_at),
            first_seen_at=_parse_datetime(self.first_seen_at),
            last_seen_at=_parse_datetime(self.last_seen_at),
            raw_payload=dict(self.raw_payload or {}),
        )

    @classmethod
    def from_domain(cls, signal: MarketSignal) -> "MarketSignalModel":
        model = cls(signal_key=signal.signal_key)
        model.apply_domain(signal)
        return model

    def apply_domain(self, signal: MarketSignal) -> None:
        """Overwrite every column from a domain signal (never a partial merge)."""
        self.source = signal.source
        self.external_id = signal.external_id
        self.title = signal.title
        self.company = signal.company
        self.description = signal.description
        self.location = signal.location
        self.location_type = _enum_value(signal.location_type)
        self.apply_url = signal.apply_url
        self.source_url = signal.source_url
        self.posted_at = _format_datetime(signal.posted_at)
        self.source_posted_at = _format_datetime(signal.source_posted_at)
        self.expires_at = _format_datetime(signal.expires_at)
        self.salary_min = signal.salary_min
        self.salary_max = signal.salary_max
        self.recruiter_name = signal.recruiter_name
        self.recruiter_email = signal.recruiter_email
        self.recruiter_phone = signal.recruiter_phone
        self.employment_type = _enum_value(signal.employment_type)
        self.employment_confidence = signal.employment_confidence
        self.matched_keywords = list(signal.matched_keywords)
        self.negative_signals = list(signal.negative_signals)
        self.rate_text = signal.rate_text
        self.rate_min = signal.rate_min
        self.rate_max = signal.rate_max
        self.comp_period = _enum_value(signal.comp_period)
        self.hourly_rate_min = signal.hourly_rate_min
        self.hourly_rate_max = signal.hourly_rate_max
        self.skills = list(signal.skills)
        self.fingerprint = signal.fingerprint
        self.canonical_id = signal.canonical_id
        self.vendor_id = signal.vendor_id
        self.vendor_match_method = signal.vendor_match_method
        self.company_domain = signal.company_domain
        self.realness_score = signal.realness_score
        self.realness_reasons = list(signal.realness_reasons)
        self.actionability_score = signal.actionability_score
        self.actionability_reasons = list(signal.actionability_reasons)
        self.status = _enum_value(signal.status)
        self.url_status = _enum_value(signal.url_status) if signal.url_status else None
        self.url_verified_at = _format_datetime(signal.url_verified_at)
        self.first_seen_at = _format_datetime(signal.first_seen_at)
        self.last_seen_at = _format_datetime(signal.last_seen_at)
        self.raw_payload = dict(signal.raw_payload)


class CanonicalRecordModel(Base):
    """ORM model for the canonical_records table."""

    __tablename__ = "canonical_records"

    id = Column(Integer, primary_key=True, autoincrement=True)
    fingerprint = Column(String(64), nullable=False, unique=True)
    best_title = Column(Text, nullable=False)
    best_company = Column(String(255), nullable=False)
    best_location = Column(String(255), nullable=True)
    first_seen_at = Column(String(50), nullable=False)
    last_seen_at = Column(String(50), nullable=False)
    job_count = Column(Integer, nullable=False, default=1)

    def to_domain(self) -> CanonicalRecord:
        return CanonicalRecord(
            id=self.id,
            fingerprint=self.fingerprint,
            best_title=self.best_title,
            best_company=self.best_company,
            best_location=self.best_location,
            first_seen_at=_parse_datetime(self.first_seen_at),
            last_seen_at=_parse_datetime(self.last_seen_at),
            job_count=self.job_count,
        )


class CanonicalMemberModel(Base):
    """Which (source, external_id) pairs have ever attached to a canonical record."""

    __tablename__ = "canonical_members"

    canonical_id = Column(Integer, ForeignKey("canonical_records.id"), primary_key=True)
    source = Column(String(50), primary_key=True)
    external_id = Column(String(255), primary_key=True)
    attached_at = Column(String(50), nullable=False)


class VendorModel(Base):
    """ORM model for the vendors table (the vendor directory)."""

    __tablename__ = "vendors"

    id = Column(String(64), primary_key=True)
    company_name = Column(String(255), nullable=False)
    domain = Column(String(255), nullable=True)
    contact_email = Column(String(255), nullable=True)

    def to_domain(self) -> VendorDirectoryEntry:
        return VendorDirectoryEntry(
            id=self.id,
            company_name=self.company_name,
            domain=self.domain,
            contact_email=self.contact_email,
        )

    @classmethod
    def from_domain(cls, vendor: VendorDirectoryEntry) -> "VendorModel":
        return cls(
            id=vendor.id,
            company_name=vendor.company_name,
            domain=vendor.domain,
            contact_email=vendor.contact_email,
        )


class SpendLedgerModel(Base):
    """ORM model for the spend_ledger table. One row per provider per UTC day."""

    __tablename__ = "spend_ledger"

    id = Column(Integer, primary_key=True, autoincrement=True)
    provider = Column(String(50), nullable=False)
    day = Column(String(10), nullable=False)  # YYYY-MM-DD
    requests_made = Column(Integer, nullable=False, default=0)
    new_records_ingested = Column(Integer, nullable=False, default=0)
    max_requests = Column(Integer, nullable=False)
    max_new_records = Column(Integer, nullable=False)
    alert_fired = Column(Boolean, nullable=False, default=False)
    alert_message = Column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("provider", "day", name="uq_spend_ledger_provider_day"),
    )

    def to_domain(self) -> SpendLedgerEntry:
        return SpendLedgerEntry(
            provider=self.provider,
            day=date.fromisoformat(self.day),
            requests_made=self.requests_made,
            new_records_ingested=self.new_records_ingested,
            max_requests=self.max_requests,
            max_new_records=self.max_new_records,
            alert_fired=bool(self.alert_fired),
            alert_message=self.alert_message,
        )


class QaSampleModel(Base):
    """ORM model for the append-only qa_samples table."""

    __tablename__ = "qa_samples"

    id = Column(Integer, primary_key=True, autoincrement=True)
    signal_key = Column(String(64), ForeignKey("market_signals.signal_key"), nullable=False)
    sampled_at = Column(String(50), nullable=False)
    url_alive = Column(Boolean, nullable=True)
    type_correct = Column(Boolean, nullable=False)
    is_duplicate = Column(Boolean, nullable=False)
    is_bogus = Column(Boolean, nullable=False)
    has_contact = Column(Boolean, nullable=False)
    freshness_ok = Column(Boolean, nullable=False)
    verdict = Column(String(20), nullable=False)
    realness_score = Column(Integer, nullable=False)
    actionability_score = Column(Integer, nullable=False)
    notes = Column(Text, nullable=True)

    __table_args__ = (
        Index("idx_qa_samples_sampled_at", "sampled_at"),
        Index("idx_qa_samples_verdict", "verdict"),
    )

    def to_domain(self) -> QaSample:
        return QaSample(
            id=self.id,
            signal_key=self.signal_key,
            sampled_at=_parse_datetime(self.sampled_at),
            url_alive=self.url_alive,
            type_correct=self.type_correct,
            is_duplicate=self.is_duplicate,
            is_bogus=self.is_bogus,
            has_contact=self.has_contact,
            freshness_ok=self.freshness_ok,
            verdict=QaVerdict(self.verdict),
            realness_score=self.realness_score,
            actionability_score=self.actionability_score,
            notes=self.notes,
        )

    @classmethod
    def from_domain(cls, sample: QaSample) -> "QaSampleModel":
        return cls(
            signal_key=sample.signal_key,
            sampled_at=_format_datetime(sample.sampled_at),
            url_alive=sample.url_alive,
            type_correct=sample.type_correct,
            is_duplicate=sample.is_duplicate,
            is_bogus=sample.is_bogus,
            has_contact=sample.has_contact,
            freshness_ok=sample.freshness_ok,
            verdict=_enum_value(sample.verdict),
            realness_score=sample.realness_score,
            actionability_score=sample.actionability_score,
            notes=sample.notes,
        )


def _enum_value(value) -> Optional[str]:
    if value is None:
        return None
    return value.value if hasattr(value, "value") else str(value)


def _format_datetime(dt: Optional[datetime]) -> Optional[str]:
    """Format a datetime as an ISO-8601 UTC string for storage."""
    if dt is None:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    else:
        dt = dt.astimezone(timezone.utc)

    return dt.strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _parse_datetime(dt_str: Optional[str]) -> Optional[datetime]:
    """Parse a stored ISO-8601 string back to an aware UTC datetime."""
    if not dt_str:
        return None

    dt_str = dt_str.rstrip("Z")
    try:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S.%f")
    except ValueError:
        dt = datetime.strptime(dt_str, "%Y-%m-%dT%H:%M:%S")

    return dt.replace(tzinfo=timezone.utc)


def create_schema(engine: Engine) -> None:
    """Create all tables and indexes if they don't exist (idempotent)."""
    logger.info("Creating database schema if not exists")

    try:
        Base.metadata.create_all(engine, checkfirst=True)
        tables = inspect(engine).get_table_names()
        logger.info(f"Database schema ready. Tables: {', '.join(sorted(tables))}")
    except Exception as e:
        logger.error(f"Failed to create database schema: {e}", exc_info=True)
        raise
