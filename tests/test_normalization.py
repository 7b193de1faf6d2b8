"""Unit tests for SignalNormalizer."""

from datetime import timedelta

import pytest

from market_signals.dedup import FingerprintResolver
from market_signals.domain.models import (
    CompPeriod,
    EmploymentType,
    SignalStatus,
    UrlStatus,
    VendorDirectoryEntry,
)
from market_signals.normalization import SignalNormalizer
from market_signals.persistence.database import close_database, get_session, init_database
from market_signals.persistence.repositories import (
    CanonicalRecordRepository,
    MarketSignalRepository,
)
from market_signals.utils.hashing import compute_signal_key
from market_signals.vendors import MATCH_DOMAIN, VendorDirectoryCache, VendorMatcher
from tests.helpers import DEFAULT_SEEN_AT, make_raw_signal

VENDORS = [
    VendorDirectoryEntry(id="v-acme", company_name="Acme Staffing", domain="careers.acme.com"),
]


@pytest.fixture
def session():
    """In-memory database session, committed at the end of the test."""
    init_database("sqlite:///:memory:")
    with get_session() as s:
        yield s
    close_database()


def make_normalizer(session, seen_at=DEFAULT_SEEN_AT, vendors=VENDORS):
    return SignalNormalizer(
        signal_repo=MarketSignalRepository(session),
        resolver=FingerprintResolver(CanonicalRecordRepository(session)),
        vendor_matcher=VendorMatcher(VendorDirectoryCache(lambda: list(vendors))),
        seen_at=seen_at,
    )


class TestSignalNormalizer:
    """Tests for SignalNormalizer.normalize."""

    def test_derives_full_signal(self, session):
        raw = make_raw_signal(recruiter_email="jane@acme.com")

        result = make_normalizer(session).normalize(raw)
        signal = result.signal

        assert result.is_new is True
        assert signal.signal_key == compute_signal_key("JSEARCH", "job-1")
        assert signal.employment_type == EmploymentType.C2C
        assert "C2C" in signal.matched_keywords
        assert signal.comp_period == CompPeriod.HOUR
        assert signal.hourly_rate_min == 70
        assert signal.hourly_rate_max == 90
        assert signal.rate_text is not None
        assert {"Python", "AWS", "Docker", "Kubernetes"} <= set(signal.skills)
        assert len(signal.fingerprint) == 32
        assert signal.canonical_id == result.resolution.canonical.id
        assert signal.vendor_id == "v-acme"
        assert signal.vendor_match_method == MATCH_DOMAIN
        assert signal.status == SignalStatus.ACTIVE
        assert signal.first_seen_at == DEFAULT_SEEN_AT
        assert signal.last_seen_at == DEFAULT_SEEN_AT
        assert 0 <= signal.realness_score <= 100
        assert signal.realness_reasons == result.realness.reasons
        assert signal.actionability_score == result.actionability.score

    def test_missing_company_raises(self, session):
        with pytest.raises(ValueError, match="missing a title or company"):
            make_normalizer(session).normalize(make_raw_signal(company=""))

    def test_provider_hourly_salary_fills_missing_rate(self, session):
        raw = make_raw_signal(
            description="C2C contract building Python services for a payments platform.",
            salary_min=65,
            salary_max=85,
            salary_is_hourly=True,
        )

        signal = make_normalizer(session).normalize(raw).signal

        assert signal.rate_text is None
        assert signal.hourly_rate_min == 65
        assert signal.hourly_rate_max == 85
        assert signal.rate_min == 65

    def test_annual_provider_salary_is_not_hourly(self, session):
        raw = make_raw_signal(
            description="Contract Python role with a payments platform team.",
            salary_min=120000,
            salary_max=150000,
            salary_is_hourly=False,
        )

        signal = make_normalizer(session).normalize(raw).signal

        assert signal.hourly_rate_min is None
        assert signal.rate_min == 120000

    def test_resighting_carries_over_stored_fields(self, session):
        normalizer = make_normalizer(session)
        first = normalizer.normalize(make_raw_signal()).signal
        stored = first.model_copy(
            update={
                "url_status": UrlStatus.ALIVE,
                "url_verified_at": DEFAULT_SEEN_AT + timedelta(hours=1),
                "status": SignalStatus.STALE,
            }
        )
        MarketSignalRepository(session).upsert(stored)
        later = DEFAULT_SEEN_AT + timedelta(days=2)

        result = make_normalizer(session, seen_at=later).normalize(make_raw_signal())

        assert result.is_new is False
        assert result.signal.first_seen_at == DEFAULT_SEEN_AT
        assert result.signal.last_seen_at == later
        assert result.signal.url_status == UrlStatus.ALIVE
        assert result.signal.url_verified_at == DEFAULT_SEEN_AT + timedelta(hours=1)
        assert result.signal.status == SignalStatus.ACTIVE
        assert result.resolution.attached is False

    def test_expired_signal_stays_expired(self, session):
        first = make_normalizer(session).normalize(make_raw_signal()).signal
        MarketSignalRepository(session).upsert(
            first.model_copy(update={"status": SignalStatus.EXPIRED})
        )

        result = make_normalizer(session).normalize(make_raw_signal())

        assert result.signal.status == SignalStatus.EXPIRED

    def test_cross_source_duplicate(self, session):
        normalizer = make_normalizer(session)
        normalizer.normalize(make_raw_signal(source="JSEARCH", external_id="a"))

        result = normalizer.normalize(make_raw_signal(source="ARBEITNOW", external_id="b"))

        assert result.is_cross_source_duplicate is True
        assert result.resolution.canonical.job_count == 2

    def test_no_vendor_match_keeps_domain(self, session):
        signal = make_normalizer(session, vendors=[]).normalize(make_raw_signal()).signal

        assert signal.vendor_id is None
        assert signal.company_domain == "careers.acme.com"
