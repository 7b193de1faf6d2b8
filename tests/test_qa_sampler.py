"""Unit tests for the QA truth sampler."""

import random
from datetime import timedelta
from unittest.mock import Mock, patch

import pytest

from market_signals.domain.models import EmploymentType, QaVerdict, SignalStatus
from market_signals.persistence.database import close_database, get_session, init_database
from market_signals.persistence.repositories import (
    CanonicalRecordRepository,
    MarketSignalRepository,
    QaSampleRepository,
)
from market_signals.qa import (
    QaChecks,
    QaRunResult,
    QaTruthSampler,
    check_bogus,
    check_freshness,
    check_harvest,
    check_type_correct,
)
from tests.helpers import DEFAULT_SEEN_AT, make_market_signal

NOW = DEFAULT_SEEN_AT + timedelta(days=1)


@pytest.fixture
def test_db():
    """Create an in-memory test database."""
    init_database("sqlite:///:memory:")
    yield
    close_database()


def make_checks(**overrides):
    fields = dict(
        url_alive=True,
        type_correct=True,
        is_duplicate=False,
        is_bogus=False,
        has_contact=True,
        freshness_ok=True,
        is_harvest=False,
    )
    fields.update(overrides)
    return QaChecks(**fields)


class TestVerdictPriority:
    """Tests for QaChecks.verdict."""

    def test_clean_signal_passes(self):
        assert make_checks().verdict() == QaVerdict.PASS

    def test_bogus_beats_everything(self):
        checks = make_checks(is_bogus=True, url_alive=False, freshness_ok=False, is_duplicate=True)

        assert checks.verdict() == QaVerdict.BOGUS

    def test_dead_url_fails(self):
        assert make_checks(url_alive=False, is_harvest=True).verdict() == QaVerdict.FAIL

    def test_unknown_url_does_not_fail(self):
        assert make_checks(url_alive=None).verdict() == QaVerdict.PASS

    def test_harvest_before_stale(self):
        assert make_checks(is_harvest=True, freshness_ok=False).verdict() == QaVerdict.HARVEST

    def test_stale_before_duplicate(self):
        assert make_checks(freshness_ok=False, is_duplicate=True).verdict() == QaVerdict.STALE

    def test_duplicate(self):
        assert make_checks(is_duplicate=True).verdict() == QaVerdict.DUPLICATE

    def test_type_and_contact_do_not_affect_verdict(self):
        assert make_checks(type_correct=False, has_contact=False).verdict() == QaVerdict.PASS


class TestIndividualChecks:
    """Tests for the check_* helpers."""

    def test_type_correct(self):
        assert check_type_correct(make_market_signal()) is True

    def test_unknown_type_is_incorrect(self):
        signal = make_market_signal(employment_type=EmploymentType.UNKNOWN)

        assert check_type_correct(signal) is False

    def test_low_confidence_is_incorrect(self):
        assert check_type_correct(make_market_signal(employment_confidence=0.5)) is False

    def test_contradicting_negative_label_is_incorrect(self):
        signal = make_market_signal(negative_signals=["NO C2C"])

        assert check_type_correct(signal) is False

    def test_bogus_generic_company(self):
        assert check_bogus(make_market_signal(company="Confidential")) is True

    def test_bogus_short_description(self):
        assert check_bogus(make_market_signal(description="Call now")) is True

    def test_bogus_spam_title(self):
        assert check_bogus(make_market_signal(title="URGENT HIRING Python Dev")) is True

    def test_real_posting_is_not_bogus(self):
        assert check_bogus(make_market_signal()) is False

    def test_fresh_by_posting_date(self):
        signal = make_market_signal(
            source_posted_at=NOW - timedelta(days=2),
            last_seen_at=NOW - timedelta(days=10),
        )

        assert check_freshness(signal, NOW) is True

    def test_fresh_by_recent_sighting(self):
        signal = make_market_signal(
            source_posted_at=NOW - timedelta(days=30),
            last_seen_at=NOW - timedelta(days=1),
        )

        assert check_freshness(signal, NOW) is True

    def test_stale_when_old_and_unseen(self):
        signal = make_market_signal(
            first_seen_at=NOW - timedelta(days=30),
            last_seen_at=NOW - timedelta(days=5),
        )

        assert check_freshness(signal, NOW) is False

    def test_harvest(self):
        signal = make_market_signal(
            title="Dev",
            company="Unknown",
            location=None,
            description="Send resume " * 5,
        )

        assert check_harvest(signal) is True

    def test_harvest_needs_missing_location(self):
        signal = make_market_signal(title="Dev", company="Unknown", description="Send resume")

        assert check_harvest(signal) is False

    def test_suspicious_apply_url_counts_as_harvest(self):
        signal = make_market_signal(
            title="Developer role",
            location=None,
            apply_url="mailto:jobs@example.com",
            description="Short text",
        )

        assert check_harvest(signal) is True


class TestQaTruthSampler:
    """Tests for QaTruthSampler.run."""

    def test_empty_database(self, test_db):
        result = QaTruthSampler(Mock(), sample_size=5).run(NOW)

        assert result.sampled == 0
        assert result.summary() == "nothing sampled"

    def test_samples_active_signals_and_persists(self, test_db):
        with get_session() as session:
            repo = MarketSignalRepository(session)
            for i in range(5):
                repo.upsert(make_market_signal(external_id=f"job-{i}"))
            repo.upsert(make_market_signal(external_id="stale", status=SignalStatus.STALE))
        probe = Mock()
        probe.is_reachable.return_value = True

        result = QaTruthSampler(probe, sample_size=3, rng=random.Random(42)).run(NOW)

        assert result.sampled == 3
        assert result.verdicts == {"PASS": 3}
        assert probe.is_reachable.call_count == 3
        stale_key = make_market_signal(external_id="stale").signal_key
        assert stale_key not in {s.signal_key for s in result.samples}

        with get_session() as session:
            stored = QaSampleRepository(session).list_recent()
        assert len(stored) == 3
        assert all(s.sampled_at == NOW for s in stored)

    def test_seeded_rng_is_reproducible(self, test_db):
        with get_session() as session:
            repo = MarketSignalRepository(session)
            for i in range(10):
                repo.upsert(make_market_signal(external_id=f"job-{i}"))
        probe = Mock()
        probe.is_reachable.return_value = True

        first = QaTruthSampler(probe, sample_size=4, rng=random.Random(7)).run(NOW)
        second = QaTruthSampler(probe, sample_size=4, rng=random.Random(7)).run(NOW)

        assert [s.signal_key for s in first.samples] == [s.signal_key for s in second.samples]

    def test_dead_url_and_duplicate_verdicts(self, test_db):
        with get_session() as session:
            canonical_repo = CanonicalRecordRepository(session)
            record, _ = canonical_repo.create_or_get("fp-shared", "T", "C", None, DEFAULT_SEEN_AT)
            canonical_repo.attach_member(record.id, "JSEARCH", "dup", DEFAULT_SEEN_AT)
            canonical_repo.attach_member(record.id, "ARBEITNOW", "dup", DEFAULT_SEEN_AT)
            repo = MarketSignalRepository(session)
            repo.upsert(make_market_signal(external_id="dup", canonical_id=record.id))
            repo.upsert(make_market_signal(external_id="gone"))
        probe = Mock()
        probe.is_reachable.side_effect = lambda url: "gone" not in url

        result = QaTruthSampler(probe, sample_size=10, rng=random.Random(1)).run(NOW)

        assert result.verdicts == {"DUPLICATE": 1, "FAIL": 1}
        by_key = {s.signal_key: s for s in result.samples}
        dup = by_key[make_market_signal(external_id="dup").signal_key]
        assert dup.is_duplicate is True
        assert dup.url_alive is True

    def test_signal_deleted_after_draw_is_skipped(self, test_db):
        """Test that a key whose row vanished between listing and loading is skipped."""
        with get_session() as session:
            repo = MarketSignalRepository(session)
            for i in range(3):
                repo.upsert(make_market_signal(external_id=f"job-{i}"))
        missing_key = make_market_signal(external_id="job-1").signal_key
        original_get = MarketSignalRepository.get

        def get_or_vanish(self, key):
            return None if key == missing_key else original_get(self, key)

        url_checker = Mock()
        url_checker.is_reachable.return_value = True

        with patch.object(MarketSignalRepository, "get", get_or_vanish):
            result = QaTruthSampler(url_checker, sample_size=3, rng=random.Random(3)).run(NOW)

        assert result.sampled == 2
        assert missing_key not in {s.signal_key for s in result.samples}
        with get_session() as session:
            assert len(QaSampleRepository(session).list_recent()) == 2


class TestQaRunResult:
    """Tests for QaRunResult.summary."""

    def test_summary_orders_verdicts(self):
        result = QaRunResult(sampled=4, verdicts={"STALE": 1, "PASS": 3})

        assert result.summary() == "3 PASS, 1 STALE"
