"""Unit tests for persistence layer."""

from datetime import date, datetime, timedelta, timezone

import pytest

from market_signals.domain.models import (
    EmploymentType,
    QaSample,
    QaVerdict,
    SignalStatus,
    UrlStatus,
    VendorDirectoryEntry,
)
from market_signals.persistence import (
    CanonicalRecordRepository,
    DatabaseConnectionError,
    MarketSignalRepository,
    QaSampleRepository,
    RecordNotFoundError,
    SignalQuery,
    SpendLedgerRepository,
    VendorRepository,
    close_database,
    get_session,
    init_database,
)
from market_signals.persistence.schema import MarketSignalModel
from tests.helpers import DEFAULT_SEEN_AT, make_market_signal


class TestDatabaseInitialization:
    """Tests for database initialization."""

    def test_init_database_success(self, tmp_path):
        """Test successful database initialization."""
        db_file = tmp_path / "test.db"

        init_database(f"sqlite:///{db_file}")

        assert db_file.exists()
        with get_session() as session:
            assert session is not None

        close_database()

    def test_init_database_creates_parent_directories(self, tmp_path):
        """Test initialization creates parent directories if missing."""
        db_file = tmp_path / "subdir" / "nested" / "test.db"

        init_database(f"sqlite:///{db_file}")

        assert db_file.parent.exists()
        assert db_file.exists()

        close_database()

    def test_init_database_invalid_url_raises_error(self):
        """Test initialization with invalid URL raises DatabaseConnectionError."""
        with pytest.raises(DatabaseConnectionError):
            init_database("")

        with pytest.raises(DatabaseConnectionError):
            init_database(None)

    def test_schema_creation_is_idempotent(self, tmp_path):
        """Test re-initializing an existing file keeps its rows."""
        db_url = f"sqlite:///{tmp_path / 'test.db'}"
        signal = make_market_signal()

        init_database(db_url)
        with get_session() as session:
            MarketSignalRepository(session).upsert(signal)
        close_database()

        init_database(db_url)
        with get_session() as session:
            assert MarketSignalRepository(session).get(signal.signal_key) is not None
        close_database()


class TestSessionManagement:
    """Tests for session management."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        """Setup test database before each test."""
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def test_session_rolls_back_on_exception(self):
        """Test session rolls back transaction on exception."""
        signal = make_market_signal()

        with pytest.raises(ValueError):
            with get_session() as session:
                session.add(MarketSignalModel.from_domain(signal))
                session.flush()
                raise ValueError("Test exception")

        with get_session() as session:
            assert session.get(MarketSignalModel, signal.signal_key) is None

    def test_get_session_without_init_raises_error(self):
        close_database()

        with pytest.raises(DatabaseConnectionError):
            with get_session():
                pass


class TestMarketSignalRepository:
    """Tests for MarketSignalRepository."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        """Setup test database before each test."""
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def _insert(self, *signals):
        with get_session() as session:
            repo = MarketSignalRepository(session)
            for signal in signals:
                repo.upsert(signal)

    def test_upsert_inserts_then_updates(self):
        signal = make_market_signal(matched_keywords=["C2C"], skills=["Python", "AWS"])

        with get_session() as session:
            _, created = MarketSignalRepository(session).upsert(signal)
        assert created is True

        changed = signal.model_copy(update={"title": "Lead Python Developer", "realness_score": 80})
        with get_session() as session:
            stored, created = MarketSignalRepository(session).upsert(changed)
        assert created is False
        assert stored.title == "Lead Python Developer"

        with get_session() as session:
            found = MarketSignalRepository(session).get(signal.signal_key)
        assert found.realness_score == 80
        assert found.skills == ["Python", "AWS"]
        assert found.matched_keywords == ["C2C"]
        assert found.first_seen_at == DEFAULT_SEEN_AT

    def test_get_by_source_id(self):
        self._insert(make_market_signal("ARBEITNOW", "abc"))

        with get_session() as session:
            repo = MarketSignalRepository(session)
            found = repo.get_by_source_id("ARBEITNOW", "abc")
            missing = repo.get_by_source_id("JSEARCH", "abc")

        assert found is not None
        assert found.external_id == "abc"
        assert missing is None

    def test_search_defaults_to_active_sorted_by_actionability(self):
        self._insert(
            make_market_signal(external_id="low", actionability_score=30),
            make_market_signal(external_id="high", actionability_score=90),
            make_market_signal(external_id="stale", actionability_score=99,
                               status=SignalStatus.STALE),
        )

        with get_session() as session:
            results = MarketSignalRepository(session).search()

        assert [s.external_id for s in results] == ["high", "low"]

    def test_search_filters(self):
        self._insert(
            make_market_signal(external_id="c2c", realness_score=80),
            make_market_signal(external_id="w2", employment_type=EmploymentType.W2,
                               realness_score=90),
            make_market_signal(external_id="weak", realness_score=20),
        )

        with get_session() as session:
            results = MarketSignalRepository(session).search(
                SignalQuery(employment_types=[EmploymentType.C2C], min_realness=50)
            )

        assert [s.external_id for s in results] == ["c2c"]

    def test_search_rejects_unknown_sort(self):
        with get_session() as session:
            with pytest.raises(ValueError, match="Unsupported sort_by"):
                MarketSignalRepository(session).search(SignalQuery(sort_by="salary"))

    def test_mark_stale_skips_signals_with_expiry(self):
        old = DEFAULT_SEEN_AT - timedelta(days=20)
        self._insert(
            make_market_signal(external_id="old", last_seen_at=old),
            make_market_signal(external_id="old-with-expiry", last_seen_at=old,
                               expires_at=DEFAULT_SEEN_AT + timedelta(days=30)),
            make_market_signal(external_id="fresh"),
        )

        with get_session() as session:
            count = MarketSignalRepository(session).mark_stale(DEFAULT_SEEN_AT - timedelta(days=14))

        assert count == 1
        with get_session() as session:
            repo = MarketSignalRepository(session)
            assert repo.list_keys_by_status(SignalStatus.STALE) == [
                make_market_signal(external_id="old").signal_key
            ]
            assert repo.count_by_status() == {"ACTIVE": 2, "STALE": 1}

    def test_mark_expired(self):
        self._insert(
            make_market_signal(external_id="past", expires_at=DEFAULT_SEEN_AT - timedelta(hours=1)),
            make_market_signal(external_id="future", expires_at=DEFAULT_SEEN_AT + timedelta(days=1)),
        )

        with get_session() as session:
            count = MarketSignalRepository(session).mark_expired(DEFAULT_SEEN_AT)

        assert count == 1
        with get_session() as session:
            past = MarketSignalRepository(session).get_by_source_id("JSEARCH", "past")
        assert past.status == SignalStatus.EXPIRED

    def test_url_check_candidates_order_never_verified_first(self):
        self._insert(
            make_market_signal(external_id="old-check",
                               url_verified_at=DEFAULT_SEEN_AT - timedelta(days=3)),
            make_market_signal(external_id="never"),
            make_market_signal(external_id="recent-check",
                               url_verified_at=DEFAULT_SEEN_AT - timedelta(hours=1)),
            make_market_signal(external_id="no-url", apply_url=None),
        )

        with get_session() as session:
            candidates = MarketSignalRepository(session).list_url_check_candidates(
                DEFAULT_SEEN_AT - timedelta(hours=12), limit=10
            )

        assert [s.external_id for s in candidates] == ["never", "old-check"]

    def test_update_url_status(self):
        signal = make_market_signal()
        self._insert(signal)
        checked_at = DEFAULT_SEEN_AT + timedelta(hours=2)

        with get_session() as session:
            MarketSignalRepository(session).update_url_status(
                signal.signal_key, UrlStatus.DEAD, checked_at, status=SignalStatus.EXPIRED
            )

        with get_session() as session:
            found = MarketSignalRepository(session).get(signal.signal_key)
        assert found.url_status == UrlStatus.DEAD
        assert found.url_verified_at == checked_at
        assert found.status == SignalStatus.EXPIRED

    def test_update_url_status_raises_error_if_not_found(self):
        with get_session() as session:
            with pytest.raises(RecordNotFoundError):
                MarketSignalRepository(session).update_url_status(
                    "missing", UrlStatus.ALIVE, DEFAULT_SEEN_AT
                )


class TestCanonicalRecordRepository:
    """Tests for CanonicalRecordRepository."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def test_create_or_get_returns_existing(self):
        with get_session() as session:
            repo = CanonicalRecordRepository(session)
            first, created = repo.create_or_get("fp-1", "Java Dev", "Acme", None, DEFAULT_SEEN_AT)
            second, created_again = repo.create_or_get("fp-1", "Other", "Other", None, DEFAULT_SEEN_AT)

        assert created is True
        assert created_again is False
        assert second.id == first.id
        assert second.best_title == "Java Dev"
        assert first.job_count == 0

    def test_attach_member_counts_pairs_once(self):
        with get_session() as session:
            repo = CanonicalRecordRepository(session)
            record, _ = repo.create_or_get("fp-1", "Java Dev", "Acme", None, DEFAULT_SEEN_AT)
            assert repo.attach_member(record.id, "JSEARCH", "a", DEFAULT_SEEN_AT) is True
            assert repo.attach_member(record.id, "JSEARCH", "a", DEFAULT_SEEN_AT) is False
            assert repo.attach_member(record.id, "ARBEITNOW", "b", DEFAULT_SEEN_AT) is True
            assert repo.get(record.id).job_count == 2

    def test_touch_never_moves_backwards(self):
        later = DEFAULT_SEEN_AT + timedelta(days=1)
        with get_session() as session:
            repo = CanonicalRecordRepository(session)
            record, _ = repo.create_or_get("fp-1", "Java Dev", "Acme", None, DEFAULT_SEEN_AT)
            repo.touch(record.id, later)
            repo.touch(record.id, DEFAULT_SEEN_AT)
            assert repo.get(record.id).last_seen_at == later


class TestVendorRepository:
    """Tests for VendorRepository."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def test_upsert_and_list(self):
        with get_session() as session:
            repo = VendorRepository(session)
            repo.upsert(VendorDirectoryEntry(id="v2", company_name="Globex Staffing"))
            repo.upsert(VendorDirectoryEntry(id="v1", company_name="Acme", domain="ACME.com"))
            repo.upsert(VendorDirectoryEntry(id="v1", company_name="Acme Corp", domain="acme.com"))

        with get_session() as session:
            vendors = VendorRepository(session).list_all()

        assert [v.id for v in vendors] == ["v1", "v2"]
        assert vendors[0].company_name == "Acme Corp"
        assert vendors[0].domain == "acme.com"


class TestSpendLedgerRepository:
    """Tests for SpendLedgerRepository."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def test_get_or_create_is_idempotent_and_syncs_caps(self):
        day = date(2025, 11, 4)
        with get_session() as session:
            repo = SpendLedgerRepository(session)
            repo.get_or_create("JSEARCH", day, 100, 50)
            repo.increment("JSEARCH", day, requests=3, new_records=2)
            entry = repo.get_or_create("JSEARCH", day, 200, 60)

        assert entry.requests_made == 3
        assert entry.new_records_ingested == 2
        assert entry.max_requests == 200
        assert entry.max_new_records == 60

    def test_increment_raises_error_if_row_missing(self):
        with get_session() as session:
            with pytest.raises(RecordNotFoundError):
                SpendLedgerRepository(session).increment("JSEARCH", date(2025, 11, 4), 1, 1)

    def test_mark_alert_fired_only_once(self):
        day = date(2025, 11, 4)
        with get_session() as session:
            repo = SpendLedgerRepository(session)
            repo.get_or_create("JSEARCH", day, 100, 50)
            assert repo.mark_alert_fired("JSEARCH", day, "first") is True
            assert repo.mark_alert_fired("JSEARCH", day, "second") is False
            entry = repo.get("JSEARCH", day)

        assert entry.alert_fired is True
        assert entry.alert_message == "first"

    def test_sum_requests_since(self):
        day = date(2025, 11, 4)
        with get_session() as session:
            repo = SpendLedgerRepository(session)
            for offset in range(3):
                current = day - timedelta(days=offset)
                repo.get_or_create("JSEARCH", current, 100, 50)
                repo.increment("JSEARCH", current, requests=10, new_records=0)
            repo.get_or_create("ARBEITNOW", day, 100, 50)
            repo.increment("ARBEITNOW", day, requests=99, new_records=0)

            assert repo.sum_requests_since("JSEARCH", day - timedelta(days=1)) == 20
            assert repo.sum_requests_since("JSEARCH", day + timedelta(days=1)) == 0


class TestQaSampleRepository:
    """Tests for QaSampleRepository."""

    @pytest.fixture(autouse=True)
    def setup_database(self):
        init_database("sqlite:///:memory:")
        yield
        close_database()

    def test_add_and_list_recent(self):
        signal = make_market_signal()
        sampled_at = datetime(2025, 11, 5, 9, 0, tzinfo=timezone.utc)

        with get_session() as session:
            MarketSignalRepository(session).upsert(signal)
            repo = QaSampleRepository(session)
            for verdict in (QaVerdict.PASS, QaVerdict.STALE):
                repo.add(
                    QaSample(
                        signal_key=signal.signal_key,
                        sampled_at=sampled_at,
                        url_alive=True,
                        type_correct=True,
                        is_duplicate=False,
                        is_bogus=False,
                        has_contact=True,
                        freshness_ok=verdict == QaVerdict.PASS,
                        verdict=verdict,
                        realness_score=60,
                        actionability_score=70,
                    )
                )

        with get_session() as session:
            samples = QaSampleRepository(session).list_recent()

        assert [s.verdict for s in samples] == [QaVerdict.STALE, QaVerdict.PASS]
        assert samples[0].id is not None
        assert samples[0].sampled_at == sampled_at
