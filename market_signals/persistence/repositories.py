"""Data access layer (repositories) for persistence operations.

Repositories wrap a caller-owned session, return domain models, and translate
SQLAlchemy errors into PersistenceError. They never commit; the caller's
get_session() block owns the transaction.
"""

import logging
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Dict, List, Optional, Sequence, Tuple

from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from market_signals.domain.models import (
    CanonicalRecord,
    EmploymentType,
    MarketSignal,
    QaSample,
    SignalStatus,
    SpendLedgerEntry,
    UrlStatus,
    VendorDirectoryEntry,
)

from .exceptions import DataIntegrityError, PersistenceError, RecordNotFoundError
from .schema import (
    CanonicalMemberModel,
    CanonicalRecordModel,
    MarketSignalModel,
    QaSampleModel,
    SpendLedgerModel,
    VendorModel,
    _format_datetime,
)

logger = logging.getLogger(__name__)

SORTABLE_COLUMNS = {
    "actionability": MarketSignalModel.actionability_score,
    "realness": MarketSignalModel.realness_score,
    "last_seen": MarketSignalModel.last_seen_at,
    "posted": MarketSignalModel.source_posted_at,
}


@dataclass
class SignalQuery:
    """Filters for reading market signals.

    Attributes:
        statuses: Allowed statuses (empty = any)
        employment_types: Allowed employment types (empty = any)
        min_realness: Minimum realness score
        min_actionability: Minimum actionability score
        seen_since: Only signals last seen at or after this instant
        sort_by: One of "actionability", "realness", "last_seen", "posted"
        descending: Sort direction
        limit: Maximum rows (None = unlimited)
    """

    statuses: Sequence[SignalStatus] = field(default_factory=lambda: [SignalStatus.ACTIVE])
    employment_types: Sequence[EmploymentType] = field(default_factory=list)
    min_realness: Optional[int] = None
    min_actionability: Optional[int] = None
    seen_since: Optional[datetime] = None
    sort_by: str = "actionability"
    descending: bool = True
    limit: Optional[int] = 100


class MarketSignalRepository:
    """Repository for market signal rows."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, signal_key: str) -> Optional[MarketSignal]:
        """Retrieve a signal by primary key, or None."""
        try:
            model = self.session.get(MarketSignalModel, signal_key)
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving signal {signal_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve signal: {e}") from e

    def get_by_source_id(self, source: str, external_id: str) -> Optional[MarketSignal]:
        """Retrieve a signal by its natural key (source, external_id)."""
        try:
            stmt = select(MarketSignalModel).where(
                MarketSignalModel.source == source,
                MarketSignalModel.external_id == external_id,
            )
            model = self.session.execute(stmt).scalar_one_or_none()
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            logger.error(f"Error retrieving signal {source}/{external_id}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to retrieve signal: {e}") from e

    def upsert(self, signal: MarketSignal) -> Tuple[MarketSignal, bool]:
        """Insert a new signal or overwrite every field of the existing one.

        Args:
            signal: Fully derived signal

        Returns:
            Tuple of (persisted signal, created flag)

        Raises:
            DataIntegrityError: On a constraint violation other than the natural key
            PersistenceError: On other database errors
        """
        try:
            existing = self.session.get(MarketSignalModel, signal.signal_key)
            if existing is not None:
                existing.apply_domain(signal)
                self.session.flush()
                return existing.to_domain(), False

            model = MarketSignalModel.from_domain(signal)
            self.session.add(model)
            self.session.flush()
            return model.to_domain(), True

        except IntegrityError as e:
            logger.error(f"Integrity error upserting signal {signal.signal_key}: {e}", exc_info=True)
            raise DataIntegrityError(f"Failed to upsert signal: {e}") from e
        except SQLAlchemyError as e:
            logger.error(f"Error upserting signal {signal.signal_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to upsert signal: {e}") from e

    def search(self, query: Optional[SignalQuery] = None) -> List[MarketSignal]:
        """Filter and sort signals for downstream readers."""
        query = query or SignalQuery()
        if query.sort_by not in SORTABLE_COLUMNS:
            raise ValueError(
                f"Unsupported sort_by '{query.sort_by}'. "
                f"Choose one of: {', '.join(sorted(SORTABLE_COLUMNS))}"
            )

        stmt = select(MarketSignalModel)
        if query.statuses:
            stmt = stmt.where(MarketSignalModel.status.in_([_value(s) for s in query.statuses]))
        if query.employment_types:
            stmt = stmt.where(
                MarketSignalModel.employment_type.in_([_value(t) for t in query.employment_types])
            )
        if query.min_realness is not None:
            stmt = stmt.where(MarketSignalModel.realness_score >= query.min_realness)
        if query.min_actionability is not None:
            stmt = stmt.where(MarketSignalModel.actionability_score >= query.min_actionability)
        if query.seen_since is not None:
            stmt = stmt.where(MarketSignalModel.last_seen_at >= _format_datetime(query.seen_since))

        column = SORTABLE_COLUMNS[query.sort_by]
        stmt = stmt.order_by(column.desc() if query.descending else column.asc(),
                             MarketSignalModel.signal_key)
        if query.limit:
            stmt = stmt.limit(query.limit)

        try:
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error searching signals: {e}", exc_info=True)
            raise PersistenceError(f"Failed to search signals: {e}") from e

    def list_keys_by_status(self, status: SignalStatus) -> List[str]:
        """Return the primary keys of all signals with ``status``, in key order."""
        try:
            stmt = (
                select(MarketSignalModel.signal_key)
                .where(MarketSignalModel.status == _value(status))
                .order_by(MarketSignalModel.signal_key)
            )
            return list(self.session.execute(stmt).scalars())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list signal keys: {e}") from e

    def mark_stale(self, last_seen_before: datetime) -> int:
        """ACTIVE -> STALE for signals unseen since the cutoff and without an expiry.

        Returns:
            Number of rows transitioned
        """
        stmt = (
            update(MarketSignalModel)
            .where(
                MarketSignalModel.status == SignalStatus.ACTIVE.value,
                MarketSignalModel.last_seen_at < _format_datetime(last_seen_before),
                MarketSignalModel.expires_at.is_(None),
            )
            .values(status=SignalStatus.STALE.value)
            .execution_options(synchronize_session=False)
        )
        return self._bulk_update(stmt, "mark_stale")

    def mark_expired(self, now: datetime) -> int:
        """ACTIVE -> EXPIRED for signals whose explicit expiry has passed.

        Returns:
            Number of rows transitioned
        """
        stmt = (
            update(MarketSignalModel)
            .where(
                MarketSignalModel.status == SignalStatus.ACTIVE.value,
                MarketSignalModel.expires_at.is_not(None),
                MarketSignalModel.expires_at < _format_datetime(now),
            )
            .values(status=SignalStatus.EXPIRED.value)
            .execution_options(synchronize_session=False)
        )
        return self._bulk_update(stmt, "mark_expired")

    def list_url_check_candidates(self, verified_before: datetime, limit: int) -> List[MarketSignal]:
        """ACTIVE signals with an apply URL that were never verified or verified before the cutoff.

        Never-verified rows come first, then the oldest verifications.
        """
        stmt = (
            select(MarketSignalModel)
            .where(
                MarketSignalModel.status == SignalStatus.ACTIVE.value,
                MarketSignalModel.apply_url.is_not(None),
                MarketSignalModel.apply_url != "",
                or_(
                    MarketSignalModel.url_verified_at.is_(None),
                    MarketSignalModel.url_verified_at < _format_datetime(verified_before),
                ),
            )
            .order_by(
                MarketSignalModel.url_verified_at.is_(None).desc(),
                MarketSignalModel.url_verified_at.asc(),
                MarketSignalModel.signal_key,
            )
            .limit(limit)
        )
        try:
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to list URL check candidates: {e}") from e

    def update_url_status(
        self,
        signal_key: str,
        url_status: UrlStatus,
        checked_at: datetime,
        status: Optional[SignalStatus] = None,
    ) -> None:
        """Record a probe result, optionally forcing a lifecycle status.

        Raises:
            RecordNotFoundError: If the signal does not exist
        """
        values = {
            "url_status": _value(url_status),
            "url_verified_at": _format_datetime(checked_at),
        }
        if status is not None:
            values["status"] = _value(status)

        try:
            result = self.session.execute(
                update(MarketSignalModel)
                .where(MarketSignalModel.signal_key == signal_key)
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            self.session.flush()
            self.session.expire_all()
        except SQLAlchemyError as e:
            logger.error(f"Error updating URL status for {signal_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to update URL status: {e}") from e

        if result.rowcount == 0:
            raise RecordNotFoundError(f"Signal with key {signal_key} not found")

    def count_by_status(self) -> Dict[str, int]:
        stmt = select(MarketSignalModel.status, func.count()).group_by(MarketSignalModel.status)
        try:
            return {status: count for status, count in self.session.execute(stmt).all()}
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to count signals: {e}") from e

    def _bulk_update(self, stmt, operation: str) -> int:
        try:
            result = self.session.execute(stmt)
            self.session.flush()
            self.session.expire_all()
            return result.rowcount or 0
        except SQLAlchemyError as e:
            logger.error(f"Error during {operation}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to {operation.replace('_', ' ')}: {e}") from e


class CanonicalRecordRepository:
    """Repository for canonical records and their membership rows."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, canonical_id: int) -> Optional[CanonicalRecord]:
        model = self.session.get(CanonicalRecordModel, canonical_id)
        return model.to_domain() if model else None

    def get_by_fingerprint(self, fingerprint: str) -> Optional[CanonicalRecord]:
        try:
            stmt = select(CanonicalRecordModel).where(CanonicalRecordModel.fingerprint == fingerprint)
            model = self.session.execute(stmt).scalar_one_or_none()
            return model.to_domain() if model else None
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to retrieve canonical record: {e}") from e

    def create_or_get(
        self,
        fingerprint: str,
        title: str,
        company: str,
        location: Optional[str],
        seen_at: datetime,
    ) -> Tuple[CanonicalRecord, bool]:
        """Create a canonical record, or return the one that won a concurrent insert.

        The insert runs inside a SAVEPOINT so a unique-constraint collision on
        fingerprint only rolls back this attempt.

        Returns:
            Tuple of (record, created flag). New records start with job_count 0;
            attach_member() brings them to 1.
        """
        seen = _format_datetime(seen_at)
        try:
            with self.session.begin_nested():
                model = CanonicalRecordModel(
                    fingerprint=fingerprint,
                    best_title=title,
                    best_company=company,
                    best_location=location,
                    first_seen_at=seen,
                    last_seen_at=seen,
                    job_count=0,
                )
                self.session.add(model)
            return model.to_domain(), True
        except IntegrityError:
            logger.debug(f"Canonical record {fingerprint} created concurrently, fetching")

        existing = self.get_by_fingerprint(fingerprint)
        if existing is None:
            raise DataIntegrityError(
                f"Canonical record {fingerprint} collided on insert but cannot be found"
            )
        return existing, False

    def touch(self, canonical_id: int, seen_at: datetime) -> None:
        """Advance last_seen_at (never moves it backwards)."""
        seen = _format_datetime(seen_at)
        self.session.execute(
            update(CanonicalRecordModel)
            .where(
                CanonicalRecordModel.id == canonical_id,
                CanonicalRecordModel.last_seen_at < seen,
            )
            .values(last_seen_at=seen)
            .execution_options(synchronize_session=False)
        )
        self.session.expire_all()

    def attach_member(
        self, canonical_id: int, source: str, external_id: str, attached_at: datetime
    ) -> bool:
        """Attach (source, external_id) to a canonical record.

        Increments job_count only the first time the pair attaches.

        Returns:
            True if the pair was newly attached
        """
        key = {"canonical_id": canonical_id, "source": source, "external_id": external_id}
        if self.session.get(CanonicalMemberModel, key) is not None:
            return False

        try:
            with self.session.begin_nested():
                self.session.add(
                    CanonicalMemberModel(**key, attached_at=_format_datetime(attached_at))
                )
        except IntegrityError:
            return False

        self.session.execute(
            update(CanonicalRecordModel)
            .where(CanonicalRecordModel.id == canonical_id)
            .values(job_count=CanonicalRecordModel.job_count + 1)
            .execution_options(synchronize_session=False)
        )
        self.session.expire_all()
        return True


class VendorRepository:
    """Repository for the vendor directory."""

    def __init__(self, session: Session):
        self.session = session

    def list_all(self) -> List[VendorDirectoryEntry]:
        """Return every vendor in stable id order."""
        try:
            stmt = select(VendorModel).order_by(VendorModel.id)
            return [model.to_domain() for model in self.session.execute(stmt).scalars()]
        except SQLAlchemyError as e:
            logger.error(f"Error loading vendor directory: {e}", exc_info=True)
            raise PersistenceError(f"Failed to load vendor directory: {e}") from e

    def upsert(self, vendor: VendorDirectoryEntry) -> VendorDirectoryEntry:
        try:
            self.session.merge(VendorModel.from_domain(vendor))
            self.session.flush()
            return vendor
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to upsert vendor {vendor.id}: {e}") from e


class SpendLedgerRepository:
    """Repository for per provider per day spend counters."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, provider: str, day: date) -> Optional[SpendLedgerEntry]:
        model = self._get_model(provider, day)
        return model.to_domain() if model else None

    def get_or_create(
        self, provider: str, day: date, max_requests: int, max_new_records: int
    ) -> SpendLedgerEntry:
        """Return today's row, creating it lazily and syncing caps to the given values."""
        try:
            model = self._get_model(provider, day)
            if model is None:
                try:
                    with self.session.begin_nested():
                        model = SpendLedgerModel(
                            provider=provider,
                            day=day.isoformat(),
                            requests_made=0,
                            new_records_ingested=0,
                            max_requests=max_requests,
                            max_new_records=max_new_records,
                            alert_fired=False,
                        )
                        self.session.add(model)
                except IntegrityError:
                    model = self._get_model(provider, day)

            if model.max_requests != max_requests or model.max_new_records != max_new_records:
                model.max_requests = max_requests
                model.max_new_records = max_new_records
                self.session.flush()

            return model.to_domain()
        except SQLAlchemyError as e:
            logger.error(f"Error loading spend ledger for {provider}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to load spend ledger: {e}") from e

    def increment(self, provider: str, day: date, requests: int, new_records: int) -> SpendLedgerEntry:
        """Add to today's counters with a single SQL-side increment.

        Raises:
            RecordNotFoundError: If the row was never created
        """
        try:
            result = self.session.execute(
                update(SpendLedgerModel)
                .where(SpendLedgerModel.provider == provider, SpendLedgerModel.day == day.isoformat())
                .values(
                    requests_made=SpendLedgerModel.requests_made + requests,
                    new_records_ingested=SpendLedgerModel.new_records_ingested + new_records,
                )
                .execution_options(synchronize_session=False)
            )
            self.session.flush()
            self.session.expire_all()
        except SQLAlchemyError as e:
            logger.error(f"Error recording spend for {provider}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record spend: {e}") from e

        if result.rowcount == 0:
            raise RecordNotFoundError(f"No spend ledger row for {provider} on {day.isoformat()}")
        return self._refresh(provider, day)

    def mark_alert_fired(self, provider: str, day: date, message: str) -> bool:
        """Set alert_fired if it is still unset.

        Returns:
            True only for the call that flipped the flag
        """
        result = self.session.execute(
            update(SpendLedgerModel)
            .where(
                SpendLedgerModel.provider == provider,
                SpendLedgerModel.day == day.isoformat(),
                SpendLedgerModel.alert_fired == False,  # noqa: E712
            )
            .values(alert_fired=True, alert_message=message)
            .execution_options(synchronize_session=False)
        )
        self.session.flush()
        self.session.expire_all()
        return result.rowcount == 1

    def sum_requests_since(self, provider: str, first_day: date) -> int:
        """Total requests made from ``first_day`` (inclusive) onwards."""
        stmt = select(func.coalesce(func.sum(SpendLedgerModel.requests_made), 0)).where(
            and_(SpendLedgerModel.provider == provider, SpendLedgerModel.day >= first_day.isoformat())
        )
        try:
            return int(self.session.execute(stmt).scalar_one())
        except SQLAlchemyError as e:
            raise PersistenceError(f"Failed to sum weekly spend: {e}") from e

    def _get_model(self, provider: str, day: date) -> Optional[SpendLedgerModel]:
        stmt = select(SpendLedgerModel).where(
            SpendLedgerModel.provider == provider, SpendLedgerModel.day == day.isoformat()
        )
        return self.session.execute(stmt).scalar_one_or_none()

    def _refresh(self, provider: str, day: date) -> SpendLedgerEntry:
        model = self._get_model(provider, day)
        self.session.refresh(model)
        return model.to_domain()


class QaSampleRepository:
    """Append-only repository for QA samples."""

    def __init__(self, session: Session):
        self.session = session

    def add(self, sample: QaSample) -> QaSample:
        try:
            model = QaSampleModel.from_domain(sample)
            self.session.add(model)
            self.session.flush()
            return model.to_domain()
        except SQLAlchemyError as e:
            logger.error(f"Error recording QA sample for {sample.signal_key}: {e}", exc_info=True)
            raise PersistenceError(f"Failed to record QA sample: {e}") from e

    def list_recent(self, limit: int = 50) -> List[QaSample]:
        stmt = select(QaSampleModel).order_by(QaSampleModel.id.desc()).limit(limit)
        return [model.to_domain() for model in self.session.execute(stmt).scalars()]


def _value(item) -> str:
    return item.value if hasattr(item, "value") else str(item)
