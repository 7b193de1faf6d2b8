"""Resolve fingerprints to canonical records."""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from market_signals.domain.models import CanonicalRecord
from market_signals.logging import get_logger
from market_signals.persistence.repositories import CanonicalRecordRepository

logger = get_logger(__name__, component="dedup")


@dataclass
class ResolutionResult:
    """Outcome of resolving one signal against the canonical table.

    Attributes:
        canonical: Canonical record after attachment
        created: True if this call created the canonical record
        attached: True if (source, external_id) joined the record for the first time
    """

    canonical: CanonicalRecord
    created: bool
    attached: bool

    @property
    def is_cross_source_duplicate(self) -> bool:
        """A pre-existing canonical record gained a new member."""
        return not self.created and self.attached


class FingerprintResolver:
    """Lookup-or-create canonical records and track their membership.

    job_count counts distinct (source, external_id) pairs ever attached, so
    re-syncing a known posting never bumps it again.
    """

    def __init__(self, canonical_repo: CanonicalRecordRepository):
        self.canonical_repo = canonical_repo

    def resolve(
        self,
        fingerprint: str,
        source: str,
        external_id: str,
        title: str,
        company: str,
        location: Optional[str],
        seen_at: datetime,
    ) -> ResolutionResult:
        """Attach a signal to the canonical record for ``fingerprint``.

        Args:
            fingerprint: Output of compute_fingerprint()
            source: Provider name
            external_id: Posting id at the provider
            title: Display title used to seed a new record
            company: Display company used to seed a new record
            location: Display location used to seed a new record
            seen_at: Observation time

        Returns:
            ResolutionResult
        """
        canonical = self.canonical_repo.get_by_fingerprint(fingerprint)
        created = False
        if canonical is None:
            canonical, created = self.canonical_repo.create_or_get(
                fingerprint, title, company, location, seen_at
            )
        if not created:
            self.canonical_repo.touch(canonical.id, seen_at)

        attached = self.canonical_repo.attach_member(canonical.id, source, external_id, seen_at)
        canonical = self.canonical_repo.get(canonical.id)

        if attached and not created:
            logger.debug(
                f"Cross-source duplicate for {fingerprint}: {source}/{external_id}",
                extra={
                    "event": "dedup.member.attached",
                    "canonical_id": canonical.id,
                    "job_count": canonical.job_count,
                },
            )

        return ResolutionResult(canonical=canonical, created=created, attached=attached)
