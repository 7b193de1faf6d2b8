"""QA truth sampler: randomized audit of classifier and scorer output.

Each run draws a uniform sample of ACTIVE signals, runs six independent
checks plus a resume-harvesting heuristic, and appends one immutable QaSample
per signal. Samples are ground truth for tuning; nothing consumes them
automatically.
"""

import random
import re
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from market_signals.classification.employment import blocked_types_for
from market_signals.domain.models import EmploymentType, MarketSignal, QaSample, QaVerdict, SignalStatus
from market_signals.lifecycle.probe import UrlProbe
from market_signals.logging import get_logger
from market_signals.persistence.database import get_session
from market_signals.persistence.repositories import (
    CanonicalRecordRepository,
    MarketSignalRepository,
    QaSampleRepository,
)
from market_signals.utils.timestamps import utc_now

logger = get_logger(__name__, component="qa")

DEFAULT_SAMPLE_SIZE = 20
FRESH_POSTING_DAYS = 7
FRESH_SIGHTING_DAYS = 3
MIN_CONFIDENCE = 0.5

SPAM_TITLE_PATTERNS = [
    re.compile(r"URGENT\s+HIRING", re.IGNORECASE),
    re.compile(r"IMMEDIATE\s+HIRE", re.IGNORECASE),
    re.compile(r"HIRING\s+NOW", re.IGNORECASE),
    re.compile(r"WORK\s+FROM\s+HOME\s+EARN", re.IGNORECASE),
    re.compile(r"EASY\s+MONEY", re.IGNORECASE),
    re.compile(r"QUICK\s+CASH", re.IGNORECASE),
]
GENERIC_COMPANY_PATTERNS = [
    re.compile(r"^unknown$", re.IGNORECASE),
    re.compile(r"^confidential$", re.IGNORECASE),
]
HARVEST_APPLY_PATTERNS = [
    re.compile(r"^mailto:", re.IGNORECASE),
    re.compile(r"apply\.generic", re.IGNORECASE),
    re.compile(r"redirect\.to", re.IGNORECASE),
]


@dataclass
class QaChecks:
    """The six independent checks plus the harvest heuristic for one signal."""

    url_alive: Optional[bool]
    type_correct: bool
    is_duplicate: bool
    is_bogus: bool
    has_contact: bool
    freshness_ok: bool
    is_harvest: bool

    def verdict(self) -> QaVerdict:
        """First matching verdict in priority order."""
        if self.is_bogus:
            return QaVerdict.BOGUS
        if self.url_alive is False:
            return QaVerdict.FAIL
        if self.is_harvest:
            return QaVerdict.HARVEST
        if not self.freshness_ok:
            return QaVerdict.STALE
        if self.is_duplicate:
            return QaVerdict.DUPLICATE
        return QaVerdict.PASS


@dataclass
class QaRunResult:
    sampled: int = 0
    verdicts: Dict[str, int] = field(default_factory=dict)
    samples: List[QaSample] = field(default_factory=list)

    def summary(self) -> str:
        order = [QaVerdict.PASS, QaVerdict.STALE, QaVerdict.FAIL,
                 QaVerdict.BOGUS, QaVerdict.DUPLICATE, QaVerdict.HARVEST]
        parts = [f"{self.verdicts[v.value]} {v.value}" for v in order if self.verdicts.get(v.value)]
        return ", ".join(parts) if parts else "nothing sampled"


def _is_generic_company(company: Optional[str]) -> bool:
    name = (company or "").strip()
    return any(pattern.search(name) for pattern in GENERIC_COMPANY_PATTERNS)


def check_type_correct(signal: MarketSignal) -> bool:
    """Type is known, confident, and not contradicted by a stored negative label."""
    if signal.employment_type == EmploymentType.UNKNOWN:
        return False
    if signal.employment_confidence <= MIN_CONFIDENCE:
        return False
    return not any(
        signal.employment_type in blocked_types_for(label) for label in signal.negative_signals
    )


def check_bogus(signal: MarketSignal) -> bool:
    if _is_generic_company(signal.company):
        return True
    if len(signal.description or "") < 50:
        return True
    return any(pattern.search(signal.title or "") for pattern in SPAM_TITLE_PATTERNS)


def check_freshness(signal: MarketSignal, now: datetime) -> bool:
    posted = signal.source_posted_at or signal.posted_at or signal.first_seen_at
    return (
        posted >= now - timedelta(days=FRESH_POSTING_DAYS)
        or signal.last_seen_at >= now - timedelta(days=FRESH_SIGHTING_DAYS)
    )


def check_harvest(signal: MarketSignal) -> bool:
    """No location, a generic company or suspicious apply URL, and thin content."""
    no_location = not (signal.location or "").strip()
    suspicious_url = bool(signal.apply_url) and any(
        pattern.search(signal.apply_url) for pattern in HARVEST_APPLY_PATTERNS
    )
    too_generic = len(signal.title or "") < 10 or len(signal.description or "") < 100
    return no_location and (_is_generic_company(signal.company) or suspicious_url) and too_generic


class QaTruthSampler:
    """Draws and audits a random sample of ACTIVE signals."""

    def __init__(
        self,
        probe: UrlProbe,
        sample_size: int = DEFAULT_SAMPLE_SIZE,
        rng: Optional[random.Random] = None,
    ):
        """Initialize the sampler.

        Args:
            probe: Used for a live (uncached) re-probe of each apply URL
            sample_size: Signals drawn per run
            rng: Random source (seed it in tests for a reproducible draw)
        """
        self.probe = probe
        self.sample_size = sample_size
        self.rng = rng or random.Random()

    def evaluate(self, signal: MarketSignal, job_count: int, now: datetime) -> QaChecks:
        """Run every check against one signal."""
        return QaChecks(
            url_alive=self.probe.is_reachable(signal.apply_url) if signal.apply_url else None,
            type_correct=check_type_correct(signal),
            is_duplicate=job_count > 1,
            is_bogus=check_bogus(signal),
            has_contact=bool(signal.recruiter_email) or bool(signal.recruiter_phone),
            freshness_ok=check_freshness(signal, now),
            is_harvest=check_harvest(signal),
        )

    def run(self, now: Optional[datetime] = None) -> QaRunResult:
        """Sample, audit and persist. Returns per-verdict counts."""
        now = now or utc_now()
        result = QaRunResult()

        with get_session() as session:
            signal_repo = MarketSignalRepository(session)
            canonical_repo = CanonicalRecordRepository(session)

            keys = signal_repo.list_keys_by_status(SignalStatus.ACTIVE)
            if not keys:
                logger.info("No ACTIVE signals to sample", extra={"event": "qa.run.empty"})
                return result

            drawn = self.rng.sample(keys, min(self.sample_size, len(keys)))
            population = []
            for key in drawn:
                signal = signal_repo.get(key)
                if signal is None:
                    logger.debug(
                        f"Sampled signal {key} no longer exists",
                        extra={"event": "qa.sample.missing", "signal_key": key},
                    )
                    continue
                canonical = canonical_repo.get(signal.canonical_id) if signal.canonical_id else None
                population.append((signal, canonical.job_count if canonical else 0))

        verdicts: Counter = Counter()
        samples: List[QaSample] = []
        for signal, job_count in population:
            checks = self.evaluate(signal, job_count, now)
            verdict = checks.verdict()
            verdicts[verdict.value] += 1
            samples.append(
                QaSample(
                    signal_key=signal.signal_key,
                    sampled_at=now,
                    url_alive=checks.url_alive,
                    type_correct=checks.type_correct,
                    is_duplicate=checks.is_duplicate,
                    is_bogus=checks.is_bogus,
                    has_contact=checks.has_contact,
                    freshness_ok=checks.freshness_ok,
                    verdict=verdict,
                    realness_score=signal.realness_score,
                    actionability_score=signal.actionability_score,
                    notes="harvest heuristic matched" if checks.is_harvest else None,
                )
            )

        with get_session() as session:
            qa_repo = QaSampleRepository(session)
            result.samples = [qa_repo.add(sample) for sample in samples]

        result.sampled = len(result.samples)
        result.verdicts = dict(verdicts)
        logger.info(
            f"QA sampler: {result.sampled} sampled ({result.summary()})",
            extra={"event": "qa.run.completed", "sampled": result.sampled, "verdicts": result.verdicts},
        )
        return result
