"""Signal normalization: derive a scored MarketSignal from a RawSignal.

The derivation order is fixed because later steps consume earlier output:

1. Employment classifier (title + description)
2. Rate normalizer (description)
3. Skill extractor (title + description)
4. Fingerprint and canonical resolution
5. Vendor matcher
6. Realness scorer
7. Actionability scorer (consumes realness)

Nothing here commits; the caller owns the transaction.
"""

import logging
from datetime import datetime
from typing import Optional

from market_signals.classification import classify_employment, extract_rate, extract_skills
from market_signals.config.models import ScoringConfig
from market_signals.dedup.fingerprint import compute_fingerprint
from market_signals.dedup.resolver import FingerprintResolver
from market_signals.domain.models import MarketSignal, RawSignal
from market_signals.lifecycle.manager import status_after_sighting
from market_signals.logging import get_logger
from market_signals.persistence.repositories import MarketSignalRepository
from market_signals.scoring import (
    ActionabilityInput,
    RealnessInput,
    score_actionability,
    score_realness,
)
from market_signals.utils.hashing import compute_signal_key
from market_signals.utils.timestamps import ensure_utc, utc_now
from market_signals.vendors.matcher import VendorMatcher

from .models import NormalizationResult

logger = get_logger(__name__, component="normalization")


class SignalNormalizer:
    """Turns provider records into fully derived MarketSignals.

    Responsibilities:
    - Compute the signal key from source + external_id
    - Classify, extract rate and skills, fingerprint, match vendor, score
    - Carry first_seen_at and the last URL probe result over from the stored row
    - Keep EXPIRED signals EXPIRED; any other re-sighting becomes ACTIVE
    """

    def __init__(
        self,
        signal_repo: MarketSignalRepository,
        resolver: FingerprintResolver,
        vendor_matcher: VendorMatcher,
        scoring_settings: Optional[ScoringConfig] = None,
        seen_at: Optional[datetime] = None,
        logger_instance: Optional[logging.Logger] = None,
    ):
        """Initialize SignalNormalizer.

        Args:
            signal_repo: Used to look up the stored version of each signal
            resolver: Canonical record resolver bound to the same session
            vendor_matcher: Vendor matcher (its cache is shared across sessions)
            scoring_settings: Freshness tiers and old-posting window
            seen_at: Observation time for this batch (defaults to utc_now())
            logger_instance: Logger instance (defaults to module logger)
        """
        self.signal_repo = signal_repo
        self.resolver = resolver
        self.vendor_matcher = vendor_matcher
        self.scoring_settings = scoring_settings or ScoringConfig()
        self.seen_at = ensure_utc(seen_at or utc_now())
        self.logger = logger_instance or logger

    def normalize(self, raw: RawSignal) -> NormalizationResult:
        """Derive the full field set for ``raw``.

        Raises:
            ValueError: If the record has no title or no company
            PersistenceError: From the repository lookups
        """
        if not raw.has_required_fields:
            raise ValueError(f"{raw.source}/{raw.external_id} is missing a title or company")

        signal_key = compute_signal_key(raw.source, raw.external_id)
        existing = self.signal_repo.get(signal_key)

        title_and_description = f"{raw.title} {raw.description}"
        classification = classify_employment(title_and_description)
        rate = extract_rate(raw.description)
        skills = extract_skills(title_and_description)

        fingerprint = compute_fingerprint(
            raw.title, raw.company, raw.location, raw.apply_url, raw.description
        )
        resolution = self.resolver.resolve(
            fingerprint,
            raw.source,
            raw.external_id,
            raw.title,
            raw.company,
            raw.location,
            self.seen_at,
        )

        vendor_match = self.vendor_matcher.match(raw.company, raw.apply_url, raw.recruiter_email)

        # Provider salary only stands in for the hourly band when it is quoted hourly
        hourly_min = rate.hourly_min
        hourly_max = rate.hourly_max
        if hourly_min is None and raw.salary_is_hourly and raw.salary_min:
            hourly_min = raw.salary_min
        if hourly_max is None and raw.salary_is_hourly and raw.salary_max:
            hourly_max = raw.salary_max

        url_status = existing.url_status if existing else None

        realness = score_realness(
            RealnessInput(
                title=raw.title,
                company=raw.company,
                description=raw.description,
                location=raw.location,
                employment_type=classification.employment_type,
                negative_signals=classification.negative_signals,
                recruiter_email=raw.recruiter_email,
                recruiter_name=raw.recruiter_name,
                recruiter_phone=raw.recruiter_phone,
                hourly_rate_min=hourly_min,
                hourly_rate_max=hourly_max,
                rate_text=rate.rate_text,
                source_posted_at=raw.source_posted_at,
                posted_at=raw.posted_at,
                apply_url=raw.apply_url,
                url_status=url_status,
                classification_confidence=classification.confidence,
            ),
            settings=self.scoring_settings,
            now=self.seen_at,
        )

        actionability = score_actionability(
            ActionabilityInput(
                title=raw.title,
                company=raw.company,
                description=raw.description,
                location=raw.location,
                employment_type=classification.employment_type,
                negative_signals=classification.negative_signals,
                recruiter_email=raw.recruiter_email,
                recruiter_name=raw.recruiter_name,
                hourly_rate_min=hourly_min,
                hourly_rate_max=hourly_max,
                rate_text=rate.rate_text,
                apply_url=raw.apply_url,
                url_status=url_status,
                vendor_id=vendor_match.vendor_id,
                classification_confidence=classification.confidence,
                company_domain=vendor_match.company_domain,
                realness_score=realness.score,
            )
        )

        signal = MarketSignal(
            signal_key=signal_key,
            source=raw.source,
            external_id=raw.external_id,
            title=raw.title,
            company=raw.company,
            description=raw.description,
            location=raw.location,
            location_type=raw.location_type,
            apply_url=raw.apply_url,
            source_url=raw.source_url,
            posted_at=raw.posted_at,
            source_posted_at=raw.source_posted_at,
            expires_at=raw.expires_at,
            salary_min=raw.salary_min,
            salary_max=raw.salary_max,
            recruiter_name=raw.recruiter_name,
            recruiter_email=raw.recruiter_email,
            recruiter_phone=raw.recruiter_phone,
            employment_type=classification.employment_type,
            employment_confidence=classification.confidence,
            matched_keywords=classification.matched_keywords,
            negative_signals=classification.negative_signals,
            rate_text=rate.rate_text,
            rate_min=raw.salary_min if raw.salary_min is not None else rate.min,
            rate_max=raw.salary_max if raw.salary_max is not None else rate.max,
            comp_period=rate.comp_period,
            hourly_rate_min=hourly_min,
            hourly_rate_max=hourly_max,
            skills=skills,
            fingerprint=fingerprint,
            canonical_id=resolution.canonical.id,
            vendor_id=vendor_match.vendor_id,
            vendor_match_method=vendor_match.method,
            company_domain=vendor_match.company_domain,
            realness_score=realness.score,
            realness_reasons=realness.reasons,
            actionability_score=actionability.score,
            actionability_reasons=actionability.reasons,
            status=status_after_sighting(existing.status if existing else None),
            url_status=url_status,
            url_verified_at=existing.url_verified_at if existing else None,
            first_seen_at=existing.first_seen_at if existing else self.seen_at,
            last_seen_at=self.seen_at,
            raw_payload=raw.raw_payload,
        )

        if not raw.description:
            self.logger.warning(
                f"Empty description for {raw.source}/{raw.external_id}",
                extra={"event": "normalization.signal.missing_description", "signal_key": signal_key},
            )

        return NormalizationResult(
            signal=signal,
            existing=existing,
            raw=raw,
            classification=classification,
            rate=rate,
            resolution=resolution,
            vendor_match=vendor_match,
            realness=realness,
            actionability=actionability,
        )
