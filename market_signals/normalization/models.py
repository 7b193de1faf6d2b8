"""Data models for the normalization layer."""

from dataclasses import dataclass
from typing import Optional

from market_signals.classification.models import ClassificationResult, RateResult
from market_signals.dedup.resolver import ResolutionResult
from market_signals.domain.models import MarketSignal, RawSignal
from market_signals.scoring.rules import ScoreResult
from market_signals.vendors.matcher import VendorMatchResult


@dataclass
class NormalizationResult:
    """Result of deriving a MarketSignal from one RawSignal.

    The intermediate results are kept so callers and tests can see why a
    signal got its classification and scores without re-running anything.

    Attributes:
        signal: Fully derived signal, ready for upsert
        existing: Stored version of the signal, None on first sighting
        raw: Provider record the signal was derived from
        classification: Employment classifier output
        rate: Rate normalizer output
        resolution: Canonical record resolution
        vendor_match: Vendor matcher output
        realness: Realness score and reasons
        actionability: Actionability score and reasons
    """

    signal: MarketSignal
    existing: Optional[MarketSignal]
    raw: RawSignal
    classification: ClassificationResult
    rate: RateResult
    resolution: ResolutionResult
    vendor_match: VendorMatchResult
    realness: ScoreResult
    actionability: ScoreResult

    @property
    def is_new(self) -> bool:
        return self.existing is None

    @property
    def is_cross_source_duplicate(self) -> bool:
        """A new (source, external_id) joined a canonical record seen elsewhere."""
        return self.resolution.is_cross_source_duplicate
