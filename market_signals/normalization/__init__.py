"""Normalization layer: RawSignal in, classified and scored MarketSignal out."""

from .models import NormalizationResult
from .service import SignalNormalizer

__all__ = ["SignalNormalizer", "NormalizationResult"]
