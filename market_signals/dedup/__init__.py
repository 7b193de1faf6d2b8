"""Fingerprinting and canonical-record resolution."""

from .fingerprint import compute_fingerprint, normalize_token
from .resolver import FingerprintResolver, ResolutionResult

__all__ = [
    "compute_fingerprint",
    "normalize_token",
    "FingerprintResolver",
    "ResolutionResult",
]
