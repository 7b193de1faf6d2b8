"""Hashing utilities for generating stable record keys.

- signal_key: primary key for a market signal, derived from (source, external_id)
- sha256_hex: general-purpose helper used by the dedup fingerprint
"""

import hashlib
from typing import Optional


def sha256_hex(value: str, length: Optional[int] = None) -> str:
    """Compute SHA256 of a string, optionally truncated.

    Args:
        value: String to hash (encoded as UTF-8)
        length: Number of leading hex characters to keep (None keeps all 64)

    Returns:
        Hexadecimal digest
    """
    digest = hashlib.sha256(value.encode("utf-8")).hexdigest()
    return digest[:length] if length else digest


def compute_signal_key(source: str, external_id: str) -> str:
    """Compute the primary key for a market signal.

    The key is a SHA256 of ``source:external_id``. Source names are
    case-insensitive; external ids are taken verbatim apart from surrounding
    whitespace since providers treat them as opaque.

    Args:
        source: Provider name (e.g. "ARBEITNOW", "JSEARCH")
        external_id: Posting id assigned by the provider

    Returns:
        64-character hexadecimal key

    Example:
        >>> len(compute_signal_key("JSEARCH", "abc123"))
        64
    """
    composite_key = f"{source.strip().upper()}:{external_id.strip()}"
    return sha256_hex(composite_key)
