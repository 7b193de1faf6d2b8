"""Cross-source fingerprint for coarse deduplication.

Two listings of the same posting on different boards share a fingerprint when
their normalized title, company, location, apply-URL host and the first 300
characters of the description agree. There is no fuzzy matching: wording
drift inside the prefix splits a group, and a shared templated opening can
merge distinct postings.
"""

import re
from typing import Optional

from market_signals.utils.hashing import sha256_hex
from market_signals.utils.urls import extract_hostname

DESCRIPTION_PREFIX_CHARS = 300
FINGERPRINT_LENGTH = 32

_NON_ALNUM = re.compile(r"[^a-z0-9]")


def normalize_token(value: Optional[str]) -> str:
    """Lowercase and drop every character outside [a-z0-9]."""
    if not value:
        return ""
    return _NON_ALNUM.sub("", value.lower())


def compute_fingerprint(
    title: Optional[str],
    company: Optional[str],
    location: Optional[str],
    apply_url: Optional[str],
    description: Optional[str],
) -> str:
    """Compute the 32-hex-character fingerprint for a posting.

    Args:
        title: Posting title
        company: Company name
        location: Location text (None treated as "")
        apply_url: Apply URL; only its hostname participates
        description: Description; only the first 300 characters participate

    Returns:
        First 32 hex characters of SHA256 over the pipe-joined parts
    """
    parts = [
        normalize_token(title),
        normalize_token(company),
        normalize_token(location or ""),
        extract_hostname(apply_url),
        normalize_token((description or "")[:DESCRIPTION_PREFIX_CHARS]),
    ]
    return sha256_hex("|".join(parts), length=FINGERPRINT_LENGTH)
