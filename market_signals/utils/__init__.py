"""Utility functions for hashing, time handling, and URL parsing."""

from .hashing import compute_signal_key, sha256_hex
from .timestamps import (
    days_ago,
    ensure_utc,
    format_timestamp,
    from_unix,
    hours_since,
    parse_iso_datetime,
    utc_now,
    utc_today,
)
from .urls import email_domain, extract_hostname

__all__ = [
    # Hashing
    "compute_signal_key",
    "sha256_hex",
    # Timestamps
    "utc_now",
    "utc_today",
    "ensure_utc",
    "parse_iso_datetime",
    "from_unix",
    "hours_since",
    "days_ago",
    "format_timestamp",
    # URLs
    "extract_hostname",
    "email_domain",
]
