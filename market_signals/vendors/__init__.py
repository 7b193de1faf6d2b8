"""Vendor directory cache and vendor matching."""

from .cache import VendorDirectoryCache
from .matcher import (
    MATCH_DOMAIN,
    MATCH_NAME,
    VendorMatcher,
    VendorMatchResult,
    normalize_company_name,
)

__all__ = [
    "VendorDirectoryCache",
    "VendorMatcher",
    "VendorMatchResult",
    "normalize_company_name",
    "MATCH_DOMAIN",
    "MATCH_NAME",
]
