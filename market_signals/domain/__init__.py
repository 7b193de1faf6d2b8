"""Domain models shared across the pipeline."""

from .models import (
    CanonicalRecord,
    CompPeriod,
    EmploymentType,
    LocationType,
    MarketSignal,
    QaSample,
    QaVerdict,
    RawSignal,
    SignalStatus,
    SpendLedgerEntry,
    UrlStatus,
    VendorDirectoryEntry,
)

__all__ = [
    "RawSignal",
    "MarketSignal",
    "CanonicalRecord",
    "VendorDirectoryEntry",
    "SpendLedgerEntry",
    "QaSample",
    "EmploymentType",
    "CompPeriod",
    "SignalStatus",
    "UrlStatus",
    "LocationType",
    "QaVerdict",
]
