"""Persistence layer for market signals, canonical records, vendors, spend and QA.

Public API:
    # Database initialization and session management
    - init_database(database_url: str) -> None
    - get_session() -> ContextManager[Session]
    - close_database() -> None
    - get_engine() -> Engine

    # Repository classes
    - MarketSignalRepository: upsert, search, sweeps and URL health batches
    - CanonicalRecordRepository: fingerprint lookup, creation and membership
    - VendorRepository: vendor directory reads and upserts
    - SpendLedgerRepository: per provider per day counters
    - QaSampleRepository: append-only QA audit rows

Example usage:
    >>> from market_signals.persistence import init_database, get_session, MarketSignalRepository
    >>> init_database("sqlite:///./data/market_signals.db")
    >>> with get_session() as session:
    ...     repo = MarketSignalRepository(session)
    ...     signal = repo.get_by_source_id("ARBEITNOW", "senior-python-dev-123")
"""

from .database import close_database, get_engine, get_session, init_database

from .repositories import (
    CanonicalRecordRepository,
    MarketSignalRepository,
    QaSampleRepository,
    SignalQuery,
    SpendLedgerRepository,
    VendorRepository,
)

from .exceptions import (
    DatabaseConnectionError,
    DataIntegrityError,
    PersistenceError,
    RecordNotFoundError,
)

__all__ = [
    "init_database",
    "get_session",
    "close_database",
    "get_engine",
    "MarketSignalRepository",
    "CanonicalRecordRepository",
    "VendorRepository",
    "SpendLedgerRepository",
    "QaSampleRepository",
    "SignalQuery",
    "PersistenceError",
    "DatabaseConnectionError",
    "RecordNotFoundError",
    "DataIntegrityError",
]
