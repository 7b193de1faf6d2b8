"""Test helper utilities for market signal pipeline tests."""

from .fixture_provider import FixtureProvider, load_fixture_signals, make_raw_signal
from .signals import DEFAULT_SEEN_AT, make_market_signal

__all__ = [
    "FixtureProvider",
    "load_fixture_signals",
    "make_raw_signal",
    "make_market_signal",
    "DEFAULT_SEEN_AT",
]
