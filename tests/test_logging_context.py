"""Tests for the contextvars-backed logging context."""

import threading

import pytest

from market_signals.logging.context import (
    clear_log_context,
    get_log_context,
    log_context,
    pop_log_context,
    push_log_context,
)


@pytest.fixture(autouse=True)
def clean_context():
    """Clear logging context before and after each test."""
    clear_log_context()
    yield
    clear_log_context()


def test_empty_context():
    assert get_log_context() == {}


def test_push_and_pop():
    token = push_log_context(run_id="run-1", provider="JSEARCH")

    assert get_log_context() == {"run_id": "run-1", "provider": "JSEARCH"}

    pop_log_context(token)
    assert get_log_context() == {}


def test_nested_push_restores_outer_fields():
    outer = push_log_context(run_id="run-1")
    inner = push_log_context(provider="ARBEITNOW", run_id="run-2")

    assert get_log_context() == {"run_id": "run-2", "provider": "ARBEITNOW"}

    pop_log_context(inner)
    assert get_log_context() == {"run_id": "run-1"}
    pop_log_context(outer)


def test_returned_context_is_a_copy():
    push_log_context(run_id="run-1")

    snapshot = get_log_context()
    snapshot["run_id"] = "mutated"

    assert get_log_context()["run_id"] == "run-1"


def test_context_manager_nested():
    with log_context(run_id="run-1"):
        with log_context(provider="JSEARCH"):
            assert get_log_context() == {"run_id": "run-1", "provider": "JSEARCH"}
        assert get_log_context() == {"run_id": "run-1"}

    assert get_log_context() == {}


def test_context_manager_restores_on_exception():
    with pytest.raises(RuntimeError):
        with log_context(signal_key="abc"):
            raise RuntimeError("boom")

    assert get_log_context() == {}


def test_context_isolation_between_threads():
    """Test that a worker thread does not see the caller's context."""
    seen = {}

    def worker():
        seen["context"] = get_log_context()

    with log_context(run_id="run-1"):
        thread = threading.Thread(target=worker)
        thread.start()
        thread.join()

    assert seen["context"] == {}
