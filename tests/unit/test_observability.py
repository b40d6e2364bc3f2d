"""Unit tests for structured logging utilities in ``observability``.

Validates the null handler, trace binding, and event construction behaviour
sources and the manager rely on.
"""

from __future__ import annotations

import logging

import pytest

from lib_tracked_config import bind_trace_id, get_logger
from lib_tracked_config.observability import TRACE_ID, log_debug, log_info, make_event


def test_null_handler_present() -> None:
    """Package logger should always include a NullHandler to avoid surprises."""

    logger = get_logger()
    assert any(isinstance(handler, logging.NullHandler) for handler in logger.handlers)


def test_trace_id_in_log(caplog: pytest.LogCaptureFixture) -> None:
    """Structured logs should include the bound trace identifier and contextual fields."""

    caplog.set_level(logging.INFO, logger="lib_tracked_config")
    bind_trace_id("trace-123")
    try:
        log_info("changes_saved", source="local", path=None)
    finally:
        bind_trace_id(None)
    record = caplog.records[-1]
    assert record.getMessage() == "changes_saved"
    assert getattr(record, "context") == {"trace_id": "trace-123", "source": "local", "path": None}


def test_debug_entries_are_filtered_by_level(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="lib_tracked_config")
    log_debug("source_absent", source="site", path=None)
    assert not [record for record in caplog.records if record.getMessage() == "source_absent"]


def test_bind_trace_id_clears_context() -> None:
    """Clearing the trace ID should reset the context variable to None."""

    bind_trace_id("trace-temp")
    bind_trace_id(None)
    assert TRACE_ID.get() is None


def test_make_event_merges_optional_payload() -> None:
    """make_event should merge optional metadata without mutating base keys."""

    event = make_event("site", "/etc/app/site.xml", {"primary": False})
    assert event == {"source": "site", "path": "/etc/app/site.xml", "primary": False}
