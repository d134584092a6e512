"""Tests for request correlation in structured logs."""
from shared.logging import add_request_context, clear_request_context, set_request_context


def test_processor_injects_request_and_trace_ids() -> None:
    rid = set_request_context(request_id="req-1")
    try:
        event = add_request_context(None, "info", {"event": "x"})
    finally:
        clear_request_context()
    assert rid == "req-1"
    assert event["request_id"] == "req-1"
    assert event["trace_id"] == "req-1"


def test_processor_is_noop_without_context() -> None:
    clear_request_context()
    assert add_request_context(None, "info", {"event": "x"}) == {"event": "x"}


def test_generated_request_id() -> None:
    rid = set_request_context()
    clear_request_context()
    assert len(rid) == 36
