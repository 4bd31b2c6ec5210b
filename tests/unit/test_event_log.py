"""Unit tests for the bounded event log."""

import pytest

from gitop.event_log import DEFAULT_CAPACITY, EventLog
from gitop.models import EventRecord


def _record(n: int) -> EventRecord:
    return EventRecord.now(repo="repo", source="test", message=f"event {n}")


def test_default_capacity_is_fifty():
    assert DEFAULT_CAPACITY == 50


def test_fifty_first_append_evicts_oldest():
    log = EventLog()
    records = [_record(n) for n in range(51)]
    for record in records:
        log.append(record)

    assert len(log) == 50
    assert log.snapshot() == records[1:]


def test_extend_past_capacity_keeps_most_recent():
    log = EventLog(capacity=3)
    log.extend(_record(n) for n in range(5))

    assert [r.message for r in log.snapshot()] == ["event 2", "event 3", "event 4"]


def test_recent_is_newest_first_and_log_keeps_insertion_order():
    log = EventLog()
    log.extend(_record(n) for n in range(6))

    assert [r.message for r in log.recent(3)] == ["event 5", "event 4", "event 3"]
    assert [r.message for r in log.snapshot()][:2] == ["event 0", "event 1"]


def test_recent_with_fewer_records_than_requested():
    log = EventLog()
    log.append(_record(1))

    assert [r.message for r in log.recent(8)] == ["event 1"]
    assert log.recent(0) == []


def test_rejects_non_positive_capacity():
    with pytest.raises(ValueError):
        EventLog(capacity=0)


def test_record_format_includes_repo_source_and_message():
    text = _record(7).format()

    assert text.startswith("[")
    assert text.endswith("repo: test - event 7")
