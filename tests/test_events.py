from datetime import UTC, datetime

from jira_history.core.models import TypeChange
from jira_history.history.events import (
    extract_change_events,
    parse_timestamp,
    sort_histories,
    to_string_list,
)


def _entry(created, *items):
    return {"created": created, "items": list(items)}


def test_parse_timestamp_formats():
    assert parse_timestamp("2024-01-01T10:00:00.000+0000") == datetime(2024, 1, 1, 10, tzinfo=UTC)
    assert parse_timestamp("2024-01-01T12:00:00.000+0200") == datetime(2024, 1, 1, 10, tzinfo=UTC)
    assert parse_timestamp(1704067200000) == datetime(2024, 1, 1, tzinfo=UTC)
    assert parse_timestamp("2024-01-01") == datetime(2024, 1, 1, tzinfo=UTC)


def test_parse_timestamp_rejects_garbage():
    assert parse_timestamp(None) is None
    assert parse_timestamp("") is None
    assert parse_timestamp("not a date") is None
    assert parse_timestamp(True) is None


def test_events_carry_same_entry_type_change():
    histories = [
        _entry(
            "2024-01-02T10:00:00.000+0000",
            {"field": "issuetype", "fromString": "Task", "toString": "Sub-task"},
            {"field": "Sprint", "from": "10", "to": ""},
        ),
        _entry("2024-01-03T10:00:00.000+0000", {"field": "Sprint", "from": "", "to": "11"}),
    ]
    events = extract_change_events(histories, "Sprint", "from", "to")
    assert len(events) == 2
    assert events[0].type_change == TypeChange(from_type="Task", to_type="Sub-task")
    assert events[0].from_value == "10"
    assert events[1].type_change is None
    assert events[1].to_value == "11"


def test_events_drop_unparseable_entries():
    histories = [
        _entry("garbage", {"field": "status", "fromString": "Open", "toString": "Done"}),
        _entry("2024-01-03T10:00:00.000+0000", {"field": "status", "fromString": "Open", "toString": "Done"}),
    ]
    events = extract_change_events(histories, "status")
    assert [e.changed_at for e in events] == [datetime(2024, 1, 3, 10, tzinfo=UTC)]


def test_events_skip_entries_with_malformed_items():
    histories = [
        {"created": "2024-01-02T10:00:00.000+0000", "items": 7},
        {"created": "2024-01-02T11:00:00.000+0000", "items": {"field": "status"}},
        {"created": "2024-01-02T12:00:00.000+0000"},
        _entry("2024-01-03T10:00:00.000+0000", "junk", {"field": "status", "fromString": "Open", "toString": "Done"}),
    ]
    events = extract_change_events(histories, "status")
    assert len(events) == 1
    assert events[0].to_value == "Done"
    assert events[0].changed_at == datetime(2024, 1, 3, 10, tzinfo=UTC)


def test_events_ignore_other_fields():
    histories = [_entry("2024-01-03T10:00:00.000+0000", {"field": "labels", "toString": "x"})]
    assert extract_change_events(histories, "status") == []


def test_sort_histories_oldest_first():
    histories = [
        _entry("2024-01-03T10:00:00.000+0000"),
        _entry("2024-01-01T10:00:00.000+0000"),
        _entry("bad"),
    ]
    ordered = sort_histories(histories)
    assert [h["created"] for h in ordered] == [
        "bad",
        "2024-01-01T10:00:00.000+0000",
        "2024-01-03T10:00:00.000+0000",
    ]


def test_to_string_list():
    assert to_string_list("12, 13,") == ["12", "13"]
    assert to_string_list("") == []
    assert to_string_list(None) == []
