import logging
from datetime import UTC, datetime

from jira_history.core.config import TransformerConfig
from jira_history.core.models import Status
from jira_history.core.status import StatusResolver, normalize_status_name
from jira_history.history.status_timeline import build_status_changelog, last_status_change

CREATED = datetime(2024, 1, 1, tzinfo=UTC)


def _resolver():
    config = TransformerConfig.build(
        statuses=[("Open", "Todo"), ("In Progress", "In Progress"), ("Done", "Done")],
    )
    return StatusResolver(config.status_by_name)


def _status_change(created, from_name, to_name):
    return {"created": created, "items": [{"field": "status", "fromString": from_name, "toString": to_name}]}


def test_normalize_status_name():
    assert normalize_status_name("In Progress") == "inprogress"
    assert normalize_status_name(" IN  progress ") == "inprogress"
    assert normalize_status_name(None) == ""


def test_no_changelog_single_point_at_creation():
    points = build_status_changelog([], "Open", CREATED, _resolver(), "PRJ-1")
    assert len(points) == 1
    assert points[0].status == Status(category="Todo", detail="Open")
    assert points[0].changed_at == CREATED


def test_open_to_done():
    histories = [_status_change("2024-02-01T00:00:00.000+0000", "Open", "Done")]
    points = build_status_changelog(histories, "Done", CREATED, _resolver(), "PRJ-1")
    assert [(p.status.category, p.changed_at) for p in points] == [
        ("Todo", CREATED),
        ("Done", datetime(2024, 2, 1, tzinfo=UTC)),
    ]
    assert last_status_change(points) == datetime(2024, 2, 1, tzinfo=UTC)


def test_lookup_is_whitespace_and_case_insensitive():
    histories = [_status_change("2024-02-01T00:00:00.000+0000", "OPEN", "in progress")]
    points = build_status_changelog(histories, "In Progress", CREATED, _resolver())
    assert points[-1].status == Status(category="In Progress", detail="In Progress")


def test_unknown_status_falls_back_with_warning(caplog):
    with caplog.at_level(logging.WARNING):
        points = build_status_changelog([], "Triage", CREATED, _resolver(), "PRJ-9")
    assert points[0].status == Status(category="Triage", detail="Triage")
    assert "PRJ-9" in caplog.text
    assert "Triage" in caplog.text


def test_points_strictly_ascending_when_change_at_creation():
    histories = [_status_change("2024-01-01T00:00:00.000+0000", "Open", "In Progress")]
    points = build_status_changelog(histories, "In Progress", CREATED, _resolver())
    assert [p.status.detail for p in points] == ["In Progress"]


def test_same_entry_changes_keep_latest():
    histories = [
        _status_change("2024-01-05T00:00:00.000+0000", "Open", "In Progress"),
        _status_change("2024-01-05T00:00:00.000+0000", "In Progress", "Done"),
    ]
    points = build_status_changelog(histories, "Done", CREATED, _resolver())
    times = [p.changed_at for p in points]
    assert times == sorted(set(times))
    assert [p.status.detail for p in points] == ["Open", "Done"]


def test_missing_creation_date_omits_initial_point():
    histories = [_status_change("2024-02-01T00:00:00.000+0000", "Open", "Done")]
    points = build_status_changelog(histories, "Done", None, _resolver())
    assert [p.status.detail for p in points] == ["Done"]
    assert build_status_changelog([], "Open", None, _resolver()) == ()


def test_missing_status_yields_no_points():
    assert build_status_changelog([], None, CREATED, _resolver()) == ()
    assert last_status_change(()) is None
