import json
import logging

from jira_history.history.additional_fields import (
    extract_additional_fields,
    retrieve_additional_field_value,
    retrieve_field_value,
)


def test_retrieve_field_value_member_order():
    assert retrieve_field_value({"value": "v", "name": "n"}) == "v"
    assert retrieve_field_value({"name": "n", "displayName": "d"}) == "n"
    assert retrieve_field_value({"displayName": "d"}) == "d"
    assert retrieve_field_value({}) is None
    assert retrieve_field_value(["x"]) is None


def test_cascading_select_values():
    assert retrieve_field_value({"value": "Parent", "child": {"value": "Child"}}) == "Parent - Child"
    assert retrieve_field_value({"value": "Parent", "child": None}) == "Parent"
    assert retrieve_field_value({"value": "Parent", "child": {"value": None}}) == "Parent"


def test_plain_values():
    assert retrieve_additional_field_value("Team", "Core") == {"Team": "Core"}
    assert retrieve_additional_field_value("Team", {"name": "Core"}) == {"Team": "Core"}
    assert retrieve_additional_field_value("Count", 5) == {"Count": "5"}
    assert retrieve_additional_field_value("Blob", {"other": 1}) == {"Blob": '{"other":1}'}


def test_cascading_values_inside_array():
    value = [{"value": "High", "child": {"value": "Urgent"}}, {"value": "Low"}]
    out = retrieve_additional_field_value("Severity", value, array_limit=50)
    assert out["Severity_0"] == "High - Urgent"
    assert out["Severity_1"] == "Low"
    assert json.loads(out["Severity"]) == ["High - Urgent", "Low"]


def test_array_truncated_to_limit():
    value = [{"name": f"c{i}"} for i in range(5)]
    out = retrieve_additional_field_value("Components", value, array_limit=2)
    assert set(out) == {"Components", "Components_0", "Components_1"}
    assert json.loads(out["Components"]) == ["c0", "c1"]


def test_array_of_unresolvable_items_kept_verbatim():
    out = retrieve_additional_field_value("Ids", [1, {"id": 2}], array_limit=10)
    assert out["Ids_0"] == "1"
    assert out["Ids_1"] == '{"id":2}'
    assert json.loads(out["Ids"]) == [1, {"id": 2}]


def test_extract_uses_allow_list_and_skips_promoted_fields():
    fields = {
        "customfield_1": {"value": "Core"},
        "customfield_2": [{"id": "10"}],
        "customfield_3": "ignored, not allow-listed",
        "customfield_4": None,
    }
    names = {
        "customfield_1": "Team",
        "customfield_2": "Sprint",
        "customfield_3": "Other",
        "customfield_4": "Empty",
    }
    pairs = extract_additional_fields(fields, ["customfield_1", "customfield_2", "customfield_4"], names)
    assert pairs == (("Team", "Core"),)


def test_extract_failure_is_skipped_with_warning(caplog):
    fields = {"customfield_1": {1, 2}, "customfield_2": "ok"}
    names = {"customfield_1": "Weird", "customfield_2": "Fine"}
    with caplog.at_level(logging.WARNING):
        pairs = extract_additional_fields(fields, ["customfield_1", "customfield_2"], names, issue_key="PRJ-5")
    assert pairs == (("Fine", "ok"),)
    assert "PRJ-5" in caplog.text
    assert "Weird" in caplog.text
