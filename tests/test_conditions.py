import uuid as uuid_module
from dataclasses import dataclass

import pytest

from skyctl.conditions import (
    AlarmCondition,
    ConditionError,
    EventType,
    Pagination,
    Tag,
    build_alarm_condition,
    build_browser_log_condition,
    build_event_condition,
    build_event_report,
    build_log_condition,
    check_global_layer,
    parse_alarm_tags,
    parse_log_tags,
    parse_parameters,
    search_instances,
)
from skyctl.durations import Duration, Step

DURATION = Duration("2024-01-01 1200", "2024-01-01 1230", Step.MINUTE)


def test_parse_parameters_empty():
    assert parse_parameters([]) == {}


@pytest.mark.parametrize("arg", ["key", "key=", "=value", "="])
def test_parse_parameters_invalid(arg):
    with pytest.raises(ConditionError):
        parse_parameters([arg])


def test_parse_parameters_all_invalid_together():
    with pytest.raises(ConditionError):
        parse_parameters(["key", "key=", "=value", "="])


def test_parse_parameters_valid():
    assert parse_parameters(["key=value", "k=v===", "kk====="]) == {
        "key": "value",
        "k": "v===",
        "kk": "====",
    }


def test_alarm_tags_keep_extra_equals():
    assert parse_alarm_tags("a=b=c,x=") == [Tag("a", "b=c"), Tag("x", "")]


def test_alarm_tags_empty():
    assert parse_alarm_tags("") == []


def test_alarm_tags_invalid():
    with pytest.raises(ConditionError, match="cannot be splitted into 2 parts"):
        parse_alarm_tags("a=b,broken")


def test_log_tags_drop_after_second_equals():
    assert parse_log_tags("a=b=c,k=v") == [Tag("a", "b"), Tag("k", "v")]


def test_log_tags_invalid():
    with pytest.raises(ConditionError):
        parse_log_tags("novalue")


def test_alarm_condition():
    condition = build_alarm_condition(DURATION, "cpu", "Service", "level=high")
    assert condition == AlarmCondition(
        duration=DURATION,
        keyword="cpu",
        scope="Service",
        tags=(Tag("level", "high"),),
        paging=Pagination(1, 15),
    )


def test_log_condition():
    condition = build_log_condition(DURATION, "svc", "inst", "ep", "trace", "a=1")
    assert condition.service_id == "svc"
    assert condition.service_instance_id == "inst"
    assert condition.endpoint_id == "ep"
    assert condition.trace_id == "trace"
    assert condition.tags == (Tag("a", "1"),)
    assert condition.paging.page_size == 15


def test_event_condition_all_has_no_type():
    condition = build_event_condition(DURATION, "svc", "", "", "Reboot", EventType.ALL, "general")
    assert condition.type is None
    assert condition.layer == "GENERAL"
    assert condition.name == "Reboot"


def test_event_condition_with_type():
    condition = build_event_condition(DURATION, event_type="error")
    assert condition.type == "Error"


def test_event_condition_unknown_type():
    with pytest.raises(ConditionError):
        build_event_condition(DURATION, event_type="Bogus")


def test_event_report():
    report = build_event_report(
        "id-1", "svc", "inst", "ep", "Upgrade", None, "msg", 10, 20, "mesh", ["a=b"]
    )
    assert report.uuid == "id-1"
    assert report.type is EventType.NORMAL
    assert report.parameters == {"a": "b"}
    assert report.layer == "MESH"
    assert (report.start_time, report.end_time) == (10, 20)


def test_event_report_generates_uuid():
    report = build_event_report(None, "", "", "", "n", "Error", "", 0, 0, "x")
    assert str(uuid_module.UUID(report.uuid)) == report.uuid
    assert report.type is EventType.ERROR


def test_event_report_bad_parameter():
    with pytest.raises(ConditionError):
        build_event_report("u", "", "", "", "n", None, "", 0, 0, "x", ["bad"])


def test_browser_log_condition():
    condition = build_browser_log_condition(DURATION, "s", "v", "p")
    assert (condition.service_id, condition.service_version_id, condition.page_path_id) == (
        "s",
        "v",
        "p",
    )
    assert condition.paging == Pagination(1, 15)


@dataclass
class _Instance:
    name: str


def test_search_instances_matches_anywhere():
    instances = [_Instance("provider-1"), _Instance("consumer"), _Instance("my-provider")]
    assert search_instances(instances, "provider") == [instances[0], instances[2]]


def test_search_instances_mappings_and_anchor():
    instances = [{"name": "abc"}, {"name": "xabc"}]
    assert search_instances(instances, "^abc") == [{"name": "abc"}]


def test_search_instances_invalid_regex():
    assert search_instances([_Instance("a(")], "a(") == []


def test_check_global_layer():
    assert check_global_layer(10, "GENERAL") is True
    assert check_global_layer(9, "") is False


def test_check_global_layer_old_backend_with_layer():
    with pytest.raises(ConditionError, match="10.0.0"):
        check_global_layer(9, "GENERAL")