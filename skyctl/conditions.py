"""Query conditions and event reports assembled from command-line options."""

from __future__ import annotations

import re
import uuid as uuid_module
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Optional, Union

from skyctl.durations import Duration

DEFAULT_PAGE_SIZE = 15


class ConditionError(ValueError):
    """An option value cannot be turned into a query condition."""


class EventType(IntEnum):
    """Type of an event; ``ALL`` matches every type when listing."""

    ALL = -1
    NORMAL = 0
    ERROR = 1

    @property
    def label(self) -> str:
        """The name the backend uses for this type."""
        return self.name.capitalize()


@dataclass(frozen=True)
class Pagination:
    """Which page of results to ask for."""

    page_num: int = 1
    page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class Tag:
    """A ``key=value`` tag used to filter alarms or logs."""

    key: str
    value: str


@dataclass(frozen=True)
class AlarmCondition:
    """Condition for listing alarms."""

    duration: Duration
    keyword: str = ""
    scope: str = ""
    tags: tuple[Tag, ...] = ()
    paging: Pagination = field(default_factory=Pagination)


@dataclass(frozen=True)
class LogCondition:
    """Condition for listing logs."""

    query_duration: Duration
    service_id: str = ""
    service_instance_id: str = ""
    endpoint_id: str = ""
    trace_id: str = ""
    tags: tuple[Tag, ...] = ()
    paging: Pagination = field(default_factory=Pagination)


@dataclass(frozen=True)
class EventCondition:
    """Condition for listing events; ``type`` is ``None`` to match all types."""

    time: Duration
    service: str = ""
    service_instance: str = ""
    endpoint: str = ""
    name: str = ""
    layer: str = ""
    type: Optional[str] = None
    order: Optional[str] = None
    paging: Pagination = field(default_factory=Pagination)


@dataclass(frozen=True)
class BrowserLogCondition:
    """Condition for listing browser error logs."""

    query_duration: Duration
    service_id: str = ""
    service_version_id: str = ""
    page_path_id: str = ""
    paging: Pagination = field(default_factory=Pagination)


@dataclass(frozen=True)
class EventReport:
    """An event to be reported to the backend."""

    uuid: str
    service: str
    service_instance: str
    endpoint: str
    name: str
    type: EventType
    message: str
    parameters: dict[str, str]
    start_time: int
    end_time: int
    layer: str


def _event_type(value: Union[EventType, str, int, None], default: EventType) -> EventType:
    if value is None or value == "":
        return default
    if isinstance(value, EventType):
        return value
    if isinstance(value, int):
        return EventType(value)
    for member in EventType:
        if member.label.lower() == str(value).lower():
            return member
    raise ConditionError(f"unknown event type {value!r}")


def parse_parameters(args: Iterable[str]) -> dict[str, str]:
    """Parse ``key=value`` arguments; both key and value must be non-empty."""
    parameters: dict[str, str] = {}
    for arg in args:
        key, sep, value = arg.partition("=")
        if not sep or not key or not value:
            raise ConditionError(
                f"{arg} is not a vaild parameter, should like `key=value`"
            )
        parameters[key] = value
    return parameters


def parse_alarm_tags(text: Optional[str]) -> list[Tag]:
    """Parse ``key=value,key=value``; a value may itself hold ``=``."""
    if not text:
        return []
    tags = []
    for item in text.split(","):
        key, sep, value = item.partition("=")
        if not sep:
            raise ConditionError(
                f"invalid tag, cannot be splitted into 2 parts. {item}"
            )
        tags.append(Tag(key, value))
    return tags


def parse_log_tags(text: Optional[str]) -> list[Tag]:
    """Parse ``key=value,key=value``; text after a second ``=`` is dropped."""
    if not text:
        return []
    tags = []
    for item in text.split(","):
        parts = item.split("=")
        if len(parts) < 2:
            raise ConditionError(f"invalid tag, expected key=value. {item}")
        tags.append(Tag(parts[0], parts[1]))
    return tags


def build_alarm_condition(
    duration: Duration,
    keyword: str = "",
    scope: str = "",
    tags: Optional[str] = None,
) -> AlarmCondition:
    """Assemble the alarm list condition from its options."""
    return AlarmCondition(
        duration=duration,
        keyword=keyword or "",
        scope=scope or "",
        tags=tuple(parse_alarm_tags(tags)),
    )


def build_log_condition(
    duration: Duration,
    service_id: str = "",
    instance_id: str = "",
    endpoint_id: str = "",
    trace_id: str = "",
    tags: Optional[str] = None,
) -> LogCondition:
    """Assemble the log list condition from its options."""
    return LogCondition(
        query_duration=duration,
        service_id=service_id or "",
        service_instance_id=instance_id or "",
        endpoint_id=endpoint_id or "",
        trace_id=trace_id or "",
        tags=tuple(parse_log_tags(tags)),
    )


def build_event_condition(
    duration: Duration,
    service: str = "",
    instance: str = "",
    endpoint: str = "",
    name: str = "",
    event_type: Union[EventType, str, int, None] = EventType.ALL,
    layer: str = "",
) -> EventCondition:
    """Assemble the event list condition; the layer is upper-cased."""
    kind = _event_type(event_type, EventType.ALL)
    return EventCondition(
        time=duration,
        service=service or "",
        service_instance=instance or "",
        endpoint=endpoint or "",
        name=name or "",
        layer=(layer or "").upper(),
        type=None if kind is EventType.ALL else kind.label,
    )


def build_event_report(
    uuid: Optional[str],
    service: str,
    instance: str,
    endpoint: str,
    name: str,
    event_type: Union[EventType, str, int, None],
    message: str,
    start_time: int,
    end_time: int,
    layer: str,
    args: Sequence[str] = (),
) -> EventReport:
    """Assemble an event to report; a random uuid is used when none is given."""
    kind = _event_type(event_type, EventType.NORMAL)
    if kind is EventType.ALL:
        raise ConditionError("an event to report must be Normal or Error")
    return EventReport(
        uuid=uuid or str(uuid_module.uuid4()),
        service=service or "",
        service_instance=instance or "",
        endpoint=endpoint or "",
        name=name or "",
        type=kind,
        message=message or "",
        parameters=parse_parameters(args),
        start_time=int(start_time or 0),
        end_time=int(end_time or 0),
        layer=(layer or "").upper(),
    )


def build_browser_log_condition(
    duration: Duration,
    service_id: str = "",
    version_id: str = "",
    page_id: str = "",
) -> BrowserLogCondition:
    """Assemble the browser error log condition from its options."""
    return BrowserLogCondition(
        query_duration=duration,
        service_id=service_id or "",
        service_version_id=version_id or "",
        page_path_id=page_id or "",
    )


def _name_of(instance: Any) -> str:
    if isinstance(instance, Mapping):
        return str(instance.get("name", ""))
    return str(getattr(instance, "name", ""))


def search_instances(instances: Iterable[Any], regex: str) -> list[Any]:
    """Keep the instances whose name contains a match of ``regex``.

    An invalid pattern matches nothing.
    """
    try:
        pattern = re.compile(regex)
    except re.error:
        return []
    return [item for item in instances if pattern.search(_name_of(item))]


def check_global_layer(major_version: int, layer: Optional[str]) -> bool:
    """Tell whether the global topology can be queried by layer.

    Backends before version 10 have no layer query, so a layer is then an error.
    """
    if major_version >= 10:
        return True
    if layer:
        raise ConditionError(
            "the layer parameter only available when OAP version >= 10.0.0"
        )
    return False