"""Query time ranges: parsing of ``--start``/``--end`` and the option interceptors."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable, Mapping, MutableMapping
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Optional, Union

log = logging.getLogger(__name__)

Options = MutableMapping[str, Any]
Interceptor = Callable[[Options], Any]


class Step(str, Enum):
    """Precision of a time range."""

    DAY = "DAY"
    HOUR = "HOUR"
    MINUTE = "MINUTE"
    SECOND = "SECOND"


class DurationType(str, Enum):
    """Which ends of a time range the user supplied."""

    BOTH_ABSENT = "BothAbsent"
    BOTH_PRESENT = "BothPresent"
    START_ABSENT = "StartAbsent"
    END_ABSENT = "EndAbsent"


@dataclass(frozen=True)
class Duration:
    """A formatted time range as sent to the backend."""

    start: str
    end: str
    step: Step


class DurationError(ValueError):
    """A time given on the command line could not be understood."""


_FORMATS: dict[Step, tuple[str, re.Pattern[str]]] = {
    Step.SECOND: ("%Y-%m-%d %H%M%S", re.compile(r"\d{4}-\d{2}-\d{2} \d{6}")),
    Step.MINUTE: ("%Y-%m-%d %H%M", re.compile(r"\d{4}-\d{2}-\d{2} \d{4}")),
    Step.HOUR: ("%Y-%m-%d %H", re.compile(r"\d{4}-\d{2}-\d{2} \d{2}")),
    Step.DAY: ("%Y-%m-%d", re.compile(r"\d{4}-\d{2}-\d{2}")),
}

_STEP_LENGTH: dict[Step, timedelta] = {
    Step.SECOND: timedelta(seconds=1),
    Step.MINUTE: timedelta(minutes=1),
    Step.HOUR: timedelta(hours=1),
    Step.DAY: timedelta(days=1),
}

_UNIT_SECONDS = {
    "ns": 1e-9,
    "us": 1e-6,
    "µs": 1e-6,
    "μs": 1e-6,
    "ms": 1e-3,
    "s": 1.0,
    "m": 60.0,
    "h": 3600.0,
}

_RELATIVE_PART = re.compile(r"(\d+(?:\.\d*)?|\.\d+)(ns|us|µs|μs|ms|s|m|h)")
_OFFSET = re.compile(r"[+-]?\d+")

_WINDOW = 30


def _step(value: Union[Step, str, None]) -> Optional[Step]:
    if value is None or value == "":
        return None
    return Step(value)


def _parse_relative(text: str) -> timedelta:
    """Parse a signed sequence of decimal numbers with units, such as ``-1h30m``."""
    rest = text
    sign = 1
    if rest[:1] in ("+", "-"):
        sign = -1 if rest[0] == "-" else 1
        rest = rest[1:]
    if rest == "0":
        return timedelta(0)
    if not rest:
        raise ValueError(f"invalid duration {text!r}")

    seconds = 0.0
    position = 0
    while position < len(rest):
        match = _RELATIVE_PART.match(rest, position)
        if match is None:
            raise ValueError(f"invalid duration {text!r}")
        number, unit = match.groups()
        seconds += float(number) * _UNIT_SECONDS[unit]
        position = match.end()
    return timedelta(seconds=sign * seconds)


def try_parse_time(
    unparsed: str,
    user_step: Union[Step, str, None] = None,
    now: Optional[datetime] = None,
) -> tuple[Step, datetime]:
    """Parse an absolute time in one of the step layouts, or a time relative to ``now``.

    An absolute time determines the step by its precision; a relative time keeps
    ``user_step`` (minute when none is given).
    """
    absolute_error: Optional[ValueError] = None
    for step, (layout, pattern) in _FORMATS.items():
        if pattern.fullmatch(unparsed):
            try:
                return step, datetime.strptime(unparsed, layout)
            except ValueError as exc:
                absolute_error = exc

    try:
        offset = _parse_relative(unparsed)
    except ValueError as exc:
        reason = f"{absolute_error}; {exc}" if absolute_error else str(exc)
        raise DurationError(
            f"the given time {unparsed} is neither absolute time nor relative time: {reason}"
        ) from exc

    base = now if now is not None else datetime.now()
    return _step(user_step) or Step.MINUTE, base + offset


def parse_duration(
    start: Optional[str],
    end: Optional[str],
    user_step: Union[Step, str, None] = None,
    now: Optional[datetime] = None,
) -> tuple[datetime, datetime, Step, DurationType]:
    """Resolve ``start`` and ``end`` into ``(start_time, end_time, step, duration_type)``.

    Both absent: the last 30 minutes. Only one given: the other lies 30 steps away,
    where the step is the precision of the given time.
    """
    start = start or ""
    end = end or ""
    current = now if now is not None else datetime.now()
    log.debug("Start time: %s end time: %s", start, end)

    if not start and not end:
        return (
            current - timedelta(minutes=_WINDOW),
            current,
            Step.MINUTE,
            DurationType.BOTH_ABSENT,
        )

    if start and end:
        step, start_time = try_parse_time(start, user_step, current)
        step, end_time = try_parse_time(end, step, current)
        return start_time, end_time, step, DurationType.BOTH_PRESENT

    if not end:
        step, start_time = try_parse_time(start, user_step, current)
        return (
            start_time,
            start_time + _WINDOW * _STEP_LENGTH[step],
            step,
            DurationType.END_ABSENT,
        )

    step, end_time = try_parse_time(end, user_step, current)
    return (
        end_time - _WINDOW * _STEP_LENGTH[step],
        end_time,
        step,
        DurationType.START_ABSENT,
    )


def align_precision(start: str, end: str) -> tuple[str, str]:
    """Truncate the more precise of two time strings to the length of the other."""
    if len(start) < len(end):
        return start, end[: len(start)]
    if len(start) > len(end):
        return start[: len(end)], end
    return start, end


def is_set_duration_flags(options: Mapping[str, Any]) -> bool:
    """Tell whether any of ``start``, ``end`` or ``step`` was given."""
    return any(options.get(name) not in (None, "") for name in ("start", "end", "step"))


def _now_in(offset_text: Optional[str]) -> datetime:
    """Current wall-clock time in the zone ``+HHMM`` (only whole hours count)."""
    if offset_text and _OFFSET.fullmatch(offset_text):
        offset = int(offset_text)
        hours = abs(offset) // 100 * (1 if offset >= 0 else -1)
        return (datetime.now(timezone.utc) + timedelta(hours=hours)).replace(tzinfo=None)
    return datetime.now()


def duration_interceptor(options: Options) -> Duration:
    """Fill in and normalise the ``start``, ``end``, ``step`` and ``duration-type`` options."""
    now = _now_in(options.get("timezone"))
    start_time, end_time, step, kind = parse_duration(
        options.get("start"), options.get("end"), options.get("step"), now
    )
    layout = _FORMATS[step][0]
    duration = Duration(start_time.strftime(layout), end_time.strftime(layout), step)
    options["start"] = duration.start
    options["end"] = duration.end
    options["step"] = step
    options["duration-type"] = kind
    return duration


def timezone_interceptor(
    options: Options,
    timezone_source: Optional[Callable[[], Optional[str]]] = None,
) -> None:
    """Take the server's timezone unless the user gave one.

    ``timezone_source`` returns the server's offset such as ``+0800``; a failure to
    obtain it is logged and otherwise ignored.
    """
    if options.get("timezone") is not None or timezone_source is None:
        return
    try:
        server_timezone = timezone_source()
    except Exception as exc:  # any backend failure leaves the local timezone in use
        log.debug("Failed to get server time info: %s", exc)
        return
    if server_timezone is not None and _OFFSET.fullmatch(server_timezone):
        options["timezone"] = server_timezone


def before_chain(
    *interceptors: Interceptor,
    timezone_source: Optional[Callable[[], Optional[str]]] = None,
) -> Callable[[Options], None]:
    """Chain interceptors; the timezone interceptor always runs first."""

    def run(options: Options) -> None:
        timezone_interceptor(options, timezone_source)
        for interceptor in interceptors:
            interceptor(options)

    return run