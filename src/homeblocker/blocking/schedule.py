"""Crontab-like blocking schedules.

Brief:
  A schedule is an ordered list of lines of the form

      <minute> <hour> <day> <month> <weekday> <on|off>

  where each of the first five fields is ``*``, a single integer ``N`` or a
  range ``A-B``. Ranges are half-open (``A-B`` covers ``A`` up to but not
  including ``B``) so that existing configuration files keep their meaning.

Inputs:
  - Raw schedule text taken from a block's ``schedule`` configuration key.

Outputs:
  - Immutable ``Schedule`` objects answering ``is_active(now)``.

Notes:
  - Evaluation starts from "blocking active" and every matching line
    overwrites the running result, so the last matching line wins.
  - Weekdays follow the crontab convention: Sunday is 0, Saturday is 6.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from datetime import datetime
from typing import Tuple

_NUMBER_RE = re.compile(r"[0-9]+")
_RANGE_RE = re.compile(r"([0-9]+)-([0-9]+)")


class ScheduleParseError(ValueError):
    """Brief: Raised when schedule text does not follow the schedule grammar.

    Inputs:
      - message: Description naming the offending token or line.

    Outputs:
      - Exception instance.
    """


@dataclass(frozen=True)
class Interval:
    """One schedule field: a wildcard or the half-open range [start, end)."""

    wildcard: bool = False
    start: int = 0
    end: int = 0

    def matches(self, value: int) -> bool:
        return self.wildcard or self.start <= value < self.end


def time_fields(now: datetime) -> Tuple[int, int, int, int, int]:
    """Brief: Split a timestamp into the five fields a schedule line tests.

    Inputs:
      - now: datetime in the zone blocking decisions are made in (naive local
        time for the server).

    Outputs:
      - (minute, hour, day-of-month, month, weekday) with weekday 0 = Sunday.
    """

    return (now.minute, now.hour, now.day, now.month, now.isoweekday() % 7)


@dataclass(frozen=True)
class ScheduleLine:
    minute: Interval
    hour: Interval
    day: Interval
    month: Interval
    weekday: Interval
    enabled: bool

    def matches(self, now: datetime) -> bool:
        """Brief: True when every field of this line covers ``now``."""

        minute, hour, day, month, weekday = time_fields(now)
        return (
            self.minute.matches(minute)
            and self.hour.matches(hour)
            and self.day.matches(day)
            and self.month.matches(month)
            and self.weekday.matches(weekday)
        )


@dataclass(frozen=True)
class Schedule:
    """Ordered schedule lines; later lines override earlier ones."""

    lines: Tuple[ScheduleLine, ...] = ()

    def is_active(self, now: datetime) -> bool:
        """Brief: Decide whether blocking is active at ``now``.

        Inputs:
          - now: Timestamp to evaluate.

        Outputs:
          - bool: The ``enabled`` flag of the last line matching ``now``, or
            True when no line matches (including the empty schedule).
        """

        active = True
        for line in self.lines:
            if line.matches(now):
                active = line.enabled
        return active

    def __len__(self) -> int:
        return len(self.lines)


def parse_interval(text: str) -> Interval:
    """Brief: Parse one schedule field.

    Inputs:
      - text: ``*``, ``N`` or ``A-B`` (ASCII digits only).

    Outputs:
      - Interval: wildcard, [N, N+1) or [A, B).

    Raises:
      - ScheduleParseError: for any other form, or a range whose start is not
        below its end.

    Example:
      >>> parse_interval("9-17").matches(16)
      True
      >>> parse_interval("9-17").matches(17)
      False
    """

    if text == "*":
        return Interval(wildcard=True)

    if "-" in text:
        m = _RANGE_RE.fullmatch(text)
        if m is None:
            raise ScheduleParseError(f"Interval must be from-to: {text}")
        start, end = int(m.group(1)), int(m.group(2))
        if start >= end:
            raise ScheduleParseError(
                f"Interval start must be lower than its end: {text}"
            )
        return Interval(start=start, end=end)

    if _NUMBER_RE.fullmatch(text) is None:
        raise ScheduleParseError(
            f"Field must be either a wildcard *, a number, or an interval: {text}"
        )
    value = int(text)
    return Interval(start=value, end=value + 1)


def parse_schedule_line(text: str) -> ScheduleLine:
    """Brief: Parse a single ``<min> <hour> <day> <month> <weekday> <on|off>`` line.

    Inputs:
      - text: Schedule line; fields are separated by whitespace.

    Outputs:
      - ScheduleLine.

    Raises:
      - ScheduleParseError: on a field count other than six, an invalid field
        or a terminator other than ``on``/``off``.
    """

    parts = text.split()
    if len(parts) != 6:
        raise ScheduleParseError(
            "Schedule lines must follow the crontab format; "
            f"6 fields separated with spaces: {text.strip()}"
        )

    state = parts[5]
    if state == "on":
        enabled = True
    elif state == "off":
        enabled = False
    else:
        raise ScheduleParseError(
            f'Schedule line must end with either "on" or "off": {text.strip()}'
        )

    minute, hour, day, month, weekday = (parse_interval(p) for p in parts[:5])
    return ScheduleLine(
        minute=minute,
        hour=hour,
        day=day,
        month=month,
        weekday=weekday,
        enabled=enabled,
    )


def parse_schedule(text: str | None) -> Schedule:
    """Brief: Parse multi-line schedule text, skipping blank lines.

    Inputs:
      - text: Schedule text (None or empty yields the always-active schedule).

    Outputs:
      - Schedule preserving document order.

    Raises:
      - ScheduleParseError: from the first malformed line; the message carries
        the 1-based line number.
    """

    lines = []
    for lineno, raw in enumerate((text or "").splitlines(), start=1):
        if not raw.strip():
            continue
        try:
            lines.append(parse_schedule_line(raw))
        except ScheduleParseError as exc:
            raise ScheduleParseError(f"line {lineno}: {exc}") from exc
    return Schedule(tuple(lines))
