"""Schedule parsing, domain matching and the block/allow decision."""

from .domains import DomainMatcher, normalize_domain
from .registry import Block, BlockRegistry, DecisionEngine
from .schedule import (
    Interval,
    Schedule,
    ScheduleLine,
    ScheduleParseError,
    parse_interval,
    parse_schedule,
    parse_schedule_line,
)

__all__ = [
    "Block",
    "BlockRegistry",
    "DecisionEngine",
    "DomainMatcher",
    "Interval",
    "Schedule",
    "ScheduleLine",
    "ScheduleParseError",
    "normalize_domain",
    "parse_interval",
    "parse_schedule",
    "parse_schedule_line",
]
