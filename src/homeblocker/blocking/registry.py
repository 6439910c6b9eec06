"""Named blocking rules and the block/allow decision.

Brief:
  ``BlockRegistry`` is built once at startup from the ``blocks`` section of
  the configuration and never changes afterwards, so any number of request
  threads may share it without locking. ``DecisionEngine`` answers whether a
  query name is blocked at a given time.

Inputs:
  - Mapping of block name -> block configuration (``BlockConfig`` models or
    plain mappings with ``domains``, ``wildcard_domains`` and ``schedule``).

Outputs:
  - Boolean decisions consumed by the DNS gateway.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Iterator, List, Mapping, Optional, Tuple

from .domains import DomainMatcher
from .schedule import Schedule, ScheduleParseError, parse_schedule

logger = logging.getLogger(__name__)


def _field(cfg: Any, key: str) -> Any:
    if isinstance(cfg, Mapping):
        return cfg.get(key)
    return getattr(cfg, key, None)


@dataclass(frozen=True)
class Block:
    name: str
    schedule: Schedule
    matcher: DomainMatcher

    def blocks(self, domain: str, now: datetime) -> bool:
        """Brief: True when the schedule is active and the domain is covered."""

        return self.schedule.is_active(now) and self.matcher.matches(domain)


class BlockRegistry:
    """Read-only collection of named blocks.

    Blocks are kept in name order. The decision is an OR across blocks and
    does not depend on that order; a fixed order keeps logs and tests
    reproducible.
    """

    __slots__ = ("_blocks",)

    def __init__(self, blocks: Optional[List[Block]] = None) -> None:
        self._blocks: Tuple[Block, ...] = tuple(
            sorted(blocks or [], key=lambda b: b.name)
        )

    @classmethod
    def from_config(cls, blocks_cfg: Optional[Mapping[str, Any]]) -> "BlockRegistry":
        """Brief: Parse every configured block into a registry.

        Inputs:
          - blocks_cfg: Mapping of block name -> block configuration.

        Outputs:
          - BlockRegistry.

        Raises:
          - ScheduleParseError: when a schedule is malformed; the message is
            prefixed with the block name.
          - ValueError: when a domain entry is empty.
        """

        blocks: List[Block] = []
        for name, cfg in (blocks_cfg or {}).items():
            try:
                schedule = parse_schedule(_field(cfg, "schedule"))
            except ScheduleParseError as exc:
                raise ScheduleParseError(f"block {name!r}: {exc}") from exc
            try:
                matcher = DomainMatcher.from_lists(
                    _field(cfg, "domains"), _field(cfg, "wildcard_domains")
                )
            except ValueError as exc:
                raise ValueError(f"block {name!r}: {exc}") from exc

            logger.debug(
                "Block %s: %d schedule lines, %d domain keys, %d wildcard domains",
                name,
                len(schedule),
                len(matcher.domains),
                len(matcher.wildcard_suffixes),
            )
            blocks.append(Block(name=str(name), schedule=schedule, matcher=matcher))
        return cls(blocks)

    def __iter__(self) -> Iterator[Block]:
        return iter(self._blocks)

    def __len__(self) -> int:
        return len(self._blocks)

    def names(self) -> List[str]:
        return [b.name for b in self._blocks]


class DecisionEngine:
    """Answers ``is_blocked(domain, now)`` against a fixed registry.

    Example use:
        >>> engine = DecisionEngine(BlockRegistry.from_config(
        ...     {"social": {"domains": ["example.com"], "schedule": ""}}))
        >>> engine.is_blocked("www.example.com.")
        True
    """

    def __init__(self, registry: BlockRegistry) -> None:
        self.registry = registry

    def is_blocked(self, domain: str, now: Optional[datetime] = None) -> bool:
        """Brief: True if any block is active at ``now`` and covers ``domain``.

        Inputs:
          - domain: Query name, normally fully qualified with trailing dot.
          - now: Timestamp to evaluate; defaults to the current local time.

        Outputs:
          - bool.
        """

        if now is None:
            now = datetime.now()
        return any(block.blocks(domain, now) for block in self.registry)

    def blocking_rules(self, domain: str, now: Optional[datetime] = None) -> List[str]:
        """Brief: Names of all blocks currently blocking ``domain``."""

        if now is None:
            now = datetime.now()
        return [block.name for block in self.registry if block.blocks(domain, now)]
