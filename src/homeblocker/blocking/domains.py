from __future__ import annotations

from dataclasses import dataclass
from typing import FrozenSet, Iterable, Tuple


def normalize_domain(name: str) -> str:
    """Brief: Canonical fully-qualified form used for all domain comparisons.

    Inputs:
      - name: Domain with or without trailing dot, any case.

    Outputs:
      - str: Lowercased name ending in exactly one ``.``.

    Example:
      >>> normalize_domain("Example.COM")
      'example.com.'
    """

    return str(name).strip().rstrip(".").lower() + "."


def _config_domain(name: str) -> str:
    bare = str(name).strip().rstrip(".").lower()
    if not bare:
        raise ValueError(f"Empty domain in block configuration: {name!r}")
    return bare


@dataclass(frozen=True)
class DomainMatcher:
    """Exact domain keys plus label-aligned wildcard suffixes for one block.

    Every configured domain contributes two exact keys, the bare name and its
    ``www.`` form. Every wildcard domain contributes the suffix
    ``.<domain>.`` which matches the domain itself and any name below it, but
    never a name that merely ends with the same characters
    (``notexample.com.`` is not covered by ``example.com``).
    """

    domains: FrozenSet[str] = frozenset()
    wildcard_suffixes: Tuple[str, ...] = ()

    @classmethod
    def from_lists(
        cls,
        domains: Iterable[str] | None = None,
        wildcard_domains: Iterable[str] | None = None,
    ) -> "DomainMatcher":
        """Brief: Build a matcher from configured domain lists.

        Inputs:
          - domains: Names blocked exactly (plus their ``www.`` form).
          - wildcard_domains: Names blocked together with all subdomains.

        Outputs:
          - DomainMatcher.

        Raises:
          - ValueError: when an entry is empty.
        """

        keys = set()
        for name in domains or ():
            bare = _config_domain(name)
            keys.add(bare + ".")
            keys.add("www." + bare + ".")

        suffixes = []
        for name in wildcard_domains or ():
            suffix = "." + _config_domain(name) + "."
            if suffix not in suffixes:
                suffixes.append(suffix)

        return cls(domains=frozenset(keys), wildcard_suffixes=tuple(suffixes))

    def matches(self, domain: str) -> bool:
        qname = domain.lower()
        if not qname.endswith("."):
            qname = normalize_domain(qname)
        if qname in self.domains:
            return True
        # Leading dot lets the wildcard base domain match itself.
        bounded = "." + qname
        return any(bounded.endswith(suffix) for suffix in self.wildcard_suffixes)
