"""
PrincipalDirectory: case-insensitive index of database principals.

Redshift reports principal names in their stored case while configuration and
the identity directory use their own casing. Every grantee comparison goes
through this index: upper-cased name -> canonical (database) name.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from types import MappingProxyType


class PrincipalDirectory:
    """Canonical principal names keyed by their upper-cased form."""

    def __init__(self, principals: Iterable[str]) -> None:
        self._by_upper: Mapping[str, str] = MappingProxyType(
            {name.upper(): name for name in principals}
        )

    def __len__(self) -> int:
        return len(self._by_upper)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.upper() in self._by_upper

    def __iter__(self) -> Iterator[str]:
        return iter(self._by_upper.values())

    def lookup(self, name: str) -> str | None:
        """Canonical name for `name` (any case), or None if it is not a principal."""
        return self._by_upper.get(name.upper())

    def upper_names(self) -> frozenset[str]:
        """All principal names, upper-cased."""
        return frozenset(self._by_upper)
