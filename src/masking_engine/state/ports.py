"""Ports for reading observed database state.

Defines:
- Row shape returned by query executors
- QueryExecutor protocol for pluggable implementations (psycopg2, fakes, etc.)
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any, Protocol, TypeAlias

Row: TypeAlias = Mapping[str, Any]


class QueryExecutor(Protocol):
    """Port for anything that can run one SQL statement and return its rows."""

    def execute(self, sql: str) -> Sequence[Row]:
        """Run `sql`; statements without a result set return an empty sequence."""
        ...
