"""
psycopg2-backed QueryExecutor.

Runs each statement on a RealDictCursor so rows come back keyed by column name.
Exceptions are not caught; callers decide whether a failure is fatal.
"""

from __future__ import annotations

from typing import Any

import psycopg2
from psycopg2.extensions import connection as PgConnection
from psycopg2.extras import RealDictCursor


class PsycopgQueryExecutor:
    """QueryExecutor over a psycopg2 connection (autocommit, one statement batch per call)."""

    def __init__(self, connection: PgConnection) -> None:
        self.connection = connection
        self.connection.autocommit = True

    @classmethod
    def connect(cls, dsn: str, **kwargs: Any) -> PsycopgQueryExecutor:
        """Open a new connection from a libpq DSN string."""
        return cls(psycopg2.connect(dsn, **kwargs))

    def execute(self, sql: str) -> list[dict[str, Any]]:
        with self.connection.cursor(cursor_factory=RealDictCursor) as cursor:
            cursor.execute(sql)
            if cursor.description is None:
                return []
            return [dict(row) for row in cursor.fetchall()]

    def close(self) -> None:
        self.connection.close()
