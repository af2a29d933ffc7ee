"""
DatabaseQueries: read-only view of the live masking state.

Reads
-----
- column data types for configured columns   [information_schema.columns]
- currently attached masking policies         [svv_attached_masking_policy]
- database principals                         [pg_user]

Notes
-----
- Every read goes through the injected `QueryExecutor`.
- Errors are not caught here; a failed read aborts the cycle before any write.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from src.logger import get_logger
from src.masking_engine.identifiers import Column, format_column_id
from src.masking_engine.models import PolicyAttachment
from src.masking_engine.sql import (
    SQL_SELECT_ATTACHED_POLICIES,
    SQL_SELECT_USERS,
    sql_select_column_types,
)
from src.masking_engine.state.ports import QueryExecutor
from src.masking_engine.types import normalize_data_type


class DatabaseQueries:
    """Issue the read queries of one sync cycle."""

    def __init__(self, executor: QueryExecutor, logger: logging.Logger | None = None) -> None:
        self.executor = executor
        self.logger = logger or get_logger("queries")

    def fetch_column_types(self, columns: Sequence[Column]) -> dict[str, str]:
        """
        Return {column_id: normalized masking type} for the columns that exist.

        Columns missing from information_schema are simply absent from the result.
        """
        if not columns:
            return {}

        self.logger.info("fetching data types for %d columns", len(columns))
        rows = self.executor.execute(sql_select_column_types(columns))

        column_types: dict[str, str] = {}
        for row in rows:
            column_id = format_column_id(
                row["table_schema"], row["table_name"], row["column_name"]
            )
            length = row.get("character_maximum_length")
            column_types[column_id] = normalize_data_type(
                row["data_type"],
                int(length) if length is not None else None,
                logger=self.logger,
            )
        return column_types

    def fetch_existing_policies(self) -> list[PolicyAttachment]:
        rows = self.executor.execute(SQL_SELECT_ATTACHED_POLICIES)
        return [
            PolicyAttachment(
                policy_name=row["policy_name"],
                schema=row["schema_name"],
                table=row["table_name"],
                column=row["column_name"],
                grantee=row["grantee"],
                priority=int(row["priority"]),
            )
            for row in rows
        ]

    def fetch_users(self) -> list[str]:
        return [row["usename"] for row in self.executor.execute(SQL_SELECT_USERS)]
