"""
Identifier utilities for the masking engine.

This module defines:
- Canonical column identity dataclass: Column.
- Helpers to quote, format, and parse column identifiers and grantees.
- Deterministic builder for masking policy names.

Conventions:
- Verbs: quote_*, format_*, parse_*, build_*.
- A "column id" is the unquoted dot-delimited form 'schema.table.column'.
- Redshift identifiers are quoted with double quotes; embedded double quotes are doubled.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.constants import PUBLIC_GRANTEE

# -----------------------------
# Core name data structure
# -----------------------------


@dataclass(frozen=True, slots=True)
class Column:
    """Three-part column name: schema.table.column."""

    schema: str
    table: str
    column: str

    @property
    def id(self) -> str:
        """Unquoted column id: 'schema.table.column'."""
        return format_column_id(self.schema, self.table, self.column)

    @classmethod
    def parse(cls, identifier: str) -> Column | None:
        """
        Parse 'schema.table.column' into a Column.

        Returns None unless the identifier has exactly three dot-separated segments.
        """
        parts = identifier.split(".")
        if len(parts) != 3:
            return None
        return cls(schema=parts[0], table=parts[1], column=parts[2])


# -----------------------------
# String helpers
# -----------------------------


def format_column_id(schema: str, table: str, column: str) -> str:
    """Return the unquoted column id from parts: 'schema.table.column'."""
    return f"{schema}.{table}.{column}"


def quote_identifier(identifier: str) -> str:
    """Quote a single SQL identifier using double quotes, doubling any embedded quotes."""
    text = str(identifier)
    return '"' + text.replace('"', '""') + '"'


def quote_grantee(grantee: str) -> str:
    """
    Render a grantee for ATTACH/DETACH statements.

    PUBLIC is a keyword and is emitted bare; every other grantee is a quoted identifier.
    """
    if grantee.upper() == PUBLIC_GRANTEE:
        return PUBLIC_GRANTEE
    return quote_identifier(grantee)


def escape_sql_literal(value: str | None) -> str:
    """
    Escape a Python string for use as a single-quoted SQL literal.
    Doubles single quotes per SQL rules. Empty/None → empty string.
    """
    return (value or "").replace("'", "''")


def quote_sql_literal(value: str | None) -> str:
    """Return `value` as a single-quoted SQL string literal."""
    return f"'{escape_sql_literal(value)}'"


# -----------------------------
# Policy name builder
# -----------------------------


def build_policy_name(prefix: str, column_id: str) -> str:
    """
    Build the deterministic masking policy name for a column.

    Pattern:
        <prefix>_<schema>_<table>_<column>

    The name doubles as the SQL object name, so it must not change between runs.
    """
    return f"{prefix}_{column_id.replace('.', '_')}"
