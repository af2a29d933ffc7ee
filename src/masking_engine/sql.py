"""
SQL string builders for Redshift masking policy operations.

All functions return fully-formed SQL strings.

Design guarantees
- Deterministic, side-effect free string generation.
- Grantees go through `quote_grantee`; catalog values through `quote_sql_literal`.
- No business rules: higher layers (builder/detector/executor) decide policy.
"""

from __future__ import annotations

from collections.abc import Iterable
from types import MappingProxyType
from typing import Final

from src.constants import ATTACHED_POLICIES_VIEW, MASKED_PLACEHOLDER
from src.enums import PermissionType
from src.masking_engine.identifiers import Column, quote_grantee, quote_sql_literal
from src.masking_engine.models import PolicyAttachment

# Value expression of each policy kind; `{type}` is the normalized column type.
POLICY_USING_CLAUSES: Final = MappingProxyType(
    {
        PermissionType.MASKED: f"('{MASKED_PLACEHOLDER}'::{{type}})",
        PermissionType.ALLOWED: "(value)",
        PermissionType.DENIED: "(NULL::{type})",
    }
)

SQL_SELECT_ATTACHED_POLICIES: Final[str] = f"""
SELECT policy_name, schema_name, table_name,
       JSON_EXTRACT_ARRAY_ELEMENT_TEXT(input_columns, 0) AS column_name,
       grantee, priority
FROM {ATTACHED_POLICIES_VIEW}
"""

SQL_SELECT_USERS: Final[str] = "SELECT usename FROM pg_user"


def sql_create_masking_policy(
    permission_type: PermissionType, policy_name: str, data_type: str
) -> str:
    """CREATE MASKING POLICY <name> IF NOT EXISTS WITH(value <type>) USING (...)."""
    using_clause = POLICY_USING_CLAUSES[permission_type].format(type=data_type)
    return (
        f"CREATE MASKING POLICY {policy_name} IF NOT EXISTS "
        f"WITH(value {data_type}) USING {using_clause}"
    )


def sql_batch(statements: Iterable[str]) -> str:
    """Join statements into one ';'-separated batch with a trailing ';'."""
    return ";\n".join(statements) + ";"


def sql_attach_masking_policy(attachment: PolicyAttachment) -> str:
    """ATTACH MASKING POLICY ... ON schema.table (column) TO <grantee> PRIORITY <n>;"""
    return (
        f"ATTACH MASKING POLICY {attachment.policy_name}\n"
        f"ON {attachment.schema}.{attachment.table} ({attachment.column})\n"
        f"TO {quote_grantee(attachment.grantee)}\n"
        f"PRIORITY {attachment.priority};\n"
    )


def sql_detach_masking_policy(attachment: PolicyAttachment) -> str:
    """DETACH MASKING POLICY ... ON schema.table (column) FROM <grantee>;"""
    return (
        f"DETACH MASKING POLICY {attachment.policy_name}\n"
        f"ON {attachment.schema}.{attachment.table} ({attachment.column})\n"
        f"FROM {quote_grantee(attachment.grantee)};\n"
    )


def sql_select_column_types(columns: Iterable[Column]) -> str:
    """
    SQL to fetch data type and character length for each of `columns`.

    Raises:
        ValueError: if `columns` is empty (an empty WHERE clause is not valid SQL).
    """
    conditions = [
        f"(table_schema = {quote_sql_literal(column.schema)} "
        f"AND table_name = {quote_sql_literal(column.table)} "
        f"AND column_name = {quote_sql_literal(column.column)})"
        for column in columns
    ]
    if not conditions:
        raise ValueError("At least one column is required to select column types.")
    where = "\n OR ".join(conditions)
    return f"""
SELECT table_schema, table_name, column_name, data_type, character_maximum_length
FROM information_schema.columns
WHERE {where}
"""
