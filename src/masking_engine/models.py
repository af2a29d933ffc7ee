"""
Policy attachment value types.

A PolicyAttachment is one (policy, column, grantee, priority) binding. The same
type is used for the expected state (derived from configuration) and the actual
state (read from svv_attached_masking_policy); the two are compared by `key`.
"""

from __future__ import annotations

from dataclasses import dataclass

from src.masking_engine.identifiers import Column, format_column_id


@dataclass(frozen=True, slots=True)
class PolicyDetails:
    """Resolved name and priority of the policy for one permission type on one column."""

    name: str
    priority: int


@dataclass(frozen=True, slots=True)
class PolicyAttachment:
    """A masking policy attached to one column for one grantee."""

    policy_name: str
    schema: str
    table: str
    column: str
    grantee: str
    priority: int

    @property
    def column_id(self) -> str:
        """Unquoted column id: 'schema.table.column'."""
        return format_column_id(self.schema, self.table, self.column)

    @property
    def key(self) -> str:
        """Reconciliation identity; grantee case differences collapse to one key."""
        return f"{self.column_id}::{self.grantee.upper()}"

    def matches(self, other: PolicyAttachment) -> bool:
        """True when both sides carry the same policy at the same priority."""
        return self.policy_name == other.policy_name and self.priority == other.priority

    @classmethod
    def for_column(
        cls, details: PolicyDetails, column: Column, grantee: str
    ) -> PolicyAttachment:
        """Build an attachment of `details` on `column` for `grantee`."""
        return cls(
            policy_name=details.name,
            schema=column.schema,
            table=column.table,
            column=column.column,
            grantee=grantee,
            priority=details.priority,
        )
