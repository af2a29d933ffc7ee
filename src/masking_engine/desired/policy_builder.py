"""
PolicyBuilder: compute the expected set of masking policy attachments.

For every configured column that parses and exists in the database, one of two
strategies applies:

Public baseline (no superuser in `allowed`)
  - `mask_<column>` attached to PUBLIC at the baseline priority
  - one attachment per resolved `allowed` / `denied` principal

Per-principal (a superuser role is in `allowed`)
  - no PUBLIC attachment
  - one attachment per resolved `allowed` / `masked` / `denied` principal
  - `masked` for every other attachable principal

Overlapping permission sets are resolved by `apply_permission_precedence`
before any attachment is emitted.
"""

from __future__ import annotations

import logging
from collections.abc import Collection, Iterable, Mapping

from src.constants import PUBLIC_BASELINE_PRIORITY, PUBLIC_GRANTEE
from src.enums import PermissionType
from src.logger import get_logger
from src.masking_engine.configuration import Configuration, Permissions
from src.masking_engine.identifiers import Column
from src.masking_engine.models import PolicyAttachment, PolicyDetails
from src.masking_engine.resolve.user_resolver import UserResolver

PermissionSets = Mapping[PermissionType, set[str]]


def apply_permission_precedence(sets: PermissionSets) -> dict[PermissionType, set[str]]:
    """
    Make permission sets disjoint: allowed wins over masked, masked over denied.

        allowed' = allowed
        masked'  = masked - allowed'
        denied'  = denied - allowed' - masked'
    """
    allowed = set(sets.get(PermissionType.ALLOWED, ()))
    masked = set(sets.get(PermissionType.MASKED, ())) - allowed
    denied = set(sets.get(PermissionType.DENIED, ())) - allowed - masked
    return {
        PermissionType.ALLOWED: allowed,
        PermissionType.MASKED: masked,
        PermissionType.DENIED: denied,
    }


class PolicyBuilder:
    """Derive expected PolicyAttachments from configuration and resolved principals."""

    def __init__(
        self,
        config: Configuration,
        user_resolver: UserResolver,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.user_resolver = user_resolver
        self.logger = logger or get_logger("builder")

    # ---------- public API ----------

    def build_expected_state(
        self, column_types: Mapping[str, str], db_users: Collection[str]
    ) -> list[PolicyAttachment]:
        """
        Expected attachments for every configured column present in `column_types`.

        `db_users` holds upper-cased principal names; only principals in it receive
        attachments (a scoped sync passes a subset).

        A column listed more than once yields one attachment per key: the first
        entry in document order wins, and every conflicting later entry is logged
        as a warning and dropped.
        """
        expected: dict[str, PolicyAttachment] = {}
        for column_id, permissions in self.config.columns_config():
            for policy in self.build_policies_for_column(
                column_id, permissions, column_types, db_users
            ):
                kept = expected.setdefault(policy.key, policy)
                if kept != policy:
                    self.logger.warning(
                        "conflicting masking policy for %s on %s: keeping %s (priority %d), "
                        "ignoring %s (priority %d)",
                        policy.grantee,
                        policy.column_id,
                        kept.policy_name,
                        kept.priority,
                        policy.policy_name,
                        policy.priority,
                    )
        return list(expected.values())

    def build_policies_for_column(
        self,
        column_id: str,
        permissions: Permissions | None,
        column_types: Mapping[str, str],
        db_users: Collection[str],
    ) -> list[PolicyAttachment]:
        column = Column.parse(column_id)
        if column is None:
            self.logger.debug("skipping malformed column identifier '%s'", column_id)
            return []
        if column_id not in column_types:
            return []

        if self.user_resolver.superuser_allowed(permissions):
            return self._build_per_user_policies(column, permissions, db_users)
        return self._build_public_baseline_policies(column, permissions, db_users)

    # ---------- strategies ----------

    def _build_public_baseline_policies(
        self,
        column: Column,
        permissions: Permissions | None,
        db_users: Collection[str],
    ) -> list[PolicyAttachment]:
        masked = self._details(PermissionType.MASKED, column)
        policies = [
            PolicyAttachment.for_column(
                PolicyDetails(name=masked.name, priority=PUBLIC_BASELINE_PRIORITY),
                column,
                PUBLIC_GRANTEE,
            )
        ]
        if not permissions:
            return policies

        sets = apply_permission_precedence(self._resolve_permission_sets(permissions))
        for permission_type in (PermissionType.ALLOWED, PermissionType.DENIED):
            policies += self._entries_for_users(
                _present(sets[permission_type], db_users), permission_type, column
            )
        return policies

    def _build_per_user_policies(
        self,
        column: Column,
        permissions: Permissions | None,
        db_users: Collection[str],
    ) -> list[PolicyAttachment]:
        sets = apply_permission_precedence(self._resolve_permission_sets(permissions))
        implicitly_masked = self.user_resolver.find_implicitly_masked_users(sets, db_users)

        policies: list[PolicyAttachment] = []
        for permission_type in PermissionType:
            policies += self._entries_for_users(
                _present(sets[permission_type], db_users), permission_type, column
            )
        policies += self._entries_for_users(implicitly_masked, PermissionType.MASKED, column)
        return policies

    # ---------- helpers ----------

    def _resolve_permission_sets(
        self, permissions: Permissions | None
    ) -> dict[PermissionType, set[str]]:
        permissions = permissions or {}
        return {
            permission_type: self.user_resolver.resolve_attachable_users(
                permissions.get(permission_type.value)
            )
            for permission_type in PermissionType
        }

    def _entries_for_users(
        self, users: Iterable[str], permission_type: PermissionType, column: Column
    ) -> list[PolicyAttachment]:
        details = self._details(permission_type, column)
        return [PolicyAttachment.for_column(details, column, user) for user in sorted(users)]

    def _details(self, permission_type: PermissionType, column: Column) -> PolicyDetails:
        details = self.config.policy_details(permission_type, column.id)
        if details is None:
            raise ValueError(f"No policy template for permission type '{permission_type}'.")
        return details


def _present(users: Iterable[str], db_users: Collection[str]) -> list[str]:
    """Users whose upper-cased name is in `db_users`."""
    return [user for user in users if user.upper() in db_users]
