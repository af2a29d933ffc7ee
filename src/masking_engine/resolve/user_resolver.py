"""
UserResolver: role references -> canonically cased database principals.

A configured role is classified through `Configuration.user_types` and then
resolved by the function registered for its `UserType`:

- iam_role       -> directory identities in the role's AWS groups, as "IAM:<NAME>"
- redshift_user  -> the role itself after `{env_name}` substitution
- superuser      -> nothing (policies cannot be attached to superusers)

Notes
-----
- Never raises on unknown input: problems are logged and the role contributes nothing.
- Every returned name exists in the PrincipalDirectory, in its database casing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from types import MappingProxyType
from typing import Final

from src.constants import IAM_PRINCIPAL_PREFIX
from src.enums import PermissionType, UserType
from src.logger import get_logger
from src.masking_engine.configuration import (
    UNATTACHABLE_USER_TYPES,
    Configuration,
    Permissions,
)
from src.masking_engine.resolve.directory import PrincipalDirectory

# IAM role -> AWS groups whose members assume it.
IAM_ROLE_GROUPS: Final = MappingProxyType(
    {
        "dwuser": frozenset({"dwuser", "dwusernonprod"}),
        "dwpoweruser": frozenset({"dwpoweruser", "dwpowerusernonprod"}),
        "dwadmin": frozenset({"dwadmin", "dwadminnonprod"}),
    }
)

AWS_GROUPS_KEY: Final[str] = "aws_groups"


def resolve_iam_groups(role_name: str) -> frozenset[str]:
    """AWS groups for an IAM role; roles outside the table map to themselves."""
    return IAM_ROLE_GROUPS.get(role_name, frozenset({role_name}))


class UserResolver:
    """Resolve configured roles against the principal directory."""

    def __init__(
        self,
        config: Configuration,
        directory: PrincipalDirectory,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.directory = directory
        self.logger = logger or get_logger("resolver")
        self._resolvers: Mapping[UserType, Callable[[str], list[str]]] = MappingProxyType(
            {
                UserType.IAM_ROLE: self._resolve_iam_role,
                UserType.REDSHIFT_USER: self._resolve_redshift_user,
            }
        )

    # ---------- public API ----------

    def resolve_attachable_users(self, role_names: Sequence[str] | None) -> set[str]:
        """Principals that `role_names` resolve to, excluding unattachable roles."""
        if not role_names:
            return set()

        users: set[str] = set()
        for role_name in role_names:
            users.update(self._resolve_role(role_name))
        return users

    def superuser_allowed(self, permissions: Permissions | None) -> bool:
        """True when the `allowed` list names a superuser-classified role."""
        if not permissions:
            return False
        allowed = permissions.get(PermissionType.ALLOWED.value) or ()
        return any(self._classify(role_name) in UNATTACHABLE_USER_TYPES for role_name in allowed)

    def find_implicitly_masked_users(
        self,
        explicit_permission_sets: Mapping[PermissionType, set[str]],
        all_db_users: Iterable[str],
    ) -> set[str]:
        """
        Attachable principals in `all_db_users` not named in any explicit set.

        `all_db_users` may be in any case; results are canonical names. Names not
        in the directory and superuser-classified principals are skipped.
        """
        explicit: set[str] = set().union(*explicit_permission_sets.values())
        superusers = self.config.superuser_names

        attachable: set[str] = set()
        for name in all_db_users:
            canonical = self.directory.lookup(name)
            if canonical is None or canonical.upper() in superusers:
                continue
            attachable.add(canonical)
        return attachable - explicit

    # ---------- per-type resolution ----------

    def _resolve_role(self, role_name: str) -> list[str]:
        user_type = self._classify(role_name)
        if user_type is None:
            return []

        if user_type == UserType.SUPERUSER:
            self.logger.info("skipping superuser '%s' - policies cannot be attached", role_name)
            return []

        resolver = self._resolvers.get(user_type)
        if resolver is None:
            self.logger.warning(
                "unknown user type '%s' for '%s'",
                self.config.classification_name(role_name),
                role_name,
            )
            return []
        return resolver(role_name)

    def _resolve_iam_role(self, role_name: str) -> list[str]:
        target_groups = resolve_iam_groups(role_name)
        users: list[str] = []
        for identity, attributes in self.config.directory.items():
            groups = (attributes or {}).get(AWS_GROUPS_KEY) or ()
            if target_groups.isdisjoint(groups):
                continue
            principal = self.directory.lookup(f"{IAM_PRINCIPAL_PREFIX}{identity.upper()}")
            if principal is None:
                self.logger.warning(
                    "user '%s%s' not found in database", IAM_PRINCIPAL_PREFIX, identity.upper()
                )
                continue
            users.append(principal)
        return users

    def _resolve_redshift_user(self, role_name: str) -> list[str]:
        rendered = self.config.render_role_name(role_name)
        principal = self.directory.lookup(rendered)
        if principal is None:
            self.logger.warning("user '%s' not found in database", rendered)
            return []
        return [principal]

    def _classify(self, role_name: str) -> UserType | None:
        user_type = self.config.classify(role_name)
        if user_type is None:
            self.logger.warning("role '%s' not found in user_types", role_name)
        return user_type
