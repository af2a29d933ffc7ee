"""
Masking configuration model.

`Configuration` wraps the two parsed configuration documents:

- the masking-policy document (`user_types` + ordered `columns` list), and
- the directory document (external identity name -> attributes, incl. `aws_groups`).

It owns the fixed permission -> (policy prefix, priority) table and answers
naming, priority and role-classification questions. It does not talk to the
database and does not resolve roles to principals (see `UserResolver`).

Notes
-----
- Instances are immutable; mappings are exposed as read-only proxies.
- Structural problems surface at construction time as `ConfigurationError`.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Final

from src.constants import ENV_NAME_PLACEHOLDER
from src.enums import PermissionType, UserType
from src.masking_engine.identifiers import build_policy_name
from src.masking_engine.models import PolicyDetails

MASKING_POLICIES_KEY: Final[str] = "masking_policies"
USER_TYPES_KEY: Final[str] = "user_types"
COLUMNS_KEY: Final[str] = "columns"


@dataclass(frozen=True, slots=True)
class PolicyTemplate:
    """Policy name prefix and attachment priority for one permission type."""

    prefix: str
    priority: int


PERMISSION_POLICY_MAP: Final = MappingProxyType(
    {
        PermissionType.ALLOWED: PolicyTemplate(prefix="unmask", priority=300),
        PermissionType.DENIED: PolicyTemplate(prefix="deny", priority=200),
        PermissionType.MASKED: PolicyTemplate(prefix="mask", priority=100),
    }
)

# User types that can never carry an individual attachment.
UNATTACHABLE_USER_TYPES: Final = frozenset({UserType.SUPERUSER})


class ConfigurationError(ValueError):
    """Raised when a configuration document is structurally unusable."""


# A permissions block maps a permission type name to the roles it lists.
Permissions = Mapping[str, Sequence[str] | None]


@dataclass(frozen=True)
class Configuration:
    """Read-only view over the masking and directory documents."""

    user_types: Mapping[str, tuple[str, ...]]
    columns: tuple[Mapping[str, Permissions | None], ...]
    directory: Mapping[str, Mapping[str, Any]]
    env_name: str
    _classification: Mapping[str, str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        # First classification listing a role wins.
        classification: dict[str, str] = {}
        for type_name, role_names in self.user_types.items():
            for role_name in role_names:
                classification.setdefault(role_name, type_name)
        object.__setattr__(self, "_classification", MappingProxyType(classification))

    # ---------- construction ----------

    @classmethod
    def from_documents(
        cls,
        masking_document: Mapping[str, Any],
        directory_document: Mapping[str, Any] | None,
        env_name: str,
    ) -> Configuration:
        """
        Build a Configuration from parsed documents.

        `masking_document` may be the root document (with a `masking_policies`
        key) or the inner block itself.

        Raises:
            ConfigurationError: when a document or one of its containers has the wrong shape.
        """
        if not isinstance(masking_document, Mapping):
            raise ConfigurationError("Masking document must be a mapping.")
        block = masking_document.get(MASKING_POLICIES_KEY, masking_document)
        if not isinstance(block, Mapping):
            raise ConfigurationError(f"'{MASKING_POLICIES_KEY}' must be a mapping.")

        raw_user_types = block.get(USER_TYPES_KEY) or {}
        if not isinstance(raw_user_types, Mapping):
            raise ConfigurationError(f"'{USER_TYPES_KEY}' must be a mapping.")
        for type_name, roles in raw_user_types.items():
            if roles is not None and (not isinstance(roles, Sequence) or isinstance(roles, str)):
                raise ConfigurationError(f"'{USER_TYPES_KEY}.{type_name}' must be a list.")
        raw_columns = block.get(COLUMNS_KEY) or []
        if not isinstance(raw_columns, Sequence) or isinstance(raw_columns, str):
            raise ConfigurationError(f"'{COLUMNS_KEY}' must be a list.")
        for entry in raw_columns:
            if not isinstance(entry, Mapping):
                raise ConfigurationError(f"Each '{COLUMNS_KEY}' entry must be a mapping.")

        directory = directory_document or {}
        if not isinstance(directory, Mapping):
            raise ConfigurationError("Directory document must be a mapping.")

        user_types = MappingProxyType(
            {str(name): tuple(roles or ()) for name, roles in raw_user_types.items()}
        )
        columns = tuple(MappingProxyType(dict(entry)) for entry in raw_columns)
        return cls(
            user_types=user_types,
            columns=columns,
            directory=MappingProxyType(dict(directory)),
            env_name=env_name,
        )

    # ---------- policy naming ----------

    def policy_name(self, permission_type: PermissionType | str, column_id: str) -> str | None:
        details = self.policy_details(permission_type, column_id)
        return details.name if details else None

    def policy_priority(self, permission_type: PermissionType | str) -> int | None:
        template = self._template(permission_type)
        return template.priority if template else None

    def policy_details(
        self, permission_type: PermissionType | str, column_id: str
    ) -> PolicyDetails | None:
        """Name and priority of the `permission_type` policy on `column_id`, if recognized."""
        template = self._template(permission_type)
        if template is None:
            return None
        return PolicyDetails(
            name=build_policy_name(template.prefix, column_id),
            priority=template.priority,
        )

    @staticmethod
    def _template(permission_type: PermissionType | str) -> PolicyTemplate | None:
        parsed = PermissionType.parse(permission_type)
        return PERMISSION_POLICY_MAP[parsed] if parsed else None

    # ---------- columns ----------

    def columns_config(self) -> tuple[tuple[str, Permissions | None], ...]:
        """Configured (column id, permissions block) pairs in document order."""
        return tuple(
            (column_id, permissions)
            for entry in self.columns
            for column_id, permissions in entry.items()
        )

    # ---------- role classification ----------

    def classify(self, role_name: str) -> UserType | None:
        """
        Classification of `role_name`.

        Returns None when no classification lists the role, and UserType.UNKNOWN
        when it is listed under a classification this engine does not handle.
        """
        type_name = self._classification.get(role_name)
        if type_name is None:
            return None
        try:
            user_type = UserType(type_name)
        except ValueError:
            return UserType.UNKNOWN
        return user_type

    def classification_name(self, role_name: str) -> str | None:
        """Raw classification key listing `role_name`, as written in the document."""
        return self._classification.get(role_name)

    def render_role_name(self, role_name: str) -> str:
        """Substitute the environment name into a role template."""
        return role_name.replace(ENV_NAME_PLACEHOLDER, self.env_name)

    @property
    def superuser_names(self) -> frozenset[str]:
        """Upper-cased names classified as superuser."""
        return frozenset(
            name.upper() for name in self.user_types.get(UserType.SUPERUSER.value, ())
        )
