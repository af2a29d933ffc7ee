"""Enumerations used throughout the masking engine."""

from enum import StrEnum


class PermissionType(StrEnum):
    """Visibility outcome a principal can be given on a column."""

    ALLOWED = "allowed"
    DENIED = "denied"
    MASKED = "masked"

    @classmethod
    def parse(cls, value: "str | PermissionType") -> "PermissionType | None":
        """Return the member for `value`, or None if it is not a permission type."""
        try:
            return cls(value)
        except ValueError:
            return None


class UserType(StrEnum):
    """Classification of a configured role; selects how it resolves to principals."""

    IAM_ROLE = "iam_role"
    REDSHIFT_USER = "redshift_user"
    SUPERUSER = "superuser"
    UNKNOWN = "unknown"


class CorrectionOperation(StrEnum):
    """Kind of corrective statement applied to an attachment."""

    ATTACH = "attach"
    DETACH = "detach"
