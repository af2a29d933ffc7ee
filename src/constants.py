"""Shared constant values used across the masking engine."""

from typing import Final

PUBLIC_GRANTEE: Final[str] = "PUBLIC"
PUBLIC_BASELINE_PRIORITY: Final[int] = 10
IAM_PRINCIPAL_PREFIX: Final[str] = "IAM:"
ENV_NAME_PLACEHOLDER: Final[str] = "{env_name}"
MASKED_PLACEHOLDER: Final[str] = "XXXX"
DEFAULT_TEXT_TYPE: Final[str] = "VARCHAR(MAX)"
ATTACHED_POLICIES_VIEW: Final[str] = "svv_attached_masking_policy"
