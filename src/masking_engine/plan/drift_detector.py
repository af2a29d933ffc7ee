"""
DriftDetector: expected vs. actual attachments -> Drift.

Both sides are indexed by `PolicyAttachment.key`, so grantee case differences
between configuration and the database never register as drift.

- expected key absent from actual         -> missing
- key on both sides, policy/priority differ -> mismatched
- actual key absent from expected         -> extra

No side effects beyond logging; corrections are applied by SqlExecutor.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from src.logger import get_logger
from src.masking_engine.models import PolicyAttachment
from src.masking_engine.plan.drift import Drift, Mismatch


class DriftDetector:
    """Compute the Drift between two attachment collections."""

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self.logger = logger or get_logger("drift")

    def detect(
        self,
        expected: Iterable[PolicyAttachment],
        actual: Iterable[PolicyAttachment],
        silent: bool = False,
    ) -> Drift:
        """Diff `expected` against `actual`; `silent` suppresses per-finding warnings."""
        self.logger.info("detecting drift in masking policies")

        expected_by_key = _index(expected)
        actual_by_key = _index(actual)

        missing: list[PolicyAttachment] = []
        mismatched: list[Mismatch] = []
        for key, wanted in expected_by_key.items():
            found = actual_by_key.get(key)
            if found is None:
                missing.append(wanted)
            elif not wanted.matches(found):
                mismatched.append(Mismatch(expected=wanted, actual=found))

        extra = [found for key, found in actual_by_key.items() if key not in expected_by_key]

        drift = Drift(missing=tuple(missing), extra=tuple(extra), mismatched=tuple(mismatched))
        if not silent:
            self._log_drift(drift)
        return drift

    # ---------- logging ----------

    def _log_drift(self, drift: Drift) -> None:
        for attachment in drift.missing:
            self.logger.warning("MISSING: %s on %s", attachment.grantee, attachment.column_id)
        for mismatch in drift.mismatched:
            self.logger.warning(
                "MISMATCH: %s on %s (Expected %s Priority %d)",
                mismatch.expected.grantee,
                mismatch.expected.column_id,
                mismatch.expected.policy_name,
                mismatch.expected.priority,
            )
        for attachment in drift.extra:
            self.logger.warning("EXTRA: %s on %s", attachment.grantee, attachment.column_id)


def _index(attachments: Iterable[PolicyAttachment]) -> dict[str, PolicyAttachment]:
    """Index attachments by key; a later duplicate replaces an earlier one."""
    return {attachment.key: attachment for attachment in attachments}
