"""
SqlExecutor

Writes to the database in two places of a sync cycle:

  1) create_masking_policies: one CREATE ... IF NOT EXISTS per column and
     permission type, sent as a single batch
  2) apply_corrections: detach `drift.to_detach`, then attach `drift.to_attach`

Respects ExecutionPolicy:
- dry_run=True  -> render and log every statement, execute none; corrections
  are reported SKIPPED with the rendered SQL as message

Each correction runs independently: a failure is logged, recorded as FAILED,
and the remaining corrections still run. SQL rendering lives in `sql.py`.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping

from src.enums import CorrectionOperation, PermissionType
from src.logger import get_logger
from src.masking_engine.configuration import Configuration
from src.masking_engine.execute.ports import (
    ApplyReport,
    ApplyStatus,
    CorrectionResult,
    ExecutionPolicy,
)
from src.masking_engine.models import PolicyAttachment
from src.masking_engine.plan.drift import Drift
from src.masking_engine.sql import (
    sql_attach_masking_policy,
    sql_batch,
    sql_create_masking_policy,
    sql_detach_masking_policy,
)
from src.masking_engine.state.ports import QueryExecutor


class SqlExecutor:
    """Create policy definitions and apply attach/detach corrections."""

    def __init__(
        self,
        config: Configuration,
        executor: QueryExecutor,
        policy: ExecutionPolicy | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.executor = executor
        self.policy = policy or ExecutionPolicy()
        self.logger = logger or get_logger("executor")

    # ---------- policy definitions ----------

    def create_masking_policies(self, column_types: Mapping[str, str]) -> None:
        """Ensure every masking policy exists for each column in `column_types`."""
        if not column_types:
            return

        self.logger.info("creating masking policies")
        statements = [
            sql_create_masking_policy(
                permission_type,
                self.config.policy_name(permission_type, column_id),
                data_type,
            )
            for column_id, data_type in column_types.items()
            for permission_type in PermissionType
        ]
        sql = sql_batch(statements)

        if self.policy.dry_run:
            self._log_dry_run(f"create masking policies for {len(column_types)} columns", sql)
            return

        self.executor.execute(sql)
        self.logger.info("created/verified policies for %d columns", len(column_types))

    # ---------- corrections ----------

    def apply_corrections(self, drift: Drift) -> ApplyReport:
        """Detach extra/stale attachments, then attach missing/expected ones."""
        if drift.is_empty:
            self.logger.info("no changes needed")
            return ApplyReport()

        results = [
            self._apply(attachment, CorrectionOperation.DETACH, sql_detach_masking_policy(attachment))
            for attachment in drift.to_detach
        ]
        results += [
            self._apply(attachment, CorrectionOperation.ATTACH, sql_attach_masking_policy(attachment))
            for attachment in drift.to_attach
        ]
        return ApplyReport(results=tuple(results))

    def _apply(
        self,
        attachment: PolicyAttachment,
        operation: CorrectionOperation,
        sql: str,
    ) -> CorrectionResult:
        if self.policy.dry_run:
            self._log_dry_run(_describe(operation, attachment, dry_run=True), sql)
            return CorrectionResult(
                attachment=attachment,
                operation=operation,
                status=ApplyStatus.SKIPPED,
                message=_collapse(sql),
            )

        description = _describe(operation, attachment)
        self.logger.info(description)
        try:
            self.executor.execute(sql)
        except Exception as error:
            self.logger.warning("Failed to apply correction: %s", error)
            self.logger.debug("Failed SQL: %s", sql)
            return CorrectionResult(
                attachment=attachment,
                operation=operation,
                status=ApplyStatus.FAILED,
                message=f"{type(error).__name__}: {error}",
            )
        return CorrectionResult(
            attachment=attachment,
            operation=operation,
            status=ApplyStatus.OK,
            message=description,
        )

    def _log_dry_run(self, description: str, sql: str) -> None:
        self.logger.info("[DRY RUN] Would %s", description)
        self.logger.info("[DRY RUN] SQL: %s", _collapse(sql))


def _collapse(sql: str) -> str:
    """Collapse all whitespace runs to single spaces."""
    return " ".join(sql.split())


_DESCRIPTIONS = {
    CorrectionOperation.DETACH: ("Detaching", "detach", "from"),
    CorrectionOperation.ATTACH: ("Attaching", "attach", "to"),
}


def _describe(
    operation: CorrectionOperation, attachment: PolicyAttachment, dry_run: bool = False
) -> str:
    """e.g. 'Attaching mask_x to PUBLIC', or 'attach mask_x to PUBLIC' for dry-run logs."""
    progressive, verb, preposition = _DESCRIPTIONS[operation]
    return (
        f"{verb if dry_run else progressive} {attachment.policy_name} "
        f"{preposition} {attachment.grantee}"
    )
