"""
End-to-end orchestration of one masking sync cycle.

Flow (one pass):
  1) Read database principals; index them in a PrincipalDirectory.
  2) Read data types of the configured columns.
  3) Ensure policy definitions exist (CREATE ... IF NOT EXISTS).
  4) Build the expected attachments; read the actual ones.
  5) Detect drift and apply corrections.

Scoped sync:
  When `principal_filter` is given, only those principals are reconciled: the
  principal set seen by the builder and the actual attachments are both
  narrowed to the filter, and drift findings are not logged individually.

Notes:
- No SQL here; this file glues components together.
- Read errors propagate and abort the cycle before any write.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from src.logger import get_logger
from src.masking_engine.configuration import Configuration
from src.masking_engine.desired.policy_builder import PolicyBuilder
from src.masking_engine.execute.ports import ApplyReport
from src.masking_engine.execute.sql_executor import SqlExecutor
from src.masking_engine.identifiers import Column
from src.masking_engine.models import PolicyAttachment
from src.masking_engine.plan.drift import Drift
from src.masking_engine.plan.drift_detector import DriftDetector
from src.masking_engine.resolve.directory import PrincipalDirectory
from src.masking_engine.resolve.user_resolver import UserResolver
from src.masking_engine.state.database_queries import DatabaseQueries

# ---------- outputs ----------


@dataclass(frozen=True)
class SyncReport:
    """Everything a caller would want to inspect or log from a single cycle."""

    expected: tuple[PolicyAttachment, ...]
    actual: tuple[PolicyAttachment, ...]
    drift: Drift
    apply_report: ApplyReport


# ---------- orchestrator ----------


class MaskingSync:
    """Glue for read -> build expected -> detect drift -> correct."""

    def __init__(
        self,
        config: Configuration,
        queries: DatabaseQueries,
        sql_executor: SqlExecutor,
        drift_detector: DriftDetector | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.config = config
        self.queries = queries
        self.sql_executor = sql_executor
        self.drift_detector = drift_detector or DriftDetector(logger=logger)
        self.logger = logger or get_logger("sync")
        self._component_logger = logger

    # ---------- public API ----------

    def run(self, principal_filter: Iterable[str] | None = None) -> SyncReport:
        """Run one cycle; `principal_filter` restricts it to the named principals."""
        self.logger.info("starting masking policy sync")

        directory = PrincipalDirectory(self.queries.fetch_users())
        self.logger.info("found %d database users", len(directory))

        db_users = directory.upper_names()
        filter_set: frozenset[str] | None = None
        if principal_filter is not None:
            filter_set = frozenset(name.upper() for name in principal_filter)
            db_users &= filter_set
            self.logger.info("filtering sync to %d user(s)", len(db_users))

        column_types = self.queries.fetch_column_types(self._configured_columns())
        self.sql_executor.create_masking_policies(column_types)

        builder = self._policy_builder(directory)
        expected = builder.build_expected_state(column_types, db_users)
        actual = self.queries.fetch_existing_policies()
        if filter_set is not None:
            actual = [p for p in actual if p.grantee.upper() in filter_set]

        self.logger.info(
            "expected: %d attachments, actual: %d attachments", len(expected), len(actual)
        )

        drift = self.drift_detector.detect(expected, actual, silent=filter_set is not None)
        apply_report = self.sql_executor.apply_corrections(drift)

        self.logger.info("sync completed")
        return SyncReport(
            expected=tuple(expected),
            actual=tuple(actual),
            drift=drift,
            apply_report=apply_report,
        )

    # ---------- steps ----------

    def _configured_columns(self) -> list[Column]:
        """Parsed, de-duplicated columns in configuration order."""
        columns: dict[str, Column] = {}
        for column_id, _permissions in self.config.columns_config():
            column = Column.parse(column_id)
            if column is not None:
                columns.setdefault(column.id, column)
        return list(columns.values())

    def _policy_builder(self, directory: PrincipalDirectory) -> PolicyBuilder:
        resolver = UserResolver(self.config, directory, logger=self._component_logger)
        return PolicyBuilder(self.config, resolver, logger=self._component_logger)
