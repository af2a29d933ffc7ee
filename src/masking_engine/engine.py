"""
Engine: high-level entry point for the masking engine.

Responsibilities
----------------
- Wire default components (queries, drift detector, SQL executor, sync).
- Expose a single entry point to run one cycle:
    - run(principal_filter=None)

Notes:
-----
- No SQL here; work is delegated to injected components.
- Defaults are provided, but everything can be overridden for testing or custom behaviour.
"""

from __future__ import annotations

from collections.abc import Iterable

from src.masking_engine.configuration import Configuration
from src.masking_engine.execute.ports import ExecutionPolicy
from src.masking_engine.execute.sql_executor import SqlExecutor
from src.masking_engine.orchestrator import MaskingSync, SyncReport
from src.masking_engine.plan.drift_detector import DriftDetector
from src.masking_engine.state.database_queries import DatabaseQueries
from src.masking_engine.state.ports import QueryExecutor


class Engine:
    """
    High-level entry point for the masking engine.

    You can:
      - pass your own components (for custom behaviour), or
      - rely on defaults (simple, batteries included).

    Method:
      - run(principal_filter=None)
    """

    def __init__(
        self,
        config: Configuration,
        executor: QueryExecutor,
        policy: ExecutionPolicy | None = None,
        queries: DatabaseQueries | None = None,
        drift_detector: DriftDetector | None = None,
        sql_executor: SqlExecutor | None = None,
    ) -> None:
        self.config = config

        # Wire defaults if not supplied
        self.queries = queries or DatabaseQueries(executor)
        self.drift_detector = drift_detector or DriftDetector()
        self.sql_executor = sql_executor or SqlExecutor(config, executor, policy=policy)

        # Orchestrator (glue)
        self.sync = MaskingSync(
            config=self.config,
            queries=self.queries,
            sql_executor=self.sql_executor,
            drift_detector=self.drift_detector,
        )

    def run(self, principal_filter: Iterable[str] | None = None) -> SyncReport:
        """Run one sync cycle, optionally scoped to `principal_filter`."""
        return self.sync.run(principal_filter)
