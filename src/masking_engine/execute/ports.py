"""
Execution policy and result types.

- ExecutionPolicy: dry-run toggle
- CorrectionResult / ApplyReport: structured outcomes to log or surface upstream
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from src.enums import CorrectionOperation
from src.masking_engine.models import PolicyAttachment


class ApplyStatus(StrEnum):
    OK = "ok"
    FAILED = "failed"
    SKIPPED = "skipped"  # dry-run


@dataclass(frozen=True)
class ExecutionPolicy:
    """Controls how the executor behaves."""

    dry_run: bool = False


@dataclass(frozen=True)
class CorrectionResult:
    """Outcome for a single attach/detach."""

    attachment: PolicyAttachment
    operation: CorrectionOperation
    status: ApplyStatus
    message: str  # one line; rendered SQL in dry-run


@dataclass(frozen=True)
class ApplyReport:
    """Outcome for applying all corrections of one drift."""

    results: tuple[CorrectionResult, ...] = ()

    @property
    def ok(self) -> bool:
        return all(result.status != ApplyStatus.FAILED for result in self.results)

    @property
    def failed(self) -> tuple[CorrectionResult, ...]:
        return tuple(result for result in self.results if result.status == ApplyStatus.FAILED)

    def count(self, status: ApplyStatus) -> int:
        return sum(1 for result in self.results if result.status == status)
