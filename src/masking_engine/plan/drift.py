"""Drift value types: the difference between expected and actual attachments."""

from __future__ import annotations

from dataclasses import dataclass

from src.masking_engine.models import PolicyAttachment


@dataclass(frozen=True, slots=True)
class Mismatch:
    """Same column and grantee on both sides, different policy or priority."""

    expected: PolicyAttachment
    actual: PolicyAttachment


@dataclass(frozen=True, slots=True)
class Drift:
    """What must be detached and attached for the actual state to match the expected one."""

    missing: tuple[PolicyAttachment, ...] = ()
    extra: tuple[PolicyAttachment, ...] = ()
    mismatched: tuple[Mismatch, ...] = ()

    @property
    def is_empty(self) -> bool:
        """True when expected and actual attachments already agree."""
        return not (self.missing or self.extra or self.mismatched)

    @property
    def to_detach(self) -> tuple[PolicyAttachment, ...]:
        """Extra attachments followed by the actual side of each mismatch."""
        return self.extra + tuple(mismatch.actual for mismatch in self.mismatched)

    @property
    def to_attach(self) -> tuple[PolicyAttachment, ...]:
        """Missing attachments followed by the expected side of each mismatch."""
        return self.missing + tuple(mismatch.expected for mismatch in self.mismatched)
