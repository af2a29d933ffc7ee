import pytest
from dataclasses import FrozenInstanceError

from src.masking_engine.models import PolicyAttachment
from src.masking_engine.plan.drift import Drift, Mismatch
from src.masking_engine.plan.drift_detector import DriftDetector


def attachment(grantee, policy_name="mask_public_users_ssn", priority=100, column="ssn"):
    return PolicyAttachment(
        policy_name=policy_name,
        schema="public",
        table="users",
        column=column,
        grantee=grantee,
        priority=priority,
    )


# ---------- Drift ----------

def test_empty_drift():
    drift = Drift()
    assert drift.is_empty
    assert drift.to_detach == ()
    assert drift.to_attach == ()


def test_drift_correction_order():
    missing = attachment("IAM:BOB")
    extra = attachment("old_user")
    mismatch = Mismatch(expected=attachment("ALICE"), actual=attachment("alice", "unmask_x", 300))
    drift = Drift(missing=(missing,), extra=(extra,), mismatched=(mismatch,))
    assert not drift.is_empty
    assert drift.to_detach == (extra, mismatch.actual)
    assert drift.to_attach == (missing, mismatch.expected)
    with pytest.raises(FrozenInstanceError):
        drift.missing = ()  # type: ignore[misc]


# ---------- DriftDetector ----------

def test_identical_states_have_no_drift(logger):
    state = [attachment("PUBLIC", priority=10), attachment("IAM:ALICE", "unmask_x", 300)]
    drift = DriftDetector(logger).detect(state, list(state))
    assert drift.is_empty
    assert logger.messages() == ["detecting drift in masking policies"]


def test_grantee_case_differences_are_not_drift(logger):
    drift = DriftDetector(logger).detect(
        [attachment("PUBLIC", priority=10)], [attachment("public", priority=10)]
    )
    assert drift.is_empty


def test_mismatch_detected_and_logged(logger):
    expected = attachment("ALICE", "mask_public_users_ssn", 100)
    actual = attachment("ALICE", "unmask_public_users_ssn", 300)
    drift = DriftDetector(logger).detect([expected], [actual])
    assert drift.mismatched == (Mismatch(expected=expected, actual=actual),)
    assert drift.missing == () and drift.extra == ()
    assert drift.to_detach == (actual,)
    assert drift.to_attach == (expected,)
    assert logger.messages("warning") == [
        "MISMATCH: ALICE on public.users.ssn (Expected mask_public_users_ssn Priority 100)"
    ]


def test_missing_and_extra_detected_and_logged(logger):
    drift = DriftDetector(logger).detect([attachment("IAM:BOB")], [attachment("etl_dev")])
    assert drift.missing == (attachment("IAM:BOB"),)
    assert drift.extra == (attachment("etl_dev"),)
    assert logger.messages("warning") == [
        "MISSING: IAM:BOB on public.users.ssn",
        "EXTRA: etl_dev on public.users.ssn",
    ]


def test_priority_only_difference_is_mismatch(logger):
    drift = DriftDetector(logger).detect(
        [attachment("PUBLIC", priority=10)], [attachment("PUBLIC", priority=100)]
    )
    assert len(drift.mismatched) == 1


def test_silent_suppresses_findings_but_not_header(logger):
    drift = DriftDetector(logger).detect([attachment("IAM:BOB")], [], silent=True)
    assert len(drift.missing) == 1
    assert logger.messages() == ["detecting drift in masking policies"]


def test_same_grantee_on_other_column_is_distinct(logger):
    drift = DriftDetector(logger).detect(
        [attachment("IAM:BOB", column="ssn")], [attachment("IAM:BOB", column="email")]
    )
    assert len(drift.missing) == 1 and len(drift.extra) == 1
