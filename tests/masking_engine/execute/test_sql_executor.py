import pytest

from src.enums import CorrectionOperation
from src.masking_engine.execute.ports import ApplyReport, ApplyStatus, ExecutionPolicy
from src.masking_engine.execute.sql_executor import SqlExecutor
from src.masking_engine.models import PolicyAttachment
from src.masking_engine.plan.drift import Drift, Mismatch


def attachment(grantee, policy_name="mask_public_users_ssn", priority=100):
    return PolicyAttachment(
        policy_name=policy_name,
        schema="public",
        table="users",
        column="ssn",
        grantee=grantee,
        priority=priority,
    )


def stored(a):
    return {
        "policy_name": a.policy_name,
        "schema_name": a.schema,
        "table_name": a.table,
        "column_name": a.column,
        "grantee": a.grantee,
        "priority": a.priority,
    }


@pytest.fixture
def make_executor(config_factory, fake_redshift, logger):
    def _make(attachments=(), dry_run=False):
        database = fake_redshift(attachments=[stored(a) for a in attachments])
        executor = SqlExecutor(
            config_factory([]), database, policy=ExecutionPolicy(dry_run=dry_run), logger=logger
        )
        return executor, database

    return _make


# ---------- create_masking_policies ----------

def test_create_policies_noop_for_no_columns(make_executor):
    executor, database = make_executor()
    executor.create_masking_policies({})
    assert database.statements == []


def test_create_policies_sends_one_batch(make_executor, logger):
    executor, database = make_executor()
    executor.create_masking_policies(
        {"public.users.ssn": "CHAR(11)", "public.users.email": "VARCHAR(MAX)"}
    )

    assert len(database.statements) == 1
    batch = database.statements[0]
    statements = batch.split(";\n")
    assert len(statements) == 6
    assert batch.endswith(";")
    assert (
        "CREATE MASKING POLICY mask_public_users_ssn IF NOT EXISTS "
        "WITH(value CHAR(11)) USING ('XXXX'::CHAR(11))"
    ) in statements
    assert database.policies == {
        "unmask_public_users_ssn",
        "deny_public_users_ssn",
        "mask_public_users_ssn",
        "unmask_public_users_email",
        "deny_public_users_email",
        "mask_public_users_email",
    }
    assert logger.messages("info") == [
        "creating masking policies",
        "created/verified policies for 2 columns",
    ]


# ---------- apply_corrections ----------

def test_empty_drift_needs_no_changes(make_executor, logger):
    executor, database = make_executor()
    report = executor.apply_corrections(Drift())
    assert report == ApplyReport()
    assert report.ok
    assert database.statements == []
    assert logger.messages("info") == ["no changes needed"]


def test_detaches_before_attaching(make_executor, logger):
    actual = attachment("ALICE", "unmask_public_users_ssn", 300)
    expected = attachment("ALICE")
    extra = attachment("old_user")
    missing = attachment("PUBLIC", priority=10)
    executor, database = make_executor(attachments=[actual, extra])

    drift = Drift(missing=(missing,), extra=(extra,), mismatched=(Mismatch(expected, actual),))
    report = executor.apply_corrections(drift)

    assert [s.split()[0] for s in database.statements] == ["DETACH", "DETACH", "ATTACH", "ATTACH"]
    assert "FROM PUBLIC" not in database.statements[0]
    assert "TO PUBLIC\n" in database.statements[2]
    assert [(r.operation, r.status) for r in report.results] == [
        (CorrectionOperation.DETACH, ApplyStatus.OK),
        (CorrectionOperation.DETACH, ApplyStatus.OK),
        (CorrectionOperation.ATTACH, ApplyStatus.OK),
        (CorrectionOperation.ATTACH, ApplyStatus.OK),
    ]
    assert logger.messages("info") == [
        "Detaching mask_public_users_ssn from old_user",
        "Detaching unmask_public_users_ssn from ALICE",
        "Attaching mask_public_users_ssn to PUBLIC",
        "Attaching mask_public_users_ssn to ALICE",
    ]
    assert report.ok


def test_failed_correction_does_not_stop_the_rest(make_executor, logger):
    executor, database = make_executor()
    database.fail_on = ('"IAM:BOB"',)
    drift = Drift(missing=(attachment("IAM:BOB"), attachment("IAM:CAROL")))

    report = executor.apply_corrections(drift)

    assert [r.status for r in report.results] == [ApplyStatus.FAILED, ApplyStatus.OK]
    assert not report.ok
    assert report.failed == (report.results[0],)
    assert report.count(ApplyStatus.OK) == 1
    assert report.results[0].message == 'RuntimeError: simulated failure on "IAM:BOB"'
    assert logger.messages("warning") == [
        'Failed to apply correction: simulated failure on "IAM:BOB"'
    ]
    assert logger.messages("debug")[0].startswith("Failed SQL: ATTACH MASKING POLICY")
    assert len(database.attachments) == 1


# ---------- dry run ----------

def test_dry_run_executes_nothing(make_executor, logger):
    executor, database = make_executor(attachments=[attachment("old_user")], dry_run=True)

    executor.create_masking_policies({"public.users.ssn": "CHAR(11)"})
    report = executor.apply_corrections(
        Drift(missing=(attachment("PUBLIC", priority=10),), extra=(attachment("old_user"),))
    )

    assert database.statements == []
    assert [r.status for r in report.results] == [ApplyStatus.SKIPPED, ApplyStatus.SKIPPED]
    assert report.count(ApplyStatus.SKIPPED) == 2
    assert report.ok
    assert report.results[1].message == (
        "ATTACH MASKING POLICY mask_public_users_ssn ON public.users (ssn) TO PUBLIC PRIORITY 10;"
    )
    infos = logger.messages("info")
    assert "[DRY RUN] Would create masking policies for 1 columns" in infos
    assert "[DRY RUN] Would detach mask_public_users_ssn from old_user" in infos
    assert "[DRY RUN] Would attach mask_public_users_ssn to PUBLIC" in infos
    assert any(m.startswith("[DRY RUN] SQL: DETACH MASKING POLICY") for m in infos)
