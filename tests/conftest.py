import re

import pytest

from src.masking_engine.configuration import Configuration

# ---------- fakes ----------


class RecordingLogger:
    """Minimal logger stand-in that records (level, rendered message) pairs."""

    def __init__(self):
        self.records = []

    def _record(self, level, msg, args):
        # support %-format args used in logger calls
        self.records.append((level, msg % args if args else msg))

    def debug(self, msg, *args):
        self._record("debug", msg, args)

    def info(self, msg, *args):
        self._record("info", msg, args)

    def warning(self, msg, *args):
        self._record("warning", msg, args)

    def messages(self, level=None):
        return [message for lvl, message in self.records if level is None or lvl == level]


_CONDITION = re.compile(
    r"table_schema = '((?:[^']|'')*)' AND table_name = '((?:[^']|'')*)' "
    r"AND column_name = '((?:[^']|'')*)'"
)
_GRANTEE = r'(PUBLIC|"(?:[^"]|"")*")'
_ATTACH = re.compile(
    r"ATTACH MASKING POLICY (\S+)\s+ON (\w+)\.(\w+) \((\w+)\)\s+TO "
    + _GRANTEE
    + r"\s+PRIORITY (\d+);"
)
_DETACH = re.compile(
    r"DETACH MASKING POLICY (\S+)\s+ON (\w+)\.(\w+) \((\w+)\)\s+FROM " + _GRANTEE + ";"
)
_CREATE = re.compile(r"CREATE MASKING POLICY (\S+) IF NOT EXISTS")


def _unquote(grantee):
    if grantee == "PUBLIC":
        return "public"
    return grantee[1:-1].replace('""', '"')


def _unescape(literal):
    return literal.replace("''", "'")


class FakeRedshift:
    """
    In-memory stand-in for the warehouse behind the QueryExecutor port.

    Answers the three read queries and applies CREATE/ATTACH/DETACH statements
    to its own state, so a sync cycle can be run end to end.
    """

    def __init__(self, users=(), columns=None, attachments=()):
        self.users = list(users)
        # {(schema, table, column): (data_type, character_maximum_length)}
        self.columns = dict(columns or {})
        self.attachments = {}
        for row in attachments:
            self._store(dict(row))
        self.policies = set()
        self.statements = []
        self.fail_on = ()

    # ----- QueryExecutor -----

    def execute(self, sql):
        self.statements.append(sql)
        for marker in self.fail_on:
            if marker in sql:
                raise RuntimeError(f"simulated failure on {marker}")

        if "FROM pg_user" in sql:
            return [{"usename": user} for user in self.users]
        if "information_schema.columns" in sql:
            return self._column_rows(sql)
        if sql.lstrip().startswith("SELECT") and "svv_attached_masking_policy" in sql:
            return [dict(row) for row in self.attachments.values()]
        if "CREATE MASKING POLICY" in sql:
            self.policies.update(_CREATE.findall(sql))
            return []
        if sql.startswith("ATTACH"):
            return self._attach(sql)
        if sql.startswith("DETACH"):
            return self._detach(sql)
        raise AssertionError(f"unexpected SQL: {sql}")

    # ----- helpers -----

    def _column_rows(self, sql):
        rows = []
        for schema, table, column in _CONDITION.findall(sql):
            key = (_unescape(schema), _unescape(table), _unescape(column))
            if key in self.columns:
                data_type, length = self.columns[key]
                rows.append(
                    {
                        "table_schema": key[0],
                        "table_name": key[1],
                        "column_name": key[2],
                        "data_type": data_type,
                        "character_maximum_length": length,
                    }
                )
        return rows

    def _attach(self, sql):
        match = _ATTACH.search(sql)
        assert match, sql
        policy, schema, table, column, grantee, priority = match.groups()
        row = {
            "policy_name": policy,
            "schema_name": schema,
            "table_name": table,
            "column_name": column,
            "grantee": _unquote(grantee),
            "priority": int(priority),
        }
        if self._key(row) in self.attachments:
            raise RuntimeError("a masking policy is already attached for this grantee")
        self._store(row)
        return []

    def _detach(self, sql):
        match = _DETACH.search(sql)
        assert match, sql
        policy, schema, table, column, grantee = match.groups()
        key = (schema, table, column, _unquote(grantee).upper())
        current = self.attachments.get(key)
        if current is None or current["policy_name"] != policy:
            raise RuntimeError(f"masking policy {policy} is not attached")
        del self.attachments[key]
        return []

    @staticmethod
    def _key(row):
        return (row["schema_name"], row["table_name"], row["column_name"], row["grantee"].upper())

    def _store(self, row):
        self.attachments[self._key(row)] = row

    def writes(self):
        return [s for s in self.statements if s.startswith(("ATTACH", "DETACH", "CREATE"))]


# ---------- sample documents ----------


def masking_document(columns, user_types=None):
    return {
        "masking_policies": {
            "user_types": user_types
            or {
                "superuser": ["admin", "rdsdb"],
                "iam_role": ["dwuser", "dwadmin", "analysts"],
                "redshift_user": ["etl_{env_name}", "reporting"],
            },
            "columns": columns,
        }
    }


DIRECTORY = {
    "alice": {"aws_groups": ["dwadmin"]},
    "bob": {"aws_groups": ["dwusernonprod"]},
    "carol": {"aws_groups": ["analysts", "dwuser"]},
    "dave": {"aws_groups": []},
}

DB_USERS = ["IAM:ALICE", "IAM:BOB", "IAM:CAROL", "etl_dev", "Reporting", "admin", "rdsdb"]


def make_config(columns, user_types=None, directory=None, env_name="dev"):
    return Configuration.from_documents(
        masking_document(columns, user_types),
        DIRECTORY if directory is None else directory,
        env_name=env_name,
    )


# ---------- fixtures ----------


@pytest.fixture
def logger():
    return RecordingLogger()


@pytest.fixture
def fake_redshift():
    return FakeRedshift


@pytest.fixture
def config_factory():
    return make_config


@pytest.fixture
def db_users():
    return list(DB_USERS)
