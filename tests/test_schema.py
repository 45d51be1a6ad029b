import sqlite3

import pytest

from db.schema import CORE_TABLES, apply_schema, get_existing_tables, get_table_columns
from tests.factories import make_conn


def test_schema_apply_and_tables():
    conn = make_conn()
    tables = set(get_existing_tables(conn))
    assert CORE_TABLES.issubset(tables)


def test_apply_schema_is_idempotent():
    conn = sqlite3.connect(":memory:")
    assert apply_schema(conn) == [1, 2, 3]
    assert apply_schema(conn) == []


def test_group_history_columns_present():
    conn = make_conn()
    cols = get_table_columns(conn, "groups")
    for col in (
        "has_history_uploaded",
        "history_uploaded_at",
        "auto_response_enabled",
        "auto_response_trigger",
    ):
        assert col in cols


def test_milestone_status_check_constraint():
    conn = make_conn()
    row = ("m1", "Launch", "desc", "ann", "2024-06-01", "ships", "DONE", 0)
    conn.execute("INSERT INTO milestones VALUES (?,?,?,?,?,?,?,?)", row)
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(
            "INSERT INTO milestones VALUES (?,?,?,?,?,?,?,?)",
            ("m2",) + row[1:6] + ("FINISHED", 0),
        )


def test_messages_reference_groups():
    conn = make_conn()
    with pytest.raises(sqlite3.IntegrityError):
        conn.execute(
            "INSERT INTO messages(id, group_id, author, author_name, timestamp, text, raw)"
            " VALUES ('x', 'missing', 'a', 'a', 0, 't', '{}')"
        )
