import json

from db.ingest import hash_message, import_chat_file, import_chat_history
from db.repositories import AuditRepository, GroupRepository, MessageRepository
from domain.models import ParsedMessage
from tests.factories import create_group, make_conn

EXPORT = (
    "13/05/2024, 09:00 - Alice: Kickoff today\n"
    "agenda attached\n"
    "13/05/2024, 09:05 - Bob: Sounds good\n"
)


def test_import_creates_group_and_messages():
    conn = make_conn()
    report = import_chat_history(conn, "g1", EXPORT, group_name="Alpha")
    assert (report.parsed, report.inserted, report.duplicates) == (2, 2, 0)
    group = GroupRepository(conn).get("g1")
    assert group.name == "Alpha"
    assert group.has_history_uploaded is True
    messages = MessageRepository(conn).list(group_id="g1")
    assert [m.author for m in messages] == ["Bob", "Alice"]
    alice = messages[1]
    assert alice.text == "Kickoff today\nagenda attached"
    raw = json.loads(alice.raw)
    assert raw["authorName"] == "Alice"
    assert raw["timestamp"] == alice.timestamp


def test_reimport_is_idempotent_and_picks_up_new_messages():
    conn = make_conn()
    create_group(conn, "g1")
    import_chat_history(conn, "g1", EXPORT)
    again = import_chat_history(conn, "g1", EXPORT)
    assert (again.inserted, again.duplicates) == (0, 2)
    longer = import_chat_history(conn, "g1", EXPORT + "13/05/2024, 09:10 - Carol: Late\n")
    assert (longer.inserted, longer.duplicates) == (1, 2)
    assert MessageRepository(conn).count("g1") == 3


def test_existing_group_name_kept_without_override():
    conn = make_conn()
    create_group(conn, "g1", "Original")
    import_chat_history(conn, "g1", EXPORT)
    assert GroupRepository(conn).get("g1").name == "Original"


def test_import_writes_audit_entry():
    conn = make_conn()
    import_chat_history(conn, "g1", EXPORT)
    kinds = [a.kind for a in AuditRepository(conn).recent()]
    assert "CHAT_HISTORY_IMPORT" in kinds


def test_unreadable_timestamps_are_reported():
    conn = make_conn()
    report = import_chat_history(conn, "g1", "31/02/2024, 10:00 - Alice: odd date\n")
    assert report.parsed == 1
    assert report.timestamp_fallbacks == 1


def test_empty_export_imports_nothing():
    conn = make_conn()
    report = import_chat_history(conn, "g1", "")
    assert report.parsed == 0 and report.inserted == 0


def test_import_from_file_strips_bom(tmp_path):
    conn = make_conn()
    path = tmp_path / "_chat.txt"
    path.write_text("\ufeff" + EXPORT, encoding="utf-8")
    report = import_chat_file(conn, "g1", str(path))
    assert report.inserted == 2


def test_hash_message_depends_on_group():
    msg = ParsedMessage(1, "Alice", "Alice", "hi")
    assert hash_message("g1", msg) != hash_message("g2", msg)
    assert hash_message("g1", msg) == hash_message("g1", ParsedMessage(1, "Alice", "Alice", "hi"))
