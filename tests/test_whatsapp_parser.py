from datetime import datetime

from parsing.chat_datetime import resolve_timestamp
from parsing.whatsapp_parser import ChatTranscriptParser, parse_chat


def test_bracketed_export_with_continuation_line():
    text = "[01/02/2023, 10:00:00] Alice: Hello\nworld\n[01/02/2023, 10:01:00] Bob: Hi"
    messages = parse_chat(text)
    assert len(messages) == 2
    first, second = messages
    assert first.text == "Hello\nworld"
    assert first.author == "Alice"
    assert first.author_name == "Alice"
    assert second.author == "Bob"
    assert second.text == "Hi"
    assert first.timestamp == resolve_timestamp("01/02/2023", "10:00:00")
    assert second.timestamp - first.timestamp == 60_000


def test_dash_separated_android_export():
    text = (
        "12/31/23, 11:58 PM - Carol: Happy new year soon\n"
        "1/1/24, 12:01 AM - Dave: Happy new year!\n"
    )
    messages = parse_chat(text)
    assert [m.author for m in messages] == ["Carol", "Dave"]
    dt = datetime.fromtimestamp(messages[0].timestamp / 1000)
    assert (dt.year, dt.month, dt.day, dt.hour, dt.minute) == (2023, 12, 31, 23, 58)
    dt = datetime.fromtimestamp(messages[1].timestamp / 1000)
    assert (dt.year, dt.month, dt.day, dt.hour) == (2024, 1, 1, 0)


def test_empty_and_headerless_input_yield_nothing():
    assert parse_chat("") == []
    assert parse_chat("just some text\nwith no headers\n\n") == []


def test_lines_before_first_header_are_ignored():
    text = "Messages are end-to-end encrypted\n13/05/2024, 14:30 - Alice: Start"
    messages = parse_chat(text)
    assert len(messages) == 1
    assert messages[0].text == "Start"


def test_blank_lines_are_dropped_not_separators():
    text = "13/05/2024, 14:30 - Alice: line one\n\n   \nline two\n"
    (msg,) = parse_chat(text)
    assert msg.text == "line one\nline two"


def test_continuation_lines_are_kept_verbatim():
    text = "13/05/2024, 14:30 - Alice: list:\n  - item one\n  - item two"
    (msg,) = parse_chat(text)
    assert msg.text == "list:\n  - item one\n  - item two"


def test_author_stops_at_first_colon_and_body_keeps_later_colons():
    text = "13/05/2024, 14:30 - Alice Smith: meeting at 10:30: room 4"
    (msg,) = parse_chat(text)
    assert msg.author == "Alice Smith"
    assert msg.text == "meeting at 10:30: room 4"


def test_crlf_and_directional_marks():
    text = "\u200e[13/05/2024, 14:30:00] Alice: Hi\r\nthere\r\n\u200e[13/05/2024, 14:31:00] Bob: Yo\r\n"
    messages = parse_chat(text)
    assert [m.text for m in messages] == ["Hi\nthere", "Yo"]


def test_message_count_never_exceeds_line_count():
    text = "\n".join(f"13/05/2024, 14:{i:02d} - User{i}: msg {i}" for i in range(30))
    messages = parse_chat(text)
    assert len(messages) == 30
    assert [m.author for m in messages] == [f"User{i}" for i in range(30)]


def test_order_follows_input_not_time():
    text = "13/05/2024, 15:00 - Later: b\n13/05/2024, 09:00 - Earlier: a"
    assert [m.author for m in parse_chat(text)] == ["Later", "Earlier"]


def test_fallback_count_tracks_unresolvable_dates():
    parser = ChatTranscriptParser(clock=lambda: 1_700_000_000.0)
    text = "31/02/2024, 10:00 - Alice: impossible date\n13/05/2024, 10:00 - Bob: fine"
    messages = parser.parse(text)
    assert parser.fallback_count == 1
    assert messages[0].timestamp == 1_700_000_000_000
    # Counter resets per parse call
    parser.parse("13/05/2024, 10:00 - Bob: fine")
    assert parser.fallback_count == 0
