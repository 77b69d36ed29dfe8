import pytest

import protocol
from conftest import FakeConnection


@pytest.mark.parametrize("data, expected", [
    (b"/nick Bob\n", True),
    (b"/nick ", True),
    (b"/nick", False),
    (b"/nickBob\n", False),
    (b" /nick Bob\n", False),
    (b"/NICK Bob\n", False),
    (b"hello\n", False),
])
def test_is_nick_command(data, expected):
    assert protocol.is_nick_command(data) is expected


@pytest.mark.parametrize("data, expected", [
    (b"/nick Bob", "Bob"),
    (b"/nick Bob\n", "Bob"),
    (b"/nick Bob\r", "Bob"),
    (b"/nick Bob\r\n", "Bob"),
    (b"/nick \rB\no\r\nb", "Bob"),
    (b"/nick  two words \n", " two words "),
    (b"/nick \r\n", ""),
])
def test_parse_nickname(data, expected):
    assert protocol.parse_nickname(data) == expected


def test_non_utf8_nickname_round_trips_to_original_bytes():
    nickname = protocol.parse_nickname(b"/nick \xff\xfeX\n")

    assert protocol.create_chat_line(nickname, b"hi\n") == b"\xff\xfeX > hi\n"


def test_default_nickname():
    assert protocol.default_nickname(12) == "User:12"


def test_create_chat_line_keeps_terminator():
    assert protocol.create_chat_line("Alice", b"yo\r\n") == b"Alice > yo\r\n"


def test_welcome_text():
    assert protocol.WELCOME_MESSAGE == b"Welcome to Simple Chat! Use /nick <nick> to set your nick.\n"


def test_receive_message_reads_at_most_bufsize():
    conn = FakeConnection(5, chunks=[b"abcdef"])

    assert protocol.receive_message(conn, 4) == b"abcd"
    assert protocol.receive_message(conn, 4) == b"ef"


def test_receive_message_returns_none_on_eof_and_error():
    assert protocol.receive_message(FakeConnection(5)) is None
    assert protocol.receive_message(FakeConnection(5, chunks=[OSError("boom")])) is None
    assert protocol.receive_message(None) is None


def test_send_message_reports_failure(capsys):
    assert protocol.send_message(FakeConnection(5), b"ok") is True
    assert protocol.send_message(FakeConnection(5, fail_send=True), b"lost") is False
    assert protocol.send_message(None, b"lost") is False
    assert "[PROTOCOL ERROR]" in capsys.readouterr().out


def test_client_messages():
    assert protocol.create_nick_command("Alice") == b"/nick Alice\n"
    assert protocol.create_client_message("hi there") == b"hi there\n"


def test_split_lines_keeps_partial_line():
    lines, rest = protocol.split_lines(b"one\r\ntwo\nthr")

    assert lines == [b"one", b"two"]
    assert rest == b"thr"


def test_split_lines_without_newline():
    assert protocol.split_lines(b"partial") == ([], b"partial")


def test_parse_incoming_line():
    assert protocol.parse_incoming_line(b"Alice > a > b") == {
        "type": "chat", "nickname": "Alice", "message": "a > b"}
    assert protocol.parse_incoming_line(protocol.WELCOME_MESSAGE.rstrip(b"\n")) == {
        "type": "system", "message": "Welcome to Simple Chat! Use /nick <nick> to set your nick."}
