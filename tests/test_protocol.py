import pytest

from udprelay import protocol
from udprelay.protocol import Chat, Join, Leave, ListUsers, Ping, Unknown, parse_command


@pytest.mark.parametrize("data, expected", [
    (b"JOIN:alice", Join("alice")),
    (b"JOIN:  bob \n", Join("bob")),
    (b"MSG:hello there", Chat("hello there")),
    (b"MSG:", Chat("")),
    (b"MSG:JOIN:eve", Chat("JOIN:eve")),
    (b"LEAVE", Leave()),
    (b"LIST", ListUsers()),
    (b"PING", Ping()),
    (b"PING\n", Ping()),
])
def test_parse_known_commands(data, expected):
    assert parse_command(data) == expected


@pytest.mark.parametrize("data", [
    b"", b"JOIN:", b"JOIN:   ", b"HELLO", b"ping", b"LISTING", b"\xff\xfe\x00",
])
def test_parse_garbage_is_unknown(data):
    cmd = parse_command(data)
    assert isinstance(cmd, Unknown)
    assert cmd.raw == data


def test_join_name_may_contain_colons_and_unicode():
    assert parse_command("JOIN:zoë:2".encode("utf-8")) == Join("zoë:2")


def test_system_texts():
    assert protocol.joined_text("bob") == "SYSTEM: bob has joined the chat!"
    assert protocol.left_text("bob") == "SYSTEM: bob has left the chat."
    assert protocol.left_text("bob", timed_out=True) == "SYSTEM: bob has left the chat (timeout)"
    assert protocol.roster_text(["alice", "bob"]) == "SYSTEM: Online users:\n  - alice\n  - bob"
    assert protocol.chat_line("01:02:03", "alice", "hi") == "[01:02:03] alice: hi"


def test_client_packets():
    assert protocol.join_packet("alice") == b"JOIN:alice"
    assert protocol.chat_packet("hi") == b"MSG:hi"


def test_truncated_multibyte_chat_still_parses():
    data = ("MSG:a" + "é" * 600).encode("utf-8")[:1024]   # cut inside an "é"
    cmd = parse_command(data)
    assert isinstance(cmd, Chat)
    assert cmd.text.startswith("aéé")
    assert cmd.text.endswith("\ufffd")


def test_long_chat_packet_fits_buffer_on_character_boundary():
    packet = protocol.chat_packet("a" + "é" * 600)
    assert len(packet) <= protocol.BUF_SIZE
    text = packet.decode("utf-8")                         # strict: no half character
    assert text.startswith("MSG:aé")
    assert set(text[len("MSG:a"):]) == {"é"}


def test_short_chat_packet_untouched():
    assert protocol.chat_packet("é" * 10) == ("MSG:" + "é" * 10).encode("utf-8")
