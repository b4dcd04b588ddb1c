import socket
import time

import pytest

from udprelay.client import ChatClient
from udprelay.config import ClientSettings


@pytest.fixture
def relay_sock():
    """Stand-in relay: a bare UDP socket the test reads from."""
    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    sock.bind(("127.0.0.1", 0))
    sock.settimeout(2)
    yield sock
    sock.close()


@pytest.fixture
def client(relay_sock):
    c = ChatClient("127.0.0.1", relay_sock.getsockname()[1],
                   ClientSettings(keepalive_interval=0.2, receive_timeout=0.05))
    yield c
    c.disconnect()


def recv_text(sock):
    data, addr = sock.recvfrom(1024)
    return data.decode("utf-8"), addr


def drain(sock, window=0.3):
    """Everything that arrives within the next ``window`` seconds."""
    deadline = time.monotonic() + window
    out = []
    while (left := deadline - time.monotonic()) > 0:
        sock.settimeout(left)
        try:
            out.append(recv_text(sock)[0])
        except socket.timeout:
            break
    return out


def test_connect_sends_join(client, relay_sock):
    client.connect("alice")
    assert recv_text(relay_sock)[0] == "JOIN:alice"


def test_blank_name_falls_back_to_guest(client, relay_sock):
    client.connect("   ")
    text, _ = recv_text(relay_sock)
    assert text.startswith("JOIN:Guest")
    assert client.name.startswith("Guest")


def test_local_commands_are_translated(client, relay_sock, capsys):
    assert client.handle_line("/list")
    assert client.handle_line("/LIST")
    assert client.handle_line("hello world")
    assert client.handle_line("   ")
    assert client.handle_line("/nope")
    assert client.handle_line("/quit") is False

    assert drain(relay_sock) == ["LIST", "LIST", "MSG:hello world"]
    assert "Unknown command" in capsys.readouterr().out


def test_render_hides_pong(client, capsys):
    client.render("PONG")
    assert capsys.readouterr().out == ""
    client.render("SYSTEM: bob has joined the chat!")
    assert "bob has joined the chat!" in capsys.readouterr().out


def test_receive_loop_renders_relay_traffic(client, relay_sock, capsys):
    client.connect("alice")
    _, client_addr = recv_text(relay_sock)
    relay_sock.sendto(b"PONG", client_addr)
    relay_sock.sendto(b"[10:00:00] bob: hey", client_addr)
    time.sleep(0.3)                         # let the receiver pick both up

    client.disconnect()
    out = capsys.readouterr().out
    assert "[10:00:00] bob: hey" in out
    assert "PONG" not in out


def test_keepalive_pings_while_idle(client, relay_sock):
    client.connect("alice")
    received = drain(relay_sock, window=0.7)
    assert received[0] == "JOIN:alice"
    assert received.count("PING") >= 2


def test_disconnect_is_orderly(client, relay_sock):
    client.connect("alice")
    recv_text(relay_sock)
    client.disconnect()

    assert client.stopping.is_set()
    assert client.transport.closed
    assert not client._recv_thread.is_alive()
    assert not client._ping_thread.is_alive()
    # Longer than two keepalive periods: a stray ping would show up here.
    received = drain(relay_sock, window=0.5)
    assert received[-1] == "LEAVE"
    assert set(received[:-1]) <= {"PING"}

    client.disconnect()                     # second call is a no-op


def test_disconnect_without_connect_sends_nothing(client, relay_sock):
    client.disconnect()
    assert drain(relay_sock) == []
    assert client.transport.closed


def test_unresolvable_host_is_fatal():
    with pytest.raises(socket.gaierror):
        ChatClient("no-such-host.invalid", 5001)


def test_settings_validation():
    with pytest.raises(ValueError):
        ClientSettings(keepalive_interval=1.0, receive_timeout=2.0)


@pytest.mark.parametrize("interrupt", [EOFError, KeyboardInterrupt])
def test_interrupted_name_prompt_closes_cleanly(client, relay_sock, monkeypatch, interrupt):
    def no_name(prompt=""):
        raise interrupt

    monkeypatch.setattr("builtins.input", no_name)
    client.start()

    assert client.stopping.is_set()
    assert client.transport.closed
    assert drain(relay_sock) == []


def test_start_joins_chats_and_quits_in_order(client, relay_sock, monkeypatch):
    lines = iter(["hello", "/quit"])
    monkeypatch.setattr("builtins.input", lambda prompt="": next(lines))
    client.start("alice")

    received = [t for t in drain(relay_sock) if t != "PING"]
    assert received == ["JOIN:alice", "MSG:hello", "LEAVE"]
    assert client.transport.closed
