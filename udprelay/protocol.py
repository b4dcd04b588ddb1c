#!/usr/bin/env python3
"""Wire constants, the inbound command variants and the outbound text builders.

Every datagram carries exactly one UTF-8 command.  Relay and participant both
go through the helpers here so they never disagree on wire-format details:

    JOIN:<name>   MSG:<text>   LEAVE   LIST   PING        (participant -> relay)
    free text, or the bare acknowledgement PONG          (relay -> participant)
"""

from __future__ import annotations       # Postponed annotation evaluation (PEP 563)
from dataclasses import dataclass
from typing import Iterable, Tuple, Union

# --- Network configuration -------------------------------------------------
BUF_SIZE: int = 1024          # Max datagram size we read (bytes)
DEFAULT_PORT: int = 5001      # Port the relay listens on unless told otherwise

Endpoint = Tuple[str, int]    # (address, port) of a participant's socket

# --- Command tags ----------------------------------------------------------
JOIN_PREFIX  = "JOIN:"
MSG_PREFIX   = "MSG:"
LEAVE        = "LEAVE"
LIST         = "LIST"
PING         = "PING"
PONG         = "PONG"         # Relay -> participant keepalive acknowledgement

SYSTEM_PREFIX = "SYSTEM: "


# --- Inbound command variants ---------------------------------------------

@dataclass(frozen=True, slots=True)
class Join:
    name: str


@dataclass(frozen=True, slots=True)
class Chat:
    text: str


@dataclass(frozen=True, slots=True)
class Leave:
    pass


@dataclass(frozen=True, slots=True)
class ListUsers:
    pass


@dataclass(frozen=True, slots=True)
class Ping:
    pass


@dataclass(frozen=True, slots=True)
class Unknown:
    """Anything we could not make sense of; the router ignores it."""

    raw: bytes


Command = Union[Join, Chat, Leave, ListUsers, Ping, Unknown]


def parse_command(data: bytes) -> Command:
    """bytes -> command variant.  Never raises: garbage becomes :class:`Unknown`.

    Decoding is lenient: a datagram the kernel cut off in the middle of a
    multibyte character still parses, with U+FFFD in place of the stub.
    """
    text = data.decode("utf-8", errors="replace")

    if text.startswith(JOIN_PREFIX):
        name = text[len(JOIN_PREFIX):].strip()
        return Join(name) if name else Unknown(data)
    if text.startswith(MSG_PREFIX):
        return Chat(text[len(MSG_PREFIX):])

    bare = text.strip()                  # Tolerate "PING\n" from netcat & co.
    if bare == LEAVE:
        return Leave()
    if bare == LIST:
        return ListUsers()
    if bare == PING:
        return Ping()
    return Unknown(data)


# --- Outbound encoders (participant side) ---------------------------------

def encode(text: str) -> bytes:
    return text.encode("utf-8")


def join_packet(name: str) -> bytes:
    return encode(JOIN_PREFIX + name)


def chat_packet(text: str) -> bytes:
    """Encode a chat line, trimmed to fit the relay's read buffer.

    The cut is made on a character boundary so the tail is never a
    half-encoded character.
    """
    packet = encode(MSG_PREFIX + text)
    if len(packet) <= BUF_SIZE:
        return packet
    return packet[:BUF_SIZE].decode("utf-8", errors="ignore").encode("utf-8")


# --- Outbound system text (relay side) ------------------------------------

def joined_text(name: str) -> str:
    return f"{SYSTEM_PREFIX}{name} has joined the chat!"


def welcome_text(name: str) -> str:
    return f"{SYSTEM_PREFIX}Welcome to the chat, {name}! Type '/list' to see online users."


def left_text(name: str, timed_out: bool = False) -> str:
    if timed_out:
        return f"{SYSTEM_PREFIX}{name} has left the chat (timeout)"
    return f"{SYSTEM_PREFIX}{name} has left the chat."


def roster_text(names: Iterable[str]) -> str:
    lines = [f"{SYSTEM_PREFIX}Online users:"]
    lines.extend(f"  - {name}" for name in names)
    return "\n".join(lines)


def chat_line(clock: str, name: str, text: str) -> str:
    """Format a relayed chat message, e.g. ``[12:34:56] alice: hi``."""
    return f"[{clock}] {name}: {text}"
