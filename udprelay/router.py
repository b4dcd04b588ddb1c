#!/usr/bin/env python3
"""Relay-side message router: one inbound datagram in, zero or more out.

The router never holds the registry lock while sending; every fan-out walks a
snapshot, and a send failure to one endpoint is logged and skipped.
"""

from __future__ import annotations

from datetime import datetime
from typing import Callable, Optional, Protocol

from .protocol import (
    PONG, Chat, Endpoint, Join, Leave, ListUsers, Ping, Unknown, chat_line,
    encode, joined_text, left_text, parse_command, roster_text, welcome_text,
)
from .registry import EndpointRegistry
from .util import LOG


class Transport(Protocol):
    def send(self, payload: bytes, endpoint: Endpoint) -> None: ...


class MessageRouter:
    """Interprets commands against the registry and fans out the results."""

    def __init__(
        self,
        registry: EndpointRegistry,
        transport: Transport,
        expiry: float,
        wallclock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.registry = registry
        self.transport = transport
        self.expiry = expiry
        self._wallclock = wallclock          # Only used for the [HH:MM:SS] stamp

    # ---------------------------------------------------------------- dispatch
    def handle(self, data: bytes, addr: Endpoint) -> None:
        """Route one datagram.  Malformed input is dropped, never raised."""
        match parse_command(data):
            case Join(name=name):
                self._handle_join(name, addr)
            case Chat(text=text):
                self._handle_chat(text, addr)
            case Leave():
                self._handle_leave(addr)
            case ListUsers():
                self._handle_list(addr)
            case Ping():
                self._handle_ping(addr)
            case Unknown():
                LOG.debug("Ignored unrecognised datagram from %s:%d", *addr)

    # ---------------------------------------------------------------- handlers
    def _handle_join(self, name: str, addr: Endpoint) -> None:
        previous = self.registry.get(addr)
        self.registry.upsert(addr, name)
        if previous and previous.name != name:
            LOG.info("%s rejoined as %s from %s:%d", previous.name, name, *addr)
        else:
            LOG.info("%s joined from %s:%d", name, *addr)
        self.broadcast(joined_text(name), exclude=addr)
        self.send(welcome_text(name), addr)

    def _handle_chat(self, text: str, addr: Endpoint) -> None:
        session = self.registry.touch(addr)
        if session is None:
            LOG.debug("Dropped chat from unknown sender %s:%d", *addr)
            return
        line = chat_line(self._wallclock().strftime("%H:%M:%S"), session.name, text)
        LOG.info("%s", line)
        self.broadcast(line, exclude=addr)

    def _handle_leave(self, addr: Endpoint) -> None:
        session = self.registry.remove(addr)
        if session is None:
            return
        LOG.info("%s left", session.name)
        self.broadcast(left_text(session.name))

    def _handle_list(self, addr: Endpoint) -> None:
        self.registry.touch(addr)
        names = [s.name for s in self.registry.active(self.expiry)]
        self.send(roster_text(names), addr)

    def _handle_ping(self, addr: Endpoint) -> None:
        if self.registry.touch(addr) is None:
            LOG.debug("Ignored ping from unknown sender %s:%d", *addr)
            return
        self.send(PONG, addr)

    # ---------------------------------------------------------------- output
    def send(self, text: str, addr: Endpoint) -> bool:
        """Fire-and-forget unicast; returns False if the transport complained."""
        try:
            self.transport.send(encode(text), addr)
        except OSError as exc:
            LOG.warning("Send to %s:%d failed: %s", addr[0], addr[1], exc)
            return False
        return True

    def broadcast(self, text: str, exclude: Optional[Endpoint] = None) -> int:
        """Send ``text`` to every registered endpoint except ``exclude``.

        Returns how many sends the transport accepted.
        """
        delivered = 0
        for session in self.registry.snapshot():
            if session.endpoint != exclude and self.send(text, session.endpoint):
                delivered += 1
        return delivered
