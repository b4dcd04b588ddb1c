#!/usr/bin/env python3
"""Thin UDP socket wrapper: ``send(bytes, endpoint)`` and ``receive(timeout)``.

No delivery or ordering guarantees; errors are plain :class:`OSError` and it
is up to the caller whether they matter.
"""

from __future__ import annotations

import socket
from typing import Optional, Tuple

from .protocol import BUF_SIZE, Endpoint


class UDPTransport:
    """Owns one bound datagram socket."""

    def __init__(self, host: str = "", port: int = 0, *, reuse_addr: bool = False) -> None:
        self.sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            if reuse_addr:
                self.sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            self.sock.bind((host, port))
        except OSError:
            self.sock.close()                  # No half-open socket on failure
            raise
        self._closed = False

    @property
    def address(self) -> Endpoint:
        """Actual bound (ip, port); useful after binding port 0."""
        return self.sock.getsockname()[:2]

    @property
    def closed(self) -> bool:
        return self._closed

    def send(self, payload: bytes, endpoint: Endpoint) -> None:
        self.sock.sendto(payload, endpoint)

    def receive(self, timeout: Optional[float]) -> Optional[Tuple[bytes, Endpoint]]:
        """Wait up to ``timeout`` seconds for one datagram; None on timeout."""
        self.sock.settimeout(timeout)
        try:
            data, addr = self.sock.recvfrom(BUF_SIZE)
        except socket.timeout:
            return None
        return data, addr[:2]

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self.sock.close()


def resolve(host: str, port: int) -> Endpoint:
    """Resolve ``host`` to an IPv4 endpoint; raises :class:`socket.gaierror`."""
    return socket.gethostbyname(host), port
