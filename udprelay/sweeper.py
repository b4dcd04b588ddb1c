#!/usr/bin/env python3
"""Background thread that evicts idle sessions on a fixed period."""

from __future__ import annotations

import threading
from typing import List

from .protocol import left_text
from .registry import EndpointRegistry, Session
from .router import MessageRouter
from .util import LOG


class LivenessSweeper(threading.Thread):
    """Every ``interval`` seconds, drop sessions idle longer than ``expiry``.

    Talks to the router only through its broadcast helper; the registry is
    the one thing it shares with the receive path.
    """

    def __init__(
        self,
        registry: EndpointRegistry,
        router: MessageRouter,
        expiry: float,
        interval: float,
    ) -> None:
        super().__init__(name="liveness-sweeper", daemon=True)
        self.registry = registry
        self.router = router
        self.expiry = expiry
        self.interval = interval
        self._stop_event = threading.Event()

    def run(self) -> None:
        # wait() returns True as soon as stop() is called
        while not self._stop_event.wait(self.interval):
            try:
                self.sweep_once()
            except Exception:
                # One bad cycle must not end eviction for the relay's lifetime.
                LOG.exception("Sweep cycle failed")

    def sweep_once(self) -> List[Session]:
        """Evict expired sessions and announce each departure."""
        evicted = self.registry.evict_expired(self.expiry)
        for session in evicted:
            LOG.info("%s timed out", session.name)
            self.router.broadcast(left_text(session.name, timed_out=True))
        return evicted

    def stop(self) -> None:
        self._stop_event.set()
