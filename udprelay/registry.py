#!/usr/bin/env python3
"""In-memory registry of present participants, keyed by UDP endpoint.

One :class:`threading.Lock` guards the table.  Critical sections are plain
dict operations; callers that need to talk to the network take a
:meth:`EndpointRegistry.snapshot` and do their I/O after the lock is gone.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, List, Optional

from .protocol import Endpoint

Clock = Callable[[], float]


@dataclass(frozen=True, slots=True)
class Session:
    """Relay-side record of one present participant.

    Frozen: a touch stores a fresh copy, so a snapshot handed to another
    thread never changes underneath it.
    """

    endpoint: Endpoint        # Where datagrams for this participant go
    name: str                 # Display name chosen at JOIN
    last_active_at: float     # Monotonic seconds of last recognised datagram


def is_expired(session: Session, now: float, timeout: float) -> bool:
    """True once ``timeout`` seconds have strictly passed since last activity."""
    return now - session.last_active_at > timeout


class EndpointRegistry:
    """Thread-safe endpoint -> :class:`Session` table."""

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._lock = threading.Lock()
        self._sessions: Dict[Endpoint, Session] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def __contains__(self, endpoint: Endpoint) -> bool:
        with self._lock:
            return endpoint in self._sessions

    def now(self) -> float:
        return self._clock()

    # ------------------------------------------------------------ mutation
    def upsert(self, endpoint: Endpoint, name: str) -> Session:
        """Create the session for ``endpoint``, replacing any previous one."""
        session = Session(endpoint, name, self._clock())
        with self._lock:
            self._sessions[endpoint] = session
        return session

    def touch(self, endpoint: Endpoint) -> Optional[Session]:
        """Refresh liveness; returns the refreshed session, or None if unknown."""
        with self._lock:
            session = self._sessions.get(endpoint)
            if session is None:
                return None
            session = replace(session, last_active_at=self._clock())
            self._sessions[endpoint] = session
            return session

    def remove(self, endpoint: Endpoint) -> Optional[Session]:
        with self._lock:
            return self._sessions.pop(endpoint, None)

    def evict_expired(self, timeout: float) -> List[Session]:
        """Remove and return every session idle for longer than ``timeout``.

        The clock is read and every expiry check is made under the lock, so a
        touch either lands before the check (and saves the session) or after
        the eviction (and finds nothing to refresh).
        """
        with self._lock:
            now = self._clock()
            expired = [s for s in self._sessions.values() if is_expired(s, now, timeout)]
            for session in expired:
                del self._sessions[session.endpoint]
        return expired

    # ------------------------------------------------------------ queries
    def get(self, endpoint: Endpoint) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(endpoint)

    def snapshot(self) -> List[Session]:
        """Point-in-time copy of all sessions, in join order."""
        with self._lock:
            return list(self._sessions.values())

    def active(self, timeout: float) -> List[Session]:
        """Sessions not yet expired right now, even if the sweeper hasn't run."""
        with self._lock:
            now = self._clock()
            return [s for s in self._sessions.values() if not is_expired(s, now, timeout)]
