#!/usr/bin/env python3
"""Timing knobs for relay and participant, with sanity checks."""

from __future__ import annotations

from dataclasses import dataclass

# --- Defaults (seconds) ----------------------------------------------------
CLIENT_TIMEOUT: float = 30.0       # Idle time before the relay evicts a session
SWEEP_INTERVAL: float = 10.0       # How often the relay looks for idle sessions
KEEPALIVE_INTERVAL: float = 15.0   # How often a participant pings
RECEIVE_TIMEOUT: float = 1.0       # Participant receive poll, bounds shutdown latency
POLL_INTERVAL: float = 0.5         # Relay queue/socket poll, bounds shutdown latency


@dataclass(slots=True)
class RelaySettings:
    expiry: float = CLIENT_TIMEOUT
    sweep_interval: float = SWEEP_INTERVAL
    poll_interval: float = POLL_INTERVAL

    def __post_init__(self) -> None:
        for field_name in ("expiry", "sweep_interval", "poll_interval"):
            if getattr(self, field_name) <= 0:
                raise ValueError(f"{field_name} must be positive")
        if self.expiry <= self.sweep_interval:
            raise ValueError(
                f"expiry ({self.expiry}s) must exceed sweep interval ({self.sweep_interval}s)"
            )


@dataclass(slots=True)
class ClientSettings:
    # Must stay comfortably below the relay's expiry or idle readers get evicted.
    keepalive_interval: float = KEEPALIVE_INTERVAL
    receive_timeout: float = RECEIVE_TIMEOUT

    def __post_init__(self) -> None:
        if self.keepalive_interval <= 0 or self.receive_timeout <= 0:
            raise ValueError("intervals must be positive")
        if self.receive_timeout >= self.keepalive_interval:
            raise ValueError("receive timeout must be shorter than the keepalive interval")
