#!/usr/bin/env python3
"""UDP chat relay:

* Presence tracking keyed by (ip, port), refreshed by any recognised datagram
* Chat fan-out to everyone but the sender
* Background eviction of participants that went quiet
* No persistence – everything lives in RAM until process exits.
"""

from __future__ import annotations

import argparse                       # CLI parsing
import logging
import queue                          # Thread-safe FIFO between recv-thread & dispatcher
import threading                      # Concurrency primitives
from typing import Optional, Tuple

from .config import CLIENT_TIMEOUT, SWEEP_INTERVAL, RelaySettings
from .protocol import DEFAULT_PORT, Endpoint
from .registry import EndpointRegistry
from .router import MessageRouter
from .sweeper import LivenessSweeper
from .transport import UDPTransport
from .util import LOG, configure_logging, get_local_ip

WILDCARD_HOST = "0.0.0.0"             # What getsockname() reports for a "" bind


class RelayServer:
    """Receive thread -> queue -> single dispatcher, plus the sweeper thread."""

    def __init__(self, host: str, port: int = DEFAULT_PORT,
                 settings: Optional[RelaySettings] = None) -> None:
        self.settings = settings or RelaySettings()

        # ------ bind socket (raises OSError if the port is taken) ------
        self.transport = UDPTransport(host, port)
        self.address: Endpoint = self.transport.address

        # ------ runtime state ------
        self.registry = EndpointRegistry()
        self.router = MessageRouter(self.registry, self.transport, self.settings.expiry)
        self.sweeper = LivenessSweeper(
            self.registry, self.router, self.settings.expiry, self.settings.sweep_interval,
        )

        # Receive thread pushes datagrams, dispatcher pops.
        self.recv_q: "queue.Queue[Tuple[bytes, Endpoint]]" = queue.Queue()

        # Cleared once to shut every loop down cooperatively.
        self.running = threading.Event()
        self.running.set()
        self._stop_lock = threading.Lock()
        self._recv_thread = threading.Thread(target=self._recv_loop, name="relay-recv", daemon=True)

    # ================================================================= main ===
    def start(self) -> None:
        """Block in the dispatch loop until :meth:`stop` or Ctrl-C."""
        LOG.info("Relay listening on %s:%d (expiry %.0fs, sweep every %.0fs)",
                 self.address[0], self.address[1],
                 self.settings.expiry, self.settings.sweep_interval)
        if self.address[0] == WILDCARD_HOST:
            # Loopback clients use 127.0.0.1; everyone else needs the LAN address.
            LOG.info("Remote participants can reach it at %s:%d", get_local_ip(), self.address[1])
        self._recv_thread.start()
        self.sweeper.start()
        try:
            self._process_loop()
        except KeyboardInterrupt:
            LOG.info("Shutdown requested")
        finally:
            self.stop()

    def serve_in_background(self) -> threading.Thread:
        """Run :meth:`start` on a daemon thread and return it."""
        thread = threading.Thread(target=self.start, name="relay-main", daemon=True)
        thread.start()
        return thread

    def stop(self) -> None:
        with self._stop_lock:
            if not self.running.is_set():
                return
            self.running.clear()
        self.sweeper.stop()
        if self._recv_thread.is_alive():
            self._recv_thread.join(self.settings.poll_interval * 4)
        self.transport.close()
        LOG.info("Relay stopped")

    # ---------------------------------------------------------------- internals
    def _recv_loop(self) -> None:
        """Listener thread – enqueue datagrams as they arrive."""
        while self.running.is_set():
            try:
                item = self.transport.receive(self.settings.poll_interval)
            except OSError as exc:
                if not self.running.is_set() or self.transport.closed:
                    break                      # Socket closed during shutdown
                # e.g. ICMP port-unreachable echoed back on some platforms
                LOG.error("Receive failed: %s", exc)
                self.running.wait(self.settings.poll_interval)
                continue
            if item is not None:
                self.recv_q.put(item)

    def _process_loop(self) -> None:
        """Single dispatcher – dequeue datagrams and hand them to the router."""
        while self.running.is_set():
            try:
                data, addr = self.recv_q.get(timeout=self.settings.poll_interval)
            except queue.Empty:
                continue                       # Allow shutdown check
            try:
                self.router.handle(data, addr)
            except Exception:
                LOG.exception("Failed to handle datagram from %s:%d", *addr)

# ======================================================================
#  Command-line entry point
# ======================================================================

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser("udprelay-server", description="UDP chat relay")
    parser.add_argument("--host", default="", help="bind address (default: all interfaces)")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT)
    parser.add_argument("--expiry", type=float, default=CLIENT_TIMEOUT,
                        help="seconds of silence before a participant is dropped")
    parser.add_argument("--sweep-interval", type=float, default=SWEEP_INTERVAL,
                        help="seconds between idle-participant sweeps")
    parser.add_argument("-v", "--verbose", action="store_true", help="log at DEBUG level")
    return parser


def main(argv: Optional[list[str]] = None) -> None:
    args = build_parser().parse_args(argv)

    if args.verbose:
        configure_logging(logging.DEBUG)

    host = args.host
    try:
        settings = RelaySettings(expiry=args.expiry, sweep_interval=args.sweep_interval)
        server = RelayServer(host, args.port, settings)
    except ValueError as exc:
        LOG.error("Bad settings: %s", exc)
        raise SystemExit(1)
    except OSError as exc:
        LOG.error("Could not start relay on %s:%d: %s", host, args.port, exc)
        raise SystemExit(1)
    server.start()


if __name__ == "__main__":
    main()
