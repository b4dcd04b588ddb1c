#!/usr/bin/env python3
"""Command-line participant for the UDP chat relay:

* Joins on start, leaves on /quit, EOF or Ctrl-C
* Prints relay traffic from a background thread while you type
* Pings the relay periodically so a quiet reader isn't evicted
* ANSI-coloured output via *colorama*.

Usage (after installing package locally):

    udprelay-client 203.0.113.22 --port 5001
"""

from __future__ import annotations

import argparse                                    # For CLI parsing
import random                                      # Guest name fallback
import socket                                      # Resolve errors
import sys                                         # Needed for prompt redraw
import threading                                   # Background threads
from typing import Optional

from .config import KEEPALIVE_INTERVAL, ClientSettings
from .protocol import (
    DEFAULT_PORT, LEAVE, LIST, PING, PONG, SYSTEM_PREFIX, Endpoint, chat_packet,
    encode, join_packet,
)
from .transport import UDPTransport, resolve
from .util import LOG

# 3rd-party: coloured terminal output
from colorama import Fore, Style, init
init(autoreset=True)                               # Reset colour after each print

PROMPT = "> "


class ChatClient:
    """One participant session; usable programmatically or via :meth:`start`."""

    def __init__(self, server_host: str, server_port: int = DEFAULT_PORT,
                 settings: Optional[ClientSettings] = None) -> None:
        self.settings = settings or ClientSettings()

        # -------- server endpoint (socket.gaierror if unresolvable) --------
        self.server: Endpoint = resolve(server_host, server_port)

        # -------- any free local port --------
        self.transport = UDPTransport()
        LOG.debug("Client bound on %s:%d", *self.transport.address)

        # -------- control flags --------
        # Set exactly once; every loop checks it before each iteration.
        self.stopping = threading.Event()
        self._connected = False
        self._recv_thread = threading.Thread(target=self._recv_loop, name="client-recv", daemon=True)
        self._ping_thread = threading.Thread(target=self._keepalive_loop, name="client-ping", daemon=True)

        self.name: str = ""

    # ================================================================== main ===
    def start(self, name: Optional[str] = None) -> None:
        """Blocking run-loop: read stdin while background threads do the rest."""
        try:
            if name is None:
                try:
                    name = input("Your name: ")
                except EOFError:                      # Nothing to join as
                    return
            self.connect(name)
            self._notice("Commands: /list (show users), /quit (exit), or just type to chat")

            while not self.stopping.is_set():
                try:
                    line = input(PROMPT)
                except EOFError:                      # Ctrl-D on *nix
                    break
                if not self.handle_line(line):
                    break
        except KeyboardInterrupt:                     # Graceful Ctrl-C
            pass
        finally:
            self.disconnect()

    def connect(self, name: str) -> None:
        """Send JOIN and start the receive and keepalive threads."""
        self.name = name.strip() or f"Guest{random.randint(1000, 9999)}"
        self._send(join_packet(self.name))
        self._connected = True
        self._recv_thread.start()
        self._ping_thread.start()
        LOG.info("Joined %s:%d as %s", self.server[0], self.server[1], self.name)

    def disconnect(self) -> None:
        """Stop pinging, say LEAVE, let the receiver finish, then close."""
        if self.stopping.is_set():
            return
        self.stopping.set()
        if self._connected:
            self._send(encode(LEAVE))
            # Receiver notices the flag within one receive timeout.
            self._recv_thread.join(self.settings.receive_timeout * 2)
            self._ping_thread.join(self.settings.receive_timeout)
        self.transport.close()
        LOG.info("Disconnected")

    # ---------------------------------------------------------------- input
    def handle_line(self, line: str) -> bool:
        """Translate one line of user input; returns False when it's time to quit."""
        text = line.strip()
        if not text:
            return True

        if text.startswith("/"):
            match text.lower():
                case "/quit":
                    return False
                case "/list":
                    self._send(encode(LIST))
                case _:
                    self._notice("Unknown command")
            return True

        self._send(chat_packet(line))
        return True

    # ---------------------------------------------------------------- networking
    def _send(self, payload: bytes) -> None:
        """Fire-and-forget; a failed send is reported but never fatal."""
        try:
            self.transport.send(payload, self.server)
        except OSError as exc:
            LOG.error("Send failed: %s", exc)

    def _recv_loop(self) -> None:
        """Background thread – render inbound datagrams then redraw prompt."""
        while not self.stopping.is_set():
            try:
                item = self.transport.receive(self.settings.receive_timeout)
            except OSError as exc:
                if self.stopping.is_set():
                    break
                # e.g. relay not up yet and the OS echoed port-unreachable
                LOG.error("Receive failed: %s", exc)
                self.stopping.wait(self.settings.receive_timeout)
                continue
            if item is None:
                continue                              # Poll timeout
            data, _ = item
            self.render(data.decode("utf-8", errors="replace"))

    def _keepalive_loop(self) -> None:
        # wait() returns True once shutdown starts
        while not self.stopping.wait(self.settings.keepalive_interval):
            self._send(encode(PING))

    # ---------------------------------------------------------------- output
    def render(self, text: str) -> None:
        """Print one relay datagram; the bare keepalive acknowledgement is hidden."""
        if text == PONG:
            return
        colour = Fore.CYAN if text.startswith(SYSTEM_PREFIX) else Fore.GREEN
        print(f"\r{colour}{text}{Style.RESET_ALL}")
        # Prompt re-paint so the user's current input line isn't lost
        sys.stdout.write(PROMPT)
        sys.stdout.flush()

    def _notice(self, text: str) -> None:
        print(f"{Fore.YELLOW}{text}{Style.RESET_ALL}")

# ======================================================================
#  Command-line entry point
# ======================================================================

def main(argv: Optional[list[str]] = None) -> None:
    """Parse CLI args then instantiate & run the chat client."""
    parser = argparse.ArgumentParser("udprelay-client", description="UDP chat participant")
    parser.add_argument("server_host", nargs="?", default="localhost", help="relay host")
    parser.add_argument("--port", type=int, default=DEFAULT_PORT, help="UDP port of relay")
    parser.add_argument("--name", default=None, help="display name (prompted if omitted)")
    parser.add_argument("--keepalive", type=float, default=KEEPALIVE_INTERVAL,
                        help="seconds between keepalive pings")
    args = parser.parse_args(argv)

    try:
        client = ChatClient(args.server_host, args.port,
                            ClientSettings(keepalive_interval=args.keepalive))
    except ValueError as exc:
        LOG.error("Bad settings: %s", exc)
        raise SystemExit(1)
    except socket.gaierror as exc:
        LOG.error("Unknown host %s: %s", args.server_host, exc)
        raise SystemExit(1)
    except OSError as exc:
        LOG.error("Could not open socket: %s", exc)
        raise SystemExit(1)
    client.start(args.name)


if __name__ == "__main__":
    main()
