#!/usr/bin/env python3
"""Logging setup **and** a helper that discovers our outward-facing IP address."""

from __future__ import annotations
import logging                           # Python stdlib logging framework
import socket                            # Needed for IP detection
import sys                               # For stdout handle
from logging.handlers import RotatingFileHandler

__all__ = ["LOG", "LOG_FILE", "configure_logging", "get_local_ip"]

LOG_FILE = "udp_relay.log"

# ----------------------------------------------------------------------
# configure_logging() builds a ready-to-use Logger with both console + file
# output.  Called once at import time; the singleton lives in LOG.
# ----------------------------------------------------------------------

def configure_logging(level: int = logging.INFO, log_file: str = LOG_FILE) -> logging.Logger:
    """Return the "udprelay" logger, attaching handlers only on first call.

    Later calls just adjust the level, so ``--verbose`` can bump an
    already-configured logger to DEBUG without doubling every line.
    """

    logger = logging.getLogger("udprelay")
    logger.setLevel(level)
    if logger.handlers:                     # Already wired up
        return logger

    # ----- Console handler (stdout) -----
    sh = logging.StreamHandler(sys.stdout)

    # ----- Rotating file handler -----
    # Rotates once file hits 1 MiB, keeps 3 backups.
    fh = RotatingFileHandler(
        log_file,
        maxBytes=1_048_576,
        backupCount=3,
        encoding="utf-8",
        delay=True,                         # Don't touch disk until first record
    )

    # Example: [23:59:59] INFO     alice joined from 127.0.0.1:50123
    fmt = logging.Formatter("[%(asctime)s] %(levelname)-8s %(message)s", "%H:%M:%S")
    sh.setFormatter(fmt)
    fh.setFormatter(fmt)

    logger.addHandler(sh)
    logger.addHandler(fh)

    return logger

# Importers simply do:
#     from udprelay.util import LOG
LOG = configure_logging()

# ----------------------------------------------------------------------
# best-effort outward IP discovery (no packets leave the host)
# ----------------------------------------------------------------------

def get_local_ip() -> str:
    """Return the host's primary IP, fallback to 127.0.0.1 on failure."""

    sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
    try:
        # connect() on UDP only asks the OS to pick a source address.
        sock.connect(("8.8.8.8", 80))
        return sock.getsockname()[0]
    except OSError:
        return "127.0.0.1"                      # Offline or no NIC
    finally:
        sock.close()
