"""UDP Relay – a connectionless chat relay with presence tracking.

Importing this package exposes :class:`udprelay.RelayServer` and
:class:`udprelay.ChatClient`, so either side can be embedded in another
application or launched via the ``udprelay-server`` / ``udprelay-client``
console scripts.
"""

# ------------------------ re-exports ------------------------
from .client import ChatClient       # noqa: F401  ── participant session
from .registry import EndpointRegistry, Session  # noqa: F401
from .router import MessageRouter    # noqa: F401
from .server import RelayServer      # noqa: F401  ── relay process
from .sweeper import LivenessSweeper  # noqa: F401

# ------------------------ public API ------------------------
__all__: list[str] = [
    "ChatClient",
    "EndpointRegistry",
    "LivenessSweeper",
    "MessageRouter",
    "RelayServer",
    "Session",
]
