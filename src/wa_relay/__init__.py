"""
wa-relay — chat command relay for Python.

Keeps a paired chat session alive and answers trigger-tagged text
messages with the output of registered commands.
"""

__version__ = "0.1.0"

from wa_relay.client import AsyncRelay
from wa_relay.commands import Command, CommandRegistry, default_registry, execute
from wa_relay.connection import ConnectionManager, ConnectionState, SessionDescriptor
from wa_relay.dispatcher import MessageDispatcher
from wa_relay.reconnect import ReconnectPolicy
from wa_relay.daemon import RelayDaemon
from wa_relay.errors import (
    RelayError,
    ErrorKind,
    InitError,
    SessionError,
    SessionAlreadyExists,
    SessionNotFound,
    SessionCorrupt,
    ConnectionFailed,
    PingFailed,
    CommandExecutionError,
    TransportError,
)

__all__ = [
    "AsyncRelay",
    "Command",
    "CommandRegistry",
    "default_registry",
    "execute",
    "ConnectionManager",
    "ConnectionState",
    "SessionDescriptor",
    "MessageDispatcher",
    "ReconnectPolicy",
    "RelayDaemon",
    "RelayError",
    "ErrorKind",
    "InitError",
    "SessionError",
    "SessionAlreadyExists",
    "SessionNotFound",
    "SessionCorrupt",
    "ConnectionFailed",
    "PingFailed",
    "CommandExecutionError",
    "TransportError",
]
