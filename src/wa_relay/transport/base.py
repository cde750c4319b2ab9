"""
Transport interface — the chat connection as seen by the connection manager.

Implementations deliver inbound messages and connection errors through the
handlers registered with on_message() / on_error(). Handlers must be cheap
and non-blocking; the daemon registers queue.put_nowait.
"""

import asyncio
from abc import ABC, abstractmethod
from typing import Callable, Optional

from wa_relay.models.credentials import CredentialBundle
from wa_relay.models.message import InboundMessage, OutboundReply

MessageHandler = Callable[[InboundMessage], None]
ErrorHandler = Callable[[BaseException], None]


class Transport(ABC):
    def __init__(self) -> None:
        self._message_handlers: list[MessageHandler] = []
        self._error_handlers: list[ErrorHandler] = []

    def on_message(self, handler: MessageHandler) -> Callable[[], None]:
        """Register an inbound message handler. Returns a cleanup function."""
        self._message_handlers.append(handler)
        return lambda: self._remove(self._message_handlers, handler)

    def on_error(self, handler: ErrorHandler) -> Callable[[], None]:
        """Register a connection error handler. Returns a cleanup function."""
        self._error_handlers.append(handler)
        return lambda: self._remove(self._error_handlers, handler)

    @staticmethod
    def _remove(handlers: list, handler: Callable) -> None:
        try:
            handlers.remove(handler)
        except ValueError:
            pass

    def _deliver_message(self, message: InboundMessage) -> None:
        for handler in list(self._message_handlers):
            handler(message)

    def _deliver_error(self, error: BaseException) -> None:
        for handler in list(self._error_handlers):
            handler(error)

    @property
    @abstractmethod
    def connected(self) -> bool: ...

    @abstractmethod
    async def open(self) -> str:
        """Negotiate the protocol version and connect. Returns a version description."""

    @abstractmethod
    async def login(self, code_future: "asyncio.Future[str]") -> CredentialBundle:
        """Start pairing; resolve code_future with the pairing code, return the bundle once paired."""

    @abstractmethod
    async def restore_with_bundle(self, bundle: CredentialBundle) -> CredentialBundle:
        """Resume the session described by bundle. Returns the (possibly refreshed) bundle."""

    @abstractmethod
    async def restore(self) -> None:
        """Resume using the bundle held in memory from the last login/restore."""

    @abstractmethod
    async def send(self, reply: OutboundReply) -> None: ...

    @abstractmethod
    async def admin_test(self) -> tuple[bool, Optional[BaseException]]: ...

    @abstractmethod
    async def logout(self) -> None: ...

    @abstractmethod
    async def disconnect(self) -> None: ...


TransportFactory = Callable[[float], Transport]
