"""
Connection manager — owns the transport handle and drives the session lifecycle.

    UNINITIALIZED → INITIALIZED → AUTHENTICATING → CONNECTED → DISCONNECTED → TERMINATED

login/restore/logout always disconnect on failure before the error
propagates. Errors raised while cleaning up are logged and dropped so they
never mask the original failure.
"""

import asyncio
import logging
import time
from enum import Enum
from pathlib import Path
from typing import Any, Awaitable, Callable, Optional, Union

from wa_relay import credentials
from wa_relay.errors import (
    CredentialCorrupt,
    CredentialNotFound,
    InitError,
    InvalidState,
    PingFailed,
    SessionAlreadyExists,
    SessionCorrupt,
    SessionNotFound,
)
from wa_relay.models.credentials import CredentialBundle
from wa_relay.transport.base import Transport, TransportFactory

logger = logging.getLogger(__name__)

DEFAULT_RECONNECT_TIME = 30
DEFAULT_TRIGGER_TAG = "!bot"

PairingDisplay = Callable[[str], Any]
Sleep = Callable[[float], Awaitable[Any]]


class ConnectionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZED = "initialized"
    AUTHENTICATING = "authenticating"
    CONNECTED = "connected"
    DISCONNECTED = "disconnected"
    TERMINATED = "terminated"


class SessionDescriptor:
    """In-memory session state shared by the dispatcher and the reconnect policy."""

    def __init__(
        self,
        session_file: Union[str, Path],
        trigger_tag: str = DEFAULT_TRIGGER_TAG,
        reconnect_time: float = DEFAULT_RECONNECT_TIME,
        test_mode: bool = False,
        own_jid: str = "",
        clock: Callable[[], float] = time.time,
    ):
        self.session_file = Path(session_file)
        self.trigger_tag = trigger_tag
        self.reconnect_time = reconnect_time
        self.test_mode = test_mode
        self.own_jid = own_jid
        self._clock = clock
        self._session_start = int(clock())
        self._lock = asyncio.Lock()

    @property
    def session_start(self) -> int:
        return self._session_start

    async def reset_session_start(self) -> int:
        """Move the watermark to now. Never moves it backwards."""
        async with self._lock:
            self._session_start = max(self._session_start, int(self._clock()))
            return self._session_start


class ConnectionManager:
    def __init__(
        self,
        transport_factory: TransportFactory,
        session: SessionDescriptor,
        pairing_display: Optional[PairingDisplay] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self._factory = transport_factory
        self._session = session
        self._pairing_display = pairing_display or (lambda code: logger.info("pairing code: %s", code))
        self._sleep = sleep
        self._transport: Optional[Transport] = None
        self._state = ConnectionState.UNINITIALIZED

    @property
    def state(self) -> ConnectionState:
        return self._state

    @property
    def session(self) -> SessionDescriptor:
        return self._session

    @property
    def transport(self) -> Optional[Transport]:
        return self._transport

    def _require(self, *states: ConnectionState) -> Transport:
        if self._state not in states or self._transport is None:
            allowed = ", ".join(s.value for s in states)
            raise InvalidState(f"connection is {self._state.value}, expected {allowed}")
        return self._transport

    async def init(self, timeout: float) -> None:
        if self._state is not ConnectionState.UNINITIALIZED:
            raise InvalidState(f"connection already {self._state.value}")
        try:
            transport = self._factory(timeout)
            info = await transport.open()
        except Exception as e:
            raise InitError(f"cannot initialize connection: {e}") from e
        logger.info("%s", info)
        self._transport = transport
        self._state = ConnectionState.INITIALIZED

    async def _cleanup(self) -> None:
        transport = self._transport
        self._state = ConnectionState.DISCONNECTED
        if transport is None:
            return
        try:
            await transport.disconnect()
        except Exception as e:
            logger.debug("disconnect during cleanup failed: %s", e)

    def _adopt(self, bundle: CredentialBundle) -> None:
        if bundle.wid:
            self._session.own_jid = bundle.wid

    async def login(self, path: Union[str, Path]) -> CredentialBundle:
        transport = self._require(ConnectionState.INITIALIZED)
        if credentials.exists(path):
            await self._cleanup()
            raise SessionAlreadyExists()

        self._state = ConnectionState.AUTHENTICATING
        code_future: asyncio.Future[str] = asyncio.get_running_loop().create_future()
        display_task = asyncio.create_task(self._show_pairing_code(code_future))
        try:
            bundle = await transport.login(code_future)
            await display_task
            credentials.save(path, bundle)
            self._adopt(bundle)
            await self.ping()
        except BaseException:
            display_task.cancel()
            await asyncio.gather(display_task, return_exceptions=True)
            await self._cleanup()
            raise
        self._session.session_file = Path(path)
        self._state = ConnectionState.CONNECTED
        return bundle

    async def _show_pairing_code(self, code_future: "asyncio.Future[str]") -> None:
        code = await code_future
        result = self._pairing_display(code)
        if asyncio.iscoroutine(result):
            await result

    async def restore(self, path: Union[str, Path]) -> CredentialBundle:
        transport = self._require(ConnectionState.INITIALIZED)
        self._state = ConnectionState.AUTHENTICATING
        if not credentials.exists(path):
            await self._cleanup()
            raise SessionNotFound()
        try:
            bundle = credentials.load(path)
        except CredentialNotFound:
            await self._cleanup()
            raise SessionNotFound()
        except CredentialCorrupt as e:
            logger.warning("%s", e)
            try:
                credentials.remove(path)
            except OSError as rm_err:
                logger.debug("cannot remove corrupt session file: %s", rm_err)
            await self._cleanup()
            raise SessionCorrupt()
        except BaseException:
            await self._cleanup()
            raise

        try:
            bundle = await transport.restore_with_bundle(bundle)
            credentials.save(path, bundle)
            self._adopt(bundle)
            await self.ping()
        except BaseException:
            await self._cleanup()
            raise
        self._session.session_file = Path(path)
        self._state = ConnectionState.CONNECTED
        return bundle

    async def ping(self) -> None:
        if self._transport is None:
            raise InvalidState("connection is not valid")
        ok, err = await self._transport.admin_test()
        if not ok:
            if err is not None:
                raise err
            raise PingFailed()

    async def logout(self, path: Union[str, Path]) -> None:
        transport = self._require(ConnectionState.CONNECTED)
        try:
            await transport.logout()
            credentials.remove(path)
        finally:
            await self._cleanup()
            self._state = ConnectionState.TERMINATED

    def mark_disconnected(self) -> None:
        if self._state is ConnectionState.CONNECTED:
            self._state = ConnectionState.DISCONNECTED

    async def reconnect(self) -> None:
        """Reset the session watermark, wait reconnect_time, then restore in place."""
        transport = self._require(ConnectionState.CONNECTED, ConnectionState.DISCONNECTED)
        self._state = ConnectionState.DISCONNECTED
        await self._session.reset_session_start()
        await self._sleep(self._session.reconnect_time)
        await transport.restore()
        self._state = ConnectionState.CONNECTED
        logger.info("session restored")

    async def close(self) -> None:
        if self._state is ConnectionState.TERMINATED:
            return
        await self._cleanup()
        self._state = ConnectionState.TERMINATED
