"""Shared fixtures: an in-memory transport and a controllable clock."""

import asyncio
from typing import Optional

import pytest

from wa_relay.commands import CommandRegistry
from wa_relay.connection import ConnectionManager, SessionDescriptor
from wa_relay.models.credentials import CredentialBundle
from wa_relay.models.message import InboundMessage, OutboundReply
from wa_relay.transport.base import Transport

OWN_JID = "628111111111@s.whatsapp.net"
SESSION_START = 1_700_000_000


def make_bundle(**overrides) -> CredentialBundle:
    data = {
        "client_id": "cid",
        "client_token": "ctok",
        "server_token": "stok",
        "enc_key": "ZW5j",
        "mac_key": "bWFj",
        "wid": OWN_JID,
    }
    data.update(overrides)
    return CredentialBundle(**data)


def make_message(text: str, timestamp: int = SESSION_START + 1, **overrides) -> InboundMessage:
    data = {
        "conversation_id": "628222222222@s.whatsapp.net",
        "message_id": "3EB0ABCDEF",
        "text": text,
        "timestamp": timestamp,
    }
    data.update(overrides)
    return InboundMessage(**data)


class FakeTransport(Transport):
    def __init__(self, bundle: Optional[CredentialBundle] = None):
        super().__init__()
        self.bundle = bundle or make_bundle()
        self.calls: list[str] = []
        self.sent: list[OutboundReply] = []
        self.pairing_code = "2@pairing-code"
        self.ping_result: tuple[bool, Optional[BaseException]] = (True, None)
        self.fail: dict[str, BaseException] = {}
        self.send_failures: dict[int, BaseException] = {}
        self._connected = False

    def _maybe_fail(self, name: str) -> None:
        self.calls.append(name)
        if name in self.fail:
            raise self.fail[name]

    @property
    def connected(self) -> bool:
        return self._connected

    async def open(self) -> str:
        self._maybe_fail("open")
        self._connected = True
        return "gateway version 2.2142.12"

    async def login(self, code_future: "asyncio.Future[str]") -> CredentialBundle:
        self._maybe_fail("login")
        code_future.set_result(self.pairing_code)
        await asyncio.sleep(0)
        return self.bundle

    async def restore_with_bundle(self, bundle: CredentialBundle) -> CredentialBundle:
        self._maybe_fail("restore_with_bundle")
        return self.bundle

    async def restore(self) -> None:
        self._maybe_fail("restore")

    async def send(self, reply: OutboundReply) -> None:
        self.calls.append("send")
        index = len(self.sent)
        self.sent.append(reply)
        if index in self.send_failures:
            raise self.send_failures[index]

    async def admin_test(self) -> tuple[bool, Optional[BaseException]]:
        self.calls.append("admin_test")
        return self.ping_result

    async def logout(self) -> None:
        self._maybe_fail("logout")

    async def disconnect(self) -> None:
        self._connected = False
        self._maybe_fail("disconnect")

    def push_message(self, message: InboundMessage) -> None:
        self._deliver_message(message)

    def push_error(self, error: BaseException) -> None:
        self._deliver_error(error)


class FakeClock:
    def __init__(self, now: float = SESSION_START):
        self.now = now

    def __call__(self) -> float:
        return self.now


class RecordingSleep:
    def __init__(self, clock: Optional[FakeClock] = None):
        self.delays: list[float] = []
        self._clock = clock

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self._clock is not None:
            self._clock.now += delay


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def sleep(clock) -> RecordingSleep:
    return RecordingSleep(clock)


@pytest.fixture
def session_file(tmp_path):
    return tmp_path / "session.json"


@pytest.fixture
def session(session_file, clock) -> SessionDescriptor:
    return SessionDescriptor(session_file, trigger_tag="!bot", reconnect_time=5, clock=clock)


@pytest.fixture
def manager(transport, session, sleep) -> ConnectionManager:
    return ConnectionManager(lambda timeout: transport, session, sleep=sleep)


@pytest.fixture
def registry() -> CommandRegistry:
    registry = CommandRegistry()

    @registry.command("ping")
    def _ping(_args):
        return ["pong"]

    return registry
