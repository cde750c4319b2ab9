"""CLI commands against an in-memory transport."""

import asyncio
import logging
import time

import pytest
from click.testing import CliRunner

from wa_relay import __version__, credentials
from wa_relay.cli import main as cli_main
from wa_relay.client import AsyncRelay

from conftest import FakeTransport, make_bundle, make_message


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.fixture
def fake(monkeypatch):
    transport = FakeTransport()
    relays = []

    def factory(cfg, **kwargs):
        relay = AsyncRelay(cfg, transport_factory=lambda timeout: transport, **kwargs)
        relays.append(relay)
        return relay

    monkeypatch.setattr(cli_main, "relay_factory", factory)
    transport.relays = relays
    return transport


def invoke(tmp_path, *args):
    runner = CliRunner()
    return runner.invoke(cli_main.main, ["--config", str(tmp_path / "config.json"), *args])


def test_version(tmp_path):
    result = invoke(tmp_path, "version")
    assert result.exit_code == 0
    assert f"wa-relay {__version__}" in result.output


def test_login_saves_session(tmp_path, fake):
    session_file = tmp_path / "session.json"

    result = invoke(tmp_path, "login", "--session-file", str(session_file))

    assert result.exit_code == 0, result.output
    assert fake.pairing_code in result.output
    assert "Logged in as" in result.output
    assert credentials.load(session_file) == fake.bundle


def test_login_with_existing_session(tmp_path, fake):
    session_file = tmp_path / "session.json"
    credentials.save(session_file, make_bundle())

    result = invoke(tmp_path, "login", "--session-file", str(session_file))

    assert result.exit_code == 1
    assert "please logout first" in result.output
    assert "login" not in fake.calls


def test_login_unwritable_session_file(tmp_path, fake, monkeypatch):
    session_file = tmp_path / "session.json"

    def unwritable(path, bundle):
        raise PermissionError(13, "Permission denied", str(path))

    monkeypatch.setattr(credentials, "save", unwritable)

    result = invoke(tmp_path, "login", "--session-file", str(session_file))

    assert result.exit_code == 1
    assert "Permission denied" in result.output
    assert "Traceback" not in result.output
    assert fake.calls[-1] == "disconnect"


def test_logout_removes_session(tmp_path, fake):
    session_file = tmp_path / "session.json"
    credentials.save(session_file, make_bundle())

    result = invoke(tmp_path, "logout", "--session-file", str(session_file))

    assert result.exit_code == 0, result.output
    assert "Logged out." in result.output
    assert not session_file.exists()
    assert fake.calls[-2:] == ["logout", "disconnect"]


def test_daemon_without_session(tmp_path, fake):
    result = invoke(tmp_path, "daemon", "--session-file", str(tmp_path / "missing.json"))

    assert result.exit_code == 1
    assert "please login first" in result.output


def test_daemon_relays_until_stopped(tmp_path, fake, monkeypatch):
    session_file = tmp_path / "session.json"
    credentials.save(session_file, make_bundle())
    original = cli_main.relay_factory

    def factory(cfg, **kwargs):
        relay = original(cfg, **kwargs)
        serve_forever = relay.daemon.run

        async def run_once():
            task = asyncio.ensure_future(serve_forever())
            await asyncio.sleep(0)
            fake.push_message(make_message("!ops ping", timestamp=int(time.time()) + 60))
            await relay.daemon.drain(timeout=1)
            relay.stop()
            await task

        relay.daemon.run = run_once
        return relay

    monkeypatch.setattr(cli_main, "relay_factory", factory)

    result = invoke(tmp_path, "daemon", "--session-file", str(session_file), "-t", "!ops")

    assert result.exit_code == 0, result.output
    assert "Relaying '!ops' commands" in result.output
    assert [r.text for r in fake.sent] == ["pong"]
    assert fake.relays[0].manager.state.name == "TERMINATED"


def test_invalid_override(tmp_path):
    result = invoke(tmp_path, "daemon", "--reconnect-time", "-1")
    assert result.exit_code == 2
