"""
Integration tests for wa-relay — tests against a running chat gateway.

Requires environment variables:
  WA_RELAY_SESSION_FILE  — session file saved by `wa-relay login`
  WA_RELAY_GATEWAY_URL   — (optional) defaults to http://127.0.0.1:8080

Run: WA_RELAY_INTEGRATION=1 pytest tests/integration/ -v
"""

import os
from pathlib import Path

import pytest

from wa_relay import AsyncRelay, ConnectionState, SessionNotFound
from wa_relay.config import RelayConfig
from wa_relay.transport.http import HttpClient

SKIP = not os.environ.get("WA_RELAY_INTEGRATION")
GATEWAY_URL = os.environ.get("WA_RELAY_GATEWAY_URL", "http://127.0.0.1:8080")
SESSION_FILE = os.environ.get("WA_RELAY_SESSION_FILE", "")

pytestmark = pytest.mark.skipif(SKIP, reason="WA_RELAY_INTEGRATION not set")


def make_relay(session_file) -> AsyncRelay:
    return AsyncRelay(RelayConfig(gateway_url=GATEWAY_URL, session_file=session_file, timeout=10))


class TestGateway:
    @pytest.mark.asyncio
    async def test_version_negotiation(self):
        http = HttpClient(GATEWAY_URL)
        try:
            major, minor, patch = await http.get_server_version()
        finally:
            await http.close()
        assert major >= 0 and minor >= 0 and patch >= 0

    @pytest.mark.asyncio
    async def test_restore_missing_session(self, tmp_path):
        relay = make_relay(tmp_path / "missing.json")
        with pytest.raises(SessionNotFound):
            await relay.restore()
        assert relay.manager.state is ConnectionState.DISCONNECTED
        await relay.close()


@pytest.mark.skipif(not SESSION_FILE, reason="WA_RELAY_SESSION_FILE not set")
class TestSavedSession:
    @pytest.mark.asyncio
    async def test_restore_and_ping(self):
        relay = make_relay(Path(SESSION_FILE))
        try:
            bundle = await relay.restore()
            assert bundle.wid
            assert relay.session.own_jid == bundle.wid
            await relay.manager.ping()
        finally:
            await relay.close()
