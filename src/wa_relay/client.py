"""
AsyncRelay — wires configuration, transport, connection manager, dispatcher,
reconnect policy and daemon together.
"""

import asyncio
import logging
from typing import Optional

from wa_relay.commands import CommandRegistry, default_registry
from wa_relay.config import RelayConfig
from wa_relay.connection import ConnectionManager, PairingDisplay, SessionDescriptor, Sleep
from wa_relay.daemon import RelayDaemon
from wa_relay.dispatcher import MessageDispatcher
from wa_relay.models.credentials import CredentialBundle
from wa_relay.reconnect import ReconnectPolicy
from wa_relay.transport.base import Transport, TransportFactory
from wa_relay.transport.socketio import SocketIOTransport

logger = logging.getLogger(__name__)


class AsyncRelay:
    """Async relay client (primary)."""

    def __init__(
        self,
        config: Optional[RelayConfig] = None,
        transport_factory: Optional[TransportFactory] = None,
        registry: Optional[CommandRegistry] = None,
        pairing_display: Optional[PairingDisplay] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        from wa_relay import __version__

        self.config = config or RelayConfig()
        self.registry = registry or default_registry(__version__)
        self.session = SessionDescriptor(
            session_file=self.config.session_file,
            trigger_tag=self.config.trigger_tag,
            reconnect_time=self.config.reconnect_time,
            test_mode=self.config.test_mode,
        )
        self.manager = ConnectionManager(
            transport_factory or self._socketio_transport,
            self.session,
            pairing_display=pairing_display,
            sleep=sleep,
        )
        self.dispatcher = MessageDispatcher(
            self.manager,
            self.registry,
            failure_notice=self.config.failure_notice,
            reply_delay=self.config.reply_delay,
            sleep=sleep,
        )
        self.policy = ReconnectPolicy(self.manager)
        self.daemon = RelayDaemon(self.manager, self.dispatcher, self.policy)

    def _socketio_transport(self, timeout: float) -> Transport:
        return SocketIOTransport(base_url=self.config.gateway_url, timeout=timeout)

    async def connect(self) -> None:
        await self.manager.init(self.config.timeout)

    async def login(self) -> CredentialBundle:
        """Pair a new session and persist its credentials."""
        await self.connect()
        return await self.manager.login(self.config.session_file)

    async def restore(self) -> CredentialBundle:
        await self.connect()
        return await self.manager.restore(self.config.session_file)

    async def logout(self) -> None:
        await self.restore()
        await self.manager.logout(self.config.session_file)

    async def serve(self) -> None:
        """Restore the saved session and relay commands until stop() is called."""
        await self.connect()
        # queue messages that arrive while the session is being restored
        self.daemon.attach()
        try:
            await self.manager.restore(self.config.session_file)
            logger.info("logged in as %s", self.session.own_jid or "unknown")
            await self.daemon.run()
        finally:
            self.daemon.detach()
            await self.close()

    def stop(self) -> None:
        self.daemon.stop()

    async def close(self) -> None:
        await self.manager.close()
