"""
Relay daemon — pumps the transport's two delivery channels.

Inbound messages and connection errors land in two unbounded queues, each
drained by a single consumer task. Events on one channel are handled in
arrival order; the two channels run concurrently.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from wa_relay.connection import ConnectionManager
from wa_relay.dispatcher import MessageDispatcher
from wa_relay.errors import InvalidState
from wa_relay.models.message import InboundMessage
from wa_relay.reconnect import ReconnectPolicy

logger = logging.getLogger(__name__)


class RelayDaemon:
    def __init__(self, manager: ConnectionManager, dispatcher: MessageDispatcher, policy: ReconnectPolicy):
        self._manager = manager
        self._dispatcher = dispatcher
        self._policy = policy
        self._messages: asyncio.Queue[InboundMessage] = asyncio.Queue()
        self._errors: asyncio.Queue[BaseException] = asyncio.Queue()
        self._stopped = asyncio.Event()
        self._detach: list[Callable[[], None]] = []

    @property
    def messages(self) -> "asyncio.Queue[InboundMessage]":
        return self._messages

    @property
    def errors(self) -> "asyncio.Queue[BaseException]":
        return self._errors

    def attach(self) -> None:
        transport = self._manager.transport
        if transport is None:
            raise InvalidState("connection is not valid")
        if self._detach:
            return
        self._detach = [
            transport.on_message(self._messages.put_nowait),
            transport.on_error(self._errors.put_nowait),
        ]

    def detach(self) -> None:
        for remove in self._detach:
            remove()
        self._detach = []

    async def _consume(self, name: str, queue: "asyncio.Queue[Any]", handler: Callable[[Any], Awaitable[None]]) -> None:
        while True:
            item = await queue.get()
            try:
                await handler(item)
            except Exception:
                logger.exception("%s handler failed", name)
            finally:
                queue.task_done()

    async def run(self) -> None:
        """Serve until stop() is called."""
        self.attach()
        self._stopped.clear()
        tasks = [
            asyncio.create_task(self._consume("message", self._messages, self._dispatcher.handle_message)),
            asyncio.create_task(self._consume("error", self._errors, self._policy.handle_error)),
        ]
        logger.info("relay running, waiting for '%s' commands", self._manager.session.trigger_tag)
        try:
            await self._stopped.wait()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self.detach()

    def stop(self) -> None:
        self._stopped.set()

    async def drain(self, timeout: Optional[float] = None) -> None:
        """Wait until both queues are empty and every event has been handled."""
        await asyncio.wait_for(
            asyncio.gather(self._messages.join(), self._errors.join()),
            timeout=timeout,
        )
