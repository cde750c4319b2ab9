"""
Message dispatcher — turns triggered text messages into command replies.

Filtering, in order:
- test mode: only the account's own conversation is served
- trigger: the first token must equal the trigger tag and be followed by text
- staleness: messages older than the session-start watermark are dropped
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

from wa_relay.commands import CommandRegistry, execute as execute_command
from wa_relay.connection import ConnectionManager
from wa_relay.errors import ConnectionFailed, ErrorKind, error_kind
from wa_relay.models.message import InboundMessage, OutboundReply

logger = logging.getLogger(__name__)

DEFAULT_FAILURE_NOTICE = "Ouch, Got some error here while processing your request 🙈"

Executor = Callable[[CommandRegistry, list[str], int], tuple[list[str], Optional[Exception]]]
Sleep = Callable[[float], Awaitable[Any]]


class MessageDispatcher:
    def __init__(
        self,
        manager: ConnectionManager,
        registry: CommandRegistry,
        executor: Executor = execute_command,
        failure_notice: str = DEFAULT_FAILURE_NOTICE,
        reply_delay: float = 0.0,
        sleep: Sleep = asyncio.sleep,
    ):
        self._manager = manager
        self._registry = registry
        self._execute = executor
        self._failure_notice = failure_notice
        self._reply_delay = reply_delay
        self._sleep = sleep

    def extract_command(self, message: InboundMessage) -> Optional[list[str]]:
        """Return the command arguments, or None when the message must be ignored."""
        session = self._manager.session
        if session.test_mode and message.conversation_id != session.own_jid:
            return None

        parts = message.text.strip().split(" ", 1)
        if parts[0] != session.trigger_tag or len(parts) < 2:
            return None

        if message.timestamp < session.session_start:
            return None

        args = parts[1].split()
        return args or None

    async def handle_message(self, message: InboundMessage) -> None:
        args = self.extract_command(message)
        if args is None:
            return

        logger.info("command from %s (message %s): %s", message.conversation_id, message.message_id, " ".join(args))
        lines, err = self._execute(self._registry, args, 0)
        lines = list(lines)
        if err is not None:
            if not lines:
                lines = [self._failure_notice]
            else:
                lines[0] = f"{self._failure_notice}\n{lines[0]}"
            logger.error("%s", err)

        for line in lines:
            reply = OutboundReply(
                conversation_id=message.conversation_id,
                text=line,
                quoted_message_id=message.message_id,
                quoted_text=message.text,
                delay=self._reply_delay,
            )
            try:
                await self.send(reply)
            except Exception as e:
                logger.error("error while sending message to %s: %s", reply.conversation_id, e)

    async def send(self, reply: OutboundReply) -> None:
        transport = self._manager.transport
        if transport is None:
            raise ConnectionFailed("connection is not valid")
        if reply.delay > 0:
            await self._sleep(reply.delay)
        try:
            await transport.send(reply)
        except Exception as e:
            # the gateway may deliver after the ack deadline
            if error_kind(e) is ErrorKind.SEND_TIMEOUT:
                logger.debug("send to %s timed out, assuming delivered", reply.conversation_id)
                return
            raise
