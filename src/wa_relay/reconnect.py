"""
Reconnect policy — consumes the transport's error channel.

One restore attempt per CONNECTION_FAILED event after a fixed delay. No
backoff and no retry cap: a failed attempt is logged and the next
disconnect event triggers the next attempt.
"""

import logging

from wa_relay import credentials
from wa_relay.connection import ConnectionManager
from wa_relay.errors import ErrorKind, error_kind

logger = logging.getLogger(__name__)


class ReconnectPolicy:
    def __init__(self, manager: ConnectionManager):
        self._manager = manager

    async def handle_error(self, err: BaseException) -> None:
        kind = error_kind(err)

        if kind is ErrorKind.CONNECTION_FAILED:
            self._manager.mark_disconnected()
            session = self._manager.session
            if credentials.exists(session.session_file) and self._manager.transport is not None:
                logger.warning(
                    "connection closed unexpectedly, reconnecting after %s seconds", session.reconnect_time,
                )
                try:
                    await self._manager.reconnect()
                except Exception as e:
                    logger.error("reconnect failed: %s", e)
            else:
                logger.error("connection closed unexpectedly")
            return

        if kind is ErrorKind.SERVER_CLOSED:
            return

        logger.error("%s", err)
