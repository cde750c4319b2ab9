"""
Socket.IO transport — talks to the chat gateway.

Connection: {baseUrl}/api/socket.io/ with the device id in auth.
Waits for `ready` before open() resolves. Socket-level reconnection is off;
lost connections surface as CONNECTION_FAILED errors and recovery is left
to the reconnect policy.
"""

import asyncio
import logging
import uuid
from typing import Any, Callable, Optional

import socketio
from pydantic import ValidationError

from wa_relay.errors import ConnectionFailed, ErrorKind, RelayError, TransportError
from wa_relay.models.credentials import CredentialBundle
from wa_relay.models.envelope import MessageEnvelope
from wa_relay.models.events import C2SEvent, S2CEvent
from wa_relay.models.message import InboundMessage, OutboundReply
from wa_relay.transport.base import Transport
from wa_relay.transport.envelope import build_envelope, parse_envelope
from wa_relay.transport.http import DEFAULT_BASE_URL, HttpClient

logger = logging.getLogger(__name__)

SOCKETIO_PATH = "/api/socket.io/"
CLIENT_NAME = "wa-relay"
REQUEST_TIMEOUT_S = 20.0

# Disconnect reasons meaning the gateway shut the socket down on purpose
SERVER_CLOSE_REASONS = {"io server disconnect", "server disconnect"}

ERROR_CODES = {
    "connection_failed": ErrorKind.CONNECTION_FAILED,
    "server_closed": ErrorKind.SERVER_CLOSED,
    "send_timeout": ErrorKind.SEND_TIMEOUT,
}

EnvelopeListener = Callable[[str, MessageEnvelope], None]


def classify_disconnect(reason: str) -> RelayError:
    """Map a Socket.IO disconnect reason to a kind-tagged error."""
    if (reason or "").lower() in SERVER_CLOSE_REASONS:
        return TransportError("server closed connection", ErrorKind.SERVER_CLOSED, {"reason": reason})
    return ConnectionFailed(f"connection closed unexpectedly ({reason or 'unknown reason'})")


def error_from_payload(data: Any) -> TransportError:
    """Build a TransportError from a gateway `error` event body."""
    if not isinstance(data, dict):
        return TransportError(str(data))
    kind = ERROR_CODES.get(str(data.get("code", "")).lower(), ErrorKind.TRANSPORT)
    return TransportError(data.get("message") or str(data.get("code", "gateway error")), kind, data)


def message_from_envelope(envelope: MessageEnvelope) -> Optional[InboundMessage]:
    payload = envelope.payload
    data = payload.data if isinstance(payload.data, dict) else {}
    if not payload.conversation_id or not payload.message_id:
        return None
    return InboundMessage(
        conversation_id=payload.conversation_id,
        from_me=bool(data.get("from_me", False)),
        message_id=payload.message_id,
        text=data.get("text", ""),
        timestamp=int(data.get("timestamp", 0)),
        quoted_message_id=payload.quoted_message_id,
    )


def _bundle_from(data: Any) -> CredentialBundle:
    try:
        return CredentialBundle.model_validate(data)
    except ValidationError as e:
        raise TransportError(f"gateway sent an invalid session: {e.error_count()} field error(s)")


class SocketIOTransport(Transport):
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 5.0,
        client_name: str = CLIENT_NAME,
        device_id: Optional[str] = None,
        transports: Optional[list[str]] = None,
        http: Optional[HttpClient] = None,
    ):
        super().__init__()
        self._base_url = base_url
        self._timeout = timeout
        self._client_name = client_name
        self._device_id = device_id or str(uuid.uuid4())
        self._transports = transports or ["websocket"]
        self._http = http or HttpClient(base_url=base_url, timeout=timeout)
        self._sio: Optional[socketio.AsyncClient] = None
        self._connected = False
        self._closing = False
        self._version: Optional[str] = None
        self._bundle: Optional[CredentialBundle] = None
        self._listeners: list[EnvelopeListener] = []
        self._pending: set[asyncio.Future] = set()

    @property
    def connected(self) -> bool:
        return self._connected and self._sio is not None and self._sio.connected

    @property
    def version(self) -> Optional[str]:
        return self._version

    async def open(self) -> str:
        major, minor, patch = await self._http.get_server_version()
        self._version = f"{major}.{minor}.{patch}"
        await self._connect()
        return f"gateway version {self._version}"

    async def _connect(self) -> None:
        if self._sio and self._sio.connected:
            return

        self._sio = socketio.AsyncClient(reconnection=False)
        ready_event = asyncio.Event()

        @self._sio.on(S2CEvent.READY)
        async def on_ready(*_args: Any) -> None:
            self._connected = True
            ready_event.set()

        @self._sio.on("*")
        async def on_any(event: str, data: Any) -> None:
            self._dispatch(event, data)

        @self._sio.event
        async def disconnect(reason: str = "") -> None:
            self._on_disconnect(reason)

        self._closing = False
        try:
            await self._sio.connect(
                self._base_url,
                auth={"device_id": self._device_id, "client_name": self._client_name},
                transports=self._transports,
                socketio_path=SOCKETIO_PATH,
                wait_timeout=self._timeout,
            )
        except socketio.exceptions.ConnectionError as e:
            raise TransportError(f"cannot connect to gateway: {e}", ErrorKind.CONNECTION_FAILED)

        try:
            await asyncio.wait_for(ready_event.wait(), timeout=self._timeout)
        except asyncio.TimeoutError:
            await self._sio.disconnect()
            raise TransportError(f"timed out waiting for 'ready' event after {self._timeout}s", ErrorKind.CONNECTION_FAILED)

    def _dispatch(self, event: str, raw: Any) -> None:
        envelope = parse_envelope(raw)
        if envelope is None:
            logger.debug("dropping malformed %s frame", event)
            return
        for listener in list(self._listeners):
            listener(event, envelope)
        if event == S2CEvent.MESSAGE_TEXT:
            message = message_from_envelope(envelope)
            if message is not None:
                self._deliver_message(message)
        elif event == S2CEvent.ERROR and envelope.metadata.request_id is None:
            self._deliver_error(error_from_payload(envelope.payload.data))

    def _on_disconnect(self, reason: str) -> None:
        self._connected = False
        error = classify_disconnect(reason)
        for future in list(self._pending):
            if not future.done():
                future.set_exception(error)
        if self._closing:
            return
        self._deliver_error(error)

    def _track(self, future: asyncio.Future) -> Callable[[], None]:
        """Fail future if the socket drops before it resolves."""
        self._pending.add(future)
        return lambda: self._pending.discard(future)

    def _add_listener(self, listener: EnvelopeListener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._remove(self._listeners, listener)

    def _envelope(self, event_type: str, data: Any, request_id: Optional[str] = None, **payload: Any) -> dict[str, Any]:
        return build_envelope(
            event_type, data,
            device_id=self._device_id,
            client_name=self._client_name,
            version=self._version,
            request_id=request_id,
            **payload,
        )

    async def emit_and_wait(
        self,
        event_type: str,
        data: Any,
        timeout: float = REQUEST_TIMEOUT_S,
        timeout_kind: ErrorKind = ErrorKind.TRANSPORT,
        **payload: Any,
    ) -> dict[str, Any]:
        """Emit a request and wait for the reply carrying the same request_id."""
        if not self._sio or not self._sio.connected:
            raise ConnectionFailed("connection is not valid")
        request_id = str(uuid.uuid4())
        result: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()

        def response_listener(evt: str, envelope: MessageEnvelope) -> None:
            if envelope.metadata.request_id != request_id or result.done():
                return
            body = envelope.payload.data if isinstance(envelope.payload.data, dict) else {}
            if evt == S2CEvent.ERROR:
                result.set_exception(error_from_payload(body))
            elif evt == event_type:
                result.set_result(body)

        remove = self._add_listener(response_listener)
        untrack = self._track(result)
        try:
            await self._sio.emit(event_type, self._envelope(event_type, data, request_id=request_id, **payload))
            return await asyncio.wait_for(result, timeout=timeout)
        except asyncio.TimeoutError:
            raise TransportError(f"{event_type} timed out", timeout_kind)
        finally:
            untrack()
            remove()

    async def login(self, code_future: "asyncio.Future[str]") -> CredentialBundle:
        if not self._sio or not self._sio.connected:
            raise ConnectionFailed("connection is not valid")
        paired: asyncio.Future[dict[str, Any]] = asyncio.get_running_loop().create_future()

        def pairing_listener(evt: str, envelope: MessageEnvelope) -> None:
            body = envelope.payload.data if isinstance(envelope.payload.data, dict) else {}
            if evt == S2CEvent.PAIRING_CODE and not code_future.done():
                code_future.set_result(str(body.get("code", "")))
            elif paired.done():
                return
            elif evt == S2CEvent.PAIRING_SUCCESS:
                paired.set_result(body)
            elif evt == S2CEvent.PAIRING_FAILED:
                paired.set_exception(TransportError(body.get("message") or "pairing failed", details=body))

        remove = self._add_listener(pairing_listener)
        untrack = self._track(paired)
        try:
            await self._sio.emit(C2SEvent.SESSION_LOGIN, self._envelope(C2SEvent.SESSION_LOGIN, None))
            body = await paired
        finally:
            untrack()
            remove()
        self._bundle = _bundle_from(body.get("session", body))
        return self._bundle

    async def restore_with_bundle(self, bundle: CredentialBundle) -> CredentialBundle:
        await self._connect()
        body = await self.emit_and_wait(C2SEvent.SESSION_RESTORE, bundle.model_dump())
        refreshed = body.get("session")
        self._bundle = _bundle_from(refreshed) if refreshed else bundle
        return self._bundle

    async def restore(self) -> None:
        if self._bundle is None:
            raise TransportError("no session to restore, login or restore first")
        await self.restore_with_bundle(self._bundle)

    async def send(self, reply: OutboundReply) -> None:
        await self.emit_and_wait(
            C2SEvent.MESSAGE_SEND,
            {"text": reply.text, "quoted_text": reply.quoted_text},
            timeout_kind=ErrorKind.SEND_TIMEOUT,
            conversation_id=reply.conversation_id,
            quoted_message_id=reply.quoted_message_id,
        )

    async def admin_test(self) -> tuple[bool, Optional[BaseException]]:
        try:
            body = await self.emit_and_wait(C2SEvent.ADMIN_TEST, None, timeout=self._timeout)
        except TransportError as e:
            return False, e
        return bool(body.get("ok")), None

    async def logout(self) -> None:
        await self.emit_and_wait(C2SEvent.SESSION_LOGOUT, None)
        self._bundle = None

    async def disconnect(self) -> None:
        self._closing = True
        self._connected = False
        try:
            if self._sio:
                await self._sio.disconnect()
                self._sio = None
        finally:
            await self._http.close()
