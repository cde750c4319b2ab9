"""
Gateway envelope — every Socket.IO frame exchanged with the chat gateway.
"""

from typing import Any, Optional
from pydantic import BaseModel


class ClientSource(BaseModel):
    role: str  # "client" | "gateway"
    device_id: Optional[str] = None
    client_name: Optional[str] = None
    version: Optional[str] = None    # negotiated protocol version


class MessageMetadata(BaseModel):
    event_id: str
    request_id: Optional[str] = None
    timestamp: str
    source: ClientSource


class MessagePayload(BaseModel):
    conversation_id: Optional[str] = None
    message_id: Optional[str] = None
    quoted_message_id: Optional[str] = None
    type: Optional[str] = None
    data: Optional[Any] = None


class MessageEnvelope(BaseModel):
    metadata: MessageMetadata
    type: str
    payload: MessagePayload
