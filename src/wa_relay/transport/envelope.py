"""
Envelope construction and parsing for gateway frames.
"""

import uuid
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import ValidationError

from wa_relay.models.envelope import ClientSource, MessageEnvelope, MessageMetadata, MessagePayload


def build_envelope(
    event_type: str,
    data: Any,
    device_id: str,
    client_name: str,
    version: Optional[str] = None,
    conversation_id: Optional[str] = None,
    message_id: Optional[str] = None,
    quoted_message_id: Optional[str] = None,
    request_id: Optional[str] = None,
) -> dict[str, Any]:
    """Build a client envelope as a dict ready for Socket.IO emit."""
    envelope = MessageEnvelope(
        metadata=MessageMetadata(
            event_id=str(uuid.uuid4()),
            request_id=request_id or str(uuid.uuid4()),
            timestamp=datetime.now(timezone.utc).isoformat(),
            source=ClientSource(role="client", device_id=device_id, client_name=client_name, version=version),
        ),
        type=event_type,
        payload=MessagePayload(
            conversation_id=conversation_id,
            message_id=message_id,
            quoted_message_id=quoted_message_id,
            type=event_type,
            data=data,
        ),
    )
    return envelope.model_dump()


def parse_envelope(raw: Any) -> Optional[MessageEnvelope]:
    """Parse a gateway envelope. Returns None if invalid."""
    try:
        return MessageEnvelope.model_validate(raw)
    except ValidationError:
        return None
