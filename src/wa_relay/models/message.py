"""
Text message models.
"""

from typing import Optional
from pydantic import BaseModel


class InboundMessage(BaseModel):
    conversation_id: str
    from_me: bool = False
    message_id: str
    text: str
    timestamp: int  # epoch seconds
    quoted_message_id: Optional[str] = None


class OutboundReply(BaseModel):
    conversation_id: str
    text: str
    quoted_message_id: Optional[str] = None
    quoted_text: Optional[str] = None
    delay: float = 0.0
