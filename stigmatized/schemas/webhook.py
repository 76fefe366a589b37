from typing import Any, Optional

from pydantic import BaseModel, Field


class MessengerParticipant(BaseModel):
    id: str


class MessengerQuickReply(BaseModel):
    payload: Optional[str] = None


class MessengerAttachment(BaseModel):
    type: Optional[str] = None
    payload: Optional[Any] = None


class MessengerMessage(BaseModel):
    mid: Optional[str] = None
    text: Optional[str] = None
    is_echo: bool = False
    quick_reply: Optional[MessengerQuickReply] = None
    attachments: Optional[list[MessengerAttachment]] = None


class MessengerPostback(BaseModel):
    title: Optional[str] = None
    payload: Optional[str] = None


class MessagingEvent(BaseModel):
    sender: Optional[MessengerParticipant] = None
    recipient: Optional[MessengerParticipant] = None
    timestamp: Optional[int] = None
    message: Optional[MessengerMessage] = None
    postback: Optional[MessengerPostback] = None


class WebhookEntry(BaseModel):
    id: Optional[str] = None
    time: Optional[int] = None
    messaging: list[MessagingEvent] = Field(default_factory=list)


class WebhookPayload(BaseModel):
    object: Optional[str] = None
    entry: list[WebhookEntry] = Field(default_factory=list)


class WebhookAck(BaseModel):
    success: bool
    events: int = 0
    message: Optional[str] = None
