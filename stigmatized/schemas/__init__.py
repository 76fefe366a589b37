from stigmatized.schemas.dialogue import (
    Attachment,
    ClassifierResult,
    InboundEvent,
    OutboundAction,
    Postback,
    QuickReply,
    TextMessage,
    UserProfile,
)
from stigmatized.schemas.webhook import WebhookAck, WebhookPayload

__all__ = [
    "Attachment",
    "ClassifierResult",
    "InboundEvent",
    "OutboundAction",
    "Postback",
    "QuickReply",
    "TextMessage",
    "UserProfile",
    "WebhookAck",
    "WebhookPayload",
]
