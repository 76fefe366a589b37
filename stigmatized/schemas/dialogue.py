from typing import Any, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

# Messenger Send API limits
MAX_QUICK_REPLIES = 13
MAX_QUICK_REPLY_TITLE = 20
MAX_TEXT_LENGTH = 2000


class TextMessage(BaseModel):
    kind: Literal["text"] = "text"
    sender_id: str
    text: str
    quick_reply_payload: Optional[str] = None


class Attachment(BaseModel):
    kind: Literal["attachment"] = "attachment"
    sender_id: str
    text: Optional[str] = None
    attachment_types: list[str] = Field(default_factory=list)


class Postback(BaseModel):
    kind: Literal["postback"] = "postback"
    sender_id: str
    payload: str
    title: Optional[str] = None


InboundEvent = Union[TextMessage, Attachment, Postback]


class QuickReply(BaseModel):
    title: str = Field(min_length=1, max_length=MAX_QUICK_REPLY_TITLE)
    payload: str = Field(min_length=1, max_length=1000)

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> dict:
        return {"content_type": "text", "title": self.title, "payload": self.payload}


class OutboundAction(BaseModel):
    recipient_id: str
    text: str = Field(min_length=1, max_length=MAX_TEXT_LENGTH)
    quick_replies: list[QuickReply] = Field(default_factory=list, max_length=MAX_QUICK_REPLIES)

    @property
    def quick_reply_titles(self) -> list[str]:
        return [reply.title for reply in self.quick_replies]

    def to_message(self) -> dict:
        message: dict[str, Any] = {"text": self.text}
        if self.quick_replies:
            message["quick_replies"] = [reply.to_wire() for reply in self.quick_replies]
        return message


class ClassifierResult(BaseModel):
    """Entities, intents and traits detected in a text, each a ranked candidate list."""

    entities: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    intents: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)
    traits: dict[str, list[dict[str, Any]]] = Field(default_factory=dict)

    @classmethod
    def empty(cls) -> "ClassifierResult":
        return cls()

    def first_value(self, kind: Literal["entities", "intents", "traits"], key: str) -> Optional[Any]:
        """Value of the top-ranked candidate for key, or None."""
        candidates = getattr(self, kind).get(key) or []
        if not candidates or not isinstance(candidates[0], dict):
            return None
        return candidates[0].get("value") or None


class UserProfile(BaseModel):
    id: Optional[str] = None
    first_name: str = ""
    last_name: Optional[str] = None
