import pytest
from pydantic import ValidationError

from stigmatized.schemas.dialogue import (
    MAX_QUICK_REPLIES,
    ClassifierResult,
    OutboundAction,
    QuickReply,
)
from stigmatized.schemas.webhook import WebhookPayload
from stigmatized.services.script import SCRIPT


class TestQuickReply:
    def test_title_limit(self):
        with pytest.raises(ValidationError):
            QuickReply(title="x" * 21, payload="P")

    def test_wire_format(self):
        assert QuickReply(title="Go on", payload="CONTINUE").to_wire() == {
            "content_type": "text",
            "title": "Go on",
            "payload": "CONTINUE",
        }


class TestOutboundAction:
    def test_text_limit(self):
        with pytest.raises(ValidationError):
            OutboundAction(recipient_id="U1", text="x" * 2001)

    def test_empty_text(self):
        with pytest.raises(ValidationError):
            OutboundAction(recipient_id="U1", text="")

    def test_quick_reply_limit(self):
        replies = [QuickReply(title=f"Option {i}", payload=f"P{i}") for i in range(MAX_QUICK_REPLIES + 1)]
        with pytest.raises(ValidationError):
            OutboundAction(recipient_id="U1", text="pick one", quick_replies=replies)


class TestScriptLimits:
    def test_every_reply_fits_the_send_api(self):
        for step, reply in SCRIPT.items():
            assert len(reply.quick_replies) <= MAX_QUICK_REPLIES, step
            for text in reply.texts:
                assert len(text) <= 2000, step


class TestClassifierResult:
    def test_first_value(self):
        result = ClassifierResult(traits={"wit$bye": [{"value": "true"}, {"value": "false"}]})
        assert result.first_value("traits", "wit$bye") == "true"

    def test_first_value_missing(self):
        result = ClassifierResult(traits={"wit$bye": []})
        assert result.first_value("traits", "wit$bye") is None
        assert result.first_value("entities", "wit$datetime:datetime") is None


class TestWebhookPayload:
    def test_unknown_fields_are_ignored(self):
        payload = WebhookPayload.model_validate(
            {
                "object": "page",
                "entry": [
                    {
                        "id": "PAGE",
                        "time": 1,
                        "messaging": [{"sender": {"id": "U1"}, "message": {"text": "hi", "nlp": {"entities": {}}}}],
                    }
                ],
            }
        )
        assert payload.entry[0].messaging[0].message.text == "hi"

    def test_entry_must_be_a_list(self):
        with pytest.raises(ValidationError):
            WebhookPayload.model_validate({"object": "page", "entry": "nope"})
