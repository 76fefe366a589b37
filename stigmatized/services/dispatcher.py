"""Routing of inbound events to scripted replies.

The dispatcher evaluates an ordered list of rules; the first rule that
matches picks the step to send. Order matters because several rules can
match the same input (an attachment with text, a button label that the
classifier also tags as a greeting...).

Two routing modes exist for button labels:

- ``label``: the flat table of visible button titles, whatever the state.
- ``state``: a ``(session.state, input)`` transition table, where the
  quick-reply payload is tried before the title.
"""

import random
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional, Sequence

from stigmatized.logging_config import get_logger
from stigmatized.schemas.dialogue import (
    MAX_TEXT_LENGTH,
    Attachment,
    ClassifierResult,
    InboundEvent,
    OutboundAction,
    Postback,
    QuickReply,
    TextMessage,
    UserProfile,
)
from stigmatized.services.nlu.base import ClassificationError
from stigmatized.services.result import Result
from stigmatized.services.script import DEFAULT_NAME, SCRIPT
from stigmatized.services.session_registry import Session
from stigmatized.services.state_machine import (
    ADVICE_LABEL,
    RoutingMode,
    Step,
    route_label,
    route_transition,
)

logger = get_logger("dispatcher")

GET_STARTED_PAYLOAD = "Greeting"

# Classifier keys
GREETING_TRAIT = "wit$greetings"
GET_STARTED_TRAIT = "wit_started"
THANKS_TRAIT = "wit$thanks"
BYE_TRAIT = "wit$bye"
DATETIME_ENTITY = "wit$datetime:datetime"
AGENDA_ENTITY = "wit$agenda_entry:agenda_entry"

# Steps whose text addresses the user by first name
NAMED_STEPS = {Step.HELLO, Step.WELCOME}

ClassifyFn = Callable[[str], Awaitable[Result[ClassifierResult]]]
ProfileFn = Callable[[str], Awaitable[Result[UserProfile]]]


@dataclass
class DispatchContext:
    event: InboundEvent
    session: Session
    classify: ClassifyFn
    mode: RoutingMode = RoutingMode.LABEL
    _classification: Optional[ClassifierResult] = field(default=None, init=False)

    @property
    def is_text(self) -> bool:
        return isinstance(self.event, TextMessage)

    @property
    def text(self) -> str:
        return getattr(self.event, "text", None) or ""

    async def classification(self) -> ClassifierResult:
        """Classifier output for the text, computed once. Empty on failure."""
        if self._classification is not None:
            return self._classification

        try:
            result = await self.classify(self.text)
        except ClassificationError as exc:
            result = Result.failure(str(exc), "classification_error")

        if not result.ok:
            logger.warning(
                "Classification failed, using exact-text rules only",
                extra={"context": {"error": result.error, "error_code": result.error_code}},
            )
        self._classification = result.unwrap_or(None) or ClassifierResult.empty()
        return self._classification

    async def signal(self, kind: str, key: str) -> bool:
        classification = await self.classification()
        return classification.first_value(kind, key) is not None


@dataclass(frozen=True)
class Rule:
    name: str
    match: Callable[[DispatchContext], Awaitable[Optional[Step]]]


@dataclass(frozen=True)
class RouteMatch:
    rule: str
    step: Step


async def _attachment(ctx: DispatchContext) -> Optional[Step]:
    return Step.ATTACHMENT if isinstance(ctx.event, Attachment) else None


async def _get_started(ctx: DispatchContext) -> Optional[Step]:
    if isinstance(ctx.event, Postback) and ctx.event.payload == GET_STARTED_PAYLOAD:
        return Step.WELCOME
    return None


async def _greeting(ctx: DispatchContext) -> Optional[Step]:
    if ctx.is_text and await ctx.signal("traits", GREETING_TRAIT):
        return Step.HELLO
    return None


async def _button_label(ctx: DispatchContext) -> Optional[Step]:
    if not ctx.is_text:
        return None
    if ctx.mode == RoutingMode.STATE:
        return route_transition(ctx.session.state, ctx.event.quick_reply_payload, ctx.text)
    return route_label(ctx.text)


async def _started(ctx: DispatchContext) -> Optional[Step]:
    if ctx.is_text and await ctx.signal("traits", GET_STARTED_TRAIT):
        return Step.ASK_TIMING
    return None


async def _date_mentioned(ctx: DispatchContext) -> Optional[Step]:
    if not ctx.is_text:
        return None
    if ctx.text == ADVICE_LABEL or await ctx.signal("entities", DATETIME_ENTITY):
        return Step.ADVICE
    return None


async def _story_mentioned(ctx: DispatchContext) -> Optional[Step]:
    if ctx.is_text and await ctx.signal("entities", AGENDA_ENTITY):
        return Step.RECOMMEND
    return None


async def _thanks(ctx: DispatchContext) -> Optional[Step]:
    if ctx.is_text and await ctx.signal("traits", THANKS_TRAIT):
        return Step.THANKS
    return None


async def _bye(ctx: DispatchContext) -> Optional[Step]:
    if ctx.is_text and await ctx.signal("traits", BYE_TRAIT):
        return Step.BYE
    return None


async def _fallback(ctx: DispatchContext) -> Optional[Step]:
    return Step.FALLBACK if ctx.is_text else None


RULES: tuple[Rule, ...] = (
    Rule("attachment", _attachment),
    Rule("get_started", _get_started),
    Rule("greeting", _greeting),
    Rule("button_label", _button_label),
    Rule("started", _started),
    Rule("date_mentioned", _date_mentioned),
    Rule("story_mentioned", _story_mentioned),
    Rule("thanks", _thanks),
    Rule("bye", _bye),
    Rule("fallback", _fallback),
)


def split_text(text: str, limit: int = MAX_TEXT_LENGTH) -> list[str]:
    """Split text into chunks of at most limit chars, on paragraph breaks when possible."""
    if len(text) <= limit:
        return [text]

    chunks: list[str] = []
    current = ""
    for paragraph in text.split("\n\n"):
        candidate = f"{current}\n\n{paragraph}" if current else paragraph
        if len(candidate) <= limit:
            current = candidate
            continue
        if current:
            chunks.append(current)
        while len(paragraph) > limit:
            chunks.append(paragraph[:limit])
            paragraph = paragraph[limit:]
        current = paragraph
    if current:
        chunks.append(current)
    return chunks


def build_actions(recipient_id: str, text: str, quick_replies: Sequence[QuickReply] = ()) -> list[OutboundAction]:
    """One action per text chunk; quick replies go with the last chunk."""
    chunks = split_text(text)
    actions = [OutboundAction(recipient_id=recipient_id, text=chunk) for chunk in chunks[:-1]]
    actions.append(OutboundAction(recipient_id=recipient_id, text=chunks[-1], quick_replies=list(quick_replies)))
    return actions


async def _first_name(get_profile: ProfileFn, user_id: str) -> str:
    result = await get_profile(user_id)
    if not result.ok or not result.value or not result.value.first_name:
        logger.warning(
            "Profile lookup failed, greeting without name",
            extra={"context": {"user_id": user_id, "error": result.error}},
        )
        return DEFAULT_NAME
    return result.value.first_name


async def route(
    event: InboundEvent,
    session: Session,
    classify: ClassifyFn,
    mode: RoutingMode = RoutingMode.LABEL,
    rules: Sequence[Rule] = RULES,
) -> Optional[RouteMatch]:
    """Find the first rule matching event."""
    ctx = DispatchContext(event=event, session=session, classify=classify, mode=mode)
    for rule in rules:
        step = await rule.match(ctx)
        if step is not None:
            return RouteMatch(rule=rule.name, step=step)
    return None


async def render(
    step: Step,
    event: InboundEvent,
    session: Session,
    get_profile: ProfileFn,
    rng: Optional[random.Random] = None,
) -> list[OutboundAction]:
    """Build the actions for step and advance the session state."""
    reply = SCRIPT[step]
    values = {"text": getattr(event, "text", None) or "", "name": DEFAULT_NAME}
    if step in NAMED_STEPS:
        values["name"] = await _first_name(get_profile, event.sender_id)

    text = reply.render(rng or random, **values)
    actions = build_actions(event.sender_id, text, reply.quick_replies)

    if reply.next_state is not None:
        session.state = reply.next_state
    return actions


async def dispatch(
    event: InboundEvent,
    session: Session,
    classify: ClassifyFn,
    get_profile: ProfileFn,
    mode: RoutingMode = RoutingMode.LABEL,
    rng: Optional[random.Random] = None,
    rules: Sequence[Rule] = RULES,
) -> list[OutboundAction]:
    """Map an inbound event to the outbound messages to send."""
    match = await route(event, session, classify, mode=mode, rules=rules)
    if match is None:
        logger.info(
            "No rule matched",
            extra={"context": {"sender_id": event.sender_id, "kind": event.kind}},
        )
        return []

    logger.info(
        "Rule matched",
        extra={
            "context": {
                "sender_id": event.sender_id,
                "rule": match.rule,
                "step": match.step.value,
                "state": session.state.value,
            }
        },
    )
    return await render(match.step, event, session, get_profile, rng=rng)
