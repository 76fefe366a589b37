"""Processing of one webhook delivery: parse events, dispatch, send."""

import random
from dataclasses import asdict, dataclass
from typing import Optional

from stigmatized.logging_config import event_logger, get_logger
from stigmatized.schemas.dialogue import Attachment, InboundEvent, Postback, TextMessage
from stigmatized.schemas.webhook import MessagingEvent, WebhookPayload
from stigmatized.services.dispatcher import dispatch
from stigmatized.services.messenger_service import MessengerService
from stigmatized.services.nlu.base import Classifier
from stigmatized.services.session_registry import SessionRegistry
from stigmatized.services.state_machine import RoutingMode

logger = get_logger("webhook_service")

PAGE_OBJECT = "page"


@dataclass
class ProcessingSummary:
    received: int = 0
    dispatched: int = 0
    sent: int = 0
    failed: int = 0


def to_inbound_event(messaging: MessagingEvent) -> Optional[InboundEvent]:
    """Convert a raw messaging event, or None for echoes, receipts and unknown kinds."""
    if not messaging.sender or not messaging.sender.id:
        return None
    sender_id = messaging.sender.id

    message = messaging.message
    if message is not None and not message.is_echo:
        if message.attachments:
            return Attachment(
                sender_id=sender_id,
                text=message.text,
                attachment_types=[item.type for item in message.attachments if item.type],
            )
        if message.text:
            payload = message.quick_reply.payload if message.quick_reply else None
            return TextMessage(sender_id=sender_id, text=message.text, quick_reply_payload=payload)
        return None

    if messaging.postback is not None and messaging.postback.payload:
        return Postback(sender_id=sender_id, payload=messaging.postback.payload, title=messaging.postback.title)

    return None


def extract_events(payload: WebhookPayload) -> list[InboundEvent]:
    """All actionable events of a delivery, in delivery order."""
    if payload.object != PAGE_OBJECT:
        logger.info(f"Ignoring webhook object: {payload.object}")
        return []

    events: list[InboundEvent] = []
    for entry in payload.entry:
        for messaging in entry.messaging:
            event = to_inbound_event(messaging)
            if event is None:
                logger.debug(
                    "Received event",
                    extra={"context": {"event": messaging.model_dump(exclude_none=True)}},
                )
                continue
            events.append(event)
    return events


async def process_event(
    event: InboundEvent,
    registry: SessionRegistry,
    classifier: Classifier,
    messenger: MessengerService,
    mode: RoutingMode = RoutingMode.LABEL,
    rng: Optional[random.Random] = None,
) -> tuple[int, int]:
    """Dispatch one event and send its replies. Returns (sent, failed)."""
    log = event_logger("webhook_service", sender_id=event.sender_id, kind=event.kind)

    async with registry.lock_for(event.sender_id):
        session = registry.get_or_create(event.sender_id)
        actions = await dispatch(
            event,
            session,
            classify=classifier.classify,
            get_profile=messenger.get_profile,
            mode=mode,
            rng=rng,
        )

        sent = failed = 0
        for action in actions:
            result = await messenger.send_action(action)
            if result.ok:
                sent += 1
            else:
                failed += 1
                log_failure = log.warning if result.timed_out else log.error
                log_failure(
                    "Reply not delivered",
                    context={"error": result.error, "error_code": result.error_code},
                )

    log.info("Event processed", context={"state": session.state.value, "sent": sent, "failed": failed})
    return sent, failed


async def process_events(
    events: list[InboundEvent],
    registry: SessionRegistry,
    classifier: Classifier,
    messenger: MessengerService,
    mode: RoutingMode = RoutingMode.LABEL,
    rng: Optional[random.Random] = None,
) -> ProcessingSummary:
    """Process events sequentially. A failing event never stops its siblings."""
    summary = ProcessingSummary(received=len(events))
    for event in events:
        try:
            sent, failed = await process_event(event, registry, classifier, messenger, mode=mode, rng=rng)
        except Exception as exc:
            summary.failed += 1
            event_logger("webhook_service", sender_id=event.sender_id, kind=event.kind).error(
                f"Event processing failed: {exc}",
                exc_info=True,
            )
            continue
        summary.dispatched += 1
        summary.sent += sent
        summary.failed += failed

    logger.info("Webhook delivery processed", extra={"context": asdict(summary)})
    return summary
