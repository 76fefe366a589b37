import json
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query, Request, status
from fastapi.responses import PlainTextResponse
from pydantic import ValidationError

from stigmatized.config import Settings, get_settings
from stigmatized.dependencies import get_classifier, get_messenger, get_session_registry
from stigmatized.logging_config import get_logger
from stigmatized.schemas.webhook import MessagingEvent, WebhookAck, WebhookEntry, WebhookPayload
from stigmatized.services.messenger_service import MessengerService
from stigmatized.services.nlu.base import Classifier
from stigmatized.services.session_registry import SessionRegistry
from stigmatized.services.signature_service import (
    AuthenticationError,
    require_valid_signature,
    select_signature_header,
    verify_subscription,
)
from stigmatized.services.webhook_service import extract_events, process_events

logger = get_logger("webhook")

router = APIRouter()


def _valid_messaging(raw_entry: dict) -> list[MessagingEvent]:
    """Validate messaging items one by one, dropping the ones that do not fit."""
    items = raw_entry.get("messaging") or []
    if not isinstance(items, list):
        logger.warning("Skipping webhook entry with non-list messaging")
        return []

    valid = []
    for item in items:
        try:
            valid.append(MessagingEvent.model_validate(item))
        except ValidationError as e:
            logger.warning(f"Skipping invalid messaging item: {e}")
    return valid


def parse_webhook_payload(raw: bytes) -> Optional[WebhookPayload]:
    """
    Parse a Messenger delivery with tolerant decoding.
    Returns None when the body is not a JSON object of the expected shape.
    Entries and messaging items that fail validation are skipped so the
    rest of the delivery is still processed.
    """
    data = None
    for enc in ("utf-8", "latin-1"):
        try:
            data = json.loads(raw.decode(enc))
            break
        except (UnicodeDecodeError, ValueError):
            continue

    if not isinstance(data, dict):
        logger.error("Failed to decode webhook payload")
        return None

    raw_entries = data.get("entry") or []
    if not isinstance(raw_entries, list):
        logger.error(f"Invalid webhook payload: entry is {type(raw_entries).__name__}")
        return None

    entries = []
    for raw_entry in raw_entries:
        if not isinstance(raw_entry, dict):
            logger.warning("Skipping invalid webhook entry")
            continue
        try:
            entries.append(WebhookEntry.model_validate({**raw_entry, "messaging": _valid_messaging(raw_entry)}))
        except ValidationError as e:
            logger.warning(f"Skipping invalid webhook entry: {e}")

    try:
        return WebhookPayload.model_validate({**data, "entry": entries})
    except ValidationError as e:
        logger.error(f"Invalid webhook payload: {e}")
        return None


@router.get("/webhook", response_class=PlainTextResponse)
async def verify_webhook(
    hub_mode: Optional[str] = Query(default=None, alias="hub.mode"),
    hub_verify_token: Optional[str] = Query(default=None, alias="hub.verify_token"),
    hub_challenge: Optional[str] = Query(default=None, alias="hub.challenge"),
    settings: Settings = Depends(get_settings),
):
    """Subscription handshake: echo the challenge when the verify token matches."""
    challenge = verify_subscription(hub_mode, hub_verify_token, hub_challenge, settings.fb_verify_token)
    if challenge is None:
        logger.warning(f"Webhook verification failed: mode={hub_mode}")
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid verification request")
    logger.info("Webhook verified")
    return challenge


@router.post("/webhook", response_model=WebhookAck)
async def receive_webhook(
    request: Request,
    background_tasks: BackgroundTasks,
    settings: Settings = Depends(get_settings),
    registry: SessionRegistry = Depends(get_session_registry),
    classifier: Classifier = Depends(get_classifier),
    messenger: MessengerService = Depends(get_messenger),
):
    """
    Handle a Messenger delivery:
    - signature check on the raw body (401 missing, 403 invalid)
    - 200 as soon as the body is accepted; events are processed after the response
    """
    body = await request.body()

    try:
        require_valid_signature(body, select_signature_header(request.headers), settings.fb_app_secret)
    except AuthenticationError as e:
        logger.warning(f"Rejected webhook delivery: {e.message}")
        code = status.HTTP_401_UNAUTHORIZED if e.missing else status.HTTP_403_FORBIDDEN
        raise HTTPException(status_code=code, detail=e.message)

    payload = parse_webhook_payload(body)
    if payload is None:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Invalid webhook payload")

    events = extract_events(payload)
    if events:
        background_tasks.add_task(
            process_events,
            events,
            registry,
            classifier,
            messenger,
            mode=settings.routing_mode,
        )

    return WebhookAck(success=True, events=len(events))
