from typing import Iterable, Optional

import httpx
from pydantic import ValidationError

from stigmatized.logging_config import get_logger
from stigmatized.schemas.dialogue import OutboundAction, QuickReply, UserProfile
from stigmatized.services.result import DELIVERY_ERROR, PLATFORM_REJECTED, PROFILE_ERROR, TIMEOUT, Result

logger = get_logger("messenger_service")


class DeliveryError(Exception):
    def __init__(self, message: str, code: str = DELIVERY_ERROR):
        self.message = message
        self.code = code
        super().__init__(message)


class MessengerService:
    """Client for the Messenger Send API and the Graph API user profile."""

    def __init__(
        self,
        page_token: str,
        graph_api_url: str = "https://graph.facebook.com",
        timeout_seconds: float = 10.0,
    ):
        self.page_token = page_token
        self.base_url = graph_api_url.rstrip("/")
        self.timeout_seconds = timeout_seconds

    async def _make_request(
        self,
        method: str,
        path: str,
        params: Optional[dict] = None,
        json: Optional[dict] = None,
    ) -> dict:
        """Make request to the Graph API. Raises DeliveryError on a rejected call."""
        url = f"{self.base_url}/{path}"
        query = {**(params or {}), "access_token": self.page_token}
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            response = await client.request(method, url, params=query, json=json)

        try:
            data = response.json()
        except ValueError:
            data = {}

        error = data.get("error") if isinstance(data, dict) else None
        if isinstance(error, dict) and error.get("message"):
            raise DeliveryError(error["message"], PLATFORM_REJECTED)
        if response.status_code >= 400:
            raise DeliveryError(f"Graph API error: {response.status_code} - {response.text[:200]}")

        return data if isinstance(data, dict) else {}

    async def send_action(self, action: OutboundAction) -> Result[dict]:
        """Send one message with its quick replies."""
        body = {
            "recipient": {"id": action.recipient_id},
            "messaging_type": "RESPONSE",
            "message": action.to_message(),
        }
        try:
            data = await self._make_request("POST", "me/messages", json=body)
        except httpx.TimeoutException as exc:
            logger.warning(f"Send API timeout for {action.recipient_id}: {exc}")
            return Result.failure(f"Send API timeout: {exc}", TIMEOUT)
        except httpx.HTTPError as exc:
            logger.error(f"Send API error for {action.recipient_id}: {exc}")
            return Result.failure(str(exc), DELIVERY_ERROR)
        except DeliveryError as exc:
            logger.error(f"Send API rejected message for {action.recipient_id}: {exc.message}")
            return Result.failure(exc.message, exc.code)

        logger.debug(f"Message sent: recipient={action.recipient_id}, message_id={data.get('message_id')}")
        return Result.success(data)

    async def send(
        self,
        recipient_id: str,
        text: str,
        quick_replies: Iterable[QuickReply] = (),
    ) -> Result[dict]:
        """Send a text message to a user."""
        action = OutboundAction(recipient_id=recipient_id, text=text, quick_replies=list(quick_replies))
        return await self.send_action(action)

    async def get_profile(self, user_id: str) -> Result[UserProfile]:
        """Fetch the user's public profile (first name)."""
        try:
            data = await self._make_request("GET", user_id, params={"fields": "first_name,last_name"})
            profile = UserProfile.model_validate(data)
        except httpx.TimeoutException as exc:
            logger.warning(f"Profile lookup timeout for {user_id}: {exc}")
            return Result.failure(f"Profile lookup timeout: {exc}", TIMEOUT)
        except (httpx.HTTPError, DeliveryError, ValidationError) as exc:
            logger.error(f"Profile lookup failed for {user_id}: {exc}")
            return Result.failure(str(exc), PROFILE_ERROR)

        return Result.success(profile)
