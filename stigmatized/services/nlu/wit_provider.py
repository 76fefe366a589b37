from typing import Any, Optional

import httpx

from stigmatized.logging_config import get_logger
from stigmatized.schemas.dialogue import ClassifierResult
from stigmatized.services.nlu.base import ClassificationError, Classifier
from stigmatized.services.result import CLASSIFICATION_ERROR, TIMEOUT, Result

logger = get_logger("nlu.wit")


def _normalize_intents(raw: Any) -> dict[str, list[dict[str, Any]]]:
    """Wit returns intents as a ranked list; key them by name like entities and traits."""
    if isinstance(raw, dict):
        return raw
    intents: dict[str, list[dict[str, Any]]] = {}
    for intent in raw or []:
        name = intent.get("name") if isinstance(intent, dict) else None
        if not name:
            continue
        intents.setdefault(name, []).append({**intent, "value": name})
    return intents


def parse_wit_response(data: dict) -> ClassifierResult:
    return ClassifierResult(
        entities=data.get("entities") or {},
        intents=_normalize_intents(data.get("intents")),
        traits=data.get("traits") or {},
    )


class WitProvider(Classifier):
    """Wit.ai /message API provider."""

    def __init__(
        self,
        access_token: str,
        base_url: str = "https://api.wit.ai",
        api_version: str = "20200513",
        timeout_seconds: float = 10.0,
    ):
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.api_version = api_version
        self.timeout_seconds = timeout_seconds

    async def _request_message(self, text: str, timeout_seconds: Optional[float] = None) -> dict:
        timeout = timeout_seconds if timeout_seconds is not None else self.timeout_seconds
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(
                f"{self.base_url}/message",
                params={"v": self.api_version, "q": text},
                headers={"Authorization": f"Bearer {self.access_token}"},
            )

        logger.debug(f"Wit response status: {response.status_code}")

        if response.status_code != 200:
            raise ClassificationError(f"Wit API error: {response.status_code} - {response.text}")

        data = response.json()
        if not isinstance(data, dict):
            raise ClassificationError(f"Unexpected Wit response: {data!r}")
        if data.get("error"):
            raise ClassificationError(f"Wit API error: {data['error']}")
        return data

    async def classify(self, text: str) -> Result[ClassifierResult]:
        """Classify text. Failures are returned, never raised."""
        if not self.access_token:
            return Result.failure("WIT_TOKEN not configured", CLASSIFICATION_ERROR)

        try:
            data = await self._request_message(text)
            # pydantic's ValidationError is a ValueError
            result = parse_wit_response(data)
        except httpx.TimeoutException as exc:
            logger.warning(f"Wit timeout after {self.timeout_seconds}s: {exc}")
            return Result.failure(f"Wit timeout: {exc}", TIMEOUT)
        except (httpx.HTTPError, ValueError, ClassificationError) as exc:
            logger.error(f"Wit classification failed: {exc}")
            return Result.failure(str(exc), CLASSIFICATION_ERROR)

        logger.info(
            "Text classified",
            extra={
                "context": {
                    "entities": list(result.entities),
                    "intents": list(result.intents),
                    "traits": list(result.traits),
                }
            },
        )
        return Result.success(result)
