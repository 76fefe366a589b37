import asyncio
import os

from fastapi import Depends, FastAPI, Request

from stigmatized.config import Settings, get_settings
from stigmatized.dependencies import get_session_registry
from stigmatized.logging_config import get_logger, setup_logging
from stigmatized.routers import webhook
from stigmatized.services.messenger_service import MessengerService
from stigmatized.services.nlu.wit_provider import WitProvider
from stigmatized.services.session_registry import SessionRegistry

settings = get_settings()
setup_logging(settings.log_level)

logger = get_logger("main")

app = FastAPI(
    title="Stigmatized",
    description="Messenger webhook for the Stigmatized support bot",
    version="0.1.0",
)

app.state.session_registry = SessionRegistry(ttl_seconds=settings.session_ttl_seconds)
app.state.classifier = WitProvider(
    settings.wit_token,
    base_url=settings.wit_api_url,
    api_version=settings.wit_api_version,
    timeout_seconds=settings.http_timeout_seconds,
)
app.state.messenger = MessengerService(
    settings.fb_page_token,
    graph_api_url=settings.graph_api_url,
    timeout_seconds=settings.http_timeout_seconds,
)

app.include_router(webhook.router)

sweeper_logger = get_logger("session_sweeper")
_sweeper_task: asyncio.Task | None = None


@app.middleware("http")
async def log_requests(request: Request, call_next):
    response = await call_next(request)
    logger.info(f"{response.status_code} {request.method} {request.url.path}")
    return response


def validate_startup_config(current: Settings) -> None:
    """Fail startup without the page token and app secret; announce the verify token."""
    current.require_secrets()
    if not current.wit_token:
        logger.warning("WIT_TOKEN not set, only exact-text rules will match")
    logger.info(f'/webhook will accept the Verify Token "{current.fb_verify_token}"')


def _is_sweeper_enabled(current: Settings) -> bool:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return bool(current.session_ttl_seconds) and current.session_sweep_interval_seconds > 0


async def _session_sweeper_loop(registry: SessionRegistry, interval_seconds: float) -> None:
    while True:
        try:
            await asyncio.sleep(max(interval_seconds, 1.0))
            evicted = registry.evict_expired()
            if evicted:
                sweeper_logger.info(
                    "Session sweep",
                    extra={"context": {"evicted": evicted, "remaining": len(registry)}},
                )
        except asyncio.CancelledError:
            break
        except Exception as exc:
            sweeper_logger.error(
                "Session sweeper failed",
                extra={"context": {"error": str(exc)}},
            )


@app.on_event("startup")
async def startup() -> None:
    global _sweeper_task
    validate_startup_config(settings)
    if not _is_sweeper_enabled(settings):
        return
    if _sweeper_task is None or _sweeper_task.done():
        _sweeper_task = asyncio.create_task(
            _session_sweeper_loop(app.state.session_registry, settings.session_sweep_interval_seconds)
        )
        sweeper_logger.info("Session sweeper started")


@app.on_event("shutdown")
async def stop_session_sweeper() -> None:
    global _sweeper_task
    if _sweeper_task is None:
        return
    _sweeper_task.cancel()
    try:
        await _sweeper_task
    except asyncio.CancelledError:
        pass
    _sweeper_task = None


@app.get("/health")
async def health(registry: SessionRegistry = Depends(get_session_registry)):
    return {"status": "ok", "sessions": len(registry)}
