import json
from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from stigmatized.config import Settings, get_settings
from stigmatized.dependencies import get_classifier, get_messenger, get_session_registry
from stigmatized.main import app
from stigmatized.schemas.dialogue import ClassifierResult, UserProfile
from stigmatized.services.result import Result
from stigmatized.services.session_registry import SessionRegistry
from stigmatized.services.signature_service import sign_body

APP_SECRET = "test-app-secret"
VERIFY_TOKEN = "test-verify-token"


@pytest.fixture
def test_settings():
    return Settings(
        wit_token="wit-token",
        fb_page_token="page-token",
        fb_app_secret=APP_SECRET,
        fb_verify_token=VERIFY_TOKEN,
        session_ttl_seconds=0,
    )


@pytest.fixture
def registry():
    """Isolated session registry per test."""
    return SessionRegistry()


@pytest.fixture
def classifier():
    """Classifier stub detecting nothing."""
    classifier = Mock()
    classifier.classify = AsyncMock(return_value=Result.success(ClassifierResult.empty()))
    return classifier


@pytest.fixture
def messenger():
    """Send API stub: every send succeeds, the user is called Ana."""
    messenger = Mock()
    messenger.send_action = AsyncMock(return_value=Result.success({"message_id": "mid.1"}))
    messenger.get_profile = AsyncMock(return_value=Result.success(UserProfile(id="U2", first_name="Ana")))
    return messenger


@pytest.fixture
def client(test_settings, registry, classifier, messenger):
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_session_registry] = lambda: registry
    app.dependency_overrides[get_classifier] = lambda: classifier
    app.dependency_overrides[get_messenger] = lambda: messenger
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def post_signed(client):
    """POST a JSON body to /webhook with a valid X-Hub-Signature."""

    def _post(payload: dict, secret: str = APP_SECRET, algorithm: str = "sha1"):
        body = json.dumps(payload).encode("utf-8")
        header = "X-Hub-Signature-256" if algorithm == "sha256" else "X-Hub-Signature"
        return client.post(
            "/webhook",
            content=body,
            headers={header: sign_body(body, secret, algorithm), "Content-Type": "application/json"},
        )

    return _post
