"""FastAPI dependencies for the collaborators built at process start."""

from fastapi import Request

from stigmatized.services.messenger_service import MessengerService
from stigmatized.services.nlu.base import Classifier
from stigmatized.services.session_registry import SessionRegistry


def get_session_registry(request: Request) -> SessionRegistry:
    return request.app.state.session_registry


def get_classifier(request: Request) -> Classifier:
    return request.app.state.classifier


def get_messenger(request: Request) -> MessengerService:
    return request.app.state.messenger
