from abc import ABC, abstractmethod

from stigmatized.schemas.dialogue import ClassifierResult
from stigmatized.services.result import Result


class ClassificationError(Exception):
    """The NLU service could not classify a text."""


class Classifier(ABC):
    """Abstract base class for NLU providers."""

    @abstractmethod
    async def classify(self, text: str) -> Result[ClassifierResult]:
        """Detect entities, intents and traits in text."""
        pass
