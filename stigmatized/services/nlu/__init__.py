from stigmatized.services.nlu.base import ClassificationError, Classifier
from stigmatized.services.nlu.wit_provider import WitProvider

__all__ = ["ClassificationError", "Classifier", "WitProvider"]
