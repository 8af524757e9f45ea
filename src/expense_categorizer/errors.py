"""Exception hierarchy for the expense categorizer."""

from __future__ import annotations


class CategorizerError(Exception):
    """Base class for all categorizer errors."""


class NotTrainedError(CategorizerError):
    """Raised when inference is requested before any model is available."""

    def __init__(self, message: str = "Classifier not trained. Train the model first.") -> None:
        super().__init__(message)


class MalformedInputError(CategorizerError, ValueError):
    """Raised for descriptions or training examples that cannot be used."""


class PersistenceError(CategorizerError):
    """Raised by model stores when a model cannot be read or written."""


class ModelNotFoundError(PersistenceError):
    """The persistence medium holds no model under the configured name."""


class CorruptModelError(PersistenceError):
    """A stored model exists but cannot be decoded into a valid model."""
