"""Data models for expense categorization."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .errors import MalformedInputError


class Category(str, Enum):
    """Closed set of spending categories."""

    FOOD_DINING = "Food & Dining"
    TRANSPORTATION = "Transportation"
    SHOPPING = "Shopping"
    ENTERTAINMENT = "Entertainment"
    HEALTHCARE = "Healthcare"
    UTILITIES = "Utilities"
    HOUSING = "Housing"
    EDUCATION = "Education"
    TRAVEL = "Travel"
    PERSONAL_CARE = "Personal Care"
    INSURANCE = "Insurance"
    INVESTMENTS = "Investments"
    OTHER = "Other"

    @classmethod
    def from_label(cls, label: Any) -> "Category":
        """Look up a category by its display label (or member name).

        Raises:
            MalformedInputError: If ``label`` does not name a known category.
        """
        if isinstance(label, cls):
            return label
        if isinstance(label, str):
            try:
                return cls(label.strip())
            except ValueError:
                pass
            member = cls.__members__.get(label.strip().upper().replace(" ", "_"))
            if member is not None:
                return member
        raise MalformedInputError(
            f"Unknown category: {label!r}. Known: {[c.value for c in cls]}"
        )


#: Label returned for batch items that could not be classified.
FALLBACK_CATEGORY = Category.OTHER


class LoadOutcome(str, Enum):
    """Result of trying to restore a persisted model."""

    LOADED = "loaded"
    NOT_FOUND = "not_found"
    CORRUPT = "corrupt"


class SaveOutcome(str, Enum):
    """Result of trying to persist the current model."""

    SAVED = "saved"
    SAVE_FAILED = "save_failed"


@dataclass(frozen=True)
class TrainingExample:
    """A labelled description used to train the classifier."""

    description: str
    category: Category

    def __post_init__(self) -> None:
        if not isinstance(self.description, str) or not self.description.strip():
            raise MalformedInputError("Training example description must be a non-empty string")
        if not isinstance(self.category, Category):
            object.__setattr__(self, "category", Category.from_label(self.category))

    @classmethod
    def from_dict(cls, data: dict) -> "TrainingExample":
        """Build an example from ``{"description": ..., "category": ...}``."""
        if not isinstance(data, dict):
            raise MalformedInputError(f"Training example must be an object, got {type(data).__name__}")
        if "description" not in data or "category" not in data:
            raise MalformedInputError("Training example requires 'description' and 'category'")
        return cls(description=data["description"], category=data["category"])

    @classmethod
    def from_pair(cls, description: str, category: str) -> "TrainingExample":
        """Build an example from a ``(description, label)`` pair, as in a CSV row.

        Surrounding whitespace is stripped from both values.
        """
        if not isinstance(description, str) or not isinstance(category, (str, Category)):
            raise MalformedInputError("Training pair must hold a description and a category label")
        return cls(description=description.strip(), category=category)

    def to_dict(self) -> dict:
        return {"description": self.description, "category": self.category.value}


@dataclass
class ClassificationResult:
    """Outcome of classifying a single description."""

    category: str
    confidence: float
    description: Any
    error: Optional[str] = None

    @property
    def is_fallback(self) -> bool:
        return self.error is not None

    def to_dict(self) -> dict:
        data = {
            "category": self.category,
            "confidence": round(self.confidence, 4),
            "description": self.description,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass
class ModelStatus:
    """Snapshot of classifier state and its persisted model."""

    is_trained: bool
    model_path: str
    model_exists: bool

    def to_dict(self) -> dict:
        return {
            "isTrained": self.is_trained,
            "modelPath": self.model_path,
            "modelExists": self.model_exists,
        }


@dataclass
class TrainingReport:
    """Summary of a completed train or retrain call."""

    documents: int
    total_documents: int
    vocabulary_size: int
    categories: list[str] = field(default_factory=list)
    retrained: bool = False
    save: SaveOutcome = SaveOutcome.SAVED

    @property
    def saved(self) -> bool:
        return self.save is SaveOutcome.SAVED

    def to_dict(self) -> dict:
        return {
            "documents": self.documents,
            "total_documents": self.total_documents,
            "vocabulary_size": self.vocabulary_size,
            "categories": self.categories,
            "retrained": self.retrained,
            "save": self.save.value,
        }
