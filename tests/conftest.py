"""Shared test fixtures for expense-categorizer tests."""

from __future__ import annotations

from pathlib import Path

import pytest

from expense_categorizer.classifier import CategoryClassifier
from expense_categorizer.errors import ModelNotFoundError, PersistenceError
from expense_categorizer.models import Category, TrainingExample
from expense_categorizer.storage import LocalFileStore


class MemoryStore:
    """In-memory model store for tests."""

    def __init__(self, payload: str | None = None, fail_writes: bool = False) -> None:
        self.payload = payload
        self.fail_writes = fail_writes
        self.writes = 0

    @property
    def identifier(self) -> str:
        return "memory://model"

    def exists(self) -> bool:
        return self.payload is not None

    def read(self) -> str:
        if self.payload is None:
            raise ModelNotFoundError("nothing stored")
        return self.payload

    def write(self, payload: str) -> None:
        self.writes += 1
        if self.fail_writes:
            raise PersistenceError("disk full")
        self.payload = payload


@pytest.fixture
def model_path(tmp_path: Path) -> Path:
    """Location for a model file that does not exist yet."""
    return tmp_path / "models" / "trained-model.json"


@pytest.fixture
def file_store(model_path: Path) -> LocalFileStore:
    return LocalFileStore(model_path)


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def basic_examples() -> list[TrainingExample]:
    """Three one-line examples with a single shared token ("starbucks")."""
    return [
        TrainingExample("coffee at starbucks", Category.FOOD_DINING),
        TrainingExample("uber to airport", Category.TRANSPORTATION),
        TrainingExample("netflix subscription", Category.ENTERTAINMENT),
    ]


@pytest.fixture
def imbalanced_examples() -> list[TrainingExample]:
    """Food & Dining has three documents, Transportation one."""
    return [
        TrainingExample("coffee at starbucks", Category.FOOD_DINING),
        TrainingExample("pizza delivery", Category.FOOD_DINING),
        TrainingExample("lunch at cafe", Category.FOOD_DINING),
        TrainingExample("uber ride", Category.TRANSPORTATION),
    ]


@pytest.fixture
def untrained_classifier(file_store: LocalFileStore) -> CategoryClassifier:
    return CategoryClassifier(file_store)


@pytest.fixture
def trained_classifier(
    file_store: LocalFileStore,
    basic_examples: list[TrainingExample],
) -> CategoryClassifier:
    clf = CategoryClassifier(file_store)
    clf.train(basic_examples)
    return clf


@pytest.fixture
def make_memory_store():
    """Factory for memory stores with preset contents or failing writes."""
    return MemoryStore
