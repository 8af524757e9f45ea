"""Tests for the built-in training catalog and CSV loading."""

from __future__ import annotations

from pathlib import Path

import pytest

from expense_categorizer.errors import MalformedInputError
from expense_categorizer.models import Category, TrainingExample
from expense_categorizer.training_data import (
    SAMPLE_DESCRIPTIONS,
    TRAINING_CATALOG,
    build_training_set,
    load_training_csv,
)


class TestCatalog:

    def test_covers_every_category(self):
        assert set(TRAINING_CATALOG) == set(Category)

    def test_each_category_has_samples(self):
        for category, phrases in TRAINING_CATALOG.items():
            assert len(phrases) >= 5, category
            assert all(p.strip() for p in phrases)

    def test_build_training_set(self):
        examples = build_training_set()
        assert len(examples) == sum(len(p) for p in TRAINING_CATALOG.values())
        assert all(isinstance(ex, TrainingExample) for ex in examples)
        assert examples[0].category is Category.FOOD_DINING

    def test_build_from_custom_catalog(self):
        examples = build_training_set({Category.TRAVEL: ["flight", "hotel"]})
        assert [ex.description for ex in examples] == ["flight", "hotel"]
        assert {ex.category for ex in examples} == {Category.TRAVEL}

    def test_sample_descriptions(self):
        assert len(SAMPLE_DESCRIPTIONS) == 5


class TestLoadTrainingCsv:

    def test_load(self, tmp_path: Path):
        path = tmp_path / "train.csv"
        path.write_text(
            "Description,Category\n"
            "coffee at starbucks,Food & Dining\n"
            "uber ride,Transportation\n"
            ",Other\n",
            encoding="utf-8",
        )
        examples = load_training_csv(path)
        assert [ex.category for ex in examples] == [Category.FOOD_DINING, Category.TRANSPORTATION]

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_training_csv(tmp_path / "nope.csv")

    def test_missing_columns(self, tmp_path: Path):
        path = tmp_path / "bad.csv"
        path.write_text("text,label\ncoffee,Food & Dining\n", encoding="utf-8")
        with pytest.raises(MalformedInputError, match="columns"):
            load_training_csv(path)

    def test_unknown_category_reports_line(self, tmp_path: Path):
        path = tmp_path / "bad.csv"
        path.write_text("description,category\ncoffee,Food & Dining\ndog food,Pets\n", encoding="utf-8")
        with pytest.raises(MalformedInputError, match="line 3"):
            load_training_csv(path)
