"""Tests for data models."""

import pytest

from expense_categorizer.errors import MalformedInputError
from expense_categorizer.models import (
    FALLBACK_CATEGORY,
    Category,
    ClassificationResult,
    LoadOutcome,
    ModelStatus,
    SaveOutcome,
    TrainingExample,
    TrainingReport,
)


class TestCategory:
    def test_thirteen_categories(self):
        assert len(Category) == 13

    def test_labels(self):
        assert Category.FOOD_DINING.value == "Food & Dining"
        assert Category.PERSONAL_CARE.value == "Personal Care"
        assert Category.OTHER.value == "Other"

    def test_is_str(self):
        assert Category.TRAVEL == "Travel"

    def test_from_label_value(self):
        assert Category.from_label("Food & Dining") is Category.FOOD_DINING

    def test_from_label_strips_whitespace(self):
        assert Category.from_label("  Travel ") is Category.TRAVEL

    def test_from_label_member_name(self):
        assert Category.from_label("personal care") is Category.PERSONAL_CARE
        assert Category.from_label("INVESTMENTS") is Category.INVESTMENTS

    def test_from_label_member(self):
        assert Category.from_label(Category.HOUSING) is Category.HOUSING

    @pytest.mark.parametrize("label", ["Pets", "", None, 3])
    def test_from_label_unknown(self, label):
        with pytest.raises(MalformedInputError, match="Unknown category"):
            Category.from_label(label)

    def test_fallback_is_other(self):
        assert FALLBACK_CATEGORY is Category.OTHER


class TestTrainingExample:
    def test_creation(self):
        ex = TrainingExample("coffee at starbucks", Category.FOOD_DINING)
        assert ex.description == "coffee at starbucks"
        assert ex.category is Category.FOOD_DINING

    def test_label_coerced_to_category(self):
        ex = TrainingExample("uber ride", "Transportation")
        assert ex.category is Category.TRANSPORTATION

    def test_frozen(self):
        ex = TrainingExample("uber ride", Category.TRANSPORTATION)
        with pytest.raises(AttributeError):
            ex.description = "other"  # type: ignore[misc]

    @pytest.mark.parametrize("description", ["", "   ", None, 12])
    def test_rejects_bad_description(self, description):
        with pytest.raises(MalformedInputError):
            TrainingExample(description, Category.OTHER)

    def test_rejects_unknown_category(self):
        with pytest.raises(MalformedInputError):
            TrainingExample("dog food", "Pets")

    def test_from_dict(self):
        ex = TrainingExample.from_dict({"description": "netflix", "category": "Entertainment"})
        assert ex.category is Category.ENTERTAINMENT

    def test_from_dict_missing_field(self):
        with pytest.raises(MalformedInputError, match="requires"):
            TrainingExample.from_dict({"description": "netflix"})

    def test_from_dict_not_a_dict(self):
        with pytest.raises(MalformedInputError, match="must be an object"):
            TrainingExample.from_dict(["netflix", "Entertainment"])  # type: ignore[arg-type]

    def test_from_pair(self):
        ex = TrainingExample.from_pair("  flight to rome ", " Travel")
        assert ex.description == "flight to rome"
        assert ex.category is Category.TRAVEL

    @pytest.mark.parametrize("pair", [(None, "Travel"), ("flight", None), ("flight", "Pets"), ("   ", "Travel")])
    def test_from_pair_rejects_bad_values(self, pair):
        with pytest.raises(MalformedInputError):
            TrainingExample.from_pair(*pair)

    def test_to_dict(self):
        ex = TrainingExample("netflix", Category.ENTERTAINMENT)
        assert ex.to_dict() == {"description": "netflix", "category": "Entertainment"}


class TestClassificationResult:
    def test_to_dict_rounds_confidence(self):
        result = ClassificationResult("Travel", 0.123456789, "flight")
        assert result.to_dict() == {
            "category": "Travel",
            "confidence": 0.1235,
            "description": "flight",
        }
        assert not result.is_fallback

    def test_fallback_includes_error(self):
        result = ClassificationResult("Other", 0.0, None, error="bad input")
        d = result.to_dict()
        assert d["error"] == "bad input"
        assert result.is_fallback


class TestStatusAndReports:
    def test_status_uses_wire_keys(self):
        status = ModelStatus(is_trained=True, model_path="m.json", model_exists=False)
        assert status.to_dict() == {
            "isTrained": True,
            "modelPath": "m.json",
            "modelExists": False,
        }

    def test_training_report(self):
        report = TrainingReport(
            documents=3,
            total_documents=6,
            vocabulary_size=8,
            categories=["Travel"],
            retrained=False,
            save=SaveOutcome.SAVE_FAILED,
        )
        assert not report.saved
        d = report.to_dict()
        assert d["save"] == "save_failed"
        assert d["total_documents"] == 6

    def test_outcome_values(self):
        assert LoadOutcome.NOT_FOUND.value == "not_found"
        assert SaveOutcome.SAVED == "saved"
