"""Expense Categorizer -- suggest spending categories for expense descriptions."""

__version__ = "0.1.0"

from .classifier import BayesModel, CategoryClassifier, cross_validate, tokenize
from .config import Settings, configure_logging
from .errors import (
    CategorizerError,
    CorruptModelError,
    MalformedInputError,
    ModelNotFoundError,
    NotTrainedError,
    PersistenceError,
)
from .evaluation import ClassificationMetrics, compute_metrics, stratified_k_fold
from .models import (
    Category,
    ClassificationResult,
    LoadOutcome,
    ModelStatus,
    SaveOutcome,
    TrainingExample,
    TrainingReport,
)
from .storage import LocalFileStore, ModelStore, S3ModelStore, store_from_settings
from .training_data import TRAINING_CATALOG, build_training_set, load_training_csv

__all__ = [
    # Core
    "CategoryClassifier",
    "BayesModel",
    "tokenize",
    # Data models
    "Category",
    "TrainingExample",
    "ClassificationResult",
    "ModelStatus",
    "TrainingReport",
    "LoadOutcome",
    "SaveOutcome",
    # Errors
    "CategorizerError",
    "NotTrainedError",
    "MalformedInputError",
    "PersistenceError",
    "ModelNotFoundError",
    "CorruptModelError",
    # Persistence
    "ModelStore",
    "LocalFileStore",
    "S3ModelStore",
    "store_from_settings",
    # Training data
    "TRAINING_CATALOG",
    "build_training_set",
    "load_training_csv",
    # Evaluation
    "ClassificationMetrics",
    "compute_metrics",
    "cross_validate",
    "stratified_k_fold",
    # Configuration
    "Settings",
    "configure_logging",
]
