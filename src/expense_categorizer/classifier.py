"""Bag-of-words Naive Bayes classifier for expense descriptions.

Suggests a spending :class:`~expense_categorizer.models.Category` for a
free-text description such as ``"coffee at starbucks"``. Pure Python, no
numpy or sklearn required.

Features:
- Lower-case alphanumeric tokenization shared by training and inference
- Multinomial Naive Bayes over raw token counts with Laplace smoothing
- Soft-max confidence over per-category log scores
- JSON model persistence through a pluggable model store
- Stratified k-fold cross-validation and most informative tokens per category

The trained state lives in an immutable :class:`BayesModel`. Training builds
a new model off to the side and publishes it with a single reference swap,
so concurrent ``classify`` calls see either the old or the new model.
"""

from __future__ import annotations

import json
import logging
import math
import re
import threading
from collections import Counter
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Iterable, Mapping, Optional, Sequence

from .config import DEFAULT_MODEL_PATH
from .errors import (
    CorruptModelError,
    MalformedInputError,
    ModelNotFoundError,
    NotTrainedError,
    PersistenceError,
)
from .evaluation import ClassificationMetrics, compute_metrics, stratified_k_fold
from .models import (
    FALLBACK_CATEGORY,
    Category,
    ClassificationResult,
    LoadOutcome,
    ModelStatus,
    SaveOutcome,
    TrainingExample,
    TrainingReport,
)
from .storage import LocalFileStore, ModelStore

logger = logging.getLogger(__name__)

MODEL_FORMAT_VERSION = "1.0"


# ---------------------------------------------------------------------------
# Tokenization
# ---------------------------------------------------------------------------

_TOKEN_RE = re.compile(r"[^\W_]+")


def tokenize(text: str) -> list[str]:
    """Lower-case ``text`` and split it on non-alphanumeric boundaries.

    No stemming and no stopword removal. Repeated tokens are kept, since the
    model counts occurrences.
    """
    return _TOKEN_RE.findall(text.lower())


# ---------------------------------------------------------------------------
# Trained model state
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BayesModel:
    """Token counts learned from labelled descriptions.

    Instances are never mutated after construction and the count tables are
    read-only mappings; :meth:`with_examples` returns a new model.

    Attributes:
        vocabulary: Distinct tokens seen across all training documents.
        category_doc_counts: Training documents per category label.
        category_token_counts: Per category, occurrences of each token.
        category_total_tokens: Per category, sum of its token counts.
        total_documents: Sum of ``category_doc_counts``.
    """

    vocabulary: frozenset[str] = frozenset()
    category_doc_counts: Mapping[str, int] = field(default_factory=dict)
    category_token_counts: Mapping[str, Mapping[str, int]] = field(default_factory=dict)
    category_total_tokens: Mapping[str, int] = field(default_factory=dict)
    total_documents: int = 0

    def __post_init__(self) -> None:
        # Count tables are exposed read-only.
        object.__setattr__(self, "category_doc_counts", MappingProxyType(dict(self.category_doc_counts)))
        object.__setattr__(self, "category_token_counts", MappingProxyType({
            label: MappingProxyType(dict(counts))
            for label, counts in self.category_token_counts.items()
        }))
        object.__setattr__(self, "category_total_tokens", MappingProxyType(dict(self.category_total_tokens)))

    @classmethod
    def empty(cls) -> "BayesModel":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self.total_documents == 0

    @property
    def categories(self) -> list[str]:
        """Labels with at least one training document, in lexicographic order."""
        return sorted(c for c, n in self.category_doc_counts.items() if n > 0)

    def with_examples(self, examples: Iterable[TrainingExample]) -> "BayesModel":
        """Return a new model with ``examples`` added to this model's counts."""
        doc_counts: Counter[str] = Counter(self.category_doc_counts)
        token_counts: dict[str, Counter[str]] = {
            label: Counter(counts) for label, counts in self.category_token_counts.items()
        }

        for example in examples:
            label = example.category.value
            doc_counts[label] += 1
            token_counts.setdefault(label, Counter()).update(tokenize(example.description))

        vocabulary: set[str] = set()
        for counts in token_counts.values():
            vocabulary.update(counts)

        return BayesModel(
            vocabulary=frozenset(vocabulary),
            category_doc_counts=dict(doc_counts),
            category_token_counts={label: dict(c) for label, c in token_counts.items()},
            category_total_tokens={label: sum(c.values()) for label, c in token_counts.items()},
            total_documents=sum(doc_counts.values()),
        )

    def log_prior(self, category: str) -> float:
        """``log(P(category))`` from training-document frequency."""
        return math.log(self.category_doc_counts[category] / self.total_documents)

    def token_probability(self, token: str, category: str) -> float:
        """Laplace-smoothed ``P(token | category)``; always positive."""
        count = self.category_token_counts.get(category, {}).get(token, 0)
        # An all-punctuation training set leaves the vocabulary empty.
        vocab_size = len(self.vocabulary) or 1
        return (count + 1) / (self.category_total_tokens.get(category, 0) + vocab_size)

    def log_scores(self, tokens: Sequence[str]) -> dict[str, float]:
        """Unnormalized log posterior for every trained category.

        Keys are in lexicographic label order.
        """
        vocab_size = len(self.vocabulary) or 1
        token_freq = Counter(tokens)
        scores: dict[str, float] = {}
        for category in self.categories:
            counts = self.category_token_counts.get(category, {})
            log_denominator = math.log(self.category_total_tokens.get(category, 0) + vocab_size)
            score = self.log_prior(category)
            for token, n in token_freq.items():
                score += n * (math.log(counts.get(token, 0) + 1) - log_denominator)
            scores[category] = score
        return scores

    def to_dict(self) -> dict:
        """Serialize model state to a JSON-compatible dictionary."""
        return {
            "version": MODEL_FORMAT_VERSION,
            "vocabulary": sorted(self.vocabulary),
            "category_doc_counts": dict(sorted(self.category_doc_counts.items())),
            "category_token_counts": {
                label: dict(sorted(counts.items()))
                for label, counts in sorted(self.category_token_counts.items())
            },
            "category_total_tokens": dict(sorted(self.category_total_tokens.items())),
            "total_documents": self.total_documents,
        }

    @classmethod
    def from_dict(cls, data: Any) -> "BayesModel":
        """Deserialize and validate a model produced by :meth:`to_dict`.

        Raises:
            CorruptModelError: On a wrong version, unknown labels, or counts
                that break the model's invariants.
        """
        if not isinstance(data, dict):
            raise CorruptModelError("Model payload must be a JSON object")
        if data.get("version") != MODEL_FORMAT_VERSION:
            raise CorruptModelError(f"Unsupported model version: {data.get('version')!r}")

        try:
            vocabulary = frozenset(data["vocabulary"])
            doc_counts = {str(k): v for k, v in data["category_doc_counts"].items()}
            token_counts = {
                str(k): dict(v) for k, v in data["category_token_counts"].items()
            }
            total_tokens = {str(k): v for k, v in data["category_total_tokens"].items()}
            total_documents = data["total_documents"]
        except (KeyError, TypeError, AttributeError, ValueError) as exc:
            raise CorruptModelError(f"Malformed model payload: {exc}") from exc

        known = {c.value for c in Category}
        unknown = (set(doc_counts) | set(token_counts) | set(total_tokens)) - known
        if unknown:
            raise CorruptModelError(f"Unknown categories in model: {sorted(unknown)}")

        counts_to_check = [total_documents, *doc_counts.values(), *total_tokens.values()]
        counts_to_check.extend(n for c in token_counts.values() for n in c.values())
        if not all(isinstance(n, int) and not isinstance(n, bool) and n >= 0 for n in counts_to_check):
            raise CorruptModelError("Model counts must be non-negative integers")

        if total_documents == 0:
            raise CorruptModelError("Model has no training documents")
        if total_documents != sum(doc_counts.values()):
            raise CorruptModelError("total_documents does not match category document counts")
        if set(token_counts) != set(doc_counts) or set(total_tokens) != set(doc_counts):
            raise CorruptModelError("Category tables disagree on the set of categories")
        for label, counts in token_counts.items():
            if total_tokens[label] != sum(counts.values()):
                raise CorruptModelError(f"Token total for {label!r} does not match its counts")
        observed: set[str] = set()
        for counts in token_counts.values():
            observed.update(counts)
        if observed != vocabulary:
            raise CorruptModelError("Vocabulary does not match the tokens in the count tables")

        return cls(
            vocabulary=vocabulary,
            category_doc_counts=doc_counts,
            category_token_counts=token_counts,
            category_total_tokens=total_tokens,
            total_documents=total_documents,
        )

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), indent=2)

    @classmethod
    def from_json(cls, payload: str) -> "BayesModel":
        try:
            data = json.loads(payload)
        except (ValueError, RecursionError, TypeError) as exc:
            raise CorruptModelError(f"Model is not valid JSON: {exc}") from exc
        return cls.from_dict(data)


def _posterior(log_scores: dict[str, float]) -> dict[str, float]:
    """Soft-max over log scores, using log-sum-exp for numerical stability."""
    max_score = max(log_scores.values())
    exp_scores = {label: math.exp(s - max_score) for label, s in log_scores.items()}
    total = sum(exp_scores.values())
    return {label: s / total for label, s in exp_scores.items()}


def _predict(model: BayesModel, description: str) -> tuple[str, float, dict[str, float]]:
    """Winning label, its confidence, and the full distribution."""
    scores = model.log_scores(tokenize(description))
    # ``scores`` is ordered lexicographically and max() keeps the first of
    # equal maxima, so ties resolve to the earliest label.
    winner = max(scores, key=scores.__getitem__)
    proba = _posterior(scores)
    return winner, proba[winner], proba


# ---------------------------------------------------------------------------
# Classifier component
# ---------------------------------------------------------------------------

class CategoryClassifier:
    """Train, persist, and query the expense category model.

    On construction the classifier tries to restore a model from its store;
    a missing or unreadable model leaves it untrained rather than failing.

    Example::

        classifier = CategoryClassifier(LocalFileStore("models/model.json"))
        classifier.train(build_training_set())

        result = classifier.classify("latte at starbucks")
        print(result.category)    # "Food & Dining"
        print(result.confidence)  # 0.61

    Args:
        store: Where the serialized model lives. Defaults to a local file.
        autoload: Load a persisted model during construction.
    """

    def __init__(self, store: Optional[ModelStore] = None, autoload: bool = True) -> None:
        self._store: ModelStore = store if store is not None else LocalFileStore(DEFAULT_MODEL_PATH)
        self._model: Optional[BayesModel] = None
        self._write_lock = threading.Lock()
        self.last_load: Optional[LoadOutcome] = None
        if autoload:
            self.load_model()

    @property
    def is_trained(self) -> bool:
        """Whether a model is available for classification."""
        return self._model is not None

    @property
    def model(self) -> Optional[BayesModel]:
        """The currently published model, if any."""
        return self._model

    @property
    def store(self) -> ModelStore:
        return self._store

    @property
    def categories(self) -> list[str]:
        model = self._model
        return model.categories if model else []

    # -- training ----------------------------------------------------------

    def train(self, examples: Iterable[TrainingExample]) -> TrainingReport:
        """Add ``examples`` to the current model and persist the result.

        Counts accumulate across repeated ``train`` calls; use
        :meth:`retrain` to start over from an empty model.

        Args:
            examples: Labelled descriptions.

        Returns:
            TrainingReport describing the published model and the save outcome.

        Raises:
            ValueError: If ``examples`` is empty.
        """
        return self._fit(examples, retrain=False)

    def retrain(self, examples: Iterable[TrainingExample]) -> TrainingReport:
        """Discard the current model and train from scratch on ``examples``."""
        return self._fit(examples, retrain=True)

    def _fit(self, examples: Iterable[TrainingExample], retrain: bool) -> TrainingReport:
        batch = list(examples)
        if not batch:
            raise ValueError("Training requires at least one example")

        with self._write_lock:
            base = self._model
            if retrain or base is None:
                base = BayesModel.empty()
            logger.info(
                "%s expense classifier on %d examples",
                "Retraining" if retrain else "Training",
                len(batch),
            )
            model = base.with_examples(batch)
            self._model = model

        logger.info(
            "Classifier trained: %d documents, %d tokens in vocabulary, %d categories",
            model.total_documents,
            len(model.vocabulary),
            len(model.categories),
        )
        save = self._save(model)
        return TrainingReport(
            documents=len(batch),
            total_documents=model.total_documents,
            vocabulary_size=len(model.vocabulary),
            categories=model.categories,
            retrained=retrain,
            save=save,
        )

    # -- inference ---------------------------------------------------------

    def _require_model(self) -> BayesModel:
        model = self._model
        if model is None:
            raise NotTrainedError()
        return model

    @staticmethod
    def _check_description(description: Any) -> str:
        if not isinstance(description, str):
            raise MalformedInputError(
                f"Description must be a string, got {type(description).__name__}"
            )
        return description

    def classify(self, description: str) -> ClassificationResult:
        """Suggest a category for a single description.

        An empty description carries no token evidence, so the category with
        the most training documents wins.

        Raises:
            NotTrainedError: If no model has been trained or loaded.
            MalformedInputError: If ``description`` is not a string.
        """
        model = self._require_model()
        text = self._check_description(description)
        category, confidence, _ = _predict(model, text)
        return ClassificationResult(category=category, confidence=confidence, description=text)

    def get_confidence(self, description: str) -> float:
        """Confidence that :meth:`classify` would report for ``description``."""
        model = self._require_model()
        _, confidence, _ = _predict(model, self._check_description(description))
        return confidence

    def probabilities(self, description: str) -> dict[str, float]:
        """Normalized probability for every trained category, most likely first."""
        model = self._require_model()
        _, _, proba = _predict(model, self._check_description(description))
        return dict(sorted(proba.items(), key=lambda x: (-x[1], x[0])))

    def classify_batch(self, descriptions: Iterable[Any]) -> list[ClassificationResult]:
        """Classify each description independently, preserving input order.

        Items that fail are replaced with a fallback result in the
        ``Other`` category with zero confidence instead of aborting the batch.

        Raises:
            NotTrainedError: If no model has been trained or loaded.
        """
        model = self._require_model()
        results: list[ClassificationResult] = []
        for index, description in enumerate(descriptions):
            try:
                text = self._check_description(description)
                category, confidence, _ = _predict(model, text)
                results.append(ClassificationResult(category, confidence, text))
            except Exception as exc:
                logger.warning("Batch item %d could not be classified: %s", index, exc)
                results.append(ClassificationResult(
                    category=FALLBACK_CATEGORY.value,
                    confidence=0.0,
                    description=description,
                    error=str(exc),
                ))
        return results

    def most_informative_features(
        self,
        category: str,
        top_n: int = 20,
    ) -> list[tuple[str, float]]:
        """Tokens that most favour ``category`` over the other categories.

        Scores are ``log P(t|category)`` minus the mean ``log P(t|other)``.

        Raises:
            NotTrainedError: If no model is available.
            ValueError: If ``category`` has no training documents.
        """
        model = self._require_model()
        label = Category.from_label(category).value
        if label not in model.categories:
            raise ValueError(f"Unknown class: {label}. Known: {model.categories}")

        others = [c for c in model.categories if c != label]
        ratios: list[tuple[str, float]] = []
        for token in sorted(model.vocabulary):
            target_lp = math.log(model.token_probability(token, label))
            if others:
                other_lp = sum(math.log(model.token_probability(token, c)) for c in others) / len(others)
            else:
                other_lp = 0.0
            ratios.append((token, round(target_lp - other_lp, 4)))

        ratios.sort(key=lambda x: (-x[1], x[0]))
        return ratios[:top_n]

    def evaluate(
        self,
        examples: Sequence[TrainingExample],
        k: int = 5,
        seed: int = 42,
    ) -> list[ClassificationMetrics]:
        """Stratified k-fold cross-validation on ``examples``.

        Uses throwaway models; the published model and the store are untouched.
        """
        return cross_validate(examples, k=k, seed=seed)

    # -- persistence -------------------------------------------------------

    def save_model(self) -> SaveOutcome:
        """Write the current model to the store. Never raises."""
        model = self._model
        if model is None:
            logger.warning("Nothing to save: classifier is not trained")
            return SaveOutcome.SAVE_FAILED
        return self._save(model)

    def _save(self, model: BayesModel) -> SaveOutcome:
        try:
            self._store.write(model.to_json())
        except PersistenceError:
            logger.exception("Error saving model to %s", self._store.identifier)
            return SaveOutcome.SAVE_FAILED
        logger.info("Model saved to %s", self._store.identifier)
        return SaveOutcome.SAVED

    def load_model(self) -> LoadOutcome:
        """Restore a persisted model. Never raises.

        The published model is replaced only when loading succeeds.
        """
        try:
            model = BayesModel.from_json(self._store.read())
        except ModelNotFoundError:
            logger.info("No saved model at %s, classifier starts untrained", self._store.identifier)
            outcome = LoadOutcome.NOT_FOUND
        except PersistenceError as exc:
            logger.warning("Ignoring unreadable model at %s: %s", self._store.identifier, exc)
            outcome = LoadOutcome.CORRUPT
        else:
            with self._write_lock:
                self._model = model
            logger.info(
                "Model loaded from %s (%d documents)",
                self._store.identifier,
                model.total_documents,
            )
            outcome = LoadOutcome.LOADED
        self.last_load = outcome
        return outcome

    def get_status(self) -> ModelStatus:
        """Training state plus a live check of the store."""
        return ModelStatus(
            is_trained=self.is_trained,
            model_path=self._store.identifier,
            model_exists=self._store.exists(),
        )


# ---------------------------------------------------------------------------
# Cross-Validation
# ---------------------------------------------------------------------------

def cross_validate(
    examples: Sequence[TrainingExample],
    k: int = 5,
    seed: int = 42,
) -> list[ClassificationMetrics]:
    """Run stratified k-fold cross-validation of the Bayes model.

    Args:
        examples: Labelled descriptions.
        k: Number of folds.
        seed: Random seed for fold generation.

    Returns:
        List of ClassificationMetrics (one per fold with a non-empty test set).
    """
    labels = [ex.category.value for ex in examples]
    results: list[ClassificationMetrics] = []

    for train_idx, test_idx in stratified_k_fold(labels, k=k, seed=seed):
        if not train_idx or not test_idx:
            continue
        model = BayesModel.empty().with_examples(examples[i] for i in train_idx)
        predictions = [_predict(model, examples[i].description)[0] for i in test_idx]
        results.append(compute_metrics([labels[i] for i in test_idx], predictions))

    return results
