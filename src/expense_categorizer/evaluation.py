"""Evaluation metrics and fold generation for the category classifier.

Category labels are always visited in sorted order, both when building the
confusion matrix and when shuffling each category's examples into folds.
Reports therefore list categories in a stable order, and a seed always
shuffles the categories in the same sequence.
"""

from __future__ import annotations

import random
from collections import Counter, defaultdict
from dataclasses import dataclass, field


@dataclass
class ClassificationMetrics:
    """Evaluation metrics for a set of predictions.

    Attributes:
        accuracy: Overall accuracy.
        per_class: Per-category precision, recall, F1 scores.
        macro_f1: Unweighted mean F1 across categories.
        weighted_f1: Support-weighted mean F1 across categories.
        confusion_matrix: ``{true: {predicted: count}}``.
        support: Per-category sample counts in the true labels.
    """

    accuracy: float = 0.0
    per_class: dict[str, dict[str, float]] = field(default_factory=dict)
    macro_f1: float = 0.0
    weighted_f1: float = 0.0
    confusion_matrix: dict[str, dict[str, int]] = field(default_factory=dict)
    support: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict:
        return {
            "accuracy": round(self.accuracy, 4),
            "macro_f1": round(self.macro_f1, 4),
            "weighted_f1": round(self.weighted_f1, 4),
            "per_class": {
                cls: {k: round(v, 4) for k, v in metrics.items()}
                for cls, metrics in self.per_class.items()
            },
            "confusion_matrix": self.confusion_matrix,
        }


def compute_metrics(y_true: list[str], y_pred: list[str]) -> ClassificationMetrics:
    """Compute accuracy, per-category and aggregate scores.

    Raises:
        ValueError: If the label lists differ in length.
    """
    if len(y_true) != len(y_pred):
        raise ValueError("y_true and y_pred must have the same length")

    classes = sorted(set(y_true) | set(y_pred))
    n = len(y_true)

    cm: dict[str, dict[str, int]] = {c: {c2: 0 for c2 in classes} for c in classes}
    for true, pred in zip(y_true, y_pred):
        cm[true][pred] += 1

    correct = sum(1 for t, p in zip(y_true, y_pred) if t == p)
    accuracy = correct / n if n > 0 else 0.0

    per_class: dict[str, dict[str, float]] = {}
    support = Counter(y_true)

    for cls in classes:
        tp = cm[cls][cls]
        fp = sum(cm[other][cls] for other in classes if other != cls)
        fn = sum(cm[cls][other] for other in classes if other != cls)

        precision = tp / (tp + fp) if (tp + fp) > 0 else 0.0
        recall = tp / (tp + fn) if (tp + fn) > 0 else 0.0
        f1 = 2 * precision * recall / (precision + recall) if (precision + recall) > 0 else 0.0
        per_class[cls] = {"precision": precision, "recall": recall, "f1": f1}

    macro_f1 = sum(m["f1"] for m in per_class.values()) / len(classes) if classes else 0.0
    total_support = sum(support.values())
    weighted_f1 = (
        sum(per_class[cls]["f1"] * support.get(cls, 0) for cls in classes) / total_support
        if total_support > 0
        else 0.0
    )

    return ClassificationMetrics(
        accuracy=accuracy,
        per_class=per_class,
        macro_f1=macro_f1,
        weighted_f1=weighted_f1,
        confusion_matrix=cm,
        support=dict(support),
    )


def stratified_k_fold(
    labels: list[str],
    k: int = 5,
    seed: int = 42,
) -> list[tuple[list[int], list[int]]]:
    """Generate stratified k-fold train/test index splits.

    Each fold keeps roughly the class distribution of ``labels``.

    Raises:
        ValueError: If ``k`` is less than 2.
    """
    if k < 2:
        raise ValueError("k must be at least 2")

    rng = random.Random(seed)

    class_indices: dict[str, list[int]] = defaultdict(list)
    for idx, label in enumerate(labels):
        class_indices[label].append(idx)

    for label in sorted(class_indices):
        rng.shuffle(class_indices[label])

    fold_assignments: list[int] = [0] * len(labels)
    for label in sorted(class_indices):
        for i, idx in enumerate(class_indices[label]):
            fold_assignments[idx] = i % k

    folds: list[tuple[list[int], list[int]]] = []
    for fold_idx in range(k):
        test_indices = [i for i, f in enumerate(fold_assignments) if f == fold_idx]
        train_indices = [i for i, f in enumerate(fold_assignments) if f != fold_idx]
        folds.append((train_indices, test_indices))

    return folds
