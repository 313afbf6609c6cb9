"""Evaluation metrics consumed by the cross-validation harness.

A metric scores a trained model on one validation window. Whether higher or
lower is better is a property of the metric; the harness only averages.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from functools import partial
from typing import Any

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    f1_score,
    mean_absolute_error,
    mean_squared_error,
    r2_score,
)

logger = logging.getLogger(__name__)


class Metric(ABC):
    """Abstract base class for metrics: ``evaluate(model, X, y) -> float``."""

    greater_is_better: bool = True

    @abstractmethod
    def evaluate(self, model: Any, X: np.ndarray, y: np.ndarray) -> float:
        """Score ``model`` on features ``X`` against labels ``y``."""
        raise NotImplementedError


class PredictionMetric(Metric):
    """
    Metric applying a scikit-learn style ``score_func(y_true, y_pred)`` to
    the model's predictions.

    Example:
        >>> metric = PredictionMetric("mse", mean_squared_error, greater_is_better=False)
        >>> metric.evaluate(model, X_val, y_val)
    """

    def __init__(
        self,
        name: str,
        score_func: Callable[..., float],
        greater_is_better: bool = True,
    ):
        self.name = name
        self.score_func = score_func
        self.greater_is_better = greater_is_better

    def evaluate(self, model: Any, X: np.ndarray, y: np.ndarray) -> float:
        if not hasattr(model, "predict"):
            raise TypeError(f"Metric '{self.name}' requires a model with predict()")

        y_pred = np.asarray(model.predict(X))
        y_true = y
        if y_true.ndim == 2 and y_true.shape[1] == 1 and y_pred.ndim == 1:
            y_true = y_true.ravel()

        score = float(self.score_func(y_true, y_pred))
        if not np.isfinite(score):
            logger.warning(f"Metric '{self.name}' produced a non-finite score: {score}")
        return score

    def __repr__(self) -> str:
        return f"PredictionMetric(name={self.name!r}, greater_is_better={self.greater_is_better})"


_METRIC_REGISTRY: dict[str, dict[str, Any]] = {
    "accuracy": {"score_func": accuracy_score, "greater_is_better": True},
    "mse": {"score_func": mean_squared_error, "greater_is_better": False},
    "mae": {"score_func": mean_absolute_error, "greater_is_better": False},
    "r2": {"score_func": r2_score, "greater_is_better": True},
    "f1_macro": {"score_func": partial(f1_score, average="macro"), "greater_is_better": True},
}


def get_metric(name: str) -> PredictionMetric:
    """Resolve a registered metric name.

    Raises:
        KeyError: If the name is not registered
    """
    if name not in _METRIC_REGISTRY:
        available = sorted(_METRIC_REGISTRY.keys())
        raise KeyError(f"Unknown metric name '{name}'. Available metrics: {available}")

    entry = _METRIC_REGISTRY[name]
    return PredictionMetric(name, entry["score_func"], entry["greater_is_better"])


def list_available_metrics() -> list[str]:
    return sorted(_METRIC_REGISTRY.keys())
