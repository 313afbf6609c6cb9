"""Model trainers consumed by the cross-validation harness.

A trainer turns one fold's training data into a fresh model. The harness
never inspects models itself; it only hands them to a metric and keeps the
one trained on the last fold.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any

import numpy as np
from sklearn.base import BaseEstimator, clone
from sklearn.utils.validation import has_fit_parameter

logger = logging.getLogger(__name__)

# Keyword arguments the harness forwards from its constructor; estimators
# that infer classes and feature types from the data ignore them.
HARNESS_META_ARGS = frozenset({"num_classes", "dataset_info"})


class ModelTrainer(ABC):
    """
    Abstract base class for model trainers.

    Subclasses implement ``train``; trainers able to use per-sample weights
    also implement ``train_weighted`` and set ``supports_weights = True``.
    The harness checks ``supports_weights`` once at construction, so a
    weighted dataset paired with an unweighted trainer is rejected before
    any data is staged.

    Methods:
        train(X, y, *args, **kwargs): Train and return a new model
        train_weighted(X, y, weights, *args, **kwargs): Weighted variant
    """

    supports_weights: bool = False

    @abstractmethod
    def train(self, X: np.ndarray, y: np.ndarray, *args: Any, **kwargs: Any) -> Any:
        """Train a new model.

        Args:
            X: Feature matrix (N_samples, N_features)
            y: Labels (N_samples,) or (N_samples, N_outputs)
            *args: Extra positional arguments forwarded from ``evaluate``
            **kwargs: Extra keyword arguments forwarded from ``evaluate``,
                plus ``num_classes``/``dataset_info`` when configured

        Returns:
            The trained model
        """
        raise NotImplementedError

    def train_weighted(
        self,
        X: np.ndarray,
        y: np.ndarray,
        weights: np.ndarray,
        *args: Any,
        **kwargs: Any,
    ) -> Any:
        """Train a new model using per-sample weights.

        Raises:
            NotImplementedError: If the trainer does not support weights
        """
        raise NotImplementedError(f"{type(self).__name__} does not support sample weights")


class EstimatorTrainer(ModelTrainer):
    """
    Trainer wrapping a scikit-learn estimator.

    Every call fits an unfitted ``clone`` of the template estimator, so folds
    never share state. Keyword arguments forwarded from ``evaluate`` are
    applied as hyperparameters through ``set_params``; positional arguments
    are not supported since sklearn estimators take hyperparameters by name.

    Example:
        >>> trainer = EstimatorTrainer(Ridge(alpha=3.0))
        >>> model = trainer.train(X_train, y_train, alpha=1.0)
    """

    def __init__(self, estimator: BaseEstimator):
        if not hasattr(estimator, "fit"):
            raise TypeError(f"{type(estimator).__name__} has no fit() method")
        self.estimator = estimator
        self.supports_weights = has_fit_parameter(estimator, "sample_weight")

        logger.debug(
            "Initialized EstimatorTrainer for %s (supports_weights=%s)",
            type(estimator).__name__,
            self.supports_weights,
        )

    def _fresh_estimator(self, args: tuple[Any, ...], kwargs: dict[str, Any]) -> BaseEstimator:
        if args:
            raise TypeError(
                "EstimatorTrainer accepts hyperparameters as keyword arguments only "
                f"(got {len(args)} positional)"
            )
        params = {key: value for key, value in kwargs.items() if key not in HARNESS_META_ARGS}
        estimator = clone(self.estimator)
        if params:
            estimator.set_params(**params)
        return estimator

    @staticmethod
    def _labels(y: np.ndarray) -> np.ndarray:
        # sklearn warns on column-vector labels
        if y.ndim == 2 and y.shape[1] == 1:
            return y.ravel()
        return y

    def train(self, X: np.ndarray, y: np.ndarray, *args: Any, **kwargs: Any) -> BaseEstimator:
        estimator = self._fresh_estimator(args, kwargs)
        estimator.fit(X, self._labels(y))
        logger.debug(
            "Fitted %s on %s samples and %s features.",
            type(estimator).__name__,
            X.shape[0],
            X.shape[1],
        )
        return estimator

    def train_weighted(
        self,
        X: np.ndarray,
        y: np.ndarray,
        weights: np.ndarray,
        *args: Any,
        **kwargs: Any,
    ) -> BaseEstimator:
        if not self.supports_weights:
            return super().train_weighted(X, y, weights, *args, **kwargs)

        estimator = self._fresh_estimator(args, kwargs)
        estimator.fit(X, self._labels(y), sample_weight=weights)
        logger.debug(
            "Fitted %s on %s weighted samples and %s features.",
            type(estimator).__name__,
            X.shape[0],
            X.shape[1],
        )
        return estimator

    def get_params(self) -> dict[str, Any]:
        """Return the template estimator's hyperparameters."""
        return self.estimator.get_params()
