"""K-fold cross-validation harness.

Partitions a dataset into k contiguous folds, trains k independent models
(each on k-1 folds), scores each on its held-out fold and returns the mean
score. The model trained on the last fold is kept for inspection.

Every input buffer is staged once at construction (see ``staging``), so each
fold's training and validation data are plain views into read-only arenas.
"""

import logging
from enum import Enum
from typing import Any

import numpy as np

from .geometry import FoldGeometry, compute_fold_geometry
from .metrics import Metric
from .model_holder import ModelHolder
from .scores import aggregate_fold_scores, make_fold_score
from .staging import stage_buffer
from .trainers import ModelTrainer
from .validation import (
    DatasetInfo,
    as_array,
    assert_data_consistency,
    assert_dataset_info_consistency,
    assert_weights_consistency,
)
from .windows import FoldWindows

logger = logging.getLogger(__name__)


class RunState(Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"


class KFoldCV:
    """
    K-fold cross-validation over contiguous folds.

    Fold membership depends only on sample position; shuffle the data
    beforehand for randomized folds. Fold 0 validates on the last
    ``last_bin_size`` samples (absorbing ``n % k``); fold ``i > 0`` validates
    on samples ``[bin_size*(i-1), bin_size*i)``.

    Attributes:
        k: Number of folds
        geometry: Fold sizes derived from the sample count and k
        weighted: Whether folds are trained through ``train_weighted``

    Example:
        >>> cv = KFoldCV(EstimatorTrainer(Ridge()), get_metric("mse"), 5, X, y)
        >>> mean_mse = cv.evaluate(alpha=0.5)
        >>> last_model = cv.model
    """

    def __init__(
        self,
        trainer: ModelTrainer,
        metric: Metric,
        k: int,
        xs: Any,
        ys: Any,
        *,
        dataset_info: DatasetInfo | None = None,
        num_classes: int | None = None,
        weights: Any | None = None,
    ):
        """
        Validate the dataset and stage every buffer.

        Args:
            trainer: Produces a fresh model per fold
            metric: Scores a model on a validation window
            k: Number of folds (>= 2)
            xs: Features (n_samples, n_features); DataFrame or array-like
            ys: Labels (n_samples,) or (n_samples, n_outputs)
            dataset_info: Feature metadata forwarded to the trainer
            num_classes: Number of classes forwarded to the trainer
            weights: Per-sample weights (n_samples,). An empty buffer means
                unweighted training.

        Raises:
            ValueError: If k < 2 or there are fewer samples than folds
            DatasetConsistencyError: If buffer shapes disagree
            TypeError: If weights are supplied but the trainer cannot use them
        """
        if k < 2:
            raise ValueError(f"k should not be less than 2 (got k={k})")

        xs_array = as_array(xs)
        ys_array = as_array(ys)
        assert_data_consistency(xs_array, ys_array)

        weights_array = None
        if weights is not None:
            if not trainer.supports_weights:
                raise TypeError(
                    f"{type(trainer).__name__} does not support sample weights; "
                    "construct the harness without weights"
                )
            weights_array = as_array(weights)
            if weights_array.size > 0:
                assert_weights_consistency(xs_array, weights_array)
            else:
                logger.debug("Empty weight buffer supplied; folds will be trained unweighted")
                weights_array = None

        if dataset_info is not None:
            assert_dataset_info_consistency(xs_array, dataset_info)

        self.trainer = trainer
        self.metric = metric
        self.k = k
        self.dataset_info = dataset_info
        self.num_classes = num_classes

        self.geometry: FoldGeometry = compute_fold_geometry(xs_array.shape[0], k)
        self._windows = FoldWindows(self.geometry)

        self._xs = stage_buffer(xs_array, self.geometry)
        self._ys = stage_buffer(ys_array, self.geometry)
        self._weights = (
            stage_buffer(weights_array, self.geometry) if weights_array is not None else None
        )
        self.weighted = self._weights is not None

        self._model_holder = ModelHolder()
        self._fold_scores: list[dict[str, Any]] = []
        self._state = RunState.IDLE

        logger.info(
            f"Initialized KFoldCV: k={k}, n_samples={self.geometry.n_samples}, "
            f"bin_size={self.geometry.bin_size}, last_bin_size={self.geometry.last_bin_size}, "
            f"weighted={self.weighted}"
        )

    @property
    def state(self) -> RunState:
        return self._state

    @property
    def model(self) -> Any:
        """Model trained on the last fold of the most recent completed run.

        Raises:
            ModelNotInitializedError: If no run has completed yet
        """
        return self._model_holder.get()

    @property
    def fold_scores(self) -> list[dict[str, Any]]:
        """Fold score records of the most recent completed run."""
        return list(self._fold_scores)

    def training_subset(self, buffer: np.ndarray, fold_idx: int) -> np.ndarray:
        return self._windows.training_subset(buffer, fold_idx)

    def validation_subset(self, buffer: np.ndarray, fold_idx: int) -> np.ndarray:
        return self._windows.validation_subset(buffer, fold_idx)

    def _meta_kwargs(self) -> dict[str, Any]:
        meta: dict[str, Any] = {}
        if self.num_classes is not None:
            meta["num_classes"] = self.num_classes
        if self.dataset_info is not None:
            meta["dataset_info"] = self.dataset_info
        return meta

    def _train_fold(self, fold_idx: int, args: tuple[Any, ...], kwargs: dict[str, Any]) -> Any:
        X_train = self.training_subset(self._xs, fold_idx)
        y_train = self.training_subset(self._ys, fold_idx)
        if self.weighted:
            w_train = self.training_subset(self._weights, fold_idx)
            return self.trainer.train_weighted(X_train, y_train, w_train, *args, **kwargs)
        return self.trainer.train(X_train, y_train, *args, **kwargs)

    def evaluate(self, *train_args: Any, **train_kwargs: Any) -> float:
        """
        Run k-fold cross-validation once.

        Extra arguments are forwarded verbatim to every training call,
        together with ``num_classes``/``dataset_info`` when configured.

        Returns:
            Unweighted arithmetic mean of the k fold scores; fold 0 counts
            the same as every other fold even when its validation window is
            larger.

        Raises:
            RuntimeError: If called while another run on this harness is in
                progress
            Exception: Anything raised by the trainer or metric propagates
                unchanged; the previous model and fold scores are kept
        """
        if self._state is RunState.RUNNING:
            raise RuntimeError("KFoldCV.evaluate() is not re-entrant; a run is already in progress")

        kwargs = {**self._meta_kwargs(), **train_kwargs}
        previous_state = self._state
        self._state = RunState.RUNNING

        try:
            fold_scores: list[dict[str, Any]] = []
            evaluations = np.empty(self.k, dtype=float)

            for fold_idx in range(self.k):
                model = self._train_fold(fold_idx, train_args, kwargs)

                X_val = self.validation_subset(self._xs, fold_idx)
                y_val = self.validation_subset(self._ys, fold_idx)
                score = self.metric.evaluate(model, X_val, y_val)

                evaluations[fold_idx] = score
                train_window, validation_window = self._windows.fold(fold_idx)
                fold_scores.append(
                    make_fold_score(fold_idx, train_window.length, validation_window.length, score)
                )
                logger.debug(
                    f"Fold {fold_idx}: train_size={train_window.length}, "
                    f"validation_size={validation_window.length}, score={score}"
                )

                if fold_idx == self.k - 1:
                    self._model_holder.set(model)
        except BaseException:
            self._state = previous_state
            raise

        self._fold_scores = fold_scores
        self._state = RunState.DONE

        mean_score = float(np.mean(evaluations))
        logger.info(f"Completed {self.k}-fold cross-validation: mean score={mean_score}")
        return mean_score

    def summary(self) -> dict[str, Any]:
        """Aggregate of the last completed run's fold scores.

        Raises:
            ValueError: If no run has completed yet
        """
        return aggregate_fold_scores(self._fold_scores)
