"""Unit tests for the KFoldCV harness.

Tests:
- Construction errors: k < 2, n < k, shape mismatches, unsupported weights
- Model access before evaluate raises ModelNotInitializedError
- Weighted/unweighted dispatch, including empty weights (Scenario D)
- Returned score is the unweighted mean of fold scores
- Training windows and forwarded arguments seen by the trainer
- Failures propagate and leave the previous model in place
- End-to-end run with scikit-learn estimators
"""

import logging

import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import LinearRegression, LogisticRegression
from sklearn.neighbors import KNeighborsClassifier

from src.kfold_cv.harness import KFoldCV, RunState
from src.kfold_cv.metrics import Metric, get_metric
from src.kfold_cv.model_holder import ModelNotInitializedError
from src.kfold_cv.trainers import EstimatorTrainer, ModelTrainer
from src.kfold_cv.validation import DatasetConsistencyError, DatasetInfo


class MeanModel:
    """Predicts the (weighted) mean of its training labels."""

    def __init__(self, value: float, n_train: int, weighted: bool):
        self.value = value
        self.n_train = n_train
        self.weighted = weighted

    def predict(self, X):
        return np.full(len(X), self.value)


class RecordingTrainer(ModelTrainer):
    """Trainer recording every call; supports weights."""

    supports_weights = True

    def __init__(self):
        self.calls = []

    def train(self, X, y, *args, **kwargs):
        self.calls.append(("train", X.copy(), y.copy(), None, args, kwargs))
        return MeanModel(float(np.mean(y)), len(X), weighted=False)

    def train_weighted(self, X, y, weights, *args, **kwargs):
        self.calls.append(("train_weighted", X.copy(), y.copy(), weights.copy(), args, kwargs))
        return MeanModel(float(np.average(y, weights=weights)), len(X), weighted=True)


class UnweightedTrainer(ModelTrainer):
    def train(self, X, y, *args, **kwargs):
        return MeanModel(float(np.mean(y)), len(X), weighted=False)


class FirstLabelMetric(Metric):
    """Score = first validation label; makes per-fold scores easy to predict."""

    def evaluate(self, model, X, y):
        return float(y[0])


class ValidationSizeMetric(Metric):
    def evaluate(self, model, X, y):
        return float(len(y))


class FailingTrainer(UnweightedTrainer):
    def __init__(self, fail_on_call: int):
        self.fail_on_call = fail_on_call
        self.n_calls = 0

    def train(self, X, y, *args, **kwargs):
        self.n_calls += 1
        if self.n_calls == self.fail_on_call:
            raise RuntimeError("training diverged")
        return super().train(X, y, *args, **kwargs)


@pytest.fixture
def dataset():
    """10 samples, 2 features; sample i has features (i, 10 + i) and label i."""
    xs = np.column_stack([np.arange(10.0), 10.0 + np.arange(10.0)])
    ys = np.arange(10.0)
    return xs, ys


# ============================================================================
# Construction
# ============================================================================


@pytest.mark.parametrize("k", [0, 1])
def test_rejects_k_below_two(dataset, k):
    xs, ys = dataset
    with pytest.raises(ValueError, match="k should not be less than 2"):
        KFoldCV(RecordingTrainer(), FirstLabelMetric(), k, xs, ys)


def test_rejects_more_folds_than_samples(dataset):
    xs, ys = dataset
    with pytest.raises(ValueError, match="Cannot split 10 samples into 11 folds"):
        KFoldCV(RecordingTrainer(), FirstLabelMetric(), 11, xs, ys)


def test_rejects_label_count_mismatch(dataset):
    xs, _ = dataset
    with pytest.raises(DatasetConsistencyError, match="does not match number of labels"):
        KFoldCV(RecordingTrainer(), FirstLabelMetric(), 5, xs, np.arange(9.0))


def test_rejects_weight_count_mismatch(dataset):
    xs, ys = dataset
    with pytest.raises(DatasetConsistencyError, match="number of weights"):
        KFoldCV(RecordingTrainer(), FirstLabelMetric(), 5, xs, ys, weights=np.ones(7))


def test_rejects_dataset_info_dimension_mismatch(dataset):
    xs, ys = dataset
    with pytest.raises(DatasetConsistencyError, match="describes 3 dimensions"):
        KFoldCV(
            RecordingTrainer(), FirstLabelMetric(), 5, xs, ys, dataset_info=DatasetInfo(3)
        )


def test_rejects_weights_for_unweighted_trainer(dataset):
    xs, ys = dataset
    with pytest.raises(TypeError, match="does not support sample weights"):
        KFoldCV(UnweightedTrainer(), FirstLabelMetric(), 5, xs, ys, weights=np.ones(10))


def test_accepts_pandas_inputs(dataset):
    xs, ys = dataset
    cv = KFoldCV(
        RecordingTrainer(),
        FirstLabelMetric(),
        5,
        pd.DataFrame(xs, columns=["a", "b"]),
        pd.Series(ys, name="label"),
    )
    assert cv.geometry.n_samples == 10
    assert cv.state is RunState.IDLE


def test_construction_logs_geometry(dataset, caplog):
    xs, ys = dataset
    with caplog.at_level(logging.INFO, logger="src.kfold_cv.harness"):
        KFoldCV(RecordingTrainer(), FirstLabelMetric(), 3, xs, ys)
    assert "bin_size=3, last_bin_size=4" in caplog.text


# ============================================================================
# Model ownership
# ============================================================================


def test_model_before_evaluate_raises(dataset):
    xs, ys = dataset
    cv = KFoldCV(RecordingTrainer(), FirstLabelMetric(), 5, xs, ys)
    with pytest.raises(ModelNotInitializedError, match="uninitialized model"):
        _ = cv.model


def test_model_is_last_fold_model(dataset):
    xs, ys = dataset
    cv = KFoldCV(RecordingTrainer(), FirstLabelMetric(), 5, xs, ys)

    cv.evaluate()

    # Fold 4 trains on samples 8, 9, 0..5
    assert cv.model.n_train == 8
    assert cv.model.value == pytest.approx(np.mean([8, 9, 0, 1, 2, 3, 4, 5]))


def test_model_replaced_on_each_run(dataset):
    xs, ys = dataset
    cv = KFoldCV(RecordingTrainer(), FirstLabelMetric(), 5, xs, ys)

    cv.evaluate()
    first = cv.model
    cv.evaluate()

    assert cv.model is not first


# ============================================================================
# Dispatch
# ============================================================================


def test_unweighted_dispatch(dataset):
    xs, ys = dataset
    trainer = RecordingTrainer()
    cv = KFoldCV(trainer, FirstLabelMetric(), 5, xs, ys)

    cv.evaluate()

    assert not cv.weighted
    assert [call[0] for call in trainer.calls] == ["train"] * 5


def test_weighted_dispatch_receives_weight_windows(dataset):
    xs, ys = dataset
    trainer = RecordingTrainer()
    weights = np.arange(10.0) + 1.0
    cv = KFoldCV(trainer, FirstLabelMetric(), 5, xs, ys, weights=weights)

    cv.evaluate()

    assert cv.weighted
    assert [call[0] for call in trainer.calls] == ["train_weighted"] * 5
    for _, X_train, y_train, w_train, _, _ in trainer.calls:
        # weight of sample i is i + 1, label of sample i is i
        np.testing.assert_array_equal(w_train, y_train + 1.0)
        np.testing.assert_array_equal(X_train[:, 0], y_train)


def test_empty_weights_dispatch_to_unweighted_path(dataset):
    """A weighted harness with a zero-length weight buffer trains unweighted."""
    xs, ys = dataset
    trainer = RecordingTrainer()
    cv = KFoldCV(trainer, FirstLabelMetric(), 5, xs, ys, weights=np.array([]))

    score = cv.evaluate()

    assert not cv.weighted
    assert [call[0] for call in trainer.calls] == ["train"] * 5
    assert np.isfinite(score)


def test_training_windows_seen_by_trainer():
    """n=10, k=3: folds train on [0..5], [3..9], [6..9, 0..2]."""
    xs = np.arange(10.0).reshape(10, 1)
    ys = np.arange(10.0)
    trainer = RecordingTrainer()

    KFoldCV(trainer, FirstLabelMetric(), 3, xs, ys).evaluate()

    seen = [call[2].tolist() for call in trainer.calls]
    assert seen[0] == [0, 1, 2, 3, 4, 5]
    assert seen[1] == [3, 4, 5, 6, 7, 8, 9]
    assert seen[2] == [6, 7, 8, 9, 0, 1, 2]


def test_extra_arguments_forwarded(dataset):
    xs, ys = dataset
    trainer = RecordingTrainer()
    info = DatasetInfo(2, categorical_dimensions=frozenset({1}))
    cv = KFoldCV(
        trainer, FirstLabelMetric(), 2, xs, ys, num_classes=4, dataset_info=info
    )

    cv.evaluate("positional", depth=3)

    for call in trainer.calls:
        assert call[4] == ("positional",)
        assert call[5] == {"num_classes": 4, "dataset_info": info, "depth": 3}


# ============================================================================
# Scores
# ============================================================================


def test_mean_is_unweighted_over_folds():
    """Fold 0 validates on 4 samples, folds 1-2 on 3; each counts once."""
    xs = np.arange(10.0).reshape(10, 1)
    ys = np.arange(10.0)
    cv = KFoldCV(RecordingTrainer(), ValidationSizeMetric(), 3, xs, ys)

    score = cv.evaluate()

    assert score == pytest.approx((4 + 3 + 3) / 3)
    assert score != pytest.approx((4 * 4 + 3 * 3 + 3 * 3) / 10)


def test_mean_matches_manual_fold_scores(dataset):
    """First validation label per fold for n=10, k=5: 8, 0, 2, 4, 6."""
    xs, ys = dataset
    cv = KFoldCV(RecordingTrainer(), FirstLabelMetric(), 5, xs, ys)

    score = cv.evaluate()

    assert score == pytest.approx(np.mean([8, 0, 2, 4, 6]))
    assert [fs["score"] for fs in cv.fold_scores] == [8.0, 0.0, 2.0, 4.0, 6.0]
    assert [fs["validation_size"] for fs in cv.fold_scores] == [2] * 5
    assert [fs["train_size"] for fs in cv.fold_scores] == [8] * 5


def test_summary_after_run(dataset):
    xs, ys = dataset
    cv = KFoldCV(RecordingTrainer(), FirstLabelMetric(), 5, xs, ys)

    with pytest.raises(ValueError, match="empty"):
        cv.summary()

    mean_score = cv.evaluate()
    summary = cv.summary()

    assert summary["n_folds"] == 5
    assert summary["score_mean"] == pytest.approx(mean_score)
    assert summary["score_min"] == 0.0
    assert summary["score_max"] == 8.0


def test_reevaluation_reuses_staged_buffers(dataset):
    xs, ys = dataset
    cv = KFoldCV(RecordingTrainer(), FirstLabelMetric(), 5, xs, ys)

    first = cv.evaluate()
    second = cv.evaluate(unused=1)

    assert first == second
    assert cv.state is RunState.DONE


# ============================================================================
# Failures
# ============================================================================


def test_training_failure_propagates_and_keeps_previous_model(dataset):
    xs, ys = dataset
    trainer = FailingTrainer(fail_on_call=8)
    cv = KFoldCV(trainer, FirstLabelMetric(), 5, xs, ys)

    cv.evaluate()
    previous_model = cv.model
    previous_scores = cv.fold_scores

    with pytest.raises(RuntimeError, match="training diverged"):
        cv.evaluate()

    assert cv.model is previous_model
    assert cv.fold_scores == previous_scores
    assert cv.state is RunState.DONE


def test_failure_on_first_run_leaves_model_uninitialized(dataset):
    xs, ys = dataset
    cv = KFoldCV(FailingTrainer(fail_on_call=5), FirstLabelMetric(), 5, xs, ys)

    with pytest.raises(RuntimeError, match="training diverged"):
        cv.evaluate()

    assert cv.state is RunState.IDLE
    with pytest.raises(ModelNotInitializedError):
        _ = cv.model


def test_metric_failure_propagates(dataset):
    class BrokenMetric(Metric):
        def evaluate(self, model, X, y):
            raise ZeroDivisionError("bad metric")

    xs, ys = dataset
    cv = KFoldCV(RecordingTrainer(), BrokenMetric(), 5, xs, ys)

    with pytest.raises(ZeroDivisionError, match="bad metric"):
        cv.evaluate()


def test_reentrant_evaluate_rejected(dataset):
    xs, ys = dataset
    holder = {}

    class ReentrantTrainer(UnweightedTrainer):
        def train(self, X, y, *args, **kwargs):
            return holder["cv"].evaluate()

    cv = KFoldCV(ReentrantTrainer(), FirstLabelMetric(), 5, xs, ys)
    holder["cv"] = cv

    with pytest.raises(RuntimeError, match="not re-entrant"):
        cv.evaluate()
    assert cv.state is RunState.IDLE


# ============================================================================
# scikit-learn integration
# ============================================================================


def test_end_to_end_linear_regression():
    rng = np.random.default_rng(42)
    X = rng.normal(size=(103, 4))
    y = X @ np.array([1.5, -2.0, 0.0, 0.5]) + 3.0

    cv = KFoldCV(EstimatorTrainer(LinearRegression()), get_metric("mse"), 4, X, y)
    mse = cv.evaluate()

    assert mse == pytest.approx(0.0, abs=1e-12)
    assert isinstance(cv.model, LinearRegression)
    np.testing.assert_allclose(cv.model.coef_, [1.5, -2.0, 0.0, 0.5], atol=1e-8)


def test_end_to_end_weighted_classifier():
    rng = np.random.default_rng(0)
    X = rng.normal(size=(120, 2))
    y = (X[:, 0] + X[:, 1] > 0).astype(int)
    weights = rng.uniform(0.5, 2.0, size=120)

    cv = KFoldCV(
        EstimatorTrainer(LogisticRegression()),
        get_metric("accuracy"),
        5,
        X,
        y,
        num_classes=2,
        weights=weights,
    )
    accuracy = cv.evaluate(C=10.0)

    assert cv.weighted
    assert accuracy > 0.9
    assert cv.model.get_params()["C"] == 10.0


def test_estimator_without_sample_weight_rejected_with_weights():
    X = np.zeros((10, 2))
    y = np.zeros(10, dtype=int)
    with pytest.raises(TypeError, match="does not support sample weights"):
        KFoldCV(
            EstimatorTrainer(KNeighborsClassifier()),
            get_metric("accuracy"),
            2,
            X,
            y,
            weights=np.ones(10),
        )
