"""Unit tests for fold score records and aggregation.

Tests:
- make_fold_score produces schema-compliant records
- validate_fold_score_schema rejects missing keys and wrong types
- aggregate_fold_scores computes an unweighted mean and propagates NaN
"""

import logging

import numpy as np
import pytest

from src.kfold_cv.scores import (
    FOLD_SCORE_SCHEMA_KEYS,
    aggregate_fold_scores,
    make_fold_score,
    validate_fold_score_schema,
)


def test_make_fold_score_schema():
    record = make_fold_score(np.int64(1), 8, 2, np.float32(0.5))

    assert set(record.keys()) == FOLD_SCORE_SCHEMA_KEYS
    assert type(record["fold_id"]) is int
    assert type(record["score"]) is float
    validate_fold_score_schema(record)


def test_validate_schema_missing_keys():
    with pytest.raises(ValueError, match="missing required keys"):
        validate_fold_score_schema({"fold_id": 0, "score": 1.0})


def test_validate_schema_wrong_type():
    record = make_fold_score(0, 8, 2, 1.0)
    record["train_size"] = "8"
    with pytest.raises(ValueError, match="'train_size' must be int"):
        validate_fold_score_schema(record)


def test_aggregate_is_unweighted_by_validation_size():
    scores = [
        make_fold_score(0, 6, 4, 1.0),
        make_fold_score(1, 7, 3, 0.0),
        make_fold_score(2, 7, 3, 0.0),
    ]

    summary = aggregate_fold_scores(scores)

    assert summary["n_folds"] == 3
    assert summary["score_mean"] == pytest.approx(1.0 / 3.0)
    assert summary["score_min"] == 0.0
    assert summary["score_max"] == 1.0
    assert summary["score_std"] == pytest.approx(np.std([1.0, 0.0, 0.0]))


def test_aggregate_nan_propagates(caplog):
    scores = [make_fold_score(0, 8, 2, 1.0), make_fold_score(1, 8, 2, float("nan"))]

    with caplog.at_level(logging.WARNING, logger="src.kfold_cv.scores"):
        summary = aggregate_fold_scores(scores)

    assert np.isnan(summary["score_mean"])
    assert "1 fold score(s) are NaN" in caplog.text


def test_aggregate_empty():
    with pytest.raises(ValueError, match="Cannot aggregate empty"):
        aggregate_fold_scores([])
