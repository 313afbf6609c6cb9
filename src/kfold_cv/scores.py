"""Per-fold score records and their aggregation.

Each completed fold produces one record
``{fold_id, train_size, validation_size, score}``. Aggregation treats every
fold equally, whatever its validation size, which is the same policy
``KFoldCV.evaluate`` uses for its returned mean.
"""

import logging
from typing import Any

import numpy as np

logger = logging.getLogger(__name__)

FOLD_SCORE_SCHEMA_KEYS = frozenset({"fold_id", "train_size", "validation_size", "score"})


def make_fold_score(fold_id: int, train_size: int, validation_size: int, score: float) -> dict[str, Any]:
    return {
        "fold_id": int(fold_id),
        "train_size": int(train_size),
        "validation_size": int(validation_size),
        "score": float(score),
    }


def validate_fold_score_schema(fold_score: dict[str, Any]) -> None:
    """Validate a fold score dict matches the expected schema.

    Raises:
        ValueError: If required keys are missing or types are invalid
    """
    missing_keys = FOLD_SCORE_SCHEMA_KEYS - set(fold_score.keys())
    if missing_keys:
        raise ValueError(
            f"Fold score dict missing required keys: {sorted(missing_keys)}. "
            f"Expected keys: {sorted(FOLD_SCORE_SCHEMA_KEYS)}"
        )

    for key in ("fold_id", "train_size", "validation_size"):
        if not isinstance(fold_score[key], int):
            raise ValueError(f"Fold score '{key}' must be int, got {type(fold_score[key])}")
    if not isinstance(fold_score["score"], (int, float)):
        raise ValueError(f"Fold score 'score' must be numeric, got {type(fold_score['score'])}")


def aggregate_fold_scores(fold_scores: list[dict[str, Any]]) -> dict[str, Any]:
    """Aggregate fold scores with an unweighted mean.

    NaN scores are not skipped: a single NaN fold makes the mean NaN.

    Args:
        fold_scores: List of fold score dicts

    Returns:
        {'n_folds': int, 'score_mean': float, 'score_std': float,
         'score_min': float, 'score_max': float}

    Raises:
        ValueError: If fold_scores is empty or a record violates the schema
    """
    if not fold_scores:
        raise ValueError("Cannot aggregate empty fold_scores list")

    for fold_score in fold_scores:
        validate_fold_score_schema(fold_score)

    scores = np.array([fold_score["score"] for fold_score in fold_scores], dtype=float)
    if np.isnan(scores).any():
        logger.warning(f"{int(np.isnan(scores).sum())} fold score(s) are NaN; aggregate is NaN")

    return {
        "n_folds": len(fold_scores),
        "score_mean": float(np.mean(scores)),
        "score_std": float(np.std(scores)),
        "score_min": float(np.min(scores)),
        "score_max": float(np.max(scores)),
    }
