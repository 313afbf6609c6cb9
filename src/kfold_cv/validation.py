"""Dataset consistency checks run once before any fold is trained.

Samples lie along axis 0 of every buffer. Features must be 2-D
``(n_samples, n_features)``; labels are a vector ``(n_samples,)`` or a label
matrix ``(n_samples, n_outputs)``; weights are a vector ``(n_samples,)``.
"""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

import numpy as np
import pandas as pd


class DatasetConsistencyError(ValueError):
    """Raised when features, labels, weights or dataset info disagree in shape."""


@dataclass(frozen=True)
class DatasetInfo:
    """Per-dimension metadata of a feature matrix.

    Attributes:
        dimensionality: Number of feature columns
        categorical_dimensions: Column positions holding categorical values
        mappings: Optional per-dimension mapping of raw category -> code
    """

    dimensionality: int
    categorical_dimensions: frozenset[int] = frozenset()
    mappings: Mapping[int, Mapping[Any, int]] = field(default_factory=dict, hash=False)

    def __post_init__(self):
        object.__setattr__(self, "categorical_dimensions", frozenset(self.categorical_dimensions))
        object.__setattr__(self, "mappings", MappingProxyType(dict(self.mappings)))
        if self.dimensionality < 0:
            raise ValueError("dimensionality must be >= 0")
        out_of_range = [d for d in self.categorical_dimensions if not 0 <= d < self.dimensionality]
        if out_of_range:
            raise ValueError(
                f"Categorical dimensions {sorted(out_of_range)} out of range "
                f"for dimensionality {self.dimensionality}"
            )

    def is_categorical(self, dimension: int) -> bool:
        return dimension in self.categorical_dimensions

    def num_mappings(self, dimension: int) -> int:
        """Number of distinct categories recorded for a dimension (0 if numeric)."""
        return len(self.mappings.get(dimension, {}))


def as_array(data: Any) -> np.ndarray:
    """Convert pandas objects and array-likes to a NumPy array."""
    if isinstance(data, (pd.DataFrame, pd.Series)):
        return data.to_numpy()
    return np.asarray(data)


def assert_data_consistency(xs: np.ndarray, ys: np.ndarray) -> None:
    """Check that features and labels describe the same samples.

    Raises:
        DatasetConsistencyError: If xs is not 2-D, ys is not 1-D/2-D, or the
            sample counts differ
    """
    if xs.ndim != 2:
        raise DatasetConsistencyError(
            f"Features must be 2-D (n_samples, n_features), got shape {xs.shape}"
        )
    if ys.ndim not in (1, 2):
        raise DatasetConsistencyError(
            f"Labels must be 1-D or 2-D with samples along axis 0, got shape {ys.shape}"
        )
    if xs.shape[0] != ys.shape[0]:
        raise DatasetConsistencyError(
            f"Number of samples in features ({xs.shape[0]}) does not match "
            f"number of labels ({ys.shape[0]})"
        )


def assert_weights_consistency(xs: np.ndarray, weights: np.ndarray) -> None:
    """Check that there is exactly one weight per sample.

    Raises:
        DatasetConsistencyError: If weights are not 1-D or their count differs
            from the number of samples
    """
    if weights.ndim != 1:
        raise DatasetConsistencyError(
            f"Weights must be one-dimensional, got shape {weights.shape}"
        )
    if weights.shape[0] != xs.shape[0]:
        raise DatasetConsistencyError(
            f"Number of samples in features ({xs.shape[0]}) does not match "
            f"number of weights ({weights.shape[0]})"
        )


def assert_dataset_info_consistency(xs: np.ndarray, dataset_info: DatasetInfo) -> None:
    """Check that dataset info describes as many dimensions as xs has features."""
    if dataset_info.dimensionality != xs.shape[1]:
        raise DatasetConsistencyError(
            f"Dataset info describes {dataset_info.dimensionality} dimensions but "
            f"features have {xs.shape[1]} columns"
        )
