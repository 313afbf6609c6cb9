"""Training and validation windows over staged buffers.

A window is an explicit ``(offset, length)`` range along the sample axis of a
staged buffer. Turning a window into data is a basic NumPy slice, so fold
extraction never copies. Views borrow from the staged arena and are only
meant to live for one fold of one run.

Fold ``i`` layout (``b = bin_size``, ``t = training_subset_size``):

- fold 0: train ``[0, t)``, validate ``[t, n)``
- fold i > 0: validate ``[b*(i-1), b*i)``, train ``[b*i, b*i + n - b)``,
  where staged positions ``>= n`` are the duplicated prefix
"""

import logging
from collections.abc import Generator
from dataclasses import dataclass

import numpy as np

from .geometry import FoldGeometry, compute_fold_geometry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Window:
    """Contiguous range of a staged buffer along the sample axis."""

    offset: int
    length: int

    @property
    def stop(self) -> int:
        return self.offset + self.length

    def view(self, staged: np.ndarray) -> np.ndarray:
        """Return the window as a view into ``staged`` (no copy).

        Raises:
            ValueError: If the window does not fit inside ``staged``
        """
        if self.offset < 0 or self.stop > staged.shape[0]:
            raise ValueError(
                f"Window [{self.offset}, {self.stop}) exceeds staged buffer "
                f"of length {staged.shape[0]}"
            )
        return staged[self.offset : self.stop]

    def sample_indices(self, n_samples: int) -> np.ndarray:
        """Map staged positions covered by this window to original sample indices."""
        return np.arange(self.offset, self.stop) % n_samples


class FoldWindows:
    """Window arithmetic for every fold of one fold geometry.

    Example:
        >>> windows = FoldWindows(compute_fold_geometry(10, 3))
        >>> windows.validation_window(0)
        Window(offset=6, length=4)
        >>> windows.training_window(2)
        Window(offset=6, length=7)
    """

    def __init__(self, geometry: FoldGeometry):
        self.geometry = geometry

    def _check_fold(self, fold_idx: int) -> None:
        if not 0 <= fold_idx < self.geometry.k:
            raise IndexError(
                f"Fold index {fold_idx} out of range for k={self.geometry.k}"
            )

    def validation_window(self, fold_idx: int) -> Window:
        """Validation window of fold ``fold_idx``.

        Fold 0 holds out the block physically after its training span, so it
        starts at ``training_subset_size`` and takes the remainder-absorbing
        ``last_bin_size``; every other fold holds out ``bin_size`` samples
        starting at ``bin_size * (fold_idx - 1)``.
        """
        self._check_fold(fold_idx)
        g = self.geometry
        if fold_idx == 0:
            return Window(offset=g.training_subset_size, length=g.last_bin_size)
        return Window(offset=g.bin_size * (fold_idx - 1), length=g.bin_size)

    def training_window(self, fold_idx: int) -> Window:
        """Training window of fold ``fold_idx``.

        Always the complement of the validation window: ``training_subset_size``
        samples for fold 0 and ``n - bin_size`` for every other fold. For the
        last fold that is ``last_bin_size + (k - 2) * bin_size``.
        """
        self._check_fold(fold_idx)
        g = self.geometry
        if fold_idx == 0:
            length = g.training_subset_size
        else:
            # training + validation == n_samples in every fold
            length = g.n_samples - g.bin_size
        return Window(offset=g.bin_size * fold_idx, length=length)

    def fold(self, fold_idx: int) -> tuple[Window, Window]:
        """Return ``(training_window, validation_window)`` for a fold."""
        return self.training_window(fold_idx), self.validation_window(fold_idx)

    def training_subset(self, staged: np.ndarray, fold_idx: int) -> np.ndarray:
        return self.training_window(fold_idx).view(staged)

    def validation_subset(self, staged: np.ndarray, fold_idx: int) -> np.ndarray:
        return self.validation_window(fold_idx).view(staged)

    def fold_indices(self, fold_idx: int) -> tuple[np.ndarray, np.ndarray]:
        """Original sample indices ``(train_idx, validation_idx)`` of a fold."""
        n = self.geometry.n_samples
        train, validation = self.fold(fold_idx)
        return train.sample_indices(n), validation.sample_indices(n)


class ContiguousKFold:
    """
    Scikit-learn compatible splitter using the contiguous fold layout.

    Yields the same train/validation partition that ``KFoldCV`` evaluates, as
    integer index arrays, so the assignment can be reused with
    ``sklearn.model_selection.cross_val_score`` and friends. No shuffling is
    performed; shuffle the data beforehand for randomized folds.

    Example:
        >>> cv = ContiguousKFold(n_splits=5)
        >>> for train_idx, test_idx in cv.split(X):
        ...     print(len(train_idx), len(test_idx))
    """

    def __init__(self, n_splits: int = 5):
        if n_splits < 2:
            raise ValueError(f"n_splits should not be less than 2 (got {n_splits})")
        self.n_splits = n_splits

    def split(
        self, X, y=None, groups=None
    ) -> Generator[tuple[np.ndarray, np.ndarray], None, None]:
        """
        Generate train/test index arrays, fold 0 first.

        Args:
            X: Array-like with samples along the first axis
            y: Ignored (for sklearn compatibility)
            groups: Ignored (for sklearn compatibility)

        Yields:
            (train_indices, test_indices) tuples of sorted integer positions

        Raises:
            ValueError: If X has fewer samples than n_splits
        """
        n_samples = len(X)
        windows = FoldWindows(compute_fold_geometry(n_samples, self.n_splits))

        for fold_idx in range(self.n_splits):
            train_idx, test_idx = windows.fold_indices(fold_idx)
            logger.debug(
                f"Fold {fold_idx}: train={len(train_idx)} samples, test={len(test_idx)} samples"
            )
            yield np.sort(train_idx), test_idx

    def get_n_splits(self, X=None, y=None, groups=None) -> int:
        """Return the number of splits (sklearn-compatible)."""
        return self.n_splits
