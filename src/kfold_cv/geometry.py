"""Fold geometry for contiguous k-fold cross-validation.

All k folds are derived from three numbers computed once from the sample
count ``n`` and the fold count ``k``:

- ``bin_size = n // k``: validation size of every fold except fold 0
- ``training_subset_size = bin_size * (k - 1)``: training size of fold 0
- ``last_bin_size = n - (k - 1) * bin_size``: validation size of fold 0,
  which absorbs the ``n % k`` leftover samples
"""

import logging
from dataclasses import dataclass

logger = logging.getLogger(__name__)

MIN_FOLDS = 2


@dataclass(frozen=True)
class FoldGeometry:
    """Sizes shared by every buffer staged for the same dataset."""

    n_samples: int
    k: int
    bin_size: int
    training_subset_size: int
    last_bin_size: int

    @property
    def duplicated_size(self) -> int:
        """Number of leading samples appended again at the end of a staged buffer."""
        if self.k == 2:
            return 0
        return self.training_subset_size - self.bin_size

    @property
    def staged_size(self) -> int:
        """Length (along the sample axis) of a staged buffer."""
        return self.n_samples + self.duplicated_size


def compute_fold_geometry(n_samples: int, k: int) -> FoldGeometry:
    """Compute the fold geometry for ``n_samples`` samples split into ``k`` folds.

    Args:
        n_samples: Number of samples in the dataset
        k: Number of folds

    Returns:
        FoldGeometry with bin_size, training_subset_size and last_bin_size

    Raises:
        ValueError: If k < 2 or n_samples < k
    """
    if k < MIN_FOLDS:
        raise ValueError(f"k should not be less than {MIN_FOLDS} (got k={k})")
    if n_samples < k:
        raise ValueError(
            f"Cannot split {n_samples} samples into {k} folds; "
            f"need at least one sample per fold"
        )

    bin_size = n_samples // k
    training_subset_size = bin_size * (k - 1)
    last_bin_size = n_samples - (k - 1) * bin_size

    geometry = FoldGeometry(
        n_samples=n_samples,
        k=k,
        bin_size=bin_size,
        training_subset_size=training_subset_size,
        last_bin_size=last_bin_size,
    )
    logger.debug(
        "Computed fold geometry: n_samples=%s, k=%s, bin_size=%s, "
        "training_subset_size=%s, last_bin_size=%s",
        n_samples,
        k,
        bin_size,
        training_subset_size,
        last_bin_size,
    )
    return geometry
