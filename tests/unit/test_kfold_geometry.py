"""Unit tests for fold geometry.

Tests:
- Scenario sizes for (10, 5), (10, 3), (10, 2)
- Geometry identity over a grid of (n, k)
- k < 2 and n < k rejected
- Duplicated prefix and staged size
"""

import pytest

from src.kfold_cv.geometry import FoldGeometry, compute_fold_geometry


def test_geometry_even_split():
    """n=10, k=5: every bin has 2 samples."""
    g = compute_fold_geometry(10, 5)
    assert g.bin_size == 2
    assert g.training_subset_size == 8
    assert g.last_bin_size == 2


def test_geometry_remainder_absorbed_by_last_bin():
    """n=10, k=3: the 10 % 3 leftover sample lands in the last bin."""
    g = compute_fold_geometry(10, 3)
    assert g.bin_size == 3
    assert g.training_subset_size == 6
    assert g.last_bin_size == 4


def test_geometry_two_folds_has_no_duplication():
    g = compute_fold_geometry(10, 2)
    assert g.bin_size == 5
    assert g.last_bin_size == 5
    assert g.duplicated_size == 0
    assert g.staged_size == 10


@pytest.mark.parametrize(
    "n,k", [(n, k) for n in (2, 3, 7, 10, 11, 64, 101) for k in (2, 3, 4, 5, 7) if n >= k]
)
def test_geometry_identity(n, k):
    """bin_size*(k-1) + last_bin_size == n and last_bin_size is in range."""
    g = compute_fold_geometry(n, k)
    assert g.bin_size * (k - 1) + g.last_bin_size == n
    assert 1 <= g.last_bin_size <= n - g.bin_size * (k - 2)
    assert g.last_bin_size - g.bin_size == n % k


def test_geometry_staged_size():
    """Duplicated prefix is training_subset_size - bin_size for k > 2."""
    g = compute_fold_geometry(10, 5)
    assert g.duplicated_size == 6
    assert g.staged_size == 16
    assert g.duplicated_size < g.n_samples


@pytest.mark.parametrize("k", [0, 1, -3])
def test_geometry_rejects_too_few_folds(k):
    with pytest.raises(ValueError, match="k should not be less than 2"):
        compute_fold_geometry(10, k)


def test_geometry_rejects_more_folds_than_samples():
    with pytest.raises(ValueError, match="Cannot split 3 samples into 4 folds"):
        compute_fold_geometry(3, 4)


def test_geometry_is_frozen():
    g = compute_fold_geometry(10, 5)
    assert isinstance(g, FoldGeometry)
    with pytest.raises(AttributeError):
        g.bin_size = 3  # type: ignore[misc]
