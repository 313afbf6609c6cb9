"""Staging of input buffers into read-only arenas for zero-copy fold windows.

A staged buffer is the original buffer followed by its first
``training_subset_size - bin_size`` samples a second time. With that single
bounded duplication every fold's training window, even one that logically
wraps past the end of the dataset, is one contiguous slice of the arena.
"""

import logging

import numpy as np

from .geometry import FoldGeometry

logger = logging.getLogger(__name__)


def stage_buffer(buffer: np.ndarray, geometry: FoldGeometry) -> np.ndarray:
    """Build the staged arena for one buffer role (features, labels or weights).

    Samples lie along axis 0; 1-D vectors and 2-D matrices are staged the
    same way, preserving dtype and trailing shape.

    Args:
        buffer: Array with ``geometry.n_samples`` entries along axis 0
        geometry: Fold geometry of the dataset the buffer belongs to

    Returns:
        C-contiguous, read-only array of length ``geometry.staged_size``

    Raises:
        ValueError: If the buffer is 0-dimensional or its length does not
            match the geometry
    """
    array = np.asarray(buffer)
    if array.ndim == 0:
        raise ValueError("Cannot stage a 0-dimensional buffer")
    if array.shape[0] != geometry.n_samples:
        raise ValueError(
            f"Buffer has {array.shape[0]} samples but the fold geometry "
            f"expects {geometry.n_samples}"
        )

    if geometry.duplicated_size == 0:
        staged = np.array(array, order="C", copy=True)
    else:
        staged = np.concatenate([array, array[: geometry.duplicated_size]], axis=0)
        staged = np.ascontiguousarray(staged)

    staged.flags.writeable = False

    logger.debug(
        "Staged buffer with shape %s into arena with shape %s (%s duplicated samples)",
        array.shape,
        staged.shape,
        geometry.duplicated_size,
    )
    return staged
