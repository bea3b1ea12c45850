"""Helpers for working with flat, row-major views of float arrays."""

from __future__ import annotations

import math
from collections.abc import Sequence

import numpy as np


def tensor_std(tensor) -> float:
    """Return the unbiased standard deviation of every element of ``tensor``.

    An array with fewer than two elements gives NaN.
    """
    flat = np.asarray(tensor, dtype=np.float64).ravel()
    n = max(flat.size, 1)
    if n <= 1:
        return math.nan
    diff = flat - flat.mean()
    return math.sqrt(float(diff @ diff) / (n - 1))


def calculate_index(shape: Sequence[int], indices: Sequence[int]) -> int:
    """Return the row-major flat offset of ``indices`` within ``shape``.

    Indices are not checked against the dimensions, so an index one past the
    end of a trailing dimension addresses the start of the next row.
    """
    shape = tuple(shape)
    indices = tuple(indices)
    if len(indices) < len(shape):
        raise ValueError(
            f"expected {len(shape)} indices for shape {shape}, got {len(indices)}"
        )
    index = 0
    stride = 1
    for dim, idx in zip(reversed(shape), reversed(indices[: len(shape)])):
        index += idx * stride
        stride *= dim
    return index


def flat_to_tensor(data, shape: Sequence[int]) -> np.ndarray:
    """Build an array of ``shape`` from flat ``data``."""
    return np.array(data, dtype=np.float64).ravel().reshape(tuple(shape))


class FloatTensorView:
    """A mutable flat copy of an array, addressed by multi-dimensional indices."""

    def __init__(self, tensor) -> None:
        array = np.asarray(tensor, dtype=np.float64)
        self.shape: tuple[int, ...] = array.shape
        self.data: np.ndarray = array.ravel().copy()

    def _offset(self, indices: Sequence[int]) -> int:
        index = calculate_index(self.shape, indices)
        if not 0 <= index < self.data.size:
            raise IndexError(
                f"indices {tuple(indices)} fall outside data of size {self.data.size}"
            )
        return index

    def get(self, indices: Sequence[int]) -> float:
        """Return the element at ``indices``."""
        return float(self.data[self._offset(indices)])

    def set(self, indices: Sequence[int], value: float) -> None:
        """Store ``value`` at ``indices``."""
        self.data[self._offset(indices)] = value

    def get_slice(
        self, start_indices: Sequence[int], end_indices: Sequence[int]
    ) -> np.ndarray:
        """Return the flat run of elements from start to end, both inclusive."""
        start = calculate_index(self.shape, start_indices)
        end = calculate_index(self.shape, end_indices)
        if end < start:
            return np.empty(0, dtype=np.float64)
        if start < 0 or end >= self.data.size:
            raise IndexError(
                f"slice {start}..={end} falls outside data of size {self.data.size}"
            )
        return self.data[start : end + 1].copy()

    def set_slice(
        self, start_indices: Sequence[int], end_indices: Sequence[int], values
    ) -> None:
        """Overwrite the flat run from start to end with ``values``.

        Writing stops at whichever of the run and ``values`` is shorter.
        """
        start = calculate_index(self.shape, start_indices)
        end = calculate_index(self.shape, end_indices)
        flat_values = np.asarray(values, dtype=np.float64).ravel()
        count = max(0, min(end - start + 1, flat_values.size))
        if count == 0:
            return
        last = start + count - 1
        if start < 0 or last >= self.data.size:
            raise IndexError(
                f"slice {start}..={last} falls outside data of size {self.data.size}"
            )
        self.data[start : last + 1] = flat_values[:count]

    def to_tensor(self) -> np.ndarray:
        """Return the data as a new array of the original shape."""
        return flat_to_tensor(self.data, self.shape)