"""
Bounded history of points or states.
"""

from __future__ import annotations
from collections import deque
from typing import Iterator, Optional, Sequence
import numpy as np


class Trail:
    """
    Ring buffer of fixed-dimension vectors; oldest entries are evicted first.

    Args:
        capacity: Maximum number of stored entries
        dim: Length of each stored vector
    """

    def __init__(self, capacity: int, dim: int = 3):
        if capacity < 1:
            raise ValueError("Trail capacity must be at least 1")
        self.dim = dim
        self._buffer: deque = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._buffer.maxlen

    def __len__(self) -> int:
        return len(self._buffer)

    def __iter__(self) -> Iterator[np.ndarray]:
        return iter(self._buffer)

    def append(self, point: Sequence[float]) -> None:
        point = np.array(point, dtype=np.float64).reshape(-1)
        if point.shape[0] != self.dim:
            raise ValueError(f"Expected a point of dimension {self.dim}, got {point.shape[0]}")
        self._buffer.append(point)

    def clear(self) -> None:
        self._buffer.clear()

    def last(self) -> Optional[np.ndarray]:
        return self._buffer[-1] if self._buffer else None

    def set_capacity(self, capacity: int) -> None:
        """Resize, keeping the newest entries."""
        if capacity < 1:
            raise ValueError("Trail capacity must be at least 1")
        if capacity == self.capacity:
            return
        self._buffer = deque(self._buffer, maxlen=capacity)

    def to_array(self) -> np.ndarray:
        """Stored entries as an (n, dim) array, oldest first."""
        if not self._buffer:
            return np.zeros((0, self.dim), dtype=np.float64)
        return np.stack(self._buffer)
