import numpy as np

from ode_engine.types import StateVariable

__all__ = ["HistoryBuffer"]


class HistoryBuffer:
    """
    Fixed-capacity ring buffer holding the most recent derivative evaluations
    of a multi-step method.

    Storage is allocated once per model dimension; pushing into a full buffer
    overwrites the oldest entry in place.
    """

    def __init__(self, capacity: int):
        if capacity < 1:
            raise ValueError("History buffer capacity must be at least 1.")

        self.capacity = capacity
        self._data = None
        self._start = 0
        self._size = 0

    def __len__(self):
        return self._size

    @property
    def is_full(self) -> bool:
        return self._size == self.capacity

    def clear(self):
        self._start = 0
        self._size = 0

    def push(self, value: StateVariable):
        value = np.asarray(value, dtype=float)

        if self._data is None or self._data.shape[1:] != value.shape:
            self._data = np.zeros((self.capacity,) + value.shape)
            self.clear()

        if self._size < self.capacity:
            self._data[(self._start + self._size) % self.capacity] = value
            self._size += 1
        else:
            # evict the oldest entry
            self._data[self._start] = value
            self._start = (self._start + 1) % self.capacity

    @property
    def newest(self) -> np.ndarray:
        if self._size == 0:
            raise IndexError("History buffer is empty.")
        return self._data[(self._start + self._size - 1) % self.capacity]

    def ordered(self) -> np.ndarray:
        """Buffer contents from oldest to newest, shape (len, *value_shape)."""
        if self._data is None:
            return np.zeros((0,))
        idx = (self._start + np.arange(self._size)) % self.capacity
        return self._data[idx]
