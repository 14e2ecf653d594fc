import heapq
from typing import Dict, List, Optional, Tuple

import numpy as np

__all__ = ["EventQueue"]


class EventQueue:
    """
    Priority queue of per-component quantization events.

    Events are ordered by their scheduled time; events scheduled for the same time are
    processed in order of their component index. Every component has at most one pending
    event. Rescheduling a component invalidates its previous entry, which is then discarded
    lazily once it reaches the top of the heap.
    """

    def __init__(self):
        self._heap: List[Tuple[float, int, int]] = []
        self._versions: Dict[int, int] = {}
        self._times: Dict[int, float] = {}

    def __len__(self):
        return sum(1 for t in self._times.values() if np.isfinite(t))

    def __contains__(self, index: int):
        return np.isfinite(self._times.get(index, np.inf))

    def schedule(self, index: int, time: float):
        """
        Schedule (or reschedule) the next event of a component. An infinite time
        removes the pending event of the component.
        """
        version = self._versions.get(index, 0) + 1
        self._versions[index] = version
        self._times[index] = time

        if np.isfinite(time):
            heapq.heappush(self._heap, (time, index, version))

    def cancel(self, index: int):
        self.schedule(index, np.inf)

    def _discard_stale(self):
        while self._heap and self._heap[0][2] != self._versions[self._heap[0][1]]:
            heapq.heappop(self._heap)

    def peek(self) -> Optional[Tuple[float, int]]:
        """Return (time, index) of the earliest pending event without removing it."""
        self._discard_stale()
        if not self._heap:
            return None
        time, index, _ = self._heap[0]
        return time, index

    def pop(self) -> Tuple[float, int]:
        """
        Remove and return (time, index) of the earliest pending event.

        Raises:
            IndexError: If no event is pending.
        """
        self._discard_stale()
        if not self._heap:
            raise IndexError("pop from an empty event queue")

        time, index, _ = heapq.heappop(self._heap)
        self._times[index] = np.inf
        # invalidate the popped entry so a reschedule is required
        self._versions[index] += 1
        return time, index
