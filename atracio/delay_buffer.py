"""Per-channel double-length buffers that slide by half their length."""

from __future__ import annotations

import numpy as np


class DelayBuffer:
    """``n`` rows of ``2 * s`` values; the second half moves to the first on shift."""

    def __init__(self, n: int, s: int, dtype=np.float32):
        if n <= 0 or s <= 0:
            raise ValueError("buffer dimensions must be positive")
        self._s = s
        self._buffer = np.zeros((n, 2 * s), dtype=dtype)

    def shift(self, erase: bool = True) -> None:
        """Copy each second half into the first half, optionally clearing the second."""
        s = self._s
        self._buffer[:, :s] = self._buffer[:, s:]
        if erase:
            self._buffer[:, s:] = 0

    def first(self, i: int) -> np.ndarray:
        """Writable view of row ``i`` from its start (the full ``2 * s`` values)."""
        return self._buffer[i]

    def second(self, i: int) -> np.ndarray:
        """Writable view of the second half of row ``i``."""
        return self._buffer[i, self._s:]