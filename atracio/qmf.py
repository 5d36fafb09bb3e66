"""Two-band quadrature mirror filter bank with a 48-tap prototype."""

from __future__ import annotations

import numpy as np

TAP_HALF = np.array([
    -0.00001461907, -0.00009205479, -0.000056157569, 0.00030117269,
    0.0002422519, -0.00085293897, -0.0005205574, 0.0020340169,
    0.00078333891, -0.0042153862, -0.00075614988, 0.0078402944,
    -0.000061169922, -0.01344162, 0.0024626821, 0.021736089,
    -0.007801671, -0.034090221, 0.01880949, 0.054326009,
    -0.043596379, -0.099384367, 0.13207909, 0.46424159,
], dtype=np.float64)

_TAPS = 48
_HISTORY = 46


def _make_window() -> np.ndarray:
    half = TAP_HALF * 2.0
    return np.concatenate([half, half[::-1]])


class Qmf:
    """Splits ``n_in`` samples into two half-rate bands and merges them back.

    Analysis and synthesis each keep their own history between calls.
    """

    def __init__(self, n_in: int):
        if n_in <= 0 or n_in % 2:
            raise ValueError("block length must be a positive even number")
        self.n_in = n_in
        self.window = _make_window()
        self._pcm = np.zeros(n_in + _HISTORY)
        self._delay = np.zeros(_HISTORY)

        half = np.arange(n_in // 2)
        taps = np.arange(_TAPS)
        self._analysis_idx = (_TAPS - 1) + 2 * half[:, None] - taps[None, :]
        self._synthesis_idx = 2 * half[:, None] + taps[None, :]

    def analysis(self, pcm) -> tuple[np.ndarray, np.ndarray]:
        """Filter one block of ``n_in`` samples; return (lower, upper) bands."""
        pcm = np.asarray(pcm, dtype=np.float64)
        if pcm.shape != (self.n_in,):
            raise ValueError(f"expected {self.n_in} input samples")
        self._pcm[:_HISTORY] = self._pcm[self.n_in:self.n_in + _HISTORY]
        self._pcm[_HISTORY:] = pcm

        products = self._pcm[self._analysis_idx] * self.window
        even = products[:, 0::2].sum(axis=1)
        odd = products[:, 1::2].sum(axis=1)
        return even + odd, even - odd

    def synthesis(self, lower, upper) -> np.ndarray:
        """Merge two bands of ``n_in // 2`` samples into ``n_in`` samples."""
        lower = np.asarray(lower, dtype=np.float64)
        upper = np.asarray(upper, dtype=np.float64)
        half = self.n_in // 2
        if lower.shape != (half,) or upper.shape != (half,):
            raise ValueError(f"expected {half} samples in each band")

        merge = np.empty(self.n_in + _HISTORY)
        merge[:_HISTORY] = self._delay
        merge[_HISTORY::2] = lower + upper
        merge[_HISTORY + 1::2] = lower - upper

        windows = merge[self._synthesis_idx]
        out = np.empty(self.n_in)
        out[0::2] = windows[:, 1::2] @ self.window[1::2]
        out[1::2] = windows[:, 0::2] @ self.window[0::2]

        self._delay = merge[self.n_in:self.n_in + _HISTORY].copy()
        return out