"""Transient detection on a high-pass filtered signal and simple gain analysis."""

from __future__ import annotations

import numpy as np

# Half of a symmetric high-pass FIR; the centre tap is 1.
_FIR_COEFS = np.array([
    -8.65163e-18, -0.00851586, -6.74764e-18, 0.0209036,
    -3.36639e-17, -0.0438162, -1.54175e-17, 0.0931738,
    -5.52212e-17, -0.313819,
]) * 2.0

_PREV_BUF_SZ = 20
_FIR_LEN = 21
_RISE_THRESHOLD_DB = 16.0
_FALL_THRESHOLD_DB = 20.0


def _rms(values: np.ndarray, n: int) -> float:
    return float(np.sqrt(np.sum(np.square(values)) / n))


def _peak(values: np.ndarray) -> float:
    return float(np.max(np.abs(values), initial=0.0))


class TransientDetector:
    """Detects sharp energy changes between short blocks of a long block."""

    def __init__(self, short_sz: int, block_sz: int):
        if short_sz <= 0 or block_sz < short_sz:
            raise ValueError("short block size must be positive and fit in the block")
        if block_sz < _PREV_BUF_SZ:
            raise ValueError(f"block size must be at least {_PREV_BUF_SZ}")
        self.short_sz = short_sz
        self.block_sz = block_sz
        self.n_short_blocks = block_sz // short_sz
        self._hpf_buffer = np.zeros(block_sz + _FIR_LEN)
        self._last_energy = 0.0
        self._last_transient_pos = 0

        positions = np.arange(block_sz)[:, None]
        taps = np.arange(len(_FIR_COEFS))[None, :]
        self._low_idx = positions + taps
        self._high_idx = positions + _FIR_LEN - taps

    def _hp_filter(self, samples: np.ndarray) -> np.ndarray:
        buf = self._hpf_buffer
        buf[_PREV_BUF_SZ:_PREV_BUF_SZ + self.block_sz] = samples
        centre = buf[_FIR_LEN // 2:_FIR_LEN // 2 + self.block_sz]
        taps = (buf[self._low_idx] + buf[self._high_idx]) @ _FIR_COEFS
        out = (centre + taps) / 2
        buf[:_PREV_BUF_SZ] = samples[self.block_sz - _PREV_BUF_SZ:]
        return out

    def detect(self, buf) -> bool:
        """Return True if a transient occurs in this block of ``block_sz`` samples."""
        samples = np.asarray(buf, dtype=np.float64)
        if samples.shape != (self.block_sz,):
            raise ValueError(f"expected {self.block_sz} samples")
        filtered = self._hp_filter(samples)

        blocks = filtered[:self.n_short_blocks * self.short_sz].reshape(
            self.n_short_blocks, self.short_sz)
        with np.errstate(divide="ignore"):
            energies = 19.0 * np.log10(np.sqrt(np.mean(np.square(blocks), axis=1)))

        levels = [self._last_energy, *energies.tolist()]
        transient = False
        for pos, (prev, cur) in enumerate(zip(levels, levels[1:]), start=1):
            if cur - prev > _RISE_THRESHOLD_DB or prev - cur > _FALL_THRESHOLD_DB:
                transient = True
                self._last_transient_pos = pos
        self._last_energy = levels[-1]
        return transient

    def last_transient_pos(self) -> int:
        """Index (1-based) of the short block where the last transient was found."""
        return self._last_transient_pos


def analyze_gain(samples, max_points: int, use_rms: bool) -> list[float]:
    """Split ``samples`` into ``max_points`` steps and return the RMS or peak of each."""
    values = np.asarray(samples, dtype=np.float64)
    length = len(values)
    if max_points <= 0:
        raise ValueError("max_points must be positive")
    step = length // max_points
    if step == 0:
        raise ValueError("max_points must not exceed the number of samples")
    result = []
    for pos in range(0, length, step):
        chunk = values[pos:pos + step]
        result.append(_rms(chunk, step) if use_rms else _peak(chunk))
    return result