"""Gain modulation and demodulation of MDCT overlap buffers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Optional, Sequence

import numpy as np


@dataclass(frozen=True)
class GainPoint:
    """A gain control point: level index and location in units of ``1 << loc_scale``."""

    level: int
    location: int


@dataclass(frozen=True)
class GainParams:
    """Codec tables and sizes that drive gain control."""

    gain_level: tuple
    gain_interpolation: tuple
    exponent_offset: int
    interpolation_pos_shift: int
    loc_scale: int
    loc_sz: int
    mdct_sz: int

    def __post_init__(self):
        object.__setattr__(self, "gain_level", tuple(self.gain_level))
        object.__setattr__(self, "gain_interpolation", tuple(self.gain_interpolation))


Demodulator = Callable[[Sequence[float], Sequence[float]], np.ndarray]
Modulator = Callable[[Sequence[float], Sequence[float]], "tuple[np.ndarray, np.ndarray]"]


def _lookup(table: tuple, index: int, what: str) -> float:
    if not 0 <= index < len(table):
        raise IndexError(f"{what} index {index} out of range")
    return table[index]


class GainProcessor:
    """Builds gain modulators and demodulators from gain control points."""

    def __init__(self, params: GainParams):
        self.params = params

    def gain_inc(self, level_cur: int, level_next: Optional[int] = None) -> float:
        """Per-sample gain step from ``level_cur`` towards ``level_next`` (or unity)."""
        p = self.params
        target = p.exponent_offset if level_next is None else level_next
        return _lookup(p.gain_interpolation,
                       target - level_cur + p.interpolation_pos_shift,
                       "gain interpolation")

    def _level_profile(self, points: Sequence[GainPoint]) -> np.ndarray:
        """Gain level for every position covered by ``points``."""
        p = self.params
        parts = []
        pos = 0
        for idx, point in enumerate(points):
            last_pos = point.location << p.loc_scale
            level = _lookup(p.gain_level, point.level, "gain level")
            next_level = points[idx + 1].level if idx + 1 < len(points) else None
            inc = self.gain_inc(point.level, next_level)
            if last_pos > pos:
                parts.append(np.full(last_pos - pos, level))
                pos = last_pos
            ramp_end = last_pos + p.loc_sz
            if ramp_end > pos:
                parts.append(level * inc ** np.arange(ramp_end - pos))
                pos = ramp_end
        return np.concatenate(parts) if parts else np.zeros(0)

    def demodulate(self, gi_now: Sequence[GainPoint],
                   gi_next: Sequence[GainPoint]) -> Demodulator:
        """Return a function merging ``cur`` and ``prev`` halves into restored output."""
        p = self.params
        gi_now = list(gi_now)
        scale = _lookup(p.gain_level, gi_next[0].level, "gain level") if gi_next else 1.0
        profile = self._level_profile(gi_now)

        def demodulator(cur, prev) -> np.ndarray:
            length = max(p.mdct_sz // 2, len(profile))
            cur_arr = np.asarray(cur, dtype=np.float64)[:length]
            prev_arr = np.asarray(prev, dtype=np.float64)[:length]
            if len(cur_arr) < length or len(prev_arr) < length:
                raise ValueError(f"buffers must hold at least {length} samples")
            out = cur_arr * scale + prev_arr
            out[:len(profile)] *= profile
            return out

        return demodulator

    def modulate(self, gi_cur: Sequence[GainPoint]) -> Optional[Modulator]:
        """Return a function giving modulated copies of (buf_cur, buf_next), or None."""
        p = self.params
        gi_cur = list(gi_cur)
        if not gi_cur:
            return None
        scale = _lookup(p.gain_level, gi_cur[0].level, "gain level")
        profile = self._level_profile(gi_cur)

        def modulator(buf_cur, buf_next):
            cur = np.array(buf_cur, dtype=np.float64)
            nxt = np.array(buf_next, dtype=np.float64)
            cur_len = max(p.mdct_sz // 2, len(profile))
            if len(cur) < cur_len or len(nxt) < len(profile):
                raise ValueError("buffers are too short for the gain points")
            cur[:cur_len] /= scale
            nxt[:len(profile)] /= profile
            return cur, nxt

        return modulator