"""Block-wise PCM processing driven by an optional reader and writer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional

import numpy as np


class PcmBufferTooSmall(Exception):
    """The processing step is larger than the PCM buffer."""

    def __init__(self, message: str = "PCM buffer too small"):
        super().__init__(message)


class WrongReadBuffer(Exception):
    """The buffer layout does not match the PCM source."""

    def __init__(self, message: str = "PCM buffer too small"):
        super().__init__(message)


class EndOfRead(Exception):
    """The PCM reader has no more data."""

    def __init__(self, message: str = "End of reader"):
        super().__init__(message)


class PcmBuffer:
    """Interleaved float PCM storage: ``samples`` has shape (frames, channels)."""

    def __init__(self, size: int, channels: int):
        if size < 0:
            raise ValueError("buffer size must not be negative")
        if channels <= 0:
            raise ValueError("number of channels must be positive")
        self.samples = np.zeros((size, channels), dtype=np.float32)

    def size(self) -> int:
        """Number of frames (samples per channel)."""
        return self.samples.shape[0]

    def frame(self, pos: int) -> np.ndarray:
        """Return a writable view of all channels at frame ``pos``."""
        if not 0 <= pos < self.size():
            raise IndexError(f"attempt to access out of buffer pos: {pos}")
        return self.samples[pos]

    def channels(self) -> int:
        return self.samples.shape[1]

    def zero(self, pos: int, length: int) -> None:
        """Clear ``length`` frames starting at ``pos``."""
        if pos < 0 or length < 0 or pos + length > self.size():
            raise IndexError("zeroed range exceeds the buffer")
        self.samples[pos:pos + length] = 0.0


@dataclass(frozen=True)
class ProcessMeta:
    channels: int


Reader = Callable[[PcmBuffer, int], None]
Writer = Callable[[PcmBuffer, int], None]
ProcessFunction = Callable[[np.ndarray, ProcessMeta], None]


class PcmEngine:
    """Fills a buffer from a reader, runs a function per step and hands it to a writer."""

    def __init__(self, buf_size: int, channels: int,
                 writer: Optional[Writer] = None,
                 reader: Optional[Reader] = None):
        self.buffer = PcmBuffer(buf_size, channels)
        self._writer = writer
        self._reader = reader
        self.processed = 0

    def apply_process(self, step: int, process: ProcessFunction) -> int:
        """Process one buffer in chunks of ``step`` frames; return total frames processed.

        ``process`` receives a writable (step, channels) view and the metadata.
        """
        size = self.buffer.size()
        if step > size:
            raise PcmBufferTooSmall()
        if step <= 0 or size % step:
            raise ValueError("step must evenly divide the buffer size")

        if self._reader is not None:
            self._reader(self.buffer, size)

        meta = ProcessMeta(self.buffer.channels())
        for start in range(0, size, step):
            process(self.buffer.samples[start:start + step], meta)

        if self._writer is not None:
            self._writer(self.buffer, size)

        self.processed += size
        return self.processed


class Processor(ABC):
    """Something that provides a per-block processing function for the engine."""

    @abstractmethod
    def process_function(self) -> ProcessFunction:
        """Return the function the engine calls for each block."""