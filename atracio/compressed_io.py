"""Abstract interfaces for containers that hold compressed audio frames."""

from __future__ import annotations

from abc import ABC, abstractmethod


class CompressedIO(ABC):
    """Common part of compressed readers and writers."""

    @abstractmethod
    def name(self) -> str:
        """Return the title stored in the container."""

    @abstractmethod
    def channel_num(self) -> int:
        """Return the number of audio channels."""


class CompressedInput(CompressedIO):
    """A source of compressed frames."""

    @abstractmethod
    def read_frame(self) -> bytes:
        """Return the next compressed frame."""

    @abstractmethod
    def length_in_samples(self) -> int:
        """Return the stream length in PCM samples per channel."""


class CompressedOutput(CompressedIO):
    """A sink for compressed frames."""

    @abstractmethod
    def write_frame(self, data: bytes) -> None:
        """Append one compressed frame."""