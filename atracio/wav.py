"""PCM file access for the processing engine."""

from __future__ import annotations

import sys

from .pcm_engine import PcmBuffer, Reader, WrongReadBuffer, Writer
from .pcm_io import PcmProvider, open_read_provider, open_write_provider


class FileAlreadyExists(Exception):
    """The output file already exists."""


class NoDataToRead(Exception):
    """The PCM source is exhausted."""

    def __init__(self, message: str = "no data to read"):
        super().__init__(message)


class Wav:
    """A PCM file opened for reading (constructor) or writing (``open_write``)."""

    def __init__(self, path):
        self._provider: PcmProvider = open_read_provider(path)

    @classmethod
    def open_write(cls, path, channels: int, sample_rate: int) -> "Wav":
        """Create a 16-bit PCM file for writing."""
        wav = cls.__new__(cls)
        wav._provider = open_write_provider(path, channels, sample_rate)
        return wav

    def channel_num(self) -> int:
        return self._provider.channels

    def sample_rate(self) -> int:
        return self._provider.sample_rate

    def total_samples(self) -> int:
        return self._provider.total_samples

    def pcm_reader(self) -> Reader:
        """Return a reader that fills a buffer, zero-padding a short final block."""
        provider = self._provider

        def read(buf: PcmBuffer, size: int) -> None:
            if buf.channels() != provider.channels:
                raise WrongReadBuffer()
            got = provider.read(buf, size)
            if got != size:
                if not got:
                    raise NoDataToRead()
                buf.zero(got, size - got)

        return read

    def pcm_writer(self) -> Writer:
        """Return a writer that appends the first ``size`` frames of a buffer."""
        provider = self._provider

        def write(buf: PcmBuffer, size: int) -> None:
            if buf.channels() != provider.channels:
                raise WrongReadBuffer()
            if provider.write(buf, size) != size:
                print("can't write block", file=sys.stderr)

        return write

    def close(self) -> None:
        self._provider.close()