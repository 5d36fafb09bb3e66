"""PCM sample sources and sinks: WAV files and AU (Sun/NeXT) streams."""

from __future__ import annotations

import io
import struct
import sys
import wave
from abc import ABC, abstractmethod
from typing import BinaryIO, Optional

import numpy as np

from .pcm_engine import PcmBuffer

AU_MAGIC = b".snd"
AU_HEADER_SZ = 24
AU_ENCODING_PCM16 = 3
AU_UNKNOWN_SIZE = 0xFFFFFFFF
STREAM_SAMPLE_RATE = 44100

_AU_HEADER = struct.Struct(">4sIIIII")
_INT16_SCALE = 32768.0
_INT16_MAX = 32767
_INT16_MIN = -32768
_UNSUPPORTED_OUTPUT = {"aiff", "aif", "pcm", "raw"}


def _check_channels(buf: PcmBuffer, channels: int) -> None:
    if buf.channels() != channels:
        raise ValueError(
            f"buffer has {buf.channels()} channels, stream has {channels}")


def _convert(data: bytes, buf: PcmBuffer, count: int, shift: int,
             channels: int, dtype: str) -> None:
    _check_channels(buf, channels)
    if shift < 0 or shift + count > buf.size():
        raise ValueError("converted samples do not fit in the buffer")
    ints = np.frombuffer(data, dtype=dtype, count=count * channels)
    buf.samples[shift:shift + count] = ints.reshape(count, channels) / _INT16_SCALE


def convert_from_le(data: bytes, buf: PcmBuffer, count: int, shift: int,
                    channels: int) -> None:
    """Store ``count`` frames of little-endian 16-bit PCM at frame ``shift`` of ``buf``."""
    _convert(data, buf, count, shift, channels, "<i2")


def convert_from_be(data: bytes, buf: PcmBuffer, count: int, shift: int,
                    channels: int) -> None:
    """Store ``count`` frames of big-endian 16-bit PCM at frame ``shift`` of ``buf``."""
    _convert(data, buf, count, shift, channels, ">i2")


def _to_int16(samples: np.ndarray) -> np.ndarray:
    scaled = np.rint(np.asarray(samples, dtype=np.float64) * _INT16_MAX)
    return np.clip(scaled, _INT16_MIN, _INT16_MAX).astype(np.int16)


def _decode_pcm(raw: bytes, width: int, channels: int) -> np.ndarray:
    if width == 1:
        values = np.frombuffer(raw, dtype=np.uint8).astype(np.float64) - 128.0
        scale = 128.0
    elif width == 2:
        values = np.frombuffer(raw, dtype="<i2").astype(np.float64)
        scale = _INT16_SCALE
    elif width == 3:
        triples = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
        ints = triples[:, 0] | (triples[:, 1] << 8) | (triples[:, 2] << 16)
        values = np.where(ints & 0x800000, ints - 0x1000000, ints).astype(np.float64)
        scale = float(1 << 23)
    elif width == 4:
        values = np.frombuffer(raw, dtype="<i4").astype(np.float64)
        scale = float(1 << 31)
    else:
        raise ValueError(f"unsupported sample width: {width} bytes")
    return (values / scale).reshape(-1, channels)


def _read_exact(stream: BinaryIO, n: int) -> bytes:
    chunks = []
    remaining = n
    while remaining > 0:
        chunk = stream.read(remaining)
        if not chunk:
            break
        chunks.append(chunk)
        remaining -= len(chunk)
    return b"".join(chunks)


class PcmProvider(ABC):
    """A PCM source or sink with fixed channel count and sample rate.

    ``channels``, ``sample_rate`` and ``total_samples`` are plain attributes.
    """

    channels: int
    sample_rate: int
    total_samples: int

    @abstractmethod
    def read(self, buf: PcmBuffer, size: int) -> int:
        """Fill up to ``size`` frames of ``buf``; return the number of frames read."""

    @abstractmethod
    def write(self, buf: PcmBuffer, size: int) -> int:
        """Write the first ``size`` frames of ``buf``; return the number written."""

    @abstractmethod
    def close(self) -> None:
        """Release the underlying file or stream."""


class WavFileProvider(PcmProvider):
    """Reads PCM WAV files of any integer width; writes 16-bit PCM WAV files.

    Opened for reading when ``channels`` is None, for writing otherwise.
    """

    def __init__(self, path, channels: Optional[int] = None,
                 sample_rate: Optional[int] = None):
        self._reader = None
        self._writer = None
        if channels is None:
            try:
                reader = wave.open(str(path), "rb")
            except (wave.Error, EOFError) as exc:
                raise ValueError(f"unsupported WAV file {path}: {exc}") from exc
            self._reader = reader
            self.channels = reader.getnchannels()
            self.sample_rate = reader.getframerate()
            self.total_samples = reader.getnframes()
            self._width = reader.getsampwidth()
        else:
            if channels <= 0:
                raise ValueError("number of channels must be positive")
            if sample_rate is None or sample_rate <= 0:
                raise ValueError("sample rate must be positive")
            writer = wave.open(str(path), "wb")
            writer.setnchannels(channels)
            writer.setsampwidth(2)
            writer.setframerate(sample_rate)
            self._writer = writer
            self.channels = channels
            self.sample_rate = sample_rate
            self.total_samples = 0
            self._width = 2

    def read(self, buf: PcmBuffer, size: int) -> int:
        if self._reader is None:
            raise io.UnsupportedOperation("WAV provider is not open for reading")
        _check_channels(buf, self.channels)
        frames = _decode_pcm(self._reader.readframes(size), self._width, self.channels)
        count = len(frames)
        buf.samples[:count] = frames
        return count

    def write(self, buf: PcmBuffer, size: int) -> int:
        if self._writer is None:
            raise io.UnsupportedOperation("WAV provider is not open for writing")
        _check_channels(buf, self.channels)
        frames = buf.samples[:size]
        self._writer.writeframes(_to_int16(frames).astype("<i2").tobytes())
        self.total_samples += len(frames)
        return len(frames)

    def close(self) -> None:
        for handle in (self._reader, self._writer):
            if handle is not None:
                handle.close()
        self._reader = None
        self._writer = None


class AuStreamProvider(PcmProvider):
    """16-bit big-endian PCM in an AU (.snd) stream.

    Opened for reading when ``channels`` is None; reading accepts only
    44100 Hz streams with one or two channels.
    """

    def __init__(self, stream: BinaryIO, channels: Optional[int] = None,
                 sample_rate: int = STREAM_SAMPLE_RATE, *, close_stream: bool = False):
        self._stream = stream
        self._close_stream = close_stream
        self._reading = channels is None
        self._finished = False
        self._written = 0
        self._header_pos: Optional[int] = None
        if self._reading:
            self._parse_header()
        else:
            if channels <= 0:
                raise ValueError("number of channels must be positive")
            if sample_rate <= 0:
                raise ValueError("sample rate must be positive")
            self.channels = channels
            self.sample_rate = sample_rate
            self.total_samples = 0
            if stream.seekable():
                self._header_pos = stream.tell()
            stream.write(_AU_HEADER.pack(AU_MAGIC, AU_HEADER_SZ, AU_UNKNOWN_SIZE,
                                         AU_ENCODING_PCM16, sample_rate, channels))

    def _parse_header(self) -> None:
        header = _read_exact(self._stream, AU_HEADER_SZ)
        if len(header) != AU_HEADER_SZ:
            raise ValueError("Not enough data to determinate format.")
        magic, offset, data_size, encoding, rate, channels = _AU_HEADER.unpack(header)
        if magic != AU_MAGIC:
            raise ValueError("Input stream must have AU(SND) format")
        if encoding != AU_ENCODING_PCM16:
            raise ValueError("Expected PCM 16 bit format")
        if rate != STREAM_SAMPLE_RATE:
            raise ValueError("Expected 44100Hz sample rate")
        if channels not in (1, 2):
            raise ValueError("Expected 1 or 2 channels")
        if offset < AU_HEADER_SZ:
            raise ValueError("incorrect data offset")
        to_skip = offset - AU_HEADER_SZ
        if len(_read_exact(self._stream, to_skip)) != to_skip:
            raise ValueError("Unable to seek to data position")
        self.channels = channels
        self.sample_rate = rate
        if data_size == AU_UNKNOWN_SIZE:
            self.total_samples = sys.maxsize
        else:
            self.total_samples = data_size // (2 * channels)

    def read(self, buf: PcmBuffer, size: int) -> int:
        if not self._reading:
            raise io.UnsupportedOperation("AU provider is not open for reading")
        if self._finished:
            return 0
        wanted = size * 2 * self.channels
        data = _read_exact(self._stream, wanted)
        if len(data) < wanted:
            self._finished = True
        count = len(data) // (2 * self.channels)
        convert_from_be(data, buf, count, 0, self.channels)
        return count

    def write(self, buf: PcmBuffer, size: int) -> int:
        if self._reading:
            raise io.UnsupportedOperation("AU provider is not open for writing")
        _check_channels(buf, self.channels)
        frames = buf.samples[:size]
        payload = _to_int16(frames).astype(">i2").tobytes()
        self._stream.write(payload)
        self._written += len(payload)
        self.total_samples += len(frames)
        return len(frames)

    def close(self) -> None:
        stream = self._stream
        if stream is None:
            return
        self._stream = None
        try:
            if (not self._reading and self._header_pos is not None
                    and self._written <= AU_UNKNOWN_SIZE - 1):
                end = stream.tell()
                stream.seek(self._header_pos + 8)
                stream.write(struct.pack(">I", self._written))
                stream.seek(end)
            if not self._reading:
                stream.flush()
        finally:
            if self._close_stream:
                stream.close()


def _extension(path: str) -> str:
    dot = path.rfind(".")
    if dot == -1 or dot == len(path) - 1:
        return ""
    return path[dot + 1:].lower()


def _open_au_file(path: str, mode: str, *args) -> AuStreamProvider:
    f = open(path, mode)
    try:
        return AuStreamProvider(f, *args, close_stream=True)
    except BaseException:
        f.close()
        raise


def open_read_provider(path) -> PcmProvider:
    """Open a PCM source: "-" is an AU stream on stdin, ".au" an AU file, else WAV."""
    path = str(path)
    if path == "-":
        return AuStreamProvider(sys.stdin.buffer)
    if _extension(path) == "au":
        return _open_au_file(path, "rb")
    return WavFileProvider(path)


def open_write_provider(path, channels: int, sample_rate: int) -> PcmProvider:
    """Open a 16-bit PCM sink: "-" writes AU to stdout, ".au" an AU file, else WAV."""
    path = str(path)
    if path == "-":
        return AuStreamProvider(sys.stdout.buffer, channels, sample_rate)
    ext = _extension(path)
    if ext == "au":
        return _open_au_file(path, "wb", channels, sample_rate)
    if ext in _UNSUPPORTED_OUTPUT:
        raise ValueError(f"unsupported output format: {ext}")
    return WavFileProvider(path, channels, sample_rate)