"""Writer for RealMedia files carrying an ATRAC3 ("genr"/"atrc") audio stream."""

from __future__ import annotations

import struct
import sys
from typing import BinaryIO, Optional

from .compressed_io import CompressedOutput

SAMPLE_RATE = 44100
SAMPLES_PER_FRAME = 1024

RMF_HEADER_SZ = 18
PROP_HEADER_SZ = 50
DATA_HEADER_SZ = 18
CODEC_DATA_SZ = 92
PACKET_HEADER_SZ = 12
RA_MIME = b"audio/x-pn-realaudio\0"
RA_DESC = b"Audio Stream\0"
MDPR_HEADER_SZ = 42 + len(RA_MIME) + len(RA_DESC) + CODEC_DATA_SZ

_SCRAMBLE_KEY = struct.pack(">I", 0x537F6103)
_KEYFRAME_FLAG = 0x02


def _u16(value: int) -> int:
    return value & 0xFFFF


def _u32(value: int) -> int:
    return value & 0xFFFFFFFF


def scramble_data(data: bytes) -> bytes:
    """XOR whole 32-bit words of ``data`` with the RealAudio key.

    The result has the length of ``data``; trailing bytes that do not form
    a whole word are zero.
    """
    data = bytes(data)
    words = len(data) // 4
    key = _SCRAMBLE_KEY * words
    body = bytes(a ^ b for a, b in zip(data[:words * 4], key))
    return body + bytes(len(data) - words * 4)


def _rmf_header() -> bytes:
    return struct.pack(">4sIHII", b".RMF", RMF_HEADER_SZ, 0, 0, 4)


def _codec_data(frame_size: int, channels: int, joint_stereo: bool, bitrate: int) -> bytes:
    bytes_per_minute = _u32(bitrate // 8 * 60)
    return struct.pack(
        ">I4sHH4sIHIHIIIIHHHH2xH2xHHHH8s4sIIHHH",
        CODEC_DATA_SZ - 4,
        b".ra\xfd",
        5,
        0,
        b".ra5",
        0x01B53530,
        5,
        0,
        2,
        _u32(frame_size * 3),
        0x51540,
        bytes_per_minute,
        bytes_per_minute,
        1,
        _u16(frame_size * 3),
        _u16(frame_size),
        0,
        SAMPLE_RATE,
        SAMPLE_RATE,
        0,
        16,
        2,
        b"genratrc",
        b"\x01\x07\x00\x00",
        10,
        4,
        _u16(1024 * channels),
        0x88E,
        0x12 if joint_stereo else 0x2,
    )


def _data_header(num_frames: int) -> bytes:
    return struct.pack(">4sIHII", b"DATA", 0xFFFFFFFF, 0, _u32(num_frames), 0)


class RmWriter(CompressedOutput):
    """Writes compressed frames into a RealMedia (ra5) container.

    Frames are grouped in packets of three; the data chunk size is patched
    into the header when the writer is closed.
    """

    def __init__(self, path, title: str, channels: int, num_frames: int,
                 frame_size: int, joint_stereo: bool):
        self._frame_duration = 1000.0 * SAMPLES_PER_FRAME / SAMPLE_RATE  # ms
        self._bitrate = _u32(int(8 * frame_size * SAMPLE_RATE / SAMPLES_PER_FRAME))
        self._timestamp = 0.0
        self._frame_num = 0
        self._file: Optional[BinaryIO] = open(path, "wb")
        try:
            self._file.write(_rmf_header())
            self._file.write(self._prop_header(frame_size, num_frames))
            self._file.write(self._mdpr_header(frame_size, num_frames, channels, joint_stereo))
            self._data_header_pos = self._file.tell()
            self._file.write(_data_header(num_frames))
        except BaseException:
            self._file.close()
            self._file = None
            raise

    def _duration_ms(self, num_frames: int) -> int:
        return _u32(int(num_frames * self._frame_duration))

    def _prop_header(self, frame_size: int, num_frames: int) -> bytes:
        return struct.pack(
            ">4sIHIIIIIIIIIHH",
            b"PROP",
            PROP_HEADER_SZ,
            0,
            self._bitrate,
            self._bitrate,
            _u32(frame_size),
            _u32(frame_size),
            _u32(num_frames),
            self._duration_ms(num_frames),
            0,
            0,
            RMF_HEADER_SZ + PROP_HEADER_SZ + MDPR_HEADER_SZ,
            1,
            1 | 2,
        )

    def _mdpr_header(self, frame_size: int, num_frames: int, channels: int,
                     joint_stereo: bool) -> bytes:
        head = struct.pack(
            f">4sIHHIIIIIIIB{len(RA_DESC)}sB{len(RA_MIME)}s",
            b"MDPR",
            MDPR_HEADER_SZ,
            0,
            0,
            self._bitrate,
            self._bitrate,
            _u32(frame_size),
            _u32(frame_size),
            0,
            0,
            self._duration_ms(num_frames),
            len(RA_DESC),
            RA_DESC,
            len(RA_MIME),
            RA_MIME,
        )
        return head + _codec_data(frame_size, channels, joint_stereo, self._bitrate)

    def _require_open(self) -> BinaryIO:
        if self._file is None:
            raise ValueError("write to a closed RealMedia writer")
        return self._file

    def _write_audio_packet(self, data: bytes) -> None:
        f = self._require_open()
        phase = self._frame_num % 3
        if phase == 0:
            f.write(struct.pack(
                ">HHHIBB",
                0,
                _u16(3 * len(data) + PACKET_HEADER_SZ),
                0,
                _u32(int(self._timestamp)),
                0,
                _KEYFRAME_FLAG,
            ))
        elif phase == 2:
            self._timestamp += self._frame_duration * 3.0
        f.write(data)

    def write_frame(self, data: bytes) -> None:
        """Scramble and append one compressed frame."""
        self._require_open()
        self._write_audio_packet(scramble_data(data))
        self._frame_num += 1

    def close(self) -> None:
        """Patch the data chunk size and close the file."""
        f = self._file
        if f is None:
            return
        self._file = None
        try:
            data_chunk_sz = f.tell() - self._data_header_pos
            if data_chunk_sz <= 0xFFFFFFFF:
                f.seek(self._data_header_pos + 4)
                f.write(struct.pack(">I", data_chunk_sz))
            else:
                print("Too many data for RM container. Encoded data is written, "
                      "but format is incorrect.", file=sys.stderr)
        finally:
            f.close()

    def name(self) -> str:
        return ""

    def channel_num(self) -> int:
        return 0

    def __enter__(self) -> "RmWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def create_rm_output(path, title: str, channels: int, num_frames: int,
                     frame_size: int, joint_stereo: bool) -> RmWriter:
    """Open a RealMedia writer for an ATRAC3 stream."""
    return RmWriter(path, title, channels, num_frames, frame_size, joint_stereo)