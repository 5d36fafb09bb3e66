import struct

import pytest

from atracio.compressed_io import CompressedOutput
from atracio.rm import (
    MDPR_HEADER_SZ,
    RmWriter,
    create_rm_output,
    scramble_data,
)

FRAME_SIZE = 192
HEADER_END = 18 + 50 + MDPR_HEADER_SZ + 18
DATA_POS = 18 + 50 + MDPR_HEADER_SZ


def _write(tmp_path, frames, num_frames=None, joint_stereo=False, channels=2):
    path = tmp_path / "out.rm"
    num = len(frames) if num_frames is None else num_frames
    with create_rm_output(path, "title", channels, num, FRAME_SIZE, joint_stereo) as w:
        for frame in frames:
            w.write_frame(frame)
    return path.read_bytes()


def test_scramble_zero_word_gives_key():
    assert scramble_data(b"\x00\x00\x00\x00") == bytes([0x53, 0x7F, 0x61, 0x03])


def test_scramble_is_involution():
    data = bytes(range(64))
    assert scramble_data(scramble_data(data)) == data


def test_scramble_keeps_length_and_zeroes_tail():
    out = scramble_data(b"\x00" * 6)
    assert len(out) == 6
    assert out[4:] == b"\x00\x00"


def test_file_starts_with_rmf_header(tmp_path):
    raw = _write(tmp_path, [])
    assert raw[:4] == b".RMF"
    size, version, file_version, headers = struct.unpack_from(">IHII", raw, 4)
    assert (size, version, file_version, headers) == (18, 0, 0, 4)


def test_chunk_layout(tmp_path):
    raw = _write(tmp_path, [])
    assert raw[18:22] == b"PROP"
    assert raw[68:72] == b"MDPR"
    assert raw[DATA_POS:DATA_POS + 4] == b"DATA"
    assert struct.unpack_from(">I", raw, 72)[0] == DATA_POS - 68
    assert len(raw) == HEADER_END


def test_prop_data_offset_points_to_data_chunk(tmp_path):
    raw = _write(tmp_path, [])
    data_offset = struct.unpack_from(">I", raw, 18 + 42)[0]
    assert data_offset == raw.index(b"DATA")


def test_prop_fields_follow_input(tmp_path):
    raw = _write(tmp_path, [], num_frames=7)
    max_br, avg_br, max_pkt, avg_pkt, packets = struct.unpack_from(">IIIII", raw, 18 + 10)
    assert max_br == avg_br
    assert max_pkt == avg_pkt == FRAME_SIZE
    assert packets == 7
    mdpr_br = struct.unpack_from(">II", raw, 68 + 12)
    assert mdpr_br == (max_br, avg_br)


def test_mdpr_contains_description_and_mime(tmp_path):
    raw = _write(tmp_path, [])
    assert b"Audio Stream\0" in raw
    assert b"audio/x-pn-realaudio\0" in raw
    assert b"genratrc" in raw
    assert b".ra5" in raw


@pytest.mark.parametrize("joint, flag", [(True, 0x12), (False, 0x2)])
def test_joint_stereo_flag(tmp_path, joint, flag):
    raw = _write(tmp_path, [], joint_stereo=joint)
    assert struct.unpack_from(">H", raw, DATA_POS - 2)[0] == flag


def test_data_header_frames_and_patched_size(tmp_path):
    frames = [bytes([i]) * FRAME_SIZE for i in range(4)]
    raw = _write(tmp_path, frames)
    size, version, num = struct.unpack_from(">IHI", raw, DATA_POS + 4)
    assert size == len(raw) - DATA_POS
    assert version == 0
    assert num == 4


def test_packets_every_three_frames(tmp_path):
    frames = [b"\x00" * FRAME_SIZE] * 4
    raw = _write(tmp_path, frames)
    assert len(raw) == HEADER_END + 2 * 12 + 4 * FRAME_SIZE

    pkt_version, pkt_size, stream, ts, _, flags = struct.unpack_from(">HHHIBB", raw, HEADER_END)
    assert (pkt_version, stream, ts, flags) == (0, 0, 0, 0x02)
    assert pkt_size == 3 * FRAME_SIZE + 12

    second = HEADER_END + 12 + 3 * FRAME_SIZE
    ts2 = struct.unpack_from(">HHHI", raw, second)[3]
    assert ts2 > ts


def test_frame_payload_is_scrambled(tmp_path):
    frame = bytes(range(FRAME_SIZE))
    raw = _write(tmp_path, [frame])
    payload = raw[HEADER_END + 12:HEADER_END + 12 + FRAME_SIZE]
    assert payload == scramble_data(frame)
    assert scramble_data(payload) == frame


def test_write_after_close_raises(tmp_path):
    writer = RmWriter(tmp_path / "a.rm", "t", 2, 1, FRAME_SIZE, False)
    writer.close()
    writer.close()
    with pytest.raises(ValueError):
        writer.write_frame(b"\x00" * FRAME_SIZE)


def test_name_and_channels(tmp_path):
    with create_rm_output(tmp_path / "b.rm", "t", 2, 1, FRAME_SIZE, True) as writer:
        assert isinstance(writer, CompressedOutput)
        assert writer.name() == ""
        assert writer.channel_num() == 0


def test_open_failure_raises(tmp_path):
    with pytest.raises(OSError):
        RmWriter(tmp_path / "missing" / "c.rm", "t", 2, 1, FRAME_SIZE, False)