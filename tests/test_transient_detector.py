import numpy as np
import pytest

from atracio.transient_detector import TransientDetector, analyze_gain


def _gain_input():
    values = []
    for i in range(256):
        if i <= 24:
            values.append(1.0)
        elif i <= 32:
            values.append(8.0)
        elif i <= 66:
            values.append(128.0)
        else:
            values.append(0.5)
    return values


def test_analyze_gain_simple():
    res = analyze_gain(_gain_input(), 32, False)
    assert len(res) == 32
    assert res[0:3] == [1.0] * 3
    assert res[3:4] == [8.0]
    assert res[4:9] == [128.0] * 5
    assert res[9:32] == [0.5] * 23


def test_analyze_gain_rms_of_constant():
    res = analyze_gain(np.full(64, 0.5), 8, True)
    assert len(res) == 8
    assert res == pytest.approx([0.5] * 8)


def test_analyze_gain_rms_never_exceeds_peak():
    rng = np.random.default_rng(7)
    data = rng.normal(size=128)
    rms = analyze_gain(data, 16, True)
    peak = analyze_gain(data, 16, False)
    assert all(r <= p + 1e-12 for r, p in zip(rms, peak))


def test_analyze_gain_rejects_too_many_points():
    with pytest.raises(ValueError):
        analyze_gain([1.0, 2.0], 4, False)


def _noise(rng, amplitude, n=256):
    return rng.uniform(-amplitude, amplitude, size=n)


def test_stationary_noise_has_no_transient_after_warmup():
    rng = np.random.default_rng(1)
    det = TransientDetector(32, 256)
    det.detect(_noise(rng, 0.3))
    assert det.detect(_noise(rng, 0.3)) is False
    assert det.detect(_noise(rng, 0.3)) is False


def test_attack_is_detected_at_its_short_block():
    rng = np.random.default_rng(2)
    det = TransientDetector(32, 256)
    det.detect(_noise(rng, 0.001))
    assert det.detect(_noise(rng, 0.001)) is False
    block = _noise(rng, 0.001)
    block[128:] = _noise(rng, 1.0, 128)
    assert det.detect(block) is True
    assert det.last_transient_pos() == 5


def test_silence_after_loud_signal_is_a_transient():
    rng = np.random.default_rng(3)
    det = TransientDetector(32, 256)
    det.detect(_noise(rng, 0.5))
    det.detect(_noise(rng, 0.5))
    assert det.detect(np.zeros(256)) is True
    assert det.last_transient_pos() >= 1


def test_detect_rejects_wrong_length():
    det = TransientDetector(32, 256)
    with pytest.raises(ValueError):
        det.detect(np.zeros(100))


def test_constructor_rejects_bad_sizes():
    with pytest.raises(ValueError):
        TransientDetector(0, 256)
    with pytest.raises(ValueError):
        TransientDetector(64, 32)