"""Tests for framing and batch estimation."""

import numpy as np
import pytest

from yinpitch import frames
from yinpitch.frames import slice_frames, batch_estimate, median_frequency, AudioFrame
from yinpitch.yin import NO_PITCH

SR = 44100


def _sine(freq, n, sr=SR):
    t = np.arange(n, dtype=np.float64)
    return np.sin(2 * np.pi * freq * t / sr)


def _tone_then_silence():
    """Four frames' worth of 220 Hz followed by four frames of silence."""
    return np.concatenate([_sine(220.0, 4 * 2048), np.zeros(4 * 2048)])


# ── slice_frames ──────────────────────────────────────────────────────────────

def test_frame_count_drops_partial_tail():
    out = slice_frames(np.zeros(10000), SR, frame_length=2048, hop_length=1024)
    assert len(out) == 1 + (10000 - 2048) // 1024
    assert all(len(f.audio) == 2048 for f in out)


def test_frame_timestamps():
    out = slice_frames(np.zeros(10000), SR, frame_length=2048, hop_length=1024)
    assert out[0].start_sec == 0.0
    assert out[1].start_sec == pytest.approx(1024 / SR)
    assert out[1].end_sec == pytest.approx((1024 + 2048) / SR)
    assert all(f.sample_rate == SR for f in out)


def test_frame_content_matches_signal():
    y = np.arange(8192, dtype=np.float64)
    out = slice_frames(y, SR, frame_length=2048, hop_length=1024)
    np.testing.assert_array_equal(out[2].audio, y[2048:4096])


def test_signal_shorter_than_frame():
    assert slice_frames(np.zeros(100), SR, frame_length=2048) == []


def test_default_sizes():
    assert frames.FRAME_LENGTH == 2048
    assert frames.HOP_LENGTH == 1024
    out = slice_frames(np.zeros(4096), SR)
    assert len(out) == 3


@pytest.mark.parametrize("kwargs", [{"frame_length": 0}, {"hop_length": 0}, {"hop_length": -5}])
def test_bad_frame_parameters(kwargs):
    with pytest.raises(ValueError):
        slice_frames(np.zeros(4096), SR, **kwargs)


def test_stereo_signal_rejected():
    with pytest.raises(ValueError, match="1-D"):
        slice_frames(np.zeros((2, 4096)), SR)


# ── batch_estimate ────────────────────────────────────────────────────────────

def test_batch_voiced_and_unvoiced():
    out = slice_frames(_tone_then_silence(), SR, frame_length=2048, hop_length=2048)
    f0s = batch_estimate(out)
    assert len(f0s) == 8
    for f0 in f0s[:4]:
        assert f0 == pytest.approx(220.0, rel=0.01)
    assert f0s[4:] == [NO_PITCH] * 4


def test_batch_threaded_matches_serial():
    out = slice_frames(_tone_then_silence(), SR, frame_length=2048, hop_length=1024)
    assert batch_estimate(out, max_workers=3) == batch_estimate(out)


def test_batch_log_messages():
    out = slice_frames(_tone_then_silence(), SR, frame_length=2048, hop_length=2048)
    lines = []
    batch_estimate(out, log=lines.append)
    assert len(lines) == 9
    assert lines[0].startswith("    pitch frame 1/8")
    assert lines[-1] == "    4/8 frames yielded a pitch estimate"


def test_batch_log_threaded():
    out = slice_frames(_tone_then_silence(), SR, frame_length=2048, hop_length=2048)
    lines = []
    batch_estimate(out, max_workers=2, log=lines.append)
    assert lines == [
        "    estimating 8 frames on 2 worker thread(s)",
        "    4/8 frames yielded a pitch estimate",
    ]


def test_batch_forwards_min_freq():
    frame = AudioFrame(audio=_sine(80.0, 2048), sample_rate=SR, start_sec=0.0, end_sec=2048 / SR)
    assert batch_estimate([frame]) == [NO_PITCH]
    assert batch_estimate([frame], min_freq=60.0)[0] == pytest.approx(80.0, rel=0.01)


def test_batch_empty():
    assert batch_estimate([]) == []


# ── median_frequency ──────────────────────────────────────────────────────────

def test_median_ignores_unvoiced():
    assert median_frequency([0.0, 220.0, 221.0, 0.0, 219.0]) == 220.0


def test_median_all_unvoiced():
    assert median_frequency([0.0, 0.0]) == NO_PITCH
    assert median_frequency([]) == NO_PITCH
