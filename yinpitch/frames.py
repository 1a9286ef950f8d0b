"""
Framing and batch estimation over a longer signal.

A recorded buffer is cut into equal-length frames with a fixed hop, and each
frame is handed to :func:`yinpitch.yin.estimate` on its own.  Frames never
share state, so the batch can be spread over a thread pool and still return
exactly what the serial loop would.
"""

from __future__ import annotations

import numpy as np
import librosa
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, List, Optional

from .yin import estimate, THRESHOLD, MIN_FREQ, NO_PITCH

# ── defaults ─────────────────────────────────────────────────────────────────
FRAME_LENGTH: int = 2048   # samples; ≈ 46 ms at 44.1 kHz, > 4 periods of MIN_FREQ
HOP_LENGTH: int   = 1024   # 50% overlap


# ── data container ────────────────────────────────────────────────────────────
@dataclass
class AudioFrame:
    """One analysis frame cut from a longer signal."""
    audio: np.ndarray   # float mono, length = frame_length
    sample_rate: float
    start_sec: float
    end_sec: float


# ── public API ────────────────────────────────────────────────────────────────
def slice_frames(
    signal: np.ndarray,
    sample_rate: float,
    frame_length: int = FRAME_LENGTH,
    hop_length: int = HOP_LENGTH,
) -> List[AudioFrame]:
    """
    Slice *signal* into overlapping fixed-length frames.

    No padding is applied: a trailing remainder shorter than *frame_length* is
    discarded so every frame has the same length, and a signal shorter than
    one frame yields an empty list.
    """
    if frame_length < 1:
        raise ValueError(f"frame_length must be ≥ 1, got {frame_length}")
    if hop_length < 1:
        raise ValueError(f"hop_length must be ≥ 1, got {hop_length}")

    y = np.ascontiguousarray(signal, dtype=np.float64)
    if y.ndim != 1:
        raise ValueError(f"expected a mono 1-D signal, got shape {y.shape}")
    if len(y) < frame_length:
        return []

    # axis=0 → shape (n_frames, frame_length)
    blocks = librosa.util.frame(y, frame_length=frame_length, hop_length=hop_length, axis=0)

    frames: List[AudioFrame] = []
    for i, block in enumerate(blocks):
        start = i * hop_length
        frames.append(
            AudioFrame(
                audio=block,
                sample_rate=sample_rate,
                start_sec=start / sample_rate,
                end_sec=(start + frame_length) / sample_rate,
            )
        )
    return frames


def batch_estimate(
    frames: List[AudioFrame],
    *,
    threshold: float = THRESHOLD,
    min_freq: float = MIN_FREQ,
    max_workers: Optional[int] = None,
    log: Optional[Callable[[str], None]] = None,
) -> List[float]:
    """
    Estimate pitch for every frame in *frames*.

    Parameters
    ----------
    frames      : list of AudioFrame
    threshold   : absolute d' cutoff passed to the estimator
    min_freq    : lowest detectable frequency passed to the estimator
    max_workers : if given, estimate on a thread pool of this size
    log         : optional callable for progress messages, e.g. ``print``

    Returns
    -------
    list of float, one entry per input frame; NO_PITCH (0.0) for unvoiced frames.
    """
    run = partial(_estimate_frame, threshold=threshold, min_freq=min_freq)
    n = len(frames)

    if max_workers is not None:
        if log:
            log(f"    estimating {n} frames on {max_workers} worker thread(s)")
        with ThreadPoolExecutor(max_workers=max_workers) as ex:
            results = list(ex.map(run, frames))
    else:
        results = []
        for i, f in enumerate(frames):
            if log:
                log(f"    pitch frame {i + 1}/{n}  [{f.start_sec:.2f}–{f.end_sec:.2f} s]")
            results.append(run(f))

    voiced = sum(1 for r in results if r != NO_PITCH)
    if log:
        log(f"    {voiced}/{n} frames yielded a pitch estimate")

    return results


def median_frequency(values: Iterable[float]) -> float:
    """Median of the voiced entries in *values*, or NO_PITCH if there are none."""
    voiced = np.array([v for v in values if v != NO_PITCH], dtype=np.float64)
    if voiced.size == 0:
        return NO_PITCH
    return float(np.median(voiced))


# ── helpers ───────────────────────────────────────────────────────────────────
def _estimate_frame(frame: AudioFrame, threshold: float, min_freq: float) -> float:
    return estimate(frame.audio, frame.sample_rate, threshold=threshold, min_freq=min_freq)
