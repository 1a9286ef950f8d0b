"""
yinpitch
========
Monophonic fundamental-frequency estimation for short audio frames using the
YIN algorithm (difference function, cumulative mean normalisation, absolute
threshold, parabolic refinement).

Quick start:
    import numpy as np
    from yinpitch import estimate

    sr = 44100
    t = np.arange(2048) / sr
    print(estimate(np.sin(2 * np.pi * 220.0 * t), sr))   # ≈ 220.0

    estimate(np.zeros(2048), sr)                          # 0.0 → no pitch

Longer recordings:
    from yinpitch import frames
    f0s = frames.batch_estimate(frames.slice_frames(signal, sr), log=print)
"""

from .yin import (
    estimate,
    estimate_detailed,
    PitchEstimate,
    DegenerateInputError,
    NO_PITCH,
    THRESHOLD,
    MIN_FREQ,
)
from . import frames
from . import tuning

__version__ = "0.1.0"
__all__ = [
    "estimate",
    "estimate_detailed",
    "PitchEstimate",
    "DegenerateInputError",
    "NO_PITCH",
    "THRESHOLD",
    "MIN_FREQ",
    "frames",
    "tuning",
]
