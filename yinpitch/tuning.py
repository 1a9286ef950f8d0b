"""
Note naming and pitch-factor arithmetic.

A pitch shifter is driven by a *pitch factor*: the multiplier applied to every
frequency in the signal.  One equal-tempered semitone is a factor of 2^(1/12),
so

  pitch_factor = 2 ** (semitones / 12)
  semitones    = 12 · log₂(pitch_factor)

These helpers translate a detected frequency into a note reading and into the
factor a shifter would need to land on a target.  The estimator and the
shifter never share state; this module only computes the number passed
between them.
"""

from __future__ import annotations

import math
import numpy as np
import librosa
from dataclasses import dataclass
from typing import Optional

from .yin import NO_PITCH


# ── result container ──────────────────────────────────────────────────────────
@dataclass
class TuningReading:
    """Where a detected frequency sits relative to the equal-tempered grid."""
    frequency: float          # Hz, as detected
    note: str                 # nearest note name, e.g. "A4"
    midi: int                 # nearest MIDI note number
    cents: float              # signed offset from that note, (−50, 50]
    target_frequency: float   # Hz of the nearest note
    pitch_factor: float       # shifter factor that moves frequency onto target_frequency

    def __str__(self) -> str:
        return (
            f"{self.frequency:.2f} Hz  →  {self.note} ({self.cents:+.1f} cents)"
            f"  target {self.target_frequency:.2f} Hz  factor {self.pitch_factor:.6f}"
        )


# ── pitch factor ──────────────────────────────────────────────────────────────
def semitones_to_pitch_factor(semitones: float) -> float:
    """Frequency multiplier for a shift of *semitones* (negative = lower)."""
    return float(2.0 ** (semitones / 12.0))


def pitch_factor_to_semitones(factor: float) -> float:
    """Semitone shift produced by multiplying every frequency by *factor*."""
    if factor <= 0:
        raise ValueError(f"pitch factor must be positive, got {factor}")
    return 12.0 * math.log2(factor)


def correction_factor(detected: float, target: float) -> float:
    """
    Pitch factor that moves *detected* Hz onto *target* Hz.

    Raises ValueError for an unvoiced (NO_PITCH) or otherwise non-positive
    detection, since there is nothing to correct.
    """
    if detected <= 0:
        raise ValueError(f"cannot correct an unvoiced or non-positive frequency ({detected})")
    if target <= 0:
        raise ValueError(f"target frequency must be positive, got {target}")
    return float(target / detected)


# ── note naming ───────────────────────────────────────────────────────────────
def frequency_to_note(frequency: float) -> Optional[str]:
    """Nearest equal-tempered note name (A4 = 440 Hz), or None when unvoiced."""
    if frequency <= NO_PITCH:
        return None
    return str(librosa.midi_to_note(_nearest_midi(float(librosa.hz_to_midi(frequency)))))


def cents_deviation(frequency: float) -> float:
    """
    Signed offset of *frequency* from its nearest note, in cents.

    Positive means sharp.  The result lies in (−50, 50].
    """
    if frequency <= 0:
        raise ValueError(f"frequency must be positive, got {frequency}")
    midi = float(librosa.hz_to_midi(frequency))
    return 100.0 * (midi - _nearest_midi(midi))


def read_tuning(frequency: float) -> Optional[TuningReading]:
    """
    Full tuner reading for *frequency*, or None for NO_PITCH / non-positive
    input.
    """
    if frequency <= NO_PITCH:
        return None

    midi_float = float(librosa.hz_to_midi(frequency))
    midi = _nearest_midi(midi_float)
    target = float(librosa.midi_to_hz(midi))
    return TuningReading(
        frequency=float(frequency),
        note=str(librosa.midi_to_note(midi)),
        midi=midi,
        cents=100.0 * (midi_float - midi),
        target_frequency=target,
        pitch_factor=correction_factor(frequency, target),
    )


# ── helpers ───────────────────────────────────────────────────────────────────
def _nearest_midi(midi: float) -> int:
    # ties (exactly 50 cents) round down so the offset stays in (−50, 50]
    return int(np.ceil(midi - 0.5))
