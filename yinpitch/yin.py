"""
Single-frame fundamental frequency estimation via YIN.

YIN measures how dissimilar a frame is from shifted copies of itself.  The
four stages run in order on one frame:

  1. difference function     d(τ)  = Σ (x[i] − x[i+τ])²
  2. cumulative mean norm    d'(τ) = d(τ) · τ / Σ_{k≤τ} d(k)
  3. absolute threshold      first τ with d'(τ) < THRESHOLD, walked down to
                             the bottom of its dip
  4. parabolic refinement    sub-sample vertex through the three points
                             around that trough

The frequency is sample_rate / refined_lag.  When no lag dips under the
threshold the frame is unvoiced and :func:`estimate` returns NO_PITCH (0.0).

Everything here is a pure function of its arguments: no caching, no logging,
safe to call from several threads on independent frames.
"""

from __future__ import annotations

import math
import numpy as np
from dataclasses import dataclass
from typing import Optional

# ── tunables ──────────────────────────────────────────────────────────────────
THRESHOLD: float = 0.15   # absolute d' cutoff for a genuine periodicity dip
MIN_FREQ: float  = 100.0  # lowest detectable frequency (Hz); sets the longest lag
NO_PITCH: float  = 0.0    # sentinel returned for unvoiced frames


class DegenerateInputError(ValueError):
    """Raised when a frame or its parameters cannot produce any candidate lag."""


# ── result container ──────────────────────────────────────────────────────────
@dataclass(frozen=True)
class PitchEstimate:
    """Outcome of a voiced frame."""

    frequency: float
    """Estimated fundamental frequency in Hz."""

    lag: float
    """Refined period in samples (integer trough + parabolic offset)."""

    dip: float
    """d' at the integer trough.  0 is perfectly periodic; THRESHOLD is the worst accepted."""

    @property
    def confidence(self) -> float:
        """1 − dip, clipped to [0, 1]."""
        return float(min(1.0, max(0.0, 1.0 - self.dip)))


# ── stages ────────────────────────────────────────────────────────────────────
def difference(samples: np.ndarray, max_lag: int) -> np.ndarray:
    """
    Squared-difference curve of *samples* against itself for lags
    0 … max_lag − 1.

    Only the overlapping region is summed, so lag τ uses N − τ products.
    Entry 0 is left at zero.
    """
    x = np.asarray(samples, dtype=np.float64)
    d = np.zeros(max_lag, dtype=np.float64)
    for tau in range(1, max_lag):
        delta = x[:-tau] - x[tau:]
        d[tau] = np.dot(delta, delta)
    return d


def cumulative_mean_normalized_difference(d: np.ndarray) -> np.ndarray:
    """
    Normalise a difference curve by its running mean.

    d'(0) is fixed at 1.0.  A lag whose running sum is still zero (silent or
    constant input up to that point) holds no evidence of periodicity and gets
    the same 1.0, so it can never pass the threshold.
    """
    d = np.asarray(d, dtype=np.float64)
    cmndf = np.ones_like(d)
    if len(d) < 2:
        return cmndf

    raw = d[1:]
    running = np.cumsum(raw)
    tau = np.arange(1, len(d), dtype=np.float64)
    np.divide(raw * tau, running, out=cmndf[1:], where=running > 0)
    return cmndf


def absolute_threshold(cmndf: np.ndarray, threshold: float = THRESHOLD) -> Optional[int]:
    """
    Return the trough lag of the first dip under *threshold*, or None.

    The scan starts at lag 1.  Once a lag passes, we keep stepping forward
    while the next value is strictly smaller, which lands on the bottom of the
    dip instead of its leading edge.
    """
    below = np.flatnonzero(cmndf[1:] < threshold)
    if below.size == 0:
        return None

    tau = int(below[0]) + 1
    while tau + 1 < len(cmndf) and cmndf[tau + 1] < cmndf[tau]:
        tau += 1
    return tau


def parabolic_interpolation(cmndf: np.ndarray, tau: int) -> float:
    """
    Refine integer lag *tau* to the vertex of the parabola through its two
    neighbours.  At either end of the curve there is no neighbour on one side,
    so *tau* is returned unchanged.
    """
    if tau <= 0 or tau >= len(cmndf) - 1:
        return float(tau)

    s0, s1, s2 = (float(v) for v in cmndf[tau - 1 : tau + 2])
    divisor = 2.0 * s1 - s2 - s0
    adjustment = (s2 - s0) / (2.0 * divisor) if divisor != 0 else 0.0
    return tau + adjustment


# ── validation ────────────────────────────────────────────────────────────────
def max_lag_for(n_samples: int, sample_rate: float, min_freq: float = MIN_FREQ) -> int:
    """
    Length of the lag-domain buffer for a frame of *n_samples*.

    The nominal value floor(sample_rate / min_freq) is clamped to the frame
    length: lags at or beyond N have no overlapping samples to compare.
    """
    if not math.isfinite(sample_rate) or sample_rate <= 0:
        raise DegenerateInputError(f"sample_rate must be a positive number, got {sample_rate!r}")
    if not math.isfinite(min_freq) or min_freq <= 0:
        raise DegenerateInputError(f"min_freq must be a positive number, got {min_freq!r}")

    nominal = int(math.floor(sample_rate / min_freq))
    if nominal < 2:
        raise DegenerateInputError(
            f"min_freq={min_freq} Hz leaves no candidate lag at "
            f"sample_rate={sample_rate} Hz (need min_freq ≤ sample_rate / 2)"
        )
    if n_samples < 2:
        raise DegenerateInputError(
            f"frame has {n_samples} sample(s); at least 2 are needed to compare any lag"
        )
    return min(nominal, n_samples)


def _as_frame(samples) -> np.ndarray:
    x = np.asarray(samples, dtype=np.float64)
    if x.ndim != 1:
        raise DegenerateInputError(f"expected a 1-D frame, got shape {x.shape}")
    if x.size == 0:
        raise DegenerateInputError("frame is empty")
    if not np.all(np.isfinite(x)):
        raise DegenerateInputError("frame contains NaN or infinite samples")
    return x


# ── public API ────────────────────────────────────────────────────────────────
def estimate_detailed(
    samples,
    sample_rate: float,
    *,
    threshold: float = THRESHOLD,
    min_freq: float = MIN_FREQ,
) -> Optional[PitchEstimate]:
    """
    Run all four YIN stages on one frame.

    Parameters
    ----------
    samples : array-like
        One analysis frame of real-valued audio.
    sample_rate : float
        Sampling rate of *samples* in Hz.
    threshold : float
        Absolute d' cutoff in (0, 1] (default 0.15).
    min_freq : float
        Lowest frequency considered, in Hz (default 100 Hz).

    Returns
    -------
    PitchEstimate or None
        None when no lag dips below *threshold*.

    Raises
    ------
    DegenerateInputError
        Empty or non-finite frame, bad sample rate, or parameters that leave
        no lag to test.
    """
    if not 0.0 < threshold <= 1.0:
        raise DegenerateInputError(f"threshold must lie in (0, 1], got {threshold!r}")

    x = _as_frame(samples)
    max_lag = max_lag_for(len(x), sample_rate, min_freq)

    cmndf = cumulative_mean_normalized_difference(difference(x, max_lag))
    tau = absolute_threshold(cmndf, threshold)
    if tau is None:
        return None

    lag = parabolic_interpolation(cmndf, tau)
    return PitchEstimate(
        frequency=float(sample_rate / lag),
        lag=lag,
        dip=float(cmndf[tau]),
    )


def estimate(
    samples,
    sample_rate: float,
    *,
    threshold: float = THRESHOLD,
    min_freq: float = MIN_FREQ,
) -> float:
    """
    Return the fundamental frequency (Hz) of *samples*, or NO_PITCH (0.0) if
    the frame has no periodicity strong enough to pass *threshold*.
    """
    result = estimate_detailed(samples, sample_rate, threshold=threshold, min_freq=min_freq)
    return NO_PITCH if result is None else result.frequency
