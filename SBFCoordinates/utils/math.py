# -----------------------------
# File: SBFCoordinates/utils/math.py
# -----------------------------
"""Mathematical helpers: profile -> slope resampling and sign tests."""
from typing import Tuple
import numpy as np


def profile_slopes(positions: np.ndarray, values: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Resample a profile into local slopes between neighbouring samples.

    Args:
        positions (np.ndarray): Sample positions along the profile axis.
        values (np.ndarray): Intensity at each position.

    Returns:
        Tuple[np.ndarray, np.ndarray]: (midpoints, slopes), both of length N-1.
            The slope is measured along the traversal direction, so its sign
            does not depend on whether positions increase or decrease.
    """
    positions = np.asarray(positions, dtype=float)
    values    = np.asarray(values, dtype=float)
    midpoints = (positions[:-1] + positions[1:]) / 2
    slopes    = np.diff(values) / np.abs(np.diff(positions))
    return midpoints, slopes


def same_sign(a: float, b: float) -> bool:
    """True when both numbers are non-negative or both are negative."""
    return (a >= 0 and b >= 0) or (a < 0 and b < 0)


def exceeds(slope: float, threshold: float) -> bool:
    """Check a slope against a signed threshold.

    The slope qualifies when its magnitude is strictly larger than the
    threshold magnitude and it points the same way. NaN never qualifies.
    """
    return abs(slope) > abs(threshold) and same_sign(slope, threshold)


def samples_for(length: float, step: float) -> int:
    """Number of samples spanning ``length`` inclusively at ``step`` spacing."""
    if step <= 0:
        raise ValueError("step must be positive")
    return int(np.ceil(round(abs(length) / step, 6))) + 1
