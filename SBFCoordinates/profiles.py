# -----------------------------
# File: SBFCoordinates/profiles.py
# -----------------------------
"""Intensity profiles sampled through the CT image.

A profile is produced fresh for every query by the image sampler and is
discarded after one matching pass. ``ImageProfile`` keeps the full 3D sample
points; ``Profile`` is the 1D view the matchers work on.
"""
from dataclasses import dataclass
import numpy as np

# Axis indices into (x, y, z) points
X_AXIS = 0
Y_AXIS = 1
Z_AXIS = 2


@dataclass(frozen=True)
class Profile:
    """
    Ordered (position, intensity) samples along a single axis.

    Attributes:
        positions (np.ndarray): Strictly monotonic scalar positions in mm.
        values (np.ndarray): Intensity (HU) at each position.
    """

    positions: np.ndarray
    values: np.ndarray

    def __post_init__(self):
        positions = np.asarray(self.positions, dtype=float)
        values    = np.asarray(self.values, dtype=float)
        object.__setattr__(self, 'positions', positions)
        object.__setattr__(self, 'values', values)
        self._validate_inputs()

    def _validate_inputs(self):
        if self.positions.ndim != 1 or self.values.ndim != 1:
            raise ValueError("positions and values must be 1D")
        if self.positions.size != self.values.size:
            raise ValueError("positions and values must have equal length")
        if self.positions.size < 2:
            raise ValueError("a profile needs at least 2 samples")
        steps = np.diff(self.positions)
        if not (np.all(steps > 0) or np.all(steps < 0)):
            raise ValueError("profile positions must be strictly monotonic")

    def __len__(self) -> int:
        return int(self.positions.size)


@dataclass(frozen=True)
class ImageProfile:
    """
    Samples returned by an image sampler: 3D points plus intensities.

    Attributes:
        points (np.ndarray): (N, 3) array of (x, y, z) sample positions in mm.
        values (np.ndarray): (N,) intensities.
    """

    points: np.ndarray
    values: np.ndarray

    def __post_init__(self):
        points = np.asarray(self.points, dtype=float)
        values = np.asarray(self.values, dtype=float)
        if points.ndim != 2 or points.shape[1] != 3:
            raise ValueError("points must be an (N, 3) array")
        if points.shape[0] != values.size:
            raise ValueError("points and values must have equal length")
        object.__setattr__(self, 'points', points)
        object.__setattr__(self, 'values', values)

    def along(self, axis: int) -> Profile:
        """Reduce the 3D samples to a 1D profile along ``axis`` (0=x, 1=y, 2=z)."""
        return Profile(self.points[:, axis], self.values)

    def max_value(self) -> float:
        """Highest finite intensity, or NaN when the line left the image."""
        finite = self.values[np.isfinite(self.values)]
        return float(finite.max()) if finite.size else float('nan')
