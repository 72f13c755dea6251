# -----------------------------
# File: SBFCoordinates/alignment.py
# -----------------------------
"""Sub-pixel alignment of a sampling line onto a fiducial ridge.

The frame walls flex, so the lateral position of the fiducial rods is not
known exactly. The aligner slides a vertical sampling line sideways in fixed
0.1 mm steps and keeps the lateral position where the profile reaches the
highest intensity.
"""
import logging
from typing import Optional, Sequence
import numpy as np

logger = logging.getLogger(__name__)


class MaxIntensityAligner:
    """
    Find the lateral (x) line position that maximises profile intensity.

    Attributes:
        image: Object exposing ``sample_profile(start, end, samples)``.
        step_mm (float): Lateral step between trial lines.
    """

    step_mm = 0.1

    def __init__(self, image, step_mm: Optional[float] = None):
        self.image = image
        if step_mm is not None:
            self.step_mm = float(step_mm)
        if self.step_mm <= 0:
            raise ValueError("step_mm must be positive")

    def align(self, start: Sequence[float], end: Sequence[float], search_range: float,
              samples: int) -> Optional[float]:
        """
        Step the line ``start`` -> ``end`` sideways and return the best x.

        The first trial line is one step away from ``start``; the sign of
        ``search_range`` gives the direction. Both line endpoints share the
        trial x.

        Args:
            start (Sequence[float]): (x, y, z) start of the untouched line.
            end (Sequence[float]): (x, y, z) end of the untouched line.
            search_range (float): Signed lateral search distance in mm.
            samples (int): Samples per trial profile.

        Returns:
            Optional[float]: x of the line with the highest peak, or None when
            no line ever sampled a positive intensity.
        """
        direction = np.sign(search_range)
        n_steps   = int(round(abs(search_range) / self.step_mm))
        x0        = float(start[0])

        best_peak = 0.0
        best_x    = None
        for s in range(n_steps):
            x = x0 + direction * self.step_mm * (s + 1)
            profile = self.image.sample_profile((x, start[1], start[2]), (x, end[1], end[2]), samples)
            peak = profile.max_value()
            if peak > best_peak:
                best_peak = peak
                best_x    = float(x)

        if best_x is None:
            logger.debug("No positive intensity found when aligning from x=%.1f", x0)
        return best_x
