# -----------------------------
# File: SBFCoordinates/fiducials.py
# -----------------------------
"""Fiducial readers for the frame side walls.

Two readers share the gradient pattern matcher:

* ``FiducialCounter`` counts the decimeter ticks in the lower band.
* ``DiagonalFiducialMatcher`` measures how far the diagonal fiducial sits
  from the index fiducial in the upper band, which gives the position
  within the current decimeter.
"""
import logging
import math
from typing import Optional

from .patterns import GradientPattern, GradientPatternMatcher, Transition, pattern
from .profiles import Profile

logger = logging.getLogger(__name__)


def diagonal_slope(z_res: float) -> int:
    """Minimum slope of the diagonal fiducial edges for a slice spacing.

    The diagonal rod crosses the slice at an angle, so thicker slices blur
    it into a flatter edge. Integer division matches the tuned values.
    """
    return 100 // max(1, int(round(math.sqrt(math.sqrt(z_res)))))


def diagonal_width(z_res: float) -> float:
    """Expected width in mm of the diagonal fiducial for a slice spacing."""
    return 1 + 0.5 * math.sqrt(z_res)


class FiducialCounter:
    """
    Count the repeating tick fiducials in a lower-band profile.

    Starts with a single tick (rise then fall) and appends one more tick to
    the pattern after every successful match. The count is the number of
    successful matches, so a profile without ticks gives 0.

    Attributes:
        tick_slope (float): Minimum edge slope of a tick in HU/mm.
        tick_width (float): Expected rise-to-fall distance in mm.
        tick_gap (float): Expected fall-to-next-rise distance in mm.
        tolerance (float): Distance tolerance in mm.
    """

    tick_slope = 100.0
    tick_width = 2.0
    tick_gap   = 3.0
    tolerance  = 2.0
    max_ticks  = 50

    def __init__(self, **overrides):
        for key, value in overrides.items():
            if not hasattr(type(self), key):
                raise TypeError(f"unknown FiducialCounter setting '{key}'")
            setattr(self, key, value)

    def first_tick(self) -> GradientPattern:
        return GradientPattern((
            Transition(self.tick_slope),
            Transition(-self.tick_slope, self.tick_width, self.tolerance),
        ))

    def next_tick(self):
        return (
            Transition(self.tick_slope, self.tick_gap, self.tolerance),
            Transition(-self.tick_slope, self.tick_width, self.tolerance),
        )

    def count(self, profile: Profile) -> int:
        """Number of complete ticks matched before the first failed attempt."""
        current = self.first_tick()
        ticks = 0
        while ticks < self.max_ticks and GradientPatternMatcher(current).match(profile) is not None:
            ticks += 1
            current = current.extended(*self.next_tick()).with_target(ticks)
        logger.debug("Counted %d fiducial ticks", ticks)
        return ticks


class DiagonalFiducialMatcher:
    """
    Measure the diagonal fiducial offset in an upper-band profile.

    The profile runs upward from just above the lower band. The expected
    sequence is the index tick, the diagonal fiducial (flatter and wider,
    depending on slice spacing) and the top tick. The offset is the distance
    between the centres of the index tick and of the diagonal fiducial.

    Args:
        z_res (float): Slice spacing of the image in mm.
    """

    def __init__(self, z_res: float):
        if z_res <= 0:
            raise ValueError("z_res must be positive")
        self.z_res = float(z_res)
        slope = diagonal_slope(self.z_res)
        width = diagonal_width(self.z_res)
        self.pattern = pattern(
            slopes=[100, -100, slope, -slope, 100, -100],
            distances=[0, 2, 49, width, 99, 2],
            tolerances=[2, 3, 105, 4, 105, 3],
        )
        self.positions = None

    def offset(self, profile: Profile) -> Optional[float]:
        """Distance in mm between index and diagonal fiducial, or None."""
        self.positions = GradientPatternMatcher(self.pattern).transitions(profile)
        if self.positions is None:
            logger.debug("Diagonal fiducial pattern not found")
            return None
        index_centre    = (self.positions[0] + self.positions[1]) / 2
        diagonal_centre = (self.positions[2] + self.positions[3]) / 2
        return abs(diagonal_centre - index_centre)
