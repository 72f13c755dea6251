# -----------------------------
# File: SBFCoordinates/lateral.py
# -----------------------------
"""Lateral wall detection and the vertical datum double check.

Both classes sample two horizontal profiles at a given height, one from the
left image edge inward and one from the right image edge inward, and match
the wall pattern on each. The distance between the two matched walls is
compared with the frame width expected at that height.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from .patterns import GradientPattern, GradientPatternMatcher, pattern
from .profiles import X_AXIS, Profile
from .utils.math import samples_for

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LateralBounds:
    """Inner wall positions (x, mm) of the frame on both sides of one slice."""

    left: float
    right: float

    @property
    def center(self) -> float:
        return (self.left + self.right) / 2

    @property
    def width(self) -> float:
        return abs(self.right - self.left)

    def width_within(self, expected: float, tolerance: float) -> bool:
        """True when the width is within ``expected`` +/- ``tolerance`` (inclusive)."""
        return abs(self.width - expected) <= tolerance


class _WallProfiles:
    """Shared sampling of the left/right wall profiles at one height."""

    wall_pattern: GradientPattern = None
    profile_pixels = 100
    expected_width = 0.0
    width_tolerance = 0.0

    def __init__(self, image, point: Sequence[float], expected_width: Optional[float] = None,
                 width_tolerance: Optional[float] = None):
        self.image = image
        self.point = tuple(float(v) for v in point)
        if expected_width is not None:
            self.expected_width = float(expected_width)
        if width_tolerance is not None:
            self.width_tolerance = float(width_tolerance)
        self.profiles: Dict[str, Profile] = {}
        self.matches: Dict[str, Optional[float]] = {}

    def _sample_walls(self, y: float) -> Tuple[Optional[float], Optional[float]]:
        geo     = self.image.geometry
        step    = geo.x_res
        x_left  = geo.corner(0) + step                      # one pixel in from the left edge
        x_right = geo.corner(0) + geo.extent(0) - step      # one pixel in from the right edge
        length  = self.profile_pixels * step
        samples = samples_for(length, step)
        z       = self.point[2]
        matcher = GradientPatternMatcher(self.wall_pattern)

        lines = {
            'left' : ((x_left, y, z), (x_left + length, y, z)),
            'right': ((x_right, y, z), (x_right - length, y, z)),
        }
        for side, (start, end) in lines.items():
            profile = self.image.sample_profile(start, end, samples).along(X_AXIS)
            self.profiles[side] = profile
            self.matches[side]  = matcher.match(profile)
        return self.matches['left'], self.matches['right']

    def _bounds(self, y: float) -> Optional[LateralBounds]:
        left, right = self._sample_walls(y)
        if left is None or right is None:
            logger.debug("Wall not found at y=%.1f (left=%s, right=%s)", y, left, right)
            return None
        return LateralBounds(left, right)


class LateralLocator(_WallProfiles):
    """
    Locate the inner surfaces of the frame side walls.

    Profiles are taken 91.5 mm above the datum, between the index fiducial
    (Vrt 95) and the lower fiducials, where the walls are vertical. The wall
    pattern is outer shell (rise, fall) then inner wall (rise); the inner
    wall rise is reported.

    Args:
        image: Object exposing ``geometry`` and ``sample_profile``.
        point (Sequence[float]): (x, y, z) point of interest; only z is used.
        expected_width (float): Expected inner width in mm.
        width_tolerance (float): Accepted width deviation in mm, to allow for
            frame flex and measurement uncertainty.
    """

    wall_pattern = pattern(
        slopes=[100, -100, 100],
        distances=[0, 2, 13],
        tolerances=[0, 2, 2],
        target_index=2,
    )
    profile_pixels  = 100
    height_above    = 91.5
    expected_width  = 442.0
    width_tolerance = 2.0

    def __init__(self, image, point: Sequence[float], **kwargs):
        super().__init__(image, point, **kwargs)
        self.bounds: Optional[LateralBounds] = None

    def locate(self, bottom: float) -> Optional[LateralBounds]:
        """Return the wall bounds in the datum plane, or None when not found."""
        self.bounds = self._bounds(bottom - self.height_above)
        return self.bounds

    def validate(self, bounds: Optional[LateralBounds]) -> bool:
        """Width check of located bounds against the expected frame width."""
        if bounds is None:
            return False
        ok = bounds.width_within(self.expected_width, self.width_tolerance)
        if not ok:
            logger.info("Frame width %.1f mm outside %.0f +/- %.0f mm",
                        bounds.width, self.expected_width, self.width_tolerance)
        return ok


class VerticalDoubleChecker(_WallProfiles):
    """
    Confirm that a located datum really is the frame bottom.

    10 mm above the bottom the frame walls slope outward, so the width there
    is much smaller than higher up and changes quickly with height (about
    2.4 mm of width per mm of height). Matching the expected width at this
    height rules out couch structures mistaken for the frame bottom.
    """

    wall_pattern = pattern(
        slopes=[100, -100, 100],
        distances=[0, 2, 20],
        tolerances=[0, 3, 3],
        target_index=2,
    )
    profile_pixels  = 200
    height_above    = 10.0
    expected_width  = 349.0
    width_tolerance = 5.0

    def __init__(self, image, point: Sequence[float], **kwargs):
        super().__init__(image, point, **kwargs)
        self.bounds: Optional[LateralBounds] = None

    def check(self, bottom: float) -> bool:
        """True when the frame width 10 mm above ``bottom`` is as expected."""
        self.bounds = self._bounds(bottom - self.height_above)
        if self.bounds is None:
            return False
        ok = self.bounds.width_within(self.expected_width, self.width_tolerance)
        logger.debug("Sloped wall width %.1f mm -> %s", self.bounds.width, ok)
        return ok
