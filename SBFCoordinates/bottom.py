# -----------------------------
# File: SBFCoordinates/bottom.py
# -----------------------------
"""Vertical datum of the frame: the inner bottom surface (Vrt 0)."""
import logging
from typing import Dict, List, Optional, Sequence

from .patterns import GradientPatternMatcher, pattern
from .profiles import Y_AXIS, Profile
from .utils.math import samples_for

logger = logging.getLogger(__name__)


class BottomLocator:
    """
    Locate the frame bottom below a point of interest.

    A vertical profile is taken upward from one pixel above the lower image
    edge, in the slice of the point of interest, at the lateral centre of the
    image. The frame bottom shows as outer shell (rise, fall) followed by the
    inner shell (rise, fall); the inner shell rise is the reference. Couch
    structures or noise sometimes break the centre profile, so the search is
    retried 100 mm to the left and then 100 mm to the right of centre.

    Attributes:
        image: Object exposing ``geometry`` and ``sample_profile``.
        point (Sequence[float]): (x, y, z) point of interest; only z is used.
        profiles (List[Profile]): Profiles sampled by the last ``locate`` call.
        matches (List[Optional[float]]): Matched position per profile.
    """

    # Distances are mean values from profiling; tolerances are tight since
    # some couch tops have almost the same dimensions as the frame bottom.
    bottom_pattern = pattern(
        slopes=[80, -80, 80, -80],
        distances=[0, 4.4, 12.3, 2],
        tolerances=[0, 2, 1, 3],
        target_index=2,
    )
    profile_pixels = 200
    retry_shifts   = (0.0, -100.0, 100.0)   # lateral offsets from image centre, in mm
    datum_offset   = 1.0                    # Vrt 0 lies 1 mm above the inner shell edge

    def __init__(self, image, point: Sequence[float]):
        self.image    = image
        self.point    = tuple(float(v) for v in point)
        self.profiles: List[Profile] = []
        self.matches: List[Optional[float]] = []
        self.bottom: Optional[float] = None

    def locate(self) -> Optional[float]:
        """
        Return the y coordinate (mm) of the frame datum, or None.

        The returned value is rounded to whole millimetres.
        """
        geo     = self.image.geometry
        step    = geo.y_res
        x_mid   = geo.center(0)
        y_start = geo.corner(1) + geo.extent(1) - step
        y_end   = y_start - self.profile_pixels * step
        samples = samples_for(y_start - y_end, step)
        matcher = GradientPatternMatcher(self.bottom_pattern)

        self.profiles = []
        self.matches  = []
        self.bottom   = None
        for attempt, shift in enumerate(self.retry_shifts, start=1):
            x = x_mid + shift
            profile = self.image.sample_profile(
                (x, y_start, self.point[2]), (x, y_end, self.point[2]), samples
            ).along(Y_AXIS)
            found = matcher.match(profile)
            self.profiles.append(profile)
            self.matches.append(found)
            if found is not None:
                # y grows toward the floor, so "above" is a smaller y
                self.bottom = float(round(found - self.datum_offset))
                logger.debug("Frame bottom at y=%.1f (attempt %d, x=%.1f)", self.bottom, attempt, x)
                return self.bottom
            logger.info("Frame bottom not found at x=%.1f (attempt %d)", x, attempt)
        return None

    def to_dict(self) -> Dict:
        return {
            'bottom_y_mm': self.bottom,
            'attempts'   : len(self.profiles),
            'matches'    : self.matches,
        }
