# -----------------------------
# File: SBFCoordinates/longitudinal.py
# -----------------------------
"""Longitudinal (Lng) coordinate from the side wall fiducials.

Each side wall carries a lower band of decimeter ticks and an upper band
with an index tick, a diagonal fiducial and a top tick. The decimeter
count and the diagonal offset are read on both sides and combined:

    Lng = (left ticks + right ticks) * 50 + (left offset + right offset) / 2

Near a decimeter boundary the readings become ambiguous; the measurement is
then repeated 10 mm further and 10 mm nearer along z and the mean of the
two shifted readings is used when they are consistent.
"""
import logging
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from .alignment import MaxIntensityAligner
from .fiducials import DiagonalFiducialMatcher, FiducialCounter
from .profiles import Y_AXIS, Profile
from .utils.math import samples_for

logger = logging.getLogger(__name__)

Point = Tuple[float, float, float]

MAX_OFFSET      = 97.0          # above this the diagonal may be next to a decimeter step
SIDE_AGREEMENT  = 2.0           # max left/right offset difference for shifted readings
SHIFT_WINDOW    = (18.0, 22.0)  # expected spread of the +/-10 mm readings


@dataclass(frozen=True)
class SideReading:
    """Fiducial reading on one side wall: decimeter ticks and diagonal offset."""

    ticks: int
    offset: Optional[float]


@dataclass(frozen=True)
class LongitudinalReading:
    """Left and right side readings in one slice."""

    left: SideReading
    right: SideReading

    def coordinate(self) -> Optional[float]:
        if self.left.offset is None or self.right.offset is None:
            return None
        return (self.left.ticks + self.right.ticks) * 50 + (self.left.offset + self.right.offset) / 2

    def offsets_present(self) -> bool:
        """Both offsets found and non-zero (zero means the diagonal is unresolved)."""
        return all(o is not None and o != 0 for o in (self.left.offset, self.right.offset))

    def is_unambiguous(self, max_offset: float = MAX_OFFSET) -> bool:
        """Ticks agree, both offsets present and away from the decimeter step."""
        if self.left.ticks != self.right.ticks or not self.offsets_present():
            return False
        return self.left.offset <= max_offset and self.right.offset <= max_offset

    def sides_agree(self, tolerance: float = SIDE_AGREEMENT) -> bool:
        if self.left.ticks != self.right.ticks or not self.offsets_present():
            return False
        return abs(self.left.offset - self.right.offset) < tolerance


def combine_readings(primary: LongitudinalReading,
                     shifted_up: Optional[LongitudinalReading] = None,
                     shifted_down: Optional[LongitudinalReading] = None,
                     max_offset: float = MAX_OFFSET,
                     window: Tuple[float, float] = SHIFT_WINDOW) -> Optional[float]:
    """
    Combine fiducial readings into the Lng coordinate.

    Args:
        primary (LongitudinalReading): Reading in the slice of interest.
        shifted_up (LongitudinalReading): Reading 10 mm further along z.
        shifted_down (LongitudinalReading): Reading 10 mm back along z.
        max_offset (float): Largest trusted diagonal offset in mm.
        window (Tuple[float, float]): Open interval for the spread of the two
            shifted coordinates.

    Returns:
        Optional[float]: Lng in mm, or None when the readings are inconsistent.
    """
    if primary.is_unambiguous(max_offset):
        return primary.coordinate()
    if shifted_up is None or shifted_down is None:
        return None
    if not (shifted_up.sides_agree() and shifted_down.sides_agree()):
        logger.info("Shifted fiducial readings disagree left/right")
        return None
    first, second = shifted_up.coordinate(), shifted_down.coordinate()
    spread = abs(second - first)
    if window[0] < spread < window[1]:
        return (first + second) / 2
    logger.info("Shifted Lng readings %.1f and %.1f differ by %.1f mm", first, second, spread)
    return None


class LongitudinalLocator:
    """
    Purpose: read the Lng coordinate from the side wall fiducials.

    Order of operations (per side):
      - Align a lower-band line (91.5 mm above the datum, 40 mm downward)
        onto the tick rods and count the decimeter ticks
      - Align short lines on the index tick and on the top tick; the upper
        profile runs from the first to the second so it follows wall flex
      - Measure the diagonal fiducial offset along the upper profile
    Then combine both sides, resampling at z +/- 10 mm when ambiguous.

    Args:
        image: Object exposing ``geometry`` and ``sample_profile``.
        point (Sequence[float]): (x, y, z) point of interest; only z is used.
        bottom (float): Frame datum y in mm.
        left (float): Left inner wall x in mm.
        right (float): Right inner wall x in mm.
    """

    side_offset  = 2.0      # start this far inside the found wall edge
    band_offset  = 91.5     # band start above the datum
    search_range = 8.0      # lateral search for the rod ridge
    step_length  = 0.5      # sub-mm steps are needed to resolve the ticks
    lower_length = 40.0     # covers every possible decimeter tick
    short_length = 20.0     # index / top tick alignment lines
    upper_length = 115.0    # index tick to top tick
    depth_shift  = 10.0

    def __init__(self, image, point: Sequence[float], bottom: float, left: float, right: float):
        self.image  = image
        self.point  = tuple(float(v) for v in point)
        self.bottom = float(bottom)
        self.edges  = {'left': float(left), 'right': float(right)}
        self.counter = FiducialCounter()
        self.diagonal = DiagonalFiducialMatcher(image.geometry.z_res)

        # diagnostics
        self.lines: Dict[str, Optional[Dict[str, Tuple[Point, Point]]]] = {}
        self.profiles: Dict[str, Profile] = {}
        self.matches: Dict[str, Optional[list]] = {}   # diagonal pattern positions per upper profile
        self.readings: Dict[str, LongitudinalReading] = {}
        self.coordinate: Optional[float] = None

    # -------------------------
    # Line placement
    # -------------------------
    def _side_lines(self, side: str) -> Optional[Dict[str, Tuple[Point, Point]]]:
        """Aligned (start, end) of the lower and upper band lines on one side."""
        inward  = 1.0 if side == 'left' else -1.0
        x       = self.edges[side] + inward * self.side_offset
        y_band  = self.bottom - self.band_offset
        z       = self.point[2]
        search  = inward * self.search_range
        aligner = MaxIntensityAligner(self.image)

        lower_start = (x, y_band, z)
        lower_end   = (x, y_band + self.lower_length, z)
        lower_x = aligner.align(lower_start, lower_end, search,
                                samples_for(self.lower_length, self.step_length))

        y_top      = y_band - self.upper_length
        short_n    = samples_for(self.short_length, self.step_length)
        index_x = aligner.align((x, y_band, z), (x, y_band - self.short_length, z), search, short_n)
        top_x   = aligner.align((x, y_top + self.short_length, z), (x, y_top, z), search, short_n)

        if lower_x is None or index_x is None or top_x is None:
            logger.info("Fiducial rods not found on %s side", side)
            return None
        return {
            'lower': ((lower_x, y_band, z), (lower_x, y_band + self.lower_length, z)),
            'upper': ((index_x, y_band, z), (top_x, y_top, z)),
        }

    # -------------------------
    # Readings
    # -------------------------
    def _read_side(self, side: str, lines: Dict[str, Tuple[Point, Point]], dz: float) -> SideReading:
        (ls, le), (us, ue) = lines['lower'], lines['upper']

        def shift(p: Point) -> Point:
            return (p[0], p[1], p[2] + dz)

        lower = self.image.sample_profile(shift(ls), shift(le),
                                          samples_for(self.lower_length, self.step_length)).along(Y_AXIS)
        upper_len = abs(ue[1] - us[1])
        upper = self.image.sample_profile(shift(us), shift(ue),
                                          samples_for(upper_len, self.step_length)).along(Y_AXIS)
        self.profiles[f'{side}_lower_{dz:+.0f}'] = lower
        self.profiles[f'{side}_upper_{dz:+.0f}'] = upper
        offset = self.diagonal.offset(upper)
        self.matches[f'{side}_upper_{dz:+.0f}'] = self.diagonal.positions
        return SideReading(self.counter.count(lower), offset)

    def _reading(self, dz: float) -> LongitudinalReading:
        reading = LongitudinalReading(
            self._read_side('left', self.lines['left'], dz),
            self._read_side('right', self.lines['right'], dz),
        )
        self.readings[f'{dz:+.0f}'] = reading
        logger.debug("Lng reading at dz=%+.0f: %s", dz, reading)
        return reading

    def locate(self) -> Optional[float]:
        """Return the Lng coordinate in mm, or None when it cannot be read."""
        self.lines = {side: self._side_lines(side) for side in ('left', 'right')}
        if self.lines['left'] is None or self.lines['right'] is None:
            self.coordinate = None
            return None

        primary = self._reading(0.0)
        if primary.is_unambiguous():
            self.coordinate = primary.coordinate()
            return self.coordinate

        logger.info("Ambiguous Lng reading %s; resampling at +/- %.0f mm", primary, self.depth_shift)
        self.coordinate = combine_readings(
            primary,
            self._reading(self.depth_shift),
            self._reading(-self.depth_shift),
        )
        return self.coordinate

    def to_dict(self) -> Dict:
        return {
            'lng_mm'  : self.coordinate,
            'readings': {
                key: {
                    'left_ticks'  : r.left.ticks,
                    'right_ticks' : r.right.ticks,
                    'left_offset' : r.left.offset,
                    'right_offset': r.right.offset,
                }
                for key, r in self.readings.items()
            },
        }
