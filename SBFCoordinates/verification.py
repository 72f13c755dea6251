# -----------------------------
# File: SBFCoordinates/verification.py
# -----------------------------
"""Frame coordinates and the user-origin cross check.

The user origin is normally placed on the frame's index point (Lat 300,
Vrt 95). When it is found there, every other point can also be expressed in
frame coordinates directly from its offset to the user origin, which gives an
independent second value to compare against the profile measurement.
"""
import logging
from dataclasses import asdict, dataclass
from enum import Enum
from typing import Dict, Optional, Sequence, Tuple

logger = logging.getLogger(__name__)

FRAME_LAT_CENTER   = 300    # Lat of the frame's lateral centre
FRAME_VRT_INDEX    = 95     # Vrt of the index fiducial plane
POSITION_TOLERANCE = 3      # mm

AXES = ('lat', 'vrt', 'lng')


@dataclass(frozen=True)
class FrameCoordinates:
    """Frame coordinates in whole mm; an axis is None when it was not measured."""

    lat: Optional[int] = None
    vrt: Optional[int] = None
    lng: Optional[int] = None

    def to_dict(self) -> Dict[str, Optional[int]]:
        return asdict(self)

    def only(self, axes: Sequence[str]) -> 'FrameCoordinates':
        """Copy keeping only ``axes``; the others become None."""
        return FrameCoordinates(**{a: (getattr(self, a) if a in axes else None) for a in AXES})


class CheckResult(Enum):
    """Outcome of measuring a point (or the user origin) in the frame."""

    FOUND     = 'found'
    NO_LONG   = 'no_long'       # transverse found, Lng not readable
    NOT_FOUND = 'not_found'     # frame not found in the point's slice
    NOT_OK    = 'not_ok'        # user origin measurable but not on the index point


def _round(value: Optional[float]) -> Optional[int]:
    return None if value is None else int(round(value))


def to_frame_coordinates(point: Sequence[float], bottom: Optional[float],
                         center: Optional[float], longitudinal: Optional[float]) -> FrameCoordinates:
    """
    Convert a patient point into frame coordinates (HFS/FFS).

    Args:
        point (Sequence[float]): (x, y, z) in mm.
        bottom (Optional[float]): Frame datum y.
        center (Optional[float]): Lateral frame centre x.
        longitudinal (Optional[float]): Measured Lng.

    Returns:
        FrameCoordinates: Lat/Vrt/Lng, None where the input is None.
    """
    x, y, _ = point
    lat = None if center is None else center + FRAME_LAT_CENTER - x
    vrt = None if bottom is None else bottom - y
    return FrameCoordinates(_round(lat), _round(vrt), _round(longitudinal))


def classify_point(frame: FrameCoordinates) -> CheckResult:
    """Check result of an arbitrary point: FOUND, NO_LONG or NOT_FOUND."""
    if frame.vrt is None or frame.lat is None:
        return CheckResult.NOT_FOUND
    if frame.lng is None:
        return CheckResult.NO_LONG
    return CheckResult.FOUND


def classify_user_origin(point: Sequence[float], frame: FrameCoordinates,
                         center: Optional[float], tolerance: float = POSITION_TOLERANCE) -> CheckResult:
    """
    Decide whether the user origin sits on the frame index point.

    Args:
        point (Sequence[float]): User origin (x, y, z) in mm.
        frame (FrameCoordinates): Measured frame coordinates of the user origin.
        center (Optional[float]): Lateral frame centre x.
        tolerance (float): Accepted deviation in mm (exclusive).

    Returns:
        CheckResult: See ``CheckResult``.
    """
    if frame.vrt is None or center is None:
        return CheckResult.NOT_FOUND
    at_index_plane = abs(frame.vrt - FRAME_VRT_INDEX) < tolerance
    if frame.lng is None and at_index_plane:
        return CheckResult.NO_LONG
    if at_index_plane and abs(point[0] - center) < tolerance:
        return CheckResult.FOUND
    return CheckResult.NOT_OK


def coordinates_from_origin(point: Sequence[float], origin: Sequence[float],
                            origin_lng: Optional[float] = None) -> FrameCoordinates:
    """
    Frame coordinates of ``point`` assuming the user origin is at Lat 300, Vrt 95.

    Lng is only derived when the user origin's own Lng (``origin_lng``) is known.
    """
    x, y, z    = point
    x0, y0, z0 = origin
    lat = -(x - x0 - FRAME_LAT_CENTER)
    vrt = abs(y - y0 - FRAME_VRT_INDEX)
    lng = None if origin_lng is None else abs(z - z0 + origin_lng)
    return FrameCoordinates(_round(lat), _round(vrt), _round(lng))


def coordinates_agree(a: FrameCoordinates, b: FrameCoordinates, axes: Sequence[str] = AXES,
                      tolerance: float = POSITION_TOLERANCE) -> bool:
    """True when every listed axis present in both differs by less than ``tolerance``."""
    for axis in axes:
        va, vb = getattr(a, axis), getattr(b, axis)
        if va is None or vb is None:
            continue
        if abs(va - vb) >= tolerance:
            return False
    return True


# (user origin result, point result) -> (axes reported from the origin, axes compared)
_ALL  = AXES
_TRV  = ('lat', 'vrt')
_NONE = ()

DECISION_TABLE: Dict[Tuple[CheckResult, CheckResult], Tuple[Tuple[str, ...], Tuple[str, ...]]] = {
    (CheckResult.FOUND, CheckResult.FOUND)        : (_ALL, _ALL),
    (CheckResult.FOUND, CheckResult.NO_LONG)      : (_ALL, _TRV),
    (CheckResult.FOUND, CheckResult.NOT_FOUND)    : (_ALL, _NONE),
    (CheckResult.NO_LONG, CheckResult.FOUND)      : (_TRV, _TRV),
    (CheckResult.NO_LONG, CheckResult.NO_LONG)    : (_TRV, _TRV),
    (CheckResult.NO_LONG, CheckResult.NOT_FOUND)  : (_TRV, _NONE),
    (CheckResult.NOT_FOUND, CheckResult.FOUND)    : (_TRV, _TRV),
    (CheckResult.NOT_FOUND, CheckResult.NO_LONG)  : (_TRV, _TRV),
    (CheckResult.NOT_FOUND, CheckResult.NOT_FOUND): (_TRV, _NONE),
    (CheckResult.NOT_OK, CheckResult.FOUND)       : (_NONE, _NONE),
    (CheckResult.NOT_OK, CheckResult.NO_LONG)     : (_NONE, _NONE),
    (CheckResult.NOT_OK, CheckResult.NOT_FOUND)   : (_NONE, _NONE),
}


@dataclass(frozen=True)
class PointComparison:
    """
    Measured and origin-derived coordinates of one point.

    Attributes:
        origin_result (CheckResult): Classification of the user origin.
        point_result (CheckResult): Classification of the point.
        measured (FrameCoordinates): Coordinates from image profiles.
        from_origin (FrameCoordinates): Coordinates derived from the user
            origin, restricted to the axes worth reporting.
        compared (Tuple[str, ...]): Axes that were compared.
        agree (Optional[bool]): Agreement of the compared axes, None when
            nothing was compared.
    """

    origin_result: CheckResult
    point_result: CheckResult
    measured: FrameCoordinates
    from_origin: FrameCoordinates
    compared: Tuple[str, ...]
    agree: Optional[bool]

    def to_dict(self) -> Dict:
        return {
            'origin_result': self.origin_result.value,
            'point_result' : self.point_result.value,
            'measured'     : self.measured.to_dict(),
            'from_origin'  : self.from_origin.to_dict(),
            'compared'     : list(self.compared),
            'agree'        : self.agree,
        }


def compare_with_origin(point: Sequence[float], measured: FrameCoordinates, origin: Sequence[float],
                        origin_result: CheckResult, origin_lng: Optional[int] = None) -> PointComparison:
    """
    Cross check a measured point against the values derived from the user origin.

    When the point and the user origin lie in the same slice, the
    origin-derived Lng repeats the same measurement and is not reported.
    """
    point_result = classify_point(measured)
    reported, compared = DECISION_TABLE[(origin_result, point_result)]

    lng_known = origin_result is CheckResult.FOUND
    derived   = coordinates_from_origin(point, origin, origin_lng if lng_known else None)
    if (origin_result, point_result) == (CheckResult.FOUND, CheckResult.FOUND) \
            and round(point[2]) == round(origin[2]):
        reported = _TRV

    agree = None
    if compared:
        agree = coordinates_agree(measured, derived, compared)
        if not agree:
            logger.warning("Discrepancy between measured %s and origin-derived %s", measured, derived)
    return PointComparison(origin_result, point_result, measured, derived.only(reported), compared, agree)
