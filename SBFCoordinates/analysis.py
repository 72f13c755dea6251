# -----------------------------
# File: SBFCoordinates/analysis.py
# -----------------------------
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional, Sequence

from .bottom import BottomLocator
from .lateral import LateralLocator, VerticalDoubleChecker
from .longitudinal import LongitudinalLocator
from .utils.image import SUPPORTED_POSITIONS, is_supported_position
from .verification import (
    CheckResult,
    classify_point,
    classify_user_origin,
    compare_with_origin,
    to_frame_coordinates,
)

logger = logging.getLogger(__name__)


class SBFAnalyzer:
    """
    Central coordinator for Stereotactic Body Frame coordinate measurement.

    Measures frame coordinates (Lat, Vrt, Lng) of points of interest in a CT
    volume of a patient lying in the frame. Each point is handled by a
    transverse pass (datum, double check, side walls) followed by a
    longitudinal pass (wall fiducials). When a user origin is checked first,
    later points are also compared against coordinates derived from it.

    Attributes:
        volume: CT volume exposing ``geometry``, ``sample_profile`` and
            ``patient_position``.
        results (dict): JSON-compatible results keyed by point name.
        origin_result (Optional[CheckResult]): Classification of the user
            origin, once ``check_user_origin`` has run.
    """

    def __init__(self, volume, lateral_width: Optional[float] = None,
                 lateral_tolerance: Optional[float] = None):
        """Initialize analyzer."""
        self.volume                  = volume
        self.lateral_width           = lateral_width
        self.lateral_tolerance       = lateral_tolerance
        self.results: Dict[str, Any] = {}
        self._validate_inputs()

        self.user_origin: Optional[Sequence[float]] = None
        self.origin_result: Optional[CheckResult]   = None
        self.origin_lng: Optional[int]              = None

        # Locators of the last analyzed point, for plotting:
        self._bottom_locator       = None
        self._vertical_checker     = None
        self._lateral_locator      = None
        self._longitudinal_locator = None

    def _validate_inputs(self):
        if not hasattr(self.volume, 'geometry') or not hasattr(self.volume, 'sample_profile'):
            raise TypeError("volume must provide 'geometry' and 'sample_profile'")
        position = getattr(self.volume, 'patient_position', '')
        if not is_supported_position(position):
            raise ValueError(
                f"Patient position '{position}' not supported; only {', '.join(SUPPORTED_POSITIONS)}"
            )

    # ------------------ Transverse: datum and side walls ------------------
    def run_transverse(self, point: Sequence[float]) -> Dict[str, Any]:
        """
        Locate the frame datum and side walls in the slice of ``point``.

        Order: frame bottom, vertical double check 10 mm above it, side walls
        91.5 mm above it and their width check. ``bottom``, ``left`` and
        ``right`` are only reported when every step succeeds.

        Args:
            point (Sequence[float]): (x, y, z) in mm.

        Returns:
            dict: bottom, left, right, center, width (mm or None) and
            vertical_confirmed.
        """
        result = {
            'bottom': None, 'left': None, 'right': None,
            'center': None, 'width': None, 'vertical_confirmed': False,
        }

        self._bottom_locator   = BottomLocator(self.volume, point)
        self._vertical_checker = None
        self._lateral_locator  = None

        bottom = self._bottom_locator.locate()
        if bottom is None:
            logger.info("Frame bottom not found for point %s", tuple(point))
            return result

        self._vertical_checker = VerticalDoubleChecker(self.volume, point)
        result['vertical_confirmed'] = self._vertical_checker.check(bottom)
        if not result['vertical_confirmed']:
            logger.info("Frame bottom at y=%.1f failed the width double check", bottom)
            return result

        self._lateral_locator = LateralLocator(
            self.volume, point,
            expected_width=self.lateral_width,
            width_tolerance=self.lateral_tolerance,
        )
        bounds = self._lateral_locator.locate(bottom)
        if bounds is not None:
            result['width'] = bounds.width
        if not self._lateral_locator.validate(bounds):
            return result

        result.update(bottom=bottom, left=bounds.left, right=bounds.right, center=bounds.center)
        return result

    # ------------------ Longitudinal: wall fiducials ------------------
    def run_longitudinal(self, point: Sequence[float], transverse: Dict[str, Any]) -> Optional[float]:
        """
        Read the Lng coordinate at ``point`` using a finished transverse result.

        Returns:
            Optional[float]: Lng in mm, or None when the transverse result is
            incomplete or the fiducials cannot be read consistently.
        """
        self._longitudinal_locator = None
        if transverse.get('bottom') is None:
            return None
        self._longitudinal_locator = LongitudinalLocator(
            self.volume, point, transverse['bottom'], transverse['left'], transverse['right']
        )
        return self._longitudinal_locator.locate()

    # ------------------ Points ------------------
    def analyze_point(self, name: str, point: Sequence[float]) -> Dict[str, Any]:
        """
        Measure the frame coordinates of one point and store them.

        Populates:
            self.results[name]: point, transverse result, Lng, frame
            coordinates and check result.
        """
        point        = tuple(float(v) for v in point)
        transverse   = self.run_transverse(point)
        longitudinal = self.run_longitudinal(point, transverse)
        frame        = to_frame_coordinates(point, transverse['bottom'], transverse['center'], longitudinal)

        entry = {
            'point'       : list(point),
            'transverse'  : transverse,
            'longitudinal': longitudinal,
            'frame'       : frame.to_dict(),
            'result'      : classify_point(frame).value,
        }
        if self._bottom_locator is not None:
            entry['bottom_search'] = self._bottom_locator.to_dict()
        if self._longitudinal_locator is not None:
            entry['fiducials'] = self._longitudinal_locator.to_dict()['readings']
        self.results[name] = entry
        return entry

    def check_user_origin(self, point: Sequence[float], name: str = 'user_origin') -> CheckResult:
        """
        Measure the user origin and decide whether it sits on the index point.

        The classification and (when FOUND) the measured Lng of the user
        origin are kept for later ``compare_point`` calls.
        """
        entry  = self.analyze_point(name, point)
        frame  = to_frame_coordinates(entry['point'], entry['transverse']['bottom'],
                                      entry['transverse']['center'], entry['longitudinal'])
        result = classify_user_origin(entry['point'], frame, entry['transverse']['center'])

        self.user_origin   = tuple(entry['point'])
        self.origin_result = result
        self.origin_lng    = frame.lng if result is CheckResult.FOUND else None
        entry['result']    = result.value
        logger.info("User origin check: %s", result.value)
        return result

    def compare_point(self, name: str, point: Sequence[float]) -> Dict[str, Any]:
        """
        Measure a point and compare it with the values derived from the user origin.

        Raises:
            ValueError: If ``check_user_origin`` has not run yet.
        """
        if self.origin_result is None:
            raise ValueError("Check the user origin before comparing points against it.")
        entry = self.analyze_point(name, point)
        frame = to_frame_coordinates(entry['point'], entry['transverse']['bottom'],
                                     entry['transverse']['center'], entry['longitudinal'])
        comparison = compare_with_origin(entry['point'], frame, self.user_origin,
                                         self.origin_result, self.origin_lng)
        entry['comparison'] = comparison.to_dict()
        return entry

    def save_results_json(self, path):
        """
        Save all collected analysis results to a JSON file.

        Args:
            path (str | Path): Where to save the JSON output.

        Raises:
            ValueError: If no analysis results exist yet.
            OSError: If writing the file fails.
        """
        if not self.results:
            raise ValueError(
                "No results available. Analyze at least one point before saving."
            )

        out_path = Path(path)

        # Create parent directory if needed
        if out_path.parent != Path('.'):
            out_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with open(out_path, 'w', encoding='utf-8') as f:
                json.dump(self.results, f, indent=2)
        except OSError as e:
            raise OSError(f"Failed to write JSON to {out_path}: {e}")

        return out_path
