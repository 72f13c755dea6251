# -----------------------------
# File: SBFCoordinates/__init__.py
# -----------------------------
"""Stereotactic Body Frame coordinates from CT image profiles.

Locates the frame in a CT volume by matching intensity gradient patterns on
sampled line profiles and reports frame coordinates (Lat, Vrt, Lng) of points
of interest. Only head-first and feet-first supine images are handled.
"""

from .analysis import SBFAnalyzer
from .io import load_volume, open_volume
from .patterns import GradientPattern, GradientPatternMatcher, Transition, pattern
from .profiles import Profile
from .utils.image import CTVolume
from .verification import CheckResult, FrameCoordinates

__all__ = [
    "SBFAnalyzer",
    "load_volume",
    "open_volume",
    "CTVolume",
    "GradientPattern",
    "GradientPatternMatcher",
    "Transition",
    "pattern",
    "Profile",
    "CheckResult",
    "FrameCoordinates",
]
