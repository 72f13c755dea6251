# -----------------------------
# File: SBFCoordinates/utils/image.py
# -----------------------------
"""CT volume geometry and line-profile sampling.

Provides the image access used by every locator: per-axis resolution and
extent, and ``sample_profile`` which interpolates intensities along a
straight line between two 3D points (endpoints included).
"""
from dataclasses import dataclass
from typing import Sequence, Tuple
import numpy as np
from scipy import ndimage

from ..profiles import ImageProfile

SUPPORTED_POSITIONS = ('HFS', 'FFS')


def is_supported_position(position) -> bool:
    """True for head-first and feet-first supine DICOM PatientPosition values."""
    return str(position).upper() in SUPPORTED_POSITIONS


@dataclass(frozen=True)
class ImageGeometry:
    """
    Voxel grid geometry in patient (DICOM) coordinates.

    Attributes:
        origin (Tuple[float, float, float]): (x, y, z) of the centre of the first voxel in mm.
        spacing (Tuple[float, float, float]): (x, y, z) resolution in mm/voxel.
        size (Tuple[int, int, int]): Number of voxels along (x, y, z).
    """

    origin: Tuple[float, float, float]
    spacing: Tuple[float, float, float]
    size: Tuple[int, int, int]

    def __post_init__(self):
        if len(self.origin) != 3 or len(self.spacing) != 3 or len(self.size) != 3:
            raise ValueError("origin, spacing and size must have 3 components")
        if any(float(s) <= 0 for s in self.spacing):
            raise ValueError("spacing must be positive")
        object.__setattr__(self, 'origin', tuple(float(v) for v in self.origin))
        object.__setattr__(self, 'spacing', tuple(float(v) for v in self.spacing))
        object.__setattr__(self, 'size', tuple(int(v) for v in self.size))

    @property
    def x_res(self) -> float:
        return self.spacing[0]

    @property
    def y_res(self) -> float:
        return self.spacing[1]

    @property
    def z_res(self) -> float:
        return self.spacing[2]

    def corner(self, axis: int) -> float:
        """Outer edge of the first voxel along ``axis`` (not its centre)."""
        return self.origin[axis] - self.spacing[axis] / 2

    def extent(self, axis: int) -> float:
        """Total image length along ``axis`` in mm."""
        return self.spacing[axis] * self.size[axis]

    def center(self, axis: int) -> float:
        return self.corner(axis) + self.extent(axis) / 2


class CTVolume:
    """
    3D CT image with a linear line-profile sampler.

    Args:
        array (np.ndarray): Voxel intensities indexed [z, y, x].
        origin (Sequence[float]): (x, y, z) of the first voxel centre in mm.
        spacing (Sequence[float]): (x, y, z) voxel size in mm.
        patient_position (str): DICOM PatientPosition, e.g. 'HFS'.
    """

    def __init__(self, array: np.ndarray, origin: Sequence[float], spacing: Sequence[float],
                 patient_position: str = 'HFS'):
        self.array            = np.asarray(array, dtype=float)
        self.patient_position = str(patient_position).upper()
        self._validate_inputs()
        nz, ny, nx    = self.array.shape
        self.geometry = ImageGeometry(tuple(origin), tuple(spacing), (nx, ny, nz))

    def _validate_inputs(self):
        if self.array.ndim != 3:
            raise ValueError("array must be a 3D array indexed [z, y, x]")
        if min(self.array.shape) < 1:
            raise ValueError("array must not be empty")

    @property
    def is_supported_orientation(self) -> bool:
        """Only head-first and feet-first supine images can be analyzed."""
        return is_supported_position(self.patient_position)

    def sample_profile(self, start: Sequence[float], end: Sequence[float], samples: int) -> ImageProfile:
        """
        Sample intensities linearly between two points, both included.

        Args:
            start (Sequence[float]): (x, y, z) start point in mm.
            end (Sequence[float]): (x, y, z) end point in mm.
            samples (int): Number of samples (>= 2).

        Returns:
            ImageProfile: Sample points and intensities; points outside the
            volume get NaN.
        """
        if samples < 2:
            raise ValueError("samples must be at least 2")
        points = np.linspace(np.asarray(start, dtype=float), np.asarray(end, dtype=float), int(samples))

        origin  = np.asarray(self.geometry.origin)
        spacing = np.asarray(self.geometry.spacing)
        index   = (points - origin) / spacing          # fractional (ix, iy, iz)
        coords  = index[:, ::-1].T                     # map_coordinates wants [z, y, x]

        values = ndimage.map_coordinates(self.array, coords, order=1, mode='constant', cval=np.nan)
        return ImageProfile(points, values)
