"""Analytic CT phantom of the body frame used by the locator tests.

The phantom is evaluated exactly at every sample point (no voxel grid), so
expected positions follow directly from the edges below:

* frame bottom: outer shell y in (76.5, 80.5), inner shell y in (62.5, 64.5),
  |x| < 190 -> datum y = 63
* sloped walls (40 <= y < 62.5): shell |x| in (194.5, 196.5), inner wall
  |x| in (167.5, 174.5) -> width 348 at y = 53
* vertical walls (y < 40): shell |x| in (234.5, 236.5), inner wall |x| in
  (214.5, 221.5) -> walls at x = -221 / +221, width 442
* fiducial rods inside the vertical walls at |x| in (216, 218), 2000 HU where
  a tick is present; zf = z - z_zero, N = floor(zf / 100), d = zf - 100 N:
    - decimeter ticks j < N at y in (-20.25 + 5 j, -18.25 + 5 j)
    - index tick at y in (-33.25, -31.25)
    - diagonal at y in (-33.25 - d, -31.25 - d)
    - top tick at y in (-133.25, -131.25)
"""
import numpy as np

from SBFCoordinates.profiles import ImageProfile
from SBFCoordinates.utils.image import ImageGeometry

WALL = 500.0
ROD  = 2000.0


class FramePhantom:
    """
    Args:
        z_zero (float): z where the frame Lng is 0.
        right_shift (float): Moves the right vertical wall outward (mm).
        hole (bool): Removes the frame bottom near the image centre.
        patient_position (str): Reported DICOM PatientPosition.
    """

    def __init__(self, z_zero=0.0, right_shift=0.0, hole=False, patient_position='HFS'):
        self.z_zero           = float(z_zero)
        self.right_shift      = float(right_shift)
        self.hole             = hole
        self.patient_position = patient_position
        self.geometry = ImageGeometry(origin=(-249.5, -199.5, -100.0), spacing=(1.0, 1.0, 1.0),
                                      size=(500, 300, 700))

    def _ticks(self, y, z):
        zf = z - self.z_zero
        n  = np.floor(zf / 100.0)
        d  = zf - 100.0 * n

        u = y + 20.25
        j = np.floor(u / 5.0)
        lower = (j >= 0) & (j < n) & ((u - 5.0 * j) > 0) & ((u - 5.0 * j) < 2)

        index    = (y > -33.25) & (y < -31.25)
        diagonal = (y > -33.25 - d) & (y < -31.25 - d)
        top      = (y > -133.25) & (y < -131.25)
        return lower | index | diagonal | top

    def intensity(self, points):
        points = np.asarray(points, dtype=float)
        x, y, z = points[:, 0], points[:, 1], points[:, 2]
        values = np.zeros(len(points))
        ax = np.abs(x)

        vertical = y < 40
        sloped   = (y >= 40) & (y < 62.5)
        axv = np.abs(np.where(x > 0, x - self.right_shift, x))

        values[vertical & (axv > 234.5) & (axv < 236.5)] = WALL
        values[vertical & (axv > 214.5) & (axv < 221.5)] = WALL
        values[sloped & (ax > 194.5) & (ax < 196.5)] = WALL
        values[sloped & (ax > 167.5) & (ax < 174.5)] = WALL

        floor = ax < 190
        if self.hole:
            floor &= ax >= 50
        values[floor & (y > 76.5) & (y < 80.5)] = WALL
        values[floor & (y > 62.5) & (y < 64.5)] = WALL

        rods = vertical & (axv > 216) & (axv < 218) & self._ticks(y, z)
        values[rods] = ROD

        geo = self.geometry
        outside = np.zeros(len(points), dtype=bool)
        for axis, coord in enumerate((x, y)):
            lo = geo.corner(axis)
            outside |= (coord < lo) | (coord > lo + geo.extent(axis))
        values[outside] = np.nan
        return values

    def sample_profile(self, start, end, samples):
        points = np.linspace(np.asarray(start, dtype=float), np.asarray(end, dtype=float), int(samples))
        return ImageProfile(points, self.intensity(points))


def frame_point(x=0.0, vrt=95.0, z=230.0, bottom=63.0):
    """Patient point at frame height ``vrt`` above the phantom datum."""
    return (x, bottom - vrt, z)
