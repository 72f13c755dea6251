# -----------------------------
# File: SBFCoordinates/io.py
# -----------------------------
"""CT series I/O.

Reads a directory of single-slice CT DICOM files with ``pydicom`` into a
volume indexed [z, y, x] in HU, together with the geometry needed to map
patient coordinates onto voxels.
"""
import logging
from pathlib import Path
from typing import Dict, List, Sequence, Tuple, Union

import numpy as np
import pydicom
from pydicom.errors import InvalidDicomError

from .utils.image import CTVolume

logger = logging.getLogger(__name__)


def _read_datasets(directory: Path) -> List[pydicom.Dataset]:
    """Read every DICOM file below ``directory``; non-DICOM files are skipped."""
    datasets = []
    for f_path in sorted(p for p in directory.rglob('*') if p.is_file()):
        try:
            datasets.append(pydicom.dcmread(f_path))
        except InvalidDicomError:
            logger.debug("Skipping non-DICOM file %s", f_path)
    return datasets


def _slice_spacing(positions: Sequence[float], fallback: float) -> float:
    """Slice spacing from sorted slice positions (median step), else ``fallback``."""
    if len(positions) < 2:
        return float(fallback)
    steps = np.diff(np.asarray(positions, dtype=float))
    spacing = float(np.median(steps))
    if spacing <= 0:
        raise ValueError("CT slices share the same position; cannot derive slice spacing")
    if not np.allclose(steps, spacing, atol=0.01):
        logger.warning("Uneven slice spacing (%.2f - %.2f mm); using median %.2f mm",
                       steps.min(), steps.max(), spacing)
    return spacing


def volume_from_datasets(datasets: Sequence[pydicom.Dataset]) -> Tuple[np.ndarray, Dict]:
    """
    Stack CT slices into a volume.

    Args:
        datasets (Sequence[pydicom.Dataset]): Slices in any order; non-CT
            datasets are ignored.

    Returns:
        Tuple[np.ndarray, dict]: Volume [z, y, x] in HU and metadata with
        ``Origin`` (x, y, z of the first voxel centre), ``Spacing`` (x, y, z),
        ``PatientPosition`` and ``Modality``.

    Raises:
        ValueError: If no CT slice is present or slice sizes differ.
    """
    slices = [ds for ds in datasets
              if getattr(ds, 'Modality', None) == 'CT' and hasattr(ds, 'ImagePositionPatient')]
    if not slices:
        raise ValueError("No CT slices with ImagePositionPatient found")
    slices.sort(key=lambda ds: float(ds.ImagePositionPatient[2]))

    first = slices[0]
    shape = (int(first.Rows), int(first.Columns))
    if any((int(ds.Rows), int(ds.Columns)) != shape for ds in slices):
        raise ValueError("CT slices have inconsistent dimensions")

    volume = np.zeros((len(slices),) + shape, dtype=float)
    for i, ds in enumerate(slices):
        arr = ds.pixel_array.astype(float)
        slope     = float(getattr(ds, 'RescaleSlope', 1.0))
        intercept = float(getattr(ds, 'RescaleIntercept', 0.0))
        volume[i] = arr * slope + intercept

    # PixelSpacing is [row spacing (y), column spacing (x)]
    row_spacing, col_spacing = (float(v) for v in first.PixelSpacing)
    z_positions = [float(ds.ImagePositionPatient[2]) for ds in slices]
    z_spacing   = _slice_spacing(z_positions, getattr(first, 'SliceThickness', 1.0))

    meta = {
        "Origin": tuple(float(v) for v in first.ImagePositionPatient),
        "Spacing": (col_spacing, row_spacing, z_spacing),
        "PatientPosition": str(getattr(first, 'PatientPosition', '')),
        "Modality": 'CT',
    }
    logger.info("Loaded %d CT slices %dx%d, spacing %s", len(slices), shape[1], shape[0], meta["Spacing"])
    return volume, meta


def load_volume(path: Union[str, Path]) -> Tuple[np.ndarray, Dict]:
    """Load a CT series from a directory (or a single DICOM file).

    Args:
        path (str | Path): Directory containing the series.

    Returns:
        Tuple[np.ndarray, dict]: See ``volume_from_datasets``.

    Raises:
        FileNotFoundError: If ``path`` does not exist.
        ValueError: If no CT slices are found.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"No such file or directory: {path}")
    datasets = [pydicom.dcmread(path)] if path.is_file() else _read_datasets(path)
    return volume_from_datasets(datasets)


def open_volume(path: Union[str, Path]) -> CTVolume:
    """Load a CT series and wrap it as a ``CTVolume``."""
    volume, meta = load_volume(path)
    return CTVolume(volume, meta["Origin"], meta["Spacing"], meta["PatientPosition"] or 'UNKNOWN')
