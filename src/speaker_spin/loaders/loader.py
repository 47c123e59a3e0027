# src/speaker_spin/loaders/loader.py

"""
Entry points turning a measurement archive into leveled spins or a CEA2034
curve set.

The format is recognized from file names alone, trying each format in a
fixed order; the first one that matches is the only one attempted.
"""

import logging
from typing import Optional, Tuple

from ..core.cea2034 import Cea2034, compute_cea2034
from ..core.repair import finalize, level, repair
from ..core.spin import AngularGrid, SPIN_ANGLES
from ..errors import UnknownFormatError
from . import gll, klippel, oem_text, princeton, splhv, webplot
from .archive import ArchiveData, FileTable, open_archive

logger = logging.getLogger(__name__)

SPIN_FORMATS = (
    ("Klippel", klippel),
    ("SPL HV", splhv),
    ("GLL", gll),
    ("Princeton", princeton),
)

CEA2034_FORMATS = (
    ("WebPlotDigitizer", webplot),
    ("OEM text", oem_text),
)


def _detect(files: FileTable, formats):
    for name, fmt in formats:
        if fmt.matches(files):
            return name, fmt
    raise UnknownFormatError(f"Unknown file format: didn't recognize any files: {files.names}")


def process_spinorama_file(data: ArchiveData) -> Tuple[AngularGrid, AngularGrid]:
    """
    Read a full-spin archive.

    The raw planes are repaired, checked for completeness and leveled so the
    mean On-Axis SPL over 300-3000 Hz is 0 dB.

    Args:
        data: Zip archive bytes, or a mapping of file names to contents.

    Returns:
        (horizontal, vertical) grids; both are busted if any repair was needed.

    Raises:
        UnknownFormatError: No full-spin format matches the file names.
        MalformedRecordError: The matched format could not be read.
    """
    files = open_archive(data)
    name, fmt = _detect(files, SPIN_FORMATS)
    horizontal, vertical = fmt.parse(files)
    horizontal, vertical, was_repaired = repair(horizontal, vertical)
    h, v = level(*finalize(horizontal, vertical, was_repaired))

    logger.debug("%s: %d datapoints loaded over %d frequencies covering range %g Hz - %g Hz%s",
                 name, h.freq.size * len(SPIN_ANGLES) * 2, h.freq.size, h.freq[0], h.freq[-1],
                 " (repaired)" if was_repaired else "")
    return h, v


def process_cea2034_file(data: ArchiveData) -> Cea2034:
    """
    Read an archive holding pre-computed CEA2034 curves.

    Curves the vendor did not supply are marked missing, which makes the set
    busted. On-Axis is required.
    """
    files = open_archive(data)
    name, fmt = _detect(files, CEA2034_FORMATS)
    cea2034 = Cea2034.from_curves(fmt.parse(files))
    logger.debug("%s: %d frequencies, missing curves: %s",
                 name, cea2034.freq.size, sorted(cea2034.missing) or "none")
    return cea2034


def load_measurement(data: ArchiveData) -> Tuple[Cea2034, Optional[Tuple[AngularGrid, AngularGrid]]]:
    """
    Read any supported archive.

    Returns:
        (cea2034, spins) where spins is None for pre-computed CEA2034 archives.
    """
    files = open_archive(data)
    try:
        spins = process_spinorama_file(files)
    except UnknownFormatError:
        return process_cea2034_file(files), None
    return compute_cea2034(*spins), spins


def load_cea2034(data: ArchiveData) -> Cea2034:
    """CEA2034 curves of any supported archive, computed from the spins when available."""
    cea2034, _ = load_measurement(data)
    return cea2034
