# src/speaker_spin/loaders/gll.py

"""
GLL exports: one text table per microphone position, named
``...-M{meridian}-P{polar}.txt``.

The horizontal plane is meridian 0 and the vertical plane meridian 90;
negative angles sit on the opposite meridian (+180). Every angle must be
present.
"""

from typing import Tuple

from ..core.spin import Angle, RawSpin, SPIN_ANGLES
from ..errors import MalformedRecordError
from .archive import FileTable
from .text_table import read_curve

SIGNATURE = "-M0-P0.txt"
MERIDIANS = {"H": 0, "V": 90}


def matches(files: FileTable) -> bool:
    return files.find(lambda name: name.endswith(SIGNATURE)) is not None


def file_suffix(plane: str, angle: Angle) -> str:
    meridian = MERIDIANS[plane]
    if angle.degrees < 0:
        meridian += 180
    return f"-M{meridian}-P{abs(angle.degrees)}.txt"


def read_plane(files: FileTable, plane: str) -> RawSpin:
    spin = {}
    for angle in SPIN_ANGLES:
        suffix = file_suffix(plane, angle)
        name = files.find(lambda f: f.endswith(suffix))
        if name is None:
            raise MalformedRecordError(f"Was not able to find measurement angle {suffix} in GLL HV data")
        spin[angle] = read_curve(files.text(name), name)
    return spin


def parse(files: FileTable) -> Tuple[RawSpin, RawSpin]:
    return read_plane(files, "H"), read_plane(files, "V")
