# src/speaker_spin/loaders/splhv.py

"""
SPL HV bundles: one text table per angle and plane.

Two naming conventions are in use, e.g. ``Speaker _H 30.txt`` and
``30 deg_H.txt``. Angles without a file are left out; the repair step
fills them in.
"""

import re
from typing import Tuple

from ..core.spin import Angle, RawSpin, SPIN_ANGLES
from .archive import FileTable
from .text_table import read_curve

SIGNATURE = re.compile(r"(?:_H.* 0|(?:^| )0.*_H)\.txt$")


def matches(files: FileTable) -> bool:
    return files.find(SIGNATURE.search) is not None


def angle_patterns(plane: str, angle: Angle):
    n = str(angle.degrees)
    return (
        re.compile(rf" _{plane}.* {re.escape(n)}\.txt$"),
        re.compile(rf"(?:^| ){re.escape(n)}(?![0-9]).*_{plane}\.txt$"),
    )


def read_plane(files: FileTable, plane: str) -> RawSpin:
    spin = {}
    for angle in SPIN_ANGLES:
        first, second = angle_patterns(plane, angle)
        name = files.find(lambda f: first.search(f) or second.search(f))
        if name is None:
            continue
        spin[angle] = read_curve(files.text(name), name)
    return spin


def parse(files: FileTable) -> Tuple[RawSpin, RawSpin]:
    return read_plane(files, "H"), read_plane(files, "V")
