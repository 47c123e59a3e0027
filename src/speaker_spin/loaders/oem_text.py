# src/speaker_spin/loaders/oem_text.py

"""
Manufacturer CEA2034 dumps: one text table per curve, with fixed file names.
"""

from typing import Dict

from ..core.cea2034 import (
    EARLY_REFLECTIONS_DI,
    LISTENING_WINDOW,
    ON_AXIS,
    SOUND_POWER,
    SOUND_POWER_DI,
    TOTAL_EARLY_REFLECTIONS,
)
from ..core.spin import Curve
from .archive import FileTable
from .text_table import read_curve

SIGNATURE = "On Axis.txt"

FILE_NAMES = {
    "On Axis.txt": ON_AXIS,
    "Listening Window.txt": LISTENING_WINDOW,
    "Early Reflections.txt": TOTAL_EARLY_REFLECTIONS,
    "Sound Power.txt": SOUND_POWER,
    "Sound Power DI.txt": SOUND_POWER_DI,
    "Early Reflections DI.txt": EARLY_REFLECTIONS_DI,
}


def matches(files: FileTable) -> bool:
    return SIGNATURE in files


def parse(files: FileTable) -> Dict[str, Curve]:
    return {
        curve: read_curve(files.text(name), name)
        for name, curve in FILE_NAMES.items()
        if name in files
    }
