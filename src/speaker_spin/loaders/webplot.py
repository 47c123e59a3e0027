# src/speaker_spin/loaders/webplot.py

"""
WebPlotDigitizer project export (``wpd.json``) of a CEA2034 chart.

Only some of the curves may have been digitized; whatever is found is
returned and the rest is left to the caller to mark missing.
"""

import json
import logging
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
from ..errors import MalformedRecordError
from .archive import FileTable

logger = logging.getLogger(__name__)

SIGNATURE = "wpd.json"

# (lower case long names, exact short codes) -> curve
DATASET_NAMES = (
    (("on axis",), ("OA", "ON"), ON_AXIS),
    (("listening window",), ("LW",), LISTENING_WINDOW),
    (("early reflections",), ("ER",), TOTAL_EARLY_REFLECTIONS),
    (("sound power",), ("SP",), SOUND_POWER),
    (("sound power di",), ("SPD",), SOUND_POWER_DI),
    (("early reflections di", "first reflections di"), ("ERD",), EARLY_REFLECTIONS_DI),
)


def matches(files: FileTable) -> bool:
    return files.find(lambda name: name.endswith(SIGNATURE)) is not None


def curve_name(dataset_name: str):
    """CEA2034 curve a digitized dataset stands for, or None."""
    for long_names, codes, curve in DATASET_NAMES:
        if dataset_name.strip().lower() in long_names or dataset_name.strip() in codes:
            return curve
    return None


def read_webplot_digitizer(data: bytes, source: str = SIGNATURE) -> Dict[str, Curve]:
    try:
        project = json.loads(data.decode("utf-8-sig"))
        collection = project["datasetColl"]
    except (ValueError, KeyError, TypeError) as e:
        raise MalformedRecordError(f"{source}: not a WebPlotDigitizer project: {e}") from e
    if not isinstance(collection, list):
        raise MalformedRecordError(f"{source}: datasetColl is not a list")

    curves = {}
    for i, dataset in enumerate(collection):
        if not isinstance(dataset, dict):
            raise MalformedRecordError(f"{source}: dataset {i} is not an object")
        name = dataset.get("name", "")
        if not isinstance(name, str):
            raise MalformedRecordError(f"{source}: dataset {i} has no usable name: {name!r}")
        curve = curve_name(name)
        if curve is None:
            logger.warning("Unrecognized measurement %r in %s", name, source)
            continue
        try:
            pairs = [(float(point["value"][0]), float(point["value"][1])) for point in dataset.get("data", [])]
        except (KeyError, IndexError, TypeError, ValueError) as e:
            raise MalformedRecordError(f"{source}: bad data point in dataset {name!r}: {e}") from e
        curves[curve] = Curve.from_pairs(pairs)
    return curves


def parse(files: FileTable) -> Dict[str, Curve]:
    name = files.find(lambda f: f.endswith(SIGNATURE))
    return read_webplot_digitizer(files.read(name), name)
