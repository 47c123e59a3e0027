# src/speaker_spin/core/repair.py

"""
Grid repair and level normalization.

Vendors do not always measure every angle, or even both planes. The repair
heuristics fill those gaps from neighbouring data and report that they did,
so every value derived from a repaired grid can be flagged as busted.
"""

import logging
from typing import Tuple

import numpy as np

from .. import config
from .. import utils
from ..errors import MalformedRecordError
from .spin import Angle, AngularGrid, RawSpin, SPIN_ANGLES

logger = logging.getLogger(__name__)


def repair(horizontal: RawSpin, vertical: RawSpin) -> Tuple[RawSpin, RawSpin, bool]:
    """
    Fill in missing angles of a raw horizontal/vertical pair.

    The steps run in a fixed order, each seeing the result of the previous one:
      1. A plane without any data becomes a copy of the other plane
         (the speaker is assumed rotationally symmetric).
      2. A missing angle takes the curve of its mirror angle, if measured
         (left/right symmetry). On-Axis and 180° have no mirror.
      3. Walking away from On-Axis towards 180° and towards -170°, a missing
         angle takes the curve of the nearest angle seen before it.

    The inputs are left untouched.

    Returns:
        (horizontal, vertical, was_repaired)
    """
    spins = [dict(horizontal), dict(vertical)]
    was_repaired = False

    # --- 1. Missing plane ---
    if not spins[0] and not spins[1]:
        raise MalformedRecordError("No measurement data found in either plane")
    if not spins[0]:
        spins[0] = dict(spins[1])
        was_repaired = True
        logger.debug("Horizontal plane missing, cloned from vertical")
    elif not spins[1]:
        spins[1] = dict(spins[0])
        was_repaired = True
        logger.debug("Vertical plane missing, cloned from horizontal")

    # --- 2. Mirror from the other side ---
    for spin in spins:
        for angle in SPIN_ANGLES:
            mirror = angle.mirror
            if mirror is None:
                continue
            if angle not in spin and mirror in spin:
                spin[angle] = spin[mirror]
                was_repaired = True

    # --- 3. Nearest neighbour hold, outward from the axis ---
    for spin in spins:
        if Angle.ON_AXIS not in spin:
            raise MalformedRecordError(
                f"Missing a dataset: On-Axis; found: {[a.label for a in spin]}")
        for direction in (range(10, 190, 10), range(-10, -180, -10)):
            nearest = spin[Angle.ON_AXIS]
            for degrees in direction:
                angle = Angle(degrees)
                if angle in spin:
                    nearest = spin[angle]
                else:
                    spin[angle] = nearest
                    was_repaired = True

    return spins[0], spins[1], was_repaired


def finalize(horizontal: RawSpin, vertical: RawSpin, is_busted: bool = False) -> Tuple[AngularGrid, AngularGrid]:
    """
    Turn a repaired raw pair into two grids over one shared frequency axis.

    Any missing angle or frequency mismatch at this point is fatal.
    """
    grids = (
        AngularGrid.from_curves(horizontal, is_busted),
        AngularGrid.from_curves(vertical, is_busted),
    )
    if not np.array_equal(grids[0].freq, grids[1].freq):
        raise MalformedRecordError("Inconsistent use of frequencies across datasets")
    return grids


def on_axis_level(*grids: AngularGrid) -> float:
    """Mean On-Axis SPL over the leveling band, pooled over all given grids."""
    values = []
    for grid in grids:
        mask = utils.band_mask(grid.freq, config.LEVEL_MIN_HZ, config.LEVEL_MAX_HZ)
        values.append(grid[Angle.ON_AXIS][mask])
    return utils.mean(np.concatenate(values)) if values else 0.0


def level(*grids: AngularGrid) -> Tuple[AngularGrid, ...]:
    """
    Shift every curve of every grid so the mean On-Axis level over
    300-3000 Hz becomes 0 dB.

    One measurement has two On-Axis curves (horizontal and vertical); both
    contribute to the mean, and the same offset applies to both grids.
    """
    offset = on_axis_level(*grids)
    return tuple(grid.map_spl(lambda _, spl: spl - offset) for grid in grids)


def normalized_to_on_axis(grid: AngularGrid) -> AngularGrid:
    """
    Express every angle relative to On-Axis; On-Axis itself becomes 0 dB.
    """
    on_axis = grid[Angle.ON_AXIS]
    return grid.map_spl(lambda _, spl: spl - on_axis)
