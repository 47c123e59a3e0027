# src/speaker_spin/eq_control/apply.py

"""
Simulate an EQ on a measured spin: the filter response in dB is added to
every curve of both planes and the pair is leveled again.
"""

from typing import Dict, Tuple

import numpy as np

from .. import utils
from ..core.repair import level
from ..core.spin import AngularGrid
from ..errors import MalformedRecordError
from .iir import BiquadChain

OVERALL = "Overall"


def iir_curves(freq, chain: BiquadChain) -> Dict[str, np.ndarray]:
    """
    dB response of the chain over ``freq``: the cascade as ``Overall`` and each
    section alone as ``Filter 1`` .. ``Filter N``.
    """
    freq = np.asarray(freq, dtype=float)
    mag, _ = chain.transfer(freq)
    curves = {OVERALL: utils.lin2db(mag)}
    for i in range(chain.biquad_count):
        section_mag, _ = chain.apply_biquad(freq, i)
        curves[f"Filter {i + 1}"] = utils.lin2db(section_mag)
    return curves


def apply_eq(horizontal: AngularGrid, vertical: AngularGrid,
             chain: BiquadChain) -> Tuple[AngularGrid, AngularGrid]:
    """
    Add the chain's overall dB response to every curve of both grids, then
    re-level the pair so On-Axis averages 0 dB over the leveling band again.
    """
    if not np.array_equal(horizontal.freq, vertical.freq):
        raise MalformedRecordError("Inconsistent use of frequencies across datasets")
    eq_db = iir_curves(horizontal.freq, chain)[OVERALL]
    h = horizontal.map_spl(lambda _, spl: spl + eq_db)
    v = vertical.map_spl(lambda _, spl: spl + eq_db)
    return level(h, v)
