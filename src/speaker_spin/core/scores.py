# src/speaker_spin/core/scores.py

"""
Preference rating components computed from a CEA2034 curve set:
low frequency extension, narrow band deviation, smoothness, flatness and
the composite tonality score.
"""

import math
from dataclasses import asdict, dataclass

import numpy as np

from .. import config
from .. import utils
from .cea2034 import (
    Cea2034,
    LISTENING_WINDOW,
    ON_AXIS,
    SOUND_POWER,
    estimated_in_room,
)


@dataclass(frozen=True)
class Scores:
    lfx_hz: float
    nbd_on_axis: float
    nbd_pred_in_room: float
    sm_pred_in_room: float
    tonality: float
    tonality_no_lfx_limit: float
    flatness: float
    is_busted: bool

    def to_dict(self):
        """Serialize with the camelCase keys used in the published metadata."""
        names = {
            "lfx_hz": "lfxHz",
            "nbd_on_axis": "nbdOnAxis",
            "nbd_pred_in_room": "nbdPredInRoom",
            "sm_pred_in_room": "smPredInRoom",
            "tonality": "tonality",
            "tonality_no_lfx_limit": "tonalityNoLfxLimit",
            "flatness": "flatness",
            "is_busted": "isBusted",
        }
        return {names[k]: v for k, v in asdict(self).items()}


def octave(count: int) -> np.ndarray:
    """
    1/N octave bands around the 1290 Hz reference.

    N >= 2; bands get narrower as N increases.
    https://courses.physics.illinois.edu/phys406/sp2017/Lab_Handouts/Octave_Bands.pdf

    Returns:
        An array of [low, center, high] rows.
    """
    p = 2 ** (1 / count)
    p_band = 2 ** (1 / (2 * count))
    o_iter = (count * 10 + 1) // 2
    center = config.NBD_REFERENCE_HZ * p ** np.arange(-o_iter, o_iter + 1)
    return np.column_stack((center / p_band, center, center * p_band))


def mean_over_range(freq, spl, min_freq, max_freq) -> float:
    mask = utils.band_mask(freq, min_freq, max_freq)
    return utils.mean(np.asarray(spl)[mask])


def compute_lfx_hz(freq, lw, sp) -> float:
    """
    Low frequency extension.

    The reference is the mean Listening Window level over 300 Hz - 10 kHz,
    minus 6 dB. Sound Power is walked downward from 300 Hz; the first point
    below the reference marks the crossing, estimated halfway to the point
    above it. Without a crossing the speaker is credited with the 14.5 Hz
    floor, whatever the lowest measured frequency.
    """
    freq = np.asarray(freq, dtype=float)
    sp = np.asarray(sp, dtype=float)
    lw_ref = mean_over_range(freq, lw, config.LFX_REF_MIN_HZ, config.LFX_REF_MAX_HZ) - config.LFX_DROP_DB

    for i in range(len(freq) - 2, -1, -1):
        if freq[i] > config.LFX_SCAN_MAX_HZ:
            continue
        if sp[i] < lw_ref:
            return float((freq[i] + freq[i + 1]) / 2)
    return config.LFX_MIN_HZ


def nbd(freq, spl) -> float:
    """
    Narrow band deviation.

    The mean, over the 1/2-octave bands between 100 Hz and 12 kHz, of the
    mean absolute deviation of each band's samples from the band average.
    Bands holding no samples do not count.
    """
    freq = np.asarray(freq, dtype=float)
    spl = np.asarray(spl, dtype=float)
    if freq.size == 0:
        return 0.0
    band_min_freq = max(config.NBD_MIN_HZ, float(freq.min()))
    deviations = []
    for low, center, high in octave(config.NBD_OCTAVE_FRACTION):
        if center < band_min_freq or center > config.NBD_MAX_HZ:
            continue
        values = spl[(freq >= low) & (freq < high)]
        if values.size == 0:
            continue
        deviations.append(np.mean(np.abs(values - np.mean(values))))
    return utils.mean(deviations)


def sm(freq, spl) -> float:
    """
    Smoothness.

    The coefficient of determination r^2 of a least squares line through
    SPL against ln(frequency) over 100 Hz - 16 kHz. Values range from 0 to 1,
    larger meaning smoother. A flat curve fits perfectly and scores 1.
    """
    freq = np.asarray(freq, dtype=float)
    mask = utils.band_mask(freq, config.SM_MIN_HZ, config.SM_MAX_HZ)
    r = utils.pearson_r(np.log(freq[mask]), np.asarray(spl, dtype=float)[mask])
    if math.isnan(r):
        return 1.0
    return r ** 2


def flatness(freq, on_axis) -> float:
    """Largest deviation of On-Axis from its own mean over 300 Hz - 5 kHz."""
    mask = utils.band_mask(freq, config.MIDRANGE_MIN_HZ, config.MIDRANGE_MAX_HZ)
    values = np.asarray(on_axis, dtype=float)[mask]
    if values.size == 0:
        return 0.0
    return float(np.max(np.abs(values - np.mean(values))))


def tonality(nbd_on_axis, nbd_pred_in_room, lfx_hz, sm_pred_in_room) -> float:
    return (config.TONALITY_INTERCEPT
            - config.TONALITY_NBD_ON_AXIS * nbd_on_axis
            - config.TONALITY_NBD_PRED_IN_ROOM * nbd_pred_in_room
            - config.TONALITY_LFX * math.log10(lfx_hz)
            + config.TONALITY_SM_PRED_IN_ROOM * sm_pred_in_room)


def get_scores(cea2034: Cea2034) -> Scores:
    """
    Compute every score from a CEA2034 set.

    Partial sets still score: without Listening Window or Sound Power the
    LFX falls back to its floor, and the in-room estimate uses whatever
    curves are present. Such sets are always busted.
    """
    freq = cea2034.freq
    on_axis = cea2034.curve(ON_AXIS)
    lw = cea2034.get(LISTENING_WINDOW)
    sp = cea2034.get(SOUND_POWER)
    pir = estimated_in_room(cea2034)

    if lw is not None and sp is not None:
        lfx_hz = compute_lfx_hz(freq, lw, sp)
    else:
        lfx_hz = config.LFX_MIN_HZ
    nbd_on_axis = nbd(freq, on_axis)
    nbd_pred_in_room = nbd(freq, pir)
    sm_pred_in_room = sm(freq, pir)

    return Scores(
        lfx_hz=lfx_hz,
        nbd_on_axis=nbd_on_axis,
        nbd_pred_in_room=nbd_pred_in_room,
        sm_pred_in_room=sm_pred_in_room,
        tonality=tonality(nbd_on_axis, nbd_pred_in_room, lfx_hz, sm_pred_in_room),
        tonality_no_lfx_limit=tonality(nbd_on_axis, nbd_pred_in_room, config.LFX_MIN_HZ, sm_pred_in_room),
        flatness=flatness(freq, on_axis),
        is_busted=cea2034.is_busted,
    )
