# src/speaker_spin/loaders/princeton.py

"""
Princeton 3D3A impulse response sets: ``*_H_IR.mat`` and ``*_V_IR.mat``.

Each file holds a sampling rate matrix ``fs`` and an ``IR`` matrix with one
impulse response per row, the rows spread evenly over a full turn. Rows on
the 10 degree grid are transformed to the frequency domain and resampled on
a logarithmic axis.
"""

import logging
import math
import re
from typing import Tuple

import numpy as np
from scipy.fft import fft

from .. import config
from .. import utils
from ..core.spin import Angle, Curve, RawSpin
from ..errors import MalformedRecordError
from .archive import FileTable
from .mat4 import read_mat4

logger = logging.getLogger(__name__)

HORIZONTAL_SUFFIX = "_H_IR.mat"
VERTICAL_SUFFIX = "_V_IR.mat"


def matches(files: FileTable) -> bool:
    return files.find(lambda name: name.endswith("IR.mat")) is not None


def log_frequencies() -> np.ndarray:
    """Resampling axis: fixed points per octave from IR_MIN_FREQ up to (excluding) IR_MAX_FREQ."""
    count = math.ceil(config.IR_POINTS_PER_OCTAVE * math.log2(config.IR_MAX_FREQ / config.IR_MIN_FREQ))
    freqs = config.IR_MIN_FREQ * 2 ** (np.arange(count + 1) / config.IR_POINTS_PER_OCTAVE)
    return freqs[freqs < config.IR_MAX_FREQ]


def resample_magnitude(magnitude: np.ndarray, sample_rate: float, freqs: np.ndarray) -> np.ndarray:
    """
    Average the FFT magnitude over the band each output frequency represents.

    The band of frequency f spans bin indices N*f/sqrt(d)/fs .. N*f*sqrt(d)/fs,
    with d the ratio between neighbouring output frequencies. The magnitude is
    linearly interpolated between bins, integrated over the band and divided by
    the band width. Only bins below the Nyquist frequency contribute.
    """
    n = magnitude.size
    sqrt_density = 2 ** (1 / (2 * config.IR_POINTS_PER_OCTAVE))
    out = np.zeros(freqs.size)
    for k, freq in enumerate(freqs):
        min_idx = n * freq / sqrt_density / sample_rate
        max_idx = n * freq * sqrt_density / sample_rate
        idx = np.arange(math.floor(min_idx), math.ceil(max_idx))
        idx = idx[(idx < max_idx) & (idx + 1 < n / 2)]
        if idx.size == 0:
            continue
        a = magnitude[idx]
        b = magnitude[idx + 1]
        # span_start, span_end lie in [0, 1]: the part between bins idx and idx+1 inside the band
        span_start = np.where(idx < min_idx, min_idx - idx, 0.0)
        span_end = np.where(idx + 1 > max_idx, max_idx - idx, 1.0)
        weight = span_end - span_start
        fraction = (span_end + span_start) / 2
        out[k] = np.sum((a * (1 - fraction) + b * fraction) * weight) / (max_idx - min_idx)
    return out


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def read_princeton_one(buffer: bytes, source: str = "<mat>") -> RawSpin:
    matrices = {re.sub(r"_[HV]$", "", name): m for name, m in read_mat4(buffer).items()}
    if "fs" not in matrices:
        raise MalformedRecordError(f"{source}: sampling rate not indicated in file {sorted(matrices)}")
    if "IR" not in matrices:
        raise MalformedRecordError(f"{source}: impulse response data missing in file {sorted(matrices)}")

    sample_rate = float(matrices["fs"].data[0, 0])
    if sample_rate <= 0:
        raise MalformedRecordError(f"{source}: invalid sampling rate {sample_rate}")
    ir = matrices["IR"].data
    measurements = ir.shape[0]
    freqs = log_frequencies()

    spin = {}
    for n in range(measurements):
        degrees = _round_half_up(n * 360 / measurements) % 360
        if degrees % 10 != 0:
            continue
        if degrees > 180:
            degrees -= 360
        angle = Angle(degrees)
        if angle in spin or not np.any(ir[n]):
            continue
        magnitude = np.abs(fft(ir[n]))
        pressure = resample_magnitude(magnitude, sample_rate, freqs)
        spin[angle] = Curve(freqs, config.SPL_REFERENCE_DB + utils.lin2db(pressure))

    logger.debug("%s: %d impulse responses at %.0f Hz, %d angles on the grid",
                 source, measurements, sample_rate, len(spin))
    return spin


def parse(files: FileTable) -> Tuple[RawSpin, RawSpin]:
    horizontal = files.find(lambda name: name.endswith(HORIZONTAL_SUFFIX))
    vertical = files.find(lambda name: name.endswith(VERTICAL_SUFFIX))
    if horizontal is None or vertical is None:
        raise MalformedRecordError("Unable to find both _H_IR.mat and _V_IR.mat files")
    return (
        read_princeton_one(files.read(horizontal), horizontal),
        read_princeton_one(files.read(vertical), vertical),
    )
