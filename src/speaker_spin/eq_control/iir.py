# src/speaker_spin/eq_control/iir.py

"""
Biquad (second order IIR) sections built from an Equalizer APO preset.

Coefficients follow Robert Bristow-Johnson's "Cookbook formulae for audio
EQ biquad filter coefficients", normalized so that a0 == 1. Sections are
only ever evaluated in the frequency domain:

    H(z) = (b0 + b1 z^-1 + b2 z^-2) / (1 + a1 z^-1 + a2 z^-2),  z = exp(i 2 pi f / fs)
"""

import math
from dataclasses import dataclass
from typing import Sequence, Tuple

import numpy as np
from scipy import signal

from .. import config
from ..errors import EqConfigError
from .equalizer_apo import EqualizerPreset, FilterSpec


@dataclass(frozen=True)
class Biquad:
    """
    One normalized section.

    Attributes:
        filter_code (str): APO type tag the section was built from.
        fc (float): Center / corner frequency in Hz.
        q (float): Quality factor.
        gain (float): Gain in dB (shelves and peaking only).
        b (tuple): Numerator (b0, b1, b2).
        a (tuple): Denominator (1, a1, a2).
    """
    filter_code: str
    fc: float
    q: float
    gain: float
    b: Tuple[float, float, float]
    a: Tuple[float, float, float]

    def response(self, frequency, sample_rate: float) -> np.ndarray:
        """Complex response at the given frequencies."""
        _, h = signal.freqz(self.b, self.a, worN=np.atleast_1d(np.asarray(frequency, dtype=float)), fs=sample_rate)
        return h


def _normalized(filter_code, fc, q, gain, a0, a1, a2, b0, b1, b2) -> Biquad:
    return Biquad(filter_code, fc, q, gain, (b0 / a0, b1 / a0, b2 / a0), (1.0, a1 / a0, a2 / a0))


def _w0_alpha(fc, sample_rate, q):
    w0 = 2 * math.pi * fc / sample_rate
    return w0, math.sin(w0) / (2 * q)


def low_pass(fc, sample_rate, q, code="LP"):
    w0, alpha = _w0_alpha(fc, sample_rate, q)
    cos = math.cos(w0)
    return _normalized(code, fc, q, 0.0,
                       1 + alpha, -2 * cos, 1 - alpha,
                       (1 - cos) / 2, 1 - cos, (1 - cos) / 2)


def high_pass(fc, sample_rate, q, code="HP"):
    w0, alpha = _w0_alpha(fc, sample_rate, q)
    cos = math.cos(w0)
    return _normalized(code, fc, q, 0.0,
                       1 + alpha, -2 * cos, 1 - alpha,
                       (1 + cos) / 2, -(1 + cos), (1 + cos) / 2)


def band_pass(fc, sample_rate, q, code="BP"):
    """Band-pass with constant skirt gain; the peak gain is Q."""
    w0, alpha = _w0_alpha(fc, sample_rate, q)
    cos = math.cos(w0)
    return _normalized(code, fc, q, 0.0,
                       1 + alpha, -2 * cos, 1 - alpha,
                       math.sin(w0) / 2, 0.0, -math.sin(w0) / 2)


def notch(fc, sample_rate, q, code="NO"):
    w0, alpha = _w0_alpha(fc, sample_rate, q)
    cos = math.cos(w0)
    return _normalized(code, fc, q, 0.0,
                       1 + alpha, -2 * cos, 1 - alpha,
                       1.0, -2 * cos, 1.0)


def all_pass(fc, sample_rate, q, code="AP"):
    w0, alpha = _w0_alpha(fc, sample_rate, q)
    cos = math.cos(w0)
    return _normalized(code, fc, q, 0.0,
                       1 + alpha, -2 * cos, 1 - alpha,
                       1 - alpha, -2 * cos, 1 + alpha)


def peaking(fc, sample_rate, gain, q, code="PK"):
    w0, alpha = _w0_alpha(fc, sample_rate, q)
    cos = math.cos(w0)
    A = 10 ** (gain / 40)
    return _normalized(code, fc, q, gain,
                       1 + alpha / A, -2 * cos, 1 - alpha / A,
                       1 + alpha * A, -2 * cos, 1 - alpha * A)


def low_shelf(fc, sample_rate, gain, q, code="LS"):
    w0, alpha = _w0_alpha(fc, sample_rate, q)
    cos = math.cos(w0)
    A = 10 ** (gain / 40)
    sq = 2 * math.sqrt(A) * alpha
    return _normalized(code, fc, q, gain,
                       (A + 1) + (A - 1) * cos + sq,
                       -2 * ((A - 1) + (A + 1) * cos),
                       (A + 1) + (A - 1) * cos - sq,
                       A * ((A + 1) - (A - 1) * cos + sq),
                       2 * A * ((A - 1) - (A + 1) * cos),
                       A * ((A + 1) - (A - 1) * cos - sq))


def high_shelf(fc, sample_rate, gain, q, code="HS"):
    w0, alpha = _w0_alpha(fc, sample_rate, q)
    cos = math.cos(w0)
    A = 10 ** (gain / 40)
    sq = 2 * math.sqrt(A) * alpha
    return _normalized(code, fc, q, gain,
                       (A + 1) - (A - 1) * cos + sq,
                       2 * ((A - 1) - (A + 1) * cos),
                       (A + 1) - (A - 1) * cos - sq,
                       A * ((A + 1) + (A - 1) * cos + sq),
                       -2 * A * ((A - 1) + (A + 1) * cos),
                       A * ((A + 1) + (A - 1) * cos - sq))


# APO type tag -> (designer, takes a gain)
_DESIGNERS = {
    "PK": (peaking, True),
    "LP": (low_pass, False),
    "LPQ": (low_pass, False),
    "HP": (high_pass, False),
    "HPQ": (high_pass, False),
    "BP": (band_pass, False),
    "BPQ": (band_pass, False),
    "NO": (notch, False),
    "NOQ": (notch, False),
    "AP": (all_pass, False),
    "APQ": (all_pass, False),
    "LS": (low_shelf, True),
    "LSQ": (low_shelf, True),
    "LSC": (low_shelf, True),
    "HS": (high_shelf, True),
    "HSQ": (high_shelf, True),
    "HSC": (high_shelf, True),
}


def construct(filter_code: str, fc: float, sample_rate: float, q: float, gain: float = 0.0) -> Biquad:
    """Design the section for an APO type tag."""
    try:
        designer, has_gain = _DESIGNERS[filter_code]
    except KeyError:
        raise EqConfigError(f"Unable to construct a filter of type: {filter_code}") from None
    if fc <= 0 or fc >= sample_rate / 2:
        raise EqConfigError(f"Filter frequency {fc} Hz outside (0, {sample_rate / 2}) Hz")
    if q <= 0:
        raise EqConfigError(f"Filter Q must be positive, got {q}")
    if has_gain:
        return designer(fc, sample_rate, gain, q, code=filter_code)
    return designer(fc, sample_rate, q, code=filter_code)


class BiquadChain:
    """
    An ordered cascade of biquad sections plus a preamp gain.

    The preamp is kept as a separate linear factor; ``transfer`` reports the
    sections only.
    """
    def __init__(self, biquads: Sequence[Biquad], sample_rate: float = config.EQ_SAMPLE_RATE,
                 preamp_db: float = 0.0):
        self._biquads = tuple(biquads)
        self.sample_rate = sample_rate
        self.preamp_db = preamp_db

    @property
    def biquads(self) -> Tuple[Biquad, ...]:
        return self._biquads

    @property
    def biquad_count(self) -> int:
        return len(self._biquads)

    @property
    def preamp_gain(self) -> float:
        return 10 ** (self.preamp_db / 20)

    def __len__(self):
        return len(self._biquads)

    def _polar(self, h, frequency):
        mag, phase = np.abs(h), np.angle(h)
        if np.ndim(frequency) == 0:
            return float(mag[0]), float(phase[0])
        return mag, phase

    def transfer(self, frequency):
        """
        Magnitude and phase of the cascaded sections at ``frequency`` (Hz).

        Accepts a scalar or an array; returns matching (mag, phase).
        """
        h = np.ones(np.atleast_1d(np.asarray(frequency, dtype=float)).shape, dtype=complex)
        for biquad in self._biquads:
            h = h * biquad.response(frequency, self.sample_rate)
        return self._polar(h, frequency)

    def apply_biquad(self, frequency, index: int):
        """Magnitude and phase of one section in isolation."""
        return self._polar(self._biquads[index].response(frequency, self.sample_rate), frequency)

    @classmethod
    def from_preset(cls, preset: EqualizerPreset, sample_rate: float = config.EQ_SAMPLE_RATE):
        biquads = [_from_spec(spec, sample_rate) for spec in preset.filters]
        return cls(biquads, sample_rate, preset.preamp)

    @classmethod
    def from_apo_config(cls, apo_config: str, sample_rate: float = config.EQ_SAMPLE_RATE):
        """Build a chain from Equalizer APO configuration text."""
        return cls.from_preset(EqualizerPreset.parse(apo_config), sample_rate)


def _from_spec(spec: FilterSpec, sample_rate: float) -> Biquad:
    return construct(spec.filter_code, spec.fc, sample_rate, spec.q, spec.gain)
