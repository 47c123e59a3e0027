# src/speaker_spin/core/spin.py

"""
Angular grid ("spin") data model.

A spin is one rotation plane of a polar measurement: a frequency response
curve for each of the 36 angles of the 10 degree grid. Two spins, horizontal
and vertical, describe a full measurement.
"""

import enum
from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, Mapping, Tuple

import numpy as np

from ..errors import MalformedRecordError


class Angle(enum.Enum):
    """
    The closed set of measurement angles, valued in degrees.

    Labels follow the measurement files: ``On-Axis``, ``10°`` .. ``180°`` and
    ``-10°`` .. ``-170°``.
    """
    ON_AXIS = 0
    P10 = 10
    P20 = 20
    P30 = 30
    P40 = 40
    P50 = 50
    P60 = 60
    P70 = 70
    P80 = 80
    P90 = 90
    P100 = 100
    P110 = 110
    P120 = 120
    P130 = 130
    P140 = 140
    P150 = 150
    P160 = 160
    P170 = 170
    P180 = 180
    M10 = -10
    M20 = -20
    M30 = -30
    M40 = -40
    M50 = -50
    M60 = -60
    M70 = -70
    M80 = -80
    M90 = -90
    M100 = -100
    M110 = -110
    M120 = -120
    M130 = -130
    M140 = -140
    M150 = -150
    M160 = -160
    M170 = -170

    @property
    def degrees(self) -> int:
        return self.value

    @property
    def label(self) -> str:
        if self is Angle.ON_AXIS:
            return "On-Axis"
        return f"{self.value}°"

    @property
    def mirror(self):
        """The angle on the other side of the axis, or None for On-Axis and 180°."""
        if self in (Angle.ON_AXIS, Angle.P180):
            return None
        return Angle(-self.value)

    @classmethod
    def from_label(cls, label: str):
        """
        Look up an angle from its file label, e.g. ``On Axis``, ``On-Axis``, ``-30°``.
        """
        text = label.strip()
        if text.lower() in ("on-axis", "on axis"):
            return cls.ON_AXIS
        try:
            return cls(int(text.rstrip("°")))
        except ValueError:
            raise MalformedRecordError(f"Unsupported dataset: {label}") from None

    def __str__(self):
        return self.label


# Standard order: rings of equal weight, moving away from the axis.
SPIN_ANGLES: Tuple[Angle, ...] = (Angle.ON_AXIS, Angle.P180) + tuple(
    a for d in range(10, 100, 10)
    for a in ((Angle(d), Angle(180 - d), Angle(d - 180), Angle(-d)) if d < 90 else (Angle(d), Angle(-d)))
)


def _readonly(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class Curve:
    """A frequency response: ascending unique frequencies (Hz) and their SPL (dB)."""
    freq: np.ndarray
    spl: np.ndarray

    def __post_init__(self):
        freq = _readonly(self.freq)
        spl = _readonly(self.spl)
        if freq.shape != spl.shape or freq.ndim != 1:
            raise MalformedRecordError(
                f"Frequency and SPL arrays differ in shape: {freq.shape} vs {spl.shape}")
        if freq.size and (np.any(np.diff(freq) <= 0) or freq[0] <= 0):
            raise MalformedRecordError("Frequencies must be positive and strictly ascending")
        object.__setattr__(self, "freq", freq)
        object.__setattr__(self, "spl", spl)

    @classmethod
    def from_pairs(cls, pairs: Iterable[Tuple[float, float]]):
        """Build a curve from (freq, spl) pairs in any order; a repeated frequency keeps its last value."""
        table: Dict[float, float] = {}
        for freq, spl in pairs:
            table[float(freq)] = float(spl)
        freqs = sorted(table)
        return cls(np.array(freqs, dtype=float), np.array([table[f] for f in freqs], dtype=float))

    def __len__(self):
        return self.freq.size

    def to_dict(self):
        return {"freq": self.freq.tolist(), "spl": self.spl.tolist()}


# A partially populated plane as produced by the parsers.
RawSpin = Dict[Angle, Curve]


@dataclass(frozen=True, eq=False)
class AngularGrid:
    """
    A complete spin: one SPL array per angle over a shared frequency axis.

    Attributes:
        freq (np.ndarray): Ascending frequencies shared by every angle (read-only).
        datasets (Mapping[Angle, np.ndarray]): SPL per angle, all 36 angles present (read-only).
        is_busted (bool): True when mirrored, copied or synthesized data stands in for a measurement.
    """
    freq: np.ndarray
    datasets: Mapping[Angle, np.ndarray]
    is_busted: bool = False

    def __post_init__(self):
        freq = _readonly(self.freq)
        if freq.ndim != 1 or np.any(np.diff(freq) <= 0):
            raise MalformedRecordError("Spin frequencies must be strictly ascending")
        datasets = {}
        for angle in SPIN_ANGLES:
            if angle not in self.datasets:
                raise MalformedRecordError(
                    f"Missing a dataset: {angle.label}; found: {[a.label for a in self.datasets]}")
            spl = _readonly(self.datasets[angle])
            if spl.shape != freq.shape:
                raise MalformedRecordError(
                    f"Dataset {angle.label} has {spl.size} points, expected {freq.size}")
            datasets[angle] = spl
        object.__setattr__(self, "freq", freq)
        object.__setattr__(self, "datasets", MappingProxyType(datasets))

    @classmethod
    def from_curves(cls, curves: Mapping[Angle, Curve], is_busted: bool = False):
        """
        Assemble a grid from per-angle curves, all of which must share one frequency set.
        """
        if Angle.ON_AXIS not in curves:
            raise MalformedRecordError(
                f"Missing a dataset: On-Axis; found: {[a.label for a in curves]}")
        freq = curves[Angle.ON_AXIS].freq
        for angle in SPIN_ANGLES:
            if angle not in curves:
                raise MalformedRecordError(
                    f"Missing a dataset: {angle.label}; found: {[a.label for a in curves]}")
            if not np.array_equal(curves[angle].freq, freq):
                raise MalformedRecordError(
                    f"Dataset frequencies are not same as in the spin in general on dataset: {angle.label}")
        return cls(freq, {a: curves[a].spl for a in SPIN_ANGLES}, is_busted)

    def __getitem__(self, angle: Angle) -> np.ndarray:
        return self.datasets[angle]

    def map_spl(self, func, is_busted=None):
        """Return a new grid with ``func(angle, spl)`` applied to every curve."""
        return AngularGrid(
            self.freq,
            {a: func(a, spl) for a, spl in self.datasets.items()},
            self.is_busted if is_busted is None else is_busted,
        )

    def to_dict(self):
        return {
            "freq": self.freq.tolist(),
            "isBusted": self.is_busted,
            "datasets": {a.label: spl.tolist() for a, spl in self.datasets.items()},
        }
