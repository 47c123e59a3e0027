# src/speaker_spin/core/cea2034.py

"""
CEA2034 directivity curves computed from a horizontal and vertical spin.

Every curve is a spatial average: SPL is converted to pressure, squared,
optionally weighted by the solid angle each measurement represents, averaged
and converted back to SPL. The computation runs independently for every
frequency bin.
"""

import math
from dataclasses import dataclass
from types import MappingProxyType
from typing import FrozenSet, Iterable, Mapping, Optional, Sequence, Tuple

import numpy as np

from .. import config
from .. import utils
from ..errors import MalformedRecordError, MissingCurveError
from .spin import Angle, AngularGrid, Curve, SPIN_ANGLES

ON_AXIS = "On-Axis"
LISTENING_WINDOW = "Listening Window"
SOUND_POWER = "Sound Power"
EARLY_REFLECTIONS_DI = "Early Reflections DI"
SOUND_POWER_DI = "Sound Power DI"
TOTAL_EARLY_REFLECTIONS = "Total Early Reflections"
ESTIMATED_IN_ROOM = "Estimated In-Room"

CEA2034_KEYS = (
    ON_AXIS, LISTENING_WINDOW, SOUND_POWER,
    EARLY_REFLECTIONS_DI, SOUND_POWER_DI, TOTAL_EARLY_REFLECTIONS,
)

EARLY_REFLECTIONS_KEYS = (
    "Floor Bounce", "Ceiling Bounce", "Front Wall Bounce", "Side Wall Bounce", "Rear Wall Bounce",
    "Total Horizontal Reflection", "Total Vertical Reflection", TOTAL_EARLY_REFLECTIONS,
)

ALL_KEYS = CEA2034_KEYS + tuple(k for k in EARLY_REFLECTIONS_KEYS if k not in CEA2034_KEYS)


def _angles(*degrees):
    return tuple(Angle(d) for d in degrees)


LISTENING_WINDOW_HORIZONTAL = _angles(10, 20, 30, -10, -20, -30)
LISTENING_WINDOW_VERTICAL = _angles(0, 10, -10)
FLOOR_BOUNCE = _angles(-20, -30, -40)
CEILING_BOUNCE = _angles(40, 50, 60)
FRONT_WALL_BOUNCE = _angles(0, 10, 20, 30, -10, -20, -30)
SIDE_WALL_BOUNCE = _angles(-40, -50, -60, -70, -80, 40, 50, 60, 70, 80)
REAR_WALL_BOUNCE = _angles(*range(-170, -80, 10), *range(90, 190, 10))


# =============================================================================
# SPHERICAL WEIGHTS
# =============================================================================
def compute_area_q(alpha_d: float, beta_d: float) -> float:
    """
    Area of the spherical quadrangle bounded by the lines at alpha and beta
    degrees from the reference axis.
    """
    alpha = math.radians(alpha_d)
    beta = math.radians(beta_d)
    gamma = math.acos(math.cos(alpha) * math.cos(beta))
    a = math.atan(math.sin(beta) / math.tan(alpha))
    b = math.atan(math.sin(alpha) / math.tan(beta))
    c = math.acos(-math.cos(a) * math.cos(b) + math.sin(a) * math.sin(b) * math.cos(gamma))
    return 4 * c - 2 * math.pi


def band_weights() -> Tuple[float, ...]:
    """
    Solid angle of each of the ten bands of the standard's partition
    (the polar cap, then nine 10° wide rings). Together they cover one hemisphere.
    """
    areas = [compute_area_q(a, a) for a in config.WEIGHT_BAND_CENTERS_DEG]
    return (areas[0],) + tuple(areas[i] - areas[i - 1] for i in range(1, len(areas)))


def compute_weights() -> Tuple[float, ...]:
    """Band weights as used for Sound Power; the 90° band counts for both ±90°."""
    weights = list(band_weights())
    weights[9] *= 2.0
    return tuple(weights)


STD_WEIGHTS = compute_weights()


def _ring(angle: Angle) -> int:
    degrees = abs(angle.degrees)
    return min(degrees, 180 - degrees) // 10


SPHERICAL_WEIGHTS: Mapping[Angle, float] = MappingProxyType(
    {angle: STD_WEIGHTS[_ring(angle)] for angle in SPIN_ANGLES})


# =============================================================================
# CURVE SET
# =============================================================================
@dataclass(frozen=True, eq=False)
class Cea2034:
    """
    A CEA2034 curve set over one frequency axis.

    Sets computed from a full spin carry every curve. Sets imported from a
    vendor's own CEA2034 export may lack some; those names are listed in
    ``missing``, stored as empty arrays, and ``curve()`` refuses them.

    Attributes:
        freq (np.ndarray): Ascending frequencies.
        datasets (Mapping[str, np.ndarray]): SPL per curve name.
        is_busted (bool): Repaired or incomplete data went into this set.
        missing (FrozenSet[str]): Curve names that were not available.
    """
    freq: np.ndarray
    datasets: Mapping[str, np.ndarray]
    is_busted: bool = False
    missing: FrozenSet[str] = frozenset()

    def __post_init__(self):
        freq = np.array(self.freq, dtype=float)
        freq.setflags(write=False)
        unknown = set(self.datasets) - set(ALL_KEYS)
        if unknown:
            raise MalformedRecordError(f"Unsupported CEA2034 datasets: {sorted(unknown)}")

        datasets = {}
        missing = set(self.missing)
        for name in ALL_KEYS:
            values = self.datasets.get(name)
            if values is None or name in missing or len(values) == 0:
                missing.add(name)
                values = np.empty(0)
            else:
                values = np.array(values, dtype=float)
                if values.shape != freq.shape:
                    raise MalformedRecordError(
                        f"Dataset frequencies are not same as in the spin in general on dataset: {name}")
            values.setflags(write=False)
            datasets[name] = values

        if ON_AXIS in missing:
            raise MalformedRecordError(f"Missing a dataset: On-Axis; found: {sorted(set(ALL_KEYS) - missing)}")

        object.__setattr__(self, "freq", freq)
        object.__setattr__(self, "datasets", MappingProxyType(datasets))
        object.__setattr__(self, "missing", frozenset(missing))
        if any(name in missing for name in CEA2034_KEYS):
            object.__setattr__(self, "is_busted", True)

    @classmethod
    def from_curves(cls, curves: Mapping[str, Curve], is_busted: bool = False):
        """
        Build a set from vendor curves. All supplied curves must share the
        On-Axis frequency set; absent curves are marked missing.
        """
        if ON_AXIS not in curves:
            raise MalformedRecordError(f"Missing a dataset: On-Axis; found: {list(curves)}")
        freq = curves[ON_AXIS].freq
        for name, curve in curves.items():
            if not np.array_equal(curve.freq, freq):
                raise MalformedRecordError(
                    f"Dataset frequencies are not same as in the spin in general on dataset: {name}")
        return cls(freq, {name: curve.spl for name, curve in curves.items()}, is_busted)

    @property
    def is_partial(self) -> bool:
        return bool(self.missing)

    def has(self, name: str) -> bool:
        return name not in self.missing

    def curve(self, name: str) -> np.ndarray:
        if name in self.missing:
            raise MissingCurveError(name)
        return self.datasets[name]

    def get(self, name: str) -> Optional[np.ndarray]:
        return None if name in self.missing else self.datasets[name]

    def to_dict(self):
        return {
            "freq": self.freq.tolist(),
            "isBusted": self.is_busted,
            "datasets": {k: v.tolist() for k, v in self.datasets.items() if k not in self.missing},
        }


# =============================================================================
# SPATIAL AVERAGING
# =============================================================================
def _power_average(spls: Sequence[np.ndarray], weights: Sequence[float]) -> np.ndarray:
    pressure2 = np.zeros_like(np.asarray(spls[0], dtype=float))
    weight_sum = 0.0
    for spl, weight in zip(spls, weights):
        pressure2 = pressure2 + utils.spl2pressure(spl) ** 2 * weight
        weight_sum += weight
    return utils.pressure2spl(np.sqrt(pressure2 / weight_sum))


def spatial_average(selection: Iterable[Tuple[AngularGrid, Angle]], spatially_weighted: bool = False):
    """
    Average the selected (grid, angle) curves in the pressure domain.

    Returns:
        (spl, is_busted): the averaged SPL over the grids' shared frequencies,
        and whether any contributing grid was repaired.
    """
    selection = list(selection)
    if not selection:
        raise ValueError("spatial_average needs at least one curve")
    freq = selection[0][0].freq
    spls, weights = [], []
    is_busted = False
    for grid, angle in selection:
        if not np.array_equal(grid.freq, freq):
            raise MalformedRecordError(f"Unexpected frequency set in dataset {angle.label}")
        spls.append(grid[angle])
        weights.append(SPHERICAL_WEIGHTS[angle] if spatially_weighted else 1.0)
        is_busted = is_busted or grid.is_busted
    return _power_average(spls, weights), is_busted


def compute_on_axis(horizontal: AngularGrid, vertical: AngularGrid):
    return spatial_average([(horizontal, Angle.ON_AXIS), (vertical, Angle.ON_AXIS)])


def compute_listening_window(horizontal: AngularGrid, vertical: AngularGrid):
    """Listening Window: horizontal ±10..30°, vertical 0° and ±10°."""
    return spatial_average(
        [(horizontal, a) for a in LISTENING_WINDOW_HORIZONTAL]
        + [(vertical, a) for a in LISTENING_WINDOW_VERTICAL])


def compute_sound_power(horizontal: AngularGrid, vertical: AngularGrid):
    """
    Sound Power

    The sound power is the weighted rms average of all 70 measurements,
    with individual measurements weighted according to the portion of the
    spherical surface that they represent. The vertical On-Axis and 180°
    curves are the same points as the horizontal ones and are left out.
    """
    return spatial_average(
        [(horizontal, a) for a in SPIN_ANGLES]
        + [(vertical, a) for a in SPIN_ANGLES if a not in (Angle.ON_AXIS, Angle.P180)],
        spatially_weighted=True)


def compute_early_reflections(horizontal: AngularGrid, vertical: AngularGrid):
    """
    The five bounces and their totals.

    Returns:
        (datasets, is_busted) with datasets keyed by EARLY_REFLECTIONS_KEYS.
    """
    floor, b1 = spatial_average((vertical, a) for a in FLOOR_BOUNCE)
    ceiling, b2 = spatial_average((vertical, a) for a in CEILING_BOUNCE)
    front, b3 = spatial_average((horizontal, a) for a in FRONT_WALL_BOUNCE)
    side, b4 = spatial_average((horizontal, a) for a in SIDE_WALL_BOUNCE)
    rear, b5 = spatial_average((horizontal, a) for a in REAR_WALL_BOUNCE)

    datasets = {
        "Floor Bounce": floor,
        "Ceiling Bounce": ceiling,
        "Front Wall Bounce": front,
        "Side Wall Bounce": side,
        "Rear Wall Bounce": rear,
        "Total Horizontal Reflection": _power_average([front, side, rear], [1.0] * 3),
        "Total Vertical Reflection": _power_average([ceiling, floor], [1.0] * 2),
        TOTAL_EARLY_REFLECTIONS: _power_average([floor, ceiling, front, side, rear], [1.0] * 5),
    }
    return datasets, any((b1, b2, b3, b4, b5))


def compute_cea2034(horizontal: AngularGrid, vertical: AngularGrid) -> Cea2034:
    """
    Compute all CEA2034 curves from the horizontal and vertical spins.
    """
    if not np.array_equal(horizontal.freq, vertical.freq):
        raise MalformedRecordError("Inconsistent use of frequencies across datasets")

    on_axis, b_on = compute_on_axis(horizontal, vertical)
    lw, b_lw = compute_listening_window(horizontal, vertical)
    sp, b_sp = compute_sound_power(horizontal, vertical)
    er, b_er = compute_early_reflections(horizontal, vertical)

    datasets = dict(er)
    datasets.update({
        ON_AXIS: on_axis,
        LISTENING_WINDOW: lw,
        SOUND_POWER: sp,
        # Early Reflections DI is the listening window above the early reflections
        EARLY_REFLECTIONS_DI: lw - er[TOTAL_EARLY_REFLECTIONS],
        # An SPDI of 0 dB indicates omnidirectional radiation
        SOUND_POWER_DI: lw - sp,
    })
    return Cea2034(horizontal.freq, datasets, b_on or b_lw or b_sp or b_er)


def estimated_in_room(cea2034: Cea2034) -> np.ndarray:
    """
    Estimated In-Room Response (PIR).

    A weighted average of 12 % Listening Window, 44 % Early Reflections and
    44 % Sound Power, summed as squared pressure and converted back to SPL.
    On a partial set the weights are renormalized over the curves present;
    with none of them present the On-Axis curve stands in.
    """
    parts = [
        (cea2034.get(name), weight)
        for name, weight in zip((LISTENING_WINDOW, TOTAL_EARLY_REFLECTIONS, SOUND_POWER), config.PIR_WEIGHTS)
    ]
    parts = [(spl, weight) for spl, weight in parts if spl is not None]
    if not parts:
        return np.array(cea2034.curve(ON_AXIS))
    pressure2 = sum(utils.spl2pressure(spl) ** 2 * weight for spl, weight in parts)
    if len(parts) < len(config.PIR_WEIGHTS):
        pressure2 = pressure2 / sum(weight for _, weight in parts)
    return utils.pressure2spl(np.sqrt(pressure2))
