from .spin import Angle, AngularGrid, Curve, RawSpin, SPIN_ANGLES
from .cea2034 import Cea2034, compute_cea2034, estimated_in_room
from .scores import Scores, get_scores

__all__ = [
    "Angle", "AngularGrid", "Curve", "RawSpin", "SPIN_ANGLES",
    "Cea2034", "compute_cea2034", "estimated_in_room",
    "Scores", "get_scores",
]
