from .equalizer_apo import EqualizerPreset, FilterSpec
from .iir import Biquad, BiquadChain
from .apply import apply_eq, iir_curves

__all__ = ["EqualizerPreset", "FilterSpec", "Biquad", "BiquadChain", "apply_eq", "iir_curves"]
