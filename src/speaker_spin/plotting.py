# src/speaker_spin/plotting.py

"""Diagnostic PNG export of CEA2034 curve sets."""

import logging

import matplotlib
matplotlib.use('Agg')
import matplotlib.pyplot as plt

from .core.cea2034 import (
    CEA2034_KEYS,
    Cea2034,
    EARLY_REFLECTIONS_DI,
    ESTIMATED_IN_ROOM,
    SOUND_POWER_DI,
    estimated_in_room,
)
from .core.scores import Scores

logger = logging.getLogger(__name__)

DI_CURVES = (EARLY_REFLECTIONS_DI, SOUND_POWER_DI)


def plot_cea2034(cea2034: Cea2034, output_path: str, title: str = "CEA2034", scores: Scores = None):
    """
    Save the CEA2034 chart: SPL curves on top, directivity indices below.
    Curves that are missing from the set are left out.
    """
    fig, (ax_spl, ax_di) = plt.subplots(2, 1, figsize=(12, 8), sharex=True,
                                        gridspec_kw={'height_ratios': [3, 1]})
    freq = cea2034.freq

    for name in CEA2034_KEYS:
        spl = cea2034.get(name)
        if spl is None:
            continue
        ax = ax_di if name in DI_CURVES else ax_spl
        ax.semilogx(freq, spl, label=name)
    ax_spl.semilogx(freq, estimated_in_room(cea2034), 'k--', alpha=0.6, label=ESTIMATED_IN_ROOM)

    if scores is not None:
        title = f"{title} (tonality {scores.tonality:.2f}, LFX {scores.lfx_hz:.0f} Hz)"
    if cea2034.is_busted:
        title += " [busted]"
    ax_spl.set_title(title)
    ax_spl.set_ylabel('SPL (dB)')
    ax_di.set_ylabel('DI (dB)')
    ax_di.set_xlabel('Frequency (Hz)')
    for ax in (ax_spl, ax_di):
        ax.set_xlim(20, 20000)
        ax.grid(True, which="both", ls="-", alpha=0.3)
        ax.legend(loc='lower left', fontsize=8)

    plt.tight_layout()
    fig.savefig(output_path, dpi=150)
    plt.close(fig)
    logger.info("Saved CEA2034 plot to %s", output_path)
