# src/speaker_spin/utils.py

"""
Numeric primitives shared by the CEA2034, scoring and EQ engines.
"""

import numpy as np
from . import config

# Spread below which a series counts as constant (float noise of a flat curve)
DEGENERATE_SPREAD = 1e-9


def spl2pressure(spl):
    """Convert SPL (dB) to pressure."""
    return 10 ** ((np.asarray(spl, dtype=float) - config.SPL_REFERENCE_DB) / 20)


def pressure2spl(pressure):
    """Convert pressure to SPL (dB)."""
    return config.SPL_REFERENCE_DB + 20.0 * np.log10(pressure)


def lin2db(mag):
    """
    Convert a linear gain factor to dB.

    The result never drops below LIN2DB_FLOOR_DB; zero gain maps to the floor instead of -inf.
    """
    mag = np.asarray(mag, dtype=float)
    with np.errstate(divide='ignore', invalid='ignore'):
        db = 20.0 * np.log10(mag)
    return np.where(mag > 0, np.maximum(db, config.LIN2DB_FLOOR_DB), config.LIN2DB_FLOOR_DB)


def mean(values):
    """Arithmetic mean; an empty sequence averages to 0."""
    values = np.asarray(values, dtype=float)
    if values.size == 0:
        return 0.0
    return float(np.mean(values))


def pearson_r(x, y):
    """
    Pearson correlation coefficient using the single-pass formula

        r = (n*sum(xy) - sum(x)*sum(y)) /
            (sqrt(n*sum(x^2) - sum(x)^2) * sqrt(n*sum(y^2) - sum(y)^2))

    Returns NaN when either variable is constant (to within DEGENERATE_SPREAD).
    """
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    n = x.size
    if n < 2 or np.ptp(x) < DEGENERATE_SPREAD or np.ptp(y) < DEGENERATE_SPREAD:
        return float('nan')
    nom = n * np.sum(x * y) - np.sum(x) * np.sum(y)
    den_x = n * np.sum(x ** 2) - np.sum(x) ** 2
    den_y = n * np.sum(y ** 2) - np.sum(y) ** 2
    if den_x <= 0 or den_y <= 0:
        return float('nan')
    return float(np.clip(nom / (np.sqrt(den_x) * np.sqrt(den_y)), -1.0, 1.0))


def band_mask(freqs, min_freq, max_freq):
    """Boolean mask of the frequencies inside [min_freq, max_freq]."""
    freqs = np.asarray(freqs, dtype=float)
    return (freqs >= min_freq) & (freqs <= max_freq)
