# src/speaker_spin/config.py

"""
Central configuration settings for the speaker-spin analysis engine.
"""

# =============================================================================
# LEVEL REFERENCES
# =============================================================================
SPL_REFERENCE_DB = 105.0  # spl2pressure/pressure2spl reference level
LIN2DB_FLOOR_DB = -144.0  # dB value reported for zero (or negative) linear gain
LEVEL_MIN_HZ = 300.0  # On-Axis leveling band, inclusive
LEVEL_MAX_HZ = 3000.0

# =============================================================================
# CEA2034 SETTINGS
# =============================================================================
# Estimated In-Room Response mix of Listening Window, Early Reflections, Sound Power
PIR_WEIGHTS = (0.12, 0.44, 0.44)
WEIGHT_BAND_CENTERS_DEG = (5, 15, 25, 35, 45, 55, 65, 75, 85, 90)  # band edges of the spherical partition

# =============================================================================
# SCORE SETTINGS
# =============================================================================
LFX_MIN_HZ = 14.5  # considered to be "ideal subwoofer"
LFX_SCAN_MAX_HZ = 300.0  # Sound Power is scanned downward from here
LFX_REF_MIN_HZ = 300.0  # Listening Window reference band
LFX_REF_MAX_HZ = 10000.0
LFX_DROP_DB = 6.0

NBD_MIN_HZ = 100.0  # NBD starts at 100 Hz even if measurement covers below
NBD_MAX_HZ = 12000.0
NBD_OCTAVE_FRACTION = 2  # half-octave bands
NBD_REFERENCE_HZ = 1290.0

SM_MIN_HZ = 100.0
SM_MAX_HZ = 16000.0

MIDRANGE_MIN_HZ = 300.0  # flatness band
MIDRANGE_MAX_HZ = 5000.0

TONALITY_INTERCEPT = 12.69
TONALITY_NBD_ON_AXIS = 2.49
TONALITY_NBD_PRED_IN_ROOM = 2.99
TONALITY_LFX = 4.31
TONALITY_SM_PRED_IN_ROOM = 2.32

# =============================================================================
# IMPULSE RESPONSE RESAMPLING
# =============================================================================
IR_POINTS_PER_OCTAVE = 24
IR_MIN_FREQ = 20.0  # Hz
IR_MAX_FREQ = 20000.0  # Hz, exclusive

# =============================================================================
# EQ SETTINGS
# =============================================================================
EQ_SAMPLE_RATE = 48000  # Hz
EQ_DEFAULT_Q = 2 ** 0.5 / 2

# =============================================================================
# LOGGING
# =============================================================================
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(message)s'
