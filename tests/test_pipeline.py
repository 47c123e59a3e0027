# tests/test_pipeline.py

import numpy as np
import pytest

from speaker_spin.core.cea2034 import (
    EARLY_REFLECTIONS_DI,
    LISTENING_WINDOW,
    ON_AXIS,
    SOUND_POWER,
    SOUND_POWER_DI,
    compute_cea2034,
    estimated_in_room,
)
from speaker_spin.core.scores import get_scores, nbd, sm
from speaker_spin.core.spin import SPIN_ANGLES
from speaker_spin.eq_control.apply import apply_eq
from speaker_spin.eq_control.iir import BiquadChain
from speaker_spin.loaders import process_spinorama_file


@pytest.fixture
def constant_klippel_zip(make_zip, make_klippel):
    """Klippel archive: 90 dB at every angle over 20 Hz - 20 kHz."""
    text = make_klippel({a: [90.0] * 5 for a in SPIN_ANGLES})
    return make_zip({"SPL Horizontal.txt": text, "SPL Vertical.txt": text})


def test_constant_klippel_end_to_end(constant_klippel_zip, freqs):
    """
    A constant speaker parses without repair, levels to 0 dB, has equal
    On-Axis, Listening Window and Sound Power, zero directivity and the
    boundary values of every score.
    """
    h, v = process_spinorama_file(constant_klippel_zip)
    assert not h.is_busted and not v.is_busted
    np.testing.assert_array_equal(h.freq, freqs)

    cea = compute_cea2034(h, v)
    assert not cea.is_busted
    for name in (ON_AXIS, LISTENING_WINDOW, SOUND_POWER):
        np.testing.assert_allclose(cea.curve(name), 0.0, atol=1e-9)
    np.testing.assert_allclose(cea.curve(SOUND_POWER_DI), 0.0, atol=1e-9)
    np.testing.assert_allclose(cea.curve(EARLY_REFLECTIONS_DI), 0.0, atol=1e-9)

    assert nbd(cea.freq, cea.curve(ON_AXIS)) == pytest.approx(0.0, abs=1e-9)
    assert sm(cea.freq, estimated_in_room(cea)) == 1.0

    scores = get_scores(cea)
    assert scores.lfx_hz == 14.5
    assert scores.sm_pred_in_room == 1.0
    assert scores.tonality == pytest.approx(scores.tonality_no_lfx_limit)
    assert scores.to_dict()["isBusted"] is False


def test_neutral_eq_changes_nothing(constant_klippel_zip):
    h, v = process_spinorama_file(constant_klippel_zip)
    chain = BiquadChain.from_apo_config("Preamp: -3 dB\nFilter 1: ON PK Fc 1000 Hz Gain 0 dB Q 1")
    h2, v2 = apply_eq(h, v, chain)
    before = get_scores(compute_cea2034(h, v))
    after = get_scores(compute_cea2034(h2, v2))
    assert after.tonality == pytest.approx(before.tonality)


def test_bass_boost_extends_lfx(make_zip, make_klippel):
    freqs = list(20 * 2 ** (np.arange(0, 120) / 12))
    # 12 dB/octave roll-off below 80 Hz
    spl = [90.0 - max(0.0, 40 * np.log10(80 / f)) for f in freqs]
    text = make_klippel({a: spl for a in SPIN_ANGLES}, freqs=freqs)
    h, v = process_spinorama_file(make_zip({"SPL Horizontal.txt": text, "SPL Vertical.txt": text}))
    before = get_scores(compute_cea2034(h, v))

    chain = BiquadChain.from_apo_config("Filter 1: ON LS Fc 60 Hz Gain 10 dB Q 0.7")
    after = get_scores(compute_cea2034(*apply_eq(h, v, chain)))
    assert after.lfx_hz < before.lfx_hz
