# tests/test_equalizer_apo.py

import dataclasses

import pytest

from speaker_spin.eq_control.equalizer_apo import EqualizerPreset, FilterSpec
from speaker_spin.errors import EqConfigError


class TestParse:
    def test_full_line(self):
        preset = EqualizerPreset.parse("Preamp: -5.50 dB\nFilter 1: ON LSC Fc 105.0 Hz Gain -1.3 dB Q 0.70")
        assert preset.preamp == pytest.approx(-5.5)
        assert preset.filters == (FilterSpec("LSC", 105.0, -1.3, 0.7),)

    def test_q_before_gain(self):
        preset = EqualizerPreset.parse("Filter 2: ON PK Fc 1000 Hz Q 2 Gain 3 dB")
        spec = preset.filters[0]
        assert (spec.fc, spec.gain, spec.q) == (1000.0, 3.0, 2.0)

    def test_defaults(self):
        spec = EqualizerPreset.parse("Filter 1: ON HP Fc 80 Hz").filters[0]
        assert spec.gain == 0.0
        assert spec.q == pytest.approx(2 ** 0.5 / 2)

    def test_ignores_other_lines_and_off_filters(self):
        text = "\n".join([
            "# generated",
            "",
            "Device: Speakers",
            "Filter 1: OFF PK Fc 100 Hz Gain 3 dB Q 1",
            "Filter 2: ON PK Fc 200 Hz Gain 3 dB Q 1",
        ])
        preset = EqualizerPreset.parse(text)
        assert [f.fc for f in preset.filters] == [200.0]
        assert preset.preamp == 0.0

    @pytest.mark.parametrize("line, token", [
        ("Filter 1: ON PK Fc 100 Gain 3 dB", "Fc"),
        ("Filter 1: ON PK Fc abc Hz", "abc"),
        ("Filter 1: ON PK Fc 100 Hz Gain 3", "Gain"),
        ("Filter 1: ON PK Fc 100 Hz Slope 12", "Slope"),
        ("Filter 1: ON PK Fc 100 Hz Q 1 Q 2", "Q"),
        ("Filter 1: MAYBE PK Fc 100 Hz", "MAYBE"),
        ("Preamp: -3 dBFS", "dBFS"),
        ("Preamp: loud dB", "loud"),
    ])
    def test_rejects_malformed_lines(self, line, token):
        with pytest.raises(EqConfigError) as excinfo:
            EqualizerPreset.parse("# header\n" + line)
        assert "row 2" in str(excinfo.value)
        assert token in str(excinfo.value)


class TestPreset:
    def test_preset_is_immutable(self):
        preset = EqualizerPreset.parse("Preamp: -2 dB\nFilter 1: ON PK Fc 1000 Hz Gain 3 dB Q 1.5")
        assert preset.filters == (FilterSpec("PK", 1000.0, 3.0, 1.5),)
        with pytest.raises(dataclasses.FrozenInstanceError):
            preset.preamp = 0.0
        with pytest.raises(AttributeError):
            preset.filters.append(FilterSpec("PK", 50.0))

    def test_empty_text(self):
        assert EqualizerPreset.parse("") == EqualizerPreset()
