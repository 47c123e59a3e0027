# tests/test_repair.py

import numpy as np
import pytest

from speaker_spin.core.repair import finalize, level, normalized_to_on_axis, on_axis_level, repair
from speaker_spin.core.spin import Angle, AngularGrid, Curve, SPIN_ANGLES
from speaker_spin.errors import MalformedRecordError

from conftest import FREQS, flat_spin


def positive_half():
    return [a for a in SPIN_ANGLES if a.degrees >= 0]


class TestRepair:
    def test_complete_input_is_not_repaired(self):
        h, v = flat_spin(1.0), flat_spin(2.0)
        h2, v2, was_repaired = repair(h, v)
        assert not was_repaired
        assert all(h2[a] is h[a] for a in SPIN_ANGLES)
        assert all(v2[a] is v[a] for a in SPIN_ANGLES)

    def test_missing_plane_is_cloned(self):
        h = flat_spin(1.0)
        h2, v2, was_repaired = repair(h, {})
        assert was_repaired
        assert all(v2[a] is h[a] for a in SPIN_ANGLES)

    def test_mirror_fills_other_side(self):
        h = flat_spin(1.0, angles=positive_half())
        h[Angle.P30] = Curve(np.array(FREQS), np.full(5, 7.0))
        h2, v2, was_repaired = repair(h, flat_spin(0.0))
        assert was_repaired
        assert h2[Angle.M30] is h[Angle.P30]
        assert len(h2) == 36

    def test_nearest_neighbour_hold(self):
        on_axis = Curve(np.array(FREQS), np.zeros(5))
        p20 = Curve(np.array(FREQS), np.full(5, 20.0))
        h2, v2, _ = repair({Angle.ON_AXIS: on_axis, Angle.P20: p20}, {Angle.ON_AXIS: on_axis})

        # P20 mirrors to M20; the gaps then hold the nearest angle walking outward
        assert h2[Angle.P10] is on_axis
        assert h2[Angle.M10] is on_axis
        assert h2[Angle.M20] is p20
        for degrees in range(30, 190, 10):
            assert h2[Angle(degrees)] is p20
        for degrees in range(-30, -180, -10):
            assert h2[Angle(degrees)] is p20
        assert all(v2[a] is on_axis for a in SPIN_ANGLES)

    def test_inputs_are_untouched(self):
        h = {Angle.ON_AXIS: Curve(np.array(FREQS), np.zeros(5))}
        repair(h, {})
        assert list(h) == [Angle.ON_AXIS]

    def test_both_planes_empty(self):
        with pytest.raises(MalformedRecordError):
            repair({}, {})

    def test_missing_on_axis(self):
        with pytest.raises(MalformedRecordError, match="On-Axis"):
            repair(flat_spin(0.0, angles=[Angle.P10]), flat_spin(0.0))


class TestFinalize:
    def test_builds_two_grids(self):
        h, v = finalize(flat_spin(1.0), flat_spin(2.0), is_busted=True)
        assert isinstance(h, AngularGrid) and isinstance(v, AngularGrid)
        assert h.is_busted and v.is_busted

    def test_inconsistent_frequencies(self):
        with pytest.raises(MalformedRecordError, match="Inconsistent"):
            finalize(flat_spin(1.0), flat_spin(1.0, freqs=[20.0, 200.0, 2000.0]))

    def test_missing_angle(self):
        with pytest.raises(MalformedRecordError):
            finalize(flat_spin(1.0, angles=positive_half()), flat_spin(1.0))


class TestLevel:
    def test_on_axis_band_mean_becomes_zero(self, make_flat_grid):
        h = make_flat_grid(90.0)
        v = h.map_spl(lambda a, spl: spl + (4.0 if a is Angle.ON_AXIS else 0.0))
        h2, v2 = level(h, v)
        # only 1000 Hz falls inside 300-3000 Hz: the pooled mean is 92
        np.testing.assert_allclose(h2[Angle.ON_AXIS], -2.0)
        np.testing.assert_allclose(v2[Angle.ON_AXIS], 2.0)
        np.testing.assert_allclose(h2[Angle.P50], -2.0)

    def test_leveling_twice_is_leveling_once(self):
        freqs = np.geomspace(20, 20000, 97)
        rng = np.random.default_rng(7)
        h = AngularGrid(freqs, {a: 85 + 6 * rng.standard_normal(freqs.size) for a in SPIN_ANGLES})
        v = AngularGrid(freqs, {a: 80 + 6 * rng.standard_normal(freqs.size) for a in SPIN_ANGLES})

        once = level(h, v)
        twice = level(*once)
        assert on_axis_level(*once) == pytest.approx(0.0, abs=1e-10)
        for first, second in zip(once, twice):
            for angle in SPIN_ANGLES:
                np.testing.assert_allclose(second[angle], first[angle], atol=1e-10)

    def test_empty_band_leaves_levels(self):
        freqs = [20.0, 100.0, 5000.0]
        grid = AngularGrid(np.array(freqs), {a: np.full(3, 80.0) for a in SPIN_ANGLES})
        (leveled,) = level(grid)
        np.testing.assert_allclose(leveled[Angle.ON_AXIS], 80.0)

    def test_normalized_to_on_axis(self, make_flat_grid):
        grid = make_flat_grid(90.0).map_spl(lambda a, spl: spl - abs(a.degrees) / 10)
        normalized = normalized_to_on_axis(grid)
        np.testing.assert_allclose(normalized[Angle.ON_AXIS], 0.0)
        np.testing.assert_allclose(normalized[Angle.M30], -3.0)
