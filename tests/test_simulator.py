"""
tests/test_simulator.py
────────────────────────
Tests for the synthetic telemetry simulator.
"""
from datetime import timedelta

import numpy as np

from aethergrid.data.simulator import generate_history, generate_sample, power_curve
from aethergrid.data.weather import WeatherSnapshot
from config.assets import WTG_PROFILE


class TestPowerCurve:
    def test_zero_below_cut_in(self):
        assert power_curve(0.0) == 0.0
        assert power_curve(2.9) == 0.0
        assert power_curve(WTG_PROFILE.cut_in_ms) == 0.0

    def test_monotonic_in_wind(self):
        speeds = np.linspace(0, 30, 121)
        outputs = [power_curve(float(v)) for v in speeds]
        assert all(b >= a for a, b in zip(outputs, outputs[1:]))

    def test_saturates_at_rated(self):
        assert power_curve(25.0) == WTG_PROFILE.rated_power_kw
        assert power_curve(40.0) == WTG_PROFILE.rated_power_kw


class TestGenerateHistory:
    def test_correct_count(self, now):
        history = generate_history(50, 2.0, end=now, seed=42)
        assert len(history) == 50

    def test_strictly_chronological(self, now):
        history = generate_history(50, 2.0, end=now, seed=42)
        stamps = [s.captured_at for s in history]
        assert all(b > a for a, b in zip(stamps, stamps[1:]))
        assert stamps[-1] == now - timedelta(seconds=2)

    def test_values_non_negative(self, now):
        for s in generate_history(100, 2.0, end=now, seed=7):
            assert s.power_output >= 0.0
            assert s.vibration >= 0.0
            assert s.temperature >= 0.0
            assert 0.0 <= s.pitch_angle <= 90.0

    def test_reproducibility(self, now):
        h1 = generate_history(20, 2.0, end=now, seed=99)
        h2 = generate_history(20, 2.0, end=now, seed=99)
        assert [s.vibration for s in h1] == [s.vibration for s in h2]

    def test_different_seeds_differ(self, now):
        h1 = generate_history(20, 2.0, end=now, seed=1)
        h2 = generate_history(20, 2.0, end=now, seed=2)
        assert any(a.vibration != b.vibration for a, b in zip(h1, h2))


class TestGenerateSample:
    def test_calm_air_produces_no_power(self, now):
        calm = WeatherSnapshot(temperature_c=15.0, wind_speed_ms=0.0)
        s = generate_sample(now, calm, np.random.default_rng(0))
        assert s.power_output == 0.0

    def test_gale_is_capped(self, now):
        gale = WeatherSnapshot(temperature_c=15.0, wind_speed_ms=30.0)
        s = generate_sample(now, gale, np.random.default_rng(0))
        assert s.power_output <= WTG_PROFILE.rated_power_kw
        assert s.rotor_speed <= WTG_PROFILE.max_rotor_rpm
        assert s.pitch_angle > 0.0

    def test_freezing_ambient_clipped(self, now):
        arctic = WeatherSnapshot(temperature_c=-40.0, wind_speed_ms=0.0)
        s = generate_sample(now, arctic, np.random.default_rng(0))
        assert s.temperature >= 0.0

    def test_higher_wind_more_power(self, now):
        rng = np.random.default_rng(3)
        light = generate_sample(now, WeatherSnapshot(15.0, 6.0), rng)
        strong = generate_sample(now, WeatherSnapshot(15.0, 11.0), rng)
        assert strong.power_output > light.power_output
