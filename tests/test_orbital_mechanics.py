# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for two-body element conversions and J2 rates."""
import ast
import math

import numpy as np
import pytest

from orbit_czml.domain.orbital_mechanics import (
    OrbitalConstants,
    cartesian_to_keplerian,
    j2_arg_perigee_rate,
    j2_raan_rate,
    kepler_to_cartesian,
    keplerian_period,
    mean_to_true_anomaly,
    period_from_state,
    true_to_mean_anomaly,
)

A_LEO = OrbitalConstants.R_EARTH + 550_000.0


# ── Kepler → Cartesian ────────────────────────────────────────────

class TestKeplerToCartesian:

    def test_circular_radius_and_speed(self):
        pos, vel = kepler_to_cartesian(A_LEO, 0.0, math.radians(53), 0.3, 0.0, 1.2)
        assert np.linalg.norm(pos) == pytest.approx(A_LEO, rel=1e-12)
        assert np.linalg.norm(vel) == pytest.approx(math.sqrt(OrbitalConstants.MU_EARTH / A_LEO), rel=1e-12)

    def test_equatorial_perigee_on_x_axis(self):
        pos, vel = kepler_to_cartesian(A_LEO, 0.1, 0.0, 0.0, 0.0, 0.0)
        assert pos[0] == pytest.approx(A_LEO * 0.9)
        assert pos[1] == pytest.approx(0.0, abs=1e-6)
        assert vel[1] > 0

    def test_hyperbolic_eccentricity_raises(self):
        with pytest.raises(ValueError):
            kepler_to_cartesian(A_LEO, 1.2, 0.0, 0.0, 0.0, 0.0)


# ── Cartesian → Kepler ────────────────────────────────────────────

class TestCartesianToKeplerian:

    @pytest.mark.parametrize("e, i_deg, raan_deg, argp_deg, nu_deg", [
        (0.01, 53.0, 40.0, 30.0, 100.0),
        (0.3, 98.0, 300.0, 250.0, 10.0),
        (0.2, 0.0, 0.0, 120.0, 45.0),
        (0.2, 0.0, 0.0, 300.0, 45.0),
    ])
    def test_recovers_elements(self, e, i_deg, raan_deg, argp_deg, nu_deg):
        pos, vel = kepler_to_cartesian(
            A_LEO, e, math.radians(i_deg), math.radians(raan_deg),
            math.radians(argp_deg), math.radians(nu_deg),
        )
        el = cartesian_to_keplerian(pos, vel)
        assert el.semi_major_axis_m == pytest.approx(A_LEO, rel=1e-9)
        assert el.eccentricity == pytest.approx(e, abs=1e-9)
        assert math.degrees(el.inclination_rad) == pytest.approx(i_deg, abs=1e-7)
        assert math.degrees(el.arg_perigee_rad + el.raan_rad) % 360.0 == pytest.approx(
            (argp_deg + raan_deg) % 360.0, abs=1e-6)
        assert math.degrees(el.true_anomaly_rad) == pytest.approx(nu_deg, abs=1e-6)

    def test_circular_reports_argument_of_latitude(self):
        pos, vel = kepler_to_cartesian(A_LEO, 0.0, math.radians(53), 0.0, 0.0, math.radians(200))
        el = cartesian_to_keplerian(pos, vel)
        assert el.eccentricity == 0.0
        assert el.arg_perigee_rad == 0.0
        assert math.degrees(el.true_anomaly_rad) == pytest.approx(200.0, abs=1e-6)

    def test_unbound_state_raises(self):
        with pytest.raises(ValueError, match="not a bound orbit"):
            cartesian_to_keplerian((7e6, 0, 0), (0, 20_000.0, 0))

    def test_rectilinear_state_raises(self):
        with pytest.raises(ValueError):
            cartesian_to_keplerian((7e6, 0, 0), (1000.0, 0, 0))


class TestPeriodAndAnomaly:

    def test_period_of_geo(self):
        assert keplerian_period(42_164_000.0) == pytest.approx(86_164.0, rel=1e-3)

    def test_period_from_state(self):
        pos, vel = kepler_to_cartesian(A_LEO, 0.0, 0.0, 0.0, 0.0, 0.0)
        assert period_from_state(pos, vel) == pytest.approx(keplerian_period(A_LEO))

    def test_period_from_unbound_state_is_none(self):
        assert period_from_state((7e6, 0, 0), (0, 20_000.0, 0)) is None

    @pytest.mark.parametrize("e", [0.0, 0.1, 0.7, 0.95])
    def test_kepler_equation_round_trip(self, e):
        for nu in (0.1, 1.0, 2.5, 3.0):
            m = true_to_mean_anomaly(nu, e)
            assert mean_to_true_anomaly(m, e) == pytest.approx(nu, abs=1e-9)


class TestJ2Rates:

    def test_raan_regresses_for_prograde(self):
        n = math.sqrt(OrbitalConstants.MU_EARTH / A_LEO**3)
        assert j2_raan_rate(n, A_LEO, 0.0, math.radians(53)) < 0

    def test_sun_synchronous_rate(self):
        a = OrbitalConstants.R_EARTH + 700_000.0
        n = math.sqrt(OrbitalConstants.MU_EARTH / a**3)
        rate_deg_day = math.degrees(j2_raan_rate(n, a, 0.0, math.radians(98.19))) * 86400.0
        assert rate_deg_day == pytest.approx(0.9856, abs=0.02)

    def test_critical_inclination_freezes_perigee(self):
        n = math.sqrt(OrbitalConstants.MU_EARTH / A_LEO**3)
        assert j2_arg_perigee_rate(n, A_LEO, 0.0, math.radians(63.4349)) == pytest.approx(0.0, abs=1e-10)


class TestOrbitalMechanicsPurity:

    def test_imports_only_stdlib_and_numpy(self):
        import orbit_czml.domain.orbital_mechanics as mod

        allowed = {'math', 'dataclasses', 'numpy'}
        with open(mod.__file__) as f:
            tree = ast.parse(f.read())

        for node in ast.walk(tree):
            if isinstance(node, ast.Import):
                for alias in node.names:
                    assert alias.name.split('.')[0] in allowed, f"Disallowed import '{alias.name}'"
            if isinstance(node, ast.ImportFrom) and node.module and node.level == 0:
                assert node.module.split('.')[0] in allowed, f"Disallowed import from '{node.module}'"
