# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Trajectory sources for the CZML layer.

Two bounded propagators share one interface (min_date, max_date,
state_at): an analytical Keplerian propagator with J2 secular drift, and
an ephemeris propagator that interpolates tabulated states (OEM files,
SGP4 output). sample_trajectory turns either into time-tagged samples on
the simulation grid.

External dependency: numpy (allowed in domain layer).
"""
import bisect
import logging
import math
from dataclasses import dataclass
from datetime import datetime

import numpy as np

from orbit_czml.domain.errors import InvalidConfigurationError
from orbit_czml.domain.orbital_mechanics import (
    OrbitalConstants,
    cartesian_to_keplerian,
    j2_arg_perigee_rate,
    j2_mean_motion_correction,
    j2_raan_rate,
    kepler_to_cartesian,
    mean_to_true_anomaly,
    true_to_mean_anomaly,
)
from orbit_czml.domain.simulation import SimulationContext, TimeInterval, as_utc

logger = logging.getLogger(__name__)

Vector = tuple[float, float, float]


@dataclass(frozen=True)
class OrbitalState:
    """Keplerian state at a reference epoch, with optional J2 secular rates."""
    semi_major_axis_m: float
    eccentricity: float
    inclination_rad: float
    raan_rad: float
    arg_perigee_rad: float
    true_anomaly_rad: float
    mean_motion_rad_s: float
    reference_epoch: datetime
    j2_raan_rate: float = 0.0
    j2_arg_perigee_rate: float = 0.0
    j2_mean_motion_correction: float = 0.0

    @property
    def period_s(self) -> float:
        return 2.0 * math.pi / self.mean_motion_rad_s


@dataclass(frozen=True)
class TrajectorySample:
    """One sample of a trajectory: ECI state plus optional body->ECI attitude."""
    time: datetime
    position_eci: Vector
    velocity_eci: Vector
    attitude: tuple[float, float, float, float] | None = None


def orbital_state_from_elements(
    a: float,
    e: float,
    i_rad: float,
    raan_rad: float,
    arg_perigee_rad: float,
    nu_rad: float,
    reference_epoch: datetime,
    include_j2: bool = False,
) -> OrbitalState:
    """Build an OrbitalState from Keplerian elements."""
    if a <= 0.0:
        raise InvalidConfigurationError(f"semi-major axis must be positive, got {a}")
    if not 0.0 <= e < 1.0:
        raise InvalidConfigurationError(f"eccentricity must be in [0, 1), got {e}")

    n = math.sqrt(OrbitalConstants.MU_EARTH / a**3)
    raan_dot = argp_dot = n_corr = 0.0
    if include_j2:
        raan_dot = j2_raan_rate(n, a, e, i_rad)
        argp_dot = j2_arg_perigee_rate(n, a, e, i_rad)
        n_corr = j2_mean_motion_correction(n, a, e, i_rad)

    return OrbitalState(
        semi_major_axis_m=a,
        eccentricity=e,
        inclination_rad=i_rad,
        raan_rad=raan_rad,
        arg_perigee_rad=arg_perigee_rad,
        true_anomaly_rad=nu_rad,
        mean_motion_rad_s=n,
        reference_epoch=as_utc(reference_epoch),
        j2_raan_rate=raan_dot,
        j2_arg_perigee_rate=argp_dot,
        j2_mean_motion_correction=n_corr,
    )


def derive_orbital_state(
    position_eci: Vector,
    velocity_eci: Vector,
    reference_epoch: datetime,
    include_j2: bool = False,
) -> OrbitalState:
    """
    Derive an OrbitalState from an ECI state vector.

    Args:
        position_eci: Position in meters.
        velocity_eci: Velocity in m/s.
        reference_epoch: Epoch of the state vector.
        include_j2: If True, compute J2 secular perturbation rates.

    Raises:
        InvalidConfigurationError: If the state is not a bound orbit.
    """
    try:
        elements = cartesian_to_keplerian(position_eci, velocity_eci)
    except ValueError as e:
        raise InvalidConfigurationError(str(e)) from e
    return orbital_state_from_elements(
        elements.semi_major_axis_m,
        elements.eccentricity,
        elements.inclination_rad,
        elements.raan_rad,
        elements.arg_perigee_rad,
        elements.true_anomaly_rad,
        reference_epoch,
        include_j2=include_j2,
    )


def propagate_to(
    state: OrbitalState,
    target_time: datetime,
) -> tuple[list[float], list[float]]:
    """
    Propagate to target_time and return ECI position/velocity.

    The mean anomaly advances at the (J2-corrected) mean motion; RAAN and
    argument of perigee drift at their secular rates.
    """
    dt = (as_utc(target_time) - state.reference_epoch).total_seconds()

    raan = state.raan_rad + state.j2_raan_rate * dt
    arg_perigee = state.arg_perigee_rad + state.j2_arg_perigee_rate * dt
    n_eff = state.j2_mean_motion_correction or state.mean_motion_rad_s

    if state.eccentricity == 0.0:
        nu = state.true_anomaly_rad + n_eff * dt
    else:
        m0 = true_to_mean_anomaly(state.true_anomaly_rad, state.eccentricity)
        nu = mean_to_true_anomaly(m0 + n_eff * dt, state.eccentricity)

    return kepler_to_cartesian(
        a=state.semi_major_axis_m,
        e=state.eccentricity,
        i_rad=state.inclination_rad,
        raan_rad=raan,
        arg_perigee_rad=arg_perigee,
        nu_rad=nu,
    )


def _check_bounds(t: datetime, min_date: datetime, max_date: datetime, what: str) -> datetime:
    t = as_utc(t)
    if not min_date <= t <= max_date:
        raise InvalidConfigurationError(
            f"{t.isoformat()} is outside the {what} validity "
            f"{min_date.isoformat()} -> {max_date.isoformat()}"
        )
    return t


class KeplerianPropagator:
    """Analytical two-body (+J2 secular) propagator valid over a fixed window."""

    def __init__(self, state: OrbitalState, min_date: datetime, max_date: datetime) -> None:
        self._state = state
        self._window = TimeInterval(min_date, max_date)

    @classmethod
    def for_context(cls, state: OrbitalState, context: SimulationContext) -> "KeplerianPropagator":
        return cls(state, context.start, context.stop)

    @property
    def state(self) -> OrbitalState:
        return self._state

    @property
    def min_date(self) -> datetime:
        return self._window.start

    @property
    def max_date(self) -> datetime:
        return self._window.stop

    def state_at(self, t: datetime) -> tuple[Vector, Vector]:
        t = _check_bounds(t, self.min_date, self.max_date, "propagator")
        pos, vel = propagate_to(self._state, t)
        return (pos[0], pos[1], pos[2]), (vel[0], vel[1], vel[2])


def _lagrange(offsets: np.ndarray, values: np.ndarray, x: float) -> np.ndarray:
    """Lagrange polynomial through (offsets[k], values[k]) evaluated at x."""
    result = np.zeros(values.shape[1])
    for k in range(len(offsets)):
        others = np.delete(offsets, k)
        weight = float(np.prod((x - others) / (offsets[k] - others)))
        result += weight * values[k]
    return result


class EphemerisPropagator:
    """
    Interpolates tabulated ECI states.

    Position and velocity are interpolated with a Lagrange polynomial
    over the degree + 1 records nearest the requested time.
    """

    def __init__(self, samples: list[TrajectorySample], degree: int = 5) -> None:
        if len(samples) < 2:
            raise InvalidConfigurationError(
                f"ephemeris needs at least 2 samples, got {len(samples)}"
            )
        if degree < 1:
            raise InvalidConfigurationError(f"interpolation degree must be >= 1, got {degree}")
        times = [as_utc(s.time) for s in samples]
        if any(b <= a for a, b in zip(times, times[1:])):
            raise InvalidConfigurationError("ephemeris epochs must be strictly increasing")

        self._samples = list(samples)
        self._times = times
        self._degree = min(degree, len(samples) - 1)
        self._offsets = np.array([(t - times[0]).total_seconds() for t in times])
        self._states = np.array([
            list(s.position_eci) + list(s.velocity_eci) for s in samples
        ], dtype=float)

    @property
    def samples(self) -> list[TrajectorySample]:
        return list(self._samples)

    @property
    def min_date(self) -> datetime:
        return self._times[0]

    @property
    def max_date(self) -> datetime:
        return self._times[-1]

    def state_at(self, t: datetime) -> tuple[Vector, Vector]:
        t = _check_bounds(t, self.min_date, self.max_date, "ephemeris")
        x = (t - self._times[0]).total_seconds()

        count = self._degree + 1
        center = bisect.bisect_left(self._offsets.tolist(), x)
        first = min(max(center - count // 2, 0), len(self._offsets) - count)
        window = slice(first, first + count)

        state = _lagrange(self._offsets[window], self._states[window], x)
        return (
            (float(state[0]), float(state[1]), float(state[2])),
            (float(state[3]), float(state[4]), float(state[5])),
        )


def sample_trajectory(
    propagator,
    context: SimulationContext,
    attitude_law=None,
) -> list[TrajectorySample]:
    """
    Sample a propagator on the simulation grid.

    The grid is the context's, restricted to the part of the span where the
    propagator (and the attitude law, if it is bounded) is valid.

    Args:
        propagator: Object with min_date, max_date and state_at(t).
        context: Simulation span and step.
        attitude_law: Optional object with orientation(t, pos, vel).

    Returns:
        Samples in chronological order; empty when the propagator does not
        overlap the simulation span.
    """
    window = context.span.intersection(TimeInterval(propagator.min_date, propagator.max_date))
    if window is not None and attitude_law is not None and hasattr(attitude_law, "min_date"):
        window = window.intersection(TimeInterval(attitude_law.min_date, attitude_law.max_date))
    if window is None:
        logger.warning(
            "Trajectory %s -> %s does not overlap the simulation span %s -> %s",
            propagator.min_date.isoformat(), propagator.max_date.isoformat(),
            context.start.isoformat(), context.stop.isoformat(),
        )
        return []

    samples: list[TrajectorySample] = []
    for t in context.with_span(window.start, window.stop).sample_times():
        pos, vel = propagator.state_at(t)
        attitude = attitude_law.orientation(t, pos, vel) if attitude_law is not None else None
        samples.append(TrajectorySample(time=t, position_eci=pos, velocity_eci=vel, attitude=attitude))
    return samples
