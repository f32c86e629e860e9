# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Port interfaces between the CZML layer and trajectory sources.

Any propagation engine can drive the exporters by satisfying Propagator;
attitude providers and geometric detectors plug in the same way.
"""
from datetime import datetime
from typing import Protocol, runtime_checkable

from orbit_czml.ports.export import DocumentWriter

Vector = tuple[float, float, float]


@runtime_checkable
class Propagator(Protocol):
    """Port for bounded trajectory sources (ECI states, SI units)."""

    @property
    def min_date(self) -> datetime:
        """First instant the trajectory is valid."""
        ...

    @property
    def max_date(self) -> datetime:
        """Last instant the trajectory is valid."""
        ...

    def state_at(self, t: datetime) -> tuple[Vector, Vector]:
        """ECI (position m, velocity m/s) at t."""
        ...


@runtime_checkable
class AttitudeLaw(Protocol):
    """Port for attitude providers."""

    def orientation(
        self, time: datetime, position_eci: Vector, velocity_eci: Vector,
    ) -> tuple[float, float, float, float]:
        """Body->ECI unit quaternion (x, y, z, w) at time."""
        ...


@runtime_checkable
class Detector(Protocol):
    """Port for geometric switching functions."""

    def g(self, t: datetime) -> float:
        """Non-negative while the geometric predicate holds."""
        ...


__all__ = ["AttitudeLaw", "Detector", "DocumentWriter", "Propagator"]
