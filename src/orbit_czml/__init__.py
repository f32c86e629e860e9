# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
orbit-czml

Turn orbit propagation results into CZML scenes for CesiumJS: satellites
from Keplerian states, CCSDS OEM/AEM files or TLEs, ground stations,
ground tracks, covariance ellipsoids and line-of-sight displays whose
show timelines come from geometric event detection and the visibility
interval reconciler.
"""

from orbit_czml.domain.errors import (
    OrbitCzmlError,
    InvalidConfigurationError,
    PrerequisiteNotMetError,
    MissingOptionalFieldError,
    TimelineValidationError,
    CcsdsValidationError,
    CzmlDocumentError,
)
from orbit_czml.domain.simulation import (
    ClockRange,
    ClockStep,
    TimeInterval,
    SimulationContext,
)
from orbit_czml.domain.visibility import (
    VisibilityState,
    EventDirection,
    VisibilityEvent,
    VisibilityInterval,
    Timeline,
    reconcile_visibility,
    reconcile_pairs,
    pair_key,
)
from orbit_czml.domain.orbital_mechanics import (
    OrbitalConstants,
    kepler_to_cartesian,
    cartesian_to_keplerian,
)
from orbit_czml.domain.propagation import (
    OrbitalState,
    TrajectorySample,
    KeplerianPropagator,
    EphemerisPropagator,
    orbital_state_from_elements,
    derive_orbital_state,
    sample_trajectory,
)
from orbit_czml.domain.constellation import (
    ShellConfig,
    ShellSatellite,
    generate_walker_shell,
)
from orbit_czml.domain.observation import (
    GroundStation,
    Observation,
    compute_observation,
)
from orbit_czml.domain.attitude import (
    InertialAttitude,
    LvlhAttitude,
    TargetPointing,
    AttitudeEphemeris,
)
from orbit_czml.domain.detectors import (
    ElevationDetector,
    InterSatDirectViewDetector,
    find_events,
    detect_visibility,
    pair_visibility_timeline,
    constellation_visibility_timelines,
)
from orbit_czml.domain.covariance import (
    LOF,
    CovarianceEllipsoid,
    covariance_ellipsoid,
    covariance_ellipsoids,
)
from orbit_czml.domain.ground_track import (
    GroundTrackPoint,
    compute_ground_track,
)
from orbit_czml.domain.ccsds_parser import (
    CcsdsEphemeris,
    CcsdsAttitude,
    parse_oem,
    parse_aem,
)

__version__ = "0.1.0"

__all__ = [
    "OrbitCzmlError",
    "InvalidConfigurationError",
    "PrerequisiteNotMetError",
    "MissingOptionalFieldError",
    "TimelineValidationError",
    "CcsdsValidationError",
    "CzmlDocumentError",
    "ClockRange",
    "ClockStep",
    "TimeInterval",
    "SimulationContext",
    "VisibilityState",
    "EventDirection",
    "VisibilityEvent",
    "VisibilityInterval",
    "Timeline",
    "reconcile_visibility",
    "reconcile_pairs",
    "pair_key",
    "OrbitalConstants",
    "kepler_to_cartesian",
    "cartesian_to_keplerian",
    "OrbitalState",
    "TrajectorySample",
    "KeplerianPropagator",
    "EphemerisPropagator",
    "orbital_state_from_elements",
    "derive_orbital_state",
    "sample_trajectory",
    "ShellConfig",
    "ShellSatellite",
    "generate_walker_shell",
    "GroundStation",
    "Observation",
    "compute_observation",
    "InertialAttitude",
    "LvlhAttitude",
    "TargetPointing",
    "AttitudeEphemeris",
    "ElevationDetector",
    "InterSatDirectViewDetector",
    "find_events",
    "detect_visibility",
    "pair_visibility_timeline",
    "constellation_visibility_timelines",
    "LOF",
    "CovarianceEllipsoid",
    "covariance_ellipsoid",
    "covariance_ellipsoids",
    "GroundTrackPoint",
    "compute_ground_track",
    "CcsdsEphemeris",
    "CcsdsAttitude",
    "parse_oem",
    "parse_aem",
]
