# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Visibility and uncertainty visualization packets for CesiumJS.

Line-of-sight polylines whose ``show`` timeline comes from the
visibility reconciler (station-satellite, satellite-satellite and whole
constellations), covariance ellipsoids attached to a satellite, and
visibility cones above ground stations.

Uses only stdlib logging/math + internal domain/adapter imports.
"""

import logging
import math

from orbit_czml.adapters.czml_entities import (
    GroundStationEntity,
    PolylineBuilder,
    SatelliteEntity,
)
from orbit_czml.adapters.czml_properties import (
    Color,
    cylinder,
    ellipsoid,
    interval,
    iso,
    show_timeline,
)
from orbit_czml.adapters.czml_exporter import polyline_packets
from orbit_czml.domain.attitude import body_to_fixed
from orbit_czml.domain.covariance import CovarianceEllipsoid
from orbit_czml.domain.detectors import (
    DEFAULT_APERTURE_DEG,
    DEFAULT_MAX_CHECK_S,
    ElevationDetector,
    constellation_visibility_timelines,
    detect_visibility,
    pair_visibility_timeline,
)
from orbit_czml.domain.errors import InvalidConfigurationError
from orbit_czml.domain.simulation import SimulationContext, TimeInterval
from orbit_czml.domain.visibility import Timeline, VisibilityState, pair_key

logger = logging.getLogger(__name__)

LINE_OF_VISIBILITY_PREFIX = "LINE_VISU/"
INTER_SAT_PREFIX = "INTER_SAT_VISU/"
COVARIANCE_PREFIX = "COV/"
VISIBILITY_CONE_PREFIX = "VIS/"

_LINK_COLOR: Color = (0, 255, 255, 255)


def _log_never_visible(timeline: Timeline, first: str, second: str) -> None:
    if not timeline.transitioned and timeline.initial_state is VisibilityState.NOT_VISIBLE:
        logger.info("%s is not visible from %s for the given time interval", second, first)


def _visibility_line(
    first_id: str,
    second_id: str,
    entity_id: str,
    name: str,
    timeline: Timeline,
    context: SimulationContext,
    color: Color,
) -> dict:
    line = (PolylineBuilder.references(first_id, second_id)
            .with_id(entity_id)
            .with_name(name)
            .with_color(color)
            .build())
    pkt = polyline_packets(line, context, show=show_timeline(timeline))[0]
    pkt["availability"] = interval(timeline.start, timeline.stop)
    return pkt


def line_of_visibility_packets(
    station: GroundStationEntity,
    satellite: SatelliteEntity,
    context: SimulationContext,
    aperture_deg: float = DEFAULT_APERTURE_DEG,
    max_check_seconds: float = DEFAULT_MAX_CHECK_S,
    color: Color = _LINK_COLOR,
) -> list[dict]:
    """
    Station-to-satellite line shown while the satellite is in view.

    The satellite is in view while it stays inside the cone of half-angle
    aperture_deg around the station zenith (elevation above
    90 - aperture_deg).

    Args:
        station: Ground station entity (its packet supplies one end).
        satellite: Satellite entity (its packet supplies the other end).
        context: Simulation span.
        aperture_deg: Visibility cone half-angle.
        max_check_seconds: Detector sampling interval.
        color: Line color.

    Returns:
        A single polyline packet, or an empty list when the trajectory does
        not overlap the simulation span.
    """
    propagator = satellite.propagator
    window = context.span.intersection(TimeInterval(propagator.min_date, propagator.max_date))
    if window is None:
        logger.warning("Skipping line of visibility to %s: no overlap with the simulation span", satellite.name)
        return []

    detector = ElevationDetector.from_aperture(station.station, propagator, aperture_deg)
    timeline = detect_visibility(detector, window, max_check_seconds)
    _log_never_visible(timeline, station.name, satellite.name)

    return [_visibility_line(
        station.entity_id, satellite.entity_id,
        f"{LINE_OF_VISIBILITY_PREFIX}{station.name}/{satellite.name}",
        f"Line between {station.name} and {satellite.name}",
        timeline, context, color,
    )]


def inter_satellite_packets(
    first: SatelliteEntity,
    second: SatelliteEntity,
    context: SimulationContext,
    skimming_altitude_m: float = 0.0,
    max_check_seconds: float = DEFAULT_MAX_CHECK_S,
    color: Color = _LINK_COLOR,
) -> list[dict]:
    """
    Line between two satellites shown while they have direct line of sight.

    The line's availability is the part of the simulation span where both
    trajectories are valid.
    """
    pair_key(first.entity_id, second.entity_id)
    try:
        timeline = pair_visibility_timeline(
            first.propagator, second.propagator, context.span,
            skimming_altitude_m=skimming_altitude_m,
            max_check_seconds=max_check_seconds,
        )
    except InvalidConfigurationError as e:
        logger.warning("Skipping inter-satellite visibility %s / %s: %s", first.name, second.name, e)
        return []
    _log_never_visible(timeline, first.name, second.name)

    return [_visibility_line(
        first.entity_id, second.entity_id,
        f"{INTER_SAT_PREFIX}{first.name}/{second.name}",
        f"Visualisation inter-satellite of: {first.name} and {second.name}",
        timeline, context, color,
    )]


def constellation_visibility_packets(
    satellites: list[SatelliteEntity],
    context: SimulationContext,
    skimming_altitude_m: float = 0.0,
    max_check_seconds: float = DEFAULT_MAX_CHECK_S,
    color: Color = _LINK_COLOR,
) -> list[dict]:
    """
    One line-of-sight polyline per unordered satellite pair.

    Pairs are emitted in input order (first with second, first with
    third, ...). All lines share the window where every trajectory is
    valid.

    Raises:
        InvalidConfigurationError: If fewer than two satellites are given,
            ids repeat, or the trajectories have no common window.
    """
    by_id = {s.entity_id: s for s in satellites}
    if len(by_id) != len(satellites):
        raise InvalidConfigurationError("satellite entity ids must be unique")

    _, timelines = constellation_visibility_timelines(
        {s.entity_id: s.propagator for s in satellites},
        context.span,
        skimming_altitude_m=skimming_altitude_m,
        max_check_seconds=max_check_seconds,
    )

    packets: list[dict] = []
    for i, first in enumerate(satellites):
        for second in satellites[i + 1:]:
            timeline = timelines[pair_key(first.entity_id, second.entity_id)]
            _log_never_visible(timeline, first.name, second.name)
            packets.append(_visibility_line(
                first.entity_id, second.entity_id,
                f"{INTER_SAT_PREFIX}{first.name}/{second.name}",
                f"Visualisation inter-constellation of: {first.name} and {second.name}",
                timeline, context, color,
            ))
    return packets


def covariance_packets(
    satellite: SatelliteEntity,
    ellipsoids: list[CovarianceEllipsoid],
    context: SimulationContext,
    color: Color = (255, 165, 0, 96),
) -> list[dict]:
    """
    Uncertainty ellipsoid following a satellite.

    The ellipsoid takes the satellite position by reference; its radii and
    orientation are sampled at the ellipsoid epochs.
    """
    if not ellipsoids:
        raise InvalidConfigurationError("covariance display needs at least one ellipsoid")
    ellipsoids = sorted(ellipsoids, key=lambda e: e.time)

    orientation: list[float] = []
    for ell in ellipsoids:
        t = (ell.time - context.start).total_seconds()
        orientation.extend([t, *body_to_fixed(ell.orientation, ell.time)])

    start, stop = ellipsoids[0].time, ellipsoids[-1].time
    availability = interval(start, stop) if stop > start else interval(context.start, context.stop)
    return [{
        "id": COVARIANCE_PREFIX + satellite.name,
        "name": f"Covariance of {satellite.name}",
        "availability": availability,
        "position": {"reference": f"{satellite.entity_id}#position"},
        "orientation": {
            "epoch": iso(context.start),
            "unitQuaternion": orientation,
            "interpolationAlgorithm": "LINEAR",
        },
        "ellipsoid": ellipsoid(context.start, [(e.time, e.radii_m) for e in ellipsoids], color),
    }]


def visibility_cone_packets(
    station: GroundStationEntity,
    context: SimulationContext,
    height_m: float = 1_000_000.0,
    aperture_deg: float = DEFAULT_APERTURE_DEG,
    color: Color = (255, 255, 0, 48),
) -> list[dict]:
    """
    Cone of half-angle aperture_deg above a station, height_m tall.

    Drawn as a CZML cylinder with a zero bottom radius, centred half its
    height above the station along the local vertical.
    """
    if height_m <= 0:
        raise InvalidConfigurationError(f"height_m must be positive, got {height_m}")
    if not 0.0 < aperture_deg < 90.0:
        raise InvalidConfigurationError(f"cone aperture must be in (0, 90) degrees, got {aperture_deg}")

    s = station.station
    return [{
        "id": VISIBILITY_CONE_PREFIX + station.name,
        "name": f"Visibility cone of {station.name}",
        "availability": interval(context.start, context.stop),
        "position": {
            "cartographicDegrees": [s.lon_deg, s.lat_deg, s.alt_m + height_m / 2.0],
        },
        "cylinder": cylinder(
            height_m, height_m * math.tan(math.radians(aperture_deg)), 0.0, color,
        ),
    }]
