# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""CZML exporter adapter for CesiumJS visualization.

Packet builders for the document header, satellites, constellations,
ground stations, ground tracks and the Earth-fixed reference axes. Every
function returns a list of CZML packets (dicts); collect them in a
CzmlDocument to write the file.

Uses only stdlib datetime/logging + domain imports.
"""

import logging

from orbit_czml.adapters.czml_entities import (
    GroundStationEntity,
    PolylineBuilder,
    PolylineEntity,
    SatelliteEntity,
)
from orbit_czml.adapters.czml_properties import (
    arrow_material,
    billboard,
    cartesian_positions,
    cartographic_positions,
    interval,
    iso,
    label,
    orientation_samples,
    path,
    point,
    reference_positions,
    show_during,
    solid_color,
)
from orbit_czml.domain.ground_track import compute_ground_track
from orbit_czml.domain.orbital_mechanics import OrbitalConstants, period_from_state
from orbit_czml.domain.propagation import sample_trajectory
from orbit_czml.domain.simulation import SimulationContext

logger = logging.getLogger(__name__)

DEFAULT_PERIOD_S = 3600.0
GROUND_TRACK_PREFIX = "GROUND_TRACK/"


def document_packet(context: SimulationContext, name: str = "orbit-czml") -> dict:
    """Header packet: document id, version and the viewer clock."""
    return {
        "id": "document",
        "name": name,
        "version": "1.0",
        "clock": {
            "interval": interval(context.start, context.stop),
            "currentTime": iso(context.start),
            "multiplier": context.multiplier,
            "range": context.clock_range.value,
            "step": context.clock_step.value,
        },
    }


def _path_times(entity: SatelliteEntity, samples) -> tuple[float, float]:
    """(leadTime, trailTime) in seconds for the orbit path."""
    if entity.one_period_only:
        period = period_from_state(samples[0].position_eci, samples[0].velocity_eci)
        return (period if period is not None else DEFAULT_PERIOD_S), 0.0
    span = (samples[-1].time - samples[0].time).total_seconds()
    return span, span


def satellite_packets(entity: SatelliteEntity, context: SimulationContext) -> list[dict]:
    """
    Satellite packet with sampled INERTIAL position.

    Availability is the part of the simulation span covered by the
    propagator. Adds a glTF model or a billboard/point marker, a label,
    the orbit path (whole run or one period ahead) and, when requested,
    the body orientation.

    Returns:
        A single-packet list, or an empty list when the trajectory does
        not overlap the simulation span.
    """
    samples = sample_trajectory(entity.propagator, context, entity.attitude_law)
    if not samples:
        logger.warning("Skipping satellite %s: no samples inside the simulation span", entity.name)
        return []

    start, stop = samples[0].time, samples[-1].time
    pkt: dict = {
        "id": entity.entity_id,
        "name": entity.name,
        "availability": interval(start, stop),
        "position": cartesian_positions(context.start, samples),
    }
    if entity.description:
        pkt["description"] = entity.description

    if entity.model_uri is not None:
        pkt["model"] = {"gltf": entity.model_uri, "minimumPixelSize": 64}
    elif entity.image is not None:
        pkt["billboard"] = billboard(entity.image, entity.color)
    else:
        pkt["point"] = point(entity.color)

    if entity.show_label:
        pkt["label"] = label(entity.name, entity.color)

    if entity.orbit_display:
        lead_time, trail_time = _path_times(entity, samples)
        pkt["path"] = path(entity.color, lead_time, trail_time, show=show_during(start, stop))

    if entity.displays_attitude:
        pkt["orientation"] = orientation_samples(context.start, samples)

    return [pkt]


def constellation_packets(
    entities: list[SatelliteEntity],
    context: SimulationContext,
    name: str = "Constellation",
) -> list[dict]:
    """Document packet followed by one packet per satellite."""
    packets: list[dict] = [document_packet(context, name)]
    for entity in entities:
        packets.extend(satellite_packets(entity, context))
    return packets


def ground_station_packets(
    stations: list[GroundStationEntity],
    context: SimulationContext,
) -> list[dict]:
    """Fixed marker and label for each ground station, shown for the whole run."""
    packets: list[dict] = []
    for entity in stations:
        station = entity.station
        pkt: dict = {
            "id": entity.entity_id,
            "name": entity.name,
            "availability": interval(context.start, context.stop),
            "position": {
                "cartographicDegrees": [station.lon_deg, station.lat_deg, station.alt_m],
            },
        }
        if entity.image is not None:
            pkt["billboard"] = billboard(entity.image, entity.color)
        else:
            pkt["point"] = point(entity.color, pixel_size=10)
        if entity.show_label:
            pkt["label"] = label(entity.name, entity.color)
        packets.append(pkt)
    return packets


def ground_track_packets(
    entity: SatelliteEntity,
    context: SimulationContext,
    link_to_satellite: bool = False,
) -> list[dict]:
    """
    Sub-satellite point moving on the ground, with its trail.

    With link_to_satellite, adds a polyline from the satellite down to the
    ground point.
    """
    samples = sample_trajectory(entity.propagator, context)
    if not samples:
        logger.warning("Skipping ground track of %s: no samples inside the simulation span", entity.name)
        return []

    track = compute_ground_track(samples)
    start, stop = samples[0].time, samples[-1].time
    track_id = GROUND_TRACK_PREFIX + entity.name
    packets: list[dict] = [{
        "id": track_id,
        "name": f"Ground track of {entity.name}",
        "availability": interval(start, stop),
        "position": cartographic_positions(context.start, track),
        "point": point(entity.color, pixel_size=4),
        "path": path(entity.color, 0.0, (stop - start).total_seconds(), show=show_during(start, stop)),
    }]

    if link_to_satellite:
        link = (PolylineBuilder.references(entity.entity_id, track_id)
                .with_id(f"{track_id}/LINK")
                .with_name(f"Nadir line of {entity.name}")
                .with_color(entity.color)
                .build())
        packets.extend(polyline_packets(link, context, show=show_during(start, stop)))
    return packets


def polyline_packets(
    entity: PolylineEntity,
    context: SimulationContext,
    show: list[dict] | bool = True,
) -> list[dict]:
    """Packet for a reference or vector polyline."""
    if entity.is_vector:
        positions = {"cartesian": [*entity.start, *entity.end]}
        material = arrow_material(entity.color) if entity.arrow else solid_color(entity.color)
    else:
        positions = reference_positions(*entity.references)
        material = solid_color(entity.color)

    return [{
        "id": entity.entity_id,
        "name": entity.name,
        "availability": interval(context.start, context.stop),
        "polyline": {
            "show": show,
            "positions": positions,
            "material": material,
            "width": entity.width,
            "arcType": entity.arc_type,
        },
    }]


_AXIS_COLORS = {
    "X": (255, 0, 0, 255),
    "Y": (0, 255, 0, 255),
    "Z": (0, 0, 255, 255),
}


def reference_axes_packets(
    context: SimulationContext,
    length_m: float = 2.0 * OrbitalConstants.R_EARTH_EQUATORIAL,
) -> list[dict]:
    """Earth-fixed X (red), Y (green) and Z (blue) axes drawn as arrows from the centre."""
    packets: list[dict] = []
    for axis, (x, y, z) in zip("XYZ", ((1, 0, 0), (0, 1, 0), (0, 0, 1))):
        arrow = (PolylineBuilder.vector([(0.0, 0.0, 0.0), (x * length_m, y * length_m, z * length_m)])
                 .with_id(f"AXIS/{axis}")
                 .with_name(f"Earth-fixed {axis} axis")
                 .with_color(_AXIS_COLORS[axis])
                 .with_width(10)
                 .with_arrow()
                 .build())
        packets.extend(polyline_packets(arrow, context))
    return packets
