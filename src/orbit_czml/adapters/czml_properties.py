# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""CZML property builders.

Small functions returning the dict fragments CZML packets are made of:
time strings, sampled positions and orientations, graphics blocks and
colors. Packet-level assembly lives in czml_exporter and
czml_visualization.

Uses only stdlib colorsys/datetime + domain imports.
"""

import colorsys
from datetime import datetime, timezone

from orbit_czml.domain.attitude import body_to_fixed
from orbit_czml.domain.visibility import Timeline

Color = tuple[int, int, int, int]

WHITE: Color = (255, 255, 255, 255)
DEFAULT_FONT = "11pt Lucida Console"

PLANE_COLORS: list[Color] = [
    (255, 82, 82, 255),     # Red
    (66, 165, 245, 255),    # Blue
    (102, 187, 106, 255),   # Green
    (255, 167, 38, 255),    # Orange
    (171, 71, 188, 255),    # Purple
    (38, 198, 218, 255),    # Cyan
    (255, 238, 88, 255),    # Yellow
    (236, 64, 122, 255),    # Pink
    (129, 199, 132, 255),   # Light green
    (79, 195, 247, 255),    # Light blue
    (149, 117, 205, 255),   # Light purple
    (255, 138, 101, 255),   # Light orange
]


def iso(dt: datetime) -> str:
    """ISO-8601 UTC string, with microseconds only when present."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    if dt.microsecond:
        return dt.strftime("%Y-%m-%dT%H:%M:%S.%f").rstrip("0") + "Z"
    return dt.strftime("%Y-%m-%dT%H:%M:%SZ")


def interval(start: datetime, stop: datetime) -> str:
    return f"{iso(start)}/{iso(stop)}"


def interpolation_degree(num_points: int) -> int:
    """LAGRANGE interpolation degree: min(5, num_points - 1), at least 1."""
    if num_points <= 1:
        return 1
    return min(5, num_points - 1)


def rgba(color: Color) -> dict:
    return {"rgba": list(color)}


def color_wheel(count: int, alpha: int = 255) -> list[Color]:
    """count distinct, evenly spaced hues at full saturation."""
    colors: list[Color] = []
    for k in range(count):
        r, g, b = colorsys.hsv_to_rgb(k / max(count, 1), 0.75, 1.0)
        colors.append((round(r * 255), round(g * 255), round(b * 255), alpha))
    return colors


def plane_color(plane_index: int) -> Color:
    """Palette color of an orbital plane (cycles after twelve planes)."""
    return PLANE_COLORS[plane_index % len(PLANE_COLORS)]


def show_timeline(timeline: Timeline) -> list[dict]:
    """Boolean show property: one {interval, boolean} entry per Timeline interval."""
    return [
        {"interval": interval(iv.start, iv.stop), "boolean": iv.state.shown}
        for iv in timeline.intervals
    ]


def show_during(start: datetime, stop: datetime) -> list[dict]:
    """Show only inside [start, stop]."""
    return [{"interval": interval(start, stop), "boolean": True}]


def cartesian_positions(epoch: datetime, samples) -> dict:
    """Sampled ECI positions, CZML INERTIAL frame."""
    values: list[float] = []
    for s in samples:
        values.extend([(s.time - epoch).total_seconds(), *s.position_eci])
    return {
        "epoch": iso(epoch),
        "referenceFrame": "INERTIAL",
        "cartesian": values,
        "interpolationAlgorithm": "LAGRANGE",
        "interpolationDegree": interpolation_degree(len(samples)),
    }


def cartographic_positions(epoch: datetime, points, height_m: float = 0.0) -> dict:
    """Sampled Earth-fixed [seconds, lon, lat, height, ...] from ground track points."""
    values: list[float] = []
    for pt in points:
        values.extend([(pt.time - epoch).total_seconds(), pt.lon_deg, pt.lat_deg, height_m])
    return {
        "epoch": iso(epoch),
        "cartographicDegrees": values,
        "interpolationAlgorithm": "LAGRANGE",
        "interpolationDegree": interpolation_degree(len(points)),
    }


def orientation_samples(epoch: datetime, samples) -> dict:
    """Sampled body->FIXED unit quaternions [seconds, x, y, z, w, ...]."""
    values: list[float] = []
    for s in samples:
        values.extend([(s.time - epoch).total_seconds(), *body_to_fixed(s.attitude, s.time)])
    return {
        "epoch": iso(epoch),
        "unitQuaternion": values,
        "interpolationAlgorithm": "LINEAR",
    }


def reference_positions(*entity_ids: str) -> dict:
    return {"references": [f"{entity_id}#position" for entity_id in entity_ids]}


def solid_color(color: Color) -> dict:
    return {"solidColor": {"color": rgba(color)}}


def arrow_material(color: Color) -> dict:
    return {"polylineArrow": {"color": rgba(color)}}


def label(text: str, color: Color = WHITE, font: str = DEFAULT_FONT, offset_px: int = 12) -> dict:
    return {
        "text": text,
        "font": font,
        "fillColor": rgba(color),
        "outlineWidth": 2,
        "style": "FILL_AND_OUTLINE",
        "horizontalOrigin": "LEFT",
        "pixelOffset": {"cartesian2": [offset_px, 0]},
    }


def point(color: Color, pixel_size: int = 6) -> dict:
    return {"pixelSize": pixel_size, "color": rgba(color)}


def billboard(image: str, color: Color = WHITE, scale: float = 1.0) -> dict:
    return {"image": image, "color": rgba(color), "scale": scale}


def path(
    color: Color,
    lead_time: float,
    trail_time: float,
    show: list[dict] | bool = True,
    width: int = 1,
    resolution: int = 120,
) -> dict:
    return {
        "show": show,
        "leadTime": lead_time,
        "trailTime": trail_time,
        "resolution": resolution,
        "width": width,
        "material": solid_color(color),
    }


def ellipsoid(epoch: datetime, radii_samples: list[tuple[datetime, tuple[float, float, float]]],
              color: Color) -> dict:
    """Ellipsoid with sampled radii [seconds, rx, ry, rz, ...], filled and outlined."""
    values: list[float] = []
    for t, radii in radii_samples:
        values.extend([(t - epoch).total_seconds(), *radii])
    return {
        "radii": {"epoch": iso(epoch), "cartesian": values},
        "fill": True,
        "material": solid_color(color),
        "outline": True,
        "outlineColor": rgba((color[0], color[1], color[2], 255)),
    }


def cylinder(length_m: float, top_radius_m: float, bottom_radius_m: float, color: Color) -> dict:
    return {
        "length": length_m,
        "topRadius": top_radius_m,
        "bottomRadius": bottom_radius_m,
        "material": solid_color(color),
        "outline": False,
    }
