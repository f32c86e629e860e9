# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Adapters for CZML packet generation and scene output.

External dependencies (json, file I/O, sgp4) are confined to this layer.
The sgp4 adapter is not imported here so the package works without it.
"""
from orbit_czml.adapters.czml_entities import (
    GroundStationBuilder,
    GroundStationEntity,
    PolylineBuilder,
    PolylineEntity,
    SatelliteBuilder,
    SatelliteEntity,
)
from orbit_czml.adapters.czml_exporter import (
    constellation_packets,
    document_packet,
    ground_station_packets,
    ground_track_packets,
    polyline_packets,
    reference_axes_packets,
    satellite_packets,
)
from orbit_czml.adapters.czml_visualization import (
    constellation_visibility_packets,
    covariance_packets,
    inter_satellite_packets,
    line_of_visibility_packets,
    visibility_cone_packets,
)
from orbit_czml.adapters.czml_document import (
    CzmlDocument,
    CzmlFileWriter,
    write_czml,
)
from orbit_czml.adapters.cesium_viewer import (
    generate_viewer_html,
    write_viewer_html,
)

__all__ = [
    "GroundStationBuilder",
    "GroundStationEntity",
    "PolylineBuilder",
    "PolylineEntity",
    "SatelliteBuilder",
    "SatelliteEntity",
    "constellation_packets",
    "document_packet",
    "ground_station_packets",
    "ground_track_packets",
    "polyline_packets",
    "reference_axes_packets",
    "satellite_packets",
    "constellation_visibility_packets",
    "covariance_packets",
    "inter_satellite_packets",
    "line_of_visibility_packets",
    "visibility_cone_packets",
    "CzmlDocument",
    "CzmlFileWriter",
    "write_czml",
    "generate_viewer_html",
    "write_viewer_html",
]
