# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""
Command-line interface for CZML scene generation.

Usage:
    # CCSDS ephemeris, optionally with its attitude
    orbit-czml --oem sat.oem --aem sat.aem -o scene.czml

    # TLE file (requires sgp4)
    orbit-czml --tle stations.txt --start 2026-01-01T00:00:00 --duration-hours 3 -o scene.czml

    # Synthetic Walker shell with inter-satellite visibility
    orbit-czml --walker 3:4:550:53 --inter-visibility -o walker.czml --html walker.html

    # Ground station visibility lines
    orbit-czml --walker 1:2:700:98 --station Toulouse:43.6:1.44 --line-of-visibility -o gs.czml
"""
import argparse
import logging
import sys
from datetime import datetime, timedelta, timezone

from orbit_czml.adapters.cesium_viewer import write_viewer_html
from orbit_czml.adapters.czml_document import CzmlDocument
from orbit_czml.adapters.czml_entities import (
    GroundStationBuilder,
    GroundStationEntity,
    SatelliteBuilder,
    SatelliteEntity,
)
from orbit_czml.adapters.czml_exporter import (
    document_packet,
    ground_station_packets,
    ground_track_packets,
    reference_axes_packets,
    satellite_packets,
)
from orbit_czml.adapters.czml_properties import color_wheel, plane_color
from orbit_czml.adapters.czml_visualization import (
    constellation_visibility_packets,
    line_of_visibility_packets,
    visibility_cone_packets,
)
from orbit_czml.domain.ccsds_parser import parse_aem, parse_oem
from orbit_czml.domain.constellation import ShellConfig, generate_walker_shell
from orbit_czml.domain.errors import InvalidConfigurationError
from orbit_czml.domain.observation import GroundStation
from orbit_czml.domain.propagation import KeplerianPropagator
from orbit_czml.domain.simulation import SimulationContext, as_utc

logger = logging.getLogger(__name__)

DEFAULT_DURATION_HOURS = 2.0


def parse_walker(spec: str) -> ShellConfig:
    """PLANES:SATS:ALT_KM:INC_DEG -> ShellConfig."""
    parts = spec.split(":")
    if len(parts) != 4:
        raise InvalidConfigurationError(
            f"--walker expects PLANES:SATS:ALT_KM:INC_DEG, got {spec!r}"
        )
    try:
        return ShellConfig(
            altitude_km=float(parts[2]),
            inclination_deg=float(parts[3]),
            num_planes=int(parts[0]),
            sats_per_plane=int(parts[1]),
            phase_factor=1,
        )
    except ValueError as e:
        raise InvalidConfigurationError(f"invalid --walker value {spec!r}: {e}") from e


def parse_station(spec: str) -> GroundStation:
    """NAME:LAT:LON[:ALT_M] -> GroundStation."""
    parts = spec.split(":")
    if len(parts) not in (3, 4):
        raise InvalidConfigurationError(
            f"--station expects NAME:LAT:LON[:ALT_M], got {spec!r}"
        )
    try:
        coords = [float(p) for p in parts[1:]]
    except ValueError as e:
        raise InvalidConfigurationError(f"invalid --station value {spec!r}: {e}") from e
    return GroundStation(parts[0], *coords)


def _parse_time(value: str) -> datetime:
    if value.endswith("Z"):
        value = value[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(value))


def _load_ephemeris_satellites(args) -> list[tuple[str, object, object]]:
    """(name, propagator, attitude_law) for every --oem, paired with --aem by position."""
    loaded = []
    aems = args.aem or []
    if len(aems) > len(args.oem or []):
        raise InvalidConfigurationError("each --aem must follow the --oem it belongs to")
    for k, path in enumerate(args.oem or []):
        ephemeris = parse_oem(path)
        attitude = parse_aem(aems[k]).attitude_law() if k < len(aems) else None
        loaded.append((ephemeris.object_name, ephemeris.propagator(), attitude))
    return loaded


def _load_tle_satellites(args, start: datetime, stop: datetime) -> list[tuple[str, object, object]]:
    if not args.tle:
        return []
    from orbit_czml.adapters.sgp4_adapter import Sgp4Propagator, read_tle_file

    loaded = []
    for path in args.tle:
        for record in read_tle_file(path):
            try:
                propagator = Sgp4Propagator.from_record(record, start, stop)
            except InvalidConfigurationError as e:
                logger.warning("Skipping TLE %s: %s", record.name, e)
                continue
            loaded.append((record.name, propagator, None))
    return loaded


def _time_span(args, ephemerides) -> tuple[datetime, datetime]:
    if args.start is not None:
        start = _parse_time(args.start)
    elif ephemerides:
        start = min(p.min_date for _, p, _ in ephemerides)
    else:
        start = datetime.now(tz=timezone.utc).replace(microsecond=0)

    if args.stop is not None:
        stop = _parse_time(args.stop)
    elif args.duration_hours is None and ephemerides:
        stop = max(p.max_date for _, p, _ in ephemerides)
    else:
        stop = start + timedelta(hours=args.duration_hours or DEFAULT_DURATION_HOURS)
    return start, stop


def build_scene(args) -> list[dict]:
    """Resolve the inputs of a parsed command line into CZML packets."""
    ephemerides = _load_ephemeris_satellites(args)
    start, stop = _time_span(args, ephemerides)
    context = SimulationContext(
        start=start, stop=stop,
        step_seconds=args.step, multiplier=args.multiplier,
    )

    sources = ephemerides + _load_tle_satellites(args, start, stop)
    colors = color_wheel(len(sources))
    if args.walker:
        for sat in generate_walker_shell(parse_walker(args.walker), start):
            sources.append((sat.name, KeplerianPropagator.for_context(sat.state, context), None))
            colors.append(plane_color(sat.plane_index))
    if not sources:
        raise InvalidConfigurationError("no satellites: give --oem, --tle or --walker")

    satellites: list[SatelliteEntity] = []
    for (name, propagator, attitude), color in zip(sources, colors):
        builder = SatelliteBuilder(propagator, name).with_color(color)
        if attitude is not None:
            builder.display_attitude(attitude)
        satellites.append(builder.build())
    stations: list[GroundStationEntity] = [
        GroundStationBuilder(parse_station(s)).build() for s in args.station or []
    ]

    document = CzmlDocument([document_packet(context, args.name)])
    for sat in satellites:
        document.extend(satellite_packets(sat, context))
        if args.ground_track:
            document.extend(ground_track_packets(sat, context))
    document.extend(ground_station_packets(stations, context))

    if args.line_of_visibility:
        for station in stations:
            for sat in satellites:
                document.extend(line_of_visibility_packets(
                    station, sat, context, aperture_deg=args.aperture,
                ))
    if args.cones:
        for station in stations:
            document.extend(visibility_cone_packets(station, context, aperture_deg=args.aperture))
    if args.inter_visibility:
        if len(satellites) < 2:
            raise InvalidConfigurationError("--inter-visibility needs at least two satellites")
        document.extend(constellation_visibility_packets(satellites, context))
    if args.axes:
        document.extend(reference_axes_packets(context))

    return document.packets()


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="orbit-czml",
        description="Generate CZML scenes (satellites, stations, visibility) for CesiumJS",
    )
    parser.add_argument(
        '--output', '-o', required=True,
        help="Path to write the CZML document"
    )
    parser.add_argument('--name', default="orbit-czml", help="Document name (default: orbit-czml)")
    parser.add_argument('--verbose', '-v', action='store_true', help="Log progress at INFO level")

    sources = parser.add_argument_group('satellites')
    sources.add_argument('--oem', action='append', help="CCSDS OEM ephemeris file (repeatable)")
    sources.add_argument(
        '--aem', action='append',
        help="CCSDS AEM attitude file for the OEM given at the same position (repeatable)"
    )
    sources.add_argument('--tle', action='append', help="2- or 3-line TLE file (requires sgp4)")
    sources.add_argument('--walker', help="Walker shell PLANES:SATS:ALT_KM:INC_DEG")

    ground = parser.add_argument_group('ground stations')
    ground.add_argument('--station', action='append', help="Ground station NAME:LAT:LON[:ALT_M] (repeatable)")

    clock = parser.add_argument_group('time')
    clock.add_argument('--start', help="Scene start, ISO 8601 UTC (default: ephemeris start or now)")
    clock.add_argument('--stop', help="Scene stop, ISO 8601 UTC")
    clock.add_argument('--duration-hours', type=float, help="Scene length when --stop is not given (default: 2)")
    clock.add_argument('--step', type=float, default=60.0, help="Sampling step in seconds (default: 60)")
    clock.add_argument('--multiplier', type=float, default=60.0, help="Viewer clock multiplier (default: 60)")

    features = parser.add_argument_group('display')
    features.add_argument('--ground-track', action='store_true', help="Draw each satellite's ground track")
    features.add_argument(
        '--inter-visibility', action='store_true',
        help="Draw line-of-sight lines between every pair of satellites"
    )
    features.add_argument(
        '--line-of-visibility', action='store_true',
        help="Draw station-satellite lines while the satellite is in view"
    )
    features.add_argument(
        '--aperture', type=float, default=80.0,
        help="Station visibility cone half-angle in degrees (default: 80)"
    )
    features.add_argument(
        '--cones', action='store_true',
        help="Draw each station's visibility cone (half-angle --aperture)"
    )
    features.add_argument('--axes', action='store_true', help="Draw the Earth-fixed reference axes")

    export = parser.add_argument_group('export')
    export.add_argument('--html', help="Also write a self-contained Cesium viewer page")
    export.add_argument(
        '--cesium-token', default="",
        help="Cesium Ion access token for imagery (optional, viewer works without)"
    )
    return parser


def main(argv: list[str] | None = None) -> None:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        packets = build_scene(args)
        count = CzmlDocument(packets).write(args.output)
        print(f"Generated {args.output} with {count} packets.")

        if args.html:
            write_viewer_html(packets, args.html, title=args.name, cesium_token=args.cesium_token)
            print(f"Exported interactive viewer to {args.html}")

    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except (ValueError, ImportError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == '__main__':
    main()
