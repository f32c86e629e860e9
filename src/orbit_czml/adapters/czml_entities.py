# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Displayable entities and their builders.

Builders collect display options through chained ``with_*`` calls and
produce frozen entities. Option conflicts are rejected when the option
is set, not when the document is written:

    sat = (SatelliteBuilder(propagator, "ISS")
           .with_color((255, 0, 0, 255))
           .display_attitude(LvlhAttitude())
           .display_only_one_period()
           .build())
"""

from dataclasses import dataclass, field

from orbit_czml.adapters.czml_properties import WHITE, Color
from orbit_czml.domain.errors import (
    InvalidConfigurationError,
    MissingOptionalFieldError,
    PrerequisiteNotMetError,
)
from orbit_czml.domain.observation import GroundStation

SATELLITE_PREFIX = "SAT/"
GROUND_STATION_PREFIX = "GROUND_STATION/"
POLYLINE_PREFIX = "POLYLINE/"

_MODEL_EXTENSIONS = (".glb", ".gltf")


def _check_color(color: Color) -> Color:
    if len(color) != 4 or any(not 0 <= int(c) <= 255 for c in color):
        raise InvalidConfigurationError(f"color must be 4 components in [0, 255], got {color!r}")
    return tuple(int(c) for c in color)


@dataclass(frozen=True)
class SatelliteEntity:
    """A satellite ready for export."""
    entity_id: str
    name: str
    propagator: object
    color: Color = WHITE
    model_uri: str | None = None
    image: str | None = None
    description: str = ""
    show_label: bool = True
    orbit_display: bool = True
    one_period_only: bool = False
    attitude_law: object | None = None

    @property
    def displays_attitude(self) -> bool:
        return self.attitude_law is not None

    @property
    def orientation(self):
        """
        The attitude law driving the orientation property.

        Raises:
            MissingOptionalFieldError: If attitude display was not requested.
        """
        if self.attitude_law is None:
            raise MissingOptionalFieldError(
                f"satellite {self.name!r} does not display its attitude; "
                "call display_attitude() on its builder first"
            )
        return self.attitude_law


class SatelliteBuilder:
    """Builder for SatelliteEntity."""

    def __init__(self, propagator, name: str) -> None:
        if not name:
            raise InvalidConfigurationError("satellite name must not be empty")
        self._propagator = propagator
        self._name = name
        self._entity_id = SATELLITE_PREFIX + name
        self._color: Color = WHITE
        self._model_uri: str | None = None
        self._image: str | None = None
        self._description = ""
        self._show_label = True
        self._orbit_display = True
        self._one_period_only = False
        self._attitude_law = None

    def with_id(self, entity_id: str) -> "SatelliteBuilder":
        if not entity_id:
            raise InvalidConfigurationError("entity id must not be empty")
        self._entity_id = entity_id
        return self

    def with_color(self, color: Color) -> "SatelliteBuilder":
        self._color = _check_color(color)
        return self

    def with_model(self, uri: str) -> "SatelliteBuilder":
        """3D model (glTF) drawn at the satellite position."""
        if not uri.lower().endswith(_MODEL_EXTENSIONS):
            raise InvalidConfigurationError(f"model must be a .glb or .gltf file, got {uri!r}")
        self._model_uri = uri
        return self

    def with_image(self, image: str) -> "SatelliteBuilder":
        """Billboard image (URI or data URI) used when no model is set."""
        self._image = image
        return self

    def with_description(self, description: str) -> "SatelliteBuilder":
        self._description = description
        return self

    def without_label(self) -> "SatelliteBuilder":
        self._show_label = False
        return self

    def display_attitude(self, attitude_law) -> "SatelliteBuilder":
        """Write an orientation property driven by attitude_law."""
        self._attitude_law = attitude_law
        return self

    def no_orbit_display(self) -> "SatelliteBuilder":
        """Hide the orbit path."""
        if self._one_period_only:
            raise PrerequisiteNotMetError(
                "the one-period path display needs the orbit display; "
                "do not call no_orbit_display() after display_only_one_period()"
            )
        self._orbit_display = False
        return self

    def display_only_one_period(self) -> "SatelliteBuilder":
        """Draw the path one orbital period ahead instead of the whole run."""
        if not self._orbit_display:
            raise PrerequisiteNotMetError(
                "the orbit is not displayed; do not use no_orbit_display() "
                "before setting up the period display"
            )
        self._one_period_only = True
        return self

    def build(self) -> SatelliteEntity:
        return SatelliteEntity(
            entity_id=self._entity_id,
            name=self._name,
            propagator=self._propagator,
            color=self._color,
            model_uri=self._model_uri,
            image=self._image,
            description=self._description,
            show_label=self._show_label,
            orbit_display=self._orbit_display,
            one_period_only=self._one_period_only,
            attitude_law=self._attitude_law,
        )


@dataclass(frozen=True)
class GroundStationEntity:
    """A ground station ready for export."""
    entity_id: str
    station: GroundStation
    color: Color = (255, 255, 0, 255)
    image: str | None = None
    show_label: bool = True

    @property
    def name(self) -> str:
        return self.station.name


class GroundStationBuilder:
    """Builder for GroundStationEntity."""

    def __init__(self, station: GroundStation) -> None:
        self._station = station
        self._entity_id = GROUND_STATION_PREFIX + station.name
        self._color: Color = (255, 255, 0, 255)
        self._image: str | None = None
        self._show_label = True

    def with_id(self, entity_id: str) -> "GroundStationBuilder":
        if not entity_id:
            raise InvalidConfigurationError("entity id must not be empty")
        self._entity_id = entity_id
        return self

    def with_color(self, color: Color) -> "GroundStationBuilder":
        self._color = _check_color(color)
        return self

    def with_image(self, image: str) -> "GroundStationBuilder":
        self._image = image
        return self

    def without_label(self) -> "GroundStationBuilder":
        self._show_label = False
        return self

    def build(self) -> GroundStationEntity:
        return GroundStationEntity(
            entity_id=self._entity_id,
            station=self._station,
            color=self._color,
            image=self._image,
            show_label=self._show_label,
        )


@dataclass(frozen=True)
class PolylineEntity:
    """
    A polyline joining entity positions (references) or two fixed
    Earth-fixed points (vector).
    """
    entity_id: str
    name: str
    color: Color = WHITE
    width: float = 1.0
    arc_type: str = "NONE"
    arrow: bool = False
    _references: tuple[str, ...] | None = field(default=None, repr=False)
    _positions: tuple[tuple[float, float, float], ...] | None = field(default=None, repr=False)

    @property
    def is_vector(self) -> bool:
        return self._positions is not None

    @property
    def references(self) -> tuple[str, ...]:
        """Entity ids joined by this polyline."""
        if self._references is None:
            raise PrerequisiteNotMetError(
                f"polyline {self.entity_id!r} was not defined with references"
            )
        return self._references

    @property
    def start(self) -> tuple[float, float, float]:
        return self._vector_positions()[0]

    @property
    def end(self) -> tuple[float, float, float]:
        return self._vector_positions()[1]

    def _vector_positions(self) -> tuple[tuple[float, float, float], ...]:
        if self._positions is None:
            raise PrerequisiteNotMetError(
                f"cannot call a vector function on the non-vector polyline {self.entity_id!r}"
            )
        return self._positions


class PolylineBuilder:
    """
    Builder for PolylineEntity.

    Use PolylineBuilder.references(...) or PolylineBuilder.vector(...).
    """

    def __init__(self, references=None, positions=None) -> None:
        self._references = references
        self._positions = positions
        self._entity_id: str | None = None
        self._name: str | None = None
        self._color: Color = WHITE
        self._width = 1.0
        self._arc_type = "NONE"
        self._arrow = False

    @classmethod
    def references(cls, *entity_ids: str) -> "PolylineBuilder":
        """Polyline following the positions of the given entities."""
        if len(entity_ids) < 2:
            raise InvalidConfigurationError(
                f"a reference polyline joins at least 2 entities, got {len(entity_ids)}"
            )
        return cls(references=tuple(entity_ids))

    @classmethod
    def vector(cls, positions) -> "PolylineBuilder":
        """Straight segment between two Earth-fixed cartesian positions (m)."""
        positions = [tuple(float(c) for c in p) for p in positions]
        if len(positions) != 2:
            raise InvalidConfigurationError(
                f"the size of the cartesian positions of a vector polyline must be 2, got {len(positions)}"
            )
        if any(len(p) != 3 for p in positions):
            raise InvalidConfigurationError("vector polyline positions must be (x, y, z) triples")
        return cls(positions=tuple(positions))

    def with_id(self, entity_id: str) -> "PolylineBuilder":
        if not entity_id:
            raise InvalidConfigurationError("entity id must not be empty")
        self._entity_id = entity_id
        return self

    def with_name(self, name: str) -> "PolylineBuilder":
        self._name = name
        return self

    def with_color(self, color: Color) -> "PolylineBuilder":
        self._color = _check_color(color)
        return self

    def with_width(self, width: float) -> "PolylineBuilder":
        if width <= 0:
            raise InvalidConfigurationError(f"width must be positive, got {width}")
        self._width = width
        return self

    def with_arrow(self) -> "PolylineBuilder":
        """Draw the segment as an arrow from the first to the second position."""
        if self._positions is None:
            raise PrerequisiteNotMetError("cannot call a vector function on a non-vector polyline")
        self._arrow = True
        return self

    def following_surface(self) -> "PolylineBuilder":
        """Bend along the ellipsoid (GEODESIC) instead of straight lines."""
        self._arc_type = "GEODESIC"
        return self

    def build(self) -> PolylineEntity:
        if self._references is not None:
            default_name = "Line between " + " and ".join(self._references)
            default_id = POLYLINE_PREFIX + "/".join(self._references)
        else:
            default_name = "Vector"
            default_id = POLYLINE_PREFIX + "VECTOR/" + ",".join(f"{c:g}" for p in self._positions for c in p)
        return PolylineEntity(
            entity_id=self._entity_id or default_id,
            name=self._name or default_name,
            color=self._color,
            width=self._width,
            arc_type=self._arc_type,
            arrow=self._arrow,
            _references=self._references,
            _positions=self._positions,
        )
