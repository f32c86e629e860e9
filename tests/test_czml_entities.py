# Copyright (c) 2026 Jeroen Visser. All rights reserved.
# Licensed under the MIT License — see LICENSE.
"""Tests for CZML entity builders."""
import pytest

from orbit_czml import (
    GroundStation,
    InvalidConfigurationError,
    LvlhAttitude,
    MissingOptionalFieldError,
    PrerequisiteNotMetError,
)
from orbit_czml.adapters.czml_entities import (
    GroundStationBuilder,
    PolylineBuilder,
    SatelliteBuilder,
)


class _Propagator:
    min_date = None
    max_date = None


# ── Satellites ───────────────────────────────────────────────────────


class TestSatelliteBuilder:

    def test_defaults(self):
        sat = SatelliteBuilder(_Propagator(), "ISS").build()
        assert sat.entity_id == "SAT/ISS"
        assert sat.name == "ISS"
        assert sat.orbit_display
        assert not sat.one_period_only
        assert not sat.displays_attitude

    def test_chained_options(self):
        law = LvlhAttitude()
        sat = (SatelliteBuilder(_Propagator(), "ISS")
               .with_id("custom")
               .with_color((255, 0, 0, 255))
               .with_model("iss.glb")
               .with_description("station")
               .without_label()
               .display_attitude(law)
               .display_only_one_period()
               .build())
        assert sat.entity_id == "custom"
        assert sat.color == (255, 0, 0, 255)
        assert sat.model_uri == "iss.glb"
        assert not sat.show_label
        assert sat.one_period_only
        assert sat.orientation is law

    def test_orientation_without_attitude_raises(self):
        sat = SatelliteBuilder(_Propagator(), "ISS").build()
        with pytest.raises(MissingOptionalFieldError):
            sat.orientation

    def test_period_display_after_hiding_orbit_raises(self):
        builder = SatelliteBuilder(_Propagator(), "ISS").no_orbit_display()
        with pytest.raises(PrerequisiteNotMetError):
            builder.display_only_one_period()

    def test_hiding_orbit_after_period_display_raises(self):
        builder = SatelliteBuilder(_Propagator(), "ISS").display_only_one_period()
        with pytest.raises(PrerequisiteNotMetError):
            builder.no_orbit_display()

    def test_model_extension_checked(self):
        with pytest.raises(InvalidConfigurationError):
            SatelliteBuilder(_Propagator(), "ISS").with_model("iss.obj")

    @pytest.mark.parametrize("color", [(255, 0, 0), (256, 0, 0, 255), (-1, 0, 0, 255)])
    def test_invalid_color_raises(self, color):
        with pytest.raises(InvalidConfigurationError):
            SatelliteBuilder(_Propagator(), "ISS").with_color(color)

    def test_empty_name_raises(self):
        with pytest.raises(InvalidConfigurationError):
            SatelliteBuilder(_Propagator(), "")

    def test_errors_are_value_errors(self):
        with pytest.raises(ValueError):
            SatelliteBuilder(_Propagator(), "ISS").no_orbit_display().display_only_one_period()


# ── Ground stations ──────────────────────────────────────────────────


class TestGroundStationBuilder:

    def test_defaults(self):
        gs = GroundStationBuilder(GroundStation("Toulouse", 43.6, 1.44)).build()
        assert gs.entity_id == "GROUND_STATION/Toulouse"
        assert gs.name == "Toulouse"
        assert gs.show_label

    def test_options(self):
        gs = (GroundStationBuilder(GroundStation("Kiruna", 67.86, 20.96))
              .with_id("GS/K")
              .with_color((0, 0, 255, 255))
              .with_image("antenna.png")
              .without_label()
              .build())
        assert gs.entity_id == "GS/K"
        assert gs.image == "antenna.png"
        assert not gs.show_label


# ── Polylines ────────────────────────────────────────────────────────


class TestPolylineBuilder:

    def test_reference_polyline(self):
        line = PolylineBuilder.references("SAT/A", "SAT/B").build()
        assert line.references == ("SAT/A", "SAT/B")
        assert line.entity_id == "POLYLINE/SAT/A/SAT/B"
        assert not line.is_vector

    def test_reference_polyline_needs_two_entities(self):
        with pytest.raises(InvalidConfigurationError):
            PolylineBuilder.references("SAT/A")

    def test_vector_polyline(self):
        line = (PolylineBuilder.vector([(0, 0, 0), (1e7, 0, 0)])
                .with_arrow()
                .with_width(4)
                .build())
        assert line.is_vector
        assert line.arrow
        assert line.start == (0.0, 0.0, 0.0)
        assert line.end == (1e7, 0.0, 0.0)

    def test_vector_needs_two_positions(self):
        with pytest.raises(InvalidConfigurationError):
            PolylineBuilder.vector([(0, 0, 0)])

    def test_vector_positions_must_be_triples(self):
        with pytest.raises(InvalidConfigurationError):
            PolylineBuilder.vector([(0, 0), (1, 1)])

    def test_arrow_on_reference_polyline_raises(self):
        with pytest.raises(PrerequisiteNotMetError):
            PolylineBuilder.references("A", "B").with_arrow()

    def test_vector_accessor_on_reference_polyline_raises(self):
        line = PolylineBuilder.references("A", "B").build()
        with pytest.raises(PrerequisiteNotMetError):
            line.start

    def test_references_on_vector_raises(self):
        line = PolylineBuilder.vector([(0, 0, 0), (1, 0, 0)]).build()
        with pytest.raises(PrerequisiteNotMetError):
            line.references

    def test_following_surface(self):
        assert PolylineBuilder.references("A", "B").following_surface().build().arc_type == "GEODESIC"

    def test_non_positive_width_raises(self):
        with pytest.raises(InvalidConfigurationError):
            PolylineBuilder.references("A", "B").with_width(0)
