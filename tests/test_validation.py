"""Unit tests for the incident validation gate."""

from types import SimpleNamespace

import pytest

from trafficnews_app.services.validation import (
    LATITUDE_ERROR,
    LONGITUDE_ERROR,
    sanitize_string,
    validate,
    validate_coordinates,
    validate_route,
    validate_status,
)


def _record(**overrides):
    data = {"type": "accident", "severity": "low", "location": "Elm St"}
    data.update(overrides)
    return data


class TestValidate:
    """Tests for validate()."""

    def test_valid_record_has_no_errors(self):
        result = validate(_record(description="minor", latitude=10, longitude=20))

        assert result.valid is True
        assert result.errors == []

    def test_accumulates_every_violation_in_order(self):
        """All rules are evaluated; nothing short-circuits on the first failure."""
        result = validate({"type": "flood", "severity": "extreme", "location": "  ",
                           "latitude": 91, "longitude": 181})

        assert result.valid is False
        assert result.errors == [
            "Invalid incident type. Must be one of: accident, construction, closure, hazard",
            "Invalid severity level. Must be one of: low, medium, high, critical",
            "Location is required",
            LATITUDE_ERROR,
            LONGITUDE_ERROR,
        ]

    def test_type_and_severity_are_case_insensitive(self):
        assert validate(_record(type="Accident", severity="CRITICAL")).valid

    def test_location_length_boundary(self):
        assert validate(_record(location="x" * 200)).valid
        assert validate(_record(location="x" * 201)).errors == ["Location must be 200 characters or less"]

    def test_description_length_boundary(self):
        assert validate(_record(description="d" * 1000)).valid
        assert validate(_record(description="d" * 1001)).errors == [
            "Description must be 1000 characters or less"
        ]

    def test_non_numeric_coordinates_are_errors_not_exceptions(self):
        result = validate(_record(latitude="north", longitude=float("nan")))

        assert result.errors == [LATITUDE_ERROR, LONGITUDE_ERROR]

    def test_accepts_attribute_objects(self):
        assert validate(SimpleNamespace(type="hazard", severity="high", location="Bridge",
                                        description=None, latitude=None, longitude=None)).valid


class TestCoordinates:
    """Inclusive latitude/longitude ranges."""

    @pytest.mark.parametrize("lat,lon", [(-90, -180), (90, 180), (0, 0)])
    def test_boundaries_are_valid(self, lat, lon):
        assert validate_coordinates(lat, lon).valid

    def test_latitude_out_of_range(self):
        result = validate_coordinates(91, 0)

        assert result.valid is False
        assert result.errors == [LATITUDE_ERROR]

    def test_missing_coordinates_are_skipped(self):
        assert validate_coordinates(None, None).valid


class TestStatusAndRoutes:
    def test_status_domain(self):
        assert validate_status("Confirmed") == []
        assert validate_status(None) == []
        assert validate_status("archived") == ["Invalid status. Must be one of: pending, confirmed, rejected"]

    def test_route_requires_name_and_positive_radius(self):
        result = validate_route({"name": "", "radius": 0, "latitude": 100})

        assert result.errors == [
            "Route name is required",
            LATITUDE_ERROR,
            "Radius must be a positive number of metres",
        ]

    def test_route_name_limit(self):
        assert validate_route({"name": "n" * 100}).valid
        assert not validate_route({"name": "n" * 101}).valid


class TestSanitize:
    def test_trims_and_strips_angle_brackets(self):
        assert sanitize_string("  <b>Main St</b>  ") == "bMain St/b"

    def test_none_becomes_empty_string(self):
        assert sanitize_string(None) == ""

    def test_other_characters_survive(self):
        assert sanitize_string("Tom & Jerry's \"lane\"") == "Tom & Jerry's \"lane\""
