#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/services/validation.py
# Purpose: Rule checks for incident payloads, coordinates and saved routes.
#
# Description of code and how it works:
# - Every rule runs; violations accumulate in a ValidationResult so a client
#   sees all problems in one response.
# - Accepts dicts or attribute objects (pydantic payloads, records).
# - Never raises on bad input.
#
# Author: TrafficNews Team
# Created: 2026-10-07
#
# Version: 0.3.0
# Last Modified: 2026-10-15 by TrafficNews Team
#
# Revision History:
# - 0.3.0 (2026-10-15): validate_route for saved routes.
# - 0.2.0 (2026-10-10): Non-numeric coordinates reported instead of raising.
# - 0.1.0 (2026-10-07): Incident + coordinate rules, sanitize_string.
###################################################################
#
from __future__ import annotations

import math
import re
from collections.abc import Mapping
from typing import Any, List, Optional

from ..errors import ValidationResult

INCIDENT_TYPES = ("accident", "construction", "closure", "hazard")
SEVERITY_LEVELS = ("low", "medium", "high", "critical")
INCIDENT_STATUSES = ("pending", "confirmed", "rejected")

MAX_LOCATION = 200
MAX_DESCRIPTION = 1000
MAX_ROUTE_NAME = 100

LATITUDE_ERROR = "Invalid latitude. Must be between -90 and 90"
LONGITUDE_ERROR = "Invalid longitude. Must be between -180 and 180"

_ANGLE_RE = re.compile(r"[<>]")


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def _in_domain(value: Any, allowed) -> bool:
    return isinstance(value, str) and value.lower() in allowed


def _within(value: Any, low: float, high: float) -> bool:
    if isinstance(value, bool):
        return False
    try:
        v = float(value)
    except (TypeError, ValueError):
        return False
    return not math.isnan(v) and low <= v <= high


def _coordinate_errors(latitude: Any, longitude: Any) -> List[str]:
    errors: List[str] = []
    if latitude is not None and not _within(latitude, -90, 90):
        errors.append(LATITUDE_ERROR)
    if longitude is not None and not _within(longitude, -180, 180):
        errors.append(LONGITUDE_ERROR)
    return errors


def validate(record: Any) -> ValidationResult:
    errors: List[str] = []

    if not _in_domain(_field(record, "type"), INCIDENT_TYPES):
        errors.append("Invalid incident type. Must be one of: " + ", ".join(INCIDENT_TYPES))

    if not _in_domain(_field(record, "severity"), SEVERITY_LEVELS):
        errors.append("Invalid severity level. Must be one of: " + ", ".join(SEVERITY_LEVELS))

    location = _field(record, "location")
    if not isinstance(location, str) or not location.strip():
        errors.append("Location is required")
    elif len(location) > MAX_LOCATION:
        errors.append(f"Location must be {MAX_LOCATION} characters or less")

    description = _field(record, "description")
    if description is not None and len(str(description)) > MAX_DESCRIPTION:
        errors.append(f"Description must be {MAX_DESCRIPTION} characters or less")

    errors.extend(_coordinate_errors(_field(record, "latitude"), _field(record, "longitude")))
    return ValidationResult.of(errors)


def validate_coordinates(latitude: Any, longitude: Any) -> ValidationResult:
    return ValidationResult.of(_coordinate_errors(latitude, longitude))


def validate_status(status: Any) -> List[str]:
    if status is None or _in_domain(status, INCIDENT_STATUSES):
        return []
    return ["Invalid status. Must be one of: " + ", ".join(INCIDENT_STATUSES)]


def validate_route(route: Any) -> ValidationResult:
    errors: List[str] = []
    name = _field(route, "name")
    if not isinstance(name, str) or not name.strip():
        errors.append("Route name is required")
    elif len(name) > MAX_ROUTE_NAME:
        errors.append(f"Route name must be {MAX_ROUTE_NAME} characters or less")
    errors.extend(_coordinate_errors(_field(route, "latitude"), _field(route, "longitude")))
    radius = _field(route, "radius")
    if radius is not None and (isinstance(radius, bool) or not isinstance(radius, int) or radius <= 0):
        errors.append("Radius must be a positive number of metres")
    return ValidationResult.of(errors)


def sanitize_string(value: Optional[str]) -> str:
    """Trim and drop angle brackets. Not an HTML sanitizer."""
    if value is None:
        return ""
    return _ANGLE_RE.sub("", str(value).strip())

