#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/schemas.py
# Purpose: Pydantic models (v2) for records and API payloads.
#
# Description of code and how it works:
# - Records are built from ORM rows (from_attributes) and serialize with
#   camelCase aliases (reporterId, submissionId, createdAt ...).
# - Input payloads keep every field optional: domain rules live in
#   services.validation so all violations are reported together.
#
# Author: TrafficNews Team
# Created: 2026-10-06
#
# Version: 0.4.0
# Last Modified: 2026-10-17 by TrafficNews Team
#
# Revision History:
# - 0.4.0 (2026-10-17): IncidentPatch (absent vs explicit null).
# - 0.3.0 (2026-10-15): Route payloads.
# - 0.2.0 (2026-10-09): Submission payloads.
# - 0.1.0 (2026-10-06): Incident payloads.
###################################################################
#
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class _Camel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class IncidentRecord(_Camel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    type: str
    severity: str
    location: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    description: Optional[str] = None
    timestamp: datetime
    reporter_id: Optional[str] = None
    status: str = "pending"
    submission_id: Optional[str] = None


class IncidentIn(_Camel):
    id: Optional[str] = None
    type: Optional[str] = None
    severity: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    description: Optional[str] = None
    reporter_id: Optional[str] = None
    status: Optional[str] = None
    submission_id: Optional[str] = None


class IncidentPatch(_Camel):
    """Partial update. Only fields present in the request body are applied;
    an explicit null clears an optional field."""

    type: Optional[str] = None
    severity: Optional[str] = None
    location: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    description: Optional[str] = None
    status: Optional[str] = None
    submission_id: Optional[str] = None

    def changes(self) -> dict:
        return self.model_dump(exclude_unset=True)


class SubmissionRecord(_Camel):
    id: str
    payload: Any = None
    timestamp: datetime
    status: str = "pending"


class RouteRecord(_Camel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    name: str
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius: int = 1000
    user_id: Optional[str] = None
    created_at: datetime


class RouteIn(_Camel):
    name: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    radius: Optional[int] = None
    user_id: Optional[str] = None


class IntervalIn(_Camel):
    interval_ms: int = Field(..., description="Refresh interval in milliseconds")
