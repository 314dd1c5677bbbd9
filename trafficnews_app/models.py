#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/models.py
# Purpose: ORM models (SQLAlchemy 2.x)
#
# Description of code and how it works:
# - Defines incidents, submissions and saved routes tables with indexes.
# - Submission payloads are stored as JSON text; the queue never inspects them.
#
# Author: TrafficNews Team
# Created: 2026-10-06
#
# Version: 0.3.0
# Last Modified: 2026-10-15 by TrafficNews Team
#
# Revision History:
# - 0.3.0 (2026-10-15): Add routes table (saved areas per user).
# - 0.2.0 (2026-10-09): Add submissions table + status/timestamp index.
# - 0.1.0 (2026-10-06): Incidents table.
###################################################################
#
from sqlalchemy import Column, Integer, String, Float, DateTime, Text, Index

from .database import Base


class Incident(Base):
    __tablename__ = "incidents"

    id = Column(String(64), primary_key=True)
    type = Column(String(32), nullable=False, index=True)
    severity = Column(String(16), nullable=False, index=True)
    location = Column(String(200), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    description = Column(String(1000), nullable=True)
    timestamp = Column(DateTime, nullable=False)
    reporter_id = Column(String(128), nullable=True, index=True)
    status = Column(String(16), nullable=False, default="pending", index=True)
    submission_id = Column(String(64), nullable=True, index=True)

    __table_args__ = (
        Index("idx_incidents_timestamp", "timestamp"),
    )


class Submission(Base):
    __tablename__ = "submissions"

    id = Column(String(64), primary_key=True)
    incident_data = Column(Text, nullable=True)
    timestamp = Column(DateTime, nullable=False)
    status = Column(String(16), nullable=False, default="pending")

    __table_args__ = (
        Index("idx_submissions_status_ts", "status", "timestamp"),
    )


class Route(Base):
    __tablename__ = "routes"

    id = Column(String(64), primary_key=True)
    name = Column(String(100), nullable=False)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    radius = Column(Integer, nullable=False, default=1000)
    user_id = Column(String(128), nullable=True, index=True)
    created_at = Column(DateTime, nullable=False)
