#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: alembic/versions/0001_init.py
# Purpose: Create incidents, submissions and routes tables.
#
# Description of code and how it works:
#
# Author: TrafficNews Team
# Created: 2026-10-06
#
# Version: 0.3.0
# Last Modified: 2026-10-15 by TrafficNews Team
#
# Revision History:
# - 0.3.0 (2026-10-15): routes table.
# - 0.2.0 (2026-10-09): submissions table + status/timestamp index.
# - 0.1.0 (2026-10-06): incidents table.
###################################################################
#
from alembic import op
import sqlalchemy as sa

revision = "0001_init"
down_revision = None
branch_labels = None
depends_on = None

def upgrade():
    op.create_table(
        "incidents",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("severity", sa.String(16), nullable=False),
        sa.Column("location", sa.String(200), nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("description", sa.String(1000), nullable=True),
        sa.Column("timestamp", sa.DateTime, nullable=False),
        sa.Column("reporter_id", sa.String(128), nullable=True),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
        sa.Column("submission_id", sa.String(64), nullable=True),
    )
    op.create_index("idx_incidents_timestamp", "incidents", ["timestamp"])
    for col in ("type", "severity", "reporter_id", "status", "submission_id"):
        op.create_index(f"ix_incidents_{col}", "incidents", [col])

    op.create_table(
        "submissions",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("incident_data", sa.Text, nullable=True),
        sa.Column("timestamp", sa.DateTime, nullable=False),
        sa.Column("status", sa.String(16), nullable=False, server_default="pending"),
    )
    op.create_index("idx_submissions_status_ts", "submissions", ["status", "timestamp"])

    op.create_table(
        "routes",
        sa.Column("id", sa.String(64), primary_key=True),
        sa.Column("name", sa.String(100), nullable=False),
        sa.Column("latitude", sa.Float, nullable=True),
        sa.Column("longitude", sa.Float, nullable=True),
        sa.Column("radius", sa.Integer, nullable=False, server_default="1000"),
        sa.Column("user_id", sa.String(128), nullable=True),
        sa.Column("created_at", sa.DateTime, nullable=False),
    )
    op.create_index("ix_routes_user_id", "routes", ["user_id"])

def downgrade():
    op.drop_index("ix_routes_user_id", table_name="routes")
    op.drop_table("routes")
    op.drop_index("idx_submissions_status_ts", table_name="submissions")
    op.drop_table("submissions")
    for col in ("submission_id", "status", "reporter_id", "severity", "type"):
        op.drop_index(f"ix_incidents_{col}", table_name="incidents")
    op.drop_index("idx_incidents_timestamp", table_name="incidents")
    op.drop_table("incidents")
