#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: alembic/env.py
# Purpose: Alembic env that loads DATABASE_URL from .env and escapes % for ConfigParser.
#
# Description of code and how it works:
# - Loads .env explicitly from project root.
# - Percent-escapes '%' to '%%' before setting sqlalchemy.url to satisfy ConfigParser.
# - Uses trafficnews_app.models' Base.metadata for autogeneration.
#
# Author: TrafficNews Team
# Created: 2026-10-06
#
# Version: 0.2.0
# Last Modified: 2026-10-15 by TrafficNews Team
#
# Revision History:
# - 0.2.0 (2026-10-15): Routes table picked up through models import.
# - 0.1.0 (2026-10-06): Initial env.
###################################################################
#
from logging.config import fileConfig
import logging
import os
from pathlib import Path
from alembic import context
from sqlalchemy import engine_from_config, pool
from dotenv import load_dotenv

PROJECT_ROOT = Path(__file__).resolve().parents[1]

load_dotenv(PROJECT_ROOT / ".env")

config = context.config

if config.config_file_name is not None:
    fileConfig(config.config_file_name)

log = logging.getLogger("alembic.env")

db_url = os.getenv("DATABASE_URL")
if db_url:
    config.set_main_option("sqlalchemy.url", db_url.replace("%", "%%"))
else:
    log.warning("DATABASE_URL not set; using placeholder from alembic.ini")

from trafficnews_app.models import Base  # noqa: E402

target_metadata = Base.metadata

def run_migrations_offline():
    url = config.get_main_option("sqlalchemy.url")
    context.configure(
        url=url,
        target_metadata=target_metadata,
        literal_binds=True,
        dialect_opts={"paramstyle": "named"},
        compare_type=True,
    )
    with context.begin_transaction():
        context.run_migrations()

def run_migrations_online():
    connectable = engine_from_config(
        config.get_section(config.config_ini_section),
        prefix="sqlalchemy.",
        poolclass=pool.NullPool,
    )
    with connectable.connect() as connection:
        context.configure(connection=connection, target_metadata=target_metadata, compare_type=True)
        with context.begin_transaction():
            context.run_migrations()

if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
