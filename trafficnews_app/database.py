#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/database.py
# Purpose: SQLAlchemy engine/session factory.
#
# Description of code and how it works:
# - Builds the engine from DATABASE_URL (MySQL/Postgres/SQLite).
# - In-memory SQLite shares one connection (StaticPool) so every session
#   sees the same tables.
#
# Author: TrafficNews Team
# Created: 2026-10-06
#
# Version: 0.2.0
# Last Modified: 2026-10-13 by TrafficNews Team
#
# Revision History:
# - 0.2.0 (2026-10-13): make_engine() helper for tests and scripts.
# - 0.1.0 (2026-10-06): Initial DB bootstrap.
###################################################################
#
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

from . import config

if not config.DATABASE_URL:
    raise RuntimeError("DATABASE_URL must be set in environment or .env")


def make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
        return create_engine(url, future=True, **kwargs)
    return create_engine(
        url,
        pool_pre_ping=True,
        pool_recycle=3600,
        future=True,
    )


def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False,
                        expire_on_commit=False, future=True)


engine = make_engine(config.DATABASE_URL)
SessionLocal = make_session_factory(engine)
Base = declarative_base()


def get_db() -> Generator:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
