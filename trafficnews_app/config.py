#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/config.py
# Purpose: Environment-driven settings shared by the app, services and scripts.
#
# Description of code and how it works:
# - Loads .env once (python-dotenv) and exposes typed module constants.
# - Defaults match the documented production values (5 submissions/hour,
#   30s refresh with a 5s floor, Nominatim geocoder).
#
# Author: TrafficNews Team
# Created: 2026-10-06
#
# Version: 0.3.0
# Last Modified: 2026-10-17 by TrafficNews Team
#
# Revision History:
# - 0.3.0 (2026-10-17): Filter session bound + search history size.
# - 0.2.0 (2026-10-11): Rate limiter eviction settings; auto-publish toggle.
# - 0.1.0 (2026-10-06): Initial settings module.
###################################################################
#
from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


# --- Database -----------------------------------------------------------------
DATABASE_URL = os.getenv("DATABASE_URL")
AUTO_CREATE_SCHEMA = _env_bool("TRAFFICNEWS_AUTO_CREATE_SCHEMA", True)

# --- Submission admission (fixed window) --------------------------------------
RATE_LIMIT = _env_int("TRAFFICNEWS_RATE_LIMIT", 5)
RATE_WINDOW_MS = _env_int("TRAFFICNEWS_RATE_WINDOW_MS", 3_600_000)
RATE_EVICT_FACTOR = _env_int("TRAFFICNEWS_RATE_EVICT_FACTOR", 2)
RATE_SWEEP_MINUTES = _env_int("TRAFFICNEWS_RATE_SWEEP_MINUTES", 10)

# --- Refresh scheduling -------------------------------------------------------
REFRESH_INTERVAL_MS = _env_int("TRAFFICNEWS_REFRESH_INTERVAL_MS", 30_000)
REFRESH_MIN_INTERVAL_MS = _env_int("TRAFFICNEWS_REFRESH_MIN_INTERVAL_MS", 5_000)
AUTO_PUBLISH = _env_bool("TRAFFICNEWS_AUTO_PUBLISH", False)

# --- Query pipeline -----------------------------------------------------------
FILTER_SESSIONS_MAX = _env_int("TRAFFICNEWS_FILTER_SESSIONS_MAX", 1000)
SEARCH_HISTORY_MAX = _env_int("TRAFFICNEWS_SEARCH_HISTORY_MAX", 10)

# --- Geocoding / tiles --------------------------------------------------------
NOMINATIM_BASE_URL = os.getenv("NOMINATIM_BASE_URL", "https://nominatim.openstreetmap.org")
NOMINATIM_USER_AGENT = os.getenv("NOMINATIM_USER_AGENT", "TrafficNewsApp/1.0")
NOMINATIM_TIMEOUT = float(os.getenv("NOMINATIM_TIMEOUT", "10"))
TILE_URL_TEMPLATE = os.getenv("TILE_URL_TEMPLATE", "https://tile.openstreetmap.org/{z}/{x}/{y}.png")
