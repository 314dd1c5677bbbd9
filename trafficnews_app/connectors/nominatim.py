#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/connectors/nominatim.py
# Purpose: Nominatim (OpenStreetMap) geocoding connector + tile URLs.
#
# Description of code and how it works:
# - geocode(address) -> Coordinates via /search?format=json&limit=1.
# - reverse_geocode(lat, lon) -> display_name via /reverse?format=json.
# - Network/HTTP/JSON problems are logged and returned as None; callers
#   must treat every lookup as optional. No retries on purpose.
# - Sends the User-Agent Nominatim's usage policy requires.
#
# Author: TrafficNews Team
# Created: 2026-10-10
#
# Version: 0.2.0
# Last Modified: 2026-10-15 by TrafficNews Team
#
# Revision History:
# - 0.2.0 (2026-10-15): Injectable transport for tests; tile_url helper.
# - 0.1.0 (2026-10-10): Initial geocode / reverse geocode.
###################################################################
#
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from .. import config

log = logging.getLogger("trafficnews")


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


def _build_url(base: str, path: str) -> str:
    base = (base or "").strip()
    if not base.startswith(("http://", "https://")):
        base = "https://" + base.lstrip("/")
    return base.rstrip("/") + "/" + path.lstrip("/")


class NominatimClient:
    def __init__(
        self,
        base_url: str = config.NOMINATIM_BASE_URL,
        user_agent: str = config.NOMINATIM_USER_AGENT,
        timeout: float = config.NOMINATIM_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url
        self.user_agent = user_agent
        self.timeout = timeout
        self._transport = transport

    async def _get_json(self, path: str, params: Dict[str, Any]) -> Any:
        url = _build_url(self.base_url, path)
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            resp = await client.get(url, params=params, headers={"User-Agent": self.user_agent})
            resp.raise_for_status()
            return resp.json()

    async def geocode(self, address: str) -> Optional[Coordinates]:
        if not address or not address.strip():
            return None
        try:
            data = await self._get_json("/search", {"format": "json", "q": address.strip(), "limit": 1})
        except (httpx.HTTPError, ValueError) as e:
            log.warning("[GEO] geocode failed address=%r err=%s", address, e)
            return None
        if not isinstance(data, list) or not data or not isinstance(data[0], dict):
            log.info("[GEO] geocode no match address=%r", address)
            return None
        try:
            return Coordinates(latitude=float(data[0]["lat"]), longitude=float(data[0]["lon"]))
        except (KeyError, TypeError, ValueError) as e:
            log.warning("[GEO] geocode unexpected payload address=%r err=%s", address, e)
            return None

    async def reverse_geocode(self, latitude: float, longitude: float) -> Optional[str]:
        try:
            data = await self._get_json("/reverse", {"format": "json", "lat": latitude, "lon": longitude})
        except (httpx.HTTPError, ValueError) as e:
            log.warning("[GEO] reverse failed lat=%s lon=%s err=%s", latitude, longitude, e)
            return None
        if isinstance(data, dict) and isinstance(data.get("display_name"), str):
            return data["display_name"]
        log.info("[GEO] reverse no match lat=%s lon=%s", latitude, longitude)
        return None


def tile_url(z: int, x: int, y: int, template: str = config.TILE_URL_TEMPLATE) -> str:
    return template.format(z=z, x=x, y=y)
