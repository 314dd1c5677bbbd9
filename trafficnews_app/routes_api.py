#!/usr/bin/env python3
#
###################################################################
# Project: TrafficNews
# File: trafficnews_app/routes_api.py
# Purpose: Saved routes CRUD + map helpers (geocode, reverse, tiles)
#
# Description of code and how it works:
# - /api/routes: user-saved places with a watch radius (metres).
# - /api/map: Nominatim lookups and OSM tile URLs; a failed lookup is 502.
#
# Author: TrafficNews Team
# Created: 2026-10-15
#
# Version: 0.2.0
# Last Modified: 2026-10-18 by TrafficNews Team
#
# Revision History:
# - 0.2.0 (2026-10-18): Map router split out of main.
# - 0.1.0 (2026-10-15): Saved routes.
###################################################################
#
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from . import deps
from .connectors.nominatim import NominatimClient, tile_url
from .errors import NotFoundError
from .schemas import RouteIn, RouteRecord
from .services.validation import sanitize_string, validate_coordinates, validate_route
from .stores import RouteStore, new_id, utcnow

router = APIRouter(prefix="/api/routes", tags=["routes"])
map_router = APIRouter(prefix="/api/map", tags=["map"])


def _invalid(errors):
    return JSONResponse({"ok": False, "error": "Validation failed", "errors": errors}, status_code=400)

def _dump(route: RouteRecord):
    return route.model_dump(mode="json", by_alias=True)

@router.get("")
def routes_list(user_id: Optional[str] = Query(default=None, alias="userId"),
                store: RouteStore = Depends(deps.get_route_store)):
    items = store.get_all(user_id=user_id)
    return {"ok": True, "count": len(items), "items": [_dump(r) for r in items]}

@router.post("")
def routes_create(body: RouteIn, store: RouteStore = Depends(deps.get_route_store)):
    result = validate_route(body)
    if not result.valid:
        return _invalid(result.errors)
    record = RouteRecord(
        id=new_id("route"),
        name=sanitize_string(body.name),
        latitude=body.latitude,
        longitude=body.longitude,
        radius=body.radius if body.radius is not None else 1000,
        user_id=sanitize_string(body.user_id) or None,
        created_at=utcnow(),
    )
    return JSONResponse(_dump(store.save(record)), status_code=201)

@router.get("/{route_id}")
def routes_get(route_id: str, store: RouteStore = Depends(deps.get_route_store)):
    found = store.get_by_id(route_id)
    if found is None:
        raise NotFoundError("route", route_id)
    return _dump(found)

@router.put("/{route_id}")
def routes_update(route_id: str, body: RouteIn, store: RouteStore = Depends(deps.get_route_store)):
    found = store.get_by_id(route_id)
    if found is None:
        raise NotFoundError("route", route_id)
    merged = found.model_copy(update=body.model_dump(exclude_none=True))
    result = validate_route(merged)
    if not result.valid:
        return _invalid(result.errors)
    merged = merged.model_copy(update={"name": sanitize_string(merged.name)})
    return _dump(store.save(merged))

@router.delete("/{route_id}")
def routes_delete(route_id: str, store: RouteStore = Depends(deps.get_route_store)):
    if not store.delete(route_id):
        raise NotFoundError("route", route_id)
    return {"ok": True, "id": route_id}

# ---- map ---------------------------------------------------------------------

@map_router.get("/geocode")
async def map_geocode(address: str = Query(..., min_length=1),
                      geo: NominatimClient = Depends(deps.get_geocoder)):
    coords = await geo.geocode(address)
    if coords is None:
        return JSONResponse({"ok": False, "error": "Geocoding failed or no match"}, status_code=502)
    return {"ok": True, "address": address, "latitude": coords.latitude, "longitude": coords.longitude}

@map_router.get("/reverse")
async def map_reverse(lat: float = Query(...), lon: float = Query(...),
                      geo: NominatimClient = Depends(deps.get_geocoder)):
    result = validate_coordinates(lat, lon)
    if not result.valid:
        return _invalid(result.errors)
    name = await geo.reverse_geocode(lat, lon)
    if name is None:
        return JSONResponse({"ok": False, "error": "Reverse geocoding failed or no match"}, status_code=502)
    return {"ok": True, "latitude": lat, "longitude": lon, "displayName": name}

@map_router.get("/tile-url")
def map_tile_url(z: int = Query(..., ge=0, le=19), x: int = Query(..., ge=0), y: int = Query(..., ge=0)):
    return {"ok": True, "url": tile_url(z, x, y)}
