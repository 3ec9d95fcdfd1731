import logging
from typing import List, Optional, Sequence

import httpx

from models.schemas import LatLon, RouteResult
from planner import config

logger = logging.getLogger(__name__)


def format_waypoints(waypoints: Sequence[LatLon]) -> str:
    """Internal (lat, lon) pairs to OSRM's 'lon,lat;lon,lat' path segment."""
    return ";".join(f"{lon},{lat}" for lat, lon in waypoints)


def _parse_route(data: dict) -> Optional[RouteResult]:
    routes = data.get("routes") or []
    if not routes:
        return None
    best = routes[0]
    coords = (best.get("geometry") or {}).get("coordinates") or []
    # OSRM geometry is (lon, lat); the map wants (lat, lon).
    points: List[LatLon] = [(float(c[1]), float(c[0])) for c in coords]
    if not points:
        return None
    distance = best.get("distance")
    duration = best.get("duration")
    return RouteResult(
        points=points,
        distance_km=round(float(distance) / 1000, 2) if distance is not None else None,
        duration_min=round(float(duration) / 60, 1) if duration is not None else None,
    )


async def fetch_driving_route(waypoints: Sequence[LatLon]) -> Optional[RouteResult]:
    """
    Ask OSRM for the best driving route through the waypoints in order.
    Returns None on any failure or when no route is found; never raises.
    """
    if len(waypoints) < 2:
        return None
    url = f"{config.get_osrm_base_url()}/route/v1/{config.get_osrm_profile()}/{format_waypoints(waypoints)}"
    params = {"overview": "full", "geometries": "geojson", "alternatives": "false", "steps": "false"}
    try:
        async with httpx.AsyncClient(timeout=config.get_route_timeout()) as client:
            resp = await client.get(url, params=params)
            resp.raise_for_status()
        data = resp.json()
        if data.get("code") not in (None, "Ok"):
            logger.warning("OSRM returned %s for %d waypoints: %s", data.get("code"), len(waypoints), data.get("message"))
            return None
        return _parse_route(data)
    except Exception as exc:
        logger.warning("OSRM route lookup failed for %d waypoints: %s", len(waypoints), exc)
        return None
