import logging
from typing import Optional

import httpx

from models.schemas import SearchResult
from planner import config

logger = logging.getLogger(__name__)


def _label(best: dict, query: str) -> str:
    bits = [best.get("name") or query, best.get("admin1"), best.get("country")]
    seen: list[str] = []
    for bit in bits:
        if bit and bit not in seen:
            seen.append(bit)
    return ", ".join(seen)


async def geocode_location(query: str) -> Optional[SearchResult]:
    """
    Resolve a place name to its best match using the free Open-Meteo geocoding API.
    Only the top result is used. Returns None when nothing matches or on any failure.
    """
    if not query or not query.strip():
        return None
    params = {"name": query.strip(), "count": 1, "language": "en", "format": "json"}
    try:
        async with httpx.AsyncClient(timeout=config.get_geocoding_timeout()) as client:
            resp = await client.get(config.get_geocoding_url(), params=params)
            resp.raise_for_status()
        data = resp.json()
        results = data.get("results") or []
        if not results:
            return None
        best = results[0]
        return SearchResult(
            label=_label(best, query),
            lat=float(best["latitude"]),
            lon=float(best["longitude"]),
        )
    except Exception as exc:
        logger.warning("Geocoding failed for %s: %s", query, exc)
        return None
