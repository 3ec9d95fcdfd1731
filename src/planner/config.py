"""Configuration for the trip planner, read from the environment."""
import os

from dotenv import load_dotenv

load_dotenv()


def get_osrm_base_url() -> str:
    """Base URL of the OSRM routing service."""
    return os.getenv("OSRM_BASE_URL", "https://router.project-osrm.org").rstrip("/")


def get_osrm_profile() -> str:
    return os.getenv("OSRM_PROFILE", "driving")


def get_route_timeout() -> float:
    return float(os.getenv("ROUTE_TIMEOUT_S", "10"))


def get_geocoding_url() -> str:
    return os.getenv("GEOCODING_URL", "https://geocoding-api.open-meteo.com/v1/search")


def get_geocoding_timeout() -> float:
    return float(os.getenv("GEOCODING_TIMEOUT_S", "8"))


def get_map_center() -> tuple[float, float]:
    """Initial map centre as (lat, lon). Defaults to Skopje."""
    raw = os.getenv("MAP_CENTER", "41.9973,21.4280")
    try:
        lat, lon = (float(part) for part in raw.split(","))
    except ValueError:
        return 41.9973, 21.4280
    return lat, lon


def get_map_zoom() -> int:
    return int(os.getenv("MAP_ZOOM", "8"))


def get_search_zoom() -> int:
    """Zoom level used when the map recentres on a search hit."""
    return int(os.getenv("SEARCH_ZOOM", "13"))


def seed_demo_itinerary() -> bool:
    return os.getenv("PLANNER_SEED_DEMO", "").lower() in ("1", "true", "yes")


def get_max_sessions() -> int:
    return int(os.getenv("PLANNER_MAX_SESSIONS", "100"))
