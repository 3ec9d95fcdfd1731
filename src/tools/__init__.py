from .routing import fetch_driving_route
from .geocoding import geocode_location
from .export import export_itinerary

__all__ = [
    "fetch_driving_route",
    "geocode_location",
    "export_itinerary",
]
