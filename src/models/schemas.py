from typing import Literal, Optional, Tuple

from pydantic import BaseModel, Field

LatLon = Tuple[float, float]


class Stop(BaseModel):
    id: int
    name: str
    position: LatLon
    notes: list[str] = Field(default_factory=list)
    days: int = Field(default=1, ge=1)


class Route(BaseModel):
    generation: int = 0
    status: Literal["idle", "dispatched", "applied", "failed", "empty"] = "idle"
    waypoints: list[LatLon] = Field(default_factory=list)
    points: list[LatLon] = Field(default_factory=list)
    distance_km: float | None = None
    duration_min: float | None = None


class RouteResult(BaseModel):
    points: list[LatLon]
    distance_km: float | None = None
    duration_min: float | None = None


class SearchResult(BaseModel):
    label: str
    lat: float
    lon: float


class Marker(BaseModel):
    number: int
    stop_id: int
    name: str
    position: LatLon
    selected: bool = False


class MapView(BaseModel):
    center: LatLon
    zoom: int


class MapRenderState(BaseModel):
    markers: list[Marker]
    polyline: list[LatLon]
    route_generation: int
    route_status: str
    selected_id: Optional[int] = None
    view: MapView


class ExportDocument(BaseModel):
    filename: str = "trip_plan.html"
    media_type: str = "text/html"
    content: str


class ClickRequest(BaseModel):
    lat: float = Field(..., ge=-90, le=90)
    lon: float = Field(..., ge=-180, le=180)
    name: str | None = None


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Free-text place to look up")


class SearchResponse(BaseModel):
    stop: Stop | None = None
    found: bool


class StopUpdate(BaseModel):
    name: str | None = None
    days: int | float | str | None = None
    notes: list[str] | None = None


class NoteUpdate(BaseModel):
    text: str = ""


class SelectionRequest(BaseModel):
    stop_id: int | None = None
