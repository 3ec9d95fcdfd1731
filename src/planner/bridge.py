from __future__ import annotations

import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional

from models.schemas import MapRenderState, MapView, Marker, SearchResult, Stop
from planner import config
from planner import logger as events
from planner.resolver import RouteResolver
from planner.store import ItineraryStore
from tools import geocoding

logger = logging.getLogger(__name__)

Geocoder = Callable[[str], Awaitable[Optional[SearchResult]]]
RenderCallback = Callable[[MapRenderState], Any]


class MapEventBridge:
    """
    Glue between the map front end and the planner state: turns clicks and
    search hits into stops, and store + route state into markers and a polyline.
    """

    def __init__(
        self,
        store: ItineraryStore,
        resolver: RouteResolver,
        geocode: Optional[Geocoder] = None,
        session_id: str = "default",
    ):
        self.store = store
        self.resolver = resolver
        self.session_id = session_id
        self.events = events.SessionEventLog(session_id)
        self._geocode = geocode
        self._view = MapView(center=config.get_map_center(), zoom=config.get_map_zoom())
        self._renderers: List[RenderCallback] = []
        self._close_hooks: Dict[RenderCallback, Callable[[], Any]] = {}
        self.closed = False
        self._unsubscribers = [
            store.subscribe(self._on_change),
            resolver.subscribe(self._on_change),
        ]

    def on_map_click(self, lat: float, lon: float, name: Optional[str] = None) -> Stop:
        stop = self.store.add_stop((lat, lon), name)
        self.events.record(events.STOP_ADDED, source="click", stop_id=stop.id, position=stop.position)
        return stop

    def on_search_result(self, result: SearchResult) -> Stop:
        self._view = MapView(center=(result.lat, result.lon), zoom=config.get_search_zoom())
        stop = self.store.add_stop((result.lat, result.lon), label=result.label)
        self.events.record(events.STOP_ADDED, source="search", stop_id=stop.id, label=result.label)
        return stop

    async def on_search(self, query: str) -> Optional[Stop]:
        geocode = self._geocode or geocoding.geocode_location
        try:
            result = await geocode(query)
        except Exception as exc:
            logger.warning("Search for %r raised: %s", query, exc)
            result = None
        if result is None:
            self.events.record(events.SEARCH_FAILED, query=query)
            return None
        return self.on_search_result(result)

    def render_state(self) -> MapRenderState:
        selected_id = self.store.selected_id
        markers = [
            Marker(
                number=index,
                stop_id=stop.id,
                name=stop.name,
                position=stop.position,
                selected=stop.id == selected_id,
            )
            for index, stop in enumerate(self.store.list(), start=1)
        ]
        route = self.resolver.route
        return MapRenderState(
            markers=markers,
            polyline=route.points,
            route_generation=route.generation,
            route_status=route.status,
            selected_id=selected_id,
            view=self._view,
        )

    def subscribe(
        self,
        callback: RenderCallback,
        on_close: Optional[Callable[[], Any]] = None,
    ) -> Callable[[], None]:
        """
        Call ``callback`` with a fresh render state after every change.
        ``on_close`` runs once if the bridge is closed while still subscribed.
        """
        self._renderers.append(callback)
        if on_close is not None:
            self._close_hooks[callback] = on_close

        def unsubscribe() -> None:
            if callback in self._renderers:
                self._renderers.remove(callback)
            self._close_hooks.pop(callback, None)

        return unsubscribe

    def close(self) -> None:
        self.closed = True
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        hooks = list(self._close_hooks.values())
        self._renderers.clear()
        self._close_hooks.clear()
        for hook in hooks:
            try:
                hook()
            except Exception as exc:
                logger.warning("Close hook failed: %s", exc)

    def _on_change(self, event: str, payload: Dict[str, Any]) -> None:
        if not self._renderers:
            return
        state = self.render_state()
        for callback in list(self._renderers):
            try:
                callback(state)
            except Exception as exc:
                logger.warning("Render callback failed after %s: %s", event, exc)
