from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from models.schemas import LatLon, Route, RouteResult, Stop
from planner import logger as events
from tools import routing

logger = logging.getLogger(__name__)

RouteFetcher = Callable[[List[LatLon]], Awaitable[Optional[RouteResult]]]
Listener = Callable[[str, Dict[str, Any]], Any]


class RouteResolver:
    """
    Derives the driving route for the current stop sequence.

    Every call to ``request`` opens a new generation. A response is written to
    the route only while its generation is still the newest one; anything older
    is dropped, so the settled route always belongs to the last stop list.
    Requests of superseded generations are cancelled.

    Outside a running event loop a request is held back and dispatched by the
    next ``settle()``, unless a newer request replaces it first.
    """

    def __init__(self, fetch_route: Optional[RouteFetcher] = None, session_id: str = "default"):
        self.session_id = session_id
        self.events = events.SessionEventLog(session_id)
        self._fetch_route = fetch_route
        self._generation = 0
        self._outcome = "idle"
        self._route = Route()
        self._in_flight: Dict[int, asyncio.Task] = {}
        self._deferred: Optional[Tuple[int, List[LatLon]]] = None
        self._listeners: List[Listener] = []

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def route(self) -> Route:
        return self._route.model_copy(deep=True)

    @property
    def in_flight(self) -> int:
        return len(self._in_flight)

    def status(self, generation: int) -> Optional[str]:
        """
        Outcome of a generation. The current one is idle, dispatched, applied,
        failed or empty; every older one is superseded.
        """
        if generation == self._generation:
            return self._outcome
        if 0 < generation < self._generation:
            return "superseded"
        return None

    def request(self, stops: Sequence[Stop]) -> Optional[asyncio.Task]:
        self._generation += 1
        generation = self._generation
        self._supersede_older()

        waypoints = [tuple(stop.position) for stop in stops]
        if len(waypoints) < 2:
            self._outcome = "empty"
            self._set_route(Route(generation=generation, status="empty", waypoints=waypoints))
            return None

        self._outcome = "dispatched"
        self._set_route(self._route.model_copy(update={"status": "dispatched"}))
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.info("No running event loop; route for generation %s waits for settle()", generation)
            self.events.record(events.ROUTE_DEFERRED, generation=generation, waypoints=waypoints)
            self._deferred = (generation, waypoints)
            return None
        return self._dispatch(loop, generation, waypoints)

    async def settle(self) -> Route:
        """Dispatch any held-back request, wait for in-flight ones, return the route."""
        if self._deferred is not None:
            generation, waypoints = self._deferred
            self._deferred = None
            if generation == self._generation:
                self._dispatch(asyncio.get_running_loop(), generation, waypoints)
        while self._in_flight:
            await asyncio.gather(*list(self._in_flight.values()), return_exceptions=True)
        return self.route

    def close(self) -> None:
        self._deferred = None
        for task in list(self._in_flight.values()):
            task.cancel()
        self._in_flight.clear()

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _supersede_older(self) -> None:
        self._deferred = None
        for older, task in list(self._in_flight.items()):
            task.cancel()
            self.events.record(events.ROUTE_SUPERSEDED, generation=older, current=self._generation)
        self._in_flight.clear()

    def _dispatch(self, loop: asyncio.AbstractEventLoop, generation: int, waypoints: List[LatLon]) -> asyncio.Task:
        self.events.record(events.ROUTE_DISPATCHED, generation=generation, waypoints=waypoints)
        task = loop.create_task(self._resolve(generation, waypoints))
        self._in_flight[generation] = task

        def forget(done: asyncio.Task) -> None:
            if self._in_flight.get(generation) is done:
                del self._in_flight[generation]

        task.add_done_callback(forget)
        return task

    async def _resolve(self, generation: int, waypoints: List[LatLon]) -> None:
        fetch = self._fetch_route or routing.fetch_driving_route
        try:
            result = await fetch(waypoints)
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            logger.warning("Route computation raised for generation %s: %s", generation, exc)
            result = None

        if generation != self._generation:
            logger.debug("Discarding stale route for generation %s (current %s)", generation, self._generation)
            return

        if result is None or not result.points:
            self._outcome = "failed"
            self.events.record(events.ROUTE_FAILED, generation=generation)
            self._set_route(Route(generation=generation, status="failed", waypoints=waypoints))
            return

        self._outcome = "applied"
        self.events.record(
            events.ROUTE_APPLIED,
            generation=generation,
            points=len(result.points),
            distance_km=result.distance_km,
        )
        self._set_route(
            Route(
                generation=generation,
                status="applied",
                waypoints=waypoints,
                points=result.points,
                distance_km=result.distance_km,
                duration_min=result.duration_min,
            )
        )

    def _set_route(self, route: Route) -> None:
        self._route = route
        payload = {"generation": route.generation, "status": route.status}
        for listener in list(self._listeners):
            try:
                listener("route_changed", payload)
            except Exception as exc:
                logger.warning("Route listener failed: %s", exc)
