import asyncio
import tempfile
from pathlib import Path
from unittest.mock import patch

import httpx

from models.schemas import RouteResult, Stop


class MockResponse:
    def __init__(self, payload: dict, status_code: int = 200):
        self._payload = payload
        self.status_code = status_code
        self.request = httpx.Request("GET", "https://mock")

    def json(self) -> dict:
        return self._payload

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise httpx.HTTPStatusError(
                "mock error",
                request=self.request,
                response=httpx.Response(self.status_code, request=self.request),
            )


class MockAsyncClient:
    def __init__(self, response: MockResponse):
        self.response = response
        self.calls: list[tuple[str, dict | None]] = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        return False

    async def get(self, url: str, params=None):
        self.calls.append((url, params))
        return self.response


class ControlledRouter:
    """
    Fake route fetcher whose responses are released by the test, in any order.
    """

    def __init__(self):
        self.calls: list[list[tuple[float, float]]] = []
        self._futures: list[asyncio.Future] = []

    async def __call__(self, waypoints):
        self.calls.append(list(waypoints))
        future = asyncio.get_running_loop().create_future()
        self._futures.append(future)
        return await future

    def resolve(self, index: int, result: RouteResult | None) -> None:
        if not self._futures[index].done():
            self._futures[index].set_result(result)

    def fail(self, index: int, exc: Exception) -> None:
        if not self._futures[index].done():
            self._futures[index].set_exception(exc)

    def cancelled(self, index: int) -> bool:
        return self._futures[index].cancelled()


def route_for(waypoints) -> RouteResult:
    """A recognisable fake route: the waypoints themselves."""
    return RouteResult(points=[tuple(p) for p in waypoints], distance_km=float(len(waypoints)))


def make_stop(stop_id: int, lat: float, lon: float, **kwargs) -> Stop:
    return Stop(id=stop_id, name=kwargs.pop("name", f"Location {stop_id}"), position=(lat, lon), **kwargs)


def quiet_event_log(testcase) -> Path:
    """Point the planner event log at a temp dir for the duration of a test."""
    tmp = tempfile.TemporaryDirectory()
    testcase.addCleanup(tmp.cleanup)
    path = Path(tmp.name) / "planner.log"
    patcher = patch("planner.logger.LOG_PATH", path)
    patcher.start()
    testcase.addCleanup(patcher.stop)
    return path
