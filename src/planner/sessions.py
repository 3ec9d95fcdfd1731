from __future__ import annotations

from abc import ABC, abstractmethod
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import List, Optional

from planner.bridge import MapEventBridge
from planner.logger import SESSION_CLOSED
from planner.resolver import RouteResolver, RouteFetcher
from planner.store import DEMO_STOPS, ItineraryStore


@dataclass
class PlanningSession:
    session_id: str
    store: ItineraryStore
    resolver: RouteResolver
    bridge: MapEventBridge = field(repr=False)

    @classmethod
    def create(cls, session_id: str, fetch_route: Optional[RouteFetcher] = None) -> "PlanningSession":
        resolver = RouteResolver(fetch_route=fetch_route, session_id=session_id)
        store = ItineraryStore(on_sequence_change=resolver.request)
        bridge = MapEventBridge(store, resolver, session_id=session_id)
        return cls(session_id=session_id, store=store, resolver=resolver, bridge=bridge)

    def load_demo(self) -> None:
        self.store.load(DEMO_STOPS)

    def close(self) -> None:
        self.bridge.close()
        self.resolver.close()
        self.resolver.events.record(SESSION_CLOSED, stops=len(self.store))


class SessionRegistry(ABC):
    @abstractmethod
    def get(self, session_id: str) -> PlanningSession:
        ...

    @abstractmethod
    def drop(self, session_id: str) -> None:
        ...

    @abstractmethod
    def session_ids(self) -> List[str]:
        ...


class InMemorySessionRegistry(SessionRegistry):
    """
    In-process planning sessions, created on first use, capped at max_sessions.
    """

    def __init__(self, max_sessions: int = 100, seed_demo: bool = False):
        self.max_sessions = max_sessions
        self.seed_demo = seed_demo
        self._sessions: "OrderedDict[str, PlanningSession]" = OrderedDict()

    def get(self, session_id: str) -> PlanningSession:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
            return session
        session = PlanningSession.create(session_id)
        self._sessions[session_id] = session
        if self.seed_demo:
            session.load_demo()
        # Evict least recently used sessions beyond the cap.
        while len(self._sessions) > self.max_sessions:
            _, evicted = self._sessions.popitem(last=False)
            evicted.close()
        return session

    def drop(self, session_id: str) -> None:
        session = self._sessions.pop(session_id, None)
        if session is not None:
            session.close()

    def session_ids(self) -> List[str]:
        return list(self._sessions.keys())
