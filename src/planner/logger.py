from __future__ import annotations

import json
import os
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


LOG_PATH = Path(os.getenv("PLANNER_LOG_PATH", "planner.log"))

STOP_ADDED = "stop_added"
SEARCH_FAILED = "search_failed"
ROUTE_DISPATCHED = "route_dispatched"
ROUTE_DEFERRED = "route_deferred"
ROUTE_APPLIED = "route_applied"
ROUTE_FAILED = "route_failed"
ROUTE_SUPERSEDED = "route_superseded"
SESSION_CLOSED = "session_closed"

EVENTS = frozenset(
    {
        STOP_ADDED,
        SEARCH_FAILED,
        ROUTE_DISPATCHED,
        ROUTE_DEFERRED,
        ROUTE_APPLIED,
        ROUTE_FAILED,
        ROUTE_SUPERSEDED,
        SESSION_CLOSED,
    }
)


class SessionEventLog:
    """
    JSON-lines journal of one planning session's itinerary and route lifecycle.

    Only names in ``EVENTS`` are accepted. Write failures are ignored so the
    journal can never interrupt planning.
    """

    def __init__(self, session_id: str):
        self.session_id = session_id

    def record(self, event: str, **data: Any) -> None:
        if event not in EVENTS:
            raise ValueError(f"Unknown planner event: {event}")
        line = json.dumps(
            {
                "ts": datetime.now(timezone.utc).isoformat(),
                "session_id": self.session_id,
                "event": event,
                "data": data,
            },
            ensure_ascii=False,
            default=str,
        )
        try:
            LOG_PATH.parent.mkdir(parents=True, exist_ok=True)
            with LOG_PATH.open("a", encoding="utf-8") as f:
                f.write(line + "\n")
        except OSError:
            return

    def read(self) -> list[dict]:
        """This session's recorded events, oldest first."""
        try:
            with LOG_PATH.open(encoding="utf-8") as f:
                records = [json.loads(raw) for raw in f if raw.strip()]
        except OSError:
            return []
        return [r for r in records if r.get("session_id") == self.session_id]
