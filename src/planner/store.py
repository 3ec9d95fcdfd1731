from __future__ import annotations

import itertools
import logging
import re
from typing import Any, Callable, Dict, Iterable, List, Optional

from models.schemas import LatLon, Stop

logger = logging.getLogger(__name__)

Listener = Callable[[str, Dict[str, Any]], Any]
SequenceHook = Callable[[List[Stop]], Any]

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

DEMO_STOPS: List[Dict[str, Any]] = [
    {
        "name": "Location 1: Skopje",
        "position": (41.9973, 21.4280),
        "notes": ["Visit the Old Bazaar", "Explore Kale Fortress"],
        "days": 2,
    },
    {
        "name": "Location 2: Matka Canyon",
        "position": (41.9511, 21.2981),
        "notes": ["Take a boat tour", "Hike the trails"],
        "days": 1,
    },
    {
        "name": "Location 3: Ohrid",
        "position": (41.1231, 20.8016),
        "notes": ["Visit St. Naum Monastery", "Relax at Lake Ohrid"],
        "days": 3,
    },
]


def coerce_days(value: Any) -> int:
    """
    Parse a day count the way a number input is read: take the leading integer,
    and fall back to 1 for anything unparseable or below 1.
    """
    if isinstance(value, bool):
        return 1
    if isinstance(value, int):
        days = value
    elif isinstance(value, float):
        if value != value or value in (float("inf"), float("-inf")):
            return 1
        days = int(value)
    else:
        match = _LEADING_INT.match(str(value)) if value is not None else None
        if not match:
            return 1
        days = int(match.group(1))
    return days if days >= 1 else 1


class ItineraryStore:
    """
    Ordered list of stops plus the selected-stop reference.

    Mutations are synchronous. Listeners get ``(event, payload)`` after every
    state change; ``on_sequence_change`` is called only when the stop sequence
    itself changes (add/remove/load), which is what drives route recomputation.
    """

    def __init__(self, on_sequence_change: Optional[SequenceHook] = None):
        self.on_sequence_change = on_sequence_change
        self._stops: List[Stop] = []
        self._selected_id: Optional[int] = None
        self._ids = itertools.count(1)
        self._listeners: List[Listener] = []

    def __len__(self) -> int:
        return len(self._stops)

    def list(self) -> List[Stop]:
        return [stop.model_copy(deep=True) for stop in self._stops]

    def get(self, stop_id: int) -> Optional[Stop]:
        stop = self._find(stop_id)
        return stop.model_copy(deep=True) if stop else None

    def selected(self) -> Optional[Stop]:
        if self._selected_id is None:
            return None
        return self.get(self._selected_id)

    @property
    def selected_id(self) -> Optional[int]:
        return self._selected_id

    def add_stop(
        self,
        position: LatLon,
        display_name: Optional[str] = None,
        *,
        label: Optional[str] = None,
    ) -> Stop:
        number = len(self._stops) + 1
        if display_name is None:
            display_name = f"Location {number}: {label}" if label else f"Location {number}"
        stop = Stop(
            id=next(self._ids),
            name=display_name,
            position=(float(position[0]), float(position[1])),
        )
        self._stops.append(stop)
        self._selected_id = stop.id
        self._notify("stop_added", {"stop_id": stop.id, "index": number - 1})
        self._sequence_changed()
        return stop.model_copy(deep=True)

    def remove_stop(self, stop_id: int) -> None:
        stop = self._find(stop_id)
        if stop is None:
            return
        self._stops = [s for s in self._stops if s.id != stop_id]
        if self._selected_id == stop_id:
            self._selected_id = None
        self._notify("stop_removed", {"stop_id": stop_id})
        self._sequence_changed()

    def load(self, stops: Iterable[Dict[str, Any]]) -> List[Stop]:
        """Replace the itinerary with fresh stops built from plain dicts."""
        self._stops = [
            Stop(
                id=next(self._ids),
                name=item["name"],
                position=tuple(item["position"]),
                notes=list(item.get("notes") or []),
                days=coerce_days(item.get("days", 1)),
            )
            for item in stops
        ]
        self._selected_id = None
        self._notify("itinerary_loaded", {"count": len(self._stops)})
        self._sequence_changed()
        return self.list()

    def select_stop(self, stop_id: Optional[int]) -> None:
        if stop_id is not None and self._find(stop_id) is None:
            return
        if stop_id == self._selected_id:
            return
        self._selected_id = stop_id
        self._notify("selection_changed", {"stop_id": stop_id})

    def rename_stop(self, stop_id: int, new_name: str) -> None:
        stop = self._find(stop_id)
        if stop is None:
            return
        stop.name = str(new_name)
        self._notify("stop_updated", {"stop_id": stop_id, "field": "name"})

    def set_stop_days(self, stop_id: int, new_days: Any) -> None:
        stop = self._find(stop_id)
        if stop is None:
            return
        stop.days = coerce_days(new_days)
        self._notify("stop_updated", {"stop_id": stop_id, "field": "days"})

    def set_stop_notes(self, stop_id: int, new_notes: Iterable[str]) -> None:
        stop = self._find(stop_id)
        if stop is None:
            return
        stop.notes = [str(note) for note in new_notes]
        self._notify("stop_updated", {"stop_id": stop_id, "field": "notes"})

    def add_note(self, stop_id: int, text: str = "") -> None:
        stop = self._find(stop_id)
        if stop is None:
            return
        self.set_stop_notes(stop_id, [*stop.notes, text])

    def update_note(self, stop_id: int, index: int, text: str) -> None:
        stop = self._find(stop_id)
        if stop is None or not 0 <= index < len(stop.notes):
            return
        notes = list(stop.notes)
        notes[index] = text
        self.set_stop_notes(stop_id, notes)

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _find(self, stop_id: int) -> Optional[Stop]:
        for stop in self._stops:
            if stop.id == stop_id:
                return stop
        return None

    def _notify(self, event: str, payload: Dict[str, Any]) -> None:
        for listener in list(self._listeners):
            try:
                listener(event, payload)
            except Exception as exc:
                # A broken subscriber must not undo or interrupt a mutation.
                logger.warning("Itinerary listener failed on %s: %s", event, exc)

    def _sequence_changed(self) -> None:
        if self.on_sequence_change is None:
            return
        self.on_sequence_change(self.list())
