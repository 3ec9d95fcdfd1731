from html import escape
from typing import Iterable

from models.schemas import ExportDocument, Stop

EXPORT_FILENAME = "trip_plan.html"

_STYLE = """
    body { font-family: Arial, sans-serif; line-height: 1.6; }
    h1 { color: #2c3e50; }
    .location { margin-bottom: 20px; }
    .location h2 { color: #3498db; }
    ul { padding-left: 20px; }
"""


def _render_stop(stop: Stop) -> str:
    notes = "".join(f"<li>{escape(note)}</li>" for note in stop.notes)
    return (
        '<div class="location">\n'
        f"  <h2>{escape(stop.name)}</h2>\n"
        f"  <p>Days: {stop.days}</p>\n"
        "  <h3>Notes:</h3>\n"
        f"  <ul>{notes}</ul>\n"
        "</div>\n"
    )


def export_itinerary(stops: Iterable[Stop]) -> ExportDocument:
    """
    Render an itinerary snapshot as a standalone HTML trip plan.
    One section per stop, in itinerary order, with its name, day count and notes.
    """
    sections = "".join(_render_stop(stop) for stop in stops)
    content = (
        "<!DOCTYPE html>\n<html>\n<head>\n"
        '<meta charset="utf-8">\n'
        "<title>Trip Plan</title>\n"
        f"<style>{_STYLE}</style>\n"
        "</head>\n<body>\n"
        "<h1>Your Trip Plan</h1>\n"
        f"{sections}"
        "</body>\n</html>\n"
    )
    return ExportDocument(filename=EXPORT_FILENAME, media_type="text/html", content=content)
