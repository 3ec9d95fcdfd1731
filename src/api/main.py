# src/api/main.py
import asyncio
import json

from dotenv import load_dotenv
from fastapi import FastAPI, Response
from fastapi.responses import StreamingResponse
from fastapi.middleware.cors import CORSMiddleware

from models.schemas import (
    ClickRequest,
    MapRenderState,
    NoteUpdate,
    SearchRequest,
    SearchResponse,
    SelectionRequest,
    Stop,
    StopUpdate,
)
from planner import config
from planner.sessions import InMemorySessionRegistry
from tools.export import export_itinerary

load_dotenv()


app = FastAPI(title="trip-map-planner")

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

sessions = InMemorySessionRegistry(
    max_sessions=config.get_max_sessions(),
    seed_demo=config.seed_demo_itinerary(),
)

# Handlers are async so store mutations run on the event loop the route
# resolver schedules its requests on.


@app.get("/sessions/{session_id}/map", response_model=MapRenderState)
async def get_map(session_id: str) -> MapRenderState:
    return sessions.get(session_id).bridge.render_state()


@app.get("/sessions/{session_id}/stops", response_model=list[Stop])
async def list_stops(session_id: str) -> list[Stop]:
    return sessions.get(session_id).store.list()


@app.post("/sessions/{session_id}/stops", response_model=Stop)
async def add_stop(session_id: str, req: ClickRequest) -> Stop:
    return sessions.get(session_id).bridge.on_map_click(req.lat, req.lon, req.name)


@app.post("/sessions/{session_id}/search", response_model=SearchResponse)
async def search(session_id: str, req: SearchRequest) -> SearchResponse:
    stop = await sessions.get(session_id).bridge.on_search(req.query)
    return SearchResponse(stop=stop, found=stop is not None)


@app.patch("/sessions/{session_id}/stops/{stop_id}", response_model=MapRenderState)
async def update_stop(session_id: str, stop_id: int, req: StopUpdate) -> MapRenderState:
    session = sessions.get(session_id)
    if req.name is not None:
        session.store.rename_stop(stop_id, req.name)
    if req.days is not None:
        session.store.set_stop_days(stop_id, req.days)
    if req.notes is not None:
        session.store.set_stop_notes(stop_id, req.notes)
    return session.bridge.render_state()


@app.delete("/sessions/{session_id}/stops/{stop_id}", response_model=MapRenderState)
async def remove_stop(session_id: str, stop_id: int) -> MapRenderState:
    session = sessions.get(session_id)
    session.store.remove_stop(stop_id)
    return session.bridge.render_state()


@app.post("/sessions/{session_id}/stops/{stop_id}/notes", response_model=Stop | None)
async def add_note(session_id: str, stop_id: int, req: NoteUpdate) -> Stop | None:
    session = sessions.get(session_id)
    session.store.add_note(stop_id, req.text)
    return session.store.get(stop_id)


@app.put("/sessions/{session_id}/stops/{stop_id}/notes/{index}", response_model=Stop | None)
async def update_note(session_id: str, stop_id: int, index: int, req: NoteUpdate) -> Stop | None:
    session = sessions.get(session_id)
    session.store.update_note(stop_id, index, req.text)
    return session.store.get(stop_id)


@app.put("/sessions/{session_id}/selection", response_model=MapRenderState)
async def select_stop(session_id: str, req: SelectionRequest) -> MapRenderState:
    session = sessions.get(session_id)
    session.store.select_stop(req.stop_id)
    return session.bridge.render_state()


@app.post("/sessions/{session_id}/demo", response_model=list[Stop])
async def load_demo(session_id: str) -> list[Stop]:
    session = sessions.get(session_id)
    session.load_demo()
    return session.store.list()


@app.get("/sessions/{session_id}/export")
async def export(session_id: str) -> Response:
    document = export_itinerary(sessions.get(session_id).store.list())
    return Response(
        content=document.content,
        media_type=document.media_type,
        headers={"Content-Disposition": f'attachment; filename="{document.filename}"'},
    )


@app.get("/sessions/{session_id}/stream")
async def map_stream(session_id: str):
    session = sessions.get(session_id)

    async def event_generator():
        if session.bridge.closed:
            return
        queue: asyncio.Queue = asyncio.Queue()
        unsubscribe = session.bridge.subscribe(queue.put_nowait, on_close=lambda: queue.put_nowait(None))
        try:
            await queue.put(session.bridge.render_state())
            while True:
                state = await queue.get()
                if state is None:
                    break
                yield f"data: {json.dumps(state.model_dump())}\n\n"
        finally:
            unsubscribe()

    return StreamingResponse(event_generator(), media_type="text/event-stream")
