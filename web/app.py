"""FastAPI web application for the live concept network.

Provides session, submission, graph and layout endpoints plus a WebSocket
channel that pushes the full graph to every participant of a session.
"""

import asyncio
import logging
import os
import uuid
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Request, WebSocket, WebSocketDisconnect
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from conceptmap.aggregate import DUPLICATE, RECORDED, Aggregator, seed_demo
from conceptmap.config import (
    DEFAULT_SESSION_CODE,
    DEFAULT_SESSION_NAME,
    DEFAULT_VIEWPORT,
    DEMO_PARTICIPANT,
    DEMO_SAMPLES,
    FREE_MODE_PHYSICS,
    PARTICIPANT_COOKIE,
    PARTICIPANT_COOKIE_MAX_AGE,
)
from conceptmap.graph import analyze, prepare_viz_data
from conceptmap.layout import LayoutConfig, ViewMode, compute_layout
from conceptmap.sessions import generate_session_code, validate_session_code
from conceptmap.store import MemoryStore, SqliteStore

logger = logging.getLogger(__name__)


class SessionRequest(BaseModel):
    name: Optional[str] = None


class SubmitRequest(BaseModel):
    source: Optional[str] = None
    target: Optional[str] = None


def store_from_env():
    """SQLite store at $CONCEPTMAP_DB, or an in-memory store if unset."""
    db_path = os.environ.get("CONCEPTMAP_DB")
    if db_path:
        return SqliteStore(db_path)
    return MemoryStore()


def _seed_enabled():
    return os.environ.get("CONCEPTMAP_SEED_DEMO", "1").lower() not in ("0", "false", "no")


def create_app(store=None) -> FastAPI:
    """Create and configure the FastAPI application."""
    owns_store = store is None
    if store is None:
        store = store_from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Seed the demo session on an empty store."""
        if _seed_enabled() and await asyncio.to_thread(store.edge_count) == 0:
            await asyncio.to_thread(
                seed_demo, app.state.aggregator, DEFAULT_SESSION_CODE,
                DEMO_PARTICIPANT, DEMO_SAMPLES, name=DEFAULT_SESSION_NAME,
            )
        yield
        if owns_store:
            store.close()

    app = FastAPI(title="Concept Network", lifespan=lifespan)
    app.state.store = store
    app.state.aggregator = Aggregator(store)
    # WebSocket connections per session code
    app.state.ws_connections = {}

    async def require_session(code):
        session_code = validate_session_code(code)
        if not session_code:
            raise HTTPException(status_code=400, detail="Invalid session code.")
        session = await asyncio.to_thread(store.get_session, session_code)
        if session is None:
            raise HTTPException(status_code=404, detail="Session not found.")
        return session

    @app.middleware("http")
    async def participant_cookie(request: Request, call_next):
        participant = request.cookies.get(PARTICIPANT_COOKIE)
        is_new = not participant
        if is_new:
            participant = str(uuid.uuid4())
        request.state.participant = participant
        response = await call_next(request)
        if is_new:
            response.set_cookie(
                PARTICIPANT_COOKIE, participant,
                max_age=PARTICIPANT_COOKIE_MAX_AGE, httponly=True, samesite="lax",
            )
        return response

    @app.post("/api/session", status_code=201)
    async def create_session(body: Optional[SessionRequest] = None):
        name = (body.name or "").strip() if body else ""
        code = await asyncio.to_thread(
            generate_session_code, lambda c: store.get_session(c) is not None)
        session = await asyncio.to_thread(store.create_session, code, name or None)
        logger.info("Created session %s", code)
        return {"session": session.to_dict()}

    @app.get("/api/session/{code}")
    async def get_session(code: str):
        session = await require_session(code)
        return {"session": session.to_dict()}

    @app.get("/api/session/{code}/graph")
    async def get_graph(code: str):
        session = await require_session(code)
        graph = await asyncio.to_thread(app.state.aggregator.snapshot, session.code)
        return {"session": session.to_dict(), "graph": graph.to_dict()}

    @app.post("/api/session/{code}/submit")
    async def submit(code: str, body: SubmitRequest, request: Request):
        session = await require_session(code)
        outcome = await asyncio.to_thread(
            app.state.aggregator.record_submission,
            session.code, request.state.participant, body.source, body.target,
        )

        if outcome.status == RECORDED:
            payload = outcome.graph.to_dict()
            await _broadcast_graph(app, session.code, payload)
            return JSONResponse(status_code=201, content=outcome.to_dict())
        if outcome.status == DUPLICATE:
            return JSONResponse(status_code=200, content=outcome.to_dict())
        return JSONResponse(status_code=400, content=outcome.to_dict())

    @app.get("/api/session/{code}/layout")
    async def get_layout(
        code: str,
        mode: ViewMode = ViewMode.FOCUSED,
        width: float = DEFAULT_VIEWPORT[0],
        height: float = DEFAULT_VIEWPORT[1],
        jitter: float = 0.0,
        seed: Optional[int] = None,
    ):
        session = await require_session(code)
        try:
            config = LayoutConfig.for_viewport(width, height, jitter=jitter, seed=seed)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

        snapshot, analysis, positions = await asyncio.to_thread(
            _layout_snapshot, app.state.aggregator, session.code, mode, config)

        return {
            "mode": mode.value,
            "hub": analysis.hub,
            "level": {
                node: (level if analysis.is_reachable(node) else None)
                for node, level in analysis.level.items()
            },
            "positions": (
                {node: list(xy) for node, xy in positions.items()}
                if positions is not None else None
            ),
            "physics": FREE_MODE_PHYSICS if positions is None else None,
            "viz": prepare_viz_data(snapshot, analysis, positions),
        }

    @app.websocket("/ws/{code}")
    async def websocket_endpoint(websocket: WebSocket, code: str):
        await websocket.accept()

        session_code = validate_session_code(code)
        session = None
        if session_code:
            session = await asyncio.to_thread(store.get_session, session_code)
        if session is None:
            await websocket.send_json({"type": "error", "message": "Session not found."})
            await websocket.close()
            return

        connections = app.state.ws_connections
        connections.setdefault(session_code, []).append(websocket)

        try:
            graph = await asyncio.to_thread(app.state.aggregator.snapshot, session_code)
            await websocket.send_json({"type": "graph:update", "graph": graph.to_dict()})

            # Keep connection open until client disconnects
            while True:
                await websocket.receive_text()
        except WebSocketDisconnect:
            pass
        finally:
            if session_code in connections:
                connections[session_code] = [
                    ws for ws in connections[session_code] if ws != websocket
                ]

    return app


def _layout_snapshot(aggregator, scope, mode, config):
    snapshot = aggregator.snapshot(scope)
    analysis = analyze(snapshot)
    return snapshot, analysis, compute_layout(snapshot, analysis, mode, config)


async def _broadcast_graph(app, session_code: str, graph: dict):
    """Send the full graph to all WebSocket clients for a session."""
    connections = app.state.ws_connections
    if session_code not in connections:
        return

    message = {"type": "graph:update", "graph": graph}

    dead = []
    for ws in connections.get(session_code, []):
        try:
            await ws.send_json(message)
        except Exception as e:
            logger.warning("Dropping WebSocket for %s: %s", session_code, e)
            dead.append(ws)

    # Clean up dead connections
    if dead and session_code in connections:
        connections[session_code] = [
            ws for ws in connections[session_code] if ws not in dead
        ]


# Create the app instance for uvicorn
app = create_app()
