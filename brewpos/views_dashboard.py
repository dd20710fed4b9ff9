# brewpos/views_dashboard.py
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, Request, WebSocket
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates
from fastapi.websockets import WebSocketDisconnect
from sqlmodel import Session

from .db import get_session_dep, require_schema
from .ledger import list_recent_orders
from .paths import TEMPLATES_DIR
from .stats import compute_stats
from .workflow import VALID_STATUSES
from .ws import hub

SessionDep = Annotated[Session, Depends(get_session_dep)]

router = APIRouter()
templates = Jinja2Templates(directory=str(TEMPLATES_DIR))


@router.get("/dashboard", response_class=HTMLResponse, dependencies=[Depends(require_schema)])
def dashboard(request: Request, session: SessionDep):
    """Pagina titolare: statistiche + ultimi ordini. Si aggiorna via /ws."""
    resp = templates.TemplateResponse(
        request,
        "dashboard.html",
        {
            "stats": compute_stats(session),
            "orders": list_recent_orders(session, 30),
            "statuses": VALID_STATUSES,
        },
    )
    resp.headers["Cache-Control"] = "no-store, max-age=0"
    return resp


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket):
    await hub.connect(websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        hub.disconnect(websocket)
