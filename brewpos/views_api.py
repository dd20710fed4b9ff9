# brewpos/views_api.py
from __future__ import annotations

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from .config import CONFIG
from .db import get_session_dep, require_schema
from .errors import LedgerValidationError, OrderNotFound
from .ledger import list_recent_orders, money, parse_order_payload, place_order
from .menu import list_menu
from .stats import compute_stats
from .workflow import StatusUpdate, parse_status, update_status
from .ws import hub, order_created_event, order_status_event

log = logging.getLogger(__name__)

# Dipendenza tipizzata
SessionDep = Annotated[Session, Depends(get_session_dep)]

# ogni endpoint passa prima dal provisioning (no-op dopo il primo successo)
router = APIRouter(prefix="/api", tags=["api"], dependencies=[Depends(require_schema)])


class MenuItemOut(BaseModel):
    id: int
    category: str
    name: str
    description: Optional[str] = None
    price: str
    emoji: str


class StatsOut(BaseModel):
    total_orders: int
    pending: int
    preparing: int
    ready: int
    delivered: int
    revenue_today: str


async def _json_body(request: Request):
    try:
        return await request.json()
    except ValueError:
        raise LedgerValidationError("request body must be valid JSON")


@router.get("/menu", response_model=List[MenuItemOut])
def api_menu(session: SessionDep):
    return list_menu(session)


@router.get("/orders")
def api_orders(session: SessionDep):
    """Dashboard titolare: ultimi ordini con le righe."""
    return list_recent_orders(session, CONFIG.ledger.recent_orders_limit)


@router.get("/stats", response_model=StatsOut)
def api_stats(session: SessionDep):
    return compute_stats(session)


@router.post("/orders", status_code=201)
async def api_place_order(request: Request, session: SessionDep):
    data = parse_order_payload(await _json_body(request))
    placed = await run_in_threadpool(place_order, session, data.customer, data.note, data.items)

    await hub.publish(order_created_event(placed.order_id, money(placed.total)))
    return JSONResponse(
        {"ok": True, "order_id": placed.order_id, "message": "Order placed!", "total": money(placed.total)},
        status_code=201,
    )


@router.patch("/orders/{order_id}")
async def api_update_status(order_id: int, request: Request, session: SessionDep):
    body = await _json_body(request)
    status = parse_status(body.get("status") if isinstance(body, dict) else None)

    result = await run_in_threadpool(update_status, session, order_id, status)
    if result is StatusUpdate.not_found:
        if CONFIG.ledger.report_missing_orders:
            raise OrderNotFound(order_id)
        log.info("Ordine #%s inesistente, update ignorato", order_id)
    else:
        await hub.publish(order_status_event(order_id, status))

    return {"ok": True, "success": True, "status": status}
