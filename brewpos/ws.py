# brewpos/ws.py
"""Notifiche live verso le dashboard titolare collegate su /ws."""
import json
import logging
from decimal import Decimal
from typing import Set

from fastapi import WebSocket

log = logging.getLogger(__name__)

ORDER_CREATED = "order_created"
ORDER_STATUS = "order_status"


def order_created_event(order_id: int, total: str) -> dict:
    return {"type": ORDER_CREATED, "order_id": order_id, "total": total}


def order_status_event(order_id: int, status: str) -> dict:
    return {"type": ORDER_STATUS, "order_id": order_id, "status": status}


def _default(o):
    if isinstance(o, Decimal):
        return str(o)
    raise TypeError(f"{type(o).__name__} is not JSON serializable")


class DashboardHub:
    def __init__(self) -> None:
        self.active_connections: Set[WebSocket] = set()

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        self.active_connections.add(websocket)
        log.debug("Dashboard collegata (%d attive)", len(self.active_connections))

    def disconnect(self, websocket: WebSocket):
        self.active_connections.discard(websocket)

    async def broadcast(self, payload: dict) -> int:
        """Invia l'evento a tutte le dashboard; scarta i socket morti. Ritorna quante l'hanno ricevuto."""
        message = json.dumps(payload, default=_default)
        sent = 0
        for ws in list(self.active_connections):
            try:
                await ws.send_text(message)
                sent += 1
            except Exception as e:
                log.debug("Dashboard socket chiuso: %r", e)
                self.disconnect(ws)
        return sent

    async def publish(self, payload: dict) -> None:
        """Come `broadcast`, ma non propaga mai: serve dopo un commit già riuscito."""
        try:
            await self.broadcast(payload)
        except Exception:
            log.warning("Broadcast dashboard fallito (%s)", payload.get("type"), exc_info=True)


hub = DashboardHub()
