# brewpos/ledger.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from sqlalchemy import desc
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, select

from .config import CONFIG
from .errors import LedgerValidationError
from .models import Order, OrderItem, OrderStatus
from .txn import begin_write

log = logging.getLogger(__name__)

CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

# alias accettati per il nome cliente (client vecchi e nuovi)
CUSTOMER_KEYS = ("customer", "customer_name", "name")
NOTE_KEYS = ("note", "notes")
MAX_NAME_LEN = 100
# limiti delle colonne Numeric(6,2) / Numeric(8,2)
MAX_PRICE = Decimal("9999.99")
MAX_TOTAL = Decimal("999999.99")
MAX_QUANTITY = 999


@dataclass
class LineIn:
    name: str
    price: Decimal
    quantity: int
    menu_id: Optional[int] = None


@dataclass
class OrderIn:
    customer: str
    note: Optional[str]
    items: List[LineIn]


@dataclass
class PlacedOrder:
    order_id: int
    total: Decimal


def money(val: Any) -> str:
    """Importo come stringa a 2 decimali ("14.00")."""
    return str(Decimal(str(val if val is not None else 0)).quantize(CENTS))


# --- parsing ----------------------------------------------------------------

def _parse_price(val: Any) -> Optional[Decimal]:
    if val is None or isinstance(val, bool):
        return None
    try:
        d = Decimal(str(val).strip())
        if not d.is_finite() or d < 0:
            return None
        return d.quantize(CENTS)
    except InvalidOperation:
        return None


def _parse_quantity(val: Any) -> Optional[int]:
    if val is None or isinstance(val, bool):
        return None
    if isinstance(val, int):
        q = val
    elif isinstance(val, float) and val.is_integer():
        q = int(val)
    elif isinstance(val, str):
        s = val.strip()
        if not (s.isascii() and s.isdigit()):
            return None
        q = int(s)
    else:
        return None
    return q if q >= 1 else None


def _parse_menu_id(item: Dict[str, Any]) -> Optional[int]:
    v = item.get("menu_id", item.get("id"))
    if isinstance(v, bool):
        return None
    try:
        return int(v) if v is not None else None
    except (TypeError, ValueError):
        return None


def _first_text(payload: Dict[str, Any], keys) -> str:
    for k in keys:
        v = payload.get(k)
        if isinstance(v, str) and v.strip():
            return v.strip()
    return ""


def parse_order_payload(payload: Any, lenient: Optional[bool] = None) -> OrderIn:
    """Valida il body di un nuovo ordine. Nessun accesso al DB.

    Con `lenient` (default da config) prezzi e quantità non validi
    diventano 0 invece di rifiutare la richiesta.
    """
    if lenient is None:
        lenient = CONFIG.ledger.lenient_numbers
    if not isinstance(payload, dict):
        raise LedgerValidationError("request body must be a JSON object")

    customer = _first_text(payload, CUSTOMER_KEYS)
    items = payload.get("items")
    if not customer or not isinstance(items, list) or not items:
        raise LedgerValidationError("customer and items are required")
    if len(customer) > MAX_NAME_LEN:
        raise LedgerValidationError(f"customer must be at most {MAX_NAME_LEN} characters")

    note = _first_text(payload, NOTE_KEYS) or None

    lines: List[LineIn] = []
    for idx, it in enumerate(items):
        if not isinstance(it, dict):
            raise LedgerValidationError(f"items[{idx}] must be an object")
        name = it.get("name")
        if not isinstance(name, str) or not name.strip():
            raise LedgerValidationError(f"items[{idx}].name is required")
        if len(name.strip()) > MAX_NAME_LEN:
            raise LedgerValidationError(f"items[{idx}].name must be at most {MAX_NAME_LEN} characters")

        price = _parse_price(it.get("price"))
        qty = _parse_quantity(it.get("quantity", it.get("qty")))
        if price is None:
            if not lenient:
                raise LedgerValidationError(f"items[{idx}].price must be a non-negative number")
            price = ZERO
        if qty is None:
            if not lenient:
                raise LedgerValidationError(f"items[{idx}].quantity must be a positive integer")
            qty = 0
        # i limiti valgono anche in modalità lenient: sono vincoli delle colonne
        if price > MAX_PRICE:
            raise LedgerValidationError(f"items[{idx}].price must be at most {MAX_PRICE}")
        if qty > MAX_QUANTITY:
            raise LedgerValidationError(f"items[{idx}].quantity must be at most {MAX_QUANTITY}")

        lines.append(LineIn(name=name.strip(), price=price, quantity=qty, menu_id=_parse_menu_id(it)))

    if order_total(lines) > MAX_TOTAL:
        raise LedgerValidationError(f"order total must be at most {MAX_TOTAL}")

    return OrderIn(customer=customer, note=note, items=lines)


def order_total(items: List[LineIn]) -> Decimal:
    return sum((Decimal(i.price) * i.quantity for i in items), ZERO).quantize(CENTS)


# --- scrittura --------------------------------------------------------------

def place_order(session: Session, customer: str, note: Optional[str], items: List[LineIn]) -> PlacedOrder:
    """Testata + righe in un'unica transazione: o tutto o niente."""
    total = order_total(items)
    try:
        begin_write(session)
        order = Order(customer=customer, note=note, total=total, status=OrderStatus.pending.value)
        session.add(order)
        session.flush()  # ottieni order.id
        order_id = int(order.id)

        for it in items:
            session.add(OrderItem(
                order_id=order_id,
                menu_id=it.menu_id,
                name=it.name,
                price=it.price,
                quantity=it.quantity,
            ))
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        log.exception("Inserimento ordine fallito per %r, rollback", customer)
        raise

    log.info("Ordine #%s registrato (%s, totale %s)", order_id, customer, money(total))
    return PlacedOrder(order_id=order_id, total=total)


# --- lettura ----------------------------------------------------------------

def list_recent_orders(session: Session, limit: Optional[int] = None) -> List[Dict[str, Any]]:
    """Ultimi ordini (più recenti prima), ognuno con le sue righe; mai `None` per items."""
    limit = limit or CONFIG.ledger.recent_orders_limit
    orders = session.exec(
        select(Order).order_by(desc(Order.created_at), desc(Order.id)).limit(limit)
    ).all()
    if not orders:
        return []

    ids = [int(o.id) for o in orders]
    lines = session.exec(
        select(OrderItem).where(OrderItem.order_id.in_(ids)).order_by(OrderItem.id)
    ).all()
    items_by_order: Dict[int, List[Dict[str, Any]]] = {}
    for ln in lines:
        items_by_order.setdefault(int(ln.order_id), []).append({
            "menu_id": ln.menu_id,
            "name": ln.name,
            "quantity": int(ln.quantity or 0),
            "price": money(ln.price),
        })

    return [
        {
            "id": int(o.id),
            "customer": o.customer,
            "note": o.note,
            "status": o.status,
            "total": money(o.total),
            "created_at": o.created_at.isoformat() if o.created_at else None,
            "items": items_by_order.get(int(o.id), []),
        }
        for o in orders
    ]
