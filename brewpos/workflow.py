# brewpos/workflow.py
from __future__ import annotations

import logging
from enum import Enum
from typing import Dict, FrozenSet, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from .config import CONFIG
from .errors import IllegalTransition, LedgerValidationError
from .models import Order, OrderStatus
from .txn import begin_write

log = logging.getLogger(__name__)

VALID_STATUSES = tuple(s.value for s in OrderStatus)

# Usata solo con ledger.enforce_transitions = true; di default vale "any-to-any"
TRANSITIONS: Dict[str, FrozenSet[str]] = {
    "pending":   frozenset({"preparing", "cancelled"}),
    "preparing": frozenset({"ready", "cancelled"}),
    "ready":     frozenset({"delivered", "cancelled"}),
    "delivered": frozenset(),
    "cancelled": frozenset(),
}


class StatusUpdate(str, Enum):
    updated = "updated"
    not_found = "not_found"


def parse_status(value) -> str:
    if not isinstance(value, str) or value not in VALID_STATUSES:
        raise LedgerValidationError(f"status must be one of: {', '.join(VALID_STATUSES)}")
    return value


def can_transition(current: str, target: str) -> bool:
    return current == target or target in TRANSITIONS.get(current, frozenset())


def update_status(session: Session, order_id: int, new_status, enforce: Optional[bool] = None) -> StatusUpdate:
    """Aggiorna solo `status` dell'ordine. Lo stato viene validato prima di toccare il DB."""
    status = parse_status(new_status)
    if enforce is None:
        enforce = CONFIG.ledger.enforce_transitions

    try:
        begin_write(session)
        if enforce:
            order = session.get(Order, order_id, with_for_update=True, populate_existing=True)
            if order is None:
                return StatusUpdate.not_found
            if not can_transition(order.status, status):
                raise IllegalTransition(order.status, status)
            order.status = status
            session.add(order)
            session.commit()
            log.info("Ordine #%s -> %s", order_id, status)
            return StatusUpdate.updated

        res = session.exec(update(Order).where(Order.id == order_id).values(status=status))
        session.commit()
    except SQLAlchemyError:
        session.rollback()
        log.exception("Aggiornamento stato fallito per ordine #%s", order_id)
        raise
    except IllegalTransition:
        session.rollback()
        raise

    if not res.rowcount:
        return StatusUpdate.not_found
    log.info("Ordine #%s -> %s", order_id, status)
    return StatusUpdate.updated
