# brewpos/stats.py
from __future__ import annotations

from datetime import date, datetime, time, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import and_, case
from sqlalchemy.sql import func
from sqlmodel import Session, select

from .ledger import money
from .models import Order, OrderStatus

COUNTED = ("pending", "preparing", "ready", "delivered")


def _count_where(cond):
    return func.coalesce(func.sum(case((cond, 1), else_=0)), 0)


def compute_stats(session: Session, today: Optional[date] = None) -> Dict[str, Any]:
    """Contatori per stato e incasso di oggi (data locale del server), sempre ricalcolati."""
    today = today or date.today()
    dt_from = datetime.combine(today, time(0, 0, 0))
    dt_to_ex = dt_from + timedelta(days=1)  # esclusivo

    not_cancelled = Order.status != OrderStatus.cancelled.value
    today_filter = and_(Order.created_at >= dt_from, Order.created_at < dt_to_ex, not_cancelled)

    cols = [_count_where(not_cancelled).label("total_orders")]
    cols += [_count_where(Order.status == st).label(st) for st in COUNTED]
    cols.append(
        func.coalesce(func.sum(case((today_filter, Order.total), else_=None)), 0).label("revenue_today")
    )

    row = session.exec(select(*cols)).one()
    data = row._mapping

    out: Dict[str, Any] = {"total_orders": int(data["total_orders"] or 0)}
    for st in COUNTED:
        out[st] = int(data[st] or 0)
    out["revenue_today"] = money(data["revenue_today"])
    return out
