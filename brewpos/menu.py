# brewpos/menu.py
from __future__ import annotations

from typing import Any, Dict, List

from sqlmodel import Session, select

from .ledger import money
from .models import MenuItem


def list_menu(session: Session) -> List[Dict[str, Any]]:
    """Voci di menu raggruppate per categoria, poi per id."""
    rows = session.exec(select(MenuItem).order_by(MenuItem.category, MenuItem.id)).all()
    return [
        {
            "id": int(m.id),
            "category": m.category,
            "name": m.name,
            "description": m.description,
            "price": money(m.price),
            "emoji": m.emoji,
        }
        for m in rows
    ]
