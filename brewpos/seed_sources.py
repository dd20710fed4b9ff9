# brewpos/seed_sources.py
"""Sorgenti per popolare il menu al primo avvio.

Il provisioner conosce solo il protocollo `SeedSource`: la forma della
tabella legacy resta confinata in `LegacyTableSource`.
"""
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Iterable, List, Protocol

from sqlalchemy import inspect, text
from sqlalchemy.engine import Connection

from .models import MenuItem

log = logging.getLogger(__name__)

CENTS = Decimal("0.01")

# (category, name, description, price, emoji)
FALLBACK_MENU = [
    ("Hot Coffee",  "Espresso",         "Double shot, bold and intense",      "3.50", "☕"),
    ("Hot Coffee",  "Latte",            "Smooth espresso with lots of milk",  "5.00", "🥛"),
    ("Cold Coffee", "Cold Brew",        "Steeped 18hrs, smooth and strong",   "5.50", "🧊"),
    ("Tea",         "Earl Grey",        "Classic bergamot black tea",         "3.50", "🫖"),
    ("Food",        "Butter Croissant", "Flaky, golden, fresh baked daily",   "4.00", "🥐"),
    ("Food",        "Avocado Toast",    "Sourdough with smashed avo & chili", "9.00", "🥑"),
]


class SeedSource(Protocol):
    name: str

    def available(self, conn: Connection) -> bool: ...

    def rows(self, conn: Connection) -> List[MenuItem]: ...


def _price(val) -> Decimal:
    try:
        return Decimal(str(val if val is not None else 0)).quantize(CENTS)
    except InvalidOperation:
        return Decimal("0.00")


class LegacyTableSource:
    """Copia 1:1 da una tabella menu preesistente, ordinata per categoria poi id."""

    name = "legacy"

    def __init__(self, table: str = "menu", default_emoji: str = "☕"):
        self.table = table
        self.default_emoji = default_emoji

    def available(self, conn: Connection) -> bool:
        return inspect(conn).has_table(self.table)

    def rows(self, conn: Connection) -> List[MenuItem]:
        cols = {c["name"].lower() for c in inspect(conn).get_columns(self.table)}
        wanted = [c for c in ("id", "category", "name", "description", "price", "emoji") if c in cols]
        quoted = conn.dialect.identifier_preparer.quote
        order_by = ", ".join(quoted(c) for c in ("category", "id") if c in cols) or "1"
        sql = "SELECT {} FROM {} ORDER BY {}".format(
            ", ".join(quoted(c) for c in wanted), quoted(self.table), order_by
        )
        out: List[MenuItem] = []
        for r in conn.execute(text(sql)).mappings():
            name = str(r.get("name") or "").strip()
            if not name or r.get("price") is None:
                log.warning("Riga legacy %s.id=%s senza nome o prezzo, saltata", self.table, r.get("id"))
                continue
            out.append(MenuItem(
                category=str(r.get("category") or "Menu"),
                name=name,
                description=r.get("description"),
                price=_price(r.get("price")),
                emoji=(r.get("emoji") or "").strip() or self.default_emoji,
            ))
        return out


class FallbackSeedSource:
    """Lista fissa, sempre disponibile."""

    name = "fallback"

    def __init__(self, items: Iterable[tuple] = FALLBACK_MENU):
        self.items = list(items)

    def available(self, conn: Connection) -> bool:
        return True

    def rows(self, conn: Connection) -> List[MenuItem]:
        return [
            MenuItem(category=c, name=n, description=d, price=_price(p), emoji=e)
            for c, n, d, p, e in self.items
        ]


def default_sources(legacy_table: str = "menu", default_emoji: str = "☕") -> List[SeedSource]:
    return [LegacyTableSource(legacy_table, default_emoji), FallbackSeedSource()]
