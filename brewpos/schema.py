# brewpos/schema.py
"""Provisioning pigro dello schema del registro ordini.

`ensure_ready()` va chiamato a ogni richiesta: dopo il primo successo è un
semplice controllo su un flag. Il primo giro crea le tabelle e semina il
menu dentro UNA transazione; nessuno stato parziale sopravvive a un errore.

Tre livelli di esclusione:
- lock di processo (single-flight fra i thread del worker);
- lock di storage: `pg_advisory_xact_lock` su PostgreSQL, `BEGIN IMMEDIATE`
  su SQLite (vedi db.py);
- riga `schema_marker` con PK fissa: se due processi superano comunque il
  controllo "menu vuoto", il secondo fallisce sull'insert e rilegge.
"""
from __future__ import annotations

import logging
import threading
from typing import Iterable, Optional

from sqlalchemy import text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import IntegrityError
from sqlmodel import SQLModel, Session, select

from .config import CONFIG
from .errors import ProvisioningError
from .models import LEDGER_TABLES, MenuItem, SchemaMarker
from .seed_sources import SeedSource, default_sources
from .txn import begin_write

log = logging.getLogger(__name__)

SCHEMA_VERSION = 1
ADVISORY_LOCK_KEY = 0x62726577  # "brew"


class SchemaProvisioner:
    def __init__(self, engine: Engine, sources: Optional[Iterable[SeedSource]] = None):
        self.engine = engine
        if sources is None:
            sources = default_sources(CONFIG.ledger.legacy_table, CONFIG.ledger.default_emoji)
        self.sources = list(sources)
        self._ready = False
        self._lock = threading.Lock()

    @property
    def ready(self) -> bool:
        return self._ready

    def ensure_ready(self) -> None:
        if self._ready:
            return
        with self._lock:
            if self._ready:
                return
            self._provision()
            # solo dopo il commit
            self._ready = True

    def _provision(self) -> None:
        for attempt in (1, 2):
            try:
                self._run_transaction()
                return
            except IntegrityError as e:
                if attempt == 2:
                    raise ProvisioningError(f"schema provisioning failed: {e}") from e
                log.warning("Seed già rivendicato da un altro processo, ricontrollo")
            except ProvisioningError:
                raise
            except Exception as e:
                log.exception("Provisioning fallito, rollback completo")
                raise ProvisioningError(f"schema provisioning failed: {e}") from e

    def _run_transaction(self) -> None:
        with Session(self.engine) as session:
            try:
                conn = begin_write(session)
                if conn.dialect.name == "postgresql":
                    conn.execute(text("SELECT pg_advisory_xact_lock(:k)"), {"k": ADVISORY_LOCK_KEY})

                SQLModel.metadata.create_all(conn, tables=LEDGER_TABLES)

                if session.exec(select(MenuItem.id).limit(1)).first() is not None:
                    session.commit()
                    log.info("Database ready")
                    return

                if session.get(SchemaMarker, 1) is not None:
                    raise ProvisioningError("menu is empty but seeding already ran once")

                source, items = self._pick_source(conn)

                # il marker va scritto prima del menu: è lui a fare da "claim"
                session.add(SchemaMarker(version=SCHEMA_VERSION, seed_source=source.name))
                session.flush()
                session.add_all(items)
                session.commit()
                log.info("Menu seeded from %s source (%d items)", source.name, len(items))
                log.info("Database ready")
            except Exception:
                session.rollback()
                raise

    def _pick_source(self, conn):
        """Prima sorgente disponibile che produce almeno una voce (una tabella legacy vuota non conta)."""
        for source in self.sources:
            if not source.available(conn):
                continue
            items = source.rows(conn)
            if items:
                return source, items
            log.warning("Sorgente seed '%s' vuota, passo alla successiva", source.name)
        raise ProvisioningError("no seed source produced menu items")
