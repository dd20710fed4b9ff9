# brewpos/txn.py
"""Transazioni di scrittura.

Su SQLite una transazione marcata con WRITE parte con `BEGIN IMMEDIATE`
(vedi il listener "begin" in db.py); le letture restano `BEGIN` semplice
e non bloccano i writer grazie al WAL.
"""
from sqlalchemy.engine import Connection
from sqlmodel import Session

WRITE = {"brewpos_write": True}


def is_write(conn: Connection) -> bool:
    return bool(conn.get_execution_options().get("brewpos_write"))


def begin_write(session: Session) -> Connection:
    """Connessione della sessione, aprendo la transazione in modalità scrittura.
    Se la sessione ha già una transazione aperta la riusa così com'è."""
    if session.in_transaction():
        return session.connection()
    return session.connection(execution_options=WRITE)
