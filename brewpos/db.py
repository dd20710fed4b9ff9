from sqlmodel import create_engine, Session
from sqlalchemy import event
from sqlalchemy.engine import Engine

from .config import CONFIG, DatabaseConfig
from .schema import SchemaProvisioner
from .txn import is_write


# ---- Engine ----
def make_engine(url: str, db: DatabaseConfig = CONFIG.database) -> Engine:
    is_sqlite = url.startswith("sqlite")
    connect_args = {"check_same_thread": False, "timeout": 30} if is_sqlite else {}

    # Nota: alzare il pool non "cura" i leak, ma rende il sistema meno fragile.
    engine = create_engine(
        url,
        echo=db.echo,
        connect_args=connect_args,
        pool_pre_ping=True,
        pool_size=db.pool_size,
        max_overflow=db.max_overflow,
        pool_timeout=db.pool_timeout,
        pool_recycle=db.pool_recycle,
    )

    # Migliorie per SQLite
    if is_sqlite:
        @event.listens_for(engine, "connect")
        def set_sqlite_pragmas(dbapi_connection, connection_record):
            # il driver non apre transazioni da solo: le gestiamo in "begin"
            dbapi_connection.isolation_level = None
            cur = dbapi_connection.cursor()
            # WAL migliora i read paralleli con write
            cur.execute("PRAGMA journal_mode=WAL;")
            # Timeout quando il DB è lockato da un writer
            cur.execute("PRAGMA busy_timeout=30000;")
            # senza questo ON DELETE CASCADE non scatta
            cur.execute("PRAGMA foreign_keys=ON;")
            cur.close()

        @event.listens_for(engine, "begin")
        def do_begin(conn):
            # scritture (e DDL) in fila con BEGIN IMMEDIATE, letture senza lock di scrittura
            conn.exec_driver_sql("BEGIN IMMEDIATE" if is_write(conn) else "BEGIN")

    return engine


engine = make_engine(CONFIG.database.url)
provisioner = SchemaProvisioner(engine)


# ---- Sessioni: dipendenza FastAPI corretta ----
def get_session_dep():
    """Dipendenza per FastAPI: garantisce sempre la chiusura della sessione."""
    with Session(engine, expire_on_commit=False) as session:
        yield session


def require_schema():
    """Dipendenza per FastAPI: schema pronto prima di toccare le tabelle."""
    provisioner.ensure_ready()
