# brewpos/config.py
from __future__ import annotations
import json
import os
from dataclasses import dataclass, field
from pathlib import Path

CONFIG_FILE = Path(__file__).resolve().parent / "config.json"

@dataclass
class DatabaseConfig:
    url: str = "sqlite:///brewpos.db"
    echo: bool = False
    pool_size: int = 10
    max_overflow: int = 20
    pool_timeout: int = 10
    pool_recycle: int = 1800

@dataclass
class LedgerConfig:
    recent_orders_limit: int = 100
    legacy_table: str = "menu"        # tabella del vecchio backend, se presente
    default_emoji: str = "☕"
    lenient_numbers: bool = False     # True -> prezzi/quantità invalidi diventano 0
    enforce_transitions: bool = False # True -> solo pending→preparing→ready→delivered
    report_missing_orders: bool = True

@dataclass
class LogConfig:
    level: str = "INFO"

@dataclass
class AppConfig:
    # ⚠️ Usare default_factory per oggetti mutabili
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    ledger: LedgerConfig = field(default_factory=LedgerConfig)
    logging: LogConfig = field(default_factory=LogConfig)

def _merge(dst: dict, src: dict) -> dict:
    for k, v in src.items():
        if isinstance(v, dict) and isinstance(dst.get(k), dict):
            dst[k] = _merge(dst[k], v)
        else:
            dst[k] = v
    return dst

def _as_bool(v, default: bool) -> bool:
    if v is None:
        return default
    if isinstance(v, str):
        return v.strip().lower() in ("1", "true", "yes", "on")
    return bool(v)

def load_config(path: Path = CONFIG_FILE, env: dict | None = None) -> AppConfig:
    env = os.environ if env is None else env
    # default
    data = {
        "database": {
            "url": "sqlite:///brewpos.db",
            "echo": False,
            "pool_size": 10,
            "max_overflow": 20,
            "pool_timeout": 10,
            "pool_recycle": 1800,
        },
        "ledger": {
            "recent_orders_limit": 100,
            "legacy_table": "menu",
            "default_emoji": "☕",
            "lenient_numbers": False,
            "enforce_transitions": False,
            "report_missing_orders": True,
        },
        "logging": {"level": "INFO"},
    }
    if path.exists():
        try:
            file_data = json.loads(path.read_text(encoding="utf-8"))
            if isinstance(file_data, dict):
                # sezioni che non sono oggetti vengono ignorate
                file_data = {
                    k: v for k, v in file_data.items()
                    if not isinstance(data.get(k), dict) or isinstance(v, dict)
                }
                data = _merge(data, file_data)
        except (ValueError, OSError):
            # file malformato → mantieni default
            pass

    # l'ambiente vince sul file
    if env.get("BREWPOS_DB_URL"):
        data["database"]["url"] = env["BREWPOS_DB_URL"]
    if env.get("BREWPOS_LOG_LEVEL"):
        data["logging"]["level"] = env["BREWPOS_LOG_LEVEL"]

    d = data["database"]
    lg = data["ledger"]
    return AppConfig(
        database=DatabaseConfig(
            url=str(d.get("url", "sqlite:///brewpos.db")),
            echo=_as_bool(d.get("echo"), False),
            pool_size=int(d.get("pool_size", 10)),
            max_overflow=int(d.get("max_overflow", 20)),
            pool_timeout=int(d.get("pool_timeout", 10)),
            pool_recycle=int(d.get("pool_recycle", 1800)),
        ),
        ledger=LedgerConfig(
            recent_orders_limit=max(1, int(lg.get("recent_orders_limit", 100))),
            legacy_table=str(lg.get("legacy_table", "menu")),
            default_emoji=str(lg.get("default_emoji", "☕")),
            lenient_numbers=_as_bool(lg.get("lenient_numbers"), False),
            enforce_transitions=_as_bool(lg.get("enforce_transitions"), False),
            report_missing_orders=_as_bool(lg.get("report_missing_orders"), True),
        ),
        logging=LogConfig(level=str(data["logging"].get("level", "INFO")).upper()),
    )

# istanza singleton caricata a import
CONFIG = load_config()
