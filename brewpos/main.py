import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse, PlainTextResponse
from sqlalchemy.exc import SQLAlchemyError

from .config import CONFIG
from .errors import BrewposError
from . import views_api, views_dashboard

logging.basicConfig(
    level=getattr(logging, CONFIG.logging.level, logging.INFO),
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
)
log = logging.getLogger("brewpos")

app = FastAPI(title="Brew POS — Orders")


# ---- Errori: client-input vs backend, distinguibili da "kind" ----
@app.exception_handler(BrewposError)
async def brewpos_error_handler(request: Request, exc: BrewposError):
    return JSONResponse(
        {"ok": False, "error": str(exc), "kind": exc.kind},
        status_code=exc.status_code,
    )


@app.exception_handler(SQLAlchemyError)
async def storage_error_handler(request: Request, exc: SQLAlchemyError):
    log.error("Errore storage su %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse({"ok": False, "error": str(exc), "kind": "storage"}, status_code=500)


@app.get("/health", response_class=PlainTextResponse)
def health():
    return "OK"


app.include_router(views_api.router)
app.include_router(views_dashboard.router)
