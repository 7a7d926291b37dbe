"""
Icon data HTTP server.

Issues session tokens against Argon credentials and stores/serves per-player icon
customization data. Every failure is answered with a JSON body carrying
`"success": false`.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, List

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, RedirectResponse

from iconserver.api.schemas import IconsGetRequest, IconsSetRequest, TokenGetRequest
from iconserver.auth.argon import get_validator
from iconserver.auth.session import issue_session_token
from iconserver.config import load_server_config
from iconserver.core.errors import IconServerError, ValidationError
from iconserver.core.icons import get_icon_data_batch, set_icon_data
from iconserver.storage import get_store

logger = logging.getLogger(__name__)

app = FastAPI(title="Icon Ninja Server")


def _format_validation_errors(errors: List[Dict[str, Any]]) -> str:
    parts: List[str] = []
    for err in errors:
        loc = ".".join(str(p) for p in (err.get("loc") or ()) if p != "body")
        msg = str(err.get("msg") or "invalid")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "invalid request"


@app.exception_handler(IconServerError)
async def _icon_server_error_handler(request: Request, exc: IconServerError) -> JSONResponse:
    logger.info("%s %s - %s: %s", request.method, request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=exc.to_payload())


@app.exception_handler(RequestValidationError)
async def _request_validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    err = ValidationError(_format_validation_errors(list(exc.errors())))
    logger.info("%s %s - invalid request: %s", request.method, request.url.path, err.message)
    return JSONResponse(status_code=err.status_code, content=err.to_payload())


@app.on_event("startup")
def _startup_storage() -> None:
    """
    Create the players table if needed.

    Unlike the rest of the server this is allowed to fail hard: without storage there
    is nothing to serve.
    """
    cfg = load_server_config()
    store = get_store()
    store.ensure_schema()
    logger.info("Storage ready: backend=%s", cfg.storage_backend)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log requests and turn unexpected errors into soft JSON failures."""
    start_time = time.time()
    logger.debug("%s %s", request.method, request.url.path)
    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.debug("%s %s - %d (%.3fs)", request.method, request.url.path, response.status_code, process_time)
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.warning(
            "%s %s - ERROR after %.3fs: %s", request.method, request.url.path, process_time, str(e), exc_info=True
        )
        return JSONResponse(status_code=500, content={"success": False, "error": "internal_error"})


@app.get("/")
def root() -> RedirectResponse:
    return RedirectResponse(url=load_server_config().info_url, status_code=302)


@app.get("/icons")
def icons_info() -> RedirectResponse:
    return RedirectResponse(url=load_server_config().mod_url, status_code=302)


@app.get("/healthz")
def healthz() -> Dict[str, Any]:
    return {"ok": True}


@app.post("/token/get")
def token_get(req: TokenGetRequest) -> Dict[str, Any]:
    """Exchange an Argon credential for a fresh session token."""
    token = issue_session_token(get_store(), get_validator(), req.account_id, req.token)
    return {"success": True, "token": token}


@app.post("/icons/get")
def icons_get(req: IconsGetRequest) -> Dict[str, Any]:
    """
    Batch read. Response keys are the requested account ids (as strings) next to
    `success`; accounts without stored data read as empty.
    """
    results = get_icon_data_batch(get_store(), req.players)
    payload: Dict[str, Any] = {"success": True}
    for account_id, data in results.items():
        payload[str(account_id)] = data
    return payload


@app.post("/icons/set")
def icons_set(req: IconsSetRequest) -> Dict[str, Any]:
    set_icon_data(get_store(), req.account_id, req.token, req.data)
    return {"success": True}


def run(host: str = "0.0.0.0", port: int = 2001) -> None:
    import uvicorn

    cfg = load_server_config()
    log_level = cfg.log_level.upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Map Python logging levels to uvicorn log levels
    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    logger.info("Starting icon server on %s:%d (log_level=%s)", host, port, log_level)
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level)
