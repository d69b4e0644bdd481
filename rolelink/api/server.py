"""
Browser-facing HTTP server for the linked-role flow.

Every callback ends in either a redirect to the next provider or a rendered
terminal page; errors are never returned as raw bodies.
"""

from __future__ import annotations

import logging
import os
import time
from typing import Any, Callable, Dict, Optional

from fastapi import FastAPI, Query, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException

from rolelink.auth.nonce import nonce_cookie_kwargs
from rolelink.auth.tokens import load_signing_key
from rolelink.config import load_link_config
from rolelink.errors import LinkError, UnknownError
from rolelink.flow import LinkFlow
from rolelink.responses import error_page, success_page

logger = logging.getLogger(__name__)

app = FastAPI(title="Open Collective linked roles", docs_url=None, redoc_url=None, openapi_url=None)


def get_link_flow() -> LinkFlow:
    return LinkFlow(load_link_config())


def _redirect(url: str) -> RedirectResponse:
    resp = RedirectResponse(url=url, status_code=302)
    resp.headers["Cache-Control"] = "no-store"
    return resp


def _run_callback(step: str, handler: Callable[[], Response]) -> Response:
    try:
        return handler()
    except LinkError as e:
        logger.warning("%s failed: %s", step, e.message)
        return error_page(e.message)
    except Exception as e:
        logger.exception("%s failed unexpectedly", step)
        return error_page(UnknownError(f"Unknown error: {e}").message)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log all incoming HTTP requests (paths only; query strings carry codes and state)."""
    start_time = time.time()
    try:
        response = await call_next(request)
        process_time = time.time() - start_time
        logger.debug("%s %s - %d (%.3fs)", request.method, request.url.path, response.status_code, process_time)
        return response
    except Exception as e:
        process_time = time.time() - start_time
        logger.exception("%s %s - ERROR after %.3fs: %s", request.method, request.url.path, process_time, str(e))
        raise


@app.exception_handler(StarletteHTTPException)
async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> Response:
    if exc.status_code == 404:
        return PlainTextResponse("Not Found.", status_code=404)
    return PlainTextResponse(str(exc.detail), status_code=exc.status_code)


@app.get("/healthz")
def healthz() -> Dict[str, Any]:
    return {"ok": True}


@app.get("/linked-role")
def linked_role() -> Response:
    """Entry point configured as the Discord application's linked-roles verification URL."""

    def handle() -> Response:
        flow = get_link_flow()
        start = flow.start()
        resp = _redirect(start.redirect_url)
        resp.set_cookie(**nonce_cookie_kwargs(flow.cfg, start.nonce))
        return resp

    return _run_callback("Link start", handle)


@app.get("/open-collective/redirect")
def open_collective_redirect(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
) -> Response:
    cookie_header = request.headers.get("cookie")

    def handle() -> Response:
        return _redirect(get_link_flow().complete_platform_leg(code, state, cookie_header))

    return _run_callback("Open Collective callback", handle)


@app.get("/discord/redirect")
def discord_redirect(
    request: Request,
    code: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
) -> Response:
    cookie_header = request.headers.get("cookie")

    def handle() -> Response:
        get_link_flow().complete_discord_leg(code, state, cookie_header)
        return success_page("Success")

    return _run_callback("Discord callback", handle)


@app.get("/success")
def success() -> Response:
    return success_page("Success")


@app.get("/error")
def error() -> Response:
    return error_page("Something went wrong, please try again.")


def run(host: str = "0.0.0.0", port: int = 8080) -> None:
    import uvicorn

    # Configure logging for the application
    log_level = os.getenv("LOG_LEVEL", "info").upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
    logger.setLevel(getattr(logging, log_level, logging.INFO))

    # Map Python logging levels to uvicorn log levels
    uvicorn_log_level = (
        log_level.lower() if log_level.lower() in ["critical", "error", "warning", "info", "debug", "trace"] else "info"
    )

    # Fail at startup rather than on the first callback.
    load_signing_key(load_link_config())

    logger.info("Starting linked-role server on %s:%d (log_level=%s)", host, port, log_level)
    # Access logs would record OAuth codes and state tokens from query strings.
    uvicorn.run(app, host=host, port=port, log_level=uvicorn_log_level, access_log=False)
