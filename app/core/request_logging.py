# app/core/request_logging.py
import logging
import time
import uuid

from fastapi import Request

logger = logging.getLogger("app.http")

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """
    Configure root logging once for the process.

    Module loggers (`logging.getLogger(__name__)`) propagate to root,
    so this is the only place handlers/format are set.
    """
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


async def log_requests(request: Request, call_next):
    """
    HTTP access log middleware.

    - Reuses an incoming X-Request-ID header or generates a new one.
    - Logs `METHOD path -> status (ms)`; WARNING on 4xx, ERROR on 5xx.
    - Echoes the request id on the response.

    Unhandled exceptions are logged as a 500 and re-raised; the app's
    catch-all handler renders the response and echoes the request id.
    """
    request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
    request.state.request_id = request_id

    started = time.perf_counter()
    try:
        response = await call_next(request)
    except Exception:
        logger.error(
            "%s %s -> 500 (%.1fms) request_id=%s unhandled exception",
            request.method,
            request.url.path,
            (time.perf_counter() - started) * 1000,
            request_id,
        )
        raise
    elapsed_ms = (time.perf_counter() - started) * 1000

    if response.status_code >= 500:
        level = logging.ERROR
    elif response.status_code >= 400:
        level = logging.WARNING
    else:
        level = logging.INFO

    logger.log(
        level,
        "%s %s -> %s (%.1fms) request_id=%s",
        request.method,
        request.url.path,
        response.status_code,
        elapsed_ms,
        request_id,
    )
    response.headers["X-Request-ID"] = request_id
    return response
