"""Exception handlers mapping engine errors onto JSON responses.

Every failure answers ``{"success": false, "error": message}``: the error's
own status code for QuoteFlowError, 500 with a generic message otherwise.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from quoteflow.errors import QuoteFlowError

logger = logging.getLogger(__name__)

INTERNAL_ERROR_MESSAGE = "Internal server error"


async def quoteflow_error_handler(request: Request, exc: QuoteFlowError) -> JSONResponse:
    logger.warning(
        "Rejected %s %s: %s (%d)",
        request.method,
        request.url.path,
        exc.message,
        exc.status_code,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.message},
    )


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(
        status_code=500,
        content={"success": False, "error": INTERNAL_ERROR_MESSAGE},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(QuoteFlowError, quoteflow_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(Exception, unhandled_error_handler)
