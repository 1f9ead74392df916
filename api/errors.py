"""
Exception handlers — render ``ServiceError`` as ``{"Type", "Message"}`` JSON.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from core.errors import NotReadyError, ServiceError

logger = logging.getLogger(__name__)


def register_exception_handlers(app: FastAPI) -> None:

    @app.exception_handler(NotReadyError)
    async def not_ready(request: Request, exc: NotReadyError) -> JSONResponse:
        # Waiting on the OAuth2 handshake, not a fault.
        logger.warning("%s %s rejected: %s", request.method, request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    @app.exception_handler(ServiceError)
    async def service_error(request: Request, exc: ServiceError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error("status code %d: %s", exc.status_code, exc)
        else:
            logger.info("status code %d: %s", exc.status_code, exc)
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
