"""Map ``SotwError`` subclasses to HTTP replies Slack can display."""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from app.errors import BusinessRuleError, SotwError, StoreError

logger = logging.getLogger(__name__)


def error_payload(exc: SotwError) -> dict:
    return {"response_type": "ephemeral", "text": exc.message, "error": exc.code}


def register_error_handlers(app: FastAPI) -> None:
    """Register the handler for every bot error on ``app``."""

    @app.exception_handler(SotwError)
    async def sotw_error_handler(request: Request, exc: SotwError):
        if isinstance(exc, StoreError):
            logger.error("Store error on %s: %s", request.url.path, exc.message)
        elif not isinstance(exc, BusinessRuleError):
            logger.warning("Rejected request on %s: %s", request.url.path, exc.message)
        return JSONResponse(status_code=exc.status_code, content=error_payload(exc))
