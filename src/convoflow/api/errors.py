"""Map convoflow exceptions to HTTP responses."""

from __future__ import annotations

import structlog
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from convoflow.core.exceptions import (
    AccessDeniedError,
    ConcurrentConversationError,
    ConversationNotFoundError,
    ConvoFlowError,
)

logger = structlog.get_logger(__name__)


async def access_denied(request: Request, exc: AccessDeniedError) -> JSONResponse:
    return JSONResponse(
        status_code=403,
        content={
            "detail": str(exc),
            "action": exc.action,
            "allowed_states": exc.allowed_states,
            "actual_state": exc.actual_state,
        },
    )


async def conversation_conflict(request: Request, exc: ConcurrentConversationError) -> JSONResponse:
    logger.warning("conversation.conflict", conversation_id=exc.conversation_id, path=request.url.path)
    return JSONResponse(status_code=409, content={"detail": str(exc)})


async def conversation_not_found(request: Request, exc: ConversationNotFoundError) -> JSONResponse:
    return JSONResponse(status_code=404, content={"detail": str(exc)})


async def internal_error(request: Request, exc: ConvoFlowError) -> JSONResponse:
    logger.error("convoflow.internal_error", path=request.url.path, error=str(exc),
                 error_type=type(exc).__name__, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": "Internal conversation error"})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(AccessDeniedError, access_denied)
    app.add_exception_handler(ConcurrentConversationError, conversation_conflict)
    app.add_exception_handler(ConversationNotFoundError, conversation_not_found)
    app.add_exception_handler(ConvoFlowError, internal_error)
