"""
异常处理器：把引擎与授权异常映射为 HTTP 响应
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from opscore.errors import (
    ForbiddenError,
    MissingPreconditionError,
    TransitionError,
    UnauthorizedError,
)

logger = logging.getLogger(__name__)


async def transition_error_handler(request: Request, exc: TransitionError) -> JSONResponse:
    """状态转换被拒绝 -> 400，原样返回引擎给出的原因"""
    content = {"detail": exc.reason}
    if isinstance(exc, MissingPreconditionError):
        content["missing_facts"] = exc.missing_facts
    return JSONResponse(status_code=400, content=content)


async def unauthorized_error_handler(request: Request, exc: UnauthorizedError) -> JSONResponse:
    return JSONResponse(status_code=401, content={"detail": str(exc)})


async def forbidden_error_handler(request: Request, exc: ForbiddenError) -> JSONResponse:
    return JSONResponse(status_code=403, content={"detail": str(exc), "required": exc.required})


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(TransitionError, transition_error_handler)
    app.add_exception_handler(UnauthorizedError, unauthorized_error_handler)
    app.add_exception_handler(ForbiddenError, forbidden_error_handler)
