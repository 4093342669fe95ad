# Run from project root: uvicorn app.main:app --reload

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import router
from app.core.config import LOG_LEVEL
from app.core.errors import AppError, NotFoundError
from app.schemas.query import ErrorDetail, ErrorResponse
from app.services.agent_service import AgentServices, build_services

logging.basicConfig(level=LOG_LEVEL)
logger = logging.getLogger(__name__)


def _error_body(code: str, message: str, details: list | None = None) -> dict:
    body = ErrorResponse(error=ErrorDetail(code=code, message=message, details=details or None))
    return body.model_dump(exclude_none=True)


async def _app_error_handler(request: Request, exc: AppError) -> JSONResponse:
    logger.warning("[main:app_error] path=%s code=%s message=%s", request.url.path, exc.code, exc.message)
    return JSONResponse(status_code=exc.status_code, content=_error_body(exc.code, exc.message))


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    details = [
        {"field": ".".join(str(p) for p in err.get("loc", ()) if p != "body"), "message": err.get("msg", "")}
        for err in exc.errors()
    ]
    logger.info("[main:validation_error] path=%s details=%s", request.url.path, details)
    return JSONResponse(status_code=400, content=_error_body("VALIDATION_ERROR", "Invalid request", details))


async def _http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404:
        return await _app_error_handler(request, NotFoundError("Route not found"))
    return JSONResponse(status_code=exc.status_code, content=_error_body("HTTP_ERROR", str(exc.detail)))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("[main:unhandled_error] path=%s", request.url.path)
    return JSONResponse(status_code=500, content=_error_body("INTERNAL_ERROR", "Something went wrong"))


def create_app(services: AgentServices | None = None) -> FastAPI:
    """Build the app. Pass services to skip loading records at startup (tests)."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.services = services if services is not None else build_services()
        logger.info("[main:lifespan] services ready")
        yield

    app = FastAPI(title="Agent Query Assistant", lifespan=lifespan)
    app.include_router(router)
    app.add_exception_handler(AppError, _app_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
    return app


app = create_app()
