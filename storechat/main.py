# Run from project root: uvicorn storechat.main:app --reload

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from storechat.api.routes import router
from storechat.backend.base import BackendFactory
from storechat.backend.gemini import gemini_backend_factory
from storechat.core.config import LOG_LEVEL, Settings, load_settings
from storechat.core.errors import ServiceError

logging.basicConfig(level=LOG_LEVEL)

logger = logging.getLogger(__name__)


def _validation_message(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return "; ".join(parts) or "Invalid request"


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.warning(
            "%s %s failed kind=%s stage=%s: %s",
            request.method, request.url.path, exc.kind.value, exc.stage or "-", exc.message,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(status_code=400, content={"error": _validation_message(exc)})


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return JSONResponse(status_code=500, content={"error": str(exc) or "Internal server error"})


def create_app(settings: Settings | None = None, backend_factory: BackendFactory | None = None) -> FastAPI:
    """Build the app with read-only settings and the backend factory injected once."""
    application = FastAPI(title="File Search Store Chat Backend")
    application.state.settings = settings or load_settings()
    application.state.backend_factory = backend_factory or gemini_backend_factory
    application.add_exception_handler(ServiceError, service_error_handler)
    application.add_exception_handler(RequestValidationError, validation_error_handler)
    application.add_exception_handler(StarletteHTTPException, http_error_handler)
    application.add_exception_handler(Exception, unhandled_error_handler)
    application.include_router(router)
    return application


app = create_app()
