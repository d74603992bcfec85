import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("auto_mute.errors")


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(StarletteHTTPException)
    async def http_exc_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            "HTTPException path=%s status=%s detail=%r",
            request.url.path, exc.status_code, exc.detail
        )
        return JSONResponse(
            status_code=exc.status_code,
            content={"success": False, "error": str(exc.detail) if exc.detail else "HTTP error"},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exc_handler(request: Request, exc: RequestValidationError):
        logger.warning(
            "ValidationError path=%s errors=%s",
            request.url.path, exc.errors()
        )
        return JSONResponse(
            status_code=400,
            content={"success": False, "error": "Validation error", "details": jsonable_errors(exc)},
        )

    @app.exception_handler(Exception)
    async def unhandled_exc_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error at path=%s", request.url.path)
        return JSONResponse(
            status_code=500,
            content={"success": False, "error": "Internal server error"},
        )


def jsonable_errors(exc: RequestValidationError) -> list:
    return [
        {"loc": list(e.get("loc", ())), "msg": str(e.get("msg", "")), "type": str(e.get("type", ""))}
        for e in exc.errors()
    ]
