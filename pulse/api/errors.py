# pulse/api/errors.py
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from pulse.domain.errors import OutOfStockError, RateLimitError, ShopError
from pulse.utils import settings
from pulse.utils.logging import get_logger

logger = get_logger(__name__)


def error_body(message: str, **extra) -> dict:
    return {"success": False, "error": message, **extra}


async def shop_error_handler(request: Request, exc: ShopError):
    extra = {}
    headers = None
    if isinstance(exc, OutOfStockError):
        extra["data"] = {"available": exc.available}
    if isinstance(exc, RateLimitError):
        headers = {"Retry-After": str(exc.retry_after)}

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} -> {exc.status_code}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(exc.message, **extra),
        headers=headers,
    )


async def validation_error_handler(request: Request, exc: RequestValidationError):
    problems = []
    for err in exc.errors():
        field = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        problems.append(f"{field}: {err.get('msg')}" if field else err.get("msg"))

    return JSONResponse(
        status_code=400,
        content=error_body("Invalid request", details=problems),
    )


async def http_error_handler(request: Request, exc: StarletteHTTPException):
    message = "Route not found" if exc.status_code == 404 else str(exc.detail)
    return JSONResponse(
        status_code=exc.status_code,
        content=error_body(message),
        headers=getattr(exc, "headers", None),
    )


async def unhandled_error_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled error on {request.method} {request.url.path}", exc_info=exc)

    extra = {}
    if settings.ENVIRONMENT == "development":
        extra["message"] = str(exc)
    return JSONResponse(status_code=500, content=error_body("Internal server error", **extra))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ShopError, shop_error_handler)
    app.add_exception_handler(RequestValidationError, validation_error_handler)
    app.add_exception_handler(StarletteHTTPException, http_error_handler)
    app.add_exception_handler(Exception, unhandled_error_handler)
