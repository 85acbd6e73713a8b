# rentals/errors.py
import logging
from typing import Any

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from rentals.core.exceptions import RentalError

logger = logging.getLogger("uvicorn.error")


def _message_from_detail(detail: Any) -> str:
    if isinstance(detail, str):
        return detail
    if isinstance(detail, dict):
        return str(detail.get("message") or detail.get("detail") or "")
    return str(detail) if detail is not None else ""


def _first_validation_message(exc: RequestValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    msg = str(first.get("msg", "Invalid request"))
    # pydantic prefixes messages raised from validators
    if msg.startswith("Value error, "):
        msg = msg[len("Value error, "):]
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    if field and first.get("type") == "missing":
        return f"{field} is required"
    return msg


def register_error_handlers(app: FastAPI) -> None:
    """Every error leaves the API as {"message": ...} with its HTTP status."""

    @app.exception_handler(RentalError)
    async def rental_error_handler(request: Request, exc: RentalError) -> JSONResponse:
        return JSONResponse({"message": exc.message}, status_code=exc.status_code)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        return JSONResponse(
            {"message": _message_from_detail(exc.detail)},
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse({"message": _first_validation_message(exc)}, status_code=400)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse({"message": "Server error"}, status_code=500)
