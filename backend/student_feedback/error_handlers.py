"""
Global exception handlers.

Every failure leaves the API as the same JSON shape:

    {"error": {"code": "...", "message": "..."}, "generated_at": "..."}

The message is a single human-readable sentence. Stack traces and
exception details go to the log, never to the client.
"""

from datetime import datetime, timezone

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from student_feedback.errors import StudentFeedbackError
from student_feedback.logging_config import get_logger, log_with_context

logger = get_logger("http")


def _now_iso():
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": {"code": code, "message": message},
            "generated_at": _now_iso(),
        },
    )


def _validation_message(exc: RequestValidationError) -> str:
    """First validation problem, phrased for a person filling in a form."""
    errors = exc.errors()
    if not errors:
        return "Invalid request"
    first = errors[0]
    field = ".".join(str(p) for p in first.get("loc", ()) if p not in ("body", "query", "path"))
    message = str(first.get("msg", "Invalid value"))
    if message.startswith("Value error, "):
        message = message[len("Value error, "):]
    return "{}: {}".format(field, message) if field else message


def add_error_handlers(app: FastAPI):
    @app.exception_handler(StudentFeedbackError)
    async def domain_error_handler(request: Request, exc: StudentFeedbackError):
        level = "ERROR" if exc.status_code >= 500 else "WARNING"
        log_with_context(logger, level, "{} {} failed: {}".format(request.method, request.url.path, exc.message),
                         extra_data={"code": exc.code, "status_code": exc.status_code})
        return error_response(exc.status_code, exc.code, exc.message)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        message = _validation_message(exc)
        log_with_context(logger, "WARNING", "{} {} rejected: {}".format(request.method, request.url.path, message),
                         extra_data={"code": "VALIDATION_ERROR"})
        return error_response(400, "VALIDATION_ERROR", message)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        code = "NOT_FOUND" if exc.status_code == 404 else "HTTP_{}".format(exc.status_code)
        return error_response(exc.status_code, code, str(exc.detail))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        # runs outside the request-id middleware, so the contextvar is already reset
        req_id = getattr(request.state, "request_id", "")
        logger.error("Unhandled error on {} {}".format(request.method, request.url.path),
                     exc_info=exc,
                     extra={"context": {"request_id": req_id},
                            "extra_data": {"error": type(exc).__name__}, "channel": "http"})
        return error_response(500, "INTERNAL_ERROR", "Something went wrong. Please try again.")
