"""Domain errors and their HTTP mapping.

Storage and services raise these; the handlers registered by
``register_exception_handlers`` turn them into JSON bodies of the form
``{"message": ..., "errors": [...]}``.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger("fieldops.errors")


class FieldOpsError(Exception):
    """Base class for all domain errors."""
    status_code = 500

    def __init__(self, message: str, errors: list[dict] | None = None):
        self.message = message
        self.errors = errors or []
        super().__init__(message)


class NotFoundError(FieldOpsError):
    status_code = 404

    def __init__(self, entity: str, identifier):
        self.entity = entity
        self.identifier = identifier
        super().__init__(f"{entity} not found")


class ConflictError(FieldOpsError):
    """Duplicate unique key."""
    status_code = 409

    def __init__(self, entity: str, field: str, value=None):
        self.entity = entity
        self.field = field
        self.value = value
        super().__init__(
            f"{entity} with this {field} already exists",
            [{"field": field, "message": "must be unique"}],
        )


class DomainValidationError(FieldOpsError):
    status_code = 400

    def __init__(self, message: str, fields: list[str] | None = None):
        super().__init__(
            message,
            [{"field": f, "message": message} for f in (fields or [])],
        )


class NoTechniciansAssignedError(FieldOpsError):
    status_code = 400

    def __init__(self, task_number: str):
        self.task_number = task_number
        super().__init__(f"No technicians assigned to task {task_number}")


class InvalidTransitionError(FieldOpsError):
    status_code = 409

    def __init__(self, task_number: str, current: str, event: str):
        self.task_number = task_number
        self.current = current
        self.event = event
        super().__init__(
            f"Cannot {event} task {task_number} while it is {current}"
        )


class GatewayUnavailableError(FieldOpsError):
    """Bot is not connected or could not be started."""
    status_code = 503


class AuthError(FieldOpsError):
    status_code = 401


def _body(message: str, errors: list[dict] | None = None) -> dict:
    return {"message": message, "errors": errors or []}


async def _domain_error_handler(request: Request, exc: FieldOpsError):
    if exc.status_code >= 500:
        logger.error("%s %s: %s", request.method, request.url.path, exc.message)
    return JSONResponse(status_code=exc.status_code, content=_body(exc.message, exc.errors))


async def _http_error_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content=_body(str(exc.detail)),
        headers=getattr(exc, "headers", None),
    )


async def _validation_error_handler(request: Request, exc: RequestValidationError):
    errors = []
    for err in exc.errors():
        loc = [str(part) for part in err.get("loc", ()) if part != "body"]
        errors.append({"field": ".".join(loc), "message": err.get("msg", "")})
    return JSONResponse(status_code=400, content=_body("Invalid request data", errors))


async def _unexpected_error_handler(request: Request, exc: Exception):
    logger.error(
        "Unhandled error on %s %s", request.method, request.url.path, exc_info=exc,
    )
    return JSONResponse(status_code=500, content=_body("Internal server error"))


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(FieldOpsError, _domain_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_error_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unexpected_error_handler)
