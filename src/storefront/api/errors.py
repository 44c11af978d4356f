"""Mapping of storefront errors to HTTP responses."""

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from protean.exceptions import ValidationError

from storefront.cart.store import NoPendingConflict
from storefront.gateway.order_service_port import RemoteAPIFailure


async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=422, content={"errors": exc.messages})


async def no_pending_conflict_handler(request: Request, exc: NoPendingConflict):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


async def remote_api_failure_handler(request: Request, exc: RemoteAPIFailure):
    # A missing order upstream is still a missing order here
    status_code = 404 if exc.status_code == 404 else 502
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NoPendingConflict, no_pending_conflict_handler)
    app.add_exception_handler(RemoteAPIFailure, remote_api_failure_handler)
