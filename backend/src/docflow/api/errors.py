"""Mapping of core errors to HTTP responses.

Response bodies only carry the error code and the public message; internal
identifiers stay in the logs.
"""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from ..errors import (
    AuthorizationDenied,
    DocflowError,
    DocumentAlreadySupersededError,
    DomainViolationError,
    InfrastructureError,
    InvalidIdentityError,
    InvalidTransitionError,
    NotFoundError,
    StateMismatchError,
)

logger = logging.getLogger(__name__)

# Most specific first: DocumentAlreadySupersededError is a DomainViolationError
STATUS_BY_ERROR = (
    (InvalidIdentityError, status.HTTP_401_UNAUTHORIZED),
    (AuthorizationDenied, status.HTTP_403_FORBIDDEN),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (StateMismatchError, status.HTTP_409_CONFLICT),
    (DocumentAlreadySupersededError, status.HTTP_409_CONFLICT),
    (DomainViolationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InfrastructureError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def status_code_for(exc: DocflowError) -> int:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(exc: DocflowError) -> dict:
    body = {"error": exc.code, "message": exc.public_message}
    if exc.retryable:
        body["action"] = "RETRY"
    return body


async def docflow_exception_handler(request: Request, exc: DocflowError) -> JSONResponse:
    """Translate a typed core error into its HTTP status and body."""
    status_code = status_code_for(exc)
    logger.info(
        f"{request.method} {request.url.path} failed with {exc.code}",
        extra={"status_code": status_code},
    )
    headers = None
    if status_code == status.HTTP_401_UNAUTHORIZED:
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=status_code, content=error_body(exc), headers=headers)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(DocflowError, docflow_exception_handler)
