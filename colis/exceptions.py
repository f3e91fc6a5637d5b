"""
Domain exceptions and their FastAPI exception handlers.

The identity resolver, ownership guard and mappers raise these errors
without importing any HTTP concepts. The handlers registered here are the
only place where an error kind is turned into a status code, so every
failure reaches the client as a stable ``error_type``:

    ColisAPIError (base)
    ├── AuthenticationError  401  missing / invalid / expired credential
    ├── AuthorizationError   403  not owner / insufficient role
    ├── NotFoundError        404  user / account / carrier
    └── ConflictError        409  duplicate email

Request body validation failures (422) come from pydantic and pass through
with ``error_type = "validation_failure"``. Anything else is an internal
error (500) whose body never echoes the underlying exception.
"""

import enum
import uuid

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from colis.logging import get_logger

logger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Failure reasons
# ---------------------------------------------------------------------------

class AuthFailureReason(str, enum.Enum):
    """Why a credential was rejected. Logged, never used to vary the response."""
    MISSING_CREDENTIAL = "missing_credential"
    INVALID_CREDENTIAL = "invalid_credential"
    EXPIRED_CREDENTIAL = "expired_credential"


class DenialReason(str, enum.Enum):
    NOT_OWNER = "not_owner"
    INSUFFICIENT_ROLE = "insufficient_role"


class Resource(str, enum.Enum):
    USER = "user"
    ACCOUNT = "account"
    CARRIER = "carrier"


class ConflictReason(str, enum.Enum):
    DUPLICATE_EMAIL = "duplicate_email"


# ---------------------------------------------------------------------------
# Base exception
# ---------------------------------------------------------------------------

class ColisAPIError(Exception):
    """Base exception for all Colis API domain errors."""

    def __init__(self, detail: str = "An error occurred"):
        self.detail = detail
        super().__init__(self.detail)


# ---------------------------------------------------------------------------
# Domain exceptions
# ---------------------------------------------------------------------------

class AuthenticationError(ColisAPIError):
    """
    The caller could not be identified.

    Every reason produces the same client-facing response; the reason is
    kept for logging only.
    """

    def __init__(
        self,
        reason: AuthFailureReason,
        detail: str = "Could not validate credentials",
    ):
        self.reason = reason
        super().__init__(detail)


class AuthorizationError(ColisAPIError):
    """The caller is identified but may not touch the target resource."""

    def __init__(self, reason: DenialReason = DenialReason.NOT_OWNER):
        self.reason = reason
        if reason is DenialReason.INSUFFICIENT_ROLE:
            detail = "Insufficient role for this operation"
        else:
            detail = "You do not have access to this resource"
        super().__init__(detail)


class NotFoundError(ColisAPIError):
    """
    Raised when a user, account or carrier profile does not exist.

    ``by_owner`` marks lookups keyed by the owning user id rather than the
    record's own primary key.
    """

    def __init__(self, resource: Resource, key: uuid.UUID, by_owner: bool = False):
        self.resource = resource
        self.key = key
        name = resource.value.capitalize()
        if by_owner:
            detail = f"{name} not found for user {key}"
        else:
            detail = f"{name} {key} not found"
        super().__init__(detail)


class ConflictError(ColisAPIError):
    """Raised when a write would violate a uniqueness rule."""

    def __init__(self, reason: ConflictReason, detail: str):
        self.reason = reason
        super().__init__(detail)


class DuplicateEmailError(ConflictError):
    """Raised when registering with an email that's already in use."""

    def __init__(self, email: str):
        self.email = email
        super().__init__(
            ConflictReason.DUPLICATE_EMAIL, f"Email {email} is already registered"
        )


# ---------------------------------------------------------------------------
# FastAPI exception handlers
# ---------------------------------------------------------------------------

def register_exception_handlers(app: FastAPI) -> None:
    """
    Register the domain exception handlers on the application.

    Each handler maps one error kind to its HTTP status code and the JSON
    body ``{"detail": ..., "error_type": ...}``.
    """

    @app.exception_handler(AuthenticationError)
    async def authentication_error_handler(
        request: Request, exc: AuthenticationError
    ) -> JSONResponse:
        logger.info(
            "authentication_failed",
            reason=exc.reason.value,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=401,
            content={"detail": exc.detail, "error_type": "authentication_failure"},
            headers={"WWW-Authenticate": "Bearer"},
        )

    @app.exception_handler(AuthorizationError)
    async def authorization_error_handler(
        request: Request, exc: AuthorizationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=403,
            content={
                "detail": exc.detail,
                "error_type": "authorization_failure",
                "reason": exc.reason.value,
            },
        )

    @app.exception_handler(NotFoundError)
    async def not_found_handler(request: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(
            status_code=404,
            content={
                "detail": exc.detail,
                "error_type": "not_found",
                "resource": exc.resource.value,
            },
        )

    @app.exception_handler(ConflictError)
    async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
        return JSONResponse(
            status_code=409,
            content={"detail": exc.detail, "error_type": exc.reason.value},
        )

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        return JSONResponse(
            status_code=422,
            content={
                "detail": jsonable_encoder(exc.errors()),
                "error_type": "validation_failure",
            },
        )

    @app.exception_handler(Exception)
    async def internal_error_handler(request: Request, exc: Exception) -> JSONResponse:
        # Only the exception class is logged; driver messages can embed bound values
        logger.error(
            "internal_error",
            path=request.url.path,
            error=type(exc).__name__,
        )
        return JSONResponse(
            status_code=500,
            content={"detail": "Internal server error", "error_type": "internal_error"},
        )
