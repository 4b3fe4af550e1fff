"""Domain exception taxonomy and HTTP handlers."""

import logging

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BusinessLogicError(Exception):
    """Raised for domain-specific validation errors."""

    code = "business_error"

    def __init__(self, detail: str, status_code: int = status.HTTP_422_UNPROCESSABLE_ENTITY):
        self.detail = detail
        self.status_code = status_code
        super().__init__(detail)


class NotFoundError(BusinessLogicError):
    """A referenced appointment, review or user does not exist."""

    code = "not_found"

    def __init__(self, detail: str):
        super().__init__(detail, status.HTTP_404_NOT_FOUND)


class ForbiddenError(BusinessLogicError):
    """The caller does not hold the role the operation requires."""

    code = "forbidden"

    def __init__(self, detail: str):
        super().__init__(detail, status.HTTP_403_FORBIDDEN)


class InvalidStateError(BusinessLogicError):
    """The entity's current status does not permit the operation.

    This is a precondition violation on the caller's side, never a fault, and
    retrying the same call cannot succeed.
    """

    code = "invalid_state"

    def __init__(self, detail: str):
        super().__init__(detail, status.HTTP_400_BAD_REQUEST)


class ConflictError(BusinessLogicError):
    """A uniqueness rule (one review per appointment and author) was violated."""

    code = "conflict"

    def __init__(self, detail: str):
        super().__init__(detail, status.HTTP_409_CONFLICT)


class TransactionAbortedError(BusinessLogicError):
    """The persistence layer rolled the transaction back; nothing was committed."""

    code = "transaction_aborted"

    def __init__(self, detail: str = "Transaction aborted, please retry"):
        super().__init__(detail, status.HTTP_503_SERVICE_UNAVAILABLE)


def register_exception_handlers(app: FastAPI) -> None:
    """Attach shared exception handlers to the FastAPI app."""

    @app.exception_handler(BusinessLogicError)
    async def _business_error_handler(request: Request, exc: BusinessLogicError):
        logger.debug("%s %s -> %s: %s", request.method, request.url.path, exc.code, exc.detail)
        return JSONResponse(
            {"success": False, "message": exc.detail, "code": exc.code},
            status_code=exc.status_code,
        )
