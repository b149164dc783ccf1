"""Translate domain exceptions into HTTP errors"""

import logging
from fastapi import HTTPException
from horizon.domain.exceptions import (
    AggregatorError,
    AuthProviderError,
    ForbiddenError,
    HorizonError,
    NotAuthenticatedError,
    NotFoundError,
    ProcessorError,
    SignUpError,
    TransferError,
)
from horizon.infrastructure.observability.logging import log_upstream_failure

logger = logging.getLogger(__name__)

PROVIDERS = {
    AuthProviderError: "appwrite",
    AggregatorError: "plaid",
    ProcessorError: "dwolla",
}


def http_error(e: HorizonError, request_id: str) -> HTTPException:
    """Map a domain exception to the status code the client should see"""
    if isinstance(e, NotAuthenticatedError):
        return HTTPException(status_code=401, detail="Not authenticated")
    if isinstance(e, ForbiddenError):
        return HTTPException(status_code=403, detail=str(e))
    if isinstance(e, NotFoundError):
        return HTTPException(status_code=404, detail=str(e) or "Not found")
    if isinstance(e, (SignUpError, TransferError)):
        logger.warning(str(e), extra={"request_id": request_id})
        return HTTPException(status_code=502, detail=str(e))

    for error_type, provider in PROVIDERS.items():
        if isinstance(e, error_type):
            log_upstream_failure(provider, "request", e, request_id)
            return HTTPException(status_code=503, detail=f"{provider.capitalize()} service unavailable")

    logger.error(f"Unhandled domain error: {e}", extra={"request_id": request_id})
    return HTTPException(status_code=500, detail="Internal server error")


def internal_error(e: Exception, request_id: str) -> HTTPException:
    logger.error(f"Unexpected error: {e}", extra={"request_id": request_id}, exc_info=e)
    return HTTPException(status_code=500, detail="Internal server error")
