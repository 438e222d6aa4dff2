"""Mapping of CRM errors to HTTP responses for user-initiated endpoints."""

from __future__ import annotations

from fastapi import HTTPException, status

from src.performancy.deals.crm.exceptions import (
    AuthenticationError,
    ConfigurationError,
    CRMError,
    RemoteFetchError,
    RemoteWriteError,
    ValidationError,
)


def crm_error_to_http(exc: CRMError) -> HTTPException:
    """Translate a CRMError into the HTTPException reported to the UI.

    ValidationError -> 422, ConfigurationError -> 409,
    AuthenticationError -> 401, RemoteFetchError/RemoteWriteError -> 502.
    """
    if isinstance(exc, ValidationError):
        return HTTPException(
            status_code=422,
            detail={"message": str(exc), "missing_fields": exc.missing_fields},
        )
    # ConfigurationError subclasses AuthenticationError; check it first.
    if isinstance(exc, ConfigurationError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if isinstance(exc, AuthenticationError):
        return HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=str(exc))
    if isinstance(exc, (RemoteFetchError, RemoteWriteError)):
        return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
