"""Error taxonomy for CRM access and pipeline configuration.

Adapters always raise; the PipelineStore decides per operation whether an
error is swallowed (background sync) or surfaced (user-initiated actions).
"""

from __future__ import annotations


class CRMError(Exception):
    """Base class for all CRM integration failures."""


class AuthenticationError(CRMError):
    """Access token could not be obtained (exchange rejected or unavailable)."""


class ConfigurationError(AuthenticationError):
    """A CRM operation was invoked before the adapter was initialized.

    Subclasses AuthenticationError: without configuration no token can be
    obtained, so callers of get_access_token() see an AuthenticationError.
    """


class RemoteFetchError(CRMError):
    """Listing records from the CRM failed (transport, API or auth)."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class RemoteWriteError(CRMError):
    """Creating or updating a CRM record failed."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.status_code = status_code
        super().__init__(message)


class ValidationError(CRMError, ValueError):
    """CRM configuration is missing required credential fields."""

    def __init__(self, missing_fields: list[str]) -> None:
        self.missing_fields = missing_fields
        super().__init__(
            f"Missing required CRM credential fields: {', '.join(missing_fields)}"
        )
