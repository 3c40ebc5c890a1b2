"""
Exception types shared by the data sources, the query layer and the HTTP edge.

Data-source level:
- TransportError: the remote backend could not be reached
- RemoteError: the remote backend answered with an error object

Operation level (raised past the query layer boundary):
- RoleAuthorizationError: wrong role for a mutation
- ValidationError: required input missing before any remote write
- RemoteOperationError: a remote write was rejected
- BatchUpdateError: at least one item of a batch update failed
"""

from typing import List, Optional


class RemoteError(Exception):
    """Error object returned by the hosted backend."""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint
        self.status_code = status_code

    def __repr__(self) -> str:
        return f"RemoteError(message={self.message!r}, code={self.code!r}, status_code={self.status_code!r})"


class TransportError(Exception):
    """The hosted backend is unreachable (DNS, refused connection, timeout)."""


class PortalError(Exception):
    """Base class for failures surfaced to the presentation layer."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class RoleAuthorizationError(PortalError):
    """Caller's role may not perform the operation."""


class ValidationError(PortalError):
    """Input rejected before reaching the remote backend."""


class RemoteOperationError(PortalError):
    """A remote write was rejected; message carries the remote reason."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class BatchUpdateError(RemoteOperationError):
    """Aggregate failure for a batch update.

    Names the first failing item in request order; items that succeeded
    remotely are not rolled back.
    """

    def __init__(self, message: str, failed_ids: List[str], succeeded_ids: List[str]):
        super().__init__(message)
        self.failed_ids = failed_ids
        self.succeeded_ids = succeeded_ids
