"""
Error taxonomy shared by the sync engine, the OAuth2 authorizer and the
HTTP layer.

Every error that may reach a client carries ``status_code`` and
``error_type``; ``api/errors.py`` renders them as ``{"Type", "Message"}``.
"""

from __future__ import annotations

from typing import Dict, Optional


class ServiceError(Exception):
    """Base class for all errors raised by this service."""

    status_code: int = 500
    error_type: str = "InternalError"

    def __init__(self, message: str, *, error_type: Optional[str] = None):
        super().__init__(message)
        self.message = message
        if error_type is not None:
            self.error_type = error_type

    def to_dict(self) -> Dict[str, str]:
        return {"Type": self.error_type, "Message": self.message}


class ValidationError(ServiceError):
    """Malformed request, missing parameter or OAuth2 state mismatch."""

    status_code = 400
    error_type = "MissingInfo"


class AuthenticationError(ServiceError):
    """Webhook request without a signature."""

    status_code = 401
    error_type = "Unauthorized"


class SignatureMismatchError(AuthenticationError):
    status_code = 403
    error_type = "Forbidden"


class NotReadyError(ServiceError):
    """Raised while the OAuth2 handshake has not yet produced a client."""

    status_code = 503
    error_type = "NotReady"

    def __init__(self, message: str = "server is still starting up"):
        super().__init__(message)


class RemoteProviderError(ServiceError):
    """
    A call to the storage provider failed.

    ``remote_status`` is the provider's HTTP status, or None when the
    request never got a response (connection error, timeout).
    """

    error_type = "BackendError"

    def __init__(self, remote_status: Optional[int], path: str, cause: str):
        self.remote_status = remote_status
        self.path = path
        self.cause = cause
        super().__init__(f"status code {remote_status} from {path}: {cause}")


class SerializationError(ServiceError):
    error_type = "JSONError"


class CursorNotFoundError(ServiceError):
    """No cursor stored for the account yet. Never surfaced to clients."""

    def __init__(self, account: str):
        self.account = account
        super().__init__(f"no cursor for account {account!r} - yet")


class AlreadyResolvedError(ServiceError):
    """A single-assignment value was assigned a second time."""


class SubscriberError(ServiceError):
    def __init__(self, subscriber: str, account: str, cause: Exception):
        self.subscriber = subscriber
        self.account = account
        self.cause = cause
        super().__init__(f"subscriber {subscriber} failed for {account}: {cause}")


class UpdateError(ServiceError):
    """
    One or more accounts of an update could not be synced.

    ``failures`` maps account id to the exception that stopped it.
    """

    def __init__(self, failures: Dict[str, Exception]):
        self.failures = dict(failures)
        detail = "; ".join(f"{acct}: {exc}" for acct, exc in self.failures.items())
        super().__init__(f"error processing update ({len(self.failures)} failed): {detail}")
