"""
core/errors.py
--------------
Domain error taxonomy.

Services raise these; the exception handler registered in main.py turns
them into an HTTP status plus a short message. Nothing here is retried.
InternalError wraps database failures no service handled; get_db raises it.
"""

from fastapi import status


class PortalError(Exception):
    """Base class. Subclasses pin the HTTP status the route boundary uses."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal error"

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DuplicateKey(PortalError):
    status_code = status.HTTP_409_CONFLICT
    default_message = "Registration number or login already registered"


class InvalidCredentials(PortalError):
    # Shared by unknown login and wrong password.
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid login or password"


class Unauthorized(PortalError):
    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Authentication required"


class Forbidden(PortalError):
    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Admin privileges required"


class NotFound(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ObjectNotFound(NotFound):
    default_message = "Object not found in storage"


class ObjectStoreError(PortalError):
    status_code = status.HTTP_502_BAD_GATEWAY
    default_message = "Object storage error"


class UploadError(ObjectStoreError):
    default_message = "Upload to object storage failed"


class SignError(ObjectStoreError):
    default_message = "Could not sign download URL"


class InternalError(PortalError):
    default_message = "Internal error"
