from fastapi import status


class PortalError(Exception):
    """Base class for errors that map onto an HTTP response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message = "Internal server error"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


# --- Auth ---
class Unauthenticated(PortalError):
    """No valid session was presented."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "Invalid credentials"


class Forbidden(PortalError):
    """The session is valid but its role may not perform the action."""

    status_code = status.HTTP_403_FORBIDDEN
    default_message = "Access denied"


# --- Domain ---
class NotFound(PortalError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class DuplicateUsername(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Username already exists"


class AlreadyAssigned(PortalError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Link already assigned to user"


class ValidationError(PortalError):
    """A required field is missing or blank."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Missing required field"


# --- Storage ---
class StoreUnavailable(PortalError):
    """The backing datastore call failed."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_message = "Data store unavailable"
