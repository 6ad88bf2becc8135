"""Custom exception classes for the admin platform."""

from fastapi import HTTPException, status


class AdminPlatformError(Exception):
    """Base exception for the admin platform."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "An error occurred"):
        self.message = message
        super().__init__(self.message)


class AuthenticationError(AdminPlatformError):
    """Raised when no principal can be resolved."""
    status_code = status.HTTP_401_UNAUTHORIZED


class AuthorizationError(AdminPlatformError):
    """Raised when user lacks permission."""
    status_code = status.HTTP_403_FORBIDDEN


class ResourceNotFoundError(AdminPlatformError):
    """Raised when a requested resource is not found."""
    status_code = status.HTTP_404_NOT_FOUND


class ResourceConflictError(AdminPlatformError):
    """Raised when a resource already exists."""
    status_code = status.HTTP_409_CONFLICT


class LastAdminError(AdminPlatformError):
    """Raised when an operation would leave the system without an admin."""
    pass


class ValidationError(AdminPlatformError):
    """Raised when input validation fails."""
    pass


class StorageError(AdminPlatformError):
    """Raised when the database fails on a primary operation."""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR


# HTTP exception shortcuts
def unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )
