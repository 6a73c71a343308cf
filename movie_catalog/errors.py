from fastapi import status


class CatalogError(Exception):
    """Base class for errors that map onto an API response."""

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    status_code = status.HTTP_400_BAD_REQUEST


class AuthError(CatalogError):
    status_code = status.HTTP_401_UNAUTHORIZED


class NotFoundError(CatalogError):
    status_code = status.HTTP_404_NOT_FOUND


class MethodDisabledError(CatalogError):
    status_code = status.HTTP_405_METHOD_NOT_ALLOWED


class ConflictError(CatalogError):
    status_code = status.HTTP_409_CONFLICT


class InternalError(CatalogError):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
