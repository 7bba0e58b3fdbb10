"""
Typed failures raised by the ballot services.

They subclass ``HTTPException`` so the request layer renders them without extra
handlers; service code raises them the same way the permission helpers do.
"""
from fastapi import HTTPException, status


class NotFoundError(HTTPException):
    """Absent, or deliberately indistinguishable from absent (no access)."""

    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class ForbiddenError(HTTPException):
    """Authenticated, but not allowed to perform this operation."""

    def __init__(self, detail: str = "Not authorized"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class InvalidStateError(HTTPException):
    """Lifecycle transition not allowed from the ballot's current status."""

    def __init__(self, detail: str = "Invalid ballot state"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidPayloadError(HTTPException):
    """Missing or malformed request content."""

    def __init__(self, detail: str = "Invalid payload"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class AlreadyVotedError(HTTPException):
    def __init__(self, detail: str = "You have already voted on this ballot"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class UnauthenticatedError(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )
