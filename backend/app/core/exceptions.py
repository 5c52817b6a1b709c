"""
Domain errors raised by the service layer.

Every error is an HTTPException subclass, so services raise them directly
and FastAPI renders them as `{"detail": ...}` with the matching status.
"""

from fastapi import HTTPException, status


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, detail: str = "You do not have permission to perform this action"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class Unauthorized(HTTPException):
    def __init__(self, detail: str = "Not authenticated"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class Conflict(HTTPException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class BadRequest(HTTPException):
    def __init__(self, detail: str = "Bad request"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class Exhausted(HTTPException):
    """Capacity reached: no more tickets can be issued for the event."""

    def __init__(self, detail: str = "This event is sold out"):
        super().__init__(status_code=status.HTTP_410_GONE, detail=detail)


class AlreadyScanned(HTTPException):
    def __init__(self, detail: str = "Ticket has already been scanned"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidToken(HTTPException):
    def __init__(self, detail: str = "Invalid or expired ticket token"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class RenderFailure(HTTPException):
    def __init__(self, detail: str = "Failed to generate QR code"):
        super().__init__(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=detail)
