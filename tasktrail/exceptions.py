"""HTTP-aware error taxonomy shared by services and routers.

Each class is a ``fastapi.HTTPException`` so services can raise them directly
and FastAPI renders ``{"detail": ...}`` with the right status code.
"""
from typing import Optional

from fastapi import HTTPException


class NotFound(HTTPException):
    def __init__(self, detail: str = "Not found"):
        super().__init__(status_code=404, detail=detail)


class Forbidden(HTTPException):
    def __init__(self, detail: str = "Not allowed"):
        super().__init__(status_code=403, detail=detail)


class Unauthorized(HTTPException):
    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=401,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class Conflict(HTTPException):
    def __init__(self, detail: str = "Conflict"):
        super().__init__(status_code=409, detail=detail)


class PayloadTooLarge(HTTPException):
    def __init__(self, detail: str = "Payload too large"):
        super().__init__(status_code=413, detail=detail)


class UnsupportedMediaType(HTTPException):
    def __init__(self, detail: str = "Unsupported media type"):
        super().__init__(status_code=415, detail=detail)


class MethodNotAllowed(HTTPException):
    def __init__(self, detail: str = "Method not allowed", allow: Optional[str] = None):
        headers = {"Allow": allow} if allow else None
        super().__init__(status_code=405, detail=detail, headers=headers)


class InternalFault(HTTPException):
    """Unexpected storage/adapter failure. The detail never carries the cause."""

    def __init__(self, detail: str = "Internal server error"):
        super().__init__(status_code=500, detail=detail)
