"""
HTTP error helpers.

401/403/404 errors carry a ``{"code", "message"}`` detail. Field-level
validation failures use the same list shape FastAPI produces for request
validation so clients handle both identically.
"""

from __future__ import annotations

from fastapi import HTTPException, status


def forbidden(message: str, code: str = "FORBIDDEN") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail={"code": code, "message": message},
    )


def not_found(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail={"code": code, "message": message},
    )


def field_error(field: str, message: str, location: str = "body") -> HTTPException:
    """Reject a single request field with a 422, e.g. a label from another project."""
    return HTTPException(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=[{"loc": [location, field], "msg": message, "type": "value_error"}],
    )


def unauthorized(code: str, message: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={"code": code, "message": message},
        headers={"WWW-Authenticate": "Bearer"},
    )
