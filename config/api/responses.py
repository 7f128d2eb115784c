from __future__ import annotations

from typing import TypeAlias

from rest_framework import status
from rest_framework.response import Response

JSONScalar: TypeAlias = str | int | float | bool | None
JSONValue: TypeAlias = JSONScalar | list["JSONValue"] | dict[str, "JSONValue"]


def error_response(
    message: str,
    *,
    errors: JSONValue | None = None,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> Response:
    payload: dict[str, JSONValue] = {
        "status": 1,
        "message": message,
        "data": None,
        "errors": errors,
    }
    return Response(payload, status=status_code)


def coded_error_response(
    message: str,
    code: str,
    *,
    status_code: int = status.HTTP_400_BAD_REQUEST,
) -> Response:
    """Error envelope whose ``errors`` carries one machine-readable code.

    Render failures use this shape; field validation failures keep the
    per-field mapping produced by the exception handler instead.
    """

    return error_response(
        message, errors={"code": code}, status_code=status_code
    )
