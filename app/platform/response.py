from typing import Any, Dict, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def api_response(
    *,
    data: Optional[Any] = None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """
    Flat JSON body for successful responses.

    The waitlist widget reads fields straight off the body, so there is no
    envelope around ``data``.
    """
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(data) if data is not None else {},
    )


def error_response(
    message: str,
    status_code: int = status.HTTP_400_BAD_REQUEST,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message}, headers=headers)
