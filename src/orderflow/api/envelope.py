"""Response envelopes shared by every route.

Success: ``{success, message, data, timestamp}``
Error:   ``{success: false, message, code, errors?, timestamp}``
"""

from datetime import UTC, datetime
from typing import Any

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def _timestamp() -> str:
    return datetime.now(UTC).isoformat()


def success(data: Any = None, message: str = "OK", status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "success": True,
            "message": message,
            "data": jsonable_encoder(data),
            "timestamp": _timestamp(),
        },
    )


def error(message: str, status_code: int, code: str, errors: Any = None) -> JSONResponse:
    content = {
        "success": False,
        "message": message,
        "code": code,
        "timestamp": _timestamp(),
    }
    if errors:
        content["errors"] = jsonable_encoder(errors)
    return JSONResponse(status_code=status_code, content=content)
