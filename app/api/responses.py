"""The response envelope the account endpoints answer with."""

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import BaseModel


def success_response(message: str, data: Any = None, status_code: int = 200) -> JSONResponse:
    """``{"success": true, "statusCode", "message", "data"?}``; data is omitted when None."""
    payload: dict[str, Any] = {
        "success": True,
        "statusCode": status_code,
        "message": message,
    }
    if data is not None:
        payload["data"] = _jsonable(data)
    return JSONResponse(status_code=status_code, content=payload)


def error_response(status_code: int, message: str, headers: dict[str, str] | None = None) -> JSONResponse:
    """``{"success": false, "statusCode", "message"}``."""
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "statusCode": status_code, "message": message},
        headers=headers,
    )


def _jsonable(data: Any) -> Any:
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json", by_alias=True)
    if isinstance(data, dict):
        return {k: _jsonable(v) for k, v in data.items()}
    if isinstance(data, list):
        return [_jsonable(v) for v in data]
    return data
