"""Builders for the success envelope and problem details returned by the API."""

from datetime import datetime, timezone
from typing import Any, Dict, Optional
from uuid import uuid4

from fastapi import Request
from pydantic import BaseModel

from curation.schemas.common import ApiResponse, ErrorDetail, ResponseMeta


def _request_id(request: Optional[Request]) -> str:
    if request is not None:
        return getattr(request.state, "request_id", None) or str(uuid4())
    return str(uuid4())


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json")
    return value


def _as_data(data: Any) -> Dict[str, Any]:
    """Objects become the payload itself; sequences are wrapped as ``items``/``total``."""
    if data is None:
        return {}
    if isinstance(data, dict):
        return data
    if isinstance(data, BaseModel):
        return data.model_dump(mode="json")
    if isinstance(data, (list, tuple)):
        return {"items": [_jsonable(item) for item in data], "total": len(data)}
    return {"value": data}


def create_api_response(
    data: Any,
    message: str = "Operation successful",
    *,
    request: Optional[Request] = None,
    status: bool = True,
) -> Dict[str, Any]:
    envelope = ApiResponse(
        status=status,
        message=message,
        data=_as_data(data),
        meta=ResponseMeta(timestamp=datetime.now(timezone.utc), request_id=_request_id(request)),
    )
    return envelope.model_dump(mode="json")


def create_error_detail(
    title: str,
    status: int,
    detail: str,
    request: Optional[Request] = None,
) -> ErrorDetail:
    return ErrorDetail(
        title=title,
        status=status,
        detail=detail,
        instance=request.url.path if request is not None else None,
        request_id=_request_id(request),
        timestamp=datetime.now(timezone.utc),
    )
