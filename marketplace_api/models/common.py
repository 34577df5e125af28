"""
Shared model plumbing: camelCase wire format and the JSON response envelope.
"""

from typing import Any, Optional

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """
    Base for every API-facing model.

    Attributes are snake_case in Python; JSON keys are camelCase. Input is
    accepted in either form.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_api(self) -> dict:
        """Serialize to a JSON-ready dict with camelCase keys."""
        return self.model_dump(mode="json", by_alias=True)


def api_response(
    data: Any = None,
    message: Optional[str] = None,
    status_code: int = status.HTTP_200_OK,
    **extra: Any
) -> JSONResponse:
    """
    Build a success envelope.

    Args:
        data: Payload; models are serialized with camelCase keys
        message: Optional human-readable message
        status_code: HTTP status code
        **extra: Additional top-level keys (e.g. ``count``, ``totalPages``)

    Returns:
        JSONResponse with ``{"success": true, ...}``
    """
    content: dict = {"success": True}
    if message is not None:
        content["message"] = message
    if data is not None:
        content["data"] = jsonable_encoder(data)
    content.update(jsonable_encoder(extra))
    return JSONResponse(status_code=status_code, content=content)


def error_response(
    status_code: int,
    message: str,
    error: Any = None,
    headers: Optional[dict] = None
) -> JSONResponse:
    """Build a failure envelope."""
    content: dict = {"success": False, "message": message}
    if error is not None:
        content["error"] = jsonable_encoder(error)
    return JSONResponse(status_code=status_code, content=content, headers=headers)


class ErrorResponse(BaseModel):
    """Failure envelope, used to document error responses."""
    success: bool = False
    message: str
    error: Optional[Any] = None
