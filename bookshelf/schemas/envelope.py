"""
Response Envelope Schemas

Every API response body has one of two shapes:

    {"msg": "success", "data": <payload>}
    {"msg": "error", "error": "<message>"}

bookshelf.transaction builds every response body from these models; the
routers also reference ErrorEnvelope to document error responses in OpenAPI.
"""

from typing import Any, Literal

from pydantic import BaseModel, Field


class SuccessEnvelope(BaseModel):
    msg: Literal["success"] = "success"
    data: Any = Field(default=None, description="Handler result")


class ErrorEnvelope(BaseModel):
    msg: Literal["error"] = "error"
    error: str = Field(..., description="Human-readable error message")

    model_config = {
        "json_schema_extra": {
            "example": {"msg": "error", "error": "Invalid or expired token"}
        }
    }
