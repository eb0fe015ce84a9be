"""Base model and error body shared by all wire schemas."""

from enum import Enum

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """snake_case attributes, camelCase JSON (the server's field spelling)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class ErrorCode(str, Enum):
    VALIDATION_ERROR = "validation_error"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    ACTIVE_PLAN_EXISTS = "active_plan_exists"
    INTERNAL_ERROR = "internal_error"
    RATE_LIMIT_EXCEEDED = "rate_limit_exceeded"
    UNAUTHORIZED = "unauthorized"
    # Client-side codes
    REQUEST_FAILED = "request_failed"
    INVALID_RESPONSE = "invalid_response"
    INVALID_TRANSITION = "invalid_transition"


class ErrorBody(BaseModel):
    """Error body returned by the API: {"error": code, "message": optional text}."""

    error: str
    message: str | None = None
