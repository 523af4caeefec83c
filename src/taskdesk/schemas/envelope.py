"""Uniform response envelope wrapping every API payload."""

from __future__ import annotations

from typing import Generic, TypeVar

from pydantic import BaseModel, Field, SerializerFunctionWrapHandler, model_serializer

DataT = TypeVar("DataT")

_OPTIONAL_ENVELOPE_FIELDS = ("data", "message", "error")


class ApiResponse(BaseModel, Generic[DataT]):
    """``{success, data, message, error}`` wrapper returned by every endpoint.

    Envelope members left empty are omitted from the output; ``None`` values
    inside ``data`` are kept.
    """

    success: bool = Field(default=True, description="Whether the request succeeded")
    data: DataT | None = Field(default=None, description="Response payload, if any")
    message: str | None = Field(default=None, description="Human-readable status message")
    error: str | None = Field(default=None, description="Error message for failed requests")

    @model_serializer(mode="wrap")
    def _omit_empty_members(self, handler: SerializerFunctionWrapHandler):
        payload = handler(self)
        for name in _OPTIONAL_ENVELOPE_FIELDS:
            if payload.get(name, ...) is None:
                del payload[name]
        return payload


class ErrorEnvelope(BaseModel):
    """Envelope emitted by the exception handlers."""

    success: bool = False
    error: str
    message: str | None = None


__all__ = ["ApiResponse", "DataT", "ErrorEnvelope"]
