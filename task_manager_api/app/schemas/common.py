"""
Shared schema pieces: base model configuration and response envelopes.

Every REST success response has the shape ``{"message": ..., "data": ...}``
and is described here as ``Envelope[SomeData]``.  Field names are
snake_case in Python and camelCase on the wire (``userId``,
``createdAt``, ``totalItems``); request bodies accept either spelling.
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, model_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class ApiModel(BaseModel):
    """Base for response models."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class InputModel(ApiModel):
    """Base for request bodies.

    Unknown keys are rejected, and a key that is present must not be
    ``null``: omitting a field means "leave it alone", an explicit null
    is an error.
    """

    model_config = ConfigDict(extra="forbid")

    @model_validator(mode="after")
    def reject_explicit_nulls(self):
        for name in self.model_fields_set:
            if getattr(self, name) is None:
                raise ValueError(f"{to_camel(name)} must not be null")
        return self


class Envelope(ApiModel, Generic[T]):
    message: str
    data: T


class MessageResponse(ApiModel):
    message: str


class ErrorBody(ApiModel):
    message: str
    code: str
    details: list[str] | None = None


class ErrorResponse(ApiModel):
    """Documented shape of every REST error."""

    error: ErrorBody


def format_validation_errors(errors) -> list[str]:
    """Flatten pydantic error dicts into ``"field: message"`` strings.

    The leading location segment added by FastAPI (``body``, ``query``,
    ``path``) is dropped so REST and GraphQL report the same field names.
    """
    details = []
    for error in errors:
        loc = [str(part) for part in error.get("loc", ())]
        if loc and loc[0] in {"body", "query", "path", "header"}:
            loc = loc[1:]
        field = ".".join(loc)
        message = error.get("msg", "Invalid value")
        details.append(f"{field}: {message}" if field else message)
    return details
