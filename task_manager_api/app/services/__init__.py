"""
Service layer abstraction.

Each service encapsulates the business logic for one domain and is
shared by the REST endpoints and the GraphQL resolvers.  A service
method runs the whole gate for its operation (authorize, act, shape
the response) and raises ``core.errors.ApiError`` subclasses; the
transports only translate those errors.
"""

from typing import Any, Mapping, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..core.errors import ValidationError
from ..schemas.common import format_validation_errors

M = TypeVar("M", bound=BaseModel)


def parse_input(model: Type[M], payload: Mapping[str, Any]) -> M:
    """Validate a raw mapping against ``model``.

    Used by transports that do not validate through FastAPI.  Every
    violation is collected into one ``ValidationError``.
    """
    try:
        return model.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError("Invalid data", details=format_validation_errors(exc.errors()))
