"""
Shared field types for request/response schemas.

Strings that can end up in database filters have the characters
``$``, ``{`` and ``}`` stripped before any other validation runs, so
``"{$ne: null}"`` arrives as ``"ne: null"``.
"""

import re
import uuid
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, StringConstraints
from pydantic.alias_generators import to_camel

from app.models import Priority

_UNSAFE_CHARS = re.compile(r"[${}]")


def sanitize_string(value: Any) -> Any:
    """Strip query-operator characters from strings; leave other values alone."""
    if isinstance(value, str):
        return _UNSAFE_CHARS.sub("", value)
    return value


SanitizedStr = Annotated[str, BeforeValidator(sanitize_string)]
RequiredStr = Annotated[str, BeforeValidator(sanitize_string), StringConstraints(min_length=1)]
SanitizedId = Annotated[uuid.UUID, BeforeValidator(sanitize_string)]
SanitizedPriority = Annotated[Priority, BeforeValidator(sanitize_string)]


class CamelModel(BaseModel):
    """Base schema: snake_case attributes, camelCase JSON."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )
