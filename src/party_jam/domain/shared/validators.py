"""Shared input validators for inbound operations.

Inbound values arrive from an untyped transport layer, so every public
operation checks its required fields here before touching any state.
Failures raise ``InvalidRequestError`` (or a more specific subclass).
"""

from __future__ import annotations

from enum import Enum
from typing import Any, TypeVar

from pydantic import ValidationError as PydanticValidationError

from party_jam.domain.shared.exceptions import InvalidRequestError
from party_jam.domain.shared.messages import ErrorMessages

E = TypeVar("E", bound=Enum)


def require_text(value: Any, field_name: str) -> str:
    """Validate that a value is a non-empty, non-whitespace string.

    Args:
        value: The raw value to validate.
        field_name: Name of the field for error messages.

    Returns:
        The validated string, unchanged.

    Raises:
        InvalidRequestError: If the value is missing, not a string, or blank.
    """
    if value is None:
        raise InvalidRequestError.missing(field_name)
    if not isinstance(value, str) or not value.strip():
        raise InvalidRequestError(
            ErrorMessages.FIELD_CANNOT_BE_EMPTY.format(field_name=field_name), field=field_name
        )
    return value


def require_enum(
    value: Any,
    enum_type: type[E],
    field_name: str,
    error: InvalidRequestError | None = None,
) -> E:
    """Coerce a raw value (member or string value) into an enum member.

    Raises:
        InvalidRequestError: ``error`` if given, otherwise a generic one.
    """
    if isinstance(value, enum_type):
        return value
    if value is None:
        raise InvalidRequestError.missing(field_name)
    try:
        return enum_type(value)
    except ValueError:
        if error is not None:
            raise error from None
        raise InvalidRequestError(
            ErrorMessages.INVALID_FIELD_VALUE.format(field_name=field_name, value=value),
            field=field_name,
        ) from None


def require_bool(value: Any, field_name: str) -> bool:
    if not isinstance(value, bool):
        raise InvalidRequestError(
            ErrorMessages.INVALID_SETTING_VALUE.format(key=field_name, expected="boolean"),
            field=field_name,
        )
    return value


def invalid_request_from(exc: PydanticValidationError) -> InvalidRequestError:
    """Translate a pydantic validation failure into the domain error."""
    first = exc.errors()[0] if exc.errors() else {}
    location = ".".join(str(part) for part in first.get("loc", ())) or None
    message = first.get("msg", str(exc))
    if location:
        message = f"{location}: {message}"
    return InvalidRequestError(message, field=location)
