"""
Shared pydantic base for API schemas.

Python code uses snake_case; JSON on the wire uses camelCase
(``employerId``, ``firstName``). Both spellings are accepted on input.
"""
from typing import Optional

from pydantic import BaseModel, ConfigDict, HttpUrl, TypeAdapter, ValidationError
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
        use_enum_values=True,
    )


# E.164 phone number, e.g. +14155552671
PHONE_PATTERN = r"^\+[1-9]\d{1,14}$"

_url_adapter = TypeAdapter(HttpUrl)


def check_url(value: Optional[str], message: str = "Invalid URL") -> Optional[str]:
    """Validate an optional http(s) URL, keeping the caller's spelling."""
    if value is None or value == "":
        return None
    try:
        _url_adapter.validate_python(value)
    except ValidationError:
        raise ValueError(message)
    return value


def check_required_text(value: str, message: str) -> str:
    """Strip a required text field and reject it when blank."""
    value = (value or "").strip()
    if not value:
        raise ValueError(message)
    return value
