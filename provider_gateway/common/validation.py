# provider_gateway/common/validation.py
from __future__ import annotations

from typing import Iterable, Optional

from pydantic import EmailStr, TypeAdapter, ValidationError

from provider_gateway.resilience.errors import InvalidArgumentError

_EMAIL = TypeAdapter(EmailStr)


def validate_phone_numbers(*phone_numbers: Optional[str]) -> None:
    """Raise InvalidArgumentError unless every TN is non-empty and digits only."""
    for phone_number in phone_numbers:
        if phone_number is None or not phone_number.strip():
            raise InvalidArgumentError("Phone number cannot be empty")
        # str.isdigit() accepts superscripts and other unicode digits
        if not (phone_number.isascii() and phone_number.isdigit()):
            raise InvalidArgumentError(f"Phone number must contain only digits: {phone_number}")


def validate_phone_sequence(phone_numbers: Optional[Iterable[str]], what: str = "phone number") -> list:
    items = list(phone_numbers or [])
    if not items:
        raise InvalidArgumentError(f"At least one {what} is required")
    validate_phone_numbers(*items)
    return items


def require_text(value: Optional[str], name: str) -> str:
    if value is None or not str(value).strip():
        raise InvalidArgumentError(f"{name} cannot be empty")
    return value


def validate_email(value: Optional[str]) -> str:
    require_text(value, "forward_email")
    try:
        return str(_EMAIL.validate_python(value))
    except ValidationError:
        raise InvalidArgumentError("Invalid email format") from None
