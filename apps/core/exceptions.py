"""
Field-level validation errors shared by all apps.

Services collect every problem with a payload before raising, so clients can
highlight all invalid form fields at once:

    errors = []
    errors += _validate_name(payload.name)
    if errors:
        raise ValidationFailed(errors)

The Ninja exception handler in ``config.urls`` renders these as HTTP 400 with
a ``field_errors`` list.
"""
from dataclasses import dataclass, asdict
from typing import List


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str
    code: str

    def dict(self) -> dict:
        return asdict(self)


class ValidationFailed(Exception):
    """Raised when one or more fields of a payload are invalid."""

    def __init__(self, field_errors: List[FieldError]):
        super().__init__("Validation failed")
        self.field_errors = list(field_errors)

    @classmethod
    def duplicate_field(cls, field: str, value) -> "ValidationFailed":
        return cls([
            FieldError(
                field=field,
                message=f"{field} '{value}' already exists",
                code="DUPLICATE_FIELD",
            )
        ])

    @classmethod
    def invalid_field(cls, field: str, message: str) -> "ValidationFailed":
        return cls([FieldError(field=field, message=message, code="INVALID_FIELD")])

    def to_response(self) -> dict:
        return {
            "message": "Validation failed",
            "field_errors": [e.dict() for e in self.field_errors],
        }
