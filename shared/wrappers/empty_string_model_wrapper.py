from datetime import date, datetime
import re
from pydantic import BaseModel, model_validator
from typing import Any, List, Union, get_args, get_origin

INVISIBLE_CHARS_PATTERN = re.compile(
    r'[\u200e\u200f\u202a-\u202e\u2066-\u2069\ufeff]')


def deep_clean(value: Any):
    """Recursively convert empty strings to None and strip invisible characters."""

    if isinstance(value, BaseModel):
        data = value.model_dump()
        cleaned = deep_clean(data)
        return type(value)(**cleaned)

    if isinstance(value, dict):
        return {k: deep_clean(v) for k, v in value.items()}

    if isinstance(value, list):
        return [deep_clean(v) for v in value]

    if isinstance(value, str):
        cleaned = INVISIBLE_CHARS_PATTERN.sub("", value).strip()
        return None if cleaned == "" else cleaned

    return value


def safe_parse_date(value: Any):
    """Convert date strings to date/datetime, return None if invalid."""
    if value is None or value == "":
        return None

    if isinstance(value, (date, datetime)):
        return value

    try:
        return datetime.fromisoformat(value).date()
    except (TypeError, ValueError):
        return None


def _is_date_annotation(annotation) -> bool:
    origin = get_origin(annotation)
    args = get_args(annotation)
    return (
        annotation in (date, datetime)
        or (origin is Union and any(a in (date, datetime) for a in args))
    )


class EmptyStringModel(BaseModel):
    model_config = {
        "populate_by_name": True,
        "from_attributes": True,
    }

    # STEP 1: Pre-clean input
    @model_validator(mode="before")
    @classmethod
    def clean_input(cls, values):
        if isinstance(values, dict):
            return deep_clean(values)
        return values

    # STEP 2: Convert invalid date strings into None
    @model_validator(mode="before")
    @classmethod
    def fix_dates(cls, values):
        if not isinstance(values, dict):
            return values

        for field_name, field in cls.model_fields.items():
            if field_name in values and _is_date_annotation(field.annotation):
                values[field_name] = safe_parse_date(values[field_name])

        return values

    # STEP 3: After validation, None → UI friendly defaults (dates stay None)
    @model_validator(mode="after")
    def finalize_nulls(self):
        for field_name, field in type(self).model_fields.items():
            if getattr(self, field_name) is not None:
                continue

            annotation = field.annotation
            origin = get_origin(annotation)
            args = get_args(annotation)

            if origin in (list, List) or annotation in (list, List) or (
                    origin is Union and any(get_origin(a) in (list, List) for a in args)):
                object.__setattr__(self, field_name, [])
                continue

            if annotation == str or (origin is Union and any(a == str for a in args)):
                object.__setattr__(self, field_name, "")

        return self
