from typing import List

from fastapi import status
from fastapi.responses import JSONResponse


class RequiredFieldError(ValueError):
    """A PATCH body set a NOT NULL column to null."""

    def __init__(self, fields: List[str]):
        self.fields = fields
        super().__init__(f"{', '.join(fields)} cannot be null")


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST) -> JSONResponse:
    return JSONResponse(content={"error": message}, status_code=status_code)


def not_found(what: str) -> JSONResponse:
    return error_response(f"{what} not found", status_code=status.HTTP_404_NOT_FOUND)


def update_values(model, payload) -> dict:
    """The fields a PATCH body actually set, refusing nulls for required columns."""
    values = payload.model_dump(exclude_unset=True)
    columns = model.__table__.columns
    nulls = sorted(
        key for key, value in values.items()
        if value is None and key in columns and not columns[key].nullable
    )
    if nulls:
        raise RequiredFieldError(nulls)
    return values


def apply_updates(obj, payload) -> dict:
    """Copy the fields a PATCH body actually set onto ``obj``."""
    values = update_values(type(obj), payload)
    for key, value in values.items():
        setattr(obj, key, value)
    return values
