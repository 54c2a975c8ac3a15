"""
Coercion of caller input into the explicit field records.

Request handlers normally hand over already-validated schema instances.
Plain mappings are accepted too and validated here, so malformed input
that slips past the handler surfaces as a ValidationError instead of a
store exception.
"""

from collections.abc import Mapping
from typing import Any, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from app.exceptions import ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


def coerce(model: type[ModelT], data: ModelT | BaseModel | Mapping[str, Any] | None) -> ModelT:
    if isinstance(data, model):
        return data
    if data is None:
        raise ValidationError(f"{model.__name__} data is required")
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    try:
        return model.model_validate(dict(data))
    except PydanticValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "message": err["msg"]}
            for err in exc.errors()
        ]
        first = errors[0]
        raise ValidationError(
            f"Invalid {model.__name__}: {first['message']}",
            field=first["field"] or None,
            details={"errors": errors},
        ) from exc
    except TypeError as exc:
        raise ValidationError(f"{model.__name__} data must be a mapping") from exc
