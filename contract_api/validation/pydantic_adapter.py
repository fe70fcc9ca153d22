"""
pydantic adapter for the schema slots.

``pydantic_check(Model)`` turns any type pydantic can validate (BaseModel
subclasses, TypedDicts, ``List[int]``, ...) into a SchemaValidator. The
original type is attached as the raw schema, and pydantic's error list is
flattened into ValidationIssue entries.
"""

from __future__ import annotations

from typing import Any, List, Optional, Type

from pydantic import BaseModel, TypeAdapter, ValidationError

from contract_api.contracts.errors import ValidationException, ValidationIssue
from contract_api.validation.checks import SchemaValidator, check


def issues_from_pydantic(exc: ValidationError) -> List[ValidationIssue]:
    return [
        ValidationIssue(path=tuple(error.get("loc", ())), message=str(error.get("msg", "Invalid value")))
        for error in exc.errors()
    ]


def pydantic_check(schema: Any, *, strict: Optional[bool] = None) -> SchemaValidator:
    adapter = TypeAdapter(schema)

    def _validate(data: Any) -> Any:
        try:
            return adapter.validate_python(data, strict=strict)
        except ValidationError as exc:
            raise ValidationException(issues_from_pydantic(exc)) from exc

    _validate.__name__ = f"pydantic_check[{getattr(schema, '__name__', repr(schema))}]"
    return check(_validate, schema)


def model_field_names(schema: Any) -> Optional[List[str]]:
    """Field names of a pydantic model, or None for any other schema."""
    if isinstance(schema, type) and issubclass(schema, BaseModel):
        model: Type[BaseModel] = schema
        return [field.alias or name for name, field in model.model_fields.items()]
    return None
