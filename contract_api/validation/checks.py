"""
Schema adapter primitives.

A validator is any callable ``validate(data) -> value`` that raises
ValidationException when ``data`` is not acceptable. ``check`` and
``check_async`` wrap such callables into SchemaValidator objects which can
also carry the underlying schema object (a pydantic model, a JSON schema
dict, ...) so external tooling can reuse it through ``get_raw_schema``.
"""

from __future__ import annotations

import inspect
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

T = TypeVar("T")

_NO_RAW_SCHEMA = object()


class SchemaValidator(Generic[T]):
    def __init__(self, validator: Callable[[Any], Any], raw_schema: Any = _NO_RAW_SCHEMA, is_async: bool = False) -> None:
        if not callable(validator):
            raise TypeError("validator must be callable")
        self._validator = validator
        self._raw_schema = raw_schema
        self.is_async = is_async

    def __call__(self, data: Any) -> Any:
        return self._validator(data)

    @property
    def has_raw_schema(self) -> bool:
        return self._raw_schema is not _NO_RAW_SCHEMA

    @property
    def raw_schema(self) -> Any:
        if self._raw_schema is _NO_RAW_SCHEMA:
            return None
        return self._raw_schema

    def __repr__(self) -> str:
        name = getattr(self._validator, "__name__", type(self._validator).__name__)
        return f"SchemaValidator({name}, async={self.is_async}, raw_schema={self.has_raw_schema})"


def check(validator: Callable[[Any], T], raw_schema: Any = _NO_RAW_SCHEMA) -> SchemaValidator[T]:
    """
    Build a synchronous validator.

    Args:
        validator: Returns the validated value or raises ValidationException
        raw_schema: Optional schema object exposed through get_raw_schema()
    """
    return SchemaValidator(validator, raw_schema=raw_schema)


def check_async(validator: Callable[[Any], Awaitable[T]], raw_schema: Any = _NO_RAW_SCHEMA) -> SchemaValidator[T]:
    """Same as ``check`` for validators that must be awaited."""
    return SchemaValidator(validator, raw_schema=raw_schema, is_async=True)


def raw_schema_of(validator: Any) -> Optional[Any]:
    if isinstance(validator, SchemaValidator) and validator.has_raw_schema:
        return validator.raw_schema
    return None


def exposes_raw_schema(validator: Any) -> bool:
    return isinstance(validator, SchemaValidator) and validator.has_raw_schema


async def run_validator(validator: Callable[[Any], Any], data: Any) -> Any:
    result = validator(data)
    if inspect.isawaitable(result):
        result = await result
    return result
