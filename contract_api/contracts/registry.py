"""
Contract registry.

Turns the static registration map

    {
        "get_user": {
            "method": "GET",
            "path": "/users/:id",
            "schemas": {"path_params": ..., "dto": ..., "error": ...},
        },
        "search": {"resolver": search_resolver, "schemas": {...}},
    }

into immutable EndpointDescriptor objects. Every structural check happens
here, before any call is made.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Literal, Mapping, Optional, Tuple

from contract_api.contracts.errors import ContractDefinitionError, UnknownEndpointError
from contract_api.utils.paths import placeholders
from contract_api.validation.checks import raw_schema_of
from contract_api.validation.pydantic_adapter import model_field_names

logger = logging.getLogger(__name__)

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE"]

HTTP_METHODS: Tuple[str, ...] = ("GET", "POST", "PUT", "PATCH", "DELETE")

# Order in which the input slots are validated before the network call
INPUT_SLOTS: Tuple[str, ...] = ("path_params", "search_params", "payload", "extra")
SCHEMA_SLOTS: Tuple[str, ...] = ("payload", "dto", "error", "path_params", "search_params", "extra")

_ENTRY_KEYS = frozenset({"method", "path", "schemas", "resolver", "path_params"})


@dataclass(frozen=True)
class EndpointSchemas:
    payload: Optional[Callable[[Any], Any]] = None
    dto: Optional[Callable[[Any], Any]] = None
    error: Optional[Callable[[Any], Any]] = None
    path_params: Optional[Callable[[Any], Any]] = None
    search_params: Optional[Callable[[Any], Any]] = None
    extra: Optional[Callable[[Any], Any]] = None

    def supplied(self) -> Dict[str, Callable[[Any], Any]]:
        """Only the slots that have a validator, in declaration order."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}

    def get(self, slot: str) -> Optional[Callable[[Any], Any]]:
        return getattr(self, slot, None)


@dataclass(frozen=True)
class EndpointDescriptor:
    name: str
    method: Optional[HttpMethod] = None
    path: Optional[str] = None
    schemas: EndpointSchemas = field(default_factory=EndpointSchemas)
    resolver: Optional[Callable[..., Any]] = None
    path_param_keys: Optional[Tuple[str, ...]] = None

    @property
    def is_declarative(self) -> bool:
        return self.resolver is None

    @property
    def placeholders(self) -> Tuple[str, ...]:
        return placeholders(self.path or "")


def build_descriptor(name: str, entry: Any) -> EndpointDescriptor:
    if isinstance(entry, EndpointDescriptor):
        descriptor = entry if entry.name == name else _replace_name(entry, name)
        _check_descriptor(descriptor)
        return descriptor

    if not isinstance(entry, Mapping):
        raise ContractDefinitionError(f"Endpoint '{name}' must be a mapping, got {type(entry).__name__}")

    unknown = set(entry.keys()) - _ENTRY_KEYS
    if unknown:
        raise ContractDefinitionError(f"Endpoint '{name}' has unknown keys: {', '.join(sorted(unknown))}")

    method = entry.get("method")
    if method is not None:
        if not isinstance(method, str) or method.upper() not in HTTP_METHODS:
            raise ContractDefinitionError(
                f"Endpoint '{name}' has unsupported method {method!r}; expected one of {', '.join(HTTP_METHODS)}"
            )
        method = method.upper()

    schemas = _build_schemas(name, entry.get("schemas"))
    declared_keys = _declared_path_param_keys(name, entry.get("path_params"), schemas)

    descriptor = EndpointDescriptor(
        name=name,
        method=method,
        path=entry.get("path"),
        schemas=schemas,
        resolver=entry.get("resolver"),
        path_param_keys=declared_keys,
    )
    _check_descriptor(descriptor)
    return descriptor


def _replace_name(descriptor: EndpointDescriptor, name: str) -> EndpointDescriptor:
    return EndpointDescriptor(
        name=name,
        method=descriptor.method,
        path=descriptor.path,
        schemas=descriptor.schemas,
        resolver=descriptor.resolver,
        path_param_keys=descriptor.path_param_keys,
    )


def _build_schemas(name: str, raw: Any) -> EndpointSchemas:
    if raw is None:
        return EndpointSchemas()
    if isinstance(raw, EndpointSchemas):
        return raw
    if not isinstance(raw, Mapping):
        raise ContractDefinitionError(f"Endpoint '{name}': schemas must be a mapping")

    unknown = set(raw.keys()) - set(SCHEMA_SLOTS)
    if unknown:
        raise ContractDefinitionError(f"Endpoint '{name}': unknown schema slots {', '.join(sorted(unknown))}")

    for slot, validator in raw.items():
        if validator is not None and not callable(validator):
            raise ContractDefinitionError(f"Endpoint '{name}': validator for '{slot}' is not callable")

    return EndpointSchemas(**{slot: raw.get(slot) for slot in SCHEMA_SLOTS})


def _declared_path_param_keys(name: str, explicit: Any, schemas: EndpointSchemas) -> Optional[Tuple[str, ...]]:
    """None when the contract does not declare its path parameters at all."""
    if explicit is not None:
        if isinstance(explicit, str) or not all(isinstance(k, str) for k in explicit):
            raise ContractDefinitionError(f"Endpoint '{name}': path_params must be a list of names")
        return tuple(explicit)

    field_names = model_field_names(raw_schema_of(schemas.path_params))
    return tuple(field_names) if field_names is not None else None


def _check_descriptor(descriptor: EndpointDescriptor) -> None:
    name = descriptor.name
    if descriptor.resolver is not None:
        if not callable(descriptor.resolver):
            raise ContractDefinitionError(f"Endpoint '{name}': resolver is not callable")
    elif descriptor.method is None or descriptor.path is None:
        raise ContractDefinitionError(f"Endpoint '{name}' needs either a resolver or both method and path")

    if descriptor.method is not None and descriptor.method not in HTTP_METHODS:
        raise ContractDefinitionError(f"Endpoint '{name}' has unsupported method {descriptor.method!r}")

    if descriptor.path is None:
        return

    if not isinstance(descriptor.path, str) or not descriptor.path.startswith("/"):
        raise ContractDefinitionError(f'Path "{descriptor.path}" must start with a \'/\'.')

    if descriptor.path_param_keys is None:
        return
    found = set(descriptor.placeholders)
    declared = set(descriptor.path_param_keys)
    if found - declared:
        raise ContractDefinitionError(f'Path "{descriptor.path}" has parameters not defined in contract.')
    if declared - found:
        raise ContractDefinitionError(f'Path "{descriptor.path}" is missing parameters from contract.')


class ContractRegistry:
    """Read-only, ordered map of endpoint name to EndpointDescriptor."""

    def __init__(self, contracts: Mapping[str, Any]) -> None:
        if not isinstance(contracts, Mapping):
            raise ContractDefinitionError("contracts must be a mapping of endpoint name to descriptor")
        built: Dict[str, EndpointDescriptor] = {}
        for name, entry in contracts.items():
            if not isinstance(name, str) or not name:
                raise ContractDefinitionError(f"Endpoint names must be non-empty strings, got {name!r}")
            built[name] = build_descriptor(name, entry)
        self._descriptors = MappingProxyType(built)
        logger.debug("Registered %d endpoint(s): %s", len(built), ", ".join(built))

    def get(self, name: str) -> EndpointDescriptor:
        try:
            return self._descriptors[name]
        except KeyError:
            raise UnknownEndpointError(name) from None

    def names(self) -> Tuple[str, ...]:
        return tuple(self._descriptors)

    @property
    def descriptors(self) -> Mapping[str, EndpointDescriptor]:
        return self._descriptors

    def __contains__(self, name: object) -> bool:
        return name in self._descriptors

    def __iter__(self) -> Iterator[str]:
        return iter(self._descriptors)

    def __len__(self) -> int:
        return len(self._descriptors)


def build_registry(contracts: Mapping[str, Any]) -> ContractRegistry:
    if isinstance(contracts, ContractRegistry):
        return contracts
    return ContractRegistry(contracts)
