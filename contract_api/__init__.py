"""
contract_api: contract-driven remote calls.

A static map of named endpoints (method, path template, optional validators)
is turned into a client whose ``call`` validates inputs, performs the request,
validates the returned dto, and whose ``safe_call`` turns every failure into a
tagged ErrorVariant.
"""

from contract_api.clients.cancellation import CancellationToken, RequestAborted
from contract_api.clients.http_executor import HttpExecutor
from contract_api.contracts.errors import (
    AbortedError,
    ClientExceptionError,
    ConfigurationIssueError,
    ContractDefinitionError,
    ContractError,
    ErrorVariant,
    NoInternetError,
    NoServerResponseError,
    NormalizedError,
    UnknownEndpointError,
    UnsupportedServerResponseError,
    ValidationException,
    ValidationFailedError,
    ValidationIssue,
)
from contract_api.contracts.registry import ContractRegistry, EndpointDescriptor, EndpointSchemas, build_registry
from contract_api.core import ContractApi, create_api
from contract_api.error_handler import ErrorNormalizer, normalize_error
from contract_api.utils.config_loader import ClientConfig, load_client_config
from contract_api.utils.paths import interpolate, placeholders
from contract_api.validation.checks import SchemaValidator, check, check_async
from contract_api.validation.pydantic_adapter import pydantic_check

__all__ = [
    "AbortedError",
    "CancellationToken",
    "ClientConfig",
    "ClientExceptionError",
    "ConfigurationIssueError",
    "ContractApi",
    "ContractDefinitionError",
    "ContractError",
    "ContractRegistry",
    "EndpointDescriptor",
    "EndpointSchemas",
    "ErrorNormalizer",
    "ErrorVariant",
    "HttpExecutor",
    "NoInternetError",
    "NoServerResponseError",
    "NormalizedError",
    "RequestAborted",
    "SchemaValidator",
    "UnknownEndpointError",
    "UnsupportedServerResponseError",
    "ValidationException",
    "ValidationFailedError",
    "ValidationIssue",
    "build_registry",
    "check",
    "check_async",
    "create_api",
    "interpolate",
    "load_client_config",
    "normalize_error",
    "placeholders",
    "pydantic_check",
]
