"""
Error shapes shared by the whole call engine.

Two kinds of values live here:
- exceptions raised while a call is in progress (validation, registry misuse)
- ErrorVariant models: the normalized, tagged error values handed to callers
  of ``safe_call``

Negative statuses are reserved for failures that originate on the client or
in the transport; non-negative statuses are HTTP statuses reported by a server.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Literal, Optional, Sequence, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class ContractDefinitionError(ValueError):
    """Raised when a contract map cannot be registered."""


class UnknownEndpointError(KeyError):
    def __init__(self, endpoint: str) -> None:
        super().__init__(endpoint)
        self.endpoint = endpoint

    def __str__(self) -> str:
        return f"Unknown endpoint '{self.endpoint}'"


@dataclass(frozen=True)
class ValidationIssue:
    path: Tuple[Union[str, int], ...]
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"path": list(self.path), "message": self.message}


class ValidationException(Exception):
    def __init__(self, issues: Sequence[ValidationIssue]) -> None:
        super().__init__("Validation exception")
        self.issues: List[ValidationIssue] = list(issues)

    @classmethod
    def single(cls, path: Sequence[Union[str, int]], message: str) -> "ValidationException":
        return cls([ValidationIssue(path=tuple(path), message=message)])

    def __str__(self) -> str:
        details = "; ".join(
            f"{'.'.join(str(p) for p in issue.path) or '<root>'}: {issue.message}" for issue in self.issues
        )
        return f"Validation exception ({details})" if details else "Validation exception"


# ---------------------------------------------------------------------------
# Normalized error variants
# ---------------------------------------------------------------------------

class ErrorVariant(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: str
    status: int
    message: str
    raw_error: Any = Field(default=None, exclude=True, repr=False)

    def to_dict(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class ContractError(ErrorVariant):
    """Business error declared by the contract and reported by the server."""

    meta: Optional[Dict[str, Any]] = None


class AbortedError(ErrorVariant):
    type: Literal["aborted"] = "aborted"
    status: Literal[0] = 0
    message: str = "Request aborted"


class ClientExceptionError(ErrorVariant):
    type: Literal["client_exception"] = "client_exception"
    status: Literal[-1] = -1
    message: str = "Client exception"


class NoInternetError(ErrorVariant):
    type: Literal["no_internet"] = "no_internet"
    status: Literal[-2] = -2
    message: str = "No internet connection"


class NoServerResponseError(ErrorVariant):
    type: Literal["no_server_response"] = "no_server_response"
    status: Literal[-3] = -3
    message: str = "No server response"


class ConfigurationIssueError(ErrorVariant):
    type: Literal["configuration_issue"] = "configuration_issue"
    status: Literal[-4] = -4
    message: str = "Error setting up the request"


class UnsupportedResponseMeta(BaseModel):
    original_status: int
    original_response: Any = None


class UnsupportedServerResponseError(ErrorVariant):
    type: Literal["unsupported_server_response"] = "unsupported_server_response"
    status: Literal[-5] = -5
    message: str = "The server's error response format is unsupported."
    meta: UnsupportedResponseMeta


class ValidationIssueModel(BaseModel):
    path: List[Union[str, int]]
    message: str


class ValidationErrorMeta(BaseModel):
    issues: List[ValidationIssueModel] = Field(default_factory=list)


class ValidationFailedError(ErrorVariant):
    type: Literal["validation_error"] = "validation_error"
    status: Literal[-6] = -6
    message: str = "Validation failed"
    meta: ValidationErrorMeta


TransportError = Union[
    AbortedError,
    ClientExceptionError,
    NoInternetError,
    NoServerResponseError,
    ConfigurationIssueError,
    UnsupportedServerResponseError,
    ValidationFailedError,
]

NormalizedError = Union[ContractError, TransportError]
