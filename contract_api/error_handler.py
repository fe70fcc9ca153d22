"""Error normalization for the contract call engine."""

from __future__ import annotations

import asyncio
import logging
import socket
from typing import Any, Callable, Dict, Optional

import httpx

from contract_api.clients.cancellation import RequestAborted
from contract_api.contracts.errors import (
    AbortedError,
    ClientExceptionError,
    ConfigurationIssueError,
    ContractError,
    ErrorVariant,
    NoInternetError,
    NoServerResponseError,
    UnsupportedResponseMeta,
    UnsupportedServerResponseError,
    ValidationErrorMeta,
    ValidationException,
    ValidationFailedError,
    ValidationIssueModel,
)

logger = logging.getLogger(__name__)

_SETUP_ERRORS = (httpx.InvalidURL, httpx.UnsupportedProtocol, httpx.LocalProtocolError)


def name_resolution_failed(error: BaseException) -> bool:
    """True when a DNS lookup failure sits anywhere in the exception chain."""
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        if isinstance(current, socket.gaierror):
            return True
        seen.add(id(current))
        current = current.__cause__ or current.__context__
    return False


class ErrorNormalizer:
    """
    Classify any failure of a call into exactly one ErrorVariant.

    Precedence: cancellation, local validation, httpx errors (server
    response, no response, request setup), everything else.
    """

    def __init__(self, is_online: Optional[Callable[[], bool]] = None) -> None:
        self._is_online = is_online

    def normalize(self, error: BaseException) -> ErrorVariant:
        if isinstance(error, (RequestAborted, asyncio.CancelledError)):
            return AbortedError(raw_error=error)

        if isinstance(error, ValidationException):
            issues = [ValidationIssueModel(path=list(issue.path), message=issue.message) for issue in error.issues]
            return ValidationFailedError(meta=ValidationErrorMeta(issues=issues), raw_error=error)

        if isinstance(error, httpx.HTTPStatusError):
            return self._from_response(error)

        if isinstance(error, _SETUP_ERRORS) or (isinstance(error, httpx.HTTPError) and not _has_request(error)):
            return ConfigurationIssueError(raw_error=error)

        if isinstance(error, httpx.RequestError):
            if self._offline(error):
                return NoInternetError(raw_error=error)
            return NoServerResponseError(raw_error=error)

        logger.debug("Unclassified call failure: %r", error)
        return ClientExceptionError(raw_error=error)

    __call__ = normalize

    def _offline(self, error: BaseException) -> bool:
        if self._is_online is not None:
            try:
                return not self._is_online()
            except Exception:
                logger.warning("Connectivity probe failed; assuming online", exc_info=True)
                return False
        return name_resolution_failed(error)

    @staticmethod
    def _from_response(error: httpx.HTTPStatusError) -> ErrorVariant:
        response = error.response
        body = _response_body(response)

        if isinstance(body, dict) and isinstance(body.get("message"), str):
            error_type = body.get("type")
            if not isinstance(error_type, str) or not error_type:
                error_type = response.reason_phrase or f"http_{response.status_code}"
            meta = body.get("meta")
            return ContractError(
                type=error_type,
                status=response.status_code,
                message=body["message"],
                meta=meta if isinstance(meta, dict) else None,
                raw_error=error,
            )

        return UnsupportedServerResponseError(
            meta=UnsupportedResponseMeta(
                original_status=response.status_code,
                original_response=body if body is not None else _response_text(response),
            ),
            raw_error=error,
        )


def _has_request(error: httpx.HTTPError) -> bool:
    try:
        error.request
    except RuntimeError:
        return False
    return True


def _response_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except (ValueError, httpx.ResponseNotRead):
        return None


def _response_text(response: httpx.Response) -> Optional[str]:
    try:
        return response.text
    except httpx.ResponseNotRead:
        return None


def normalize_error(error: BaseException, is_online: Optional[Callable[[], bool]] = None) -> ErrorVariant:
    return ErrorNormalizer(is_online=is_online).normalize(error)


def describe(variant: ErrorVariant) -> Dict[str, Any]:
    """Loggable form of a normalized error, with the raw exception rendered as text."""
    data = variant.to_dict()
    if variant.raw_error is not None:
        data["raw_error"] = repr(variant.raw_error)
    return data
