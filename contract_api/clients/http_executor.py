"""
HTTP request executor.

Purpose:
- Performs the network call for declarative (method + path) endpoints
- Applies the client configuration: base URL, default headers, timeout

Implementation notes:
- Uses httpx.AsyncClient; a client can be injected (shared connection pool,
  tests) otherwise one is opened per call
- Non-2xx responses raise httpx.HTTPStatusError so the error normalizer can
  read the server's error body
- Cancellation is handled one level up: the engine runs ``execute`` inside a
  CancellationToken guard, which cancels the task and with it the request
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

import httpx
from pydantic import BaseModel

from contract_api.utils.config_loader import ClientConfig

logger = logging.getLogger(__name__)

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})


class HttpExecutor:
    def __init__(
        self,
        config: Optional[ClientConfig] = None,
        client: Optional[httpx.AsyncClient] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.config = config or ClientConfig()
        self._client = client
        self._transport = transport

    def _build_client(self) -> httpx.AsyncClient:
        kwargs: Dict[str, Any] = {
            "base_url": self.config.base_url,
            "headers": self.config.request_headers(),
            "timeout": self.config.timeout_seconds,
            "follow_redirects": self.config.follow_redirects,
        }
        if self._transport is not None:
            kwargs["transport"] = self._transport
        return httpx.AsyncClient(**kwargs)

    async def execute(
        self,
        method: str,
        path: str,
        search_params: Optional[Mapping[str, Any]] = None,
        payload: Any = None,
        send_payload: bool = False,
    ) -> Any:
        """
        Send one request and return the decoded response body.

        ``payload`` is sent as JSON only for POST/PUT/PATCH and only when
        ``send_payload`` is set; a ``None`` payload sends no body.
        """
        method = method.upper()
        request_kwargs: Dict[str, Any] = {}
        params = _clean_params(search_params)
        if params:
            request_kwargs["params"] = params
        if send_payload and method in BODY_METHODS:
            request_kwargs["json"] = _jsonable(payload)

        logger.debug("Sending %s %s", method, path)
        if self._client is not None:
            response = await self._client.request(method, path, **request_kwargs)
            return self._read(response)

        async with self._build_client() as client:
            response = await client.request(method, path, **request_kwargs)
            return self._read(response)

    @staticmethod
    def _read(response: httpx.Response) -> Any:
        logger.debug("Received %s for %s %s", response.status_code, response.request.method, response.request.url)
        response.raise_for_status()
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return response.text


def _jsonable(value: Any) -> Any:
    if isinstance(value, BaseModel):
        return value.model_dump(mode="json", by_alias=True)
    return value


def _clean_params(search_params: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    if not search_params:
        return {}
    search_params = _jsonable(search_params)
    cleaned: Dict[str, Any] = {}
    for key, value in search_params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            value = "true" if value else "false"
        cleaned[str(key)] = value
    return cleaned
