"""
Contract API engine.

ContractApi dispatches calls to the endpoints of a contract map:

    api = create_api(
        {
            "get_user": {
                "method": "GET",
                "path": "/users/:id",
                "schemas": {"path_params": pydantic_check(UserId), "dto": pydantic_check(User)},
            },
        },
        config=ClientConfig(base_url="https://api.example.com"),
    )

    user = await api.call("get_user", {"path_params": {"id": 7}})
    ok, result = await api.safe_call("get_user", {"path_params": {"id": 7}})

Lifecycle of one call:
- input slots are validated in order: path_params, search_params, payload, extra
- on_call subscribers are notified
- the request is executed (HTTP executor or the endpoint's resolver), under
  the caller's cancellation token when one is given
- the returned body is validated by the dto validator and returned
- on_ok / on_fail subscribers are notified with the outcome

``call`` re-raises the original exception; ``safe_call`` never raises for a
failed call and returns ``(False, ErrorVariant)`` instead.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple, Union

from contract_api.clients.cancellation import CancellationToken
from contract_api.clients.http_executor import HttpExecutor
from contract_api.contracts.errors import ErrorVariant, ValidationException, ValidationIssue
from contract_api.contracts.registry import INPUT_SLOTS, ContractRegistry, EndpointDescriptor, build_registry
from contract_api.error_handler import ErrorNormalizer, describe
from contract_api.utils.config_loader import ClientConfig
from contract_api.utils.events import Callback, EventSubscriptionManager
from contract_api.utils.paths import interpolate
from contract_api.validation.checks import exposes_raw_schema, raw_schema_of, run_validator

logger = logging.getLogger(__name__)

CallInput = Mapping[str, Any]
SafeCallResult = Tuple[bool, Union[Any, ErrorVariant]]


class ContractApi:
    def __init__(
        self,
        contracts: Union[Mapping[str, Any], ContractRegistry],
        config: Optional[Union[ClientConfig, Mapping[str, Any]]] = None,
        executor: Optional[HttpExecutor] = None,
        normalizer: Optional[ErrorNormalizer] = None,
    ) -> None:
        self._registry = build_registry(contracts)
        self._config = config
        self._executor = executor
        self._normalizer = normalizer or ErrorNormalizer()

        self._on_call = EventSubscriptionManager("on_call")
        self._on_ok = EventSubscriptionManager("on_ok")
        self._on_fail = EventSubscriptionManager("on_fail")

    @property
    def registry(self) -> ContractRegistry:
        return self._registry

    @property
    def config(self) -> Optional[Union[ClientConfig, Mapping[str, Any]]]:
        return self._config

    @property
    def executor(self) -> HttpExecutor:
        if self._executor is None:
            self._executor = HttpExecutor(_client_config(self._config))
        return self._executor

    # -- Hooks ----------------------------------------------------------------

    def on_call(self, endpoint: str, callback: Callback) -> Callable[[], None]:
        """Observe the input of every call to ``endpoint`` before the request is sent."""
        self._registry.get(endpoint)
        return self._on_call.subscribe(endpoint, callback)

    def on_ok(self, endpoint: str, callback: Callback) -> Callable[[], None]:
        self._registry.get(endpoint)
        return self._on_ok.subscribe(endpoint, callback)

    def on_fail(self, endpoint: str, callback: Callback) -> Callable[[], None]:
        self._registry.get(endpoint)
        return self._on_fail.subscribe(endpoint, callback)

    # -- Calling --------------------------------------------------------------

    async def call(
        self,
        endpoint: str,
        call_input: Optional[CallInput] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Any:
        descriptor = self._registry.get(endpoint)
        return await self._run(descriptor, call_input, cancel_token)

    async def safe_call(
        self,
        endpoint: str,
        call_input: Optional[CallInput] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> SafeCallResult:
        descriptor = self._registry.get(endpoint)
        try:
            return True, await self._run(descriptor, call_input, cancel_token)
        except Exception as exc:
            error = self._normalizer.normalize(exc)
            logger.debug("Call to '%s' failed: %s", endpoint, describe(error))
            return False, error

    def normalize_error(self, error: BaseException) -> ErrorVariant:
        return self._normalizer.normalize(error)

    async def _run(
        self,
        descriptor: EndpointDescriptor,
        call_input: Optional[CallInput],
        cancel_token: Optional[CancellationToken],
    ) -> Any:
        name = descriptor.name
        final_input: Dict[str, Any] = {}
        try:
            final_input.update(_collect_input(descriptor, call_input))
            if self._config is not None:
                final_input["config"] = self._config

            await self._validate_inputs(descriptor, final_input)
            await self._on_call.emit(name, final_input)

            work = self._execute(descriptor, final_input)
            if cancel_token is not None:
                raw = await cancel_token.guard(work)
            else:
                raw = await work

            dto = await self._validate_slot(descriptor, "dto", raw)
            await self._on_ok.emit(name, {**final_input, "dto": dto})
            return dto
        except Exception as exc:
            await self._on_fail.emit(name, {**final_input, "error": exc})
            raise

    async def _validate_inputs(self, descriptor: EndpointDescriptor, final_input: Dict[str, Any]) -> None:
        for slot in INPUT_SLOTS:
            if slot == "path_params" and descriptor.is_declarative:
                _check_path_param_keys(descriptor, final_input.get("path_params"))
            if slot in final_input:
                await self._validate_slot(descriptor, slot, final_input[slot])

    async def _validate_slot(self, descriptor: EndpointDescriptor, slot: str, data: Any) -> Any:
        validator = descriptor.schemas.get(slot)
        if validator is None:
            return data
        try:
            return await run_validator(validator, data)
        except ValidationException:
            logger.warning("Validation of %s %s failed", descriptor.name, slot)
            raise

    async def _execute(self, descriptor: EndpointDescriptor, final_input: Dict[str, Any]) -> Any:
        if descriptor.resolver is not None:
            logger.debug("Resolving '%s'", descriptor.name)
            result = descriptor.resolver(final_input)
            if inspect.isawaitable(result):
                result = await result
            return result

        path = interpolate(descriptor.path, final_input.get("path_params"))
        logger.debug("Calling '%s': %s %s", descriptor.name, descriptor.method, path)
        return await self.executor.execute(
            descriptor.method,
            path,
            search_params=final_input.get("search_params"),
            payload=final_input.get("payload"),
            send_payload="payload" in final_input,
        )

    # -- Slot helpers ---------------------------------------------------------

    async def dto(self, endpoint: str, value: Any) -> Any:
        return await self._validate_slot(self._registry.get(endpoint), "dto", value)

    async def error(self, endpoint: str, value: Any) -> Any:
        """Validate an error value against the endpoint's declared error shape."""
        return await self._validate_slot(self._registry.get(endpoint), "error", value)

    async def path_params(self, endpoint: str, value: Any) -> Any:
        return await self._validate_slot(self._registry.get(endpoint), "path_params", value)

    async def search_params(self, endpoint: str, value: Any) -> Any:
        return await self._validate_slot(self._registry.get(endpoint), "search_params", value)

    async def payload(self, endpoint: str, value: Any) -> Any:
        return await self._validate_slot(self._registry.get(endpoint), "payload", value)

    async def extra(self, endpoint: str, value: Any) -> Any:
        return await self._validate_slot(self._registry.get(endpoint), "extra", value)

    # -- Introspection --------------------------------------------------------

    def get_schema(self, endpoint: str) -> Optional[Dict[str, Callable[[Any], Any]]]:
        supplied = self._registry.get(endpoint).schemas.supplied()
        return supplied or None

    def get_raw_schema(self, endpoint: str) -> Optional[Dict[str, Any]]:
        supplied = self._registry.get(endpoint).schemas.supplied()
        raw = {slot: raw_schema_of(validator) for slot, validator in supplied.items() if exposes_raw_schema(validator)}
        return raw or None


def _collect_input(descriptor: EndpointDescriptor, call_input: Optional[CallInput]) -> Dict[str, Any]:
    if call_input is None:
        return {}
    if not isinstance(call_input, Mapping):
        raise ValidationException.single((), f"Input for '{descriptor.name}' must be a mapping")

    unknown = [key for key in call_input if key not in INPUT_SLOTS]
    if unknown:
        raise ValidationException(
            [ValidationIssue(path=(str(key),), message=f"Unknown input slot for '{descriptor.name}'") for key in unknown]
        )
    return {slot: call_input[slot] for slot in INPUT_SLOTS if slot in call_input}


def _check_path_param_keys(descriptor: EndpointDescriptor, path_params: Any) -> None:
    expected = set(descriptor.placeholders)
    if path_params is None:
        supplied = set()
    elif isinstance(path_params, Mapping):
        supplied = set(path_params)
    else:
        raise ValidationException.single(("path_params",), "Expected a mapping of path parameters")

    issues = [
        ValidationIssue(path=("path_params", key), message="Missing path parameter")
        for key in descriptor.placeholders
        if key not in supplied
    ]
    issues.extend(
        ValidationIssue(path=("path_params", str(key)), message=f"Not a parameter of path '{descriptor.path}'")
        for key in sorted(supplied - expected, key=str)
    )
    if issues:
        raise ValidationException(issues)


def _client_config(config: Optional[Union[ClientConfig, Mapping[str, Any]]]) -> ClientConfig:
    if config is None:
        return ClientConfig()
    if isinstance(config, ClientConfig):
        return config
    return ClientConfig.model_validate(dict(config))


def create_api(
    contracts: Union[Mapping[str, Any], ContractRegistry],
    config: Optional[Union[ClientConfig, Mapping[str, Any]]] = None,
    executor: Optional[HttpExecutor] = None,
    normalizer: Optional[ErrorNormalizer] = None,
) -> ContractApi:
    return ContractApi(contracts, config=config, executor=executor, normalizer=normalizer)
