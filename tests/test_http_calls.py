"""Tests for declarative (method + path) endpoints executed over httpx."""

import json

import httpx
import pytest

from contract_api import ClientConfig, ContractApi, ContractError, HttpExecutor, ValidationException

from contract_fixtures import RecordingTransport, User, user_contracts


@pytest.fixture
def api(config, executor):
    return ContractApi(user_contracts(), config=config, executor=executor)


@pytest.mark.asyncio
async def test_get_issues_one_request_to_interpolated_path(api, recorder):
    user = await api.call("get_user", {"path_params": {"id": 7}})

    assert user == User(id=7, name="Grace", email="grace@example.com")
    assert len(recorder.requests) == 1
    request = recorder.requests[0]
    assert request.method == "GET"
    assert str(request.url) == "https://api.example.com/users/7"
    assert request.headers["X-Client"] == "tests"
    assert request.content == b""


@pytest.mark.asyncio
async def test_search_params_become_query_string(api, recorder):
    users = await api.call("list_users", {"search_params": {"page": 2, "limit": 10}})

    assert [u.name for u in users] == ["Ada"]
    assert recorder.requests[0].url.params["page"] == "2"
    assert recorder.requests[0].url.params["limit"] == "10"


@pytest.mark.asyncio
async def test_post_sends_payload_as_json(api, recorder):
    user = await api.call("create_user", {"payload": {"name": "Linus", "email": "linus@example.com"}})

    assert user.id == 99
    assert recorder.requests[0].method == "POST"
    assert recorder.last_json() == {"name": "Linus", "email": "linus@example.com"}


@pytest.mark.asyncio
async def test_invalid_payload_sends_no_request(api, recorder):
    ok, error = await api.safe_call("create_user", {"payload": {"name": "", "email": "nope"}})

    assert ok is False
    assert error.type == "validation_error"
    assert {tuple(issue.path) for issue in error.meta.issues} == {("name",), ("email",)}
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_invalid_search_params_send_no_request(api, recorder):
    with pytest.raises(ValidationException):
        await api.call("list_users", {"search_params": {"page": 0, "limit": 10}})
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_missing_and_extra_path_params_are_rejected(api, recorder):
    with pytest.raises(ValidationException) as exc:
        await api.call("delete_user", {"path_params": {"user": 1}})

    issues = {(issue.path, issue.message) for issue in exc.value.issues}
    assert (("path_params", "id"), "Missing path parameter") in issues
    assert any(path == ("path_params", "user") for path, _ in issues)
    assert recorder.requests == []


@pytest.mark.asyncio
async def test_delete_returns_none_for_empty_body(api, recorder):
    assert await api.call("delete_user", {"path_params": {"id": 3}}) is None
    assert recorder.requests[0].method == "DELETE"
    assert recorder.requests[0].url.path == "/users/3"


@pytest.mark.asyncio
async def test_server_error_is_raised_raw_and_normalized_by_safe_call(api):
    with pytest.raises(httpx.HTTPStatusError):
        await api.call("get_user", {"path_params": {"id": 1}})

    ok, error = await api.safe_call("get_user", {"path_params": {"id": 1}})

    assert ok is False
    assert isinstance(error, ContractError)
    assert (error.type, error.status, error.message) == ("user_not_found", 404, "User not found")


@pytest.mark.asyncio
async def test_dto_failing_validation_raises():
    recorder = RecordingTransport(lambda request: httpx.Response(200, json={"id": "not-a-number"}))
    api = ContractApi(user_contracts(), executor=HttpExecutor(ClientConfig(base_url="https://x.test"), transport=recorder.transport))

    ok, error = await api.safe_call("get_user", {"path_params": {"id": 1}})

    assert ok is False
    assert error.type == "validation_error"
    assert len(recorder.requests) == 1


@pytest.mark.asyncio
async def test_network_failure_is_no_server_response():
    def refuse(request):
        raise httpx.ConnectError("connection refused", request=request)

    api = ContractApi(
        user_contracts(),
        executor=HttpExecutor(ClientConfig(base_url="https://x.test"), transport=httpx.MockTransport(refuse)),
    )

    ok, error = await api.safe_call("get_user", {"path_params": {"id": 1}})

    assert ok is False
    assert (error.type, error.status) == ("no_server_response", -3)


@pytest.mark.asyncio
async def test_shared_client_is_used_when_injected():
    recorder = RecordingTransport(lambda request: httpx.Response(200, json={"id": 7, "name": "G", "email": "g@x.io"}))
    async with httpx.AsyncClient(base_url="https://shared.test", transport=recorder.transport) as client:
        api = ContractApi(user_contracts(), executor=HttpExecutor(client=client))
        await api.call("get_user", {"path_params": {"id": 7}})
        await api.call("get_user", {"path_params": {"id": 7}})

    assert [str(r.url) for r in recorder.requests] == ["https://shared.test/users/7"] * 2


@pytest.mark.asyncio
async def test_api_key_and_non_json_body():
    recorder = RecordingTransport(lambda request: httpx.Response(200, text="plain text"))
    executor = HttpExecutor(ClientConfig(base_url="https://x.test", api_key="secret"), transport=recorder.transport)

    body = await executor.execute("get", "/raw", search_params={"skip": None, "flag": True})

    assert body == "plain text"
    request = recorder.requests[0]
    assert request.headers["Authorization"] == "Bearer secret"
    assert request.url.params.get("skip") is None
    assert request.url.params["flag"] == "true"


@pytest.mark.asyncio
async def test_payload_not_sent_for_get():
    recorder = RecordingTransport(lambda request: httpx.Response(200, json={}))
    executor = HttpExecutor(ClientConfig(base_url="https://x.test"), transport=recorder.transport)

    await executor.execute("GET", "/a", payload={"ignored": True}, send_payload=True)
    await executor.execute("PUT", "/a", payload=[1, 2], send_payload=True)

    assert recorder.requests[0].content == b""
    assert json.loads(recorder.requests[1].content) == [1, 2]


@pytest.mark.asyncio
async def test_default_executor_is_built_from_config():
    api = ContractApi(user_contracts(), config=ClientConfig(base_url="https://from-config.test"))
    assert api.executor.config.base_url == "https://from-config.test"


@pytest.mark.asyncio
async def test_dto_helper_accepts_its_own_output(api):
    user = await api.dto("get_user", {"id": 1, "name": "Ada", "email": "ada@example.com"})
    assert await api.dto("get_user", user) == user

    users = await api.dto("list_users", [{"id": 1, "name": "Ada", "email": "ada@example.com"}])
    assert await api.dto("list_users", users) == users
