"""Tests for the on_call / on_ok / on_fail hooks."""

import threading

import pytest

from contract_api import ContractApi, UnknownEndpointError, ValidationException, check
from contract_api.utils.events import EventSubscriptionManager


def _contracts(calls):
    async def get_resolver(call_input):
        calls.append(("get", call_input))
        return {"id": 1}

    async def post_resolver(call_input):
        calls.append(("post", call_input))
        raise RuntimeError("write failed")

    def reject_empty(data):
        if not data:
            raise ValidationException.single(("data",), "required")
        return data

    return {
        "get": {"resolver": get_resolver},
        "post": {"resolver": post_resolver, "schemas": {"payload": check(reject_empty)}},
    }


@pytest.mark.asyncio
async def test_on_call_receives_input_and_config_before_request():
    calls = []
    api = ContractApi(_contracts(calls), config={"url": "https://api.example.com"})
    seen = []

    def on_call(data):
        seen.append((dict(data), len(calls)))

    api.on_call("get", on_call)
    await api.call("get", {"path_params": {"id": "123"}, "search_params": {"q": "test"}})

    assert seen == [
        (
            {
                "path_params": {"id": "123"},
                "search_params": {"q": "test"},
                "config": {"url": "https://api.example.com"},
            },
            0,
        )
    ]


@pytest.mark.asyncio
async def test_plain_client_hook_payload_has_no_config():
    api = ContractApi(_contracts([]))
    seen = []
    api.on_call("get", seen.append)

    await api.call("get", {"payload": {"a": 1}})

    assert seen == [{"payload": {"a": 1}}]


@pytest.mark.asyncio
async def test_callbacks_run_in_registration_order():
    api = ContractApi(_contracts([]))
    order = []
    api.on_call("get", lambda _: order.append("first"))
    api.on_call("get", lambda _: order.append("second"))

    async def third(_):
        order.append("third")

    api.on_call("get", third)

    await api.call("get")

    assert order == ["first", "second", "third"]


@pytest.mark.asyncio
async def test_callbacks_are_endpoint_scoped():
    api = ContractApi(_contracts([]))
    get_hits = []
    api.on_call("get", get_hits.append)

    await api.safe_call("post", {"payload": {"x": 1}})

    assert get_hits == []


@pytest.mark.asyncio
async def test_unsubscribe_only_removes_that_callback():
    api = ContractApi(_contracts([]))
    first, second = [], []
    unsubscribe = api.on_call("get", first.append)
    api.on_call("get", second.append)

    unsubscribe()
    await api.call("get")
    await api.call("get")
    unsubscribe()

    assert first == []
    assert len(second) == 2


@pytest.mark.asyncio
async def test_failing_callback_does_not_break_the_call(caplog):
    api = ContractApi(_contracts([]))
    after = []

    def broken(_):
        raise ValueError("observer bug")

    api.on_call("get", broken)
    api.on_call("get", after.append)

    assert await api.call("get") == {"id": 1}
    assert len(after) == 1
    assert "on_call callback error for endpoint 'get'" in caplog.text


@pytest.mark.asyncio
async def test_on_ok_receives_dto():
    api = ContractApi(_contracts([]))
    seen = []
    api.on_ok("get", seen.append)

    await api.call("get", {"extra": "x"})

    assert seen == [{"extra": "x", "dto": {"id": 1}}]


@pytest.mark.asyncio
async def test_on_fail_receives_error_for_resolver_and_validation_failures():
    calls = []
    api = ContractApi(_contracts(calls))
    seen = []
    api.on_fail("post", seen.append)

    ok, _ = await api.safe_call("post", {"payload": {"x": 1}})
    assert ok is False
    assert isinstance(seen[0]["error"], RuntimeError)
    assert seen[0]["payload"] == {"x": 1}

    with pytest.raises(ValidationException):
        await api.call("post", {"payload": {}})
    assert isinstance(seen[1]["error"], ValidationException)
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_clients_do_not_share_subscribers():
    first_api = ContractApi(_contracts([]))
    second_api = ContractApi(_contracts([]))
    hits = []
    first_api.on_call("get", hits.append)

    await second_api.call("get")

    assert hits == []


def test_subscribing_to_unknown_endpoint_fails():
    api = ContractApi(_contracts([]))
    with pytest.raises(UnknownEndpointError):
        api.on_call("missing", lambda _: None)


def test_concurrent_subscribe_and_unsubscribe_keeps_every_update():
    manager = EventSubscriptionManager("on_call")
    keep = []
    lock = threading.Lock()

    def worker():
        for _ in range(200):
            unsubscribe = manager.subscribe("get", lambda _: None)
            manager.subscribe("get", lambda _: None)
            unsubscribe()
            with lock:
                keep.append(1)

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert manager.count("get") == len(keep)
    assert manager.count("post") == 0
