"""Pytest fixtures shared by the contract API tests."""

import pytest

from contract_api import ClientConfig, HttpExecutor

from contract_fixtures import RecordingTransport, default_handler


@pytest.fixture
def config():
    return ClientConfig(base_url="https://api.example.com", headers={"X-Client": "tests"})


@pytest.fixture
def recorder():
    return RecordingTransport(default_handler)


@pytest.fixture
def executor(config, recorder):
    return HttpExecutor(config, transport=recorder.transport)
