import pytest

from evm_debug_labels.app import create_app
from evm_debug_labels.config import Config


@pytest.fixture()
def test_config():
    return Config(
        rpc_url="http://127.0.0.1:8545",
        max_trace_steps=100,
    )


@pytest.fixture()
def app(test_config):
    app = create_app(config=test_config)
    app.config["TESTING"] = True
    return app


@pytest.fixture()
def client(app):
    return app.test_client()
