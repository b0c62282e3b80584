import pytest
import requests

from promptsite import auth, llm_client, main
from promptsite import ratelimit as rl
from promptsite import store


def _network_disabled(*args, **kwargs):
    raise requests.ConnectionError("network disabled in tests")


@pytest.fixture(autouse=True)
def isolated_app(monkeypatch):
    # Offline by default: no Gemini key, no API keys, no Redis, no real HTTP
    monkeypatch.setattr(llm_client, "GEMINI_API_KEY", "")
    monkeypatch.setattr(auth, "API_KEYS", set())
    monkeypatch.setattr(main, "_rl_instance", None)
    monkeypatch.setattr(requests, "post", _network_disabled)
    monkeypatch.setattr(requests, "head", _network_disabled)
    store._reset()
    rl._reset()
    yield
    store._reset()
    rl._reset()
