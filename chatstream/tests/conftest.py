"""Pytest fixtures and config."""


import pytest


@pytest.fixture(autouse=True)
def env_cleanup(monkeypatch):
    """Avoid picking up a real endpoint or credential in tests."""
    for name in (
        "CHATSTREAM_URL",
        "CHATSTREAM_API_KEY",
        "CHATSTREAM_MODEL",
        "CHATSTREAM_ENV_PREFIX",
    ):
        monkeypatch.delenv(name, raising=False)
    yield
