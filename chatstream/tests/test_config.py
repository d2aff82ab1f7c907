"""Tests for config loading."""

from __future__ import annotations

from chatstream.client.session import StreamingClient
from chatstream.config.loader import Config, _deep_merge, _load_yaml, get_config


def test_load_yaml_missing(tmp_path):
    assert _load_yaml(tmp_path / "nonexistent.yaml") == {}


def test_load_yaml_exists(tmp_path):
    path = tmp_path / "test.yaml"
    path.write_text("stream:\n  base_url: http://custom:8080\n")
    data = _load_yaml(path)
    assert data["stream"]["base_url"] == "http://custom:8080"


def test_default_config():
    config = Config.load()
    assert config.stream.base_url == "http://localhost:4000"
    assert config.stream.stream_path == "/api/chat/stream"
    assert config.stream.api_key == ""
    assert config.stream.model is None
    assert config.websocket.url == "ws://localhost:4000/socket"
    assert config.logging.json_format is True


def test_config_load_from_path(tmp_path):
    path = tmp_path / "config.yaml"
    path.write_text(
        "stream:\n  base_url: http://backend:4000\n  model: claude\n  timeout: 30\n"
        "logging:\n  level: DEBUG\n"
    )
    config = Config.load(config_path=path)
    assert config.stream.base_url == "http://backend:4000"
    assert config.stream.model == "claude"
    assert config.stream.timeout == 30.0
    assert config.logging.level == "DEBUG"


def test_config_env_override(monkeypatch):
    monkeypatch.setenv("CHATSTREAM_URL", "http://env-host:9000")
    monkeypatch.setenv("CHATSTREAM_API_KEY", "secret-key")
    monkeypatch.setenv("CHATSTREAM_MODEL", "env-model")
    config = Config.load()
    assert config.stream.base_url == "http://env-host:9000"
    assert config.stream.api_key == "secret-key"
    assert config.stream.model == "env-model"


def test_deep_merge():
    base = {"a": 1, "b": {"x": 10, "y": 20}}
    override = {"b": {"y": 22, "z": 30}, "c": 3}
    out = _deep_merge(base, override)
    assert out == {"a": 1, "b": {"x": 10, "y": 22, "z": 30}, "c": 3}
    assert base["b"] == {"x": 10, "y": 20}


def test_config_load_env_prefix_overlay(monkeypatch, tmp_path):
    (tmp_path / "config").mkdir()
    (tmp_path / "config" / "staging.yaml").write_text("stream:\n  base_url: http://staging\n")
    monkeypatch.setenv("CHATSTREAM_ENV_PREFIX", "staging")
    monkeypatch.chdir(tmp_path)
    config = Config.load()
    assert config.stream.base_url == "http://staging"
    assert config.stream.stream_path == "/api/chat/stream"


def test_config_load_env_prefix_missing_file(monkeypatch, tmp_path):
    monkeypatch.setenv("CHATSTREAM_ENV_PREFIX", "nowhere")
    monkeypatch.chdir(tmp_path)
    config = Config.load()
    assert config.stream.base_url == "http://localhost:4000"


def test_client_from_config(tmp_path):
    path = tmp_path / "c.yaml"
    path.write_text("stream:\n  base_url: http://fromfile:4000/\n  stream_path: /v2/stream\n")
    client = StreamingClient.from_config(get_config(config_path=str(path)))
    assert client.url == "http://fromfile:4000/v2/stream"
