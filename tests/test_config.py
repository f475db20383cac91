"""Tests for modelwire.config module."""

import os

import pytest
from pydantic import ValidationError

from modelwire.config import (
    DEFAULT_HOST,
    ClientConfig,
    default_user_agent,
    get_timeout,
    parse_host,
)


class TestParseHost:
    """Tests for host normalization."""

    @pytest.mark.parametrize("raw, expected", [
        (None, DEFAULT_HOST),
        ("", DEFAULT_HOST),
        ("1.2.3.4", "http://1.2.3.4:11434"),
        ("1.2.3.4:56789", "http://1.2.3.4:56789"),
        ("example.com", "http://example.com:11434"),
        ("http://example.com", "http://example.com:80"),
        ("https://example.com", "https://example.com:443"),
        ("https://example.com:56789", "https://example.com:56789"),
        ("0.0.0.0", "http://127.0.0.1:11434"),
        ("example.com:56789/path/", "http://example.com:56789/path"),
        ("https://example.com/api/", "https://example.com:443/api"),
        ("[0001:002:003:0004::1]:56789", "http://[0001:002:003:0004::1]:56789"),
    ])
    def test_parse_host(self, raw, expected):
        assert parse_host(raw) == expected


class TestClientConfig:
    """Tests for ClientConfig model."""

    def test_defaults(self):
        config = ClientConfig()
        assert config.host == DEFAULT_HOST
        assert config.user_agent.startswith("modelwire/")
        assert config.timeout is None
        assert config.default_options == {}

    def test_host_is_normalized(self):
        assert ClientConfig(host="example.com").host == "http://example.com:11434"

    def test_frozen(self):
        config = ClientConfig()
        with pytest.raises(ValidationError):
            config.host = "http://elsewhere:1"

    def test_request_headers(self):
        config = ClientConfig(user_agent="tester/1.0", headers={"X-Trace": "abc"})
        headers = config.request_headers()
        assert headers["User-Agent"] == "tester/1.0"
        assert "Content-Type" not in headers
        assert headers["X-Trace"] == "abc"

    def test_caller_headers_override_defaults(self):
        config = ClientConfig(headers={"User-Agent": "custom"})
        assert config.request_headers()["User-Agent"] == "custom"

    def test_default_options_preserve_order(self):
        config = ClientConfig(default_options={"temperature": 0.2, "stop": ["\n"], "num_ctx": 4096})
        assert list(config.default_options) == ["temperature", "stop", "num_ctx"]

    def test_default_options_reject_arbitrary_objects(self):
        with pytest.raises(ValidationError):
            ClientConfig(default_options={"bad": object()})

    def test_user_agent_mentions_python(self):
        assert "Python/" in default_user_agent()


class TestFromEnv:
    """Tests for environment loading."""

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_HOST", "gpu-box:9999")
        monkeypatch.setenv("OLLAMA_TIMEOUT", "12.5")
        monkeypatch.setenv("OLLAMA_API_KEY", "secret")
        monkeypatch.setenv("OLLAMA_USER_AGENT", "env-agent")

        config = ClientConfig.from_env()

        assert config.host == "http://gpu-box:9999"
        assert config.timeout == 12.5
        assert config.headers["Authorization"] == "Bearer secret"
        assert config.user_agent == "env-agent"

    def test_overrides_win(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_HOST", "gpu-box:9999")
        config = ClientConfig.from_env(host="other:1")
        assert config.host == "http://other:1"

    def test_explicit_authorization_kept(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_API_KEY", "secret")
        config = ClientConfig.from_env(headers={"Authorization": "Basic xyz"})
        assert config.headers["Authorization"] == "Basic xyz"

    def test_bad_timeout_falls_back(self, monkeypatch):
        monkeypatch.setenv("OLLAMA_TIMEOUT", "soon")
        assert get_timeout() is None

    def test_defaults_without_env(self, monkeypatch):
        for key in ("OLLAMA_HOST", "OLLAMA_TIMEOUT", "OLLAMA_API_KEY", "OLLAMA_USER_AGENT"):
            monkeypatch.delenv(key, raising=False)
        config = ClientConfig.from_env()
        assert config.host == DEFAULT_HOST
        assert "Authorization" not in config.headers

    def test_loads_dotenv_file(self, monkeypatch, tmp_path):
        # Isolated copy so values loaded from .env do not leak into other tests
        env = {k: v for k, v in os.environ.items() if k != "OLLAMA_HOST"}
        monkeypatch.setattr(os, "environ", env)
        (tmp_path / ".env").write_text("OLLAMA_HOST=dotenv-host:4321\n")
        monkeypatch.chdir(tmp_path)

        config = ClientConfig.from_env(load_env_file=True)

        assert config.host == "http://dotenv-host:4321"
