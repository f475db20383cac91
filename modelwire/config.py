"""
Configuration constants and the ClientConfig model for modelwire.
"""

import logging
import os
import platform
from typing import Optional, Union
from urllib.parse import urlsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

from modelwire.schema import Options

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


# ─────────────────────────────────────────────────────────────────────
# DEFAULTS
# ─────────────────────────────────────────────────────────────────────

DEFAULT_HOST: str = "http://127.0.0.1:11434"
DEFAULT_PORT: int = 11434
# None = no client-side timeout; generation length is open-ended
DEFAULT_TIMEOUT_SECONDS: Optional[float] = None


def default_user_agent() -> str:
    """Identity string sent with every request."""
    return (
        f"modelwire/{VERSION} "
        f"({platform.machine()} {platform.system().lower()}) "
        f"Python/{platform.python_version()}"
    )


# ─────────────────────────────────────────────────────────────────────
# HOST PARSING
# ─────────────────────────────────────────────────────────────────────

def parse_host(host: Optional[str]) -> str:
    """
    Normalize a host string into a base URL.

    >>> parse_host(None)
    'http://127.0.0.1:11434'
    >>> parse_host("example.com")
    'http://example.com:11434'
    >>> parse_host("https://example.com")
    'https://example.com:443'
    >>> parse_host("0.0.0.0:56789/path/")
    'http://127.0.0.1:56789/path'
    """
    host = (host or "").strip()
    if not host:
        return DEFAULT_HOST

    scheme, sep, _ = host.partition("://")
    if sep:
        port = {"http": 80, "https": 443}.get(scheme, DEFAULT_PORT)
    else:
        scheme, port = "http", DEFAULT_PORT
        host = f"http://{host}"

    split = urlsplit(host)
    hostname = split.hostname or "127.0.0.1"
    if hostname == "0.0.0.0":
        hostname = "127.0.0.1"
    try:
        port = split.port or port
    except ValueError:
        pass

    if ":" in hostname:
        # IPv6 literal
        hostname = f"[{hostname}]"

    path = split.path.rstrip("/")
    return f"{scheme}://{hostname}:{port}{path}"


# ─────────────────────────────────────────────────────────────────────
# ENVIRONMENT LOADING
# ─────────────────────────────────────────────────────────────────────

def get_host() -> str:
    """
    Get server host from environment or default.

    Set OLLAMA_HOST in .env (default: http://127.0.0.1:11434).
    """
    return parse_host(os.environ.get("OLLAMA_HOST"))


def get_timeout() -> Optional[float]:
    """
    Get connection timeout in seconds from environment.

    Set OLLAMA_TIMEOUT in .env (default: no timeout).
    """
    value = os.environ.get("OLLAMA_TIMEOUT")
    if not value:
        return DEFAULT_TIMEOUT_SECONDS
    try:
        return float(value)
    except ValueError:
        logger.warning("Ignoring non-numeric OLLAMA_TIMEOUT=%r", value)
        return DEFAULT_TIMEOUT_SECONDS


def get_api_key() -> Optional[str]:
    """Get bearer token from environment (OLLAMA_API_KEY), if any."""
    return os.environ.get("OLLAMA_API_KEY") or None


def get_user_agent() -> str:
    """Get identity string from OLLAMA_USER_AGENT or the default."""
    return os.environ.get("OLLAMA_USER_AGENT") or default_user_agent()


# ─────────────────────────────────────────────────────────────────────
# DATA MODELS
# ─────────────────────────────────────────────────────────────────────

class ClientConfig(BaseModel):
    """
    Read-only client configuration.

    Shared by reference across concurrent calls; frozen so no call can
    mutate what another call sees.
    """
    model_config = ConfigDict(frozen=True)

    host: str = DEFAULT_HOST
    user_agent: str = Field(default_factory=default_user_agent)
    headers: dict[str, str] = Field(default_factory=dict)
    timeout: Optional[float] = DEFAULT_TIMEOUT_SECONDS
    default_options: Options = Field(default_factory=dict)
    default_keep_alive: Optional[Union[int, float, str]] = None

    @field_validator("host", mode="before")
    @classmethod
    def _normalize_host(cls, value: Optional[str]) -> str:
        return parse_host(value)

    @classmethod
    def from_env(cls, load_env_file: bool = False, **overrides) -> "ClientConfig":
        """
        Build a config from OLLAMA_* environment variables.

        Args:
            load_env_file: Load a .env file first (python-dotenv)
            **overrides: Explicit field values, taking precedence over env
        """
        if load_env_file:
            from dotenv import find_dotenv, load_dotenv
            load_dotenv(find_dotenv(usecwd=True))

        headers = dict(overrides.pop("headers", None) or {})
        api_key = get_api_key()
        if api_key and "Authorization" not in headers:
            headers["Authorization"] = f"Bearer {api_key}"

        values = {
            "host": get_host(),
            "user_agent": get_user_agent(),
            "timeout": get_timeout(),
            "headers": headers,
        }
        values.update(overrides)
        return cls(**values)

    def request_headers(self) -> dict[str, str]:
        """
        Headers sent on every request; caller headers win over defaults.

        Content-Type is left to httpx: JSON bodies get application/json,
        raw blob uploads and HEAD requests do not.
        """
        merged = {
            "Accept": "application/json",
            "User-Agent": self.user_agent,
        }
        merged.update(self.headers)
        return merged
