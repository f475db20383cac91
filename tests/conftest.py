"""Shared test fixtures for modelwire tests."""

import json

import httpx
import pytest


# ─────────────────────────────────────────────────────────────────────
# MOCK DATA
# ─────────────────────────────────────────────────────────────────────

MOCK_HOST = "http://ollama.test:11434"
MOCK_MODEL = "llama3.2"
MOCK_DIGEST = "sha256:" + "ab" * 32

MOCK_PULL_LINES = [
    {"status": "downloading", "completed": 10, "total": 100},
    {"status": "downloading", "completed": 100, "total": 100},
    {"status": "success"},
]

MOCK_GENERATE_LINES = [
    {"model": MOCK_MODEL, "created_at": "2024-01-01T00:00:00Z", "response": "The", "done": False},
    {"model": MOCK_MODEL, "created_at": "2024-01-01T00:00:00Z", "response": " sky", "done": False},
    {"model": MOCK_MODEL, "created_at": "2024-01-01T00:00:00Z", "response": " is blue.", "done": False},
    {
        "model": MOCK_MODEL,
        "created_at": "2024-01-01T00:00:01Z",
        "response": "",
        "done": True,
        "done_reason": "stop",
        "eval_count": 3,
        "total_duration": 123456,
    },
]


def ndjson(records: list) -> bytes:
    """Serialize records as newline-delimited JSON (trailing newline included)."""
    return "".join(json.dumps(r) + "\n" for r in records).encode()


def chat_chunk(content: str = "", done: bool = False, tool_calls=None, **extra) -> dict:
    """Build one /api/chat stream record."""
    message = {"role": "assistant", "content": content}
    if tool_calls is not None:
        message["tool_calls"] = tool_calls
    record = {"model": MOCK_MODEL, "created_at": "2024-01-01T00:00:00Z", "message": message, "done": done}
    record.update(extra)
    return record


class CountingStream(httpx.AsyncByteStream):
    """Response body that records how many chunks were read and whether it was closed."""

    def __init__(self, chunks: list[bytes]):
        self.chunks = chunks
        self.reads = 0
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            self.reads += 1
            yield chunk

    async def aclose(self) -> None:
        self.closed = True


async def chunk_source(chunks: list[bytes]):
    """Async iterator over byte chunks."""
    for chunk in chunks:
        yield chunk


# ─────────────────────────────────────────────────────────────────────
# FIXTURES
# ─────────────────────────────────────────────────────────────────────

@pytest.fixture
def client():
    """AsyncClient pointed at the mock host (mock it with respx)."""
    from modelwire import AsyncClient
    return AsyncClient(host=MOCK_HOST)


@pytest.fixture
def pull_body():
    return ndjson(MOCK_PULL_LINES)


@pytest.fixture
def generate_body():
    return ndjson(MOCK_GENERATE_LINES)
