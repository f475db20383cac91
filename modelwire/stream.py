"""
Stream decoder: NDJSON byte stream -> lazy sequence of typed events.

Records are yielded strictly in arrival order. The byte source is only
read when the buffer holds no complete record, so a consumer that stops
pulling stops all further reads.
"""

import logging
from contextlib import aclosing
from dataclasses import dataclass
from typing import (
    Any,
    AsyncContextManager,
    AsyncIterator,
    Callable,
    Generic,
    Optional,
    Type,
    TypeVar,
)

import httpx
from pydantic import BaseModel

from modelwire.errors import ServerStreamError, TruncationError
from modelwire.schema import decode, parse_json

logger = logging.getLogger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


@dataclass(frozen=True)
class StreamEvent(Generic[T]):
    """One decoded record plus the endpoint's verdict on completion."""
    payload: T
    done: bool = False
    done_reason: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────
# RECORD SPLITTING
# ─────────────────────────────────────────────────────────────────────

class NDJSONSplitter:
    """
    Incremental newline splitter.

    Feed byte chunks of any size; get back the complete records they close.
    Bytes are buffered undecoded so multi-byte UTF-8 sequences may straddle
    chunk boundaries.
    """

    def __init__(self):
        self._buffer = b""

    def feed(self, chunk: bytes) -> list[bytes]:
        self._buffer += chunk
        if b"\n" not in chunk:
            return []
        *lines, self._buffer = self._buffer.split(b"\n")
        return [line.strip() for line in lines if line.strip()]

    def finish(self) -> None:
        """
        Signal end of input.

        Raises:
            TruncationError: if a non-blank partial record is left over
        """
        if self._buffer.strip():
            raise TruncationError(self._buffer)
        self._buffer = b""

    @property
    def pending(self) -> bytes:
        return self._buffer


def error_message(obj: Any) -> Optional[str]:
    """Extract the server's error text from a record, if it is an error record."""
    if not isinstance(obj, dict) or not obj.get("error"):
        return None
    error = obj["error"]
    if isinstance(error, dict):
        return str(error.get("message") or error)
    return str(error)


def record_decoder(model_cls: Type[M]) -> Callable[[bytes], M]:
    """Build a decode function for one record type, surfacing error records."""

    def _decode(raw: bytes) -> M:
        obj = parse_json(raw)
        message = error_message(obj)
        if message is not None:
            raise ServerStreamError(message)
        return decode(model_cls, obj)

    return _decode


async def iter_records(
    chunks: AsyncIterator[bytes],
    decode_record: Callable[[bytes], T],
) -> AsyncIterator[T]:
    """
    Decode an NDJSON byte stream record by record.

    Raises:
        DecodeError: a record is not valid JSON or does not fit the schema
        ServerStreamError: the server sent an error record
        TruncationError: input ended mid-record
    """
    splitter = NDJSONSplitter()
    async for chunk in chunks:
        for record in splitter.feed(chunk):
            yield decode_record(record)
    splitter.finish()


# ─────────────────────────────────────────────────────────────────────
# RESPONSE STREAM
# ─────────────────────────────────────────────────────────────────────

class ResponseStream(Generic[T]):
    """
    Lazy, finite, non-restartable async sequence of StreamEvent[T].

    The HTTP exchange starts on the first pull. Ending early via aclose()
    or leaving an `async with` block closes the response without draining it.

    Usage:
        async with await client.pull("llama3.2", stream=True) as stream:
            async for event in stream:
                print(event.payload.status)
    """

    def __init__(
        self,
        open_response: Callable[[], AsyncContextManager[httpx.Response]],
        decode_record: Callable[[bytes], T],
        is_complete: Callable[[T], bool],
        done_reason: Optional[Callable[[T], Optional[str]]] = None,
        name: str = "stream",
    ):
        self._open_response = open_response
        self._decode_record = decode_record
        self._is_complete = is_complete
        self._done_reason = done_reason or (lambda payload: None)
        self.name = name
        self.events_yielded = 0
        self._started = False
        self._closed = False
        self._gen = self._run()

    async def _run(self) -> AsyncIterator[StreamEvent[T]]:
        self._started = True
        try:
            async with self._open_response() as response:
                logger.debug("%s: stream opened (HTTP %d)", self.name, response.status_code)
                records = iter_records(response.aiter_bytes(), self._decode_record)
                async with aclosing(records):
                    async for payload in records:
                        done = self._is_complete(payload)
                        self.events_yielded += 1
                        yield StreamEvent(
                            payload=payload,
                            done=done,
                            done_reason=self._done_reason(payload) if done else None,
                        )
                        if done:
                            break
        finally:
            self._closed = True
            logger.debug("%s: stream closed after %d events", self.name, self.events_yielded)

    def __aiter__(self) -> "ResponseStream[T]":
        return self

    async def __anext__(self) -> StreamEvent[T]:
        return await self._gen.__anext__()

    async def aclose(self) -> None:
        """Stop the stream and release the connection. Safe to call twice."""
        await self._gen.aclose()
        self._closed = True

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def started(self) -> bool:
        return self._started

    async def __aenter__(self) -> "ResponseStream[T]":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def collect(self) -> list[StreamEvent[T]]:
        """Drain the stream into a list."""
        return [event async for event in self]
