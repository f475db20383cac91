"""
Tool-call reassembly for chat streams.

Tool calls may arrive fragmented: the function name in one chunk, the
argument text split across several more. Fragments sharing an index
belong to the same call. A call is finalized when a fragment carries a
complete JSON object (the server sent the call whole) or when the chat
stream reports done=true, which flushes every call still open.

Invoking the tool and sending its result back is the caller's job; this
module only turns fragments into complete call requests.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Optional, Union

from modelwire.errors import ToolCallParseError
from modelwire.schema import ChatResponse, Message
from modelwire.stream import StreamEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ToolCallFragment:
    """Normalized view of one tool_calls entry in a chat chunk."""
    index: int
    function_name: Optional[str] = None
    arguments_text: Optional[str] = None
    # Set when the server sent the arguments as a complete object
    arguments: Optional[dict[str, Any]] = None

    @property
    def complete(self) -> bool:
        return self.arguments is not None


@dataclass(frozen=True)
class ReassembledToolCall:
    index: int
    name: str
    arguments: dict[str, Any]

    def to_message_call(self) -> dict[str, Any]:
        """Wire shape for echoing the call back in an assistant message."""
        return {"function": {"index": self.index, "name": self.name, "arguments": self.arguments}}


@dataclass(frozen=True)
class TextDelta:
    content: str = ""
    thinking: str = ""


@dataclass(frozen=True)
class ToolCallReady:
    """
    A finalized tool call.

    Exactly one of `call` / `error` is set. `name_conflict` is True when
    fragments for this index disagreed on the function name (the last
    name seen was kept).
    """
    index: int
    call: Optional[ReassembledToolCall] = None
    error: Optional[ToolCallParseError] = None
    name_conflict: bool = False


@dataclass(frozen=True)
class ChatFinished:
    """Terminal event: the final chunk plus every per-call parse error."""
    response: ChatResponse
    done_reason: Optional[str] = None
    errors: tuple[ToolCallParseError, ...] = ()


ReadyEvent = Union[TextDelta, ToolCallReady, ChatFinished]


def fragments_of(message: Message) -> list[ToolCallFragment]:
    """Extract fragments from a message; entries without an index use their position."""
    fragments = []
    for position, call in enumerate(message.tool_calls or []):
        fn = call.function
        index = fn.index if fn.index is not None else position
        if isinstance(fn.arguments, dict):
            fragments.append(ToolCallFragment(index, fn.name, None, fn.arguments))
        else:
            fragments.append(ToolCallFragment(index, fn.name, fn.arguments))
    return fragments


@dataclass
class _Accumulator:
    index: int
    name: Optional[str] = None
    parts: list[str] = field(default_factory=list)
    arguments: Optional[dict[str, Any]] = None
    name_conflict: bool = False


def parse_arguments(index: int, text: str) -> dict[str, Any]:
    """
    Parse accumulated argument text into a mapping.

    Blank text means "no arguments".

    Raises:
        ToolCallParseError: text is not a JSON object
    """
    if not text.strip():
        return {}
    try:
        value = json.loads(text)
    except json.JSONDecodeError as e:
        raise ToolCallParseError(index, text, e.msg) from e
    if not isinstance(value, dict):
        raise ToolCallParseError(index, text, f"got {type(value).__name__}")
    return value


class ToolCallReassembler:
    """
    Per-stream accumulator. Create one per chat stream; never share.

    Usage:
        reassembler = ToolCallReassembler()
        for chunk in chunks:
            for ready in reassembler.feed(chunk):
                ...
    """

    def __init__(self):
        self._open: dict[int, _Accumulator] = {}
        self.name_conflicts: list[int] = []
        self.errors: list[ToolCallParseError] = []

    @property
    def open_indexes(self) -> list[int]:
        return sorted(self._open)

    def feed(self, chunk: ChatResponse) -> list[ReadyEvent]:
        """Consume one chunk; return the events it makes ready, in order."""
        events: list[ReadyEvent] = []
        message = chunk.message

        if message.content or message.thinking:
            events.append(TextDelta(content=message.content or "", thinking=message.thinking or ""))

        for fragment in fragments_of(message):
            acc = self._open.get(fragment.index)
            if acc is None:
                acc = self._open[fragment.index] = _Accumulator(fragment.index)

            if fragment.function_name:
                if acc.name and acc.name != fragment.function_name:
                    logger.warning(
                        "tool call %d: name changed from %r to %r mid-stream",
                        fragment.index, acc.name, fragment.function_name,
                    )
                    acc.name_conflict = True
                    self.name_conflicts.append(fragment.index)
                acc.name = fragment.function_name

            if fragment.complete:
                acc.arguments = fragment.arguments
                events.append(self._finalize(fragment.index))
            elif fragment.arguments_text:
                acc.parts.append(fragment.arguments_text)

        if chunk.done:
            events.extend(self.flush())
            events.append(ChatFinished(
                response=chunk,
                done_reason=chunk.done_reason,
                errors=tuple(self.errors),
            ))
        return events

    def flush(self) -> list[ToolCallReady]:
        """Finalize every open call in index order."""
        return [self._finalize(index) for index in sorted(self._open)]

    def discard(self) -> None:
        """Drop open calls (stream closed without done)."""
        if self._open:
            logger.warning("discarding %d unfinished tool call(s): %s", len(self._open), self.open_indexes)
        self._open.clear()

    def _finalize(self, index: int) -> ToolCallReady:
        acc = self._open.pop(index)
        text = "".join(acc.parts)
        try:
            if not acc.name:
                raise ToolCallParseError(index, text, "missing function name")
            arguments = acc.arguments if acc.arguments is not None else parse_arguments(index, text)
        except ToolCallParseError as e:
            logger.warning("%s", e)
            self.errors.append(e)
            return ToolCallReady(index=index, error=e, name_conflict=acc.name_conflict)
        call = ReassembledToolCall(index=index, name=acc.name, arguments=arguments)
        return ToolCallReady(index=index, call=call, name_conflict=acc.name_conflict)


async def reassemble(events: AsyncIterator[StreamEvent[ChatResponse]]) -> AsyncIterator[ReadyEvent]:
    """
    Turn a chat event stream into TextDelta / ToolCallReady / ChatFinished.

    Per-call parse errors ride on ToolCallReady and ChatFinished; stream
    errors (decode, server, truncation) propagate unchanged. Closing this
    iterator closes `events` too.
    """
    reassembler = ToolCallReassembler()
    try:
        async for event in events:
            for ready in reassembler.feed(event.payload):
                yield ready
    finally:
        reassembler.discard()
        await events.aclose()
