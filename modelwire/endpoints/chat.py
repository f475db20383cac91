"""Chat endpoint driver (/api/chat) and its tool-call aware stream."""

from typing import AsyncIterator, Optional, Sequence, Union

from modelwire.endpoints.base import DoneFlagDriver
from modelwire.schema import (
    ChatRequest,
    ChatResponse,
    Format,
    Message,
    Options,
    ThinkLevel,
    Tool,
    normalize_messages,
    normalize_tools,
)
from modelwire.stream import ResponseStream
from modelwire.tools import ReadyEvent, reassemble


class ChatStream(ResponseStream[ChatResponse]):
    """ResponseStream of chat chunks, with tool-call reassembly on demand."""

    def reassembled(self) -> AsyncIterator[ReadyEvent]:
        """
        Iterate text deltas and finalized tool calls instead of raw chunks.

        Consumes this stream; use one view or the other, not both.
        """
        return reassemble(self)


class ChatDriver(DoneFlagDriver[ChatRequest, ChatResponse]):
    name = "chat"
    path = "/api/chat"
    request_model = ChatRequest
    response_model = ChatResponse
    stream_class = ChatStream

    def build_request(
        self,
        model: str,
        messages: Optional[Sequence[Union[Message, dict]]] = None,
        tools: Optional[Sequence[Union[Tool, dict]]] = None,
        format: Optional[Format] = None,
        think: Optional[ThinkLevel] = None,
        options: Optional[Options] = None,
        keep_alive: Optional[Union[int, float, str]] = None,
    ) -> ChatRequest:
        return ChatRequest(
            model=model,
            messages=normalize_messages(messages) if messages else None,
            tools=normalize_tools(tools) if tools else None,
            format=format,
            think=think,
            options=options or None,
            keep_alive=keep_alive,
        )
