"""
modelwire - async client for generative-model HTTP servers.

Classic JSON request/response plus NDJSON streaming for generate, chat,
pull, push and create.
"""

from .client import AsyncClient
from .config import VERSION, ClientConfig
from .duration import KeepAlive, KeepAliveKind
from .errors import (
    DecodeError,
    LocalValidationError,
    ModelWireError,
    ResponseError,
    ServerStreamError,
    ToolCallParseError,
    TransportError,
    TruncationError,
)
from .schema import (
    ChatResponse,
    EmbedResponse,
    GenerateResponse,
    Message,
    ProgressResponse,
    ShowResponse,
    Tool,
)
from .stream import ResponseStream, StreamEvent
from .tools import (
    ChatFinished,
    ReassembledToolCall,
    TextDelta,
    ToolCallFragment,
    ToolCallReady,
    ToolCallReassembler,
)

__version__ = VERSION

__all__ = [
    "AsyncClient",
    "ChatFinished",
    "ChatResponse",
    "ClientConfig",
    "DecodeError",
    "EmbedResponse",
    "GenerateResponse",
    "KeepAlive",
    "KeepAliveKind",
    "LocalValidationError",
    "Message",
    "ModelWireError",
    "ProgressResponse",
    "ReassembledToolCall",
    "ResponseError",
    "ResponseStream",
    "ServerStreamError",
    "ShowResponse",
    "StreamEvent",
    "TextDelta",
    "Tool",
    "ToolCallFragment",
    "ToolCallParseError",
    "ToolCallReady",
    "ToolCallReassembler",
    "TransportError",
    "TruncationError",
]
