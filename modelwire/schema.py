"""
Wire codec: pydantic models for every request and response body.

Requests encode to plain JSON dicts with unset fields dropped.
Responses decode from dicts or raw JSON bytes; fields the models do not
know about are ignored so newer servers stay compatible.
"""

import base64
import json
from typing import Any, Literal, Optional, Sequence, Type, TypeVar, Union

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from typing_extensions import TypeAliasType

from modelwire.errors import DecodeError, LocalValidationError


# ─────────────────────────────────────────────────────────────────────
# OPTIONS BAG
# ─────────────────────────────────────────────────────────────────────

OptionValue = TypeAliasType(
    "OptionValue",
    Union[bool, int, float, str, list["OptionValue"], dict[str, "OptionValue"]],
)
# Insertion order is preserved end to end (dict ordering)
Options = dict[str, OptionValue]

ThinkLevel = Union[bool, Literal["low", "medium", "high"]]
Format = Union[Literal["", "json"], dict[str, Any]]


class WireModel(BaseModel):
    """Base for all wire models: unknown fields ignored, aliases accepted."""
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# ─────────────────────────────────────────────────────────────────────
# SHARED PIECES
# ─────────────────────────────────────────────────────────────────────

class ToolCallFunction(WireModel):
    """
    Function part of a tool call.

    `arguments` is a complete JSON object when the server sends the whole
    call at once, or a (possibly partial) string when it is fragmented.
    """
    index: Optional[int] = None
    name: Optional[str] = None
    arguments: Optional[Union[dict[str, Any], str]] = None


class ToolCall(WireModel):
    function: ToolCallFunction


class Message(WireModel):
    """A chat message, sent in requests and received (partially) in chunks."""
    role: str = "assistant"
    content: Optional[str] = None
    thinking: Optional[str] = None
    images: Optional[list[str]] = None
    tool_name: Optional[str] = None
    tool_calls: Optional[list[ToolCall]] = None


class ToolFunction(WireModel):
    name: str
    description: Optional[str] = None
    parameters: Optional[dict[str, Any]] = None


class Tool(WireModel):
    type: Literal["function"] = "function"
    function: ToolFunction


class ModelDetails(WireModel):
    parent_model: Optional[str] = None
    format: Optional[str] = None
    family: Optional[str] = None
    families: Optional[list[str]] = None
    parameter_size: Optional[str] = None
    quantization_level: Optional[str] = None


# ─────────────────────────────────────────────────────────────────────
# REQUESTS
# ─────────────────────────────────────────────────────────────────────

class BaseRequest(WireModel):
    model: str


class StreamableRequest(BaseRequest):
    stream: Optional[bool] = None


class GenerateRequest(StreamableRequest):
    prompt: Optional[str] = None
    suffix: Optional[str] = None
    system: Optional[str] = None
    template: Optional[str] = None
    context: Optional[list[int]] = None
    raw: Optional[bool] = None
    format: Optional[Format] = None
    images: Optional[list[str]] = None
    think: Optional[ThinkLevel] = None
    options: Optional[Options] = None
    keep_alive: Optional[Union[int, float, str]] = None


class ChatRequest(StreamableRequest):
    messages: Optional[list[Message]] = None
    tools: Optional[list[Tool]] = None
    format: Optional[Format] = None
    think: Optional[ThinkLevel] = None
    options: Optional[Options] = None
    keep_alive: Optional[Union[int, float, str]] = None


class EmbedRequest(BaseRequest):
    input: Union[str, list[str]]
    truncate: Optional[bool] = None
    dimensions: Optional[int] = None
    options: Optional[Options] = None
    keep_alive: Optional[Union[int, float, str]] = None


class EmbeddingsRequest(BaseRequest):
    """Legacy single-prompt embedding request."""
    prompt: Optional[str] = None
    options: Optional[Options] = None
    keep_alive: Optional[Union[int, float, str]] = None


class PullRequest(StreamableRequest):
    insecure: Optional[bool] = None


class PushRequest(StreamableRequest):
    insecure: Optional[bool] = None


class CreateRequest(StreamableRequest):
    modelfile: Optional[str] = None
    path: Optional[str] = None
    quantize: Optional[str] = None
    from_: Optional[str] = Field(default=None, alias="from")
    files: Optional[dict[str, str]] = None
    adapters: Optional[dict[str, str]] = None
    template: Optional[str] = None
    license: Optional[Union[str, list[str]]] = None
    system: Optional[str] = None
    parameters: Optional[Options] = None
    messages: Optional[list[Message]] = None


class ShowRequest(BaseRequest):
    verbose: Optional[bool] = None


class DeleteRequest(BaseRequest):
    pass


class CopyRequest(WireModel):
    source: str
    destination: str


# ─────────────────────────────────────────────────────────────────────
# RESPONSES
# ─────────────────────────────────────────────────────────────────────

class TimedResponse(WireModel):
    """Counters the server attaches to the final record of a generation."""
    model: Optional[str] = None
    created_at: Optional[str] = None
    done: bool
    done_reason: Optional[str] = None
    total_duration: Optional[int] = None
    load_duration: Optional[int] = None
    prompt_eval_count: Optional[int] = None
    prompt_eval_duration: Optional[int] = None
    eval_count: Optional[int] = None
    eval_duration: Optional[int] = None


class GenerateResponse(TimedResponse):
    response: str = ""
    thinking: Optional[str] = None
    context: Optional[list[int]] = None


class ChatResponse(TimedResponse):
    message: Message = Field(default_factory=Message)


class ProgressResponse(WireModel):
    """
    Progress record from pull, push and create.

    completed/total are passed through as sent; the server may repeat
    statuses or report non-monotonic progress.
    """
    status: str
    digest: Optional[str] = None
    total: Optional[int] = None
    completed: Optional[int] = None

    def percent(self) -> Optional[float]:
        if self.total is None or self.completed is None or self.total == 0:
            return None
        return 100.0 * self.completed / self.total


class StatusResponse(WireModel):
    status: Optional[str] = None


class EmbedResponse(WireModel):
    model: Optional[str] = None
    embeddings: list[list[float]] = Field(default_factory=list)
    total_duration: Optional[int] = None
    load_duration: Optional[int] = None
    prompt_eval_count: Optional[int] = None


class EmbeddingsResponse(WireModel):
    embedding: list[float] = Field(default_factory=list)


class ModelSummary(WireModel):
    name: Optional[str] = None
    model: Optional[str] = None
    modified_at: Optional[str] = None
    digest: Optional[str] = None
    size: Optional[int] = None
    details: Optional[ModelDetails] = None


class ListResponse(WireModel):
    models: list[ModelSummary] = Field(default_factory=list)


class ShowResponse(WireModel):
    modified_at: Optional[str] = None
    template: Optional[str] = None
    modelfile: Optional[str] = None
    license: Optional[str] = None
    system: Optional[str] = None
    parameters: Optional[str] = None
    details: Optional[ModelDetails] = None
    model_info: Optional[dict[str, Any]] = None
    capabilities: Optional[list[str]] = None

    def capability_set(self) -> frozenset[str]:
        """Capability tags as an opaque set ("completion", "tools", "thinking", ...)."""
        return frozenset(self.capabilities or ())

    def supports(self, capability: str) -> bool:
        return capability in self.capability_set()


class RunningModel(WireModel):
    name: Optional[str] = None
    model: Optional[str] = None
    digest: Optional[str] = None
    size: Optional[int] = None
    size_vram: Optional[int] = None
    expires_at: Optional[str] = None
    context_length: Optional[int] = None
    details: Optional[ModelDetails] = None


class ProcessResponse(WireModel):
    models: list[RunningModel] = Field(default_factory=list)


class VersionResponse(WireModel):
    version: str = ""


# ─────────────────────────────────────────────────────────────────────
# CODEC
# ─────────────────────────────────────────────────────────────────────

M = TypeVar("M", bound=BaseModel)


def parse_json(data: Union[bytes, str]) -> Any:
    """Parse raw JSON bytes/text, raising DecodeError on malformed input."""
    try:
        return json.loads(data)
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        if isinstance(data, bytes):
            data = data.decode("utf-8", errors="replace")
        raise DecodeError(f"invalid JSON record: {data[:200]!r}") from e


def decode(model_cls: Type[M], data: Union[bytes, str, dict]) -> M:
    """
    Decode a single JSON object into `model_cls`.

    Raises:
        DecodeError: on malformed JSON, a non-object, or a schema mismatch
    """
    obj = parse_json(data) if isinstance(data, (bytes, str)) else data
    if not isinstance(obj, dict):
        raise DecodeError(f"expected a JSON object, got {type(obj).__name__}")
    try:
        return model_cls.model_validate(obj)
    except ValidationError as e:
        raise DecodeError(f"{model_cls.__name__}: {e}") from e


def encode(request: WireModel) -> dict[str, Any]:
    """Encode a request model to a JSON-ready dict."""
    return request.to_wire()


# ─────────────────────────────────────────────────────────────────────
# INPUT HELPERS
# ─────────────────────────────────────────────────────────────────────

def encode_image(image: Union[bytes, str]) -> str:
    """Raw bytes are base64-encoded; strings are assumed to be base64 already."""
    if isinstance(image, (bytes, bytearray)):
        return base64.b64encode(bytes(image)).decode("ascii")
    if isinstance(image, str):
        return image
    raise TypeError(f"unsupported image type: {type(image).__name__}")


def normalize_tools(tools: Sequence[Union[Tool, dict]]) -> list[Tool]:
    """
    Normalize tool definitions to the wrapped format.

    Flat format:
        {"name": "...", "description": "...", "parameters": {...}}

    Wrapped format:
        {"type": "function", "function": {"name": "...", ...}}

    Already-wrapped tools are returned as-is.
    """
    normalized = []
    for tool in tools:
        if isinstance(tool, Tool):
            normalized.append(tool)
        elif tool.get("type") == "function" and "function" in tool:
            normalized.append(Tool.model_validate(tool))
        else:
            normalized.append(Tool(function=ToolFunction.model_validate(tool)))
    return normalized


def normalize_messages(messages: Sequence[Union[Message, dict]]) -> list[Message]:
    """
    Accept dict or Message input; encode any raw image bytes.

    Raises:
        LocalValidationError: a message does not say its role
    """
    result = []
    for position, m in enumerate(messages):
        if isinstance(m, dict):
            if not m.get("role"):
                raise LocalValidationError(f"message {position}: role is required")
            m = dict(m)
            if m.get("images"):
                m["images"] = [encode_image(i) for i in m["images"]]
            m = Message.model_validate(m)
        elif "role" not in m.model_fields_set:
            raise LocalValidationError(f"message {position}: role is required")
        result.append(m)
    return result
