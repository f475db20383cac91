"""
AsyncClient - the facade over every endpoint driver.

Calling convention: every method is a coroutine. Streaming-capable
methods take `stream`; with stream=True they return a ResponseStream
(nothing is sent until it is iterated), otherwise the decoded response.

    async with AsyncClient() as client:
        stream = await client.chat("llama3.2", messages=[...], stream=True)
        async with stream:
            async for event in stream:
                print(event.payload.message.content, end="")
"""

import logging
from typing import AsyncIterator, Optional, Sequence, Union

import httpx

from modelwire.config import ClientConfig
from modelwire.duration import KeepAliveLike, keep_alive_to_wire
from modelwire.endpoints import (
    BlobDriver,
    ChatDriver,
    ChatStream,
    CopyDriver,
    CreateDriver,
    DeleteDriver,
    EmbedDriver,
    EmbeddingsDriver,
    GenerateDriver,
    ListDriver,
    ProcessDriver,
    PullDriver,
    PushDriver,
    ShowDriver,
    VersionDriver,
)
from modelwire.schema import (
    ChatResponse,
    CopyRequest,
    DeleteRequest,
    EmbeddingsRequest,
    EmbeddingsResponse,
    EmbedResponse,
    Format,
    GenerateResponse,
    ListResponse,
    Message,
    Options,
    ProcessResponse,
    ProgressResponse,
    ShowRequest,
    ShowResponse,
    StatusResponse,
    ThinkLevel,
    Tool,
)
from modelwire.stream import ResponseStream
from modelwire.transport import Transport

logger = logging.getLogger(__name__)


class AsyncClient:
    """
    Async client for a generative-model server.

    Args:
        host: Server URL; overrides config.host when given
        config: Full configuration; defaults to ClientConfig()
        transport: Optional httpx transport (e.g. httpx.MockTransport)
        http_client: Optional pre-built httpx.AsyncClient
        **overrides: Individual ClientConfig fields (user_agent, headers, ...)

    Configuration is read-only after construction and shared by every
    call; streams never share buffers or tool-call state.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        config: Optional[ClientConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        **overrides,
    ):
        config = config or ClientConfig()
        if host is not None:
            overrides["host"] = host
        if overrides:
            config = ClientConfig(**{**config.model_dump(), **overrides})
        self.config = config
        self._transport = Transport(config, client=http_client, transport=transport)

        self._generate = GenerateDriver()
        self._chat = ChatDriver()
        self._embed = EmbedDriver()
        self._embeddings = EmbeddingsDriver()
        self._pull = PullDriver()
        self._push = PushDriver()
        self._create = CreateDriver()
        self._list = ListDriver()
        self._show = ShowDriver()
        self._delete = DeleteDriver()
        self._copy = CopyDriver()
        self._ps = ProcessDriver()
        self._version = VersionDriver()
        self._blobs = BlobDriver()

    # ─────────────────────────────────────────────────────────────────
    # LIFECYCLE
    # ─────────────────────────────────────────────────────────────────

    async def aclose(self) -> None:
        await self._transport.aclose()

    async def __aenter__(self) -> "AsyncClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # ─────────────────────────────────────────────────────────────────
    # DEFAULTS
    # ─────────────────────────────────────────────────────────────────

    def _options(self, options: Optional[Options]) -> Optional[Options]:
        """Per-call options layered over config defaults (call wins)."""
        merged = {**self.config.default_options, **(options or {})}
        return merged or None

    def _keep_alive(self, keep_alive: KeepAliveLike):
        if keep_alive is None:
            keep_alive = self.config.default_keep_alive
        return keep_alive_to_wire(keep_alive)

    # ─────────────────────────────────────────────────────────────────
    # GENERATION
    # ─────────────────────────────────────────────────────────────────

    async def generate(
        self,
        model: str,
        prompt: Optional[str] = None,
        suffix: Optional[str] = None,
        *,
        system: Optional[str] = None,
        template: Optional[str] = None,
        context: Optional[Sequence[int]] = None,
        raw: Optional[bool] = None,
        format: Optional[Format] = None,
        images: Optional[Sequence[Union[bytes, str]]] = None,
        think: Optional[ThinkLevel] = None,
        options: Optional[Options] = None,
        keep_alive: KeepAliveLike = None,
        stream: bool = False,
    ) -> Union[GenerateResponse, ResponseStream[GenerateResponse]]:
        """
        Generate a completion for a prompt.

        Returns:
            GenerateResponse, or ResponseStream[GenerateResponse] if stream=True.
            The stream completes on the record with done=true.
        """
        request = self._generate.build_request(
            model=model,
            prompt=prompt,
            suffix=suffix,
            system=system,
            template=template,
            context=context,
            raw=raw,
            format=format,
            images=images,
            think=think,
            options=self._options(options),
            keep_alive=self._keep_alive(keep_alive),
        )
        if stream:
            return self._generate.open(self._transport, request)
        return await self._generate.call(self._transport, request)

    async def chat(
        self,
        model: str,
        messages: Optional[Sequence[Union[Message, dict]]] = None,
        *,
        tools: Optional[Sequence[Union[Tool, dict]]] = None,
        format: Optional[Format] = None,
        think: Optional[ThinkLevel] = None,
        options: Optional[Options] = None,
        keep_alive: KeepAliveLike = None,
        stream: bool = False,
    ) -> Union[ChatResponse, ChatStream]:
        """
        Send a conversation and get the next assistant message.

        With stream=True the returned ChatStream yields raw chunks; call
        .reassembled() on it to get text deltas and finalized tool calls.
        """
        request = self._chat.build_request(
            model=model,
            messages=messages,
            tools=tools,
            format=format,
            think=think,
            options=self._options(options),
            keep_alive=self._keep_alive(keep_alive),
        )
        if stream:
            return self._chat.open(self._transport, request)
        return await self._chat.call(self._transport, request)

    async def embed(
        self,
        model: str,
        input: Union[str, Sequence[str]],
        *,
        truncate: Optional[bool] = None,
        dimensions: Optional[int] = None,
        options: Optional[Options] = None,
        keep_alive: KeepAliveLike = None,
    ) -> EmbedResponse:
        """Embed one input or a batch; embeddings come back in input order."""
        request = self._embed.build_request(
            model=model,
            input=input,
            truncate=truncate,
            dimensions=dimensions,
            options=self._options(options),
            keep_alive=self._keep_alive(keep_alive),
        )
        return await self._embed.call(self._transport, request)

    async def embeddings(
        self,
        model: str,
        prompt: str,
        *,
        options: Optional[Options] = None,
        keep_alive: KeepAliveLike = None,
    ) -> EmbeddingsResponse:
        """Legacy single-prompt embedding. Prefer embed()."""
        request = EmbeddingsRequest(
            model=model,
            prompt=prompt,
            options=self._options(options),
            keep_alive=self._keep_alive(keep_alive),
        )
        return await self._embeddings.call(self._transport, request)

    # ─────────────────────────────────────────────────────────────────
    # MODEL TRANSFER
    # ─────────────────────────────────────────────────────────────────

    async def pull(
        self,
        model: str,
        *,
        insecure: bool = False,
        stream: bool = False,
    ) -> Union[ProgressResponse, ResponseStream[ProgressResponse]]:
        request = self._pull.build_request(model=model, insecure=insecure)
        if stream:
            return self._pull.open(self._transport, request)
        return await self._pull.call(self._transport, request)

    async def push(
        self,
        model: str,
        *,
        insecure: bool = False,
        stream: bool = False,
    ) -> Union[ProgressResponse, ResponseStream[ProgressResponse]]:
        request = self._push.build_request(model=model, insecure=insecure)
        if stream:
            return self._push.open(self._transport, request)
        return await self._push.call(self._transport, request)

    async def create(
        self,
        model: str,
        *,
        modelfile: Optional[str] = None,
        path: Optional[str] = None,
        from_: Optional[str] = None,
        files: Optional[dict[str, str]] = None,
        adapters: Optional[dict[str, str]] = None,
        quantize: Optional[str] = None,
        template: Optional[str] = None,
        license: Optional[Union[str, list[str]]] = None,
        system: Optional[str] = None,
        parameters: Optional[Options] = None,
        messages: Optional[Sequence[Union[Message, dict]]] = None,
        stream: bool = False,
    ) -> Union[ProgressResponse, ResponseStream[ProgressResponse]]:
        """
        Create a model from an inline definition or a server-side path.

        Raises:
            LocalValidationError: both or neither source given (no request sent)
        """
        request = self._create.build_request(
            model=model,
            modelfile=modelfile,
            path=path,
            from_=from_,
            files=files,
            adapters=adapters,
            quantize=quantize,
            template=template,
            license=license,
            system=system,
            parameters=parameters,
            messages=messages,
        )
        if stream:
            return self._create.open(self._transport, request)
        return await self._create.call(self._transport, request)

    # ─────────────────────────────────────────────────────────────────
    # MODEL MANAGEMENT
    # ─────────────────────────────────────────────────────────────────

    async def list(self) -> ListResponse:
        return await self._list.call(self._transport)

    async def show(self, model: str, *, verbose: Optional[bool] = None) -> ShowResponse:
        return await self._show.call(self._transport, ShowRequest(model=model, verbose=verbose))

    async def delete(self, model: str) -> StatusResponse:
        return await self._delete.call(self._transport, DeleteRequest(model=model))

    async def copy(self, source: str, destination: str) -> StatusResponse:
        return await self._copy.call(self._transport, CopyRequest(source=source, destination=destination))

    async def ps(self) -> ProcessResponse:
        return await self._ps.call(self._transport)

    async def version(self) -> str:
        return (await self._version.call(self._transport)).version

    async def check_blob(self, digest: str) -> bool:
        """True if the server already has the blob, False if not (404)."""
        return await self._blobs.check(self._transport, digest)

    async def create_blob(self, digest: str, data: Union[bytes, AsyncIterator[bytes]]) -> str:
        """Upload a blob under a caller-computed digest."""
        return await self._blobs.create(self._transport, digest, data)
