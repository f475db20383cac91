"""Embedding drivers: /api/embed (batch) and legacy /api/embeddings."""

from typing import Optional, Sequence, Union

from modelwire.endpoints.base import EndpointDriver
from modelwire.errors import DecodeError, LocalValidationError
from modelwire.schema import (
    EmbeddingsRequest,
    EmbeddingsResponse,
    EmbedRequest,
    EmbedResponse,
    Options,
)


class EmbedDriver(EndpointDriver[EmbedRequest, EmbedResponse]):
    """
    Single input or batch. Embeddings come back in input order, one per input.

    `dimensions` is only checked for being a positive int; whether the
    model supports truncating to that size is for the server to decide.
    """
    name = "embed"
    path = "/api/embed"
    request_model = EmbedRequest
    response_model = EmbedResponse

    def build_request(
        self,
        model: str,
        input: Union[str, Sequence[str]],
        truncate: Optional[bool] = None,
        dimensions: Optional[int] = None,
        options: Optional[Options] = None,
        keep_alive: Optional[Union[int, float, str]] = None,
    ) -> EmbedRequest:
        if dimensions is not None and (
            isinstance(dimensions, bool) or not isinstance(dimensions, int) or dimensions <= 0
        ):
            raise LocalValidationError(f"dimensions must be a positive integer, got {dimensions!r}")
        if not isinstance(input, str):
            input = list(input)
        return EmbedRequest(
            model=model,
            input=input,
            truncate=truncate,
            dimensions=dimensions,
            options=options or None,
            keep_alive=keep_alive,
        )

    async def call(self, transport, request: EmbedRequest) -> EmbedResponse:
        result = await super().call(transport, request)
        expected = 1 if isinstance(request.input, str) else len(request.input)
        if len(result.embeddings) != expected:
            raise DecodeError(
                f"embed: expected {expected} embeddings, got {len(result.embeddings)}"
            )
        return result


class EmbeddingsDriver(EndpointDriver[EmbeddingsRequest, EmbeddingsResponse]):
    """Legacy single-prompt embeddings."""
    name = "embeddings"
    path = "/api/embeddings"
    request_model = EmbeddingsRequest
    response_model = EmbeddingsResponse
