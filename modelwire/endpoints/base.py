"""
EndpointDriver - the contract every endpoint family implements.

A driver owns one path and three capabilities:
- build_request: caller arguments -> validated request model
- decoder: bytes -> typed payload
- is_complete: the completion predicate for streamed payloads

This is the WHAT; the modules beside this one are the HOW per endpoint.
"""

from typing import Any, Callable, Generic, Optional, Type, TypeVar

from pydantic import BaseModel

from modelwire.schema import StreamableRequest, WireModel, decode
from modelwire.stream import ResponseStream, record_decoder
from modelwire.transport import Transport

R = TypeVar("R", bound=WireModel)
P = TypeVar("P", bound=BaseModel)


class EndpointDriver(Generic[R, P]):
    """Request/response driver: one exchange, one decoded object."""

    name: str = "endpoint"
    method: str = "POST"
    path: str = "/"
    request_model: Type[R]
    response_model: Type[P]

    def build_request(self, **kwargs: Any) -> R:
        return self.request_model(**kwargs)

    def decoder(self) -> Callable[[bytes], P]:
        return record_decoder(self.response_model)

    async def call(self, transport: Transport, request: R) -> P:
        body = request.to_wire()
        if isinstance(request, StreamableRequest):
            body["stream"] = False
        response = await transport.request(self.method, self.path, json_body=body)
        return self.decode_response(response.content)

    def decode_response(self, content: bytes) -> P:
        return decode(self.response_model, content)


class StreamingDriver(EndpointDriver[R, P]):
    """Driver whose endpoint can also answer with an NDJSON stream."""

    stream_class: Type[ResponseStream] = ResponseStream

    def is_complete(self, payload: P) -> bool:
        raise NotImplementedError

    def done_reason(self, payload: P) -> Optional[str]:
        return None

    def open(self, transport: Transport, request: R) -> ResponseStream[P]:
        """
        Prepare a stream. No I/O happens until the first event is pulled.
        """
        body = request.to_wire()
        body["stream"] = True
        return self.stream_class(
            open_response=lambda: transport.stream(self.method, self.path, json_body=body),
            decode_record=self.decoder(),
            is_complete=self.is_complete,
            done_reason=self.done_reason,
            name=self.name,
        )

    async def call(self, transport: Transport, request: R) -> P:
        """
        Non-streaming variant.

        Some servers answer stream=false with NDJSON anyway; the last record
        is taken as the result in that case.
        """
        body = request.to_wire()
        body["stream"] = False
        response = await transport.request(self.method, self.path, json_body=body)
        content = response.content.strip()
        if b"\n" in content:
            decode_record = self.decoder()
            payload = None
            for line in content.split(b"\n"):
                if line.strip():
                    payload = decode_record(line.strip())
            return payload
        return self.decoder()(content)


class DoneFlagDriver(StreamingDriver[R, P]):
    """Generate/chat: the stream completes on a record with done=true."""

    def is_complete(self, payload: P) -> bool:
        return getattr(payload, "done", None) is True

    def done_reason(self, payload: P) -> Optional[str]:
        return getattr(payload, "done_reason", None)


class StatusDriver(StreamingDriver[R, P]):
    """Pull/push/create: the stream completes on status == "success" or a clean close."""

    success_status = "success"

    def is_complete(self, payload: P) -> bool:
        return getattr(payload, "status", None) == self.success_status

    def done_reason(self, payload: P) -> Optional[str]:
        return getattr(payload, "status", None)
