"""Generate endpoint driver (/api/generate)."""

from typing import Optional, Sequence, Union

from modelwire.endpoints.base import DoneFlagDriver
from modelwire.schema import (
    Format,
    GenerateRequest,
    GenerateResponse,
    Options,
    ThinkLevel,
    encode_image,
)


class GenerateDriver(DoneFlagDriver[GenerateRequest, GenerateResponse]):
    name = "generate"
    path = "/api/generate"
    request_model = GenerateRequest
    response_model = GenerateResponse

    def build_request(
        self,
        model: str,
        prompt: Optional[str] = None,
        suffix: Optional[str] = None,
        system: Optional[str] = None,
        template: Optional[str] = None,
        context: Optional[Sequence[int]] = None,
        raw: Optional[bool] = None,
        format: Optional[Format] = None,
        images: Optional[Sequence[Union[bytes, str]]] = None,
        think: Optional[ThinkLevel] = None,
        options: Optional[Options] = None,
        keep_alive: Optional[Union[int, float, str]] = None,
    ) -> GenerateRequest:
        """
        Build a generate request.

        `suffix` enables fill-in-the-middle: the model writes the text
        between `prompt` and `suffix`. `think` asks reasoning-capable models
        to report their reasoning in a separate `thinking` field.
        """
        return GenerateRequest(
            model=model,
            prompt=prompt,
            suffix=suffix,
            system=system,
            template=template,
            context=list(context) if context is not None else None,
            raw=raw,
            format=format,
            images=[encode_image(i) for i in images] if images else None,
            think=think,
            options=options or None,
            keep_alive=keep_alive,
        )
