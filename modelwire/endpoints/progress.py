"""
Pull, push and create drivers.

All three stream ProgressResponse records and complete on
status == "success" (or on a clean close of the stream). Progress is
passed through untouched: statuses may repeat and completed/total may
move backwards; computing percentages is up to the caller.
"""

import logging
from typing import Optional, Sequence, Union

from modelwire.endpoints.base import StatusDriver
from modelwire.errors import LocalValidationError
from modelwire.schema import (
    CreateRequest,
    Message,
    Options,
    ProgressResponse,
    PullRequest,
    PushRequest,
    normalize_messages,
)

logger = logging.getLogger(__name__)


class PullDriver(StatusDriver[PullRequest, ProgressResponse]):
    name = "pull"
    path = "/api/pull"
    request_model = PullRequest
    response_model = ProgressResponse

    def build_request(self, model: str, insecure: bool = False) -> PullRequest:
        return PullRequest(model=model, insecure=insecure or None)


class PushDriver(StatusDriver[PushRequest, ProgressResponse]):
    name = "push"
    path = "/api/push"
    request_model = PushRequest
    response_model = ProgressResponse

    def build_request(self, model: str, insecure: bool = False) -> PushRequest:
        return PushRequest(model=model, insecure=insecure or None)


class CreateDriver(StatusDriver[CreateRequest, ProgressResponse]):
    """
    Create a model from exactly one source.

    Inline definition: `modelfile` text, or the structured form
    (`from_` and/or `files`). Path reference: `path`, a Modelfile
    location on the server. Both or neither is rejected before any
    request is made.
    """
    name = "create"
    path = "/api/create"
    request_model = CreateRequest
    response_model = ProgressResponse

    def build_request(
        self,
        model: str,
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
    ) -> CreateRequest:
        has_inline = bool(modelfile) or bool(from_) or bool(files)
        has_path = bool(path)
        if has_inline and has_path:
            raise LocalValidationError(
                "create accepts an inline definition or a path, not both"
            )
        if not has_inline and not has_path:
            raise LocalValidationError(
                "create requires an inline definition (modelfile, from_ or files) or a path"
            )
        if has_path:
            logger.debug("create %s from path %s", model, path)

        return CreateRequest(
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
            parameters=parameters or None,
            messages=normalize_messages(messages) if messages else None,
        )
