"""
Model-management and blob drivers.

These are plain request/response exchanges; none of them stream.
"""

import re
from typing import AsyncIterator, Union

from modelwire.endpoints.base import EndpointDriver
from modelwire.errors import LocalValidationError, ResponseError
from modelwire.schema import (
    CopyRequest,
    DeleteRequest,
    ListResponse,
    ProcessResponse,
    ShowRequest,
    ShowResponse,
    StatusResponse,
    VersionResponse,
    WireModel,
)
from modelwire.transport import Transport

DIGEST_PATTERN = re.compile(r"^sha256:[0-9a-f]{64}$")


class _Empty(WireModel):
    pass


class _QueryDriver(EndpointDriver):
    """GET endpoints with no request body."""
    method = "GET"
    request_model = _Empty

    async def call(self, transport: Transport, request: WireModel = None):
        response = await transport.request(self.method, self.path)
        return self.decode_response(response.content)


class ListDriver(_QueryDriver):
    name = "list"
    path = "/api/tags"
    response_model = ListResponse


class ProcessDriver(_QueryDriver):
    name = "ps"
    path = "/api/ps"
    response_model = ProcessResponse


class VersionDriver(_QueryDriver):
    name = "version"
    path = "/api/version"
    response_model = VersionResponse


class ShowDriver(EndpointDriver[ShowRequest, ShowResponse]):
    name = "show"
    path = "/api/show"
    request_model = ShowRequest
    response_model = ShowResponse


class _StatusOnlyDriver(EndpointDriver):
    """Endpoints that answer with an empty 200 on success."""
    response_model = StatusResponse

    async def call(self, transport: Transport, request: WireModel) -> StatusResponse:
        response = await transport.request(self.method, self.path, json_body=request.to_wire())
        return StatusResponse(status="success" if response.status_code == 200 else "error")


class DeleteDriver(_StatusOnlyDriver):
    name = "delete"
    method = "DELETE"
    path = "/api/delete"
    request_model = DeleteRequest


class CopyDriver(_StatusOnlyDriver):
    name = "copy"
    path = "/api/copy"
    request_model = CopyRequest


# ─────────────────────────────────────────────────────────────────────
# BLOBS
# ─────────────────────────────────────────────────────────────────────

def validate_digest(digest: str) -> str:
    """
    Check a caller-supplied digest. Hashing is the caller's job.

    Raises:
        LocalValidationError: not of the form sha256:<64 lowercase hex>
    """
    if not isinstance(digest, str) or not DIGEST_PATTERN.match(digest):
        raise LocalValidationError(f"invalid digest {digest!r}: expected sha256:<64 lowercase hex>")
    return digest


class BlobDriver:
    """HEAD/POST /api/blobs/{digest}."""
    name = "blobs"

    @staticmethod
    def blob_path(digest: str) -> str:
        return f"/api/blobs/{validate_digest(digest)}"

    async def check(self, transport: Transport, digest: str) -> bool:
        """True if the server has the blob, False if it answers 404."""
        try:
            await transport.request("HEAD", self.blob_path(digest))
        except ResponseError as e:
            if e.status_code == 404:
                return False
            raise
        return True

    async def create(
        self,
        transport: Transport,
        digest: str,
        data: Union[bytes, AsyncIterator[bytes]],
    ) -> str:
        """Upload blob content; returns the digest on success."""
        await transport.request("POST", self.blob_path(digest), content=data)
        return digest
