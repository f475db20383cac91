"""
Endpoint drivers, one per endpoint family.

Streaming: generate, chat, pull, push, create.
Request/response: embed, embeddings, list, show, delete, copy, ps,
version, blobs.
"""

from .base import DoneFlagDriver, EndpointDriver, StatusDriver, StreamingDriver
from .chat import ChatDriver, ChatStream
from .embed import EmbedDriver, EmbeddingsDriver
from .generate import GenerateDriver
from .models import (
    BlobDriver,
    CopyDriver,
    DeleteDriver,
    ListDriver,
    ProcessDriver,
    ShowDriver,
    VersionDriver,
    validate_digest,
)
from .progress import CreateDriver, PullDriver, PushDriver

__all__ = [
    "BlobDriver",
    "ChatDriver",
    "ChatStream",
    "CopyDriver",
    "CreateDriver",
    "DeleteDriver",
    "DoneFlagDriver",
    "EmbedDriver",
    "EmbeddingsDriver",
    "EndpointDriver",
    "GenerateDriver",
    "ListDriver",
    "ProcessDriver",
    "PullDriver",
    "PushDriver",
    "ShowDriver",
    "StatusDriver",
    "StreamingDriver",
    "VersionDriver",
    "validate_digest",
]
