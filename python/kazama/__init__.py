"""
Kazama - Async client for Ollama-compatible model servers.

This module provides the public API:

- AsyncClient: chat, embeddings, model listing, pull and push
- ClientConfig: connection settings (KAZAMA_* environment overrides)
- Result / attempt: failure values instead of exceptions
- KazamaError and its subclasses: structured failures

Example usage:

    import asyncio
    from kazama import AsyncClient

    async def main():
        async with AsyncClient() as client:
            vector = await client.gen_embeddings("llama2", "hello")
            print(len(vector))

    asyncio.run(main())
"""

from .client import AsyncClient
from .config import ClientConfig
from .decoding import ProgressStream, PullStatus, PushStatus
from .errors import (
    Cancelled,
    ClientError,
    DecodeError,
    InvalidArgument,
    KazamaError,
    StreamConsumed,
    TransportError,
)
from .models import (
    ChatReply,
    EmbeddingVector,
    ModelDescriptor,
    ModelList,
    ProgressEvent,
    RunningModel,
    RunningModelList,
)
from .result import Result, attempt

__version__ = "0.1.0"

__all__ = [
    # Client
    "AsyncClient",
    "ClientConfig",

    # Results
    "ChatReply",
    "EmbeddingVector",
    "ModelDescriptor",
    "ModelList",
    "ProgressEvent",
    "ProgressStream",
    "PullStatus",
    "PushStatus",
    "RunningModel",
    "RunningModelList",
    "Result",
    "attempt",

    # Exceptions
    "KazamaError",
    "InvalidArgument",
    "TransportError",
    "ClientError",
    "DecodeError",
    "Cancelled",
    "StreamConsumed",

    # Version
    "__version__",
]
