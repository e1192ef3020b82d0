"""
Kazama Client SDK

Asynchronous client for Ollama-compatible model servers: chat, embeddings,
model listing, and pulling or pushing models with streamed progress.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from . import builder, decoding
from .config import ClientConfig
from .decoding import PullStatus, PushStatus
from .errors import KazamaError
from .models import ChatReply, EmbeddingVector, ModelList, RunningModelList
from .transport import Deadline, Transport

logger = logging.getLogger(__name__)


class AsyncClient:
    """
    Asynchronous HTTP client for a model server.

    The client owns one pooled connection session shared by every call, so
    operations may run concurrently from many tasks. Each operation issues
    exactly one request and never retries: a failed push or pull is retried
    by reissuing the call, which the caller decides.

    Every operation accepts keyword-only ``cancel`` (an asyncio.Event) and
    ``deadline`` (seconds for the whole call). Either one aborts the request
    in flight and raises Cancelled.

    Example:
        async with AsyncClient("http://localhost:11434") as client:
            reply = await client.chat_completion("llama2", "Why is the sky blue?")
            print(reply.content)
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        max_connections: Optional[int] = None,
        config: Optional[ClientConfig] = None,
    ):
        """
        Initialize the client.

        Args:
            base_url: Root URL of the server (default from config)
            timeout: Request timeout in seconds (default from config)
            max_connections: Maximum pooled connections (default from config)
            config: Base settings; the environment fills in whatever the
                other arguments leave unset when omitted
        """
        if config is None:
            config = ClientConfig.from_env(base_url, timeout, max_connections)
        self.config = ClientConfig(
            base_url=base_url if base_url is not None else config.base_url,
            timeout=timeout if timeout is not None else config.timeout,
            max_connections=max_connections if max_connections is not None else config.max_connections,
        ).validate()
        self._transport = Transport(
            self.config.base_url,
            timeout=self.config.timeout,
            max_connections=self.config.max_connections,
        )

    @property
    def base_url(self) -> str:
        return self._transport.base_url

    async def __aenter__(self) -> "AsyncClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def close(self):
        """Close the client session."""
        await self._transport.close()

    async def chat_completion(
        self,
        model: str,
        content: str,
        role: str = "user",
        *,
        cancel: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> ChatReply:
        """
        Send one chat message and return the model's reply.

        Args:
            model: Model name
            content: Message text
            role: One of "user", "system", "assistant"

        Raises:
            InvalidArgument: Empty model name or unknown role
            ClientError: Server rejected the request (4xx)
            TransportError: Network failure, timeout or 5xx
            DecodeError: Reply was not a chat response
            Cancelled: cancel was set or the deadline passed
        """
        request = builder.build_chat(model, content, role)
        body = await self._transport.fetch(request, Deadline(cancel, deadline))
        return decoding.decode_chat(decoding.decode_json(body))

    async def pull_model(
        self,
        name: str,
        stream_mode: bool = True,
        *,
        cancel: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> PullStatus:
        """
        Download a model from the registry.

        With stream_mode the returned status yields progress events lazily
        as the server sends them; without it the server answers once the
        pull finishes and the status holds that single event.
        """
        request = builder.build_pull(name, stream_mode)
        return await self._progress(request, PullStatus, Deadline(cancel, deadline))

    async def gen_embeddings(
        self,
        model: str,
        prompt: str,
        *,
        cancel: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> EmbeddingVector:
        """Generate an embedding for prompt."""
        request = builder.build_embeddings(model, prompt)
        body = await self._transport.fetch(request, Deadline(cancel, deadline))
        return decoding.decode_embedding(decoding.decode_json(body))

    async def list_models(
        self,
        *,
        cancel: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> ModelList:
        """Get list of all models stored on the server."""
        body = await self._transport.fetch(builder.build_list_models(), Deadline(cancel, deadline))
        return decoding.decode_model_list(decoding.decode_json(body))

    async def list_running_models(
        self,
        *,
        cancel: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> RunningModelList:
        """Get list of models currently loaded into memory."""
        body = await self._transport.fetch(builder.build_list_running(), Deadline(cancel, deadline))
        return decoding.decode_running_list(decoding.decode_json(body))

    async def push_models(
        self,
        name: str,
        stream_mode: bool = True,
        *,
        cancel: Optional[asyncio.Event] = None,
        deadline: Optional[float] = None,
    ) -> PushStatus:
        """
        Upload a model to the registry.

        Pushing is not idempotent, so a failure is never retried here.
        """
        request = builder.build_push(name, stream_mode)
        return await self._progress(request, PushStatus, Deadline(cancel, deadline))

    async def is_alive(self) -> bool:
        """Check if the server answers at all."""
        try:
            await self._transport.fetch(builder.OperationRequest(method="GET", path="/"))
            return True
        except KazamaError as e:
            logger.debug(f"Server at {self.base_url} is not alive: {e}")
            return False

    async def _progress(self, request, status_cls, deadline: Deadline):
        if request.stream:
            lines = await self._transport.open_stream(request, deadline)
            return status_cls(lines)
        body = await self._transport.fetch(request, deadline)
        return status_cls.from_body(body)
