"""
HTTP transport shared by every client operation.

One aiohttp session with a pooled connector serves all in-flight calls.
Outcomes are classified here: 2xx succeed, 4xx raise ClientError, 5xx and
network failures raise TransportError. Nothing is retried.
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import AsyncIterator, Awaitable, Optional, TypeVar

import aiohttp

from .builder import OperationRequest
from .errors import Cancelled, ClientError, InvalidArgument, StreamConsumed, TransportError

logger = logging.getLogger(__name__)

T = TypeVar("T")

TRANSPORT_ERRORS = (aiohttp.ClientError, asyncio.TimeoutError, TimeoutError)


def _error_message(body: bytes) -> str:
    """Extract the server's error text, falling back to the raw body."""
    text = body.decode("utf-8", errors="replace")
    try:
        error_json = json.loads(text)
    except json.JSONDecodeError:
        return text
    if isinstance(error_json, dict) and "error" in error_json:
        return str(error_json["error"])
    return text


def raise_for_status(status: int, body: bytes) -> None:
    """Raise the error matching a non-2xx status."""
    if 200 <= status < 300:
        return
    message = _error_message(body)
    if 400 <= status < 500:
        raise ClientError(status, message)
    raise TransportError(message, status_code=status)


def _transport_error(request: OperationRequest, exc: BaseException, timeout: float) -> TransportError:
    if isinstance(exc, (asyncio.TimeoutError, TimeoutError)):
        message = f"{request.method} {request.path} timed out after {timeout}s"
    else:
        message = f"{request.method} {request.path} failed: {exc}"
    return TransportError(message, cause=exc)


class Deadline:
    """
    Caller-side abort conditions for one call.

    Args:
        cancel: Event that aborts the call when set
        seconds: Time budget for the whole call, streams included
    """

    def __init__(self, cancel: Optional[asyncio.Event] = None, seconds: Optional[float] = None):
        if seconds is not None and seconds <= 0:
            raise InvalidArgument(f"deadline must be positive, got {seconds}")
        self.cancel = cancel
        self.expires_at: Optional[float] = None
        if seconds is not None:
            self.expires_at = asyncio.get_running_loop().time() + seconds

    @property
    def active(self) -> bool:
        return self.cancel is not None or self.expires_at is not None

    def remaining(self) -> Optional[float]:
        if self.expires_at is None:
            return None
        return max(0.0, self.expires_at - asyncio.get_running_loop().time())

    def _reason(self) -> str:
        if self.cancel is not None and self.cancel.is_set():
            return "cancelled by caller"
        return "deadline exceeded"

    async def guard(self, aw: Awaitable[T]) -> T:
        """Await aw, aborting it when the cancel event fires or time runs out."""
        if not self.active:
            return await aw
        if self.cancel is not None and self.cancel.is_set():
            if asyncio.iscoroutine(aw):
                aw.close()
            raise Cancelled(self._reason())

        task = asyncio.ensure_future(aw)
        waiters = {task}
        stopper = None
        if self.cancel is not None:
            stopper = asyncio.ensure_future(self.cancel.wait())
            waiters.add(stopper)

        try:
            await asyncio.wait(
                waiters,
                timeout=self.remaining(),
                return_when=asyncio.FIRST_COMPLETED,
            )
        finally:
            if stopper is not None:
                stopper.cancel()
            if not task.done():
                task.cancel()
                await asyncio.gather(task, return_exceptions=True)

        if not task.cancelled():
            return task.result()
        raise Cancelled(self._reason())


class LineStream:
    """
    Forward-only iterator over the raw lines of a streaming response.

    Can be consumed once; iterating again raises StreamConsumed. The
    connection is returned to the pool when the body is exhausted and
    closed on failure or aclose().
    """

    def __init__(
        self,
        response: aiohttp.ClientResponse,
        request: OperationRequest,
        deadline: Deadline,
        timeout: float,
    ):
        self._response = response
        self._request = request
        self._deadline = deadline
        self._timeout = timeout
        self._consumed = False

    @property
    def status(self) -> int:
        return self._response.status

    async def __aiter__(self) -> AsyncIterator[bytes]:
        if self._consumed:
            raise StreamConsumed(
                f"{self._request.path} stream was already consumed; reissue the call"
            )
        self._consumed = True

        exhausted = False
        try:
            while True:
                try:
                    line = await self._deadline.guard(self._response.content.readline())
                except TRANSPORT_ERRORS as e:
                    raise _transport_error(self._request, e, self._timeout) from e
                if not line:
                    exhausted = True
                    break
                yield line
        finally:
            if exhausted:
                self._response.release()
            else:
                self._response.close()

    async def aclose(self) -> None:
        """Drop the stream without reading the rest of it."""
        self._consumed = True
        self._response.close()


class Transport:
    """
    Pooled HTTP transport.

    Safe to share between concurrent calls on one event loop; the session is
    created lazily on first use.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float,
        max_connections: int,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.max_connections = max_connections
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def closed(self) -> bool:
        return self._session is None or self._session.closed

    def _ensure_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(limit=self.max_connections),
                timeout=aiohttp.ClientTimeout(total=self.timeout),
            )
        return self._session

    async def close(self) -> None:
        """Close the session and every pooled connection."""
        if self._session is not None and not self._session.closed:
            await self._session.close()
        self._session = None

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    async def fetch(self, request: OperationRequest, deadline: Optional[Deadline] = None) -> bytes:
        """
        Issue a request and buffer the full response body.

        Raises:
            ClientError: On a 4xx status
            TransportError: On a 5xx status, connection failure or timeout
            Cancelled: If the deadline passes or the cancel event fires
        """
        deadline = deadline or Deadline()
        session = self._ensure_session()
        logger.debug(f"{request.method} {request.path}")

        async def call() -> bytes:
            try:
                async with session.request(
                    request.method,
                    self._url(request.path),
                    json=request.to_dict(),
                ) as response:
                    body = await response.read()
            except TRANSPORT_ERRORS as e:
                raise _transport_error(request, e, self.timeout) from e
            raise_for_status(response.status, body)
            return body

        return await deadline.guard(call())

    async def open_stream(self, request: OperationRequest, deadline: Optional[Deadline] = None) -> LineStream:
        """
        Issue a request whose body is read line by line.

        The status is checked before returning, so HTTP errors surface here
        rather than during iteration. The timeout applies to the connect and
        to each line read, not to the stream as a whole.
        """
        deadline = deadline or Deadline()
        session = self._ensure_session()
        timeout = aiohttp.ClientTimeout(
            total=None,
            sock_connect=self.timeout,
            sock_read=self.timeout,
        )
        logger.debug(f"{request.method} {request.path} (streaming)")

        async def call() -> aiohttp.ClientResponse:
            try:
                response = await session.request(
                    request.method,
                    self._url(request.path),
                    json=request.to_dict(),
                    timeout=timeout,
                )
            except TRANSPORT_ERRORS as e:
                raise _transport_error(request, e, self.timeout) from e

            if not 200 <= response.status < 300:
                try:
                    body = await response.read()
                except TRANSPORT_ERRORS as e:
                    raise _transport_error(request, e, self.timeout) from e
                finally:
                    response.release()
                raise_for_status(response.status, body)
            return response

        response = await deadline.guard(call())
        return LineStream(response, request, deadline, self.timeout)
