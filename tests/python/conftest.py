"""pytest configuration for kazama tests."""

import asyncio
import json
from dataclasses import dataclass
from typing import Any, List, Optional

import pytest
import pytest_asyncio
from aiohttp import web
from aiohttp.test_utils import TestServer

from kazama import AsyncClient, ClientConfig


@dataclass
class RecordedRequest:
    method: str
    path: str
    body: Optional[Any]


class FakeOllama:
    """
    In-process stand-in for the model server.

    Every request is recorded in ``requests`` before routing, so the list
    doubles as a network-call counter.
    """

    def __init__(self):
        self.requests: List[RecordedRequest] = []
        self.routes = {}
        self.release = asyncio.Event()
        self.app = web.Application()
        self.app.router.add_route("*", "/{tail:.*}", self._dispatch)

    def reply(self, method: str, path: str, handler):
        self.routes[(method, path)] = handler

    def calls(self, path: str) -> List[RecordedRequest]:
        return [r for r in self.requests if r.path == path]

    async def _dispatch(self, request: web.Request) -> web.StreamResponse:
        text = await request.text()
        body = json.loads(text) if text else None
        self.requests.append(RecordedRequest(request.method, request.path, body))
        handler = self.routes.get((request.method, request.path))
        if handler is None:
            return web.json_response({"error": "not found"}, status=404)
        return await handler(request)

    def json_reply(self, payload: Any, status: int = 200):
        async def handler(request):
            return web.json_response(payload, status=status)
        return handler

    def raw_reply(self, text: str, status: int = 200):
        async def handler(request):
            return web.Response(text=text, status=status, content_type="application/json")
        return handler

    def ndjson_reply(self, lines: List[str]):
        async def handler(request):
            response = web.StreamResponse(status=200)
            response.content_type = "application/x-ndjson"
            await response.prepare(request)
            for line in lines:
                await response.write((line + "\n").encode("utf-8"))
            await response.write_eof()
            return response
        return handler

    def slow_reply(self, delay: float, payload: Any = None):
        """Answer after delay seconds, or as soon as the test releases it."""
        async def handler(request):
            try:
                await asyncio.wait_for(self.release.wait(), delay)
            except asyncio.TimeoutError:
                pass
            return web.json_response(payload or {})
        return handler

    def slow_stream(self, first_line: str, delay: float):
        """Send one line, then stall."""
        async def handler(request):
            response = web.StreamResponse(status=200)
            await response.prepare(request)
            await response.write((first_line + "\n").encode("utf-8"))
            try:
                await asyncio.wait_for(self.release.wait(), delay)
            except asyncio.TimeoutError:
                pass
            return response
        return handler


@pytest_asyncio.fixture
async def fake_server():
    """Running fake server; released and closed after the test."""
    fake = FakeOllama()
    server = TestServer(fake.app)
    await server.start_server()
    fake.base_url = f"http://{server.host}:{server.port}"
    yield fake
    fake.release.set()
    await server.close()


@pytest_asyncio.fixture
async def client(fake_server):
    """AsyncClient pointed at the fake server."""
    async with AsyncClient(config=ClientConfig(base_url=fake_server.base_url, timeout=5.0)) as c:
        yield c
