"""
Response decoding.

Buffered bodies are decoded strictly: anything unparsable raises
DecodeError. Progress streams are decoded line by line and tolerate bad
lines, which are logged and recorded on the stream instead.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterable, AsyncIterator, Dict, List, Optional, Union

from .errors import DecodeError, StreamConsumed, TransportError
from .models import (
    ChatReply,
    EmbeddingVector,
    ModelDescriptor,
    ModelList,
    ProgressEvent,
    RunningModel,
    RunningModelList,
)

logger = logging.getLogger(__name__)

FRAGMENT_LIMIT = 200


def _fragment(raw: Union[bytes, str]) -> str:
    if isinstance(raw, bytes):
        raw = raw.decode("utf-8", errors="replace")
    return raw[:FRAGMENT_LIMIT]


def decode_json(raw: Union[bytes, str]) -> Dict[str, Any]:
    """Parse one JSON object. NaN and Infinity are rejected as non-standard."""
    def reject_constant(name: str):
        raise DecodeError(f"Invalid JSON constant {name}", fragment=_fragment(raw))

    try:
        text = raw.decode("utf-8") if isinstance(raw, bytes) else raw
        payload = json.loads(text, parse_constant=reject_constant)
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise DecodeError(f"Malformed JSON: {e}", fragment=_fragment(raw), cause=e) from e
    if not isinstance(payload, dict):
        raise DecodeError(
            f"Expected a JSON object, got {type(payload).__name__}",
            fragment=_fragment(raw),
        )
    return payload


def _int_or_none(value: Any) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DecodeError(f"Expected a number, got {value!r}", fragment=_fragment(repr(value)))
    try:
        return int(value)
    except (OverflowError, ValueError) as e:
        raise DecodeError(f"Expected a finite number, got {value!r}", fragment=_fragment(repr(value)), cause=e) from e


def decode_chat(payload: Dict[str, Any]) -> ChatReply:
    message = payload.get("message")
    if not isinstance(message, dict) or not isinstance(message.get("content"), str):
        raise DecodeError("Chat response has no message content", fragment=_fragment(json.dumps(payload)))
    return ChatReply(
        content=message["content"],
        role=message.get("role", "assistant"),
        model=payload.get("model"),
        done=bool(payload.get("done", True)),
    )


def decode_embedding(payload: Dict[str, Any]) -> EmbeddingVector:
    values = payload.get("embedding")
    if not isinstance(values, list):
        raise DecodeError("Embedding response has no embedding array", fragment=_fragment(json.dumps(payload)))
    for v in values:
        if isinstance(v, bool) or not isinstance(v, (int, float)):
            raise DecodeError(f"Non-numeric embedding value {v!r}", fragment=_fragment(json.dumps(values)))
    return EmbeddingVector([float(v) for v in values])


def _model_entries(payload: Dict[str, Any]) -> List[Dict[str, Any]]:
    entries = payload.get("models")
    if entries is None:
        return []
    if not isinstance(entries, list):
        raise DecodeError("'models' is not a list", fragment=_fragment(json.dumps(payload)))
    for entry in entries:
        if not isinstance(entry, dict) or not isinstance(entry.get("name"), str):
            raise DecodeError("Model entry has no name", fragment=_fragment(json.dumps(entry)))
    return entries


def decode_model_list(payload: Dict[str, Any]) -> ModelList:
    return ModelList([
        ModelDescriptor(
            name=m["name"],
            size=_int_or_none(m.get("size")) or 0,
            modified_at=m.get("modified_at"),
            digest=m.get("digest", ""),
            details=m.get("details") or {},
        )
        for m in _model_entries(payload)
    ])


def decode_running_list(payload: Dict[str, Any]) -> RunningModelList:
    return RunningModelList([
        RunningModel(
            name=m["name"],
            size=_int_or_none(m.get("size")) or 0,
            digest=m.get("digest", ""),
            expires_at=m.get("expires_at"),
            size_vram=_int_or_none(m.get("size_vram")) or 0,
            details=m.get("details") or {},
        )
        for m in _model_entries(payload)
    ])


def decode_progress(payload: Dict[str, Any]) -> ProgressEvent:
    """
    Turn one progress object into an event.

    Raises:
        TransportError: If the server reported an error in place of progress
        DecodeError: If the object has no status text
    """
    if "error" in payload:
        raise TransportError(f"Server reported: {payload['error']}")
    status = payload.get("status")
    if not isinstance(status, str):
        raise DecodeError("Progress object has no status", fragment=_fragment(json.dumps(payload)))
    return ProgressEvent(
        status=status,
        completed=_int_or_none(payload.get("completed")),
        total=_int_or_none(payload.get("total")),
        digest=payload.get("digest"),
    )


class ProgressStream:
    """
    Progress events of a pull or push, in arrival order.

    Iterate it once with ``async for``; a second iteration raises
    StreamConsumed, since the events can only be produced again by
    reissuing the call. Lines that fail to decode are skipped and their
    diagnostics collected in ``warnings``.

    Example:
        async with await client.pull_model("llama2") as status:
            async for event in status:
                print(event.status, event.fraction)
    """

    operation = "progress"

    def __init__(
        self,
        lines: Optional[AsyncIterable[bytes]] = None,
        events: Optional[List[ProgressEvent]] = None,
    ):
        self._lines = lines
        self._events = list(events or [])
        self._consumed = False
        self.warnings: List[str] = []

    @classmethod
    def from_body(cls, body: bytes) -> "ProgressStream":
        """Decode a buffered, non-streaming response into a one-event stream."""
        return cls(events=[decode_progress(decode_json(body))])

    async def __aiter__(self) -> AsyncIterator[ProgressEvent]:
        if self._consumed:
            raise StreamConsumed(f"{self.operation} status was already consumed; reissue the call")
        self._consumed = True

        if self._lines is None:
            for event in self._events:
                yield event
            return

        lines = self._lines.__aiter__()
        try:
            async for line in lines:
                if not line.strip():
                    continue
                try:
                    event = decode_progress(decode_json(line))
                except DecodeError as e:
                    warning = f"Skipping undecodable {self.operation} line: {e.message} ({e.fragment!r})"
                    logger.warning(warning)
                    self.warnings.append(warning)
                    continue
                yield event
        finally:
            if hasattr(lines, "aclose"):
                await lines.aclose()

    async def collect(self) -> List[ProgressEvent]:
        """Consume the stream and return every event."""
        return [event async for event in self]

    async def aclose(self) -> None:
        self._consumed = True
        if self._lines is not None and hasattr(self._lines, "aclose"):
            await self._lines.aclose()

    async def __aenter__(self) -> "ProgressStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


class PullStatus(ProgressStream):
    """Progress of a model pull."""

    operation = "pull"


class PushStatus(ProgressStream):
    """Progress of a model push."""

    operation = "push"
