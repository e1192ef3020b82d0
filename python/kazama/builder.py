"""
Request construction for each API operation.

Builders validate caller input and never touch the network, so a rejected
argument costs no request.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .errors import InvalidArgument

VALID_ROLES = ("user", "system", "assistant")


@dataclass(frozen=True)
class OperationRequest:
    """A fully built API call."""
    method: str
    path: str
    body: Optional[Dict[str, Any]] = None
    stream: bool = False

    def to_dict(self) -> Optional[Dict[str, Any]]:
        """Return a copy of the JSON body safe to hand to the transport."""
        if self.body is None:
            return None
        return copy.deepcopy(self.body)


def _require_name(value: Any, label: str) -> str:
    if not isinstance(value, str) or not value.strip():
        raise InvalidArgument(f"{label} must be a non-empty string, got {value!r}")
    return value


def _require_text(value: Any, label: str) -> str:
    if not isinstance(value, str):
        raise InvalidArgument(f"{label} must be a string, got {type(value).__name__}")
    return value


def build_chat(model: str, content: str, role: str = "user") -> OperationRequest:
    _require_name(model, "model")
    _require_text(content, "content")
    if role not in VALID_ROLES:
        raise InvalidArgument(
            f"role must be one of {', '.join(VALID_ROLES)}, got {role!r}"
        )
    return OperationRequest(
        method="POST",
        path="/api/chat",
        body={
            "model": model,
            "messages": [{"role": role, "content": content}],
            "stream": False,
        },
    )


def build_pull(name: str, stream: bool = True) -> OperationRequest:
    _require_name(name, "name")
    return OperationRequest(
        method="POST",
        path="/api/pull",
        body={"name": name, "stream": bool(stream)},
        stream=bool(stream),
    )


def build_embeddings(model: str, prompt: str) -> OperationRequest:
    _require_name(model, "model")
    _require_text(prompt, "prompt")
    return OperationRequest(
        method="POST",
        path="/api/embeddings",
        body={"model": model, "prompt": prompt},
    )


def build_list_models() -> OperationRequest:
    return OperationRequest(method="GET", path="/api/tags")


def build_list_running() -> OperationRequest:
    return OperationRequest(method="GET", path="/api/ps")


def build_push(name: str, stream: bool = True) -> OperationRequest:
    _require_name(name, "name")
    return OperationRequest(
        method="POST",
        path="/api/push",
        body={"name": name, "stream": bool(stream)},
        stream=bool(stream),
    )
