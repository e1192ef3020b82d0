"""Typed results returned by the client operations."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional

import numpy as np


@dataclass
class ChatReply:
    """Assistant reply to a chat completion."""
    content: str
    role: str = "assistant"
    model: Optional[str] = None
    done: bool = True


@dataclass
class ProgressEvent:
    """One status update from a pull or push."""
    status: str
    completed: Optional[int] = None
    total: Optional[int] = None
    digest: Optional[str] = None

    @property
    def fraction(self) -> Optional[float]:
        """Completed share of the current layer, if the server reported sizes."""
        if self.completed is None or not self.total:
            return None
        return self.completed / self.total


@dataclass
class EmbeddingVector:
    """Embedding values in the order the server sent them."""
    values: List[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)

    def __getitem__(self, index):
        return self.values[index]

    def as_array(self, dtype: Any = np.float64) -> np.ndarray:
        """Return the vector as a 1-D numpy array."""
        return np.asarray(self.values, dtype=dtype)


@dataclass
class ModelDescriptor:
    """A model stored on the server."""
    name: str
    size: int = 0
    modified_at: Optional[str] = None
    digest: str = ""
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class ModelList:
    """Models stored on the server, in server order."""
    models: List[ModelDescriptor] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.models)

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self.models)

    @property
    def names(self) -> List[str]:
        return [m.name for m in self.models]


@dataclass
class RunningModel:
    """A model currently loaded into memory."""
    name: str
    size: int = 0
    digest: str = ""
    expires_at: Optional[str] = None
    size_vram: int = 0
    details: Dict[str, Any] = field(default_factory=dict)


@dataclass
class RunningModelList:
    """Models currently loaded, in server order."""
    models: List[RunningModel] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.models)

    def __iter__(self) -> Iterator[RunningModel]:
        return iter(self.models)
