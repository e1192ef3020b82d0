"""Success/failure values for callers that prefer them to exceptions."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Awaitable, Generic, Optional, TypeVar

from .errors import KazamaError

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    """Outcome of one operation: a value or the error that replaced it."""
    value: Optional[T] = None
    error: Optional[KazamaError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def unwrap(self) -> T:
        """Return the value, re-raising the error if the call failed."""
        if self.error is not None:
            raise self.error
        return self.value


async def attempt(aw: Awaitable[T]) -> Result[T]:
    """
    Await an operation and capture its outcome.

    Only client failures are captured; anything else, including task
    cancellation, propagates.

    Example:
        result = await attempt(client.list_models())
        if not result.ok:
            print(result.error.kind, result.error.message)
    """
    try:
        return Result(value=await aw)
    except KazamaError as e:
        return Result(error=e)
