"""Uniform ``(data, error)`` results returned across the DAL boundary."""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from skillmatch.rest.errors import ErrorKind, RestError

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Result(Generic[T]):
    data: T | None = None
    error: str | None = None
    kind: ErrorKind | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def is_duplicate(self) -> bool:
        return self.kind == ErrorKind.DUPLICATE

    @classmethod
    def success(cls, data: T) -> Result[T]:
        return cls(data=data)

    @classmethod
    def failure(cls, error: str, kind: ErrorKind, data: T | None = None) -> Result[T]:
        return cls(data=data, error=error, kind=kind)


def dal_operation(default: Callable[[], Any] | None = None):
    """Turn any backend or shape failure of an async DAL method into a failed ``Result``.

    ``default`` builds the safe value handed back on failure (``list`` for
    collections, ``None`` for single records).
    """

    def decorator(fn):
        @functools.wraps(fn)
        async def wrapper(*args, **kwargs) -> Result:
            try:
                return await fn(*args, **kwargs)
            except RestError as exc:
                logger.warning("%s failed: %s", fn.__qualname__, exc)
                return Result.failure(exc.message, exc.kind, default() if default else None)
            except (ValueError, KeyError, TypeError) as exc:
                logger.warning("%s got an unexpected response shape: %s", fn.__qualname__, exc)
                return Result.failure(
                    f"Unexpected response: {exc}", ErrorKind.MALFORMED, default() if default else None
                )

        return wrapper

    return decorator
