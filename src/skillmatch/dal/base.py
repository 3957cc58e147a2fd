"""Shared plumbing for the async repositories."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from functools import partial

from skillmatch.rest.client import RestClient
from skillmatch.rest.query import Query


async def run_sync(func, *args, **kwargs):
    """Run a blocking client call in a worker thread."""
    if kwargs:
        func = partial(func, **kwargs)
    return await asyncio.to_thread(func, *args)


def utcnow_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


class Repository:
    """Base class exposing the REST client's calls as coroutines."""

    def __init__(self, client: RestClient):
        self.client = client

    async def select(self, query: Query) -> list[dict]:
        return await run_sync(self.client.select, query)

    async def count(self, query: Query) -> int:
        return await run_sync(self.client.count, query)

    async def insert(self, table: str, row: dict, on_conflict: tuple[str, ...] | None = None) -> list[dict]:
        return await run_sync(self.client.insert, table, row, on_conflict=on_conflict)

    async def update(self, query: Query, values: dict) -> list[dict]:
        return await run_sync(self.client.update, query, values)

    async def delete(self, query: Query) -> None:
        await run_sync(self.client.delete, query)
