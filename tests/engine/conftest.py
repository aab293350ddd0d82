"""Engine test fixtures: a deterministic in-memory upstream."""

from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

import pytest

from pagedcache.config.models import CacheConfig
from pagedcache.engine import DataSource, PageRequest, PageResponse


class FakeUpstream:
    """Serves slices of a fixed item list and records every request.

    A non-None search keeps items whose ``str()`` starts with it. Setting
    ``gate`` makes each call wait for the event; setting ``error`` makes
    each call raise it.
    """

    def __init__(self, items: list[Any]) -> None:
        self.items = items
        self.calls: list[PageRequest[str]] = []
        self.gate: asyncio.Event | None = None
        self.error: BaseException | None = None
        self.echo_search: str | None = None

    async def __call__(self, req: PageRequest[str]) -> PageResponse[Any, str]:
        self.calls.append(req)
        gate = self.gate
        if gate is not None:
            await gate.wait()
        if self.error is not None:
            raise self.error
        matching = self.items
        if req.search is not None:
            matching = [item for item in self.items if str(item).startswith(req.search)]
        start = req.index * req.size
        return PageResponse(
            page=matching[start : start + req.size],
            search=self.echo_search,
            total=len(matching),
        )


@pytest.fixture
def make_upstream() -> Callable[..., FakeUpstream]:
    """Factory: make_upstream(n) serves the integers 0..n-1."""

    def factory(n: int = 500, items: list[Any] | None = None) -> FakeUpstream:
        return FakeUpstream(list(range(n)) if items is None else items)

    return factory


@pytest.fixture
def upstream(make_upstream: Callable[..., FakeUpstream]) -> FakeUpstream:
    return make_upstream(500)


@pytest.fixture
def source(upstream: FakeUpstream) -> DataSource[int, str]:
    """page_size=50, fetch_limit=100 over 500 items."""
    return DataSource(upstream, CacheConfig(page_size=50, fetch_limit=100))

