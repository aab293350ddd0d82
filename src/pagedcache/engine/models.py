"""Value types exchanged between the engine, its upstream, and the UI."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

from pagedcache.core.errors import UpstreamResponseError

type Predicate[T] = Callable[[T], bool]
type Updater[T] = Callable[[T], T]
type RequestFn[T, S] = Callable[
    [PageRequest[S]], Awaitable[PageResponse[T, S] | Mapping[str, Any]]
]


@dataclass(frozen=True, slots=True)
class PageRequest[S]:
    """Request descriptor handed to the upstream function.

    Attributes:
        search: Search term, or None for "no term"
        index: 0-based upstream page number, counted in units of ``size``
        size: Page length requested
    """

    search: S | None
    index: int
    size: int


@dataclass(frozen=True, slots=True)
class PageResponse[T, S]:
    """One page returned by the upstream function.

    ``search`` and ``total`` are optional echoes; None means "not reported"
    and leaves the engine's current value untouched.
    """

    page: list[T]
    search: S | None = None
    total: int | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> PageResponse[Any, Any]:
        """Accept a PageResponse or a mapping with the same keys.

        Raises:
            UpstreamResponseError: If the payload is not shaped like a page.
        """
        if isinstance(payload, PageResponse):
            return payload
        if not isinstance(payload, Mapping):
            raise UpstreamResponseError.invalid(payload, "expected PageResponse or mapping")
        if "page" not in payload:
            raise UpstreamResponseError.invalid(payload, "missing 'page'")

        page = payload["page"]
        if not isinstance(page, Sequence) or isinstance(page, (str, bytes)):
            raise UpstreamResponseError.invalid(page, "'page' must be a sequence of items")
        total = payload.get("total")
        if total is not None and (not isinstance(total, int) or isinstance(total, bool)):
            raise UpstreamResponseError.invalid(total, "'total' must be an integer")

        return cls(page=list(page), search=payload.get("search"), total=total)


@dataclass(frozen=True, slots=True)
class Result[T, S]:
    """A window of the active view, as returned to the UI."""

    page: list[T] = field(default_factory=list)
    search: S | None = None
    total: int | None = None
    index: int = 0
    indexes: int = 0
    more: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "page": list(self.page),
            "search": self.search,
            "total": self.total,
            "index": self.index,
            "indexes": self.indexes,
            "more": self.more,
        }
