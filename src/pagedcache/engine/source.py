"""Paged cache engine.

A DataSource sits between a UI list and an upstream page function. It keeps
every item fetched so far, an optional locally filtered view of them, and
serves fixed-size windows of that view, going upstream only when the cache
cannot cover the window asked for.

Usage::

    async def request(req: PageRequest[str]) -> PageResponse[dict, str]:
        rows = await api.list_users(q=req.search, page=req.index, per_page=req.size)
        return PageResponse(page=rows)

    source = DataSource(request, CacheConfig(page_size=50, fetch_limit=500))
    first = await source.query("ann")     # window 0, loads as little as possible
    second = await source.next()          # window 1, loads more only if needed
    source.filter(lambda row: row["active"])

Network-touching operations run on a private clone that is committed
atomically on success. Any later operation (or cancel()) supersedes a
pending load: its caller gets LoadCancelledError and the instance is left
exactly as it was before the load began. Upstream exceptions propagate
unchanged and also leave the instance untouched.
"""

from __future__ import annotations

from collections.abc import Coroutine, Iterator
from typing import Any

from pagedcache.config.models import CacheConfig
from pagedcache.core.errors import LoadCancelledError
from pagedcache.core.logging import get_logger, load_context
from pagedcache.engine.cancellation import CancelToken
from pagedcache.engine.models import (
    PageRequest,
    PageResponse,
    Predicate,
    RequestFn,
    Result,
    Updater,
)
from pagedcache.engine.state import SessionState

log = get_logger(__name__)


def _find[T](items: list[T], match: Predicate[T]) -> int:
    for position, item in enumerate(items):
        if match(item):
            return position
    return -1


class DataSource[T, S]:
    """Windowed, filterable cache over an asynchronous page function."""

    def __init__(self, request: RequestFn[T, S], config: CacheConfig | None = None) -> None:
        self._request = request
        self._config = config or CacheConfig()
        self._state: SessionState[T, S] = SessionState()
        self._token: CancelToken | None = None

    # -- read-only session fields ------------------------------------------

    @property
    def config(self) -> CacheConfig:
        return self._config

    @property
    def size(self) -> int:
        return self._config.page_size

    @property
    def limit(self) -> int:
        return self._config.fetch_limit

    @property
    def search(self) -> S | None:
        return self._state.search

    @property
    def page(self) -> list[T]:
        return list(self._state.page)

    @property
    def index(self) -> int:
        return self._state.index

    @property
    def indexes(self) -> int:
        return self._state.indexes

    @property
    def total(self) -> int | None:
        return self._state.total

    @property
    def loading(self) -> bool:
        return self._state.loading

    @property
    def more(self) -> bool:
        return self._state.more

    @property
    def data(self) -> list[T]:
        return list(self._state.data)

    @property
    def filtered(self) -> list[T] | None:
        filtered = self._state.filtered
        return None if filtered is None else list(filtered)

    # -- lifecycle ---------------------------------------------------------

    def clone(self, full: bool = False) -> DataSource[T, S]:
        """New engine with the same configuration.

        Args:
            full: Also copy all session and dataset state. The in-flight
                load, if any, is never shared.
        """
        clone: DataSource[T, S] = DataSource(self._request, self._config)
        if full:
            self._state.transfer_to(clone._state)
        return clone

    def clear(self) -> None:
        """Cancel any pending load and reset to construction-time state."""
        self.cancel()
        self._state = SessionState()

    def cancel(self) -> None:
        """Supersede the pending load, if any. Its caller gets LoadCancelledError."""
        token, self._token = self._token, None
        if token is not None:
            token.cancel()
            self._state.loading = False
            log.debug("load_cancel_requested")

    # -- loads -------------------------------------------------------------

    async def query(self, search: S | None = None) -> Result[T, S]:
        """Start a new dataset for *search* and fill its first window.

        With a filter active, upstream is read in ``limit``-sized pages since
        most raw items may be filtered out.
        """
        clone = self._fresh(search)
        stride = self.limit if self._state.predicate is not None else self.size
        return await self._run("query", clone, clone._load(self.size, stride), 0)

    async def fetch(self, search: S | None = None) -> Result[T, S]:
        """Start a new dataset for *search*, load all of it, return window 0.

        Stops early once ``config.buffer`` items are held, if set.
        """
        clone = self._fresh(search)
        work = clone._load(None, self.limit, cap=self._config.buffer)
        return await self._run("fetch", clone, work, 0)

    async def next(self, index: int | None = None) -> Result[T, S]:
        """Serve window *index*, or the window after the current one.

        The target is clamped to ``[0, config.max_window_index]``. Upstream is
        only called when the cache does not fully cover the target window and
        upstream may still have more; the continuation resumes after the last
        fetched page and keeps the current search.
        """
        self.cancel()
        state = self._state
        if index is None:
            index = state.index + 1 if state.served else 0
        target = min(max(index, 0), self._config.max_window_index)

        need = (target + 1) * self.size
        upstream_open = state.more or not state.started
        if upstream_open and len(state.active_view()) < need:
            clone = self.clone(full=True)
            stride = self.limit if state.predicate is not None else self.size
            return await self._run("next", clone, clone._load(need, stride), target)

        state.select(target, self.size)
        return self._result()

    # -- local operations --------------------------------------------------

    def filter(self, predicate: Predicate[T] | None) -> Result[T, S]:
        """Filter the resident data locally and return window 0.

        Never calls upstream: call fetch() first to filter the whole remote
        dataset. None removes the filter.
        """
        self.cancel()
        self._state.predicate = predicate
        self._state.refilter()
        self._state.select(0, self.size)
        return self._result()

    def insert(self, match: Predicate[T] | None, *items: T) -> Result[T, S]:
        """Insert *items* before the first item matching *match*.

        ``match=None`` appends. The current window index is kept so the
        caller's page does not jump.
        """
        self.cancel()
        state = self._state
        if match is None:
            position = len(state.data)
        else:
            position = _find(state.data, match)
        if position >= 0:
            state.data[position:position] = items
            state.refilter()
        else:
            log.debug("insert_no_match")
        state.select(state.index, self.size)
        return self._result()

    def upsert(self, match: Predicate[T], updater: Updater[T]) -> Result[T, S]:
        """Replace the first item matching *match* with ``updater(item)``.

        No match is a no-op: *updater* is not called and the current window
        is returned unchanged.
        """
        self.cancel()
        state = self._state
        position = _find(state.data, match)
        if position < 0:
            log.debug("upsert_no_match")
            state.select(state.index, self.size)
            return self._result()

        state.data[position] = updater(state.data[position])
        state.refilter()
        state.select(0, self.size)
        return self._result()

    def remove(self, match: Predicate[T]) -> Result[T, S]:
        """Remove every item matching *match* and return window 0."""
        self.cancel()
        state = self._state
        kept = [item for item in state.data if not match(item)]
        if len(kept) == len(state.data):
            log.debug("remove_no_match")
            state.select(state.index, self.size)
            return self._result()

        state.data = kept
        state.refilter()
        state.select(0, self.size)
        return self._result()

    # -- views -------------------------------------------------------------

    def get(self) -> list[T]:
        """Snapshot of the active view (filtered if a filter is set)."""
        return list(self._state.active_view())

    def iter_items(self) -> Iterator[T]:
        """Iterate over a fresh snapshot of the active view."""
        return iter(self.get())

    # -- internals ---------------------------------------------------------

    def _result(self) -> Result[T, S]:
        state = self._state
        return Result(
            page=list(state.page),
            search=state.search,
            total=state.total,
            index=state.index,
            indexes=state.indexes,
            more=state.more,
        )

    def _fresh(self, search: S | None) -> DataSource[T, S]:
        """Empty clone for a new dataset, keeping the current filter."""
        clone = self.clone()
        clone._state.search = search
        clone._state.predicate = self._state.predicate
        clone._state.refilter()
        return clone

    async def _load(self, need: int | None, stride: int, cap: int | None = None) -> None:
        """Accumulation loop, run on a clone.

        Requests pages until the active view holds *need* items (None: until
        upstream is exhausted) or *cap* raw items are held. A continuation
        keeps the stride its dataset started with so page numbers line up.
        Once the clone's token has fired no further page is requested.
        """
        state = self._state
        stride = state.stride or stride
        state.stride = stride

        while state.more or state.cursor == 0:
            if self._token is not None and self._token.cancelled:
                log.debug("load_abandoned", cursor=state.cursor)
                return
            if need is not None and len(state.active_view()) >= need:
                break
            if cap is not None and len(state.data) >= cap:
                log.warning("buffer_reached", buffer=cap, held=len(state.data))
                break

            request: PageRequest[S] = PageRequest(
                search=state.search, index=state.cursor, size=stride
            )
            log.debug("upstream_request", search=request.search, index=request.index, size=stride)
            response = PageResponse.from_payload(await self._request(request))
            log.debug("upstream_response", index=request.index, items=len(response.page))

            state.cursor += 1
            state.more = len(response.page) >= stride
            state.append(response.page)
            if response.search is not None:
                state.search = response.search
            if response.total is not None:
                state.total = response.total

    async def _run(
        self,
        operation: str,
        clone: DataSource[T, S],
        work: Coroutine[Any, Any, None],
        index: int,
    ) -> Result[T, S]:
        """Race *work* (a clone's load) against a new token, then commit."""
        self.cancel()
        token = self._token = CancelToken()
        clone._token = token
        self._state.loading = True
        with load_context(operation):
            log.debug("load_started")
            try:
                await token.race(work, operation)
            except LoadCancelledError:
                log.debug("load_cancelled")
                raise
            except Exception as e:
                log.warning("load_failed", error=repr(e))
                raise
            finally:
                # A superseding load owns the flag once it has replaced the token.
                if self._token is token:
                    self._token = None
                    self._state.loading = False

            clone._state.loading = False
            clone._state.transfer_to(self._state)
            self._state.select(index, self.size)
            log.debug("load_committed", items=len(self._state.data), more=self._state.more)
        return self._result()
