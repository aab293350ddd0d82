"""Paged cache engine - windowed, filterable cache over an async page function."""

from pagedcache.engine.cancellation import CancelToken
from pagedcache.engine.models import PageRequest, PageResponse, Result
from pagedcache.engine.source import DataSource
from pagedcache.engine.state import SessionState

__all__ = [
    "CancelToken",
    "DataSource",
    "PageRequest",
    "PageResponse",
    "Result",
    "SessionState",
]
