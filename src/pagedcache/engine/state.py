"""Session and dataset state for a DataSource.

The orchestrator is the only writer. A load works on a copy of this state
(see ``transfer_to``) and the copy replaces the public one only after the
load succeeds.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from pagedcache.engine.models import Predicate


@dataclass
class SessionState[T, S]:
    """Everything a DataSource knows besides its configuration."""

    # Session
    search: S | None = None
    page: list[T] = field(default_factory=list)
    index: int = 0
    indexes: int = 0
    total: int | None = None
    loading: bool = False
    more: bool = False
    # Set once any window has been selected for this dataset.
    served: bool = False

    # Dataset store. filtered is None when no predicate is set.
    data: list[T] = field(default_factory=list)
    filtered: list[T] | None = None
    predicate: Predicate[T] | None = None

    # Upstream cursor: next page number to request, counted in units of stride.
    # stride == 0 means upstream has not been reached for this dataset yet.
    cursor: int = 0
    stride: int = 0

    @property
    def started(self) -> bool:
        return self.stride > 0

    def active_view(self) -> list[T]:
        return self.filtered if self.filtered is not None else self.data

    def transfer_to(self, other: SessionState[T, S]) -> None:
        """Copy every field onto *other*.

        Containers are copied so the two states never share a list; the
        items themselves are shared. Keep in sync with the field list.
        """
        other.search = self.search
        other.page = list(self.page)
        other.index = self.index
        other.indexes = self.indexes
        other.total = self.total
        other.loading = self.loading
        other.more = self.more
        other.served = self.served
        other.data = list(self.data)
        other.filtered = None if self.filtered is None else list(self.filtered)
        other.predicate = self.predicate
        other.cursor = self.cursor
        other.stride = self.stride

    def refilter(self) -> None:
        """Recompute ``filtered`` from ``data`` and the current predicate."""
        if self.predicate is None:
            self.filtered = None
        else:
            self.filtered = [item for item in self.data if self.predicate(item)]

    def append(self, items: list[T]) -> None:
        """Append freshly fetched items, extending ``filtered`` incrementally."""
        self.data.extend(items)
        if self.predicate is not None and self.filtered is not None:
            self.filtered.extend(item for item in items if self.predicate(item))

    def select(self, index: int, size: int) -> list[T]:
        """Make window *index* the current page and return it."""
        view = self.active_view()
        self.index = index
        self.served = True
        self.indexes = math.ceil(len(view) / size)
        self.page = view[index * size : (index + 1) * size]
        return self.page
