"""One-shot cancellation tokens for in-flight loads.

A load races against its token: whichever settles first wins. A cancelled
load raises LoadCancelledError in its caller right away. The upstream call
in flight is not aborted. The load checks its token before requesting
another page, and its outcome is consumed and dropped when it arrives.
"""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from typing import Any

from pagedcache.core.errors import LoadCancelledError
from pagedcache.core.logging import get_logger

log = get_logger(__name__)


def _drop_outcome(task: asyncio.Task[Any]) -> None:
    """Retrieve a superseded load's outcome so asyncio does not report it."""
    if task.cancelled():
        return
    error = task.exception()
    if error is not None:
        log.debug("stale_load_failed", error=repr(error))
    else:
        log.debug("stale_response_discarded")


class CancelToken:
    """Cancellation signal for a single load.

    Must be created while an event loop is running.
    """

    __slots__ = ("_signal",)

    def __init__(self) -> None:
        self._signal: asyncio.Future[None] = asyncio.get_running_loop().create_future()

    @property
    def cancelled(self) -> bool:
        return self._signal.done()

    def cancel(self) -> None:
        """Fire the token. Idempotent."""
        if not self._signal.done():
            self._signal.set_result(None)

    async def race[R](self, work: Coroutine[Any, Any, R], operation: str) -> R:
        """Run *work* until it finishes or this token fires.

        Exceptions raised by *work* propagate unchanged.

        Raises:
            LoadCancelledError: If the token fired first, or fired before
                the caller resumed after *work* finished.
        """
        task = asyncio.ensure_future(work)
        try:
            await asyncio.wait({task, self._signal}, return_when=asyncio.FIRST_COMPLETED)
        except asyncio.CancelledError:
            # The caller itself was cancelled; treat it as a superseded load.
            self.cancel()
            task.add_done_callback(_drop_outcome)
            raise

        if self.cancelled:
            task.add_done_callback(_drop_outcome)
            raise LoadCancelledError.superseded(operation)
        return task.result()
