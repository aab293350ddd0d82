"""Tests for CancelToken."""

from __future__ import annotations

import asyncio

import pytest
from structlog.testing import capture_logs

from pagedcache.core.errors import ErrorCode, LoadCancelledError
from pagedcache.engine.cancellation import CancelToken


async def _value_after(event: asyncio.Event, value: int) -> int:
    await event.wait()
    return value


async def _fail_after(event: asyncio.Event, error: Exception) -> int:
    await event.wait()
    raise error


class TestCancelToken:
    """Token state tests."""

    @pytest.mark.asyncio
    async def test_given_new_token_when_cancelled_then_flag_set(self) -> None:
        """cancel() fires the token and is idempotent."""
        token = CancelToken()
        assert not token.cancelled

        token.cancel()
        token.cancel()

        assert token.cancelled

    def test_given_no_running_loop_when_created_then_raises(self) -> None:
        """Tokens belong to a running event loop."""
        with pytest.raises(RuntimeError):
            CancelToken()


class TestRace:
    """Racing work against the token."""

    @pytest.mark.asyncio
    async def test_given_work_finishes_first_when_raced_then_result_returned(self) -> None:
        token = CancelToken()
        event = asyncio.Event()
        event.set()

        assert await token.race(_value_after(event, 7), "query") == 7

    @pytest.mark.asyncio
    async def test_given_token_fires_first_when_raced_then_load_cancelled(self) -> None:
        """The caller is released as soon as the token fires."""
        # Given
        token = CancelToken()
        event = asyncio.Event()
        asyncio.get_running_loop().call_soon(token.cancel)

        # When / Then
        with pytest.raises(LoadCancelledError) as exc_info:
            await token.race(_value_after(event, 7), "fetch")

        assert exc_info.value.code == ErrorCode.LOAD_CANCELLED
        assert exc_info.value.details == {"operation": "fetch"}
        event.set()

    @pytest.mark.asyncio
    async def test_given_token_already_fired_when_raced_then_load_cancelled(self) -> None:
        token = CancelToken()
        token.cancel()
        event = asyncio.Event()
        event.set()

        with pytest.raises(LoadCancelledError):
            await token.race(_value_after(event, 1), "next")

    @pytest.mark.asyncio
    async def test_given_work_raises_when_raced_then_error_propagates_unchanged(self) -> None:
        """Upstream errors are neither wrapped nor retried."""
        token = CancelToken()
        event = asyncio.Event()
        event.set()
        error = ConnectionError("upstream down")

        with pytest.raises(ConnectionError) as exc_info:
            await token.race(_fail_after(event, error), "query")

        assert exc_info.value is error

    @pytest.mark.asyncio
    async def test_given_superseded_work_fails_later_when_settled_then_dropped(self) -> None:
        """A late failure from cancelled work is consumed, not re-raised."""
        # Given
        token = CancelToken()
        event = asyncio.Event()
        asyncio.get_running_loop().call_soon(token.cancel)
        with pytest.raises(LoadCancelledError):
            await token.race(_fail_after(event, ValueError("late")), "query")

        # When
        with capture_logs() as logs:
            event.set()
            for _ in range(5):
                await asyncio.sleep(0)

        # Then
        assert [entry["event"] for entry in logs] == ["stale_load_failed"]
        assert "late" in logs[0]["error"]

    @pytest.mark.asyncio
    async def test_given_superseded_work_succeeds_later_when_settled_then_discarded(
        self,
    ) -> None:
        token = CancelToken()
        event = asyncio.Event()
        asyncio.get_running_loop().call_soon(token.cancel)
        with pytest.raises(LoadCancelledError):
            await token.race(_value_after(event, 3), "query")

        with capture_logs() as logs:
            event.set()
            for _ in range(5):
                await asyncio.sleep(0)

        assert [entry["event"] for entry in logs] == ["stale_response_discarded"]

    @pytest.mark.asyncio
    async def test_given_caller_cancelled_when_racing_then_token_fires(self) -> None:
        """Cancelling the awaiting task also invalidates the token."""
        # Given
        token = CancelToken()
        event = asyncio.Event()
        caller = asyncio.create_task(token.race(_value_after(event, 1), "query"))
        await asyncio.sleep(0)

        # When
        caller.cancel()

        # Then
        with pytest.raises(asyncio.CancelledError):
            await caller
        assert token.cancelled
        event.set()
        await asyncio.sleep(0)
