"""Unit tests for cancellation scopes."""

from __future__ import annotations

from asyncio import (
    CancelledError as AsyncioCancelledError,
    Event,
    create_task as asyncio_create_task,
    get_running_loop,
    sleep as asyncio_sleep,
)

import pytest

from line_client.cancel import CancellationScope, ScopeCancelled


def test_cancel_fires_once() -> None:
    """Test that cancel runs callbacks once and reports whether it fired."""
    scope = CancellationScope("test")
    calls: list[str] = []
    scope.on_cancel(lambda: calls.append("fired"))

    if scope.cancel() is not True:
        pytest.fail("First cancel should report that it fired the scope")
    if scope.cancel() is not False:
        pytest.fail("Second cancel should be a no-op")
    if calls != ["fired"]:
        pytest.fail(f"Callback should run exactly once, got {calls!r}")
    if not scope.cancelled:
        pytest.fail("Scope should report cancelled")


def test_on_cancel_after_fire_runs_immediately() -> None:
    """Test that late registrations still observe the cancellation."""
    scope = CancellationScope()
    scope.cancel()
    calls: list[int] = []
    scope.on_cancel(lambda: calls.append(1))
    if calls != [1]:
        pytest.fail("Callback registered after cancel should run immediately")


def test_unregister_callback() -> None:
    """Test that an unregistered callback is not run."""
    scope = CancellationScope()
    calls: list[int] = []
    unregister = scope.on_cancel(lambda: calls.append(1))
    unregister()
    scope.cancel()
    if calls:
        pytest.fail("Unregistered callback should not run")


def test_child_follows_parent() -> None:
    """Test that cancelling a parent cancels its children."""
    parent = CancellationScope("parent")
    child = parent.child("child")
    if child.cancelled:
        pytest.fail("Child should start live")
    parent.cancel()
    if not child.cancelled:
        pytest.fail("Child should be cancelled with its parent")


def test_child_does_not_cancel_parent() -> None:
    """Test that a child can be cancelled locally."""
    parent = CancellationScope("parent")
    child = parent.child()
    child.cancel()
    if parent.cancelled:
        pytest.fail("Cancelling a child must not cancel the parent")
    if child.name != "parent.child":
        pytest.fail(f"Unexpected default child name: {child.name!r}")


def test_child_of_cancelled_parent() -> None:
    """Test that a child created from a fired parent starts cancelled."""
    parent = CancellationScope()
    parent.cancel()
    if not parent.child().cancelled:
        pytest.fail("Child of a cancelled scope should be cancelled")


@pytest.mark.asyncio
async def test_guard_returns_result() -> None:
    """Test that guard passes results through."""
    scope = CancellationScope()

    async def answer() -> int:
        await asyncio_sleep(0)
        return 42

    if await scope.guard(answer()) != 42:  # noqa: PLR2004
        pytest.fail("Guard should return the operation result")


@pytest.mark.asyncio
async def test_guard_propagates_errors() -> None:
    """Test that guard re-raises operation errors."""
    scope = CancellationScope()

    async def broken() -> None:
        msg = "boom"
        raise ValueError(msg)

    with pytest.raises(ValueError, match="boom"):
        await scope.guard(broken())


@pytest.mark.asyncio
async def test_guard_interrupted_by_cancel() -> None:
    """Test that firing the scope wakes a pending guard."""
    scope = CancellationScope("reader")
    never = Event()
    task = asyncio_create_task(scope.guard(never.wait()))
    await asyncio_sleep(0)
    scope.cancel()
    with pytest.raises(ScopeCancelled):
        await task


@pytest.mark.asyncio
async def test_guard_already_cancelled() -> None:
    """Test that guard refuses to start once the scope has fired."""
    scope = CancellationScope()
    scope.cancel()
    started: list[bool] = []

    async def operation() -> None:
        started.append(True)

    with pytest.raises(ScopeCancelled):
        await scope.guard(operation())
    if started:
        pytest.fail("Operation should never start on a cancelled scope")


@pytest.mark.asyncio
async def test_guard_prefers_completed_result() -> None:
    """Test that a result ready in the same iteration as cancellation wins."""
    scope = CancellationScope()
    future = get_running_loop().create_future()
    task = asyncio_create_task(scope.guard(future))
    await asyncio_sleep(0)

    future.set_result("acquired")
    scope.cancel()

    if await task != "acquired":
        pytest.fail("Completed result should win over simultaneous cancellation")


@pytest.mark.asyncio
async def test_guard_outer_cancellation() -> None:
    """Test that cancelling the awaiting task cancels the guarded operation."""
    scope = CancellationScope()
    inner_cancelled = Event()

    async def operation() -> None:
        try:
            await Event().wait()
        except AsyncioCancelledError:
            inner_cancelled.set()
            raise

    task = asyncio_create_task(scope.guard(operation()))
    await asyncio_sleep(0)
    task.cancel()
    with pytest.raises(AsyncioCancelledError):
        await task
    await asyncio_sleep(0)
    if not inner_cancelled.is_set():
        pytest.fail("Guarded operation should be cancelled with its caller")
    if scope.cancelled:
        pytest.fail("Task cancellation must not fire the scope")
