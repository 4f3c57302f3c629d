"""
Task Tracker for detached background work.

Relay jobs and housekeeping loops run as detached asyncio tasks. Holding
a strong reference here keeps them from being garbage-collected mid-run,
and lets the lifespan cancel whatever is still running at shutdown.
"""

import asyncio
import logging
from typing import Coroutine, List, Optional, Set

logger = logging.getLogger(__name__)

# Registry of active tasks
_active_tasks: Set[asyncio.Task] = set()


def _on_task_done(task: asyncio.Task) -> None:
    _active_tasks.discard(task)
    task_name = task.get_name()
    if task.cancelled():
        logger.info(f"⏸️ Task cancelled: {task_name}")
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            f"❌ Task failed: {task_name}",
            exc_info=(type(exc), exc, exc.__traceback__),
        )
    else:
        logger.debug(f"✅ Task completed: {task_name}")


def create_tracked_task(
    coro: Coroutine,
    name: Optional[str] = None,
) -> asyncio.Task:
    """
    Create an asyncio task and keep it registered until it finishes.

    Args:
        coro: The coroutine to run as a task
        name: Optional name for the task (shows up in logs)

    Returns:
        The created task
    """
    task = asyncio.create_task(coro, name=name)
    _active_tasks.add(task)
    task.add_done_callback(_on_task_done)
    logger.debug(f"Created tracked task: {task.get_name()}")
    return task


def get_active_tasks() -> Set[asyncio.Task]:
    """Get a snapshot of the currently active tracked tasks."""
    return _active_tasks.copy()


def get_active_task_count(prefix: Optional[str] = None) -> int:
    """Count active tasks, optionally only those whose name starts with ``prefix``."""
    if prefix is None:
        return len(_active_tasks)
    return sum(1 for t in _active_tasks if t.get_name().startswith(prefix))


async def cancel_all_tasks(timeout: float = 5.0) -> int:
    """
    Cancel all tracked tasks and wait for them to finish.

    Args:
        timeout: Maximum time to wait for tasks to cancel

    Returns:
        Number of tasks that ended up cancelled
    """
    tasks: List[asyncio.Task] = [t for t in _active_tasks if not t.done()]
    if not tasks:
        logger.info("No active tasks to cancel")
        return 0

    logger.info(f"Cancelling {len(tasks)} active tasks...")
    for task in tasks:
        task.cancel()

    try:
        await asyncio.wait_for(
            asyncio.gather(*tasks, return_exceptions=True),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(
            f"Timeout waiting for tasks to cancel. "
            f"Remaining: {sum(1 for t in tasks if not t.done())}"
        )

    cancelled = sum(1 for t in tasks if t.cancelled())
    logger.info(f"Cancelled {cancelled}/{len(tasks)} tasks")
    return cancelled


async def wait_for_tasks(timeout: Optional[float] = None) -> None:
    """
    Wait for all tracked tasks to complete.

    Args:
        timeout: Maximum time to wait (None = wait forever)
    """
    tasks = list(_active_tasks)
    if not tasks:
        return

    logger.info(f"Waiting for {len(tasks)} tasks to complete...")
    try:
        await asyncio.wait_for(
            asyncio.gather(*tasks, return_exceptions=True),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning("Timeout waiting for tasks")


async def clear_all_tasks() -> None:
    """Cancel and forget every tracked task (for testing)."""
    await cancel_all_tasks(timeout=1.0)
    _active_tasks.clear()
