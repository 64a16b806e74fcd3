"""
Helpers for orchestrating asyncio tasks.

These utilities only support tasks, not more generic futures, coroutines,
or other awaitables. In most case where we use it, we need specifically tasks,
as we not only wait for them, but also cancel them.

Anyway, ``asyncio`` wraps all awaitables and coroutines into tasks on almost
all function calls with multiple awaiables (e.g. :func:`asyncio.wait`),
so there is no added overhead; instead, the implicit overhead is made explicit.
"""
import asyncio
from typing import TYPE_CHECKING, Any, Collection, Optional, Set, Tuple

from kubefan._cogs.helpers import typedefs

# A workaround for a difference in tasks at runtime and type-checking time.
# Otherwise, at runtime: TypeError: 'type' object is not subscriptable.
if TYPE_CHECKING:
    Future = asyncio.Future[Any]
    Task = asyncio.Task[Any]
else:
    Future = asyncio.Future
    Task = asyncio.Task


async def wait(
        tasks: Collection[Task],
        *,
        timeout: Optional[float] = None,
        return_when: Any = asyncio.ALL_COMPLETED,
) -> Tuple[Set[Task], Set[Task]]:
    """
    A safer version of :func:`asyncio.wait` -- does not fail on an empty list.
    """
    if not tasks:
        return set(), set()
    done, pending = await asyncio.wait(tasks, timeout=timeout, return_when=return_when)
    return done, pending


async def join(
        tasks: Collection[Task],
        *,
        title: str,
        logger: Optional[typedefs.Logger] = None,
) -> Set[Task]:
    """
    Wait for all the tasks to finish; stop them all if the waiting is cancelled.

    Unlike :func:`asyncio.gather`, the failures of individual tasks
    do not interrupt the waiting: the tasks are awaited until all are done,
    and their outcomes are left in the tasks for the caller to inspect.

    If the joining task itself is cancelled, the cancellation is propagated
    to all the awaited tasks, which are awaited again before re-raising.
    """
    try:
        done, _ = await wait(tasks)
    except asyncio.CancelledError:
        await stop(tasks, title=title, logger=logger)
        raise
    return done


async def stop(
        tasks: Collection[Task],
        *,
        title: str,
        quiet: bool = False,
        logger: Optional[typedefs.Logger] = None,
) -> Set[Task]:
    """
    Cancel the tasks and wait for them to exit; return the exited ones.

    In the quiet mode, only the tasks that did not exit are logged: this can
    happen if the stopping itself is cancelled. The stopping has no timeouts.
    """
    captitle = title.capitalize()

    if not tasks:
        if logger is not None and not quiet:
            logger.debug(f"{captitle} tasks stopping is skipped: no tasks given.")
        return set()

    for task in tasks:
        task.cancel()

    done: Set[Task] = set()
    try:
        done, _ = await wait(tasks)
    finally:
        pending = {task for task in tasks if not task.done()}
        if logger is not None and (not quiet or pending):
            are = 'are' if not pending else 'are not'
            logger.debug(f"{captitle} tasks {are} stopped; tasks left: {pending!r}")
    return done
