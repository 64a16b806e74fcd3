"""
Watching the objects of all resource types as one merged stream of events.

Every watchable resource type gets its own worker with its own watch-stream.
The workers put the events into one bounded queue, which is drained
by the only consumer -- the caller iterating over `watch_by_label`.

The stopping is coordinated via one shared "stopper" future: once it is
resolved, every open watch-stream is closed from the outside, the workers
exit, and the merged stream ends after all the workers are finished.
The stopper is resolved by a supervising task when the caller's stop-flag
is raised, or by the merged stream itself when the caller stops iterating.
"""
import asyncio
import logging
from typing import AsyncIterator, Collection, Optional, Union

from kubefan._cogs.aiokits import aioadapters, aiotasks
from kubefan._cogs.clients import auth, handles, scanning
from kubefan._cogs.configs import configuration
from kubefan._cogs.helpers import typedefs
from kubefan._cogs.structs import bodies, credentials, references
from kubefan._core.actions import capabilities, loggers


class _EndOfStream:
    """ A marker put into the queue when all the workers are finished. """


async def watch_by_label(
        connection: credentials.ConnectionInfo,
        namespace: references.Namespace,
        label: str,
        *,
        stop_flag: Optional[aioadapters.Flag] = None,
        settings: Optional[configuration.FanOutSettings] = None,
        logger: Optional[typedefs.Logger] = None,
) -> AsyncIterator[bodies.RawEvent]:
    """
    Stream the events of the objects with the label, for all resource types.

    The label is a raw selector as accepted by the server (e.g. ``app=web``).
    Nothing happens until the iteration starts (including the discovery).

    The stream ends when the stop-flag is raised (or when all the servers'
    streams are closed by themselves). The failed watch-streams are excluded
    from the merged stream: they are logged, but do not fail the whole stream.

    The events of one resource type go in the order as sent by the server,
    but there is no order between the events of different resource types.
    """
    settings = settings if settings is not None else configuration.FanOutSettings()
    logger = logger if logger is not None else logging.getLogger(__name__)

    async with auth.APIContext(connection) as context:
        resources = await scanning.scan_resources(context=context, settings=settings, logger=logger)
        watchable = capabilities.select(resources, capabilities.WATCH)

        queue: "asyncio.Queue[Union[bodies.RawEvent, _EndOfStream]]"
        queue = asyncio.Queue(maxsize=settings.watching.queue_size)
        stopper: aiotasks.Future = asyncio.get_running_loop().create_future()

        workers = [
            asyncio.create_task(_watch_one(
                handle=handles.ResourceHandle(
                    resource, namespace,
                    context=context,
                    settings=settings,
                    logger=loggers.ResourceLogger(resource=resource, namespace=resource.get_scope(namespace)),
                ),
                label=label,
                queue=queue,
                stopper=stopper,
            ), name=f'watcher of {resource}')
            for resource in watchable
        ]
        supervisor = asyncio.create_task(_supervise(stop_flag=stop_flag, stopper=stopper),
                                         name='watching supervisor')
        finisher = asyncio.create_task(_finish(workers=workers, queue=queue),
                                       name='watching finisher')
        logger.debug(f"Watching {len(workers)} resource types with the label {label!r}.")

        try:
            while True:
                item = await queue.get()
                if isinstance(item, _EndOfStream):
                    break
                yield item
        finally:
            if not stopper.done():
                stopper.set_result(None)
            await aiotasks.stop([supervisor, finisher, *workers], title='watching', quiet=True, logger=logger)
            logger.debug(f"Stopped watching the resources with the label {label!r}.")


async def _watch_one(
        *,
        handle: handles.ResourceHandle,
        label: str,
        queue: "asyncio.Queue[Union[bodies.RawEvent, _EndOfStream]]",
        stopper: aiotasks.Future,
) -> None:
    try:
        async for raw_event in handle.watch(label, stopper=stopper):
            await queue.put(raw_event)
    except Exception as e:
        handle.logger.error(f"Watching has failed; excluding it from the stream: {e!r}")


async def _supervise(
        *,
        stop_flag: Optional[aioadapters.Flag],
        stopper: aiotasks.Future,
) -> None:
    await aioadapters.wait_flag(stop_flag)
    if not stopper.done():
        stopper.set_result(None)


async def _finish(
        *,
        workers: Collection[aiotasks.Task],
        queue: "asyncio.Queue[Union[bodies.RawEvent, _EndOfStream]]",
) -> None:
    await aiotasks.wait(workers)
    await queue.put(_EndOfStream())
