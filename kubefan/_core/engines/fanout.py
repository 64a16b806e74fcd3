"""
Fan-out of the workers over the resource types, and fan-in of their outcomes.

One worker (an asyncio task) is started per participating resource type.
All of them are awaited until they are all done, even if some of them fail:
a failure of one worker never discards the results of its siblings.

The outcomes are accumulated in a shared `FanOut` sink: the results per
resource type, and one representative error. When several workers fail,
the error of the worker with the lowest index (in the discovery order) wins
regardless of the timing -- to make the surfaced error deterministic.
"""
import asyncio
from typing import Awaitable, Callable, Dict, Generic, List, Optional, Sequence, TypeVar

from kubefan._cogs.aiokits import aiotasks
from kubefan._cogs.clients import errors
from kubefan._cogs.helpers import typedefs
from kubefan._cogs.structs import references
from kubefan._core.actions import loggers

_T = TypeVar('_T')

Worker = Callable[[references.Resource, loggers.ResourceLogger], Awaitable[_T]]


class FanOut(Generic[_T]):
    """
    The per-worker results and the single representative error of a fan-out.

    All mutations happen in the event loop's thread with no awaits inside,
    so the concurrent workers never see or corrupt each other's writes.
    """

    def __init__(self) -> None:
        super().__init__()
        self._results: Dict[int, _T] = {}
        self._error: Optional[BaseException] = None
        self._error_index: Optional[int] = None
        self._failures = 0

    def __repr__(self) -> str:
        return f'<{self.__class__.__name__} results={len(self._results)} failures={self._failures}>'

    @property
    def results(self) -> List[_T]:
        """ The results of the succeeded workers, in the order of their indexes. """
        return [self._results[index] for index in sorted(self._results)]

    @property
    def error(self) -> Optional[BaseException]:
        return self._error

    @property
    def failures(self) -> int:
        return self._failures

    def put(self, index: int, result: _T) -> None:
        self._results[index] = result

    def fail(self, index: int, exc: BaseException) -> None:
        """ Remember the error unless an error of a lower index is already there. """
        self._failures += 1
        if self._error_index is None or index < self._error_index:
            self._error_index = index
            self._error = exc

    def raise_for_failures(self) -> None:
        if self._error is not None:
            raise errors.AggregateError(self._error, failures=self._failures) from self._error


async def run(
        resources: Sequence[references.Resource],
        worker: Worker[_T],
        *,
        namespace: references.Namespace,
        title: str,
        logger: typedefs.Logger,
) -> FanOut[_T]:
    """
    Run one worker per resource type concurrently; wait for all of them.

    The workers' errors are logged and put into the sink, not raised here.
    If the fan-out is cancelled, all the workers are cancelled and awaited.
    """
    fanout: FanOut[_T] = FanOut()

    async def guard(index: int, resource: references.Resource) -> None:
        resource_logger = loggers.ResourceLogger(resource=resource, namespace=resource.get_scope(namespace))
        try:
            result = await worker(resource, resource_logger)
        except Exception as e:
            resource_logger.error(f"{title.capitalize()} has failed: {e!r}")
            fanout.fail(index, e)
        else:
            fanout.put(index, result)

    tasks = [
        asyncio.create_task(guard(index, resource), name=f'{title} of {resource}')
        for index, resource in enumerate(resources)
    ]
    logger.debug(f"Fanning out the {title} over {len(tasks)} resource types.")
    await aiotasks.join(tasks, title=title, logger=logger)
    return fanout
