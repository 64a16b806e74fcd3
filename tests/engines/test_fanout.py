import asyncio

import pytest

from kubefan._cogs.clients.errors import AggregateError
from kubefan._cogs.structs.references import Resource
from kubefan._core.engines.fanout import FanOut, run

RESOURCES = [Resource('', 'v1', f'things{i}', namespaced=True) for i in range(5)]


def test_empty_fanout():
    fanout = FanOut()
    assert fanout.results == []
    assert fanout.error is None
    assert fanout.failures == 0
    fanout.raise_for_failures()


def test_results_are_in_index_order():
    fanout = FanOut()
    fanout.put(2, 'c')
    fanout.put(0, 'a')
    fanout.put(1, 'b')
    assert fanout.results == ['a', 'b', 'c']


@pytest.mark.parametrize('order', [[0, 1, 2], [2, 1, 0], [1, 2, 0], [2, 0, 1]])
def test_lowest_index_error_wins_regardless_of_order(order):
    errors = {index: ValueError(f'error{index}') for index in range(3)}
    fanout = FanOut()
    for index in order:
        fanout.fail(index, errors[index])
    assert fanout.error is errors[0]
    assert fanout.failures == 3


def test_raising_an_aggregate_error():
    error1 = ValueError('error1')
    error2 = ValueError('error2')
    fanout = FanOut()
    fanout.put(0, 'a')
    fanout.fail(2, error2)
    fanout.fail(1, error1)

    with pytest.raises(AggregateError) as err:
        fanout.raise_for_failures()

    assert err.value.cause is error1
    assert err.value.__cause__ is error1
    assert err.value.failures == 2


async def test_all_workers_are_finished_despite_failures(logger, no_pending_tasks):
    finished = []

    async def worker(resource, resource_logger):
        index = RESOURCES.index(resource)
        await asyncio.sleep(0.01 * (5 - index))  # the higher index fails first.
        if index in (1, 3):
            raise ValueError(f'error{index}')
        finished.append(index)
        return index

    fanout = await run(RESOURCES, worker, namespace=None, title='testing', logger=logger)

    assert sorted(finished) == [0, 2, 4]
    assert fanout.results == [0, 2, 4]
    assert fanout.failures == 2
    assert str(fanout.error) == 'error1'


async def test_worker_errors_are_logged(logger, assert_logs):

    async def worker(resource, resource_logger):
        raise ValueError('boom')

    await run(RESOURCES[:1], worker, namespace=None, title='testing', logger=logger)

    assert_logs([r"Testing has failed: ValueError\('boom'\)"])


async def test_no_workers(logger):

    async def worker(resource, resource_logger):
        raise AssertionError("Must not be called.")

    fanout = await run([], worker, namespace=None, title='testing', logger=logger)

    assert fanout.results == []
    assert fanout.error is None


async def test_cancellation_stops_all_workers(logger, no_pending_tasks):
    started = []
    cancelled = []

    async def worker(resource, resource_logger):
        started.append(resource)
        try:
            await asyncio.Event().wait()
        except asyncio.CancelledError:
            cancelled.append(resource)
            raise

    task = asyncio.create_task(run(RESOURCES, worker, namespace=None, title='testing', logger=logger))
    await asyncio.sleep(0.05)
    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert len(started) == len(RESOURCES)
    assert len(cancelled) == len(RESOURCES)
