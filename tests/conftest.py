import asyncio
import json
import logging
import re
import time
from unittest.mock import AsyncMock, MagicMock

import aiohttp.web
import pytest

from kubefan._cogs.clients.auth import APIContext
from kubefan._cogs.configs.configuration import FanOutSettings
from kubefan._cogs.structs.credentials import ConnectionInfo
from kubefan._cogs.structs.references import Resource


@pytest.fixture()
def hostname():
    """ A fake hostname to be used in all aiohttp/aresponses tests. """
    return 'fake-host'


@pytest.fixture()
def connection(hostname):
    return ConnectionInfo(server=f'https://{hostname}')


@pytest.fixture()
def settings():
    return FanOutSettings()


@pytest.fixture()
async def context(connection):
    """ A session for the low-level client calls, closed after the test. """
    async with APIContext(connection) as context:
        yield context


@pytest.fixture()
def logger():
    return logging.getLogger('kubefan.tests')


@pytest.fixture()
def pods():
    return Resource('', 'v1', 'pods', kind='Pod', namespaced=True,
                    verbs=frozenset({'list', 'watch', 'get', 'delete', 'deletecollection'}))


@pytest.fixture()
def namespaces():
    return Resource('', 'v1', 'namespaces', kind='Namespace', namespaced=False,
                    verbs=frozenset({'list', 'watch', 'get', 'delete'}))


@pytest.fixture()
def deployments():
    return Resource('apps', 'v1', 'deployments', kind='Deployment', namespaced=True,
                    verbs=frozenset({'list', 'watch', 'get', 'delete', 'deletecollection'}))


@pytest.fixture()
def bindings():
    return Resource('', 'v1', 'bindings', kind='Binding', namespaced=True,
                    verbs=frozenset({'create'}))


#
# Mocks for Kubernetes API. Reasons:
# 1. We do not test the aiohttp client, we test the layers on top of it,
#    so everything low-level should be mocked and assumed to be functional.
# 2. No external calls must be made under any circumstances.
#    The unit-tests must be fully isolated from the environment.
#

@pytest.fixture()
def resp_mocker(aresponses):
    """
    A factory of server-side callbacks for `aresponses` with mocking/spying.

    The value of the fixture is a function, which return a coroutine mock.
    That coroutine mock should be passed to `aresponses.add` as a response
    callback function. When called, it calls the mock defined by the function's
    arguments (specifically, return_value or side_effects).

    The difference from passing the responses directly to `aresponses.add`
    is that it is possible to assert on whether the response was handled
    by that callback at all (i.e. HTTP URL & method matched), especially
    if there are multiple responses registered.

    Sample usage::

        def test_me(resp_mocker):
            response = aiohttp.web.json_response({'a': 'b'})
            callback = resp_mocker(return_value=response)
            aresponses.add(hostname, '/path/', 'get', callback)
            do_something()
            assert callback.called
            assert callback.call_count == 1
    """
    def resp_maker(*args, **kwargs):
        actual_response = MagicMock(*args, **kwargs)
        async def resp_mock_effect(request):
            nonlocal actual_response

            # The request's content can be read inside of the handler only. We preserve
            # the data into a conventional field, so that they could be asserted later.
            try:
                request.data = await request.json()
            except json.JSONDecodeError:
                request.data = await request.text()

            # Get a response/error as it was intended (via return_value/side_effect).
            response = actual_response()
            return response

        return AsyncMock(side_effect=resp_mock_effect)
    return resp_maker


@pytest.fixture()
def discovery(aresponses, hostname):
    """
    A fake discovery of the resource types, as served by the API server.

    Usage::

        def test_me(discovery, pods, deployments):
            discovery(pods, deployments)
            ...

    The resources are grouped by their API groups & versions, and served
    from ``/api/v1`` for the core API, and ``/apis/{group}/{version}`` for others.
    """
    def serve(*resources, subresources=()):
        versions = {}
        for resource in resources:
            versions.setdefault((resource.group, resource.version), []).append({
                'name': resource.plural,
                'singularName': resource.singular or '',
                'kind': resource.kind,
                'namespaced': resource.namespaced,
                'verbs': sorted(resource.verbs),
            })
        for name in subresources:
            plural = name.split('/', 1)[0]
            for (group, version), items in versions.items():
                if any(item['name'] == plural for item in items):
                    items.append({'name': name, 'singularName': '', 'kind': '', 'namespaced': True, 'verbs': ['get']})

        core_versions = sorted({version for group, version in versions if not group})
        groups = sorted({group for group, _ in versions if group})
        aresponses.add(hostname, '/api', 'get', aiohttp.web.json_response({'versions': core_versions}))
        aresponses.add(hostname, '/apis', 'get', aiohttp.web.json_response({'groups': [
            {
                'name': group,
                'preferredVersion': {'version': sorted(v for g, v in versions if g == group)[-1]},
                'versions': [{'version': v} for g, v in sorted(versions) if g == group],
            }
            for group in groups
        ]}))
        for (group, version), items in versions.items():
            url = f'/apis/{group}/{version}' if group else f'/api/{version}'
            aresponses.add(hostname, url, 'get', aiohttp.web.json_response({'resources': items}))

    return serve


#
# Helpers for the timing checks.
#

@pytest.fixture()
def timer():
    return Timer()


class Timer:
    """
    A helper context manager to measure the time of the code-blocks.
    Also, supports direct comparison with time-deltas and the numbers of seconds.

    Usage:

        with Timer() as timer:
            do_something()
            print(f"Executing for {timer.seconds}s already.")
            do_something_else()

        print(f"Executed in {timer.seconds}s.")
        assert timer.seconds < 5.0
    """

    def __init__(self):
        super().__init__()
        self._ts = None
        self._te = None

    @property
    def seconds(self):
        if self._ts is None:
            return None
        elif self._te is None:
            return time.perf_counter() - self._ts
        else:
            return self._te - self._ts

    def __repr__(self):
        status = 'new' if self._ts is None else 'running' if self._te is None else 'finished'
        return f'<Timer: {self.seconds}s ({status})>'

    def __enter__(self):
        self._ts = time.perf_counter()
        self._te = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self._te = time.perf_counter()

    async def __aenter__(self):
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return self.__exit__(exc_type, exc_val, exc_tb)


#
# Helpers for the logging checks.
#

@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    caplog.set_level(logging.DEBUG)

    def assert_logs_fn(patterns, prohibited=[], strict=False):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            # The expected pattern is at position 0.
            # Looking-ahead: if one of the following patterns matches, while the
            # 0th does not, then the log message is missing, and we fail the test.
            for idx, pattern in enumerate(remaining_patterns):
                m = re.search(pattern, message)
                if m:
                    if idx == 0:
                        remaining_patterns[:1] = []
                        break  # out of `remaining_patterns` cycle
                    else:
                        skipped_patterns = remaining_patterns[:idx]
                        raise AssertionError(f"Few patterns were skipped: {skipped_patterns!r}")
                elif strict:
                    raise AssertionError(f"Unexpected log message: {message!r}")

            # Check that the prohibited patterns do not appear in any message.
            for pattern in prohibited:
                m = re.search(pattern, message)
                if m:
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")

        # If all patterns have been matched in order, we are done.
        # if some are left, but the messages are over, then we fail.
        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn


#
# Helpers for asyncio checks.
#

@pytest.fixture()
async def no_pending_tasks():
    """
    Ensure there are no unattended asyncio tasks after the test.

    Used in the tests of the concurrent engines, where the workers are started
    in the background and must be finished by the time the engine returns.
    """
    before = {t for t in asyncio.all_tasks() if not t.done()}
    yield
    await asyncio.sleep(0)
    after = {t for t in asyncio.all_tasks() if not t.done()}
    remains = after - before - {asyncio.current_task()}
    if remains:
        pytest.fail(f"Unattended asyncio tasks detected: {remains!r}")
