import asyncio
import json

import pytest

from kubefan._cogs.clients.watching import WatchingError, watch_objs

STREAM_WITH_NORMAL_EVENTS = [
    {'type': 'ADDED', 'object': {'metadata': {'name': 'a'}}},
    {'type': 'MODIFIED', 'object': {'metadata': {'name': 'a'}}},
    {'type': 'DELETED', 'object': {'metadata': {'name': 'a'}}},
]


def make_stream(events):
    return '\n'.join(json.dumps(event) for event in events)


async def test_regular_events_are_yielded(
        resp_mocker, aresponses, hostname, context, settings, pods):

    stream_mock = resp_mocker(return_value=aresponses.Response(text=make_stream(STREAM_WITH_NORMAL_EVENTS)))
    aresponses.add(hostname, '/api/v1/namespaces/ns/pods', 'get', stream_mock)

    events = []
    async for event in watch_objs(context=context, settings=settings, resource=pods,
                                  namespace='ns', label_selector='app=web'):
        events.append(event)

    assert events == STREAM_WITH_NORMAL_EVENTS
    request = stream_mock.call_args[0][0]
    assert request.query['watch'] == 'true'
    assert request.query['labelSelector'] == 'app=web'
    assert 'timeoutSeconds' not in request.query


async def test_server_timeout_is_sent(
        resp_mocker, aresponses, hostname, context, settings, pods):
    settings.watching.server_timeout = 123

    stream_mock = resp_mocker(return_value=aresponses.Response(text=''))
    aresponses.add(hostname, '/api/v1/pods', 'get', stream_mock)

    events = [event async for event in watch_objs(context=context, settings=settings,
                                                  resource=pods, namespace=None)]

    assert events == []
    assert stream_mock.call_args[0][0].query['timeoutSeconds'] == '123'


async def test_unknown_event_types_are_ignored(
        resp_mocker, aresponses, hostname, context, settings, pods, assert_logs):

    stream = [{'type': 'BOOKMARK', 'object': {}}] + STREAM_WITH_NORMAL_EVENTS
    aresponses.add(hostname, '/api/v1/pods', 'get', aresponses.Response(text=make_stream(stream)))

    events = [event async for event in watch_objs(context=context, settings=settings,
                                                  resource=pods, namespace=None)]

    assert events == STREAM_WITH_NORMAL_EVENTS
    assert_logs([r"Ignoring an unsupported event type"])


async def test_error_events_are_raised(
        resp_mocker, aresponses, hostname, context, settings, pods):

    stream = STREAM_WITH_NORMAL_EVENTS[:1] + [{'type': 'ERROR', 'object': {'code': 410}}]
    aresponses.add(hostname, '/api/v1/pods', 'get', aresponses.Response(text=make_stream(stream)))

    events = []
    with pytest.raises(WatchingError):
        async for event in watch_objs(context=context, settings=settings,
                                      resource=pods, namespace=None):
            events.append(event)

    assert events == STREAM_WITH_NORMAL_EVENTS[:1]


async def test_resolved_stopper_prevents_the_request(
        resp_mocker, aresponses, hostname, context, settings, pods):

    stream_mock = resp_mocker(return_value=aresponses.Response(text=make_stream(STREAM_WITH_NORMAL_EVENTS)))
    aresponses.add(hostname, '/api/v1/pods', 'get', stream_mock)
    stopper = asyncio.get_running_loop().create_future()
    stopper.set_result(None)

    events = [event async for event in watch_objs(context=context, settings=settings,
                                                  resource=pods, namespace=None, stopper=stopper)]

    assert events == []
    assert not stream_mock.called
