import asyncio
import json
from typing import Any, AsyncIterator, Mapping, Optional

import aiohttp

from kubefan._cogs.aiokits import aiotasks
from kubefan._cogs.clients import auth, errors
from kubefan._cogs.configs import configuration
from kubefan._cogs.helpers import typedefs


async def request(
        method: str,
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.FanOutSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> aiohttp.ClientResponse:
    """
    Perform a single request to the API, with no retries.

    The network-level errors are translated to `errors.TransportError`,
    the HTTP error statuses -- to `errors.APIError` and its descendants.
    The response is returned unread: it is the caller's duty to read & close it.
    """
    if '://' not in url:
        url = context.server.rstrip('/') + '/' + url.lstrip('/')

    if timeout is None:
        timeout = aiohttp.ClientTimeout(
            total=settings.networking.request_timeout,
            sock_connect=settings.networking.connect_timeout,
        )

    what = f"{method.upper()} {url}"
    logger.debug(f"Requesting: {what}")
    try:
        response = await context.session.request(
            method=method,
            url=url,
            json=payload,
            headers=headers,
            timeout=timeout,
        )
    except (aiohttp.ClientConnectionError, asyncio.TimeoutError) as e:
        logger.debug(f"Request failed: {what} -> {e!r}")
        raise errors.TransportError(f"Request failed: {what} -> {e!r}") from e

    await errors.check_response(response)  # but do not parse it!
    return response


async def get(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.FanOutSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> Any:
    response = await request(
        method='get',
        url=url,
        payload=payload,
        headers=headers,
        timeout=timeout,
        settings=settings,
        context=context,
        logger=logger,
    )
    return await _read_json(response)


async def delete(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.FanOutSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> Any:
    response = await request(
        method='delete',
        url=url,
        payload=payload,
        headers=headers,
        timeout=timeout,
        settings=settings,
        context=context,
        logger=logger,
    )
    return await _read_json(response)


async def stream(
        url: str,  # relative to the server/api root.
        *,
        settings: configuration.FanOutSettings,
        payload: Optional[object] = None,
        headers: Optional[Mapping[str, str]] = None,
        timeout: Optional[aiohttp.ClientTimeout] = None,
        stopper: Optional[aiotasks.Future] = None,
        context: auth.APIContext,
        logger: typedefs.Logger,
) -> AsyncIterator[Any]:
    """
    Stream the JSON-lines of a long-lasting response (e.g. a watch).

    When the stopper is resolved, the response is closed from the outside,
    and the stream ends gracefully (as if the server has closed it).
    """
    if stopper is not None and stopper.done():
        return

    response = await request(
        method='get',
        url=url,
        payload=payload,
        headers=headers,
        timeout=timeout,
        settings=settings,
        context=context,
        logger=logger,
    )
    context.add_response(response)
    response_close_callback = lambda _: response.close()  # to remove the positional arg.
    if stopper is not None:
        stopper.add_done_callback(response_close_callback)
    try:
        async with response:
            async for line in iter_jsonlines(response.content):
                yield json.loads(line.decode('utf-8'))
    except (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError) as e:
        if stopper is not None and stopper.done():
            pass
        else:
            raise errors.TransportError(f"Stream failed: GET {url} -> {e!r}") from e
    finally:
        if stopper is not None:
            stopper.remove_done_callback(response_close_callback)


async def _read_json(response: aiohttp.ClientResponse) -> Any:
    try:
        async with response:
            return await response.json()
    except (aiohttp.ClientConnectionError, aiohttp.ClientPayloadError, asyncio.TimeoutError) as e:
        raise errors.TransportError(f"Response reading failed: {e!r}") from e


async def iter_jsonlines(
        content: aiohttp.StreamReader,
        chunk_size: int = 1024 * 1024,
) -> AsyncIterator[bytes]:
    """
    Iterate line by line over the response's content.

    Usage::

        async for line in iter_jsonlines(response.content):
            pass

    This is an equivalent of::

        async for line in response.content:
            pass

    Except that the aiohttp's line iteration fails if the accumulated buffer
    length is above 2**17 bytes, i.e. 128 KB (`aiohttp.streams.DEFAULT_LIMIT`
    for the buffer's low-watermark, multiplied by 2 for the high-watermark).
    Kubernetes objects (e.g. secrets or config maps) can be much longer.
    """

    # Keep at most 2 copies of a yielded line in memory (in the buffer and as a yielded value).
    buffer = b''
    async for data in content.iter_chunked(chunk_size):
        buffer += data
        del data

        start = 0
        index = buffer.find(b'\n', start)
        while index >= 0:
            line = buffer[start:index]
            if line:
                yield line
            del line
            start = index + 1
            index = buffer.find(b'\n', start)

        if start > 0:
            buffer = buffer[start:]

    if buffer:
        yield buffer
