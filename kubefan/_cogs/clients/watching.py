"""
Watching and streaming watch-events.

A single watch-stream is opened for one resource type in one namespace
(or cluster-wide), and is consumed until either the server closes it
or the stopper future is resolved from the outside.

There is no re-connection and no continuation from the last seen
resource version: the stream ends when the underlying request ends.
A higher-level consumer decides whether it needs a new stream.
"""
import logging
from typing import AsyncIterator, Dict, Optional, cast

import aiohttp

from kubefan._cogs.aiokits import aiotasks
from kubefan._cogs.clients import api, auth, errors
from kubefan._cogs.configs import configuration
from kubefan._cogs.structs import bodies, references

logger = logging.getLogger(__name__)


class WatchingError(errors.TransportError):
    """
    Raised when the server reports an error in the watch-stream.
    """


async def watch_objs(
        *,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        label_selector: Optional[str] = None,
        since: Optional[str] = None,
        stopper: Optional[aiotasks.Future] = None,
) -> AsyncIterator[bodies.RawEvent]:
    """
    Watch objects of a specific resource type.

    Only the regular events (added, modified, deleted) are yielded.
    The ``ERROR`` events are raised as `WatchingError`, other types
    (e.g. bookmarks) are ignored with a warning.
    """
    params: Dict[str, str] = {}
    params['watch'] = 'true'
    if label_selector:
        params['labelSelector'] = label_selector
    if since is not None:
        params['resourceVersion'] = since
    if settings.watching.server_timeout is not None:
        params['timeoutSeconds'] = str(settings.watching.server_timeout)

    connect_timeout = (
        settings.watching.connect_timeout if settings.watching.connect_timeout is not None else
        settings.networking.connect_timeout if settings.networking.connect_timeout is not None else
        settings.networking.request_timeout
    )

    # Stream the parsed events from the response until it is closed server-side,
    # or until it is closed client-side by the stopper's callbacks.
    where = f'in {namespace!r}' if namespace is not None else 'cluster-wide'
    logger.debug(f"Starting the watch-stream for {resource} {where}.")
    try:
        async for raw_input in api.stream(
            url=resource.get_url(namespace=namespace, params=params),
            context=context,
            settings=settings,
            stopper=stopper,
            logger=logger,
            timeout=aiohttp.ClientTimeout(
                total=settings.watching.client_timeout,
                sock_connect=connect_timeout,
            ),
        ):
            raw_type = raw_input.get('type')
            raw_object = raw_input.get('object')

            if raw_type == 'ERROR':
                raise WatchingError(f"Error in the watch-stream: {raw_object}")

            # Ensure that the event is something we understand and can handle.
            if raw_type not in ['ADDED', 'MODIFIED', 'DELETED']:
                logger.warning(f"Ignoring an unsupported event type: {raw_input!r}")
                continue

            yield cast(bodies.RawEvent, raw_input)
    finally:
        logger.debug(f"Stopping the watch-stream for {resource} {where}.")
