import logging
from typing import List, Optional

from kubefan._cogs.clients import auth, handles, scanning
from kubefan._cogs.configs import configuration
from kubefan._cogs.helpers import typedefs
from kubefan._cogs.structs import bodies, credentials, references, selectors
from kubefan._core.actions import capabilities, loggers, merging
from kubefan._core.engines import fanout


async def list_by_label(
        connection: credentials.ConnectionInfo,
        namespace: references.Namespace,
        key: str,
        value: str,
        *,
        settings: Optional[configuration.FanOutSettings] = None,
        logger: Optional[typedefs.Logger] = None,
) -> List[bodies.RawBody]:
    """
    List the objects of all resource types that have the label ``key=value``.

    All the listable resource types are listed concurrently. The objects
    are re-checked for the label on the client side, and the objects seen
    via several resource types (API groups) are returned only once.

    If any resource type fails, `AggregateError` is raised after all other
    resource types are finished; the partial results are not returned.
    """
    settings = settings if settings is not None else configuration.FanOutSettings()
    logger = logger if logger is not None else logging.getLogger(__name__)
    selector = selectors.LabelSelector(key, value)

    async with auth.APIContext(connection) as context:
        resources = await scanning.scan_resources(context=context, settings=settings, logger=logger)
        listable = capabilities.select(resources, capabilities.LIST)

        async def list_one(
                resource: references.Resource,
                resource_logger: loggers.ResourceLogger,
        ) -> List[bodies.RawBody]:
            handle = handles.ResourceHandle(
                resource, namespace,
                context=context, settings=settings, logger=resource_logger,
            )
            objs = await handle.list(selector)
            resource_logger.debug(f"Listed {len(objs)} objects with the label {selector}.")
            return objs

        outcome = await fanout.run(listable, list_one, namespace=namespace, title='listing', logger=logger)

    outcome.raise_for_failures()
    return merging.merge(outcome.results)
