import logging
from typing import Optional

from kubefan._cogs.clients import auth, errors, handles, scanning
from kubefan._cogs.configs import configuration
from kubefan._cogs.helpers import typedefs
from kubefan._cogs.structs import bodies, credentials, references, selectors
from kubefan._core.actions import capabilities, loggers
from kubefan._core.engines import fanout


async def delete_by_label(
        connection: credentials.ConnectionInfo,
        namespace: references.Namespace,
        key: str,
        value: str,
        *,
        settings: Optional[configuration.FanOutSettings] = None,
        logger: Optional[typedefs.Logger] = None,
) -> None:
    """
    Delete the objects of all resource types that have the label ``key=value``.

    Every resource type is deleted in the best way it supports: with one
    collection-wide request, or object by object after listing them;
    the resource types that cannot be deleted at all are skipped.
    The dependents are deleted first (the foreground propagation).

    The objects that are already gone are not an error: the deletion is
    idempotent. Other errors are raised as `AggregateError` after all
    the resource types are processed.
    """
    settings = settings if settings is not None else configuration.FanOutSettings()
    logger = logger if logger is not None else logging.getLogger(__name__)
    selector = selectors.LabelSelector(key, value)

    async with auth.APIContext(connection) as context:
        resources = await scanning.scan_resources(context=context, settings=settings, logger=logger)
        deletable = [
            resource for resource in resources
            if capabilities.pick_deletion_strategy(resource, namespace) is not capabilities.DeletionStrategy.SKIP
        ]

        async def delete_one(
                resource: references.Resource,
                resource_logger: loggers.ResourceLogger,
        ) -> None:
            handle = handles.ResourceHandle(
                resource, namespace,
                context=context, settings=settings, logger=resource_logger,
            )
            strategy = capabilities.pick_deletion_strategy(resource, namespace)
            if strategy is capabilities.DeletionStrategy.COLLECTION:
                await _delete_collection(handle, selector, logger=resource_logger)
            elif strategy is capabilities.DeletionStrategy.INDIVIDUAL:
                await _delete_individually(handle, selector, logger=resource_logger)

        outcome = await fanout.run(deletable, delete_one, namespace=namespace, title='deletion', logger=logger)

    outcome.raise_for_failures()


async def _delete_collection(
        handle: handles.ResourceHandle,
        selector: selectors.LabelSelector,
        *,
        logger: typedefs.Logger,
) -> None:
    try:
        await handle.delete_collection(selector, propagation_policy=capabilities.PROPAGATION_POLICY)
    except errors.APINotFoundError:
        logger.debug(f"Nothing to delete with the label {selector}: not found.")
    else:
        logger.debug(f"Deleted the collection with the label {selector}.")


async def _delete_individually(
        handle: handles.ResourceHandle,
        selector: selectors.LabelSelector,
        *,
        logger: typedefs.Logger,
) -> None:
    objs = await handle.list(selector)
    for obj in objs:
        name = bodies.get_name(obj)
        if name is None:
            continue
        obj_namespace = bodies.get_namespace(obj)
        namespace = references.NamespaceName(obj_namespace) if obj_namespace else None
        try:
            await handle.delete(name, namespace=namespace, propagation_policy=capabilities.PROPAGATION_POLICY)
        except errors.APINotFoundError:
            logger.debug(f"The object {name!r} is already gone.")
        else:
            logger.debug(f"Deleted the object {name!r}.")
