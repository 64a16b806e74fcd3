"""
Resolving the desired manifests to their live counterparts in the cluster.

A manifest is matched to a live object by its API group, version, kind,
and name (in a namespace for the namespaced resource types). The absence
of the live object is a normal result (``None``), not an error.
"""
import logging
from typing import Iterable, List, Mapping, Optional

from kubefan._cogs.clients import auth, errors, handles, scanning
from kubefan._cogs.configs import configuration
from kubefan._cogs.helpers import typedefs
from kubefan._cogs.structs import bodies, credentials, references, selectors
from kubefan._core.actions import merging


async def resolve(
        connection: credentials.ConnectionInfo,
        manifest: bodies.RawBody,
        namespace: references.Namespace,
        *,
        settings: Optional[configuration.FanOutSettings] = None,
        logger: Optional[typedefs.Logger] = None,
) -> Optional[bodies.RawBody]:
    """
    Fetch the live object for a manifest, or ``None`` if there is none.

    `NotServable` is raised if the server has no such kind in that group/version.
    `ValueError` is raised if the manifest has no name, kind, or API version.
    """
    settings = settings if settings is not None else configuration.FanOutSettings()
    logger = logger if logger is not None else logging.getLogger(__name__)
    _check_manifest(manifest)
    async with auth.APIContext(connection) as context:
        return await _resolve_one(manifest, namespace, context=context, settings=settings, logger=logger)


async def resolve_many(
        connection: credentials.ConnectionInfo,
        manifests: Iterable[bodies.RawBody],
        namespace: references.Namespace,
        *,
        settings: Optional[configuration.FanOutSettings] = None,
        logger: Optional[typedefs.Logger] = None,
) -> List[Optional[bodies.RawBody]]:
    """
    Resolve the manifests one by one; the results go in the same positions.

    The first failure (other than the absence of a live object) stops it all.
    """
    settings = settings if settings is not None else configuration.FanOutSettings()
    logger = logger if logger is not None else logging.getLogger(__name__)
    manifests = list(manifests)
    for manifest in manifests:
        _check_manifest(manifest)

    results: List[Optional[bodies.RawBody]] = []
    async with auth.APIContext(connection) as context:
        for manifest in manifests:
            live = await _resolve_one(manifest, namespace, context=context, settings=settings, logger=logger)
            results.append(live)
    return results


async def list_all(
        connection: credentials.ConnectionInfo,
        resources: Iterable[references.Resource],
        namespace: references.Namespace,
        *,
        selector: Optional[selectors.LabelSelector] = None,
        settings: Optional[configuration.FanOutSettings] = None,
        logger: Optional[typedefs.Logger] = None,
) -> List[bodies.RawBody]:
    """
    List the objects of the given resource types sequentially, without repeats.

    Unlike the label-based fan-out, any error is raised immediately.
    """
    settings = settings if settings is not None else configuration.FanOutSettings()
    logger = logger if logger is not None else logging.getLogger(__name__)
    per_type: List[List[bodies.RawBody]] = []
    async with auth.APIContext(connection) as context:
        for resource in resources:
            handle = handles.ResourceHandle(resource, namespace, context=context, settings=settings, logger=logger)
            per_type.append(await handle.list(selector))
    return merging.merge(per_type)


async def check_connection(
        connection: credentials.ConnectionInfo,
        *,
        settings: Optional[configuration.FanOutSettings] = None,
        logger: Optional[typedefs.Logger] = None,
) -> Mapping[str, str]:
    """
    Check that the cluster is reachable with these credentials; return its version.
    """
    settings = settings if settings is not None else configuration.FanOutSettings()
    logger = logger if logger is not None else logging.getLogger(__name__)
    async with auth.APIContext(connection) as context:
        return await scanning.read_version(context=context, settings=settings, logger=logger)


def _check_manifest(manifest: bodies.RawBody) -> None:
    if not bodies.get_name(manifest):
        raise ValueError(f"The manifest has no name: {manifest!r}")
    if not manifest.get('kind') or not manifest.get('apiVersion'):
        raise ValueError(f"The manifest has no kind or apiVersion: {manifest!r}")


async def _resolve_one(
        manifest: bodies.RawBody,
        namespace: references.Namespace,
        *,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        logger: typedefs.Logger,
) -> Optional[bodies.RawBody]:
    group, version = references.parse_api_version(manifest['apiVersion'])
    kind = manifest['kind']
    name = bodies.get_name(manifest) or ''
    resource = await scanning.find_resource(
        context=context,
        settings=settings,
        logger=logger,
        group=group,
        version=version,
        kind=kind,
    )

    # A namespaced object is always looked up in some namespace, never cluster-wide.
    scope = namespace or bodies.get_namespace(manifest) or context.default_namespace or 'default'
    handle = handles.ResourceHandle(
        resource, references.NamespaceName(scope),
        context=context, settings=settings, logger=logger,
    )
    try:
        return await handle.get(name)
    except errors.APINotFoundError:
        where = f" in namespace {handle.namespace!r}" if handle.namespace else ""
        logger.info(f"No live counterpart to {kind}/{name}{where}.")
        return None
