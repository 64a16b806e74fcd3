import asyncio
from typing import Any, Collection, List, Mapping, Sequence

from kubefan._cogs.clients import api, auth, errors
from kubefan._cogs.configs import configuration
from kubefan._cogs.helpers import typedefs
from kubefan._cogs.structs import references


async def read_version(
        *,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        logger: typedefs.Logger,
) -> Mapping[str, str]:
    rsp: Mapping[str, str] = await api.get('/version', context=context, settings=settings, logger=logger)
    return rsp


async def scan_resources(
        *,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        logger: typedefs.Logger,
) -> Sequence[references.Resource]:
    """
    Discover all the resource types served by the cluster at this moment.

    The result is ordered: the core API first, then the API groups, versions,
    and plural names alphabetically. The position in this sequence is used
    to pick the errors deterministically when many of them happen at once.

    Any failure of the discovery fails the whole discovery: the operations
    are never performed on a partially discovered set of resource types.
    """
    try:
        core, grouped = await asyncio.gather(
            _read_old_api(context=context, settings=settings, logger=logger),
            _read_new_apis(context=context, settings=settings, logger=logger),
        )
    except errors.TransportError as e:
        raise errors.DiscoveryError(f"Failed to discover the resource types: {e}") from e

    resources = set(core) | set(grouped)
    return sorted(resources, key=lambda r: (r.group != '', r.group, r.version, r.plural))


async def find_resource(
        *,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        logger: typedefs.Logger,
        group: str,
        version: str,
        kind: str,
) -> references.Resource:
    """
    Find the served resource type by its API group, version, and exact kind.

    Only one group/version is read, not the whole catalogue of the cluster.
    """
    url = f'/apis/{group}/{version}' if group else f'/api/{version}'
    resources = await _read_version(
        url=url,
        group=group,
        version=version,
        preferred=True,
        context=context,
        settings=settings,
        logger=logger,
    )
    for resource in resources:
        if resource.kind == kind:
            return resource
    api_version = f'{group}/{version}' if group else version
    raise errors.NotServable(f"The server does not serve the kind {kind!r} in {api_version!r}.")


async def _read_old_api(
        *,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        logger: typedefs.Logger,
) -> Collection[references.Resource]:
    rsp = await api.get('/api', context=context, settings=settings, logger=logger)
    results = await asyncio.gather(*[
        _read_version(
            url=f'/api/{version_name}',
            group='',
            version=version_name,
            preferred=True,
            context=context,
            settings=settings,
            logger=logger,
        )
        for version_name in rsp.get('versions', [])
    ])
    return [resource for resources in results for resource in resources]


async def _read_new_apis(
        *,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        logger: typedefs.Logger,
) -> Collection[references.Resource]:
    rsp = await api.get('/apis', context=context, settings=settings, logger=logger)
    results = await asyncio.gather(*[
        _read_version(
            url=f'/apis/{group_dat["name"]}/{version["version"]}',
            group=group_dat['name'],
            version=version['version'],
            preferred=version['version'] == group_dat.get('preferredVersion', {}).get('version'),
            context=context,
            settings=settings,
            logger=logger,
        )
        for group_dat in rsp.get('groups', [])
        for version in group_dat.get('versions', [])
    ])
    return [resource for resources in results for resource in resources]


async def _read_version(
        *,
        url: str,
        group: str,
        version: str,
        preferred: bool,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        logger: typedefs.Logger,
) -> List[references.Resource]:
    try:
        rsp = await api.get(url, context=context, settings=settings, logger=logger)
    except errors.APINotFoundError:
        # This happens when the last and the only resource of a group/version
        # has been deleted between reading the groups and reading the versions.
        logger.debug(f"The API {url} is gone during the discovery; skipping it.")
        return []
    else:
        return [
            _make_resource(
                resource=resource,
                siblings=rsp.get('resources', []),
                group=group,
                version=version,
                preferred=preferred,
            )
            for resource in rsp.get('resources', [])
            if '/' not in resource['name']
        ]


def _make_resource(
        *,
        resource: Mapping[str, Any],
        siblings: Collection[Mapping[str, Any]],
        group: str,
        version: str,
        preferred: bool,
) -> references.Resource:
    # Note: builtins' singulars are empty strings in K3s (reasons unknown):
    # fall back to the lowercased kind for the informational purposes.
    return references.Resource(
        group=group,
        version=version,
        kind=resource['kind'],
        plural=resource['name'],
        singular=resource.get('singularName') or resource['kind'].lower(),
        shortcuts=frozenset(resource.get('shortNames', [])),
        categories=frozenset(resource.get('categories', [])),
        subresources=frozenset(
            subresource['name'].split('/', 1)[-1]
            for subresource in siblings
            if subresource['name'].startswith(f'{resource["name"]}/')
        ),
        namespaced=resource.get('namespaced', False),
        preferred=preferred,
        verbs=frozenset(resource.get('verbs') or []),
    )
