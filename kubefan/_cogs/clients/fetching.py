from typing import Dict, List, Optional

from kubefan._cogs.clients import api, auth
from kubefan._cogs.configs import configuration
from kubefan._cogs.helpers import typedefs
from kubefan._cogs.structs import bodies, references


async def list_objs(
        *,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        label_selector: Optional[str] = None,
        logger: typedefs.Logger,
) -> List[bodies.RawBody]:
    """
    List the objects of specific resource type.

    The cluster-scoped call is used in two cases:

    * The resource itself is cluster-scoped, and namespacing makes not sense.
    * The namespace is not specified, so all namespaces are listed.

    The label selector is only a hint for the server: it is not guaranteed
    that the server has filtered the objects. The items are returned as is.

    The list items usually have no ``kind`` & ``apiVersion``: they are taken
    from the list itself, so that the objects could be identified later.
    """
    params: Dict[str, str] = {}
    if label_selector:
        params['labelSelector'] = label_selector

    rsp = await api.get(
        url=resource.get_url(namespace=namespace, params=params),
        context=context,
        settings=settings,
        logger=logger,
    )

    items: List[bodies.RawBody] = []
    for item in rsp.get('items') or []:
        if 'kind' in rsp:
            item.setdefault('kind', rsp['kind'][:-4] if rsp['kind'][-4:] == 'List' else rsp['kind'])
        if 'apiVersion' in rsp:
            item.setdefault('apiVersion', rsp['apiVersion'])
        items.append(item)
    return items


async def read_obj(
        *,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        logger: typedefs.Logger,
) -> bodies.RawBody:
    obj: bodies.RawBody = await api.get(
        url=resource.get_url(namespace=namespace, name=name),
        context=context,
        settings=settings,
        logger=logger,
    )
    return obj
