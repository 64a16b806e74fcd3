from typing import Any, Dict, Mapping, Optional

from kubefan._cogs.clients import api, auth
from kubefan._cogs.configs import configuration
from kubefan._cogs.helpers import typedefs
from kubefan._cogs.structs import references

# The dependents are deleted before the owner is considered deleted.
FOREGROUND = 'Foreground'


def make_delete_options(propagation_policy: Optional[str] = FOREGROUND) -> Mapping[str, Any]:
    options: Dict[str, Any] = {}
    if propagation_policy is not None:
        options['propagationPolicy'] = propagation_policy
    return options


async def delete_obj(
        *,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        name: str,
        propagation_policy: Optional[str] = FOREGROUND,
        logger: typedefs.Logger,
) -> None:
    """
    Delete one object by its name. Errors (incl. "not found") are propagated.
    """
    await api.delete(
        url=resource.get_url(namespace=namespace, name=name),
        payload=make_delete_options(propagation_policy),
        context=context,
        settings=settings,
        logger=logger,
    )


async def delete_collection(
        *,
        context: auth.APIContext,
        settings: configuration.FanOutSettings,
        resource: references.Resource,
        namespace: references.Namespace,
        label_selector: Optional[str] = None,
        propagation_policy: Optional[str] = FOREGROUND,
        logger: typedefs.Logger,
) -> None:
    """
    Delete all the objects matching the selector with one request.

    The selector is processed by the server only. Without a selector,
    all the objects of the resource type in the namespace are deleted.
    """
    params: Dict[str, str] = {}
    if label_selector:
        params['labelSelector'] = label_selector
    await api.delete(
        url=resource.get_url(namespace=namespace, params=params),
        payload=make_delete_options(propagation_policy),
        context=context,
        settings=settings,
        logger=logger,
    )
