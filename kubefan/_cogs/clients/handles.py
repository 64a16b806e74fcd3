"""
A client bound to one resource type in one namespace scope.

The handles are short-lived: they are created by the engines for every
discovered resource type for the duration of one top-level call, and use
the session of that call. They are never cached or shared across calls.
"""
from typing import AsyncIterator, List, Optional

from kubefan._cogs.aiokits import aiotasks
from kubefan._cogs.clients import auth, deleting, fetching, watching
from kubefan._cogs.configs import configuration
from kubefan._cogs.helpers import typedefs
from kubefan._cogs.structs import bodies, references, selectors


class ResourceHandle:

    def __init__(
            self,
            resource: references.Resource,
            namespace: references.Namespace,
            *,
            context: auth.APIContext,
            settings: configuration.FanOutSettings,
            logger: typedefs.Logger,
    ) -> None:
        super().__init__()
        self.resource = resource
        self.namespace = resource.get_scope(namespace)
        self.context = context
        self.settings = settings
        self.logger = logger

    def __repr__(self) -> str:
        where = f'in {self.namespace!r}' if self.namespace is not None else 'cluster-wide'
        return f'<{self.__class__.__name__} {self.resource} {where}>'

    async def list(self, selector: Optional[selectors.LabelSelector] = None) -> List[bodies.RawBody]:
        """
        List the objects that have the label, as re-checked on the client side.

        Without a selector, all the objects in the scope are listed.
        """
        objs = await fetching.list_objs(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=self.namespace,
            label_selector=selector.as_query() if selector is not None else None,
            logger=self.logger,
        )
        return list(selector.filter(objs)) if selector is not None else objs

    async def watch(
            self,
            label: str,
            stopper: Optional[aiotasks.Future] = None,
    ) -> AsyncIterator[bodies.RawEvent]:
        async for raw_event in watching.watch_objs(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=self.namespace,
            label_selector=label,
            stopper=stopper,
        ):
            yield raw_event

    async def get(self, name: str) -> bodies.RawBody:
        return await fetching.read_obj(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=self.namespace,
            name=name,
            logger=self.logger,
        )

    async def delete(
            self,
            name: str,
            *,
            namespace: references.Namespace = None,
            propagation_policy: Optional[str] = deleting.FOREGROUND,
    ) -> None:
        """
        Delete one object by name in its own namespace (if given) or in the scope.
        """
        scope = self.resource.get_scope(namespace) if namespace is not None else self.namespace
        await deleting.delete_obj(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=scope,
            name=name,
            propagation_policy=propagation_policy,
            logger=self.logger,
        )

    async def delete_collection(
            self,
            selector: selectors.LabelSelector,
            *,
            propagation_policy: Optional[str] = deleting.FOREGROUND,
    ) -> None:
        await deleting.delete_collection(
            context=self.context,
            settings=self.settings,
            resource=self.resource,
            namespace=self.namespace,
            label_selector=selector.as_query(),
            propagation_policy=propagation_policy,
            logger=self.logger,
        )
