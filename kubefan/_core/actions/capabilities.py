"""
Capabilities of the resource types: which verbs they support, and how to delete.

Everything here is a pure lookup over the discovered verbs of a resource type,
with no I/O. The fan-out engines use it to decide which resource types take
part in an operation, and in which way.
"""
import enum
from typing import Iterable, List

from kubefan._cogs.structs import references

LIST = 'list'
WATCH = 'watch'
DELETE = 'delete'
DELETECOLLECTION = 'deletecollection'

# The dependents are removed before the owner is considered deleted.
PROPAGATION_POLICY = 'Foreground'


class DeletionStrategy(enum.Enum):
    COLLECTION = 'collection'  # one request for all matching objects.
    INDIVIDUAL = 'individual'  # list the matching objects, delete them one by one.
    SKIP = 'skip'              # the objects cannot be deleted at all.


def supports(resource: references.Resource, verb: str) -> bool:
    return verb in resource.verbs


def select(resources: Iterable[references.Resource], verb: str) -> List[references.Resource]:
    """ Keep only the resource types that support the verb, in the same order. """
    return [resource for resource in resources if supports(resource, verb)]


def pick_deletion_strategy(
        resource: references.Resource,
        namespace: references.Namespace = None,
) -> DeletionStrategy:
    """
    Pick the best way to delete the objects of a resource type.

    The API servers serve the collections of namespaced resources only within
    a namespace. Across all namespaces, the objects are deleted one by one,
    each in its own namespace.
    """
    if supports(resource, DELETECOLLECTION) and (namespace or not resource.namespaced):
        return DeletionStrategy.COLLECTION
    elif supports(resource, DELETE):
        return DeletionStrategy.INDIVIDUAL
    else:
        return DeletionStrategy.SKIP
